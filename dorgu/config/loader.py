"""Loading configuration layers from disk."""

import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Type, TypeVar

import yaml
from pydantic import BaseModel, Field, ValidationError

from dorgu.config.config import Config
from dorgu.config.models import AppConfig, GlobalConfig, OrgConfig
from dorgu.utils.exceptions import ConfigError
from dorgu.utils.logger import DorguLogger

loader_logger = DorguLogger("ConfigLoader")

runtime_config = Config()

ModelT = TypeVar("ModelT", bound=BaseModel)

GLOBAL_CONFIG_HEADER = (
    "# Dorgu Global Configuration\n"
    "# Location: {path}\n"
    "# Edit with: dorgu config set <key> <value>\n\n"
)


def global_config_dir() -> Path:
    """``$XDG_CONFIG_HOME/dorgu`` if set, else ``~/.config/dorgu``."""
    xdg = os.getenv("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / runtime_config.GLOBAL_CONFIG_DIR
    return Path.home() / ".config" / runtime_config.GLOBAL_CONFIG_DIR


def global_config_path() -> Path:
    return global_config_dir() / runtime_config.GLOBAL_CONFIG_FILE_NAME


def _read_yaml(path: Path) -> Optional[Dict[str, Any]]:
    """Read a YAML mapping; ``None`` when the file is missing or empty."""
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None
    except OSError as e:
        raise ConfigError(f"failed to read {path}: {e}", path=str(path))
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ConfigError(f"failed to parse {path}: {e}", path=str(path))
    if data is None:
        return None
    if not isinstance(data, dict):
        raise ConfigError(f"{path} must contain a mapping at the top level", path=str(path))
    return data


def _load_model(path: Path, model_cls: Type[ModelT]) -> Optional[ModelT]:
    data = _read_yaml(path)
    if data is None:
        return None
    try:
        model = model_cls.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"invalid configuration in {path}: {e}", path=str(path))
    loader_logger.log_structured(
        level="DEBUG",
        message="Loaded configuration file",
        extra={"path": str(path), "schema": model_cls.__name__},
    )
    return model


def load_global_config(path: Optional[Path] = None) -> GlobalConfig:
    """Load the global user config; a missing or empty file yields the defaults."""
    path = path or global_config_path()
    config = _load_model(path, GlobalConfig)
    return config if config is not None else GlobalConfig()


def save_global_config(config: GlobalConfig, path: Optional[Path] = None) -> Path:
    """Write the global config with a header comment, readable by the owner only."""
    path = path or global_config_path()
    try:
        path.parent.mkdir(parents=True, exist_ok=True, mode=0o700)
        body = yaml.safe_dump(config.model_dump(), sort_keys=False, default_flow_style=False)
        path.write_text(GLOBAL_CONFIG_HEADER.format(path=path) + body, encoding="utf-8")
        os.chmod(path, 0o600)
    except OSError as e:
        raise ConfigError(f"failed to write config: {e}", path=str(path))
    loader_logger.log_structured(level="DEBUG", message="Saved global configuration", extra={"path": str(path)})
    return path


def load_workspace_config(workspace_dir: Path) -> Optional[OrgConfig]:
    """Load the organization-schema ``.dorgu.yaml`` of a workspace directory."""
    return _load_model(Path(workspace_dir) / runtime_config.CONFIG_FILE_NAME, OrgConfig)


def load_app_config(app_dir: Path) -> Optional[AppConfig]:
    """Load the application-schema ``.dorgu.yaml`` of an application directory."""
    return _load_model(Path(app_dir) / runtime_config.CONFIG_FILE_NAME, AppConfig)


class ConfigLayers(BaseModel):
    """Raw configuration sources for one invocation, before resolution."""
    global_config: Optional[GlobalConfig] = None
    workspace_config: Optional[OrgConfig] = None
    app_config: Optional[AppConfig] = None
    warnings: List[str] = Field(default_factory=list)


def load_layers(
    app_dir: Path,
    workspace_dir: Optional[Path] = None,
    global_path: Optional[Path] = None,
) -> ConfigLayers:
    """
    Load every configuration layer, tolerating broken ones.

    A layer that cannot be read or parsed is logged, recorded in
    ``warnings`` and left empty so resolution falls through to the layers
    below it. When the workspace and the application share a directory the
    file there is read as the application config only.

    Args:
        app_dir: Application directory
        workspace_dir: Workspace directory, defaults to the current directory
        global_path: Global config file, defaults to the XDG location

    Returns:
        ConfigLayers with whatever could be loaded
    """
    layers = ConfigLayers()
    app_dir = Path(app_dir).resolve()
    workspace_dir = Path(workspace_dir or Path.cwd()).resolve()

    try:
        layers.global_config = load_global_config(global_path)
    except ConfigError as e:
        layers.warnings.append(str(e))

    if workspace_dir != app_dir:
        try:
            layers.workspace_config = load_workspace_config(workspace_dir)
        except ConfigError as e:
            layers.warnings.append(str(e))

    try:
        layers.app_config = load_app_config(app_dir)
    except ConfigError as e:
        layers.warnings.append(str(e))

    for warning in layers.warnings:
        loader_logger.log_structured(
            level="WARNING",
            message="Ignoring configuration layer",
            extra={"reason": warning},
        )
    return layers

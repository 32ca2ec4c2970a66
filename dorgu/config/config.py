import os
from typing import Any, Callable, Dict, Optional
from dorgu.config.default import DefaultConfig
from dorgu.utils.exceptions import ConfigError
from dotenv import load_dotenv
# Load environment variables
load_dotenv()

ENV_PREFIX = "DORGU_"

# llm_config key -> runtime setting
LLM_SETTINGS = {
    'provider': 'LLM_PROVIDER',
    'model': 'LLM_MODEL',
    'temperature': 'LLM_TEMPERATURE',
    'max_tokens': 'LLM_MAX_TOKENS',
    'timeout': 'LLM_TIMEOUT',
}


def _to_bool(value: str) -> bool:
    return value.strip().lower() in ("true", "1", "yes", "on")


CONVERTERS: Dict[type, Callable[[str], Any]] = {
    bool: _to_bool,
    int: int,
    float: float,
    str: str,
}


class Config:
    """
    Runtime settings of the dorgu process.

    Values come from DefaultConfig, then the ``config`` dict passed in, then
    ``DORGU_<KEY>`` environment variables (a ``.env`` file is honoured).
    These settings cover logging, LLM client behaviour and file names only;
    the content of generated manifests comes from the layered organization
    config in ``dorgu.config.resolver``.
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None) -> None:
        settings = {key: getattr(DefaultConfig, key) for key in DefaultConfig.__annotations__}
        settings.update(config or {})
        for key in DefaultConfig.__annotations__:
            raw = os.getenv(f"{ENV_PREFIX}{key}")
            if raw is not None:
                settings[key] = self.convert_env_value(key, raw)
        self._config = settings

    def __getattr__(self, item: str) -> Any:
        if item.startswith('_'):
            raise AttributeError(item)
        try:
            return self._config[item]
        except KeyError:
            raise AttributeError(f"'Config' object has no attribute '{item}'") from None

    @property
    def llm_config(self) -> Dict[str, Any]:
        """LLM client settings for persona enrichment, with blank values falling back to defaults."""
        llm = {}
        for name, key in LLM_SETTINGS.items():
            value = self._config.get(key)
            llm[name] = getattr(DefaultConfig, key) if value in (None, "") else value
        return llm

    @staticmethod
    def convert_env_value(key: str, env_value: str) -> Any:
        """Convert a DORGU_* environment value to the type DefaultConfig declares for ``key``."""
        converter = CONVERTERS.get(DefaultConfig.__annotations__[key])
        if converter is None:
            raise ConfigError(f"Unsupported type for {ENV_PREFIX}{key}")
        try:
            return converter(env_value)
        except ValueError as e:
            raise ConfigError(f"Invalid value for {ENV_PREFIX}{key}: {env_value!r} ({e})")

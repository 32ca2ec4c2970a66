"""Tests for configuration models, the global config file and layer loading."""

import os
import stat

import pytest

from dorgu.config import Config
from dorgu.config.loader import (
    global_config_path,
    load_app_config,
    load_global_config,
    load_layers,
    load_workspace_config,
    save_global_config,
)
from dorgu.config.models import AppConfig, DeploymentPolicy, GlobalConfig, mask_key
from dorgu.utils.exceptions import ConfigError


class TestRuntimeConfig:
    def test_defaults(self):
        config = Config()
        assert config.LOG_LEVEL == "WARNING"
        assert config.llm_config["provider"] == "openai"
        assert config.llm_config["max_tokens"] == 4000

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("DORGU_LLM_TIMEOUT", "15")
        monkeypatch.setenv("DORGU_LOG_TO_FILE", "yes")
        config = Config()
        assert config.llm_config["timeout"] == 15
        assert config.LOG_TO_FILE is True

    def test_bad_env_value(self, monkeypatch):
        monkeypatch.setenv("DORGU_LLM_MAX_TOKENS", "many")
        with pytest.raises(ConfigError):
            Config()

    def test_runtime_dict(self):
        config = Config({"OUTPUT_DIR": "./manifests"})
        assert config.OUTPUT_DIR == "./manifests"

    def test_missing_attribute(self):
        with pytest.raises(AttributeError):
            Config().NOT_A_KEY


class TestGlobalConfig:
    def test_set_and_get(self):
        config = GlobalConfig()
        config.set("llm.provider", "anthropic")
        config.set("defaults.registry", "ghcr.io/example")
        assert config.get("llm.provider") == "anthropic"
        assert config.get("defaults.registry") == "ghcr.io/example"

    def test_unknown_key(self):
        with pytest.raises(ConfigError, match="unknown config key"):
            GlobalConfig().set("llm.temperature", "0.5")
        with pytest.raises(ConfigError):
            GlobalConfig().get("nope.nothing")

    def test_invalid_provider(self):
        with pytest.raises(ConfigError, match="invalid LLM provider"):
            GlobalConfig().set("llm.provider", "gemini")

    def test_api_key_is_masked(self):
        config = GlobalConfig()
        config.set("llm.api_key", "sk-1234567890abcdef")
        assert config.get("llm.api_key") == "sk-1***********cdef"
        assert config.llm.api_key == "sk-1234567890abcdef"

    def test_mask_short_key(self):
        assert mask_key("abc") == "***"
        assert mask_key("") == "(not set)"

    def test_env_api_key_wins(self, monkeypatch):
        config = GlobalConfig()
        config.set("llm.provider", "openai")
        config.set("llm.api_key", "stored-key-000000")
        assert config.get_api_key("openai") == "stored-key-000000"
        monkeypatch.setenv("OPENAI_API_KEY", "env-key-1111111111")
        assert config.get_api_key("openai") == "env-key-1111111111"

    def test_list_all_reports_env_source(self, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "env-key-1111111111")
        config = GlobalConfig()
        config.set("llm.provider", "openai")
        entries = {entry.key: entry for entry in config.list_all()}
        assert entries["llm.api_key"].source == "env:OPENAI_API_KEY"
        assert "1111111111" not in entries["llm.api_key"].value
        assert entries["defaults.namespace"].value == "default"


class TestAppConfig:
    def test_deployment_policy_coerces_ints(self):
        policy = DeploymentPolicy.model_validate({"max_surge": 1, "max_unavailable": "25%"})
        assert policy.max_surge == "1"
        assert policy.max_unavailable == "25%"

    def test_unknown_keys_ignored(self):
        config = AppConfig.model_validate({"app": {"name": "x", "mystery": 1}, "extra_section": {}})
        assert config.app.name == "x"

    def test_as_layer_projects_org_fields_only(self, app_config):
        layer = app_config.as_layer()
        assert layer.labels.custom == {}
        assert layer.defaults.namespace == ""


class TestGlobalConfigFile:
    def test_path_uses_xdg(self, isolated_env):
        assert global_config_path() == isolated_env / "xdg" / "dorgu" / "config.yaml"

    def test_missing_file_gives_defaults(self):
        assert load_global_config() == GlobalConfig()

    def test_save_and_load(self):
        config = GlobalConfig()
        config.set("defaults.namespace", "apps")
        config.set("llm.api_key", "secret-key-123456")
        path = save_global_config(config)

        text = path.read_text()
        assert text.startswith("# Dorgu Global Configuration")
        assert stat.S_IMODE(os.stat(path).st_mode) == 0o600
        assert load_global_config() == config

    def test_malformed_file_raises(self):
        path = global_config_path()
        path.parent.mkdir(parents=True)
        path.write_text("llm: [unclosed\n")
        with pytest.raises(ConfigError, match="failed to parse"):
            load_global_config()


class TestLayerFiles:
    def test_missing_and_empty_files_are_unset(self, tmp_path):
        assert load_workspace_config(tmp_path) is None
        (tmp_path / ".dorgu.yaml").write_text("")
        assert load_app_config(tmp_path) is None

    def test_non_mapping_raises(self, tmp_path):
        (tmp_path / ".dorgu.yaml").write_text("- just\n- a list\n")
        with pytest.raises(ConfigError, match="mapping"):
            load_app_config(tmp_path)

    def test_schema_violation_raises(self, tmp_path, yaml_writer):
        yaml_writer(tmp_path / ".dorgu.yaml", {"scaling": {"min_replicas": "lots"}})
        with pytest.raises(ConfigError, match="invalid configuration"):
            load_app_config(tmp_path)

    def test_workspace_ingress_class_alias(self, tmp_path, yaml_writer):
        yaml_writer(tmp_path / ".dorgu.yaml", {"ingress": {"class": "traefik"}})
        assert load_workspace_config(tmp_path).ingress.class_name == "traefik"


class TestLoadLayers:
    def test_all_layers(self, tmp_path, yaml_writer):
        workspace = tmp_path / "repo"
        app = workspace / "services" / "orders"
        yaml_writer(workspace / ".dorgu.yaml", {"org": {"name": "Example"}})
        yaml_writer(app / ".dorgu.yaml", {"app": {"name": "orders"}})

        layers = load_layers(app, workspace_dir=workspace)

        assert layers.global_config == GlobalConfig()
        assert layers.workspace_config.org.name == "Example"
        assert layers.app_config.app.name == "orders"
        assert layers.warnings == []

    def test_same_directory_reads_app_config_only(self, tmp_path, yaml_writer):
        yaml_writer(tmp_path / ".dorgu.yaml", {"app": {"name": "orders"}})
        layers = load_layers(tmp_path, workspace_dir=tmp_path)
        assert layers.workspace_config is None
        assert layers.app_config.app.name == "orders"

    def test_broken_layer_is_skipped_with_warning(self, tmp_path, yaml_writer):
        workspace = tmp_path / "repo"
        app = workspace / "orders"
        (workspace).mkdir()
        (workspace / ".dorgu.yaml").write_text("ingress: {class: [\n")
        yaml_writer(app / ".dorgu.yaml", {"namespace": "orders"})

        layers = load_layers(app, workspace_dir=workspace)

        assert layers.workspace_config is None
        assert layers.app_config.namespace == "orders"
        assert len(layers.warnings) == 1
        assert "failed to parse" in layers.warnings[0]

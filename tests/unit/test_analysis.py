"""Tests for the analysis model, loading and override assembly."""

import json

import pytest
from pydantic import ValidationError

from dorgu.config.models import AppConfig
from dorgu.core.analysis import AnalysisResult, AppConfigOverrides, EnvVar, build_analysis, load_analysis
from dorgu.utils.exceptions import ConfigError


class TestAnalysisResult:
    def test_type_defaults_to_api(self):
        assert AnalysisResult(name="x").type == "api"
        assert AnalysisResult(name="x", type="").type == "api"

    def test_is_frozen(self):
        analysis = AnalysisResult(name="x")
        with pytest.raises(ValidationError):
            analysis.name = "y"

    def test_overrides_never_none(self):
        overrides = AnalysisResult(name="x").overrides
        assert isinstance(overrides, AppConfigOverrides)
        assert overrides.team == ""

    def test_env_values_are_strings(self):
        assert EnvVar(name="PORT", value=8080).value == "8080"
        assert EnvVar(name="DEBUG", value=False).value == "false"
        assert EnvVar(name="EMPTY", value=None).value == ""

    def test_aliases(self):
        analysis = AnalysisResult.model_validate({
            "name": "x",
            "health_check": {"path": "/h", "initial_delay_seconds": 15},
            "scaling": {"min_replicas": 1, "max_replicas": 3, "target_cpu_percent": 60},
        })
        assert analysis.health_check.initial_delay == 15
        assert analysis.scaling.target_cpu == 60


class TestLoadAnalysis:
    def test_json(self, tmp_path):
        path = tmp_path / "analysis.json"
        path.write_text(json.dumps({"name": "orders", "ports": [{"port": 8000}]}))
        analysis = load_analysis(path)
        assert analysis.name == "orders"
        assert analysis.ports[0].protocol == "TCP"

    def test_yaml(self, tmp_path, yaml_writer):
        path = yaml_writer(tmp_path / "analysis.yaml", {"name": "orders", "language": "go"})
        assert load_analysis(path).language == "go"

    def test_empty_file(self, tmp_path):
        path = tmp_path / "analysis.yaml"
        path.write_text("")
        assert load_analysis(path).name == ""

    def test_parse_error(self, tmp_path):
        path = tmp_path / "analysis.json"
        path.write_text("{not json")
        with pytest.raises(ConfigError, match="failed to parse"):
            load_analysis(path)

    def test_invalid_schema(self, tmp_path):
        path = tmp_path / "analysis.json"
        path.write_text(json.dumps({"name": "x", "ports": [{"port": "http"}]}))
        with pytest.raises(ConfigError, match="invalid analysis"):
            load_analysis(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError, match="failed to read"):
            load_analysis(tmp_path / "nope.json")


class TestBuildAnalysis:
    def test_name_from_directory(self, tmp_path):
        app_dir = tmp_path / "payments"
        app_dir.mkdir()
        assert build_analysis(app_dir).name == "payments"

    def test_name_precedence(self, tmp_path, app_config):
        base = AnalysisResult(name="detected")
        assert build_analysis(tmp_path, analysis=base).name == "detected"
        assert build_analysis(tmp_path, analysis=base, app_config=app_config).name == "orders"
        assert build_analysis(tmp_path, analysis=base, app_config=app_config, name="cli-name").name == "cli-name"

    def test_overrides_attached(self, tmp_path, app_config, sample_analysis):
        analysis = build_analysis(tmp_path, analysis=sample_analysis, app_config=app_config)
        overrides = analysis.overrides
        assert overrides.team == "commerce"
        assert overrides.environment == "production"
        assert overrides.resources.limits_cpu == "1"
        assert overrides.ingress.tls_enabled is True
        assert overrides.ingress.tls_secret == "orders-cert"
        assert overrides.health.liveness_path == "/livez"
        assert overrides.health.readiness_port == 0
        assert overrides.dependencies[0].required is True
        assert overrides.operations.auto_restart is True
        # The analysis itself is untouched
        assert sample_analysis.app_config is None
        assert analysis.language == "python"

    def test_without_app_config(self, tmp_path, sample_analysis):
        assert build_analysis(tmp_path, analysis=sample_analysis) is sample_analysis

    def test_health_timing_falls_back_to_readiness(self):
        app_config = AppConfig.model_validate({
            "health": {"liveness": {"path": "/live"}, "readiness": {"path": "/ready", "initial_delay": 20}},
        })
        overrides = AppConfigOverrides.from_app_config(app_config)
        assert overrides.health.initial_delay == 20

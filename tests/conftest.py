"""Shared fixtures: sample analyses, app configs and an isolated environment.

Every test runs with API keys and ``DORGU_*`` variables removed and with the
global config directory pointed into ``tmp_path``.
"""

from pathlib import Path

import pytest
import yaml

from dorgu.config.models import AppConfig
from dorgu.config.resolver import resolve
from dorgu.core.analysis import AnalysisResult, EnvVar, HealthCheck, Port, ScalingConfig


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    """No real API keys, no user config."""
    for var in ("OPENAI_API_KEY", "ANTHROPIC_API_KEY", "AZURE_OPENAI_API_KEY", "AZURE_OPENAI_ENDPOINT"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    return tmp_path


# === FIXTURES: Configuration ===


@pytest.fixture
def effective_config():
    """Built-in defaults only."""
    return resolve()


@pytest.fixture
def app_config() -> AppConfig:
    return AppConfig.model_validate({
        "app": {
            "name": "orders",
            "description": "Order management service",
            "team": "commerce",
            "owner": "commerce@example.com",
            "repository": "https://github.com/example/orders.git",
            "instructions": "Payments must never be retried automatically.",
        },
        "environment": "production",
        "resources": {
            "requests": {"cpu": "200m", "memory": "256Mi"},
            "limits": {"cpu": "1", "memory": "1Gi"},
        },
        "scaling": {"min_replicas": 3, "max_replicas": 12, "target_cpu": 65},
        "labels": {"cost-center": "cc-42"},
        "ingress": {"host": "orders.example.com", "tls": {"enabled": True, "secret_name": "orders-cert"}},
        "health": {"liveness": {"path": "/livez", "port": 8000}, "readiness": {"path": "/readyz"}},
        "dependencies": [{"name": "postgresql", "type": "database", "required": True}],
        "operations": {
            "runbook": "https://runbooks.example.com/orders",
            "on_call": "#commerce-oncall",
            "maintenance_window": "Sun 02:00-04:00 UTC",
            "auto_restart": True,
        },
    })


# === FIXTURES: Analyses ===


@pytest.fixture
def sample_analysis() -> AnalysisResult:
    """An HTTP API with a health check, secrets and scaling intent."""
    return AnalysisResult(
        name="orders-api",
        type="api",
        language="python",
        framework="fastapi",
        description="REST API for orders",
        ports=[Port(port=8000, purpose="HTTP API")],
        health_check=HealthCheck(path="/health", port=8000),
        env_vars=[
            EnvVar(name="LOG_LEVEL", value="info"),
            EnvVar(name="DATABASE_URL", secret=True, required=True),
            EnvVar(name="OPTIONAL_FLAG"),
        ],
        dependencies=["postgresql", "redis"],
        scaling=ScalingConfig(min_replicas=2, max_replicas=6, target_cpu=75),
    )


@pytest.fixture
def minimal_analysis() -> AnalysisResult:
    """Only a name: no ports, no health, no scaling."""
    return AnalysisResult(name="batch-job", type="worker")


# === FIXTURES: Files ===


def write_yaml(path: Path, data) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(yaml.safe_dump(data, sort_keys=False), encoding="utf-8")
    return path


@pytest.fixture
def yaml_writer():
    return write_yaml

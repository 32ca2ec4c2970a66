"""
Application analysis consumed by the generators.

An ``AnalysisResult`` is produced upstream (file parsing plus optional LLM
enrichment) and handed to the generators fully formed. The generators only
read it. ``app_config`` carries the explicit per-application intent from
``.dorgu.yaml``; wherever it sets a field, that value wins.
"""

import json
from pathlib import Path
from typing import Dict, List, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from dorgu.config.models import AppConfig, DeploymentPolicy, IngressPath
from dorgu.utils.exceptions import ConfigError


class AnalysisModel(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)


class Port(AnalysisModel):
    port: int
    protocol: str = "TCP"
    purpose: str = ""


class HealthCheck(AnalysisModel):
    path: str = ""
    port: int = 0
    initial_delay: int = Field(default=0, alias="initial_delay_seconds")
    period: int = Field(default=0, alias="period_seconds")
    timeout: int = Field(default=0, alias="timeout_seconds")
    success_threshold: int = 0
    failure_threshold: int = 0


class EnvVar(AnalysisModel):
    name: str
    value: str = ""
    required: bool = False
    description: str = ""
    secret: bool = False

    @field_validator("value", mode="before")
    @classmethod
    def stringify(cls, v):
        if v is None:
            return ""
        if isinstance(v, bool):
            return "true" if v else "false"
        return str(v)


class ScalingConfig(AnalysisModel):
    min_replicas: int = 0
    max_replicas: int = 0
    target_cpu: int = Field(default=0, alias="target_cpu_percent")
    target_memory: int = Field(default=0, alias="target_memory_percent")
    behavior: str = ""


class ResourceOverrides(AnalysisModel):
    requests_cpu: str = ""
    requests_memory: str = ""
    limits_cpu: str = ""
    limits_memory: str = ""


class IngressOverrides(AnalysisModel):
    enabled: Optional[bool] = None
    host: str = ""
    paths: List[IngressPath] = Field(default_factory=list)
    tls_enabled: Optional[bool] = None
    tls_secret: str = ""


class HealthOverrides(AnalysisModel):
    liveness_path: str = ""
    liveness_port: int = 0
    readiness_path: str = ""
    readiness_port: int = 0
    initial_delay: int = 0
    period: int = 0
    startup_grace_period: str = ""


class DependencyOverride(AnalysisModel):
    name: str
    type: str = ""
    required: bool = False
    health_check: str = ""


class OperationsOverrides(AnalysisModel):
    runbook: str = ""
    alerts: List[str] = Field(default_factory=list)
    maintenance_window: str = ""
    on_call: str = ""
    auto_restart: Optional[bool] = None


class AppConfigOverrides(AnalysisModel):
    """Per-application overrides, flattened from ``.dorgu.yaml``."""
    name: str = ""
    description: str = ""
    team: str = ""
    owner: str = ""
    repository: str = ""
    type: str = ""
    tier: str = ""
    instructions: str = ""
    environment: str = ""
    resources: Optional[ResourceOverrides] = None
    scaling: Optional[ScalingConfig] = None
    labels: Dict[str, str] = Field(default_factory=dict)
    annotations: Dict[str, str] = Field(default_factory=dict)
    ingress: Optional[IngressOverrides] = None
    health: Optional[HealthOverrides] = None
    dependencies: List[DependencyOverride] = Field(default_factory=list)
    operations: Optional[OperationsOverrides] = None
    deployment_policy: Optional[DeploymentPolicy] = None

    @classmethod
    def from_app_config(cls, app_config: AppConfig) -> "AppConfigOverrides":
        """Flatten an ``AppConfig`` into the override record carried by an analysis."""
        resources = None
        if app_config.resources is not None:
            resources = ResourceOverrides(
                requests_cpu=app_config.resources.requests.cpu,
                requests_memory=app_config.resources.requests.memory,
                limits_cpu=app_config.resources.limits.cpu,
                limits_memory=app_config.resources.limits.memory,
            )

        scaling = None
        if app_config.scaling is not None:
            scaling = ScalingConfig(
                min_replicas=app_config.scaling.min_replicas,
                max_replicas=app_config.scaling.max_replicas,
                target_cpu=app_config.scaling.target_cpu,
                target_memory=app_config.scaling.target_memory,
                behavior=app_config.scaling.behavior,
            )

        ingress = None
        if app_config.ingress is not None:
            tls = app_config.ingress.tls
            ingress = IngressOverrides(
                enabled=app_config.ingress.enabled,
                host=app_config.ingress.host,
                paths=[p.model_copy() for p in app_config.ingress.paths],
                tls_enabled=tls.enabled if tls is not None else None,
                tls_secret=tls.secret_name if tls is not None else "",
            )

        health = None
        if app_config.health is not None:
            liveness = app_config.health.liveness
            readiness = app_config.health.readiness
            # Timing comes from the liveness probe, readiness fills any gap.
            health = HealthOverrides(
                liveness_path=liveness.path if liveness else "",
                liveness_port=liveness.port if liveness else 0,
                readiness_path=readiness.path if readiness else "",
                readiness_port=readiness.port if readiness else 0,
                initial_delay=(liveness.initial_delay if liveness else 0) or (readiness.initial_delay if readiness else 0),
                period=(liveness.period if liveness else 0) or (readiness.period if readiness else 0),
                startup_grace_period=app_config.health.startup_grace_period,
            )

        operations = None
        if app_config.operations is not None:
            operations = OperationsOverrides(**app_config.operations.model_dump())

        meta = app_config.app
        return cls(
            name=meta.name,
            description=meta.description,
            team=meta.team,
            owner=meta.owner,
            repository=meta.repository,
            type=meta.type,
            tier=meta.tier,
            instructions=meta.instructions,
            environment=app_config.environment,
            resources=resources,
            scaling=scaling,
            labels=dict(app_config.labels),
            annotations=dict(app_config.annotations),
            ingress=ingress,
            health=health,
            dependencies=[DependencyOverride(**d.model_dump()) for d in app_config.dependencies],
            operations=operations,
            deployment_policy=app_config.deployment_policy.model_copy() if app_config.deployment_policy else None,
        )


class AnalysisResult(AnalysisModel):
    """Deployment-relevant description of one application."""
    name: str = Field(default="", description="Application identifier, must be non-empty to generate")
    type: str = Field(default="api", description="api, web, worker or cron")
    language: str = ""
    framework: str = ""
    description: str = ""
    ports: List[Port] = Field(default_factory=list)
    health_check: Optional[HealthCheck] = None
    env_vars: List[EnvVar] = Field(default_factory=list)
    dependencies: List[str] = Field(default_factory=list)
    resource_profile: str = ""
    scaling: Optional[ScalingConfig] = None
    team: str = ""
    owner: str = ""
    repository: str = ""
    environment: str = ""
    app_config: Optional[AppConfigOverrides] = None

    @field_validator("type", mode="before")
    @classmethod
    def default_type(cls, v):
        return v or "api"

    @property
    def overrides(self) -> AppConfigOverrides:
        """The override record, or an empty one so callers never branch on None."""
        return self.app_config if self.app_config is not None else _EMPTY_OVERRIDES


_EMPTY_OVERRIDES = AppConfigOverrides()


def load_analysis(path: Path) -> AnalysisResult:
    """Read an analysis document (JSON or YAML) produced by the analyzer."""
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"failed to read analysis {path}: {e}", path=str(path))
    try:
        if path.suffix == ".json":
            data = json.loads(text)
        else:
            data = yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise ConfigError(f"failed to parse analysis {path}: {e}", path=str(path))
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"analysis {path} must contain a mapping", path=str(path))
    try:
        return AnalysisResult.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"invalid analysis in {path}: {e}", path=str(path))


def build_analysis(
    app_dir: Path,
    analysis: Optional[AnalysisResult] = None,
    app_config: Optional[AppConfig] = None,
    name: Optional[str] = None,
) -> AnalysisResult:
    """
    Assemble the analysis handed to the generators for one invocation.

    The identity field is owned by the analysis: it starts from the
    analyzer's name (or the directory name), then ``app.name`` from the app
    config, then the ``--name`` flag. Everything else the app config states
    travels as overrides and is applied by the generators.
    """
    base = analysis if analysis is not None else AnalysisResult()
    update = {}
    resolved_name = name or (app_config.app.name if app_config else "") or base.name or Path(app_dir).resolve().name
    if resolved_name != base.name:
        update["name"] = resolved_name
    if app_config is not None:
        update["app_config"] = AppConfigOverrides.from_app_config(app_config)
    return base.model_copy(update=update) if update else base

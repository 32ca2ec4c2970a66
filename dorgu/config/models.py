"""
Configuration schema for dorgu.

Every organization-level source (built-in defaults, global user config,
workspace ``.dorgu.yaml``, per-app ``.dorgu.yaml`` and CLI flags) is projected
onto the same ``OrgConfig`` shape so the resolver can merge them field by
field. A field left at its zero value (``""``, ``0``, empty list or dict, or
``None`` for booleans) means "unset" and defers to lower-precedence layers.
"""

import os
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from dorgu.utils.exceptions import ConfigError

# Providers the persona enricher can build a chat model for
SUPPORTED_LLM_PROVIDERS = ("openai", "anthropic", "azure_openai")

API_KEY_ENV_VARS: Dict[str, Tuple[str, ...]] = {
    "openai": ("OPENAI_API_KEY",),
    "anthropic": ("ANTHROPIC_API_KEY",),
    "azure_openai": ("AZURE_OPENAI_API_KEY",),
}


class LayerModel(BaseModel):
    """Base for config sections: unknown keys are ignored, aliases optional."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


# ============================================================================
# Organization config (one instance per layer, and the merged result)
# ============================================================================

class OrgInfo(LayerModel):
    name: str = ""


class NamingConfig(LayerModel):
    pattern: str = ""
    dns_safe: Optional[bool] = None


class DefaultsConfig(LayerModel):
    namespace: str = ""


class ResourceValues(LayerModel):
    cpu: str = ""
    memory: str = ""

    @field_validator("cpu", "memory", mode="before")
    @classmethod
    def coerce_quantity(cls, v):
        """YAML reads `cpu: 1` as an int; quantities are always strings."""
        if v is None:
            return ""
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v


class ResourceSpec(LayerModel):
    requests: ResourceValues = Field(default_factory=ResourceValues)
    limits: ResourceValues = Field(default_factory=ResourceValues)


class ResourceConfig(LayerModel):
    defaults: ResourceSpec = Field(default_factory=ResourceSpec)
    profiles: Dict[str, ResourceSpec] = Field(default_factory=dict)


class LabelConfig(LayerModel):
    required: List[str] = Field(default_factory=list)
    custom: Dict[str, str] = Field(default_factory=dict)


class AnnotationConfig(LayerModel):
    custom: Dict[str, str] = Field(default_factory=dict)


class SeccompProfile(LayerModel):
    type: str = ""


class PodSecurityContext(LayerModel):
    run_as_non_root: Optional[bool] = None
    seccomp_profile: SeccompProfile = Field(default_factory=SeccompProfile)


class Capabilities(LayerModel):
    drop: List[str] = Field(default_factory=list)
    add: List[str] = Field(default_factory=list)


class ContainerSecurityContext(LayerModel):
    allow_privilege_escalation: Optional[bool] = None
    read_only_root_filesystem: Optional[bool] = None
    capabilities: Capabilities = Field(default_factory=Capabilities)


class SecurityConfig(LayerModel):
    enforce_baseline: Optional[bool] = Field(
        default=None,
        description="Apply the pod/container security baseline to workloads",
    )
    pod_security_context: PodSecurityContext = Field(default_factory=PodSecurityContext)
    container_security_context: ContainerSecurityContext = Field(default_factory=ContainerSecurityContext)


class TLSConfig(LayerModel):
    enabled: Optional[bool] = None
    cluster_issuer: str = ""


class IngressConfig(LayerModel):
    class_name: str = Field(default="", alias="class")
    domain_suffix: str = ""
    tls: TLSConfig = Field(default_factory=TLSConfig)


class DestinationConfig(LayerModel):
    server: str = ""
    namespace: str = ""


class AutomatedConfig(LayerModel):
    prune: Optional[bool] = None
    self_heal: Optional[bool] = None


class SyncPolicyConfig(LayerModel):
    automated: AutomatedConfig = Field(default_factory=AutomatedConfig)


class ArgoCDConfig(LayerModel):
    project: str = ""
    destination: DestinationConfig = Field(default_factory=DestinationConfig)
    sync_policy: SyncPolicyConfig = Field(default_factory=SyncPolicyConfig)


class CIConfig(LayerModel):
    provider: str = ""
    registry: str = ""


class LLMSettings(LayerModel):
    provider: str = ""
    model: str = ""


class OrgConfig(LayerModel):
    """One configuration layer, or the merged effective configuration."""
    version: str = ""
    org: OrgInfo = Field(default_factory=OrgInfo)
    naming: NamingConfig = Field(default_factory=NamingConfig)
    defaults: DefaultsConfig = Field(default_factory=DefaultsConfig)
    resources: ResourceConfig = Field(default_factory=ResourceConfig)
    labels: LabelConfig = Field(default_factory=LabelConfig)
    annotations: AnnotationConfig = Field(default_factory=AnnotationConfig)
    security: SecurityConfig = Field(default_factory=SecurityConfig)
    ingress: IngressConfig = Field(default_factory=IngressConfig)
    argocd: ArgoCDConfig = Field(default_factory=ArgoCDConfig)
    ci: CIConfig = Field(default_factory=CIConfig)
    llm: LLMSettings = Field(default_factory=LLMSettings)

    def get_resources_for_profile(self, name: str) -> ResourceSpec:
        """
        Return the resource spec for a named profile.

        Unknown names fall back to ``resources.defaults``. A known profile
        that leaves a quantity blank inherits it from the defaults.
        """
        defaults = self.resources.defaults
        profile = self.resources.profiles.get(name) if name else None
        if profile is None:
            return defaults.model_copy(deep=True)
        return ResourceSpec(
            requests=ResourceValues(
                cpu=profile.requests.cpu or defaults.requests.cpu,
                memory=profile.requests.memory or defaults.requests.memory,
            ),
            limits=ResourceValues(
                cpu=profile.limits.cpu or defaults.limits.cpu,
                memory=profile.limits.memory or defaults.limits.memory,
            ),
        )


# The resolved configuration has the same shape as a single layer.
EffectiveConfig = OrgConfig


# ============================================================================
# Global user config (~/.config/dorgu/config.yaml)
# ============================================================================

GLOBAL_CONFIG_KEYS = (
    "llm.provider",
    "llm.api_key",
    "llm.model",
    "defaults.namespace",
    "defaults.registry",
    "defaults.org_name",
)


def mask_key(key: str) -> str:
    """Mask an API key for display, keeping the first and last four characters."""
    if not key:
        return "(not set)"
    if len(key) <= 8:
        return "*" * len(key)
    return key[:4] + "*" * (len(key) - 8) + key[-4:]


class GlobalLLMConfig(LayerModel):
    provider: str = ""
    api_key: str = ""
    model: str = ""


class GlobalDefaults(LayerModel):
    namespace: str = "default"
    registry: str = ""
    org_name: str = ""


class GlobalConfigEntry(BaseModel):
    key: str
    value: str
    source: str = "global"


class GlobalConfig(LayerModel):
    """User-level settings shared by every workspace."""
    version: str = "1"
    llm: GlobalLLMConfig = Field(default_factory=GlobalLLMConfig)
    defaults: GlobalDefaults = Field(default_factory=GlobalDefaults)

    def set(self, key: str, value: str) -> None:
        """Set a value by dotted key.

        Raises:
            ConfigError: unknown key or unsupported LLM provider
        """
        if key == "llm.provider":
            if value and value not in SUPPORTED_LLM_PROVIDERS:
                raise ConfigError(
                    f"invalid LLM provider: {value} (valid: {', '.join(SUPPORTED_LLM_PROVIDERS)})"
                )
            self.llm.provider = value
        elif key == "llm.api_key":
            self.llm.api_key = value
        elif key == "llm.model":
            self.llm.model = value
        elif key == "defaults.namespace":
            self.defaults.namespace = value
        elif key == "defaults.registry":
            self.defaults.registry = value
        elif key == "defaults.org_name":
            self.defaults.org_name = value
        else:
            valid = "\n  ".join(GLOBAL_CONFIG_KEYS)
            raise ConfigError(f"unknown config key: {key}\n\nValid keys:\n  {valid}")

    def get(self, key: str) -> str:
        """Return a value by dotted key; API keys come back masked."""
        if key == "llm.api_key":
            return mask_key(self.llm.api_key) if self.llm.api_key else ""
        if key not in GLOBAL_CONFIG_KEYS:
            raise ConfigError(f"unknown config key: {key}")
        section, field = key.split(".", 1)
        return getattr(getattr(self, section), field)

    def get_api_key(self, provider: str) -> str:
        """Effective API key for a provider: environment variable, then stored key."""
        for env_var in API_KEY_ENV_VARS.get(provider, ()):
            value = os.getenv(env_var)
            if value:
                return value
        return self.llm.api_key

    def list_all(self) -> List[GlobalConfigEntry]:
        entries = []
        for key in GLOBAL_CONFIG_KEYS:
            if key == "llm.api_key":
                entries.append(self._api_key_entry())
            else:
                entries.append(GlobalConfigEntry(key=key, value=self.get(key)))
        return entries

    def _api_key_entry(self) -> GlobalConfigEntry:
        for env_var in API_KEY_ENV_VARS.get(self.llm.provider, ()):
            value = os.getenv(env_var)
            if value:
                return GlobalConfigEntry(key="llm.api_key", value=mask_key(value), source=f"env:{env_var}")
        return GlobalConfigEntry(key="llm.api_key", value=mask_key(self.llm.api_key))

    def as_layer(self) -> OrgConfig:
        """Project the global settings onto an organization config layer."""
        return OrgConfig(
            org=OrgInfo(name=self.defaults.org_name),
            defaults=DefaultsConfig(namespace=self.defaults.namespace),
            ci=CIConfig(registry=self.defaults.registry),
            llm=LLMSettings(provider=self.llm.provider, model=self.llm.model),
        )


# ============================================================================
# Per-application config (.dorgu.yaml in the application directory)
# ============================================================================

class AppMetadata(LayerModel):
    name: str = ""
    description: str = ""
    team: str = ""
    owner: str = ""
    repository: str = ""
    type: str = Field(default="", description="api, web, worker, cron")
    tier: str = ""
    instructions: str = Field(default="", description="Free-form notes passed to persona enrichment")


class AppScaling(LayerModel):
    min_replicas: int = 0
    max_replicas: int = 0
    target_cpu: int = 0
    target_memory: int = 0
    behavior: str = ""


class IngressPath(LayerModel):
    path: str = ""
    path_type: str = ""


class AppTLS(LayerModel):
    enabled: Optional[bool] = None
    secret_name: str = ""


class AppIngress(LayerModel):
    enabled: Optional[bool] = None
    host: str = ""
    paths: List[IngressPath] = Field(default_factory=list)
    tls: Optional[AppTLS] = None


class HealthProbe(LayerModel):
    path: str = ""
    port: int = 0
    initial_delay: int = 0
    period: int = 0


class AppHealth(LayerModel):
    liveness: Optional[HealthProbe] = None
    readiness: Optional[HealthProbe] = None
    startup_grace_period: str = ""


class AppDependency(LayerModel):
    name: str
    type: str = ""
    required: bool = False
    health_check: str = ""


class AppOperations(LayerModel):
    runbook: str = ""
    alerts: List[str] = Field(default_factory=list)
    maintenance_window: str = ""
    on_call: str = ""
    auto_restart: Optional[bool] = None


class DeploymentPolicy(LayerModel):
    strategy: str = ""
    max_surge: str = ""
    max_unavailable: str = ""

    @field_validator("max_surge", "max_unavailable", mode="before")
    @classmethod
    def coerce_int_or_percent(cls, v):
        if v is None:
            return ""
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v


class AppConfig(LayerModel):
    """Explicit per-application intent; wins over anything derived by analysis."""
    version: str = ""
    app: AppMetadata = Field(default_factory=AppMetadata)
    environment: str = ""
    namespace: str = ""
    resources: Optional[ResourceSpec] = None
    scaling: Optional[AppScaling] = None
    labels: Dict[str, str] = Field(default_factory=dict)
    annotations: Dict[str, str] = Field(default_factory=dict)
    ingress: Optional[AppIngress] = None
    health: Optional[AppHealth] = None
    dependencies: List[AppDependency] = Field(default_factory=list)
    operations: Optional[AppOperations] = None
    deployment_policy: Optional[DeploymentPolicy] = None
    ci: CIConfig = Field(default_factory=CIConfig)
    argocd: ArgoCDConfig = Field(default_factory=ArgoCDConfig)

    def as_layer(self) -> OrgConfig:
        """
        Project the organization-level parts of an app config onto a layer.

        Labels, annotations, resources and the rest travel with the analysis
        as overrides instead, so they are applied per application.
        """
        return OrgConfig(
            defaults=DefaultsConfig(namespace=self.namespace),
            ci=self.ci.model_copy(deep=True),
            argocd=self.argocd.model_copy(deep=True),
        )

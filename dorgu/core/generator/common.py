"""
Derivation helpers shared by every generator and by the validator.

Each ``resolve_*`` function lists its candidates override-first through
``first_set`` so a value set in ``.dorgu.yaml`` surfaces identically in
every document that shows it.
"""

from typing import Any, Dict, List, Optional, Tuple

import yaml
from pydantic import BaseModel

from dorgu.config.models import EffectiveConfig, IngressPath, ResourceSpec, ResourceValues
from dorgu.config.resolver import first_set
from dorgu.core.analysis import AnalysisResult, Port
from dorgu.utils.exceptions import GenerationError

MANAGED_BY = "dorgu"
PLACEHOLDER = "[PLACEHOLDER]"

LABEL_NAME = "app.kubernetes.io/name"
LABEL_MANAGED_BY = "app.kubernetes.io/managed-by"
LABEL_TEAM = "app.kubernetes.io/team"
LABEL_ENVIRONMENT = "app.kubernetes.io/environment"

DEFAULT_APP_TYPE = "api"
DEFAULT_TIER = "standard"
DEFAULT_NAMESPACE = "default"
DEFAULT_REPLICAS = 2
DEFAULT_MAX_REPLICAS = 10
DEFAULT_TARGET_CPU = 70
DEFAULT_PROBE_PORT = 8080

# Ports and purposes that mark a port as serving HTTP
HTTP_PORTS = frozenset({80, 443, 8080, 3000, 5000, 8000})
HTTP_PURPOSES = frozenset({"HTTP", "HTTP API"})
# Preferred ingress backend ports, in order
BACKEND_PORT_PREFERENCE = (80, 8080, 3000, 5000, 8000)


class ResolvedScaling(BaseModel):
    min_replicas: int
    max_replicas: int
    target_cpu: int
    target_memory: int = 0
    behavior: str = ""


class ResolvedHealth(BaseModel):
    liveness_path: str
    readiness_path: str
    # Explicitly configured ports, 0 when unset
    liveness_port: int = 0
    readiness_port: int = 0
    initial_delay: int = 0
    period: int = 0
    timeout: int = 0
    failure_threshold: int = 0
    startup_grace_period: str = ""
    # Readiness came from the app config rather than mirroring liveness
    separate_readiness: bool = False


def require_name(analysis: AnalysisResult, document: str) -> str:
    """Return the application name or raise for an empty identity."""
    if not analysis.name:
        raise GenerationError("application name is required", document=document)
    return analysis.name


def effective_namespace(namespace: str, config: EffectiveConfig) -> str:
    return first_set(namespace, config.defaults.namespace, default=DEFAULT_NAMESPACE)


def to_yaml(obj: Dict[str, Any], document: str) -> str:
    """Serialize a manifest, keeping insertion order."""
    try:
        return yaml.safe_dump(obj, sort_keys=False, default_flow_style=False, allow_unicode=True)
    except yaml.YAMLError as e:
        raise GenerationError("failed to serialize document", document=document, cause=e)


# ---------------------------------------------------------------------------
# Identity and ownership
# ---------------------------------------------------------------------------

def resolve_team(analysis: AnalysisResult) -> str:
    return first_set(analysis.overrides.team, analysis.team, default="")


def resolve_owner(analysis: AnalysisResult) -> str:
    return first_set(analysis.overrides.owner, analysis.owner, default="")


def resolve_repository(analysis: AnalysisResult) -> str:
    return first_set(analysis.overrides.repository, analysis.repository, default="")


def resolve_environment(analysis: AnalysisResult) -> str:
    return first_set(analysis.overrides.environment, analysis.environment, default="")


def resolve_description(analysis: AnalysisResult) -> str:
    return first_set(analysis.overrides.description, analysis.description, default="")


def resolve_app_type(analysis: AnalysisResult) -> str:
    return first_set(analysis.overrides.type, analysis.type, default=DEFAULT_APP_TYPE)


def resolve_tier(analysis: AnalysisResult) -> str:
    return first_set(analysis.overrides.tier, default=DEFAULT_TIER)


def resolve_profile_name(analysis: AnalysisResult) -> str:
    """Resource profile key: app type override, then analysis profile, then analysis type."""
    return first_set(
        analysis.overrides.type,
        analysis.resource_profile,
        analysis.type,
        default=DEFAULT_APP_TYPE,
    )


# ---------------------------------------------------------------------------
# Labels and annotations
# ---------------------------------------------------------------------------

def build_labels(analysis: AnalysisResult, config: EffectiveConfig) -> Dict[str, str]:
    labels = {
        LABEL_NAME: analysis.name,
        LABEL_MANAGED_BY: MANAGED_BY,
    }
    team = resolve_team(analysis)
    if team:
        labels[LABEL_TEAM] = team
    environment = resolve_environment(analysis)
    if environment:
        labels[LABEL_ENVIRONMENT] = environment
    labels.update(config.labels.custom)
    labels.update(analysis.overrides.labels)
    return labels


def build_annotations(analysis: AnalysisResult, config: EffectiveConfig) -> Optional[Dict[str, str]]:
    """Org annotations then app annotations; ``None`` when there are none."""
    annotations: Dict[str, str] = {}
    annotations.update(config.annotations.custom)
    annotations.update(analysis.overrides.annotations)
    return annotations or None


def build_metadata(
    name: str,
    namespace: Optional[str],
    labels: Dict[str, str],
    annotations: Optional[Dict[str, str]] = None,
) -> Dict[str, Any]:
    metadata: Dict[str, Any] = {"name": name}
    if namespace:
        metadata["namespace"] = namespace
    metadata["labels"] = dict(labels)
    if annotations:
        metadata["annotations"] = dict(annotations)
    return metadata


# ---------------------------------------------------------------------------
# Resources, replicas and scaling
# ---------------------------------------------------------------------------

def resolve_resources(analysis: AnalysisResult, config: EffectiveConfig) -> ResourceSpec:
    """Profile resources with each app override quantity applied independently."""
    base = config.get_resources_for_profile(resolve_profile_name(analysis))
    overrides = analysis.overrides.resources
    if overrides is None:
        return base
    return ResourceSpec(
        requests=ResourceValues(
            cpu=first_set(overrides.requests_cpu, base.requests.cpu, default=""),
            memory=first_set(overrides.requests_memory, base.requests.memory, default=""),
        ),
        limits=ResourceValues(
            cpu=first_set(overrides.limits_cpu, base.limits.cpu, default=""),
            memory=first_set(overrides.limits_memory, base.limits.memory, default=""),
        ),
    )


def resources_block(spec: ResourceSpec) -> Dict[str, Dict[str, str]]:
    block: Dict[str, Dict[str, str]] = {}
    for section in ("requests", "limits"):
        values = getattr(spec, section)
        entry = {k: v for k, v in (("cpu", values.cpu), ("memory", values.memory)) if v}
        if entry:
            block[section] = entry
    return block


def resolve_replicas(analysis: AnalysisResult) -> int:
    override = analysis.overrides.scaling
    return first_set(
        override.min_replicas if override else 0,
        analysis.scaling.min_replicas if analysis.scaling else 0,
        default=DEFAULT_REPLICAS,
    )


def resolve_scaling(analysis: AnalysisResult) -> Optional[ResolvedScaling]:
    """Scaling intent, or ``None`` when neither the analysis nor the app config asks for it."""
    override = analysis.overrides.scaling
    derived = analysis.scaling
    if override is None and derived is None:
        return None

    def pick(field: str, default: Any) -> Any:
        return first_set(
            getattr(override, field) if override else None,
            getattr(derived, field) if derived else None,
            default=default,
        )

    return ResolvedScaling(
        min_replicas=pick("min_replicas", DEFAULT_REPLICAS),
        max_replicas=pick("max_replicas", DEFAULT_MAX_REPLICAS),
        target_cpu=pick("target_cpu", DEFAULT_TARGET_CPU),
        target_memory=pick("target_memory", 0),
        behavior=pick("behavior", ""),
    )


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------

def resolve_health(analysis: AnalysisResult) -> Optional[ResolvedHealth]:
    """
    Probe settings from the app config, else the analysed health check.

    Returns ``None`` when no path is configured anywhere, in which case no
    probes are emitted. Readiness falls back to the liveness path.
    """
    override = analysis.overrides.health
    detected = analysis.health_check

    liveness_path = first_set(
        override.liveness_path if override else "",
        detected.path if detected else "",
        override.readiness_path if override else "",
        default="",
    )
    if not liveness_path:
        return None
    readiness_path = first_set(override.readiness_path if override else "", liveness_path)
    liveness_port = first_set(
        override.liveness_port if override else 0,
        detected.port if detected else 0,
        default=0,
    )
    readiness_port = first_set(override.readiness_port if override else 0, liveness_port, default=0)
    return ResolvedHealth(
        liveness_path=liveness_path,
        readiness_path=readiness_path,
        liveness_port=liveness_port,
        readiness_port=readiness_port,
        initial_delay=first_set(
            override.initial_delay if override else 0,
            detected.initial_delay if detected else 0,
            default=0,
        ),
        period=first_set(override.period if override else 0, detected.period if detected else 0, default=0),
        timeout=detected.timeout if detected else 0,
        failure_threshold=detected.failure_threshold if detected else 0,
        startup_grace_period=override.startup_grace_period if override else "",
        separate_readiness=bool(override and (override.readiness_path or override.readiness_port)),
    )


def probe_port(configured: int, ports: List[Port]) -> int:
    """A configured probe port, else the first declared port, else 8080."""
    return first_set(configured, ports[0].port if ports else 0, default=DEFAULT_PROBE_PORT)


# ---------------------------------------------------------------------------
# Ingress
# ---------------------------------------------------------------------------

def ingress_disabled(analysis: AnalysisResult) -> bool:
    """True only when the app config explicitly turns ingress off."""
    ingress = analysis.overrides.ingress
    return ingress is not None and ingress.enabled is False


def should_generate_ingress(analysis: AnalysisResult) -> bool:
    """Ingress needs a Service to route to, a port that looks like HTTP, and no explicit opt-out."""
    return bool(analysis.ports) and not ingress_disabled(analysis) and has_http_port(analysis.ports)


def has_http_port(ports: List[Port]) -> bool:
    """
    Whether any port looks like HTTP.

    When no port matches the well-known set or an HTTP purpose, any port at
    all counts, so a lone gRPC or raw TCP port still gets an Ingress.
    """
    for port in ports:
        if port.port in HTTP_PORTS or port.purpose.upper() in HTTP_PURPOSES:
            return True
    return len(ports) > 0


def select_http_port(ports: List[Port]) -> int:
    declared = [p.port for p in ports]
    for candidate in BACKEND_PORT_PREFERENCE:
        if candidate in declared:
            return candidate
    return declared[0] if declared else DEFAULT_PROBE_PORT


def resolve_ingress_host(analysis: AnalysisResult, config: EffectiveConfig) -> str:
    ingress = analysis.overrides.ingress
    generated = f"{analysis.name}{config.ingress.domain_suffix}" if analysis.name else ""
    return first_set(ingress.host if ingress else "", generated, default="")


def resolve_ingress_paths(analysis: AnalysisResult) -> List[IngressPath]:
    ingress = analysis.overrides.ingress
    if ingress is not None and ingress.paths:
        return [
            IngressPath(path=p.path or "/", path_type=p.path_type or "Prefix")
            for p in ingress.paths
        ]
    return [IngressPath(path="/", path_type="Prefix")]


def resolve_tls(analysis: AnalysisResult, config: EffectiveConfig) -> Tuple[bool, str]:
    """(enabled, secret name); the app config can switch TLS on or off."""
    ingress = analysis.overrides.ingress
    enabled = first_set(
        ingress.tls_enabled if ingress else None,
        config.ingress.tls.enabled,
        default=False,
    )
    secret = first_set(ingress.tls_secret if ingress else "", default=f"{analysis.name}-tls")
    return enabled, secret


# ---------------------------------------------------------------------------
# Image
# ---------------------------------------------------------------------------

def image_reference(name: str, config: EffectiveConfig) -> str:
    registry = config.ci.registry.rstrip("/")
    if registry:
        return f"{registry}/{name}:latest"
    return f"{name}:latest"

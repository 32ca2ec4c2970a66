"""Structured persona document: an ``ApplicationPersona`` resource for later machine use."""

from typing import Any, Dict, List, Optional

from dorgu.config.models import EffectiveConfig
from dorgu.config.resolver import first_set
from dorgu.core.analysis import AnalysisResult
from dorgu.core.generator.common import (
    LABEL_MANAGED_BY,
    MANAGED_BY,
    build_metadata,
    effective_namespace,
    probe_port,
    require_name,
    resolve_app_type,
    resolve_description,
    resolve_health,
    resolve_ingress_host,
    resolve_ingress_paths,
    resolve_owner,
    resolve_profile_name,
    resolve_repository,
    resolve_resources,
    resolve_scaling,
    resolve_team,
    resolve_tier,
    resolve_tls,
    should_generate_ingress,
    to_yaml,
)

DOCUMENT = "persona.yaml"

PERSONA_API_VERSION = "dorgu.io/v1"
PERSONA_KIND = "ApplicationPersona"
LABEL_PERSONA_TEAM = "dorgu.io/team"

DEFAULT_BEHAVIOR = "balanced"
DEFAULT_STARTUP_GRACE_PERIOD = "30s"
DEFAULT_STRATEGY = "RollingUpdate"
DEFAULT_MAX_SURGE = "25%"
DEFAULT_MAX_UNAVAILABLE = "25%"


def _technical(analysis: AnalysisResult) -> Dict[str, str]:
    technical = {}
    if analysis.language:
        technical["language"] = analysis.language
    if analysis.framework:
        technical["framework"] = analysis.framework
    description = resolve_description(analysis)
    if description:
        technical["description"] = description
    return technical


def _resources(analysis: AnalysisResult, config: EffectiveConfig) -> Dict[str, Any]:
    spec = resolve_resources(analysis, config)
    return {
        "requests": {"cpu": spec.requests.cpu, "memory": spec.requests.memory},
        "limits": {"cpu": spec.limits.cpu, "memory": spec.limits.memory},
        "profile": resolve_profile_name(analysis),
    }


def _scaling(analysis: AnalysisResult) -> Optional[Dict[str, Any]]:
    scaling = resolve_scaling(analysis)
    if scaling is None:
        return None
    block: Dict[str, Any] = {
        "minReplicas": scaling.min_replicas,
        "maxReplicas": scaling.max_replicas,
        "targetCPU": scaling.target_cpu,
    }
    if scaling.target_memory > 0:
        block["targetMemory"] = scaling.target_memory
    block["behavior"] = first_set(scaling.behavior, default=DEFAULT_BEHAVIOR)
    return block


def _health(analysis: AnalysisResult) -> Optional[Dict[str, Any]]:
    health = resolve_health(analysis)
    if health is None:
        return None
    return {
        "livenessPath": health.liveness_path,
        "readinessPath": health.readiness_path,
        "port": probe_port(health.liveness_port, analysis.ports),
        "startupGracePeriod": first_set(health.startup_grace_period, default=DEFAULT_STARTUP_GRACE_PERIOD),
    }


def _dependencies(analysis: AnalysisResult) -> Optional[List[Dict[str, Any]]]:
    declared = analysis.overrides.dependencies
    if declared:
        deps = []
        for dep in declared:
            entry: Dict[str, Any] = {"name": dep.name}
            if dep.type:
                entry["type"] = dep.type
            entry["required"] = dep.required
            if dep.health_check:
                entry["healthCheck"] = dep.health_check
            deps.append(entry)
        return deps
    if analysis.dependencies:
        return [{"name": name, "required": False} for name in analysis.dependencies]
    return None


def _networking(analysis: AnalysisResult, config: EffectiveConfig) -> Optional[Dict[str, Any]]:
    if not analysis.ports:
        return None
    networking: Dict[str, Any] = {
        "ports": [
            {k: v for k, v in (("port", p.port), ("protocol", p.protocol or "TCP"), ("purpose", p.purpose)) if v}
            for p in analysis.ports
        ]
    }
    if should_generate_ingress(analysis):
        tls_enabled, _ = resolve_tls(analysis, config)
        networking["ingress"] = {
            "enabled": True,
            "host": resolve_ingress_host(analysis, config),
            "paths": [p.path for p in resolve_ingress_paths(analysis)],
            "tlsEnabled": tls_enabled,
        }
    return networking


def _ownership(analysis: AnalysisResult) -> Optional[Dict[str, str]]:
    ops = analysis.overrides.operations
    candidates = (
        ("team", resolve_team(analysis)),
        ("owner", resolve_owner(analysis)),
        ("repository", resolve_repository(analysis)),
        ("oncall", ops.on_call if ops else ""),
        ("runbook", ops.runbook if ops else ""),
    )
    ownership = {k: v for k, v in candidates if v}
    return ownership or None


def _policies(analysis: AnalysisResult, config: EffectiveConfig) -> Dict[str, Any]:
    pod_ctx = config.security.pod_security_context
    container_ctx = config.security.container_security_context
    policy = analysis.overrides.deployment_policy
    ops = analysis.overrides.operations

    maintenance: Dict[str, Any] = {}
    if ops is not None and ops.maintenance_window:
        maintenance["window"] = ops.maintenance_window
    maintenance["autoRestart"] = bool(ops.auto_restart) if ops is not None else False

    return {
        "security": {
            "runAsNonRoot": bool(pod_ctx.run_as_non_root),
            "readOnlyRootFilesystem": bool(container_ctx.read_only_root_filesystem),
            "allowPrivilegeEscalation": bool(container_ctx.allow_privilege_escalation),
        },
        "deployment": {
            "strategy": first_set(policy.strategy if policy else "", default=DEFAULT_STRATEGY),
            "maxSurge": first_set(policy.max_surge if policy else "", default=DEFAULT_MAX_SURGE),
            "maxUnavailable": first_set(policy.max_unavailable if policy else "", default=DEFAULT_MAX_UNAVAILABLE),
        },
        "maintenance": maintenance,
    }


def generate_persona_yaml(analysis: AnalysisResult, namespace: str, config: EffectiveConfig) -> str:
    """
    Generate the ApplicationPersona document.

    Optional sections (scaling, health, dependencies, networking,
    ownership) are omitted when nothing feeds them; the policy block is
    always present.

    Raises:
        GenerationError: empty application name or serialization failure
    """
    name = require_name(analysis, DOCUMENT)
    labels = {LABEL_MANAGED_BY: MANAGED_BY}
    team = resolve_team(analysis)
    if team:
        labels[LABEL_PERSONA_TEAM] = team

    spec: Dict[str, Any] = {
        "name": name,
        "version": "1",
        "type": resolve_app_type(analysis),
        "tier": resolve_tier(analysis),
        "technical": _technical(analysis),
        "resources": _resources(analysis, config),
    }
    optional_sections = (
        ("scaling", _scaling(analysis)),
        ("health", _health(analysis)),
        ("dependencies", _dependencies(analysis)),
        ("networking", _networking(analysis, config)),
        ("ownership", _ownership(analysis)),
    )
    for key, section in optional_sections:
        if section:
            spec[key] = section
    spec["policies"] = _policies(analysis, config)

    persona = {
        "apiVersion": PERSONA_API_VERSION,
        "kind": PERSONA_KIND,
        "metadata": build_metadata(name, effective_namespace(namespace, config), labels),
        "spec": spec,
    }
    return to_yaml(persona, DOCUMENT)

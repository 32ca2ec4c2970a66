from typing import Any, Dict, List, Optional

from dorgu.config.models import EffectiveConfig
from dorgu.core.analysis import AnalysisResult, EnvVar, Port
from dorgu.core.generator.common import (
    LABEL_NAME,
    ResolvedHealth,
    build_annotations,
    build_labels,
    build_metadata,
    effective_namespace,
    image_reference,
    probe_port,
    require_name,
    resolve_health,
    resolve_replicas,
    resolve_resources,
    resources_block,
    to_yaml,
)

DOCUMENT = "deployment.yaml"

PROBE_TIMEOUT_SECONDS = 5
PROBE_FAILURE_THRESHOLD = 3


def secret_name(app_name: str) -> str:
    return f"{app_name.lower()}-secrets"


def build_container_ports(ports: List[Port]) -> List[Dict[str, Any]]:
    return [
        {"name": f"port-{i}", "containerPort": port.port, "protocol": "TCP"}
        for i, port in enumerate(ports)
    ]


def build_env(app_name: str, env_vars: List[EnvVar]) -> List[Dict[str, Any]]:
    """Secret entries become secretKeyRefs; only literal values are inlined."""
    env: List[Dict[str, Any]] = []
    for var in env_vars:
        if var.secret:
            env.append({
                "name": var.name,
                "valueFrom": {
                    "secretKeyRef": {
                        "name": secret_name(app_name),
                        "key": var.name.lower(),
                    }
                },
            })
        elif var.value:
            env.append({"name": var.name, "value": var.value})
    return env


def _probe(path: str, port: int, initial_delay: int, period: int, health: ResolvedHealth) -> Dict[str, Any]:
    return {
        "httpGet": {"path": path, "port": port},
        "initialDelaySeconds": initial_delay,
        "periodSeconds": period,
        "timeoutSeconds": health.timeout or PROBE_TIMEOUT_SECONDS,
        "failureThreshold": health.failure_threshold or PROBE_FAILURE_THRESHOLD,
    }


def build_probes(analysis: AnalysisResult) -> Optional[Dict[str, Dict[str, Any]]]:
    health = resolve_health(analysis)
    if health is None:
        return None
    liveness = _probe(
        health.liveness_path,
        probe_port(health.liveness_port, analysis.ports),
        health.initial_delay or 10,
        health.period or 10,
        health,
    )
    # Without an explicit readiness probe, readiness mirrors liveness timing.
    readiness_delay, readiness_period = (5, 5) if health.separate_readiness else (10, 10)
    readiness = _probe(
        health.readiness_path,
        probe_port(health.readiness_port, analysis.ports),
        health.initial_delay or readiness_delay,
        health.period or readiness_period,
        health,
    )
    return {"livenessProbe": liveness, "readinessProbe": readiness}


def build_security_contexts(config: EffectiveConfig) -> Optional[Dict[str, Dict[str, Any]]]:
    """Pod and container security contexts from the org baseline, or None when switched off."""
    security = config.security
    if security.enforce_baseline is False:
        return None

    pod: Dict[str, Any] = {}
    pod_ctx = security.pod_security_context
    if pod_ctx.run_as_non_root is not None:
        pod["runAsNonRoot"] = pod_ctx.run_as_non_root
    if pod_ctx.seccomp_profile.type:
        pod["seccompProfile"] = {"type": pod_ctx.seccomp_profile.type}

    container: Dict[str, Any] = {}
    container_ctx = security.container_security_context
    if container_ctx.allow_privilege_escalation is not None:
        container["allowPrivilegeEscalation"] = container_ctx.allow_privilege_escalation
    if container_ctx.read_only_root_filesystem is not None:
        container["readOnlyRootFilesystem"] = container_ctx.read_only_root_filesystem
    capabilities: Dict[str, List[str]] = {}
    if container_ctx.capabilities.drop:
        capabilities["drop"] = list(container_ctx.capabilities.drop)
    if container_ctx.capabilities.add:
        capabilities["add"] = list(container_ctx.capabilities.add)
    if capabilities:
        container["capabilities"] = capabilities

    return {"pod": pod, "container": container}


def generate_deployment(analysis: AnalysisResult, namespace: str, config: EffectiveConfig) -> str:
    """
    Generate the Deployment manifest.

    Args:
        analysis: Application analysis
        namespace: Target namespace
        config: Effective configuration

    Returns:
        Deployment YAML

    Raises:
        GenerationError: empty application name or serialization failure
    """
    name = require_name(analysis, DOCUMENT)
    labels = build_labels(analysis, config)

    container: Dict[str, Any] = {
        "name": name,
        "image": image_reference(name, config),
    }
    ports = build_container_ports(analysis.ports)
    if ports:
        container["ports"] = ports
    env = build_env(name, analysis.env_vars)
    if env:
        container["env"] = env
    resources = resources_block(resolve_resources(analysis, config))
    if resources:
        container["resources"] = resources
    probes = build_probes(analysis)
    if probes:
        container.update(probes)

    pod_spec: Dict[str, Any] = {}
    security = build_security_contexts(config)
    if security and security["pod"]:
        pod_spec["securityContext"] = security["pod"]
    if security and security["container"]:
        container["securityContext"] = security["container"]
    pod_spec["containers"] = [container]

    deployment = {
        "apiVersion": "apps/v1",
        "kind": "Deployment",
        "metadata": build_metadata(
            name,
            effective_namespace(namespace, config),
            labels,
            build_annotations(analysis, config),
        ),
        "spec": {
            "replicas": resolve_replicas(analysis),
            "selector": {"matchLabels": {LABEL_NAME: name}},
            "template": {
                "metadata": {"labels": dict(labels)},
                "spec": pod_spec,
            },
        },
    }
    return to_yaml(deployment, DOCUMENT)

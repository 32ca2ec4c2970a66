"""Human-readable persona document (``PERSONA.md``) built without enrichment."""

from typing import List, Optional

from dorgu.config.models import EffectiveConfig
from dorgu.core.analysis import AnalysisResult, Port
from dorgu.core.generator.common import (
    PLACEHOLDER,
    ResolvedHealth,
    ResolvedScaling,
    probe_port,
    require_name,
    resolve_app_type,
    resolve_description,
    resolve_health,
    resolve_owner,
    resolve_profile_name,
    resolve_repository,
    resolve_resources,
    resolve_scaling,
    resolve_team,
)
from dorgu.core.generator.persona_templates import (
    APPLICATION_CONTEXT_SECTION,
    BASIC_PERSONA_TEMPLATE,
    DEFAULT_DESCRIPTION,
    NO_DEPENDENCIES,
    NO_HEALTH_CHECK,
    NO_OPERATIONS,
    NO_PORTS,
    NO_SCALING,
)

DOCUMENT = "../PERSONA.md"


def _or_placeholder(value: str) -> str:
    return value if value else PLACEHOLDER


def format_ports(ports: List[Port]) -> str:
    if not ports:
        return NO_PORTS
    return "\n".join(
        f"- Port {p.port} ({p.protocol or 'TCP'}): {_or_placeholder(p.purpose)}" for p in ports
    )


def format_dependencies(analysis: AnalysisResult) -> str:
    declared = analysis.overrides.dependencies
    if declared:
        lines = []
        for dep in declared:
            kind = f" ({dep.type})" if dep.type else ""
            required = " (required)" if dep.required else ""
            lines.append(f"- **{dep.name}**{kind}{required}")
        return "\n".join(lines)
    if not analysis.dependencies:
        return NO_DEPENDENCIES
    return "\n".join(f"- {d}" for d in analysis.dependencies)


def format_scaling(scaling: Optional[ResolvedScaling]) -> str:
    if scaling is None:
        return NO_SCALING
    text = f"Min {scaling.min_replicas} replicas, Max {scaling.max_replicas} replicas"
    if scaling.target_cpu > 0:
        text += f", Target CPU {scaling.target_cpu}%"
    if scaling.target_memory > 0:
        text += f", Target Memory {scaling.target_memory}%"
    return text


def format_health(health: Optional[ResolvedHealth], ports: List[Port]) -> str:
    if health is None:
        return NO_HEALTH_CHECK
    lines = [f"- **Health endpoint:** {health.liveness_path}"]
    if health.readiness_path != health.liveness_path:
        lines.append(f"- **Readiness endpoint:** {health.readiness_path}")
    lines.append(f"- **Probe port:** {probe_port(health.liveness_port, ports)}")
    return "\n".join(lines)


def format_operations(analysis: AnalysisResult) -> str:
    ops = analysis.overrides.operations
    if ops is None:
        return NO_OPERATIONS
    lines = []
    if ops.runbook:
        lines.append(f"- **Runbook:** {ops.runbook}")
    if ops.on_call:
        lines.append(f"- **On-Call:** {ops.on_call}")
    if ops.maintenance_window:
        lines.append(f"- **Maintenance Window:** {ops.maintenance_window}")
    if ops.alerts:
        lines.append("")
        lines.append("### Configured Alerts")
        lines.extend(f"- {alert}" for alert in ops.alerts)
    return "\n".join(lines) if lines else NO_OPERATIONS


def generate_persona_markdown(analysis: AnalysisResult, namespace: str, config: EffectiveConfig) -> str:
    """
    Generate the basic Markdown persona.

    Every line is always present; fields nobody provided show the
    ``[PLACEHOLDER]`` token so the document can be completed by hand.
    """
    name = require_name(analysis, DOCUMENT)
    app_type = resolve_app_type(analysis)
    resources = resolve_resources(analysis, config)
    instructions = analysis.overrides.instructions
    return BASIC_PERSONA_TEMPLATE.format(
        name=name,
        description=resolve_description(analysis) or DEFAULT_DESCRIPTION.format(app_type=app_type),
        context_section=APPLICATION_CONTEXT_SECTION.format(instructions=instructions) if instructions else "",
        language=_or_placeholder(analysis.language),
        framework=_or_placeholder(analysis.framework),
        app_type=app_type,
        ports_section=format_ports(analysis.ports),
        dependencies_section=format_dependencies(analysis),
        profile=resolve_profile_name(analysis),
        requests=f"cpu {_or_placeholder(resources.requests.cpu)}, memory {_or_placeholder(resources.requests.memory)}",
        limits=f"cpu {_or_placeholder(resources.limits.cpu)}, memory {_or_placeholder(resources.limits.memory)}",
        scaling=format_scaling(resolve_scaling(analysis)),
        health_section=format_health(resolve_health(analysis), analysis.ports),
        team=_or_placeholder(resolve_team(analysis)),
        contact=_or_placeholder(resolve_owner(analysis)),
        repository=_or_placeholder(resolve_repository(analysis)),
        operations_section=format_operations(analysis),
    )

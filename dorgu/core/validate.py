"""
Post-generation validation.

Runs a fixed set of independent rules over the analysis, the effective
configuration and the generated documents. Rules only report; they never
stop generation and the validator itself never raises.
"""

import re
from enum import Enum
from typing import Callable, Dict, List, Optional, Sequence

from pydantic import BaseModel, Field, computed_field

from dorgu.config.models import EffectiveConfig
from dorgu.core.analysis import AnalysisResult
from dorgu.core.generator import argocd, deployment, hpa, ingress
from dorgu.core.generator.common import (
    resolve_ingress_host,
    resolve_repository,
    resolve_resources,
    resolve_scaling,
)
from dorgu.core.generator.generator import GeneratedDocument
from dorgu.utils.logger import DorguLogger

validator_logger = DorguLogger("Validator")


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


SEVERITY_ORDER = (Severity.ERROR, Severity.WARNING, Severity.INFO)

SEVERITY_PREFIX: Dict[Severity, str] = {
    Severity.ERROR: "✗",
    Severity.WARNING: "⚠",
    Severity.INFO: "ℹ",
}


class ValidationIssue(BaseModel):
    severity: Severity
    category: str
    file: str
    message: str
    suggestion: str = ""


class ValidationResult(BaseModel):
    """Validation findings; ``passed`` and ``summary`` are derived from ``issues``."""
    issues: List[ValidationIssue] = Field(default_factory=list)

    def count(self, severity: Severity) -> int:
        return sum(1 for issue in self.issues if issue.severity == severity)

    @computed_field
    @property
    def passed(self) -> bool:
        return self.count(Severity.ERROR) == 0

    @computed_field
    @property
    def summary(self) -> str:
        if not self.issues:
            return "All validation checks passed"
        parts = []
        for severity in SEVERITY_ORDER:
            n = self.count(severity)
            if n:
                parts.append(f"{n} {severity.value}(s)")
        return "Validation: " + ", ".join(parts)

    def ordered_issues(self) -> List[ValidationIssue]:
        """Issues grouped errors first, then warnings, then infos; detection order within a group."""
        return [issue for severity in SEVERITY_ORDER for issue in self.issues if issue.severity == severity]


# ---------------------------------------------------------------------------
# Quantity parsing
# ---------------------------------------------------------------------------

_NUMBER = re.compile(r"^\s*([0-9]*\.?[0-9]+)")

_BINARY_SUFFIXES = {"Ki": 1024, "Mi": 1024 ** 2, "Gi": 1024 ** 3, "Ti": 1024 ** 4}
_DECIMAL_SUFFIXES = {"k": 1000, "K": 1000, "M": 1000 ** 2, "G": 1000 ** 3, "T": 1000 ** 4}


def _leading_number(text: str) -> float:
    match = _NUMBER.match(text)
    return float(match.group(1)) if match else 0.0


def parse_cpu_millis(cpu: str) -> int:
    """``"250m"`` is 250 millicores, ``"2"`` or ``"1.5"`` are cores times 1000. Unparseable is 0."""
    cpu = (cpu or "").strip()
    if not cpu:
        return 0
    if cpu.endswith("m"):
        return int(_leading_number(cpu[:-1]))
    return int(_leading_number(cpu) * 1000)


def parse_memory_bytes(memory: str) -> int:
    """Binary suffixes Ki/Mi/Gi/Ti are powers of 1024; a bare number is bytes. Unparseable is 0."""
    memory = (memory or "").strip()
    if not memory:
        return 0
    for suffix, multiplier in _BINARY_SUFFIXES.items():
        if memory.endswith(suffix):
            return int(_leading_number(memory[: -len(suffix)]) * multiplier)
    for suffix, multiplier in _DECIMAL_SUFFIXES.items():
        if memory.endswith(suffix):
            return int(_leading_number(memory[: -len(suffix)]) * multiplier)
    return int(_leading_number(memory))


# ---------------------------------------------------------------------------
# Rules
# ---------------------------------------------------------------------------

Rule = Callable[[AnalysisResult, Sequence[GeneratedDocument], EffectiveConfig], List[ValidationIssue]]


def check_image(analysis: AnalysisResult, documents: Sequence[GeneratedDocument], config: EffectiveConfig) -> List[ValidationIssue]:
    issues = []
    if not config.ci.registry:
        issues.append(ValidationIssue(
            severity=Severity.WARNING,
            category="image",
            file=deployment.DOCUMENT,
            message=f"Container image is placeholder '{analysis.name}:latest' (no registry set)",
            suggestion="Set CI registry via 'dorgu config set defaults.registry <registry>' or in .dorgu.yaml",
        ))
    issues.append(ValidationIssue(
        severity=Severity.INFO,
        category="image",
        file=deployment.DOCUMENT,
        message="Image uses ':latest' tag",
        suggestion="Use specific image tags in production for reproducible deployments",
    ))
    return issues


def check_resources(analysis: AnalysisResult, documents: Sequence[GeneratedDocument], config: EffectiveConfig) -> List[ValidationIssue]:
    spec = resolve_resources(analysis, config)
    issues = []
    request_cpu, limit_cpu = parse_cpu_millis(spec.requests.cpu), parse_cpu_millis(spec.limits.cpu)
    if request_cpu > 0 and limit_cpu > 0 and request_cpu > limit_cpu:
        issues.append(ValidationIssue(
            severity=Severity.ERROR,
            category="resources",
            file=deployment.DOCUMENT,
            message=f"Resource requests > limits: CPU request ({spec.requests.cpu}) > limit ({spec.limits.cpu})",
            suggestion="CPU request must be <= CPU limit",
        ))
    request_mem, limit_mem = parse_memory_bytes(spec.requests.memory), parse_memory_bytes(spec.limits.memory)
    if request_mem > 0 and limit_mem > 0 and request_mem > limit_mem:
        issues.append(ValidationIssue(
            severity=Severity.ERROR,
            category="resources",
            file=deployment.DOCUMENT,
            message=f"Resource requests > limits: memory request ({spec.requests.memory}) > limit ({spec.limits.memory})",
            suggestion="Memory request must be <= memory limit",
        ))
    return issues


def check_probe_ports(analysis: AnalysisResult, documents: Sequence[GeneratedDocument], config: EffectiveConfig) -> List[ValidationIssue]:
    if not analysis.ports:
        return []
    override = analysis.overrides.health
    configured = {analysis.health_check.port if analysis.health_check else 0}
    if override is not None:
        configured.update({override.liveness_port, override.readiness_port})
    declared = {p.port for p in analysis.ports}
    issues = []
    for port in sorted(configured - declared - {0}):
        issues.append(ValidationIssue(
            severity=Severity.WARNING,
            category="ports",
            file=deployment.DOCUMENT,
            message=f"Health check port {port} does not match any container port",
            suggestion="Ensure health check port matches one of the exposed container ports",
        ))
    return issues


def check_scaling(analysis: AnalysisResult, documents: Sequence[GeneratedDocument], config: EffectiveConfig) -> List[ValidationIssue]:
    scaling = resolve_scaling(analysis)
    if scaling is None or scaling.min_replicas <= scaling.max_replicas:
        return []
    return [ValidationIssue(
        severity=Severity.ERROR,
        category="scaling",
        file=hpa.DOCUMENT,
        message=f"HPA minReplicas ({scaling.min_replicas}) > maxReplicas ({scaling.max_replicas})",
        suggestion="Set minReplicas <= maxReplicas",
    )]


def check_ingress_host(analysis: AnalysisResult, documents: Sequence[GeneratedDocument], config: EffectiveConfig) -> List[ValidationIssue]:
    if resolve_ingress_host(analysis, config):
        return []
    return [ValidationIssue(
        severity=Severity.WARNING,
        category="ingress",
        file=ingress.DOCUMENT,
        message="Ingress host is empty",
        suggestion="Set ingress.host in .dorgu.yaml or ensure ingress.domain_suffix is set in org config",
    )]


def check_health(analysis: AnalysisResult, documents: Sequence[GeneratedDocument], config: EffectiveConfig) -> List[ValidationIssue]:
    if analysis.health_check is not None or analysis.overrides.health is not None:
        return []
    return [ValidationIssue(
        severity=Severity.WARNING,
        category="health",
        file=deployment.DOCUMENT,
        message="No health probes configured",
        suggestion="Add health.liveness/readiness in .dorgu.yaml or implement a /health endpoint",
    )]


def check_required_fields(analysis: AnalysisResult, documents: Sequence[GeneratedDocument], config: EffectiveConfig) -> List[ValidationIssue]:
    issues = []
    if not analysis.name:
        issues.append(ValidationIssue(
            severity=Severity.ERROR,
            category="metadata",
            file=deployment.DOCUMENT,
            message="Missing required field: application name",
            suggestion="Set app.name in .dorgu.yaml or use --name",
        ))
    if not resolve_repository(analysis):
        issues.append(ValidationIssue(
            severity=Severity.INFO,
            category="metadata",
            file=argocd.DOCUMENT,
            message="Repository URL not set, the Argo CD application uses a placeholder",
            suggestion="Set app.repository in .dorgu.yaml or ensure git remote origin is configured",
        ))
    return issues


RULES: Sequence[Rule] = (
    check_image,
    check_resources,
    check_probe_ports,
    check_scaling,
    check_ingress_host,
    check_health,
    check_required_fields,
)


def validate_generated(
    analysis: AnalysisResult,
    documents: Sequence[GeneratedDocument],
    config: EffectiveConfig,
) -> ValidationResult:
    """
    Run every rule and collect the findings.

    Args:
        analysis: The analysis the documents were generated from
        documents: Generated documents (may be partial or empty)
        config: Effective configuration used for generation

    Returns:
        ValidationResult
    """
    issues: List[ValidationIssue] = []
    for rule in RULES:
        try:
            issues.extend(rule(analysis, documents, config))
        except Exception as e:
            # A broken rule must not turn a report into a crash.
            validator_logger.log_structured(
                level="WARNING",
                message="Validation rule failed, skipping it",
                extra={"rule": rule.__name__, "error": str(e)},
            )
    result = ValidationResult(issues=issues)
    validator_logger.log_structured(
        level="DEBUG",
        message="Validation finished",
        extra={"app": analysis.name, "passed": result.passed, "issues": len(issues)},
    )
    return result


def format_validation_report(result: ValidationResult, styles: Optional[Dict[Severity, str]] = None, reset: str = "") -> str:
    """
    Render a report grouped by severity, suggestions indented beneath.

    ``styles`` maps a severity to a terminal color prefix applied to its
    marker; ``reset`` ends the color.
    """
    if not result.issues:
        return "  All validation checks passed"
    lines = []
    for issue in result.ordered_issues():
        marker = SEVERITY_PREFIX[issue.severity]
        if styles and issue.severity in styles:
            marker = f"{styles[issue.severity]}{marker}{reset}"
        lines.append(f"  {marker} [{issue.category}] {issue.message}")
        if issue.suggestion:
            lines.append(f"    → {issue.suggestion}")
    return "\n".join(lines) + "\n"

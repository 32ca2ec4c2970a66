from typing import Any, Dict

from dorgu.config.models import EffectiveConfig
from dorgu.core.analysis import AnalysisResult
from dorgu.core.generator.common import (
    build_annotations,
    build_labels,
    build_metadata,
    effective_namespace,
    require_name,
    resolve_scaling,
    to_yaml,
)
from dorgu.utils.exceptions import GenerationError

DOCUMENT = "hpa.yaml"


def _utilization_metric(resource: str, target: int) -> Dict[str, Any]:
    return {
        "type": "Resource",
        "resource": {
            "name": resource,
            "target": {"type": "Utilization", "averageUtilization": target},
        },
    }


def generate_hpa(analysis: AnalysisResult, namespace: str, config: EffectiveConfig) -> str:
    """Generate an autoscaling/v2 HorizontalPodAutoscaler for the Deployment."""
    name = require_name(analysis, DOCUMENT)
    scaling = resolve_scaling(analysis)
    if scaling is None:
        raise GenerationError("no scaling configuration", document=DOCUMENT)

    metrics = [_utilization_metric("cpu", scaling.target_cpu)]
    if scaling.target_memory > 0:
        metrics.append(_utilization_metric("memory", scaling.target_memory))

    hpa = {
        "apiVersion": "autoscaling/v2",
        "kind": "HorizontalPodAutoscaler",
        "metadata": build_metadata(
            name,
            effective_namespace(namespace, config),
            build_labels(analysis, config),
            build_annotations(analysis, config),
        ),
        "spec": {
            "scaleTargetRef": {
                "apiVersion": "apps/v1",
                "kind": "Deployment",
                "name": name,
            },
            "minReplicas": scaling.min_replicas,
            "maxReplicas": scaling.max_replicas,
            "metrics": metrics,
        },
    }
    return to_yaml(hpa, DOCUMENT)

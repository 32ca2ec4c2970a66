from dorgu.config.models import EffectiveConfig
from dorgu.core.analysis import AnalysisResult
from dorgu.core.generator.common import (
    LABEL_NAME,
    build_annotations,
    build_labels,
    build_metadata,
    effective_namespace,
    require_name,
    to_yaml,
)

DOCUMENT = "service.yaml"


def generate_service(analysis: AnalysisResult, namespace: str, config: EffectiveConfig) -> str:
    """Generate a ClusterIP Service exposing every declared port on the same number."""
    name = require_name(analysis, DOCUMENT)
    service = {
        "apiVersion": "v1",
        "kind": "Service",
        "metadata": build_metadata(
            name,
            effective_namespace(namespace, config),
            build_labels(analysis, config),
            build_annotations(analysis, config),
        ),
        "spec": {
            "type": "ClusterIP",
            "selector": {LABEL_NAME: name},
            "ports": [
                {
                    "name": f"port-{i}",
                    "port": port.port,
                    "targetPort": port.port,
                    "protocol": "TCP",
                }
                for i, port in enumerate(analysis.ports)
            ],
        },
    }
    return to_yaml(service, DOCUMENT)

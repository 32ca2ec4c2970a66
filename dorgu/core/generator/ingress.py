from typing import Any, Dict

from dorgu.config.models import EffectiveConfig
from dorgu.core.analysis import AnalysisResult
from dorgu.core.generator.common import (
    build_annotations,
    build_labels,
    build_metadata,
    effective_namespace,
    require_name,
    resolve_ingress_host,
    resolve_ingress_paths,
    resolve_tls,
    select_http_port,
    to_yaml,
)

DOCUMENT = "ingress.yaml"

CLUSTER_ISSUER_ANNOTATION = "cert-manager.io/cluster-issuer"


def generate_ingress(analysis: AnalysisResult, namespace: str, config: EffectiveConfig) -> str:
    """
    Generate the Ingress routing the application's host to its HTTP port.

    The host is the app override or ``{name}{domain_suffix}``. TLS, when on,
    adds a tls block and, with a cluster issuer configured, the cert-manager
    annotation.
    """
    name = require_name(analysis, DOCUMENT)
    host = resolve_ingress_host(analysis, config)
    tls_enabled, tls_secret = resolve_tls(analysis, config)

    annotations = dict(build_annotations(analysis, config) or {})
    if tls_enabled and config.ingress.tls.cluster_issuer:
        annotations[CLUSTER_ISSUER_ANNOTATION] = config.ingress.tls.cluster_issuer

    backend_port = select_http_port(analysis.ports)
    paths = [
        {
            "path": p.path,
            "pathType": p.path_type,
            "backend": {
                "service": {
                    "name": name,
                    "port": {"number": backend_port},
                }
            },
        }
        for p in resolve_ingress_paths(analysis)
    ]

    spec: Dict[str, Any] = {}
    if config.ingress.class_name:
        spec["ingressClassName"] = config.ingress.class_name
    if tls_enabled:
        spec["tls"] = [{"hosts": [host], "secretName": tls_secret}]
    spec["rules"] = [{"host": host, "http": {"paths": paths}}]

    ingress = {
        "apiVersion": "networking.k8s.io/v1",
        "kind": "Ingress",
        "metadata": build_metadata(
            name,
            effective_namespace(namespace, config),
            build_labels(analysis, config),
            annotations or None,
        ),
        "spec": spec,
    }
    return to_yaml(ingress, DOCUMENT)

from dorgu.config.models import EffectiveConfig
from dorgu.config.resolver import first_set
from dorgu.core.analysis import AnalysisResult
from dorgu.core.generator.common import (
    build_labels,
    build_metadata,
    effective_namespace,
    require_name,
    resolve_repository,
    to_yaml,
)

DOCUMENT = "argocd/application.yaml"

ARGOCD_NAMESPACE = "argocd"


def placeholder_repository(name: str) -> str:
    return f"https://github.com/YOUR_ORG/{name}.git"


def generate_argocd(
    analysis: AnalysisResult,
    namespace: str,
    config: EffectiveConfig,
    manifest_dir: str = "k8s",
) -> str:
    """
    Generate the Argo CD Application syncing ``manifest_dir`` from the app repository.

    ``namespace`` is the explicit namespace flag. The destination namespace is
    the flag, else ``argocd.destination.namespace``, else the effective namespace.
    """
    name = require_name(analysis, DOCUMENT)
    target_namespace = effective_namespace(namespace, config)
    automated = config.argocd.sync_policy.automated
    application = {
        "apiVersion": "argoproj.io/v1alpha1",
        "kind": "Application",
        "metadata": build_metadata(name, ARGOCD_NAMESPACE, build_labels(analysis, config)),
        "spec": {
            "project": first_set(config.argocd.project, default="default"),
            "source": {
                "repoURL": first_set(resolve_repository(analysis), default=placeholder_repository(name)),
                "path": manifest_dir.strip("/") or ".",
                "targetRevision": "HEAD",
            },
            "destination": {
                "server": config.argocd.destination.server,
                "namespace": first_set(namespace, config.argocd.destination.namespace, target_namespace),
            },
            "syncPolicy": {
                "automated": {
                    "prune": bool(automated.prune),
                    "selfHeal": bool(automated.self_heal),
                },
                "syncOptions": ["CreateNamespace=true"],
            },
        },
    }
    return to_yaml(application, DOCUMENT)

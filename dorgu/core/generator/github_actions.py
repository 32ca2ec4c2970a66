from dorgu.config.models import EffectiveConfig
from dorgu.core.analysis import AnalysisResult
from dorgu.core.generator import deployment
from dorgu.core.generator.common import require_name
from dorgu.core.generator.github_actions_templates import (
    GITHUB_ACTIONS_WORKFLOW_TEMPLATE,
    REGISTRY_PLACEHOLDER,
)

DOCUMENT = "../.github/workflows/deploy.yaml"


def generate_github_actions(
    analysis: AnalysisResult,
    namespace: str,
    config: EffectiveConfig,
    manifest_dir: str = "k8s",
) -> str:
    """
    Generate the build-and-deploy GitHub Actions workflow.

    The deploy job rewrites the image line of the generated Deployment in
    ``manifest_dir``, so the workflow depends on that document's path.
    """
    name = require_name(analysis, DOCUMENT)
    registry = config.ci.registry.rstrip("/") or REGISTRY_PLACEHOLDER
    manifest_dir = manifest_dir.strip("/") or "."
    return GITHUB_ACTIONS_WORKFLOW_TEMPLATE.format(
        registry=registry,
        image_name=f"{registry}/{name}",
        app_name=name,
        manifest_dir=manifest_dir,
        deployment_file=deployment.DOCUMENT,
    )

"""Orchestration of all document generators for one application."""

from typing import Callable, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from dorgu.config.models import EffectiveConfig
from dorgu.core.analysis import AnalysisResult
from dorgu.core.generator import argocd, deployment, github_actions, hpa, ingress, persona, persona_yaml, service
from dorgu.core.generator.common import effective_namespace, resolve_scaling, should_generate_ingress
from dorgu.utils.exceptions import GenerationError
from dorgu.utils.logger import DorguLogger

generator_logger = DorguLogger("Generator")

PersonaWriter = Callable[[AnalysisResult, EffectiveConfig], str]


class GeneratedDocument(BaseModel):
    """One output file, relative to the manifest directory."""
    model_config = ConfigDict(frozen=True)

    path: str = Field(..., description="Path relative to the output directory")
    content: str


class GenerationOptions(BaseModel):
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    namespace: str = ""
    skip_argocd: bool = False
    skip_ci: bool = False
    skip_persona: bool = False
    manifest_dir: str = Field(default="k8s", description="Directory name the CI workflow and Argo CD source point at")
    persona_writer: Optional[PersonaWriter] = Field(
        default=None,
        description="Enrichment step producing PERSONA.md; failures fall back to the basic persona",
    )


def _write_persona(analysis: AnalysisResult, config: EffectiveConfig, namespace: str, writer: Optional[PersonaWriter]) -> str:
    if writer is not None:
        try:
            content = writer(analysis, config)
            if content and content.strip():
                return content
            generator_logger.log_structured(
                level="DEBUG",
                message="Persona writer returned nothing, using basic persona",
                extra={"app": analysis.name},
            )
        except Exception as e:
            # Enrichment is best effort; any failure degrades to the basic persona.
            generator_logger.log_structured(
                level="DEBUG",
                message="Persona enrichment failed, using basic persona",
                extra={"app": analysis.name, "error": str(e)},
            )
    return persona.generate_persona_markdown(analysis, namespace, config)


def generate_all(
    analysis: AnalysisResult,
    config: EffectiveConfig,
    options: Optional[GenerationOptions] = None,
) -> List[GeneratedDocument]:
    """
    Generate every document for an application, in a fixed order.

    Order: deployment, service, ingress, hpa, argocd application, CI
    workflow, PERSONA.md, persona.yaml. Service and ingress need ports,
    hpa needs scaling intent, and the skip options drop Argo CD, CI and
    both personas.

    Args:
        analysis: Application analysis (must have a name)
        config: Effective configuration
        options: Generation options

    Returns:
        The generated documents

    Raises:
        GenerationError: the first fatal generator failure
    """
    options = options or GenerationOptions()
    namespace = effective_namespace(options.namespace, config)
    documents: List[GeneratedDocument] = []

    def add(path: str, content: str) -> None:
        documents.append(GeneratedDocument(path=path, content=content))

    add(deployment.DOCUMENT, deployment.generate_deployment(analysis, namespace, config))

    if analysis.ports:
        add(service.DOCUMENT, service.generate_service(analysis, namespace, config))
        if should_generate_ingress(analysis):
            add(ingress.DOCUMENT, ingress.generate_ingress(analysis, namespace, config))

    if resolve_scaling(analysis) is not None:
        add(hpa.DOCUMENT, hpa.generate_hpa(analysis, namespace, config))

    if not options.skip_argocd:
        add(argocd.DOCUMENT, argocd.generate_argocd(analysis, options.namespace, config, options.manifest_dir))

    if not options.skip_ci:
        add(github_actions.DOCUMENT, github_actions.generate_github_actions(analysis, namespace, config, options.manifest_dir))

    if not options.skip_persona:
        add(persona.DOCUMENT, _write_persona(analysis, config, namespace, options.persona_writer))
        try:
            add(persona_yaml.DOCUMENT, persona_yaml.generate_persona_yaml(analysis, namespace, config))
        except GenerationError as e:
            generator_logger.log_structured(
                level="WARNING",
                message="Failed to generate persona YAML, skipping it",
                extra={"app": analysis.name, "error": str(e)},
            )

    generator_logger.log_structured(
        level="DEBUG",
        message="Generated documents",
        extra={"app": analysis.name, "count": len(documents)},
    )
    return documents

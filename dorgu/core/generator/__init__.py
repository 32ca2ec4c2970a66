from .argocd import generate_argocd
from .deployment import generate_deployment
from .generator import GeneratedDocument, GenerationOptions, PersonaWriter, generate_all
from .github_actions import generate_github_actions
from .hpa import generate_hpa
from .ingress import generate_ingress
from .persona import generate_persona_markdown
from .persona_yaml import generate_persona_yaml
from .service import generate_service

__all__ = [
    "GeneratedDocument",
    "GenerationOptions",
    "PersonaWriter",
    "generate_all",
    "generate_argocd",
    "generate_deployment",
    "generate_github_actions",
    "generate_hpa",
    "generate_ingress",
    "generate_persona_markdown",
    "generate_persona_yaml",
    "generate_service",
]

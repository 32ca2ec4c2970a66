from .llm_provider import LLMProvider
from .persona_enricher import PersonaEnricher

__all__ = ["LLMProvider", "PersonaEnricher"]

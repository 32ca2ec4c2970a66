"""
LLM-backed PERSONA.md writer.

``PersonaEnricher`` is a ``persona_writer`` for ``generate_all``: it hands
the analysis facts and the basic persona to a chat model and returns the
model's Markdown. It raises on any failure; the generator decides what to
fall back to.
"""

from typing import Any, Dict, Optional

from langchain_core.messages import SystemMessage
from langchain_core.output_parsers import StrOutputParser
from langchain_core.prompts import ChatPromptTemplate, MessagesPlaceholder
from langchain_core.runnables import Runnable

from dorgu.config import Config
from dorgu.config.models import EffectiveConfig, GlobalConfig
from dorgu.config.resolver import first_set
from dorgu.core.analysis import AnalysisResult
from dorgu.core.generator.common import (
    PLACEHOLDER,
    effective_namespace,
    resolve_app_type,
    resolve_description,
    resolve_owner,
    resolve_repository,
    resolve_team,
)
from dorgu.core.generator.persona import format_dependencies, format_ports, generate_persona_markdown
from dorgu.utils.exceptions import LLMConfigurationError
from dorgu.utils.logger import DorguLogger
from .llm_provider import LLMProvider
from .persona_prompts import PERSONA_SYSTEM_PROMPT, PERSONA_USER_PROMPT

persona_enricher_logger = DorguLogger("PersonaEnricher")

NO_INSTRUCTIONS = "None provided."


def escape_for_template(text: str) -> str:
    """Escape curly braces so user text survives prompt templating."""
    return text.replace("{", "{{").replace("}", "}}")


def strip_code_fence(text: str) -> str:
    """Remove a single wrapping ```markdown fence if the model added one."""
    stripped = text.strip()
    if not stripped.startswith("```"):
        return stripped
    lines = stripped.splitlines()
    if len(lines) >= 2 and lines[-1].strip() == "```":
        return "\n".join(lines[1:-1]).strip()
    return stripped


class PersonaEnricher:
    """
    Callable persona writer backed by a LangChain chat model.

    Provider and model come from the effective configuration's ``llm``
    section, then from the runtime ``Config``. The API key comes from the
    provider's environment variable, then the global config file.
    """

    def __init__(
        self,
        global_config: Optional[GlobalConfig] = None,
        provider: Optional[str] = None,
        model: Optional[str] = None,
        runtime_config: Optional[Config] = None,
        llm: Optional[Runnable] = None,
    ) -> None:
        self.global_config = global_config or GlobalConfig()
        self.provider = provider
        self.model = model
        self.runtime_config = runtime_config or Config()
        self._llm = llm

    def llm_settings(self, config: EffectiveConfig) -> Dict[str, Any]:
        """Provider, model and tuning for this call, highest precedence first."""
        runtime = self.runtime_config.llm_config
        provider = first_set(self.provider, config.llm.provider, runtime["provider"])
        return {
            "provider": provider,
            "model": first_set(self.model, config.llm.model, runtime["model"]),
            "temperature": runtime["temperature"],
            "max_tokens": runtime["max_tokens"],
            "timeout": runtime["timeout"],
        }

    def create_llm(self, config: EffectiveConfig) -> Runnable:
        if self._llm is not None:
            return self._llm
        settings = self.llm_settings(config)
        api_key = self.global_config.get_api_key(settings["provider"])
        if not api_key:
            raise LLMConfigurationError(
                f"No API key configured for provider '{settings['provider']}'"
            )
        return LLMProvider.create_llm(api_key=api_key, **settings)

    def build_user_prompt(self, analysis: AnalysisResult, config: EffectiveConfig) -> str:
        namespace = effective_namespace("", config)
        return PERSONA_USER_PROMPT.format(
            app_name=analysis.name,
            app_type=resolve_app_type(analysis),
            language=analysis.language or PLACEHOLDER,
            framework=analysis.framework or PLACEHOLDER,
            description=resolve_description(analysis) or PLACEHOLDER,
            namespace=namespace,
            ports=format_ports(analysis.ports),
            dependencies=format_dependencies(analysis),
            team=resolve_team(analysis) or PLACEHOLDER,
            owner=resolve_owner(analysis) or PLACEHOLDER,
            repository=resolve_repository(analysis) or PLACEHOLDER,
            instructions=analysis.overrides.instructions or NO_INSTRUCTIONS,
            draft=generate_persona_markdown(analysis, namespace, config),
        )

    def __call__(self, analysis: AnalysisResult, config: EffectiveConfig) -> str:
        """
        Generate an enriched PERSONA.md.

        Args:
            analysis: Application analysis
            config: Effective configuration

        Returns:
            Markdown persona

        Raises:
            LLMConfigurationError: provider, package or key missing
            Exception: whatever the chat model raises
        """
        model = self.create_llm(config)
        prompt = ChatPromptTemplate.from_messages([
            MessagesPlaceholder("system_message"),
            ("user", escape_for_template(self.build_user_prompt(analysis, config))),
        ])
        chain = prompt | model | StrOutputParser()

        persona_enricher_logger.log_structured(
            level="DEBUG",
            message="Requesting persona enrichment",
            extra={"app": analysis.name},
        )
        response = chain.invoke({"system_message": [SystemMessage(content=PERSONA_SYSTEM_PROMPT)]})
        content = strip_code_fence(response)
        persona_enricher_logger.log_structured(
            level="DEBUG",
            message="Persona enrichment finished",
            extra={"app": analysis.name, "length": len(content)},
        )
        return content + "\n" if content else ""

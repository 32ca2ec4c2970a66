import os
from typing import Any, Dict, Optional, Type
from langchain_core.runnables import Runnable
from dorgu.config.models import SUPPORTED_LLM_PROVIDERS
from dorgu.utils.exceptions import LLMConfigurationError, UnsupportedProviderError
from dorgu.utils.logger import DorguLogger
from .base_llm_provider import BaseLLMProvider

llm_provider_logger = DorguLogger("LLMProvider")

DEFAULT_AZURE_API_VERSION = "2024-06-01"


class OpenAIProvider(BaseLLMProvider):
    name = "OpenAI"
    package = "langchain_openai"
    key_env = "OPENAI_API_KEY"

    def create_llm(self, model, temperature=0.2, max_tokens=None, timeout=60, **kwargs) -> Runnable:
        self.require_package()
        from langchain_openai import ChatOpenAI
        api_key = self.api_key(kwargs)
        return ChatOpenAI(model=model, api_key=api_key, **self.sampling(temperature, max_tokens, timeout), **kwargs)


class AnthropicProvider(BaseLLMProvider):
    name = "Anthropic"
    package = "langchain_anthropic"
    key_env = "ANTHROPIC_API_KEY"

    def create_llm(self, model, temperature=0.2, max_tokens=None, timeout=60, **kwargs) -> Runnable:
        self.require_package()
        from langchain_anthropic import ChatAnthropic
        api_key = self.api_key(kwargs)
        return ChatAnthropic(model=model, api_key=api_key, **self.sampling(temperature, max_tokens, timeout), **kwargs)


class AzureOpenAIProvider(BaseLLMProvider):
    """Azure OpenAI; ``model`` names the deployment unless ``deployment_name`` is given."""

    name = "Azure OpenAI"
    package = "langchain_openai"
    key_env = "AZURE_OPENAI_API_KEY"

    def create_llm(self, model, temperature=0.2, max_tokens=None, timeout=60, **kwargs) -> Runnable:
        self.require_package()
        from langchain_openai import AzureChatOpenAI
        api_key = self.api_key(kwargs)
        endpoint = kwargs.pop('endpoint', None) or os.getenv('AZURE_OPENAI_ENDPOINT')
        if not endpoint:
            raise LLMConfigurationError("Azure OpenAI endpoint not found. Set AZURE_OPENAI_ENDPOINT.")
        return AzureChatOpenAI(
            azure_deployment=kwargs.pop('deployment_name', None) or model,
            azure_endpoint=endpoint,
            api_version=kwargs.pop('api_version', None) or os.getenv('OPENAI_API_VERSION', DEFAULT_AZURE_API_VERSION),
            api_key=api_key,
            **self.sampling(temperature, max_tokens, timeout),
            **kwargs,
        )


PROVIDERS: Dict[str, Type[BaseLLMProvider]] = {
    "openai": OpenAIProvider,
    "anthropic": AnthropicProvider,
    "azure_openai": AzureOpenAIProvider,
}


class LLMProvider:
    """Factory for the LangChain chat models used by persona enrichment."""

    @staticmethod
    def create_llm(
        provider: str,
        model: str,
        temperature: float = 0.2,
        max_tokens: Optional[int] = None,
        timeout: int = 60,
        **kwargs: Any
    ) -> Runnable:
        """
        Create a chat model for a provider.

        Args:
            provider: 'openai', 'anthropic' or 'azure_openai' (case-insensitive)
            model: Model or deployment name
            temperature: Sampling temperature
            max_tokens: Maximum tokens to generate
            timeout: Request timeout in seconds
            **kwargs: ``api_key`` and provider-specific parameters

        Raises:
            UnsupportedProviderError: the provider is not one of the supported names
            LLMConfigurationError: missing package or key, or the model could not be built
        """
        provider = (provider or "").lower().strip()
        if provider not in PROVIDERS:
            raise UnsupportedProviderError(
                f"Unsupported provider: '{provider}'. Supported providers: {', '.join(SUPPORTED_LLM_PROVIDERS)}"
            )

        llm_provider_logger.debug("Creating chat model", provider=provider, model=model)
        try:
            return PROVIDERS[provider]().create_llm(
                model=model, temperature=temperature, max_tokens=max_tokens, timeout=timeout, **kwargs
            )
        except LLMConfigurationError:
            raise
        except Exception as e:
            raise LLMConfigurationError(f"Failed to create LLM for provider '{provider}': {e}") from e

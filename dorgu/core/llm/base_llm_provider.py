import importlib.util
import os
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional
from langchain_core.runnables import Runnable
from dorgu.utils.exceptions import LLMConfigurationError


class BaseLLMProvider(ABC):
    """
    A chat-model backend for persona enrichment.

    Subclasses declare the LangChain integration package they import and the
    environment variable holding their API key, then build the chat model.
    """

    name: str = ""
    package: str = ""
    key_env: str = ""

    def require_package(self) -> None:
        if importlib.util.find_spec(self.package) is None:
            raise LLMConfigurationError(
                f"{self.package} package is required for the {self.name} provider. "
                f"Install with: pip install {self.package.replace('_', '-')}"
            )

    def api_key(self, kwargs: Dict[str, Any]) -> str:
        """Pop ``api_key`` from kwargs, falling back to the provider's environment variable."""
        key = kwargs.pop('api_key', None) or os.getenv(self.key_env)
        if not key:
            raise LLMConfigurationError(
                f"{self.name} API key not found. Set {self.key_env} or run "
                "'dorgu config set llm.api_key <key>'."
            )
        return key

    @staticmethod
    def sampling(temperature: float, max_tokens: Optional[int], timeout: int) -> Dict[str, Any]:
        settings: Dict[str, Any] = {"temperature": temperature, "timeout": timeout}
        if max_tokens is not None:
            settings["max_tokens"] = max_tokens
        return settings

    @abstractmethod
    def create_llm(
        self,
        model: str,
        temperature: float = 0.2,
        max_tokens: Optional[int] = None,
        timeout: int = 60,
        **kwargs: Any
    ) -> Runnable:
        """
        Build the chat model.

        Args:
            model: Model or deployment name (e.g., 'gpt-4o-mini')
            temperature: Sampling temperature
            max_tokens: Maximum tokens to generate
            timeout: Request timeout in seconds
            **kwargs: ``api_key`` plus provider-specific parameters
        """

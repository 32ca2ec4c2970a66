"""Custom exceptions for dorgu."""

from typing import Optional


class DorguError(Exception):
    """Base exception for all dorgu errors."""
    pass

class ConfigError(DorguError):
    """Raised for configuration-related errors."""
    def __init__(self, message: str, path: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.path = path

class GenerationError(DorguError):
    """Raised when a document cannot be generated."""
    def __init__(self, message: str, document: Optional[str] = None, cause: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.message = message
        self.document = document
        self.cause = cause

    def __str__(self) -> str:
        text = f"{self.document}: {self.message}" if self.document else self.message
        if self.cause is not None:
            text = f"{text} ({self.cause})"
        return text

class OutputError(DorguError):
    """Raised when generated documents cannot be written."""
    def __init__(self, message: str, path: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.path = path

class LLMConfigurationError(DorguError):
    """Raised when LLM configuration is invalid."""
    pass

class UnsupportedProviderError(DorguError):
    """Raised when an unsupported LLM provider is requested."""
    pass

"""
LLM providers.

Completion and embedding capability used by retrieval and profile merging.
"""

from .openai_provider import OpenAIProvider
from .protocol import LLMProvider, LLMError

__all__ = ["LLMProvider", "LLMError", "OpenAIProvider", "create_provider"]


def create_provider(provider_type: str, **kwargs) -> LLMProvider:
    """
    Factory function to create LLM providers.

    Args:
        provider_type: Type of provider ("openai")
        **kwargs: Provider-specific arguments

    Returns:
        Configured LLM provider instance

    Raises:
        ValueError: If provider_type is not supported
    """
    provider_type = provider_type.lower()

    if provider_type == "openai":
        return OpenAIProvider(**kwargs)
    raise ValueError(
        f"Unsupported provider type: {provider_type}. Supported types: 'openai'"
    )

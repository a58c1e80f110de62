"""
LLM provider factory and initialization.
"""

from functools import lru_cache

from orderdesk.config import settings
from orderdesk.integrations.llm.base import BaseLLM, LLMError, LLMResponse


def get_llm_provider(provider: str | None = None) -> BaseLLM:
    """
    Get LLM provider instance.

    Args:
        provider: Provider name ('gigachat')
                  If None, uses settings.llm_provider

    Returns:
        LLM provider instance
    """
    provider = provider or settings.llm_provider

    if provider == "gigachat":
        from orderdesk.integrations.llm.gigachat import GigaChatLLM

        return GigaChatLLM()
    raise ValueError(f"Unknown LLM provider: {provider}")


@lru_cache(maxsize=1)
def get_default_llm() -> BaseLLM:
    """Get cached default LLM provider."""
    return get_llm_provider()


__all__ = [
    "BaseLLM",
    "LLMError",
    "LLMResponse",
    "get_llm_provider",
    "get_default_llm",
]

"""
Provider interface for the intent classifier's language model.

The classifier sends one prompt per customer message and expects a JSON
object back; providers only have to turn a prompt into text.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


class LLMError(Exception):
    """Provider call failed (network, auth, quota, empty completion)."""


@dataclass
class LLMResponse:
    """Raw completion text plus what the provider reports about the call."""

    content: str
    tokens_used: int | None = None
    model: str | None = None


class BaseLLM(ABC):
    """A chat-completion backend the classifier can call."""

    @abstractmethod
    async def generate(
        self,
        prompt: str,
        system_prompt: str | None = None,
        temperature: float = 0.1,
        max_tokens: int = 512,
    ) -> LLMResponse:
        """
        Complete a single-turn prompt.

        Classification runs at a low temperature so the same message maps
        to the same intent.

        Raises:
            LLMError: if the provider call fails
        """

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name used in logs."""

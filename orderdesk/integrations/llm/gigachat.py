"""
GigaChat LLM provider implementation.
"""

import logging

from gigachat import GigaChat
from gigachat.exceptions import GigaChatException
from gigachat.models import Chat, Messages, MessagesRole

from orderdesk.config import settings
from orderdesk.integrations.llm.base import BaseLLM, LLMError, LLMResponse

logger = logging.getLogger(__name__)


class GigaChatLLM(BaseLLM):
    """GigaChat LLM provider."""

    def __init__(
        self,
        credentials: str | None = None,
        scope: str | None = None,
        model: str | None = None,
    ):
        self.credentials = credentials or settings.gigachat_credentials
        self.scope = scope or settings.gigachat_scope
        self.model = model or settings.gigachat_model

        if not self.credentials:
            raise ValueError(
                "GigaChat credentials not provided. "
                "Set GIGACHAT_CREDENTIALS in .env file."
            )

    def _get_client(self) -> GigaChat:
        """Create GigaChat client."""
        return GigaChat(
            credentials=self.credentials,
            scope=self.scope,
            model=self.model,
            verify_ssl_certs=False,
        )

    async def generate(
        self,
        prompt: str,
        system_prompt: str | None = None,
        temperature: float = 0.1,
        max_tokens: int = 512,
    ) -> LLMResponse:
        """Generate response using GigaChat."""
        messages = []

        if system_prompt:
            messages.append(
                Messages(role=MessagesRole.SYSTEM, content=system_prompt)
            )

        messages.append(Messages(role=MessagesRole.USER, content=prompt))

        try:
            async with self._get_client() as client:
                response = await client.achat(
                    Chat(
                        messages=messages,
                        temperature=temperature,
                        max_tokens=max_tokens,
                    )
                )
        except GigaChatException as e:
            raise LLMError(f"GigaChat request failed: {e}") from e

        if not response.choices:
            raise LLMError("GigaChat returned no choices")

        return LLMResponse(
            content=response.choices[0].message.content,
            tokens_used=response.usage.total_tokens if response.usage else None,
            model=response.model,
        )

    @property
    def name(self) -> str:
        return "gigachat"

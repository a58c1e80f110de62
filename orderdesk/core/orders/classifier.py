"""
Intent classification.
Uses the LLM to turn a customer message into a structured intent.
"""

import json
import logging
import re
from typing import Optional

from orderdesk.config import settings
from orderdesk.core.orders.intent import Intent, Unknown, parse_intent
from orderdesk.core.orders.models import CustomerProfile, OrderState
from orderdesk.integrations.llm import BaseLLM, get_default_llm

logger = logging.getLogger(__name__)


CLASSIFIER_FAILURE_REPLY = "I am having trouble connecting to my brain right now."

SYSTEM_PROMPT = "You classify messages for a B2B ordering assistant. Reply with a single JSON object only."

CLASSIFY_PROMPT = """Work out what the customer wants and extract the details.

CONTEXT:
1. Customer profile: {profile}
2. Current order: {order_state}
3. Recent conversation:
{history}

LATEST CUSTOMER MESSAGE: "{message}"

INTENTS:
- add_item: add products to the order.
- remove_item: remove products from the order.
- start_order: begin the customer's "usual" order.
- set_delivery_location: change the shipping address.
- request_confirmation: review the order.
- finalize_order: confirm and place the order.
- answer_question: a general question.
- greet: a greeting.
- negative_response: the customer says no.
- multi_action: the message both adds and removes products.
- other: anything else.

RULES:
- Use only the context above.
- "no, I want my usual order" is start_order, not negative_response.
- For add_item and remove_item put the products in "entities.items" as
  objects with "productName" and "quantity".
- For multi_action every object in "entities.items" also needs "action":
  "add" or "remove".
- Reduce product names to their singular core words ("smart watches" -> "Smart Watch").
- For set_delivery_location put the address in "entities.shippingAddress".
- For answer_question, finalize_order and other, put a short reply to the
  customer in "reply".
- Do not ask follow-up questions yourself.

Respond with JSON only:
{{"intent": "...", "entities": {{...}}, "reply": "..."}}"""

_CODE_FENCE = re.compile(r"```(?:json)?", re.IGNORECASE)
_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")


def format_history(history: list[dict[str, str]], max_messages: int | None = None) -> str:
    """Format the last N history messages for the prompt."""
    max_messages = max_messages or settings.history_window
    recent = history[-max_messages:]
    if not recent:
        return "This is the start of the conversation."

    lines = []
    for entry in recent:
        speaker = "Customer" if entry.get("role") == "user" else "Agent"
        lines.append(f"{speaker}: {entry.get('content', '')}")
    return "\n".join(lines)


def extract_json(content: str) -> Optional[dict]:
    """Pull the first JSON object out of an LLM reply."""
    cleaned = _CODE_FENCE.sub("", content).strip()
    match = _JSON_OBJECT.search(cleaned)
    if not match:
        return None
    data = json.loads(match.group())
    return data if isinstance(data, dict) else None


class IntentClassifier:
    """LLM-backed intent classifier. Never raises; failures become `Unknown`."""

    def __init__(self, llm: BaseLLM | None = None):
        self._llm = llm

    @property
    def llm(self) -> BaseLLM:
        if self._llm is None:
            self._llm = get_default_llm()
        return self._llm

    def build_prompt(
        self,
        message: str,
        profile: CustomerProfile,
        order_state: OrderState,
        history: list[dict[str, str]],
    ) -> str:
        return CLASSIFY_PROMPT.format(
            profile=json.dumps(profile.to_dict(), ensure_ascii=False),
            order_state=json.dumps(order_state.to_dict(), ensure_ascii=False),
            history=format_history(history),
            message=message,
        )

    async def classify(
        self,
        message: str,
        profile: CustomerProfile,
        order_state: OrderState,
        history: list[dict[str, str]],
    ) -> Intent:
        """
        Classify a customer message.

        Args:
            message: Current customer message
            profile: Customer profile
            order_state: Current order
            history: Stored conversation history (oldest first)

        Returns:
            Intent variant; `Unknown` with an apology when classification fails
        """
        prompt = self.build_prompt(message, profile, order_state, history)

        try:
            response = await self.llm.generate(
                prompt=prompt,
                system_prompt=SYSTEM_PROMPT,
                temperature=0.1,
                max_tokens=500,
            )
            data = extract_json(response.content.strip())
        except json.JSONDecodeError as e:
            logger.warning(f"Failed to parse classifier JSON: {e}")
            return Unknown(reply=CLASSIFIER_FAILURE_REPLY)
        except Exception as e:
            logger.error(f"Error classifying message: {e}", exc_info=True)
            return Unknown(reply=CLASSIFIER_FAILURE_REPLY)

        if data is None:
            logger.warning(f"Classifier returned no JSON object: {response.content[:200]!r}")
            return Unknown(reply=CLASSIFIER_FAILURE_REPLY)

        intent = parse_intent(data, fallback_reply=CLASSIFIER_FAILURE_REPLY)
        logger.info(f"Classified message as {type(intent).__name__}")
        return intent


__all__ = [
    "CLASSIFIER_FAILURE_REPLY",
    "IntentClassifier",
    "extract_json",
    "format_history",
]

"""
Graph nodes for turn processing.
Each node takes the turn state and returns the keys it updates.
"""

import logging

from langchain_core.runnables import RunnableConfig

from orderdesk.config import settings
from orderdesk.core.graph.state import TurnState

logger = logging.getLogger(__name__)


def _collaborator(config: RunnableConfig, name: str):
    try:
        return config["configurable"][name]
    except KeyError as e:
        raise RuntimeError(f"Turn graph invoked without '{name}' in config") from e


async def classify_intent(state: TurnState, config: RunnableConfig) -> dict:
    """Classify the customer's message against the current order."""
    classifier = _collaborator(config, "classifier")

    intent = await classifier.classify(
        state["message"],
        state["profile"],
        state["order_state"],
        state.get("history", []),
    )
    return {"intent": intent}


async def apply_intent(state: TurnState, config: RunnableConfig) -> dict:
    """Apply the classified intent to the order."""
    machine = _collaborator(config, "machine")

    result = await machine.apply(state["intent"], state["order_state"], state["profile"])
    return {
        "order_state": result.state,
        "reply": result.reply,
        "clear_history": result.clear_history,
    }


async def record_history(state: TurnState) -> dict:
    """
    Append this exchange to the history.

    A committed order starts a new conversation, so the history is emptied
    instead.
    """
    if state.get("clear_history"):
        logger.info(f"Clearing conversation history for user {state['user_id']}")
        return {"history": []}

    history = list(state.get("history", []))
    history.append({"role": "user", "content": state["message"]})
    history.append({"role": "assistant", "content": state["reply"]})
    return {"history": history[-settings.history_max_messages:]}

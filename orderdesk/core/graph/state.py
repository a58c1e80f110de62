"""
Turn state for LangGraph.
Defines what flows between the nodes of one conversation turn.
"""

from typing import Optional, TypedDict

from orderdesk.core.orders.intent import Intent
from orderdesk.core.orders.models import CustomerProfile, OrderState


class TurnState(TypedDict, total=False):
    """
    State of one turn.

    Attributes:
        user_id: Transport user ID
        message: The customer's message
        profile: Customer profile loaded for this turn
        order_state: Order before the turn, replaced by the order after it
        history: Stored conversation history, replaced by the updated history
        intent: Classified intent
        reply: Reply for the customer
        clear_history: Set when the order was committed this turn
    """
    user_id: int
    message: str
    profile: CustomerProfile

    order_state: OrderState
    history: list[dict[str, str]]

    intent: Optional[Intent]
    reply: str
    clear_history: bool

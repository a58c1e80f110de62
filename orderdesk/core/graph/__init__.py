"""
LangGraph turn pipeline.
Runs one conversation turn against the customer's stored session.
"""

from orderdesk.core.graph.graph import (
    TurnResult,
    TurnService,
    build_turn_service,
    chat,
    create_graph,
    get_turn_service,
)
from orderdesk.core.graph.state import TurnState

__all__ = [
    "TurnResult",
    "TurnService",
    "TurnState",
    "build_turn_service",
    "chat",
    "create_graph",
    "get_turn_service",
]

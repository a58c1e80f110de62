"""
LangGraph turn pipeline.
Loads the customer's session, runs classify -> apply -> record, saves the session.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from langgraph.graph import StateGraph, START, END

from orderdesk.core.catalog import CustomerDirectory, ProductCatalog, PurchaseHistory
from orderdesk.core.graph.nodes import apply_intent, classify_intent, record_history
from orderdesk.core.graph.state import TurnState
from orderdesk.core.orders.classifier import IntentClassifier
from orderdesk.core.orders.errors import CustomerNotFoundError
from orderdesk.core.orders.fulfillment import FulfillmentEngine
from orderdesk.core.orders.models import CustomerProfile, OrderState, Session
from orderdesk.core.orders.state_machine import OrderStateMachine
from orderdesk.db.database import Database, db as default_db
from orderdesk.db.sessions import SessionStore, SqlSessionStore

logger = logging.getLogger(__name__)


TURN_FAILURE_REPLY = "Sorry, something went wrong on our end. Please try again in a moment."
UNKNOWN_CUSTOMER_REPLY = "I don't have an account for you yet. Please send /start to begin."


def create_graph() -> StateGraph:
    """
    Create the turn graph.

    Flow:
        START -> classify -> apply -> record -> END
    """
    graph = StateGraph(TurnState)

    # Add nodes
    graph.add_node("classify", classify_intent)
    graph.add_node("apply", apply_intent)
    graph.add_node("record", record_history)

    # Define flow
    graph.add_edge(START, "classify")
    graph.add_edge("classify", "apply")
    graph.add_edge("apply", "record")
    graph.add_edge("record", END)

    return graph


@dataclass(frozen=True)
class TurnResult:
    """Reply and order returned to the transport."""
    reply: str
    order_state: Optional[OrderState] = None


class TurnService:
    """Runs conversation turns around an injected session store."""

    def __init__(
        self,
        sessions: SessionStore,
        customers: CustomerDirectory,
        classifier: IntentClassifier,
        machine: OrderStateMachine,
    ):
        self.sessions = sessions
        self.customers = customers
        self.classifier = classifier
        self.machine = machine
        self.graph = create_graph().compile()

    async def open_session(
        self,
        user_id: int,
        name: Optional[str] = None,
        username: Optional[str] = None,
    ) -> CustomerProfile:
        """Register the user if needed and start a fresh session from profile defaults."""
        profile = await self.customers.get_or_register(user_id, name=name, username=username)
        await self.sessions.save(user_id, Session.fresh(profile))
        logger.info(f"Session opened for user {user_id} (customer {profile.customer_id})")
        return profile

    async def clear_session(self, user_id: int) -> bool:
        return await self.sessions.delete(user_id)

    async def handle(self, user_id: int, message: str) -> TurnResult:
        """
        Process one customer message.

        Args:
            user_id: Transport user ID (session key)
            message: Customer's message text

        Returns:
            TurnResult with the reply and the updated order. A reply is
            always produced; on an unexpected error the stored session is
            left as it was.
        """
        try:
            profile = await self.customers.load(user_id)
            session = await self.sessions.load(user_id) or Session.fresh(profile)
        except CustomerNotFoundError:
            logger.info(f"Message from unknown user {user_id}")
            return TurnResult(reply=UNKNOWN_CUSTOMER_REPLY)
        except Exception as e:
            logger.error(f"Could not load session for user {user_id}: {e}", exc_info=True)
            return TurnResult(reply=TURN_FAILURE_REPLY)

        input_state: TurnState = {
            "user_id": user_id,
            "message": message,
            "profile": profile,
            "order_state": session.order_state,
            "history": session.history,
            "intent": None,
            "clear_history": False,
        }
        config = {
            "configurable": {
                "classifier": self.classifier,
                "machine": self.machine,
            }
        }

        try:
            result = await self.graph.ainvoke(input_state, config=config)
            updated = Session(order_state=result["order_state"], history=result["history"])
            await self.sessions.save(user_id, updated)
        except Exception as e:
            logger.error(f"Turn failed for user {user_id}: {e}", exc_info=True)
            return TurnResult(reply=TURN_FAILURE_REPLY, order_state=session.order_state)

        logger.info(f"Reply to user {user_id}: {result['reply'][:80]!r}")
        return TurnResult(reply=result["reply"], order_state=updated.order_state)


def build_turn_service(database: Database | None = None, sessions: SessionStore | None = None) -> TurnService:
    """Wire a turn service against one database."""
    database = database or default_db
    machine = OrderStateMachine(
        catalog=ProductCatalog(database),
        history=PurchaseHistory(database),
        fulfillment=FulfillmentEngine(database),
    )
    return TurnService(
        sessions=sessions or SqlSessionStore(database),
        customers=CustomerDirectory(database),
        classifier=IntentClassifier(),
        machine=machine,
    )


# Turn service singleton
_turn_service: TurnService | None = None


def get_turn_service() -> TurnService:
    """Get turn service bound to the global database (singleton)."""
    global _turn_service
    if _turn_service is None:
        _turn_service = build_turn_service()
    return _turn_service


async def chat(user_id: int, message: str) -> TurnResult:
    """Process a message with the default turn service."""
    return await get_turn_service().handle(user_id, message)

"""
End-to-end turn tests: session load, classify -> apply -> record, session save.
"""

import json

import pytest

from orderdesk.config import settings
from orderdesk.core.catalog import CustomerDirectory
from orderdesk.core.graph import TurnService
from orderdesk.core.graph.graph import TURN_FAILURE_REPLY, UNKNOWN_CUSTOMER_REPLY
from orderdesk.core.orders.classifier import CLASSIFIER_FAILURE_REPLY, IntentClassifier
from orderdesk.core.orders.intent import (
    AddItems,
    FinalizeOrder,
    Greet,
    ItemRequest,
    RequestConfirmation,
    StartOrder,
)
from orderdesk.core.orders.models import OrderStatus
from orderdesk.core.orders.state_machine import CONFIRMATION_PROMPT
from orderdesk.db.sessions import MemorySessionStore, SqlSessionStore

from tests.helpers import CUSTOMER_USER_ID, FailingLLM, FakeLLM, ScriptedClassifier, count_orders, get_stock


@pytest.fixture
def classifier():
    return ScriptedClassifier()


@pytest.fixture
def sessions():
    return MemorySessionStore()


@pytest.fixture
def service(seeded_db, machine, classifier, sessions):
    return TurnService(
        sessions=sessions,
        customers=CustomerDirectory(seeded_db),
        classifier=classifier,
        machine=machine,
    )


class _BrokenStore(MemorySessionStore):
    async def save(self, user_id, session):
        raise RuntimeError("store offline")


class TestTurnService:

    async def test_unknown_user_is_asked_to_start(self, service):
        result = await service.handle(999, "hello")

        assert result.reply == UNKNOWN_CUSTOMER_REPLY
        assert result.order_state is None

    async def test_open_session_registers_new_user(self, service, sessions, seeded_db):
        profile = await service.open_session(777, name="Walk-in", username="walkin")

        assert (await CustomerDirectory(seeded_db).load(777)).customer_id == profile.customer_id
        assert (await sessions.load(777)).order_state.is_empty

    async def test_turn_updates_session_and_history(self, service, classifier, sessions):
        classifier.push(AddItems(items=(ItemRequest("pen", 2),)))

        result = await service.handle(CUSTOMER_USER_ID, "two pens please")

        assert result.reply.startswith("Added 2 of Pen.")
        assert result.order_state.quantity_of("PEN") == 2

        stored = await sessions.load(CUSTOMER_USER_ID)
        assert stored.order_state == result.order_state
        assert stored.history == [
            {"role": "user", "content": "two pens please"},
            {"role": "assistant", "content": result.reply},
        ]

    async def test_classifier_sees_previous_turns(self, service, classifier):
        classifier.push(Greet(), Greet())

        await service.handle(CUSTOMER_USER_ID, "hi")
        await service.handle(CUSTOMER_USER_ID, "hi again")

        _, history = classifier.calls[1]
        assert [entry["content"] for entry in history][0] == "hi"

    async def test_history_is_bounded(self, service, classifier, sessions):
        turns = settings.history_max_messages
        classifier.push(*[Greet() for _ in range(turns)])

        for i in range(turns):
            await service.handle(CUSTOMER_USER_ID, f"message {i}")

        stored = await sessions.load(CUSTOMER_USER_ID)
        assert len(stored.history) == settings.history_max_messages
        assert stored.history[-2]["content"] == f"message {turns - 1}"

    async def test_full_order_flow(self, service, classifier, sessions, seeded_db):
        classifier.push(
            StartOrder(),
            AddItems(items=(ItemRequest("pen", 3),)),
            RequestConfirmation(),
            FinalizeOrder(),
        )

        await service.open_session(CUSTOMER_USER_ID)
        started = await service.handle(CUSTOMER_USER_ID, "my usual order")
        assert started.order_state.quantity_of("WDG") == 2

        await service.handle(CUSTOMER_USER_ID, "and 3 pens")
        review = await service.handle(CUSTOMER_USER_ID, "show me the order")
        assert review.reply.endswith(CONFIRMATION_PROMPT)
        assert "Order Total: ₹115.00" in review.reply

        done = await service.handle(CUSTOMER_USER_ID, "yes, place it")

        assert done.reply.startswith("Order #")
        assert done.order_state.is_empty
        assert done.order_state.status == OrderStatus.CONFIRMED
        assert (await sessions.load(CUSTOMER_USER_ID)).history == []
        assert await get_stock(seeded_db, "WDG") == 98
        assert await get_stock(seeded_db, "PEN") == 7
        assert await count_orders(seeded_db) == 1

    async def test_classifier_failure_still_replies(self, seeded_db, machine, sessions):
        service = TurnService(
            sessions=sessions,
            customers=CustomerDirectory(seeded_db),
            classifier=IntentClassifier(llm=FailingLLM()),
            machine=machine,
        )

        result = await service.handle(CUSTOMER_USER_ID, "hello?")

        assert result.reply == CLASSIFIER_FAILURE_REPLY
        assert result.order_state.is_empty

    async def test_llm_backed_turn(self, seeded_db, machine, sessions):
        llm = FakeLLM(json.dumps({
            "intent": "add_item",
            "entities": {"items": [{"productName": "Stapler", "quantity": 1}]},
        }))
        service = TurnService(
            sessions=sessions,
            customers=CustomerDirectory(seeded_db),
            classifier=IntentClassifier(llm=llm),
            machine=machine,
        )

        result = await service.handle(CUSTOMER_USER_ID, "one stapler")

        assert result.order_state.quantity_of("STP") == 1

    async def test_save_failure_still_replies(self, seeded_db, machine, classifier):
        service = TurnService(
            sessions=_BrokenStore(),
            customers=CustomerDirectory(seeded_db),
            classifier=classifier,
            machine=machine,
        )
        classifier.push(Greet())

        result = await service.handle(CUSTOMER_USER_ID, "hi")

        assert result.reply == TURN_FAILURE_REPLY

    async def test_clear_session(self, service, sessions, classifier):
        classifier.push(Greet())
        await service.handle(CUSTOMER_USER_ID, "hi")

        assert await service.clear_session(CUSTOMER_USER_ID) is True
        assert await sessions.load(CUSTOMER_USER_ID) is None


async def test_sql_backed_sessions_survive_new_service(seeded_db, machine):
    def make_service(classifier):
        return TurnService(
            sessions=SqlSessionStore(seeded_db),
            customers=CustomerDirectory(seeded_db),
            classifier=classifier,
            machine=machine,
        )

    await make_service(ScriptedClassifier(AddItems(items=(ItemRequest("widget", 4),)))).handle(
        CUSTOMER_USER_ID, "4 widgets"
    )
    result = await make_service(ScriptedClassifier(RequestConfirmation())).handle(
        CUSTOMER_USER_ID, "review"
    )

    assert "  - 4 x Widget @ ₹50.00" in result.reply

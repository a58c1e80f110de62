"""
Session store tests.
"""

import pytest
from sqlalchemy import update

from orderdesk.core.orders.models import OrderState, Session
from orderdesk.db.models import UserSession
from orderdesk.db.sessions import MemorySessionStore, SqlSessionStore

from tests.helpers import draft, make_item


@pytest.fixture(params=["sql", "memory"])
def store(request, seeded_db):
    if request.param == "sql":
        return SqlSessionStore(seeded_db)
    return MemorySessionStore()


class TestSessionStore:

    async def test_missing_session(self, store):
        assert await store.load(1) is None

    async def test_save_and_load(self, store, profile):
        session = Session(
            order_state=draft(profile, make_item("PEN", "Pen", 2, 5.0)),
            history=[{"role": "user", "content": "2 pens"}],
        )

        await store.save(1, session)
        loaded = await store.load(1)

        assert loaded.order_state == session.order_state
        assert loaded.history == session.history

    async def test_save_overwrites(self, store, profile):
        await store.save(1, Session.fresh(profile))
        await store.save(1, Session(order_state=draft(profile, make_item("PEN", "Pen", 1, 5.0))))

        loaded = await store.load(1)

        assert loaded.order_state.quantity_of("PEN") == 1

    async def test_delete(self, store, profile):
        await store.save(1, Session.fresh(profile))

        assert await store.delete(1) is True
        assert await store.delete(1) is False
        assert await store.load(1) is None

    async def test_loaded_session_is_a_copy(self, store, profile):
        session = Session.fresh(profile)
        await store.save(1, session)
        session.history.append({"role": "user", "content": "not saved"})

        loaded = await store.load(1)

        assert loaded.history == []


async def test_unreadable_sql_session_is_discarded(seeded_db, profile):
    store = SqlSessionStore(seeded_db)
    await store.save(1, Session.fresh(profile))

    async with seeded_db.session() as db_session:
        await db_session.execute(
            update(UserSession).where(UserSession.user_id == 1).values(session_data={"history": []})
        )

    assert await store.load(1) is None


async def test_sessions_are_per_user(seeded_db, profile):
    store = SqlSessionStore(seeded_db)
    await store.save(1, Session(order_state=draft(profile, make_item("PEN", "Pen", 1, 5.0))))
    await store.save(2, Session(order_state=OrderState(customer_id=99)))

    assert (await store.load(1)).order_state.quantity_of("PEN") == 1
    assert (await store.load(2)).order_state.customer_id == 99

"""
Fulfillment tests.

Stock is shared between customers; a commit either writes the whole order
and decrements every line or writes nothing at all.
"""

import asyncio

from sqlalchemy import select

from orderdesk.core.catalog import CustomerDirectory
from orderdesk.core.orders.fulfillment import FulfillmentEngine
from orderdesk.core.orders.models import OrderState, OrderStatus
from orderdesk.db.models import Order, OrderLine

from tests.helpers import DEFAULT_PO, count_orders, draft, get_stock, make_item


class TestValidation:

    async def test_requires_items(self, seeded_db, profile):
        state = OrderState.fresh(profile)

        result = await FulfillmentEngine(seeded_db).finalize(state)

        assert not result.succeeded
        assert result.state is state
        assert result.reply == "Cannot finalize order. Shipping address and items are required."

    async def test_requires_address(self, seeded_db, profile):
        state = OrderState(customer_id=profile.customer_id, line_items=(make_item("PEN", "Pen", 1, 5.0),))

        result = await FulfillmentEngine(seeded_db).finalize(state)

        assert not result.succeeded
        assert await count_orders(seeded_db) == 0


class TestCommit:

    async def test_success_writes_order_and_decrements_stock(self, seeded_db, profile):
        state = draft(
            profile,
            make_item("WDG", "Widget", 2, 50.0),
            make_item("PEN", "Pen", 3, 5.0),
        )

        result = await FulfillmentEngine(seeded_db).finalize(state)

        assert result.succeeded
        assert result.reply == f"Order #{result.order_id} has been confirmed and is being processed."
        assert await get_stock(seeded_db, "WDG") == 98
        assert await get_stock(seeded_db, "PEN") == 7

        async with seeded_db.session() as session:
            order = (await session.execute(select(Order))).scalar_one()
            lines = (await session.execute(select(OrderLine))).scalars().all()

        assert order.id == result.order_id
        assert order.purchase_order_number == DEFAULT_PO
        assert order.status == OrderStatus.CONFIRMED.value
        assert sorted((line.quantity, line.unit_price) for line in lines) == [(2, 50.0), (3, 5.0)]

    async def test_success_resets_state(self, seeded_db, profile):
        state = draft(profile, make_item("PEN", "Pen", 1, 5.0))

        result = await FulfillmentEngine(seeded_db).finalize(state)

        assert result.state.is_empty
        assert result.state.purchase_order_number is None
        assert result.state.shipping_address == state.shipping_address
        assert result.state.status == OrderStatus.CONFIRMED

    async def test_insufficient_stock_rolls_back_everything(self, seeded_db, profile):
        state = draft(
            profile,
            make_item("WDG", "Widget", 5, 50.0),
            make_item("PEN", "Pen", 11, 5.0),
        )

        result = await FulfillmentEngine(seeded_db).finalize(state)

        assert not result.succeeded
        assert result.state is state
        assert result.reply == (
            "There was an error processing your order: Insufficient stock for Pen. Please try again."
        )
        assert await get_stock(seeded_db, "WDG") == 100
        assert await get_stock(seeded_db, "PEN") == 10
        assert await count_orders(seeded_db) == 0

    async def test_removed_product(self, seeded_db, profile):
        state = draft(profile, make_item("GONE", "Discontinued Clip", 1, 1.0))

        result = await FulfillmentEngine(seeded_db).finalize(state)

        assert not result.succeeded
        assert "Discontinued Clip is no longer available" in result.reply
        assert await count_orders(seeded_db) == 0

    async def test_exact_stock_can_be_ordered(self, seeded_db, profile):
        result = await FulfillmentEngine(seeded_db).finalize(draft(profile, make_item("PEN", "Pen", 10, 5.0)))

        assert result.succeeded
        assert await get_stock(seeded_db, "PEN") == 0


class TestSharedStock:

    async def _second_customer(self, seeded_db):
        return await CustomerDirectory(seeded_db).get_or_register(2002, name="Second Buyer")

    async def test_sequential_sessions_cannot_oversell(self, seeded_db, profile):
        other = await self._second_customer(seeded_db)
        engine = FulfillmentEngine(seeded_db)

        first = await engine.finalize(draft(profile, make_item("PEN", "Pen", 7, 5.0)))
        second_state = OrderState(
            customer_id=other.customer_id,
            shipping_address="Warehouse 4, Nashik",
            line_items=(make_item("PEN", "Pen", 7, 5.0),),
        )
        second = await engine.finalize(second_state)

        assert first.succeeded
        assert not second.succeeded
        assert "Insufficient stock for Pen" in second.reply
        assert second.state is second_state
        assert await get_stock(seeded_db, "PEN") == 3

    async def test_concurrent_finalize_never_goes_negative(self, seeded_db, profile):
        other = await self._second_customer(seeded_db)
        engine = FulfillmentEngine(seeded_db)
        states = [
            draft(profile, make_item("PEN", "Pen", 6, 5.0)),
            OrderState(
                customer_id=other.customer_id,
                shipping_address="Warehouse 4, Nashik",
                line_items=(make_item("PEN", "Pen", 6, 5.0),),
            ),
        ]

        results = await asyncio.gather(*(engine.finalize(s) for s in states))

        assert sum(r.succeeded for r in results) == 1
        assert await get_stock(seeded_db, "PEN") == 4
        assert await count_orders(seeded_db) == 1
        failed = next(r for r in results if not r.succeeded)
        assert "Insufficient stock for Pen" in failed.reply
        assert failed.state.quantity_of("PEN") == 6

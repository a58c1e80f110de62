"""
Order fulfillment - commits a finished order against shared inventory.

The whole commit runs in one database transaction. Each product row is locked
with SELECT ... FOR UPDATE before its stock is read, so two customers ordering
the same product serialize on that row and can never both take the last
units. Rows are locked in product id order to keep concurrent commits
touching several shared products from deadlocking.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError

from orderdesk.core.orders.errors import (
    FulfillmentError,
    InsufficientStockError,
    ProductUnavailableError,
)
from orderdesk.core.orders.models import OrderState, OrderStatus
from orderdesk.core.orders.validators import FinalizeValidator
from orderdesk.db.database import Database, db as default_db
from orderdesk.db.models import Order, OrderLine, Product

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FulfillmentResult:
    """Outcome of a finalize attempt."""
    state: OrderState
    reply: str
    order_id: Optional[int] = None

    @property
    def succeeded(self) -> bool:
        return self.order_id is not None


class FulfillmentEngine:
    """Turns an order state into a confirmed order and decremented stock."""

    def __init__(self, database: Database | None = None):
        self.db = database or default_db

    async def finalize(self, state: OrderState) -> FulfillmentResult:
        """
        Commit `state` as a confirmed order.

        On success the returned state is reset (no items, no PO number). On
        any failure nothing is written and `state` itself is returned along
        with the reason.
        """
        is_valid, error = FinalizeValidator.validate(state)
        if not is_valid:
            return FulfillmentResult(state=state, reply=error)

        try:
            order_id = await self._commit(state)
        except FulfillmentError as e:
            logger.warning(f"Order for customer {state.customer_id} rejected: {e}")
            return FulfillmentResult(state=state, reply=self._failure_reply(e))
        except SQLAlchemyError as e:
            logger.error(f"Order commit failed for customer {state.customer_id}: {e}", exc_info=True)
            return FulfillmentResult(state=state, reply=self._failure_reply(e))

        logger.info(
            f"Order #{order_id} confirmed for customer {state.customer_id}: "
            f"{len(state.line_items)} line(s), total {state.total_price:.2f}"
        )
        return FulfillmentResult(
            state=state.reset_after_commit(),
            reply=f"Order #{order_id} has been confirmed and is being processed.",
            order_id=order_id,
        )

    async def _commit(self, state: OrderState) -> int:
        async with self.db.transaction() as session:
            order = Order(
                customer_id=state.customer_id,
                purchase_order_number=state.purchase_order_number,
                shipping_address=state.shipping_address,
                status=OrderStatus.CONFIRMED.value,
            )
            session.add(order)
            await session.flush()

            for item in sorted(state.line_items, key=lambda i: i.product_id):
                product = (
                    await session.execute(
                        select(Product)
                        .where(Product.sku == item.product_id)
                        .with_for_update()
                        .execution_options(populate_existing=True)
                    )
                ).scalar_one_or_none()

                if product is None:
                    raise ProductUnavailableError(item.display_name)

                if product.stock < item.quantity:
                    raise InsufficientStockError(item.display_name, product.stock, item.quantity)

                session.add(OrderLine(
                    order_id=order.id,
                    product_id=product.id,
                    quantity=item.quantity,
                    unit_price=item.unit_price,
                ))
                await session.execute(
                    update(Product)
                    .where(Product.id == product.id)
                    .values(stock=Product.stock - item.quantity)
                )

            return order.id

    @staticmethod
    def _failure_reply(error: Exception) -> str:
        reason = str(error) if isinstance(error, FulfillmentError) else "the order could not be saved"
        return f"There was an error processing your order: {reason}. Please try again."

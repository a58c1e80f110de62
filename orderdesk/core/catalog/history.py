"""
Purchase history lookups used to personalise greetings and "usual" orders.
"""

import logging
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import func, select

from orderdesk.config import settings
from orderdesk.core.orders.models import LineItem, ProductMatch
from orderdesk.db.database import Database, db as default_db
from orderdesk.db.models import Order, OrderLine, Product, UsualOrderItem

logger = logging.getLogger(__name__)


class PurchaseHistory:
    """Read-only queries over a customer's past and template orders."""

    def __init__(self, database: Database | None = None):
        self.db = database or default_db

    async def most_frequent(
        self,
        customer_id: int,
        window_days: int | None = None,
    ) -> Optional[ProductMatch]:
        """
        Product that appears in the most orders of this customer within the window.

        Ties are broken by product name so the answer is stable.
        """
        window_days = window_days or settings.purchase_history_window_days
        since = datetime.utcnow() - timedelta(days=window_days)

        order_count = func.count(OrderLine.id).label("order_count")
        query = (
            select(Product, order_count)
            .join(OrderLine, OrderLine.product_id == Product.id)
            .join(Order, Order.id == OrderLine.order_id)
            .where(Order.customer_id == customer_id, Order.created_at >= since)
            .group_by(Product.id)
            .order_by(order_count.desc(), Product.name)
            .limit(1)
        )

        async with self.db.session() as session:
            row = (await session.execute(query)).first()

        if row is None:
            return None

        product = row[0]
        return ProductMatch(
            product_id=product.sku,
            name=product.name,
            stock=product.stock,
            price=product.price,
        )

    async def items_for(self, customer_id: int) -> list[LineItem]:
        """Line items of the customer's saved "usual" order, priced from the catalog."""
        query = (
            select(UsualOrderItem, Product)
            .join(Product, Product.id == UsualOrderItem.product_id)
            .where(UsualOrderItem.customer_id == customer_id, UsualOrderItem.quantity > 0)
            .order_by(UsualOrderItem.id)
        )

        async with self.db.session() as session:
            rows = (await session.execute(query)).all()

        return [
            LineItem(
                product_id=product.sku,
                display_name=product.name,
                quantity=usual.quantity,
                unit_price=product.price,
            )
            for usual, product in rows
        ]

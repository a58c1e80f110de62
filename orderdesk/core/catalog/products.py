"""
Product catalog - resolves free-text product phrases to catalog records.
"""

import logging

from sqlalchemy import and_, func, select

from orderdesk.core.orders.models import ProductMatch
from orderdesk.db.database import Database, db as default_db
from orderdesk.db.models import Product

logger = logging.getLogger(__name__)


def _like_pattern(token: str) -> str:
    escaped = token.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


class ProductCatalog:
    """Looks up products by name."""

    def __init__(self, database: Database | None = None):
        self.db = database or default_db

    async def find(self, phrase: str) -> list[ProductMatch]:
        """
        Find products whose name contains every word of `phrase`.

        Matching is case-insensitive and token-wise: "smart watch" matches
        "Smart Watch Pro" but not "Sport Watch". Returns an empty list when
        nothing matches.
        """
        tokens = [token.lower() for token in (phrase or "").split()]
        if not tokens:
            return []

        conditions = [
            func.lower(Product.name).like(_like_pattern(token), escape="\\")
            for token in tokens
        ]
        query = select(Product).where(and_(*conditions)).order_by(Product.name)

        async with self.db.session() as session:
            products = (await session.execute(query)).scalars().all()

        logger.debug(f"Catalog lookup {phrase!r} -> {len(products)} match(es)")

        return [
            ProductMatch(
                product_id=product.sku,
                name=product.name,
                stock=product.stock,
                price=product.price,
            )
            for product in products
        ]

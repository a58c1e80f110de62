"""
Customer directory - maps transport user ids to customer profiles.
"""

import logging
from typing import Optional

from sqlalchemy import select

from orderdesk.core.orders.errors import CustomerNotFoundError
from orderdesk.core.orders.models import CustomerProfile
from orderdesk.db.database import Database, db as default_db
from orderdesk.db.models import Customer

logger = logging.getLogger(__name__)


def _to_profile(customer: Customer) -> CustomerProfile:
    return CustomerProfile(
        customer_id=customer.id,
        name=customer.name,
        default_shipping_address=customer.default_shipping_address,
        default_po_number=customer.default_po_number,
    )


class CustomerDirectory:
    """Loads and registers customers."""

    def __init__(self, database: Database | None = None):
        self.db = database or default_db

    async def load(self, user_id: int) -> CustomerProfile:
        """Get the profile for a user; raises CustomerNotFoundError if unknown."""
        async with self.db.session() as session:
            customer = (
                await session.execute(select(Customer).where(Customer.telegram_id == user_id))
            ).scalar_one_or_none()

        if customer is None:
            raise CustomerNotFoundError(user_id)
        return _to_profile(customer)

    async def get_or_register(
        self,
        user_id: int,
        name: Optional[str] = None,
        username: Optional[str] = None,
    ) -> CustomerProfile:
        """Get the profile for a user, creating a bare customer record on first contact."""
        async with self.db.session() as session:
            customer = (
                await session.execute(select(Customer).where(Customer.telegram_id == user_id))
            ).scalar_one_or_none()

            if customer is None:
                customer = Customer(
                    telegram_id=user_id,
                    telegram_username=username,
                    name=name,
                )
                session.add(customer)
                await session.flush()
                logger.info(f"Registered new customer {customer.id} for user {user_id}")

            return _to_profile(customer)

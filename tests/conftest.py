"""
Shared fixtures.

Each test gets its own SQLite file under tmp_path with a small seeded
catalog and one registered customer.
"""

import pytest

from orderdesk.core.catalog import CustomerDirectory, ProductCatalog, PurchaseHistory
from orderdesk.core.orders.fulfillment import FulfillmentEngine
from orderdesk.core.orders.models import CustomerProfile
from orderdesk.core.orders.state_machine import OrderStateMachine
from orderdesk.db.database import Database
from orderdesk.db.models import Customer, Product, UsualOrderItem

from tests.helpers import CUSTOMER_USER_ID, DEFAULT_ADDRESS, DEFAULT_PO, PRODUCTS


@pytest.fixture
async def database(tmp_path):
    database = Database(f"sqlite+aiosqlite:///{tmp_path / 'orderdesk_test.db'}")
    await database.init()
    yield database
    await database.close()


@pytest.fixture
async def seeded_db(database):
    """Database with the test catalog and one customer whose usual order is 2 widgets."""
    async with database.session() as session:
        products = {}
        for sku, name, stock, price in PRODUCTS:
            product = Product(sku=sku, name=name, stock=stock, price=price)
            session.add(product)
            products[sku] = product

        customer = Customer(
            telegram_id=CUSTOMER_USER_ID,
            name="Priya",
            default_shipping_address=DEFAULT_ADDRESS,
            default_po_number=DEFAULT_PO,
        )
        session.add(customer)
        await session.flush()

        session.add(UsualOrderItem(
            customer_id=customer.id,
            product_id=products["WDG"].id,
            quantity=2,
        ))

    return database


@pytest.fixture
async def profile(seeded_db) -> CustomerProfile:
    return await CustomerDirectory(seeded_db).load(CUSTOMER_USER_ID)


@pytest.fixture
def machine(seeded_db) -> OrderStateMachine:
    return OrderStateMachine(
        catalog=ProductCatalog(seeded_db),
        history=PurchaseHistory(seeded_db),
        fulfillment=FulfillmentEngine(seeded_db),
    )

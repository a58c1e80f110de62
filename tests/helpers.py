"""
Test doubles and small builders.
"""

from collections import deque
from typing import Any

from sqlalchemy import func, select

from orderdesk.core.orders.intent import Intent, Unknown
from orderdesk.core.orders.models import CustomerProfile, LineItem, OrderState
from orderdesk.db.database import Database
from orderdesk.db.models import Order, Product
from orderdesk.integrations.llm.base import BaseLLM, LLMError, LLMResponse


CUSTOMER_USER_ID = 1001
DEFAULT_ADDRESS = "12 Park Street, Pune"
DEFAULT_PO = "PO-1001"

PRODUCTS = [
    # sku, name, stock, price
    ("PEN", "Pen", 10, 5.0),
    ("STP", "Stapler", 20, 150.0),
    ("WCH-SMT", "Smart Watch", 5, 4999.0),
    ("WCH-SPT", "Sport Watch", 5, 2499.0),
    ("WDG", "Widget", 100, 50.0),
]


class FakeLLM(BaseLLM):
    """LLM double returning scripted contents (or raising scripted errors)."""

    def __init__(self, *contents: Any):
        self.contents = deque(contents)
        self.prompts: list[str] = []

    async def generate(self, prompt, system_prompt=None, temperature=0.1, max_tokens=512):
        self.prompts.append(prompt)
        content = self.contents.popleft()
        if isinstance(content, Exception):
            raise content
        return LLMResponse(content=content)

    @property
    def name(self) -> str:
        return "fake"


class FailingLLM(BaseLLM):
    async def generate(self, prompt, system_prompt=None, temperature=0.1, max_tokens=512):
        raise LLMError("connection refused")

    @property
    def name(self) -> str:
        return "failing"


class ScriptedClassifier:
    """Classifier double that returns queued intents in order."""

    def __init__(self, *intents: Intent):
        self.intents = deque(intents)
        self.calls: list[tuple[str, list]] = []

    def push(self, *intents: Intent) -> None:
        self.intents.extend(intents)

    async def classify(self, message, profile, order_state, history) -> Intent:
        self.calls.append((message, list(history)))
        return self.intents.popleft() if self.intents else Unknown()


async def get_stock(database: Database, sku: str) -> int:
    async with database.session() as session:
        return (await session.execute(select(Product.stock).where(Product.sku == sku))).scalar_one()


async def count_orders(database: Database) -> int:
    async with database.session() as session:
        return (await session.execute(select(func.count(Order.id)))).scalar_one()


def make_item(product_id: str, name: str, quantity: int, price: float) -> LineItem:
    return LineItem(product_id=product_id, display_name=name, quantity=quantity, unit_price=price)


def draft(profile: CustomerProfile, *items: LineItem) -> OrderState:
    return OrderState.fresh(profile).with_items(items)

"""
Order models for Order Desk.

All values here are immutable: every change produces a new instance, so a
failed operation can always hand back the state it started from.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Iterable, Optional

from orderdesk.config import settings


class OrderStatus(Enum):
    """Order status enum."""
    DRAFT = "draft"              # Being assembled in the chat
    CONFIRMED = "confirmed"      # Committed; the aggregate has been reset


@dataclass(frozen=True)
class CustomerProfile:
    """Ordering party as seen by the conversation."""
    customer_id: int
    name: Optional[str] = None
    default_shipping_address: Optional[str] = None
    default_po_number: Optional[str] = None

    @property
    def display_name(self) -> str:
        return self.name or "there"

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "customer_id": self.customer_id,
            "name": self.name,
            "default_shipping_address": self.default_shipping_address,
            "default_po_number": self.default_po_number,
        }


@dataclass(frozen=True)
class ProductMatch:
    """Catalog record returned by a product lookup."""
    product_id: str
    name: str
    stock: int
    price: float


@dataclass(frozen=True)
class LineItem:
    """Single product line in an order."""
    product_id: str
    display_name: str
    quantity: int
    unit_price: float

    def __post_init__(self) -> None:
        if self.quantity < 1:
            raise ValueError(f"Line item quantity must be at least 1, got {self.quantity}")

    @property
    def total_price(self) -> float:
        """Calculate total price for this line."""
        return self.quantity * self.unit_price

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "product_id": self.product_id,
            "display_name": self.display_name,
            "quantity": self.quantity,
            "unit_price": self.unit_price,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "LineItem":
        return cls(
            product_id=str(data["product_id"]),
            display_name=data["display_name"],
            quantity=int(data["quantity"]),
            unit_price=float(data["unit_price"]),
        )


@dataclass(frozen=True)
class OrderState:
    """The single in-progress order of one customer."""
    customer_id: int
    purchase_order_number: Optional[str] = None
    shipping_address: Optional[str] = None
    line_items: tuple[LineItem, ...] = field(default_factory=tuple)
    status: OrderStatus = OrderStatus.DRAFT

    def __post_init__(self) -> None:
        product_ids = [item.product_id for item in self.line_items]
        if len(product_ids) != len(set(product_ids)):
            raise ValueError("Line items must not repeat a product")
        if self.status == OrderStatus.CONFIRMED and self.line_items:
            raise ValueError("A confirmed order state must not carry line items")

    @classmethod
    def fresh(cls, profile: CustomerProfile) -> "OrderState":
        """New draft seeded with the customer's default delivery details."""
        return cls(
            customer_id=profile.customer_id,
            purchase_order_number=profile.default_po_number,
            shipping_address=profile.default_shipping_address,
        )

    @property
    def is_empty(self) -> bool:
        return not self.line_items

    @property
    def total_quantity(self) -> int:
        """Total number of units."""
        return sum(item.quantity for item in self.line_items)

    @property
    def total_price(self) -> float:
        """Total order price."""
        return sum(item.total_price for item in self.line_items)

    def find_item(self, product_id: str) -> Optional[LineItem]:
        for item in self.line_items:
            if item.product_id == product_id:
                return item
        return None

    def quantity_of(self, product_id: str) -> int:
        item = self.find_item(product_id)
        return item.quantity if item else 0

    def with_items(self, items: Iterable[LineItem]) -> "OrderState":
        """Replace all line items; a non-empty order is a draft again."""
        items = tuple(items)
        status = OrderStatus.DRAFT if items else self.status
        return replace(self, line_items=items, status=status)

    def with_delivery(
        self,
        shipping_address: Optional[str],
        purchase_order_number: Optional[str],
    ) -> "OrderState":
        return replace(
            self,
            shipping_address=shipping_address,
            purchase_order_number=purchase_order_number,
        )

    def with_address(self, shipping_address: str) -> "OrderState":
        return replace(self, shipping_address=shipping_address)

    def add_item(self, product: ProductMatch, quantity: int) -> "OrderState":
        """Merge `quantity` units of `product` into the order."""
        items = list(self.line_items)
        for i, existing in enumerate(items):
            if existing.product_id == product.product_id:
                items[i] = replace(existing, quantity=existing.quantity + quantity)
                return self.with_items(items)
        items.append(LineItem(
            product_id=product.product_id,
            display_name=product.name,
            quantity=quantity,
            unit_price=product.price,
        ))
        return self.with_items(items)

    def remove_item(self, product_id: str, quantity: Optional[int] = None) -> "OrderState":
        """
        Take `quantity` units of a product out of the order.

        The line disappears once it reaches zero; `None` removes the whole line.
        """
        items = []
        for existing in self.line_items:
            if existing.product_id != product_id:
                items.append(existing)
                continue
            remaining = 0 if quantity is None else existing.quantity - quantity
            if remaining > 0:
                items.append(replace(existing, quantity=remaining))
        return replace(self, line_items=tuple(items))

    def reset_after_commit(self) -> "OrderState":
        """State handed back once the order has been committed."""
        return replace(
            self,
            line_items=(),
            purchase_order_number=None,
            status=OrderStatus.CONFIRMED,
        )

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "customer_id": self.customer_id,
            "purchase_order_number": self.purchase_order_number,
            "shipping_address": self.shipping_address,
            "line_items": [item.to_dict() for item in self.line_items],
            "status": self.status.value,
            "total_price": self.total_price,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "OrderState":
        return cls(
            customer_id=int(data["customer_id"]),
            purchase_order_number=data.get("purchase_order_number"),
            shipping_address=data.get("shipping_address"),
            line_items=tuple(LineItem.from_dict(item) for item in data.get("line_items", [])),
            status=OrderStatus(data.get("status", OrderStatus.DRAFT.value)),
        )

    def format_items_summary(self) -> str:
        """Format items as text summary."""
        currency = settings.currency_symbol
        return "\n".join(
            f"  - {item.quantity} x {item.display_name} @ {currency}{item.unit_price:.2f}"
            for item in self.line_items
        )


@dataclass
class Session:
    """Everything stored for one user between turns."""
    order_state: OrderState
    history: list[dict[str, str]] = field(default_factory=list)

    @classmethod
    def fresh(cls, profile: CustomerProfile) -> "Session":
        return cls(order_state=OrderState.fresh(profile))

    def to_dict(self) -> dict[str, Any]:
        return {
            "order_state": self.order_state.to_dict(),
            "history": list(self.history),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Session":
        return cls(
            order_state=OrderState.from_dict(data["order_state"]),
            history=list(data.get("history", [])),
        )

"""
SQLAlchemy models for Order Desk.
Catalog with stock, customers, confirmed orders and per-user chat sessions.
"""

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import (
    JSON,
    BigInteger,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
    Index,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


# =============================================================================
# CATALOG
# =============================================================================


class Product(Base):
    """Product in the catalog. `stock` is only written by order finalization."""

    __tablename__ = "products"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    sku: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    stock: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    price: Mapped[float] = mapped_column(Float, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    __table_args__ = (Index("ix_products_name", "name"),)

    def __repr__(self) -> str:
        return f"<Product(sku='{self.sku}', name='{self.name}', stock={self.stock})>"


# =============================================================================
# CUSTOMERS
# =============================================================================


class Customer(Base):
    """Ordering party with its default delivery details."""

    __tablename__ = "customers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    telegram_id: Mapped[int] = mapped_column(BigInteger, unique=True, nullable=False)
    telegram_username: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    company_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    default_shipping_address: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    default_po_number: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    # Relationships
    orders: Mapped[list["Order"]] = relationship(back_populates="customer")
    usual_items: Mapped[list["UsualOrderItem"]] = relationship(back_populates="customer")

    def __repr__(self) -> str:
        return f"<Customer(id={self.id}, telegram_id={self.telegram_id})>"


class UsualOrderItem(Base):
    """Template line of a customer's "usual" order."""

    __tablename__ = "usual_order_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    customer_id: Mapped[int] = mapped_column(ForeignKey("customers.id"), nullable=False)
    product_id: Mapped[int] = mapped_column(ForeignKey("products.id"), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)

    # Relationships
    customer: Mapped["Customer"] = relationship(back_populates="usual_items")
    product: Mapped["Product"] = relationship()

    __table_args__ = (
        UniqueConstraint("customer_id", "product_id", name="uq_usual_customer_product"),
    )

    def __repr__(self) -> str:
        return f"<UsualOrderItem(customer={self.customer_id}, product={self.product_id})>"


# =============================================================================
# ORDERS
# =============================================================================


class Order(Base):
    """Confirmed order header."""

    __tablename__ = "orders"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    customer_id: Mapped[int] = mapped_column(ForeignKey("customers.id"), nullable=False)
    purchase_order_number: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    shipping_address: Mapped[str] = mapped_column(String(500), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    # Relationships
    customer: Mapped["Customer"] = relationship(back_populates="orders")
    lines: Mapped[list["OrderLine"]] = relationship(back_populates="order")

    __table_args__ = (Index("ix_orders_customer_created", "customer_id", "created_at"),)

    def __repr__(self) -> str:
        return f"<Order(id={self.id}, customer={self.customer_id}, status='{self.status}')>"


class OrderLine(Base):
    """Single product line of a confirmed order."""

    __tablename__ = "order_lines"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    order_id: Mapped[int] = mapped_column(ForeignKey("orders.id"), nullable=False)
    product_id: Mapped[int] = mapped_column(ForeignKey("products.id"), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    unit_price: Mapped[float] = mapped_column(Float, nullable=False)

    # Relationships
    order: Mapped["Order"] = relationship(back_populates="lines")
    product: Mapped["Product"] = relationship()

    __table_args__ = (Index("ix_order_lines_order", "order_id"),)

    def __repr__(self) -> str:
        return f"<OrderLine(order={self.order_id}, product={self.product_id}, qty={self.quantity})>"


# =============================================================================
# CHAT SESSIONS
# =============================================================================


class UserSession(Base):
    """Serialized order state and conversation history, one row per user."""

    __tablename__ = "user_sessions"

    user_id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    session_data: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    def __repr__(self) -> str:
        return f"<UserSession(user_id={self.user_id})>"

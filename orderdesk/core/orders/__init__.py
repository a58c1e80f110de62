"""
Orders module for Order Desk.
Order state, intents, validation and fulfillment errors.
"""

from orderdesk.core.orders.models import (
    CustomerProfile,
    LineItem,
    OrderState,
    OrderStatus,
    ProductMatch,
    Session,
)
from orderdesk.core.orders.intent import (
    AddItems,
    AnswerQuestion,
    FinalizeOrder,
    Greet,
    Intent,
    IntentKind,
    ItemAction,
    ItemRequest,
    MultiAction,
    NegativeResponse,
    RemoveItems,
    RequestConfirmation,
    SetDeliveryLocation,
    StartOrder,
    Unknown,
    parse_intent,
)
from orderdesk.core.orders.errors import (
    CustomerNotFoundError,
    FulfillmentError,
    InsufficientStockError,
    ProductUnavailableError,
)
from orderdesk.core.orders.validators import (
    AddressValidator,
    FinalizeValidator,
    QuantityValidator,
)

__all__ = [
    # Models
    "CustomerProfile",
    "LineItem",
    "OrderState",
    "OrderStatus",
    "ProductMatch",
    "Session",
    # Intents
    "AddItems",
    "AnswerQuestion",
    "FinalizeOrder",
    "Greet",
    "Intent",
    "IntentKind",
    "ItemAction",
    "ItemRequest",
    "MultiAction",
    "NegativeResponse",
    "RemoveItems",
    "RequestConfirmation",
    "SetDeliveryLocation",
    "StartOrder",
    "Unknown",
    "parse_intent",
    # Errors
    "CustomerNotFoundError",
    "FulfillmentError",
    "InsufficientStockError",
    "ProductUnavailableError",
    # Validators
    "AddressValidator",
    "FinalizeValidator",
    "QuantityValidator",
]

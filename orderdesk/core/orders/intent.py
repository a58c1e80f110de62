"""
Intent types produced by the classifier.

The classifier's raw JSON is validated once, here, and turned into one of a
closed set of intent classes. Anything that cannot be understood becomes
`Unknown`, so downstream code never sees an unvalidated string.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

logger = logging.getLogger(__name__)


class IntentKind(str, Enum):
    """Intent names understood by the classifier prompt."""
    START_ORDER = "start_order"
    ADD_ITEM = "add_item"
    REMOVE_ITEM = "remove_item"
    MULTI_ACTION = "multi_action"
    SET_DELIVERY_LOCATION = "set_delivery_location"
    REQUEST_CONFIRMATION = "request_confirmation"
    FINALIZE_ORDER = "finalize_order"
    ANSWER_QUESTION = "answer_question"
    GREET = "greet"
    NEGATIVE_RESPONSE = "negative_response"
    OTHER = "other"


class ItemAction(str, Enum):
    ADD = "add"
    REMOVE = "remove"


# =============================================================================
# RAW CLASSIFIER OUTPUT
# =============================================================================


class RawItem(BaseModel):
    """One product entity as the model writes it."""

    model_config = ConfigDict(extra="ignore")

    product_phrase: str = Field(
        validation_alias=AliasChoices("productPhrase", "productName", "product_phrase", "name")
    )
    quantity: Optional[int] = None
    action: Optional[str] = None

    @field_validator("product_phrase")
    @classmethod
    def _strip_phrase(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("product phrase must not be empty")
        return value

    @field_validator("action")
    @classmethod
    def _normalize_action(cls, value: Optional[str]) -> Optional[str]:
        return value.strip().lower() if value else None


class RawEntities(BaseModel):
    model_config = ConfigDict(extra="ignore")

    items: list[Any] = Field(default_factory=list)
    address: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("shippingAddress", "location", "address"),
    )


class RawIntent(BaseModel):
    """Top-level JSON object returned by the classifier."""

    model_config = ConfigDict(extra="ignore")

    intent: str
    entities: Optional[RawEntities] = None
    reply: Optional[str] = None


# =============================================================================
# INTENT VARIANTS
# =============================================================================


@dataclass(frozen=True)
class ItemRequest:
    """A product the user asked to add or remove."""
    product_phrase: str
    quantity: Optional[int] = None
    action: Optional[ItemAction] = None


@dataclass(frozen=True)
class BaseIntent:
    reply: Optional[str] = None


@dataclass(frozen=True)
class StartOrder(BaseIntent):
    pass


@dataclass(frozen=True)
class AddItems(BaseIntent):
    items: tuple[ItemRequest, ...] = ()


@dataclass(frozen=True)
class RemoveItems(BaseIntent):
    items: tuple[ItemRequest, ...] = ()


@dataclass(frozen=True)
class MultiAction(BaseIntent):
    items: tuple[ItemRequest, ...] = ()


@dataclass(frozen=True)
class SetDeliveryLocation(BaseIntent):
    address: Optional[str] = None


@dataclass(frozen=True)
class RequestConfirmation(BaseIntent):
    pass


@dataclass(frozen=True)
class FinalizeOrder(BaseIntent):
    pass


@dataclass(frozen=True)
class AnswerQuestion(BaseIntent):
    pass


@dataclass(frozen=True)
class Greet(BaseIntent):
    pass


@dataclass(frozen=True)
class NegativeResponse(BaseIntent):
    pass


@dataclass(frozen=True)
class Unknown(BaseIntent):
    raw_kind: str = IntentKind.OTHER.value


Intent = Union[
    StartOrder,
    AddItems,
    RemoveItems,
    MultiAction,
    SetDeliveryLocation,
    RequestConfirmation,
    FinalizeOrder,
    AnswerQuestion,
    Greet,
    NegativeResponse,
    Unknown,
]

INTENT_TYPES: tuple[type, ...] = Intent.__args__

_SIMPLE_INTENTS = {
    IntentKind.START_ORDER: StartOrder,
    IntentKind.REQUEST_CONFIRMATION: RequestConfirmation,
    IntentKind.FINALIZE_ORDER: FinalizeOrder,
    IntentKind.ANSWER_QUESTION: AnswerQuestion,
    IntentKind.GREET: Greet,
    IntentKind.NEGATIVE_RESPONSE: NegativeResponse,
}

_ITEM_INTENTS = {
    IntentKind.ADD_ITEM: AddItems,
    IntentKind.REMOVE_ITEM: RemoveItems,
    IntentKind.MULTI_ACTION: MultiAction,
}


def _to_item_request(raw: RawItem) -> ItemRequest:
    action = None
    if raw.action:
        try:
            action = ItemAction(raw.action)
        except ValueError:
            logger.warning(f"Ignoring unknown item action: {raw.action!r}")
    return ItemRequest(
        product_phrase=raw.product_phrase,
        quantity=raw.quantity,
        action=action,
    )


def _parse_items(entries: list[Any]) -> tuple[ItemRequest, ...]:
    """Validate item entities one by one; an unreadable entry is dropped, not the batch."""
    requests = []
    for position, entry in enumerate(entries):
        try:
            raw = RawItem.model_validate(entry)
        except ValidationError as e:
            logger.warning(f"Skipping unreadable item entity #{position}: {e}")
            continue
        requests.append(_to_item_request(raw))
    return tuple(requests)


def to_intent(raw: RawIntent) -> Intent:
    """Turn validated classifier output into an intent variant."""
    reply = raw.reply.strip() if raw.reply and raw.reply.strip() else None

    try:
        kind = IntentKind(raw.intent.strip().lower())
    except ValueError:
        logger.info(f"Unrecognized intent from classifier: {raw.intent!r}")
        return Unknown(reply=reply, raw_kind=raw.intent)

    entities = raw.entities or RawEntities()

    if kind in _ITEM_INTENTS:
        items = _parse_items(entities.items)
        return _ITEM_INTENTS[kind](reply=reply, items=items)

    if kind == IntentKind.SET_DELIVERY_LOCATION:
        address = entities.address.strip() if entities.address else None
        return SetDeliveryLocation(reply=reply, address=address or None)

    if kind in _SIMPLE_INTENTS:
        return _SIMPLE_INTENTS[kind](reply=reply)

    return Unknown(reply=reply, raw_kind=kind.value)


def parse_intent(data: Any, fallback_reply: Optional[str] = None) -> Intent:
    """
    Validate a decoded JSON value and convert it to an intent.

    Returns `Unknown(reply=fallback_reply)` when the value does not have the
    expected shape.
    """
    try:
        raw = RawIntent.model_validate(data)
    except ValidationError as e:
        logger.warning(f"Classifier output failed validation: {e}")
        return Unknown(reply=fallback_reply)
    return to_intent(raw)

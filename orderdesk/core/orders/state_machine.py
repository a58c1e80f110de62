"""
Order state machine - applies a classified intent to the current order.

Every handler receives the current `OrderState` and returns a new one; the
input is never modified. Catalog and purchase-history lookups are the only
side effects, apart from the fulfillment commit on `FinalizeOrder`.
"""

import logging
from typing import Awaitable, Callable, NamedTuple, Optional, Protocol

from orderdesk.config import settings
from orderdesk.core.orders.fulfillment import FulfillmentEngine, FulfillmentResult
from orderdesk.core.orders.intent import (
    INTENT_TYPES,
    AddItems,
    AnswerQuestion,
    FinalizeOrder,
    Greet,
    Intent,
    ItemAction,
    ItemRequest,
    MultiAction,
    NegativeResponse,
    RemoveItems,
    RequestConfirmation,
    SetDeliveryLocation,
    StartOrder,
    Unknown,
)
from orderdesk.core.orders.models import CustomerProfile, LineItem, OrderState, ProductMatch
from orderdesk.core.orders.validators import AddressValidator, QuantityValidator

logger = logging.getLogger(__name__)


CONFIRMATION_PROMPT = "Is this correct?"
EMPTY_ORDER_MESSAGE = "Your order is empty."
ADD_MORE_PROMPT = "Anything else to add?"
DEFAULT_REPLY = "I'm not sure how to handle that. Could you rephrase?"
EMPTY_REPLY_FALLBACK = "I'm sorry, I'm having trouble understanding. Could you please rephrase?"


class CatalogLookup(Protocol):
    async def find(self, phrase: str) -> list[ProductMatch]: ...


class HistoryLookup(Protocol):
    async def most_frequent(self, customer_id: int, window_days: int | None = None) -> Optional[ProductMatch]: ...

    async def items_for(self, customer_id: int) -> list[LineItem]: ...


class Finalizer(Protocol):
    async def finalize(self, state: OrderState) -> FulfillmentResult: ...


class MachineResult(NamedTuple):
    """What one intent did to the order."""
    state: OrderState
    reply: str
    clear_history: bool = False


class ItemOutcome(NamedTuple):
    state: OrderState
    messages: list[str]
    needs_clarification: bool = False


def _disambiguation(phrase: str, candidates: list[ProductMatch]) -> str:
    lines = [f'I found a few different types of "{phrase}". Which one did you mean?']
    lines.extend(f"- {product.name}" for product in candidates)
    return "\n".join(lines)


class OrderStateMachine:
    """Dispatches intents to per-intent order mutations."""

    def __init__(
        self,
        catalog: CatalogLookup,
        history: HistoryLookup,
        fulfillment: Finalizer | None = None,
    ):
        self.catalog = catalog
        self.history = history
        self.fulfillment = fulfillment or FulfillmentEngine()

        self._handlers: dict[type, Callable[..., Awaitable[MachineResult]]] = {
            StartOrder: self._start_order,
            AddItems: self._add_items,
            RemoveItems: self._remove_items,
            MultiAction: self._multi_action,
            SetDeliveryLocation: self._set_delivery_location,
            RequestConfirmation: self._request_confirmation,
            FinalizeOrder: self._finalize_order,
            AnswerQuestion: self._answer_question,
            Greet: self._greet,
            NegativeResponse: self._negative_response,
            Unknown: self._unknown,
        }
        missing = set(INTENT_TYPES) - set(self._handlers)
        if missing:
            raise TypeError(f"No handler for intents: {sorted(t.__name__ for t in missing)}")

    async def apply(
        self,
        intent: Intent,
        state: OrderState,
        profile: CustomerProfile,
    ) -> MachineResult:
        """
        Apply `intent` to `state`.

        Returns the new state and the reply for the customer. The reply is
        never empty.
        """
        handler = self._handlers[type(intent)]
        result = await handler(intent, state, profile)

        if not result.reply or not result.reply.strip():
            logger.error(
                f"Empty reply produced for {type(intent).__name__} "
                f"(customer {profile.customer_id}); intent={intent!r}"
            )
            result = result._replace(reply=EMPTY_REPLY_FALLBACK)

        return result

    # =========================================================================
    # ORDER SETUP
    # =========================================================================

    async def _start_order(self, intent: StartOrder, state: OrderState, profile: CustomerProfile) -> MachineResult:
        logger.info(f"Starting usual order for customer {profile.customer_id}")
        state = state.with_delivery(profile.default_shipping_address, profile.default_po_number)

        address = profile.default_shipping_address or "not set yet"
        lines = [f"I've started an order for your default office: {address}."]

        usual_items = await self.history.items_for(profile.customer_id)
        if usual_items:
            state = state.with_items(usual_items)
            lines.append("")
            lines.append("I've added your usual items to the cart:")
            lines.extend(f"- {item.quantity} x {item.display_name}" for item in usual_items)
            lines.append("")
            lines.append("Would you like to review the order or add more items?")
        else:
            lines.append("You don't have a pre-defined usual order. What would you like to add?")

        return MachineResult(state, "\n".join(lines))

    def _open_if_needed(self, state: OrderState, profile: CustomerProfile) -> OrderState:
        if state.is_empty and not state.shipping_address:
            logger.info(f"No active order for customer {profile.customer_id}; opening one with defaults")
            return state.with_delivery(profile.default_shipping_address, profile.default_po_number)
        return state

    # =========================================================================
    # ITEMS
    # =========================================================================

    async def _add_one(self, request: ItemRequest, state: OrderState) -> ItemOutcome:
        is_valid, quantity, error = QuantityValidator.validate(request.quantity)
        if not is_valid:
            return ItemOutcome(state, [f'{error} ("{request.product_phrase}")'])

        products = await self.catalog.find(request.product_phrase)

        if not products:
            return ItemOutcome(state, [f'Couldn\'t find a product matching "{request.product_phrase}".'])

        if len(products) > 1:
            return ItemOutcome(state, [_disambiguation(request.product_phrase, products)], True)

        product = products[0]
        in_order = state.quantity_of(product.product_id)
        if product.stock < in_order + quantity:
            message = f"Sorry, only {product.stock} units of {product.name} in stock."
            if in_order:
                message += f" You already have {in_order} in your order."
            return ItemOutcome(state, [message])

        return ItemOutcome(
            state.add_item(product, quantity),
            [f"Added {quantity} of {product.name}."],
        )

    async def _remove_one(self, request: ItemRequest, state: OrderState) -> ItemOutcome:
        if request.quantity is not None:
            is_valid, _, error = QuantityValidator.validate(request.quantity)
            if not is_valid:
                return ItemOutcome(state, [f'{error} ("{request.product_phrase}")'])

        products = await self.catalog.find(request.product_phrase)
        if not products:
            return ItemOutcome(
                state,
                [f'I couldn\'t find a product matching "{request.product_phrase}" in your order.'],
            )

        in_order = [p for p in products if state.find_item(p.product_id)]
        if not in_order:
            name = products[0].name if len(products) == 1 else f'"{request.product_phrase}"'
            return ItemOutcome(state, [f"{name} is not in your current order."])

        if len(in_order) > 1:
            return ItemOutcome(state, [_disambiguation(request.product_phrase, in_order)], True)

        product = in_order[0]
        current = state.quantity_of(product.product_id)
        removed = current if request.quantity is None else min(request.quantity, current)
        state = state.remove_item(product.product_id, request.quantity)

        messages = [f"Removed {removed} of {product.name}."]
        if state.find_item(product.product_id) is None:
            messages.append(f"{product.name} has been fully removed from your order.")
        return ItemOutcome(state, messages)

    async def _run_items(
        self,
        requests: tuple[ItemRequest, ...],
        state: OrderState,
        action_for: Callable[[ItemRequest], Optional[ItemAction]],
    ) -> ItemOutcome:
        """Run item requests in order, each one seeing the previous results."""
        messages: list[str] = []
        needs_clarification = False

        for request in requests:
            action = action_for(request)
            if action == ItemAction.ADD:
                outcome = await self._add_one(request, state)
            elif action == ItemAction.REMOVE:
                outcome = await self._remove_one(request, state)
            else:
                outcome = ItemOutcome(
                    state,
                    [f'I wasn\'t sure whether to add or remove "{request.product_phrase}".'],
                )
            state = outcome.state
            messages.extend(outcome.messages)
            needs_clarification = needs_clarification or outcome.needs_clarification

        return ItemOutcome(state, messages, needs_clarification)

    async def _add_items(self, intent: AddItems, state: OrderState, profile: CustomerProfile) -> MachineResult:
        if not intent.items:
            return MachineResult(state, "I understood you wanted to add items, but I couldn't process the details.")

        state = self._open_if_needed(state, profile)
        outcome = await self._run_items(intent.items, state, lambda _: ItemAction.ADD)

        reply = "\n".join(outcome.messages)
        if not outcome.needs_clarification:
            reply += f"\n\n{ADD_MORE_PROMPT}"
        return MachineResult(outcome.state, reply)

    async def _remove_items(self, intent: RemoveItems, state: OrderState, profile: CustomerProfile) -> MachineResult:
        if not intent.items:
            return MachineResult(state, "I understood you wanted to remove items, but I couldn't process the details.")

        outcome = await self._run_items(intent.items, state, lambda _: ItemAction.REMOVE)
        return MachineResult(outcome.state, "\n".join(outcome.messages))

    async def _multi_action(self, intent: MultiAction, state: OrderState, profile: CustomerProfile) -> MachineResult:
        if not intent.items:
            return MachineResult(state, "I understood you wanted to change several items, but I couldn't process the details.")

        if any(request.action == ItemAction.ADD for request in intent.items):
            state = self._open_if_needed(state, profile)

        logger.info(f"Processing {len(intent.items)} actions for customer {profile.customer_id}")
        outcome = await self._run_items(intent.items, state, lambda request: request.action)
        return MachineResult(outcome.state, "\n".join(outcome.messages))

    # =========================================================================
    # DELIVERY, REVIEW, COMMIT
    # =========================================================================

    async def _set_delivery_location(
        self, intent: SetDeliveryLocation, state: OrderState, profile: CustomerProfile
    ) -> MachineResult:
        is_valid, address, error = AddressValidator.validate(intent.address)
        if not is_valid:
            return MachineResult(state, error)

        state = state.with_address(address)
        return MachineResult(state, f"Okay, I've updated the shipping address to: {address}.")

    async def _request_confirmation(
        self, intent: RequestConfirmation, state: OrderState, profile: CustomerProfile
    ) -> MachineResult:
        return MachineResult(state, self.format_confirmation(state))

    @staticmethod
    def format_confirmation(state: OrderState) -> str:
        """Order summary ending with `CONFIRMATION_PROMPT`."""
        if state.is_empty:
            return EMPTY_ORDER_MESSAGE

        currency = settings.currency_symbol
        lines = [
            "Please confirm your order:",
            f"PO Number: {state.purchase_order_number or 'Not set'}",
            f"Shipping to: {state.shipping_address or 'Not set'}",
            "Items:",
            state.format_items_summary(),
            "",
            f"Order Total: {currency}{state.total_price:.2f}",
            "",
            CONFIRMATION_PROMPT,
        ]
        return "\n".join(lines)

    async def _finalize_order(self, intent: FinalizeOrder, state: OrderState, profile: CustomerProfile) -> MachineResult:
        result = await self.fulfillment.finalize(state)
        if not result.succeeded:
            return MachineResult(result.state, result.reply)

        return MachineResult(result.state, intent.reply or result.reply, clear_history=True)

    # =========================================================================
    # CONVERSATION ONLY
    # =========================================================================

    async def _answer_question(self, intent: AnswerQuestion, state: OrderState, profile: CustomerProfile) -> MachineResult:
        return MachineResult(state, intent.reply or DEFAULT_REPLY)

    async def _greet(self, intent: Greet, state: OrderState, profile: CustomerProfile) -> MachineResult:
        favourite = await self.history.most_frequent(profile.customer_id)
        if favourite:
            reply = (
                f"Welcome back, {profile.display_name}! I see you frequently order the "
                f'"{favourite.name}". Would you like to add it to a new order?'
            )
        else:
            reply = f"Hello {profile.display_name}! How can I help you today?"
        return MachineResult(state, reply)

    async def _negative_response(
        self, intent: NegativeResponse, state: OrderState, profile: CustomerProfile
    ) -> MachineResult:
        if not state.is_empty:
            return MachineResult(state, "Okay. Would you like to review your order?")
        return MachineResult(state, "Okay. Let me know what you need.")

    async def _unknown(self, intent: Unknown, state: OrderState, profile: CustomerProfile) -> MachineResult:
        return MachineResult(state, intent.reply or DEFAULT_REPLY)

"""
Validators for order data.
"""

from typing import Optional, Tuple

from orderdesk.core.orders.models import OrderState


class AddressValidator:
    """Validate delivery address."""

    MIN_LENGTH = 3
    MAX_LENGTH = 500

    @classmethod
    def validate(cls, address: Optional[str]) -> Tuple[bool, Optional[str], Optional[str]]:
        """
        Validate delivery address.

        Returns:
            Tuple of (is_valid, normalized_address, error_message)
        """
        address = " ".join((address or "").split())

        if not address:
            return False, None, "I couldn't determine the new address. Please be more specific."

        if len(address) < cls.MIN_LENGTH:
            return False, None, (
                f'"{address}" looks too short for a delivery address. '
                "Please give the full address."
            )

        if len(address) > cls.MAX_LENGTH:
            return False, None, "That address is too long. Please shorten it."

        return True, address, None


class QuantityValidator:
    """Validate requested item quantity."""

    MIN_QUANTITY = 1
    MAX_QUANTITY = 100_000

    @classmethod
    def validate(cls, quantity: Optional[int], default: int = 1) -> Tuple[bool, Optional[int], Optional[str]]:
        """
        Validate quantity, substituting `default` when none was given.

        Returns:
            Tuple of (is_valid, quantity, error_message)
        """
        if quantity is None:
            return True, default, None

        if quantity < cls.MIN_QUANTITY:
            return False, None, f"Quantity must be at least {cls.MIN_QUANTITY}."

        if quantity > cls.MAX_QUANTITY:
            return False, None, f"Maximum quantity per line is {cls.MAX_QUANTITY}."

        return True, quantity, None


class FinalizeValidator:
    """Check that an order can be committed at all."""

    MISSING_DETAILS = "Cannot finalize order. Shipping address and items are required."

    @classmethod
    def validate(cls, state: OrderState) -> Tuple[bool, Optional[str]]:
        """
        Returns:
            Tuple of (is_valid, error_message)
        """
        if not state.shipping_address or state.is_empty:
            return False, cls.MISSING_DETAILS
        return True, None

"""
Exceptions raised while committing an order.

They are raised inside the fulfillment transaction so that leaving the block
rolls everything back; the message is what the customer gets to read.
"""


class FulfillmentError(Exception):
    """Order could not be committed."""


class InsufficientStockError(FulfillmentError):
    def __init__(self, product_name: str, available: int, requested: int):
        self.product_name = product_name
        self.available = available
        self.requested = requested
        super().__init__(f"Insufficient stock for {product_name}")


class ProductUnavailableError(FulfillmentError):
    def __init__(self, product_name: str):
        self.product_name = product_name
        super().__init__(f"{product_name} is no longer available")


class CustomerNotFoundError(LookupError):
    """No customer is registered for a transport user id."""

    def __init__(self, user_id: int):
        self.user_id = user_id
        super().__init__(f"Could not find customer for user {user_id}")

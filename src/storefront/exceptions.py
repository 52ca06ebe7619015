"""Storefront-specific exceptions.

Catalogue and order lookups extend Protean's exception types so the
framework's FastAPI handlers already map them to 400/404. Gateway errors
are infrastructure failures and stay outside the Protean hierarchy.
"""

from protean.exceptions import ObjectNotFoundError, ValidationError


class ProductNotFound(ValidationError):
    """A checkout item references a product that does not exist."""

    def __init__(self, product_name: str):
        self.product_name = product_name
        super().__init__({"items": [f"Product not found: {product_name}"]})


class InsufficientStock(ValidationError):
    """Requested quantity exceeds the product's available stock."""

    def __init__(self, product_name: str, available: int, requested: int):
        self.product_name = product_name
        self.available = available
        self.requested = requested
        super().__init__({"items": [f"Insufficient stock for {product_name}. Available: {available}"]})


class OrderNotFound(ObjectNotFoundError):
    def __init__(self, order_ref: str):
        self.order_ref = order_ref
        super().__init__({"order": [f"Order not found: {order_ref}"]})


class SignatureInvalid(Exception):
    """Webhook payload could not be authenticated."""


class GatewayError(Exception):
    """The payment gateway could not fulfil a request."""

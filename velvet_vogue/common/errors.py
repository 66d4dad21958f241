"""Exceptions raised by the storefront core and its repositories."""

from typing import Optional


class StoreError(Exception):
    """Base exception for all storefront errors."""

    pass


class NotFound(StoreError):
    """Raised when a product or order id is unknown."""

    def __init__(self, kind: str, key: str):
        self.kind = kind
        self.key = key
        super().__init__(f"{kind} not found: {key}")


class ProductNotFound(NotFound):
    def __init__(self, product_id: str):
        super().__init__("Product", product_id)


class OrderNotFound(NotFound):
    def __init__(self, order_id: str):
        super().__init__("Order", order_id)


class ValidationError(StoreError, ValueError):
    """Raised when request data is missing or malformed."""

    def __init__(self, message: str, field: Optional[str] = None):
        self.field = field
        super().__init__(message)


class InvalidInput(ValidationError):
    """Raised when pricing input cannot produce a summary."""

    pass


class InvalidTransition(ValidationError):
    """Raised when an order status change is not in the transition table."""

    def __init__(self, current: str, target: str):
        self.current = current
        self.target = target
        super().__init__(f"Cannot move order from {current} to {target}", field="status")


class SimulatedPaymentFailure(StoreError):
    """Raised by the simulated gateway when a charge is declined."""

    def __init__(self, message: str = "Payment failed. Please try again."):
        super().__init__(message)


class PersistenceError(StoreError):
    """Raised when a file or database read/write fails."""

    def __init__(self, operation: str, reason: str):
        self.operation = operation
        self.reason = reason
        super().__init__(f"{operation} failed: {reason}")

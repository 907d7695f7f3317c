# app/domain/exceptions.py
"""
Domain errors raised by the cart and order services.

Each error carries the HTTP status and a machine readable code; the
translation to a response happens in the API layer only.
"""


class ShopError(Exception):
    status_code = 400
    error_code = "SHOP_ERROR"

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class NotFoundError(ShopError):
    status_code = 404
    error_code = "NOT_FOUND"


class ValidationError(ShopError):
    status_code = 400
    error_code = "VALIDATION_ERROR"


class InsufficientInventoryError(ShopError):
    status_code = 400
    error_code = "INSUFFICIENT_INVENTORY"

    def __init__(self, product_id: int, product_name: str, available: int, requested: int):
        super().__init__(
            f"Insufficient inventory for product {product_name}, "
            f"available: {available}, requested: {requested}"
        )
        self.product_id = product_id
        self.product_name = product_name
        self.available = available
        self.requested = requested


class InvalidStateError(ShopError):
    status_code = 400
    error_code = "INVALID_STATE"


class ConflictError(ShopError):
    status_code = 409
    error_code = "CONFLICT"


class PaymentFailedError(ShopError):
    status_code = 402
    error_code = "PAYMENT_FAILED"

    def __init__(self, detail: str = "Payment processing failed"):
        super().__init__(detail)


class ConcurrencyError(ConflictError):
    """Optimistic lock lost; retried by the caller."""

    error_code = "CONCURRENT_MODIFICATION"

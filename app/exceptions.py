"""
Domain errors raised by the service layer.
Each carries the HTTP status the API boundary reports it with; handlers in
app.main turn them into the failure envelope.
"""
from fastapi import status
from typing import Optional


class InventoryError(Exception):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Request could not be processed"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(InventoryError):
    default_message = "Invalid input"


class NotFoundError(InventoryError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Resource not found"


class InsufficientStockError(InventoryError):
    default_message = "Insufficient stock"

    def __init__(self, item_id: int, available: int, requested: int):
        self.item_id = item_id
        self.available = available
        self.requested = requested
        super().__init__(
            f"Insufficient stock for item {item_id}: "
            f"available {available}, requested {requested}"
        )


class InvalidCredentials(InventoryError):
    default_message = "Invalid credentials"


class InactiveAccount(InventoryError):
    default_message = "User account is inactive"


class InvalidSession(InventoryError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Invalid or expired token"

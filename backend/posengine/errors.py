# Overview: Service-layer error taxonomy shared by the sale engine and its collaborators.

"""
Every error a service raises to a route derives from ServiceError.

Each class fixes the HTTP status the routes answer with, a stable machine
code for clients, and whether the whole call may be retried. Services never
retry on their own; the retryable flag is a hint for the caller.
"""

from __future__ import annotations


class ServiceError(Exception):
    """Base class for errors surfaced to API callers verbatim."""
    status_code = 400
    code = "error"
    retryable = False

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict:
        return {
            "error": self.message,
            "code": self.code,
            "details": self.details,
            "retryable": self.retryable,
        }


class ValidationError(ServiceError, ValueError):
    """400-level input problem. Raised before any transaction is opened."""
    status_code = 400
    code = "validation_error"


class ConflictError(ServiceError, ValueError):
    """409-level business rule conflict (e.g., duplicate SKU)."""
    status_code = 409
    code = "conflict"


class NotFoundError(ServiceError):
    """A referenced product, customer, user or sale does not exist."""
    status_code = 404
    code = "not_found"

    def __init__(self, entity: str, entity_id, message: str | None = None):
        super().__init__(
            message or f"{entity} {entity_id} not found",
            details={"entity": entity.lower(), "id": entity_id},
        )
        self.entity = entity
        self.entity_id = entity_id


class InsufficientStockError(ServiceError):
    """Requested quantity exceeds the stock available to this transaction."""
    status_code = 409
    code = "insufficient_stock"

    def __init__(self, product_id: int, available: int, requested: int, product_name: str | None = None):
        label = product_name or f"product {product_id}"
        super().__init__(
            f"Insufficient stock for {label}. Available: {available}, Requested: {requested}",
            details={
                "product_id": product_id,
                "available": available,
                "requested": requested,
            },
        )
        self.product_id = product_id
        self.available = available
        self.requested = requested


class TransactionTimeoutError(ServiceError):
    """The unit of work outlived its wall-clock budget; nothing was committed."""
    status_code = 503
    code = "transaction_timeout"
    retryable = True


class PersistenceError(ServiceError):
    """Storage failed while writing or committing; nothing was committed."""
    status_code = 503
    code = "persistence_error"
    retryable = True

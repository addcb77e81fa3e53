"""
Typed failures raised by the inventory ledger.

Every error carries an HTTP status and a stable machine-readable ``code`` so
the API layer and batch submission reports can surface them without string
matching.
"""

from __future__ import annotations

__all__ = [
    "LedgerError",
    "ValidationError",
    "InvalidQuantityError",
    "InsufficientQuantityError",
    "DuplicateCodeError",
    "UnsupportedConversionError",
    "InstanceScrappedError",
    "NotFoundError",
    "ConcurrentUpdateError",
    "ConservationError",
]


class LedgerError(RuntimeError):
    """Base class for ledger failures."""

    status_code = 400
    code = "ledger_error"

    def __init__(self, message: str, **details):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict:
        payload = {"error": self.code, "message": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class ValidationError(LedgerError):
    """Malformed or missing input (absent reason, same-branch transfer, ...)."""

    code = "validation_error"


class InvalidQuantityError(LedgerError):
    """Quantity outside ``[0, initial_quantity]`` or a non-positive conversion weight."""

    status_code = 422
    code = "invalid_quantity"


class InsufficientQuantityError(InvalidQuantityError):
    """Conversion weight exceeds what the source instance has left."""

    code = "insufficient_quantity"


class DuplicateCodeError(LedgerError):
    """An instance code collision that could not be resolved automatically."""

    status_code = 409
    code = "duplicate_code"

    def __init__(self, instance_code: str, message: str | None = None):
        super().__init__(message or f"Instance code '{instance_code}' already exists", instance_code=instance_code)
        self.instance_code = instance_code


class UnsupportedConversionError(LedgerError):
    status_code = 422
    code = "unsupported_conversion"


class InstanceScrappedError(LedgerError):
    status_code = 409
    code = "instance_scrapped"

    def __init__(self, instance_id: str):
        super().__init__(f"Inventory instance {instance_id} is scrapped and cannot be modified", instance_id=instance_id)
        self.instance_id = instance_id


class NotFoundError(LedgerError):
    status_code = 404
    code = "not_found"

    def __init__(self, resource: str, identifier):
        super().__init__(f"{resource} {identifier} not found", resource=resource, identifier=str(identifier))
        self.resource = resource
        self.identifier = identifier


class ConcurrentUpdateError(LedgerError):
    """Optimistic retries were exhausted by competing writers."""

    status_code = 409
    code = "concurrent_update"


class ConservationError(LedgerError):
    """Post-conversion quantities do not add up. Indicates store corruption."""

    status_code = 500
    code = "conservation_violation"

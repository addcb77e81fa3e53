"""
Shared plumbing for ledger operations: the unit-of-work wrapper and small
input normalisers used by every operation module.
"""

import logging
from contextlib import contextmanager

from flask import current_app

from ...models import db
from ..ledger_errors import ValidationError

logger = logging.getLogger(__name__)


@contextmanager
def ledger_transaction(operation: str):
    """
    Commit the session when the block succeeds, roll back and re-raise when
    it fails. One ledger operation maps to exactly one transaction.
    """
    try:
        yield db.session
        db.session.commit()
    except Exception:
        db.session.rollback()
        logger.debug("Rolled back %s", operation)
        raise


def require_reason(reason, label: str = "reason") -> str:
    text = (reason or "").strip() if isinstance(reason, str) else ""
    if not text:
        raise ValidationError(f"A {label} is required", field=label)
    return text


def clean_actor(actor):
    if actor is None:
        return None
    text = str(actor).strip()
    return text[:128] or None


def clean_attributes(attributes) -> dict:
    if attributes is None:
        return {}
    if not isinstance(attributes, dict):
        raise ValidationError("attributes must be an object", field="attributes")
    return dict(attributes)


def max_code_attempts() -> int:
    return current_app.config.get('LEDGER_MAX_CODE_ATTEMPTS', 5)


_TRUE_VALUES = {'1', 'true', 'yes', 'on'}
_FALSE_VALUES = {'0', 'false', 'no', 'off'}


def clean_flag(value, field: str, default: bool) -> bool:
    """Accept JSON booleans, 0/1 and the usual form strings ("false", "on", ...)."""
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        lowered = value.strip().lower()
        if not lowered:
            return default
        if lowered in _TRUE_VALUES:
            return True
        if lowered in _FALSE_VALUES:
            return False
    raise ValidationError(f"{field} must be true or false", field=field)

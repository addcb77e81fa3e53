"""Global resilience and error-handler registration.

Synopsis:
Registers teardown and error handlers for database rollback safety, ledger
error rendering and maintenance fallbacks. All responses are JSON.

Glossary:
- Resilience handler: Global request teardown/error behavior for known failures.
- Ledger error: Typed domain failure carrying its own HTTP status and code.
"""

from __future__ import annotations

import logging

from sqlalchemy.exc import DBAPIError, OperationalError, SQLAlchemyError
from werkzeug.exceptions import HTTPException

from .extensions import db
from .services.ledger_errors import LedgerError
from .utils.api_responses import APIResponse

logger = logging.getLogger(__name__)


def _safe_rollback() -> None:
    try:
        db.session.rollback()
    except SQLAlchemyError as exc:
        logger.warning("Session rollback failed during error handling: %s", exc)


def register_resilience_handlers(app) -> None:
    """Install global DB rollback and JSON error handlers."""

    @app.teardown_request
    def _rollback_on_error(exc):
        if exc is not None:
            _safe_rollback()

    @app.errorhandler(LedgerError)
    def _ledger_error_handler(err: LedgerError):
        _safe_rollback()
        if err.status_code >= 500:
            logger.error("Ledger failure: %s", err.message)
        return APIResponse.from_ledger_error(err)

    @app.errorhandler(OperationalError)
    @app.errorhandler(DBAPIError)
    def _db_error_handler(error):
        _safe_rollback()
        logger.error("Database unavailable: %s", error)
        return APIResponse.error(
            "Service temporarily unavailable. Please try again shortly.",
            errors={'code': 'database_unavailable'},
            status_code=503,
        )

    @app.errorhandler(HTTPException)
    def _http_error_handler(error: HTTPException):
        return APIResponse.error(
            error.description or error.name,
            errors={'code': error.name.lower().replace(' ', '_')},
            status_code=error.code or 500,
        )

    @app.errorhandler(Exception)
    def _unhandled_error_handler(error: Exception):
        _safe_rollback()
        logger.exception("Unhandled API error: %s", error)
        return APIResponse.error("Internal server error", status_code=500)

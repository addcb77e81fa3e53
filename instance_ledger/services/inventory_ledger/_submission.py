"""
Batch submissions.

Items are processed sequentially, each in its own transaction. A failing item,
including one rejected by the database, is rolled back and reported and never
affects the items around it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError

from ...models import db
from ..ledger_errors import LedgerError, ValidationError

logger = logging.getLogger(__name__)


@dataclass
class SubmissionResult:
    index: int
    success: bool
    instance: Any = None
    error: Optional[str] = None
    error_type: Optional[str] = None

    def to_dict(self) -> dict:
        payload = {'index': self.index, 'success': self.success}
        if self.instance is not None:
            payload['instance'] = self.instance.to_dict()
        if self.error is not None:
            payload['error'] = self.error
            payload['error_type'] = self.error_type
        return payload


@dataclass
class SubmissionReport:
    operation: str
    results: list[SubmissionResult] = field(default_factory=list)

    @property
    def succeeded(self) -> list[SubmissionResult]:
        return [result for result in self.results if result.success]

    @property
    def failed(self) -> list[SubmissionResult]:
        return [result for result in self.results if not result.success]

    @property
    def success(self) -> bool:
        return bool(self.results) and not self.failed

    def to_dict(self) -> dict:
        return {
            'operation': self.operation,
            'success': self.success,
            'succeeded': len(self.succeeded),
            'failed': len(self.failed),
            'results': [result.to_dict() for result in self.results],
        }


def run_submission(
    operation: str,
    items: Sequence[Mapping[str, Any]] | None,
    handler: Callable[[Mapping[str, Any]], Any],
) -> SubmissionReport:
    report = SubmissionReport(operation=operation)
    for index, item in enumerate(items or []):
        try:
            if not isinstance(item, Mapping):
                raise ValidationError("Each item must be an object")
            result = handler(item)
        except LedgerError as exc:
            logger.info("%s item %s failed: %s", operation, index, exc.message)
            report.results.append(
                SubmissionResult(index=index, success=False, error=exc.message, error_type=exc.code)
            )
            continue
        except SQLAlchemyError as exc:
            db.session.rollback()
            logger.exception("%s item %s hit a database error", operation, index)
            report.results.append(
                SubmissionResult(
                    index=index,
                    success=False,
                    error=f"Database error: {exc.__class__.__name__}",
                    error_type="database_error",
                )
            )
            continue
        report.results.append(SubmissionResult(index=index, success=True, instance=result))

    logger.info(
        "%s submission finished: %s succeeded, %s failed",
        operation,
        len(report.succeeded),
        len(report.failed),
    )
    return report

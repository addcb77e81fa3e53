"""
Batch-type catalog lookups.

Read-only from the ledger's perspective: which batch types exist, which are
active, which are assigned to a category, and what a convertible type slits
into. Default selection is a pure function over a ``CatalogSnapshot`` so it
can be exercised without a database.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from ..models import BatchType, CategoryBatchType, db
from .ledger_errors import NotFoundError, UnsupportedConversionError, ValidationError

logger = logging.getLogger(__name__)

__all__ = [
    "BatchTypeView",
    "CatalogSnapshot",
    "load_catalog_snapshot",
    "resolve_default_batch_type",
    "get_batch_type",
    "require_active_batch_type",
    "is_assigned_to_category",
    "types_for_category",
    "list_batch_types",
    "default_batch_type_for_category",
    "conversion_target",
]


@dataclass(frozen=True)
class BatchTypeView:
    id: int
    name: str
    is_active: bool
    is_convertible: bool = False
    converts_to_id: Optional[int] = None


@dataclass(frozen=True)
class CatalogSnapshot:
    batch_types: tuple = ()
    # category_id -> tuple of (batch_type_id, is_default)
    assignments: dict = field(default_factory=dict)

    def by_id(self, batch_type_id):
        for view in self.batch_types:
            if view.id == batch_type_id:
                return view
        return None


def load_catalog_snapshot() -> CatalogSnapshot:
    types = db.session.execute(db.select(BatchType).order_by(BatchType.name)).scalars().all()
    views = tuple(
        BatchTypeView(
            id=bt.id,
            name=bt.name,
            is_active=bool(bt.is_active),
            is_convertible=bool(bt.is_convertible),
            converts_to_id=bt.converts_to_id,
        )
        for bt in types
    )

    assignments: dict = {}
    rows = db.session.execute(db.select(CategoryBatchType)).scalars().all()
    for row in rows:
        assignments.setdefault(row.category_id, []).append((row.batch_type_id, bool(row.is_default)))
    return CatalogSnapshot(
        batch_types=views,
        assignments={key: tuple(value) for key, value in assignments.items()},
    )


def resolve_default_batch_type(snapshot: CatalogSnapshot, category_id) -> Optional[BatchTypeView]:
    """
    Pick the batch type used when a registration does not name one.

    Order: the category's active default, then the first active type assigned
    to the category (by name), then the first active type overall.
    """
    active = [view for view in snapshot.batch_types if view.is_active]
    active.sort(key=lambda view: view.name)

    if category_id is not None:
        assigned = snapshot.assignments.get(category_id, ())
        assigned_ids = {batch_type_id for batch_type_id, _ in assigned}
        default_ids = {batch_type_id for batch_type_id, is_default in assigned if is_default}

        for view in active:
            if view.id in default_ids:
                return view
        for view in active:
            if view.id in assigned_ids:
                return view

    return active[0] if active else None


def get_batch_type(batch_type_id) -> BatchType:
    batch_type = db.session.get(BatchType, batch_type_id)
    if batch_type is None:
        raise NotFoundError("Batch type", batch_type_id)
    return batch_type


def require_active_batch_type(batch_type_id) -> BatchType:
    batch_type = get_batch_type(batch_type_id)
    if not batch_type.is_active:
        raise ValidationError(f"Batch type '{batch_type.name}' is not active", batch_type_id=batch_type.id)
    return batch_type


def _assignment_query(category_id):
    return db.select(CategoryBatchType).where(CategoryBatchType.category_id == category_id)


def is_assigned_to_category(batch_type_id, category_id) -> bool:
    """
    True when the batch type may be used for the category.

    A category without any assignments accepts every active batch type.
    """
    if category_id is None:
        return True
    rows = db.session.execute(_assignment_query(category_id)).scalars().all()
    if not rows:
        return True
    return any(row.batch_type_id == batch_type_id for row in rows)


def types_for_category(category_id, include_inactive: bool = False) -> list[BatchType]:
    query = (
        db.select(BatchType)
        .join(CategoryBatchType, CategoryBatchType.batch_type_id == BatchType.id)
        .where(CategoryBatchType.category_id == category_id)
        .order_by(BatchType.name)
    )
    if not include_inactive:
        query = query.where(BatchType.is_active.is_(True))
    return list(db.session.execute(query).scalars().all())


def list_batch_types(include_inactive: bool = False) -> list[BatchType]:
    query = db.select(BatchType).order_by(BatchType.name)
    if not include_inactive:
        query = query.where(BatchType.is_active.is_(True))
    return list(db.session.execute(query).scalars().all())


def default_batch_type_for_category(category_id) -> Optional[BatchType]:
    view = resolve_default_batch_type(load_catalog_snapshot(), category_id)
    if view is None:
        logger.info("No active batch type available for category %s", category_id)
        return None
    return db.session.get(BatchType, view.id)


def conversion_target(batch_type: BatchType) -> BatchType:
    """Batch type that material of ``batch_type`` is converted into."""
    if not batch_type.is_convertible or batch_type.converts_to_id is None:
        raise UnsupportedConversionError(
            f"Batch type '{batch_type.name}' cannot be converted",
            batch_type_id=batch_type.id,
        )
    target = db.session.get(BatchType, batch_type.converts_to_id)
    if target is None or not target.is_active:
        raise UnsupportedConversionError(
            f"Conversion target for '{batch_type.name}' is missing or inactive",
            batch_type_id=batch_type.id,
        )
    return target

"""
Instance Store

Persistence gateway for InventoryInstance rows. Every quantity change in the
ledger goes through ``InstanceStore.update`` which re-validates the instance
invariants and writes guarded by the row's version counter.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import Callable, Optional

from flask import current_app
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm.exc import StaleDataError

from ...models import (
    InventoryInstance,
    STATUS_DEPLETED,
    STATUS_IN_STOCK,
    STATUS_SCRAPPED,
    db,
)
from ...utils.quantities import ZERO, to_quantity
from ...utils.timezone_utils import TimezoneUtils
from ..ledger_errors import (
    ConcurrentUpdateError,
    DuplicateCodeError,
    InstanceScrappedError,
    InvalidQuantityError,
    NotFoundError,
    ValidationError,
)

logger = logging.getLogger(__name__)

IMMUTABLE_FIELDS = (
    'id',
    'product_id',
    'batch_type_id',
    'instance_code',
    'grouped',
    'initial_quantity',
    'source_instance_id',
)


def derive_status(remaining_quantity: Decimal) -> str:
    return STATUS_DEPLETED if remaining_quantity == ZERO else STATUS_IN_STOCK


@dataclass(frozen=True)
class InstanceState:
    """Immutable snapshot of an instance handed to update mutators."""

    id: str
    product_id: int
    branch_id: int
    batch_type_id: int
    instance_code: str
    grouped: bool
    initial_quantity: Decimal
    remaining_quantity: Decimal
    status: str
    attribute_data: dict = field(default_factory=dict)
    source_instance_id: Optional[str] = None
    version: int = 1

    @classmethod
    def from_model(cls, instance: InventoryInstance) -> "InstanceState":
        return cls(
            id=instance.id,
            product_id=instance.product_id,
            branch_id=instance.branch_id,
            batch_type_id=instance.batch_type_id,
            instance_code=instance.instance_code,
            grouped=bool(instance.grouped),
            initial_quantity=to_quantity(instance.initial_quantity, field='initial_quantity'),
            remaining_quantity=to_quantity(instance.remaining_quantity, field='remaining_quantity'),
            status=instance.status,
            attribute_data=dict(instance.attribute_data or {}),
            source_instance_id=instance.source_instance_id,
            version=instance.version_id,
        )

    def with_remaining(self, quantity: Decimal) -> "InstanceState":
        quantity = to_quantity(quantity)
        return replace(self, remaining_quantity=quantity, status=derive_status(quantity))

    def with_branch(self, branch_id: int) -> "InstanceState":
        return replace(self, branch_id=branch_id)

    def scrapped(self) -> "InstanceState":
        return replace(self, status=STATUS_SCRAPPED)


@dataclass(frozen=True)
class InstanceUpdate:
    before: InstanceState
    after: InstanceState
    instance: InventoryInstance


def check_quantity_bounds(initial: Decimal, remaining: Decimal) -> None:
    if initial < ZERO:
        raise InvalidQuantityError(f"initial_quantity must not be negative (got {initial})")
    if remaining < ZERO or remaining > initial:
        raise InvalidQuantityError(
            f"remaining_quantity {remaining} must be between 0 and initial_quantity {initial}",
            remaining_quantity=str(remaining),
            initial_quantity=str(initial),
        )


class InstanceStore:
    """Reads and writes InventoryInstance rows inside the caller's session."""

    def __init__(self, session=None):
        self.session = session or db.session

    # --- reads -----------------------------------------------------------

    def get(self, instance_id: str, fresh: bool = False) -> InventoryInstance:
        instance = self.session.get(InventoryInstance, instance_id, populate_existing=fresh)
        if instance is None:
            raise NotFoundError("Inventory instance", instance_id)
        return instance

    def code_exists(self, instance_code: str) -> bool:
        found = self.session.execute(
            db.select(InventoryInstance.id).where(InventoryInstance.instance_code == instance_code).limit(1)
        ).first()
        return found is not None

    def list(self, product_id=None, branch_id=None, status=None, batch_type_id=None) -> list[InventoryInstance]:
        query = db.select(InventoryInstance)
        if product_id is not None:
            query = query.where(InventoryInstance.product_id == product_id)
        if branch_id is not None:
            query = query.where(InventoryInstance.branch_id == branch_id)
        if status is not None:
            query = query.where(InventoryInstance.status == status)
        if batch_type_id is not None:
            query = query.where(InventoryInstance.batch_type_id == batch_type_id)
        query = query.order_by(InventoryInstance.created_at, InventoryInstance.instance_code)
        return list(self.session.execute(query).scalars().all())

    def available(self, product_id, branch_id=None) -> list[InventoryInstance]:
        """In-stock instances with quantity left, ordered by code."""
        query = db.select(InventoryInstance).where(
            InventoryInstance.product_id == product_id,
            InventoryInstance.status == STATUS_IN_STOCK,
            InventoryInstance.remaining_quantity > 0,
        )
        if branch_id is not None:
            query = query.where(InventoryInstance.branch_id == branch_id)
        query = query.order_by(InventoryInstance.instance_code)
        return list(self.session.execute(query).scalars().all())

    # --- writes ----------------------------------------------------------

    def create(
        self,
        *,
        product_id: int,
        branch_id: int,
        batch_type_id: int,
        instance_code: str,
        initial_quantity,
        remaining_quantity=None,
        grouped: bool = True,
        attribute_data: dict | None = None,
        source_instance_id: str | None = None,
    ) -> InventoryInstance:
        """
        Insert a new instance and flush it.

        Raises ``DuplicateCodeError`` when the code is taken, either by a
        committed row found up front or by a concurrent insert caught by the
        unique index at flush. The session is rolled back in the latter case.
        """
        if not instance_code or not instance_code.strip():
            raise ValidationError("instance_code is required")
        instance_code = instance_code.strip()

        initial = to_quantity(initial_quantity, field='initial_quantity')
        remaining = initial if remaining_quantity is None else to_quantity(remaining_quantity, field='remaining_quantity')
        check_quantity_bounds(initial, remaining)

        if self.code_exists(instance_code):
            raise DuplicateCodeError(instance_code)

        instance = InventoryInstance(
            product_id=product_id,
            branch_id=branch_id,
            batch_type_id=batch_type_id,
            instance_code=instance_code,
            grouped=grouped,
            initial_quantity=initial,
            remaining_quantity=remaining,
            status=derive_status(remaining),
            attribute_data=dict(attribute_data or {}),
            source_instance_id=source_instance_id,
        )
        self.session.add(instance)
        try:
            self.session.flush()
        except IntegrityError as exc:
            self.session.rollback()
            if self.code_exists(instance_code):
                raise DuplicateCodeError(instance_code) from exc
            raise
        return instance

    def update(self, instance_id: str, mutator: Callable[[InstanceState], InstanceState]) -> InstanceUpdate:
        """
        Read-modify-write one instance.

        ``mutator`` receives the current snapshot and returns the desired one.
        It must be pure: on a version conflict the session is rolled back and
        the mutator re-applied to a fresh read, so this must be the first
        write of the unit of work.
        """
        max_attempts = current_app.config.get('LEDGER_MAX_UPDATE_ATTEMPTS', 3)
        for attempt in range(1, max_attempts + 1):
            instance = self._load_for_update(instance_id)
            if instance.is_scrapped:
                raise InstanceScrappedError(instance_id)

            before = InstanceState.from_model(instance)
            after = mutator(before)
            self._check_transition(before, after)
            self._apply(instance, after)

            try:
                self.session.flush()
            except StaleDataError:
                self.session.rollback()
                logger.warning(
                    "Version conflict updating instance %s (attempt %s/%s)",
                    instance_id,
                    attempt,
                    max_attempts,
                )
                continue

            after = replace(after, version=instance.version_id)
            return InstanceUpdate(before=before, after=after, instance=instance)

        logger.error("Giving up on instance %s after %s conflicting attempts", instance_id, max_attempts)
        raise ConcurrentUpdateError(
            f"Inventory instance {instance_id} was modified concurrently; retry the operation",
            instance_id=instance_id,
        )

    def _load_for_update(self, instance_id: str) -> InventoryInstance:
        query = db.select(InventoryInstance).where(InventoryInstance.id == instance_id)
        if current_app.config.get('LEDGER_LOCK_ON_READ', True):
            query = query.with_for_update()
        query = query.execution_options(populate_existing=True)
        instance = self.session.execute(query).scalar_one_or_none()
        if instance is None:
            raise NotFoundError("Inventory instance", instance_id)
        return instance

    @staticmethod
    def _check_transition(before: InstanceState, after: InstanceState) -> None:
        for name in IMMUTABLE_FIELDS:
            if getattr(before, name) != getattr(after, name):
                raise ValidationError(f"{name} cannot be changed", field=name)

        check_quantity_bounds(after.initial_quantity, after.remaining_quantity)

        if after.status == STATUS_SCRAPPED:
            return
        expected = derive_status(after.remaining_quantity)
        if after.status != expected:
            raise ValidationError(
                f"status '{after.status}' does not match remaining quantity {after.remaining_quantity}",
                expected_status=expected,
            )

    @staticmethod
    def _apply(instance: InventoryInstance, state: InstanceState) -> None:
        instance.branch_id = state.branch_id
        instance.remaining_quantity = state.remaining_quantity
        instance.status = state.status
        instance.attribute_data = dict(state.attribute_data or {})
        instance.updated_at = TimezoneUtils.utc_now()

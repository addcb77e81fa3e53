"""
Audit Trail for Ledger Mutations

Every mutation appends one InventoryAuditEntry per affected instance in the
same transaction as the mutation itself, so history and quantities commit or
roll back together.
"""

import logging
from decimal import Decimal

from sqlalchemy import and_, or_

from ...models import InventoryAuditEntry, InventoryInstance, db
from ...utils.instance_code_generator import generate_inventory_event_code
from ...utils.quantities import ZERO, format_quantity, to_quantity

logger = logging.getLogger(__name__)

EVENT_REGISTER = 'register'
EVENT_ADJUST = 'adjust'
EVENT_TRANSFER = 'transfer'
EVENT_CONVERT_OUT = 'convert_out'
EVENT_CONVERT_IN = 'convert_in'
EVENT_SCRAP = 'scrap'
EVENT_TYPES = (
    EVENT_REGISTER,
    EVENT_ADJUST,
    EVENT_TRANSFER,
    EVENT_CONVERT_OUT,
    EVENT_CONVERT_IN,
    EVENT_SCRAP,
)


def _quantity_or_none(value):
    if value is None:
        return None
    return to_quantity(value)


def record_audit_entry(
    event_type: str,
    instance_id: str,
    *,
    old_quantity: Decimal | None = None,
    new_quantity: Decimal | None = None,
    reason: str | None = None,
    actor: str | None = None,
    related_instance_id: str | None = None,
    from_branch_id: int | None = None,
    to_branch_id: int | None = None,
) -> InventoryAuditEntry:
    """
    Append an audit entry to the current session without committing.
    """
    old_quantity = _quantity_or_none(old_quantity)
    new_quantity = _quantity_or_none(new_quantity)
    if old_quantity is not None and new_quantity is not None:
        quantity_change = new_quantity - old_quantity
    else:
        quantity_change = ZERO

    entry = InventoryAuditEntry(
        event_code=generate_inventory_event_code(event_type),
        event_type=event_type,
        instance_id=instance_id,
        related_instance_id=related_instance_id,
        old_quantity=old_quantity,
        new_quantity=new_quantity,
        quantity_change=quantity_change,
        from_branch_id=from_branch_id,
        to_branch_id=to_branch_id,
        reason=reason,
        actor=actor,
    )
    db.session.add(entry)

    logger.debug(
        "Audit %s %s on %s: %s -> %s",
        entry.event_code,
        event_type,
        instance_id,
        format_quantity(old_quantity),
        format_quantity(new_quantity),
    )
    return entry


def audit_history(instance_id: str) -> list[InventoryAuditEntry]:
    """Audit entries touching an instance, newest first."""
    return audit_entries(instance_id=instance_id)


def audit_entries(event_types=None, branch_id=None, instance_id=None) -> list[InventoryAuditEntry]:
    """
    Audit entries across instances, newest first.

    ``branch_id`` matches the entry's source or destination branch; entries
    that record neither (adjustments, scraps) match on the instance's current
    branch.
    """
    query = db.select(InventoryAuditEntry)
    if event_types:
        query = query.where(InventoryAuditEntry.event_type.in_(list(event_types)))
    if instance_id is not None:
        query = query.where(InventoryAuditEntry.instance_id == instance_id)
    if branch_id is not None:
        query = query.join(InventoryInstance, InventoryInstance.id == InventoryAuditEntry.instance_id).where(
            or_(
                InventoryAuditEntry.from_branch_id == branch_id,
                InventoryAuditEntry.to_branch_id == branch_id,
                and_(
                    InventoryAuditEntry.from_branch_id.is_(None),
                    InventoryAuditEntry.to_branch_id.is_(None),
                    InventoryInstance.branch_id == branch_id,
                ),
            )
        )
    query = query.order_by(InventoryAuditEntry.timestamp.desc(), InventoryAuditEntry.id.desc())
    return list(db.session.execute(query).scalars().all())

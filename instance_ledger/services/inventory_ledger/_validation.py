"""
Ledger invariant checks.

Used before commit by the operations themselves and after the fact by the
``verify-ledger`` command to sweep the whole store.
"""

import logging
from decimal import Decimal

from sqlalchemy import func

from ...models import INSTANCE_STATUSES, InventoryInstance, STATUS_SCRAPPED, db
from ...utils.quantities import ZERO, format_quantity, to_quantity
from ..ledger_errors import ConservationError
from ._store import InstanceStore, derive_status

logger = logging.getLogger(__name__)


def check_conservation(source_before: Decimal, source_after: Decimal, created: Decimal) -> None:
    """Raise ConservationError unless ``source_after + created == source_before``."""
    if source_after + created != source_before:
        logger.critical(
            "Conversion conservation violated: before=%s after=%s created=%s",
            format_quantity(source_before),
            format_quantity(source_after),
            format_quantity(created),
        )
        raise ConservationError(
            "Conversion did not conserve quantity",
            source_before=format_quantity(source_before),
            source_after=format_quantity(source_after),
            created=format_quantity(created),
        )


def instance_problems(instance: InventoryInstance) -> list[str]:
    problems = []
    initial = to_quantity(instance.initial_quantity, field='initial_quantity')
    remaining = to_quantity(instance.remaining_quantity, field='remaining_quantity')

    if initial < ZERO:
        problems.append(f"initial_quantity {initial} is negative")
    if remaining < ZERO:
        problems.append(f"remaining_quantity {remaining} is negative")
    if remaining > initial:
        problems.append(f"remaining_quantity {remaining} exceeds initial_quantity {initial}")

    if instance.status not in INSTANCE_STATUSES:
        problems.append(f"unknown status '{instance.status}'")
    elif instance.status != STATUS_SCRAPPED and instance.status != derive_status(remaining):
        problems.append(f"status '{instance.status}' does not match remaining_quantity {remaining}")
    return problems


def validate_instance_invariants(instance_id):
    """Return ``(is_valid, problems)`` for one instance."""
    instance = InstanceStore().get(instance_id)
    problems = instance_problems(instance)
    if problems:
        logger.error("Invariant violations on instance %s: %s", instance.instance_code, "; ".join(problems))
    return not problems, problems


def scan_ledger_invariants() -> list[dict]:
    """Check every instance plus code uniqueness; return a list of violations."""
    violations = []
    for instance in db.session.execute(db.select(InventoryInstance)).scalars():
        for problem in instance_problems(instance):
            violations.append({
                'instance_id': instance.id,
                'instance_code': instance.instance_code,
                'problem': problem,
            })

    duplicates = db.session.execute(
        db.select(InventoryInstance.instance_code, func.count(InventoryInstance.id))
        .group_by(InventoryInstance.instance_code)
        .having(func.count(InventoryInstance.id) > 1)
    ).all()
    for code, count in duplicates:
        violations.append({
            'instance_id': None,
            'instance_code': code,
            'problem': f"instance_code used by {count} instances",
        })

    if violations:
        logger.error("Ledger scan found %s invariant violations", len(violations))
    else:
        logger.info("Ledger scan found no invariant violations")
    return violations

"""
Material Conversion (Slitting)

Debits a source instance of a convertible batch type and creates a new
instance of the target batch type holding exactly the debited weight. Both
writes, their audit entries and the conservation check share one
transaction.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal

from ...models import InventoryInstance
from ...utils.instance_code_generator import resolve_instance_code, suggest_instance_code
from ...utils.quantities import ZERO, format_quantity, to_quantity
from .. import batch_type_catalog
from ..ledger_errors import (
    DuplicateCodeError,
    InstanceScrappedError,
    InsufficientQuantityError,
    InvalidQuantityError,
)
from ._audit import EVENT_CONVERT_IN, EVENT_CONVERT_OUT, record_audit_entry
from ._core import clean_actor, clean_attributes, ledger_transaction, max_code_attempts
from ._store import InstanceStore
from ._submission import SubmissionReport, run_submission
from ._validation import check_conservation

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConversionResult:
    source: InventoryInstance
    target: InventoryInstance
    weight: Decimal

    def to_dict(self) -> dict:
        return {
            'source': self.source.to_dict(),
            'target': self.target.to_dict(),
            'weight': format_quantity(self.weight),
        }


def _debit(amount: Decimal):
    def mutator(state):
        if amount > state.remaining_quantity:
            raise InsufficientQuantityError(
                f"Cannot convert {format_quantity(amount)}; only "
                f"{format_quantity(state.remaining_quantity)} remains on {state.instance_code}",
                requested=format_quantity(amount),
                available=format_quantity(state.remaining_quantity),
            )
        return state.with_remaining(state.remaining_quantity - amount)
    return mutator


def convert_instance(
    source_instance_id,
    new_instance_code=None,
    weight=None,
    attributes=None,
    actor=None,
    *,
    reserved_codes=None,
) -> ConversionResult:
    """
    Convert ``weight`` of the source instance into a new instance of the
    source batch type's conversion target.

    The new instance keeps the source's product and branch and inherits the
    source's attributes overlaid with ``attributes``. When no code is given
    one is suggested for the target batch type.
    """
    actor = clean_actor(actor)
    attributes = clean_attributes(attributes)
    amount = to_quantity(weight, field='weight')
    if amount <= ZERO:
        raise InvalidQuantityError(f"Conversion weight must be greater than zero (got {format_quantity(amount)})")

    store = InstanceStore()
    source = store.get(source_instance_id)
    if source.is_scrapped:
        raise InstanceScrappedError(source.id)
    source_type = batch_type_catalog.get_batch_type(source.batch_type_id)
    target_type = batch_type_catalog.conversion_target(source_type)

    reserved = reserved_codes if reserved_codes is not None else set()
    rejected = set()
    attempts = max_code_attempts()
    code = None

    for attempt in range(1, attempts + 1):
        candidate = (new_instance_code or "").strip() or suggest_instance_code(
            source.product, source.branch, target_type
        )
        code = resolve_instance_code(
            candidate,
            lambda taken: taken in reserved or taken in rejected or store.code_exists(taken),
        )
        try:
            with ledger_transaction('convert'):
                debit = store.update(source_instance_id, _debit(amount))
                target = store.create(
                    product_id=debit.after.product_id,
                    branch_id=debit.after.branch_id,
                    batch_type_id=target_type.id,
                    instance_code=code,
                    initial_quantity=amount,
                    grouped=True,
                    attribute_data={**debit.before.attribute_data, **attributes},
                    source_instance_id=debit.after.id,
                )
                check_conservation(
                    debit.before.remaining_quantity,
                    debit.after.remaining_quantity,
                    to_quantity(target.remaining_quantity),
                )
                record_audit_entry(
                    EVENT_CONVERT_OUT,
                    debit.after.id,
                    old_quantity=debit.before.remaining_quantity,
                    new_quantity=debit.after.remaining_quantity,
                    reason=f"Converted {format_quantity(amount)} into {code}",
                    actor=actor,
                    related_instance_id=target.id,
                )
                record_audit_entry(
                    EVENT_CONVERT_IN,
                    target.id,
                    old_quantity=ZERO,
                    new_quantity=amount,
                    reason=f"Converted from {debit.after.instance_code}",
                    actor=actor,
                    related_instance_id=debit.after.id,
                )
        except DuplicateCodeError:
            rejected.add(code)
            logger.warning("Conversion target code %s was taken at commit (attempt %s/%s)", code, attempt, attempts)
            continue
        break
    else:
        raise DuplicateCodeError(code, f"Could not allocate a unique instance code after {attempts} attempts")

    reserved.add(code)
    _verify_committed_conservation(store, debit, target.id)

    logger.info(
        "Converted %s from %s (%s -> %s) into %s",
        format_quantity(amount),
        debit.after.instance_code,
        format_quantity(debit.before.remaining_quantity),
        format_quantity(debit.after.remaining_quantity),
        code,
    )
    return ConversionResult(source=debit.instance, target=store.get(target.id), weight=amount)


def _verify_committed_conservation(store, debit, target_id) -> None:
    """Re-read both instances after commit and check the books still balance."""
    source = store.get(debit.after.id, fresh=True)
    target = store.get(target_id, fresh=True)
    if source.version_id != debit.after.version:
        logger.debug("Source %s changed after conversion commit; skipping re-check", source.id)
        return
    check_conservation(
        debit.before.remaining_quantity,
        to_quantity(source.remaining_quantity),
        to_quantity(target.initial_quantity),
    )


def convert_instances(items, actor=None) -> SubmissionReport:
    """Run several conversions; each item commits or fails on its own."""
    reserved = set()

    def _convert(item):
        return convert_instance(
            item.get('source_instance_id'),
            new_instance_code=item.get('new_instance_code', item.get('instance_code')),
            weight=item.get('weight'),
            attributes=item.get('attributes', item.get('attribute_data')),
            actor=item.get('actor') or actor,
            reserved_codes=reserved,
        )

    return run_submission('convert', items, _convert)

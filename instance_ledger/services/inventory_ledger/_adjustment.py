"""
Quantity Adjustment

Sets an instance's remaining quantity to an absolute value (a recount) with a
mandatory reason persisted in the audit trail.
"""

import logging

from ...utils.quantities import format_quantity, to_quantity
from ._audit import EVENT_ADJUST, record_audit_entry
from ._core import clean_actor, ledger_transaction, require_reason
from ._store import InstanceStore

logger = logging.getLogger(__name__)


def adjust_instance(instance_id, new_quantity, reason, actor=None):
    """
    Set ``remaining_quantity`` to ``new_quantity`` and re-derive the status.

    ``new_quantity`` must lie within ``[0, initial_quantity]``.
    """
    reason = require_reason(reason)
    actor = clean_actor(actor)
    target = to_quantity(new_quantity, field='new_quantity')
    store = InstanceStore()

    with ledger_transaction('adjust'):
        update = store.update(instance_id, lambda state: state.with_remaining(target))
        record_audit_entry(
            EVENT_ADJUST,
            update.after.id,
            old_quantity=update.before.remaining_quantity,
            new_quantity=update.after.remaining_quantity,
            reason=reason,
            actor=actor,
        )

    logger.info(
        "Adjusted instance %s: %s -> %s (%s)",
        update.after.instance_code,
        format_quantity(update.before.remaining_quantity),
        format_quantity(update.after.remaining_quantity),
        update.after.status,
    )
    return update.instance

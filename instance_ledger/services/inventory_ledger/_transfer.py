"""
Branch Transfer

Moves a whole instance to another branch. Only ``branch_id`` changes.
"""

import logging

from ..ledger_errors import ValidationError
from ._audit import EVENT_TRANSFER, record_audit_entry
from ._core import clean_actor, ledger_transaction
from ._registration import load_branch
from ._store import InstanceStore

logger = logging.getLogger(__name__)


def transfer_instance(instance_id, to_branch_id, notes=None, actor=None):
    actor = clean_actor(actor)
    destination = load_branch(to_branch_id)
    store = InstanceStore()

    def _move(state):
        if state.branch_id == destination.id:
            raise ValidationError(
                "Destination branch must differ from the current branch",
                branch_id=destination.id,
            )
        return state.with_branch(destination.id)

    with ledger_transaction('transfer'):
        update = store.update(instance_id, _move)
        record_audit_entry(
            EVENT_TRANSFER,
            update.after.id,
            old_quantity=update.before.remaining_quantity,
            new_quantity=update.after.remaining_quantity,
            reason=(notes or "").strip() or None,
            actor=actor,
            from_branch_id=update.before.branch_id,
            to_branch_id=update.after.branch_id,
        )

    logger.info(
        "Transferred instance %s from branch %s to branch %s",
        update.after.instance_code,
        update.before.branch_id,
        update.after.branch_id,
    )
    return update.instance

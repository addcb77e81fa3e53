import logging

from ._audit import EVENT_SCRAP, record_audit_entry
from ._core import clean_actor, ledger_transaction, require_reason
from ._store import InstanceStore

logger = logging.getLogger(__name__)


def scrap_instance(instance_id, reason, actor=None):
    """Archive an instance. Scrapped is terminal; the quantity is left as is."""
    reason = require_reason(reason)
    actor = clean_actor(actor)
    store = InstanceStore()

    with ledger_transaction('scrap'):
        update = store.update(instance_id, lambda state: state.scrapped())
        record_audit_entry(
            EVENT_SCRAP,
            update.after.id,
            old_quantity=update.before.remaining_quantity,
            new_quantity=update.after.remaining_quantity,
            reason=reason,
            actor=actor,
        )

    logger.info("Scrapped instance %s: %s", update.after.instance_code, reason)
    return update.instance

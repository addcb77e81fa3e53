"""Read-side helpers for screens and the POS instance picker."""

from ...models import INSTANCE_STATUSES
from ...utils.instance_code_generator import suggest_instance_code
from .. import batch_type_catalog
from ..ledger_errors import ValidationError
from ._audit import EVENT_TYPES, audit_entries, audit_history
from ._registration import load_branch, load_product, select_batch_type
from ._store import InstanceStore


def get_instance(instance_id):
    return InstanceStore().get(instance_id)


def list_instances(product_id=None, branch_id=None, status=None, batch_type_id=None):
    if status is not None and status not in INSTANCE_STATUSES:
        raise ValidationError(f"Unknown status '{status}'", allowed=list(INSTANCE_STATUSES))
    return InstanceStore().list(
        product_id=product_id,
        branch_id=branch_id,
        status=status,
        batch_type_id=batch_type_id,
    )


def available_instances(product_id, branch_id=None):
    return InstanceStore().available(product_id, branch_id=branch_id)


def instance_history(instance_id):
    InstanceStore().get(instance_id)
    return audit_history(instance_id)


def suggest_code(product_id, branch_id, batch_type_id=None):
    """
    Advisory next code for a product at a branch. Without a batch type the
    category default is used, as registration would.
    """
    product = load_product(product_id)
    branch = load_branch(branch_id)
    if batch_type_id is None:
        batch_type = select_batch_type(product)
    else:
        batch_type = batch_type_catalog.require_active_batch_type(batch_type_id)
    return suggest_instance_code(product, branch, batch_type), batch_type


def list_audit_entries(event_type=None, branch_id=None, instance_id=None):
    """
    Ledger history across instances, newest first, for audit screens.

    ``branch_id`` matches transfers leaving or entering the branch and other
    events on instances held there.
    """
    if event_type is not None and event_type not in EVENT_TYPES:
        raise ValidationError(f"Unknown event type '{event_type}'", allowed=list(EVENT_TYPES))
    return audit_entries(
        event_types=(event_type,) if event_type else None,
        branch_id=branch_id,
        instance_id=instance_id,
    )

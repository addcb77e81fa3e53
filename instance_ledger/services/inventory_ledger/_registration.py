"""
Instance Registration

Creates new inventory instances for raw-tracked products, choosing the batch
type, validating category attributes and allocating a unique instance code.
"""

import logging

from ...models import Branch, Product, db
from ...utils.instance_code_generator import (
    generate_untracked_code,
    resolve_instance_code,
    suggest_instance_code,
)
from ...utils.quantities import ZERO, format_quantity, to_quantity
from .. import batch_type_catalog
from ..ledger_errors import DuplicateCodeError, InvalidQuantityError, NotFoundError, ValidationError
from ._audit import EVENT_REGISTER, record_audit_entry
from ._core import clean_actor, clean_attributes, clean_flag, ledger_transaction, max_code_attempts
from ._store import InstanceStore
from ._submission import SubmissionReport, run_submission

logger = logging.getLogger(__name__)


def load_product(product_id) -> Product:
    product = db.session.get(Product, product_id) if product_id is not None else None
    if product is None:
        raise NotFoundError("Product", product_id)
    if not product.is_raw_tracked:
        raise ValidationError(
            f"Product '{product.sku}' is not a raw tracked product and cannot hold instances",
            product_id=product.id,
        )
    return product


def load_branch(branch_id) -> Branch:
    branch = db.session.get(Branch, branch_id) if branch_id is not None else None
    if branch is None:
        raise NotFoundError("Branch", branch_id)
    return branch


def select_batch_type(product: Product, batch_type_id=None):
    """Explicit batch type, or the catalog default for the product's category."""
    category_id = product.category_id
    if batch_type_id is None:
        batch_type = batch_type_catalog.default_batch_type_for_category(category_id)
        if batch_type is None:
            raise ValidationError("No active batch type is available; configure batch types first")
        return batch_type

    batch_type = batch_type_catalog.require_active_batch_type(batch_type_id)
    if not batch_type_catalog.is_assigned_to_category(batch_type.id, category_id):
        raise ValidationError(
            f"Batch type '{batch_type.name}' is not assigned to this product's category",
            batch_type_id=batch_type.id,
            category_id=category_id,
        )
    return batch_type


def check_required_attributes(product: Product, attributes: dict) -> None:
    category = product.category
    if category is None:
        return
    missing = [
        name for name in category.required_attributes()
        if attributes.get(name) in (None, "")
    ]
    if missing:
        raise ValidationError(
            f"Missing required attributes: {', '.join(missing)}",
            missing=missing,
        )


def choose_instance_code(store, product, branch, batch_type, grouped, instance_code, reserved, rejected):
    if not grouped:
        return generate_untracked_code(product, batch_type)

    candidate = (instance_code or "").strip() or suggest_instance_code(product, branch, batch_type)
    return resolve_instance_code(
        candidate,
        lambda code: code in reserved or code in rejected or store.code_exists(code),
    )


def register_instance(
    product_id,
    branch_id,
    batch_type_id=None,
    instance_code=None,
    initial_quantity=None,
    grouped=True,
    attributes=None,
    actor=None,
    *,
    reserved_codes=None,
):
    """
    Register a new inventory instance and return it.

    ``reserved_codes`` holds codes already chosen earlier in the same
    submission; the chosen code is added to it on success.
    """
    store = InstanceStore()
    actor = clean_actor(actor)
    attributes = clean_attributes(attributes)
    grouped = clean_flag(grouped, 'grouped', default=True)

    product = load_product(product_id)
    branch = load_branch(branch_id)
    batch_type = select_batch_type(product, batch_type_id)
    check_required_attributes(product, attributes)

    initial = to_quantity(initial_quantity, field='initial_quantity')
    if initial < ZERO:
        raise InvalidQuantityError(f"initial_quantity must not be negative (got {initial})")

    reserved = reserved_codes if reserved_codes is not None else set()
    rejected = set()
    attempts = max_code_attempts()
    code = None

    for attempt in range(1, attempts + 1):
        code = choose_instance_code(store, product, branch, batch_type, grouped, instance_code, reserved, rejected)
        try:
            with ledger_transaction('register'):
                instance = store.create(
                    product_id=product.id,
                    branch_id=branch.id,
                    batch_type_id=batch_type.id,
                    instance_code=code,
                    initial_quantity=initial,
                    grouped=grouped,
                    attribute_data=attributes,
                )
                record_audit_entry(
                    EVENT_REGISTER,
                    instance.id,
                    old_quantity=ZERO,
                    new_quantity=initial,
                    reason="Instance registered",
                    actor=actor,
                    to_branch_id=branch.id,
                )
        except DuplicateCodeError:
            rejected.add(code)
            logger.warning("Instance code %s was taken at commit (attempt %s/%s)", code, attempt, attempts)
            continue

        reserved.add(instance.instance_code)
        logger.info(
            "Registered instance %s (%s) for product %s at branch %s with %s",
            instance.instance_code,
            instance.id,
            product.id,
            branch.id,
            format_quantity(initial),
        )
        return instance

    raise DuplicateCodeError(code, f"Could not allocate a unique instance code after {attempts} attempts")


def register_instances(items, actor=None) -> SubmissionReport:
    """Register several instances; each item commits or fails on its own."""
    reserved = set()

    def _register(item):
        return register_instance(
            item.get('product_id'),
            item.get('branch_id'),
            batch_type_id=item.get('batch_type_id'),
            instance_code=item.get('instance_code'),
            initial_quantity=item.get('initial_quantity'),
            grouped=item.get('grouped', True),
            attributes=item.get('attributes', item.get('attribute_data')),
            actor=item.get('actor') or actor,
            reserved_codes=reserved,
        )

    return run_submission('register', items, _register)

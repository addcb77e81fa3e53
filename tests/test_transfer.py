from decimal import Decimal

import pytest

from instance_ledger.services.inventory_ledger import (
    InstanceScrappedError,
    NotFoundError,
    ValidationError,
    instance_history,
    register_instance,
    scrap_instance,
    transfer_instance,
)


@pytest.fixture
def coil(app_context, ids):
    return register_instance(ids.product, ids.main, batch_type_id=ids.coil, initial_quantity=40)


def test_transfer_moves_only_the_branch(coil, ids):
    code = coil.instance_code
    moved = transfer_instance(coil.id, ids.annex, notes='Truck 4', actor='carol')

    assert moved.branch_id == ids.annex
    assert moved.instance_code == code
    assert moved.remaining_quantity == Decimal('40.000')
    assert moved.status == 'in_stock'

    entry = instance_history(coil.id)[0]
    assert entry.event_type == 'transfer'
    assert entry.from_branch_id == ids.main
    assert entry.to_branch_id == ids.annex
    assert entry.quantity_change == Decimal('0.000')
    assert entry.reason == 'Truck 4'
    assert entry.actor == 'carol'


def test_transfer_to_same_branch_is_rejected(coil, ids):
    with pytest.raises(ValidationError):
        transfer_instance(coil.id, ids.main)
    assert len(instance_history(coil.id)) == 1


def test_transfer_to_unknown_branch(coil):
    with pytest.raises(NotFoundError):
        transfer_instance(coil.id, 9999)


def test_transfer_scrapped_instance(coil, ids):
    scrap_instance(coil.id, 'Damaged in transit')
    with pytest.raises(InstanceScrappedError):
        transfer_instance(coil.id, ids.annex)


def test_depleted_instance_can_still_move(app_context, ids):
    empty = register_instance(ids.product, ids.main, initial_quantity=0)
    moved = transfer_instance(empty.id, ids.annex)
    assert moved.branch_id == ids.annex
    assert moved.status == 'depleted'

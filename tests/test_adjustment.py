from decimal import Decimal

import pytest

from instance_ledger.services.inventory_ledger import (
    InstanceScrappedError,
    InvalidQuantityError,
    NotFoundError,
    ValidationError,
    adjust_instance,
    get_instance,
    instance_history,
    register_instance,
    scrap_instance,
)


@pytest.fixture
def coil(app_context, ids):
    return register_instance(ids.product, ids.main, batch_type_id=ids.coil, initial_quantity=100)


def test_adjust_sets_absolute_quantity(coil):
    updated = adjust_instance(coil.id, '62.5', 'Cycle count', actor='bob')

    assert updated.remaining_quantity == Decimal('62.500')
    assert updated.status == 'in_stock'
    assert updated.version_id == 2

    latest = instance_history(coil.id)[0]
    assert latest.event_type == 'adjust'
    assert latest.old_quantity == Decimal('100.000')
    assert latest.new_quantity == Decimal('62.500')
    assert latest.quantity_change == Decimal('-37.500')
    assert latest.reason == 'Cycle count'
    assert latest.actor == 'bob'


def test_adjust_to_zero_depletes_and_back_restocks(coil):
    depleted = adjust_instance(coil.id, 0, 'Used up')
    assert depleted.status == 'depleted'

    restocked = adjust_instance(coil.id, 25, 'Found more on recount')
    assert restocked.status == 'in_stock'
    assert restocked.remaining_quantity == Decimal('25.000')


def test_adjust_to_initial_quantity_is_allowed(coil):
    adjust_instance(coil.id, 10, 'Recount')
    restored = adjust_instance(coil.id, 100, 'Recount corrected')
    assert restored.remaining_quantity == restored.initial_quantity


@pytest.mark.parametrize('quantity', [-1, '100.001', 150])
def test_adjust_outside_bounds_is_rejected(coil, quantity):
    with pytest.raises(InvalidQuantityError):
        adjust_instance(coil.id, quantity, 'Bad count')

    unchanged = get_instance(coil.id)
    assert unchanged.remaining_quantity == Decimal('100.000')
    assert len(instance_history(coil.id)) == 1


@pytest.mark.parametrize('reason', [None, '', '   '])
def test_adjust_requires_reason(coil, reason):
    with pytest.raises(ValidationError):
        adjust_instance(coil.id, 50, reason)


def test_adjust_requires_numeric_quantity(coil):
    with pytest.raises(InvalidQuantityError):
        adjust_instance(coil.id, 'lots', 'Recount')


def test_adjust_unknown_instance(app_context):
    with pytest.raises(NotFoundError):
        adjust_instance('missing-id', 5, 'Recount')


def test_adjust_scrapped_instance(coil):
    scrap_instance(coil.id, 'Water damage')
    with pytest.raises(InstanceScrappedError):
        adjust_instance(coil.id, 50, 'Recount')

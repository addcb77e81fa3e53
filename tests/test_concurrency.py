"""
Interleaved writers, simulated by committing through a second connection
while the ledger session is mid-operation.
"""
import threading
from datetime import datetime, timezone
from decimal import Decimal

import pytest
from sqlalchemy import text

from instance_ledger.extensions import db
from instance_ledger.services.inventory_ledger import (
    ConcurrentUpdateError,
    InstanceStore,
    adjust_instance,
    get_instance,
    instance_history,
    register_instance,
)
from instance_ledger.services.inventory_ledger import _store


def _bump_elsewhere(instance_id, remaining):
    with db.engine.begin() as connection:
        connection.execute(
            text(
                "UPDATE inventory_instance "
                "SET remaining_quantity = :remaining, version_id = version_id + 1 "
                "WHERE id = :id"
            ),
            {"remaining": remaining, "id": instance_id},
        )


@pytest.fixture
def coil(app_context, ids):
    return register_instance(ids.product, ids.main, batch_type_id=ids.coil, initial_quantity=100)


def test_stale_write_is_retried_on_fresh_state(coil):
    seen = []

    def take_ten(state):
        seen.append(state.remaining_quantity)
        if len(seen) == 1:
            _bump_elsewhere(coil.id, 40)
        return state.with_remaining(state.remaining_quantity - 10)

    update = InstanceStore().update(coil.id, take_ten)
    db.session.commit()

    assert seen == [Decimal('100.000'), Decimal('40.000')]
    assert update.before.remaining_quantity == Decimal('40.000')
    assert get_instance(coil.id).remaining_quantity == Decimal('30.000')
    assert get_instance(coil.id).version_id == 3


def test_retries_are_bounded(app, coil):
    app.config['LEDGER_MAX_UPDATE_ATTEMPTS'] = 2
    calls = []

    def always_loses(state):
        calls.append(state.version)
        _bump_elsewhere(coil.id, 50)
        return state.with_remaining(Decimal('10'))

    with pytest.raises(ConcurrentUpdateError):
        InstanceStore().update(coil.id, always_loses)
    db.session.rollback()

    assert len(calls) == 2
    assert get_instance(coil.id).remaining_quantity == Decimal('50.000')


def test_registration_skips_code_claimed_by_another_writer(app_context, ids, monkeypatch):
    original_create = _store.InstanceStore.create
    claimed = []

    def racing_create(self, **kwargs):
        if not claimed:
            claimed.append(kwargs['instance_code'])
            now = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S.%f")
            with db.engine.begin() as connection:
                connection.execute(
                    text(
                        "INSERT INTO inventory_instance (id, product_id, branch_id, batch_type_id, "
                        "instance_code, grouped, initial_quantity, remaining_quantity, status, "
                        "attribute_data, version_id, created_at, updated_at) VALUES (:id, :product, "
                        ":branch, :batch_type, :code, 1, 5, 5, 'in_stock', '{}', 1, :now, :now)"
                    ),
                    {
                        "id": "other-writer",
                        "product": kwargs['product_id'],
                        "branch": kwargs['branch_id'],
                        "batch_type": kwargs['batch_type_id'],
                        "code": kwargs['instance_code'],
                        "now": now,
                    },
                )
        return original_create(self, **kwargs)

    monkeypatch.setattr(_store.InstanceStore, 'create', racing_create)

    instance = register_instance(ids.product, ids.main, batch_type_id=ids.coil, initial_quantity=12)

    assert claimed == ['A-COIL-001']
    assert instance.instance_code == 'A-COIL-002'
    assert instance.remaining_quantity == Decimal('12.000')


def test_competing_adjustments_keep_one_target_and_full_history(app, coil, monkeypatch):
    original_check = _store.InstanceStore._check_transition
    fired = []
    errors = []

    def recount_elsewhere():
        try:
            with app.app_context():
                adjust_instance(coil.id, 20, 'Count B', actor='counter-b')
        except Exception as exc:  # surfaced through the assertion below
            errors.append(exc)

    def interleaved_check(before, after):
        original_check(before, after)
        if not fired:
            fired.append(before.version)
            worker = threading.Thread(target=recount_elsewhere)
            worker.start()
            worker.join()

    monkeypatch.setattr(_store.InstanceStore, '_check_transition', staticmethod(interleaved_check))

    result = adjust_instance(coil.id, 70, 'Count A', actor='counter-a')

    assert errors == []
    assert fired == [1]
    assert result.remaining_quantity in (Decimal('70.000'), Decimal('20.000'))
    assert get_instance(coil.id).remaining_quantity == Decimal('70.000')
    assert get_instance(coil.id).version_id == 3

    adjustments = [entry for entry in instance_history(coil.id) if entry.event_type == 'adjust']
    assert [(e.actor, e.old_quantity, e.new_quantity) for e in adjustments] == [
        ('counter-a', Decimal('20.000'), Decimal('70.000')),
        ('counter-b', Decimal('100.000'), Decimal('20.000')),
    ]

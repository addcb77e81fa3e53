from decimal import Decimal

import pytest

from instance_ledger.extensions import db
from instance_ledger.models import BatchType, InventoryAuditEntry
from instance_ledger.services.inventory_ledger import (
    DuplicateCodeError,
    InvalidQuantityError,
    NotFoundError,
    ValidationError,
    instance_history,
    register_instance,
    register_instances,
)


class TestRegisterInstance:
    """Single registrations"""

    def test_defaults_to_category_batch_type_and_suggested_code(self, app_context, ids):
        instance = register_instance(ids.product, ids.main, initial_quantity=100)

        assert instance.batch_type_id == ids.loose
        assert instance.instance_code == 'A-LOOSE-001'
        assert instance.initial_quantity == Decimal('100.000')
        assert instance.remaining_quantity == Decimal('100.000')
        assert instance.status == 'in_stock'
        assert instance.grouped is True
        assert instance.version_id == 1

    def test_suggested_sequence_continues(self, app_context, ids):
        register_instance(ids.product, ids.main, batch_type_id=ids.coil, initial_quantity=10)
        register_instance(ids.product, ids.main, batch_type_id=ids.coil, initial_quantity=10)
        third = register_instance(ids.product, ids.main, batch_type_id=ids.coil, initial_quantity=10)

        assert third.instance_code == 'A-COIL-003'

    def test_supplied_code_is_kept_when_free(self, app_context, ids):
        instance = register_instance(
            ids.product, ids.main, batch_type_id=ids.coil, instance_code='COIL-SPECIAL', initial_quantity=5
        )
        assert instance.instance_code == 'COIL-SPECIAL'

    def test_taken_code_is_bumped(self, app_context, ids):
        register_instance(ids.product, ids.main, batch_type_id=ids.coil, instance_code='A-COIL-003', initial_quantity=5)
        second = register_instance(
            ids.product, ids.main, batch_type_id=ids.coil, instance_code='A-COIL-003', initial_quantity=5
        )
        assert second.instance_code == 'A-COIL-004'

    def test_taken_code_without_suffix_is_rejected(self, app_context, ids):
        register_instance(ids.product, ids.main, instance_code='COIL-SPECIAL', initial_quantity=5)
        with pytest.raises(DuplicateCodeError):
            register_instance(ids.product, ids.main, instance_code='COIL-SPECIAL', initial_quantity=5)

    def test_zero_initial_quantity_is_depleted(self, app_context, ids):
        instance = register_instance(ids.product, ids.main, initial_quantity=0)
        assert instance.status == 'depleted'
        assert instance.remaining_quantity == Decimal('0.000')

    def test_ungrouped_gets_internal_code(self, app_context, ids):
        instance = register_instance(ids.product, ids.main, initial_quantity=3, grouped=False)
        assert instance.grouped is False
        assert instance.instance_code.startswith('UNG-A-')

    def test_attributes_are_stored(self, app_context, ids):
        instance = register_instance(
            ids.painted_product, ids.main, initial_quantity=8, attributes={'colour': 'Red', 'finish': 'matt'}
        )
        assert instance.attribute_data == {'colour': 'Red', 'finish': 'matt'}
        # Painted has no default; the first assigned active type by name wins
        assert instance.batch_type_id == ids.coil

    def test_writes_register_audit_entry(self, app_context, ids):
        instance = register_instance(ids.product, ids.main, initial_quantity=42, actor='alice')

        entries = instance_history(instance.id)
        assert len(entries) == 1
        entry = entries[0]
        assert entry.event_type == 'register'
        assert entry.event_code.startswith('REG-')
        assert entry.old_quantity == Decimal('0.000')
        assert entry.new_quantity == Decimal('42.000')
        assert entry.quantity_change == Decimal('42.000')
        assert entry.to_branch_id == ids.main
        assert entry.actor == 'alice'


class TestRegistrationValidation:

    def test_missing_product(self, app_context, ids):
        with pytest.raises(NotFoundError):
            register_instance(9999, ids.main, initial_quantity=1)

    def test_missing_branch(self, app_context, ids):
        with pytest.raises(NotFoundError):
            register_instance(ids.product, 9999, initial_quantity=1)

    def test_non_raw_tracked_product(self, app_context, ids):
        with pytest.raises(ValidationError):
            register_instance(ids.service, ids.main, initial_quantity=1)

    def test_negative_initial_quantity(self, app_context, ids):
        with pytest.raises(InvalidQuantityError):
            register_instance(ids.product, ids.main, initial_quantity=-1)

    def test_missing_initial_quantity(self, app_context, ids):
        with pytest.raises(InvalidQuantityError):
            register_instance(ids.product, ids.main)

    def test_unassigned_batch_type(self, app_context, ids):
        with pytest.raises(ValidationError):
            register_instance(ids.painted_product, ids.main, batch_type_id=ids.loose,
                              initial_quantity=1, attributes={'colour': 'Blue'})

    def test_inactive_batch_type(self, app_context, ids):
        sheet = db.session.get(BatchType, ids.sheet)
        sheet.is_active = False
        db.session.commit()

        with pytest.raises(ValidationError):
            register_instance(ids.product, ids.main, batch_type_id=ids.sheet, initial_quantity=1)

    def test_unknown_batch_type(self, app_context, ids):
        with pytest.raises(NotFoundError):
            register_instance(ids.product, ids.main, batch_type_id=9999, initial_quantity=1)

    def test_required_attribute_missing(self, app_context, ids):
        with pytest.raises(ValidationError) as excinfo:
            register_instance(ids.painted_product, ids.main, initial_quantity=1, attributes={'colour': ''})
        assert excinfo.value.details['missing'] == ['colour']

    def test_attributes_must_be_an_object(self, app_context, ids):
        with pytest.raises(ValidationError):
            register_instance(ids.product, ids.main, initial_quantity=1, attributes=['gauge'])

    def test_failed_registration_writes_nothing(self, app_context, ids):
        with pytest.raises(ValidationError):
            register_instance(ids.service, ids.main, initial_quantity=1)
        assert InventoryAuditEntry.query.count() == 0


class TestRegisterInstances:
    """Multi-item submissions"""

    def test_codes_are_unique_within_submission(self, app_context, ids):
        register_instance(ids.product, ids.main, batch_type_id=ids.coil, initial_quantity=1)
        register_instance(ids.product, ids.main, batch_type_id=ids.coil, initial_quantity=1)

        report = register_instances([
            {'product_id': ids.product, 'branch_id': ids.main, 'batch_type_id': ids.coil,
             'instance_code': 'A-COIL-003', 'initial_quantity': 10},
            {'product_id': ids.product, 'branch_id': ids.main, 'batch_type_id': ids.coil,
             'instance_code': 'A-COIL-003', 'initial_quantity': 12},
        ])

        assert report.success
        codes = [result.instance.instance_code for result in report.results]
        assert codes == ['A-COIL-003', 'A-COIL-004']

    def test_failures_are_isolated(self, app_context, ids):
        report = register_instances([
            {'product_id': ids.product, 'branch_id': ids.main, 'initial_quantity': 10},
            {'product_id': ids.service, 'branch_id': ids.main, 'initial_quantity': 10},
            'not-an-object',
            {'product_id': ids.product, 'branch_id': ids.annex, 'initial_quantity': 4},
        ])

        assert not report.success
        assert [result.success for result in report.results] == [True, False, False, True]
        assert report.results[1].error_type == 'validation_error'
        assert report.results[2].error_type == 'validation_error'

        payload = report.to_dict()
        assert payload['succeeded'] == 2
        assert payload['failed'] == 2
        assert payload['results'][0]['instance']['instance_code'] == 'A-LOOSE-001'


class TestGroupedFlag:

    def test_string_false_registers_ungrouped(self, app_context, ids):
        instance = register_instance(ids.product, ids.main, initial_quantity=2, grouped='false')
        assert instance.grouped is False
        assert instance.instance_code.startswith('UNG-A-')

    def test_string_true_and_default(self, app_context, ids):
        assert register_instance(ids.product, ids.main, initial_quantity=2, grouped='on').grouped is True
        assert register_instance(ids.product, ids.main, initial_quantity=2, grouped=None).grouped is True

    def test_unrecognised_flag(self, app_context, ids):
        with pytest.raises(ValidationError):
            register_instance(ids.product, ids.main, initial_quantity=2, grouped='maybe')

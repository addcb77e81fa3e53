import pytest

from instance_ledger.extensions import db
from instance_ledger.models import BatchType
from instance_ledger.services import batch_type_catalog
from instance_ledger.services.batch_type_catalog import (
    BatchTypeView,
    CatalogSnapshot,
    resolve_default_batch_type,
)
from instance_ledger.services.ledger_errors import NotFoundError, UnsupportedConversionError, ValidationError

COIL = BatchTypeView(id=1, name='Coil', is_active=True)
SHEET = BatchTypeView(id=2, name='Sheet', is_active=True)
LOOSE = BatchTypeView(id=3, name='Loose', is_active=True, is_convertible=True, converts_to_id=1)
RETIRED = BatchTypeView(id=4, name='Bundle', is_active=False)


class TestResolveDefaultBatchType:
    """Pure default selection over a catalog snapshot"""

    def test_category_default_wins(self):
        snapshot = CatalogSnapshot(
            batch_types=(COIL, SHEET, LOOSE),
            assignments={10: ((1, False), (2, True))},
        )
        assert resolve_default_batch_type(snapshot, 10) == SHEET

    def test_inactive_default_falls_back_to_first_assigned_by_name(self):
        snapshot = CatalogSnapshot(
            batch_types=(COIL, SHEET, RETIRED),
            assignments={10: ((4, True), (2, False), (1, False))},
        )
        assert resolve_default_batch_type(snapshot, 10) == COIL

    def test_unassigned_category_uses_first_active_overall(self):
        snapshot = CatalogSnapshot(batch_types=(SHEET, LOOSE, RETIRED), assignments={})
        assert resolve_default_batch_type(snapshot, 10) == LOOSE

    def test_no_category(self):
        snapshot = CatalogSnapshot(batch_types=(SHEET, COIL))
        assert resolve_default_batch_type(snapshot, None) == COIL

    def test_nothing_active(self):
        snapshot = CatalogSnapshot(batch_types=(RETIRED,), assignments={10: ((4, True),)})
        assert resolve_default_batch_type(snapshot, 10) is None

    def test_snapshot_lookup(self):
        snapshot = CatalogSnapshot(batch_types=(COIL, SHEET))
        assert snapshot.by_id(2) == SHEET
        assert snapshot.by_id(99) is None


class TestCatalogQueries:

    def test_default_for_category(self, app_context, ids):
        assert batch_type_catalog.default_batch_type_for_category(ids.steel).id == ids.loose
        assert batch_type_catalog.default_batch_type_for_category(ids.painted).id == ids.coil

    def test_types_for_category_hides_inactive(self, app_context, ids):
        db.session.get(BatchType, ids.sheet).is_active = False
        db.session.commit()

        names = [bt.name for bt in batch_type_catalog.types_for_category(ids.painted)]
        assert names == ['Coil']
        names = [bt.name for bt in batch_type_catalog.types_for_category(ids.painted, include_inactive=True)]
        assert names == ['Coil', 'Sheet']

    def test_list_batch_types(self, app_context):
        assert [bt.name for bt in batch_type_catalog.list_batch_types()] == ['Coil', 'Loose', 'Sheet']

    def test_assignment_rules(self, app_context, ids):
        assert batch_type_catalog.is_assigned_to_category(ids.coil, ids.painted)
        assert not batch_type_catalog.is_assigned_to_category(ids.loose, ids.painted)
        # No assignments means any active type is accepted
        assert batch_type_catalog.is_assigned_to_category(ids.loose, ids.loose_goods)
        assert batch_type_catalog.is_assigned_to_category(ids.loose, None)

    def test_conversion_target(self, app_context, ids):
        loose = batch_type_catalog.get_batch_type(ids.loose)
        assert batch_type_catalog.conversion_target(loose).id == ids.coil

        with pytest.raises(UnsupportedConversionError):
            batch_type_catalog.conversion_target(batch_type_catalog.get_batch_type(ids.sheet))

    def test_lookup_errors(self, app_context, ids):
        with pytest.raises(NotFoundError):
            batch_type_catalog.get_batch_type(9999)

        db.session.get(BatchType, ids.sheet).is_active = False
        db.session.commit()
        with pytest.raises(ValidationError):
            batch_type_catalog.require_active_batch_type(ids.sheet)

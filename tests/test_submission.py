from decimal import Decimal

from sqlalchemy.exc import IntegrityError

from instance_ledger.services.inventory_ledger import get_instance, register_instances
from instance_ledger.services.inventory_ledger._submission import run_submission


def test_oversized_quantity_fails_only_its_item(app_context, ids):
    report = register_instances([
        {'product_id': ids.product, 'branch_id': ids.main, 'initial_quantity': 10},
        {'product_id': ids.product, 'branch_id': ids.main, 'initial_quantity': '1e30'},
        {'product_id': ids.product, 'branch_id': ids.main, 'initial_quantity': 1000000000000},
        {'product_id': ids.product, 'branch_id': ids.main, 'initial_quantity': 4},
    ])

    assert [result.success for result in report.results] == [True, False, False, True]
    assert report.results[1].error_type == 'invalid_quantity'
    assert report.results[2].error_type == 'invalid_quantity'
    assert get_instance(report.results[3].instance.id).remaining_quantity == Decimal('4.000')


def test_database_error_fails_only_its_item(app_context):
    def handler(item):
        if item['fail']:
            raise IntegrityError("INSERT ...", {}, Exception("constraint failed"))
        return item['value']

    report = run_submission('register', [
        {'fail': False, 'value': 'first'},
        {'fail': True},
        {'fail': False, 'value': 'third'},
    ], handler)

    assert [result.success for result in report.results] == [True, False, True]
    assert report.results[1].error_type == 'database_error'
    assert report.results[2].instance == 'third'

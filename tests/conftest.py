"""
Pytest configuration and shared fixtures for the inventory ledger tests.
"""
import os
import tempfile
from types import SimpleNamespace

import pytest

from instance_ledger import create_app
from instance_ledger.extensions import db


@pytest.fixture(scope='function')
def app():
    """Create and configure a new app instance for each test."""
    # A file database lets tests open a second connection for interleaved writes
    db_fd, db_path = tempfile.mkstemp(suffix='.db')

    app = create_app({
        'TESTING': True,
        'DATABASE_URL': f'sqlite:///{db_path}',
        'SECRET_KEY': 'test-secret-key',
        'LEDGER_MAX_UPDATE_ATTEMPTS': 3,
        'LEDGER_MAX_CODE_ATTEMPTS': 5,
    })

    with app.app_context():
        db.create_all()
        app.extensions['test_ids'] = _create_test_data()

    yield app

    with app.app_context():
        db.session.remove()
        db.drop_all()
        db.engine.dispose()

    os.close(db_fd)
    os.unlink(db_path)


@pytest.fixture
def client(app):
    """A test client for the app."""
    return app.test_client()


@pytest.fixture
def runner(app):
    """A test runner for the app's Click commands."""
    return app.test_cli_runner()


@pytest.fixture
def app_context(app):
    """Provide an application context for tests that need it."""
    with app.app_context():
        yield


@pytest.fixture
def ids(app):
    """Primary keys of the seeded reference and catalog rows."""
    return app.extensions['test_ids']


def _create_test_data():
    """Seed categories, batch types, products and branches."""
    from instance_ledger.models import Branch, BatchType, Category, CategoryBatchType, Product
    from instance_ledger.seeders import seed_batch_types

    seed_batch_types()
    loose = BatchType.query.filter_by(name='Loose').one()
    coil = BatchType.query.filter_by(name='Coil').one()
    sheet = BatchType.query.filter_by(name='Sheet').one()

    steel = Category(name='Steel', attribute_schema=[{'name': 'gauge', 'required': False}])
    painted = Category(name='Painted', attribute_schema=[{'name': 'colour', 'required': True}])
    loose_goods = Category(name='Loose Goods', attribute_schema=[])
    db.session.add_all([steel, painted, loose_goods])
    db.session.flush()

    db.session.add_all([
        CategoryBatchType(category_id=steel.id, batch_type_id=loose.id, is_default=True),
        CategoryBatchType(category_id=steel.id, batch_type_id=coil.id, is_default=False),
        CategoryBatchType(category_id=steel.id, batch_type_id=sheet.id, is_default=False),
        CategoryBatchType(category_id=painted.id, batch_type_id=sheet.id, is_default=False),
        CategoryBatchType(category_id=painted.id, batch_type_id=coil.id, is_default=False),
    ])

    product = Product(sku='A', name='Galvanised strip', type='raw_tracked', category_id=steel.id)
    painted_product = Product(sku='PNT 1', name='Painted sheet', type='raw_tracked', category_id=painted.id)
    service = Product(sku='SVC', name='Cutting service', type='service', category_id=steel.id)
    db.session.add_all([product, painted_product, service])

    main = Branch(name='Main Warehouse', code='MAIN')
    annex = Branch(name='Annex', code='ANX')
    db.session.add_all([main, annex])
    db.session.commit()

    return SimpleNamespace(
        loose=loose.id,
        coil=coil.id,
        sheet=sheet.id,
        steel=steel.id,
        painted=painted.id,
        loose_goods=loose_goods.id,
        product=product.id,
        painted_product=painted_product.id,
        service=service.id,
        main=main.id,
        annex=annex.id,
    )

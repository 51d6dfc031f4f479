"""
Pytest fixtures for back-office fulfillment tests.

Provides an in-memory record store, a test client, and seeded lookup
collections (stores, users, products, planograms).
"""

import pytest
from backoffice import create_app
from backoffice.extensions import db
from backoffice.models import RecordCollection
from backoffice.services import record_store


ACTOR_ID = "user-admin"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'STORE_COMMIT_ATTEMPTS': 2,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Empty record store for each test."""
    with app.app_context():
        db.session.query(RecordCollection).delete()
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def catalog(db_session):
    """Seed the read-only lookup collections."""
    record_store.write_many({
        record_store.STORES: [
            {"id": "store-1", "name": "Madrid Centro", "city_id": "city_madrid_001"},
            {"id": "store-2", "name": "Barcelona Port", "city_id": "city_barcelona_001"},
        ],
        record_store.USERS: [
            {"id": "seller-1", "first_name": "Ana", "last_name": "Ruiz", "role": "user"},
            {"id": ACTOR_ID, "first_name": "Admin", "last_name": "System", "role": "admin"},
        ],
        record_store.PRODUCTS: [
            {"id": "prod-1", "name": "Olive Oil 1L", "category": "Pantry"},
            {"id": "prod-2", "name": "Sparkling Water 6x", "category": "Beverages"},
        ],
        record_store.PLANOGRAMS: [
            {"id": "plano-1", "name": "Summer Endcap"},
        ],
    })
    return db_session


@pytest.fixture
def actor_headers():
    return {"X-Actor-Id": ACTOR_ID}


@pytest.fixture
def sample_items() -> list[dict]:
    """Two lines: 5 x 25.90 and 3 x 38.67 (subtotal 245.51)."""
    return [
        {"product_id": "prod-1", "quantity": 5, "unit_price_cents": 2590},
        {"product_id": "prod-2", "quantity": 3, "unit_price_cents": 3867},
    ]

"""
Pytest fixtures for storepos backend tests.

Provides the in-memory database, two tenant stores plus the admin store,
one account per role, and a logged-in test client helper.
"""

import pytest

from storepos import create_app
from storepos.extensions import db
from storepos.models import Store, Product, ROLE_ADMIN, ROLE_STORE_MANAGER, ROLE_CASHIER
from storepos.services.auth_service import create_user


PASSWORD = "secret1"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'SESSION_SECRET': 'test-session-secret',
        'BCRYPT_ROUNDS': 4,
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
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def admin_store(app, db_session):
    """The store that holds administrator accounts."""
    store = Store(name=app.config['ADMIN_STORE_NAME'])
    db_session.add(store)
    db_session.commit()
    return store


@pytest.fixture(scope='function')
def store_alpha(db_session):
    store = Store(name="alpha")
    db_session.add(store)
    db_session.commit()
    return store


@pytest.fixture(scope='function')
def store_beta(db_session):
    store = Store(name="beta")
    db_session.add(store)
    db_session.commit()
    return store


@pytest.fixture(scope='function')
def admin(admin_store):
    return create_user(
        name="Ada Admin", email="admin@pos.test", password=PASSWORD,
        store_id=admin_store.id, role=ROLE_ADMIN,
    )


@pytest.fixture(scope='function')
def manager(store_alpha):
    return create_user(
        name="Mona Manager", email="manager@alpha.test", password=PASSWORD,
        store_id=store_alpha.id, role=ROLE_STORE_MANAGER,
    )


@pytest.fixture(scope='function')
def cashier(store_alpha):
    return create_user(
        name="Carl Cashier", email="cashier@alpha.test", password=PASSWORD,
        store_id=store_alpha.id, role=ROLE_CASHIER,
    )


@pytest.fixture(scope='function')
def beta_cashier(store_beta):
    return create_user(
        name="Bea Cashier", email="cashier@beta.test", password=PASSWORD,
        store_id=store_beta.id, role=ROLE_CASHIER,
    )


@pytest.fixture(scope='function')
def widget(db_session, store_alpha):
    """Product in store alpha: 10.00, two on hand."""
    product = Product(
        store_id=store_alpha.id,
        name="Widget",
        description="A small widget",
        price_cents=1000,
        stock=2,
    )
    db_session.add(product)
    db_session.commit()
    return product


@pytest.fixture(scope='function')
def gadget(db_session, store_alpha):
    """Product in store alpha: 2.50, fifty on hand."""
    product = Product(
        store_id=store_alpha.id,
        name="Gadget",
        description="A useful gadget",
        price_cents=250,
        stock=50,
    )
    db_session.add(product)
    db_session.commit()
    return product


@pytest.fixture(scope='function')
def beta_product(db_session, store_beta):
    product = Product(
        store_id=store_beta.id,
        name="Beta Thing",
        description="Belongs to beta",
        price_cents=500,
        stock=5,
    )
    db_session.add(product)
    db_session.commit()
    return product


def login(client, email: str, password: str = PASSWORD, store_id: int | None = None):
    """Helper to log a test client in; the session cookie stays on the client."""
    payload = {'email': email, 'password': password}
    if store_id is not None:
        payload['store_id'] = store_id
    return client.post('/', json=payload)


@pytest.fixture(scope='function')
def login_as(app):
    """Return a fresh client already logged in as the given user."""
    def _login_as(user, password: str = PASSWORD):
        client = app.test_client()
        response = login(client, user.email, password, store_id=user.store_id)
        assert response.status_code == 302, response.get_data(as_text=True)
        return client
    return _login_as

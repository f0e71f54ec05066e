import pytest
from datetime import datetime, timedelta, timezone

import jwt

from stock_ledger import create_app
from stock_ledger.database import get_database
from stock_ledger.models import ProductType, Customer, Supplier
from tests.factories import make_product


@pytest.fixture(scope='function')
def app(tmp_path):
    """Create an application bound to a fresh SQLite database."""
    app = create_app('config.TestConfig', {
        'SQLALCHEMY_DATABASE_URI': f"sqlite:///{tmp_path / 'test.db'}",
    })
    database = get_database(app)
    database.create_all()

    with app.app_context():
        yield app

    database.engine.dispose()


@pytest.fixture(scope='function')
def database(app):
    return get_database(app)


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def session(database):
    """Create database session for testing."""
    session = database.session_factory()
    yield session
    session.rollback()
    session.close()


@pytest.fixture(scope='function')
def product(session):
    """Gravilla at 150, no stock."""
    return make_product(session)


@pytest.fixture(scope='function')
def supplier(session):
    supplier = Supplier(
        name='Áridos del Maipo',
        rut='12.345.678-5',
        address='Camino a Pirque 1200',
        phone='+56911112222',
        email='ventas@aridosmaipo.cl',
    )
    session.add(supplier)
    session.commit()
    return supplier


@pytest.fixture(scope='function')
def customer(session):
    customer = Customer(
        name='Constructora Andes',
        rut='87.654.321-4',
        address='Av. Apoquindo 4500',
        phone='+56933334444',
        email='compras@constructoraandes.cl',
    )
    session.add(customer)
    session.commit()
    return customer


@pytest.fixture(scope='function')
def seeded(database):
    """
    Product without stock plus one supplier and one customer.

    Returns plain ids; the seeding session is closed before the test runs so
    no transaction stays open while requests hit the database.
    """
    session = database.session_factory()
    try:
        product = make_product(session, ProductType.ARENA, sale_price=150, quantity=0)
        supplier = Supplier(name='Áridos del Maipo', rut='12.345.678-5', address='Camino a Pirque 1200',
                            phone='+56911112222', email='ventas@aridosmaipo.cl')
        customer = Customer(name='Constructora Andes', rut='87.654.321-4', address='Av. Apoquindo 4500',
                            phone='+56933334444', email='compras@constructoraandes.cl')
        session.add_all([supplier, customer])
        session.flush()
        ids = {'product_id': product.id, 'supplier_id': supplier.id, 'customer_id': customer.id}
        session.commit()
    finally:
        session.close()
    return ids


@pytest.fixture(scope='function')
def auth_headers(app):
    """Build Authorization headers for a role."""
    def _headers(role='Administrador', sub='tester@example.com', expires_in=timedelta(hours=1)):
        now = datetime.now(timezone.utc)
        token = jwt.encode(
            {'sub': sub, 'role': role, 'iat': now, 'exp': now + expires_in},
            app.config['SECRET_KEY'],
            algorithm=app.config['JWT_ALGORITHM'],
        )
        return {'Authorization': f'Bearer {token}'}
    return _headers

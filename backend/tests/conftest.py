"""
Pytest fixtures for farmledger backend tests.

Provides test database setup, two-farm tenant fixtures, and test client.
"""

from decimal import Decimal

import pytest
from farmledger import create_app
from farmledger.extensions import db
from farmledger.models import Boat, Customer, Farm, ProductType, Purchase, Sale, User
from farmledger.services.auth_service import hash_password
from farmledger.services.pricing_service import reprice
from farmledger.services.tenant_service import principal_for

PASSWORD = "secret123"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
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


def make_user(db_session, *, name, phone, role, farm_id=None) -> User:
    user = User(
        name=name,
        phone=phone,
        email=f"{phone}@farm.test",
        password_hash=hash_password(PASSWORD),
        role=role,
        farm_id=farm_id,
    )
    db_session.add(user)
    db_session.commit()
    return user


def make_farm(db_session, owner: User, name: str) -> Farm:
    """Create a farm owned by `owner` and point the owner at it."""
    farm = Farm(name=name, address=f"{name} address", phone="0280000000", owner_id=owner.id)
    db_session.add(farm)
    db_session.flush()
    owner.farm_id = farm.id
    db_session.commit()
    return farm


@pytest.fixture(scope='function')
def owner_a(db_session):
    """Admin that owns Farm A."""
    return make_user(db_session, name="Owner A", phone="0900000001", role="admin")


@pytest.fixture(scope='function')
def farm_a(db_session, owner_a):
    """Farm A (first tenant)."""
    return make_farm(db_session, owner_a, "Trai A")


@pytest.fixture(scope='function')
def staff_a(db_session, farm_a):
    """Staff member of Farm A."""
    return make_user(db_session, name="Staff A", phone="0900000011", role="staff", farm_id=farm_a.id)


@pytest.fixture(scope='function')
def owner_b(db_session):
    """Admin that owns Farm B."""
    return make_user(db_session, name="Owner B", phone="0900000002", role="admin")


@pytest.fixture(scope='function')
def farm_b(db_session, owner_b):
    """Farm B (second tenant)."""
    return make_farm(db_session, owner_b, "Trai B")


@pytest.fixture(scope='function')
def staff_b(db_session, farm_b):
    """Staff member of Farm B."""
    return make_user(db_session, name="Staff B", phone="0900000022", role="staff", farm_id=farm_b.id)


@pytest.fixture(scope='function')
def loose_staff(db_session):
    """Staff account not attached to any farm."""
    return make_user(db_session, name="Loose Staff", phone="0900000099", role="staff")


@pytest.fixture(scope='function')
def principal_a(owner_a, farm_a):
    return principal_for(owner_a)


@pytest.fixture(scope='function')
def principal_b(owner_b, farm_b):
    return principal_for(owner_b)


def _catalog(db_session, farm, suffix):
    boat = Boat(farm_id=farm.id, name=f"Tau {suffix}", owner_name=f"Chu tau {suffix}", phone="0911111111")
    customer = Customer(farm_id=farm.id, name=f"Khach {suffix}", phone="0922222222")
    product_type = ProductType(farm_id=farm.id, name=f"Muc {suffix}")
    db_session.add_all([boat, customer, product_type])
    db_session.commit()
    return boat, customer, product_type


@pytest.fixture(scope='function')
def catalog_a(db_session, farm_a):
    """(boat, customer, product_type) in Farm A."""
    return _catalog(db_session, farm_a, "A")


@pytest.fixture(scope='function')
def catalog_b(db_session, farm_b):
    """(boat, customer, product_type) in Farm B."""
    return _catalog(db_session, farm_b, "B")


def add_sale(db_session, farm, customer, product_type, *, weight, unit_price, sale_date, status="unpaid") -> Sale:
    sale = Sale(
        farm_id=farm.id,
        customer_id=customer.id,
        product_type_id=product_type.id,
        weight=Decimal(str(weight)),
        unit_price=Decimal(str(unit_price)),
        sale_date=sale_date,
        payment_status=status,
    )
    reprice(sale)
    db_session.add(sale)
    db_session.commit()
    return sale


def add_purchase(db_session, farm, boat, product_type, *, weight, unit_price, purchase_date) -> Purchase:
    purchase = Purchase(
        farm_id=farm.id,
        boat_id=boat.id,
        product_type_id=product_type.id,
        weight=Decimal(str(weight)),
        unit_price=Decimal(str(unit_price)),
        purchase_date=purchase_date,
    )
    reprice(purchase)
    db_session.add(purchase)
    db_session.commit()
    return purchase


def get_auth_token(client, phone: str, password: str = PASSWORD) -> str:
    """Helper to get auth token for a user."""
    response = client.post('/api/auth/login', json={
        'phone': phone,
        'password': password
    })
    if response.status_code == 200:
        return response.json.get('token')
    return None


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture(scope='function')
def sale_factory(db_session):
    """add_sale bound to the test session."""
    def factory(farm, customer, product_type, **kwargs):
        return add_sale(db_session, farm, customer, product_type, **kwargs)
    return factory


@pytest.fixture(scope='function')
def purchase_factory(db_session):
    """add_purchase bound to the test session."""
    def factory(farm, boat, product_type, **kwargs):
        return add_purchase(db_session, farm, boat, product_type, **kwargs)
    return factory


@pytest.fixture(scope='function')
def headers_for(client):
    """Log a user in over HTTP and return their Authorization headers."""
    def factory(user):
        token = get_auth_token(client, user.phone)
        assert token, f"login failed for {user.phone}"
        return auth_headers(token)
    return factory

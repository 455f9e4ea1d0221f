"""
Pytest fixtures for slabworks backend tests.

Provides an in-memory database per test, two tenants with stock, and a
logged-in test client.
"""

import pytest
from decimal import Decimal

from slabworks import create_app
from slabworks.extensions import db
from slabworks.models import (
    Company, User, Customer, Stone, SlabInventory,
    SinkType, Sink, FaucetType, Faucet, DealList,
)
from slabworks.services.auth_service import hash_password
from slabworks.services.contract_schemas import parse_contract_submission

TEST_PASSWORD = "Password123!"


@pytest.fixture(scope='session')
def password_hash():
    """bcrypt is slow on purpose; hash once per run."""
    return hash_password(TEST_PASSWORD)


@pytest.fixture(scope='function')
def app():
    """Fresh application and schema for every test."""
    app = create_app({
        'TESTING': True,
        'SECRET_KEY': 'test-secret',
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'RESERVATION_RETRY_ATTEMPTS': 1,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    yield db.session
    db.session.rollback()


def _make_company(db_session, name):
    company = Company(name=name, is_active=True)
    db_session.add(company)
    db_session.commit()
    return company


def _make_user(db_session, company, email, password_hash, is_admin=False):
    user = User(
        company_id=company.id,
        name=email.split("@")[0],
        email=email,
        password_hash=password_hash,
        is_admin=is_admin,
    )
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture(scope='function')
def company_a(db_session):
    """Company A (first tenant)."""
    return _make_company(db_session, "Granite Depot")


@pytest.fixture(scope='function')
def company_b(db_session):
    """Company B (second tenant)."""
    return _make_company(db_session, "Stone Works")


@pytest.fixture(scope='function')
def user_a(db_session, company_a, password_hash):
    return _make_user(db_session, company_a, "seller@granite.test", password_hash, is_admin=True)


@pytest.fixture(scope='function')
def user_b(db_session, company_b, password_hash):
    return _make_user(db_session, company_b, "seller@stoneworks.test", password_hash)


@pytest.fixture(scope='function')
def customer_a(db_session, company_a):
    customer = Customer(
        company_id=company_a.id,
        name="Jane Homeowner",
        email=None,
        phone=None,
        address=None,
    )
    db_session.add(customer)
    db_session.commit()
    return customer


@pytest.fixture(scope='function')
def stone_a(db_session, company_a):
    """Stone priced at $55.00 per square foot."""
    stone = Stone(company_id=company_a.id, name="Black Pearl", type="granite", retail_price_cents=5500)
    db_session.add(stone)
    db_session.commit()
    return stone


@pytest.fixture(scope='function')
def slabs_a(db_session, stone_a):
    """Four uncut, unsold slabs of stone_a."""
    slabs = [
        SlabInventory(stone_id=stone_a.id, bundle="B-1", length=Decimal("126"), width=Decimal("63"))
        for _ in range(4)
    ]
    db_session.add_all(slabs)
    db_session.commit()
    return slabs


@pytest.fixture(scope='function')
def stone_b(db_session, company_b):
    stone = Stone(company_id=company_b.id, name="Calacatta", type="quartz", retail_price_cents=8000)
    db_session.add(stone)
    db_session.commit()
    return stone


@pytest.fixture(scope='function')
def slab_b(db_session, stone_b):
    slab = SlabInventory(stone_id=stone_b.id, bundle="Q-9")
    db_session.add(slab)
    db_session.commit()
    return slab


@pytest.fixture(scope='function')
def sink_type_a(db_session, company_a):
    """Sink type at $250.00 with two units in stock."""
    sink_type = SinkType(company_id=company_a.id, name="Undermount 60/40", type="stainless", retail_price_cents=25000)
    db_session.add(sink_type)
    db_session.commit()
    db_session.add_all([Sink(sink_type_id=sink_type.id) for _ in range(2)])
    db_session.commit()
    return sink_type


@pytest.fixture(scope='function')
def faucet_type_a(db_session, company_a):
    """Faucet type at $120.00 with one unit in stock."""
    faucet_type = FaucetType(company_id=company_a.id, name="Pull-down Chrome", retail_price_cents=12000)
    db_session.add(faucet_type)
    db_session.commit()
    db_session.add(Faucet(faucet_type_id=faucet_type.id))
    db_session.commit()
    return faucet_type


@pytest.fixture(scope='function')
def deal_lists_a(db_session, company_a):
    lists = [
        DealList(company_id=company_a.id, name="New Customers", position=1),
        DealList(company_id=company_a.id, name="Contacted", position=2),
    ]
    db_session.add_all(lists)
    db_session.commit()
    return lists


def contract_payload(slab_ids, **overrides) -> dict:
    """
    A valid sell/edit body: one kitchen of 40 sq ft with a $100 extra.

    Extra keyword arguments replace top-level keys; room_overrides replaces
    keys of the first room.
    """
    room_overrides = overrides.pop("room_overrides", {})
    room = {
        "room": "kitchen",
        "slabs": [{"id": slab_id, "is_full": True} for slab_id in slab_ids],
        "square_feet": "40",
        "edge": "Eased",
        "extras": {"adjustment": 10000},
    }
    room.update(room_overrides)
    payload = {
        "name": "Jane Homeowner",
        "billing_address": "123 Main Street, Springfield",
        "billing_zip_code": "62701",
        "same_address": True,
        "phone": "317-316-1456",
        "email": "jane@example.com",
        "rooms": [room],
    }
    payload.update(overrides)
    return payload


def make_submission(slab_ids, **overrides):
    return parse_contract_submission(contract_payload(slab_ids, **overrides))


def get_auth_token(client, email: str, password: str = TEST_PASSWORD) -> str:
    """Helper to get auth token for a user."""
    response = client.post('/api/auth/login', json={
        'email': email,
        'password': password
    })
    if response.status_code == 200:
        return response.json.get('token')
    return None


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}

import uuid
from decimal import Decimal

import pytest

from salesdesk import create_app
from salesdesk.database import Base, get_session
from salesdesk.models import AppUser, Client, Product


@pytest.fixture(scope='session')
def app():
    """Create application instance for testing (in-memory SQLite)."""
    app = create_app('config.TestConfig')
    return app


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def session(app):
    """Database session bound to an application context."""
    with app.app_context():
        yield get_session()


@pytest.fixture(autouse=True)
def clean_tables(app):
    """Empty every table after each test."""
    yield
    db = get_session()
    if db is None:
        return
    db.rollback()
    for table in reversed(Base.metadata.sorted_tables):
        db.execute(table.delete())
    db.commit()
    db.remove()


def _make_user(session, prefix, full_name):
    suffix = str(uuid.uuid4())[:8]
    user = AppUser(
        email=f'{prefix}-{suffix}@test.com',
        full_name=full_name,
        active=True
    )
    user.set_password('password123')
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


@pytest.fixture(scope='function')
def user1(session):
    """Create first test user."""
    return _make_user(session, 'user1', 'User One')


@pytest.fixture(scope='function')
def user2(session):
    """Create second test user for isolation tests."""
    return _make_user(session, 'user2', 'User Two')


@pytest.fixture(scope='function')
def authenticated_client(client, user1):
    """Create authenticated client for user1."""
    with client.session_transaction() as sess:
        sess['user_id'] = user1.id
    return client


@pytest.fixture(scope='function')
def customer(session, user1):
    """Client (customer) owned by user1."""
    record = Client(
        owner_id=user1.id,
        name='Ana López',
        email='ana@example.com',
        phone='+52 55 1234 5678',
        address='Av. Reforma 100'
    )
    session.add(record)
    session.commit()
    session.refresh(record)
    return record


@pytest.fixture(scope='function')
def vinyl(session, user1):
    """Area product: $100 per m²."""
    product = Product(
        owner_id=user1.id,
        name='Vinil impreso',
        category='product',
        unit_type='area',
        unit_price=Decimal('100.00')
    )
    session.add(product)
    session.commit()
    session.refresh(product)
    return product


@pytest.fixture(scope='function')
def trim(session, user1):
    """Linear process: $50 per linear metre."""
    product = Product(
        owner_id=user1.id,
        name='Corte de contorno',
        category='process',
        unit_type='linear',
        unit_price=Decimal('50.00')
    )
    session.add(product)
    session.commit()
    session.refresh(product)
    return product

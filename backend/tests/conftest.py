"""
Pytest fixtures for SJPOS backend tests.

Provides test database setup, user/session fixtures, catalog factories and
the test client.
"""

from decimal import Decimal

import bcrypt
import pytest
from sqlalchemy import func, select

from app import create_app
from app.extensions import db
from app.models import Category, Product, Sale, SaleItem, User, ROLE_ADMIN, ROLE_CASHIER
from app.services import session_service

PASSWORD = "Password123"
# Low cost factor keeps the suite fast; verify_password accepts any cost
PASSWORD_HASH = bcrypt.hashpw(PASSWORD.encode("utf-8"), bcrypt.gensalt(rounds=4)).decode("utf-8")


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
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


@pytest.fixture
def make_user(db_session):
    """Factory: create a user and return its id."""
    def _make(username: str, role: str = ROLE_CASHIER, is_approved: bool = True) -> str:
        user = User(
            username=username,
            email=f"{username}@sjpos.test",
            password_hash=PASSWORD_HASH,
            role=role,
            is_approved=is_approved,
        )
        db_session.add(user)
        db_session.commit()
        return user.id
    return _make


@pytest.fixture
def admin_id(make_user):
    return make_user("admin", role=ROLE_ADMIN)


@pytest.fixture
def cashier_id(make_user):
    return make_user("cashier_a")


@pytest.fixture
def other_cashier_id(make_user):
    return make_user("cashier_b")


def auth_headers(user_id: str) -> dict:
    """Issue a session for the user and return Authorization headers."""
    _session, token = session_service.create_session(user_id)
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture
def admin_headers(admin_id):
    return auth_headers(admin_id)


@pytest.fixture
def cashier_headers(cashier_id):
    return auth_headers(cashier_id)


@pytest.fixture
def other_cashier_headers(other_cashier_id):
    return auth_headers(other_cashier_id)


@pytest.fixture
def category_id(db_session):
    category = Category(name="Beverages", description="Drinks and juices")
    db_session.add(category)
    db_session.commit()
    return category.id


@pytest.fixture
def make_product(db_session, category_id):
    """Factory: create a product and return its id."""
    def _make(name: str, price: str = "10.00", stock: int = 5) -> str:
        product = Product(
            name=name,
            price=Decimal(price),
            stock=stock,
            category_id=category_id,
        )
        db_session.add(product)
        db_session.commit()
        return product.id
    return _make


def stock_of(product_id: str) -> int:
    """Read stock straight from the table, bypassing the identity map."""
    return db.session.execute(select(Product.stock).where(Product.id == product_id)).scalar_one()


def count_rows(model) -> int:
    return db.session.execute(select(func.count()).select_from(model)).scalar_one()


def sale_count() -> int:
    return count_rows(Sale)


def sale_item_count() -> int:
    return count_rows(SaleItem)

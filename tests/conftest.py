"""Pytest configuration for storefront tests."""

import os

# settings are read at import time, so the environment goes first
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("ENV", "test")

from datetime import timedelta
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel

from storefront.database import engine
from storefront.main import app
from storefront.models import Coupon, DiscountType, Product, User
from storefront.routes.public_settings import clear_settings_cache
from storefront.utils.clock import utc_now
from storefront.utils.token import create_access_token


@pytest.fixture(autouse=True)
def _database():
    """Fresh tables and an empty settings cache for every test."""
    SQLModel.metadata.create_all(engine)
    clear_settings_cache()
    yield
    clear_settings_cache()
    SQLModel.metadata.drop_all(engine)


@pytest.fixture
def session():
    with Session(engine) as session:
        yield session


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def make_product(session):
    def _make(name="Linen Shirt", price="500", sale_price=None, stock=10, **extra):
        product = Product(
            name=name,
            slug=name.lower().replace(" ", "-"),
            price=Decimal(price),
            sale_price=Decimal(sale_price) if sale_price is not None else None,
            stock=stock,
            **extra,
        )
        session.add(product)
        session.commit()
        session.refresh(product)
        return product
    return _make


@pytest.fixture
def make_coupon(session):
    def _make(
        code="SAVE20",
        discount_type=DiscountType.percentage,
        discount_value="20",
        min_order_amount="0",
        **extra,
    ):
        coupon = Coupon(
            code=code,
            discount_type=discount_type,
            discount_value=Decimal(discount_value),
            min_order_amount=Decimal(min_order_amount),
            **extra,
        )
        session.add(coupon)
        session.commit()
        session.refresh(coupon)
        return coupon
    return _make


@pytest.fixture
def make_user(session):
    def _make(email="shopper@example.com", role="user", **extra):
        user = User(email=email, full_name="Test Shopper", role=role, **extra)
        session.add(user)
        session.commit()
        session.refresh(user)
        return user
    return _make


@pytest.fixture
def auth_headers():
    def _headers(user):
        token = create_access_token({"sub": str(user.id)})
        return {"Authorization": f"Bearer {token}"}
    return _headers


@pytest.fixture
def admin_headers(make_user, auth_headers):
    admin = make_user(email="admin@example.com", role="admin")
    return auth_headers(admin)


@pytest.fixture
def address():
    return {
        "full_name": "Asha Rao",
        "phone": "9876543210",
        "address_line1": "12 Lake View Road",
        "city": "Bengaluru",
        "state": "Karnataka",
        "postal_code": "560001",
    }


@pytest.fixture
def yesterday():
    return utc_now() - timedelta(days=1)


@pytest.fixture
def tomorrow():
    return utc_now() + timedelta(days=1)

"""
Project: SharePlate Canteen Backend
Description:
Shared pytest fixtures: an in-memory app per test, a test client, and
factories for accounts, menu items and coupons.
"""

import os
import sys
from datetime import timedelta

import pytest
from werkzeug.security import generate_password_hash

# --- Make sure project root is importable ---
PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir, os.pardir))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from app import create_app  # noqa: E402
from auth import Role, issue_token  # noqa: E402
from models import Coupon, MenuItem, User, db, utcnow  # noqa: E402


@pytest.fixture
def app():
    app = create_app(testing=True)
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_user(app):
    counter = {"n": 0}

    def _make(role=Role.USER, email=None, password="password"):
        counter["n"] += 1
        with app.app_context():
            user = User(
                name=f"Tester {counter['n']}",
                email=email or f"tester{counter['n']}@example.com",
                phone="9876543210",
                password_hash=generate_password_hash(password),
                role=role.value,
            )
            db.session.add(user)
            db.session.commit()
            token = issue_token(user, app.config["SECRET_KEY"])
            return {"id": user.id, "headers": {"Authorization": f"Bearer {token}"}}

    return _make


@pytest.fixture
def user_headers(make_user):
    return make_user(Role.USER)["headers"]


@pytest.fixture
def admin_headers(make_user):
    return make_user(Role.ADMIN)["headers"]


@pytest.fixture
def super_admin_headers(make_user):
    return make_user(Role.SUPER_ADMIN)["headers"]


@pytest.fixture
def make_menu_item(app):
    def _make(name="Veg Thali", price=100.0, category="Lunch", canteen_id="main", available=True):
        with app.app_context():
            m = MenuItem(name=name, price=price, category=category, canteen_id=canteen_id, is_available=available)
            db.session.add(m)
            db.session.commit()
            return m.id

    return _make


@pytest.fixture
def make_coupon(app):
    def _make(code="SAVE10", discount_type="percentage", value=10, max_discount=None,
              active=True, expires_in=timedelta(days=1)):
        with app.app_context():
            c = Coupon(
                code=code,
                discount_type=discount_type,
                discount_value=value,
                max_discount=max_discount,
                is_active=active,
                expiry_date=utcnow() + expires_in,
            )
            db.session.add(c)
            db.session.commit()
            return c.id

    return _make

import os
import pathlib
import sys
from datetime import date, timedelta

ROOT = pathlib.Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))
os.environ.setdefault("APP_ENV", "test")

import pytest

from app.models.store import Store
from app.models.user import Principal
from app.services.identity_service import IdentityService
from app.utils.constants import AccountRole, Role
from app.utils.security import generate_hash

SECRET = "test-secret"


def future(days: int) -> date:
    """A date safely in the future whatever the marketplace timezone is."""
    return date.today() + timedelta(days=30 + days)


def seed_user(store, email, role=AccountRole.USER, is_admin=False, password="Passw0rd"):
    return store.create_user(email, generate_hash(password), role, is_admin=is_admin)


def seed_vehicle(store, owner_id, approved=True, name="Honda Fit", price=40.0):
    return store.create_vehicle({
        "owner_id": owner_id,
        "name": name,
        "price_per_day": price,
        "approved": approved,
        "status": "approved" if approved else "pending_approval",
    })


def principal(user_id, *roles):
    return Principal(user_id=user_id, roles=frozenset(roles or {Role.RENTER}))


@pytest.fixture(autouse=True)
def store(tmp_path):
    """A fresh, file-backed store per test installed as the singleton."""
    st = Store(tmp_path / "data.pkl", timeout=2.0)
    Store.reset_instance(st)
    yield st
    Store.reset_instance(None)


@pytest.fixture
def app(store):
    from app import create_app
    return create_app({"TESTING": True, "SECRET_KEY": SECRET, "APP_ENV": "test"})


@pytest.fixture
def client(app):
    with app.test_client() as c:
        yield c


@pytest.fixture
def people(store):
    """Owner with an approved vehicle, a renter, a second owner and an admin."""
    owner = seed_user(store, "owner@example.com", AccountRole.OWNER)
    other_owner = seed_user(store, "other@example.com", AccountRole.OWNER)
    renter = seed_user(store, "renter@example.com")
    admin = seed_user(store, "admin@example.com", AccountRole.ADMIN, is_admin=True)
    vid = seed_vehicle(store, owner)
    return {
        "owner": owner,
        "other_owner": other_owner,
        "renter": renter,
        "admin": admin,
        "vehicle": vid,
    }


def auth_headers(store, user_id):
    token = IdentityService.issue_token(store.get_user(user_id), SECRET)
    return {"Authorization": f"Bearer {token}"}

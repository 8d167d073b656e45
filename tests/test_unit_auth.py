import pytest

from app.exceptions import InvalidCredentialError
from app.services.identity_service import IdentityService
from app.utils.constants import Role
from app.utils.security import check_hash, generate_hash, sign_claims, verify_token

SECRET = "unit-secret"


def test_password_hash_roundtrip():
    pw = "Secret123"
    h = generate_hash(pw)
    assert check_hash(pw, h)
    assert not check_hash("wrong", h)


def test_token_roundtrip():
    token = sign_claims({"sub": "u1", "role": "user"}, SECRET)
    assert verify_token(token, SECRET, max_age=60) == {"sub": "u1", "role": "user"}


@pytest.mark.parametrize("token", [None, "", "garbage", "a.b.c"])
def test_missing_or_malformed_token_rejected(token):
    with pytest.raises(InvalidCredentialError):
        IdentityService.resolve(token, SECRET)


def test_token_signed_with_other_key_rejected():
    token = sign_claims({"sub": "u1", "role": "user"}, "another-key")
    with pytest.raises(InvalidCredentialError):
        IdentityService.resolve(token, SECRET)


def test_tampered_token_rejected():
    token = sign_claims({"sub": "u1", "role": "user"}, SECRET)
    with pytest.raises(InvalidCredentialError):
        IdentityService.resolve(("x" if token[0] != "x" else "y") + token[1:], SECRET)


def test_expired_token_rejected():
    token = sign_claims({"sub": "u1", "role": "user"}, SECRET)
    with pytest.raises(InvalidCredentialError):
        IdentityService.resolve(token, SECRET, max_age=-1)


def test_token_without_subject_rejected():
    token = sign_claims({"role": "admin", "is_admin": True}, SECRET)
    with pytest.raises(InvalidCredentialError):
        IdentityService.resolve(token, SECRET)


@pytest.mark.parametrize("role, is_admin, expected", [
    ("user", False, {Role.RENTER}),
    ("owner", False, {Role.RENTER, Role.OWNER}),
    ("admin", False, {Role.RENTER, Role.ADMIN}),
    ("user", True, {Role.RENTER, Role.ADMIN}),
    ("owner", True, {Role.RENTER, Role.OWNER, Role.ADMIN}),
])
def test_roles_derived_from_claims(role, is_admin, expected):
    user = {"user_id": "u1", "role": role, "is_admin": is_admin}
    p = IdentityService.resolve(IdentityService.issue_token(user, SECRET), SECRET)
    assert p.user_id == "u1"
    assert p.roles == frozenset(expected)

from __future__ import annotations

import re

from app.exceptions import InvalidCredentialError, InvalidTransitionError, NotFoundError, ValidationError
from app.services.common import _store
from app.utils.constants import AccountRole, OwnerRequestStatus
from app.utils.dates import utcnow
from app.utils.logger import get_logger
from app.utils.security import check_hash, generate_hash

log = get_logger(__name__)

# Compile once at module import
EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
PASSWORD_PATTERN = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d).{6,}$")


def _request_json(r: dict) -> dict:
    return {**r, "created_at": r["created_at"].isoformat(timespec="seconds")}


class UserService:
    """Account registration/login, owner requests and per-user booking views."""

    @staticmethod
    def register(email: str, password: str) -> str:
        """Every new account is a plain user; owner rights need an approved request."""
        email = (email or "").strip().lower()
        if not EMAIL_PATTERN.match(email):
            raise ValidationError("Error: a valid email is required")
        if not PASSWORD_PATTERN.match(password or ""):
            raise ValidationError(
                "Error: password must have at least 6 characters, including A-Z, a-z, and 0-9")
        try:
            return _store().create_user(email, generate_hash(password), AccountRole.USER)
        except ValueError:
            raise ValidationError("Error: email already registered")

    @staticmethod
    def authenticate(email: str, password: str) -> dict:
        user = _store().find_user(email)
        if not user or not check_hash(password or "", user["password_hash"]):
            raise InvalidCredentialError("Error: invalid email or password")
        return user

    # ---------- Owner requests ----------
    @staticmethod
    def submit_owner_request(user_id: str, note: str = "") -> dict:
        st = _store()
        user = st.get_user(user_id)
        if not user:
            raise NotFoundError(f"Error: user '{user_id}' not found")
        if user.get("role") in (AccountRole.OWNER, AccountRole.ADMIN):
            raise ValidationError("Error: account can already list vehicles")
        try:
            req = st.create_owner_request(user_id, (note or "").strip(), utcnow())
        except ValueError:
            raise ValidationError("Error: an owner request is already pending")
        log.info("Owner request %s submitted by %s", req["request_id"], user_id)
        return _request_json(req)

    @staticmethod
    def list_owner_requests(status: str | None = OwnerRequestStatus.PENDING) -> list:
        out = [r for r in _store().list_owner_requests() if status is None or r["status"] == status]
        out.sort(key=lambda r: r["created_at"])
        return [_request_json(r) for r in out]

    @staticmethod
    def decide_owner_request(request_id: str, approve: bool) -> dict:
        """
        Approve (user becomes an owner) or reject a pending request.
        The new role is carried by the next token the user logs in with.
        """
        st = _store()
        if not st.get_owner_request(request_id):
            raise NotFoundError(f"Error: owner request '{request_id}' not found")
        if approve:
            req = st.decide_owner_request(request_id, OwnerRequestStatus.APPROVED,
                                          {"role": AccountRole.OWNER})
        else:
            req = st.decide_owner_request(request_id, OwnerRequestStatus.REJECTED)
        if req is None:
            raise InvalidTransitionError("Error: owner request was already decided")
        log.info("Owner request %s %s", request_id, req["status"])
        return _request_json(req)

    @staticmethod
    def bookings_for_renter(renter_id: str) -> list:
        """This user's bookings, newest start first."""
        out = _store().bookings_for_renter(renter_id)
        out.sort(key=lambda b: b.start_date, reverse=True)
        return out

    @staticmethod
    def bookings_for_owner(owner_id: str) -> list:
        """Bookings on vehicles owned by ``owner_id``, newest start first."""
        out = _store().bookings_for_owner(owner_id)
        out.sort(key=lambda b: b.start_date, reverse=True)
        return out

    @staticmethod
    def all_bookings() -> list:
        out = _store().all_bookings()
        out.sort(key=lambda b: b.created_at, reverse=True)
        return out

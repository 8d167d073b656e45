from functools import wraps

from flask import current_app, g, request

from app.models.user import Principal
from app.services.identity_service import IdentityService
from app.utils.constants import TOKEN_COOKIE


def _credential_from_request() -> str | None:
    token = request.cookies.get(TOKEN_COOKIE)
    if token:
        return token
    auth = request.headers.get("Authorization", "")
    if auth.lower().startswith("bearer "):
        return auth[7:].strip() or None
    return None


def current_principal() -> Principal:
    """Principal resolved for this request (guest when no credential was sent)."""
    return getattr(g, "principal", None) or Principal.guest()


def login_required(fn):
    """Resolve the credential into ``g.principal``; InvalidCredentialError otherwise."""
    @wraps(fn)
    def wrapper(*args, **kwargs):
        g.principal = IdentityService.resolve(
            _credential_from_request(),
            current_app.config["SECRET_KEY"],
            current_app.config["TOKEN_MAX_AGE"],
        )
        return fn(*args, **kwargs)

    return wrapper


def principal_optional(fn):
    """Like login_required, but anonymous callers continue as guest."""
    @wraps(fn)
    def wrapper(*args, **kwargs):
        token = _credential_from_request()
        if token:
            g.principal = IdentityService.resolve(
                token,
                current_app.config["SECRET_KEY"],
                current_app.config["TOKEN_MAX_AGE"],
            )
        else:
            g.principal = Principal.guest()
        return fn(*args, **kwargs)

    return wrapper

from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer
from werkzeug.security import generate_password_hash, check_password_hash

from app.exceptions import InvalidCredentialError
from app.utils.constants import TOKEN_SALT


def generate_hash(password: str) -> str:
    return generate_password_hash(password)


def check_hash(password: str, hashed: str) -> bool:
    try:
        return check_password_hash(hashed, password)
    except (TypeError, ValueError):
        return False


def _serializer(secret_key: str) -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(secret_key, salt=TOKEN_SALT)


def sign_claims(claims: dict, secret_key: str) -> str:
    """Sign a claims mapping into an opaque, URL-safe, timestamped token."""
    return _serializer(secret_key).dumps(claims)


def verify_token(token: str, secret_key: str, max_age: int) -> dict:
    """Return the claims of a valid token or raise InvalidCredentialError."""
    if not token or not isinstance(token, str):
        raise InvalidCredentialError("Error: credential missing")
    try:
        claims = _serializer(secret_key).loads(token, max_age=max_age)
    except SignatureExpired as e:
        raise InvalidCredentialError("Error: credential expired") from e
    except BadSignature as e:
        raise InvalidCredentialError() from e
    if not isinstance(claims, dict):
        raise InvalidCredentialError()
    return claims

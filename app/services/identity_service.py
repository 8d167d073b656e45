"""Identity Resolver: signed credential in, Principal out."""

from app.config import Config
from app.exceptions import InvalidCredentialError
from app.models.user import Principal, roles_from_claims
from app.utils.security import sign_claims, verify_token


class IdentityService:

    @staticmethod
    def issue_token(user: dict, secret_key: str) -> str:
        """Embed the persisted role claims of ``user`` into a signed token."""
        claims = {
            "sub": user["user_id"],
            "role": user.get("role"),
            "is_admin": bool(user.get("is_admin")),
        }
        return sign_claims(claims, secret_key)

    @staticmethod
    def resolve(credential: str | None, secret_key: str, max_age: int = Config.TOKEN_MAX_AGE) -> Principal:
        """
        Verify the credential and derive the principal from its claims only.
        No store lookup happens here; role staleness is bounded by ``max_age``.
        """
        claims = verify_token(credential, secret_key, max_age)
        sub = claims.get("sub")
        if not sub or not isinstance(sub, str):
            raise InvalidCredentialError("Error: credential has no subject")
        return Principal(
            user_id=sub,
            roles=roles_from_claims(claims.get("role"), bool(claims.get("is_admin"))),
        )

from dataclasses import dataclass, field

from app.utils.constants import AccountRole, Role


@dataclass(frozen=True)
class Principal:
    """
    The authenticated identity attached to one request.
    Built fresh from verified token claims; never persisted.
    """
    user_id: str | None
    roles: frozenset = field(default_factory=frozenset)

    @classmethod
    def guest(cls) -> "Principal":
        return cls(user_id=None, roles=frozenset({Role.GUEST}))

    @property
    def is_admin(self) -> bool:
        return Role.ADMIN in self.roles

    def has_any(self, roles) -> bool:
        return bool(self.roles & set(roles))


def roles_from_claims(role: str | None, is_admin: bool = False) -> frozenset:
    """
    Map the account role claims onto the policy roles.
    Every account can rent; owners also own; either admin claim grants admin.
    """
    role = (role or "").lower().strip()
    roles = {Role.RENTER}
    if role == AccountRole.OWNER:
        roles.add(Role.OWNER)
    if role == AccountRole.ADMIN or is_admin:
        roles.add(Role.ADMIN)
    return frozenset(roles)

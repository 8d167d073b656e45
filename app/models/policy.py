"""
Static authorization policy: (resource kind, verb) -> allowed roles and
whether the principal must also own the target resource.

The table is built once at import and exposed as a read-only mapping.
"""

from dataclasses import dataclass
from types import MappingProxyType

from app.utils.constants import Role, ResourceKind as RK, Verb


@dataclass(frozen=True)
class PolicyRule:
    resource_kind: str
    action: str
    allowed_roles: frozenset
    ownership_required: bool = False


@dataclass(frozen=True)
class Action:
    """
    What a principal is asking to do. ``resource_owner_id`` is resolved by
    the caller: the booking's renter for ``booking`` targets, the vehicle's
    owner for ``vehicle`` / ``vehicle_booking`` targets, the owner id for
    ``earnings``.
    """
    resource_kind: str
    verb: str
    resource_id: str | None = None
    resource_owner_id: str | None = None


_ANYONE = frozenset({Role.GUEST, Role.RENTER, Role.OWNER, Role.ADMIN})
_OWNERS = frozenset({Role.OWNER, Role.ADMIN})
_ADMINS = frozenset({Role.ADMIN})

_RULES = (
    PolicyRule(RK.VEHICLE, Verb.VIEW, _ANYONE),
    PolicyRule(RK.VEHICLE, Verb.CREATE, _OWNERS),
    PolicyRule(RK.VEHICLE, Verb.MANAGE, _OWNERS, True),
    PolicyRule(RK.VEHICLE, Verb.APPROVE, _ADMINS),
    PolicyRule(RK.VEHICLE, Verb.REJECT, _ADMINS),

    PolicyRule(RK.BOOKING, Verb.CREATE, frozenset({Role.RENTER, Role.OWNER})),
    PolicyRule(RK.BOOKING, Verb.VIEW, frozenset({Role.RENTER, Role.OWNER, Role.ADMIN}), True),
    PolicyRule(RK.BOOKING, Verb.CANCEL, frozenset({Role.RENTER, Role.OWNER, Role.ADMIN}), True),

    PolicyRule(RK.VEHICLE_BOOKING, Verb.VIEW, _OWNERS, True),
    PolicyRule(RK.VEHICLE_BOOKING, Verb.CONFIRM, _OWNERS, True),
    PolicyRule(RK.VEHICLE_BOOKING, Verb.REJECT, _OWNERS, True),
    PolicyRule(RK.VEHICLE_BOOKING, Verb.CANCEL, _OWNERS, True),
    PolicyRule(RK.VEHICLE_BOOKING, Verb.COMPLETE, _ADMINS),

    PolicyRule(RK.EARNINGS, Verb.VIEW, _OWNERS, True),
    PolicyRule(RK.PLATFORM, Verb.VIEW, _ADMINS),

    PolicyRule(RK.OWNER_REQUEST, Verb.CREATE, frozenset({Role.RENTER})),
    PolicyRule(RK.OWNER_REQUEST, Verb.VIEW, _ADMINS),
    PolicyRule(RK.OWNER_REQUEST, Verb.APPROVE, _ADMINS),
    PolicyRule(RK.OWNER_REQUEST, Verb.REJECT, _ADMINS),
)

POLICY_TABLE = MappingProxyType({(r.resource_kind, r.action): r for r in _RULES})

"""
Policy table tests: the gate is a pure function, so every rule can be
checked without any store or HTTP layer.
"""

import pytest

from app.exceptions import ForbiddenError, NoPolicyError
from app.models.policy import POLICY_TABLE, Action
from app.models.user import Principal
from app.services.authorization import FORBIDDEN, NO_POLICY, AuthorizationGate
from app.utils.constants import ResourceKind, Role, Verb

ALL_ROLES = (Role.GUEST, Role.RENTER, Role.OWNER, Role.ADMIN)


def _p(uid, *roles):
    return Principal(user_id=uid, roles=frozenset(roles))


@pytest.mark.parametrize("key", sorted(POLICY_TABLE))
@pytest.mark.parametrize("role", ALL_ROLES)
def test_every_rule_for_every_role(key, role):
    rule = POLICY_TABLE[key]
    action = Action(rule.resource_kind, rule.action, "r1", resource_owner_id="me")
    decision = AuthorizationGate.authorize(_p("me", role), action)
    assert decision.allowed == (role in rule.allowed_roles)

    # not the owner: only rules without ownership (or admins) pass
    stranger = Action(rule.resource_kind, rule.action, "r1", resource_owner_id="someone-else")
    decision = AuthorizationGate.authorize(_p("me", role), stranger)
    expected = role in rule.allowed_roles and (not rule.ownership_required or role == Role.ADMIN)
    assert decision.allowed == expected


def test_policy_table_is_read_only():
    with pytest.raises(TypeError):
        POLICY_TABLE[("booking", "delete")] = None


def test_unknown_action_fails_closed():
    decision = AuthorizationGate.authorize(_p("a", Role.ADMIN), Action("booking", "delete"))
    assert not decision.allowed
    assert decision.reason == NO_POLICY
    with pytest.raises(NoPolicyError):
        AuthorizationGate.enforce(_p("a", Role.ADMIN), Action("booking", "delete"))


def test_non_owner_cannot_confirm_someone_elses_booking():
    action = Action(ResourceKind.VEHICLE_BOOKING, Verb.CONFIRM, "b1", resource_owner_id="owner-1")
    decision = AuthorizationGate.authorize(_p("owner-2", Role.RENTER, Role.OWNER), action)
    assert not decision.allowed
    assert decision.reason == FORBIDDEN
    with pytest.raises(ForbiddenError):
        AuthorizationGate.enforce(_p("owner-2", Role.RENTER, Role.OWNER), action)


def test_owner_can_confirm_on_own_vehicle():
    action = Action(ResourceKind.VEHICLE_BOOKING, Verb.CONFIRM, "b1", resource_owner_id="owner-1")
    assert AuthorizationGate.authorize(_p("owner-1", Role.RENTER, Role.OWNER), action).allowed


def test_admin_bypasses_ownership():
    action = Action(ResourceKind.VEHICLE_BOOKING, Verb.CONFIRM, "b1", resource_owner_id="owner-1")
    assert AuthorizationGate.authorize(_p("root", Role.RENTER, Role.ADMIN), action).allowed


def test_renter_without_owner_role_cannot_confirm_even_if_ids_match():
    action = Action(ResourceKind.VEHICLE_BOOKING, Verb.CONFIRM, "b1", resource_owner_id="u1")
    assert not AuthorizationGate.authorize(_p("u1", Role.RENTER), action).allowed


def test_guest_may_view_vehicles_but_not_book():
    guest = Principal.guest()
    assert AuthorizationGate.authorize(guest, Action(ResourceKind.VEHICLE, Verb.VIEW)).allowed
    assert not AuthorizationGate.authorize(guest, Action(ResourceKind.BOOKING, Verb.CREATE)).allowed


def test_guest_never_matches_ownership():
    guest = Principal.guest()
    action = Action(ResourceKind.BOOKING, Verb.VIEW, "b1", resource_owner_id=None)
    assert not AuthorizationGate.authorize(guest, action).allowed


def test_only_admins_decide_owner_requests():
    approve = Action(ResourceKind.OWNER_REQUEST, Verb.APPROVE, "r1")
    assert not AuthorizationGate.authorize(_p("u1", Role.RENTER), approve).allowed
    assert not AuthorizationGate.authorize(_p("o1", Role.RENTER, Role.OWNER), approve).allowed
    assert AuthorizationGate.authorize(_p("root", Role.RENTER, Role.ADMIN), approve).allowed
    submit = Action(ResourceKind.OWNER_REQUEST, Verb.CREATE)
    assert not AuthorizationGate.authorize(Principal.guest(), submit).allowed


def test_vehicle_management_requires_ownership():
    manage = Action(ResourceKind.VEHICLE, Verb.MANAGE, "v1", resource_owner_id="owner-1")
    assert AuthorizationGate.authorize(_p("owner-1", Role.RENTER, Role.OWNER), manage).allowed
    assert not AuthorizationGate.authorize(_p("owner-2", Role.RENTER, Role.OWNER), manage).allowed
    assert not AuthorizationGate.authorize(_p("owner-1", Role.RENTER), manage).allowed

"""
Authorization Gate.

Every mutating operation builds an ``Action`` and passes it here before
touching reservation state. Evaluation is a pure lookup in the static
policy table: unknown (resource kind, verb) pairs are denied.
"""

from dataclasses import dataclass
from typing import Mapping

from app.exceptions import ForbiddenError, NoPolicyError
from app.models.policy import POLICY_TABLE, Action, PolicyRule
from app.models.user import Principal
from app.utils.logger import get_logger

log = get_logger(__name__)

NO_POLICY = "NoPolicy"
FORBIDDEN = "Forbidden"


@dataclass(frozen=True)
class Decision:
    allowed: bool
    reason: str | None = None


ALLOW = Decision(True)


class AuthorizationGate:

    @staticmethod
    def authorize(principal: Principal, action: Action,
                  policy: Mapping[tuple, PolicyRule] = POLICY_TABLE) -> Decision:
        rule = policy.get((action.resource_kind, action.verb))
        if rule is None:
            return Decision(False, NO_POLICY)
        if not principal.has_any(rule.allowed_roles):
            return Decision(False, FORBIDDEN)
        if rule.ownership_required and not principal.is_admin:
            if principal.user_id is None or principal.user_id != action.resource_owner_id:
                return Decision(False, FORBIDDEN)
        return ALLOW

    @staticmethod
    def enforce(principal: Principal, action: Action) -> None:
        """Raise NoPolicyError / ForbiddenError unless the action is allowed."""
        decision = AuthorizationGate.authorize(principal, action)
        if decision.allowed:
            return
        log.debug("Denied %s %s/%s on %s: %s", principal.user_id, action.resource_kind,
                  action.verb, action.resource_id, decision.reason)
        if decision.reason == NO_POLICY:
            raise NoPolicyError(f"Error: no policy for {action.resource_kind}/{action.verb}")
        raise ForbiddenError()

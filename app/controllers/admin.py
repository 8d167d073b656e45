from flask import Blueprint, jsonify, request

from ..models.policy import Action
from ..services.authorization import AuthorizationGate
from ..services.lifecycle_service import LifecycleService
from ..services.user_service import UserService
from ..services.vehicle_service import VehicleService
from ..utils.constants import OwnerRequestStatus, ResourceKind, Verb
from ..utils.decorators import current_principal, login_required
from .bookings import _vehicle_json

bp = Blueprint("admin", __name__, url_prefix="/api/admin")


@bp.get("/vehicles/pending")
@login_required
def pending_vehicles():
    AuthorizationGate.enforce(current_principal(), Action(ResourceKind.VEHICLE, Verb.APPROVE))
    vehicles = [v for v in VehicleService.list_vehicles(approved_only=False)
                if v.status == "pending_approval"]
    return jsonify([_vehicle_json(v) for v in vehicles])


@bp.post("/vehicles/<vid>/approve")
@login_required
def approve_vehicle(vid):
    AuthorizationGate.enforce(current_principal(), Action(ResourceKind.VEHICLE, Verb.APPROVE, vid))
    return jsonify(_vehicle_json(VehicleService.set_approval(vid, True)))


@bp.post("/vehicles/<vid>/reject")
@login_required
def reject_vehicle(vid):
    AuthorizationGate.enforce(current_principal(), Action(ResourceKind.VEHICLE, Verb.REJECT, vid))
    return jsonify(_vehicle_json(VehicleService.set_approval(vid, False)))


@bp.get("/bookings")
@login_required
def all_bookings():
    AuthorizationGate.enforce(current_principal(), Action(ResourceKind.PLATFORM, Verb.VIEW))
    return jsonify([b.to_dict() for b in UserService.all_bookings()])


@bp.get("/earnings")
@login_required
def platform_earnings():
    AuthorizationGate.enforce(current_principal(), Action(ResourceKind.PLATFORM, Verb.VIEW))
    return jsonify(LifecycleService.platform_fee_ledger())


@bp.post("/bookings/complete-elapsed")
@login_required
def complete_elapsed():
    """Mark confirmed bookings whose end date has passed as completed."""
    AuthorizationGate.enforce(current_principal(),
                              Action(ResourceKind.VEHICLE_BOOKING, Verb.COMPLETE))
    done = LifecycleService.complete_elapsed()
    return jsonify({"completed": [b.booking_id for b in done]})


@bp.get("/owner-requests")
@login_required
def owner_requests():
    """Pending requests by default; ?status=all lists every request."""
    AuthorizationGate.enforce(current_principal(), Action(ResourceKind.OWNER_REQUEST, Verb.VIEW))
    status = request.args.get("status") or OwnerRequestStatus.PENDING
    return jsonify(UserService.list_owner_requests(None if status == "all" else status))


@bp.post("/owner-requests/<rid>/approve")
@login_required
def approve_owner_request(rid):
    AuthorizationGate.enforce(current_principal(),
                              Action(ResourceKind.OWNER_REQUEST, Verb.APPROVE, rid))
    return jsonify(UserService.decide_owner_request(rid, approve=True))


@bp.post("/owner-requests/<rid>/reject")
@login_required
def reject_owner_request(rid):
    AuthorizationGate.enforce(current_principal(),
                              Action(ResourceKind.OWNER_REQUEST, Verb.REJECT, rid))
    return jsonify(UserService.decide_owner_request(rid, approve=False))

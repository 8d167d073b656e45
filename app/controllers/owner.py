from flask import Blueprint, jsonify, request

from ..models.policy import Action
from ..services.authorization import AuthorizationGate
from ..services.lifecycle_service import LifecycleService
from ..services.user_service import UserService
from ..services.vehicle_service import VehicleService
from ..utils.constants import ResourceKind, Verb
from ..utils.decorators import current_principal, login_required
from .bookings import _vehicle_json
from .common import json_body

bp = Blueprint("owner", __name__, url_prefix="/api/owner")


@bp.post("/vehicles")
@login_required
def register_vehicle():
    """New vehicles wait for admin approval before they can be booked."""
    data = json_body("name", "price_per_day")
    principal = current_principal()
    AuthorizationGate.enforce(principal, Action(ResourceKind.VEHICLE, Verb.CREATE))
    v = VehicleService.register_vehicle(principal.user_id, data)
    return jsonify(_vehicle_json(v)), 201


@bp.get("/vehicles")
@login_required
def my_vehicles():
    principal = current_principal()
    AuthorizationGate.enforce(principal, Action(ResourceKind.VEHICLE, Verb.MANAGE,
                                                resource_owner_id=principal.user_id))
    vehicles = VehicleService.list_vehicles(approved_only=False, owner_id=principal.user_id)
    return jsonify([_vehicle_json(v) for v in vehicles])


@bp.get("/bookings")
@login_required
def owner_bookings():
    """Booking requests on the current owner's vehicles."""
    principal = current_principal()
    AuthorizationGate.enforce(principal, Action(ResourceKind.VEHICLE_BOOKING, Verb.VIEW,
                                                resource_owner_id=principal.user_id))
    return jsonify([b.to_dict() for b in UserService.bookings_for_owner(principal.user_id)])


@bp.get("/earnings")
@login_required
def owner_earnings():
    """Own earnings; admins may pass ?owner_id= to look at another owner."""
    principal = current_principal()
    owner_id = request.args.get("owner_id") or principal.user_id
    AuthorizationGate.enforce(principal, Action(ResourceKind.EARNINGS, Verb.VIEW,
                                                owner_id, owner_id))
    return jsonify({"owner_id": owner_id, "earnings": LifecycleService.get_owner_earnings(owner_id)})


@bp.post("/request")
@login_required
def request_owner_rights():
    """A renter asks to list vehicles; an admin decides."""
    principal = current_principal()
    AuthorizationGate.enforce(principal, Action(ResourceKind.OWNER_REQUEST, Verb.CREATE))
    data = request.get_json(silent=True) or {}
    req = UserService.submit_owner_request(principal.user_id, str(data.get("note") or ""))
    return jsonify(req), 201

from flask import Blueprint, jsonify, request

from ..exceptions import NotFoundError, ValidationError
from ..models.policy import Action
from ..services.authorization import AuthorizationGate
from ..services.lifecycle_service import LifecycleService
from ..services.rental_service import RentalService
from ..services.user_service import UserService
from ..services.vehicle_service import VehicleService
from ..utils.constants import ResourceKind, Verb
from ..utils.decorators import current_principal, login_required, principal_optional
from .common import json_body

bp = Blueprint("bookings", __name__, url_prefix="/api")


def _vehicle_json(v) -> dict:
    return {
        "vehicle_id": v.vehicle_id,
        "owner_id": v.owner_id,
        "name": v.name,
        "price_per_day": v.price_per_day,
        "approved": v.approved,
        "status": v.status,
    }


@bp.get("/vehicles")
@principal_optional
def list_vehicles():
    """Approved vehicles, visible to anyone."""
    AuthorizationGate.enforce(current_principal(), Action(ResourceKind.VEHICLE, Verb.VIEW))
    return jsonify([_vehicle_json(v) for v in VehicleService.list_vehicles()])


def _visible_vehicle(vid):
    """Unapproved vehicles exist only for their owner and admins."""
    principal = current_principal()
    v = VehicleService.get_vehicle(vid)
    AuthorizationGate.enforce(principal, Action(ResourceKind.VEHICLE, Verb.VIEW, vid, v.owner_id))
    if not v.approved:
        manage = Action(ResourceKind.VEHICLE, Verb.MANAGE, vid, v.owner_id)
        if not AuthorizationGate.authorize(principal, manage).allowed:
            raise NotFoundError(f"Error: vehicle '{vid}' not found")
    return v


@bp.get("/vehicles/<vid>")
@principal_optional
def vehicle_detail(vid):
    """Vehicle with its booked date ranges (no renter details)."""
    v = _visible_vehicle(vid)
    data = _vehicle_json(v)
    data["booked"] = [{"start": s, "end": e} for s, e in RentalService.availability_calendar(vid)]
    return jsonify(data)


@bp.get("/vehicles/<vid>/availability")
@principal_optional
def vehicle_availability(vid):
    """Public availability check: ?start=YYYY-MM-DD&end=YYYY-MM-DD."""
    start = request.args.get("start")
    end = request.args.get("end")
    if not start or not end:
        raise ValidationError("Error: start and end query parameters are required")
    _visible_vehicle(vid)
    return jsonify({
        "vehicle_id": vid,
        "start": start,
        "end": end,
        "available": RentalService.check_availability(vid, start, end),
    })


@bp.post("/bookings")
@login_required
def create_booking():
    """Reserve a vehicle for the current user; the booking starts as pending."""
    data = json_body("vehicle_id", "start_date", "end_date", "total_amount", "platform_fee")
    principal = current_principal()
    AuthorizationGate.enforce(principal, Action(ResourceKind.BOOKING, Verb.CREATE))
    booking = RentalService.create_booking(
        vehicle_id=str(data["vehicle_id"]),
        renter_id=principal.user_id,
        start_date=data["start_date"],
        end_date=data["end_date"],
        total_amount=data["total_amount"],
        platform_fee=data["platform_fee"],
    )
    return jsonify(booking.to_dict()), 201


@bp.get("/bookings")
@login_required
def my_bookings():
    principal = current_principal()
    AuthorizationGate.enforce(principal, Action(ResourceKind.BOOKING, Verb.VIEW,
                                                resource_owner_id=principal.user_id))
    return jsonify([b.to_dict() for b in UserService.bookings_for_renter(principal.user_id)])


@bp.get("/bookings/<bid>")
@login_required
def booking_detail(bid):
    """Visible to the renter, the vehicle owner and admins."""
    principal = current_principal()
    booking = RentalService.get_booking(bid)
    if principal.user_id == booking.renter_id:
        action = Action(ResourceKind.BOOKING, Verb.VIEW, bid, booking.renter_id)
    else:
        action = Action(ResourceKind.VEHICLE_BOOKING, Verb.VIEW, bid,
                        LifecycleService.vehicle_owner(booking))
    AuthorizationGate.enforce(principal, action)
    return jsonify(booking.to_dict())


@bp.patch("/bookings/<bid>")
@login_required
def update_booking_status(bid):
    """Body: {"status": "confirmed" | "rejected" | "cancelled" | "completed"}."""
    data = json_body("status")
    status = str(data["status"]).strip().lower()
    booking = LifecycleService.apply_transition(bid, status, current_principal())
    return jsonify(booking.to_dict())

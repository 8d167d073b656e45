from __future__ import annotations

from typing import List

from app.exceptions import NotFoundError, ValidationError
from app.models.vehicle import Vehicle
from app.services.common import _store, to_amount, vehicle_from_dict
from app.utils.logger import get_logger

log = get_logger(__name__)


class VehicleService:
    """Vehicle catalogue as far as reservations need it: register, approve, look up."""

    @staticmethod
    def register_vehicle(owner_id: str, payload: dict) -> Vehicle:
        """Create an unapproved vehicle for ``owner_id``."""
        name = (payload.get("name") or "").strip()
        if not name:
            raise ValidationError("Error: vehicle name is required")
        price = to_amount(payload.get("price_per_day"), "price_per_day")

        st = _store()
        vid = st.create_vehicle({
            "owner_id": owner_id,
            "name": name,
            "price_per_day": price,
            "approved": False,
            "status": "pending_approval",
        })
        log.info("Vehicle %s registered by owner %s", vid, owner_id)
        return vehicle_from_dict(st.get_vehicle(vid))

    @staticmethod
    def get_vehicle(vehicle_id: str) -> Vehicle:
        """Return a vehicle by ID or raise NotFoundError."""
        v = vehicle_from_dict(_store().get_vehicle(vehicle_id))
        if v is None:
            raise NotFoundError(f"Error: vehicle '{vehicle_id}' not found")
        return v

    @staticmethod
    def set_approval(vehicle_id: str, approved: bool) -> Vehicle:
        st = _store()
        ok = st.update_vehicle(
            vehicle_id,
            approved=bool(approved),
            status="approved" if approved else "rejected",
        )
        if not ok:
            raise NotFoundError(f"Error: vehicle '{vehicle_id}' not found")
        log.info("Vehicle %s %s", vehicle_id, "approved" if approved else "rejected")
        return VehicleService.get_vehicle(vehicle_id)

    @staticmethod
    def list_vehicles(approved_only: bool = True, owner_id: str | None = None) -> List[Vehicle]:
        res = [vehicle_from_dict(d) for d in _store().list_vehicles()]
        if approved_only:
            res = [v for v in res if v.approved]
        if owner_id is not None:
            res = [v for v in res if v.owner_id == owner_id]
        res.sort(key=lambda v: v.name.lower())
        return res

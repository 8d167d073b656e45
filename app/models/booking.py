from dataclasses import dataclass, asdict
from datetime import date, datetime


@dataclass(frozen=True)
class Booking:
    """
    A reservation of one vehicle for an inclusive date range.
    Frozen: a status change produces a new record through ``with_status``,
    so amounts can never be edited after creation.
    """
    booking_id: str
    vehicle_id: str
    renter_id: str
    start_date: date
    end_date: date
    status: str
    total_amount: float
    platform_fee: float
    created_at: datetime

    def overlaps(self, start: date, end: date) -> bool:
        """Inclusive ranges: touching on a single day counts as overlap."""
        return not (self.end_date < start or self.start_date > end)

    def with_status(self, status: str) -> "Booking":
        data = asdict(self)
        data["status"] = status
        return Booking(**data)

    def to_dict(self) -> dict:
        return {
            "booking_id": self.booking_id,
            "vehicle_id": self.vehicle_id,
            "renter_id": self.renter_id,
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "status": self.status,
            "total_amount": self.total_amount,
            "platform_fee": self.platform_fee,
            "created_at": self.created_at.isoformat(timespec="seconds"),
        }

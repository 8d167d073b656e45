from dataclasses import dataclass


@dataclass
class Vehicle:
    """
    Vehicle as seen by the reservation core: only its owner and approval
    flag matter for booking decisions.
    """
    vehicle_id: str
    owner_id: str
    name: str
    price_per_day: float
    approved: bool = False
    status: str = "pending_approval"  # "pending_approval" | "approved" | "rejected"

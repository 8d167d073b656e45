"""Shared service helpers and factories."""

from typing import Callable, Optional, TypeVar

from app.exceptions import StorageUnavailableError, ValidationError
from app.models.store import Store
from app.models.vehicle import Vehicle
from app.utils.dates import local_today
from app.utils.logger import get_logger

log = get_logger(__name__)

T = TypeVar("T")


def _store() -> Store:
    """Get the singleton store instance."""
    return Store.instance()


def _today():
    """Wrapper for easier testing/mocking."""
    return local_today()


def round2(x: float) -> float:
    return round(float(x), 2)


def to_amount(value, field: str) -> float:
    """Parse a non-negative money amount or raise ValidationError."""
    try:
        amount = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Error: {field} must be a number")
    if amount < 0 or amount != amount:  # NaN
        raise ValidationError(f"Error: {field} must be non-negative")
    return round2(amount)


def with_read_retries(fn: Callable[[], T], attempts: int) -> T:
    """Run a read, retrying only StorageUnavailableError up to ``attempts`` extra times."""
    for attempt in range(attempts + 1):
        try:
            return fn()
        except StorageUnavailableError:
            if attempt >= attempts:
                raise
            log.warning("Read hit storage timeout, retry %d/%d", attempt + 1, attempts)
    raise StorageUnavailableError()  # pragma: no cover


# -------- dict -> rich model mappers --------
def vehicle_from_dict(d: Optional[dict]) -> Optional[Vehicle]:
    """Map a stored vehicle dict to a Vehicle object."""
    if not d:
        return None
    return Vehicle(
        vehicle_id=d["vehicle_id"],
        owner_id=d["owner_id"],
        name=d.get("name", ""),
        price_per_day=float(d.get("price_per_day") or 0.0),
        approved=bool(d.get("approved")),
        status=d.get("status", "pending_approval"),
    )

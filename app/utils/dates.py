"""Date parsing and local-calendar helpers."""
from datetime import date, datetime, timezone

import pytz

from app.config import Config
from app.utils.constants import DATE_FMT


def as_date(x) -> date:
    """Coerce any date-like to a naive date (supports 'YYYY-MM-DD' or ISO with T)."""
    if isinstance(x, datetime):
        return x.date()
    if isinstance(x, date):
        return x
    if isinstance(x, str):
        base = x.split("T", 1)[0].strip()
        return datetime.strptime(base, DATE_FMT).date()
    raise ValueError(f"Unsupported date: {x!r}")


def local_today(tz_name: str | None = None) -> date:
    """Today's calendar date in the marketplace's timezone, not the server's."""
    tz = pytz.timezone(tz_name or Config.APP_TIMEZONE)
    return datetime.now(timezone.utc).astimezone(tz).date()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo

from ..core.constants import LOCAL_TIMEZONE

_LOCAL_TZ = ZoneInfo(LOCAL_TIMEZONE)


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def parse_api_datetime(value: Optional[str]) -> Optional[datetime]:
    """Parse ISO timestamps as sent by the backend ("...Z" or with offset)."""
    if not value:
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


def now_local() -> datetime:
    """Current time in the academy's timezone.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now(_LOCAL_TZ)


def today_local() -> date:
    return now_local().date()


def to_iso_with_current_time(day: date, *, now: Optional[datetime] = None) -> str:
    """Combine the selected day with the current UTC time of day.

    The backend stores `fechaAsis` as a full UTC timestamp; only the date part
    is meaningful for attendance.
    """
    now_utc = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
    stamped = datetime(day.year, day.month, day.day, now_utc.hour, now_utc.minute, now_utc.second, tzinfo=timezone.utc)
    return stamped.isoformat().replace("+00:00", "Z")


def format_display_date(value: Optional[datetime | date], *, with_time: bool = False) -> str:
    if value is None:
        return "N/A"
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(_LOCAL_TZ)
        return value.strftime("%d/%m/%Y %H:%M" if with_time else "%d/%m/%Y")
    return value.strftime("%d/%m/%Y")

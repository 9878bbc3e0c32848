"""Date parsing and booking-window checks"""

from datetime import datetime, timedelta, timezone
from typing import Optional

from reservation_service.config import settings
from reservation_service.services.errors import InvalidArgument


def parse_instant(value: Optional[str], field: str = "reservedAt") -> datetime:
    """Parse an ISO 8601 instant into naive UTC. Offset-less values are taken as UTC."""
    if not value or not isinstance(value, str):
        raise InvalidArgument(f"{field} must be a valid ISO date string")

    raw = value.strip()
    if raw.endswith(("Z", "z")):
        raw = raw[:-1] + "+00:00"

    try:
        parsed = datetime.fromisoformat(raw)
    except ValueError:
        raise InvalidArgument(f"{field} must be a valid ISO date string")

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def ensure_bookable(reserved_at: datetime, now: datetime) -> datetime:
    """Reservations are allowed from now up to max_advance_days ahead"""
    latest = now + timedelta(days=settings.max_advance_days)
    if reserved_at < now:
        raise InvalidArgument("reservedAt cannot be in the past")
    if reserved_at > latest:
        raise InvalidArgument(
            f"Reservations can only be made within {settings.max_advance_days} days"
        )
    return reserved_at


def parse_bookable(value: Optional[str], now: datetime) -> datetime:
    return ensure_bookable(parse_instant(value), now)


def normalize_phone(value: Optional[str]) -> Optional[str]:
    """Trim; blank means no override"""
    if value is None:
        return None
    value = value.strip()
    return value or None


def parse_offset(value: str) -> timezone:
    """'+05:30' -> timezone(timedelta(hours=5, minutes=30))"""
    try:
        sign = -1 if value.startswith("-") else 1
        hours, minutes = value.lstrip("+-").split(":")
        return timezone(sign * timedelta(hours=int(hours), minutes=int(minutes)))
    except ValueError:
        raise InvalidArgument(f"Invalid timezone offset: {value}")


def day_window(date: Optional[str], time: Optional[str], offset: str):
    """UTC bounds of a local calendar day, optionally starting at HH:MM"""
    date = (date or "").strip()
    if not date:
        raise InvalidArgument("date is required (YYYY-MM-DD)")

    tz = parse_offset(offset)
    try:
        day = datetime.strptime(date, "%Y-%m-%d")
        start = day
        if time:
            clock = datetime.strptime(time.strip(), "%H:%M")
            start = day.replace(hour=clock.hour, minute=clock.minute)
    except ValueError:
        raise InvalidArgument("Invalid date/time format")

    end = day.replace(hour=23, minute=59, second=59, microsecond=999000)

    def to_utc(local: datetime) -> datetime:
        return local.replace(tzinfo=tz).astimezone(timezone.utc).replace(tzinfo=None)

    return to_utc(start), to_utc(end)

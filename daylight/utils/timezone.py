"""Timezone helpers for user-local dates and model-generated timestamps.

Every conversion between a user's wall-clock time and a stored UTC instant
goes through this module. Callers always pass the IANA timezone explicitly.
"""

import re
from datetime import datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from daylight.utils.logging import get_logger

LOGGER = get_logger(__name__)

DEFAULT_TIMEZONE = "UTC"

_NUMERIC_OFFSET_RE = re.compile(r"[+-]\d{2}:\d{2}$")
_FRACTION_RE = re.compile(r"\.\d+$")
_WALL_CLOCK_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})T(\d{2}):(\d{2}):?(\d{2})?")


def is_valid_timezone(tz_name: Optional[str]) -> bool:
    """Return True if ``tz_name`` names a zone in the IANA database."""
    if not tz_name:
        return False
    try:
        ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError, TypeError):
        return False
    return True


def to_utc_iso(value: datetime) -> str:
    """Format an aware datetime as ``YYYY-MM-DDTHH:MM:SS.mmmZ``."""
    utc_value = value.astimezone(timezone.utc)
    return utc_value.strftime("%Y-%m-%dT%H:%M:%S") + f".{utc_value.microsecond // 1000:03d}Z"


def parse_iso_timestamp(value: Optional[str], tz_name: str) -> Optional[datetime]:
    """Parse an ISO-8601 string into an aware datetime, or None if it is not one.

    Values without an offset, date-only values included, are wall-clock time
    in ``tz_name``; a date alone means local midnight. An unknown zone falls
    back to UTC.
    """
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        try:
            zone = ZoneInfo(tz_name)
        except (ZoneInfoNotFoundError, ValueError, TypeError):
            LOGGER.warning(f"Unknown timezone {tz_name!r}, reading {value!r} as UTC")
            zone = timezone.utc
        parsed = parsed.replace(tzinfo=zone)
    return parsed


def local_date_string(tz_name: str, now: Optional[datetime] = None) -> str:
    """Return the user's calendar day (``YYYY-MM-DD``) in ``tz_name``.

    Args:
        tz_name: IANA timezone of the user
        now: Reference instant; defaults to the current time. Naive values are
            treated as UTC.

    Raises:
        ZoneInfoNotFoundError: If ``tz_name`` is not a known zone
    """
    instant = now or datetime.now(timezone.utc)
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=timezone.utc)
    return instant.astimezone(ZoneInfo(tz_name)).strftime("%Y-%m-%d")


def reinterpret_timestamp_in_timezone(timestamp: Optional[str], tz_name: str) -> Optional[str]:
    """Reinterpret a model timestamp whose wall clock is really local time.

    The model is told the user's timezone but often answers "3:15 PM" with
    ``2026-01-29T15:15:00Z``. Those wall-clock values are read as local time
    in ``tz_name`` and converted to the matching UTC instant.

    Timestamps that already carry a numeric offset are returned unchanged, as
    is anything that cannot be parsed. This function never raises.

    Args:
        timestamp: Model-generated ISO-8601 string (``Z`` suffix, offset, or bare)
        tz_name: IANA timezone of the user, e.g. ``America/New_York``

    Returns:
        Corrected UTC timestamp (``...000Z``), the input unchanged, or None
    """
    if not timestamp:
        return None

    if _NUMERIC_OFFSET_RE.search(timestamp) and not timestamp.endswith("Z"):
        return timestamp

    local_str = _FRACTION_RE.sub("", timestamp[:-1] if timestamp.endswith("Z") else timestamp)
    match = _WALL_CLOCK_RE.match(local_str)
    if not match:
        return timestamp

    year, month, day, hour, minute, second = match.groups(default="00")

    try:
        zone = ZoneInfo(tz_name)
        wall_clock = datetime(int(year), int(month), int(day), int(hour), int(minute), int(second))

        # Pretend the wall clock is UTC, see what the zone would display for
        # that instant, then shift back by the difference.
        candidate = wall_clock.replace(tzinfo=timezone.utc)
        displayed = candidate.astimezone(zone).replace(tzinfo=None)
        offset = displayed - wall_clock
        corrected = candidate - offset
    except (ZoneInfoNotFoundError, ValueError, TypeError, OverflowError) as e:
        LOGGER.debug(f"Could not reinterpret timestamp {timestamp!r} in {tz_name!r}: {e}")
        return timestamp

    return to_utc_iso(corrected)

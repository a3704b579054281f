# =============================================================================
# lib/utils.py - Shared Utilities
# =============================================================================
# Common utilities used across the application.
# =============================================================================

from datetime import datetime, time, timezone
from uuid import UUID


# =============================================================================
# UUID Utilities
# =============================================================================

def normalize_uuid(value: str | UUID) -> str:
    """
    Normalize a UUID to string format.

    Handles both string and UUID objects, ensuring consistent string output.

    Example:
        listing_id = normalize_uuid(uuid_obj)  # "550e8400-..."
        listing_id = normalize_uuid("550e8400-...")  # "550e8400-..."
    """
    return str(value) if isinstance(value, UUID) else value


# =============================================================================
# Time Utilities
# =============================================================================

def utc_now_iso() -> str:
    """Current UTC time as an ISO-8601 string (the format Postgres accepts)."""
    return datetime.now(timezone.utc).isoformat()


def format_hhmm(value: time | str) -> str:
    """
    Normalize a time of day to "HH:MM".

    Postgres `time` columns come back as "HH:MM:SS"; clients send "HH:MM".
    Both compare correctly as strings once trimmed to the same width.

    Example:
        format_hhmm("09:00:00")  # "09:00"
        format_hhmm(time(9, 30))  # "09:30"
    """
    if isinstance(value, time):
        return value.strftime("%H:%M")
    return value[:5]


def hours_between(start: time | str, end: time | str) -> float:
    """
    Number of hours from start to end on the same day.

    Returns a negative or zero value when end is not after start.
    """
    start_h, start_m = (int(p) for p in format_hhmm(start).split(":"))
    end_h, end_m = (int(p) for p in format_hhmm(end).split(":"))
    return ((end_h * 60 + end_m) - (start_h * 60 + start_m)) / 60


def times_overlap(start_a: str, end_a: str, start_b: str, end_b: str) -> bool:
    """True when [start_a, end_a) and [start_b, end_b) share any time."""
    return format_hhmm(start_a) < format_hhmm(end_b) and format_hhmm(end_a) > format_hhmm(start_b)

"""
Value converters - timestamps and loosely typed JSON fields.
"""

from datetime import datetime, timezone


def utc_now_iso() -> str:
    """Current UTC time as an ISO-8601 string with millisecond precision."""
    now = datetime.now(timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"


def parse_timestamp(value: object) -> datetime | None:
    """Parse an ISO-8601 timestamp (trailing Z allowed). Returns None if unparseable."""
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        pass
    # Date-only values such as "2024-05-01"
    try:
        return datetime.strptime(text[:10], "%Y-%m-%d")
    except ValueError:
        return None


def as_text(value: object, default: str = "") -> str:
    """Coerce an optional JSON scalar to a string."""
    if value is None:
        return default
    if isinstance(value, str):
        return value
    return str(value)


def as_list(value: object) -> list:
    if isinstance(value, list):
        return value
    return []


def as_dict(value: object) -> dict:
    if isinstance(value, dict):
        return value
    return {}

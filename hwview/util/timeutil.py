"""Utility functions for time operations."""

from datetime import datetime
from typing import Optional


def now_iso() -> str:
    """Get the current local time in ISO 8601 format with milliseconds and offset."""
    return datetime.now().astimezone().isoformat(timespec="milliseconds")


def parse_iso(iso_string: str) -> Optional[datetime]:
    """Parse an ISO 8601 timestamp, returning None when it is not one."""
    if not iso_string:
        return None
    try:
        return datetime.fromisoformat(iso_string.replace("Z", "+00:00"))
    except ValueError:
        return None

"""
Core Utilities.

Shared utility functions used across the package.
"""

from datetime import datetime, timezone


def utc_now() -> datetime:
    """
    Return current UTC time as timezone-naive datetime.

    All datetime values in the application are timezone-naive and assumed
    to be UTC. This keeps comparisons consistent between values read back
    from SQLite, from backups and from legacy files.
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)


def from_epoch_millis(value: int) -> datetime:
    """Convert epoch milliseconds (legacy files) to a naive UTC datetime."""
    return datetime.fromtimestamp(value / 1000, tz=timezone.utc).replace(tzinfo=None)


def to_epoch_millis(value: datetime) -> int:
    """Convert a naive UTC datetime to epoch milliseconds."""
    return int(value.replace(tzinfo=timezone.utc).timestamp() * 1000)

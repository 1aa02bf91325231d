"""Time utilities."""

from datetime import datetime, timezone
import time


def utc_now() -> datetime:
    """Get current UTC time (timezone-aware)."""
    return datetime.now(timezone.utc)


def timestamp_ms() -> int:
    """Get current timestamp in milliseconds."""
    return int(time.time() * 1000)


def from_unix_seconds(seconds: int | float) -> datetime:
    """Convert a ledger timestamp (seconds) to an aware UTC datetime."""
    return datetime.fromtimestamp(seconds, tz=timezone.utc)



def monotonic_ms() -> float:
    """Monotonic clock in milliseconds; only differences are meaningful."""
    return time.perf_counter() * 1000

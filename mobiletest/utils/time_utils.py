import time
from datetime import datetime, timezone


def now_iso_utc() -> str:
    """Return current UTC time as ISO-8601 string with timezone."""
    return datetime.now(timezone.utc).isoformat()


def elapsed_since(start: float) -> float:
    """Seconds elapsed on the monotonic clock since ``start``."""
    return time.monotonic() - start


__all__ = ["now_iso_utc", "elapsed_since"]

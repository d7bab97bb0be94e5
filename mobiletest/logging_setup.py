from __future__ import annotations

import logging
import logging.handlers
import os
from pathlib import Path

ROOT = Path(os.getenv("MOBILETEST_LOG_ROOT") or Path.cwd())
LOG_DIR = ROOT / "logs"
TEST_LOG = LOG_DIR / "mobiletest.log"
TEST_EVENTS_LOG = LOG_DIR / "mobiletest_events.log"

_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
_DATEFMT = "%Y-%m-%dT%H:%M:%S"


def _safe_mkdir(path: Path) -> bool:
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError:
        return False
    return True


def _flag_from_env(var: str, default: bool) -> bool:
    value = os.getenv(var)
    if value is None:
        return default
    return str(value).strip().lower() not in {"0", "false", "off", "no", "none"}


def _rotating_handler(path: Path) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(
        path,
        maxBytes=1_000_000,
        backupCount=2,
        encoding="utf-8",
        delay=True,
    )
    handler.setLevel(logging.INFO)
    handler.setFormatter(logging.Formatter(fmt=_FORMAT, datefmt=_DATEFMT))
    return handler


def setup_logging() -> None:
    """Configure rotating file logging for a test session."""
    if not _flag_from_env("MOBILETEST_FILE_LOGGING", True):
        return
    if not _safe_mkdir(LOG_DIR):
        # Nothing to do if we cannot create any handler; stderr logging still applies.
        return

    package_logger = logging.getLogger("mobiletest")
    if not any(getattr(h, "baseFilename", None) == os.path.abspath(TEST_LOG) for h in package_logger.handlers):
        package_logger.setLevel(logging.INFO)
        package_logger.addHandler(_rotating_handler(TEST_LOG))

    # Dedicated structured event logger (human-readable JSON lines).
    event_logger = logging.getLogger("mobiletest.events")
    if not any(getattr(h, "baseFilename", None) == os.path.abspath(TEST_EVENTS_LOG) for h in event_logger.handlers):
        event_logger.setLevel(logging.INFO)
        event_logger.addHandler(_rotating_handler(TEST_EVENTS_LOG))
        event_logger.propagate = False


__all__ = ["LOG_DIR", "TEST_LOG", "TEST_EVENTS_LOG", "setup_logging"]

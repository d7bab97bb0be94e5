from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Iterator

logger = logging.getLogger(__name__)


@contextmanager
def suppress_idle_checks(driver: Any) -> Iterator[Any]:
    """
    Turn off waiting for the app to go idle before tree queries for the enclosed block.

    The driver's previous setting is restored on every exit path, so nesting
    works and a failure inside the block cannot leak the suppressed state.
    """
    previous = bool(driver.wait_for_idle_before_query)
    driver.wait_for_idle_before_query = False
    logger.debug("Idle checks suppressed (previous=%s)", previous)
    try:
        yield driver
    finally:
        driver.wait_for_idle_before_query = previous
        logger.debug("Idle checks restored to %s", previous)


__all__ = ["suppress_idle_checks"]

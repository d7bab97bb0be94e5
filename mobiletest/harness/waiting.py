"""
Polling engine shared by every waiting assertion.

A condition is a zero-argument callable returning ``None`` when satisfied or a
human-readable reason when not yet satisfied. ``poll`` owns the loop, deadline
and diagnostics; ``wait_until`` reduces the outcome to an optional failure
message and never raises on timeout. An exception raised by a condition counts
as a failed check, with the exception as its reason.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Literal, Optional

from pydantic import BaseModel

from mobiletest.config import DIAGNOSTIC_EVERY, POLL_INTERVAL, TEST_TIMEOUT
from mobiletest.logging_utils import log_event
from mobiletest.utils.time_utils import elapsed_since

logger = logging.getLogger(__name__)

Condition = Callable[[], Optional[str]]


class WaitOutcome(BaseModel):
    status: Literal["satisfied", "timed_out"]
    description: str
    polls: int = 0
    elapsed: float = 0.0
    last_reason: Optional[str] = None

    @property
    def satisfied(self) -> bool:
        return self.status == "satisfied"

    @property
    def message(self) -> Optional[str]:
        if self.satisfied:
            return None
        return f"Timed out waiting until: '{self.description}' - reason: '{self.last_reason}'"


def poll(
    condition: Condition,
    timeout: float = TEST_TIMEOUT,
    poll_interval: float = POLL_INTERVAL,
    description: str = "condition",
) -> WaitOutcome:
    """
    Evaluate ``condition`` until it returns None or the deadline passes.

    The first check happens immediately. A timeout of zero or less means exactly
    one check. Sleeps only between failed checks, so the total time is bounded
    by ``timeout`` plus one poll interval.
    """
    start = time.monotonic()
    deadline = start + max(0.0, float(timeout))
    polls = 0
    last_reason: Optional[str] = None

    while True:
        polls += 1
        try:
            reason = condition()
        except Exception as exc:  # noqa: BLE001
            reason = f"{type(exc).__name__}: {exc}"
            logger.debug("Condition for '%s' raised: %s", description, reason)
        if reason is None:
            return WaitOutcome(
                status="satisfied",
                description=description,
                polls=polls,
                elapsed=elapsed_since(start),
            )
        last_reason = reason
        if DIAGNOSTIC_EVERY > 0 and polls % DIAGNOSTIC_EVERY == 0:
            logger.info("Waiting until '%s' - fail reason: %s", description, last_reason)
        if time.monotonic() >= deadline:
            break
        time.sleep(max(0.0, float(poll_interval)))

    return WaitOutcome(
        status="timed_out",
        description=description,
        polls=polls,
        elapsed=elapsed_since(start),
        last_reason=last_reason,
    )


def wait_until(
    description: str,
    condition: Condition,
    timeout: float = TEST_TIMEOUT,
    poll_interval: float = POLL_INTERVAL,
) -> Optional[str]:
    """Return None once ``condition`` holds, or the timeout message with the last reason."""
    outcome = poll(condition, timeout=timeout, poll_interval=poll_interval, description=description)
    if outcome.satisfied:
        return None
    log_event(
        "wait_timed_out",
        {
            "description": description,
            "reason": outcome.last_reason,
            "polls": outcome.polls,
            "elapsed": round(outcome.elapsed, 3),
            "timeout": timeout,
        },
    )
    return outcome.message


__all__ = ["Condition", "WaitOutcome", "poll", "wait_until"]

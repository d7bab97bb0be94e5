"""
Matching over recorded event histories.

Histories are ordered most-recent-last. Two deliberately different modes exist:
"the last event matches" (ordering-sensitive) and "some event in the history
matches" (existence only).
"""

from __future__ import annotations

from typing import Callable, Dict, List, Optional, Sequence, TypeVar

from mobiletest.contracts.events import RecordedAnalyticsEvent, RecordedAuditEvent, RecordedFirebaseEvent

T = TypeVar("T")


def last_matching(events: Sequence[T], predicate: Callable[[T], bool]) -> Optional[T]:
    for event in reversed(events):
        if predicate(event):
            return event
    return None


def all_matching(events: Sequence[T], predicate: Callable[[T], bool]) -> List[T]:
    return [event for event in events if predicate(event)]


def any_matching(events: Sequence[T], predicate: Callable[[T], bool]) -> bool:
    return any(predicate(event) for event in events)


def describe_analytics(category: str, action: str, label: str) -> str:
    return f"{category}/{action}/{label}"


def analytics_event_matches(
    category: str,
    action: str,
    label: str,
    value: Optional[float] = None,
) -> Callable[[RecordedAnalyticsEvent], bool]:
    """All four fields must be equal; a None ``value`` only matches events without a value."""

    def _matches(event: RecordedAnalyticsEvent) -> bool:
        return (
            event.event_category == category
            and event.event_action == action
            and event.event_label == label
            and event.event_value == value
        )

    return _matches


def audit_event_matches(
    event_type: str,
    path: Optional[str] = None,
    detail: Optional[Dict[str, str]] = None,
) -> Callable[[RecordedAuditEvent], bool]:
    """Type must be equal; ``path`` and ``detail`` are wildcards when None."""

    def _matches(event: RecordedAuditEvent) -> bool:
        if event.event_type != event_type:
            return False
        if path is not None and event.event_path != path:
            return False
        if detail is not None and event.event_detail != detail:
            return False
        return True

    return _matches


def firebase_event_matches(
    event: str,
    parameters: Optional[Dict[str, str]] = None,
) -> Callable[[RecordedFirebaseEvent], bool]:
    """Name and parameters must both be equal; None parameters only match events without any."""

    def _matches(recorded: RecordedFirebaseEvent) -> bool:
        return recorded.event == event and recorded.parameters == parameters

    return _matches


def check_last_audit_event(
    events: Sequence[RecordedAuditEvent],
    event_type: str,
    path: Optional[str] = None,
    detail: Optional[Dict[str, str]] = None,
) -> Optional[str]:
    """Failure reason when the most recent audit event does not match, else None."""
    if not events:
        return f"No last audit event found. Was expecting type '{event_type}' with path: {path or 'N/A'}"
    last = events[-1]
    if last.event_type != event_type:
        return f"Last audit event type does not match {event_type}"
    if path is not None and detail is not None:
        if last.event_path == path and last.event_detail == detail:
            return None
        return f"Last audit event path and detail do not match {path} & {detail}"
    if path is not None and last.event_path != path:
        return f"Last audit event path does not match {path}"
    if detail is not None and last.event_detail != detail:
        return f"Last audit event detail does not match {detail}"
    return None


def check_last_firebase_event(
    events: Sequence[RecordedFirebaseEvent],
    event: str,
    parameters: Optional[Dict[str, str]] = None,
) -> Optional[str]:
    """Failure reason when the most recent firebase event does not match, else None."""
    if not events:
        return f"No last firebase event found. Was expecting '{event}'"
    last = events[-1]
    if last.event != event:
        return f"Last firebase event '{last.event}' does not match expected '{event}'"
    if last.parameters != parameters:
        if parameters is None:
            return "Last firebase event not matched"
        return f"Last firebase event parameters {last.parameters} do not match expected {parameters}"
    return None


__all__ = [
    "last_matching",
    "all_matching",
    "any_matching",
    "describe_analytics",
    "analytics_event_matches",
    "audit_event_matches",
    "firebase_event_matches",
    "check_last_audit_event",
    "check_last_firebase_event",
]

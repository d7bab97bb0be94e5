"""
Records of events captured by the app's analytics, audit and firebase recorders.

Payloads arrive as loosely typed JSON. A malformed entry is never an error: a
non-dict entry becomes the empty record and wrong-typed fields take their default.
"""

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict

Number = Union[int, float]


def _str_or_none(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


def _number_or_none(value: Any) -> Optional[Number]:
    if isinstance(value, bool):
        return None
    return value if isinstance(value, (int, float)) else None


def _str_dict_or_none(value: Any) -> Optional[Dict[str, str]]:
    if not isinstance(value, dict):
        return None
    if not all(isinstance(k, str) and isinstance(v, str) for k, v in value.items()):
        return None
    return dict(value)


class RecordedAnalyticsEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    view_name: Optional[str] = None
    event_category: Optional[str] = None
    event_action: Optional[str] = None
    event_label: Optional[str] = None
    event_value: Optional[Number] = None
    hts_account_dimension_state: Optional[str] = None
    p800_dimension_value: Optional[str] = None

    @classmethod
    def from_payload(cls, raw: Any) -> "RecordedAnalyticsEvent":
        if not isinstance(raw, dict):
            return cls()
        return cls(
            view_name=_str_or_none(raw.get("viewName")),
            event_category=_str_or_none(raw.get("eventCategory")),
            event_action=_str_or_none(raw.get("eventAction")),
            event_label=_str_or_none(raw.get("eventLabel")),
            event_value=_number_or_none(raw.get("eventValue")),
            hts_account_dimension_state=_str_or_none(raw.get("htsAccountDimensionState")),
            p800_dimension_value=_str_or_none(raw.get("p800DimensionValue")),
        )


class RecordedAuditEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    event_type: str = ""
    event_detail: Optional[Dict[str, str]] = None
    event_path: Optional[str] = None

    @classmethod
    def from_payload(cls, raw: Any) -> "RecordedAuditEvent":
        if not isinstance(raw, dict):
            return cls()
        return cls(
            event_type=_str_or_none(raw.get("eventType")) or "",
            event_detail=_str_dict_or_none(raw.get("eventDetail")),
            event_path=_str_or_none(raw.get("eventPath")),
        )


class RecordedFirebaseEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    event: str = ""
    parameters: Optional[Dict[str, str]] = None

    @classmethod
    def from_payload(cls, raw: Any) -> "RecordedFirebaseEvent":
        if not isinstance(raw, dict):
            return cls()
        return cls(
            event=_str_or_none(raw.get("event")) or "",
            parameters=_str_dict_or_none(raw.get("parameters")),
        )


def parse_events(raw: Any, model: type) -> List[Any]:
    """Map a recorder payload (expected to be a list) to records; anything else is an empty history."""
    if not isinstance(raw, list):
        return []
    return [model.from_payload(item) for item in raw]


def parse_user_properties(raw: Any) -> Dict[str, str]:
    """Keep only string-to-string pairs of a user property payload."""
    if not isinstance(raw, dict):
        return {}
    return {key: value for key, value in raw.items() if isinstance(key, str) and isinstance(value, str)}


__all__ = [
    "RecordedAnalyticsEvent",
    "RecordedAuditEvent",
    "RecordedFirebaseEvent",
    "parse_events",
    "parse_user_properties",
]

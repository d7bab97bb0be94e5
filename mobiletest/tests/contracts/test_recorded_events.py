from mobiletest.contracts.events import (
    RecordedAnalyticsEvent,
    RecordedAuditEvent,
    RecordedFirebaseEvent,
    parse_events,
    parse_user_properties,
)


def test_analytics_event_maps_camel_case_keys():
    event = RecordedAnalyticsEvent.from_payload(
        {
            "eventCategory": "nav",
            "eventAction": "tap",
            "eventLabel": "back",
            "eventValue": 2,
            "htsAccountDimensionState": "active",
            "p800DimensionValue": "refund",
        }
    )

    assert (event.event_category, event.event_action, event.event_label, event.event_value) == ("nav", "tap", "back", 2)
    assert event.view_name is None
    assert event.hts_account_dimension_state == "active"
    assert event.p800_dimension_value == "refund"


def test_wrong_typed_fields_take_defaults():
    analytics = RecordedAnalyticsEvent.from_payload({"viewName": 7, "eventValue": True, "eventLabel": ["x"]})
    audit = RecordedAuditEvent.from_payload({"eventType": None, "eventDetail": {"code": 500}, "eventPath": "/a"})
    firebase = RecordedFirebaseEvent.from_payload({"event": "open", "parameters": "screen"})

    assert analytics == RecordedAnalyticsEvent()
    assert audit.event_type == "" and audit.event_detail is None and audit.event_path == "/a"
    assert firebase.event == "open" and firebase.parameters is None


def test_parse_events_keeps_order_and_tolerates_junk():
    events = parse_events([{"event": "a"}, 3, {"event": "b", "parameters": {"k": "v"}}], RecordedFirebaseEvent)

    assert [e.event for e in events] == ["a", "", "b"]
    assert events[2].parameters == {"k": "v"}
    assert parse_events(None, RecordedFirebaseEvent) == []
    assert parse_events({"event": "a"}, RecordedFirebaseEvent) == []


def test_parse_user_properties_keeps_string_pairs():
    assert parse_user_properties({"tier": "gold", "visits": 3, "flag": None}) == {"tier": "gold"}
    assert parse_user_properties(["tier"]) == {}

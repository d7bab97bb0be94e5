import pytest

from mobiletest.errors import TestFailure
from mobiletest.harness.page import Page
from mobiletest.tests.fakes import FakeApp, make_test, node, window
from mobiletest.ui.elements import ElementType
from mobiletest.ui.locator import ElementQuery


def _page(tree, **kwargs):
    app = FakeApp(tree)
    test = make_test(app, **kwargs)
    return app, test, Page(test, page_name="Home")


def _done_tree():
    return window(
        node("staticText", label="Done", width=0, height=0, hittable=False, ref="hidden"),
        node("staticText", label="Done", ref="shown"),
    )


def test_text_displayed_ignores_zero_size_duplicate():
    _, test, page = _page(_done_tree())

    page.confirm_text_is_displayed("Done")

    assert test.failures == []


def test_text_displayed_on_screen_needs_hittable_element():
    tree = window(
        node("staticText", label="Done", width=0, height=0, hittable=False),
        node("staticText", label="Done", hittable=True),
    )
    _, test, page = _page(tree)
    page.confirm_text_is_displayed("Done", on_screen=True)
    assert test.failures == []

    tree = window(
        node("staticText", label="Done", width=0, height=0, hittable=False),
        node("staticText", label="Done", hittable=False),
    )
    _, test, page = _page(tree)
    page.confirm_text_is_displayed("Done", on_screen=True)
    assert [f.description for f in test.failures] == ["Didn't find text: Done"]


@pytest.mark.parametrize("visible, expected_ok", [(1, False), (2, True), (3, False)])
def test_text_count_must_be_exact(visible, expected_ok):
    tree = window(*[node("staticText", label="Item", ref=f"item{i}") for i in range(visible)])
    _, test, page = _page(tree)

    page.confirm_text_is_displayed("Item", count=2)

    assert (test.failures == []) is expected_ok


def test_text_matches_text_view_value_and_partial_text():
    tree = window(node("textView", value="Your café order is ready"))
    _, test, page = _page(tree)

    page.confirm_text_is_displayed("Your café order is ready")
    page.confirm_text_is_displayed("CAFE ORDER", allow_partial_match=True)
    page.confirm_text_is_displayed("cafe order")

    assert [f.description for f in test.failures] == ["Didn't find text: cafe order"]


def test_text_not_displayed():
    _, test, page = _page(_done_tree())

    page.confirm_text_is_not_displayed("Cancel").confirm_text_is_not_displayed("Done")

    assert [f.description for f in test.failures] == ["Unexpectedly found text: Done"]


def test_chain_returns_same_page_in_call_order():
    tree = window(node("button", label="Next", identifier="next_button"), node("cell", label="Row"))
    app, test, page = _page(tree)

    result = page.confirm_button_is_displayed("Next").tap_button_with_label("Next").tap_cell_with_label("Row")

    assert result is page
    assert app.taps == ["button:Next", "cell:Row"]
    assert test.failures == []


def test_failure_location_is_the_calling_test_line():
    _, test, page = _page(window())

    page.confirm_button_is_displayed("Missing")

    failure = test.failures[0]
    assert failure.description == "Didn't find button: Missing"
    assert failure.location.file == __file__


def test_buttons_enabled_disabled_and_partial_match():
    tree = window(
        node("button", label="Submit form", enabled=False),
        node("button", label="Cancel"),
    )
    _, test, page = _page(tree)

    (
        page.confirm_button_is_disabled("Submit form")
        .confirm_button_is_enabled("Cancel")
        .confirm_button_is_displayed("submit", allow_partial_match=True)
        .confirm_button_is_not_displayed("Delete")
        .confirm_button_is_enabled("Submit form")
    )

    assert [f.description for f in test.failures] == ["Button wasn't enabled: Submit form"]


def test_tap_disabled_element_fails():
    tree = window(node("button", label="Pay", enabled=False))
    app, test, page = _page(tree)

    page.tap_button_with_label("Pay")

    assert app.taps == []
    assert [f.description for f in test.failures] == ["Element: Pay is not enabled"]


def test_stop_after_failure_raises_from_page_step():
    _, _, page = _page(window(), continue_after_failure=False)

    with pytest.raises(TestFailure) as excinfo:
        page.confirm_image_is_displayed("logo")

    assert excinfo.value.description == "Didn't find image: logo"


def test_await_loaded_with_unique_element():
    tree = window(node("navigationBar", identifier="home_nav"))
    _, test, page = _page(tree)
    page.unique_element = ElementQuery(element_type=ElementType.NAVIGATION_BAR, text="home_nav")

    assert page.await_loaded() is page
    assert test.failures == []


def test_await_loaded_waits_for_partial_text():
    app, test, page = _page(window())
    page.unique_partial_text = "welcome"
    test.timeout = 1.0
    polls = {"count": 0}

    def appear():
        polls["count"] += 1
        if polls["count"] >= 3:
            app.tree = window(node("staticText", label="Welcome back"))
        return app.tree

    original_snapshot = app.snapshot

    def snapshot():
        appear()
        return original_snapshot()

    app.snapshot = snapshot

    page.await_loaded()

    assert test.failures == []
    assert polls["count"] >= 3


def test_await_loaded_timeout_stops_even_when_continuing():
    _, test, page = _page(window())
    page.unique_element = ElementQuery(element_type=ElementType.OTHER, text="missing_view")

    with pytest.raises(TestFailure) as excinfo:
        page.await_loaded()

    assert "Could not find unique element 'other with text: missing_view' on 'Home'" in excinfo.value.description
    assert test.failures == [excinfo.value]


def test_await_element_by_type_requires_on_screen():
    tree = window(node("staticText", label="Loaded", hittable=False), node("navigationBar", identifier="Settings"))
    _, test, page = _page(tree)

    page.await_element(ElementType.NAVIGATION_BAR, "Settings").await_element(ElementType.STATIC_TEXT, "Loaded")

    assert len(test.failures) == 1
    assert test.failures[0].description == (
        "Timed out waiting until: 'Element exists' - reason: 'Didn't find element with text: Loaded'"
    )


def test_web_view_text_is_looked_up_inside_web_view():
    tree = window(
        node("staticText", label="Outside"),
        node("webView", children=[node("staticText", label="Terms")]),
    )
    _, test, page = _page(tree)

    page.confirm_web_view_text_is_displayed("Terms").confirm_web_view_text_is_displayed("Outside")

    assert len(test.failures) == 1
    assert "Web view with text: 'Outside' not found" in test.failures[0].description


def test_alerts_title_body_and_icon_title():
    tree = window(
        node(
            "alert",
            label="\n\nSomething went wrong",
            children=[node("staticText", label="Try again later"), node("button", label="OK")],
        )
    )
    app, test, page = _page(tree)

    (
        page.confirm_alert_is_displayed("Something went wrong", body="Try again later", is_icon_alert=True)
        .confirm_alert_is_displayed("Something went wrong")
        .tap_alert_button("OK")
        .tap_alert_action_button("OK")
    )

    assert app.taps == ["button:OK"]
    assert [f.description for f in test.failures] == [
        "Did not find alert with title: Something went wrong",
        "Did not find alert action button with title: OK",
    ]


def test_alert_not_displayed():
    tree = window(node("alert", label="Error"))
    _, test, page = _page(tree)

    page.confirm_alert_is_not_displayed("Success").confirm_alert_is_not_displayed("Error")

    assert [f.description for f in test.failures] == ["Unexpectedly found alert with title: Error"]


def test_sheet_and_share_sheet_wait():
    tree = window(node("sheet", label="Choose"), node("other", identifier="ActivityListView"))
    _, test, page = _page(tree)

    page.confirm_sheet_is_displayed("Choose").confirm_share_sheet_is_displayed().confirm_sheet_is_displayed("Other")

    assert len(test.failures) == 1
    assert "Did not find sheet with title: Other" in test.failures[0].description


def test_close_share_sheet_prefers_close_button_then_dismiss_region():
    app, test, page = _page(window(node("button", label="Close")))
    page.close_share_sheet()
    assert app.taps == ["button:Close"]

    app, test, page = _page(window(node("other", identifier="PopoverDismissRegion")))
    page.close_share_sheet()
    assert app.taps == ["other:PopoverDismissRegion"]

    app, test, page = _page(window())
    page.close_share_sheet()
    assert [f.description for f in test.failures] == ["Cannot close share sheet"]


def test_cells():
    tree = window(
        node("cell", identifier="row_0", children=[node("staticText", label="Balance")]),
        node("cell", identifier="row_1", children=[node("staticText", label="Payments")]),
    )
    _, test, page = _page(tree)

    (
        page.confirm_cells_are_displayed(2)
        .confirm_cell_contains_text(1, "Payments")
        .confirm_cell_contains_text(0, "Payments")
        .confirm_cell_contains_text(5, "Payments")
        .confirm_cell_is_not_displayed("row_9")
        .confirm_cell_is_not_displayed("row_0")
        .confirm_cells_are_displayed(3)
    )

    assert [f.description for f in test.failures] == [
        "Failed to find text: Payments in cell: 0",
        "Failed to find text: Payments in cell: 5",
        "Unexpectedly found cell: row_0",
        "Expected 3 cells, found 2",
    ]


def test_views_and_elements():
    tree = window(node("other", identifier="banner"), node("other", identifier="offscreen", hittable=False))
    app, test, page = _page(tree)

    (
        page.confirm_view_is_displayed("banner")
        .confirm_view_is_displayed("offscreen")
        .confirm_view_is_not_displayed("popup")
        .confirm_view_is_not_displayed("banner")
        .tap_view_with_identifier("banner", wait_for_quiescence=False)
    )

    assert app.taps == ["other:banner"]
    assert [f.description for f in test.failures] == [
        "Element: offscreen is not hittable",
        "Unexpectedly found element: banner",
    ]


def test_label_helpers():
    tree = window(
        node(
            "other",
            children=[
                node("staticText", identifier="amount_label", label="Amount"),
                node("staticText", identifier="amount_value", label="£10"),
            ],
        ),
        node("staticText", identifier="greeting", label="Hello"),
    )
    _, test, page = _page(tree)

    (
        page.confirm_label_and_value_are_displayed("amount_label", "amount_value")
        .confirm_label_and_value_are_displayed("amount_label", "other_value")
        .confirm_label_and_value_are_displayed("missing_label", "amount_value")
        .confirm_label_text("Hello", "greeting")
        .confirm_label_text("Bye", "greeting")
    )

    assert [f.description for f in test.failures] == [
        "Didn't find associated value: other_value",
        "Didn't find parent of label: missing_label",
        "Label greeting text 'Hello' does not equal 'Bye'",
    ]


def test_navigation_bar_and_back_button():
    tree = window(node("navigationBar", identifier="Settings", children=[node("button", label="Back")]))
    app, test, page = _page(tree)

    page.confirm_navigation_bar_text_matches("Settings").confirm_navigation_bar_text_matches("Profile")
    page.tap_navigation_back_button(wait_for_quiescence=False)

    assert app.taps == ["button:Back"]
    assert app.wait_for_idle_before_query is True
    assert [f.description for f in test.failures] == ["Navigation bar doesn't match Profile"]


def test_missing_back_button_fails():
    _, test, page = _page(window())

    page.tap_navigation_back_button()

    assert [f.description for f in test.failures] == ["Could not find back button"]


def test_type_into_text_field_waits_for_hittable_and_clears():
    tree = window(node("textField", identifier="email", hittable=False), node("button", label="Clear"))
    app, test, page = _page(tree)
    test.timeout = 1.0
    polls = {"count": 0}
    original_snapshot = app.snapshot

    def snapshot():
        polls["count"] += 1
        if polls["count"] == 3:
            app.tree = window(node("textField", identifier="email"), node("button", label="Clear"))
        return original_snapshot()

    app.snapshot = snapshot

    page.type_into_text_field("email", "a@b.c", clear_first=True)

    assert test.failures == []
    assert app.taps == ["textField:email", "button:Clear"]
    assert app.typed == [("textField:email", "a@b.c")]


def test_type_into_missing_text_view_fails():
    app, test, page = _page(window())

    page.type_into_text_view("notes", "hello")

    assert app.typed == []
    assert [f.description for f in test.failures] == ["Could not find text field"]


def test_type_dismisses_continuous_path_overlay():
    overlay = node("other", identifier="UIContinuousPathIntroductionView", children=[node("button", label="Continue")])
    field = node("textField", identifier="name")
    app, test, page = _page(window(field, overlay))

    def on_tap(element):
        if element.ref == "button:Continue":
            app.tree = window(field)

    app.on_tap = on_tap

    page.type_into_text_field("name", "Sam")

    assert test.failures == []
    assert app.taps == ["textField:name", "button:Continue"]
    assert app.typed == [("textField:name", "Sam")]


def test_text_view_populated():
    tree = window(node("textView", identifier="notes", value="hello"))
    _, test, page = _page(tree)

    page.confirm_text_view_is_populated("notes", "hello").confirm_text_view_is_populated("notes", "bye")
    page.confirm_text_view_is_populated("missing", "x")

    assert [f.description for f in test.failures] == [
        "textView: notes not populated with 'bye' (value: 'hello')",
        "Didn't find textView missing",
    ]


def test_links_radio_buttons_and_images():
    tree = window(
        node("link", label="Privacy"),
        node("link", label="Cookies", enabled=False),
        node("button", label="Yes"),
        node("image", identifier="logo"),
    )
    app, test, page = _page(tree)

    (
        page.tap_link_with_label("Privacy")
        .tap_link_with_label("Cookies")
        .tap_link_with_label("Terms")
        .confirm_radio_button_is_displayed("Yes")
        .tap_radio_button_with_label("Yes")
        .confirm_image_is_displayed("logo")
    )

    assert app.taps == ["link:Privacy", "button:Yes"]
    assert [f.description for f in test.failures] == ["Link: Cookies is not enabled", "Didn't find link: Terms"]


def test_bullet_and_row():
    tree = window(node("staticText", label="•; First point"), node("button", label="row_1"))
    _, test, page = _page(tree)

    page.confirm_bullet_is_displayed("First point").confirm_row_is_displayed("row_1")

    assert test.failures == []


def test_tap_button_with_id_matches_identifier_only():
    tree = window(node("button", label="Go", identifier="go_button"))
    app, test, page = _page(tree)

    page.tap_button_with_id("go_button").tap_button_with_id("Go")

    assert app.taps == ["button:Go"]
    assert [f.description for f in test.failures] == ["Button with ID: Go doesn't exist"]


def test_scrolling_steps():
    offscreen = node("button", label="Submit", hittable=False)
    app, test, page = _page(window(offscreen))

    def reveal():
        app.tree = window(node("button", label="Submit"))

    app.on_drag = reveal

    page.scroll_down().scroll_down_to_button_with_label("Submit").scroll_down_to_button_with_label("Missing")

    assert len(app.drags) == 1
    assert [f.description for f in test.failures] == ["Didn't find button: Missing"]


def test_scroll_collection_view_only_searches_named_collection():
    tree = window(
        node("collectionView", identifier="other_list", children=[node("cell", identifier="target")]),
        node("collectionView", identifier="cards", children=[node("cell", identifier="target", hittable=False)]),
    )
    app, _, page = _page(tree)

    page.scroll_collection_view("cards", "target", max_scrolls=2)

    assert len(app.drags) == 2


def test_capture_delegates_to_test_case(monkeypatch):
    _, test, page = _page(window())
    screens = []
    monkeypatch.setattr(test, "capture", lambda screen: screens.append(screen))

    assert page.capture("home") is page
    assert screens == ["home"]


def test_generic_element_helpers():
    tree = window(
        node("switch", label="Notifications"),
        node("switch", label="Locked", enabled=False),
        node("textView", identifier="notes", hittable=False),
    )
    app, test, page = _page(tree)

    (
        page.confirm_element_is_displayed("Notifications", ElementType.SWITCH)
        .confirm_element_is_not_displayed("Bluetooth", ElementType.SWITCH)
        .tap_element_with_label("Notifications", ElementType.SWITCH)
        .tap_element_with_label("Locked", ElementType.SWITCH)
        .confirm_element_is_not_displayed("Notifications", ElementType.SWITCH)
    )

    assert app.taps == ["switch:Notifications"]
    assert [f.description for f in test.failures] == [
        "Element: Locked is not enabled",
        "Unexpectedly found element: Notifications",
    ]


def test_scroll_to_text_view_by_identifier():
    app, _, page = _page(window(node("textView", identifier="notes", hittable=False)))

    def reveal():
        app.tree = window(node("textView", identifier="notes"))

    app.on_drag = reveal

    page.scroll_down_to_text_view_with_identifier("notes")

    assert len(app.drags) == 1

"""
Page objects: fluent test steps over one screen of the app.

Every operation returns the page so steps chain in call order. Structural UI
checks run once against the current tree (callers await the page first);
event, URL, rating and clipboard checks poll, because the app records those
asynchronously after the triggering action. Failures are attributed to the
test line that called the step, or to an explicit ``location``.
"""

from __future__ import annotations

import logging
import re
from contextlib import AbstractContextManager, contextmanager, nullcontext
from typing import Dict, Iterator, List, Optional, Union

from mobiletest.errors import SourceLocation
from mobiletest.harness.base_ui_test import BaseUITest
from mobiletest.harness.capture import Screen
from mobiletest.harness.events import (
    analytics_event_matches,
    any_matching,
    audit_event_matches,
    check_last_audit_event,
    check_last_firebase_event,
    describe_analytics,
    firebase_event_matches,
    last_matching,
)
from mobiletest.harness.test_case import caller_location
from mobiletest.harness.waiting import Condition
from mobiletest.ui import scrolling
from mobiletest.ui.driver import UIDriver
from mobiletest.ui.elements import Element, ElementType
from mobiletest.ui.locator import (
    ElementQuery,
    MatchMode,
    find_element,
    find_elements,
    query_elements,
    snapshot,
)

logger = logging.getLogger(__name__)

SHARE_SHEET_ID = "ActivityListView"
POPOVER_DISMISS_ID = "PopoverDismissRegion"
CONTINUOUS_PATH_OVERLAY_ID = "UIContinuousPathIntroductionView"
SCREEN_EVENT_PARAMETERS = {"event_type": "screen"}

Loc = Optional[SourceLocation]


class Page:
    """Test-side view of one app screen."""

    def __init__(
        self,
        test_case: BaseUITest,
        page_name: str = "Page",
        unique_element: Optional[ElementQuery] = None,
        unique_partial_text: Optional[str] = None,
    ) -> None:
        self.test_case = test_case
        self.page_name = page_name
        self.unique_element = unique_element
        self.unique_partial_text = unique_partial_text

    @property
    def driver(self) -> UIDriver:
        return self.test_case.driver

    def __repr__(self) -> str:
        return f"<{type(self).__name__} '{self.page_name}'>"

    # Lookup helpers

    def _element(self, text: str, element_type: ElementType, on_screen: bool = False) -> Optional[Element]:
        return find_element(self.driver, ElementQuery(element_type=element_type, text=text, on_screen=on_screen))

    def _element_partial(self, text: str, element_type: ElementType, on_screen: bool = False) -> Optional[Element]:
        query = ElementQuery(element_type=element_type, text=text, match=MatchMode.PARTIAL, on_screen=on_screen)
        return find_element(self.driver, query)

    def _existing(self, query: ElementQuery, root: Optional[Element] = None) -> List[Element]:
        return [element for element in query_elements(self.driver, query, root) if element.exists]

    def _text_queries(self, text: str, partial: bool, on_screen: bool):
        match = MatchMode.PARTIAL if partial else MatchMode.EXACT
        static = ElementQuery(
            element_type=ElementType.STATIC_TEXT, text=text, match=match, attributes=("label",), on_screen=on_screen
        )
        view = ElementQuery(
            element_type=ElementType.TEXT_VIEW, text=text, match=match, attributes=("value",), on_screen=on_screen
        )
        return static, view

    def _text_is_visible(self, text: str, count: int = -1, partial: bool = False, on_screen: bool = False) -> bool:
        """Static text (by label) or text view (by value) shown ``count`` times, or at least once."""
        tree = snapshot(self.driver)
        static, view = self._text_queries(text, partial, on_screen)
        return find_elements(self.driver, static, count, root=tree) or find_elements(self.driver, view, count, root=tree)

    def _quiescence(self, wait_for_quiescence: bool) -> AbstractContextManager:
        return nullcontext() if wait_for_quiescence else self.test_case.idle_checks_suppressed()

    def _exists_condition(self, query: ElementQuery, reason: str, within: Optional[ElementType] = None) -> Condition:
        """Condition satisfied once ``query`` exists, optionally inside the first element of type ``within``."""

        def _condition() -> Optional[str]:
            if within is None:
                return None if self._existing(query) else reason
            containers = snapshot(self.driver).descendants(within)
            if containers and self._existing(query, containers[0]):
                return None
            return reason

        return _condition

    # Lifecycle

    def await_loaded(self, location: Loc = None) -> "Page":
        """
        Block until the page's unique element or partial text is present.

        A timeout here always stops the test, even for test cases that
        otherwise continue after failures.
        """
        loc = location or caller_location()
        if self.unique_element is not None:
            query = self.unique_element
            condition = self._exists_condition(
                query, f"Could not find unique element '{query.describe()}' on '{self.page_name}'"
            )
        elif self.unique_partial_text is not None:
            text = self.unique_partial_text

            def condition() -> Optional[str]:
                return None if self._text_is_visible(text, partial=True) else f"Didn't find text: {text}"

        else:
            return self

        reason = self.test_case.wait_until(f"'{self.page_name}' is loaded", condition)
        if reason is not None:
            failure = self.test_case.record_failure(reason, loc)
            raise failure
        self.test_case.info(f"{self.page_name} loaded")
        return self

    # Text input

    def confirm_text_view_is_populated(self, text_view_id: str, text: str, location: Loc = None) -> "Page":
        loc = location or caller_location()
        element = self._element(text_view_id, ElementType.TEXT_VIEW)
        if element is None:
            self.test_case.fail_test(f"Didn't find textView {text_view_id}", loc)
            return self
        self.test_case.assert_true(
            element.value == text,
            lambda: f"textView: {text_view_id} not populated with '{text}' (value: '{element.value}')",
            loc,
        )
        return self

    def type_into_text_field(self, field_id: str, text: str, clear_first: bool = False, location: Loc = None) -> "Page":
        loc = location or caller_location()
        return self._type_into(ElementQuery(element_type=ElementType.TEXT_FIELD, text=field_id), text, clear_first, loc)

    def type_into_text_view(self, view_id: str, text: str, clear_first: bool = False, location: Loc = None) -> "Page":
        loc = location or caller_location()
        return self._type_into(ElementQuery(element_type=ElementType.TEXT_VIEW, text=view_id), text, clear_first, loc)

    def _type_into(self, query: ElementQuery, text: str, clear_first: bool, loc: SourceLocation) -> "Page":
        if not self.test_case.assert_true(bool(self._existing(query)), "Could not find text field", loc):
            return self

        def hittable() -> Optional[str]:
            found = self._existing(query)
            return None if found and found[0].is_hittable else "Element is not hittable"

        if not self.test_case.wait_until_or_assert("Element is hittable", hittable, location=loc):
            return self

        self._existing(query)[0].tap()
        if clear_first:
            clear = self._existing(ElementQuery(element_type=ElementType.BUTTON, text="Clear"))
            if clear:
                clear[0].tap()
        self._hide_continuous_path_overlay(loc)
        self._existing(query)[0].type_text(text)
        return self

    def _hide_continuous_path_overlay(self, loc: SourceLocation) -> None:
        overlay_query = ElementQuery(
            element_type=ElementType.OTHER, text=CONTINUOUS_PATH_OVERLAY_ID, attributes=("identifier",)
        )
        overlay = find_element(self.driver, overlay_query)
        if overlay is None:
            return
        buttons = overlay.descendants(ElementType.BUTTON)
        if buttons:
            buttons[0].tap()

        def cleared() -> Optional[str]:
            return None if not self._existing(overlay_query) else "Overlay is still displayed"

        self.test_case.assert_true(
            self.test_case.wait_until("Overlay is cleared", cleared) is None, "Overlay has not been cleared", loc
        )

    # Navigation bar

    def confirm_navigation_bar_text_matches(self, text: str, location: Loc = None) -> "Page":
        loc = location or caller_location()
        query = ElementQuery(element_type=ElementType.NAVIGATION_BAR, text=text)
        self.test_case.assert_true(bool(self._existing(query)), f"Navigation bar doesn't match {text}", loc)
        return self

    def tap_navigation_back_button(self, wait_for_quiescence: bool = True, location: Loc = None) -> "Page":
        loc = location or caller_location()
        tree = snapshot(self.driver)
        buttons = [
            button
            for bar in tree.descendants(ElementType.NAVIGATION_BAR)
            for button in bar.descendants(ElementType.BUTTON)
        ]
        if not buttons:
            self.test_case.fail_test("Could not find back button", loc)
            return self
        with self._quiescence(wait_for_quiescence):
            buttons[0].tap()
        return self

    # Static text

    def confirm_text_is_displayed(
        self,
        text: str,
        count: int = -1,
        allow_partial_match: bool = False,
        on_screen: bool = False,
        location: Loc = None,
    ) -> "Page":
        """
        Check ``text`` is shown as a static text label or text view value.

        By default the text only has to be in the tree with a non-empty frame;
        ``on_screen`` additionally requires it to be hittable. A positive
        ``count`` requires exactly that many matches.
        """
        loc = location or caller_location()
        self.test_case.assert_true(
            self._text_is_visible(text, count, allow_partial_match, on_screen), f"Didn't find text: {text}", loc
        )
        return self

    def confirm_bullet_is_displayed(self, text: str, location: Loc = None) -> "Page":
        return self.confirm_text_is_displayed(f"•; {text}", location=location or caller_location())

    def confirm_label_and_value_are_displayed(self, label: str, value: str, location: Loc = None) -> "Page":
        """Check a static text ``value`` sits next to the static text ``label`` in the same container."""
        loc = location or caller_location()
        tree = snapshot(self.driver)

        def has_child_text(parent: Element, identifier: str) -> bool:
            return any(child.identifier == identifier for child in parent.children(ElementType.STATIC_TEXT))

        parents = [parent for parent in tree.descendants(ElementType.OTHER) if has_child_text(parent, label)]
        if not parents:
            self.test_case.fail_test(f"Didn't find parent of label: {label}", loc)
            return self
        self.test_case.assert_true(has_child_text(parents[0], value), f"Didn't find associated value: {value}", loc)
        return self

    def confirm_label_text(self, text: str, label_id: str, location: Loc = None) -> "Page":
        loc = location or caller_location()
        labels = self._existing(ElementQuery(element_type=ElementType.STATIC_TEXT, text=label_id))
        if not self.test_case.assert_true(bool(labels), f"Didn't find label: {label_id}", loc):
            return self
        actual = labels[0].label
        self.test_case.assert_true(actual == text, lambda: f"Label {label_id} text '{actual}' does not equal '{text}'", loc)
        return self

    def confirm_text_is_not_displayed(self, text: str, location: Loc = None) -> "Page":
        loc = location or caller_location()
        self.test_case.assert_false(self._text_is_visible(text), f"Unexpectedly found text: {text}", loc)
        return self

    def confirm_web_view_text_is_displayed(self, text: str, location: Loc = None) -> "Page":
        loc = location or caller_location()
        text_query = ElementQuery(element_type=ElementType.STATIC_TEXT, text=text)
        condition = self._exists_condition(
            text_query, f"Web view with text: '{text}' not found", within=ElementType.WEB_VIEW
        )
        if self.test_case.wait_until_or_assert("Web view text is displayed", condition, location=loc):
            self.await_element(ElementType.STATIC_TEXT, text, location=loc)
        return self

    # Buttons

    def confirm_button_is_displayed(
        self,
        text: str,
        on_screen: bool = False,
        allow_partial_match: bool = False,
        location: Loc = None,
    ) -> "Page":
        loc = location or caller_location()
        if allow_partial_match:
            element = self._element_partial(text, ElementType.BUTTON, on_screen)
        else:
            element = self._element(text, ElementType.BUTTON, on_screen)
        self.test_case.assert_not_none(element, f"Didn't find button: {text}", loc)
        return self

    def confirm_row_is_displayed(self, accessibility_label: str, on_screen: bool = False, location: Loc = None) -> "Page":
        return self.confirm_button_is_displayed(accessibility_label, on_screen, location=location or caller_location())

    def confirm_button_is_not_displayed(self, text: str, location: Loc = None) -> "Page":
        loc = location or caller_location()
        self.test_case.assert_true(
            self._element(text, ElementType.BUTTON) is None, f"Unexpectedly found button: {text}", loc
        )
        return self

    def confirm_button_is_disabled(self, text: str, location: Loc = None) -> "Page":
        loc = location or caller_location()
        element = self._element(text, ElementType.BUTTON)
        if element is None:
            self.test_case.fail_test(f"Didn't find button: {text}", loc)
            return self
        self.test_case.assert_false(element.is_enabled, f"Button was enabled: {text}", loc)
        return self

    def confirm_button_is_enabled(self, text: str, location: Loc = None) -> "Page":
        loc = location or caller_location()
        element = self._element(text, ElementType.BUTTON)
        if element is None:
            self.test_case.fail_test(f"Didn't find button: {text}", loc)
            return self
        self.test_case.assert_true(element.is_enabled, f"Button wasn't enabled: {text}", loc)
        return self

    def tap_cell_with_label(
        self, text: str, on_screen: bool = False, wait_for_quiescence: bool = True, location: Loc = None
    ) -> "Page":
        loc = location or caller_location()
        with self._quiescence(wait_for_quiescence):
            self.tap_element_with_label(text, ElementType.CELL, on_screen, location=loc)
        return self

    def tap_button_with_label(
        self, text: str, on_screen: bool = False, wait_for_quiescence: bool = True, location: Loc = None
    ) -> "Page":
        loc = location or caller_location()
        with self._quiescence(wait_for_quiescence):
            self.tap_element_with_label(text, ElementType.BUTTON, on_screen, location=loc)
        return self

    def tap_button_with_id(self, button_id: str, location: Loc = None) -> "Page":
        self.test_case.tap_button_with_id(button_id, location or caller_location())
        return self

    # Scrolling

    def scroll_down(self) -> "Page":
        scrolling.scroll_down(self.driver)
        return self

    def scroll_down_to_button_with_label(self, text: str, location: Loc = None) -> "Page":
        loc = location or caller_location()
        if self._element(text, ElementType.BUTTON) is None:
            self.test_case.fail_test(f"Didn't find button: {text}", loc)
            return self
        scrolling.scroll_down_to(self.driver, ElementQuery(element_type=ElementType.BUTTON, text=text))
        return self

    def scroll_down_to_text_view_with_identifier(self, identifier: str) -> "Page":
        scrolling.scroll_down_to(self.driver, ElementQuery(element_type=ElementType.TEXT_VIEW, text=identifier))
        return self

    def scroll_collection_view(self, identifier: str, cell_identifier: str, max_scrolls: int = scrolling.MAX_SCROLLS) -> "Page":
        """Scroll until the cell ``cell_identifier`` of collection view ``identifier`` is hittable."""
        scrolling.scroll_down_to(
            self.driver,
            ElementQuery(element_type=ElementType.CELL, text=cell_identifier, attributes=("identifier",)),
            max_scrolls=max_scrolls,
            within=ElementQuery(element_type=ElementType.COLLECTION_VIEW, text=identifier, attributes=("identifier",)),
        )
        return self

    # Waiting for elements

    def await_element(
        self,
        query_or_type: Union[ElementQuery, ElementType],
        text: Optional[str] = None,
        location: Loc = None,
    ) -> "Page":
        """
        Wait for an element.

        With an ``ElementQuery`` the element only has to exist in the tree. With
        an element type and text it has to be on screen; navigation bars match
        on identifier, everything else on label.
        """
        loc = location or caller_location()
        if isinstance(query_or_type, ElementQuery):
            query = query_or_type
            condition = self._exists_condition(query, f"Could not find element '{query.describe()}' on '{self.page_name}'")
            self.test_case.wait_until_or_assert("Element exists", condition, location=loc)
            return self

        if text is None:
            raise ValueError("await_element needs text when called with an element type")
        attribute = "identifier" if query_or_type == ElementType.NAVIGATION_BAR else "label"
        query = ElementQuery(element_type=query_or_type, text=text, attributes=(attribute,), on_screen=True)

        def condition() -> Optional[str]:
            return None if find_element(self.driver, query) is not None else f"Didn't find element with text: {text}"

        self.test_case.wait_until_or_assert("Element exists", condition, location=loc)
        return self

    # Radio buttons & images

    def confirm_radio_button_is_displayed(self, text: str, on_screen: bool = False, location: Loc = None) -> "Page":
        loc = location or caller_location()
        element = self._element(text, ElementType.BUTTON, on_screen)
        self.test_case.assert_not_none(element, f"Didn't find radio button: {text}", loc)
        return self

    def tap_radio_button_with_label(self, text: str, on_screen: bool = False, location: Loc = None) -> "Page":
        return self.tap_element_with_label(text, ElementType.BUTTON, on_screen, location=location or caller_location())

    def confirm_image_is_displayed(self, text: str, on_screen: bool = False, location: Loc = None) -> "Page":
        loc = location or caller_location()
        element = self._element(text, ElementType.IMAGE, on_screen)
        self.test_case.assert_not_none(element, f"Didn't find image: {text}", loc)
        return self

    # Sheets

    def confirm_sheet_is_displayed(self, title: str, location: Loc = None) -> "Page":
        loc = location or caller_location()
        query = ElementQuery(element_type=ElementType.SHEET, text=title, attributes=("label",))
        condition = self._exists_condition(query, f"Did not find sheet with title: {title}")
        self.test_case.wait_until_or_assert("Sheet is displayed", condition, location=loc)
        return self

    def confirm_share_sheet_is_displayed(self, location: Loc = None) -> "Page":
        loc = location or caller_location()
        query = ElementQuery(element_type=ElementType.OTHER, text=SHARE_SHEET_ID, attributes=("identifier",))
        condition = self._exists_condition(query, "Did not find share sheet")
        self.test_case.wait_until_or_assert("Share sheet is displayed", condition, location=loc)
        return self

    def close_share_sheet(self, location: Loc = None) -> "Page":
        loc = location or caller_location()
        close_button = self._element("Close", ElementType.BUTTON, on_screen=True)
        if close_button is not None and close_button.is_enabled:
            close_button.tap()
            return self
        dismiss_query = ElementQuery(element_type=ElementType.OTHER, text=POPOVER_DISMISS_ID, attributes=("identifier",))
        dismiss_region = find_element(self.driver, dismiss_query)
        if dismiss_region is not None:
            dismiss_region.tap()
            return self
        self.test_case.fail_test("Cannot close share sheet", loc)
        return self

    # Alerts

    def confirm_alert_is_displayed(
        self,
        title: str,
        body: Optional[str] = None,
        is_icon_alert: bool = False,
        location: Loc = None,
    ) -> "Page":
        """
        Check an alert titled ``title`` (and optionally containing ``body``) is shown.

        Icon alerts prefix the title with line breaks for the icon, so their
        title is matched after any leading newlines.
        """
        loc = location or caller_location()
        if is_icon_alert:
            title_query = ElementQuery(
                element_type=ElementType.ALERT,
                text=r"\n*" + re.escape(title),
                match=MatchMode.PATTERN,
                attributes=("label",),
            )
        else:
            title_query = ElementQuery(element_type=ElementType.ALERT, text=title, attributes=("label",))
        alerts = self._existing(title_query)
        if not self.test_case.assert_true(bool(alerts), f"Did not find alert with title: {title}", loc):
            return self
        if body is not None:
            body_query = ElementQuery(element_type=ElementType.STATIC_TEXT, text=body, attributes=("label",))
            self.test_case.assert_true(
                bool(self._existing(body_query, alerts[0])), f"Did not find alert with body: {body}", loc
            )
        return self

    def confirm_alert_is_not_displayed(self, title: str, location: Loc = None) -> "Page":
        loc = location or caller_location()
        self.test_case.assert_true(
            self._element(title, ElementType.ALERT) is None, f"Unexpectedly found alert with title: {title}", loc
        )
        return self

    def _tap_button_in(self, container: ElementType, title: str, reason: str, loc: SourceLocation) -> "Page":
        tree = snapshot(self.driver)
        query = ElementQuery(element_type=ElementType.BUTTON, text=title)
        buttons = [
            button
            for parent in tree.descendants(container)
            for button in self._existing(query, parent)
        ]
        if not buttons:
            self.test_case.fail_test(reason, loc)
            return self
        buttons[0].tap()
        return self

    def tap_alert_button(self, title: str, location: Loc = None) -> "Page":
        loc = location or caller_location()
        return self._tap_button_in(ElementType.ALERT, title, f"Did not find alert button with title: {title}", loc)

    def tap_alert_action_button(self, title: str, location: Loc = None) -> "Page":
        loc = location or caller_location()
        return self._tap_button_in(
            ElementType.SHEET, title, f"Did not find alert action button with title: {title}", loc
        )

    # Cells

    def confirm_cells_are_displayed(self, count: int, location: Loc = None) -> "Page":
        loc = location or caller_location()
        found = len(snapshot(self.driver).descendants(ElementType.CELL))
        self.test_case.assert_true(found == count, lambda: f"Expected {count} cells, found {found}", loc)
        return self

    def confirm_cell_contains_text(self, index: int, text: str, location: Loc = None) -> "Page":
        loc = location or caller_location()
        cells = snapshot(self.driver).descendants(ElementType.CELL)
        found = False
        if 0 <= index < len(cells):
            query = ElementQuery(element_type=ElementType.STATIC_TEXT, text=text)
            found = bool(self._existing(query, cells[index]))
        self.test_case.assert_true(found, f"Failed to find text: {text} in cell: {index}", loc)
        return self

    def confirm_cell_is_not_displayed(self, identifier: str, location: Loc = None) -> "Page":
        loc = location or caller_location()
        query = ElementQuery(element_type=ElementType.CELL, text=identifier)
        self.test_case.assert_false(bool(self._existing(query)), f"Unexpectedly found cell: {identifier}", loc)
        return self

    # Other views

    def tap_view_with_identifier(
        self, identifier: str, on_screen: bool = False, wait_for_quiescence: bool = True, location: Loc = None
    ) -> "Page":
        loc = location or caller_location()
        with self._quiescence(wait_for_quiescence):
            self.tap_element_with_label(identifier, ElementType.OTHER, on_screen, location=loc)
        return self

    def confirm_view_is_displayed(self, identifier: str, location: Loc = None) -> "Page":
        return self.confirm_element_is_displayed(identifier, ElementType.OTHER, location=location or caller_location())

    def confirm_view_is_not_displayed(self, identifier: str, location: Loc = None) -> "Page":
        return self.confirm_element_is_not_displayed(
            identifier, ElementType.OTHER, location=location or caller_location()
        )

    def tap_element_with_label(
        self, text: str, element_type: ElementType, on_screen: bool = False, location: Loc = None
    ) -> "Page":
        loc = location or caller_location()
        element = self._element(text, element_type, on_screen)
        if element is None or not element.is_enabled:
            self.test_case.fail_test(f"Element: {text} is not enabled", loc)
            return self
        element.tap()
        return self

    def confirm_element_is_displayed(self, title: str, element_type: ElementType, location: Loc = None) -> "Page":
        loc = location or caller_location()
        element = self._element(title, element_type)
        if element is None:
            self.test_case.fail_test(f"Element: {title} was not displayed", loc)
            return self
        self.test_case.assert_true(element.is_hittable, f"Element: {title} is not hittable", loc)
        return self

    def confirm_element_is_not_displayed(self, title: str, element_type: ElementType, location: Loc = None) -> "Page":
        loc = location or caller_location()
        self.test_case.assert_true(
            self._element(title, element_type) is None, f"Unexpectedly found element: {title}", loc
        )
        return self

    def tap_link_with_label(self, text: str, on_screen: bool = False, location: Loc = None) -> "Page":
        loc = location or caller_location()
        query = ElementQuery(element_type=ElementType.LINK, text=text, attributes=("label",), on_screen=on_screen)
        link = find_element(self.driver, query)
        if link is None:
            self.test_case.fail_test(f"Didn't find link: {text}", loc)
            return self
        if not link.is_enabled:
            self.test_case.fail_test(f"Link: {text} is not enabled", loc)
            return self
        link.tap()
        return self

    # Tracking & audit

    def confirm_view_is_tracked(self, view_name: str, location: Loc = None) -> "Page":
        loc = location or caller_location()

        def condition() -> Optional[str]:
            events = self.test_case.get_recorded_analytics_service_events()
            last = last_matching(events, lambda event: event.view_name is not None)
            if last is not None and last.view_name == view_name:
                return None
            return f"view {view_name} not tracked (last tracked view: {last.view_name if last else None})"

        self.test_case.wait_until_or_assert("View is tracked", condition, location=loc)
        return self

    def confirm_view_is_logged_in_firebase(self, view_name: str, location: Loc = None) -> "Page":
        loc = location or caller_location()

        def condition() -> Optional[str]:
            events = self.test_case.get_recorded_firebase_events()
            last = last_matching(events, lambda event: event.parameters == SCREEN_EVENT_PARAMETERS)
            if last is None:
                return f"No last screen event found. Was expecting event for '{view_name}'"
            if last.event != view_name:
                return f"Last screen event '{last.event}' does not match expected '{view_name}'"
            return None

        self.test_case.wait_until_or_assert("View is logged in firebase", condition, location=loc)
        return self

    def confirm_event_is_tracked(
        self,
        category: str,
        action: str,
        label: str,
        value: Optional[float] = None,
        location: Loc = None,
    ) -> "Page":
        loc = location or caller_location()
        matches = analytics_event_matches(category, action, label, value)

        def condition() -> Optional[str]:
            if any_matching(self.test_case.get_recorded_analytics_service_events(), matches):
                return None
            return f"Didn't track GA event: {describe_analytics(category, action, label)}"

        self.test_case.wait_until_or_assert("GA event is tracked", condition, location=loc)
        return self

    def confirm_event_is_not_tracked(
        self,
        category: str,
        action: str,
        label: str,
        value: Optional[float] = None,
        location: Loc = None,
    ) -> "Page":
        """Passes once no recorded event matches all of category, action, label and value."""
        loc = location or caller_location()
        matches = analytics_event_matches(category, action, label, value)

        def condition() -> Optional[str]:
            if any_matching(self.test_case.get_recorded_analytics_service_events(), matches):
                return f"Found GA event: {describe_analytics(category, action, label)}"
            return None

        self.test_case.wait_until_or_assert("GA event is not tracked", condition, location=loc)
        return self

    def confirm_event_is_audited(
        self,
        event_type: str,
        event_path: Optional[str] = None,
        event_detail: Optional[Dict[str, str]] = None,
        location: Loc = None,
    ) -> "Page":
        """The most recent audit event must match; ``event_path`` and ``event_detail`` are optional."""
        loc = location or caller_location()

        def condition() -> Optional[str]:
            events = self.test_case.get_recorded_audit_service_events()
            return check_last_audit_event(events, event_type, event_path, event_detail)

        self.test_case.wait_until_or_assert("Event is audited", condition, location=loc)
        return self

    def confirm_audited_events_contain(
        self,
        event_type: str,
        event_path: Optional[str] = None,
        event_detail: Optional[Dict[str, str]] = None,
        location: Loc = None,
    ) -> "Page":
        """Any audit event in the history may match."""
        loc = location or caller_location()
        matches = audit_event_matches(event_type, event_path, event_detail)

        def condition() -> Optional[str]:
            if any_matching(self.test_case.get_recorded_audit_service_events(), matches):
                return None
            return f"No matching events found. Was expecting type '{event_type}' with path: {event_path or 'N/A'}"

        self.test_case.wait_until_or_assert("Audited events contain event", condition, location=loc)
        return self

    def confirm_error_is_audited(self, event_type: str, error_code: str, location: Loc = None) -> "Page":
        loc = location or caller_location()

        def condition() -> Optional[str]:
            events = self.test_case.get_recorded_audit_service_events()
            if not events:
                return f"No last audit event found. Was expecting error of type '{event_type}'"
            last = events[-1]
            if last.event_type != event_type:
                return f"Last audit event type '{last.event_type}' does not match {event_type}"
            detail = last.event_detail or {}
            if detail.get("errorCode") != error_code:
                return f"Last audit event error code '{detail.get('errorCode')}' does not match {error_code}"
            if detail.get("errorBody") is None:
                return "Last audit event has no error body"
            return None

        self.test_case.wait_until_or_assert("Error is audited", condition, location=loc)
        return self

    def confirm_firebase_user_property_is_logged(self, name: str, value: str, location: Loc = None) -> "Page":
        loc = location or caller_location()

        def condition() -> Optional[str]:
            actual = self.test_case.get_firebase_user_properties().get(name)
            if actual == value:
                return None
            return f"User property '{name}' is '{actual}', expected '{value}'"

        self.test_case.wait_until_or_assert("Firebase user property is logged", condition, location=loc)
        return self

    def confirm_last_firebase_event(
        self, event: str, parameters: Optional[Dict[str, str]] = None, location: Loc = None
    ) -> "Page":
        loc = location or caller_location()

        def condition() -> Optional[str]:
            return check_last_firebase_event(self.test_case.get_recorded_firebase_events(), event, parameters)

        self.test_case.wait_until_or_assert("Firebase event is logged", condition, location=loc)
        return self

    def confirm_firebase_events_contain(
        self, event: str, parameters: Optional[Dict[str, str]] = None, location: Loc = None
    ) -> "Page":
        loc = location or caller_location()
        matches = firebase_event_matches(event, parameters)

        def condition() -> Optional[str]:
            if any_matching(self.test_case.get_recorded_firebase_events(), matches):
                return None
            return f"No matching events found. Was expecting event '{event}' with parameters: {parameters}"

        self.test_case.wait_until_or_assert("Firebase events contain event", condition, location=loc)
        return self

    # URLs, rating, clipboard

    def confirm_url_is_opened(
        self,
        absolute: Optional[str] = None,
        regex: Optional[str] = None,
        location: Loc = None,
    ) -> "Page":
        """Wait for the last opened URL to equal ``absolute`` or fully match ``regex`` (give exactly one)."""
        if (absolute is None) == (regex is None):
            raise ValueError("confirm_url_is_opened needs exactly one of absolute or regex")
        loc = location or caller_location()
        pattern = re.compile(regex) if regex is not None else None

        def condition() -> Optional[str]:
            last_url = self.test_case.get_last_opened_url()
            if last_url is None:
                return "Unable to obtain last opened URL"
            if pattern is not None:
                return None if pattern.fullmatch(last_url) else f'LastUrl: "{last_url}" does not match "{regex}"'
            return None if last_url == absolute else f'LastUrl: "{last_url}" does not equal "{absolute}"'

        self.test_case.wait_until_or_assert("URL is opened", condition, location=loc)
        return self

    def confirm_app_store_rating_is_requested(self, location: Loc = None) -> "Page":
        loc = location or caller_location()

        def condition() -> Optional[str]:
            return None if self.test_case.get_rate_called() else "Expected rateCalled to be true"

        self.test_case.wait_until_or_assert("Rating is requested", condition, location=loc)
        return self

    def confirm_app_store_rating_is_not_requested(self, location: Loc = None) -> "Page":
        loc = location or caller_location()

        def condition() -> Optional[str]:
            return "Expected rateCalled to be false" if self.test_case.get_rate_called() else None

        self.test_case.wait_until_or_assert("Rating is not requested", condition, location=loc)
        return self

    def confirm_clipboard_contains_text(self, text: str, allow_partial_match: bool = False, location: Loc = None) -> "Page":
        loc = location or caller_location()

        def condition() -> Optional[str]:
            clipboard = self.test_case.get_clipboard_text()
            if clipboard is not None and (text in clipboard if allow_partial_match else clipboard == text):
                return None
            return f"Text {text} does not match clipboard {clipboard}"

        self.test_case.wait_until_or_assert("Text is copied to clipboard", condition, location=loc)
        return self

    # Helpers

    def wait_until_or_assert(
        self,
        description: str,
        condition: Condition,
        timeout: Optional[float] = None,
        location: Loc = None,
    ) -> "Page":
        self.test_case.wait_until_or_assert(
            description, condition, timeout=timeout, location=location or caller_location()
        )
        return self

    def capture(self, screen: Screen) -> "Page":
        self.test_case.capture(screen)
        return self

    @contextmanager
    def idle_checks_suppressed(self) -> Iterator["Page"]:
        """Run the enclosed steps without waiting for idle; yields the page so steps still chain."""
        with self.test_case.idle_checks_suppressed():
            yield self


__all__ = ["Page"]

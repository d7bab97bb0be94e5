"""Swipe gestures expressed as drags between normalized screen offsets."""

from __future__ import annotations

import logging
from typing import Callable, List, Optional

from mobiletest.ui.driver import Point, UIDriver
from mobiletest.ui.elements import Element
from mobiletest.ui.locator import ElementQuery, query_elements, snapshot

logger = logging.getLogger(__name__)

LOWER: Point = (0.5, 0.8)
UPPER: Point = (0.5, 0.2)
MAX_SCROLLS = 5


def scroll_down(driver: UIDriver) -> None:
    driver.drag(LOWER, UPPER)


def scroll_up(driver: UIDriver) -> None:
    driver.drag(UPPER, LOWER)


def _reachable(driver: UIDriver, query: ElementQuery, within: Optional[ElementQuery]) -> Optional[Element]:
    tree = snapshot(driver)
    scopes: List[Element] = [tree] if within is None else query_elements(driver, within, tree)
    for scope in scopes:
        for element in query_elements(driver, query, scope):
            if element.is_hittable:
                return element
    return None


def _scroll_to(
    driver: UIDriver,
    query: ElementQuery,
    max_scrolls: int,
    step: Callable[[UIDriver], None],
    within: Optional[ElementQuery],
) -> Optional[Element]:
    for _ in range(max(0, max_scrolls)):
        element = _reachable(driver, query, within)
        if element is not None:
            return element
        step(driver)
    element = _reachable(driver, query, within)
    if element is None:
        logger.info("Gave up scrolling to %s after %s scrolls", query.describe(), max_scrolls)
    return element


def scroll_down_to(
    driver: UIDriver,
    query: ElementQuery,
    max_scrolls: int = MAX_SCROLLS,
    within: Optional[ElementQuery] = None,
) -> Optional[Element]:
    """
    Scroll down until a match exists and is hittable, at most ``max_scrolls`` times.

    ``within`` scopes the search to the subtrees of elements matching it, e.g. one
    collection view. Returns the reachable element or None.
    """
    return _scroll_to(driver, query, max_scrolls, scroll_down, within)


def scroll_up_to(
    driver: UIDriver,
    query: ElementQuery,
    max_scrolls: int = MAX_SCROLLS,
    within: Optional[ElementQuery] = None,
) -> Optional[Element]:
    return _scroll_to(driver, query, max_scrolls, scroll_up, within)


__all__ = ["scroll_down", "scroll_up", "scroll_down_to", "scroll_up_to", "MAX_SCROLLS", "LOWER", "UPPER"]

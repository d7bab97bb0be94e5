"""
Element resolver over UI tree snapshots.

Provides:
- ``ElementQuery``: what to look for (type, text, match mode, attributes, visibility).
- Immediate lookups (``find_element``, ``find_elements``, ``query_elements``).
- Condition builders for the polling engine (``element_condition``, ``absence_condition``).

Each lookup takes a fresh snapshot unless a ``root`` element is passed in, in
which case the search is scoped to that subtree of an existing snapshot.
"""

from __future__ import annotations

import logging
import re
import unicodedata
from enum import Enum
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, field_validator

from mobiletest.harness.waiting import Condition
from mobiletest.ui.driver import UIDriver
from mobiletest.ui.elements import Element, ElementType, normalize_element_type

logger = logging.getLogger(__name__)

DEFAULT_ATTRIBUTES: Tuple[str, ...] = ("label", "identifier")
_ATTRIBUTES = {"label", "identifier", "value"}


class MatchMode(str, Enum):
    EXACT = "exact"
    PARTIAL = "partial"
    PATTERN = "pattern"


def _fold(text: str) -> str:
    """Case and diacritic insensitive form of ``text``."""
    decomposed = unicodedata.normalize("NFKD", text)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return stripped.casefold()


class ElementQuery(BaseModel):
    """Immutable description of the elements to look for."""

    model_config = ConfigDict(frozen=True)

    element_type: ElementType = ElementType.ANY
    text: str
    match: MatchMode = MatchMode.EXACT
    attributes: Tuple[str, ...] = DEFAULT_ATTRIBUTES
    on_screen: bool = False

    @field_validator("element_type", mode="before")
    @classmethod
    def _normalize_type(cls, value):
        if value is None:
            return ElementType.ANY
        if isinstance(value, str) and value.strip().lower() == ElementType.ANY.value:
            return ElementType.ANY
        return normalize_element_type(value)

    @field_validator("attributes", mode="before")
    @classmethod
    def _validate_attributes(cls, value):
        if isinstance(value, str):
            value = (value,)
        attrs = tuple(value or ())
        unknown = [attr for attr in attrs if attr not in _ATTRIBUTES]
        if unknown or not attrs:
            raise ValueError(f"attributes must be a non-empty subset of {sorted(_ATTRIBUTES)}")
        return attrs

    def type_name(self) -> str:
        if self.element_type == ElementType.ANY:
            return "element"
        return self.element_type.name.lower().replace("_", " ")

    def describe(self) -> str:
        return f"{self.type_name()} with text: {self.text}"

    def _attribute_matches(self, attribute: str, candidate: Optional[str]) -> bool:
        if candidate is None:
            return False
        if self.match == MatchMode.PATTERN:
            return re.fullmatch(self.text, candidate) is not None
        if self.match == MatchMode.PARTIAL and attribute != "identifier":
            return _fold(self.text) in _fold(candidate)
        return candidate == self.text

    def matches(self, element: Element) -> bool:
        for attribute in self.attributes:
            if self._attribute_matches(attribute, getattr(element, attribute)):
                return True
        return False


def is_visible(element: Optional[Element], on_screen: bool = False) -> bool:
    """Exists with a non-empty frame, and is hittable when ``on_screen`` is requested."""
    if element is None or not element.exists:
        return False
    if element.frame.is_empty:
        return False
    return element.is_hittable if on_screen else True


def count_matches(found: int, expected_count: int = -1) -> bool:
    return found == expected_count if expected_count > 0 else found > 0


def snapshot(driver: UIDriver) -> Element:
    """Fetch the current tree, waiting for the app to settle first unless idle checks are suppressed."""
    if driver.wait_for_idle_before_query:
        driver.wait_for_idle()
    return driver.snapshot()


def query_elements(driver: UIDriver, query: ElementQuery, root: Optional[Element] = None) -> List[Element]:
    """All matching elements in traversal order; visibility is not applied."""
    scope = root if root is not None else snapshot(driver)
    return [element for element in scope.descendants(query.element_type) if query.matches(element)]


def visible_elements(driver: UIDriver, query: ElementQuery, root: Optional[Element] = None) -> List[Element]:
    return [element for element in query_elements(driver, query, root) if is_visible(element, query.on_screen)]


def find_element(driver: UIDriver, query: ElementQuery, root: Optional[Element] = None) -> Optional[Element]:
    """First visible match in traversal order, or None."""
    for element in query_elements(driver, query, root):
        if is_visible(element, query.on_screen):
            return element
    return None


def find_elements(
    driver: UIDriver,
    query: ElementQuery,
    expected_count: int = -1,
    root: Optional[Element] = None,
) -> bool:
    """Exactly ``expected_count`` visible matches when positive, otherwise at least one."""
    found = len(visible_elements(driver, query, root))
    ok = count_matches(found, expected_count)
    if not ok:
        logger.debug("find_elements %s: found=%s expected=%s", query.describe(), found, expected_count)
    return ok


def element_condition(driver: UIDriver, query: ElementQuery, expected_count: int = -1) -> Condition:
    def _condition() -> Optional[str]:
        if find_elements(driver, query, expected_count):
            return None
        if expected_count > 0:
            return f"Didn't find {expected_count} of {query.describe()}"
        return f"Didn't find {query.describe()}"

    return _condition


def absence_condition(driver: UIDriver, query: ElementQuery) -> Condition:
    def _condition() -> Optional[str]:
        if find_element(driver, query) is None:
            return None
        return f"Unexpectedly found {query.describe()}"

    return _condition


__all__ = [
    "MatchMode",
    "ElementQuery",
    "DEFAULT_ATTRIBUTES",
    "is_visible",
    "count_matches",
    "snapshot",
    "query_elements",
    "visible_elements",
    "find_element",
    "find_elements",
    "element_condition",
    "absence_condition",
]

"""
Element tree model for the application under test.

The tunnel returns the accessibility hierarchy as nested JSON nodes. Nodes are
parsed leniently: unknown element types collapse to ``other`` and missing or
wrong-typed keys fall back to safe defaults, so one malformed node never aborts
a query.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field, model_validator

if TYPE_CHECKING:
    from mobiletest.ui.driver import UIDriver


class ElementType(str, Enum):
    """Element types understood by the UI tree provider (wire values are camelCase)."""

    ANY = "any"
    OTHER = "other"
    BUTTON = "button"
    STATIC_TEXT = "staticText"
    TEXT_FIELD = "textField"
    TEXT_VIEW = "textView"
    CELL = "cell"
    IMAGE = "image"
    ALERT = "alert"
    SHEET = "sheet"
    LINK = "link"
    NAVIGATION_BAR = "navigationBar"
    COLLECTION_VIEW = "collectionView"
    WEB_VIEW = "webView"
    WINDOW = "window"
    SWITCH = "switch"


def normalize_element_type(value: Union[ElementType, str, None]) -> ElementType:
    """Map an enum, value or name (any case) to an ElementType; unknown values become OTHER."""
    if isinstance(value, ElementType):
        return value
    if value is None:
        return ElementType.OTHER
    raw = str(value).strip()
    compact = raw.replace("_", "").lower()
    for candidate in ElementType:
        if raw == candidate.value or compact == candidate.value.lower() or compact == candidate.name.replace("_", "").lower():
            return candidate
    return ElementType.OTHER


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    return None


class ElementFrame(BaseModel):
    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0

    @model_validator(mode="before")
    @classmethod
    def _coerce(cls, data: Any) -> Dict[str, Any]:
        if not isinstance(data, dict):
            return {}
        cleaned: Dict[str, Any] = {}
        for key in ("x", "y", "width", "height"):
            number = _as_float(data.get(key))
            if number is not None:
                cleaned[key] = number
        return cleaned

    @property
    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0


class ElementNode(BaseModel):
    """One node of a UI tree snapshot."""

    ref: Optional[str] = None
    type: ElementType = ElementType.OTHER
    label: str = ""
    identifier: str = ""
    value: Optional[str] = None
    frame: ElementFrame = Field(default_factory=ElementFrame)
    exists: bool = True
    hittable: bool = False
    enabled: bool = True
    children: List["ElementNode"] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _coerce(cls, data: Any) -> Dict[str, Any]:
        if isinstance(data, ElementNode):
            return data.model_dump()
        if not isinstance(data, dict):
            return {}
        cleaned: Dict[str, Any] = {"type": normalize_element_type(data.get("type"))}
        ref = data.get("ref")
        if isinstance(ref, (str, int)) and not isinstance(ref, bool):
            cleaned["ref"] = str(ref)
        for key in ("label", "identifier"):
            if isinstance(data.get(key), str):
                cleaned[key] = data[key]
        value = data.get("value")
        if isinstance(value, str):
            cleaned["value"] = value
        elif _as_float(value) is not None:
            cleaned["value"] = str(value)
        for key in ("exists", "hittable", "enabled"):
            if isinstance(data.get(key), bool):
                cleaned[key] = data[key]
        if "frame" in data:
            cleaned["frame"] = data.get("frame")
        children = data.get("children")
        if isinstance(children, list):
            cleaned["children"] = children
        return cleaned


class Element:
    """Handle to one element of a snapshot, bound to the driver that can act on it."""

    def __init__(self, node: ElementNode, driver: Optional["UIDriver"] = None) -> None:
        self.node = node
        self.driver = driver

    @property
    def ref(self) -> Optional[str]:
        return self.node.ref

    @property
    def element_type(self) -> ElementType:
        return self.node.type

    @property
    def label(self) -> str:
        return self.node.label

    @property
    def identifier(self) -> str:
        return self.node.identifier

    @property
    def value(self) -> Optional[str]:
        return self.node.value

    @property
    def frame(self) -> ElementFrame:
        return self.node.frame

    @property
    def exists(self) -> bool:
        return self.node.exists

    @property
    def is_hittable(self) -> bool:
        return self.node.exists and self.node.hittable

    @property
    def is_enabled(self) -> bool:
        return self.node.enabled

    def _wrap(self, node: ElementNode) -> "Element":
        return Element(node, self.driver)

    def children(self, element_type: ElementType = ElementType.ANY) -> List["Element"]:
        return [
            self._wrap(child)
            for child in self.node.children
            if element_type == ElementType.ANY or child.type == element_type
        ]

    def descendants(self, element_type: ElementType = ElementType.ANY) -> List["Element"]:
        """All nodes below this one, breadth-first, filtered by type."""
        found: List[Element] = []
        queue = list(self.node.children)
        while queue:
            node = queue.pop(0)
            if element_type == ElementType.ANY or node.type == element_type:
                found.append(self._wrap(node))
            queue.extend(node.children)
        return found

    def _require_driver(self) -> "UIDriver":
        if self.driver is None:
            raise RuntimeError(f"element {self!r} is not bound to a driver")
        return self.driver

    def tap(self) -> None:
        self._require_driver().tap(self)

    def type_text(self, text: str) -> None:
        self._require_driver().type_text(self, text)

    def __repr__(self) -> str:
        name = self.label or self.identifier or self.value or ""
        return f"<Element {self.element_type.value} '{name}' ref={self.ref}>"


ElementNode.model_rebuild()


__all__ = ["ElementType", "ElementFrame", "ElementNode", "Element", "normalize_element_type"]

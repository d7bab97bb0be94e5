"""
UI driver abstraction over the application under test.

The resolver only needs a fresh tree snapshot plus a handful of actions. Implicit
"wait for the app to be idle" behaviour is an explicit flag on the driver
(``wait_for_idle_before_query``) that callers toggle through a scoped guard.
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Protocol, Tuple

from mobiletest.config import TEST_TIMEOUT
from mobiletest.tunnel.client import TunnelClient
from mobiletest.ui.elements import Element, ElementNode

logger = logging.getLogger(__name__)

Point = Tuple[float, float]


class UIDriver(Protocol):
    wait_for_idle_before_query: bool

    def snapshot(self) -> Element: ...

    def wait_for_idle(self, timeout: float = TEST_TIMEOUT) -> None: ...

    def tap(self, element: Element) -> None: ...

    def type_text(self, element: Element, text: str) -> None: ...

    def drag(self, start: Point, end: Point, press_duration: float = 0.1) -> None: ...

    def perform_custom_command(self, name: str, payload: Any = None) -> Any: ...


class TunnelDriver:
    """UIDriver backed by tunnel commands."""

    def __init__(self, client: Optional[TunnelClient] = None, wait_for_idle_before_query: bool = True) -> None:
        self.client = client or TunnelClient()
        self.wait_for_idle_before_query = wait_for_idle_before_query

    def perform_custom_command(self, name: str, payload: Any = None) -> Any:
        return self.client.perform_custom_command(name, payload)

    def snapshot(self) -> Element:
        raw = self.perform_custom_command("getElementTree")
        if not isinstance(raw, dict):
            logger.warning("getElementTree returned %s; treating the tree as empty", type(raw).__name__)
        return Element(ElementNode.model_validate(raw if isinstance(raw, dict) else {}), self)

    def wait_for_idle(self, timeout: float = TEST_TIMEOUT) -> None:
        self.perform_custom_command("waitForIdle", {"timeout": timeout})

    def tap(self, element: Element) -> None:
        self.perform_custom_command("tapElement", {"ref": element.ref})

    def type_text(self, element: Element, text: str) -> None:
        self.perform_custom_command("typeText", {"ref": element.ref, "text": text})

    def drag(self, start: Point, end: Point, press_duration: float = 0.1) -> None:
        self.perform_custom_command(
            "dragCoordinates",
            {
                "from": {"dx": start[0], "dy": start[1]},
                "to": {"dx": end[0], "dy": end[1]},
                "pressDuration": press_duration,
            },
        )


__all__ = ["UIDriver", "TunnelDriver", "Point"]

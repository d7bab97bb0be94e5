"""
HTTP client for the test tunnel exposed by the application under test.

Every out-of-process action goes through one call shape: a named command with an
optional JSON payload, answered by an optional JSON result.
"""

import logging
from typing import Any, Optional

import httpx

from mobiletest.config import TUNNEL_TIMEOUT, tunnel_base_url
from mobiletest.errors import TunnelError

logger = logging.getLogger(__name__)


class TunnelClient:
    """Synchronous request/response client for tunnel commands."""

    def __init__(self, base_url: Optional[str] = None, timeout: float = TUNNEL_TIMEOUT) -> None:
        self.base_url = (base_url or tunnel_base_url()).rstrip("/")
        self.timeout = float(timeout)

    def command_url(self, name: str) -> str:
        return f"{self.base_url}/commands/{name}"

    def perform_custom_command(self, name: str, payload: Any = None) -> Any:
        """Run a named command on the app and return its ``result`` (None when absent)."""
        url = self.command_url(name)
        try:
            with httpx.Client() as client:
                response = client.post(url, json={"object": payload}, timeout=self.timeout)
                try:
                    response.raise_for_status()
                except httpx.HTTPStatusError as exc:
                    status = exc.response.status_code if exc.response is not None else "unknown"
                    detail = ""
                    try:
                        detail = (exc.response.text or "").strip()
                    except Exception:
                        detail = ""
                    raise TunnelError(name, f"HTTP {status} {detail}".strip()) from exc
        except httpx.TimeoutException as exc:
            raise TunnelError(name, "request timed out") from exc
        except httpx.HTTPError as exc:
            raise TunnelError(name, f"transport error: {exc}") from exc

        if not response.content:
            return None
        try:
            data = response.json()
        except ValueError as exc:
            raise TunnelError(name, "response is not valid JSON") from exc
        if not isinstance(data, dict):
            logger.debug("Tunnel command %s answered with a bare value", name)
            return data
        return data.get("result")

    def stub_requests_remove_all(self) -> None:
        self.perform_custom_command("stubRequestsRemoveAll")

    def user_defaults_reset(self) -> None:
        self.perform_custom_command("userDefaultsReset")


__all__ = ["TunnelClient"]

"""Shared configuration for timeouts, the test tunnel, fixtures and artifacts."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

load_dotenv()

# Global standard timeout for every waiting operation; the engine takes it as a parameter.
TEST_TIMEOUT = float(os.getenv("MOBILETEST_TIMEOUT", "10"))
POLL_INTERVAL = float(os.getenv("MOBILETEST_POLL_INTERVAL", "0.1"))
DIAGNOSTIC_EVERY = int(os.getenv("MOBILETEST_DIAGNOSTIC_EVERY", "9"))

TUNNEL_HOST = os.getenv("MOBILETEST_TUNNEL_HOST", "127.0.0.1")
TUNNEL_PORT = int(os.getenv("MOBILETEST_TUNNEL_PORT", "8710"))
TUNNEL_TIMEOUT = float(os.getenv("MOBILETEST_TUNNEL_TIMEOUT", "30"))

FIXTURES_ROOT = os.getenv("MOBILETEST_FIXTURES_ROOT")
FIXTURES_SUBDIR = "mobile-test-data/NGC"

SCREENSHOT_MODE = os.getenv("MOBILETEST_SCREENSHOT", "0") == "1"


def tunnel_base_url(host: str | None = None, port: int | None = None) -> str:
    """Return the tunnel base URL, honoring overrides and MOBILETEST_TUNNEL_URL."""
    explicit = os.getenv("MOBILETEST_TUNNEL_URL")
    if explicit and host is None and port is None:
        return explicit.rstrip("/")
    resolved_host = host or TUNNEL_HOST
    resolved_port = int(port or TUNNEL_PORT)
    return f"http://{resolved_host}:{resolved_port}"


def artifacts_dir() -> Optional[Path]:
    """
    Directory for captured screens and attachments.

    MOBILETEST_ARTIFACTS_DIR wins; otherwise <SRCROOT>/Artifacts. None when neither is set.
    """
    explicit = os.getenv("MOBILETEST_ARTIFACTS_DIR")
    if explicit:
        return Path(explicit)
    srcroot = os.getenv("SRCROOT")
    if srcroot:
        return Path(srcroot) / "Artifacts"
    return None


def fixture_roots() -> list[Path]:
    """Search roots for shared fixture data, most specific first."""
    roots: list[Path] = []
    if FIXTURES_ROOT:
        roots.extend(Path(p) for p in FIXTURES_ROOT.split(os.pathsep) if p)
    roots.append(Path.cwd())
    return roots


__all__ = [
    "TEST_TIMEOUT",
    "POLL_INTERVAL",
    "DIAGNOSTIC_EVERY",
    "TUNNEL_HOST",
    "TUNNEL_PORT",
    "TUNNEL_TIMEOUT",
    "FIXTURES_SUBDIR",
    "SCREENSHOT_MODE",
    "tunnel_base_url",
    "artifacts_dir",
    "fixture_roots",
]

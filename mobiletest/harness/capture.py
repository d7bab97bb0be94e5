"""
Screen captures and failure attachments fetched through the tunnel.

Captures are written by the app to a device-side path and moved into
``<artifacts>/capture/screens``. Attachments are saved under
``<artifacts>/attachments`` (or the temp dir when no artifacts dir is configured).
"""

from __future__ import annotations

import base64
import binascii
import io
import logging
import shutil
import tempfile
import time
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Optional, Union

from PIL import Image, UnidentifiedImageError

from mobiletest import logging_setup
from mobiletest.config import artifacts_dir
from mobiletest.logging_utils import log_event

logger = logging.getLogger(__name__)

Screen = Union[str, Enum]


def _screen_name(screen: Screen) -> str:
    return str(screen.value) if isinstance(screen, Enum) else str(screen)


def _attachments_dir() -> Path:
    root = artifacts_dir()
    return (root / "attachments") if root is not None else Path(tempfile.gettempdir())


def capture_screen(
    test: Any,
    screen: Screen,
    attempts: int = 5,
    retry_delay: float = 1.0,
    settle_delay: float = 2.0,
) -> Optional[Path]:
    """
    Ask the app to capture ``screen`` and move the file into the artifacts dir.

    Returns the destination path, or None when artifacts are not configured or the
    capture never materialised. Capturing is best effort and never fails a test.
    """
    time.sleep(settle_delay)
    root = artifacts_dir()
    if root is None:
        return None

    result = test.tunnel.perform_custom_command("captureScreen", _screen_name(screen))
    if not isinstance(result, str) or not result:
        logger.info("captureScreen returned no file path for %s", _screen_name(screen))
        return None
    source = Path(result)

    exists = False
    for attempt in range(max(1, attempts)):
        exists = source.exists()
        if exists:
            break
        if attempt < attempts - 1:
            time.sleep(retry_delay)
    if not exists:
        logger.info("Capture file %s never appeared", source)
        return None

    screens_dir = root / "capture" / "screens"
    target = screens_dir / source.name
    try:
        screens_dir.mkdir(parents=True, exist_ok=True)
        if target.exists():
            target.unlink()
        shutil.move(str(source), str(target))
    except OSError as exc:
        logger.warning("Could not move capture %s to %s: %s", source, target, exc)
        return None
    log_event("screen_captured", {"screen": _screen_name(screen), "path": str(target)})
    return target


@dataclass(frozen=True)
class Attachment:
    """A file attached to a test report."""

    name: str
    path: Path
    content_type: str

    @classmethod
    def test_log(cls) -> Optional["Attachment"]:
        path = logging_setup.TEST_LOG
        if not path.exists():
            return None
        return cls(name=path.name, path=path, content_type="text/plain")

    @classmethod
    def from_text(cls, name: str, text: str) -> Optional["Attachment"]:
        """Write ``text`` to ``<name>.txt`` beside the other attachments."""
        filename = name if name.lower().endswith(".txt") else f"{name}.txt"
        target = _attachments_dir() / filename
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(text, encoding="utf-8")
        except OSError as exc:
            logger.warning("Could not write text attachment %s: %s", filename, exc)
            return None
        return cls(name=filename, path=target, content_type="text/plain")

    @classmethod
    def app_error_screenshot(cls, test: Any, name: str) -> Optional["Attachment"]:
        """Fetch a PNG of the app's current screen; None when the app sends no usable image."""
        filename = name if "png" in name.lower() else f"{name}.png"
        encoded = test.tunnel.perform_custom_command("captureScreenshot")
        if not isinstance(encoded, str) or not encoded:
            logger.warning("captureScreenshot returned no image data")
            return None
        try:
            raw = base64.b64decode(encoded, validate=True)
        except (binascii.Error, ValueError) as exc:
            logger.warning("captureScreenshot returned invalid base64: %s", exc)
            return None

        target_dir = _attachments_dir()
        target = target_dir / filename
        try:
            with Image.open(io.BytesIO(raw)) as img:
                img.load()
                target_dir.mkdir(parents=True, exist_ok=True)
                img.save(target, format="PNG")
        except (UnidentifiedImageError, OSError) as exc:
            logger.warning("Could not save screenshot %s: %s", filename, exc)
            return None
        return cls(name=filename, path=target, content_type="image/png")


__all__ = ["Screen", "capture_screen", "Attachment"]

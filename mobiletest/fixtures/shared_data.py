"""
Shared test data lookup.

Fixtures live under ``<root>/mobile-test-data/NGC/<WEB|API>/<sub_dir>/<name>.<ext>``.
Several roots may be configured (see ``config.fixture_roots``); the first root
that holds a requested file is remembered and tried first on later lookups.
"""

from __future__ import annotations

import json
import logging
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

from mobiletest.config import FIXTURES_SUBDIR, fixture_roots
from mobiletest.errors import FixtureNotFoundError

logger = logging.getLogger(__name__)


class FileType(str, Enum):
    JSON = "json"
    HTML = "html"
    ATOM = "atom"


class DirectoryType(str, Enum):
    WEB = "WEB"
    API = "API"


class SharedData:
    _root: Optional[Path] = None
    roots: Optional[List[Path]] = None

    @classmethod
    def reset_cache(cls) -> None:
        cls._root = None

    @classmethod
    def _search_roots(cls) -> List[Path]:
        roots = list(cls.roots) if cls.roots is not None else fixture_roots()
        if cls._root is not None:
            roots = [cls._root] + [root for root in roots if root != cls._root]
        return roots

    @staticmethod
    def relative_path(filename: str, sub_dir: str, directory_type: DirectoryType, file_type: FileType) -> Path:
        return Path(FIXTURES_SUBDIR) / directory_type.value / sub_dir / f"{filename}.{file_type.value}"

    @classmethod
    def url(
        cls,
        filename: str,
        sub_dir: str,
        directory_type: DirectoryType = DirectoryType.API,
        file_type: FileType = FileType.JSON,
    ) -> Path:
        """Absolute path of a fixture file; raises FixtureNotFoundError when no root has it."""
        relative = cls.relative_path(filename, sub_dir, directory_type, file_type)
        searched = cls._search_roots()
        for root in searched:
            candidate = root / relative
            if candidate.is_file():
                if cls._root != root:
                    logger.debug("Using fixture root %s", root)
                    cls._root = root
                return candidate
        raise FixtureNotFoundError(
            f"Could not locate {filename} of type {file_type.value} in {directory_type.value}/{sub_dir} "
            f"(searched: {', '.join(str(root) for root in searched)})"
        )

    @classmethod
    def load(
        cls,
        filename: str,
        sub_dir: str,
        directory_type: DirectoryType = DirectoryType.API,
        file_type: FileType = FileType.JSON,
        substitutions: Optional[Dict[str, str]] = None,
    ) -> str:
        """Fixture text with each ``substitutions`` key literally replaced by its value."""
        text = cls.url(filename, sub_dir, directory_type, file_type).read_text(encoding="utf-8")
        for key, value in (substitutions or {}).items():
            text = text.replace(key, value)
        return text

    @classmethod
    def load_json(
        cls,
        filename: str,
        sub_dir: str,
        directory_type: DirectoryType = DirectoryType.API,
        substitutions: Optional[Dict[str, str]] = None,
    ) -> Any:
        return json.loads(cls.load(filename, sub_dir, directory_type, FileType.JSON, substitutions))


__all__ = ["FileType", "DirectoryType", "SharedData"]

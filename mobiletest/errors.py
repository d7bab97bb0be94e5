from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class SourceLocation:
    """File and line a failure is attributed to."""

    file: str
    line: int

    def __str__(self) -> str:
        return f"{self.file}:{self.line}"


class TestFailure(AssertionError):
    """A recorded test failure, attributed to the caller's source location."""

    __test__ = False

    def __init__(self, description: str, location: SourceLocation | None = None) -> None:
        self.description = description
        self.location = location
        message = f"{location}: {description}" if location else description
        super().__init__(message)


class TunnelError(RuntimeError):
    """The remote command channel could not complete a command."""

    def __init__(self, command: str, message: str) -> None:
        self.command = command
        super().__init__(f"tunnel command '{command}' failed: {message}")


class FixtureNotFoundError(FileNotFoundError):
    """A shared fixture file could not be located in any search root."""


__all__ = ["SourceLocation", "TestFailure", "TunnelError", "FixtureNotFoundError"]

from __future__ import annotations

"""Error kinds raised while registering a protocol handler.

Every failure is one of three leaves, tagged with an `ErrorKind` so callers can
branch on `exc.kind` instead of matching messages.
"""

from enum import Enum
from pathlib import Path


class ErrorKind(Enum):
    PARSE = "parse"
    IO = "io"
    ENV = "env"


class ProtocolHandlerError(Exception):
    """Base class for registration failures."""

    kind: ErrorKind


class ParseError(ProtocolHandlerError):
    """Desktop entry text does not follow the `[Desktop Entry]` + `key=value` layout."""

    kind = ErrorKind.PARSE

    def __init__(self, message: str, *, line_number: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.line_number = line_number

    def __str__(self) -> str:
        if self.line_number is None:
            return self.message
        return f"{self.message} (line {self.line_number})"


class IoError(ProtocolHandlerError):
    """Opening, reading, truncating or writing the desktop entry failed.

    The underlying `OSError`, or the `UnicodeDecodeError` for content that is
    not UTF-8, is chained as `__cause__`.
    """

    kind = ErrorKind.IO

    def __init__(self, path: Path, error: OSError | UnicodeDecodeError) -> None:
        detail = getattr(error, "strerror", None) or error
        super().__init__(f"{path}: {detail}")
        self.path = path
        self.errno = getattr(error, "errno", None)


class EnvError(ProtocolHandlerError):
    """A required environment variable is missing."""

    kind = ErrorKind.ENV

    def __init__(self, variable: str) -> None:
        super().__init__(f"environment variable {variable} is not set")
        self.variable = variable

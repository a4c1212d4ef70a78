"""Register URL scheme handlers for desktop applications."""

from __future__ import annotations

import logging
import platform
from dataclasses import dataclass
from pathlib import Path

from protocol_handler import linux
from protocol_handler.errors import EnvError, ErrorKind, IoError, ParseError, ProtocolHandlerError

LOGGER = logging.getLogger(__name__)

__all__ = [
    "EnvError",
    "ErrorKind",
    "IoError",
    "ParseError",
    "ProtocolHandler",
    "ProtocolHandlerError",
    "register_protocol_handler",
    "unregister_protocol_handler",
]


def _unsupported(system: str) -> NotImplementedError:
    LOGGER.info("Protocol handler registration is not supported on %s.", system)
    return NotImplementedError(f"Protocol handler registration is not supported on {system}")


def register_protocol_handler(
    name: str,
    protocol_name: str,
    *,
    executable: str | None = None,
) -> Path:
    """Register `protocol_name://` for the application `name` on the current platform.

    `executable` is used for Exec= when the desktop entry has none.
    """
    system = platform.system()
    if system == "Linux":
        return linux.register_protocol_handler(name, protocol_name, executable=executable)
    raise _unsupported(system)


def unregister_protocol_handler(name: str) -> Path:
    """Remove the URL scheme handler registered for `name` on the current platform."""
    system = platform.system()
    if system == "Linux":
        return linux.unregister_protocol_handler(name)
    raise _unsupported(system)


@dataclass(frozen=True)
class ProtocolHandler:
    """An application identity and the URL scheme it should handle."""

    name: str
    protocol_name: str

    def register(self) -> Path:
        return register_protocol_handler(self.name, self.protocol_name)

    def unregister(self) -> Path:
        return unregister_protocol_handler(self.name)

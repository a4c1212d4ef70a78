"""Linux protocol handler registration.

The handler is recorded in `$HOME/.local/share/applications/<name>.desktop` by
editing the MimeType field of that desktop entry in place.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Callable, Mapping, TextIO

from protocol_handler.config import load_config
from protocol_handler.desktop_entry import DesktopEntry
from protocol_handler.errors import EnvError, IoError
from protocol_handler.shared import (
    APPLICATIONS_SUBDIR,
    DESKTOP_SUFFIX,
    EXEC_ARGUMENT,
    EXEC_KEY,
    SCHEME_HANDLER_PREFIX,
    scheme_handler_token,
)

LOGGER = logging.getLogger(__name__)

Opener = Callable[[Path], TextIO]


def desktop_entry_path(name: str, environ: Mapping[str, str] | None = None) -> Path:
    """Return `$HOME/.local/share/applications/<name>.desktop`.

    Raises:
        EnvError: If HOME is unset or empty.
    """
    if environ is None:
        environ = os.environ
    home = environ.get("HOME")
    if not home:
        raise EnvError("HOME")
    return Path(home) / APPLICATIONS_SUBDIR / f"{name}{DESKTOP_SUFFIX}"


def open_desktop_entry(path: Path) -> TextIO:
    """Open `path` for reading and writing, creating it without truncating."""
    fd = os.open(path, os.O_RDWR | os.O_CREAT, 0o644)
    return os.fdopen(fd, "r+", encoding="utf-8", newline="")


def _default_exec(executable: str | None) -> str:
    if executable is None:
        executable = load_config().exec_command
    return f"{executable} {EXEC_ARGUMENT}"


def _update_desktop_entry(
    path: Path,
    mutate: Callable[[DesktopEntry], None],
    opener: Opener,
) -> None:
    """Read, mutate and rewrite the desktop entry at `path`.

    The file is truncated only after it decoded cleanly. Truncate-then-write is
    not atomic and nothing guards against a concurrent writer.
    """
    try:
        with opener(path) as handle:
            entry = DesktopEntry.decode(handle.read())
            LOGGER.debug("Decoded %d field(s) from %s", len(entry), path)
            mutate(entry)
            handle.seek(0)
            handle.truncate(0)
            handle.write(entry.encode())
    except (OSError, UnicodeDecodeError) as exc:
        raise IoError(path, exc) from exc


def register_protocol_handler(
    name: str,
    protocol_name: str,
    *,
    environ: Mapping[str, str] | None = None,
    executable: str | None = None,
    opener: Opener = open_desktop_entry,
) -> Path:
    """Register `protocol_name://` for the desktop entry `name`.

    Side effects: creates or rewrites the desktop entry, adding an Exec field for
    `executable` (default: configured command or the running program) when
    the entry has none.

    Raises:
        EnvError: If HOME is not set.
        ParseError: If the existing file is not a desktop entry we can edit, or the
            scheme or Exec value would not fit on one `key=value` line.
        IoError: If the file cannot be opened, read, decoded as UTF-8 or written.
    """
    path = desktop_entry_path(name, environ)
    token = scheme_handler_token(protocol_name)

    def mutate(entry: DesktopEntry) -> None:
        if EXEC_KEY not in entry:
            entry.set_default(EXEC_KEY, _default_exec(executable))
        entry.insert_scheme_handler(token)

    _update_desktop_entry(path, mutate, opener)
    LOGGER.info("Registered %s in %s", token, path)
    return path


def unregister_protocol_handler(
    name: str,
    *,
    environ: Mapping[str, str] | None = None,
    opener: Opener = open_desktop_entry,
) -> Path:
    """Remove the scheme handler from the desktop entry `name` and save it.

    Raises:
        EnvError: If HOME is not set.
        ParseError: If the existing file is not a desktop entry we can edit.
        IoError: If the file cannot be opened, read or written.
    """
    path = desktop_entry_path(name, environ)
    _update_desktop_entry(path, DesktopEntry.delete_scheme_handler, opener)
    LOGGER.info("Unregistered scheme handler from %s", path)
    return path


def read_protocol_handler(name: str, *, environ: Mapping[str, str] | None = None) -> str | None:
    """Return the scheme registered for `name`, or None if there is none."""
    path = desktop_entry_path(name, environ)
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None
    except (OSError, UnicodeDecodeError) as exc:
        raise IoError(path, exc) from exc

    token = DesktopEntry.decode(text).scheme_handler()
    if token is None:
        return None
    return token[len(SCHEME_HANDLER_PREFIX) :]

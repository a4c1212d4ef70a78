"""Shared constants for desktop entry handling."""

from __future__ import annotations

HEADER = "[Desktop Entry]"
MIME_TYPE_KEY = "MimeType"
EXEC_KEY = "Exec"
SCHEME_HANDLER_PREFIX = "x-scheme-handler/"
EXEC_ARGUMENT = "%u"
APPLICATIONS_SUBDIR = ".local/share/applications"
DESKTOP_SUFFIX = ".desktop"


def scheme_handler_token(protocol_name: str) -> str:
    return f"{SCHEME_HANDLER_PREFIX}{protocol_name}"

from __future__ import annotations

"""Parse, edit and serialize freedesktop `.desktop` entries.

Only the subset needed for URL scheme registration is supported:

  [Desktop Entry]
  Key=Value
  ...

One header line, then exactly one `key=value` pair per line. Field order is kept
as read; fields that are not touched are written back unchanged.
"""

from typing import Iterator

from protocol_handler.errors import ParseError
from protocol_handler.shared import HEADER, MIME_TYPE_KEY, SCHEME_HANDLER_PREFIX


def _lines(text: str) -> list[str]:
    """Split on `\\n`, dropping a trailing `\\r` and one final empty line."""
    if not text:
        return []
    lines = text.split("\n")
    if lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


def _check_field(key: str, value: str) -> None:
    """Reject fields that would not decode back as one `key=value` line."""
    for part in (key, value):
        if "=" in part or "\n" in part or "\r" in part:
            raise ParseError("invalid field format")


def _split_mime_types(value: str) -> list[str]:
    return [token for token in value.split(";") if token]


def _is_scheme_handler(token: str) -> bool:
    return token.startswith(SCHEME_HANDLER_PREFIX)


class DesktopEntry:
    """Ordered `key -> value` fields of the `[Desktop Entry]` group."""

    def __init__(self, fields: dict[str, str] | None = None) -> None:
        self._fields: dict[str, str] = {}
        for key, value in (fields or {}).items():
            self[key] = value

    @classmethod
    def decode(cls, text: str) -> DesktopEntry:
        """Parse desktop entry text.

        Empty text yields an entry without fields, so a freshly created file can be
        registered against. A repeated key keeps its first position and its last value.

        Raises:
            ParseError: If the header is wrong or a line is not exactly `key=value`.
        """
        lines = _lines(text)
        if lines and lines[0] != HEADER:
            raise ParseError("not a desktop entry", line_number=1)

        fields: dict[str, str] = {}
        for line_number, line in enumerate(lines[1:], start=2):
            parts = line.split("=")
            if len(parts) != 2:
                raise ParseError("invalid field format", line_number=line_number)
            key, value = parts
            fields[key] = value
        entry = cls()
        entry._fields = fields
        return entry

    def encode(self) -> str:
        body = "\n".join(f"{key}={value}" for key, value in self._fields.items())
        return f"{HEADER}\n{body}"

    def get(self, key: str, default: str | None = None) -> str | None:
        return self._fields.get(key, default)

    def set_default(self, key: str, value: str) -> str:
        """Insert `value` only when `key` is absent; return the stored value."""
        if key not in self._fields:
            _check_field(key, value)
        return self._fields.setdefault(key, value)

    def items(self) -> list[tuple[str, str]]:
        return list(self._fields.items())

    def mime_types(self) -> list[str]:
        value = self._fields.get(MIME_TYPE_KEY)
        if value is None:
            return []
        return _split_mime_types(value)

    def scheme_handler(self) -> str | None:
        """Return the `x-scheme-handler/...` token in MimeType, if any."""
        return next((token for token in self.mime_types() if _is_scheme_handler(token)), None)

    def insert_scheme_handler(self, token: str) -> None:
        """Set `token` as the scheme handler in MimeType.

        An existing scheme handler is replaced in place; otherwise `token` is
        appended. Other MIME types keep their order.
        """
        _check_field(MIME_TYPE_KEY, token)
        value = self._fields.get(MIME_TYPE_KEY)
        if value is None:
            self._fields[MIME_TYPE_KEY] = token
            return

        updated: list[str] = []
        replaced = False
        for existing in _split_mime_types(value):
            if not _is_scheme_handler(existing):
                updated.append(existing)
            elif not replaced:
                updated.append(token)
                replaced = True
        if not replaced:
            updated.append(token)
        self._fields[MIME_TYPE_KEY] = ";".join(updated)

    def delete_scheme_handler(self) -> None:
        """Remove the scheme handler from MimeType.

        MimeType itself is removed once no tokens are left.
        """
        value = self._fields.get(MIME_TYPE_KEY)
        if value is None:
            return

        tokens = _split_mime_types(value)
        remaining = [token for token in tokens if not _is_scheme_handler(token)]
        if len(remaining) == len(tokens):
            return
        if remaining:
            self._fields[MIME_TYPE_KEY] = ";".join(remaining)
        else:
            del self._fields[MIME_TYPE_KEY]

    def __getitem__(self, key: str) -> str:
        return self._fields[key]

    def __setitem__(self, key: str, value: str) -> None:
        _check_field(key, value)
        self._fields[key] = value

    def __delitem__(self, key: str) -> None:
        del self._fields[key]

    def __contains__(self, key: object) -> bool:
        return key in self._fields

    def __iter__(self) -> Iterator[str]:
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DesktopEntry):
            return NotImplemented
        return self.items() == other.items()

    def __repr__(self) -> str:
        return f"DesktopEntry({self._fields!r})"


def decode_desktop_entry(text: str) -> DesktopEntry:
    return DesktopEntry.decode(text)


def encode_desktop_entry(entry: DesktopEntry) -> str:
    return entry.encode()

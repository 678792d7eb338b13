"""Mailbox names, LIST information and mailbox status (RFC 3501)."""

from __future__ import annotations

import base64
import binascii
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable

from imapcore.items import RawString, StatusItem
from imapcore.reader import ParseError, parse_number, parse_string, parse_string_list

INBOX_NAME = "INBOX"

# Mailbox attributes, RFC 3501 section 7.2.2.
NO_INFERIORS_ATTR = "\\Noinferiors"
NO_SELECT_ATTR = "\\Noselect"
MARKED_ATTR = "\\Marked"
UNMARKED_ATTR = "\\Unmarked"

# SPECIAL-USE attributes, RFC 6154 section 2.
ALL_ATTR = "\\All"
ARCHIVE_ATTR = "\\Archive"
DRAFTS_ATTR = "\\Drafts"
FLAGGED_ATTR = "\\Flagged"
JUNK_ATTR = "\\Junk"
SENT_ATTR = "\\Sent"
TRASH_ATTR = "\\Trash"

# CHILDREN attributes, RFC 3348.
HAS_CHILDREN_ATTR = "\\HasChildren"
HAS_NO_CHILDREN_ATTR = "\\HasNoChildren"

# RFC 8457 section 3.
IMPORTANT_ATTR = "\\Important"

_NUMERIC_ITEMS = {
    StatusItem.MESSAGES: "messages",
    StatusItem.RECENT: "recent",
    StatusItem.UNSEEN: "unseen",
    StatusItem.UIDNEXT: "uid_next",
    StatusItem.UIDVALIDITY: "uid_validity",
    StatusItem.APPENDLIMIT: "append_limit",
}


def canonical_mailbox_name(name: str) -> str:
    """Return the canonical form of a mailbox name; only INBOX is case-insensitive."""
    if name.upper() == INBOX_NAME:
        return INBOX_NAME
    return name


def format_mailbox_name(name: str) -> str:
    """Prepare a mailbox name for the wire; INBOX is sent unquoted."""
    if name.lower() == INBOX_NAME.lower():
        return RawString(name)
    return name


def _encode_mailbox_name(name: str) -> str:
    """Encode a mailbox name in modified UTF-7 (RFC 3501 section 5.1.3)."""
    out: list[str] = []
    run: list[str] = []

    def flush() -> None:
        if run:
            raw = "".join(run).encode("utf-16-be")
            encoded = base64.b64encode(raw).decode("ascii").rstrip("=").replace("/", ",")
            out.append("&" + encoded + "-")
            run.clear()

    for char in name:
        if " " <= char <= "~":
            flush()
            out.append("&-" if char == "&" else char)
        else:
            run.append(char)
    flush()
    return "".join(out)


def _decode_mailbox_name(name: str) -> str:
    """Decode a modified UTF-7 mailbox name."""
    out: list[str] = []
    pos = 0
    while pos < len(name):
        char = name[pos]
        if char == "&":
            end = name.find("-", pos + 1)
            if end == -1:
                raise ParseError("invalid UTF-7: unterminated shift sequence")
            chunk = name[pos + 1:end]
            if not chunk:
                out.append("&")
            else:
                padded = chunk.replace(",", "/") + "=" * (-len(chunk) % 4)
                try:
                    raw = base64.b64decode(padded, validate=True)
                    if len(raw) % 2:
                        raise ParseError("invalid UTF-7: odd number of octets")
                    out.append(raw.decode("utf-16-be"))
                except (binascii.Error, UnicodeDecodeError) as exc:
                    raise ParseError(f"invalid UTF-7: {exc}") from exc
            pos = end + 1
        elif " " <= char <= "~":
            out.append(char)
            pos += 1
        else:
            raise ParseError("invalid UTF-7: character outside printable ASCII")
    return "".join(out)


def _status_key(key: str) -> str:
    try:
        return StatusItem(key)
    except ValueError:
        return key


def _key_text(key: str) -> str:
    return key.value if isinstance(key, Enum) else str(key)


@dataclass
class MailboxInfo:
    """Basic mailbox information, as returned by LIST and LSUB."""

    attributes: list[str] = field(default_factory=list)
    delimiter: str = ""
    name: str = ""

    @classmethod
    def parse(cls, fields: list[Any]) -> MailboxInfo:
        """Build mailbox information from the fields of a LIST response."""
        if len(fields) < 3:
            raise ParseError("Mailbox info needs at least 3 fields")
        attributes = parse_string_list(fields[0])
        delimiter = fields[1]
        if delimiter is None:
            delimiter = ""
        elif not isinstance(delimiter, str):
            raise ParseError("Mailbox delimiter must be a string")
        name = _decode_mailbox_name(parse_string(fields[2]))
        return cls(
            attributes=attributes,
            delimiter=str(delimiter),
            name=canonical_mailbox_name(name),
        )

    def format(self) -> list[Any]:
        """Return the fields of a LIST response for this mailbox."""
        name = _encode_mailbox_name(self.name)
        attrs = [RawString(attr) for attr in self.attributes]
        delimiter = self.delimiter if self.delimiter else None
        return [attrs, delimiter, format_mailbox_name(name)]

    def _match(self, name: str, pattern: str) -> bool:
        positions = [p for p in (pattern.find("*"), pattern.find("%")) if p != -1]
        if not positions:
            return name == pattern
        index = min(positions)
        chunk, wildcard, rest = pattern[:index], pattern[index], pattern[index + 1:]

        if chunk and not name.startswith(chunk):
            return False
        name = name[len(chunk):]

        stop = len(name)
        for offset, char in enumerate(name):
            if wildcard == "%" and char == self.delimiter:
                stop = offset
                break
            if self._match(name[offset:], rest):
                return True
        return self._match(name[stop:], rest)

    def match(self, reference: str, pattern: str) -> bool:
        """Check a LIST reference and pattern against this mailbox name."""
        name = self.name
        if self.delimiter and pattern.startswith(self.delimiter):
            reference = ""
            pattern = pattern[len(self.delimiter):]
        if reference:
            if self.delimiter and not reference.endswith(self.delimiter):
                reference += self.delimiter
            if not name.startswith(reference):
                return False
            name = name[len(reference):]
        return self._match(name, pattern)


@dataclass
class MailboxStatus:
    """The status of a mailbox.

    ``items`` records which status items are filled in; its values are only
    meaningful for items defined by extensions.
    """

    name: str = ""
    read_only: bool = False
    items: dict[str, Any] = field(default_factory=dict)
    flags: list[str] | None = None
    permanent_flags: list[str] | None = None
    unseen_seq_num: int = 0
    messages: int = 0
    recent: int = 0
    unseen: int = 0
    uid_next: int = 0
    uid_validity: int = 0
    append_limit: int = 0
    items_lock: threading.Lock = field(
        default_factory=threading.Lock, compare=False, repr=False
    )

    def parse(self, fields: list[Any]) -> None:
        """Fill the status from the key/value fields of a STATUS response."""
        self.items = {}
        key: str = ""
        for position, value in enumerate(fields):
            if position % 2 == 0:
                if not isinstance(value, str):
                    raise ParseError(
                        "cannot parse mailbox status: key is not a string, "
                        f"but a {type(value).__name__}"
                    )
                key = _status_key(_key_text(value).upper())
                continue
            self.items[key] = None
            attribute = _NUMERIC_ITEMS.get(key)
            if attribute is None:
                self.items[key] = value
            else:
                setattr(self, attribute, parse_number(value))

    def format(self) -> list[Any]:
        """Return the key/value fields of a STATUS response."""
        fields: list[Any] = []
        for key, value in self.items.items():
            attribute = _NUMERIC_ITEMS.get(_status_key(_key_text(key)))
            if attribute is not None:
                value = getattr(self, attribute)
            fields.extend((RawString(_key_text(key)), value))
        return fields


def new_mailbox_status(name: str, items: Iterable[str]) -> MailboxStatus:
    """Create a mailbox status that will contain the given items."""
    return MailboxStatus(name=name, items={item: None for item in items})
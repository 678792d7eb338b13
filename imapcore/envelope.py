"""Message flags, header parameters, addresses and envelopes (RFC 3501)."""

from __future__ import annotations

import base64
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from imapcore.dates import format_envelope_datetime, parse_message_datetime
from imapcore.reader import ParseError, parse_string

# System message flags, RFC 3501 section 2.3.2.
SEEN_FLAG = "\\Seen"
ANSWERED_FLAG = "\\Answered"
FLAGGED_FLAG = "\\Flagged"
DELETED_FLAG = "\\Deleted"
DRAFT_FLAG = "\\Draft"
RECENT_FLAG = "\\Recent"

# RFC 8457 section 2.
IMPORTANT_FLAG = "$Important"

# Marks in permanent flags that new keywords may be created.
TRY_CREATE_FLAG = "\\*"

_SYSTEM_FLAGS = (
    SEEN_FLAG,
    ANSWERED_FLAG,
    FLAGGED_FLAG,
    DELETED_FLAG,
    DRAFT_FLAG,
    RECENT_FLAG,
)

_ENCODED_WORD_OPEN = "=?utf-8?q?"
_ENCODED_WORD_CLOSE = "?="
_MAX_CONTENT_LEN = 75 - len(_ENCODED_WORD_OPEN) - len(_ENCODED_WORD_CLOSE)
_HEX_DIGITS = "0123456789abcdefABCDEF"


def canonical_flag(flag: str) -> str:
    """Return the canonical form of a flag.

    System flags keep the case of the RFC; other flags are lower-cased.
    """
    lowered = flag.lower()
    for system_flag in _SYSTEM_FLAGS:
        if system_flag.lower() == lowered:
            return system_flag
    return lowered


def parse_param_list(fields: list[Any]) -> dict[str, str]:
    """Parse a flat key/value field list into a dictionary."""
    params: dict[str, str] = {}
    key = ""
    for position, item in enumerate(fields):
        try:
            text = parse_string(item)
        except ParseError as exc:
            raise ParseError(f"Parameter list contains a non-string: {exc}") from exc
        if position % 2 == 0:
            key = text
        else:
            params[key] = text
            key = ""
    if key:
        raise ParseError("Parameter list contains a key without a value")
    return params


def format_param_list(params: dict[str, str]) -> list[Any]:
    """Flatten a parameter dictionary into a key/value field list."""
    fields: list[Any] = []
    for key, value in params.items():
        fields.extend((key, value))
    return fields


def _q_decode(text: str) -> bytes:
    out = bytearray()
    chars = iter(enumerate(text))
    for position, char in chars:
        if char == "_":
            out.append(0x20)
        elif char == "=":
            if position + 2 >= len(text):
                raise ValueError("invalid encoded word")
            high, low = text[position + 1], text[position + 2]
            if high not in _HEX_DIGITS or low not in _HEX_DIGITS:
                raise ValueError("invalid encoded word")
            out.append(int(high + low, 16))
            next(chars)
            next(chars)
        elif " " <= char <= "~" or char in "\r\n\t":
            out.append(ord(char))
        else:
            raise ValueError("invalid encoded word")
    return bytes(out)


def _decode_word(encoding: str, text: str) -> bytes:
    if encoding in "Bb":
        return base64.b64decode(text.encode("ascii", "strict"), validate=True)
    if encoding in "Qq":
        return _q_decode(text)
    raise ValueError("invalid encoded word")


def _convert(charset: str, content: bytes) -> str:
    lowered = charset.lower()
    if lowered == "utf-8":
        return content.decode("utf-8", "replace")
    if lowered == "iso-8859-1":
        return content.decode("latin-1")
    if lowered == "us-ascii":
        return content.decode("ascii", "replace")
    raise ValueError(f"imap: unhandled charset {lowered!r}")


def decode_header(value: str) -> str:
    """Decode the RFC 2047 encoded words in a header value.

    Malformed encoded words are kept as they are; a charset other than
    UTF-8, ISO-8859-1 or US-ASCII raises ValueError.
    """
    out: list[str] = []
    rest = value
    between_words = False
    while True:
        start = rest.find("=?")
        if start == -1:
            break
        cur = start + 2
        mark = rest.find("?", cur)
        if mark == -1:
            break
        charset = rest[cur:mark]
        cur = mark + 1
        if len(rest) < cur + len("Q??="):
            break
        encoding = rest[cur]
        cur += 1
        if rest[cur] != "?":
            break
        cur += 1
        close = rest.find("?=", cur)
        if close == -1:
            break
        text = rest[cur:close]
        end = close + 2
        try:
            content = _decode_word(encoding, text)
        except (ValueError, UnicodeEncodeError):
            between_words = False
            out.append(rest[: start + 2])
            rest = rest[start + 2:]
            continue
        before = rest[:start]
        if before and (not between_words or before.strip(" \t\r\n")):
            out.append(before)
        out.append(_convert(charset, content))
        rest = rest[end:]
        between_words = True
    out.append(rest)
    return "".join(out)


def _q_byte(byte: int) -> str:
    if byte == 0x20:
        return "_"
    if 0x21 <= byte <= 0x7E and byte not in b"=?_":
        return chr(byte)
    return f"={byte:02X}"


def encode_header(value: str) -> str:
    """Encode a header value as UTF-8 Q encoded words when it needs it."""
    if not any((char < " " or char > "~") and char != "\t" for char in value):
        return value
    words: list[str] = []
    current: list[str] = []
    length = 0
    for char in value:
        raw = char.encode("utf-8", "surrogateescape")
        plain = len(raw) == 1 and " " <= char <= "~" and char not in "=?_"
        cost = 1 if plain else 3 * len(raw)
        if length + cost > _MAX_CONTENT_LEN:
            words.append("".join(current))
            current = []
            length = 0
        current.append("".join(_q_byte(byte) for byte in raw))
        length += cost
    words.append("".join(current))
    return " ".join(_ENCODED_WORD_OPEN + word + _ENCODED_WORD_CLOSE for word in words)


def _decode_or_raw(value: str) -> str:
    try:
        return decode_header(value)
    except ValueError:
        return value


def _parse_header_param_list(fields: list[Any] | None) -> dict[str, str]:
    """Parse header parameters: keys lower-cased, values decoded."""
    params = parse_param_list(fields or [])
    return {key.lower(): _decode_or_raw(value) for key, value in params.items()}


def _format_header_param_list(params: dict[str, str] | None) -> list[Any]:
    """Format header parameters, encoding their values."""
    return format_param_list(
        {key: encode_header(value) for key, value in (params or {}).items()}
    )


@dataclass
class Address:
    """An address as carried in an ENVELOPE."""

    personal_name: str = ""
    at_domain_list: str = ""
    mailbox_name: str = ""
    host_name: str = ""

    def address(self) -> str:
        """Return the mailbox address, such as ``user @ host`` without spaces."""
        return self.mailbox_name + "@" + self.host_name

    @classmethod
    def parse(cls, fields: list[Any]) -> Address:
        """Build an address from its four fields."""
        if len(fields) < 4:
            raise ParseError("Address doesn't contain 4 fields")
        addr = cls()
        try:
            addr.personal_name = _decode_or_raw(parse_string(fields[0]))
        except ParseError:
            pass
        try:
            addr.at_domain_list = _decode_or_raw(parse_string(fields[1]))
        except ParseError:
            pass
        try:
            addr.mailbox_name = _decode_or_raw(parse_string(fields[2]))
        except ParseError as exc:
            raise ParseError("Mailbox name could not be parsed") from exc
        try:
            addr.host_name = _decode_or_raw(parse_string(fields[3]))
        except ParseError as exc:
            raise ParseError("Host name could not be parsed") from exc
        return addr

    def format(self) -> list[Any]:
        """Return the four fields of this address."""
        return [
            encode_header(self.personal_name) if self.personal_name else None,
            self.at_domain_list or None,
            self.mailbox_name or None,
            self.host_name or None,
        ]


def parse_address_list(fields: list[Any]) -> list[Address]:
    """Parse an address list, skipping entries that are not valid addresses."""
    addrs: list[Address] = []
    for item in fields:
        if not isinstance(item, list):
            continue
        try:
            addrs.append(Address.parse(item))
        except ParseError:
            continue
    return addrs


def format_address_list(addrs: list[Address]) -> list[Any] | None:
    """Format an address list; an empty list becomes NIL."""
    if not addrs:
        return None
    return [addr.format() for addr in addrs]


def _address_field(value: Any) -> list[Address]:
    return parse_address_list(value) if isinstance(value, list) else []


def _text_field(value: Any) -> str:
    return str(value) if isinstance(value, str) else ""


@dataclass
class Envelope:
    """Message metadata taken from its headers (RFC 3501 page 77)."""

    date: datetime | None = None
    subject: str = ""
    from_: list[Address] = field(default_factory=list)
    sender: list[Address] = field(default_factory=list)
    reply_to: list[Address] = field(default_factory=list)
    to: list[Address] = field(default_factory=list)
    cc: list[Address] = field(default_factory=list)
    bcc: list[Address] = field(default_factory=list)
    in_reply_to: str = ""
    message_id: str = ""

    @classmethod
    def parse(cls, fields: list[Any]) -> Envelope:
        """Build an envelope from the ten fields of an ENVELOPE."""
        if len(fields) < 10:
            raise ParseError("ENVELOPE doesn't contain 10 fields")
        date = None
        if isinstance(fields[0], str):
            try:
                date = parse_message_datetime(str(fields[0]))
            except ValueError:
                date = None
        subject = ""
        try:
            subject = _decode_or_raw(parse_string(fields[1]))
        except ParseError:
            pass
        return cls(
            date=date,
            subject=subject,
            from_=_address_field(fields[2]),
            sender=_address_field(fields[3]),
            reply_to=_address_field(fields[4]),
            to=_address_field(fields[5]),
            cc=_address_field(fields[6]),
            bcc=_address_field(fields[7]),
            in_reply_to=_text_field(fields[8]),
            message_id=_text_field(fields[9]),
        )

    def format(self) -> list[Any]:
        """Return the ten fields of an ENVELOPE."""
        return [
            format_envelope_datetime(self.date) if self.date is not None else None,
            encode_header(self.subject) if self.subject else None,
            format_address_list(self.from_),
            format_address_list(self.sender),
            format_address_list(self.reply_to),
            format_address_list(self.to),
            format_address_list(self.cc),
            format_address_list(self.bcc),
            self.in_reply_to or None,
            self.message_id or None,
        ]
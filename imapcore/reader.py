"""Reader for the IMAP wire syntax: atoms, strings, literals and lists."""

from __future__ import annotations

import io
import re
from enum import Enum
from typing import Any, BinaryIO, Callable

_SP = b" "
_CR = b"\r"
_LF = b"\n"
_DQUOTE = b'"'
_BACKSLASH = b"\\"
_LITERAL_START = b"{"
_LITERAL_END = b"}"
_LIST_START = b"("
_LIST_END = b")"
_RESP_CODE_START = b"["
_RESP_CODE_END = b"]"

_NIL_ATOM = "NIL"
_QUOTED_SPECIALS = (_DQUOTE, _BACKSLASH)
_UINT32_MAX = 2**32 - 1
_DIGITS = re.compile(r"[0-9]+")


class ParseError(ValueError):
    """Raised when input does not follow the IMAP syntax."""


class Literal:
    """A literal string (RFC 3501 section 4.3): a counted run of octets.

    ``len()`` gives the number of octets not yet read.
    """

    __slots__ = ("_data", "_pos")

    def __init__(self, data: bytes = b"") -> None:
        self._data = bytes(data)
        self._pos = 0

    def __len__(self) -> int:
        return len(self._data) - self._pos

    def read(self, size: int | None = -1) -> bytes:
        """Read up to ``size`` octets, or all remaining ones."""
        if size is None or size < 0:
            end = len(self._data)
        else:
            end = min(len(self._data), self._pos + size)
        chunk = self._data[self._pos:end]
        self._pos = end
        return chunk

    def __repr__(self) -> str:
        return f"Literal({self._data[self._pos:]!r})"


def _text(value: str) -> str:
    return value.value if isinstance(value, Enum) else str(value)


def _decode(data: bytes) -> str:
    return data.decode("utf-8", "surrogateescape")


def _parse_uint32(text: str) -> int:
    if not _DIGITS.fullmatch(text):
        raise ParseError(f"invalid number: {text!r}")
    number = int(text)
    if number > _UINT32_MAX:
        raise ParseError(f"number out of range: {text!r}")
    return number


def parse_number(field: Any) -> int:
    """Parse an unsigned 32-bit number from an atom."""
    if isinstance(field, bool):
        raise ParseError("expected a number, got a non-atom")
    if isinstance(field, int):
        if not 0 <= field <= _UINT32_MAX:
            raise ParseError(f"number out of range: {field}")
        return field
    if isinstance(field, str):
        return _parse_uint32(_text(field))
    raise ParseError("expected a number, got a non-atom")


def parse_string(field: Any) -> str:
    """Parse a string, which is either a literal, a quoted string or an atom."""
    if isinstance(field, str):
        return _text(field)
    if isinstance(field, Literal):
        size = len(field)
        data = field.read(size)
        if len(data) != size:
            raise EOFError("literal ended early")
        return _decode(data)
    raise ParseError("expected a string")


def parse_string_list(field: Any) -> list[str]:
    """Convert a list of fields into a list of strings."""
    if not isinstance(field, (list, tuple)):
        raise ParseError("expected a string list, got a non-list")
    result = []
    for item in field:
        try:
            result.append(parse_string(item))
        except ParseError as exc:
            raise ParseError(f"cannot parse string in string list: {exc}") from exc
    return result


class Reader:
    """Reads IMAP syntax elements from a binary stream.

    ``continues`` is called whenever a synchronizing literal is announced,
    so that a server can send its continuation request.
    """

    def __init__(
        self,
        source: BinaryIO | bytes | str,
        *,
        continues: Callable[[], object] | None = None,
        max_literal_size: int = 0,
    ) -> None:
        if isinstance(source, str):
            source = io.BytesIO(source.encode("utf-8"))
        elif isinstance(source, (bytes, bytearray, memoryview)):
            source = io.BytesIO(bytes(source))
        self._stream = source
        self._continues = continues
        self.max_literal_size = max_literal_size
        self._pending: bytes | None = None
        self._last: bytes | None = None
        self._in_resp_code = False

    # Low-level character access with a single character of pushback.

    def _read_char(self) -> bytes:
        if self._pending is not None:
            char, self._pending = self._pending, None
        else:
            char = self._stream.read(1)
            if not char:
                self._last = None
                raise EOFError("unexpected end of input")
        self._last = char
        return char

    def _unread(self) -> None:
        if self._last is not None:
            self._pending, self._last = self._last, None

    def _read_exact(self, size: int) -> bytes:
        self._last = None
        buf = bytearray()
        if size > 0 and self._pending is not None:
            buf += self._pending
            self._pending = None
        while len(buf) < size:
            chunk = self._stream.read(size - len(buf))
            if not chunk:
                raise EOFError("unexpected end of input")
            buf += chunk
        return bytes(buf)

    def _read_until(self, delim: bytes) -> bytes:
        self._last = None
        buf = bytearray()
        while True:
            if self._pending is not None:
                char, self._pending = self._pending, None
            else:
                char = self._stream.read(1)
                if not char:
                    raise EOFError("unexpected end of input")
            buf += char
            if char == delim:
                return bytes(buf)

    # Syntax elements.

    def read_sp(self) -> None:
        """Read a single space."""
        if self._read_char() != _SP:
            raise ParseError("expected a space")

    def read_crlf(self) -> None:
        """Read a line ending; a bare LF is accepted."""
        char = self._read_char()
        if char == _LF:
            return
        if char != _CR:
            raise ParseError("line doesn't end with a CR")
        if self._read_char() != _LF:
            raise ParseError("line doesn't end with a LF")

    def read_atom(self) -> str | None:
        """Read an atom; the atom NIL comes back as None."""
        brackets = 0
        atom = bytearray()
        while True:
            char = self._read_char()
            if brackets == 0 and char in (_LIST_START, _LITERAL_START, _DQUOTE):
                raise ParseError("atom contains forbidden char: " + _decode(char))
            if char in (_CR, _LF):
                break
            if brackets == 0 and char in (_SP, _LIST_END):
                break
            if char == _RESP_CODE_END:
                if brackets == 0:
                    if self._in_resp_code:
                        break
                    raise ParseError("atom contains bad brackets nesting")
                brackets -= 1
            if char == _RESP_CODE_START:
                brackets += 1
            atom += char
        self._unread()
        text = _decode(bytes(atom))
        return None if text == _NIL_ATOM else text

    def read_literal(self) -> Literal:
        """Read a literal, synchronizing or not (``{n}`` or ``{n+}``)."""
        if self._read_char() != _LITERAL_START:
            raise ParseError("literal string doesn't start with an open brace")
        length = _decode(self._read_until(_LITERAL_END))[:-1]
        non_sync = length.endswith("+")
        if non_sync:
            length = length[:-1]
        try:
            size = _parse_uint32(length)
        except ParseError as exc:
            raise ParseError(f"cannot parse literal length: {exc}") from exc
        if self.max_literal_size > 0 and size > self.max_literal_size:
            raise ParseError("literal exceeding maximum size")
        self.read_crlf()
        if self._continues is not None and not non_sync:
            self._continues()
        return Literal(self._read_exact(size))

    def read_quoted_string(self) -> str:
        """Read a quoted string, resolving its escapes."""
        if self._read_char() != _DQUOTE:
            raise ParseError("quoted string doesn't start with a double quote")
        buf = bytearray()
        escaped = False
        while True:
            char = self._read_char()
            if char == _BACKSLASH and not escaped:
                escaped = True
                continue
            if char in (_CR, _LF):
                self._unread()
                raise ParseError("CR or LF not allowed in quoted string")
            if char == _DQUOTE and not escaped:
                break
            if escaped and char not in _QUOTED_SPECIALS:
                raise ParseError(
                    "quoted string cannot contain backslash followed by a "
                    "non-quoted-specials char"
                )
            buf += char
            escaped = False
        return _decode(bytes(buf))

    def read_fields(self) -> list[Any]:
        """Read space-separated fields up to the end of a line, list or code."""
        fields: list[Any] = []
        while True:
            char = self._read_char()
            self._unread()

            if char == _CR:
                return fields
            if char == _LITERAL_START:
                fields.append(self.read_literal())
            elif char == _DQUOTE:
                fields.append(self.read_quoted_string())
            elif char == _LIST_START:
                fields.append(self.read_list())
            elif char != _LIST_END:
                fields.append(self.read_atom())

            char = self._read_char()
            if char in (_CR, _LF, _LIST_END, _RESP_CODE_END):
                if char in (_CR, _LF):
                    self._unread()
                return fields
            if char == _LIST_START:
                self._unread()
                continue
            if char != _SP:
                raise ParseError("fields are not separated by a space")

    def read_list(self) -> list[Any]:
        """Read a parenthesized list."""
        if self._read_char() != _LIST_START:
            raise ParseError("list doesn't start with an open parenthesis")
        fields = self.read_fields()
        self._unread()
        if self._read_char() != _LIST_END:
            raise ParseError("list doesn't end with a close parenthesis")
        return fields

    def read_line(self) -> list[Any]:
        """Read the fields of a whole line, including its line ending."""
        fields = self.read_fields()
        self._unread()
        self.read_crlf()
        return fields

    def read_resp_code(self) -> tuple[str, list[Any]]:
        """Read a bracketed response code and return it with its arguments."""
        if self._read_char() != _RESP_CODE_START:
            raise ParseError("response code doesn't start with an open bracket")
        self._in_resp_code = True
        try:
            fields = self.read_fields()
        finally:
            self._in_resp_code = False
        if not fields:
            raise ParseError("response code doesn't contain any field")
        code = fields[0]
        if not isinstance(code, str):
            raise ParseError("response code doesn't start with a string atom")
        if code == "":
            raise ParseError("response code is empty")
        self._unread()
        if self._read_char() != _RESP_CODE_END:
            raise ParseError("response code doesn't end with a close bracket")
        return _text(code).upper(), fields[1:]

    def read_info(self) -> str:
        """Read the human-readable rest of a line."""
        info = _decode(self._read_until(_LF))
        info = info.removesuffix("\n").removesuffix("\r")
        return info.lstrip(" ")
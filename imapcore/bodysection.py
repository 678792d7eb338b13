"""Body section names such as ``BODY.PEEK[1.HEADER.FIELDS (From)]<0.512>``."""

from __future__ import annotations

import copy
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from imapcore.reader import ParseError, Reader

# Part specifiers, RFC 3501 page 55.
ENTIRE_SPECIFIER = ""
HEADER_SPECIFIER = "HEADER"
TEXT_SPECIFIER = "TEXT"
MIME_SPECIFIER = "MIME"

_SPECIFIERS = frozenset(
    (ENTIRE_SPECIFIER, HEADER_SPECIFIER, TEXT_SPECIFIER, MIME_SPECIFIER)
)
_ALIASES = {
    "RFC822": "BODY[]",
    "RFC822.HEADER": "BODY.PEEK[HEADER]",
    "RFC822.TEXT": "BODY[TEXT]",
}
_INTEGER = re.compile(r"[+-]?[0-9]+")


def _parse_int(text: str, what: str) -> int:
    if not _INTEGER.fullmatch(text):
        raise ParseError(f"{what}: invalid syntax {text!r}")
    return int(text)


@dataclass(eq=False)
class BodyPartName:
    """The part of a body section name between the brackets."""

    specifier: str = ENTIRE_SPECIFIER
    path: list[int] = field(default_factory=list)
    fields: list[str] = field(default_factory=list)
    not_fields: bool = False

    @classmethod
    def parse(cls, fields: list[Any]) -> BodyPartName:
        """Build a part name from the fields read between the brackets."""
        part = cls()
        if not fields:
            return part
        name = fields[0]
        if not isinstance(name, str):
            raise ParseError("Invalid body section name: part name must be a string")
        args = fields[1:]
        nodes = str(name).upper().split(".")

        end = 0
        for position, node in enumerate(nodes):
            if node in _SPECIFIERS:
                part.specifier = node
                end = position + 1
                break
            index = _parse_int(node, "Invalid body part name")
            if index <= 0:
                raise ParseError("Invalid body part name: index <= 0")
            part.path.append(index)

        if (
            part.specifier == HEADER_SPECIFIER
            and len(nodes) > end
            and nodes[end] == "FIELDS"
            and args
        ):
            end += 1
            if len(nodes) > end and nodes[end] == "NOT":
                part.not_fields = True
            names = args[0]
            if not isinstance(names, list):
                raise ParseError(
                    "Invalid body part name: HEADER.FIELDS must have a list argument"
                )
            part.fields.extend(str(item) for item in names if isinstance(item, str))
        return part

    def __str__(self) -> str:
        nodes = [str(index) for index in self.path]
        if self.specifier != ENTIRE_SPECIFIER:
            nodes.append(self.specifier)
        if self.specifier == HEADER_SPECIFIER and self.fields:
            nodes.append("FIELDS")
            if self.not_fields:
                nodes.append("NOT")
        text = ".".join(nodes)
        if self.fields:
            text += " (" + " ".join(self.fields) + ")"
        return text

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, BodyPartName):
            return NotImplemented
        if self.specifier != other.specifier or self.not_fields != other.not_fields:
            return False
        if self.path != other.path or len(self.fields) != len(other.fields):
            return False
        others = [name.casefold() for name in other.fields]
        return all(name.casefold() in others for name in self.fields)

    def __hash__(self) -> int:
        return hash((self.specifier, self.not_fields, tuple(self.path), len(self.fields)))


@dataclass(eq=False)
class BodySectionName:
    """A body section name (RFC 3501 page 55)."""

    part: BodyPartName = field(default_factory=BodyPartName)
    peek: bool = False
    partial: list[int] = field(default_factory=list)
    _value: str = field(default="", init=False, repr=False)

    def fetch_item(self) -> str:
        """Return the fetch item naming this section."""
        if self._value:
            return self._value
        text = "BODY.PEEK" if self.peek else "BODY"
        text += "[" + str(self.part) + "]"
        if self.partial:
            text += "<" + ".".join(str(number) for number in self.partial[:2]) + ">"
        return text

    def response(self) -> BodySectionName:
        """Return the section name as a server names it in a FETCH response."""
        resp = copy.copy(self)
        resp.peek = False
        resp.partial = self.partial[:1] if len(self.partial) == 2 else list(self.partial)
        if not resp._value.startswith("RFC822"):
            resp._value = ""
        return resp

    def extract_partial(self, data: bytes) -> bytes:
        """Return the octets of ``data`` selected by the partial range."""
        if len(self.partial) != 2:
            return data
        start, length = self.partial
        if start > len(data):
            return b""
        return data[start:min(start + length, len(data))]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, BodySectionName):
            return NotImplemented
        return (
            self.peek == other.peek
            and self.partial[:2] == other.partial[:2]
            and len(self.partial) == len(other.partial)
            and self.part == other.part
        )

    def __hash__(self) -> int:
        return hash((self.peek, tuple(self.partial[:2]), self.part))


def parse_body_section_name(item: str) -> BodySectionName:
    """Parse a body section name such as ``BODY[1.TEXT]<0.100>``."""
    text = item.value if isinstance(item, Enum) else str(item)
    section = BodySectionName()
    section._value = text
    text = _ALIASES.get(text, text)

    part_start = text.find("[")
    if part_start == -1:
        raise ParseError("Invalid body section name: must contain an open bracket")
    part_end = text.rfind("]")
    if part_end == -1 or part_end < part_start:
        raise ParseError("Invalid body section name: must contain a close bracket")

    name = text[:part_start]
    part = text[part_start + 1:part_end]
    partial = text[part_end + 1:]

    if name == "BODY.PEEK":
        section.peek = True
    elif name != "BODY":
        raise ParseError("Invalid body section name")

    try:
        fields = Reader(part + "\r\n").read_fields()
    except EOFError as exc:
        raise ParseError(f"Invalid body section name: {exc}") from exc
    section.part = BodyPartName.parse(fields)

    if partial:
        if not (partial.startswith("<") and partial.endswith(">")):
            raise ParseError("Invalid body section name: invalid partial")
        start_text, dot, length_text = partial[1:-1].partition(".")
        section.partial = [
            _parse_int(start_text, "Invalid body section name: invalid partial: invalid from")
        ]
        if dot:
            section.partial.append(
                _parse_int(
                    length_text,
                    "Invalid body section name: invalid partial: invalid length",
                )
            )
    return section
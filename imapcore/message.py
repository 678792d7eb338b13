"""Messages as returned by FETCH."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, Iterable

from imapcore.bodysection import BodySectionName, parse_body_section_name
from imapcore.bodystructure import BodyStructure
from imapcore.dates import parse_datetime
from imapcore.envelope import Envelope, canonical_flag
from imapcore.items import FetchItem, RawString
from imapcore.reader import Literal, ParseError, parse_number, parse_string


def _text(item: Any) -> str:
    return item.value if isinstance(item, Enum) else str(item)


def _item_key(item: Any) -> str:
    text = _text(item)
    try:
        return FetchItem(text)
    except ValueError:
        return text


def _number(value: Any) -> int:
    try:
        return parse_number(value)
    except ParseError:
        return 0


@dataclass
class Message:
    """A message and the data items fetched for it.

    ``items`` records which items are filled in; its values are only
    meaningful for items defined by extensions. ``items_order`` keeps the
    order in which items were requested, which some clients rely on.
    """

    seq_num: int = 0
    items: dict[str, Any] = field(default_factory=dict)
    envelope: Envelope | None = None
    body_structure: BodyStructure | None = None
    flags: list[str] | None = None
    internal_date: datetime | None = None
    size: int = 0
    uid: int = 0
    body: dict[BodySectionName, Literal | None] = field(default_factory=dict)
    items_order: list[str] = field(default_factory=list)

    def parse(self, fields: list[Any]) -> None:
        """Fill the message from the key/value fields of a FETCH response."""
        self.items = {}
        self.body = {}
        self.items_order = []

        key: str = ""
        for position, value in enumerate(fields):
            if position % 2 == 0:
                if not isinstance(value, str):
                    raise ParseError(
                        "cannot parse message: key is not a string, "
                        f"but a {type(value).__name__}"
                    )
                key = _item_key(_text(value).upper())
                continue
            self.items[key] = None
            self.items_order.append(key)
            self._parse_item(key, value)

    def _parse_item(self, key: str, value: Any) -> None:
        if key in (FetchItem.BODY, FetchItem.BODYSTRUCTURE):
            if not isinstance(value, list):
                raise ParseError(
                    "cannot parse message: BODYSTRUCTURE is not a list, "
                    f"but a {type(value).__name__}"
                )
            structure = BodyStructure.parse(value)
            if key == FetchItem.BODYSTRUCTURE:
                structure.extended = True
            self.body_structure = structure
        elif key == FetchItem.ENVELOPE:
            if not isinstance(value, list):
                raise ParseError(
                    "cannot parse message: ENVELOPE is not a list, "
                    f"but a {type(value).__name__}"
                )
            self.envelope = Envelope.parse(value)
        elif key == FetchItem.FLAGS:
            if not isinstance(value, list):
                raise ParseError(
                    "cannot parse message: FLAGS is not a list, "
                    f"but a {type(value).__name__}"
                )
            self.flags = [canonical_flag(self._flag_text(flag)) for flag in value]
        elif key == FetchItem.INTERNALDATE:
            try:
                self.internal_date = parse_datetime(str(value)) if isinstance(value, str) else None
            except ValueError:
                self.internal_date = None
        elif key == FetchItem.RFC822_SIZE:
            self.size = _number(value)
        elif key == FetchItem.UID:
            self.uid = _number(value)
        else:
            try:
                section = parse_body_section_name(key)
            except ParseError:
                # Not a section name: an item defined by an extension.
                self.items[key] = value
            else:
                self.body[section] = value if isinstance(value, Literal) else None

    @staticmethod
    def _flag_text(flag: Any) -> str:
        try:
            return parse_string(flag)
        except ParseError:
            return ""

    def _format_item(self, key: str) -> list[Any]:
        name: Any = RawString(_text(key))
        value = self.items.get(key)
        if key in (FetchItem.BODY, FetchItem.BODYSTRUCTURE):
            if self.body_structure is not None:
                structure = replace(
                    self.body_structure, extended=key == FetchItem.BODYSTRUCTURE
                )
                value = structure.format()
            else:
                value = None
        elif key == FetchItem.ENVELOPE:
            value = self.envelope.format() if self.envelope is not None else None
        elif key == FetchItem.FLAGS:
            value = [RawString(flag) for flag in self.flags or []]
        elif key == FetchItem.INTERNALDATE:
            value = self.internal_date
        elif key == FetchItem.RFC822_SIZE:
            value = self.size
        elif key == FetchItem.UID:
            value = self.uid
        else:
            for section, literal in self.body.items():
                if section.fetch_item() == _text(key):
                    name = RawString(section.response().fetch_item())
                    value = literal
                    break
        return [name, value]

    def format(self) -> list[Any]:
        """Return the key/value fields of a FETCH response, in request order."""
        fields: list[Any] = []
        processed: set[str] = set()
        for key in self.items_order:
            if key in self.items and key not in processed:
                fields.extend(self._format_item(key))
                processed.add(key)
        for key in self.items:
            if key not in processed:
                fields.extend(self._format_item(key))
        return fields

    def get_body(self, section: BodySectionName) -> Literal | None:
        """Return the body section with the given name, or None."""
        wanted = section.response()
        for name, literal in self.body.items():
            if wanted == name:
                # A NIL body counts as an empty string.
                return literal if literal is not None else Literal(b"")
        return None


def new_message(seq_num: int, items: Iterable[str]) -> Message:
    """Create an empty message that will contain the given items."""
    keys = [_item_key(item) for item in items]
    return Message(
        seq_num=seq_num,
        items={key: None for key in keys},
        items_order=keys,
    )
"""MIME body structures as carried by BODY and BODYSTRUCTURE (RFC 3501 page 74)."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable

from imapcore.envelope import (
    Envelope,
    decode_header,
    encode_header,
    format_param_list,
    parse_param_list,
)
from imapcore.reader import ParseError, parse_number, parse_string, parse_string_list

WalkFunc = Callable[[list[int], "BodyStructure"], bool]


def _decoded(value: str) -> str:
    try:
        return decode_header(value)
    except ValueError:
        return value


def _lowered(value: Any) -> str:
    return str(value).lower() if isinstance(value, str) else ""


def _number(value: Any) -> int:
    try:
        return parse_number(value)
    except ParseError:
        return 0


def _header_params(value: Any) -> dict[str, str] | None:
    """Parse header parameters, lower-casing keys and decoding values."""
    try:
        params = parse_param_list(value if isinstance(value, list) else [])
    except ParseError:
        return None
    return {key.lower(): _decoded(text) for key, text in params.items()}


def _format_params(params: dict[str, str] | None) -> list[Any]:
    return format_param_list(
        {key: encode_header(value) for key, value in (params or {}).items()}
    )


def _string_list(value: Any) -> list[str] | None:
    try:
        return parse_string_list(value)
    except ParseError:
        return None


@dataclass
class BodyStructure:
    """The structure of a message body or of one of its parts."""

    mime_type: str = ""
    mime_subtype: str = ""
    params: dict[str, str] | None = None
    id: str = ""
    description: str = ""
    encoding: str = ""
    size: int = 0
    parts: list[BodyStructure] = field(default_factory=list)
    envelope: Envelope | None = None
    body_structure: BodyStructure | None = None
    lines: int = 0
    extended: bool = False
    disposition: str = ""
    disposition_params: dict[str, str] | None = None
    language: list[str] | None = None
    location: list[str] | None = None
    md5: str = ""

    @classmethod
    def parse(cls, fields: list[Any]) -> BodyStructure:
        """Build a body structure from its fields."""
        bs = cls()
        if not fields:
            return bs
        bs.params = {}
        if isinstance(fields[0], list):
            end = bs._parse_multipart(fields)
        elif isinstance(fields[0], str):
            end = bs._parse_single(fields)
        else:
            return bs
        bs._parse_extension_tail(fields, end)
        return bs

    def _parse_multipart(self, fields: list[Any]) -> int:
        self.mime_type = "multipart"
        end = 0
        for position, item in enumerate(fields):
            if isinstance(item, list):
                self.parts.append(type(self).parse(item))
            elif isinstance(item, str):
                end = position
            if end > 0:
                break
        subtype = fields[end]
        self.mime_subtype = str(subtype) if isinstance(subtype, str) else ""
        end += 1
        # Some servers send only part of the extension data.
        if len(fields) > end:
            self.extended = True
            self.params = _header_params(fields[end])
            end += 1
        return end

    def _parse_single(self, fields: list[Any]) -> int:
        if len(fields) < 7:
            raise ParseError("Non-multipart body part doesn't have 7 fields")
        self.mime_type = _lowered(fields[0])
        self.mime_subtype = _lowered(fields[1])
        self.params = _header_params(fields[2])
        self.id = str(fields[3]) if isinstance(fields[3], str) else ""
        try:
            self.description = _decoded(parse_string(fields[4]))
        except ParseError:
            pass
        self.encoding = _lowered(fields[5])
        self.size = _number(fields[6])
        end = 7

        if self.mime_type == "message" and self.mime_subtype == "rfc822":
            if len(fields) - end < 3:
                raise ParseError("Missing type-specific fields for message/rfc822")
            envelope = fields[end] if isinstance(fields[end], list) else []
            try:
                self.envelope = Envelope.parse(envelope)
            except ParseError:
                self.envelope = Envelope()
            structure = fields[end + 1] if isinstance(fields[end + 1], list) else []
            try:
                self.body_structure = type(self).parse(structure)
            except ParseError:
                self.body_structure = type(self)()
            self.lines = _number(fields[end + 2])
            end += 3
        if self.mime_type == "text":
            if len(fields) - end < 1:
                raise ParseError("Missing type-specific fields for text/*")
            self.lines = _number(fields[end])
            end += 1

        if len(fields) > end:
            self.extended = True
            self.md5 = str(fields[end]) if isinstance(fields[end], str) else ""
            end += 1
        return end

    def _parse_extension_tail(self, fields: list[Any], end: int) -> None:
        if len(fields) > end:
            disp = fields[end]
            if isinstance(disp, list) and len(disp) >= 2:
                if isinstance(disp[0], str):
                    self.disposition = _decoded(str(disp[0])).lower()
                if isinstance(disp[1], list):
                    self.disposition_params = _header_params(disp[1])
            end += 1
        if len(fields) > end:
            langs = fields[end]
            if isinstance(langs, str):
                self.language = [str(langs)]
            elif isinstance(langs, list):
                self.language = _string_list(langs)
            else:
                self.language = None
            end += 1
        if len(fields) > end:
            location = fields[end] if isinstance(fields[end], list) else []
            self.location = _string_list(location)

    def _extension_tail(self) -> list[Any]:
        disposition = None
        if self.disposition:
            disposition = [
                encode_header(self.disposition),
                _format_params(self.disposition_params),
            ]
        return [
            disposition,
            list(self.language) if self.language is not None else None,
            list(self.location) if self.location is not None else None,
        ]

    def format(self) -> list[Any]:
        """Return the fields describing this body structure."""
        if self.mime_type.lower() == "multipart":
            fields: list[Any] = [part.format() for part in self.parts]
            fields.append(self.mime_subtype)
            if self.extended:
                params = _format_params(self.params) if self.params is not None else None
                fields.append(params)
                fields.extend(self._extension_tail())
            return fields

        fields = [
            self.mime_type,
            self.mime_subtype,
            _format_params(self.params),
            self.id or None,
            encode_header(self.description) if self.description else None,
            self.encoding or None,
            self.size,
        ]
        if self.mime_type.lower() == "message" and self.mime_subtype.lower() == "rfc822":
            fields.extend(
                (
                    self.envelope.format() if self.envelope is not None else None,
                    self.body_structure.format()
                    if self.body_structure is not None
                    else None,
                    self.lines,
                )
            )
        if self.mime_type.lower() == "text":
            fields.append(self.lines)
        if self.extended:
            fields.append(self.md5 or None)
            fields.extend(self._extension_tail())
        return fields

    def filename(self) -> str:
        """Return the attachment's file name, or an empty string.

        Raises ValueError when the name uses an unsupported charset.
        """
        params = self.disposition_params or {}
        if "filename" in params:
            raw = params["filename"]
        else:
            raw = (self.params or {}).get("name", "")
        return decode_header(raw)

    def walk(self, func: WalkFunc) -> None:
        """Visit every part in depth-first pre-order.

        ``func`` receives the part path and the part; returning False skips
        the part's children. A non-multipart body is visited as part 1.
        """
        if not self.parts:
            func([1], self)
            return
        self._walk(func, [])

    def _walk(self, func: WalkFunc, path: list[int]) -> None:
        if not func(list(path), self):
            return
        for number, part in enumerate(self.parts, start=1):
            part._walk(func, [*path, number])
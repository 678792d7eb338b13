"""Data responses and continuation requests."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from imapcore.reader import ParseError, parse_number


@dataclass
class DataResp:
    """A response carrying data.

    ``tag`` is ``"*"`` for untagged responses or a previous command's tag.
    """

    tag: str = ""
    fields: list[Any] = field(default_factory=list)


@dataclass
class ContinuationReq:
    """A continuation request, with its optional human-readable text."""

    info: str = ""


def new_untagged_resp(fields: list[Any]) -> DataResp:
    """Create an untagged data response."""
    return DataResp(tag="*", fields=list(fields))


def parse_named_resp(resp: object) -> tuple[str, list[Any]] | None:
    """Split a data response into its upper-case name and its fields.

    Responses such as EXISTS and FETCH put a number before the name; the
    number then becomes the first field. Returns None when ``resp`` is not
    a named data response.
    """
    if not isinstance(resp, DataResp) or not resp.fields:
        return None
    fields = resp.fields

    if len(fields) > 1 and isinstance(fields[1], str):
        try:
            parse_number(fields[0])
        except ParseError:
            pass
        else:
            return str(fields[1]).upper(), [fields[0], *fields[2:]]

    name = fields[0]
    if not isinstance(name, str):
        return None
    return str(name).upper(), list(fields[1:])
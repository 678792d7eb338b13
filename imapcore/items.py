"""Names of status, fetch and store data items (RFC 3501)."""

from __future__ import annotations

from enum import Enum


class RawString(str):
    """A string written on the wire as-is, never quoted."""

    def __repr__(self) -> str:
        return f"RawString({str.__repr__(self)})"


class StatusItem(str, Enum):
    """A mailbox status data item retrievable with STATUS."""

    MESSAGES = "MESSAGES"
    RECENT = "RECENT"
    UIDNEXT = "UIDNEXT"
    UIDVALIDITY = "UIDVALIDITY"
    UNSEEN = "UNSEEN"
    APPENDLIMIT = "APPENDLIMIT"


class FetchItem(str, Enum):
    """A message data item that can be fetched."""

    ALL = "ALL"
    FAST = "FAST"
    FULL = "FULL"

    BODY = "BODY"
    BODYSTRUCTURE = "BODYSTRUCTURE"
    ENVELOPE = "ENVELOPE"
    FLAGS = "FLAGS"
    INTERNALDATE = "INTERNALDATE"
    RFC822 = "RFC822"
    RFC822_HEADER = "RFC822.HEADER"
    RFC822_SIZE = "RFC822.SIZE"
    RFC822_TEXT = "RFC822.TEXT"
    UID = "UID"


class FlagsOp(str, Enum):
    """An operation applied to message flags by STORE."""

    SET = "FLAGS"
    ADD = "+FLAGS"
    REMOVE = "-FLAGS"


SILENT_SUFFIX = ".SILENT"

_MACROS: dict[str, tuple[FetchItem, ...]] = {
    FetchItem.ALL.value: (
        FetchItem.FLAGS,
        FetchItem.INTERNALDATE,
        FetchItem.RFC822_SIZE,
        FetchItem.ENVELOPE,
    ),
    FetchItem.FAST.value: (
        FetchItem.FLAGS,
        FetchItem.INTERNALDATE,
        FetchItem.RFC822_SIZE,
    ),
    FetchItem.FULL.value: (
        FetchItem.FLAGS,
        FetchItem.INTERNALDATE,
        FetchItem.RFC822_SIZE,
        FetchItem.ENVELOPE,
        FetchItem.BODY,
    ),
}


def _text(item: str) -> str:
    return item.value if isinstance(item, Enum) else str(item)


def expand_fetch_item(item: str) -> list[str]:
    """Expand a fetch macro into its items; other items come back alone."""
    macro = _MACROS.get(_text(item))
    return list(macro) if macro is not None else [item]


def format_flags_op(op: str, silent: bool) -> str:
    """Return the STORE item name that runs the flags operation."""
    name = FlagsOp(_text(op)).value
    return name + SILENT_SUFFIX if silent else name


def parse_flags_op(item: str) -> tuple[FlagsOp, bool]:
    """Split a STORE item name into its flags operation and silent marker."""
    text = _text(item)
    silent = text.endswith(SILENT_SUFFIX)
    if silent:
        text = text[: -len(SILENT_SUFFIX)]
    try:
        return FlagsOp(text), silent
    except ValueError:
        raise ValueError("Unsupported STORE operation") from None
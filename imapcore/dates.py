"""Date and time handling for IMAP date-text, date-time and envelope dates."""

from __future__ import annotations

import re
from datetime import date, datetime, timedelta, timezone, tzinfo

_WEEKDAYS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
_MONTHS = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)
_MONTHS_LOWER = tuple(m.lower() for m in _MONTHS)

# Zone abbreviations from RFC 5322 section 4.3; unknown ones count as UTC.
_ZONE_OFFSETS = {
    "UT": 0, "UTC": 0, "GMT": 0,
    "EST": -5, "EDT": -4,
    "CST": -6, "CDT": -5,
    "MST": -7, "MDT": -6,
    "PST": -8, "PDT": -7,
}

_TOKEN_RE = re.compile(r"(Mon|_2|2006|02|Jan|06|15|04|05|-0700|MST)")
_TOKEN_PATTERNS = {
    "Mon": "(?P<weekday>" + "|".join(_WEEKDAYS) + ")",
    "_2": r" ?(?P<day>[0-9]{1,2})",
    "02": r"(?P<day>[0-9]{2})",
    "Jan": "(?P<month>" + "|".join(_MONTHS) + ")",
    "2006": r"(?P<year>[0-9]{4})",
    "06": r"(?P<year2>[0-9]{2})",
    "15": r"(?P<hour>[0-9]{1,2})",
    "04": r"(?P<minute>[0-9]{2})",
    "05": r"(?P<second>[0-9]{2})",
    "-0700": r"(?P<offset>[+-][0-9]{4})",
    "MST": r"(?P<zone>[A-Z]{3,5})",
}

# Strips a single trailing comment; a blunt approximation of RFC 5322 CFWS.
_COMMENT_RE = re.compile(r"[ \t]+\(.*\)\Z")


def _compile(layout: str) -> re.Pattern[str]:
    parts = []
    for index, piece in enumerate(_TOKEN_RE.split(layout)):
        if index % 2:
            parts.append(_TOKEN_PATTERNS[piece])
        else:
            # A space in a layout matches one or more spaces in the input.
            parts.append(" +".join(re.escape(chunk) for chunk in piece.split(" ")))
    return re.compile("".join(parts), re.IGNORECASE | re.ASCII)


_DATE_LAYOUT = _compile("_2-Jan-2006")
_DATETIME_LAYOUT = _compile("_2-Jan-2006 15:04:05 -0700")
_ENVELOPE_LAYOUTS = tuple(
    _compile(layout)
    for layout in (
        "Mon, 02 Jan 2006 15:04:05 -0700",
        "_2 Jan 2006 15:04:05 -0700",
        "_2 Jan 2006 15:04:05 MST",
        "_2 Jan 2006 15:04 -0700",
        "_2 Jan 2006 15:04 MST",
        "_2 Jan 06 15:04:05 -0700",
        "_2 Jan 06 15:04:05 MST",
        "_2 Jan 06 15:04 -0700",
        "_2 Jan 06 15:04 MST",
        "Mon, _2 Jan 2006 15:04:05 -0700",
        "Mon, _2 Jan 2006 15:04:05 MST",
        "Mon, _2 Jan 2006 15:04 -0700",
        "Mon, _2 Jan 2006 15:04 MST",
        "Mon, _2 Jan 06 15:04:05 -0700",
        "Mon, _2 Jan 06 15:04:05 MST",
        "Mon, _2 Jan 06 15:04 -0700",
        "Mon, _2 Jan 06 15:04 MST",
    )
)


def _zone(groups: dict[str, str | None]) -> tzinfo:
    offset = groups.get("offset")
    if offset:
        sign = -1 if offset[0] == "-" else 1
        delta = timedelta(hours=int(offset[1:3]), minutes=int(offset[3:5]))
        return timezone(sign * delta)
    zone = groups.get("zone")
    if zone:
        return timezone(timedelta(hours=_ZONE_OFFSETS.get(zone.upper(), 0)))
    return timezone.utc


def _match(pattern: re.Pattern[str], value: str) -> datetime | None:
    match = pattern.fullmatch(value)
    if match is None:
        return None
    groups = match.groupdict()
    if groups.get("year"):
        year = int(groups["year"])
    else:
        short = int(groups["year2"])
        year = short + (1900 if short >= 69 else 2000)
    month = _MONTHS_LOWER.index(groups["month"].lower()) + 1
    try:
        return datetime(
            year,
            month,
            int(groups["day"]),
            int(groups.get("hour") or 0),
            int(groups.get("minute") or 0),
            int(groups.get("second") or 0),
            tzinfo=_zone(groups),
        )
    except ValueError:
        return None


def parse_message_datetime(value: str) -> datetime:
    """Parse a message date in any of the RFC 5322 section 3.3 layouts."""
    value = _COMMENT_RE.sub("", value)
    for pattern in _ENVELOPE_LAYOUTS:
        parsed = _match(pattern, value)
        if parsed is not None:
            return parsed
    raise ValueError(f"date {value} could not be parsed")


def parse_datetime(value: str) -> datetime:
    """Parse an IMAP date-time such as ``2-Nov-2009 23:00:00 -0600``."""
    parsed = _match(_DATETIME_LAYOUT, value)
    if parsed is None:
        raise ValueError(f"date-time {value!r} could not be parsed")
    return parsed


def parse_date(value: str) -> date:
    """Parse an IMAP date-text such as ``2-Nov-2009``."""
    parsed = _match(_DATE_LAYOUT, value)
    if parsed is None:
        raise ValueError(f"date {value!r} could not be parsed")
    return parsed.date()


def _aware(value: datetime) -> datetime:
    return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)


def _format_offset(value: datetime) -> str:
    offset = value.utcoffset() or timedelta(0)
    minutes = int(offset.total_seconds()) // 60
    sign = "-" if minutes < 0 else "+"
    hours, minutes = divmod(abs(minutes), 60)
    return f"{sign}{hours:02d}{minutes:02d}"


def format_datetime(value: datetime) -> str:
    """Format an IMAP date-time; naive values are taken as UTC."""
    value = _aware(value)
    return (
        f"{value.day:2d}-{_MONTHS[value.month - 1]}-{value.year:04d} "
        f"{value.hour:02d}:{value.minute:02d}:{value.second:02d} {_format_offset(value)}"
    )


def format_envelope_datetime(value: datetime) -> str:
    """Format a date the way an ENVELOPE carries it (RFC 5322 date-time)."""
    value = _aware(value)
    return (
        f"{_WEEKDAYS[value.weekday()]}, {value.day:02d} {_MONTHS[value.month - 1]} "
        f"{value.year:04d} {value.hour:02d}:{value.minute:02d}:{value.second:02d} "
        f"{_format_offset(value)}"
    )
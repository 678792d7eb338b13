from datetime import date, datetime, timedelta, timezone

import pytest

from imapcore.dates import (
    format_datetime,
    format_envelope_datetime,
    parse_date,
    parse_datetime,
    parse_message_datetime,
)

EXPECTED_DATETIME = datetime(2009, 11, 2, 23, 0, 0, tzinfo=timezone(timedelta(hours=-6)))
EXPECTED_DATE = date(2009, 11, 2)


@pytest.mark.parametrize(
    "value",
    [
        "2 Nov 2009 23:00 -0600",
        "Tue, 2 Nov 2009 23:00:00 -0600",
        "Tue, 2 Nov 2009 23:00:00 -0600 (MST)",
        " 2 Nov 2009 23:00 -0600",
        "Tue,  2 Nov 2009 23:00:00 -0600",
        "Tue,  2 Nov 2009 23:00:00 -0600 (MST)",
        "2 Nov 09 23:00 -0600",
    ],
)
def test_parse_message_datetime(value):
    assert parse_message_datetime(value) == EXPECTED_DATETIME


@pytest.mark.parametrize(
    "value",
    ["abc10 Nov 2009 23:00 -0600123", "10.Nov.2009 11:00:00 -9900"],
)
def test_parse_message_datetime_invalid(value):
    with pytest.raises(ValueError):
        parse_message_datetime(value)


def test_parse_message_datetime_zone_name():
    parsed = parse_message_datetime("2 Nov 2009 23:00 GMT")
    assert parsed == datetime(2009, 11, 2, 23, 0, tzinfo=timezone.utc)


@pytest.mark.parametrize("value", ["2-Nov-2009 23:00:00 -0600", " 2-Nov-2009 23:00:00 -0600"])
def test_parse_datetime(value):
    assert parse_datetime(value) == EXPECTED_DATETIME


@pytest.mark.parametrize("value", ["10-Nov-2009", "abc10-Nov-2009 23:00:00 -0600123"])
def test_parse_datetime_invalid(value):
    with pytest.raises(ValueError):
        parse_datetime(value)


@pytest.mark.parametrize("value", ["2-Nov-2009", " 2-Nov-2009"])
def test_parse_date(value):
    assert parse_date(value) == EXPECTED_DATE


def test_format_envelope_datetime():
    value = datetime(2009, 11, 10, 23, 0, 0, tzinfo=timezone(timedelta(hours=-6)))
    assert format_envelope_datetime(value) == "Tue, 10 Nov 2009 23:00:00 -0600"


def test_format_envelope_datetime_round_trip():
    text = format_envelope_datetime(EXPECTED_DATETIME)
    assert parse_message_datetime(text) == EXPECTED_DATETIME


def test_format_datetime_round_trip():
    text = format_datetime(EXPECTED_DATETIME)
    assert text == " 2-Nov-2009 23:00:00 -0600"
    assert parse_datetime(text) == EXPECTED_DATETIME
import pytest

from imapcore.bodysection import (
    HEADER_SPECIFIER,
    MIME_SPECIFIER,
    TEXT_SPECIFIER,
    BodyPartName,
    BodySectionName,
    parse_body_section_name,
)
from imapcore.reader import ParseError

SECTION_CASES = [
    ("BODY[]", BodySectionName(), None),
    ("RFC822", BodySectionName(), "BODY[]"),
    ("BODY[HEADER]", BodySectionName(part=BodyPartName(specifier=HEADER_SPECIFIER)), None),
    ("BODY.PEEK[]", BodySectionName(peek=True), None),
    ("BODY[TEXT]", BodySectionName(part=BodyPartName(specifier=TEXT_SPECIFIER)), None),
    ("RFC822.TEXT", BodySectionName(part=BodyPartName(specifier=TEXT_SPECIFIER)), "BODY[TEXT]"),
    (
        "RFC822.HEADER",
        BodySectionName(part=BodyPartName(specifier=HEADER_SPECIFIER), peek=True),
        "BODY.PEEK[HEADER]",
    ),
    ("BODY[]<0.512>", BodySectionName(partial=[0, 512]), None),
    ("BODY[]<512>", BodySectionName(partial=[512]), None),
    ("BODY[1.2.3]", BodySectionName(part=BodyPartName(path=[1, 2, 3])), None),
    (
        "BODY[1.2.3.HEADER]",
        BodySectionName(part=BodyPartName(specifier=HEADER_SPECIFIER, path=[1, 2, 3])),
        None,
    ),
    (
        "BODY[5.MIME]",
        BodySectionName(part=BodyPartName(specifier=MIME_SPECIFIER, path=[5])),
        None,
    ),
    (
        "BODY[HEADER.FIELDS (From To)]",
        BodySectionName(part=BodyPartName(specifier=HEADER_SPECIFIER, fields=["From", "To"])),
        None,
    ),
    (
        "BODY[HEADER.FIELDS.NOT (Content-Id)]",
        BodySectionName(
            part=BodyPartName(
                specifier=HEADER_SPECIFIER, fields=["Content-Id"], not_fields=True
            )
        ),
        None,
    ),
]


@pytest.mark.parametrize("raw, expected, formatted", SECTION_CASES)
def test_parse_body_section_name(raw, expected, formatted):
    section = parse_body_section_name(raw)
    assert section.part.specifier == expected.part.specifier
    assert section.part.path == expected.part.path
    assert section.part.fields == expected.part.fields
    assert section.part.not_fields == expected.part.not_fields
    assert section.peek == expected.peek
    assert section.partial == expected.partial
    assert section == expected


@pytest.mark.parametrize("raw, expected, formatted", SECTION_CASES)
def test_fetch_item(raw, expected, formatted):
    section = BodySectionName(
        part=BodyPartName(
            specifier=expected.part.specifier,
            path=list(expected.part.path),
            fields=list(expected.part.fields),
            not_fields=expected.part.not_fields,
        ),
        peek=expected.peek,
        partial=list(expected.partial),
    )
    assert section.fetch_item() == (formatted or raw)


@pytest.mark.parametrize("raw", [case[0] for case in SECTION_CASES])
def test_parsed_section_keeps_its_name(raw):
    assert parse_body_section_name(raw).fetch_item() == raw


@pytest.mark.parametrize(
    "raw, whole, partial",
    [
        ("BODY[]", b"Hello World!", b"Hello World!"),
        ("BODY[]<6.5>", b"Hello World!", b"World"),
        ("BODY[]<6.1000>", b"Hello World!", b"World!"),
        ("BODY[]<0.1>", b"Hello World!", b"H"),
        ("BODY[]<1000.2000>", b"Hello World!", b""),
    ],
)
def test_extract_partial(raw, whole, partial):
    assert parse_body_section_name(raw).extract_partial(whole) == partial


@pytest.mark.parametrize(
    "raw",
    [
        "BODY",
        "BODY]",
        "BODY[",
        "BODYX[]",
        "BODY[]<1",
        "BODY[]<a>",
        "BODY[]<1.b>",
        "BODY[]x",
        "BODY[0]",
        "BODY[-1]",
        "BODY[abc]",
        "BODY[1.2.X]",
        "BODY[HEADER.FIELDS x]",
    ],
)
def test_parse_invalid(raw):
    with pytest.raises(ParseError):
        parse_body_section_name(raw)


def test_response_drops_peek_and_length():
    section = parse_body_section_name("BODY.PEEK[TEXT]<0.512>")
    resp = section.response()
    assert resp.peek is False
    assert resp.partial == [0]
    assert resp.fetch_item() == "BODY[TEXT]<0>"
    assert section.peek is True
    assert section.partial == [0, 512]


def test_response_keeps_rfc822_name():
    resp = parse_body_section_name("RFC822.HEADER").response()
    assert resp.fetch_item() == "RFC822.HEADER"
    assert resp.peek is False


def test_part_name_fields_compare_case_insensitively():
    first = BodyPartName(specifier=HEADER_SPECIFIER, fields=["From"])
    second = BodyPartName(specifier=HEADER_SPECIFIER, fields=["FROM"])
    assert first == second
    assert {first: 1}[second] == 1


def test_sections_differ_by_partial_and_peek():
    base = parse_body_section_name("BODY[TEXT]")
    assert base != parse_body_section_name("BODY[TEXT]<0>")
    assert base != parse_body_section_name("BODY.PEEK[TEXT]")
    assert base == parse_body_section_name("RFC822.TEXT")


def test_part_name_string_form():
    part = BodyPartName(
        specifier=HEADER_SPECIFIER, path=[2], fields=["Subject"], not_fields=True
    )
    assert str(part) == "2.HEADER.FIELDS.NOT (Subject)"
    assert BodyPartName.parse(["2.HEADER.FIELDS.NOT", ["Subject"]]) == part
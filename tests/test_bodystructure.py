from datetime import datetime

import pytest

from imapcore.bodystructure import BodyStructure
from imapcore.envelope import Envelope
from imapcore.items import RawString
from imapcore.reader import ParseError

CASES = [
    (
        ["image", "jpeg", [], "<cat@example.com>", "A picture of cat", "base64", 4242],
        BodyStructure(
            mime_type="image",
            mime_subtype="jpeg",
            params={},
            id="<cat@example.com>",
            description="A picture of cat",
            encoding="base64",
            size=4242,
        ),
    ),
    (
        ["text", "plain", ["charset", "utf-8"], None, None, "us-ascii", 42, 2],
        BodyStructure(
            mime_type="text",
            mime_subtype="plain",
            params={"charset": "utf-8"},
            encoding="us-ascii",
            size=42,
            lines=2,
        ),
    ),
    (
        [
            "message", "rfc822", [], None, None, "us-ascii", 42,
            Envelope().format(),
            BodyStructure().format(),
            67,
        ],
        BodyStructure(
            mime_type="message",
            mime_subtype="rfc822",
            params={},
            encoding="us-ascii",
            size=42,
            lines=67,
            envelope=Envelope(),
            body_structure=BodyStructure(params={}),
        ),
    ),
    (
        [
            "application", "pdf", [], None, None, "base64", 4242,
            "e0323a9039add2978bf5b49550572c7c",
            ["attachment", ["filename", "document.pdf"]],
            ["en-US"], [],
        ],
        BodyStructure(
            mime_type="application",
            mime_subtype="pdf",
            params={},
            encoding="base64",
            size=4242,
            extended=True,
            md5="e0323a9039add2978bf5b49550572c7c",
            disposition="attachment",
            disposition_params={"filename": "document.pdf"},
            language=["en-US"],
            location=[],
        ),
    ),
    (
        [
            ["text", "plain", [], None, None, "us-ascii", 87, 22],
            ["text", "html", [], None, None, "us-ascii", 106, 36],
            "alternative",
        ],
        BodyStructure(
            mime_type="multipart",
            mime_subtype="alternative",
            params={},
            parts=[
                BodyStructure(
                    mime_type="text", mime_subtype="plain", params={},
                    encoding="us-ascii", size=87, lines=22,
                ),
                BodyStructure(
                    mime_type="text", mime_subtype="html", params={},
                    encoding="us-ascii", size=106, lines=36,
                ),
            ],
        ),
    ),
    (
        [
            ["text", "plain", [], None, None, "us-ascii", 87, 22],
            "alternative", ["hello", "world"],
            ["inline", []],
            ["en-US"], [],
        ],
        BodyStructure(
            mime_type="multipart",
            mime_subtype="alternative",
            params={"hello": "world"},
            parts=[
                BodyStructure(
                    mime_type="text", mime_subtype="plain", params={},
                    encoding="us-ascii", size=87, lines=22,
                ),
            ],
            extended=True,
            disposition="inline",
            disposition_params={},
            language=["en-US"],
            location=[],
        ),
    ),
]


@pytest.mark.parametrize(("fields", "expected"), CASES)
def test_parse(fields, expected):
    assert BodyStructure.parse(fields) == expected


@pytest.mark.parametrize(("fields", "structure"), CASES)
def test_format(fields, structure):
    formatted = BodyStructure.format(structure)
    assert formatted == fields


@pytest.mark.parametrize(("fields", "structure"), CASES)
def test_round_trip(fields, structure):
    assert BodyStructure.parse(structure.format()) == structure


def test_parse_raw_string_numbers():
    fields = ["text", "plain", [], None, None, "7bit", RawString("42"), RawString("2")]
    bs = BodyStructure.parse(fields)
    assert (bs.size, bs.lines) == (42, 2)


def test_parse_uppercase():
    fields = [
        "APPLICATION", "PDF", ["NAME", "Document.pdf"], None, None,
        "BASE64", RawString("4242"), None,
        ["ATTACHMENT", ["FILENAME", "Document.pdf"]],
        None, None,
    ]
    expected = BodyStructure(
        mime_type="application",
        mime_subtype="pdf",
        params={"name": "Document.pdf"},
        encoding="base64",
        size=4242,
        extended=True,
        md5="",
        disposition="attachment",
        disposition_params={"filename": "Document.pdf"},
        language=None,
        location=[],
    )
    assert BodyStructure.parse(fields) == expected


def test_parse_empty_fields():
    assert BodyStructure.parse([]) == BodyStructure()


def test_parse_too_few_fields():
    with pytest.raises(ParseError):
        BodyStructure.parse(["image", "png", [], None, None, "base64"])


def test_parse_rfc822_missing_fields():
    with pytest.raises(ParseError):
        BodyStructure.parse(["message", "rfc822", [], None, None, "7bit", 42, []])


def test_parse_text_missing_lines():
    with pytest.raises(ParseError):
        BodyStructure.parse(["text", "plain", [], None, None, "7bit", 42])


def test_parse_rfc822_envelope_is_parsed():
    envelope = Envelope(
        date=datetime(2009, 11, 10, 23, 0).astimezone(),
        subject="Hi",
    ).format()
    bs = BodyStructure.parse(
        ["message", "rfc822", [], None, None, "7bit", 10, envelope, [], 3]
    )
    assert bs.envelope.subject == "Hi"
    assert bs.lines == 3


@pytest.mark.parametrize(
    ("structure", "expected"),
    [
        (BodyStructure(disposition_params={"filename": "cat.png"}), "cat.png"),
        (BodyStructure(params={"name": "cat.png"}), "cat.png"),
        (BodyStructure(), ""),
        (
            BodyStructure(
                disposition_params={
                    "filename": "=?UTF-8?Q?Opis_przedmiotu_zam=c3=b3wienia_-_za=c5=82=c4=85cznik_nr_1?= =?UTF-8?Q?=2epdf?="
                }
            ),
            "Opis przedmiotu zamówienia - załącznik nr 1.pdf",
        ),
    ],
)
def test_filename(structure, expected):
    assert structure.filename() == expected


def test_filename_unknown_charset():
    structure = BodyStructure(params={"name": "=?x-unknown?Q?abc?="})
    with pytest.raises(ValueError):
        structure.filename()


@pytest.fixture
def tree():
    text_plain = BodyStructure(mime_type="text", mime_subtype="plain")
    text_html = BodyStructure(mime_type="text", mime_subtype="plain")
    alternative = BodyStructure(
        mime_type="multipart", mime_subtype="alternative", parts=[text_plain, text_html]
    )
    image = BodyStructure(mime_type="image", mime_subtype="png")
    mixed = BodyStructure(
        mime_type="multipart", mime_subtype="mixed", parts=[alternative, image]
    )
    return {
        "text_plain": text_plain,
        "text_html": text_html,
        "alternative": alternative,
        "image": image,
        "mixed": mixed,
    }


def _recorder(walk_children):
    visited = []

    def visit(path, part):
        visited.append((list(path), part))
        return walk_children

    return visited, visit


def test_walk_single_part(tree):
    visited, visit = _recorder(False)
    tree["text_plain"].walk(visit)
    assert [path for path, _ in visited] == [[1]]
    assert [id(part) for _, part in visited] == [id(tree["text_plain"])]


def test_walk_multipart(tree):
    visited, visit = _recorder(True)
    tree["alternative"].walk(visit)
    assert [path for path, _ in visited] == [[], [1], [2]]
    assert [id(part) for _, part in visited] == [
        id(tree["alternative"]),
        id(tree["text_plain"]),
        id(tree["text_html"]),
    ]


def test_walk_nested(tree):
    visited, visit = _recorder(True)
    tree["mixed"].walk(visit)
    assert [path for path, _ in visited] == [[], [1], [1, 1], [1, 2], [2]]
    assert [id(part) for _, part in visited] == [
        id(tree["mixed"]),
        id(tree["alternative"]),
        id(tree["text_plain"]),
        id(tree["text_html"]),
        id(tree["image"]),
    ]


def test_walk_skip_children(tree):
    visited, visit = _recorder(False)
    tree["mixed"].walk(visit)
    assert [path for path, _ in visited] == [[]]
    assert [id(part) for _, part in visited] == [id(tree["mixed"])]
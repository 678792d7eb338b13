# imapcore

Building blocks for the IMAP4rev1 protocol (RFC 3501): a reader for the wire
syntax, and models that turn the parsed fields of server responses into
Python objects and back into field lists.

It needs nothing beyond the standard library.

## Modules

- `imapcore.reader`: `Reader` reads atoms, quoted strings, literals, lists,
  response codes, info text and whole lines from a binary stream (or from
  `bytes`/`str`). Malformed input raises `ParseError`; running out of input
  raises `EOFError`. The atom `NIL` is read as `None`, literals as `Literal`
  objects. A `continues` callback is called when a synchronizing literal
  (`{n}`) is announced, and `max_literal_size` limits literal lengths.
  `parse_number`, `parse_string` and `parse_string_list` turn parsed fields
  into Python values.
- `imapcore.response`: `DataResp`, `ContinuationReq`, `new_untagged_resp` and
  `parse_named_resp`, which splits a data response into its upper-case name
  and fields (handling the `* 42 EXISTS` form).
- `imapcore.mailbox`: `MailboxInfo` (LIST/LSUB data, with modified UTF-7
  mailbox names and `match` for `*` and `%` wildcards), `MailboxStatus`,
  `new_mailbox_status`, `canonical_mailbox_name` and `format_mailbox_name`.
- `imapcore.envelope`: `Address`, `Envelope`, `canonical_flag`,
  `parse_param_list`, `format_param_list`, `parse_address_list`,
  `format_address_list`, and `decode_header`/`encode_header` for RFC 2047
  encoded words (UTF-8, ISO-8859-1 and US-ASCII charsets).
- `imapcore.bodysection`: `BodySectionName`, `BodyPartName` and
  `parse_body_section_name`.
- `imapcore.bodystructure`: `BodyStructure`, with `parse`, `format`,
  `filename` and a depth-first `walk`.
- `imapcore.message`: `Message` and `new_message` for FETCH data, keeping the
  order in which items were requested.
- `imapcore.responses`: handlers `Search`, `Enabled`, `Expunge`, `List`,
  `Authenticate` and `Idle`. Each has a `handle(resp)` method that raises
  `UnhandledResponse` for responses not meant for it; `Expunge` raises
  `NotEnoughFields` when the sequence number is missing. `Authenticate` and
  `Idle` put the lines to send back on their `replies` queue; `Authenticate`
  takes any object with a `next(challenge)` method as its SASL mechanism.
- `imapcore.dates`: `parse_message_datetime`, `parse_datetime`, `parse_date`,
  `format_datetime` and `format_envelope_datetime`.
- `imapcore.items`: `RawString`, `StatusItem`, `FetchItem`, `FlagsOp`,
  `expand_fetch_item`, `format_flags_op` and `parse_flags_op`.

## Examples

Reading a LIST response line and matching it:

```python
import io

from imapcore.reader import Reader
from imapcore.mailbox import MailboxInfo

reader = Reader(io.BytesIO(b'(\\HasNoChildren) "/" "Archive/2009"\r\n'))
fields = reader.read_line()

info = MailboxInfo.parse(fields)
print(info.name)                    # Archive/2009
print(info.match("", "Archive/%"))  # True
```

Parsing a body section name:

```python
from imapcore.bodysection import parse_body_section_name

section = parse_body_section_name("BODY.PEEK[HEADER.FIELDS (From To)]<0.512>")
print(section.peek, section.partial)            # True [0, 512]
print(section.extract_partial(b"x" * 1000)[:3])  # b'xxx'
```

Handling a response:

```python
from imapcore.reader import Reader
from imapcore.response import DataResp
from imapcore.responses import Search

fields = Reader(b"SEARCH 2 3 5\r\n").read_line()
search = Search()
search.handle(DataResp(tag="*", fields=fields))
print(search.ids)  # [2, 3, 5]
```

## What it does not do

This package parses and models protocol data only. It opens no network
connections and has no IMAP client or server, no command objects, and no
writer that serializes field lists back into wire bytes: the `format`
methods return Python field lists, and sending them is left to the caller.
Tagged status responses (`OK`, `NO`, `BAD` and the like) are not read as a
separate response type.

## Tests

Install the test extra and run pytest:

```
pip install -e ".[test]"
pytest
```
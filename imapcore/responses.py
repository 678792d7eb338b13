"""Client-side handlers for IMAP responses (RFC 3501 section 7)."""

from __future__ import annotations

import base64
import binascii
import queue
import threading
from dataclasses import dataclass, field
from typing import Any, Protocol

from imapcore.mailbox import MailboxInfo
from imapcore.reader import parse_number, parse_string_list
from imapcore.response import ContinuationReq, parse_named_resp

SEARCH_NAME = "SEARCH"
ENABLED_NAME = "ENABLED"
EXPUNGE_NAME = "EXPUNGE"
LIST_NAME = "LIST"
LSUB_NAME = "LSUB"

_CANCEL = "*"
_DONE = b"DONE\r\n"


class UnhandledResponse(Exception):
    """Raised by a handler when a response is not meant for it."""

    def __init__(self, message: str = "imap: unhandled response") -> None:
        super().__init__(message)


class NotEnoughFields(ValueError):
    """Raised when a response lacks the fields its name requires."""

    def __init__(self, message: str = "imap: not enough fields in response") -> None:
        super().__init__(message)


class Handler(Protocol):
    """Something that processes responses, raising UnhandledResponse otherwise."""

    def handle(self, resp: object) -> None:
        ...


class Replier(Handler, Protocol):
    """A handler that also sends raw lines to the server."""

    replies: queue.Queue[bytes]


class SaslClient(Protocol):
    """A SASL client mechanism."""

    def next(self, challenge: bytes) -> bytes:
        """Answer a server challenge; raise to abort the exchange."""
        ...


def _named(resp: object, expected: str) -> list[Any]:
    named = parse_named_resp(resp)
    if named is None or named[0] != expected:
        raise UnhandledResponse()
    return named[1]


@dataclass
class Search:
    """A SEARCH response: the matching sequence numbers or UIDs."""

    ids: list[int] = field(default_factory=list)

    def handle(self, resp: object) -> None:
        fields = _named(resp, SEARCH_NAME)
        self.ids = [parse_number(item) for item in fields]


@dataclass
class Enabled:
    """An ENABLED response (RFC 5161 section 3.2)."""

    caps: list[str] = field(default_factory=list)

    def handle(self, resp: object) -> None:
        fields = _named(resp, ENABLED_NAME)
        self.caps.extend(parse_string_list(fields))


@dataclass
class Expunge:
    """EXPUNGE responses; each expunged sequence number is collected."""

    seq_nums: list[int] = field(default_factory=list)

    def handle(self, resp: object) -> None:
        fields = _named(resp, EXPUNGE_NAME)
        if not fields:
            raise NotEnoughFields()
        self.seq_nums.append(parse_number(fields[0]))


@dataclass
class List:
    """LIST responses, or LSUB responses when ``subscribed`` is set."""

    mailboxes: list[MailboxInfo] = field(default_factory=list)
    subscribed: bool = False

    def name(self) -> str:
        """Return the response name this handler accepts."""
        return LSUB_NAME if self.subscribed else LIST_NAME

    def handle(self, resp: object) -> None:
        fields = _named(resp, self.name())
        self.mailboxes.append(MailboxInfo.parse(fields))


@dataclass
class Authenticate:
    """Drives the client side of an AUTHENTICATE exchange.

    Each line to send back to the server is put on ``replies``.
    """

    mechanism: SaslClient
    initial_response: bytes | None = None
    replies: queue.Queue[bytes] = field(default_factory=queue.Queue)

    def _write_line(self, line: str) -> None:
        self.replies.put((line + "\r\n").encode("ascii"))

    def _cancel(self) -> None:
        self._write_line(_CANCEL)

    def handle(self, resp: object) -> None:
        if not isinstance(resp, ContinuationReq):
            raise UnhandledResponse()

        # An empty challenge asks for the initial response (RFC 2222 section 5.1).
        if resp.info == "" and self.initial_response is not None:
            self._write_line(base64.b64encode(self.initial_response).decode("ascii"))
            self.initial_response = None
            return

        try:
            challenge = base64.b64decode(resp.info.encode("ascii"), validate=True)
        except (binascii.Error, UnicodeEncodeError):
            self._cancel()
            raise
        try:
            reply = self.mechanism.next(challenge)
        except Exception:
            self._cancel()
            raise
        self._write_line(base64.b64encode(reply).decode("ascii"))


@dataclass
class Idle:
    """Drives an IDLE command.

    Once the server's continuation request has arrived, calling ``stop``
    puts ``DONE`` on ``replies``. A stop requested earlier takes effect
    when the continuation request arrives.
    """

    replies: queue.Queue[bytes] = field(default_factory=queue.Queue)
    _got_continuation_req: bool = field(default=False, init=False, repr=False)
    _stopped: bool = field(default=False, init=False, repr=False)
    _lock: threading.Lock = field(
        default_factory=threading.Lock, init=False, repr=False, compare=False
    )

    def handle(self, resp: object) -> None:
        with self._lock:
            if not isinstance(resp, ContinuationReq) or self._got_continuation_req:
                raise UnhandledResponse()
            self._got_continuation_req = True
            if self._stopped:
                self.replies.put(_DONE)

    def stop(self) -> None:
        """Ask the server to end the IDLE command."""
        with self._lock:
            if self._stopped:
                return
            self._stopped = True
            if self._got_continuation_req:
                self.replies.put(_DONE)
"""
=============================================================================
HTTP RESPONSE WRITER
=============================================================================

A Response is bound to the connection it answers. Handlers mutate it
(status, headers) and finish with exactly ONE terminal operation, which
serializes everything, writes it and closes the connection.

=============================================================================
RESPONSE ANATOMY
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                     │
    │    HTTP/1.1 200 OK\r\n                    ← status line             │
    │    X-Custom: one\r\n                      ← added headers, in order │
    │    Content-Type: text/plain\r\n           ← added by send_text()    │
    │    Content-Length: 2\r\n                  ← added by send_text()    │
    │    Content-Encoding: gzip\r\n             ← echoed Accept-Encoding  │
    │    \r\n                                   ← end of headers          │
    │    hi                                     ← body                    │
    │                                                                     │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
TERMINAL OPERATIONS
=============================================================================

    send()              status + headers + blank line, no body
    send_text(str)      text/plain body
    send_binary(bytes)  application/octet-stream body

Each one writes and closes. Calling a second one raises
ResponseAlreadySent; calling none leaves the client waiting, which is
why the server checks ``response.sent`` after every handler.

=============================================================================
CONTENT NEGOTIATION (ADVERTISED ONLY)
=============================================================================

Before writing, the request's Accept-Encoding list is scanned:

    Accept-Encoding: deflate, gzip, br
                     ───┬───  ──┬─
                        │       └── first supported token → echoed
                        └────────── not supported, skipped

    Content-Encoding: gzip

The body is NOT compressed. The header only advertises the encoding.

=============================================================================
"""

from typing import Optional, List, Tuple, Protocol
import logging

from .request import Request
from .status_codes import HTTPStatus


logger = logging.getLogger(__name__)


SUPPORTED_ENCODINGS = ("gzip", "br")


class ResponseAlreadySent(RuntimeError):
    """A terminal operation was called on a finished Response."""


class Writable(Protocol):
    """What a Response needs from the connection it writes to."""

    def send_response(self, data: bytes) -> bool: ...

    def close(self) -> None: ...


def negotiate_encoding(accept_encoding: str) -> Optional[str]:
    """
    Pick the first supported token of an Accept-Encoding value.

    Tokens are comma-separated and trimmed; input order wins.

        >>> negotiate_encoding("deflate, gzip")
        'gzip'
        >>> negotiate_encoding("identity") is None
        True
    """
    for token in accept_encoding.split(","):
        token = token.strip()
        if token in SUPPORTED_ENCODINGS:
            return token
    return None


class Response:
    """
    Response writer for one connection.

    Usage inside a handler:

        def echo(request, response):
            response.send_text(request.params["str"])

        def create(request, response):
            response.set_status(201).add_header("Location", "/x").send()
    """

    def __init__(
        self,
        connection: Writable,
        request: Optional[Request] = None,
        status: int = HTTPStatus.OK,
    ):
        """
        Args:
            connection: Where the bytes go; closed by the terminal call.
            request: The request being answered. Read only, used for
                     content negotiation.
            status: Initial status code.
        """
        self.connection = connection
        self.request = request
        self.status = HTTPStatus.from_code(status)
        self.headers: List[Tuple[str, str]] = []
        self._sent = False

    @property
    def sent(self) -> bool:
        """True once a terminal operation has run."""
        return self._sent

    @property
    def status_line(self) -> str:
        return f"HTTP/1.1 {int(self.status)} {self.status.phrase}"

    # =========================================================================
    # MUTATORS (chainable)
    # =========================================================================

    def set_status(self, code: int) -> "Response":
        """
        Set the status code. Unknown codes become 500.

        Returns:
            Self for method chaining
        """
        self.status = HTTPStatus.from_code(code)
        return self

    def add_header(self, name: str, value: str) -> "Response":
        """
        Append a header.

        No de-duplication: adding the same name twice emits it twice.

        Returns:
            Self for method chaining
        """
        self.headers.append((name, str(value)))
        return self

    # =========================================================================
    # TERMINAL OPERATIONS
    # =========================================================================

    def send(self) -> None:
        """Write status line and headers with no body, then close."""
        self._write(b"")

    def send_text(self, body: str) -> None:
        """Write a text/plain body, then close."""
        self._check_open()
        payload = body.encode("utf-8")
        self.add_header("Content-Type", "text/plain")
        self.add_header("Content-Length", str(len(payload)))
        self._write(payload)

    def send_binary(self, body: bytes) -> None:
        """Write an application/octet-stream body, then close."""
        self._check_open()
        self.add_header("Content-Type", "application/octet-stream")
        self.add_header("Content-Length", str(len(body)))
        self._write(bytes(body))

    # =========================================================================
    # SERIALIZATION
    # =========================================================================

    def to_bytes(self, body: bytes = b"") -> bytes:
        """
        Serialize status line, headers, blank line and body.

        Pure: does not touch the connection or the sent flag.
        """
        lines = [self.status_line]
        for name, value in self.headers:
            lines.append(f"{name}: {value}")
        head = "\r\n".join(lines) + "\r\n\r\n"
        return head.encode("utf-8") + body

    def _negotiate(self) -> None:
        if self.request is None:
            return
        encoding = negotiate_encoding(self.request.accept_encoding)
        if encoding:
            self.add_header("Content-Encoding", encoding)

    def _check_open(self) -> None:
        if self._sent:
            raise ResponseAlreadySent("Response already sent")

    def _write(self, body: bytes) -> None:
        self._check_open()
        self._sent = True

        self._negotiate()
        data = self.to_bytes(body)

        try:
            if not self.connection.send_response(data):
                logger.warning("Response could not be delivered, client went away")
        finally:
            self.connection.close()

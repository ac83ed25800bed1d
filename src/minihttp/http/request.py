"""
=============================================================================
HTTP REQUEST PARSER
=============================================================================

Turns the bytes of ONE ``recv()`` call into a structured Request.

=============================================================================
WHAT THE PARSER SEES
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                     RAW BUFFER (one read call)                      │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                     │
    │    POST /files/notes.txt HTTP/1.1\r\n     ← request line            │
    │    Host: localhost:4221\r\n               ← header                  │
    │    User-Agent: curl/8.0\r\n               ← header                  │
    │    Content-Length: 11\r\n                 ← header (NOT honored)    │
    │    \r\n                                   ← end of headers          │
    │    hello world                            ← body = last line        │
    │                                                                     │
    └─────────────────────────────────────────────────────────────────────┘

The request line is split on single spaces and needs at least three
tokens: METHOD, PATH, PROTOCOL. Anything less is fatal for the connection
(MalformedRequestLine).

Header lines are split on ": ". A line that does not split into exactly
two parts is logged and skipped; one bad header never kills a request.
Header names are lower-cased, so lookups are case-insensitive.

=============================================================================
THE BODY RULE
=============================================================================

The body is the LAST line of the buffer, provided it comes after the
blank line that ends the headers. Content-Length is ignored. This means:

    - a multi-line body only keeps its final line
    - a body larger than the read limit is silently truncated
    - binary bodies containing newlines are mangled

These are known limitations of the single-read design, kept on purpose
so that request framing stays a one-read affair.

=============================================================================
"""

from dataclasses import dataclass, field
from typing import Optional, Dict
import logging


logger = logging.getLogger(__name__)


DEFAULT_BODY_LIMIT = 100 * 1024  # 100 KiB


class HTTPParseError(Exception):
    """Raised when a request buffer cannot be turned into a Request."""


class MalformedRequestLine(HTTPParseError):
    """
    The first line does not have the METHOD SP PATH SP PROTOCOL shape.

    Fatal for the connection: the server closes it without a response.
    """

    def __init__(self, line: str):
        super().__init__(f"Malformed request line: {line!r}")
        self.line = line


@dataclass
class Request:
    """
    A parsed HTTP request.

    Created fresh for each connection by RequestParser and consumed by
    exactly one handler invocation.

    =========================================================================
    ATTRIBUTES
    =========================================================================

        method:         Request method exactly as sent ("GET", "POST")
        path:           Request target exactly as sent, query included
        version:        Protocol token ("HTTP/1.1")
        headers:        Lower-cased header name → value
        params:         Path parameters, filled in by the Router on match
        body:           Last line of the buffer, or None
        static_dir:     Directory of the server's static mount, if any
        client_address: (ip, port) of the peer, for logging
        raw:            The bytes the request was parsed from

    =========================================================================
    """

    method: str
    path: str
    version: str = "HTTP/1.1"

    headers: Dict[str, str] = field(default_factory=dict)
    params: Dict[str, str] = field(default_factory=dict)
    body: Optional[bytes] = None
    static_dir: Optional[str] = None

    client_address: tuple[str, int] = ("", 0)
    raw: bytes = field(default=b"", repr=False)

    def get_header(self, name: str, default: str = "") -> str:
        """
        Case-insensitive header lookup.

        Example:
            request.get_header("User-Agent")  # reads headers["user-agent"]
        """
        return self.headers.get(name.lower(), default)

    @property
    def user_agent(self) -> str:
        return self.get_header("user-agent")

    @property
    def accept_encoding(self) -> str:
        return self.get_header("accept-encoding")


class RequestParser:
    """
    Parses one raw buffer into a Request.

    The parser is stateless apart from its body limit, so one instance is
    shared by every worker thread.

    Usage:
        parser = RequestParser(body_limit=100 * 1024)
        request = parser.parse(data, client_address=("127.0.0.1", 50123))
    """

    HEADER_SEPARATOR = ": "

    def __init__(self, body_limit: int = DEFAULT_BODY_LIMIT):
        """
        Args:
            body_limit: Maximum number of bytes considered. The server
                        reads at most this many bytes per connection;
                        anything past it is dropped silently here too.
        """
        self.body_limit = body_limit

    def parse(
        self,
        data: bytes,
        client_address: tuple[str, int] = ("", 0),
        static_dir: Optional[str] = None,
    ) -> Request:
        """
        Parse a raw request buffer.

        =====================================================================
        PARSING ALGORITHM
        =====================================================================

        1. Truncate to body_limit, decode as UTF-8 (lenient)
        2. Split into lines (\\r\\n or bare \\n)
        3. Parse the request line (first line)
        4. Parse headers until the first blank line
        5. Take the last non-empty line after the blank line as body

        =====================================================================

        Raises:
            MalformedRequestLine: Fewer than three request-line tokens.
        """
        data = data[:self.body_limit]
        text = data.decode("utf-8", errors="replace")
        lines = self._split_lines(text)

        if not lines or not lines[0]:
            raise MalformedRequestLine("")

        method, path, version = self._parse_request_line(lines[0])
        headers, blank_index = self._parse_headers(lines)
        body = self._extract_body(lines, blank_index)

        return Request(
            method=method,
            path=path,
            version=version,
            headers=headers,
            body=body,
            static_dir=static_dir,
            client_address=client_address,
            raw=data,
        )

    @staticmethod
    def _split_lines(text: str) -> list[str]:
        """
        Split on LF, dropping an optional CR before it.

        A trailing newline does not produce an extra empty line.
        """
        lines = text.split("\n")
        if lines and lines[-1] == "":
            lines.pop()
        return [line[:-1] if line.endswith("\r") else line for line in lines]

    def _parse_request_line(self, line: str) -> tuple[str, str, str]:
        """
        Split "METHOD SP PATH SP PROTOCOL".

        Extra tokens past the third are ignored.
        """
        tokens = line.split(" ")
        if len(tokens) < 3:
            raise MalformedRequestLine(line)
        return tokens[0], tokens[1], tokens[2]

    def _parse_headers(self, lines: list[str]) -> tuple[Dict[str, str], Optional[int]]:
        """
        Parse header lines that follow the request line.

        Returns:
            (headers, index of the blank line or None if never seen)
        """
        headers: Dict[str, str] = {}

        for index in range(1, len(lines)):
            line = lines[index]
            if not line:
                return headers, index

            parts = line.split(self.HEADER_SEPARATOR)
            if len(parts) != 2:
                # HeaderLineMalformed: lenient, keep going
                logger.warning(f"Skipping malformed header line: {line!r}")
                continue

            name, value = parts
            headers[name.lower()] = value

        return headers, None

    def _extract_body(self, lines: list[str], blank_index: Optional[int]) -> Optional[bytes]:
        if blank_index is None:
            return None

        for index in range(len(lines) - 1, blank_index, -1):
            if lines[index]:
                return lines[index].encode("utf-8")
        return None


def parse_request(
    data: bytes,
    client_address: tuple[str, int] = ("", 0),
    static_dir: Optional[str] = None,
    body_limit: int = DEFAULT_BODY_LIMIT,
) -> Request:
    """
    Parse a buffer with a throwaway RequestParser.

    Handy in tests and scripts; the server keeps a single parser instead.
    """
    parser = RequestParser(body_limit=body_limit)
    return parser.parse(data, client_address, static_dir)

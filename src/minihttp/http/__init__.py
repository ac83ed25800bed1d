"""
=============================================================================
HTTP PROTOCOL LAYER
=============================================================================

Everything between "bytes arrived on a socket" and "bytes go back out".
Nothing in here touches sockets or threads directly: a Response writes
through whatever ``Writable`` it was given.

=============================================================================
MODULE COMPONENTS
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │ REQUEST PARSER (request.py)                                         │
    │ ─────────────────────────────────────────────────────────────────── │
    │ Input:   b"GET /echo/abc HTTP/1.1\r\nUser-Agent: curl\r\n\r\n"      │
    │ Output:  Request(method="GET", path="/echo/abc", ...)               │
    └─────────────────────────────────────────────────────────────────────┘

    ┌─────────────────────────────────────────────────────────────────────┐
    │ PATH MATCHER (matcher.py)                                           │
    │ ─────────────────────────────────────────────────────────────────── │
    │ "/echo/:str"  →  ^/echo/(?P<str>.+)$                                │
    │ "/echo/abc"   →  {"str": "abc"}                                     │
    └─────────────────────────────────────────────────────────────────────┘

    ┌─────────────────────────────────────────────────────────────────────┐
    │ ROUTER (router.py)                                                  │
    │ ─────────────────────────────────────────────────────────────────── │
    │ Ordered (method, matcher, handler) table. First match wins,         │
    │ no match answers 404.                                               │
    └─────────────────────────────────────────────────────────────────────┘

    ┌─────────────────────────────────────────────────────────────────────┐
    │ RESPONSE (response.py)                                              │
    │ ─────────────────────────────────────────────────────────────────── │
    │ Status + ordered headers, one terminal send per request.            │
    │ Content-Encoding negotiated from Accept-Encoding (gzip, br).        │
    └─────────────────────────────────────────────────────────────────────┘

    ┌─────────────────────────────────────────────────────────────────────┐
    │ STATUS CODES (status_codes.py)                                      │
    │ ─────────────────────────────────────────────────────────────────── │
    │ 200, 201, 404, 500. Anything else is sent as 500.                   │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

from .request import (
    Request,
    RequestParser,
    HTTPParseError,
    MalformedRequestLine,
    parse_request,
    DEFAULT_BODY_LIMIT,
)
from .matcher import PathMatcher
from .response import Response, ResponseAlreadySent, negotiate_encoding, SUPPORTED_ENCODINGS
from .router import Router, Route, Handler
from .status_codes import HTTPStatus

__all__ = [
    # Request parsing
    "Request",
    "RequestParser",
    "HTTPParseError",
    "MalformedRequestLine",
    "parse_request",
    "DEFAULT_BODY_LIMIT",

    # Routing
    "PathMatcher",
    "Router",
    "Route",
    "Handler",

    # Responses
    "Response",
    "ResponseAlreadySent",
    "negotiate_encoding",
    "SUPPORTED_ENCODINGS",

    # Status codes
    "HTTPStatus",
]

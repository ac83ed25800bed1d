"""
=============================================================================
HTTP STATUS CODES
=============================================================================

The server speaks a deliberately small subset of HTTP status codes:

    ┌────────┬───────────────────────────────────────────────────────────┐
    │  200   │ OK                    - Handler produced a result          │
    │  201   │ Created               - Handler stored something (POST)    │
    │  404   │ Not Found             - No route matched method + path     │
    │  500   │ Internal Server Error - Everything else                    │
    └────────┴───────────────────────────────────────────────────────────┘

Any other integer a handler asks for is rendered as 500. That is a
fallback, not an error: ``Response.set_status(418)`` never raises, the
client simply sees ``HTTP/1.1 500 Internal Server Error``.

=============================================================================
"""

from enum import IntEnum


class HTTPStatus(IntEnum):
    """
    Status codes the response writer knows how to render.

    IntEnum so members compare equal to plain ints:

        >>> HTTPStatus.OK == 200
        True
        >>> HTTPStatus.from_code(418)
        <HTTPStatus.INTERNAL_SERVER_ERROR: 500>
    """

    OK = 200
    CREATED = 201
    NOT_FOUND = 404
    INTERNAL_SERVER_ERROR = 500

    @property
    def phrase(self) -> str:
        """Reason phrase used on the status line."""
        return _PHRASES[self]

    @classmethod
    def from_code(cls, code: int) -> "HTTPStatus":
        """
        Map an arbitrary integer to a renderable status.

        Unrecognized codes collapse to INTERNAL_SERVER_ERROR.
        """
        try:
            return cls(int(code))
        except (ValueError, TypeError):
            return cls.INTERNAL_SERVER_ERROR


_PHRASES = {
    HTTPStatus.OK: "OK",
    HTTPStatus.CREATED: "Created",
    HTTPStatus.NOT_FOUND: "Not Found",
    HTTPStatus.INTERNAL_SERVER_ERROR: "Internal Server Error",
}

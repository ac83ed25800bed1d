"""
=============================================================================
CONNECTION
=============================================================================

Wraps one accepted client socket for the lifetime of one request.

=============================================================================
ONE READ, ONE WRITE, ONE CLOSE
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                   CONNECTION LIFECYCLE                              │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                     │
    │   NEW ──read_once()──► READING ──► PROCESSING                       │
    │                                        │                            │
    │                                 send_response()                     │
    │                                        │                            │
    │                                        ▼                            │
    │                                    WRITING ──close()──► CLOSED      │
    │                                                                     │
    └─────────────────────────────────────────────────────────────────────┘

There is no keep-alive: every connection serves exactly one request.

The request is taken from a SINGLE recv() of at most ``read_limit``
bytes. TCP is a byte stream, so a client that splits its request across
several segments only gets the first one parsed. That is the price of
the one-read design; small requests from ordinary clients fit in one
segment.

By default reads block forever (no timeout). ``read_timeout`` turns on
a per-socket deadline; a timed-out read is treated like an empty read.

=============================================================================
"""

import socket
import time
import logging
from enum import Enum
from dataclasses import dataclass, field
from typing import Optional
import uuid


logger = logging.getLogger(__name__)


class ConnectionState(Enum):
    """Where a connection is in its single request/response cycle."""
    NEW = "new"
    READING = "reading"
    PROCESSING = "processing"
    WRITING = "writing"
    CLOSED = "closed"


@dataclass
class Connection:
    """
    A client connection.

    Attributes:
        socket: The accepted client socket.
        address: Client's (ip, port) tuple.
        id: Short unique id for log lines.
        read_limit: Maximum bytes taken from the single read.
        read_timeout: Seconds before a read gives up (None = never).
    """

    socket: socket.socket
    address: tuple[str, int]

    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    state: ConnectionState = ConnectionState.NEW
    created_at: float = field(default_factory=time.time)

    read_limit: int = 100 * 1024
    read_timeout: Optional[float] = None

    DRAIN_TIMEOUT = 0.5
    DRAIN_LIMIT = 64 * 1024

    def __post_init__(self):
        # settimeout(None) puts the socket in plain blocking mode
        self.socket.settimeout(self.read_timeout)

    @property
    def client_ip(self) -> str:
        return self.address[0]

    @property
    def closed(self) -> bool:
        return self.state == ConnectionState.CLOSED

    @property
    def age(self) -> float:
        """Seconds since the connection was accepted."""
        return time.time() - self.created_at

    # =========================================================================
    # READING
    # =========================================================================

    def read_once(self) -> bytes:
        """
        Read the request with one recv() call.

        Returns:
            Up to read_limit bytes. Empty bytes when the client closed,
            reset the connection, or the read deadline passed.
        """
        self.state = ConnectionState.READING
        try:
            data = self.socket.recv(self.read_limit)
        except socket.timeout:
            logger.warning(f"[{self.id}] Read timed out after {self.read_timeout}s")
            return b""
        except (ConnectionResetError, BrokenPipeError) as e:
            logger.debug(f"[{self.id}] Read failed: {e}")
            return b""

        self.state = ConnectionState.PROCESSING
        return data

    # =========================================================================
    # WRITING
    # =========================================================================

    def send_response(self, data: bytes) -> bool:
        """
        Send all response bytes.

        sendall() loops until every byte is handed to the kernel.

        Returns:
            True if sent, False if the client went away.
        """
        self.state = ConnectionState.WRITING
        try:
            self.socket.sendall(data)
            return True
        except OSError as e:
            logger.warning(f"[{self.id}] Send failed: {e}")
            return False

    # =========================================================================
    # CLOSING
    # =========================================================================

    def close(self):
        """
        Close the connection gracefully.

        1. shutdown(SHUT_WR): send FIN, the client sees end-of-response
        2. drain: discard request bytes the single read left behind, so
           close() does not answer them with a RST that could destroy
           the response still in flight
           (at most DRAIN_LIMIT bytes within DRAIN_TIMEOUT seconds)
        3. close(): release the file descriptor

        Idempotent: the response writer and the worker both call it.
        """
        if self.state == ConnectionState.CLOSED:
            return

        try:
            self.socket.shutdown(socket.SHUT_WR)
        except OSError:
            pass  # peer already gone

        # Total drain is capped in time and bytes, not per recv
        deadline = time.time() + self.DRAIN_TIMEOUT
        drained = 0
        try:
            while drained < self.DRAIN_LIMIT:
                remaining = deadline - time.time()
                if remaining <= 0:
                    break
                self.socket.settimeout(remaining)
                chunk = self.socket.recv(4096)
                if not chunk:
                    break
                drained += len(chunk)
        except OSError:
            pass  # socket.timeout is an OSError too

        try:
            self.socket.close()
        except OSError:
            pass

        self.state = ConnectionState.CLOSED
        logger.debug(f"[{self.id}] Connection closed after {self.age:.3f}s")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

"""
=============================================================================
SOCKET SERVER (LISTENER)
=============================================================================

The listener owns the listening socket and nothing else. It accepts
connections one after another and hands each one to a callback; the HTTP
server's callback submits it to the thread pool, so the accept loop is
never held up by a slow client.

=============================================================================
SOCKET LIFECYCLE
=============================================================================

    socket() → setsockopt() → bind() → listen() → accept() loop → close()

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                     │
    │   while running:                                                    │
    │       try:                                                          │
    │           client, addr = sock.accept()   # waits at most 1s         │
    │       except timeout:                                               │
    │           continue                       # re-check running flag    │
    │       on_connection(Connection(client, addr))                       │
    │                                                                     │
    └─────────────────────────────────────────────────────────────────────┘

The 1-second accept timeout only exists so shutdown() from another
thread (or a signal handler) is noticed; accepted client sockets get
their own timeout settings in Connection.

Port 0 asks the OS for a free ephemeral port; the port actually bound is
available as ``bound_port`` once ``ready`` is set.

=============================================================================
"""

import socket
import signal
import logging
import threading
from typing import Optional, Callable, Tuple

from .connection import Connection


logger = logging.getLogger(__name__)


class SocketServer:
    """
    Low-level TCP listener.

    Usage:
        def on_connection(conn: Connection):
            pool.execute(handle, conn)

        server = SocketServer("127.0.0.1", 4221)
        server.start(on_connection)   # blocks until shutdown()
    """

    ACCEPT_POLL_INTERVAL = 1.0

    def __init__(
        self,
        host: str = "127.0.0.1",
        port: int = 4221,
        backlog: int = 128,
        read_limit: int = 100 * 1024,
        read_timeout: Optional[float] = None,
    ):
        """
        Args:
            host: Interface to bind ("0.0.0.0" for all).
            port: Port to bind, 0 for an ephemeral one.
            backlog: Pending-connection queue length for listen().
            read_limit: Passed to every Connection.
            read_timeout: Passed to every Connection (None = block forever).
        """
        self.host = host
        self.port = port
        self.backlog = backlog
        self.read_limit = read_limit
        self.read_timeout = read_timeout

        self._socket: Optional[socket.socket] = None
        self._running = False
        self._ready = threading.Event()
        self._stopped = threading.Event()
        self._original_handlers: dict = {}
        self.bound_port: Optional[int] = None

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def address(self) -> Tuple[str, int]:
        """(host, port) actually bound, or the configured one before binding."""
        return (self.host, self.bound_port if self.bound_port is not None else self.port)

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """Block until the socket is listening. False on timeout."""
        return self._ready.wait(timeout)

    def wait_for_shutdown(self, timeout: Optional[float] = None) -> bool:
        """Block until the accept loop has exited. False on timeout."""
        return self._stopped.wait(timeout)

    def _create_socket(self) -> socket.socket:
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)

        # SO_REUSEADDR: rebind right after a restart, despite TIME_WAIT
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)

        # TCP_NODELAY: small responses leave immediately (no Nagle)
        sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)

        sock.settimeout(self.ACCEPT_POLL_INTERVAL)
        return sock

    def _setup_signals(self):
        """
        Turn SIGTERM / SIGINT into a graceful shutdown.

        signal.signal() only works in the main thread; when the server
        runs in a background thread (tests, embedding) signals are left
        to the host application.
        """
        if threading.current_thread() is not threading.main_thread():
            return

        def shutdown_handler(signum, frame):
            logger.info(f"Received {signal.Signals(signum).name}, initiating shutdown...")
            self.shutdown()

        self._original_handlers[signal.SIGTERM] = signal.signal(signal.SIGTERM, shutdown_handler)
        self._original_handlers[signal.SIGINT] = signal.signal(signal.SIGINT, shutdown_handler)

    def _restore_signals(self):
        for sig, handler in self._original_handlers.items():
            signal.signal(sig, handler)
        self._original_handlers.clear()

    def bind(self) -> int:
        """
        Create, bind and listen.

        Separate from start() so callers can learn the bound port before
        the accept loop begins.

        Returns:
            The bound port.
        """
        self._socket = self._create_socket()
        try:
            self._socket.bind((self.host, self.port))
        except OSError as e:
            logger.error(f"Failed to bind to {self.host}:{self.port}: {e}")
            self._socket.close()
            self._socket = None
            raise

        self._socket.listen(self.backlog)
        self.bound_port = self._socket.getsockname()[1]

        # Running from here on, so a shutdown() that races start() still wins
        self._running = True
        self._stopped.clear()
        return self.bound_port

    def start(self, connection_handler: Callable[[Connection], None]):
        """
        Accept connections until shutdown() is called. Blocks.

        Args:
            connection_handler: Called on the listener thread for every
                                accepted connection; must not block.
        """
        if self._socket is None:
            self.bind()

        self._setup_signals()

        logger.info(f"Listening on {self.host}:{self.bound_port}")
        self._ready.set()

        try:
            self._accept_loop(connection_handler)
        finally:
            self._cleanup()

    def _accept_loop(self, connection_handler: Callable[[Connection], None]):
        while self._running:
            try:
                client_socket, client_address = self._socket.accept()
            except socket.timeout:
                continue
            except OSError as e:
                if self._running:
                    logger.error(f"Accept error: {e}")
                break

            logger.debug(f"Accepted connection from {client_address[0]}:{client_address[1]}")

            conn = Connection(
                socket=client_socket,
                address=client_address,
                read_limit=self.read_limit,
                read_timeout=self.read_timeout,
            )
            connection_handler(conn)

    def shutdown(self):
        """Ask the accept loop to stop. Safe to call more than once."""
        if self._running:
            logger.info("Shutting down listener...")
        self._running = False

    def _cleanup(self):
        self._restore_signals()

        if self._socket:
            try:
                self._socket.close()
            except OSError:
                pass
            self._socket = None

        self._ready.clear()
        self._stopped.set()
        logger.info("Listener stopped")

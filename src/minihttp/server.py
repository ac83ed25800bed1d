"""
=============================================================================
HTTP SERVER
=============================================================================

The orchestrator: owns the route table and, while listening, a listener
and a thread pool.

=============================================================================
ARCHITECTURE
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                     │
    │   listener thread                     worker threads (N)            │
    │   ───────────────                     ──────────────────            │
    │                                                                     │
    │   SocketServer.accept()                                             │
    │        │                                                            │
    │        └──► ThreadPool.execute(job) ──► _process_connection(conn)   │
    │                                              │                      │
    │                                              ├─ conn.read_once()    │
    │                                              ├─ RequestParser       │
    │                                              ├─ Router.dispatch     │
    │                                              │     └─ handler       │
    │                                              │          └─ Response │
    │                                              └─ conn.close()        │
    │                                                                     │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
TWO PHASES
=============================================================================

1. REGISTRATION (single-threaded): register routes, mount static files.
2. SERVING: listen() starts the pool and the accept loop. From here on
   the route table is only read, so dispatch takes no locks.

Each connection's Request / Response pair belongs to the one worker
processing it. The job queue is the only shared, contended structure.

=============================================================================
"""

import logging
import threading
import time
from pathlib import Path
from typing import Optional, Callable, Union

from .config import ServerConfig
from .core import SocketServer, Connection, ThreadPool
from .http import (
    RequestParser, MalformedRequestLine,
    Response, HTTPStatus,
    Router, Route, Handler,
)
from .handlers.static import mount_static
from .logs import setup_logging


logger = logging.getLogger(__name__)
access_logger = logging.getLogger("minihttp.access")


class Application:
    """
    A minimal HTTP/1.1 server.

    =========================================================================
    USAGE
    =========================================================================

        app = Application(ServerConfig(port=4221))

        @app.get("/echo/:str")
        def echo(request, response):
            response.send_text(request.params["str"])

        app.static_files("/files", "/srv/data")

        app.listen(lambda app: print(f"Listening on {app.port}"))

    =========================================================================
    """

    def __init__(self, config: Optional[ServerConfig] = None):
        """
        Args:
            config: Server configuration. Defaults are used if omitted.
        """
        self.config = config or ServerConfig()
        self.config.validate()

        self._router = Router()
        self._parser = RequestParser(body_limit=self.config.body_limit)

        # Created by listen()
        self._listener: Optional[SocketServer] = None
        self._pool: Optional[ThreadPool] = None
        self._ready = threading.Event()

        self._static_dir: Optional[str] = None
        if self.config.static_dir:
            self.static_files(self.config.static_prefix, self.config.static_dir)

    # =========================================================================
    # ROUTE REGISTRATION
    # =========================================================================

    @property
    def router(self) -> Router:
        return self._router

    def register(self, method: str, pattern: str, handler: Handler) -> Route:
        """Register handler for (method, pattern). Order matters."""
        return self._router.register(method, pattern, handler)

    def route(self, pattern: str, method: str = "GET"):
        return self._router.route(pattern, method)

    def get(self, pattern: str):
        """Register a GET route (decorator)."""
        return self._router.get(pattern)

    def post(self, pattern: str):
        """Register a POST route (decorator)."""
        return self._router.post(pattern)

    def static_files(self, prefix: str, directory: Union[str, Path]) -> bool:
        """
        Mount a directory of static files under ``prefix``.

        Only one mount per server. A second call, or a directory that does
        not exist or cannot be listed, is logged and ignored rather than
        failing start-up.

        Returns:
            True if the mount was registered.
        """
        if self._static_dir is not None:
            logger.warning(
                f"Static directory already mounted ({self._static_dir}), ignoring {directory}"
            )
            return False

        try:
            mount_static(self._router, prefix, directory)
        except OSError as e:
            logger.error(f"Cannot mount static directory {directory}: {e}")
            return False

        self._static_dir = str(Path(directory).resolve())
        return True

    @property
    def static_dir(self) -> Optional[str]:
        return self._static_dir

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    @property
    def port(self) -> int:
        """Bound port while listening (useful with port 0), else the configured one."""
        if self._listener is not None and self._listener.bound_port is not None:
            return self._listener.bound_port
        return self.config.port

    @property
    def is_running(self) -> bool:
        return self._listener is not None and self._listener.is_running

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """Block until listen() is accepting connections. False on timeout."""
        return self._ready.wait(timeout)

    def listen(
        self,
        on_ready: Optional[Callable[["Application"], None]] = None,
        configure_logging: bool = False,
    ) -> None:
        """
        Bind, start the worker pool and serve until shutdown(). Blocks.

        Args:
            on_ready: Called once with the application after the socket
                      is bound and the workers are running.
            configure_logging: Install the root logging handler from
                               config.log_level / config.log_format.
        """
        if configure_logging:
            setup_logging(self.config.log_level, self.config.log_format)

        self._listener = SocketServer(
            host=self.config.host,
            port=self.config.port,
            backlog=self.config.backlog,
            read_limit=self.config.body_limit,
            read_timeout=self.config.read_timeout,
        )
        self._listener.bind()

        self._pool = ThreadPool(num_workers=self.config.num_workers).start()

        for route in self._router.routes:
            logger.debug(f"  {route.method:6} {route.pattern}")

        try:
            if on_ready is not None:
                on_ready(self)
            self._ready.set()
            self._listener.start(self._handle_connection)
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")
        finally:
            self._ready.clear()
            logger.info("Shutting down server...")
            self._pool.shutdown(wait=True, timeout=30.0)
            logger.info("Server stopped")

    def shutdown(self) -> None:
        """Stop accepting connections; listen() returns once workers finish."""
        if self._listener is not None:
            self._listener.shutdown()

    # =========================================================================
    # REQUEST HANDLING
    # =========================================================================

    def _handle_connection(self, conn: Connection) -> None:
        """Runs on the listener thread: hand the connection to a worker."""
        self._pool.execute(self._process_connection, conn)

    def _process_connection(self, conn: Connection) -> None:
        """
        Serve one connection (runs in a worker thread).

        =====================================================================
        STEPS
        =====================================================================

        1. One read of at most body_limit bytes
        2. Parse; a malformed request line closes without a response
        3. Dispatch to exactly one handler (or 404)
        4. Make sure SOME response went out: a handler that raised or
           returned without a terminal call gets a 500 sent for it
        5. Close (the context manager does it even on error)

        =====================================================================
        """
        start_time = time.time()

        with conn:
            data = conn.read_once()
            if not data:
                logger.debug(f"[{conn.id}] No request data, closing")
                return

            try:
                request = self._parser.parse(data, conn.address, static_dir=self._static_dir)
            except MalformedRequestLine as e:
                logger.warning(f"[{conn.id}] {e}")
                return

            response = Response(conn, request)

            try:
                self._router.dispatch(request, response)
            except Exception as e:
                logger.exception(f"[{conn.id}] Handler error on {request.method} {request.path}: {e}")
                if not response.sent:
                    response.set_status(HTTPStatus.INTERNAL_SERVER_ERROR).send()

            if not response.sent:
                logger.error(
                    f"[{conn.id}] Handler for {request.method} {request.path} "
                    f"returned without sending a response"
                )
                response.set_status(HTTPStatus.INTERNAL_SERVER_ERROR).send()

            duration_ms = (time.time() - start_time) * 1000
            access_logger.info(
                f'{conn.client_ip} - "{request.method} {request.path}" '
                f"{int(response.status)} {duration_ms:.2f}ms"
            )


def create_app(config: Optional[ServerConfig] = None) -> Application:
    """Factory for an Application."""
    return Application(config)

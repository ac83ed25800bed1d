"""
=============================================================================
MINIHTTP - A Minimal Threaded HTTP/1.1 Server
=============================================================================

A small HTTP server on raw sockets: a listener thread accepts TCP
connections and a fixed pool of worker threads turns each one into a
single request / response exchange.

=============================================================================
PROJECT OVERVIEW
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                        Request Lifecycle                            │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                     │
    │   Client ──TCP──► SocketServer ──► ThreadPool queue                 │
    │                                         │                           │
    │                                         ▼                           │
    │                                    worker thread                    │
    │                                         │                           │
    │                     read once ──► RequestParser ──► Router          │
    │                                                       │             │
    │                                            handler(request, response)
    │                                                       │             │
    │   Client ◄──────────── Response.send*() ◄─────────────┘             │
    │                        (then the connection is closed)              │
    │                                                                     │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
PACKAGE STRUCTURE
=============================================================================

    minihttp/
    ├── __init__.py          # This file - package exports
    ├── __main__.py          # CLI entry point (python -m minihttp)
    ├── server.py            # Application: routes + lifecycle
    ├── config.py            # ServerConfig dataclass
    ├── logs.py              # Logging setup (text / JSON)
    ├── core/                # Sockets and threads
    │   ├── socket_server.py # TCP listener
    │   ├── connection.py    # Client connection wrapper
    │   └── thread_pool.py   # Fixed worker pool
    ├── http/                # HTTP protocol
    │   ├── request.py       # Request parsing
    │   ├── matcher.py       # Path patterns (/echo/:str)
    │   ├── router.py        # Route table and dispatch
    │   ├── response.py      # Response writer
    │   └── status_codes.py  # Status codes and reason phrases
    └── handlers/
        ├── static.py        # Static file mount
        └── basic.py         # Index, echo, user-agent, upload

=============================================================================
QUICK START
=============================================================================

    from minihttp import Application, ServerConfig

    app = Application(ServerConfig(port=4221))

    @app.get("/echo/:str")
    def echo(request, response):
        response.send_text(request.params["str"])

    @app.get("/user-agent")
    def user_agent(request, response):
        response.send_text(request.get_header("user-agent"))

    app.static_files("/files", "./public")

    app.listen(lambda app: print(f"Listening on {app.port}"))

Every handler must finish with exactly one of ``send()``,
``send_text()`` or ``send_binary()``.

=============================================================================
"""

__version__ = "1.0.0"

from .server import Application, create_app
from .config import ServerConfig
from .http import Request, Response, HTTPStatus, Router, MalformedRequestLine, ResponseAlreadySent

__all__ = [
    "Application",
    "create_app",
    "ServerConfig",
    "Request",
    "Response",
    "HTTPStatus",
    "Router",
    "MalformedRequestLine",
    "ResponseAlreadySent",
    "__version__",
]

"""
=============================================================================
MINIHTTP CLI ENTRY POINT
=============================================================================

Runs the demo server with the built-in routes.

=============================================================================
USAGE
=============================================================================

    # Run with defaults (127.0.0.1:4221)
    python -m minihttp

    # Serve and accept uploads in ./data
    python -m minihttp --directory ./data

    # Listen on all interfaces with more workers
    python -m minihttp --host 0.0.0.0 --workers 8

    # Structured logs
    python -m minihttp --log-format json --log-level DEBUG

Defaults come from the environment (HTTP_HOST, HTTP_PORT, HTTP_WORKERS,
HTTP_BODY_LIMIT, HTTP_STATIC_DIR, HTTP_LOG_LEVEL); flags on the command
line override them.

=============================================================================
ROUTES
=============================================================================

    GET  /                  200, empty body
    GET  /echo/:str         200 text/plain, the path parameter
    GET  /user-agent        200 text/plain, the User-Agent header
    GET  /files/<name>      one route per file in --directory
    POST /files/:fileName   store the body in --directory (201)

=============================================================================
"""

import argparse
import logging
import sys
from typing import List, Optional

from . import __version__
from .config import ServerConfig, LOG_LEVELS, LOG_FORMATS
from .server import Application
from .logs import setup_logging
from .handlers import index, echo, user_agent, FileUploadHandler


logger = logging.getLogger(__name__)


def build_parser(defaults: ServerConfig) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="minihttp",
        description="Minimal threaded HTTP/1.1 server",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m minihttp                          # Run with defaults
  python -m minihttp --port 8080              # Custom port
  python -m minihttp --directory ./data       # Static files + uploads
  python -m minihttp --log-format json        # JSON log lines
        """
    )

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--host", "-H",
        default=defaults.host,
        help=f"Host to bind to (default: {defaults.host})"
    )

    parser.add_argument(
        "--port", "-p",
        type=int,
        default=defaults.port,
        help=f"Port to listen on, 0 for any free port (default: {defaults.port})"
    )

    parser.add_argument(
        "--read-timeout",
        type=float,
        default=defaults.read_timeout,
        metavar="SECONDS",
        help="Give up on clients that send nothing for this long (default: wait forever)"
    )

    # ─────────────────────────────────────────────────────────────────────
    # PERFORMANCE ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--workers", "-w",
        type=int,
        default=defaults.num_workers,
        help=f"Number of worker threads (default: {defaults.num_workers})"
    )

    parser.add_argument(
        "--body-limit",
        type=int,
        default=defaults.body_limit,
        metavar="BYTES",
        help=f"Maximum bytes read per request (default: {defaults.body_limit})"
    )

    # ─────────────────────────────────────────────────────────────────────
    # FEATURE ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--directory", "-d",
        default=defaults.static_dir,
        help="Directory served under /files and receiving uploads"
    )

    parser.add_argument(
        "--log-level", "-l",
        type=str.upper,
        choices=LOG_LEVELS,
        default=defaults.log_level.upper(),
        help=f"Logging level (default: {defaults.log_level.upper()})"
    )

    parser.add_argument(
        "--log-format",
        choices=LOG_FORMATS,
        default=defaults.log_format,
        help=f"Log line format (default: {defaults.log_format})"
    )

    # ─────────────────────────────────────────────────────────────────────
    # META ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"minihttp {__version__}"
    )

    return parser


def create_demo_app(config: ServerConfig) -> Application:
    """Application with the built-in routes registered."""
    app = Application(config)

    app.register("GET", "/", index)
    app.register("GET", "/echo/:str", echo)
    app.register("GET", "/user-agent", user_agent)
    app.register("POST", f"{config.static_prefix}/:fileName", FileUploadHandler(config.static_dir))

    return app


def main(argv: Optional[List[str]] = None) -> int:
    """Parse arguments, build the application and serve until interrupted."""
    try:
        defaults = ServerConfig.from_env()
    except ValueError as e:
        print(f"Invalid environment configuration: {e}", file=sys.stderr)
        return 2

    args = build_parser(defaults).parse_args(argv)

    config = ServerConfig(
        host=args.host,
        port=args.port,
        backlog=defaults.backlog,
        read_timeout=args.read_timeout,
        body_limit=args.body_limit,
        num_workers=args.workers,
        static_dir=args.directory,
        static_prefix=defaults.static_prefix,
        log_level=args.log_level,
        log_format=args.log_format,
    )

    try:
        config.validate()
    except ValueError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 2

    # Before the app exists, so the static mount is logged too
    setup_logging(config.log_level, config.log_format)
    app = create_demo_app(config)

    def on_ready(app: Application) -> None:
        logger.info(f"minihttp {__version__} listening on http://{config.host}:{app.port}")
        if app.static_dir:
            logger.info(f"Serving files from {app.static_dir}")

    try:
        app.listen(on_ready=on_ready)
    except OSError as e:
        logger.error(f"Server failed to start: {e}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())

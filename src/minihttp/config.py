"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

Everything the server needs is supplied at construction time through a
ServerConfig. The core never reads the environment or sys.argv on its
own; ``from_env()`` exists for the CLI entry point.

=============================================================================
CONFIGURATION GROUPS
=============================================================================

    NETWORK     host, port, backlog, read_timeout
    HTTP        body_limit
    THREADING   num_workers
    STATIC      static_dir, static_prefix
    LOGGING     log_level, log_format

=============================================================================
"""

import os
from dataclasses import dataclass
from typing import Optional


LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
LOG_FORMATS = ("text", "json")


@dataclass
class ServerConfig:
    """
    Configuration for the HTTP server.

    Development:
        ServerConfig(port=4221, log_level="DEBUG")

    Tests:
        ServerConfig(port=0, num_workers=4)   # ephemeral port
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    host: str = "127.0.0.1"
    """Interface to bind. "0.0.0.0" listens on all interfaces."""

    port: int = 4221
    """Port to listen on. 0 lets the OS pick a free one."""

    backlog: int = 128
    """Queued-but-not-accepted connections before the OS refuses more."""

    read_timeout: Optional[float] = None
    """
    Seconds a worker waits for the request bytes.
    None keeps the classic behavior: a silent client ties up one worker
    until it disconnects.
    """

    # ─────────────────────────────────────────────────────────────────────
    # HTTP SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    body_limit: int = 100 * 1024
    """
    Bytes taken from the single read of each request (100 KiB).
    Larger requests are truncated, not rejected.
    """

    # ─────────────────────────────────────────────────────────────────────
    # THREAD POOL SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    num_workers: int = 4
    """Worker threads; at most this many requests are serviced at once."""

    # ─────────────────────────────────────────────────────────────────────
    # STATIC FILES
    # ─────────────────────────────────────────────────────────────────────

    static_dir: Optional[str] = None
    """Directory mounted at static_prefix when the server starts."""

    static_prefix: str = "/files"
    """URL prefix of the static mount."""

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "INFO"
    log_format: str = "text"

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """
        Build a configuration from environment variables.

        =====================================================================
        ENVIRONMENT VARIABLES
        =====================================================================

        HTTP_HOST        Server host (default: 127.0.0.1)
        HTTP_PORT        Server port (default: 4221)
        HTTP_WORKERS     Worker threads (default: 4)
        HTTP_BODY_LIMIT  Read limit in bytes (default: 102400)
        HTTP_STATIC_DIR  Static files directory (default: None)
        HTTP_LOG_LEVEL   Logging level (default: INFO)

        =====================================================================
        """
        return cls(
            host=os.getenv("HTTP_HOST", "127.0.0.1"),
            port=int(os.getenv("HTTP_PORT", "4221")),
            num_workers=int(os.getenv("HTTP_WORKERS", "4")),
            body_limit=int(os.getenv("HTTP_BODY_LIMIT", str(100 * 1024))),
            static_dir=os.getenv("HTTP_STATIC_DIR"),
            log_level=os.getenv("HTTP_LOG_LEVEL", "INFO"),
        )

    def validate(self) -> None:
        """
        Fail fast on values the server cannot run with.

        Raises:
            ValueError: Describing the first invalid setting.
        """
        if not 0 <= self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")

        if self.num_workers < 1:
            raise ValueError("num_workers must be >= 1")

        if self.body_limit < 1:
            raise ValueError("body_limit must be >= 1")

        if self.backlog < 1:
            raise ValueError("backlog must be >= 1")

        if self.read_timeout is not None and self.read_timeout <= 0:
            raise ValueError("read_timeout must be > 0")

        if self.log_level.upper() not in LOG_LEVELS:
            raise ValueError(f"Invalid log_level: {self.log_level}")

        if self.log_format not in LOG_FORMATS:
            raise ValueError(f"Invalid log_format: {self.log_format}")

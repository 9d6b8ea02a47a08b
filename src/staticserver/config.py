"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

Centralized configuration for the static file server.

=============================================================================
12-FACTOR APP: CONFIG
=============================================================================

The Twelve-Factor App methodology says configuration should come from the
environment, not be hardcoded. ServerConfig supports both:

    # In code
    config = ServerConfig(port=3000, root_dir="dist")

    # From the environment
    STATIC_PORT=3000 STATIC_ROOT=dist python -m staticserver
    config = ServerConfig.from_env()

=============================================================================
WHAT IS CONFIGURABLE
=============================================================================

    NETWORK      host, port, backlog
    FILES        root_dir, index_file
    LIMITS       read_timeout, max_header_size, max_body_size, chunk_size
    IDENTITY     server_name
    PROCESS      log_level, handle_signals

Everything has a default that serves ./public on 0.0.0.0:8080.

=============================================================================
"""

import os
from dataclasses import dataclass
from typing import Optional


@dataclass
class ServerConfig:
    """
    Configuration for the static file server.

    Validated once by StaticFileServer at construction (fail-fast).
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    host: str = "0.0.0.0"
    """
    IPv4 address to bind. The wildcard "0.0.0.0" accepts connections on
    every interface; use "127.0.0.1" for local-only serving.
    """

    port: int = 8080
    """
    TCP port, 0-65535. Port 0 asks the OS for a free ephemeral port
    (see StaticFileServer.address for the one it picked).
    """

    backlog: int = 128
    """Maximum number of queued, not-yet-accepted connections."""

    # ─────────────────────────────────────────────────────────────────────
    # SERVED FILES
    # ─────────────────────────────────────────────────────────────────────

    root_dir: str = "public"
    """
    Directory files are served from. Relative paths are resolved against
    the working directory of the process.
    """

    index_file: str = "index.html"
    """Default document served for the target "/"."""

    # ─────────────────────────────────────────────────────────────────────
    # LIMITS
    # ─────────────────────────────────────────────────────────────────────

    read_timeout: Optional[float] = 30.0
    """
    Seconds a client gets to send its complete request.
    None = wait forever (a silent client then holds its socket open).
    """

    max_header_size: int = 64 * 1024
    """Largest request line + headers accepted, in bytes."""

    max_body_size: int = 1024 * 1024
    """Largest request body accepted. Bodies are read and discarded."""

    chunk_size: int = 64 * 1024
    """Bytes read from disk per write when streaming a file."""

    # ─────────────────────────────────────────────────────────────────────
    # IDENTITY / PROCESS
    # ─────────────────────────────────────────────────────────────────────

    server_name: str = "StaticServer/1.0"
    """Value of the Server header on every response."""

    log_level: str = "INFO"
    """Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)."""

    handle_signals: bool = True
    """
    Install SIGINT/SIGTERM handlers that stop the server. Only honoured by
    start_blocking() on the main thread.
    """

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """
        Create configuration from environment variables.

        =====================================================================
        ENVIRONMENT VARIABLES
        =====================================================================

        STATIC_HOST       Bind address (default: 0.0.0.0)
        STATIC_PORT       Port (default: 8080)
        STATIC_ROOT       Served directory (default: public)
        STATIC_INDEX      Default document (default: index.html)
        STATIC_TIMEOUT    Read timeout in seconds, "none" to disable
                          (default: 30)
        STATIC_LOG_LEVEL  Logging level (default: INFO)

        =====================================================================
        """
        timeout = os.getenv("STATIC_TIMEOUT", "30")

        return cls(
            host=os.getenv("STATIC_HOST", "0.0.0.0"),
            port=int(os.getenv("STATIC_PORT", "8080")),
            root_dir=os.getenv("STATIC_ROOT", "public"),
            index_file=os.getenv("STATIC_INDEX", "index.html"),
            read_timeout=None if timeout.lower() == "none" else float(timeout),
            log_level=os.getenv("STATIC_LOG_LEVEL", "INFO"),
        )

    def validate(self) -> None:
        """
        Validate configuration values.

        Raises:
            ValueError: On the first invalid value found.
        """
        if not 0 <= self.port <= 65535:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")

        if self.backlog < 1:
            raise ValueError("backlog must be >= 1")

        if not self.root_dir:
            raise ValueError("root_dir must not be empty")

        if not self.index_file:
            raise ValueError("index_file must not be empty")

        # The index file is appended to the root, never routed
        if "/" in self.index_file or ".." in self.index_file:
            raise ValueError(f"index_file must be a plain file name: {self.index_file!r}")

        if self.read_timeout is not None and self.read_timeout <= 0:
            raise ValueError("read_timeout must be > 0")

        if self.max_header_size < 1024:
            raise ValueError("max_header_size must be >= 1024")

        if self.max_body_size < 0:
            raise ValueError("max_body_size must be >= 0")

        if self.chunk_size < 1:
            raise ValueError("chunk_size must be >= 1")

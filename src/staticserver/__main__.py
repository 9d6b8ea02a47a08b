"""
=============================================================================
STATIC SERVER CLI ENTRY POINT
=============================================================================

This module provides the command-line interface for running the server.

=============================================================================
USAGE
=============================================================================

    # Serve ./public on 0.0.0.0:8080
    python -m staticserver

    # Custom port and directory
    python -m staticserver --port 3000 --root dist

    # Local only, verbose
    python -m staticserver --host 127.0.0.1 --log-level DEBUG

    # Same thing through the environment
    STATIC_PORT=3000 STATIC_ROOT=dist python -m staticserver

=============================================================================
12-FACTOR APP: ENTRY POINT
=============================================================================

1. Read configuration from environment (ServerConfig.from_env)
2. Let CLI flags override it (argparse)
3. Construct and run the server (blocks until Ctrl+C / SIGTERM)

=============================================================================
"""

import argparse
import sys
from typing import Optional

from .server import StaticFileServer
from .config import ServerConfig


def _timeout(value: str) -> Optional[float]:
    """argparse type for --timeout: seconds, or "none" to disable."""
    if value.lower() == "none":
        return None
    return float(value)


def build_parser(defaults: ServerConfig) -> argparse.ArgumentParser:
    """Build the argument parser, with defaults taken from the environment."""
    parser = argparse.ArgumentParser(
        prog="staticserver",
        description="Serve a directory of static files over HTTP/1.1",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    parser.add_argument(
        "--host",
        default=defaults.host,
        help="IPv4 address to bind (0.0.0.0 for all interfaces)",
    )
    parser.add_argument(
        "-p", "--port",
        type=int,
        default=defaults.port,
        help="Port to listen on",
    )
    parser.add_argument(
        "-r", "--root",
        default=defaults.root_dir,
        help="Directory to serve files from",
    )
    parser.add_argument(
        "--index",
        default=defaults.index_file,
        help="Document served for /",
    )
    parser.add_argument(
        "--timeout",
        type=_timeout,
        default=defaults.read_timeout,
        help='Seconds to wait for a complete request ("none" to wait forever)',
    )
    parser.add_argument(
        "--log-level",
        default=defaults.log_level,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        type=str.upper,
        help="Logging level",
    )

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """
    Main CLI entry point.

    Returns:
        Process exit status.
    """
    try:
        defaults = ServerConfig.from_env()
    except ValueError as e:
        print(f"Error: invalid environment configuration: {e}", file=sys.stderr)
        return 1

    args = build_parser(defaults).parse_args(argv)

    config = ServerConfig(
        host=args.host,
        port=args.port,
        root_dir=args.root,
        index_file=args.index,
        read_timeout=args.timeout,
        log_level=args.log_level,
    )

    try:
        server = StaticFileServer(config)
        server.start_blocking()
    except (ValueError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        # Whatever ended the accept loop
        print(f"Error: server failed: {e!r}", file=sys.stderr)
        return 1

    return 0


# This allows running: python -m staticserver
if __name__ == "__main__":
    sys.exit(main())

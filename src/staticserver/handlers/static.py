"""
=============================================================================
STATIC FILE RESPONDER
=============================================================================

Opens a routed file and turns it into a response.

=============================================================================
WHAT ARE STATIC FILES?
=============================================================================

Static files are unchanging resources served directly from disk:

    ┌─────────────────────────────────────────────────────────────────────┐
    │   • HTML pages                    • Images (PNG, JPEG, SVG)         │
    │   • CSS stylesheets               • Fonts (WOFF, WOFF2)             │
    │   • JavaScript bundles            • WebAssembly modules             │
    │                                                                      │
    │   Same for everyone, served byte-for-byte from disk                 │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
OPEN FIRST, ASK QUESTIONS LATER
=============================================================================

We don't call os.path.exists() or is_file() before opening. That would be
a check-then-use race (the file can vanish in between) and an extra
syscall. Instead we just open() and map the outcome:

    open() fails (missing, directory, no permission,
                  embedded NUL byte)                  → 404 File not found
    open() succeeds, fstat() gives the size           → 200 + streamed body
    anything fails after open()                        → 500, handle closed

The 200 response takes ownership of the open handle. The body is NOT read
here; the ResponseWriter streams it in chunks so large files never sit in
memory.

=============================================================================
"""

import os
import logging

from ..http.response import (
    HTTPResponse, ResponseBuilder, HTTPStatus,
    not_found, internal_error,
)


logger = logging.getLogger(__name__)


class FileResponder:
    """
    Produces the response for a routed file path.

    Never raises: every outcome, including unexpected failures, becomes a
    response (200, 404 or 500).

    Usage:
        responder = FileResponder()
        response = responder.serve("public/index.html", "HTTP/1.1")
        try:
            await writer.write(stream, response)
        finally:
            response.close()
    """

    def serve(self, path: str, version: str = "HTTP/1.1") -> HTTPResponse:
        """
        Open a file and build its response.

        Args:
            path: File path returned by the RequestRouter.
            version: Request HTTP version, mirrored in the status line.

        Returns:
            200 with a FileBody, 404, or 500.
        """
        try:
            handle = open(path, "rb")
        except (OSError, ValueError) as e:
            # ValueError: the path holds a NUL byte
            logger.warning(f"Error opening file: {path!r} ({getattr(e, 'strerror', None) or e})")
            return not_found(version)

        try:
            size = os.fstat(handle.fileno()).st_size

            logger.debug(f"Serving file {path} ({size} bytes)")
            return (ResponseBuilder()
                .status(HTTPStatus.OK)
                .version(version)
                .file(handle, size, path)
                .close_connection()
                .build())

        except Exception as e:
            handle.close()
            logger.error(f"Error preparing response for {path}: {e}")
            return internal_error(version)

"""
=============================================================================
RESPONSE WRITER
=============================================================================

Puts an HTTPResponse on the wire.

=============================================================================
STREAMING A FILE
=============================================================================

    ┌─────────────────────────────────────────────────────────────────┐
    │   head_bytes()  ──write──►  transport buffer                    │
    │                                                                 │
    │   loop:                                                         │
    │       chunk = file.read(chunk_size)   ← at most 64 KB in memory │
    │       writer.write(chunk)                                       │
    │       await writer.drain()            ← wait if the client is   │
    │                                         slower than the disk    │
    │   until file exhausted                                          │
    └─────────────────────────────────────────────────────────────────┘

drain() is FLOW CONTROL. Without it, write() keeps appending to the
transport's buffer and a slow client downloading a large file would make
us buffer the whole thing in memory anyway.

=============================================================================
CONTENT-LENGTH MUST BE TRUE
=============================================================================

The header goes out before the body, so it's a promise. If the file turns
out shorter than its fstat size (truncated while we stream it), we can't
take the header back. The writer raises ResponseWriteError and the
connection is closed, so the client sees a short read instead of hanging
forever waiting for bytes that will never come. Extra bytes (file grew)
are never sent.

=============================================================================
"""

import asyncio

from ..http.response import HTTPResponse, FileBody, DEFAULT_SERVER_NAME


class ResponseWriteError(Exception):
    """Raised when a body can't be written as announced."""


class ResponseWriter:
    """
    Serializes responses onto an asyncio StreamWriter.

    Write failures (peer reset, broken pipe, short file) are raised to the
    caller; the ConnectionHandler logs them and closes the connection.
    """

    def __init__(self, server_name: str = DEFAULT_SERVER_NAME, chunk_size: int = 64 * 1024):
        self.server_name = server_name
        self.chunk_size = chunk_size

    async def write(self, writer: asyncio.StreamWriter, response: HTTPResponse) -> int:
        """
        Write the status line, headers and body.

        Args:
            writer: The connection's stream writer.
            response: Response to send. Its file handle is NOT closed here;
                      the owner of the response does that.

        Returns:
            Number of body bytes written.

        Raises:
            ResponseWriteError: If a file body is shorter than announced.
            ConnectionError / OSError: If the peer went away.
        """
        writer.write(response.head_bytes(self.server_name))

        if isinstance(response.body, FileBody):
            sent = await self._stream_file(writer, response.body)
        else:
            writer.write(response.body)
            sent = len(response.body)

        await writer.drain()
        return sent

    async def _stream_file(self, writer: asyncio.StreamWriter, body: FileBody) -> int:
        remaining = body.size

        while remaining > 0:
            chunk = body.file.read(min(self.chunk_size, remaining))
            if not chunk:
                raise ResponseWriteError(
                    f"{body.path}: file ended after {body.size - remaining} "
                    f"of {body.size} bytes"
                )

            writer.write(chunk)
            await writer.drain()
            remaining -= len(chunk)

        return body.size

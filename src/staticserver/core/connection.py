"""
=============================================================================
CONNECTION HANDLING
=============================================================================

One ConnectionHandler owns one accepted connection from its first byte to
its closed socket: read one request, answer it, close.

=============================================================================
TCP IS A BYTE STREAM, NOT A MESSAGE PROTOCOL!
=============================================================================

TCP does NOT preserve message boundaries. A request sent as one write()
by the client can arrive in any number of pieces:

    Client sends:
        "GET /index.html HTTP/1.1\\r\\nHost: x\\r\\n\\r\\n"

    Server might receive:
        "GET /ind"                      (first piece)
        "ex.html HTTP/1.1\\r\\nHo"        (second piece)
        "st: x\\r\\n\\r\\n"                  (last piece)

So we read until the protocol delimiter:

    1. StreamReader.readuntil(b"\\r\\n\\r\\n")   ← complete head
    2. Parse Content-Length from the head
    3. StreamReader.readexactly(length)       ← complete body

StreamReader does the buffering for us; its `limit` caps how much it will
buffer while looking for the delimiter.

=============================================================================
CONNECTION STATE MACHINE
=============================================================================

    READING ──────► ROUTING ──────► RESPONDING ──────► CLOSING ──► CLOSED
       │               │                                  ▲
       │  parse or     │  target contains ".."            │
       │  read error   │                                  │
       │  (send 400)   └──────── send 403 ────────────────┤
       │                                                  │
       └──────────────────────────────────────────────────┘

    READING      The one place we wait on the client. Bounded by
                 read_timeout.
    ROUTING      Pure: RequestRouter.route(target).
    RESPONDING   FileResponder opens the file, ResponseWriter streams it.
    CLOSING      Release the file, half-close (FIN), drain, close.
    CLOSED       No further I/O.

Exactly one request is read and exactly one response is written. There is
no keep-alive: every response says "Connection: close".

=============================================================================
ERRORS STAY INSIDE THE CONNECTION
=============================================================================

Every failure here ends THIS connection only. Nothing raised in run()
reaches the accept loop or other connections: read errors become a 400,
write errors are logged, anything unexpected is logged with a traceback.
The socket is closed on every path.

Log lines from concurrent connections never interleave: each record goes
through logging.Handler.handle(), which holds the handler's lock around
emit(). Each line is prefixed with the connection id so the lines of one
connection can be picked out.

=============================================================================
"""

import asyncio
import logging
import uuid
from enum import Enum
from typing import Optional

from ..http.request import HTTPRequest, RequestParser, HTTPParseError, HEADER_TERMINATOR
from ..http.response import HTTPResponse, bad_request, forbidden
from ..http.router import RequestRouter, ForbiddenPathError
from ..handlers.static import FileResponder
from .writer import ResponseWriter, ResponseWriteError


logger = logging.getLogger(__name__)


# How long CLOSING waits for the client to finish sending after our FIN.
# Closing a socket with unread input makes the kernel send RST, which can
# destroy the response before the client reads it.
LINGER_TIMEOUT = 0.5

# Bytes of a failed request shown in the diagnostic log line
DIAGNOSTIC_SAMPLE_SIZE = 100


class ConnectionState(Enum):
    """Where a connection is in its single request/response cycle."""
    READING = "reading"          # Waiting for the complete request
    ROUTING = "routing"          # Mapping the target to a file path
    RESPONDING = "responding"    # Opening and streaming the file
    CLOSING = "closing"          # Shutting the socket down
    CLOSED = "closed"            # Done, socket released


# Errors that mean "we could not get a request out of this connection"
READ_ERRORS = (
    HTTPParseError,
    asyncio.IncompleteReadError,
    asyncio.LimitOverrunError,
    asyncio.TimeoutError,
    OSError,
)


class ConnectionHandler:
    """
    Drives one connection through READING → ROUTING → RESPONDING → CLOSED.

    Usage (one per accepted connection, as its own task):
        handler = ConnectionHandler(reader, writer, router, responder,
                                    response_writer, parser)
        await handler.run()     # never raises except on cancellation

    Attributes:
        id: Short random id used to tag log lines.
        state: Current ConnectionState.
        request: Parsed request, once READING succeeded.
        response: Response that was (or is being) written.
    """

    def __init__(
        self,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
        router: RequestRouter,
        responder: FileResponder,
        response_writer: ResponseWriter,
        parser: RequestParser,
        read_timeout: Optional[float] = None,
    ):
        self.reader = reader
        self.writer = writer
        self.router = router
        self.responder = responder
        self.response_writer = response_writer
        self.parser = parser
        self.read_timeout = read_timeout

        self.id = str(uuid.uuid4())[:8]
        self.state = ConnectionState.READING
        self.address = writer.get_extra_info("peername") or ("", 0)

        self.request: Optional[HTTPRequest] = None
        self.response: Optional[HTTPResponse] = None

        # Everything received so far, for diagnostics
        self._received = b""

    async def run(self) -> None:
        """
        Handle the connection from start to close.

        Cancellation (server stop) is the only exception that escapes, and
        the socket is closed on that path too.
        """
        try:
            request = await self._read()
            if request is not None:
                await self._respond(request)

        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.exception(f"[{self.id}] Connection error: {e}")
        finally:
            await self.close()

    # =========================================================================
    # READING
    # =========================================================================

    async def read_request(self) -> HTTPRequest:
        """
        Read and parse exactly one request.

        Raises:
            HTTPParseError: Malformed head.
            asyncio.IncompleteReadError: Client closed mid-request.
            asyncio.LimitOverrunError: Head larger than the reader limit.
            OSError: Transport failure.
        """
        try:
            head = await self.reader.readuntil(HEADER_TERMINATOR)
        except asyncio.IncompleteReadError as e:
            self._received = e.partial
            raise
        except asyncio.LimitOverrunError as e:
            # The oversized head is still buffered; take it for the log line
            self._received = await self.reader.read(max(e.consumed, DIAGNOSTIC_SAMPLE_SIZE))
            raise
        self._received = head

        request = self.parser.parse_head(head, self.address)

        # Consume the body so it isn't left unread in the socket
        if request.content_length:
            try:
                request.body = await self.reader.readexactly(request.content_length)
            except asyncio.IncompleteReadError as e:
                self._received = head + e.partial
                raise
            self._received = head + request.body

        return request

    async def _read(self) -> Optional[HTTPRequest]:
        self.state = ConnectionState.READING
        logger.debug(f"[{self.id}] Reading request from {self.address[0]}:{self.address[1]}")

        try:
            if self.read_timeout is None:
                request = await self.read_request()
            else:
                request = await asyncio.wait_for(self.read_request(), self.read_timeout)
        except READ_ERRORS as e:
            self._log_read_error(e)
            await self._send_bad_request()
            return None

        self.request = request
        return request

    def _log_read_error(self, error: BaseException) -> None:
        """
        Log what went wrong while reading, with a hex sample of the bytes.

        Example:
            [1a2b3c4d] Error reading request: HTTPParseError (errno -):
            Invalid request line: 'hello' | 7 bytes received: 68 65 6c 6c 6f 0d 0a
        """
        data = self._received
        if isinstance(error, HTTPParseError) and error.data:
            data = error.data

        if isinstance(error, asyncio.TimeoutError):
            message = f"no complete request within {self.read_timeout}s"
        else:
            message = str(error) or "-"

        errno = getattr(error, "errno", None)
        sample = data[:DIAGNOSTIC_SAMPLE_SIZE].hex(" ")

        logger.error(
            f"[{self.id}] Error reading request: {type(error).__name__} "
            f"(errno {errno if errno is not None else '-'}): {message} "
            f"| {len(data)} bytes received: {sample}"
        )

    async def _send_bad_request(self) -> None:
        """Best-effort 400; the connection closes whether or not it's sent."""
        if self.writer.is_closing():
            return

        self.response = bad_request()
        logger.info(f"[{self.id}] Sending error response: {int(self.response.status)}")

        try:
            await self.response_writer.write(self.writer, self.response)
        except (OSError, ResponseWriteError) as e:
            logger.warning(f"[{self.id}] Error sending error response: {e}")

    # =========================================================================
    # ROUTING + RESPONDING
    # =========================================================================

    async def _respond(self, request: HTTPRequest) -> None:
        self.state = ConnectionState.ROUTING
        logger.info(f"[{self.id}] {request.method} {request.target} {request.version}")

        try:
            path = self.router.route(request.target)
        except ForbiddenPathError:
            logger.warning(f"[{self.id}] Forbidden target: {request.target}")
            self.response = forbidden(request.version)
        else:
            self.state = ConnectionState.RESPONDING
            self.response = self.responder.serve(path, request.version)

        status = self.response.status
        if self.response.is_file:
            logger.debug(f"[{self.id}] Sending response file {self.response.body.path}")
        else:
            logger.info(f"[{self.id}] Sending error response: {int(status)}")

        try:
            sent = await self.response_writer.write(self.writer, self.response)
        except (OSError, ResponseWriteError) as e:
            logger.warning(f"[{self.id}] Error writing response: {e}")
        else:
            logger.debug(f"[{self.id}] {int(status)} {status.phrase}, {sent} body bytes")

    # =========================================================================
    # CLOSING
    # =========================================================================

    async def close(self) -> None:
        """
        Close the connection.

        Proper TCP shutdown sequence:

            1. Release the response's file handle
            2. write_eof(): shutdown(SHUT_WR), sends FIN after pending data
            3. Drain whatever the client still sends, briefly
            4. close() and wait for the transport to go away

        Safe to call more than once.
        """
        if self.state is ConnectionState.CLOSED:
            return
        self.state = ConnectionState.CLOSING

        if self.response is not None:
            self.response.close()

        try:
            if not self.writer.is_closing() and self.writer.can_write_eof():
                self.writer.write_eof()
                await self._discard_input()
        except OSError:
            pass  # Already disconnected, that's fine
        finally:
            self.writer.close()

        try:
            await self.writer.wait_closed()
        except OSError:
            pass  # Reset by peer while closing

        self.state = ConnectionState.CLOSED
        logger.debug(f"[{self.id}] Connection closed")

    async def _discard_input(self) -> None:
        try:
            await asyncio.wait_for(self._read_to_eof(), LINGER_TIMEOUT)
        except asyncio.TimeoutError:
            pass

    async def _read_to_eof(self) -> None:
        while await self.reader.read(65536):
            pass

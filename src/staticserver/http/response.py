"""
=============================================================================
HTTP RESPONSE MODEL
=============================================================================

Builds HTTP/1.1 responses with proper formatting per RFC 7230.

=============================================================================
HTTP RESPONSE ANATOMY
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │  HTTP/1.1 200 OK\r\n                   ← status line               │
    │  Content-Type: text/html\r\n           ← headers                   │
    │  Content-Length: 5\r\n                                             │
    │  Date: Sun, 18 Oct 2026 12:00:00 GMT\r\n                           │
    │  Server: StaticServer/1.0\r\n                                      │
    │  Connection: close\r\n                                             │
    │  \r\n                                  ← empty line (separator)    │
    │  hello                                 ← body                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
TWO KINDS OF BODY
=============================================================================

    ERROR RESPONSES                    FILE RESPONSES
    ───────────────                    ──────────────
    body = b"File not found\n"         body = FileBody(open file, size)
    A few bytes, kept in memory        Possibly huge, STREAMED from disk

    HTTPResponse.head_bytes() serializes only the status line and headers.
    The body is written separately by the ResponseWriter, so a 2 GB video
    never has to fit in memory.

A response that carries a FileBody owns the open file handle; close() must
be called once it has been written (or abandoned).

=============================================================================
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import BinaryIO, Dict, Optional, Union

from .status_codes import HTTPStatus
from .mime_types import get_mime_type


DEFAULT_SERVER_NAME = "StaticServer/1.0"
ERROR_CONTENT_TYPE = "text/plain"


@dataclass
class FileBody:
    """
    An open file to be streamed as a response body.

    size is taken from the open handle (fstat), so it describes the file
    we will actually read even if the path is replaced meanwhile.
    """

    file: BinaryIO
    size: int
    path: str = ""

    def close(self) -> None:
        if not self.file.closed:
            self.file.close()


@dataclass
class HTTPResponse:
    """
    An HTTP response to be sent to the client.

    Use ResponseBuilder or the helpers at the bottom of this module
    (not_found(), forbidden(), ...) rather than filling this in by hand.
    """

    status: HTTPStatus = HTTPStatus.OK
    headers: Dict[str, str] = field(default_factory=dict)
    body: Union[bytes, FileBody] = b""
    version: str = "HTTP/1.1"        # Mirrors the request version

    @property
    def status_line(self) -> str:
        """
        Format: HTTP-VERSION SP STATUS-CODE SP REASON-PHRASE
        Example: "HTTP/1.1 200 OK"
        """
        return f"{self.version} {int(self.status)} {self.status.phrase}"

    @property
    def is_file(self) -> bool:
        return isinstance(self.body, FileBody)

    @property
    def content_length(self) -> int:
        """Length of the body in bytes, whichever kind it is."""
        if isinstance(self.body, FileBody):
            return self.body.size
        return len(self.body)

    def head_bytes(self, server_name: str = DEFAULT_SERVER_NAME) -> bytes:
        """
        Serialize the status line and headers.

        Content-Length is always computed from the body; a caller-supplied
        value that disagrees with it would make the client hang or truncate,
        so it is overwritten. Content-Type, Date and Server are filled in
        when missing.

        Returns:
            Everything up to and including the blank line.
        """
        response_headers = dict(self.headers)

        response_headers["Content-Length"] = str(self.content_length)
        response_headers.setdefault("Content-Type", ERROR_CONTENT_TYPE)
        response_headers.setdefault("Date", format_http_date(datetime.now(timezone.utc)))
        response_headers.setdefault("Server", server_name)

        lines = [self.status_line]
        for name, value in response_headers.items():
            lines.append(f"{name}: {value}")
        lines.append("")

        return "\r\n".join(lines).encode("utf-8") + b"\r\n"

    def close(self) -> None:
        """Release the file handle, if any. Safe to call repeatedly."""
        if isinstance(self.body, FileBody):
            self.body.close()


class ResponseBuilder:
    """
    Fluent builder for constructing HTTP responses.

        response = (ResponseBuilder()
            .status(HTTPStatus.OK)
            .version(request.version)
            .file(handle, size, path)
            .close_connection()
            .build())

    Each method returns self except build().
    """

    def __init__(self):
        self._status = HTTPStatus.OK
        self._version = "HTTP/1.1"
        self._headers: Dict[str, str] = {}
        self._body: Union[bytes, FileBody] = b""

    def status(self, status: HTTPStatus) -> "ResponseBuilder":
        self._status = status
        return self

    def version(self, version: str) -> "ResponseBuilder":
        """Set the HTTP version of the status line (mirror the request)."""
        self._version = version
        return self

    def header(self, name: str, value: str) -> "ResponseBuilder":
        self._headers[name] = value
        return self

    def content_type(self, content_type: str) -> "ResponseBuilder":
        return self.header("Content-Type", content_type)

    def text(self, text: str, content_type: str = ERROR_CONTENT_TYPE) -> "ResponseBuilder":
        """
        Set a plain text body.

        Generated error bodies use a bare "text/plain" content type.
        """
        self._body = text.encode("utf-8")
        self._headers["Content-Type"] = content_type
        return self

    def file(self, handle: BinaryIO, size: int, path: str) -> "ResponseBuilder":
        """
        Set a streamed file body.

        Content-Type is resolved from the path.
        """
        self._body = FileBody(file=handle, size=size, path=path)
        self._headers["Content-Type"] = get_mime_type(path)
        return self

    def close_connection(self) -> "ResponseBuilder":
        """
        Set Connection: close.

        Every response gets this: one request per connection, then the
        server half-closes the socket.
        """
        self._headers["Connection"] = "close"
        return self

    def build(self) -> HTTPResponse:
        return HTTPResponse(
            status=self._status,
            headers=self._headers,
            body=self._body,
            version=self._version,
        )


def format_http_date(dt: datetime) -> str:
    """
    Format a datetime as an HTTP-date (RFC 7231).

    Format: Day, DD Mon YYYY HH:MM:SS GMT
    Example: Sun, 18 Oct 2026 12:00:00 GMT

    HTTP dates are ALWAYS in GMT, never local time, and never localized
    (strftime("%a") would follow the process locale).
    """
    days = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
    months = ["Jan", "Feb", "Mar", "Apr", "May", "Jun",
              "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]

    return (
        f"{days[dt.weekday()]}, "
        f"{dt.day:02d} {months[dt.month - 1]} {dt.year} "
        f"{dt.hour:02d}:{dt.minute:02d}:{dt.second:02d} GMT"
    )


# =============================================================================
# ERROR RESPONSES
# =============================================================================
#
# Plain text bodies, one line each, ending in a newline so that
# `curl` output doesn't run into the shell prompt.
#
# =============================================================================

def error_response(
    status: HTTPStatus,
    message: str,
    version: Optional[str] = None,
) -> HTTPResponse:
    """
    Create a text/plain error response.

    Args:
        status: Error status code.
        message: Body text.
        version: Request version to mirror; HTTP/1.1 when unknown.
    """
    return (ResponseBuilder()
        .status(status)
        .version(version or "HTTP/1.1")
        .text(message)
        .close_connection()
        .build())


def bad_request(version: Optional[str] = None) -> HTTPResponse:
    """400 - the request couldn't be read or parsed."""
    return error_response(HTTPStatus.BAD_REQUEST, "400 Bad Request\n", version)


def forbidden(version: Optional[str] = None) -> HTTPResponse:
    """403 - the target tried to leave the served root."""
    return error_response(HTTPStatus.FORBIDDEN, "Forbidden\n", version)


def not_found(version: Optional[str] = None) -> HTTPResponse:
    """404 - the file couldn't be opened."""
    return error_response(HTTPStatus.NOT_FOUND, "File not found\n", version)


def internal_error(version: Optional[str] = None) -> HTTPResponse:
    """500 - something failed after the file was opened."""
    return error_response(HTTPStatus.INTERNAL_SERVER_ERROR, "Internal Server Error\n", version)

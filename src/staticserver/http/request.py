"""
=============================================================================
HTTP REQUEST PARSING
=============================================================================

Turns the raw bytes read from a connection into an HTTPRequest.

=============================================================================
WHAT WE ACTUALLY NEED FROM A REQUEST
=============================================================================

    ┌─────────────────────────────────────────────────────────────────┐
    │  GET /assets/app.js HTTP/1.1\r\n        ← request line          │
    │  └┬┘ └──────┬──────┘ └──┬───┘                                   │
    │  Method   Target     Version                                    │
    │                                                                 │
    │  Host: localhost:8080\r\n               ← headers               │
    │  Accept: */*\r\n                                                │
    │  \r\n                                   ← end of head           │
    │  (optional body, Content-Length bytes)                          │
    └─────────────────────────────────────────────────────────────────┘

A static file server only routes on the TARGET. The method is logged, the
version is mirrored in the response, the headers are only used to find the
body length so the whole request can be consumed before answering.

=============================================================================
WHAT WE REJECT (400 Bad Request)
=============================================================================

    - A request line that isn't "METHOD SP TARGET SP HTTP/x.y"
    - Versions other than HTTP/1.0 and HTTP/1.1
    - Targets not in origin-form (must start with "/")
    - Targets containing control characters (NUL, CR, DEL...)
    - A Content-Length that isn't a non-negative integer, or is too big
    - Transfer-Encoding: chunked (chunked request bodies are unsupported)

The target is NOT URL-decoded. "/a%20b.txt" looks up a file literally
named "a%20b.txt". Because nothing is decoded, "%2e%2e" can never turn into
".." on the filesystem.

=============================================================================
"""

from dataclasses import dataclass, field
from typing import Dict
import re


HEADER_TERMINATOR = b"\r\n\r\n"


class HTTPParseError(Exception):
    """
    Raised when request bytes can't be parsed.

    Every parse error is answered with 400 Bad Request. The raw bytes that
    failed to parse travel with the exception so the connection can log a
    sample of them.
    """

    def __init__(self, message: str, data: bytes = b""):
        super().__init__(message)
        self.data = data


@dataclass
class HTTPRequest:
    """
    A parsed HTTP request.

    Created once per connection after the full request has been read and
    discarded after the response is sent.

    Headers are stored with lowercase names (HTTP header names are
    case-insensitive per RFC 7230).
    """

    method: str                          # GET, HEAD, POST...
    target: str                          # Raw request target, e.g. "/index.html"
    version: str = "HTTP/1.1"            # Mirrored in the response

    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""

    client_address: tuple[str, int] = ("", 0)

    @property
    def content_length(self) -> int:
        """Declared body length; 0 when the header is missing."""
        return int(self.headers.get("content-length", 0))


class RequestParser:
    """
    Parses request heads.

    The connection reads in two steps: the head goes through parse_head(),
    then the connection reads exactly Content-Length body bytes itself.

    REQUEST_LINE_PATTERN: ^([A-Z]+) ([^ ]+) (HTTP/\\d\\.\\d)$
        ([A-Z]+)       - METHOD
        ([^ ]+)        - TARGET (anything except space)
        (HTTP/\\d\\.\\d) - VERSION
    """

    REQUEST_LINE_PATTERN = re.compile(r"^([A-Z]+) ([^ ]+) (HTTP/\d\.\d)$")
    HEADER_PATTERN = re.compile(r"^([^:]+):\s*(.*)$")
    CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")
    SUPPORTED_VERSIONS = ("HTTP/1.0", "HTTP/1.1")

    def __init__(self, max_body_size: int = 1024 * 1024):
        """
        Args:
            max_body_size: Largest Content-Length we are willing to read.
                           The body is read and dropped, so there is no
                           reason to accept a large one.
        """
        self.max_body_size = max_body_size

    def parse_head(
        self,
        head: bytes,
        client_address: tuple[str, int] = ("", 0),
    ) -> HTTPRequest:
        """
        Parse the request line and headers.

        Args:
            head: Bytes up to (and optionally including) the blank line.
            client_address: Peer (ip, port), kept for logging.

        Returns:
            HTTPRequest with an empty body.

        Raises:
            HTTPParseError: If the head is malformed.
        """
        text = head.decode("utf-8", errors="replace")
        if text.endswith("\r\n\r\n"):
            text = text[:-4]

        lines = text.split("\r\n")
        if not lines or not lines[0]:
            raise HTTPParseError("Empty request line", head)

        method, target, version = self._parse_request_line(lines[0], head)
        headers = self._parse_headers(lines[1:])

        if "chunked" in headers.get("transfer-encoding", "").lower():
            raise HTTPParseError("Chunked request bodies are not supported", head)

        self._validate_content_length(headers, head)

        return HTTPRequest(
            method=method,
            target=target,
            version=version,
            headers=headers,
            client_address=client_address,
        )

    def _parse_request_line(self, line: str, raw: bytes) -> tuple[str, str, str]:
        match = self.REQUEST_LINE_PATTERN.match(line)
        if not match:
            raise HTTPParseError(f"Invalid request line: {line!r}", raw)

        method, target, version = match.groups()

        if version not in self.SUPPORTED_VERSIONS:
            raise HTTPParseError(f"Unsupported HTTP version: {version}", raw)

        # Only origin-form ("/path") maps onto the served directory
        if not target.startswith("/"):
            raise HTTPParseError(f"Invalid request target: {target!r}", raw)

        # NUL and friends can never be part of a file name on disk
        if self.CONTROL_CHARS.search(target):
            raise HTTPParseError(f"Control character in request target: {target!r}", raw)

        return method, target, version

    def _parse_headers(self, lines: list[str]) -> Dict[str, str]:
        """
        Parse header lines into a dict with lowercase names.

        Repeated headers are joined with ", " (RFC 7230 section 3.2.2).
        Lines without a colon are skipped (lenient parsing).
        """
        headers: Dict[str, str] = {}

        for line in lines:
            if not line:
                continue

            match = self.HEADER_PATTERN.match(line)
            if not match:
                continue

            name, value = match.groups()
            name = name.strip().lower()
            value = value.strip()

            if name in headers:
                headers[name] += ", " + value
            else:
                headers[name] = value

        return headers

    def _validate_content_length(self, headers: Dict[str, str], raw: bytes) -> None:
        value = headers.get("content-length")
        if value is None:
            return

        # Repeated headers were joined above; "5, 7" is a smuggling attempt
        if not (value.isascii() and value.isdigit()):
            raise HTTPParseError(f"Invalid Content-Length: {value!r}", raw)

        if int(value) > self.max_body_size:
            raise HTTPParseError(
                f"Request body too large: {value} bytes "
                f"(limit {self.max_body_size})",
                raw,
            )


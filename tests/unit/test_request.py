"""
Unit tests for HTTP request parsing.
"""

import pytest

from staticserver.http.request import (
    HTTPRequest,
    HTTPParseError,
    RequestParser,
)


def parse(raw: bytes, max_body_size: int = 1024 * 1024, client_address=("", 0)) -> HTTPRequest:
    return RequestParser(max_body_size=max_body_size).parse_head(raw, client_address)


class TestRequestParser:
    """Tests for RequestParser.parse_head()."""

    def test_parse_simple_get(self):
        """Test parsing a simple GET request."""
        raw = (
            b"GET /index.html HTTP/1.1\r\n"
            b"Host: localhost:8080\r\n"
            b"\r\n"
        )

        request = parse(raw, client_address=("127.0.0.1", 5555))

        assert request.method == "GET"
        assert request.target == "/index.html"
        assert request.version == "HTTP/1.1"
        assert request.headers["host"] == "localhost:8080"
        assert request.body == b""
        assert request.client_address == ("127.0.0.1", 5555)

    def test_parse_http10(self):
        request = parse(b"GET / HTTP/1.0\r\n\r\n")
        assert request.version == "HTTP/1.0"

    def test_head_without_terminator(self):
        """The terminator is optional; readuntil() already found it."""
        request = parse(b"GET / HTTP/1.1\r\nHost: x")
        assert request.headers == {"host": "x"}

    def test_content_length(self):
        """Body is left to the connection, only its length is parsed."""
        request = parse(b"POST /upload HTTP/1.1\r\nContent-Length: 5\r\n\r\n")

        assert request.method == "POST"
        assert request.content_length == 5
        assert request.body == b""

    def test_header_names_lowercased(self):
        """Header names are case-insensitive."""
        request = parse(b"GET / HTTP/1.1\r\nX-Custom-Header: Value\r\n\r\n")
        assert request.headers["x-custom-header"] == "Value"

    def test_duplicate_headers_joined(self):
        raw = b"GET / HTTP/1.1\r\nAccept: a\r\nAccept: b\r\n\r\n"
        assert parse(raw).headers["accept"] == "a, b"

    def test_malformed_header_line_skipped(self):
        """Lines without a colon are ignored."""
        raw = b"GET / HTTP/1.1\r\nnot a header\r\nHost: x\r\n\r\n"
        assert parse(raw).headers == {"host": "x"}

    def test_target_not_decoded(self):
        request = parse(b"GET /a%20b.txt?x=1 HTTP/1.1\r\n\r\n")
        assert request.target == "/a%20b.txt?x=1"


class TestMalformedRequests:
    """Everything here ends up as 400 Bad Request."""

    @pytest.mark.parametrize("raw", [
        b"\r\n\r\n",
        b"garbage\r\n\r\n",
        b"GET /\r\n\r\n",
        b"get / HTTP/1.1\r\n\r\n",
        b"GET / HTTP/1.1 extra\r\n\r\n",
        b"GET  / HTTP/1.1\r\n\r\n",
    ])
    def test_invalid_request_line(self, raw):
        with pytest.raises(HTTPParseError):
            parse(raw)

    @pytest.mark.parametrize("version", ["HTTP/2.0", "HTTP/0.9", "HTTP/1.2"])
    def test_unsupported_version(self, version):
        with pytest.raises(HTTPParseError, match="Unsupported HTTP version"):
            parse(f"GET / {version}\r\n\r\n".encode())

    @pytest.mark.parametrize("target", ["*", "http://example.com/", "index.html"])
    def test_non_origin_target(self, target):
        with pytest.raises(HTTPParseError, match="Invalid request target"):
            parse(f"OPTIONS {target} HTTP/1.1\r\n\r\n".encode())

    @pytest.mark.parametrize("target", [b"/a\x00b.html", b"/a\tb", b"/x\x7f", b"/\x1b[0m"])
    def test_control_characters_in_target(self, target):
        """Test that NUL and other control bytes never reach the filesystem."""
        with pytest.raises(HTTPParseError, match="Control character"):
            parse(b"GET " + target + b" HTTP/1.1\r\n\r\n")

    @pytest.mark.parametrize("value", ["-1", "abc", "1.5", "5, 7", "٥"])
    def test_invalid_content_length(self, value):
        raw = f"POST / HTTP/1.1\r\nContent-Length: {value}\r\n\r\n".encode()
        with pytest.raises(HTTPParseError, match="Content-Length"):
            parse(raw)

    def test_body_too_large(self):
        raw = b"POST / HTTP/1.1\r\nContent-Length: 100\r\n\r\n"
        with pytest.raises(HTTPParseError, match="too large"):
            parse(raw, max_body_size=10)

    def test_chunked_rejected(self):
        raw = b"POST / HTTP/1.1\r\nTransfer-Encoding: chunked\r\n\r\n"
        with pytest.raises(HTTPParseError, match="Chunked"):
            parse(raw)

    def test_error_carries_data(self):
        """The offending bytes travel with the error for logging."""
        raw = b"\x00\x01\x02\r\n\r\n"
        with pytest.raises(HTTPParseError) as exc_info:
            parse(raw)

        assert exc_info.value.data == raw


class TestHTTPRequest:
    """Tests for HTTPRequest class."""

    def test_content_length_default(self):
        request = HTTPRequest(method="GET", target="/")
        assert request.content_length == 0
        assert request.version == "HTTP/1.1"

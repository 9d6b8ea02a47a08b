"""
Unit tests for response serialization and file streaming.
"""

import asyncio
import io

import pytest

from staticserver.core.writer import ResponseWriter, ResponseWriteError
from staticserver.http.response import FileBody, HTTPResponse, not_found


class FakeStreamWriter:
    """Records what would go out on the socket."""

    def __init__(self):
        self.writes = []
        self.drains = 0

    def write(self, data: bytes) -> None:
        self.writes.append(bytes(data))

    async def drain(self) -> None:
        self.drains += 1

    @property
    def data(self) -> bytes:
        return b"".join(self.writes)


def write(response_writer, response):
    stream = FakeStreamWriter()
    sent = asyncio.run(response_writer.write(stream, response))
    return stream, sent


class TestResponseWriter:
    """Tests for ResponseWriter.write()."""

    def test_in_memory_body(self):
        stream, sent = write(ResponseWriter(), not_found())

        assert sent == len(b"File not found\n")
        assert stream.data.startswith(b"HTTP/1.1 404 Not Found\r\n")
        assert stream.data.endswith(b"\r\n\r\nFile not found\n")
        assert b"Server: StaticServer/1.0\r\n" in stream.data

    def test_server_name(self):
        stream, _ = write(ResponseWriter(server_name="Edge/9"), not_found())
        assert b"Server: Edge/9\r\n" in stream.data

    def test_file_streamed_in_chunks(self):
        """Test that file bodies go out chunk by chunk, draining each time."""
        content = b"0123456789"
        body = FileBody(file=io.BytesIO(content), size=len(content), path="a.bin")
        response = HTTPResponse(body=body)

        stream, sent = write(ResponseWriter(chunk_size=4), response)

        assert sent == 10
        # head, then 4 + 4 + 2
        assert stream.writes[1:] == [b"0123", b"4567", b"89"]
        assert stream.drains >= 3
        assert stream.data.endswith(b"\r\n\r\n0123456789")
        assert b"Content-Length: 10\r\n" in stream.data

    def test_file_not_closed_by_writer(self):
        handle = io.BytesIO(b"abc")
        response = HTTPResponse(body=FileBody(file=handle, size=3))

        write(ResponseWriter(), response)

        assert not handle.closed

    def test_file_shorter_than_announced(self):
        """A file that shrank after fstat must not produce a short body silently."""
        body = FileBody(file=io.BytesIO(b"abc"), size=10, path="shrunk.txt")

        with pytest.raises(ResponseWriteError, match="shrunk.txt"):
            write(ResponseWriter(), HTTPResponse(body=body))

    def test_extra_file_bytes_not_sent(self):
        """Only the announced size is sent, even if the file grew."""
        body = FileBody(file=io.BytesIO(b"abcdef"), size=3)

        stream, sent = write(ResponseWriter(), HTTPResponse(body=body))

        assert sent == 3
        assert stream.data.endswith(b"\r\n\r\nabc")

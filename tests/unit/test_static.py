"""
Unit tests for the static file responder.
"""

import pytest

from staticserver.handlers import static
from staticserver.handlers.static import FileResponder
from staticserver.http.status_codes import HTTPStatus


class TestFileResponder:
    """Tests for FileResponder.serve()."""

    def test_serves_existing_file(self, public_dir):
        """Test that an existing file becomes a 200 with a streamed body."""
        response = FileResponder().serve(str(public_dir / "index.html"))

        try:
            assert response.status == HTTPStatus.OK
            assert response.is_file
            assert response.content_length == len(b"hello")
            assert response.headers["Content-Type"] == "text/html"
            assert response.headers["Connection"] == "close"
            assert response.body.file.read() == b"hello"
        finally:
            response.close()

        assert response.body.file.closed

    def test_binary_content_untouched(self, public_dir):
        response = FileResponder().serve(str(public_dir / "logo.png"))

        try:
            assert response.headers["Content-Type"] == "image/png"
            assert response.body.file.read() == (public_dir / "logo.png").read_bytes()
        finally:
            response.close()

    def test_mirrors_version(self, public_dir):
        response = FileResponder().serve(str(public_dir / "index.html"), "HTTP/1.0")
        response.close()

        assert response.status_line == "HTTP/1.0 200 OK"

    def test_missing_file(self, public_dir):
        """Test that a missing file becomes 404."""
        response = FileResponder().serve(str(public_dir / "missing.png"), "HTTP/1.0")

        assert response.status == HTTPStatus.NOT_FOUND
        assert response.body == b"File not found\n"
        assert response.version == "HTTP/1.0"

    def test_directory_is_not_found(self, public_dir):
        """Directories can't be opened as files."""
        response = FileResponder().serve(str(public_dir / "assets"))
        assert response.status == HTTPStatus.NOT_FOUND

    def test_empty_file(self, public_dir):
        (public_dir / "empty.txt").write_bytes(b"")
        response = FileResponder().serve(str(public_dir / "empty.txt"))
        response.close()

        assert response.status == HTTPStatus.OK
        assert response.content_length == 0

    def test_failure_after_open(self, public_dir, monkeypatch):
        """A failure after open() is a 500 and the handle is closed."""
        handles = []

        def broken_file(self, handle, size, path):
            handles.append(handle)
            raise RuntimeError("boom")

        monkeypatch.setattr(static.ResponseBuilder, "file", broken_file)

        response = FileResponder().serve(str(public_dir / "index.html"))

        assert response.status == HTTPStatus.INTERNAL_SERVER_ERROR
        assert response.body == b"Internal Server Error\n"
        assert len(handles) == 1
        assert handles[0].closed

    def test_nul_byte_in_path(self, public_dir):
        """open() rejects NUL with ValueError; still answered, as 404."""
        response = FileResponder().serve(str(public_dir) + "/a\x00b.html", "HTTP/1.0")

        assert response.status == HTTPStatus.NOT_FOUND
        assert response.body == b"File not found\n"
        assert response.version == "HTTP/1.0"

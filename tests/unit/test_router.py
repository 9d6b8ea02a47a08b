"""
Unit tests for request routing.
"""

import pytest

from staticserver.http.router import RequestRouter, ForbiddenPathError


class TestRoute:
    """Tests for target → path resolution."""

    def test_root_serves_index(self):
        """Test that "/" maps to the default document."""
        router = RequestRouter("public", "index.html")
        assert router.route("/") == "public/index.html"

    def test_index_explicit(self):
        """/ and /index.html resolve to the same file."""
        router = RequestRouter("public")
        assert router.route("/index.html") == router.route("/")

    def test_nested_target(self):
        router = RequestRouter("public")
        assert router.route("/assets/app.js") == "public/assets/app.js"

    def test_custom_index(self):
        router = RequestRouter("dist", "home.html")
        assert router.default_target == "/home.html"
        assert router.route("/") == "dist/home.html"

    def test_root_trailing_slash(self):
        """A trailing slash on the root does not double up."""
        router = RequestRouter("public/")
        assert router.route("/style.css") == "public/style.css"

    def test_filesystem_root(self):
        router = RequestRouter("/")
        assert router.route("/etc/hosts") == "/etc/hosts"

    def test_target_not_decoded(self):
        """Percent-escapes are kept literally."""
        router = RequestRouter("public")
        assert router.route("/%2e%2e/secret") == "public/%2e%2e/secret"

    def test_query_kept(self):
        """The query string is part of the looked-up name."""
        router = RequestRouter("public")
        assert router.route("/app.js?v=2") == "public/app.js?v=2"


class TestTraversal:
    """Tests for the ".." guard."""

    @pytest.mark.parametrize("target", [
        "/../../etc/passwd",
        "/..",
        "/assets/../index.html",
        "/a..b.txt",
        "/notes..",
        "..",
    ])
    def test_dotdot_forbidden(self, target):
        """Any ".." in the target is rejected."""
        router = RequestRouter("public")

        with pytest.raises(ForbiddenPathError) as exc_info:
            router.route(target)

        assert exc_info.value.target == target

    def test_single_dots_allowed(self):
        router = RequestRouter("public")
        assert router.route("/./a.b.c") == "public/./a.b.c"

"""
=============================================================================
REQUEST ROUTING
=============================================================================

Maps a request target onto a file path under the served root.

=============================================================================
THE WHOLE ROUTING TABLE
=============================================================================

There are no routes, handlers or path parameters here. A static file
server has exactly one rule:

    ┌─────────────────────────────────────────────────────────────────────┐
    │   Target                      →  File path                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │   /                           →  public/index.html  (default doc)   │
    │   /index.html                 →  public/index.html                  │
    │   /assets/app.js              →  public/assets/app.js               │
    │   /../../etc/passwd           →  FORBIDDEN                          │
    │   /a..b.txt                   →  FORBIDDEN                          │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
TRAVERSAL CHECK
=============================================================================

Any target containing the two characters ".." is rejected, wherever they
appear. This is a deliberately coarse rule:

    - It runs BEFORE any filesystem access
    - It over-rejects harmless names like "/notes..txt"
    - It does not resolve symlinks inside the root

The target is never URL-decoded, so "%2e%2e" reaches the filesystem as a
literal file name under the root and cannot climb out of it.

=============================================================================
"""


class ForbiddenPathError(Exception):
    """Raised when a request target tries to escape the served root."""

    def __init__(self, target: str):
        super().__init__(f"Forbidden request target: {target!r}")
        self.target = target


class RequestRouter:
    """
    Turns request targets into relative file paths.

    Pure: route() neither reads the filesystem nor keeps state, so one
    router is shared by every connection.

    Usage:
        router = RequestRouter(root_dir="public", index_file="index.html")
        router.route("/")            # "public/index.html"
        router.route("/css/a.css")   # "public/css/a.css"
        router.route("/../secret")   # raises ForbiddenPathError
    """

    def __init__(self, root_dir: str = "public", index_file: str = "index.html"):
        """
        Args:
            root_dir: Directory the targets are resolved against.
            index_file: Document served for the target "/".
        """
        self.root_dir = root_dir.rstrip("/") or "/"
        self.index_file = index_file

    @property
    def default_target(self) -> str:
        return "/" + self.index_file

    def route(self, target: str) -> str:
        """
        Resolve a request target.

        Args:
            target: Raw request target from the request line.

        Returns:
            root_dir joined with the target.

        Raises:
            ForbiddenPathError: If the target contains "..".
        """
        if target == "/":
            target = self.default_target

        if ".." in target:
            raise ForbiddenPathError(target)

        if self.root_dir == "/":
            return target
        return self.root_dir + target

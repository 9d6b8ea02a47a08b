"""
=============================================================================
MIME TYPE RESOLUTION
=============================================================================

Maps file paths to the Content-Type header value sent with them.

=============================================================================
WHY CONTENT-TYPE MATTERS
=============================================================================

Browsers decide what to do with a response from its Content-Type, not from
the URL:

    ┌─────────────────────────────────────────────────────────────────────┐
    │   Content-Type: text/html              → parsed and rendered        │
    │   Content-Type: application/javascript → executed by <script>       │
    │   Content-Type: text/css               → applied by <link>          │
    │   Content-Type: image/png              → decoded and drawn          │
    │   Content-Type: application/octet-stream → offered as a download    │
    └─────────────────────────────────────────────────────────────────────┘

Serve app.js as application/octet-stream and most browsers will refuse to
run it. Getting this table right is what makes a single-page app bundle
actually work.

=============================================================================
LOOKUP RULES
=============================================================================

    1. Take everything from the LAST "." in the path (dot included)
    2. Look it up in MIME_TYPES, CASE-SENSITIVELY
    3. Fall back to application/octet-stream

    "public/index.html"     → ".html"       → text/html
    "public/LOGO.PNG"       → ".PNG"        → application/octet-stream
    "public/README"         → (no dot)      → application/octet-stream
    "public/v1.2/data"      → ".2/data"     → application/octet-stream

The last example is intentional: the extension is taken from the whole path,
not just the file name, so a dotted directory with an extensionless file
falls back to binary.

=============================================================================
"""

from pathlib import Path
from types import MappingProxyType


# =============================================================================
# MIME TYPE TABLE
# =============================================================================
#
# Fixed at import time and exposed read-only; connections on any thread can
# share it without locking.
#
# =============================================================================

MIME_TYPES = MappingProxyType({
    # Documents
    ".html": "text/html",
    ".htm": "text/html",
    ".css": "text/css",
    ".js": "application/javascript",
    ".json": "application/json",
    ".txt": "text/plain",
    ".xml": "application/xml",
    ".pdf": "application/pdf",

    # Images
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
    ".ico": "image/x-icon",
    ".svg": "image/svg+xml",
    ".webp": "image/webp",

    # Fonts
    ".woff": "font/woff",
    ".woff2": "font/woff2",

    # Build output
    ".wasm": "application/wasm",
    ".map": "application/json",     # Source maps
})

# "I don't know what this is, treat as binary"
DEFAULT_MIME_TYPE = "application/octet-stream"


def get_mime_type(path: str | Path) -> str:
    """
    Get the MIME type for a file path.

    Pure function: never touches the filesystem, never raises.

    Args:
        path: File path or name.

    Returns:
        The mapped MIME type, or application/octet-stream.

    Examples:
        >>> get_mime_type("public/style.css")
        'text/css'

        >>> get_mime_type("public/IMAGE.PNG")
        'application/octet-stream'
    """
    path = str(path)
    dot = path.rfind(".")
    if dot == -1:
        return DEFAULT_MIME_TYPE
    return MIME_TYPES.get(path[dot:], DEFAULT_MIME_TYPE)

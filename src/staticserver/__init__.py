"""
=============================================================================
STATICSERVER - Asynchronous HTTP/1.1 Static File Server
=============================================================================

Serves a fixed local asset tree (say, a single-page app's build output)
over plain HTTP, one request per connection, on a single asyncio event
loop.

=============================================================================
PACKAGE STRUCTURE
=============================================================================

    staticserver/
    ├── __init__.py          # This file - package exports
    ├── __main__.py          # CLI entry point (python -m staticserver)
    ├── server.py            # StaticFileServer: lifecycle + wiring
    ├── config.py            # ServerConfig dataclass
    ├── core/                # Sockets and the event loop
    │   ├── listener.py      # Listening socket + accept loop
    │   ├── connection.py    # Per-connection state machine
    │   └── writer.py        # Response serialization, file streaming
    ├── http/                # HTTP protocol components
    │   ├── request.py       # Request parsing
    │   ├── response.py      # Response model and error responses
    │   ├── router.py        # Target → file path, traversal guard
    │   ├── status_codes.py  # HTTP status enum
    │   └── mime_types.py    # Content-Type lookup
    └── handlers/
        └── static.py        # FileResponder: open → 200/404/500

=============================================================================
QUICK START
=============================================================================

    from staticserver import StaticFileServer, ServerConfig

    server = StaticFileServer(ServerConfig(port=8080, root_dir="public"))
    server.start_blocking()        # Ctrl+C to stop

    # or in the background
    server.start_non_blocking()
    ...
    server.stop()

    $ python -m staticserver --port 8080 --root public

=============================================================================
WHAT IT ANSWERS
=============================================================================

    GET /                      → 200, public/index.html
    GET /app.js                → 200, public/app.js, application/javascript
    GET /missing.png           → 404, "File not found\\n"
    GET /../../etc/passwd      → 403, "Forbidden\\n"
    garbage bytes              → 400, "400 Bad Request\\n"

=============================================================================
"""

__version__ = "1.0.0"

from .server import StaticFileServer, ServerAlreadyRunning
from .config import ServerConfig

__all__ = ["StaticFileServer", "ServerAlreadyRunning", "ServerConfig", "__version__"]

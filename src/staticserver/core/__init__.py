"""
=============================================================================
CORE NETWORKING COMPONENTS
=============================================================================

The parts that move bytes between sockets and the HTTP layer:

    listener.py     Listening socket + accept loop
    connection.py   One connection's read → route → respond → close cycle
    writer.py       Serializes a response onto the stream, streaming files

=============================================================================
CONCURRENCY MODEL: ONE EVENT LOOP
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                        asyncio event loop                           │
    │                                                                     │
    │   accept_loop task ──► conn task ──► conn task ──► conn task ...    │
    │                                                                     │
    │   One thread. Tasks take turns at every `await`:                    │
    │     - sock_accept()          waiting for a client                   │
    │     - readuntil()/readexactly()   waiting for request bytes         │
    │     - drain()                waiting for a slow client to read      │
    └─────────────────────────────────────────────────────────────────────┘

No thread per connection, so no locks between connections: a connection's
request, response and file handle belong to its task alone. Opening and
reading files are blocking calls on the loop thread; at the scale of
serving a local asset bundle that's a throughput limit, not a correctness
problem.

The loop runs on the caller's thread (start_blocking) or on one worker
thread (start_non_blocking). See staticserver.server.

=============================================================================
"""

from .listener import Listener
from .connection import ConnectionHandler, ConnectionState
from .writer import ResponseWriter, ResponseWriteError

__all__ = [
    "Listener",             # Listening socket + accept loop
    "ConnectionHandler",    # Per-connection state machine
    "ConnectionState",      # Its states
    "ResponseWriter",       # Response serialization and file streaming
    "ResponseWriteError",   # Body didn't match its Content-Length
]

"""
=============================================================================
LISTENER / ACCEPTOR
=============================================================================

Owns the listening socket and the accept loop. Think of it as the "ears"
of the server: it takes connections off the OS queue and hands each one to
its own task, then goes straight back to listening.

=============================================================================
SOCKET LIFECYCLE (Server Side)
=============================================================================

    1. socket()    Create a TCP socket (AF_INET, SOCK_STREAM)
    2. bind()      Reserve IP:PORT           ← fails if the port is taken
    3. listen()    OS starts queueing incoming connections (backlog)
    4. accept()    Take one connection off the queue → NEW socket
    5. close()     Stop listening

Steps 1-3 run synchronously in bind(), so "address already in use"
reaches whoever called start(). Step 4 runs forever in accept_loop().

=============================================================================
RE-ARM BEFORE PROCESSING
=============================================================================

    while True:
        client = await loop.sock_accept(sock)     ← suspension point
        loop.create_task(handle(client))          ← SCHEDULED, not run
        (back to sock_accept)

create_task() only schedules the handler. The loop comes straight back to
sock_accept() before the new task takes its first step, so a slow or
broken connection can never delay the next accept.

=============================================================================
ACCEPT ERRORS
=============================================================================

    EMFILE / ENFILE / ENOBUFS (out of descriptors or memory)
        → log, back off briefly, keep accepting
    listener closed by stop()
        → end the loop quietly

=============================================================================
"""

import asyncio
import socket
import logging
from typing import Awaitable, Callable, Optional, Set, Tuple

from ..config import ServerConfig


logger = logging.getLogger(__name__)

ConnectionCallback = Callable[[socket.socket, Tuple[str, int]], Awaitable[None]]

# Pause after a failed accept() so a persistent error (EMFILE) doesn't spin
ACCEPT_ERROR_BACKOFF = 0.1


class Listener:
    """
    Listening socket plus accept loop.

    ┌─────────────────────────────────────────────────────────────────────┐
    │    bind()           socket → setsockopt → bind → listen             │
    │    accept_loop()    sock_accept → create_task(callback) → repeat    │
    │    close()          close the listening socket (ends the loop)      │
    └─────────────────────────────────────────────────────────────────────┘

    Usage:
        async def handle(sock, address): ...

        listener = Listener(config, handle)
        listener.bind()
        await listener.accept_loop()    # until listener.close()
    """

    def __init__(self, config: ServerConfig, handle_connection: ConnectionCallback):
        """
        Args:
            config: Server configuration (host, port, backlog).
            handle_connection: Coroutine function run as a new task for
                               every accepted (socket, address).
        """
        self.config = config
        self._handle_connection = handle_connection

        self._socket: Optional[socket.socket] = None
        self._closed = False

        # Strong references: the event loop only keeps weak ones to tasks
        self.pending: Set[asyncio.Task] = set()

    @property
    def is_listening(self) -> bool:
        return self._socket is not None and not self._closed

    @property
    def address(self) -> Tuple[str, int]:
        """The bound (ip, port); reflects the real port when port=0."""
        if self.is_listening:
            return self._socket.getsockname()[:2]
        return (self.config.host, self.config.port)

    def _create_socket(self) -> socket.socket:
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)

        # SO_REUSEADDR: rebind right after a restart, despite TIME_WAIT
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)

        # TCP_NODELAY: don't hold small writes (headers) back for Nagle
        sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)

        # The event loop requires non-blocking sockets
        sock.setblocking(False)
        return sock

    def bind(self) -> None:
        """
        Create, bind and listen.

        Raises:
            OSError: If the address can't be bound (in use, no permission).
        """
        sock = self._create_socket()

        try:
            sock.bind((self.config.host, self.config.port))
            sock.listen(self.config.backlog)
        except OSError as e:
            sock.close()
            logger.error(f"Failed to bind to {self.config.host}:{self.config.port}: {e}")
            raise

        self._socket = sock
        self._closed = False
        host, port = self.address
        logger.info(f"Listening on {host}:{port}")

    async def accept_loop(self) -> None:
        """
        Accept connections until close() is called.

        Each accepted connection runs in its own task; this coroutine
        takes no further part in it.
        """
        if self._socket is None:
            raise RuntimeError("Listener is not bound")

        loop = asyncio.get_running_loop()

        while not self._closed:
            try:
                client, address = await loop.sock_accept(self._socket)
            except OSError as e:
                if self._closed:
                    break
                logger.error(f"Accept error: errno {e.errno}: {e.strerror or e}")
                await asyncio.sleep(ACCEPT_ERROR_BACKOFF)
                continue

            logger.debug(f"Accepted connection from {address[0]}:{address[1]}")

            task = loop.create_task(self._handle_connection(client, address))
            self.pending.add(task)
            task.add_done_callback(self.pending.discard)

        logger.debug("Accept loop finished")

    def close(self) -> None:
        """
        Stop listening. Idempotent; connections already accepted are untouched.

        Cancel the accept_loop() task first when it is waiting in
        sock_accept(), so the loop unregisters the descriptor before it is
        closed.
        """
        if self._closed:
            return
        self._closed = True

        if self._socket is not None:
            try:
                self._socket.close()
            except OSError:
                pass  # Already closed
            logger.info("Listener closed")

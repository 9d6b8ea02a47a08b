"""
=============================================================================
STATIC FILE SERVER
=============================================================================

The top-level server: wires the components together and owns the
lifecycle (start blocking, start in the background, stop).

=============================================================================
HOW A REQUEST FLOWS THROUGH THE SERVER
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │   Browser                                                           │
    │      │  TCP connect                                                 │
    │      ▼                                                              │
    │   Listener.accept_loop()      sock_accept → create_task → re-arm    │
    │      │                                                              │
    │      ▼                                                              │
    │   ConnectionHandler.run()                                           │
    │      ├─► read_request()       readuntil(\\r\\n\\r\\n) + body            │
    │      ├─► RequestRouter        "/" → public/index.html, ".." → 403   │
    │      ├─► FileResponder        open() → 200 / 404 / 500              │
    │      ├─► ResponseWriter       head + streamed file                  │
    │      └─► close()              FIN, drain, close                     │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
LIFECYCLE
=============================================================================

    STOPPED ──start_blocking()──────► RUNNING (loop on the caller's thread)
    STOPPED ──start_non_blocking()──► RUNNING (loop on a worker thread)
    RUNNING ──stop()────────────────► STOPPED

    - Starting while RUNNING raises ServerAlreadyRunning, changes nothing.
    - A port that can't be bound raises OSError from start, stays STOPPED.
    - stop() while STOPPED does nothing.
    - stop() may be called from any thread. It stops accepting, stops the
      loop, waits for the loop's thread to finish and returns STOPPED.
    - Connections still in flight are cancelled and their sockets closed.
      There is no graceful drain.

Each start gets a fresh event loop; the previous one was closed on stop.

=============================================================================
"""

import asyncio
import logging
import signal
import socket
import threading
from typing import Optional, Tuple

from .config import ServerConfig
from .core import Listener, ConnectionHandler, ResponseWriter
from .handlers import FileResponder
from .http import RequestParser, RequestRouter


logger = logging.getLogger(__name__)


class ServerAlreadyRunning(RuntimeError):
    """Raised when start is called on a running server."""


class StaticFileServer:
    """
    Asynchronous HTTP/1.1 static file server.

    =========================================================================
    USAGE
    =========================================================================

        # Foreground (e.g. from a CLI): blocks until Ctrl+C / stop()
        server = StaticFileServer(ServerConfig(port=8080, root_dir="public"))
        server.start_blocking()

        # Background (e.g. in tests or an embedding app)
        server = StaticFileServer(ServerConfig(port=0))
        server.start_non_blocking()
        host, port = server.address
        ...
        server.stop()

        # Or as a context manager (background)
        with StaticFileServer(config) as server:
            ...

    =========================================================================
    COMPONENTS
    =========================================================================

    - ServerConfig: configuration (validated here, fail-fast)
    - Listener: listening socket and accept loop
    - RequestParser / RequestRouter / FileResponder / ResponseWriter:
      stateless, shared by all connections
    - ConnectionHandler: one per connection

    =========================================================================
    """

    def __init__(self, config: Optional[ServerConfig] = None):
        """
        Args:
            config: Server configuration. Defaults serve ./public on :8080.

        Raises:
            ValueError: If the configuration is invalid.
        """
        self.config = config or ServerConfig()
        self.config.validate()

        # Shared, stateless request pipeline
        self._parser = RequestParser(max_body_size=self.config.max_body_size)
        self._router = RequestRouter(self.config.root_dir, self.config.index_file)
        self._responder = FileResponder()
        self._response_writer = ResponseWriter(self.config.server_name, self.config.chunk_size)

        # ─────────────────────────────────────────────────────────────────
        # SERVER STATE (guarded by _state_lock)
        # ─────────────────────────────────────────────────────────────────
        self._state_lock = threading.RLock()
        self._running = False
        self._stopping = False

        self._listener: Optional[Listener] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._accept_task: Optional[asyncio.Task] = None
        self._loop_thread: Optional[threading.Thread] = None
        self._worker: Optional[threading.Thread] = None
        self._fatal_error: Optional[BaseException] = None

        # Set whenever no loop is running
        self._stopped = threading.Event()
        self._stopped.set()

        self._original_handlers: dict = {}

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def address(self) -> Tuple[str, int]:
        """Bound (ip, port) while running; the configured one otherwise."""
        listener = self._listener
        if listener is not None and listener.is_listening:
            return listener.address
        return (self.config.host, self.config.port)

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def start_blocking(self) -> None:
        """
        Start serving on the calling thread.

        Blocks until stop() is called (from another thread or a signal
        handler) or the accept loop fails.

        Raises:
            ServerAlreadyRunning: If already running.
            OSError: If the port can't be bound.
            Exception: Whatever fatally ended the accept loop.
        """
        with self._state_lock:
            self._prepare()
            self._loop_thread = threading.current_thread()

        install_signals = (
            self.config.handle_signals
            and threading.current_thread() is threading.main_thread()
        )
        if install_signals:
            self._setup_signals()

        try:
            self._run_loop()
        finally:
            if install_signals:
                self._restore_signals()

        if self._fatal_error is not None:
            raise self._fatal_error

    def start_non_blocking(self) -> None:
        """
        Start serving on a background worker thread.

        Returns as soon as the worker has been launched; the socket is
        already listening at that point, so clients can connect right away.

        Raises:
            ServerAlreadyRunning: If already running.
            OSError: If the port can't be bound.
        """
        with self._state_lock:
            self._prepare()
            self._worker = threading.Thread(
                target=self._run_in_worker,
                name="staticserver-io",
                daemon=True,
            )
            self._loop_thread = self._worker
            self._worker.start()

    def stop(self) -> None:
        """
        Stop the server. No-op if it isn't running.

        Stops accepting, stops the event loop and waits for the loop's
        thread to finish. Called from the loop's own thread (a signal
        handler under start_blocking), it only requests the stop;
        start_blocking() returns once teardown is done.
        """
        with self._state_lock:
            if not self._running:
                return

            loop = self._loop
            loop_thread = self._loop_thread
            worker = self._worker

            if not self._stopping:
                self._stopping = True
                logger.info("Stopping server...")
                try:
                    loop.call_soon_threadsafe(self._halt)
                except RuntimeError:
                    pass  # Loop already closed by a fatal error

        if threading.current_thread() is loop_thread:
            return

        self._stopped.wait()
        if worker is not None:
            worker.join()

    def __enter__(self) -> "StaticFileServer":
        self.start_non_blocking()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.stop()
        return False

    # =========================================================================
    # INTERNALS: EVENT LOOP
    # =========================================================================

    def _prepare(self) -> None:
        """
        Bind and create the loop. Caller holds _state_lock.

        Nothing is changed if this raises.
        """
        if self._running:
            raise ServerAlreadyRunning("Server is already running")

        self._setup_logging()

        listener = Listener(self.config, self._handle_connection)
        listener.bind()

        try:
            loop = asyncio.new_event_loop()
            accept_task = loop.create_task(listener.accept_loop())
        except Exception:
            listener.close()
            raise
        accept_task.add_done_callback(self._on_accept_done)

        self._listener = listener
        self._loop = loop
        self._accept_task = accept_task
        self._fatal_error = None
        self._stopping = False
        self._stopped.clear()
        self._running = True

        host, port = listener.address
        logger.info(f"Serving {self.config.root_dir!r} on http://{host}:{port}")

    def _run_in_worker(self) -> None:
        self._run_loop()
        if self._fatal_error is not None:
            logger.error(f"Server error: {self._fatal_error}")

    def _run_loop(self) -> None:
        """Drive the event loop until _halt() or a fatal error, then tear down."""
        loop = self._loop
        asyncio.set_event_loop(loop)
        try:
            loop.run_forever()
        finally:
            self._teardown()

    def _halt(self) -> None:
        """Runs on the loop: stop accepting and stop the loop."""
        if self._accept_task is not None and not self._accept_task.done():
            self._accept_task.cancel()
        self._loop.stop()

    def _on_accept_done(self, task: asyncio.Task) -> None:
        if task.cancelled():
            return

        error = task.exception()
        if error is not None:
            logger.error(f"Accept loop failed: {error!r}")
            self._fatal_error = error
        self._loop.stop()

    def _teardown(self) -> None:
        """
        Cancel whatever is still running, close the listener and the loop.

        Cancelled connection tasks still run their close() path, so no
        socket or file handle is leaked.
        """
        loop = self._loop
        try:
            pending = asyncio.all_tasks(loop)
            for task in pending:
                task.cancel()
            if pending:
                logger.debug(f"Cancelling {len(pending)} pending task(s)")
                loop.run_until_complete(asyncio.gather(*pending, return_exceptions=True))
            loop.run_until_complete(loop.shutdown_asyncgens())
        finally:
            self._listener.close()
            asyncio.set_event_loop(None)
            loop.close()

            with self._state_lock:
                self._running = False
                self._stopping = False
                self._worker = None
                self._loop_thread = None
            self._stopped.set()
            logger.info("Server stopped")

    # =========================================================================
    # INTERNALS: CONNECTIONS
    # =========================================================================

    async def _handle_connection(self, sock: socket.socket, address: Tuple[str, int]) -> None:
        """Run one accepted connection (a task created by the Listener)."""
        try:
            reader, writer = await asyncio.open_connection(
                sock=sock,
                limit=self.config.max_header_size,
            )
        except OSError as e:
            logger.error(f"Could not set up connection from {address[0]}:{address[1]}: {e}")
            sock.close()
            return
        except asyncio.CancelledError:
            sock.close()
            raise

        handler = ConnectionHandler(
            reader,
            writer,
            router=self._router,
            responder=self._responder,
            response_writer=self._response_writer,
            parser=self._parser,
            read_timeout=self.config.read_timeout,
        )
        await handler.run()

    # =========================================================================
    # INTERNALS: PROCESS INTEGRATION
    # =========================================================================

    def _setup_logging(self) -> None:
        """Configure logging based on config."""
        level = getattr(logging, self.config.log_level.upper(), logging.INFO)

        # No-op if the application already configured the root logger
        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

        logging.getLogger("staticserver").setLevel(level)

    def _setup_signals(self) -> None:
        """
        Stop on SIGTERM (docker stop, systemd, kill) and SIGINT (Ctrl+C).

        The handler runs on the main thread, which is the loop thread under
        start_blocking(), so stop() only schedules the halt.
        """
        def shutdown_handler(signum, frame):
            signal_name = signal.Signals(signum).name
            logger.info(f"Received {signal_name}, initiating shutdown...")
            self.stop()

        self._original_handlers[signal.SIGTERM] = signal.signal(signal.SIGTERM, shutdown_handler)
        self._original_handlers[signal.SIGINT] = signal.signal(signal.SIGINT, shutdown_handler)

    def _restore_signals(self) -> None:
        for sig, handler in self._original_handlers.items():
            signal.signal(sig, handler)
        self._original_handlers.clear()

"""
=============================================================================
TASK SERVER
=============================================================================

Wires the pieces together and owns the request lifecycle.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    TASK SERVER ARCHITECTURE                         │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │                        ┌─────────────────┐                          │
    │                        │   TaskServer    │                          │
    │                        └────────┬────────┘                          │
    │            ┌────────────────────┼────────────────────┐              │
    │            ▼                    ▼                    ▼              │
    │    ┌──────────────┐    ┌──────────────┐    ┌──────────────┐        │
    │    │ SocketServer │    │  ThreadPool  │    │    Router    │        │
    │    │  (accept)    │    │ (optional)   │    │  (prefixes)  │        │
    │    └──────────────┘    └──────────────┘    └──────┬───────┘        │
    │                                                   ▼                 │
    │                                            ┌──────────────┐        │
    │                                            │ TaskHandler  │        │
    │                                            └──────┬───────┘        │
    │                                                   ▼                 │
    │                                            ┌──────────────┐        │
    │                                            │  TaskStore   │──► PG  │
    │                                            └──────────────┘        │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
REQUEST LIFECYCLE
=============================================================================

    1. STARTUP
       └── CREATE TABLE IF NOT EXISTS; failure aborts the process

    2. ACCEPT
       └── SocketServer accepts a TCP connection

    3. DISPATCH
       ├── workers = 0: handled inline, next accept waits for it
       └── workers > 0: submitted to the ThreadPool

    4. READ
       └── one recv() of up to buffer_size bytes, lossy UTF-8 decode

    5. ROUTE
       └── first matching prefix → handler, else 404

    6. HANDLE
       └── one store call; any exception → 500 "Internal error"

    7. WRITE + CLOSE
       └── status-line constant + body, then close

A failure while handling one connection is logged and ends that
connection only. The accept loop keeps running.

=============================================================================
"""

import logging
import time
from typing import Optional, Tuple

from .config import ServerConfig
from .core import Connection, SocketServer, ThreadPool
from .errors import TaskServerError
from .handlers import TaskHandler
from .http import HTTPRequest, HTTPResponse, Router, internal_error, parse_request
from .store import TaskStore


logger = logging.getLogger(__name__)
access_logger = logging.getLogger("taskserver.access")


class TaskServer:
    """
    The task CRUD server.

    Usage:
        config = ServerConfig.from_env()
        server = TaskServer(config)
        server.run()  # Blocks until Ctrl+C or shutdown()

    The store is injectable so tests can run without PostgreSQL:

        server = TaskServer(config, store=FakeTaskStore())
    """

    def __init__(self, config: ServerConfig, store: Optional[TaskStore] = None):
        """
        Args:
            config: Server configuration. Validated here, before anything
                    touches the network or the database.
            store: Task store. Defaults to a TaskStore on config.database_url.

        Raises:
            ValueError: Invalid configuration.
        """
        config.validate()
        self.config = config

        self.store = store if store is not None else TaskStore(config.database_url)

        self._router = TaskHandler(self.store).register(Router())
        self._socket_server = SocketServer(config)

        self._thread_pool: Optional[ThreadPool] = None
        if config.workers > 0:
            self._thread_pool = ThreadPool(
                min_workers=config.workers,
                max_workers=config.max_workers,
            )

    @property
    def router(self) -> Router:
        return self._router

    @property
    def address(self) -> Tuple[str, int]:
        return self._socket_server.address

    # =========================================================================
    # SERVER LIFECYCLE
    # =========================================================================

    def run(self):
        """
        Initialize the schema and serve until stopped (blocking).

        Raises:
            SchemaInitError: The tasks table could not be created.
            OSError: The listen address could not be bound.
        """
        self._setup_logging()

        self.store.ensure_schema()

        for route in self._router.routes():
            logger.debug(f"Route {route.prefix!r} -> {route.name}")

        if self._thread_pool is not None:
            self._thread_pool.start()
        else:
            logger.info("Handling connections sequentially (workers=0)")

        try:
            self._socket_server.start(self._handle_connection)
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")
        finally:
            self._stop()

    def shutdown(self):
        """Stop accepting connections. run() returns shortly after."""
        self._socket_server.shutdown()

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """Block until the listening socket is bound. For tests and embedding."""
        return self._socket_server.wait_until_ready(timeout)

    def _setup_logging(self):
        level = getattr(logging, self.config.log_level.upper(), logging.INFO)

        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        logging.getLogger("taskserver").setLevel(level)

    def _stop(self):
        if self._thread_pool is not None:
            abandoned = self._thread_pool.shutdown(wait=True, timeout=5.0)
            # Never answered; close them so the clients see EOF.
            for job in abandoned:
                for arg in job.args:
                    if isinstance(arg, Connection):
                        arg.close()
        logger.info("Server stopped")

    # =========================================================================
    # REQUEST HANDLING
    # =========================================================================

    def _handle_connection(self, conn: Connection):
        """Called by the accept loop for every new connection."""
        if self._thread_pool is None:
            self._process_connection(conn)
            return

        self._thread_pool.submit(self._process_connection, args=(conn,))

    def _process_connection(self, conn: Connection):
        """Read one request, answer it, close. Runs inline or on a worker."""
        with conn:
            start_time = time.time()

            try:
                raw = conn.read_request()
            except OSError as e:
                logger.error(f"[{conn.id}] Unable to read stream: {e}")
                return

            if not raw:
                logger.debug(f"[{conn.id}] Client closed without sending a request")
                return

            request = parse_request(raw)
            response = self.handle_request(request)

            conn.send_response(response.to_bytes())

            duration_ms = (time.time() - start_time) * 1000
            access_logger.info(
                f'{conn.client_ip} "{request.request_line}" '
                f"{int(response.status)} {len(response.body)} {duration_ms:.2f}ms"
            )

    def handle_request(self, request: HTTPRequest) -> HTTPResponse:
        """
        Route a request and turn every failure into the static 500.

        This is the whole request-to-response path without any sockets,
        which also makes it the natural seam for tests.
        """
        try:
            return self._router.handle(request)
        except TaskServerError as e:
            logger.warning(f'"{request.request_line}" failed: {e}')
        except Exception as e:
            logger.exception(f'"{request.request_line}" raised unexpectedly: {e}')
        return internal_error()

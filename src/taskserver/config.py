"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

Centralized configuration for the task server.

The database connection string is an ordinary field on a config object
that the entry point fills in at runtime and passes down explicitly.
Nothing reads the environment after startup.

=============================================================================
CONFIGURATION SOURCES
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    CONFIGURATION HIERARCHY                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   Priority (highest to lowest):                                     │
    │                                                                      │
    │   1. Command-line arguments                                         │
    │      └── python -m taskserver --port 3000                          │
    │                                                                      │
    │   2. Environment variables (a .env file is loaded first)            │
    │      └── DATABASE_URL=postgresql://... python -m taskserver        │
    │                                                                      │
    │   3. Default values (in this dataclass)                            │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv


@dataclass
class ServerConfig:
    """
    Configuration for the task server.

    NETWORK SETTINGS
    - host, port, backlog, buffer_size, timeout

    STORE
    - database_url

    CONCURRENCY
    - workers (0 = one connection at a time on the accept loop)

    LOGGING
    - log_level
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    host: str = "0.0.0.0"
    """IP address to bind to. All interfaces by default."""

    port: int = 8080
    """TCP port to listen on. 0 lets the OS pick one (tests)."""

    backlog: int = 128
    """Maximum number of queued connections before the OS refuses new ones."""

    buffer_size: int = 1024
    """
    Size of the single read performed per connection, in bytes.
    Anything the client sends past this is never seen by the server.
    """

    timeout: Optional[float] = None
    """
    Socket timeout for client reads and writes in seconds.
    None = block forever, so a stalled client holds its worker.
    """

    # ─────────────────────────────────────────────────────────────────────
    # STORE
    # ─────────────────────────────────────────────────────────────────────

    database_url: str = ""
    """PostgreSQL connection string, e.g. postgresql://user:pw@host:5432/db"""

    # ─────────────────────────────────────────────────────────────────────
    # CONCURRENCY
    # ─────────────────────────────────────────────────────────────────────

    workers: int = 0
    """
    Worker threads handling accepted connections.
    0 (the default) handles every connection inline on the accept loop, one
    at a time, so a client that sends nothing blocks everyone behind it.
    The pool grows up to 2x this under load.
    """

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "INFO"
    """Logging level (DEBUG, INFO, WARNING, ERROR)."""

    @property
    def max_workers(self) -> int:
        return self.workers * 2

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """
        Create configuration from environment variables.

        =====================================================================
        ENVIRONMENT VARIABLES
        =====================================================================

        DATABASE_URL        PostgreSQL connection string (required)
        TASKS_HOST          Server host (default: 0.0.0.0)
        TASKS_PORT          Server port (default: 8080)
        TASKS_BUFFER_SIZE   Read size per connection (default: 1024)
        TASKS_WORKERS       Worker threads, 0 = sequential (default: 0)
        TASKS_TIMEOUT       Client socket timeout in seconds (default: none)
        TASKS_LOG_LEVEL     Logging level (default: INFO)

        A .env file in the working directory is loaded first; variables
        already set in the environment win over it.

        =====================================================================
        """
        load_dotenv()

        timeout = os.getenv("TASKS_TIMEOUT")

        return cls(
            host=os.getenv("TASKS_HOST", "0.0.0.0"),
            port=int(os.getenv("TASKS_PORT", "8080")),
            buffer_size=int(os.getenv("TASKS_BUFFER_SIZE", "1024")),
            workers=int(os.getenv("TASKS_WORKERS", "0")),
            timeout=float(timeout) if timeout else None,
            database_url=os.getenv("DATABASE_URL", ""),
            log_level=os.getenv("TASKS_LOG_LEVEL", "INFO"),
        )

    def validate(self) -> None:
        """
        Validate configuration values.

        Called once at startup so a bad value fails before the socket is
        bound or the database is touched.
        """
        if not self.database_url:
            raise ValueError("database_url is required (set DATABASE_URL or pass --database-url)")

        if not 0 <= self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")

        if self.workers < 0:
            raise ValueError("workers must be >= 0")

        if self.buffer_size < 1:
            raise ValueError("buffer_size must be >= 1")

        if self.backlog < 1:
            raise ValueError("backlog must be >= 1")

        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be > 0")

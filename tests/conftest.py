"""
pytest configuration and fixtures.

No test needs a running PostgreSQL:
- FakeDatabase stands in for psycopg.connect and records every statement,
  for testing TaskStore's SQL.
- FakeTaskStore is an in-memory TaskStore, for testing handlers and the
  server end to end.
"""

import socket
import threading
from typing import Any, Dict, Generator, List, Optional, Sequence, Tuple
import pytest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from taskserver import ServerConfig, Task, TaskServer, TaskStore
from taskserver.errors import StoreError


# =============================================================================
# FAKE PSYCOPG CONNECTION
# =============================================================================

class FakeCursor:
    def __init__(self, rows: List[Tuple], rowcount: int):
        self._rows = rows
        self.rowcount = rowcount

    def fetchone(self) -> Optional[Tuple]:
        return self._rows[0] if self._rows else None

    def fetchall(self) -> List[Tuple]:
        return list(self._rows)


class FakePgConnection:
    """Mimics a psycopg connection used as a context manager."""

    def __init__(self, db: "FakeDatabase"):
        self.db = db

    def __enter__(self) -> "FakePgConnection":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is None:
            self.db.commits += 1
        else:
            self.db.rollbacks += 1
        self.db.closed += 1
        return False

    def execute(self, query: str, params: Optional[Sequence[Any]] = None) -> FakeCursor:
        if self.db.execute_error is not None:
            raise self.db.execute_error
        self.db.statements.append((" ".join(query.split()), tuple(params) if params else ()))
        return FakeCursor(self.db.rows, self.db.rowcount)


class FakeDatabase:
    """
    Drop-in for psycopg.connect.

    Set rows / rowcount to control what the next statement returns, and
    connect_error / execute_error to make it fail.
    """

    def __init__(self):
        self.urls: List[str] = []
        self.statements: List[Tuple[str, Tuple]] = []
        self.rows: List[Tuple] = []
        self.rowcount = 0
        self.connect_error: Optional[Exception] = None
        self.execute_error: Optional[Exception] = None
        self.commits = 0
        self.rollbacks = 0
        self.closed = 0

    def connect(self, url: str) -> FakePgConnection:
        if self.connect_error is not None:
            raise self.connect_error
        self.urls.append(url)
        return FakePgConnection(self)

    @property
    def last_statement(self) -> Tuple[str, Tuple]:
        return self.statements[-1]


# =============================================================================
# FAKE TASK STORE
# =============================================================================

class FakeTaskStore(TaskStore):
    """In-memory TaskStore. Thread-safe so it works behind the worker pool."""

    def __init__(self):
        super().__init__("postgresql://fake")
        self._tasks: Dict[int, Task] = {}
        self._next_id = 1
        self._lock = threading.Lock()
        self.schema_created = False
        self.fail_with: Optional[Exception] = None

    def _check(self):
        if self.fail_with is not None:
            raise self.fail_with

    def ensure_schema(self) -> None:
        self._check()
        self.schema_created = True

    def create(self, task: Task) -> None:
        self._check()
        with self._lock:
            self._tasks[self._next_id] = Task(task.title, task.description, id=self._next_id)
            self._next_id += 1

    def get(self, task_id: int) -> Optional[Task]:
        self._check()
        with self._lock:
            return self._tasks.get(task_id)

    def list(self) -> List[Task]:
        self._check()
        with self._lock:
            return list(self._tasks.values())

    def update(self, task_id: int, task: Task) -> int:
        self._check()
        with self._lock:
            if task_id not in self._tasks:
                return 0
            self._tasks[task_id] = Task(task.title, task.description, id=task_id)
            return 1

    def delete(self, task_id: int) -> int:
        self._check()
        with self._lock:
            return 1 if self._tasks.pop(task_id, None) else 0


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def fake_db() -> FakeDatabase:
    return FakeDatabase()


@pytest.fixture
def store(fake_db: FakeDatabase) -> TaskStore:
    """A real TaskStore talking to the fake database."""
    return TaskStore("postgresql://tasks@localhost/tasks", connect=fake_db.connect)


@pytest.fixture
def fake_store() -> FakeTaskStore:
    return FakeTaskStore()


@pytest.fixture
def failing_store() -> FakeTaskStore:
    """A store whose every call fails like an unreachable database."""
    store = FakeTaskStore()
    store.fail_with = StoreError("OperationalError: connection refused")
    return store


@pytest.fixture
def config() -> ServerConfig:
    """Default test server configuration."""
    return ServerConfig(
        host="127.0.0.1",
        port=0,
        database_url="postgresql://tasks@localhost/tasks",
        workers=0,
        log_level="WARNING",
    )


@pytest.fixture
def server(config: ServerConfig, fake_store: FakeTaskStore) -> TaskServer:
    """A TaskServer that is never started; use handle_request() directly."""
    return TaskServer(config, store=fake_store)


@pytest.fixture
def free_port() -> int:
    """Get a free port for testing."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(('127.0.0.1', 0))
        return s.getsockname()[1]


# =============================================================================
# LIVE SERVER
# =============================================================================

class RunningServer:
    """TaskServer running in a background thread."""

    def __init__(self, server: TaskServer, port: int):
        self.server = server
        self.port = port
        self._thread: Optional[threading.Thread] = None

    def start(self):
        self._thread = threading.Thread(target=self.server.run, daemon=True)
        self._thread.start()

        if not self.server.wait_until_ready(timeout=5.0):
            raise RuntimeError("Server failed to start")

    def stop(self):
        self.server.shutdown()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=5.0)

    def send(self, raw: bytes) -> bytes:
        """Send raw bytes, return everything received until the server closes."""
        with socket.create_connection(("127.0.0.1", self.port), timeout=5.0) as sock:
            sock.sendall(raw)
            chunks = []
            while True:
                chunk = sock.recv(4096)
                if not chunk:
                    break
                chunks.append(chunk)
        return b"".join(chunks)


def start_server(config: ServerConfig, store: TaskStore, port: int, workers: int) -> RunningServer:
    config.port = port
    config.workers = workers
    running = RunningServer(TaskServer(config, store=store), port)
    running.start()
    return running


@pytest.fixture
def live_server(config: ServerConfig, fake_store: FakeTaskStore, free_port: int) -> Generator[RunningServer, None, None]:
    """Sequential server (workers=0) on a free port."""
    running = start_server(config, fake_store, free_port, workers=0)
    yield running
    running.stop()


@pytest.fixture
def pooled_server(config: ServerConfig, fake_store: FakeTaskStore, free_port: int) -> Generator[RunningServer, None, None]:
    """Server with a two-worker thread pool on a free port."""
    running = start_server(config, fake_store, free_port, workers=2)
    yield running
    running.stop()


@pytest.fixture
def default_live_server(fake_store: FakeTaskStore, free_port: int) -> Generator[RunningServer, None, None]:
    """Server with every setting left at its default, except the bind address."""
    config = ServerConfig(
        host="127.0.0.1",
        port=free_port,
        database_url="postgresql://tasks@localhost/tasks",
        log_level="WARNING",
    )
    running = RunningServer(TaskServer(config, store=fake_store), free_port)
    running.start()
    yield running
    running.stop()

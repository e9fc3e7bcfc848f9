"""
=============================================================================
WORKER THREAD POOL
=============================================================================

Lets the accept loop hand a connection off and go straight back to
accept(), instead of serving one client at a time.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                         ThreadPool                                   │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   accept loop ──submit(conn)──►  [job] [job] [job] ...   bounded    │
    │                                          │                queue     │
    │                                          │ get()                     │
    │                                          ▼                           │
    │            Worker-0   Worker-1   Worker-2   Worker-3   ...          │
    │            (min_workers started up front, up to max_workers)        │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

A connection is handled start to finish by exactly one worker, so each
client still sees a plain request → response exchange. Workers share
nothing but the queue: every store call opens its own database
connection.

When the queue is full, submit() blocks (the accept loop stops accepting)
rather than rejecting. Excess clients wait in the kernel's listen backlog.

Shutdown uses the poison-pill pattern: one None per worker is queued and
each worker exits when it dequeues one.

=============================================================================
"""

import threading
import queue
import time
import logging
from typing import Any, Callable, Dict, List, Optional
from dataclasses import dataclass, field
from enum import Enum


logger = logging.getLogger(__name__)


class WorkerState(Enum):
    IDLE = "idle"
    BUSY = "busy"
    STOPPED = "stopped"


@dataclass
class Job:
    """A deferred call: func(*args, **kwargs) on some worker."""

    func: Callable[..., Any]
    args: tuple = ()
    kwargs: Dict[str, Any] = field(default_factory=dict)
    submitted_at: float = field(default_factory=time.time)


class Worker(threading.Thread):
    """
    Daemon thread that runs jobs from the shared queue.

    A job that raises is logged; the worker keeps going.
    """

    def __init__(self, job_queue: "queue.Queue[Optional[Job]]", worker_id: int, idle_timeout: float = 60.0):
        super().__init__(name=f"Worker-{worker_id}", daemon=True)

        self.job_queue = job_queue
        self.worker_id = worker_id
        self.idle_timeout = idle_timeout

        self.state = WorkerState.IDLE
        self._stop_event = threading.Event()


    def run(self):
        logger.debug(f"Worker {self.worker_id} started")

        while not self._stop_event.is_set():
            try:
                job = self.job_queue.get(timeout=self.idle_timeout)
            except queue.Empty:
                continue

            try:
                if job is None:
                    break  # Poison pill
                self._execute(job)
            finally:
                self.job_queue.task_done()

        self.state = WorkerState.STOPPED
        logger.debug(f"Worker {self.worker_id} stopped")

    def _execute(self, job: Job):
        self.state = WorkerState.BUSY
        start_time = time.time()

        try:
            job.func(*job.args, **job.kwargs)
            logger.debug(
                f"Worker {self.worker_id} finished job in {time.time() - start_time:.3f}s "
                f"(queued {start_time - job.submitted_at:.3f}s)"
            )
        except Exception as e:
            logger.exception(
                f"Worker {self.worker_id} job failed after {time.time() - start_time:.3f}s: {e}"
            )
        finally:
            self.state = WorkerState.IDLE

    def stop(self):
        self._stop_event.set()


class ThreadPool:
    """
    Fixed-minimum, bounded-maximum pool of worker threads.

    Usage:
        pool = ThreadPool(min_workers=4, max_workers=8)
        pool.start()
        pool.submit(handle_connection, args=(conn,))
        pool.shutdown()
    """

    def __init__(
        self,
        min_workers: int = 4,
        max_workers: int = 8,
        queue_size: int = 100,
        idle_timeout: float = 60.0,
    ):
        """
        Args:
            min_workers: Threads started by start() and kept for the pool's life.
            max_workers: Upper bound reached by scaling up under load.
            queue_size: Jobs that may wait for a worker before submit() blocks.
            idle_timeout: How often an idle worker wakes to check for stop().
        """
        if min_workers < 1:
            raise ValueError("min_workers must be >= 1")
        if max_workers < min_workers:
            raise ValueError("max_workers must be >= min_workers")

        self.min_workers = min_workers
        self.max_workers = max_workers
        self.idle_timeout = idle_timeout

        self._job_queue: "queue.Queue[Optional[Job]]" = queue.Queue(maxsize=queue_size)
        self._workers: List[Worker] = []
        self._lock = threading.Lock()  # Guards _workers
        self._started = False
        self._shutting_down = False
        self._next_worker_id = 0

    def start(self):
        """Start min_workers threads. Calling it again is a no-op."""
        if self._started:
            return

        logger.info(f"Starting thread pool with {self.min_workers} workers (max {self.max_workers})")

        with self._lock:
            for _ in range(self.min_workers):
                self._add_worker()

        self._started = True

    def _add_worker(self) -> Worker:
        # Caller holds self._lock.
        worker = Worker(
            job_queue=self._job_queue,
            worker_id=self._next_worker_id,
            idle_timeout=self.idle_timeout,
        )
        self._next_worker_id += 1
        self._workers.append(worker)
        worker.start()
        return worker

    def submit(
        self,
        func: Callable[..., Any],
        args: tuple = (),
        kwargs: Optional[Dict[str, Any]] = None,
        block: bool = True,
        queue_timeout: Optional[float] = None,
    ) -> bool:
        """
        Queue func(*args, **kwargs) for a worker.

        Returns:
            True if queued, False if the queue stayed full (only possible
            with block=False or a queue_timeout).

        Raises:
            RuntimeError: Pool not started, or shutting down.
        """
        if not self._started:
            raise RuntimeError("Thread pool not started")
        if self._shutting_down:
            raise RuntimeError("Thread pool is shutting down")

        job = Job(func=func, args=args, kwargs=kwargs or {})

        try:
            self._job_queue.put(job, block=block, timeout=queue_timeout)
        except queue.Full:
            return False

        self._maybe_scale_up()
        return True

    def _maybe_scale_up(self):
        """Add a worker when every worker is busy and jobs are waiting."""
        with self._lock:
            if len(self._workers) >= self.max_workers:
                return
            if self.busy_workers < len(self._workers):
                return
            if self._job_queue.qsize() == 0:
                return

            logger.debug(f"Scaling up: {len(self._workers)} -> {len(self._workers) + 1} workers")
            self._add_worker()

    def shutdown(self, wait: bool = True, timeout: Optional[float] = None) -> List[Job]:
        """
        Stop all workers.

        Args:
            wait: Let queued jobs finish before stopping.
            timeout: Give up waiting for the queue after this many seconds.

        Returns:
            Jobs that were still queued and will never run. The caller owns
            any resources they hold.
        """
        if not self._started:
            return []

        logger.info("Shutting down thread pool...")
        self._shutting_down = True

        if wait:
            deadline = time.time() + timeout if timeout else None
            while self._job_queue.unfinished_tasks:
                if deadline and time.time() > deadline:
                    logger.warning("Thread pool shutdown timed out, abandoning queued jobs")
                    break
                time.sleep(0.05)

        abandoned = self._drain_queue()
        if abandoned:
            logger.warning(f"Abandoned {len(abandoned)} queued job(s)")

        with self._lock:
            workers = list(self._workers)

        for worker in workers:
            worker.stop()
            try:
                self._job_queue.put(None, block=False)
            except queue.Full:
                pass  # Worker will notice stop() on its next idle wake-up

        for worker in workers:
            worker.join(timeout=2.0)

        with self._lock:
            self._workers.clear()

        self._started = False
        self._shutting_down = False
        logger.info("Thread pool shutdown complete")
        return abandoned

    def _drain_queue(self) -> List[Job]:
        """Remove every job still waiting in the queue."""
        jobs = []
        while True:
            try:
                job = self._job_queue.get_nowait()
            except queue.Empty:
                break
            self._job_queue.task_done()
            if job is not None:
                jobs.append(job)
        return jobs

    @property
    def size(self) -> int:
        return len(self._workers)

    @property
    def busy_workers(self) -> int:
        return sum(1 for w in self._workers if w.state == WorkerState.BUSY)

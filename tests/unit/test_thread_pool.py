"""
Unit tests for the worker thread pool.
"""

import threading
import time

import pytest

from taskserver.core import ThreadPool


@pytest.fixture
def pool():
    pool = ThreadPool(min_workers=2, max_workers=4, idle_timeout=0.1)
    pool.start()
    yield pool
    pool.shutdown(wait=True, timeout=2.0)


class TestThreadPool:
    """Tests for ThreadPool."""

    def test_invalid_sizes(self):
        """Bad worker counts are rejected."""
        with pytest.raises(ValueError):
            ThreadPool(min_workers=0)
        with pytest.raises(ValueError):
            ThreadPool(min_workers=4, max_workers=2)

    def test_submit_before_start(self):
        """Submitting to a stopped pool raises."""
        with pytest.raises(RuntimeError):
            ThreadPool(min_workers=1, max_workers=1).submit(print)

    def test_runs_jobs(self, pool: ThreadPool):
        """Submitted jobs run with their arguments."""
        done = threading.Event()
        results = []

        def job(a, b=0):
            results.append(a + b)
            done.set()

        assert pool.submit(job, args=(1,), kwargs={"b": 2})
        assert done.wait(2.0)
        assert results == [3]

    def test_failing_job_does_not_kill_worker(self, pool: ThreadPool):
        """A job that raises is counted and the worker keeps going."""
        done = threading.Event()

        def boom():
            raise RuntimeError("boom")

        pool.submit(boom)
        pool.submit(done.set)
        assert done.wait(2.0)
        assert pool.size >= 2

    def test_shutdown_waits_for_queue(self):
        """shutdown(wait=True) lets queued jobs finish."""
        pool = ThreadPool(min_workers=1, max_workers=1, idle_timeout=0.1)
        pool.start()

        counter = []
        for _ in range(5):
            pool.submit(counter.append, args=(1,))

        pool.shutdown(wait=True, timeout=2.0)
        assert len(counter) == 5
        assert pool.size == 0

    def test_never_exceeds_max(self, pool: ThreadPool):
        """Scaling up stops at max_workers."""
        release = threading.Event()

        for _ in range(10):
            pool.submit(release.wait, args=(2.0,))

        assert pool.size <= pool.max_workers
        release.set()

    def test_start_is_idempotent(self, pool: ThreadPool):
        """A second start() adds no workers."""
        size = pool.size
        pool.start()
        assert pool.size == size

    def test_shutdown_timeout_returns_queued_jobs(self):
        """Jobs still queued when shutdown gives up are handed back, not run."""
        pool = ThreadPool(min_workers=1, max_workers=1, idle_timeout=0.1)
        pool.start()

        started = threading.Event()

        def slow():
            started.set()
            time.sleep(0.5)

        pool.submit(slow)
        assert started.wait(2.0)

        ran = []
        for i in range(3):
            pool.submit(ran.append, args=(i,))

        abandoned = pool.shutdown(wait=True, timeout=0.1)

        assert [job.args for job in abandoned] == [(0,), (1,), (2,)]
        assert ran == []
        assert pool.size == 0

    def test_shutdown_nothing_abandoned(self):
        """A clean shutdown abandons nothing."""
        pool = ThreadPool(min_workers=1, max_workers=1, idle_timeout=0.1)
        pool.start()
        assert pool.shutdown(wait=True, timeout=2.0) == []

"""
Unit tests for the worker pool.
"""

import threading
import time

import pytest

from minihttp.core.thread_pool import ThreadPool


@pytest.fixture
def pool():
    pool = ThreadPool(num_workers=2).start()
    yield pool
    pool.shutdown(wait=True, timeout=5.0)


class TestThreadPool:
    """Tests for ThreadPool class."""

    def test_invalid_size(self):
        with pytest.raises(ValueError):
            ThreadPool(num_workers=0)

    def test_execute_before_start(self):
        pool = ThreadPool(num_workers=1)
        with pytest.raises(RuntimeError):
            pool.execute(lambda: None)

    def test_start_is_idempotent(self, pool):
        assert pool.start() is pool
        assert pool.stats["workers"]["total"] == 2

    def test_runs_all_jobs(self, pool):
        done = []
        lock = threading.Lock()

        def job(n):
            with lock:
                done.append(n)

        for n in range(20):
            pool.execute(job, n)
        pool.join()

        assert sorted(done) == list(range(20))

    def test_keyword_arguments(self, pool):
        result = {}

        def job(a, b=None):
            result["value"] = (a, b)

        pool.execute(job, 1, b=2)
        pool.join()

        assert result["value"] == (1, 2)

    def test_concurrency_bounded_by_pool_size(self, pool):
        """Five 10ms jobs on two workers never overlap more than twice."""
        lock = threading.Lock()
        active = 0
        peak = 0

        def job():
            nonlocal active, peak
            with lock:
                active += 1
                peak = max(peak, active)
            time.sleep(0.01)
            with lock:
                active -= 1

        for _ in range(5):
            pool.execute(job)
        pool.join()

        assert 1 <= peak <= 2
        assert pool.stats["tasks"]["completed"] == 5

    def test_failing_job_is_isolated(self, pool):
        """An exception ends only its own job."""
        done = threading.Event()

        def broken():
            raise RuntimeError("boom")

        pool.execute(broken)
        pool.execute(done.set)
        pool.join()

        assert done.is_set()
        assert pool.stats["tasks"]["failed"] == 1
        assert pool.stats["tasks"]["completed"] == 1

    def test_failure_is_logged(self, pool, caplog):
        def broken():
            raise RuntimeError("boom")

        pool.execute(broken)
        pool.join()

        assert "boom" in caplog.text

    def test_jobs_run_in_submission_order_on_one_worker(self):
        pool = ThreadPool(num_workers=1).start()
        order = []

        for n in range(10):
            pool.execute(order.append, n)
        pool.shutdown(wait=True, timeout=5.0)

        assert order == list(range(10))


class TestThreadPoolShutdown:
    """Tests for ThreadPool.shutdown."""

    def test_shutdown_waits_for_pending(self):
        pool = ThreadPool(num_workers=1).start()
        done = []

        for n in range(5):
            pool.execute(lambda n=n: (time.sleep(0.005), done.append(n)))
        pool.shutdown(wait=True, timeout=5.0)

        assert done == list(range(5))
        assert not pool.is_running

    def test_shutdown_without_wait_drops_pending(self):
        pool = ThreadPool(num_workers=1).start()
        release = threading.Event()
        started = threading.Event()
        ran = []

        def blocker():
            started.set()
            release.wait(5.0)

        pool.execute(blocker)
        started.wait(5.0)
        for n in range(5):
            pool.execute(ran.append, n)

        stopper = threading.Thread(target=pool.shutdown, kwargs={"wait": False, "timeout": 5.0})
        stopper.start()
        time.sleep(0.05)
        release.set()
        stopper.join(5.0)

        assert ran == []

    def test_execute_after_shutdown(self):
        pool = ThreadPool(num_workers=1).start()
        pool.shutdown()

        with pytest.raises(RuntimeError):
            pool.execute(lambda: None)

    def test_restart_after_shutdown(self):
        pool = ThreadPool(num_workers=1).start()
        pool.shutdown()

        with pytest.raises(RuntimeError, match="shut down"):
            pool.start()

    def test_start_before_shutdown_is_noop(self):
        pool = ThreadPool(num_workers=1).start()
        try:
            assert pool.start() is pool
            assert len(pool._workers) == 1
        finally:
            pool.shutdown()

    def test_shutdown_twice(self):
        pool = ThreadPool(num_workers=1).start()
        pool.shutdown()
        pool.shutdown()

    def test_workers_exit(self):
        pool = ThreadPool(num_workers=3).start()
        pool.shutdown(wait=True, timeout=5.0)

        assert all(not w.is_alive() for w in pool._workers)

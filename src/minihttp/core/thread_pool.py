"""
=============================================================================
THREAD POOL
=============================================================================

A fixed set of worker threads consuming one shared job queue. Every job
the HTTP server submits is "handle one accepted connection".

=============================================================================
WHY A FIXED POOL?
=============================================================================

    Thread-per-connection:

        for conn in accept_connections():
            Thread(target=handle, args=(conn,)).start()

        → unbounded thread count, a burst of clients means a burst of
          threads

    Fixed pool:

        pool = ThreadPool(num_workers=4)
        pool.start()

        for conn in accept_connections():
            pool.execute(handle, conn)

        → at most 4 connections are serviced at once, the rest wait in
          the queue

=============================================================================
ARCHITECTURE
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                        Thread Pool                                  │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                     │
    │   execute(job) ──► ┌───────────────────────────┐                    │
    │   (never blocks)   │  queue.Queue (unbounded)  │                    │
    │                    │  [job][job][job]...       │                    │
    │                    └─────────────┬─────────────┘                    │
    │                                  │ get() blocks when empty          │
    │                  ┌───────────────┼───────────────┐                  │
    │                  ▼               ▼               ▼                  │
    │             ┌─────────┐     ┌─────────┐     ┌─────────┐             │
    │             │Worker-0 │     │Worker-1 │ ... │Worker-N │             │
    │             └─────────┘     └─────────┘     └─────────┘             │
    │                                                                     │
    └─────────────────────────────────────────────────────────────────────┘

The queue has no size limit, so there is no admission control: under a
sustained overload the backlog grows without bound. That is a known
limitation of this server, not a feature.

=============================================================================
FAILURE ISOLATION
=============================================================================

A job that raises is logged with its traceback and the worker moves on
to the next job. One bad connection never takes a worker (or the pool)
down with it.

=============================================================================
"""

import threading
import queue
import time
import logging
from typing import Callable, Optional, Any
from dataclasses import dataclass, field
from enum import Enum


logger = logging.getLogger(__name__)


class WorkerState(Enum):
    """Worker thread states, for monitoring."""
    IDLE = "idle"        # Waiting for a job
    BUSY = "busy"        # Running a job
    STOPPED = "stopped"  # Thread exited


@dataclass
class Task:
    """
    A deferred call: "run func(*args, **kwargs) on some worker".

    Attributes:
        func: The function to execute.
        args: Positional arguments.
        kwargs: Keyword arguments.
        submitted_at: When the task was queued (for wait-time logging).
    """
    func: Callable[..., Any]
    args: tuple = ()
    kwargs: dict = field(default_factory=dict)
    submitted_at: float = field(default_factory=time.time)


class Worker(threading.Thread):
    """
    Worker thread that processes tasks from the queue.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                        Worker Loop                                  │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                     │
    │   1. Wait for task from queue (blocking)                            │
    │          │                                                          │
    │          ├── None (poison pill) → exit loop                         │
    │          │                                                          │
    │          ▼                                                          │
    │   2. Run task.func(*task.args, **task.kwargs)                       │
    │          │                                                          │
    │          └── Exception → log it, keep going                         │
    │                                                                     │
    │   3. task_done(), back to step 1                                    │
    │                                                                     │
    └─────────────────────────────────────────────────────────────────────┘
    """

    def __init__(self, task_queue: queue.Queue, worker_id: int):
        """
        Args:
            task_queue: Queue to pull tasks from.
            worker_id: Identifier used in the thread name and log lines.
        """
        # daemon=True: a forgotten pool never keeps the process alive
        super().__init__(name=f"Worker-{worker_id}", daemon=True)

        self.task_queue = task_queue
        self.worker_id = worker_id
        self.state = WorkerState.IDLE

        self.tasks_completed = 0
        self.tasks_failed = 0

    def run(self):
        logger.debug(f"Worker {self.worker_id} started")

        while True:
            task = self.task_queue.get()
            try:
                if task is None:
                    break
                self._execute_task(task)
            finally:
                self.task_queue.task_done()

        self.state = WorkerState.STOPPED
        logger.debug(f"Worker {self.worker_id} stopped")

    def _execute_task(self, task: Task):
        """
        Run one task, confining any failure to it.

        The broad except is the isolation boundary of the pool: whatever
        the job raises is logged here and goes no further.
        """
        self.state = WorkerState.BUSY
        start_time = time.time()
        waited = start_time - task.submitted_at

        try:
            task.func(*task.args, **task.kwargs)
            self.tasks_completed += 1
            logger.debug(
                f"Worker {self.worker_id} completed task in "
                f"{time.time() - start_time:.3f}s (queued {waited:.3f}s)"
            )
        except Exception as e:
            self.tasks_failed += 1
            logger.exception(
                f"Worker {self.worker_id} task failed after "
                f"{time.time() - start_time:.3f}s: {e}"
            )
        finally:
            self.state = WorkerState.IDLE


class ThreadPool:
    """
    Fixed-size thread pool.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                      ThreadPool Usage                               │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                     │
    │   pool = ThreadPool(num_workers=4)                                  │
    │   pool.start()                                                      │
    │                                                                     │
    │   pool.execute(handle_connection, conn)                             │
    │                                                                     │
    │   print(pool.stats)   # {"workers": {...}, "tasks": {...}}          │
    │                                                                     │
    │   pool.shutdown(wait=True)                                          │
    │                                                                     │
    └─────────────────────────────────────────────────────────────────────┘
    """

    def __init__(self, num_workers: int = 4):
        """
        Args:
            num_workers: Number of long-lived worker threads (>= 1).
        """
        if num_workers < 1:
            raise ValueError(f"num_workers must be >= 1, got {num_workers}")

        self.num_workers = num_workers

        # Unbounded: put() never blocks the submitter
        self._task_queue: queue.Queue[Optional[Task]] = queue.Queue()

        self._workers: list[Worker] = []
        self._lock = threading.Lock()
        self._started = False
        self._shutdown = False

    def start(self) -> "ThreadPool":
        """Spawn the workers. Calling it again is a no-op until shutdown."""
        with self._lock:
            if self._shutdown:
                raise RuntimeError("Thread pool has been shut down")
            if self._started:
                return self

            logger.info(f"Starting thread pool with {self.num_workers} workers")
            for worker_id in range(self.num_workers):
                worker = Worker(self._task_queue, worker_id)
                self._workers.append(worker)
                worker.start()

            self._started = True
        return self

    def execute(self, func: Callable[..., Any], *args: Any, **kwargs: Any) -> None:
        """
        Queue func(*args, **kwargs) and return immediately.

        Raises:
            RuntimeError: The pool is not started or is shutting down.
        """
        if not self._started:
            raise RuntimeError("Thread pool not started")
        if self._shutdown:
            raise RuntimeError("Thread pool is shutting down")

        self._task_queue.put(Task(func=func, args=args, kwargs=kwargs))

    def shutdown(self, wait: bool = True, timeout: Optional[float] = None):
        """
        Stop the pool.

        ┌─────────────────────────────────────────────────────────────────┐
        │                    shutdown() Flow                              │
        ├─────────────────────────────────────────────────────────────────┤
        │                                                                 │
        │   1. Reject new tasks                                           │
        │   2. wait=True  → pending tasks still run (pills queue last)    │
        │      wait=False → pending tasks are dropped                     │
        │   3. One poison pill (None) per worker                          │
        │   4. Join workers (bounded by timeout, if given)                │
        │                                                                 │
        └─────────────────────────────────────────────────────────────────┘

        Args:
            wait: Let already queued tasks run before workers exit.
            timeout: Overall seconds to wait for workers to exit.
        """
        with self._lock:
            if not self._started or self._shutdown:
                return
            self._shutdown = True

        logger.info("Shutting down thread pool...")

        if not wait:
            self._drop_pending()

        for _ in self._workers:
            self._task_queue.put(None)

        deadline = time.time() + timeout if timeout is not None else None
        for worker in self._workers:
            remaining = None if deadline is None else max(0.0, deadline - time.time())
            worker.join(timeout=remaining)
            if worker.is_alive():
                logger.warning(f"Worker {worker.worker_id} did not stop in time")

        logger.info("Thread pool shutdown complete")

    def _drop_pending(self):
        dropped = 0
        while True:
            try:
                self._task_queue.get_nowait()
            except queue.Empty:
                break
            self._task_queue.task_done()
            dropped += 1
        if dropped:
            logger.warning(f"Dropped {dropped} pending tasks")

    def join(self):
        """Block until every queued task has been processed."""
        self._task_queue.join()

    # =========================================================================
    # MONITORING
    # =========================================================================

    @property
    def is_running(self) -> bool:
        return self._started and not self._shutdown

    @property
    def busy_workers(self) -> int:
        return sum(1 for w in self._workers if w.state == WorkerState.BUSY)

    @property
    def idle_workers(self) -> int:
        return sum(1 for w in self._workers if w.state == WorkerState.IDLE)

    @property
    def queue_size(self) -> int:
        return self._task_queue.qsize()

    @property
    def stats(self) -> dict:
        """Worker and task counts, for logging and debugging."""
        return {
            "workers": {
                "total": len(self._workers),
                "busy": self.busy_workers,
                "idle": self.idle_workers,
            },
            "tasks": {
                "queued": self._task_queue.qsize(),
                "completed": sum(w.tasks_completed for w in self._workers),
                "failed": sum(w.tasks_failed for w in self._workers),
            },
        }

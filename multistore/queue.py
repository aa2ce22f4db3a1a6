"""Task queues that execute dispatch jobs in the background.

Any object with ``enqueue(job, queue_name)`` satisfies :class:`TaskQueue`.
Two implementations ship with multistore:

1. **ThreadedTaskQueue**: one bounded in-process queue per queue name,
   drained by a small pool of daemon worker threads.  ``enqueue`` never
   blocks; a full queue raises :class:`~multistore.errors.QueueFullError`.
2. **InlineTaskQueue**: runs each job immediately in the caller's thread.
   Suitable for tests and scripts.
"""

from __future__ import annotations

import logging
import queue
import threading
from typing import Any, Callable, Protocol, runtime_checkable

from multistore.errors import QueueFullError
from multistore.models.jobs import DispatchJob

logger = logging.getLogger(__name__)

JobHandler = Callable[[DispatchJob], Any]

_STOP = object()


@runtime_checkable
class TaskQueue(Protocol):
    """Protocol for the background execution facility."""

    def enqueue(self, job: DispatchJob, queue_name: str) -> None:
        """Hand *job* over for eventual execution without blocking."""
        ...


class InlineTaskQueue:
    """Runs every job synchronously at enqueue time."""

    def __init__(self, handler: JobHandler) -> None:
        self._handler = handler
        self.executed: list[DispatchJob] = []

    def enqueue(self, job: DispatchJob, queue_name: str = "default") -> None:
        self._handler(job)
        self.executed.append(job)


class ThreadedTaskQueue:
    """Bounded per-name job queues drained by worker threads.

    Parameters
    ----------
    handler:
        Called with each job on a worker thread, typically
        :meth:`multistore.jobs.JobRunner.run`.
    workers:
        Worker threads started per queue name.
    capacity:
        Maximum number of pending jobs per queue name.
    """

    def __init__(
        self,
        handler: JobHandler,
        *,
        workers: int = 2,
        capacity: int = 1024,
    ) -> None:
        if workers < 1:
            raise ValueError("workers must be >= 1")
        if capacity < 1:
            raise ValueError("capacity must be >= 1")
        self._handler = handler
        self._workers = workers
        self._capacity = capacity
        self._queues: dict[str, queue.Queue[Any]] = {}
        self._threads: dict[str, list[threading.Thread]] = {}
        self._lock = threading.Lock()
        self._closed = False

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def queue_names(self) -> list[str]:
        with self._lock:
            return list(self._queues)

    @property
    def closed(self) -> bool:
        return self._closed

    def depth(self, queue_name: str = "default") -> int:
        """Approximate number of jobs waiting in *queue_name*."""
        with self._lock:
            q = self._queues.get(queue_name)
        return q.qsize() if q is not None else 0

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def enqueue(self, job: DispatchJob, queue_name: str = "default") -> None:
        """Queue *job* on *queue_name*, starting its workers on first use.

        Raises
        ------
        QueueFullError
            If the queue already holds ``capacity`` pending jobs.
        RuntimeError
            If the queue has been closed.
        """
        # The closed check and the put share the lock so that no job can
        # land behind the stop markers queued by close().
        with self._lock:
            q = self._queue(queue_name)
            try:
                q.put_nowait(job)
            except queue.Full:
                raise QueueFullError(
                    f"Queue {queue_name!r} is full (capacity={self._capacity}). "
                    f"Job {job.job_id} rejected."
                ) from None
        logger.debug("Enqueued job %s on %s (depth=%d)", job.job_id, queue_name, q.qsize())

    def join(self, queue_name: str | None = None) -> None:
        """Block until every job queued so far has been processed."""
        with self._lock:
            if queue_name is None:
                queues = list(self._queues.values())
            else:
                queues = [self._queues[queue_name]] if queue_name in self._queues else []
        for q in queues:
            q.join()

    def close(self, *, wait: bool = True) -> None:
        """Stop the workers after the jobs already queued have run."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            queues = dict(self._queues)
            threads = {name: list(ts) for name, ts in self._threads.items()}

        for name, q in queues.items():
            for _ in threads.get(name, []):
                q.put(_STOP)
        if wait:
            for ts in threads.values():
                for thread in ts:
                    thread.join()
        logger.info("ThreadedTaskQueue closed (%d queues)", len(queues))

    # ------------------------------------------------------------------
    # Context manager
    # ------------------------------------------------------------------

    def __enter__(self) -> ThreadedTaskQueue:
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def __repr__(self) -> str:
        return (
            f"ThreadedTaskQueue(workers={self._workers}, "
            f"capacity={self._capacity}, queues={self.queue_names!r})"
        )

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _queue(self, queue_name: str) -> queue.Queue[Any]:
        """Return the queue for *queue_name*, creating it on first use.

        Caller must hold ``self._lock``.
        """
        if self._closed:
            raise RuntimeError("ThreadedTaskQueue is closed")
        q = self._queues.get(queue_name)
        if q is None:
            q = queue.Queue(maxsize=self._capacity)
            self._queues[queue_name] = q
            self._threads[queue_name] = [
                self._start_worker(queue_name, q, index)
                for index in range(self._workers)
            ]
            logger.info(
                "Started %d workers for queue %s (capacity=%d)",
                self._workers,
                queue_name,
                self._capacity,
            )
        return q

    def _start_worker(self, queue_name: str, q: queue.Queue[Any], index: int) -> threading.Thread:
        thread = threading.Thread(
            target=self._work,
            args=(queue_name, q),
            name=f"multistore-{queue_name}-{index}",
            daemon=True,
        )
        thread.start()
        return thread

    def _work(self, queue_name: str, q: queue.Queue[Any]) -> None:
        while True:
            item = q.get()
            try:
                if item is _STOP:
                    return
                self._handler(item)
            except Exception:
                logger.exception("Job %s on queue %s raised", getattr(item, "job_id", "?"), queue_name)
            finally:
                q.task_done()

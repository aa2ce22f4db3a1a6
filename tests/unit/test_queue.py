"""Unit tests for task queues — threaded workers and inline execution."""

from __future__ import annotations

import logging
import threading

import pytest

from multistore.errors import QueueFullError
from multistore.models.jobs import DispatchJob
from multistore.queue import InlineTaskQueue, TaskQueue, ThreadedTaskQueue


def _job(n: int = 0, queue_name: str = "default") -> DispatchJob:
    return DispatchJob(entity="articles", record={"id": n}, queue_name=queue_name)


class TestInlineTaskQueue:
    def test_runs_job_immediately(self):
        seen = []
        q = InlineTaskQueue(seen.append)
        job = _job()

        q.enqueue(job, "default")

        assert seen == [job]
        assert q.executed == [job]

    def test_satisfies_protocol(self):
        assert isinstance(InlineTaskQueue(lambda job: None), TaskQueue)


class TestThreadedTaskQueue:
    def test_processes_all_jobs(self):
        seen = []
        lock = threading.Lock()

        def handler(job):
            with lock:
                seen.append(job.record["id"])

        with ThreadedTaskQueue(handler, workers=3) as q:
            for n in range(20):
                q.enqueue(_job(n))
            q.join()

        assert sorted(seen) == list(range(20))

    def test_separate_queue_names(self):
        seen = []
        with ThreadedTaskQueue(lambda job: seen.append(job.queue_name), workers=1) as q:
            q.enqueue(_job(queue_name="a"), "a")
            q.enqueue(_job(queue_name="b"), "b")
            q.join()
            assert sorted(q.queue_names) == ["a", "b"]

        assert sorted(seen) == ["a", "b"]

    def test_enqueue_does_not_block_and_rejects_overflow(self):
        release = threading.Event()
        started = threading.Event()

        def handler(job):
            started.set()
            release.wait(timeout=5)

        q = ThreadedTaskQueue(handler, workers=1, capacity=2)
        try:
            q.enqueue(_job(0))
            assert started.wait(timeout=5)
            q.enqueue(_job(1))
            q.enqueue(_job(2))
            assert q.depth() == 2

            with pytest.raises(QueueFullError, match="full"):
                q.enqueue(_job(3))
        finally:
            release.set()
            q.close()

    def test_handler_exception_is_logged_and_worker_survives(self, caplog):
        seen = []

        def handler(job):
            if job.record["id"] == 0:
                raise RuntimeError("boom")
            seen.append(job.record["id"])

        with caplog.at_level(logging.ERROR, logger="multistore.queue"):
            with ThreadedTaskQueue(handler, workers=1) as q:
                q.enqueue(_job(0))
                q.enqueue(_job(1))
                q.join()

        assert seen == [1]
        assert "boom" in caplog.text

    def test_close_stops_workers_and_rejects_new_jobs(self):
        q = ThreadedTaskQueue(lambda job: None, workers=2)
        q.enqueue(_job(queue_name="close-check"), "close-check")
        q.close()

        assert q.closed
        with pytest.raises(RuntimeError, match="closed"):
            q.enqueue(_job())
        assert not any(t.name.startswith("multistore-close-check-") and t.is_alive()
                       for t in threading.enumerate())

    def test_jobs_accepted_during_close_are_all_processed(self):
        processed = []
        lock = threading.Lock()

        def handler(job):
            with lock:
                processed.append(job.job_id)

        q = ThreadedTaskQueue(handler, workers=2, capacity=10_000)
        q.enqueue(_job())
        accepted = []
        start = threading.Barrier(5)

        def producer(offset):
            start.wait()
            for n in range(200):
                job = _job(offset + n)
                try:
                    q.enqueue(job)
                except RuntimeError:
                    return
                with lock:
                    accepted.append(job.job_id)

        producers = [threading.Thread(target=producer, args=(i * 1000,)) for i in range(4)]
        for t in producers:
            t.start()
        start.wait()
        q.close()
        for t in producers:
            t.join()

        assert set(accepted) <= set(processed)

    def test_close_is_idempotent(self):
        q = ThreadedTaskQueue(lambda job: None)
        q.close()
        q.close()

    def test_invalid_sizes(self):
        with pytest.raises(ValueError):
            ThreadedTaskQueue(lambda job: None, workers=0)
        with pytest.raises(ValueError):
            ThreadedTaskQueue(lambda job: None, capacity=0)

    def test_depth_of_unknown_queue(self):
        q = ThreadedTaskQueue(lambda job: None)
        assert q.depth("nothing") == 0
        q.close()

"""Dispatcher — caller-facing entry point for pushes and queries.

``dispatch_push`` either enqueues a :class:`~multistore.models.jobs.DispatchJob`
(async enabled) and returns immediately, or pushes to every target of the
record's registry before returning.  ``dispatch_query`` is always
synchronous.
"""

from __future__ import annotations

import logging
from typing import Any

from multistore.catalog import RegistryCatalog, entity_key
from multistore.config import MultistoreSettings
from multistore.config import settings as default_settings
from multistore.jobs import JobRunner, build_job
from multistore.models.config import DispatchConfig, RetryPolicy
from multistore.models.jobs import DispatchJob
from multistore.queue import TaskQueue, ThreadedTaskQueue

logger = logging.getLogger(__name__)


class Dispatcher:
    """Routes pushes and queries to the catalog's registries.

    Parameters
    ----------
    catalog:
        Entity → registry associations.
    config:
        Dispatch config; defaults to the catalog's.  Its ``error_handler``,
        when set, receives the per-target failures of every push and query
        made through this dispatcher, in place of the registries' own.
    queue:
        Task queue for async pushes.  When omitted and async is enabled, a
        ``ThreadedTaskQueue`` running a ``JobRunner`` over *catalog* is
        created and owned by this dispatcher.
    policy:
        Retry policy for the owned queue's runner.

    Examples
    --------
    >>> catalog = RegistryCatalog()
    >>> _ = catalog.declare("articles", [("primary", {"type": "memory"})])
    >>> dispatcher = Dispatcher(catalog, DispatchConfig(async_enabled=False))
    >>> dispatcher.dispatch_push({"id": 1, "title": "Hello"}, entity="articles")
    >>> dispatcher.dispatch_query("articles", "hello")
    [{'id': 1, 'title': 'Hello'}]
    """

    def __init__(
        self,
        catalog: RegistryCatalog,
        config: DispatchConfig | None = None,
        queue: TaskQueue | None = None,
        policy: RetryPolicy | None = None,
        *,
        workers: int = 2,
        capacity: int = 1024,
    ) -> None:
        self._catalog = catalog
        self._config = config or catalog.config
        self._owned_queue: ThreadedTaskQueue | None = None
        if queue is None and self._config.async_enabled:
            runner = JobRunner(catalog, policy, error_handler=self._config.error_handler)
            self._owned_queue = ThreadedTaskQueue(runner.run, workers=workers, capacity=capacity)
            queue = self._owned_queue
        self._queue = queue

    @classmethod
    def from_settings(
        cls, catalog: RegistryCatalog, settings: MultistoreSettings | None = None
    ) -> Dispatcher:
        """Build a dispatcher from ``MULTISTORE_*`` settings.

        Keeps the error handler of the catalog's config.
        """
        settings = settings or default_settings
        return cls(
            catalog,
            settings.dispatch_config(catalog.config.error_handler),
            policy=settings.retry_policy(),
            workers=settings.queue_workers,
            capacity=settings.queue_capacity,
        )

    @property
    def config(self) -> DispatchConfig:
        return self._config

    @property
    def catalog(self) -> RegistryCatalog:
        return self._catalog

    @property
    def queue(self) -> TaskQueue | None:
        return self._queue

    def dispatch_push(self, record: Any, *, entity: Any = None) -> DispatchJob | None:
        """Push *record* to every target of its entity's registry.

        *entity* overrides the entity derived from the record's class.
        Returns the enqueued job when async is enabled, else ``None``.  A
        record whose entity has no registry is ignored.
        """
        key = entity_key(entity if entity is not None else record)
        registry = self._catalog.registry_for(key)
        if registry is None:
            logger.debug("No registry for %s, push ignored", key)
            return None

        if self._config.async_enabled:
            if self._queue is None:
                raise RuntimeError("Async dispatch is enabled but no task queue is configured")
            job = build_job(record, self._config.queue_name, entity=key)
            self._queue.enqueue(job, self._config.queue_name)
            logger.debug("Enqueued push job %s for %s", job.job_id, key)
            return job

        registry.push(record, error_handler=self._config.error_handler)
        return None

    def dispatch_query(self, entity: Any, query_string: str) -> list[Any]:
        """Query every target of *entity*'s registry; ``[]`` if it has none."""
        registry = self._catalog.registry_for(entity)
        if registry is None:
            return []
        return registry.query(query_string, error_handler=self._config.error_handler)

    def close(self) -> None:
        """Drain and stop the owned task queue, if any."""
        if self._owned_queue is not None:
            self._owned_queue.close()

    def __enter__(self) -> Dispatcher:
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

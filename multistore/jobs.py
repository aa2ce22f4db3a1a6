"""Dispatch jobs — deferred pushes executed by a task queue.

A job looks up its entity's registry and pushes the record.  Because
``TargetRegistry.push`` isolates target failures, only faults outside the
per-target boundary (a broken catalog, an error handler that raises) can
escape ``perform_job``; those are retried with exponential backoff until
the retry budget is spent, at which point the job is reported as
exhausted.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable

from multistore.catalog import RegistryCatalog, entity_key
from multistore.errors import JobExhausted
from multistore.models.config import ErrorHandler, RetryPolicy
from multistore.models.jobs import DispatchJob, JobStatus

logger = logging.getLogger(__name__)


def build_job(record: Any, queue_name: str = "default", *, entity: Any = None) -> DispatchJob:
    """Create the job descriptor for pushing *record*.

    The entity defaults to the one derived from the record's class.
    """
    key = entity_key(entity if entity is not None else record)
    return DispatchJob(entity=key, record=record, queue_name=queue_name)


def perform_job(
    job: DispatchJob,
    catalog: RegistryCatalog,
    error_handler: ErrorHandler | None = None,
) -> bool:
    """Push the job's record to its entity's registry.

    Target failures go to *error_handler* when given, else to the
    registry's own.  Returns ``False`` (and does nothing) when the entity
    has no registry.
    """
    registry = catalog.registry_for(job.entity)
    if registry is None:
        logger.debug("Job %s: no registry for %s, skipped", job.job_id, job.entity)
        return False
    registry.push(job.record, error_handler=error_handler)
    return True


def log_exhausted(error: JobExhausted) -> None:
    """Default exhaustion report."""
    logger.error("[multistore] %s", error, exc_info=error.error)


class JobRunner:
    """Runs dispatch jobs with retry and exponential backoff.

    Parameters
    ----------
    catalog:
        Catalog used to find each job's registry.
    policy:
        Retry policy; five attempts with exponential backoff by default.
    sleep:
        Called with the backoff delay in seconds between attempts.
    on_exhausted:
        Receives a ``JobExhausted`` once a job has failed every attempt.
        Defaults to logging it.
    error_handler:
        Per-target failure handler used for every job instead of the
        registries' own.
    """

    def __init__(
        self,
        catalog: RegistryCatalog,
        policy: RetryPolicy | None = None,
        *,
        sleep: Callable[[float], None] = time.sleep,
        on_exhausted: Callable[[JobExhausted], None] | None = None,
        error_handler: ErrorHandler | None = None,
    ) -> None:
        self._catalog = catalog
        self._policy = policy or RetryPolicy()
        self._sleep = sleep
        self._on_exhausted = on_exhausted or log_exhausted
        self._error_handler = error_handler

    @property
    def policy(self) -> RetryPolicy:
        return self._policy

    def run(self, job: DispatchJob) -> JobStatus:
        """Perform *job*, retrying escaped errors until the budget is spent."""
        max_attempts = self._policy.max_attempts
        for attempt in range(1, max_attempts + 1):
            try:
                pushed = perform_job(job, self._catalog, self._error_handler)
            except Exception as exc:
                if attempt >= max_attempts:
                    exhausted = JobExhausted(job.job_id, attempt, exc)
                    exhausted.__cause__ = exc
                    self._on_exhausted(exhausted)
                    return JobStatus.EXHAUSTED
                delay = self._policy.delay_for(attempt)
                logger.warning(
                    "Job %s failed (attempt %d/%d): %s. Retrying in %.2fs",
                    job.job_id,
                    attempt,
                    max_attempts,
                    exc,
                    delay,
                )
                self._sleep(delay)
                continue
            return JobStatus.COMPLETED if pushed else JobStatus.SKIPPED

        # max_attempts >= 1, so the loop always returns
        raise RuntimeError(f"Unexpected retry loop exit for job {job.job_id}")

    def __call__(self, job: DispatchJob) -> JobStatus:
        return self.run(job)

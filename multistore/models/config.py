"""Dispatch configuration objects injected into registries and dispatchers."""

from __future__ import annotations

import random
from enum import Enum
from typing import Callable, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

ErrorHandler = Callable[[BaseException, str, str], None]


class Operation(str, Enum):
    """Operation tag handed to error handlers."""

    PUSH = "push"
    QUERY = "query"

    def __str__(self) -> str:
        return self.value


class DispatchConfig(BaseModel):
    """Settings consulted on every dispatch.

    Built once at startup and passed explicitly to the registry, catalog
    and dispatcher.  Frozen: reconfiguring means building a new object.

    Attributes
    ----------
    async_enabled:
        When true, ``Dispatcher.dispatch_push`` enqueues a job instead of
        pushing inline.
    queue_name:
        Queue the dispatch jobs are enqueued onto.
    error_handler:
        ``(error, target_name, operation)`` callback for per-target
        failures.  ``None`` means failures are logged.
    """

    model_config = ConfigDict(frozen=True)

    async_enabled: bool = True
    queue_name: str = "default"
    error_handler: Optional[ErrorHandler] = None


class RetryPolicy(BaseModel):
    """Exponential backoff for dispatch jobs.

    ``max_attempts`` counts every attempt, the first one included.
    """

    model_config = ConfigDict(frozen=True)

    max_attempts: int = Field(default=5, ge=1)
    base_delay_seconds: float = Field(default=0.5, ge=0.0)
    max_delay_seconds: float = Field(default=30.0, ge=0.0)
    multiplier: float = Field(default=2.0, ge=1.0)
    jitter: bool = True

    @model_validator(mode="after")
    def _check_delays(self) -> RetryPolicy:
        if self.max_delay_seconds < self.base_delay_seconds:
            raise ValueError("max_delay_seconds must be >= base_delay_seconds")
        return self

    def delay_for(self, attempt: int) -> float:
        """Delay in seconds before retrying after failed attempt ``attempt`` (1-based)."""
        delay = self.base_delay_seconds * (self.multiplier ** max(attempt - 1, 0))
        delay = min(delay, self.max_delay_seconds)
        if self.jitter:
            # 50-100% of the computed delay
            delay *= 0.5 + random.random() * 0.5
        return delay

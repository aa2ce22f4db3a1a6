"""Dispatch job descriptors."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class JobStatus(str, Enum):
    """Final state of a dispatch job run."""

    COMPLETED = "completed"
    SKIPPED = "skipped"  # no registry bound to the entity
    EXHAUSTED = "exhausted"


class DispatchJob(BaseModel):
    """A deferred push of one record to its entity's registry.

    ``entity`` is the catalog key used to find the owning registry when the
    job is performed.  ``record`` is held by reference.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    job_id: str = Field(default_factory=lambda: f"job-{uuid.uuid4().hex[:12]}")
    entity: str
    record: Any
    queue_name: str = "default"
    enqueued_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

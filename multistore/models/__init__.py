"""multistore data models — Pydantic v2, frozen (immutable)."""

from multistore.models.config import DispatchConfig, ErrorHandler, Operation, RetryPolicy
from multistore.models.jobs import DispatchJob, JobStatus
from multistore.models.targets import CatalogDeclaration, TargetConfig, TargetDeclaration

__all__ = [
    # config
    "DispatchConfig",
    "ErrorHandler",
    "Operation",
    "RetryPolicy",
    # targets
    "TargetConfig",
    "TargetDeclaration",
    "CatalogDeclaration",
    # jobs
    "DispatchJob",
    "JobStatus",
]

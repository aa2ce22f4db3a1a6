"""multistore: replicate writes and queries across many backend targets.

Each logical entity owns a ``TargetRegistry`` of named targets, each
backed by a pluggable adapter.  A push or query fans out to every target;
a failing target is reported to the error handler and never stops the
others.  Pushes can be deferred to background worker threads with
retry and exponential backoff.
"""

__version__ = "0.1.0"
__description__ = "Fan-out dispatcher for pushes and queries across pluggable backend targets"

from multistore.catalog import RegistryCatalog, entity_key
from multistore.dispatch import Dispatcher
from multistore.jobs import JobRunner
from multistore.models.config import DispatchConfig, Operation, RetryPolicy
from multistore.queue import InlineTaskQueue, ThreadedTaskQueue
from multistore.registry import ErrorCollector, TargetRegistry
from multistore.resolver import AdapterResolver, default_resolver
from multistore.target import Target

__all__ = [
    "AdapterResolver",
    "DispatchConfig",
    "Dispatcher",
    "ErrorCollector",
    "InlineTaskQueue",
    "JobRunner",
    "Operation",
    "RegistryCatalog",
    "RetryPolicy",
    "Target",
    "TargetRegistry",
    "ThreadedTaskQueue",
    "default_resolver",
    "entity_key",
    "__version__",
]

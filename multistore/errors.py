"""Error taxonomy for multistore.

Registration-time errors (``MissingTargetType``, ``AdapterNotFound``,
``AdapterContractViolation``, ``AdapterLoadError``, ``DuplicateTargetName``)
abort registry construction.  Runtime per-target failures are isolated and
only ever surface as ``TargetOperationFailure`` values handed to an error
handler.  ``JobExhausted`` is the terminal event of a deferred push.
"""

from __future__ import annotations

from typing import Iterable

ADAPTER_ENTRY_POINT_GROUP = "multistore.adapters"


class MultistoreError(RuntimeError):
    """Base class for every error raised by multistore."""


class MissingTargetType(MultistoreError, ValueError):
    """A target config omits the required ``type`` discriminator."""

    def __init__(self, target_name: str | None = None) -> None:
        self.target_name = target_name
        where = f" for target {target_name!r}" if target_name else ""
        super().__init__(f"Target type is required{where}: config has no 'type' key.")


class AdapterNotFound(MultistoreError, LookupError):
    """No adapter implementation is registered or installed for a type."""

    def __init__(self, type_id: str, known: Iterable[str] = ()) -> None:
        self.type_id = type_id
        self.known = sorted(known)
        known_text = ", ".join(self.known) if self.known else "none"
        super().__init__(
            f"Could not find an adapter for target type {type_id!r} "
            f"(known types: {known_text}).  Make sure the "
            f"'multistore-{type_id}' package is installed and exposes a "
            f"{type_id!r} entry point in the {ADAPTER_ENTRY_POINT_GROUP!r} group, "
            f"or register a factory with AdapterResolver.register()."
        )


class AdapterContractViolation(MultistoreError, TypeError):
    """A located adapter does not expose the required capability set."""

    def __init__(self, type_id: str, missing: Iterable[str]) -> None:
        self.type_id = type_id
        self.missing = sorted(missing)
        super().__init__(
            f"Adapter for target type {type_id!r} does not implement the "
            f"adapter contract: missing {', '.join(self.missing)}."
        )


class AdapterLoadError(MultistoreError, ImportError):
    """Importing an adapter implementation raised an unexpected error."""

    def __init__(self, type_id: str, location: str) -> None:
        self.type_id = type_id
        self.location = location
        super().__init__(
            f"Could not load adapter for target type {type_id!r} from {location!r}."
        )


class DuplicateTargetName(MultistoreError, ValueError):
    """A registry already holds a target with the same name."""

    def __init__(self, target_name: str) -> None:
        self.target_name = target_name
        super().__init__(f"Target {target_name!r} is already registered.")


class TargetOperationFailure(MultistoreError):
    """A push or query against a single target failed.

    Never raised out of ``TargetRegistry.push`` / ``query``; collected by
    :class:`multistore.registry.ErrorCollector` for callers that want to
    inspect partial failures.
    """

    def __init__(self, target_name: str, operation: str, error: BaseException) -> None:
        self.target_name = target_name
        self.operation = str(operation)
        self.error = error
        super().__init__(
            f"{self.operation} failed for target {target_name!r}: "
            f"{type(error).__name__}: {error}"
        )


class JobExhausted(MultistoreError):
    """A dispatch job failed on every attempt of its retry budget."""

    def __init__(self, job_id: str, attempts: int, error: BaseException) -> None:
        self.job_id = job_id
        self.attempts = attempts
        self.error = error
        super().__init__(
            f"Dispatch job {job_id} failed after {attempts} attempts: "
            f"{type(error).__name__}: {error}"
        )


class QueueFullError(MultistoreError):
    """A task queue rejected a job because it reached capacity."""


class DeclarationError(MultistoreError, ValueError):
    """A declarations file is malformed."""

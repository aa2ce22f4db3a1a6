"""TargetRegistry — fans pushes and queries out to ALL registered targets.

Every record pushed through a registry is offered to every target, in
registration order.  Target failures are reported to the configured error
handler but never prevent delivery to the remaining targets and never
propagate to the caller.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable, Iterator, Mapping
from typing import Any

from multistore.errors import DuplicateTargetName, TargetOperationFailure
from multistore.models.config import DispatchConfig, ErrorHandler, Operation
from multistore.models.targets import TargetConfig, TargetDeclaration
from multistore.resolver import AdapterResolver, default_resolver
from multistore.target import Target

logger = logging.getLogger(__name__)


def log_target_failure(error: BaseException, target_name: str, operation: str) -> None:
    """Default error handler: report the failure to the module logger."""
    logger.error(
        "[multistore] Error in %s for target %s: %s: %s",
        operation,
        target_name,
        type(error).__name__,
        error,
    )


class ErrorCollector:
    """Error handler that records failures as ``TargetOperationFailure``.

    Useful when a caller needs to know which targets failed during a
    broadcast.  Failures are also logged unless ``log=False``.

    >>> collector = ErrorCollector(log=False)
    >>> collector(ConnectionError("down"), "b", "push")
    >>> [f.target_name for f in collector.failures]
    ['b']
    """

    def __init__(self, *, log: bool = True) -> None:
        self._log = log
        self._failures: list[TargetOperationFailure] = []
        self._lock = threading.Lock()

    def __call__(self, error: BaseException, target_name: str, operation: str) -> None:
        failure = TargetOperationFailure(target_name, operation, error)
        failure.__cause__ = error
        with self._lock:
            self._failures.append(failure)
        if self._log:
            log_target_failure(error, target_name, operation)

    @property
    def failures(self) -> list[TargetOperationFailure]:
        with self._lock:
            return list(self._failures)

    def clear(self) -> None:
        with self._lock:
            self._failures.clear()

    @property
    def failed(self) -> bool:
        """Whether any failure has been recorded."""
        with self._lock:
            return bool(self._failures)


class TargetRegistry:
    """Ordered set of targets owned by one logical entity.

    Usage
    -----
    >>> registry = TargetRegistry()
    >>> registry.register("primary", {"type": "memory"})
    Target(name='primary', type='memory')
    >>> registry.push({"id": 1, "title": "Test Article"})
    >>> registry.query("test")
    [{'id': 1, 'title': 'Test Article'}]
    """

    def __init__(
        self,
        *,
        resolver: AdapterResolver | None = None,
        config: DispatchConfig | None = None,
    ) -> None:
        self._resolver = resolver or default_resolver()
        self._config = config or DispatchConfig()
        # Replaced wholesale on registration so readers always see a
        # complete sequence.
        self._targets: tuple[Target, ...] = ()
        self._write_lock = threading.Lock()

    @classmethod
    def from_declarations(
        cls,
        declarations: Iterable[TargetDeclaration | tuple[str, Mapping[str, Any] | TargetConfig]],
        *,
        resolver: AdapterResolver | None = None,
        config: DispatchConfig | None = None,
    ) -> TargetRegistry:
        """Build a registry from ``(name, config)`` pairs, failing fast."""
        registry = cls(resolver=resolver, config=config)
        for declaration in declarations:
            if isinstance(declaration, TargetDeclaration):
                registry.register(declaration.name, declaration.config)
            else:
                name, target_config = declaration
                registry.register(name, target_config)
        return registry

    # ------------------------------------------------------------------
    # Target management
    # ------------------------------------------------------------------

    def register(self, name: str, config: Mapping[str, Any] | TargetConfig) -> Target:
        """Build a target and append it to the registry.

        The registry is left unchanged when this raises.

        Raises
        ------
        DuplicateTargetName
            If a target with *name* is already registered.
        MissingTargetType, AdapterNotFound, AdapterContractViolation, AdapterLoadError
            Propagated from target construction.
        """
        name = str(name)
        with self._write_lock:
            if name in self:
                raise DuplicateTargetName(name)
            target = Target.build(name, config, self._resolver)
            self._targets = (*self._targets, target)
        logger.info("Registered target: %s (type=%s)", target.name, target.type)
        return target

    @property
    def targets(self) -> tuple[Target, ...]:
        return self._targets

    @property
    def names(self) -> list[str]:
        return [target.name for target in self._targets]

    @property
    def config(self) -> DispatchConfig:
        return self._config

    def get(self, name: str) -> Target | None:
        for target in self._targets:
            if target.name == name:
                return target
        return None

    def __len__(self) -> int:
        return len(self._targets)

    def __iter__(self) -> Iterator[Target]:
        return iter(self._targets)

    def __contains__(self, name: object) -> bool:
        return any(target.name == name for target in self._targets)

    # ------------------------------------------------------------------
    # Fan-out
    # ------------------------------------------------------------------

    def push(self, record: Any, *, error_handler: ErrorHandler | None = None) -> None:
        """Push *record* to ALL registered targets.

        Each target is attempted exactly once, in registration order.
        Failures are handed to *error_handler*, falling back to the one in
        the registry's config; this method never raises for a target
        failure.
        """
        targets = self._targets
        if not targets:
            logger.warning("No targets registered, push skipped")
            return

        failed = 0
        for target in targets:
            try:
                target.adapter.push(record)
            except Exception as exc:  # noqa: BLE001
                failed += 1
                self._handle_error(exc, target.name, Operation.PUSH, error_handler)

        if failed:
            logger.warning(
                "push: %d/%d targets succeeded, %d failed",
                len(targets) - failed,
                len(targets),
                failed,
            )

    def query(
        self, query_string: str, *, error_handler: ErrorHandler | None = None
    ) -> list[Any]:
        """Query ALL targets and concatenate their results in registration order.

        A failing target contributes nothing; its error goes to the error
        handler, chosen as for :meth:`push`.  No deduplication or ranking
        is applied.
        """
        results: list[Any] = []
        for target in self._targets:
            try:
                target_results = _as_list(target.adapter.query(query_string))
            except Exception as exc:  # noqa: BLE001
                self._handle_error(exc, target.name, Operation.QUERY, error_handler)
                continue
            results.extend(target_results)
        logger.debug("query %r: %d results from %d targets", query_string, len(results), len(self._targets))
        return results

    def close(self) -> None:
        """Close every adapter that exposes ``close()``."""
        for target in self._targets:
            close = getattr(target.adapter, "close", None)
            if not callable(close):
                continue
            try:
                close()
            except Exception:
                logger.exception("Error closing target %s", target.name)

    def __repr__(self) -> str:
        return f"TargetRegistry(targets={self.names!r})"

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _handle_error(
        self,
        error: BaseException,
        target_name: str,
        operation: Operation,
        handler: ErrorHandler | None = None,
    ) -> None:
        if handler is None:
            handler = self._config.error_handler
        if handler is None:
            handler = log_target_failure
        handler(error, target_name, operation)


def _as_list(results: Any) -> list[Any]:
    if results is None:
        return []
    if isinstance(results, list):
        return results
    if isinstance(results, (str, bytes, Mapping)):
        return [results]
    if isinstance(results, Iterable):
        return list(results)
    return [results]

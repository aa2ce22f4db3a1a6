"""Shared test fixtures for multistore."""

from __future__ import annotations

import threading
from collections.abc import Callable, Mapping
from typing import Any

import pytest

from multistore.models.config import DispatchConfig
from multistore.registry import ErrorCollector, TargetRegistry
from multistore.resolver import AdapterResolver, default_resolver


# ---------------------------------------------------------------------------
# Fake adapters
# ---------------------------------------------------------------------------


class FakeAdapter:
    """Adapter that records calls and can be told to fail or block.

    ``calls`` counts push attempts as they start; ``pushed`` only holds
    records whose push ran to completion without raising.
    """

    def __init__(
        self,
        results: list[Any] | None = None,
        error: BaseException | None = None,
        gate: threading.Event | None = None,
    ) -> None:
        self.results = list(results or [])
        self.error = error
        self.gate = gate
        self.calls = 0
        self.pushed: list[Any] = []
        self.queries: list[str] = []
        self.closed = False

    def push(self, record: Any) -> None:
        self.calls += 1
        if self.gate is not None:
            self.gate.wait(timeout=5)
        if self.error is not None:
            raise self.error
        self.pushed.append(record)

    def query(self, query_string: str) -> list[Any]:
        self.queries.append(query_string)
        if self.error is not None:
            raise self.error
        return list(self.results)

    def close(self) -> None:
        self.closed = True


class FakeFactory:
    """Builds FakeAdapters and remembers them by target config ``label``."""

    def __init__(self) -> None:
        self.built: dict[str, FakeAdapter] = {}

    def initialize(self, config: Mapping[str, Any]) -> FakeAdapter:
        adapter = FakeAdapter(
            results=config.get("results"),
            error=config.get("error"),
            gate=config.get("gate"),
        )
        self.built[config.get("label", f"fake-{len(self.built)}")] = adapter
        return adapter


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def fake_factory() -> FakeFactory:
    return FakeFactory()


@pytest.fixture
def resolver(fake_factory: FakeFactory) -> AdapterResolver:
    """Resolver with the bundled adapters plus ``fake``; no entry point discovery."""
    r = default_resolver(discover=False)
    r.register("fake", fake_factory)
    return r


@pytest.fixture
def collector() -> ErrorCollector:
    return ErrorCollector(log=False)


@pytest.fixture
def sync_config(collector: ErrorCollector) -> DispatchConfig:
    """Synchronous dispatch config reporting to ``collector``."""
    return DispatchConfig(async_enabled=False, error_handler=collector)


@pytest.fixture
def make_registry(
    resolver: AdapterResolver, sync_config: DispatchConfig
) -> Callable[..., TargetRegistry]:
    """Factory fixture: registry of fake targets, one per keyword argument.

    ``make_registry(a={}, b={"error": ConnectionError()})`` registers
    targets ``a`` and ``b`` (in that order), each labelled by its name.
    """

    def _factory(**targets: dict[str, Any]) -> TargetRegistry:
        registry = TargetRegistry(resolver=resolver, config=sync_config)
        for name, options in targets.items():
            registry.register(name, {"type": "fake", "label": name, **options})
        return registry

    return _factory

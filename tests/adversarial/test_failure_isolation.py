"""Adversarial tests — registry resilience under hostile adapters.

These tests verify that:
1. Any exception type raised by an adapter stays inside the registry
2. An adapter that starts failing midway does not affect its siblings
3. A registry where every target fails still returns normally
4. An error handler that itself raises escapes to the caller
5. Adapters returning odd query shapes are normalized
"""

from __future__ import annotations

import pytest

from multistore.models.config import DispatchConfig
from multistore.registry import ErrorCollector, TargetRegistry
from multistore.resolver import AdapterResolver


# ---------------------------------------------------------------------------
# Test adapters
# ---------------------------------------------------------------------------

class GoodAdapter:
    """An adapter that always succeeds."""

    def __init__(self) -> None:
        self.received: list = []

    def push(self, record) -> None:
        self.received.append(record)

    def query(self, query_string):
        return [f"good:{query_string}"]


class ExplodingAdapter:
    """An adapter that always throws the configured exception type."""

    def __init__(self, exc_type: type = RuntimeError) -> None:
        self._exc_type = exc_type

    def push(self, record) -> None:
        raise self._exc_type("exploded on push")

    def query(self, query_string):
        raise self._exc_type("exploded on query")


class SlowBombAdapter:
    """An adapter that succeeds N times then explodes."""

    def __init__(self, fail_after: int = 2) -> None:
        self._fail_after = fail_after
        self._count = 0

    def push(self, record) -> None:
        self._count += 1
        if self._count > self._fail_after:
            raise RuntimeError(f"failed on call {self._count}")

    def query(self, query_string):
        return None


class OddShapeAdapter:
    """Returns whatever shape it was built with."""

    def __init__(self, shape) -> None:
        self._shape = shape

    def push(self, record) -> None:
        pass

    def query(self, query_string):
        return self._shape


class InstanceFactory:
    """Factory handing out a pre-built adapter instance per label."""

    def __init__(self, adapters: dict) -> None:
        self._adapters = adapters

    def initialize(self, config):
        return self._adapters[config.get("label")]


# ---------------------------------------------------------------------------
# Helper
# ---------------------------------------------------------------------------

def _registry(adapters: dict, handler=None) -> TargetRegistry:
    resolver = AdapterResolver(discover=False)
    resolver.register("instance", InstanceFactory(adapters))
    if handler is None:
        handler = ErrorCollector(log=False)
    registry = TargetRegistry(
        resolver=resolver,
        config=DispatchConfig(async_enabled=False, error_handler=handler),
    )
    for label in adapters:
        registry.register(label, {"type": "instance", "label": label})
    return registry


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------

class TestExceptionTypes:
    @pytest.mark.parametrize(
        "exc_type",
        [ValueError, TypeError, KeyError, OSError, ConnectionError, TimeoutError, ZeroDivisionError],
    )
    def test_any_exception_type_is_contained(self, exc_type):
        collector = ErrorCollector(log=False)
        good = GoodAdapter()
        registry = _registry({"bad": ExplodingAdapter(exc_type), "good": good}, collector)

        registry.push({"id": 1})
        assert registry.query("q") == ["good:q"]

        assert good.received == [{"id": 1}]
        assert [type(f.error) for f in collector.failures] == [exc_type, exc_type]


class TestDegradingTargets:
    def test_slow_bomb_does_not_affect_siblings(self):
        collector = ErrorCollector(log=False)
        first, last = GoodAdapter(), GoodAdapter()
        registry = _registry(
            {"first": first, "bomb": SlowBombAdapter(fail_after=2), "last": last}, collector
        )

        for n in range(5):
            registry.push({"id": n})

        assert len(first.received) == 5
        assert len(last.received) == 5
        assert len(collector.failures) == 3
        assert {f.target_name for f in collector.failures} == {"bomb"}

    def test_all_targets_failing_returns_normally(self):
        collector = ErrorCollector(log=False)
        registry = _registry(
            {f"bad{i}": ExplodingAdapter() for i in range(4)}, collector
        )

        assert registry.push({"id": 1}) is None
        assert registry.query("q") == []
        assert len(collector.failures) == 8

    def test_raising_error_handler_propagates(self):
        def handler(error, target_name, operation):
            raise RuntimeError(f"handler refused {target_name}")

        registry = _registry({"bad": ExplodingAdapter()}, handler)

        with pytest.raises(RuntimeError, match="handler refused bad"):
            registry.push({"id": 1})


class TestQueryShapes:
    @pytest.mark.parametrize(
        "shape, expected",
        [
            (None, []),
            ([], []),
            ("one", ["one"]),
            ({"id": 1}, [{"id": 1}]),
            (("a", "b"), ["a", "b"]),
            (iter([1, 2]), [1, 2]),
            (42, [42]),
        ],
    )
    def test_results_are_normalized_to_a_list(self, shape, expected):
        registry = _registry({"odd": OddShapeAdapter(shape)})
        assert registry.query("q") == expected

"""Adapter protocol for multistore targets.

Every backend plugs in through two objects:

* an ``AdapterFactory``: anything with an ``initialize(config)`` callable
  (typically the adapter class itself, via a classmethod), and
* the ``Adapter`` it returns: an object with ``push(record)`` and
  ``query(query_string)``.

The registry calls ``push`` / ``query`` on every registered adapter.  An
adapter may also provide ``close()``; it is called when its registry is
closed.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Protocol, runtime_checkable

ADAPTER_CAPABILITIES: tuple[str, ...] = ("push", "query")
FACTORY_CAPABILITIES: tuple[str, ...] = ("initialize",)


@runtime_checkable
class Adapter(Protocol):
    """Protocol that every backend adapter instance must implement."""

    def push(self, record: Any) -> None:
        """Write *record* to the backend.

        Raising is allowed: the registry isolates the failure, reports it
        to the error handler and moves on to the next target.
        """
        ...

    def query(self, query_string: str) -> list[Any]:
        """Return the backend's results for *query_string*.

        The shape of each result is adapter-defined and opaque to the
        registry.
        """
        ...


@runtime_checkable
class AdapterFactory(Protocol):
    """Protocol for objects that build adapters from a target config.

    *config* is a plain mapping of the target's options, ``type`` included.
    """

    def initialize(self, config: Mapping[str, Any]) -> Adapter:
        ...


def missing_capabilities(obj: Any, names: tuple[str, ...]) -> list[str]:
    """Return the names in *names* that *obj* does not expose as callables."""
    return [name for name in names if not callable(getattr(obj, name, None))]

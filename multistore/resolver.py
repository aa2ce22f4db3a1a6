"""Adapter resolution — maps target type identifiers to adapter factories.

Resolution order for a type identifier:

1. The explicit registration table, populated at startup through
   :meth:`AdapterResolver.register`.  Entries may be factory objects or
   lazy import paths (``"package.module:Attribute"``); a lazy entry is
   imported on first resolution and cached.
2. Installed distribution entry points in the ``multistore.adapters``
   group, named after the type identifier.  A third-party backend for
   type ``foo`` is conventionally shipped as ``multistore-foo``::

       [project.entry-points."multistore.adapters"]
       foo = "multistore_foo.adapter:FooAdapter"

Anything else is an ``AdapterNotFound``.
"""

from __future__ import annotations

import functools
import importlib
import logging
import threading
from importlib import metadata
from typing import Any

from multistore.adapters import FACTORY_CAPABILITIES, AdapterFactory, missing_capabilities
from multistore.errors import (
    ADAPTER_ENTRY_POINT_GROUP,
    AdapterContractViolation,
    AdapterLoadError,
    AdapterNotFound,
)

logger = logging.getLogger(__name__)

BUILTIN_ADAPTERS: dict[str, str] = {
    "memory": "multistore.adapters.memory:InMemoryAdapter",
    "local_file": "multistore.adapters.local_file:LocalFileAdapter",
}


class AdapterResolver:
    """Locates the adapter factory registered or installed for a target type.

    Parameters
    ----------
    entry_point_group:
        Entry point group scanned for installed adapters.
    discover:
        Set to ``False`` to disable entry point discovery and rely on the
        registration table only.

    Examples
    --------
    >>> resolver = AdapterResolver(discover=False)
    >>> resolver.register("memory", "multistore.adapters.memory:InMemoryAdapter")
    >>> resolver.resolve("memory").__name__
    'InMemoryAdapter'
    """

    def __init__(
        self,
        *,
        entry_point_group: str = ADAPTER_ENTRY_POINT_GROUP,
        discover: bool = True,
    ) -> None:
        self._group = entry_point_group
        self._discover = discover
        self._table: dict[str, Any] = {}
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Registration table
    # ------------------------------------------------------------------

    def register(self, type_id: str, factory: AdapterFactory | str) -> None:
        """Register *factory* for *type_id*, replacing any previous entry.

        Factory objects are checked against the contract immediately; lazy
        import paths are checked when first resolved.
        """
        type_id = str(type_id)
        if not isinstance(factory, str):
            self._check_factory(type_id, factory)
        with self._lock:
            self._table[type_id] = factory
        logger.debug("Registered adapter factory for type %r", type_id)

    def unregister(self, type_id: str) -> None:
        with self._lock:
            self._table.pop(str(type_id), None)

    def available(self) -> list[str]:
        """Sorted identifiers of every registered or installed adapter type."""
        with self._lock:
            names = set(self._table)
        if self._discover:
            names.update(ep.name for ep in metadata.entry_points(group=self._group))
        return sorted(names)

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def resolve(self, type_id: str) -> AdapterFactory:
        """Return the adapter factory for *type_id*.

        Raises
        ------
        AdapterNotFound
            If no implementation is registered or installed.
        AdapterContractViolation
            If the located object has no callable ``initialize``.
        AdapterLoadError
            If importing the implementation raised.
        """
        type_id = str(type_id)
        with self._lock:
            entry = self._table.get(type_id)

        if entry is None:
            factory = self._from_entry_point(type_id)
        elif isinstance(entry, str):
            factory = self._import(type_id, entry)
        else:
            return entry

        self._check_factory(type_id, factory)
        with self._lock:
            self._table[type_id] = factory
        logger.info("Resolved adapter for type %r: %r", type_id, factory)
        return factory

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _from_entry_point(self, type_id: str) -> Any:
        if not self._discover:
            raise AdapterNotFound(type_id, self.available())
        matches = list(metadata.entry_points(group=self._group, name=type_id))
        if not matches:
            raise AdapterNotFound(type_id, self.available())
        entry_point = matches[0]
        try:
            return entry_point.load()
        except Exception as exc:
            raise AdapterLoadError(type_id, entry_point.value) from exc

    def _import(self, type_id: str, location: str) -> Any:
        module_name, _, attrs = location.partition(":")
        try:
            module = importlib.import_module(module_name)
        except ModuleNotFoundError as exc:
            if exc.name and (module_name == exc.name or module_name.startswith(f"{exc.name}.")):
                raise AdapterNotFound(type_id, self._known()) from exc
            raise AdapterLoadError(type_id, location) from exc
        except Exception as exc:
            raise AdapterLoadError(type_id, location) from exc

        if not attrs:
            return module
        try:
            return functools.reduce(getattr, attrs.split("."), module)
        except AttributeError as exc:
            raise AdapterNotFound(type_id, self._known()) from exc

    def _known(self) -> list[str]:
        with self._lock:
            return sorted(self._table)

    @staticmethod
    def _check_factory(type_id: str, factory: Any) -> None:
        missing = missing_capabilities(factory, FACTORY_CAPABILITIES)
        if missing:
            raise AdapterContractViolation(type_id, missing)


def default_resolver(*, discover: bool = True) -> AdapterResolver:
    """Return a new resolver with the bundled adapters registered."""
    resolver = AdapterResolver(discover=discover)
    for type_id, location in BUILTIN_ADAPTERS.items():
        resolver.register(type_id, location)
    return resolver

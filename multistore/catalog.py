"""RegistryCatalog — associates each logical entity with its TargetRegistry.

An entity is identified by a string key.  Record classes map to
``"module.QualName"`` unless they set ``__multistore_entity__``::

    class Article(BaseModel):
        __multistore_entity__ = "articles"
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable, Mapping
from typing import Any

from multistore.models.config import DispatchConfig
from multistore.models.targets import CatalogDeclaration, TargetConfig, TargetDeclaration
from multistore.registry import TargetRegistry
from multistore.resolver import AdapterResolver, default_resolver

logger = logging.getLogger(__name__)

ENTITY_ATTRIBUTE = "__multistore_entity__"


def entity_key(obj: Any) -> str:
    """Return the entity key for a string, a class, or a record instance."""
    if isinstance(obj, str):
        return obj
    cls = obj if isinstance(obj, type) else type(obj)
    explicit = getattr(cls, ENTITY_ATTRIBUTE, None)
    if explicit:
        return str(explicit)
    return f"{cls.__module__}.{cls.__qualname__}"


class RegistryCatalog:
    """Entity key → registry mapping shared by dispatchers and jobs.

    Parameters
    ----------
    resolver:
        Resolver used for every registry declared through this catalog.
    config:
        Dispatch config handed to every registry declared through this
        catalog (error handler included).
    """

    def __init__(
        self,
        *,
        resolver: AdapterResolver | None = None,
        config: DispatchConfig | None = None,
    ) -> None:
        self._resolver = resolver or default_resolver()
        self._config = config or DispatchConfig()
        self._registries: dict[str, TargetRegistry] = {}
        self._lock = threading.Lock()

    @classmethod
    def from_declaration(
        cls,
        declaration: CatalogDeclaration,
        *,
        resolver: AdapterResolver | None = None,
        config: DispatchConfig | None = None,
    ) -> RegistryCatalog:
        """Build a registry for every entity of a parsed declarations file."""
        catalog = cls(resolver=resolver, config=config)
        for entity, targets in declaration.entities.items():
            catalog.declare(entity, targets)
        return catalog

    @property
    def config(self) -> DispatchConfig:
        return self._config

    @property
    def resolver(self) -> AdapterResolver:
        return self._resolver

    def declare(
        self,
        entity: Any,
        declarations: Iterable[TargetDeclaration | tuple[str, Mapping[str, Any] | TargetConfig]],
    ) -> TargetRegistry:
        """Build a registry from *declarations* and bind it to *entity*.

        Nothing is bound if any declaration fails.  Declaring an entity
        again replaces its registry and closes the old one.
        """
        registry = TargetRegistry.from_declarations(
            declarations, resolver=self._resolver, config=self._config
        )
        self.bind(entity, registry)
        return registry

    def bind(self, entity: Any, registry: TargetRegistry) -> None:
        """Bind *registry* to *entity*, closing the registry it replaces."""
        key = entity_key(entity)
        with self._lock:
            previous = self._registries.get(key)
            self._registries[key] = registry
        logger.info(
            "%s registry for %s (%d targets)",
            "Bound" if previous is None else "Replaced",
            key,
            len(registry),
        )
        if previous is not None and previous is not registry:
            previous.close()

    def unbind(self, entity: Any) -> TargetRegistry | None:
        """Remove and return the registry of *entity*; closing it is up to the caller."""
        with self._lock:
            return self._registries.pop(entity_key(entity), None)

    def registry_for(self, entity: Any) -> TargetRegistry | None:
        """Return the registry bound to *entity*, or ``None``."""
        with self._lock:
            return self._registries.get(entity_key(entity))

    def entities(self) -> list[str]:
        with self._lock:
            return list(self._registries)

    def close(self) -> None:
        with self._lock:
            registries = list(self._registries.values())
        for registry in registries:
            registry.close()

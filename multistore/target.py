"""Target — one configured adapter instance within a registry."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from multistore.adapters import ADAPTER_CAPABILITIES, Adapter, missing_capabilities
from multistore.errors import AdapterContractViolation
from multistore.models.targets import TargetConfig
from multistore.resolver import AdapterResolver

logger = logging.getLogger(__name__)


class Target:
    """A named, fully initialized adapter.

    Construction is all-or-nothing: use :meth:`build`, which either returns
    a ready Target or raises.  Name, config and adapter never change after
    construction.
    """

    __slots__ = ("_name", "_config", "_adapter")

    def __init__(self, name: str, config: TargetConfig, adapter: Adapter) -> None:
        self._name = name
        self._config = config
        self._adapter = adapter

    @classmethod
    def build(
        cls,
        name: str,
        config: Mapping[str, Any] | TargetConfig,
        resolver: AdapterResolver,
    ) -> Target:
        """Resolve the adapter for ``config.type`` and initialize it.

        The factory receives the target's options as a plain dict,
        ``type`` included.

        Raises
        ------
        MissingTargetType
            Before any resolution, when *config* has no ``type``.
        AdapterNotFound, AdapterLoadError, AdapterContractViolation
            When resolution fails or the initialized adapter lacks
            ``push`` / ``query``.
        Exception
            Whatever the adapter's ``initialize`` raises, unchanged.
        """
        name = str(name)
        target_config = TargetConfig.from_mapping(config, name)
        factory = resolver.resolve(target_config.type)
        adapter = factory.initialize(target_config.options)

        missing = missing_capabilities(adapter, ADAPTER_CAPABILITIES)
        if missing:
            raise AdapterContractViolation(target_config.type, missing)

        logger.debug("Built target %r (type=%s)", name, target_config.type)
        return cls(name, target_config, adapter)

    @property
    def name(self) -> str:
        return self._name

    @property
    def config(self) -> TargetConfig:
        return self._config

    @property
    def type(self) -> str:
        return self._config.type

    @property
    def adapter(self) -> Adapter:
        return self._adapter

    def __repr__(self) -> str:
        return f"Target(name={self._name!r}, type={self._config.type!r})"

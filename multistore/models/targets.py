"""Target declaration models — adapter configs and ``(name, config)`` pairs."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from multistore.errors import MissingTargetType


class TargetConfig(BaseModel):
    """Adapter configuration for a single target.

    The ``type`` discriminator selects the adapter implementation; every
    other key is adapter-specific and kept verbatim.  Immutable once built.

    Examples
    --------
    >>> cfg = TargetConfig.from_mapping({"type": "memory", "label": "primary"})
    >>> cfg.type, cfg.get("label")
    ('memory', 'primary')
    """

    model_config = ConfigDict(frozen=True, extra="allow")

    type: str

    @classmethod
    def from_mapping(
        cls, config: Mapping[str, Any] | TargetConfig, target_name: str | None = None
    ) -> TargetConfig:
        """Build a config from a plain mapping.

        Raises
        ------
        MissingTargetType
            If the mapping has no ``type`` key (or it is empty).
        """
        if isinstance(config, TargetConfig):
            return config
        data = dict(config)
        type_id = data.get("type")
        if type_id is None or str(type_id).strip() == "":
            raise MissingTargetType(target_name)
        # Enum members declare their identifier in .value
        data["type"] = str(getattr(type_id, "value", type_id))
        return cls.model_validate(data)

    @property
    def options(self) -> dict[str, Any]:
        """All keys of the config, ``type`` included, as a fresh dict."""
        return {"type": self.type, **(self.model_extra or {})}

    def get(self, key: str, default: Any = None) -> Any:
        if key == "type":
            return self.type
        return (self.model_extra or {}).get(key, default)


class TargetDeclaration(BaseModel):
    """One ``(name, config)`` pair of an entity's declaration."""

    model_config = ConfigDict(frozen=True)

    name: str
    config: TargetConfig

    @classmethod
    def of(cls, name: str, config: Mapping[str, Any] | TargetConfig) -> TargetDeclaration:
        return cls(name=str(name), config=TargetConfig.from_mapping(config, str(name)))


class CatalogDeclaration(BaseModel):
    """Declarations for many entities, keyed by entity key, in file order."""

    model_config = ConfigDict(frozen=True)

    entities: dict[str, list[TargetDeclaration]] = Field(default_factory=dict)

"""Declarations file loader.

A declarations file lists the targets of each entity, in order::

    {
      "entities": {
        "articles": [
          {"name": "primary", "type": "local_file", "path": "data/articles"},
          {"name": "cache", "type": "memory"}
        ]
      }
    }

Every key of a target entry other than ``name`` belongs to its config.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from multistore.errors import DeclarationError
from multistore.models.targets import CatalogDeclaration, TargetDeclaration

logger = logging.getLogger(__name__)


def load_declarations(path: Path | str) -> CatalogDeclaration:
    """Read and validate a declarations file.

    Raises
    ------
    FileNotFoundError
        If *path* does not exist.
    DeclarationError
        If the file is not valid JSON or does not match the layout above.
    MissingTargetType
        If a target entry has no ``type``.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Declarations file not found: {path}")

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except ValueError as exc:
        raise DeclarationError(f"Invalid JSON in '{path}': {exc}") from exc

    declaration = parse_declarations(raw, source=str(path))
    logger.info("Loaded declarations for %d entities from %s", len(declaration.entities), path)
    return declaration


def parse_declarations(raw: Any, *, source: str = "<memory>") -> CatalogDeclaration:
    """Validate an already-decoded declarations document."""
    if not isinstance(raw, dict) or not isinstance(raw.get("entities"), dict):
        raise DeclarationError(f"'{source}': expected an object with an 'entities' object")

    entities: dict[str, list[TargetDeclaration]] = {}
    for entity, targets in raw["entities"].items():
        if not isinstance(targets, list):
            raise DeclarationError(f"'{source}': targets of {entity!r} must be a list")
        entities[entity] = [_target(entity, entry, source) for entry in targets]
    return CatalogDeclaration(entities=entities)


def _target(entity: str, entry: Any, source: str) -> TargetDeclaration:
    if not isinstance(entry, dict) or not entry.get("name"):
        raise DeclarationError(f"'{source}': every target of {entity!r} needs a 'name'")
    config = {k: v for k, v in entry.items() if k != "name"}
    return TargetDeclaration.of(entry["name"], config)

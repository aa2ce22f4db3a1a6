"""Local file adapter — writes records to local JSON files.

Layout: {path}/{record_id}.json

Each record is serialized to canonical JSON.  Pushing a record with an
existing id overwrites its file.  Queries scan every file and return the
documents with a string field containing the query (case-insensitive).
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from multistore.serialization import canonical_json_bytes, record_document, record_id

logger = logging.getLogger(__name__)

_UNSAFE = re.compile(r"[^A-Za-z0-9._-]")


class LocalFileAdapter:
    """Stores one JSON file per record.

    Parameters
    ----------
    base_path:
        Directory for record files.  Defaults to ``.multistore/records``.
    """

    def __init__(self, base_path: Path | str | None = None) -> None:
        self._base = Path(base_path) if base_path else Path(".multistore/records")
        self._base.mkdir(parents=True, exist_ok=True)

    @classmethod
    def initialize(cls, config: Mapping[str, Any]) -> LocalFileAdapter:
        return cls(base_path=config.get("path"))

    @property
    def base_path(self) -> Path:
        return self._base

    def push(self, record: Any) -> None:
        """Write the record's document to ``{path}/{record_id}.json``."""
        target_file = self._base / f"{_UNSAFE.sub('_', record_id(record))}.json"
        target_file.write_bytes(canonical_json_bytes(record_document(record)))
        logger.debug("LocalFileAdapter: wrote %s", target_file)

    def query(self, query_string: str) -> list[dict[str, Any]]:
        needle = query_string.strip().lower()
        results: list[dict[str, Any]] = []
        for path in self.list_records():
            document = self.read_record(path)
            if not needle or any(
                isinstance(v, str) and needle in v.lower() for v in document.values()
            ):
                results.append(document)
        return results

    def list_records(self) -> list[Path]:
        """List all record files, sorted by name."""
        if not self._base.exists():
            return []
        return sorted(self._base.glob("*.json"))

    def read_record(self, path: Path) -> dict[str, Any]:
        """Read and parse a single record file."""
        return json.loads(path.read_bytes())

"""Canonical record serialization shared by the bundled adapters.

Records are arbitrary domain objects.  Adapters that need a JSON document
or a stable identifier for a record go through :func:`record_document`
and :func:`record_id` so that every bundled backend agrees on both.
"""

from __future__ import annotations

import dataclasses
import hashlib
import json
from collections.abc import Mapping
from typing import Any


def canonical_json_bytes(obj: Any) -> bytes:
    """Produce canonical JSON bytes (sorted keys, compact separators)."""
    return json.dumps(
        obj, sort_keys=True, separators=(",", ":"), ensure_ascii=True, default=str
    ).encode("utf-8")


def sha256_hex(data: bytes) -> str:
    """Return the SHA-256 hex digest of raw bytes."""
    return hashlib.sha256(data).hexdigest()


def record_document(record: Any) -> dict[str, Any]:
    """Return a JSON-compatible dict view of *record*.

    Supports Pydantic models, dataclasses, mappings and plain objects with
    a ``__dict__``.  Anything else is wrapped as ``{"value": record}``.
    """
    if hasattr(record, "model_dump"):
        return record.model_dump(mode="json")
    if dataclasses.is_dataclass(record) and not isinstance(record, type):
        return dataclasses.asdict(record)
    if isinstance(record, Mapping):
        return dict(record)
    if hasattr(record, "__dict__"):
        return {k: v for k, v in vars(record).items() if not k.startswith("_")}
    return {"value": record}


def record_id(record: Any) -> str:
    """Stable identifier for *record*.

    Uses an ``id`` attribute or key when present, otherwise the
    content address of the record's canonical document.
    """
    value = getattr(record, "id", None)
    if value is None and isinstance(record, Mapping):
        value = record.get("id")
    if value is not None:
        return str(value)
    return f"sha256-{sha256_hex(canonical_json_bytes(record_document(record)))}"

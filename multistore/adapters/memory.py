"""In-memory adapter — keeps pushed records in a dict, keyed by record id.

Queries are case-insensitive substring matches over the string fields of
each stored document.  An empty query matches everything.  Intended for
tests, local development and as the reference adapter implementation.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Mapping
from typing import Any

from multistore.serialization import record_document, record_id

logger = logging.getLogger(__name__)


class InMemoryAdapter:
    """Stores record documents in process memory.

    Config keys
    -----------
    label:
        Optional label included in every query result under ``"_target"``.
    """

    def __init__(self, label: str | None = None) -> None:
        self._label = label
        self._documents: dict[str, dict[str, Any]] = {}
        self._lock = threading.Lock()

    @classmethod
    def initialize(cls, config: Mapping[str, Any]) -> InMemoryAdapter:
        return cls(label=config.get("label"))

    @property
    def documents(self) -> dict[str, dict[str, Any]]:
        """Snapshot of the stored documents keyed by record id."""
        with self._lock:
            return dict(self._documents)

    def push(self, record: Any) -> None:
        key = record_id(record)
        document = record_document(record)
        with self._lock:
            self._documents[key] = document
        logger.debug("InMemoryAdapter: stored %s", key)

    def query(self, query_string: str) -> list[dict[str, Any]]:
        needle = query_string.strip().lower()
        with self._lock:
            documents = list(self._documents.values())
        results = [doc for doc in documents if not needle or _matches(doc, needle)]
        if self._label is not None:
            results = [{**doc, "_target": self._label} for doc in results]
        return results


def _matches(document: dict[str, Any], needle: str) -> bool:
    return any(
        isinstance(value, str) and needle in value.lower()
        for value in document.values()
    )

"""Unit tests for the bundled adapters and record serialization."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from pydantic import BaseModel

from multistore.adapters import Adapter, AdapterFactory
from multistore.adapters.local_file import LocalFileAdapter
from multistore.adapters.memory import InMemoryAdapter
from multistore.serialization import record_document, record_id


class ArticleModel(BaseModel):
    id: int
    title: str


@dataclass
class ArticleData:
    id: int
    title: str


class TestRecordSerialization:
    def test_documents(self):
        assert record_document(ArticleModel(id=1, title="a")) == {"id": 1, "title": "a"}
        assert record_document(ArticleData(2, "b")) == {"id": 2, "title": "b"}
        assert record_document({"id": 3}) == {"id": 3}
        assert record_document(42) == {"value": 42}

    def test_ids(self):
        assert record_id(ArticleModel(id=1, title="a")) == "1"
        assert record_id({"id": "abc"}) == "abc"

    def test_content_address_when_no_id(self):
        first = record_id({"title": "a", "body": "b"})
        assert first.startswith("sha256-")
        assert first == record_id({"body": "b", "title": "a"})
        assert first != record_id({"title": "other"})


class TestInMemoryAdapter:
    def test_protocol_compliance(self):
        adapter = InMemoryAdapter.initialize({"type": "memory"})
        assert isinstance(adapter, Adapter)
        assert isinstance(InMemoryAdapter, AdapterFactory)

    def test_push_and_query(self):
        adapter = InMemoryAdapter()
        adapter.push(ArticleModel(id=1, title="Rails Multistore"))
        adapter.push(ArticleModel(id=2, title="Something else"))

        assert adapter.query("multistore") == [{"id": 1, "title": "Rails Multistore"}]
        assert len(adapter.query("")) == 2

    def test_push_same_id_overwrites(self):
        adapter = InMemoryAdapter()
        adapter.push({"id": 1, "title": "old"})
        adapter.push({"id": 1, "title": "new"})
        assert adapter.documents == {"1": {"id": 1, "title": "new"}}

    def test_label_is_attached_to_results(self):
        adapter = InMemoryAdapter.initialize({"type": "memory", "label": "cache"})
        adapter.push({"id": 1, "title": "x"})
        assert adapter.query("x") == [{"id": 1, "title": "x", "_target": "cache"}]


class TestLocalFileAdapter:
    def test_push_writes_one_file_per_record(self, tmp_path: Path):
        adapter = LocalFileAdapter.initialize(
            {"type": "local_file", "path": str(tmp_path / "records")}
        )
        adapter.push({"id": 1, "title": "a"})
        adapter.push({"id": 2, "title": "b"})
        adapter.push({"id": 1, "title": "a2"})

        files = adapter.list_records()
        assert [f.name for f in files] == ["1.json", "2.json"]
        assert adapter.read_record(files[0]) == {"id": 1, "title": "a2"}

    def test_query_matches_string_fields(self, tmp_path: Path):
        adapter = LocalFileAdapter(base_path=tmp_path)
        adapter.push(ArticleData(1, "Fan-out dispatch"))
        adapter.push(ArticleData(2, "Unrelated"))

        assert adapter.query("FAN-OUT") == [{"id": 1, "title": "Fan-out dispatch"}]

    def test_unsafe_ids_are_sanitised(self, tmp_path: Path):
        adapter = LocalFileAdapter(base_path=tmp_path)
        adapter.push({"id": "../escape", "title": "x"})
        assert [f.parent for f in adapter.list_records()] == [tmp_path]

    def test_protocol_compliance(self, tmp_path: Path):
        assert isinstance(LocalFileAdapter(base_path=tmp_path), Adapter)

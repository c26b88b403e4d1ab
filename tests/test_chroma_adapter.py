"""Tests for ChromaAdapter record replacement."""

import pytest
from chromadb.api.models.Collection import Collection

from vectororm.adapters import ChromaAdapter
from vectororm.exceptions import BackendError
from vectororm.types import DistanceMetric, VectorRecord


@pytest.fixture
async def adapter(tmp_path):
    instance = ChromaAdapter(persist_directory=str(tmp_path / "chroma"))
    await instance.connect()
    await instance.create_collection("docs", 3, DistanceMetric.COSINE)
    yield instance
    await instance.disconnect()


async def test_failed_upsert_keeps_stored_records(adapter, monkeypatch):
    await adapter.upsert("docs", [
        VectorRecord("a", [1.0, 0.0, 0.0], {"region": "ny"}),
        VectorRecord("b", [0.0, 1.0, 0.0], {"region": "la"}),
    ])

    def fail(self, *args, **kwargs):
        raise RuntimeError("disk full")

    monkeypatch.setattr(Collection, "upsert", fail)
    with pytest.raises(BackendError) as exc_info:
        await adapter.upsert("docs", [VectorRecord("a", [0.0, 0.0, 1.0], {"region": "tx"})])
    assert exc_info.value.operation == "upsert"
    monkeypatch.undo()

    fetched = await adapter.fetch("docs", ["a", "b"])
    assert [r.id for r in fetched] == ["a", "b"]
    assert fetched[0].metadata == {"region": "ny"}
    assert fetched[0].embedding == pytest.approx([1.0, 0.0, 0.0])


async def test_upsert_drops_keys_missing_from_new_record(adapter):
    await adapter.upsert("docs", [VectorRecord("a", [1.0, 0.0, 0.0], {"region": "ny", "year": 2021})])
    await adapter.upsert("docs", [VectorRecord("a", [1.0, 0.0, 0.0], {"year": 2024})])
    [record] = await adapter.fetch("docs", ["a"])
    assert record.metadata == {"year": 2024}

    result = await adapter.search("docs", [1.0, 0.0, 0.0], top_k=1, filter={"region": "ny"})
    assert len(result) == 0

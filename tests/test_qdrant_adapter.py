"""Tests for QdrantAdapter client lifecycle."""

from unittest.mock import AsyncMock

from vectororm.adapters import QdrantAdapter
from vectororm.types import DistanceMetric


async def test_disconnect_closes_in_process_client():
    adapter = QdrantAdapter(url=":memory:")
    await adapter.connect()
    await adapter.create_collection("docs", 3, DistanceMetric.COSINE)
    await adapter.disconnect()
    assert not adapter.is_connected

    # Reconnecting starts a fresh in-process instance
    await adapter.connect()
    assert not await adapter.collection_exists("docs")
    await adapter.disconnect()


async def test_disconnect_leaves_injected_client_open():
    client = AsyncMock()
    adapter = QdrantAdapter(client=client)
    await adapter.connect()
    client.get_collections.assert_awaited_once()

    await adapter.disconnect()
    client.close.assert_not_awaited()

    await adapter.connect()
    assert client.get_collections.await_count == 2

import asyncio
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest

from seriesdb.domain.events.database_events import EventPublisher, SeriesIndexCreated
from seriesdb.infrastructure.series import SeriesIndexManager

LOGS_SCHEMA = {
    "series": {"retain": [30, "d"]},
    "mappings": {"properties": {"msg": {"type": "text"}}},
}


class MutableNow:
    def __init__(self, value: datetime):
        self.value = value

    def __call__(self) -> datetime:
        return self.value


@pytest.fixture
def now():
    return MutableNow(datetime(2024, 5, 1, 10, 0, tzinfo=timezone.utc))


@pytest.fixture
def manager(fake_client, now):
    manager = SeriesIndexManager(fake_client, name="test", now=now)
    manager.register("logs", LOGS_SCHEMA)
    return manager


def test_register_requires_series_marker(fake_client):
    manager = SeriesIndexManager(fake_client)
    assert manager.register("users", {"mappings": {}}) is False
    assert not manager.is_series("users")


def test_register_strips_marker_without_mutating_caller_schema(manager: SeriesIndexManager):
    descriptor = manager.descriptor("logs")

    assert descriptor.retention == timedelta(days=30)
    assert descriptor.schema == {"mappings": {"properties": {"msg": {"type": "text"}}}}
    assert descriptor.last_index is None
    assert "series" in LOGS_SCHEMA
    descriptor.schema["mappings"]["properties"]["extra"] = {}
    assert "extra" not in LOGS_SCHEMA["mappings"]["properties"]


def test_bucket_name_uses_utc_day(manager: SeriesIndexManager):
    assert manager.bucket_name("logs") == "logs-2024.05.01"
    assert manager.bucket_name("logs", {"timestamp": "2023-12-31T23:59:59+00:00"}) == "logs-2023.12.31"
    assert manager.bucket_name("logs", {"timestamp": "2024-01-01T01:00:00+03:00"}) == "logs-2023.12.31"


@pytest.mark.asyncio
async def test_resolve_creates_index_once_per_day(manager: SeriesIndexManager, fake_client, now):
    assert await manager.resolve("logs") == "logs-2024.05.01"
    now.value = now.value + timedelta(hours=5)
    assert await manager.resolve("logs") == "logs-2024.05.01"

    fake_client.indices.create.assert_awaited_once_with(
        index="logs-2024.05.01", mappings={"properties": {"msg": {"type": "text"}}}
    )

    now.value = now.value + timedelta(days=1)
    assert await manager.resolve("logs") == "logs-2024.05.02"
    assert fake_client.indices.create.await_count == 2
    assert manager.descriptor("logs").last_index == "logs-2024.05.02"


@pytest.mark.asyncio
async def test_existing_index_is_not_created(manager: SeriesIndexManager, fake_client):
    fake_client.indices.exists.return_value = True
    assert await manager.resolve("logs", {"timestamp": 1714557600000}) == "logs-2024.05.01"
    fake_client.indices.create.assert_not_awaited()


@pytest.mark.asyncio
async def test_concurrent_resolutions_issue_single_create(manager: SeriesIndexManager, fake_client):
    async def slow_exists(index):
        await asyncio.sleep(0.01)
        return False

    fake_client.indices.exists.side_effect = slow_exists

    results = await asyncio.gather(*(manager.resolve("logs") for _ in range(5)))

    assert set(results) == {"logs-2024.05.01"}
    assert fake_client.indices.create.await_count == 1


@pytest.mark.asyncio
async def test_create_failure_still_returns_bucket(manager: SeriesIndexManager, fake_client):
    log = MagicMock()
    manager.log = log
    fake_client.indices.create.side_effect = ConnectionError("cluster unreachable")

    assert await manager.resolve("logs") == "logs-2024.05.01"
    log.error.assert_called_once()
    assert "logs-2024.05.01" in log.error.call_args.args[0]
    # No retry within the same day
    assert await manager.resolve("logs") == "logs-2024.05.01"
    assert fake_client.indices.create.await_count == 1


@pytest.mark.asyncio
async def test_unregistered_name_returned_unchanged(manager: SeriesIndexManager, fake_client):
    assert await manager.resolve("users") == "users"
    fake_client.indices.exists.assert_not_awaited()


@pytest.mark.asyncio
async def test_rotation_publishes_event(fake_client, now):
    events = EventPublisher()
    received = []
    events.subscribe(received.append)
    manager = SeriesIndexManager(fake_client, events=events, now=now)
    manager.register("logs", LOGS_SCHEMA)

    await manager.resolve("logs")
    await manager.resolve("logs")

    assert len(received) == 1
    assert isinstance(received[0], SeriesIndexCreated)
    assert received[0].index == "logs-2024.05.01"
    assert received[0].previous_index is None


@pytest.mark.asyncio
async def test_resolve_bulk_rewrites_series_targets_in_order(manager: SeriesIndexManager):
    operations = [
        {"index": {"_index": "logs", "_id": "1"}},
        {"msg": "a", "timestamp": "2024-04-30T08:00:00+00:00"},
        {"delete": {"_index": "logs", "_id": "2"}},
        {"update": {"_index": "logs", "_id": "3"}},
        {"doc": {"msg": "c", "timestamp": "2024-04-29T08:00:00+00:00"}},
        {"create": {"_index": "users", "_id": "4"}},
        {"name": "d"},
    ]

    resolved = await manager.resolve_bulk(operations)

    assert resolved == [
        {"index": {"_index": "logs-2024.04.30", "_id": "1"}},
        {"msg": "a", "timestamp": "2024-04-30T08:00:00+00:00"},
        {"delete": {"_index": "logs-2024.05.01", "_id": "2"}},
        {"update": {"_index": "logs-2024.04.29", "_id": "3"}},
        {"doc": {"msg": "c", "timestamp": "2024-04-29T08:00:00+00:00"}},
        {"create": {"_index": "users", "_id": "4"}},
        {"name": "d"},
    ]
    # The caller's action lines are untouched
    assert operations[0] == {"index": {"_index": "logs", "_id": "1"}}


@pytest.mark.asyncio
async def test_resolve_bulk_entries_independent_of_failed_creation(manager: SeriesIndexManager, fake_client):
    fake_client.indices.create.side_effect = [ConnectionError("cluster unreachable"), {"acknowledged": True}]
    operations = [
        {"index": {"_index": "logs", "_id": "1"}},
        {"msg": "a", "timestamp": "2024-04-30T08:00:00+00:00"},
        {"index": {"_index": "logs", "_id": "2"}},
        {"msg": "b", "timestamp": "2024-04-29T08:00:00+00:00"},
        {"create": {"_index": "users", "_id": "3"}},
        {"name": "c"},
    ]

    resolved = await manager.resolve_bulk(operations)

    assert resolved[::2] == [
        {"index": {"_index": "logs-2024.04.30", "_id": "1"}},
        {"index": {"_index": "logs-2024.04.29", "_id": "2"}},
        {"create": {"_index": "users", "_id": "3"}},
    ]
    assert resolved[1::2] == operations[1::2]
    created = [call.kwargs["index"] for call in fake_client.indices.create.await_args_list]
    assert created == ["logs-2024.04.30", "logs-2024.04.29"]

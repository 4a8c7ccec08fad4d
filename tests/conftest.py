import os
import pytest
from types import SimpleNamespace
from typer.testing import CliRunner
from unittest.mock import AsyncMock, MagicMock

from seriesdb.domain.models.config import CacheConfig, DatabaseConfig, StatsConfig
from seriesdb.infrastructure.config import settings


class FakeSearchClient:
    """Stand-in for AsyncElasticsearch exposing the operations seriesdb touches."""

    def __init__(self):
        self.search = AsyncMock(return_value={"hits": {"total": {"value": 1}, "hits": [{"_id": "1"}]}})
        self.get = AsyncMock(return_value={"_index": "myIndex", "_id": "1", "found": True, "_source": {"a": 1}})
        self.count = AsyncMock(return_value={"count": 3})
        self.index = AsyncMock(return_value={"result": "created"})
        self.create = AsyncMock(return_value={"result": "created"})
        self.update = AsyncMock(return_value={"result": "updated"})
        self.delete = AsyncMock(return_value={"result": "deleted"})
        self.delete_by_query = AsyncMock(return_value={"deleted": 2})
        self.bulk = AsyncMock(return_value={"errors": False, "items": []})
        self.info = AsyncMock(return_value={"version": {"number": "8.13.0"}})
        self.indices = SimpleNamespace(
            exists=AsyncMock(return_value=False),
            create=AsyncMock(return_value={"acknowledged": True}),
        )
        self.cluster = SimpleNamespace(health=AsyncMock(return_value={"status": "green"}))
        self.close = AsyncMock()
        self.transport = MagicMock(name="transport")


@pytest.fixture
def fake_client():
    """Provides a fresh fake search client."""
    return FakeSearchClient()


@pytest.fixture
def database_config():
    """Configuration for an instance with inline schemas: one series and one plain index."""
    return DatabaseConfig(
        name="test",
        client={"host": "localhost:9200"},
        logger="seriesdb.test",
        cache=CacheConfig(),
        stats=StatsConfig(threshold=2),
        indices={
            "logs": {"series": {"retain": [30, "d"]}, "mappings": {"properties": {"msg": {"type": "text"}}}},
            "users": {"mappings": {"properties": {"name": {"type": "keyword"}}}},
        },
    )


@pytest.fixture(scope="session")
def runner():
    """Provides a Typer CliRunner instance."""
    return CliRunner()


@pytest.fixture(autouse=True)
def isolated_configuration(monkeypatch, tmp_path):
    """Keeps tests away from the user's config file and environment."""
    for key in list(os.environ):
        if key.startswith(settings.ENV_PREFIX):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    settings.reset_configuration()
    settings.clear_test_config()
    yield
    settings.reset_configuration()
    settings.clear_test_config()

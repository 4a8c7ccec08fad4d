import pytest
from unittest.mock import MagicMock

from seriesdb.core.command_handler import CommandHandler
from seriesdb.core.database import Database
from seriesdb.core.manager import DatabaseManager
from seriesdb.domain.interfaces.user_interface import UserInterface
from seriesdb.infrastructure.config.settings import set_config_for_testing

SCHEMAS = {
    "logs": {"series": {"retain": [7, "d"]}},
    "users": {"mappings": {}},
}


@pytest.fixture
def mock_ui():
    return MagicMock(spec=UserInterface)


@pytest.fixture
def manager(fake_client):
    return DatabaseManager(database_factory=lambda config: Database(config=config, client=fake_client))


@pytest.fixture
def command_handler(manager, mock_ui):
    """Fixture to create CommandHandler with a manager over the fake client."""
    set_config_for_testing({"database": {"cli": {"indices": SCHEMAS}}})
    return CommandHandler(manager=manager, ui=mock_ui)


@pytest.mark.asyncio
async def test_handle_mappings(command_handler: CommandHandler, mock_ui: MagicMock, manager, fake_client):
    await command_handler.handle_mappings("cli")

    mock_ui.display_mappings.assert_called_once_with({"logs": None}, ["users"])
    # Instances are closed once the command is done
    assert manager.list() == {}
    fake_client.close.assert_awaited_once()


@pytest.mark.asyncio
async def test_handle_resolve_series(command_handler: CommandHandler, mock_ui: MagicMock, fake_client):
    await command_handler.handle_resolve("cli", "logs", '{"timestamp": "2024-05-01T10:00:00+00:00"}')

    mock_ui.display_info.assert_called_once_with("logs -> logs-2024.05.01")
    fake_client.cluster.health.assert_not_awaited()
    fake_client.indices.create.assert_not_awaited()


@pytest.mark.asyncio
async def test_handle_resolve_plain_index(command_handler: CommandHandler, mock_ui: MagicMock):
    await command_handler.handle_resolve("cli", "users")
    mock_ui.display_warning.assert_called_once()


@pytest.mark.asyncio
async def test_handle_resolve_invalid_record(command_handler: CommandHandler, mock_ui: MagicMock):
    await command_handler.handle_resolve("cli", "logs", "[1, 2]")
    mock_ui.display_error.assert_called_once_with("Resolve failed: --record must be a JSON object")


@pytest.mark.asyncio
async def test_handle_search_repeats_through_cache(command_handler: CommandHandler, mock_ui: MagicMock, fake_client):
    await command_handler.handle_search("cli", "users", '{"match_all": {}}', cache_key="all", repeat=3)

    fake_client.search.assert_awaited_once_with(index="users", query={"match_all": {}})
    mock_ui.display_output.assert_called_once_with(fake_client.search.return_value, title="search users")
    stats = mock_ui.display_stats.call_args.args[0]
    assert stats["hit"]["count"] == 2
    assert stats["miss"]["count"] == 1


@pytest.mark.asyncio
async def test_handle_search_error(command_handler: CommandHandler, mock_ui: MagicMock, fake_client):
    fake_client.search.side_effect = ConnectionError("cluster down")

    await command_handler.handle_search("cli", "users")

    mock_ui.display_error.assert_called_once_with("Search failed: cluster down")
    mock_ui.display_output.assert_not_called()


@pytest.mark.asyncio
async def test_reserved_name_reported(command_handler: CommandHandler, mock_ui: MagicMock):
    await command_handler.handle_mappings("_private")
    mock_ui.display_error.assert_called_once()

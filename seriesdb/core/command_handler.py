"""Command Handler: Orchestrates CLI command execution.

Receives commands from the main entry point (main.py), obtains the named
database instance from the DatabaseManager and reports results through the
UserInterface.
"""

import json
import logging
from typing import Any, Dict, Optional

from seriesdb.core.manager import DatabaseManager
from seriesdb.domain.errors import SeriesDBError
from seriesdb.domain.interfaces.user_interface import UserInterface
from seriesdb.domain.models.config import DEFAULT_INSTANCE_NAME
from seriesdb.infrastructure.config.schema_loader import load_schemas
from seriesdb.infrastructure.config.settings import build_database_config
from seriesdb.infrastructure.series.index_manager import SeriesIndexManager

logger = logging.getLogger(__name__)


def _parse_json_option(value: Optional[str], option: str) -> Optional[Dict[str, Any]]:
    if value is None:
        return None
    try:
        parsed = json.loads(value)
    except json.JSONDecodeError as e:
        raise ValueError(f"--{option} is not valid JSON: {e}") from e
    if not isinstance(parsed, dict):
        raise ValueError(f"--{option} must be a JSON object")
    return parsed


class CommandHandler:
    """Handles incoming commands and delegates to the database instances."""

    def __init__(self, manager: DatabaseManager, ui: UserInterface):
        """Initializes the CommandHandler with the instance registry and the UI."""
        self.manager = manager
        self.ui = ui

    async def handle_mappings(self, name: str) -> None:
        """Handles the 'mappings' command: applies mappings and lists them."""
        logger.info(f"Handling 'mappings' command for database: {name}")
        try:
            database = self.manager.factory(name)
            await database.wait_until_ready()
            series = {index: descriptor.last_index for index, descriptor in database.series.series.items()}
            plain = [index for index in database.indices if index not in series]
            self.ui.display_mappings(series, plain)
        except (SeriesDBError, OSError) as e:
            logger.error(f"Mappings command failed: {e}", exc_info=True)
            self.ui.display_error(f"Mappings failed: {e}")
        finally:
            await self.manager.reset()

    async def handle_resolve(self, name: str, index: str, record_json: Optional[str] = None) -> None:
        """Handles the 'resolve' command: shows the daily index a record maps to.

        Runs offline; the cluster is never contacted.
        """
        logger.info(f"Handling 'resolve' command for index: {index}")
        try:
            record = _parse_json_option(record_json, "record")
            config = build_database_config(name or DEFAULT_INSTANCE_NAME)
            series = SeriesIndexManager(client=None, name=config.name)
            for configured, schema in load_schemas(config.indices).items():
                series.register(configured, schema)
            if not series.is_series(index):
                self.ui.display_warning(f"'{index}' is not a series index; writes go to it unchanged.")
                return
            self.ui.display_info(f"{index} -> {series.bucket_name(index, record)}")
        except (ValueError, SeriesDBError) as e:
            logger.error(f"Resolve command failed: {e}", exc_info=True)
            self.ui.display_error(f"Resolve failed: {e}")

    async def handle_search(
        self,
        name: str,
        index: str,
        query_json: Optional[str] = None,
        cache_key: Optional[str] = None,
        repeat: int = 1,
    ) -> None:
        """Handles the 'search' command: runs a query through the intercepted client."""
        logger.info(f"Handling 'search' command on '{index}' (cache key: {cache_key}, repeat: {repeat})")
        try:
            query = _parse_json_option(query_json, "query")
            database = self.manager.factory(name)
            await database.wait_until_ready()
            params: Dict[str, Any] = {"index": index}
            if query is not None:
                params["query"] = query
            if cache_key:
                params["cache"] = cache_key
            result = None
            for _ in range(max(repeat, 1)):
                result = await database.client.search(params)
            self.ui.display_output(result, title=f"search {index}")
            self.ui.display_stats(database.stats)
        except Exception as e:
            logger.error(f"Search command failed: {e}", exc_info=True)
            self.ui.display_error(f"Search failed: {e}")
        finally:
            await self.manager.reset()

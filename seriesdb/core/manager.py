"""Registry of named database instances.

Creates instances on first request (from file configuration merged with
explicit overrides), returns the same instance for the same name, and tracks
whether every instance has become ready.
"""

import asyncio
import logging
from typing import Any, Callable, Dict, Mapping, Optional

from seriesdb.core.database import Database
from seriesdb.domain.errors import ConfigurationError
from seriesdb.domain.models.config import DEFAULT_INSTANCE_NAME, DatabaseConfig
from seriesdb.infrastructure.config.settings import build_database_config, configured_instance_names

logger = logging.getLogger(__name__)

RESERVED_PREFIX = "_"

DatabaseFactory = Callable[[DatabaseConfig], Database]


class DatabaseManager:
    """Named-instance registry. Instances are never shared across names."""

    def __init__(self, database_factory: DatabaseFactory = Database):
        """Initializes an empty registry.

        Args:
            database_factory: Builds a Database from its configuration.
        """
        self._database_factory = database_factory
        self._instances: Dict[str, Database] = {}

    def factory(self, name: str = DEFAULT_INSTANCE_NAME, overrides: Optional[Mapping[str, Any]] = None) -> Database:
        """Returns the named instance, creating and starting it if necessary.

        Args:
            name: Instance name; ``_default_`` if empty.
            overrides: Settings merged over the file configuration for this
                name. Ignored if the instance already exists.

        Raises:
            ConfigurationError: If the name uses the reserved ``_`` prefix.
        """
        name = name or DEFAULT_INSTANCE_NAME
        if name.startswith(RESERVED_PREFIX) and name != DEFAULT_INSTANCE_NAME:
            raise ConfigurationError(f'Invalid database name "{name}" ("_" prefix is reserved for internal functions)')
        if name in self._instances:
            return self._instances[name]

        database = self._database_factory(build_database_config(name, overrides))
        self._instances[name] = database
        database.on_ready(lambda event: self._on_instance_ready(name))
        logger.info(f"Created database instance '{name}'")
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            logger.debug(f"No running event loop; call start() on database '{name}' to apply mappings")
        else:
            database.schedule_start()
        return database

    def _on_instance_ready(self, name: str) -> None:
        logger.debug(f"Database instance '{name}' reported ready")
        if self.ready:
            logger.info(f"All {len(self._instances)} database instance(s) are ready")

    def list(self) -> Dict[str, Database]:
        """Returns a map with all the known database instances."""
        return dict(self._instances)

    def get(self, name: str) -> Optional[Database]:
        return self._instances.get(name)

    @property
    def ready(self) -> bool:
        """True when every known instance has applied its mappings."""
        return all(database.ready for database in self._instances.values())

    async def wait_until_ready(self) -> None:
        await asyncio.gather(*(database.wait_until_ready() for database in self._instances.values()))

    def bootstrap(self) -> Database:
        """Creates every configured instance and returns the default one.

        The default is the configured instance flagged ``default: true``,
        otherwise the first configured one, otherwise ``_default_``.
        """
        names = configured_instance_names()
        default_name = None
        for name in names:
            database = self.factory(name)
            if default_name is None or database.config.default:
                default_name = name
        return self.factory(default_name or DEFAULT_INSTANCE_NAME)

    async def reset(self) -> None:
        """Closes and forgets all previously created instances."""
        instances, self._instances = self._instances, {}
        for name, database in instances.items():
            try:
                await database.close()
            except Exception as e:
                logger.error(f"Failed to close database '{name}': {e}", exc_info=True)

"""Provides functions for loading and accessing configuration settings.

Supports loading from a YAML configuration file, .env files and environment
variables, and turns the ``database`` section into immutable per-instance
configuration objects.
"""

import copy
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml
from dotenv import load_dotenv

from seriesdb.domain.errors import ConfigurationError
from seriesdb.domain.models.config import (
    DEFAULT_INSTANCE_NAME,
    CacheConfig,
    DatabaseConfig,
    StatsConfig,
)
from seriesdb.domain.models.duration import parse_duration

logger = logging.getLogger(__name__)

# --- Configuration Constants ---
DEFAULT_CONFIG_DIR = Path.home() / ".seriesdb"
DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.yaml"
ENV_FILE_NAME = ".env"
ENV_PREFIX = "SERIESDB_"

# Built-in defaults for every database instance, overridden by the
# ``database.<name>`` section of the config file and by explicit overrides.
INSTANCE_DEFAULTS: Dict[str, Any] = {
    "logger": "elasticsearch",
    "client": {
        "host": "localhost:9200",
    },
    "cache": {
        "type": "memory",
        "max": 1000,
        "ttl": [1, "h"],
    },
    "stats": {
        # Window for which hit/miss metrics are kept in memory
        "interval": [1, "m"],
        # Requests to the same key needed to make it into the keys list; 0 disables key stats
        "threshold": 10,
    },
    # Directory (relative to the working directory) or inline {index: schema} mapping
    "indices": "config/schemas",
}

# --- Global Configuration Store ---
_config: Dict[str, Any] = {}
_test_config: Dict[str, Any] = {}
_loaded = False


def load_configuration(config_file: Path = DEFAULT_CONFIG_FILE, env_file: Optional[Path] = None) -> None:
    """Loads configuration from environment, .env file, and YAML file.

    Priority order (highest to lowest):
    1. Environment Variables
    2. .env file
    3. YAML configuration file
    4. Built-in defaults

    Args:
        config_file: Path to the YAML configuration file.
        env_file: Path to the .env file (searches upwards from cwd if None).
    """
    global _config, _loaded
    if _loaded:
        logger.debug("Configuration already loaded.")
        return

    _config = {}

    # 1. Load from YAML file (Lowest priority)
    config_file = Path(config_file)
    if config_file.exists():
        try:
            with open(config_file, 'r', encoding='utf-8') as f:
                yaml_config = yaml.safe_load(f)
            if isinstance(yaml_config, dict):
                _config.update(yaml_config)
                logger.info(f"Loaded configuration from YAML: {config_file}")
            elif yaml_config is not None:
                logger.warning(f"YAML config file {config_file} did not contain a dictionary.")
        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Failed to load or parse YAML config {config_file}: {e}")
    else:
        logger.debug(f"YAML config file not found: {config_file}")

    # 2. Load from .env file (Medium priority)
    dotenv_path = env_file or find_dotenv_path()
    if dotenv_path:
        # override=False: ENV VARS take precedence
        if load_dotenv(dotenv_path=dotenv_path, override=False):
            logger.info(f"Loaded environment variables from: {dotenv_path}")
    else:
        logger.debug("Skipping .env file loading (path not found or specified as None).")

    # 3. Environment Variables (Highest priority) are handled in get_config

    _loaded = True
    logger.info("Configuration loading process completed.")


def reset_configuration() -> None:
    """Forgets loaded configuration so the next load_configuration() re-reads it."""
    global _config, _loaded
    _config = {}
    _loaded = False


def _env_key(key: str) -> str:
    return ENV_PREFIX + key.upper().replace('.', '_').replace('-', '_')


def _convert_env_value(value: str) -> Any:
    if value.lower() == 'true':
        return True
    if value.lower() == 'false':
        return False
    try:
        if '.' in value:
            return float(value)
        return int(value)
    except (ValueError, TypeError):
        return value


def _lookup(source: Mapping[str, Any], key: str) -> Any:
    """Walks a dotted key through nested dictionaries. Raises KeyError if absent."""
    if key in source:
        return source[key]
    node: Any = source
    for part in key.split('.'):
        if not isinstance(node, Mapping) or part not in node:
            raise KeyError(key)
        node = node[part]
    return node


def get_config(key: str, default: Any = None) -> Any:
    """
    Get a configuration value by (dotted) key.

    Priority:
    1. Test configuration (if in testing mode)
    2. Environment variable (``SERIESDB_`` + upper-cased key, dots as underscores)
    3. YAML config
    4. Default value

    Args:
        key: The configuration key, e.g. 'database.custom.client.host'
        default: Default value if the key is not found

    Returns:
        The configuration value
    """
    try:
        return _lookup(_test_config, key)
    except KeyError:
        pass

    env_key = _env_key(key)
    if env_key in os.environ:
        return _convert_env_value(os.environ[env_key])

    try:
        return _lookup(_config, key)
    except KeyError:
        logger.debug(f"Config key '{key}' not found in environment or loaded config. Returning default: {default}")
        return default


def find_dotenv_path() -> Optional[Path]:
    """Searches for the .env file upwards from the current directory."""
    cwd = Path.cwd()
    for path in [cwd] + list(cwd.parents):
        env_path = path / ENV_FILE_NAME
        if env_path.is_file():
            return env_path
    return None


def _deep_merge(base: Dict[str, Any], override: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """Returns a copy of ``base`` with ``override`` merged in, recursing into dicts."""
    merged = copy.deepcopy(base)
    for key, value in (override or {}).items():
        if isinstance(value, Mapping) and isinstance(merged.get(key), Mapping):
            merged[key] = _deep_merge(dict(merged[key]), value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def configured_instance_names() -> List[str]:
    """Names of all instances configured under the ``database`` section."""
    section = get_config('database', {}) or {}
    if not isinstance(section, Mapping):
        logger.warning("The 'database' configuration section is not a mapping; ignoring it.")
        return []
    return [name for name, value in section.items() if isinstance(value, Mapping)]


def build_database_config(name: str = DEFAULT_INSTANCE_NAME, overrides: Optional[Mapping[str, Any]] = None) -> DatabaseConfig:
    """Builds the immutable configuration for one database instance.

    Built-in defaults < ``database.<name>`` from the loaded config < overrides.

    Args:
        name: Instance name.
        overrides: Explicit settings for this instance.

    Returns:
        The instance configuration.

    Raises:
        ConfigurationError: If a duration or number cannot be interpreted.
    """
    from_file = get_config(f'database.{name}', {}) or {}
    if not isinstance(from_file, Mapping):
        raise ConfigurationError(f"Configuration for database '{name}' must be a mapping")
    options = _deep_merge(_deep_merge(INSTANCE_DEFAULTS, from_file), overrides)

    host = get_config(f'database.{name}.client.host')
    if host and not (overrides or {}).get('client', {}).get('host'):
        options['client']['host'] = host

    cache = options.get('cache') or {}
    stats = options.get('stats') or {}
    try:
        max_items = int(cache.get('max') or 0)
        threshold = int(stats.get('threshold') or 0)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid numeric setting for database '{name}': {e}") from e
    directory = cache.get('directory')

    return DatabaseConfig(
        name=name,
        client=options.get('client') or {},
        logger=options.get('logger'),
        cache=CacheConfig(
            type=cache.get('type', 'memory'),
            ttl=parse_duration(cache.get('ttl')),
            max_items=max_items,
            directory=Path(directory) if directory else None,
        ),
        stats=StatsConfig(
            interval=parse_duration(stats.get('interval')),
            threshold=threshold,
        ),
        indices=options.get('indices'),
        default_mappings=options.get('default_mappings'),
        default_settings=options.get('default_settings'),
        default=bool(options.get('default', False)),
    )


def set_config_for_testing(config_dict: Dict[str, Any]) -> None:
    """
    Set configuration values for testing purposes.
    These values will override any existing configuration.

    Args:
        config_dict: Dictionary of configuration values to set
    """
    _test_config.update(config_dict)
    logger.debug(f"Set testing configuration: {config_dict}")


def clear_test_config() -> None:
    """Clear all testing configuration values."""
    _test_config.clear()
    logger.debug("Cleared testing configuration")

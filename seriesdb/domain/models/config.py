"""Immutable configuration objects.

Built once per database instance by the settings layer and handed to each
component's constructor.
"""

from dataclasses import dataclass, field
from datetime import timedelta
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping, Optional, Union

DEFAULT_INSTANCE_NAME = "_default_"

CacheType = str  # 'memory' or 'disk'


def _frozen(value: Optional[Mapping[str, Any]]) -> Mapping[str, Any]:
    return MappingProxyType(dict(value or {}))


@dataclass(frozen=True)
class CacheConfig:
    """Cache backend selection and entry lifetime."""
    type: CacheType = "memory"
    ttl: timedelta = timedelta(hours=1)
    max_items: int = 1000  # Memory backend only
    directory: Optional[Path] = None  # Disk backend only


@dataclass(frozen=True)
class StatsConfig:
    """Sliding window length and per-key reporting threshold."""
    interval: timedelta = timedelta(minutes=1)
    threshold: int = 10  # 0 disables per-key statistics


@dataclass(frozen=True)
class DatabaseConfig:
    """Everything one database instance needs to start."""
    name: str = DEFAULT_INSTANCE_NAME
    client: Mapping[str, Any] = field(default_factory=lambda: _frozen({"host": "localhost:9200"}))
    logger: Any = "elasticsearch"  # Logger name or an object with error/warning/info/debug
    cache: CacheConfig = field(default_factory=CacheConfig)
    stats: StatsConfig = field(default_factory=StatsConfig)
    # Inline {index: schema} mapping, or a directory of schema files
    indices: Union[str, Path, Mapping[str, Any], None] = "config/schemas"
    default_mappings: Optional[Mapping[str, Any]] = None
    default_settings: Optional[Mapping[str, Any]] = None
    default: bool = False  # Preferred instance for DatabaseManager.bootstrap()

    def __post_init__(self) -> None:
        object.__setattr__(self, "client", _frozen(self.client))

"""Structures returned by the stats collector.

Snapshots are plain dictionaries so they serialize directly (logs, JSON,
health endpoints).
"""

from dataclasses import dataclass
from typing import List, TypedDict


@dataclass
class KeyStat:
    """Decaying counters for a single cache key."""
    request: int = 0
    hit: int = 0
    miss: int = 0


class RatioStats(TypedDict):
    count: int
    ratio: float


class KeyStats(TypedDict):
    """Per-key breakdown included once a key crosses the reporting threshold."""
    key: str
    request: int
    hit: int
    miss: int


class _CacheStatsBase(TypedDict):
    source: str  # Name of the database instance
    total: int
    hit: RatioStats
    miss: RatioStats


class CacheStats(_CacheStatsBase, total=False):
    """Snapshot of cache activity over the trailing window."""
    keys: List[KeyStats]

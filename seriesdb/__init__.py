"""seriesdb: caching and date-series routing in front of a search client.

Wraps an Elasticsearch-style client so that reads can be cached, writes are
routed into daily series indices, and cache hit/miss statistics are tracked.
"""

from seriesdb.core.database import Database
from seriesdb.core.manager import DatabaseManager

__all__ = ["Database", "DatabaseManager"]

"""Defines common Value Objects used across different domain contexts.

These objects represent simple values like cache keys, index names and
operation names, ensuring consistency and type safety.
"""

from typing import Any, Dict, NewType

# === Caching Context ===
CacheKey = NewType("CacheKey", str)              # Unique key for a cache entry

# === Index Context ===
IndexName = NewType("IndexName", str)            # Logical or concrete index name
SeriesIndexName = NewType("SeriesIndexName", str)  # Concrete daily index, e.g. 'logs-2024.05.01'
Schema = NewType("Schema", Dict[str, Any])       # Index body: mappings, settings, aliases

# === Remote Client Context ===
OperationName = NewType("OperationName", str)    # Name of a client method, e.g. 'search'
RequestParams = NewType("RequestParams", Dict[str, Any])  # Keyword parameters of a client call

"""Classification tables for the intercepted client operations.

Names follow the Python Elasticsearch client API. An operation can appear in
more than one table (e.g. ``index`` is both an add and an indexable op).
"""

from typing import FrozenSet

# Cacheable reads: a result can be served from, and stored into, the cache.
QUERY_OPERATIONS: FrozenSet[str] = frozenset({
    "count",
    "exists",
    "exists_source",
    "explain",
    "field_caps",
    "get",
    "get_script",
    "get_source",
    "mget",
    "msearch",
    "msearch_template",
    "mtermvectors",
    "search",
    "search_shards",
    "search_template",
    "termvectors",
})

# Writes whose request document becomes the cached value.
ADD_OPERATIONS: FrozenSet[str] = frozenset({
    "create",
    "index",
    "update",
    "update_by_query",
})

# Writes that invalidate the cache key once they succeed.
DELETE_OPERATIONS: FrozenSet[str] = frozenset({
    "delete",
    "delete_by_query",
    "delete_script",
})

# Writes whose target index may have to be routed into a series index.
INDEXABLE_OPERATIONS: FrozenSet[str] = frozenset({
    "bulk",
    "create",
    "index",
    "update",
    "update_by_query",
})

INTERCEPTED_OPERATIONS: FrozenSet[str] = (
    QUERY_OPERATIONS | ADD_OPERATIONS | DELETE_OPERATIONS | INDEXABLE_OPERATIONS
)

# Actions that may head an entry of a bulk body.
BULK_ACTIONS = ("index", "create", "update", "delete")


def is_query(operation: str) -> bool:
    return operation in QUERY_OPERATIONS


def is_add(operation: str) -> bool:
    return operation in ADD_OPERATIONS


def is_delete(operation: str) -> bool:
    return operation in DELETE_OPERATIONS


def is_indexable(operation: str) -> bool:
    return operation in INDEXABLE_OPERATIONS

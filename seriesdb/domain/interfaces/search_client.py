"""Interface of the remote search client consumed by seriesdb.

Only the index-management primitives are listed: the data operations
(search, index, bulk, ...) are discovered by name at runtime, see
``seriesdb.domain.models.operations``.
"""

from typing import Any, Protocol


class IndicesClient(Protocol):
    async def exists(self, *, index: str, **kwargs: Any) -> Any:
        """Truthy when the index exists."""
        ...

    async def create(self, *, index: str, **kwargs: Any) -> Any:
        ...


class ClusterClient(Protocol):
    async def health(self, **kwargs: Any) -> Any:
        ...


class SearchClient(Protocol):
    """Subset of ``elasticsearch.AsyncElasticsearch`` used directly."""

    indices: IndicesClient
    cluster: ClusterClient

    async def close(self) -> None:
        ...

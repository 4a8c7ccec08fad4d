"""Call interceptor: the client surface handed to callers.

Wraps a search client so that every known data operation goes through the
same pipeline: cache probe, series routing, delegation, cache update. The
set of wrapped operations is fixed at construction from the classification
tables; every other attribute is forwarded to the wrapped client untouched.
"""

import asyncio
import inspect
import logging
from typing import Any, Callable, Dict, Mapping, Optional

from seriesdb.domain.errors import CacheBackendError
from seriesdb.domain.interfaces.cache import CacheBackend
from seriesdb.domain.models.common import CacheKey, OperationName, RequestParams
from seriesdb.domain.models.operations import (
    INTERCEPTED_OPERATIONS,
    is_add,
    is_delete,
    is_indexable,
    is_query,
)
from seriesdb.infrastructure.series.index_manager import SeriesIndexManager
from seriesdb.infrastructure.stats.stats_collector import StatsCollector

logger = logging.getLogger(__name__)

CACHE_PARAM = "cache"
# Keyword names under which the client accepts a request document / bulk body
DOCUMENT_PARAMS = ("document", "doc", "body")
BULK_PARAMS = ("operations", "body")

Callback = Callable[[Optional[BaseException], Any], None]


def derive_cache_key(params: Mapping[str, Any]) -> CacheKey:
    """Builds a key from the index, type and id parameters that are present."""
    parts = [str(params[name]) for name in ("index", "type", "id") if params.get(name) is not None]
    return CacheKey(":".join(parts))


def activity_key(params: Mapping[str, Any]) -> CacheKey:
    """Key recorded for calls without a cache directive: ``index:type:id``."""
    return CacheKey(":".join(str(params.get(name)) for name in ("index", "type", "id")))


def response_body(response: Any) -> Any:
    """The plain body of a client response; other values are returned as they are."""
    return getattr(response, "body", response)


def _request_document(params: Mapping[str, Any]) -> Any:
    for name in DOCUMENT_PARAMS:
        if name in params:
            return params[name]
    return None


def _as_document_envelope(params: Mapping[str, Any], document: Any) -> Dict[str, Any]:
    """Reshapes a written document into the envelope a ``get`` returns."""
    source = document
    if isinstance(document, Mapping) and isinstance(document.get("doc"), Mapping):
        source = document["doc"]
    envelope: Dict[str, Any] = {"_index": params.get("index")}
    if params.get("type") is not None:
        envelope["_type"] = params["type"]
    if params.get("id") is not None:
        envelope["_id"] = params["id"]
    envelope["found"] = True
    envelope["_source"] = source
    return envelope


class InterceptedClient:
    """Same calling surface as the wrapped client, with caching and series routing.

    Wrapped operations accept a parameter mapping and/or keyword arguments
    plus an optional ``callback(error, result)``, and return an awaitable
    future resolving to the same result the callback receives.
    """

    def __init__(
        self,
        client: Any,
        cache: CacheBackend,
        stats: StatsCollector,
        series: SeriesIndexManager,
        name: str = "_default_",
        log: Optional[logging.Logger] = None,
    ):
        self._client = client
        self._cache = cache
        self._stats = stats
        self._series = series
        self._name = name
        self._log = log or logger
        self._operations: Dict[str, Callable[..., "asyncio.Future[Any]"]] = {}
        for operation in sorted(INTERCEPTED_OPERATIONS):
            original = getattr(client, operation, None)
            if callable(original):
                self._operations[operation] = self._wrap(OperationName(operation), original)

    @property
    def unwrapped(self) -> Any:
        """The underlying client, bypassing cache and series routing."""
        return self._client

    @property
    def intercepted_operations(self) -> frozenset:
        return frozenset(self._operations)

    def __getattr__(self, name: str) -> Any:
        # Only called for attributes not found on the interceptor itself
        operations = self.__dict__.get("_operations", {})
        if name in operations:
            return operations[name]
        return getattr(self.__dict__["_client"], name)

    def __dir__(self):
        return sorted(set(super().__dir__()) | set(self._operations) | set(dir(self._client)))

    def _wrap(self, operation: OperationName, original: Callable[..., Any]) -> Callable[..., "asyncio.Future[Any]"]:
        def intercepted(params: Optional[Mapping[str, Any]] = None, callback: Optional[Callback] = None, **kwargs: Any):
            request = RequestParams({**(params or {}), **kwargs})
            future = asyncio.ensure_future(self._dispatch(operation, original, request))
            if callback is not None:
                future.add_done_callback(lambda done: self._complete(done, callback))
            return future

        intercepted.__name__ = operation
        intercepted.__doc__ = getattr(original, "__doc__", None)
        return intercepted

    def _complete(self, future: "asyncio.Future[Any]", callback: Callback) -> None:
        if future.cancelled():
            callback(asyncio.CancelledError(), None)
            return
        error = future.exception()
        try:
            callback(error, None if error is not None else future.result())
        except Exception as e:
            self._log.error(f"{self._name}: Completion callback raised: {e}", exc_info=True)

    async def _dispatch(self, operation: OperationName, original: Callable[..., Any], params: RequestParams) -> Any:
        """Runs one call through cache probe, series routing, delegation and cache update."""
        directive = params.pop(CACHE_PARAM, None)
        cache_key: Optional[CacheKey] = None
        if isinstance(directive, str) and directive:
            cache_key = CacheKey(directive)
        elif directive is True:
            cache_key = derive_cache_key(params)

        if cache_key and is_query(operation):
            cached = await self._probe(cache_key)
            if cached is not None:
                return cached
        else:
            self._stats.record_request(cache_key or activity_key(params))

        if is_indexable(operation):
            await self._route(operation, params)

        result = original(**params)
        if inspect.isawaitable(result):
            result = await result
        if cache_key and is_query(operation):
            # Cached queries resolve to the plain body on hits and misses alike
            result = response_body(result)

        if is_delete(operation):
            if cache_key:
                await self._cache.remove(cache_key)
            return result
        if cache_key:
            if is_add(operation):
                await self._cache.store(cache_key, _as_document_envelope(params, _request_document(params)))
            else:
                await self._cache.store(cache_key, result)
        return result

    async def _probe(self, cache_key: CacheKey) -> Optional[Any]:
        """Looks the key up, recording a hit or miss. Backend failures count as misses."""
        try:
            cached = await self._cache.fetch(cache_key)
        except CacheBackendError as e:
            self._log.warning(f"{self._name}: Cache unavailable, treating as miss: {e}")
            cached = None
        if cached is not None:
            self._stats.record_hit(cache_key)
            self._log.debug(f"{self._name}: Cache hit for key: {cache_key}")
        else:
            self._stats.record_miss(cache_key)
        return cached

    async def _route(self, operation: OperationName, params: RequestParams) -> None:
        """Rewrites series targets in place on the (already copied) parameters."""
        try:
            index = params.get("index")
            if isinstance(index, str) and self._series.is_series(index):
                record = _request_document(params) if operation != "bulk" else None
                if isinstance(record, Mapping) and isinstance(record.get("doc"), Mapping):
                    record = record["doc"]
                params["index"] = await self._series.resolve(index, record)
            if operation == "bulk":
                for name in BULK_PARAMS:
                    if isinstance(params.get(name), list):
                        params[name] = await self._series.resolve_bulk(params[name])
                        break
        except Exception as e:
            self._log.error(f"{self._name}: Series routing failed for '{operation}': {e}", exc_info=True)

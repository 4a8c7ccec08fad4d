"""A single seriesdb instance.

Owns the search client, its cache, stats collector and series index manager,
applies the configured index mappings on start, and hands out the
intercepted client.
"""

import asyncio
import inspect
from typing import Any, Dict, List, Mapping, Optional

from seriesdb.core.interceptor import InterceptedClient
from seriesdb.domain.events.database_events import DatabaseReady, EventListener, EventPublisher
from seriesdb.domain.interfaces.cache import CacheBackend
from seriesdb.domain.models.config import DatabaseConfig
from seriesdb.domain.models.stats import CacheStats
from seriesdb.infrastructure.cache import create_cache
from seriesdb.infrastructure.config.schema_loader import load_schemas
from seriesdb.infrastructure.monitoring.logger_setup import resolve_logger
from seriesdb.infrastructure.search.elasticsearch_client import create_search_client
from seriesdb.infrastructure.series.index_manager import SeriesIndexManager
from seriesdb.infrastructure.stats.stats_collector import StatsCollector

HEALTH_WAIT_STATUS = "yellow"
HEALTH_WAIT_EVENTS = "normal"


class Database:
    """One named connection to a search cluster with caching and series routing."""

    def __init__(
        self,
        config: Optional[DatabaseConfig] = None,
        client: Any = None,
        cache: Optional[CacheBackend] = None,
        log: Any = None,
    ):
        """Initializes the instance. Call ``start()`` to apply mappings.

        Args:
            config: Instance configuration; defaults to a local, unnamed instance.
            client: Search client to use instead of building one from
                ``config.client``.
            cache: Cache backend to use instead of the configured one.
            log: Logger overriding ``config.logger``.
        """
        self.config = config or DatabaseConfig()
        self.name = self.config.name
        self._log = resolve_logger(log if log is not None else self.config.logger, self.name)
        self._ready = asyncio.Event()
        self._events = EventPublisher()
        self._start_task: Optional["asyncio.Task[None]"] = None
        self._started = False
        self._indices: List[str] = []

        if client is None:
            self._log.debug(f"{self.name}: Attempting connection with host {self.config.client.get('host')}")
            client = create_search_client(self.config.client)
        self._client = client
        self._cache = cache if cache is not None else create_cache(self.config.cache)
        self._stats = StatsCollector(
            interval=self.config.stats.interval,
            threshold=self.config.stats.threshold,
            name=self.name,
        )
        self._series = SeriesIndexManager(self._client, name=self.name, log=self._log, events=self._events)
        self._intercepted = InterceptedClient(
            self._client, self._cache, self._stats, self._series, name=self.name, log=self._log
        )

    # --- Public surface ---

    @property
    def ready(self) -> bool:
        """True once the configured mappings have been applied."""
        return self._ready.is_set()

    @property
    def stats(self) -> Optional[CacheStats]:
        """Current cache statistics, or None if nothing was looked up recently."""
        return self._stats.snapshot()

    @property
    def client(self) -> InterceptedClient:
        """The intercepted search client."""
        return self._intercepted

    @property
    def series(self) -> SeriesIndexManager:
        return self._series

    @property
    def cache(self) -> CacheBackend:
        return self._cache

    @property
    def indices(self) -> List[str]:
        """Names of every index or series a mapping was applied for."""
        return list(self._indices)

    def on_ready(self, listener: EventListener) -> None:
        """Registers a listener for the DatabaseReady event.

        Listeners registered after readiness are called immediately.
        """
        if self.ready:
            listener(DatabaseReady(database=self.name, mapping_count=len(self._series.series)))
            return
        self._events.subscribe(lambda event: listener(event) if isinstance(event, DatabaseReady) else None)

    def on_event(self, listener: EventListener) -> None:
        """Registers a listener for every event this instance publishes."""
        self._events.subscribe(listener)

    async def wait_until_ready(self) -> None:
        await self._ready.wait()

    def schedule_start(self) -> "asyncio.Task[None]":
        """Starts mapping setup in the background on the running loop (once)."""
        if self._start_task is None:
            self._start_task = asyncio.get_running_loop().create_task(self.start())
        return self._start_task

    async def start(self) -> None:
        """Waits for the cluster, applies all configured mappings, then signals readiness.

        Failures are logged; readiness is signalled regardless so that callers
        waiting on it are never blocked by best-effort mapping setup.
        """
        if self._started:
            return
        self._started = True
        mappings: Dict[str, Dict[str, Any]] = {}
        try:
            await self._client.cluster.health(
                wait_for_status=HEALTH_WAIT_STATUS,
                wait_for_events=HEALTH_WAIT_EVENTS,
            )
        except Exception as e:
            self._log.error(f"{self.name}: Unable to connect to Elasticsearch cluster: {e}", exc_info=True)
        else:
            mappings = load_schemas(self.config.indices)
            if mappings:
                await self._apply_mappings(mappings)
        self._ready.set()
        self._log.info(f"{self.name}: Database ready ({len(mappings)} mapping(s))")
        self._events.publish(DatabaseReady(database=self.name, mapping_count=len(mappings)), self._log)

    async def _apply_mappings(self, mappings: Mapping[str, Dict[str, Any]]) -> None:
        defaults: Dict[str, Any] = {}
        if self.config.default_mappings:
            defaults["mappings"] = dict(self.config.default_mappings)
        if self.config.default_settings:
            defaults["settings"] = dict(self.config.default_settings)
        results = await asyncio.gather(
            *(self.create_mapping(index, {**defaults, **schema}) for index, schema in mappings.items()),
            return_exceptions=True,
        )
        for index, result in zip(mappings, results):
            if isinstance(result, Exception):
                self._log.error(f"{self.name}: There was an error setting the mapping for '{index}': {result}")

    async def create_mapping(self, index: str, schema: Mapping[str, Any]) -> str:
        """Registers a series, or creates a plain index if it doesn't exist yet.

        Args:
            index: Index name (the logical name for a series).
            schema: Index body; a ``series: {retain: [30, 'd']}`` entry marks a series.

        Returns:
            The index name.
        """
        if index not in self._indices:
            self._indices.append(index)
        if self._series.register(index, schema):
            return index
        return await self._series.ensure_index(index, dict(schema))

    async def clear_cache(self) -> None:
        """Drops every cached response of this instance."""
        await self._cache.clear()

    async def close(self) -> None:
        """Releases the cache, cancels stats timers and closes the underlying client.

        Cached entries held outside the process survive; use ``clear_cache()``
        to drop them.
        """
        if self._start_task is not None and not self._start_task.done():
            self._start_task.cancel()
        await self._cache.close()
        self._stats.clear()
        close = getattr(self._client, "close", None)
        if callable(close):
            result = close()
            if inspect.isawaitable(result):
                await result
        self._log.debug(f"{self.name}: Database closed")

"""Series index routing and best-effort index creation.

A series is a logical index name whose documents are written to one
concrete index per UTC calendar day. The daily index is created on first
use; failures to create it are logged and never block the write.
"""

import asyncio
import copy
import logging
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Mapping, Optional

from seriesdb.domain.errors import MappingSetupError
from seriesdb.domain.events.database_events import EventPublisher, SeriesIndexCreated
from seriesdb.domain.interfaces.search_client import SearchClient
from seriesdb.domain.models.common import IndexName, Schema, SeriesIndexName
from seriesdb.domain.models.duration import parse_duration
from seriesdb.domain.models.operations import BULK_ACTIONS
from seriesdb.domain.models.series import SeriesDescriptor
from seriesdb.infrastructure.series.date_extraction import extract_timestamp, utc_now

logger = logging.getLogger(__name__)

SERIES_MARKER = "series"


class SeriesIndexManager:
    """Resolves logical series names to today's concrete index."""

    def __init__(
        self,
        client: SearchClient,
        name: str = "_default_",
        log: Optional[logging.Logger] = None,
        events: Optional[EventPublisher] = None,
        now: Callable[[], datetime] = utc_now,
    ):
        """Initializes the manager.

        Args:
            client: The raw (not intercepted) search client.
            name: Name of the owning database instance, used in log messages.
            log: Logger to report through; defaults to this module's logger.
            events: Publisher notified when a series rotates into a new index.
            now: Source of the current UTC time.
        """
        self.client = client
        self.name = name
        self.log = log or logger
        self.events = events
        self._now = now
        self._series: Dict[str, SeriesDescriptor] = {}
        self._locks: Dict[str, asyncio.Lock] = {}

    def register(self, index: IndexName, schema: Mapping[str, Any]) -> bool:
        """Registers ``index`` as a series if its schema carries a series marker.

        The stored schema is a copy without the marker; the caller's mapping is
        left as it was.

        Returns:
            True if the index was registered as a series, False if it is a
            plain index the caller has to create itself.
        """
        marker = schema.get(SERIES_MARKER) if isinstance(schema, Mapping) else None
        if not marker:
            return False
        template = {key: copy.deepcopy(value) for key, value in schema.items() if key != SERIES_MARKER}
        retain = marker.get("retain") if isinstance(marker, Mapping) else None
        retention = parse_duration(retain) if retain is not None else timedelta(0)
        self._series[index] = SeriesDescriptor(name=index, retention=retention, schema=template)
        self._locks[index] = asyncio.Lock()
        self.log.info(f"{self.name}: Registered series index '{index}' (retain={retention})")
        return True

    def is_series(self, index: Optional[str]) -> bool:
        return index is not None and index in self._series

    def descriptor(self, index: IndexName) -> Optional[SeriesDescriptor]:
        return self._series.get(index)

    @property
    def series(self) -> Dict[str, SeriesDescriptor]:
        return dict(self._series)

    def bucket_name(self, index: IndexName, record: Optional[Mapping[str, Any]] = None) -> SeriesIndexName:
        """Computes the daily index name for a record, without any remote call."""
        moment = extract_timestamp(record, now=self._now)
        return SeriesIndexName(f"{index}-{moment:%Y.%m.%d}")

    async def resolve(self, index: IndexName, record: Optional[Mapping[str, Any]] = None) -> str:
        """Returns the concrete index for ``record``, creating it on first use.

        Args:
            index: The logical index name.
            record: The document being written, used to pick the day.

        Returns:
            The daily index name, or ``index`` unchanged if it is not a series.
        """
        series = self._series.get(index)
        if series is None:
            self.log.warning(f"{self.name}: Trying to get dynamic index name for non-series index '{index}'")
            return index
        bucket = self.bucket_name(index, record)
        if bucket == series.last_index:
            return bucket
        async with self._locks[index]:
            # Another writer may have rotated the series while we waited
            if bucket != series.last_index:
                await self.ensure_index(bucket, series.schema)
                previous, series.last_index = series.last_index, bucket
                if self.events is not None:
                    self.events.publish(SeriesIndexCreated(series=index, index=bucket, previous_index=previous), self.log)
        return bucket

    async def resolve_bulk(self, operations: List[Any]) -> List[Any]:
        """Rewrites the series targets of a bulk body, preserving order.

        Args:
            operations: Flat bulk body, each action line optionally followed by
                its source line.

        Returns:
            A new list; rewritten action lines are copies.
        """
        resolved: List[Any] = []
        position = 0
        while position < len(operations):
            entry = operations[position]
            action = next((name for name in BULK_ACTIONS if isinstance(entry, Mapping) and name in entry), None)
            if action is None:
                resolved.append(entry)
                position += 1
                continue
            has_source = action != "delete" and position + 1 < len(operations)
            source = operations[position + 1] if has_source else None
            meta = entry[action]
            target = meta.get("_index") if isinstance(meta, Mapping) else None
            if self.is_series(target):
                record = source
                if action == "update" and isinstance(source, Mapping) and isinstance(source.get("doc"), Mapping):
                    record = source["doc"]
                concrete = await self.resolve(target, record)
                entry = {**entry, action: {**meta, "_index": concrete}}
            resolved.append(entry)
            if has_source:
                resolved.append(source)
                position += 2
            else:
                position += 1
        return resolved

    async def ensure_index(self, index: str, schema: Optional[Schema] = None) -> str:
        """Creates ``index`` with ``schema`` unless it already exists.

        Errors are logged and swallowed: the caller proceeds with the name.
        """
        try:
            if await self.client.indices.exists(index=index):
                return index
            self.log.info(f"{self.name}: Creating new index '{index}'")
            await self.client.indices.create(index=index, **(schema or {}))
        except Exception as e:
            error = MappingSetupError(index, e)
            self.log.error(f"{self.name}: {error}", exc_info=True)
        return index

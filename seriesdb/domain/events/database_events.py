"""Domain Events related to database lifecycle and index setup.

Listeners are plain callables registered on the publishing object; events
carry only what a listener needs to react (names, counts, timestamps).
"""

from dataclasses import dataclass, field
import time
from typing import Callable, List, Optional


@dataclass
class DomainEvent:
    """Base class for domain events."""
    pass


@dataclass
class DatabaseReady(DomainEvent):
    """Event triggered once all configured mappings of an instance were applied."""
    database: str
    mapping_count: int
    timestamp: float = field(default_factory=time.time)


@dataclass
class SeriesIndexCreated(DomainEvent):
    """Event triggered when a series rotates into a new daily index."""
    series: str
    index: str
    previous_index: Optional[str] = None
    timestamp: float = field(default_factory=time.time)


EventListener = Callable[[DomainEvent], None]


class EventPublisher:
    """Minimal synchronous publisher; listener errors are isolated per listener."""

    def __init__(self) -> None:
        self._listeners: List[EventListener] = []

    def subscribe(self, listener: EventListener) -> None:
        self._listeners.append(listener)

    def publish(self, event: DomainEvent, logger) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as e:
                logger.error(f"Event listener failed for {type(event).__name__}: {e}", exc_info=True)

"""Domain models for date-bucketed series indices."""

from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any, Dict, Optional


@dataclass
class SeriesDescriptor:
    """Entity describing one logical series (e.g. 'logs').

    The descriptor lives for the lifetime of the process. ``last_index`` is
    the most recently created daily index, used to skip redundant creates.
    """
    name: str
    retention: timedelta  # Parsed from the 'retain' marker, not enforced
    schema: Dict[str, Any] = field(default_factory=dict)  # Index body for each new daily index
    last_index: Optional[str] = None

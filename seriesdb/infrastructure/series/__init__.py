"""Series index routing.

Maps logical index names to daily indices (``logs`` -> ``logs-2024.05.01``)
and creates those indices the first time a day is seen.
"""

from seriesdb.infrastructure.series.date_extraction import extract_timestamp
from seriesdb.infrastructure.series.index_manager import SeriesIndexManager

__all__ = ["SeriesIndexManager", "extract_timestamp"]

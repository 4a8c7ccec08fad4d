"""Sliding-window cache statistics."""

from seriesdb.infrastructure.stats.stats_collector import StatsCollector

__all__ = ["StatsCollector"]

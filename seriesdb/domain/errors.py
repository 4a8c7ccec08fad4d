"""Error taxonomy for seriesdb.

Transport errors raised by the underlying search client are deliberately
absent: they reach the caller unchanged and are never retried here.
"""

from typing import Optional


class SeriesDBError(Exception):
    """Base class for all errors raised by seriesdb itself."""


class ConfigurationError(SeriesDBError):
    """Invalid configuration, e.g. a reserved instance name or a bad duration."""


class MappingSetupError(SeriesDBError):
    """An index existence check or creation failed.

    Only ever logged: mapping setup is best-effort and never aborts a call.
    """

    def __init__(self, index: str, original_exception: Exception):
        self.index = index
        self.original_exception = original_exception
        super().__init__(f"Mapping setup for index '{index}' failed: {original_exception}")


class CacheBackendError(SeriesDBError):
    """The cache backend could not be reached or failed to complete an operation.

    Distinguishes "cache unavailable" from "no data" (a plain miss).
    """

    def __init__(self, operation: str, key: Optional[str], original_exception: Exception):
        self.operation = operation
        self.key = key
        self.original_exception = original_exception
        super().__init__(f"Cache {operation} failed for key '{key}': {original_exception}")

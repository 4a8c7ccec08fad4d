"""Interface for presenting results to the user.

Defines the contract for displaying information, warnings, errors and
structured reports (stats, mappings), allowing different UI implementations.
"""

import abc
from typing import Any, Dict, List, Optional

from ..models.stats import CacheStats


class UserInterface(abc.ABC):
    """Abstract Base Class for user interaction."""

    @abc.abstractmethod
    def display_output(self, output: Any, **kwargs: Any) -> None:
        """Displays a result (document, search response) to the user.

        Args:
            output: The value to display.
            **kwargs: Additional arguments for formatting (e.g., title).
        """
        pass

    @abc.abstractmethod
    def display_error(self, error_message: str, **kwargs: Any) -> None:
        """Displays an error message to the user."""
        pass

    @abc.abstractmethod
    def display_warning(self, warning_message: str, **kwargs: Any) -> None:
        """Displays a warning message to the user."""
        pass

    @abc.abstractmethod
    def display_info(self, info_message: str, **kwargs: Any) -> None:
        """Displays an informational message to the user."""
        pass

    @abc.abstractmethod
    def display_stats(self, stats: Optional[CacheStats]) -> None:
        """Displays a cache statistics snapshot (None means no activity)."""
        pass

    @abc.abstractmethod
    def display_mappings(self, series: Dict[str, Optional[str]], plain: List[str]) -> None:
        """Displays configured series (with their current index) and plain indices."""
        pass

import json
import logging
from typing import Any, Dict, List, Optional

from rich.box import HEAVY, ROUNDED, SIMPLE
from rich.console import Console
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table
from rich.text import Text

from seriesdb.domain.interfaces.user_interface import UserInterface
from seriesdb.domain.models.stats import CacheStats

logger = logging.getLogger(__name__)


def _to_jsonable(output: Any) -> Any:
    """Unwraps client response objects (which carry the payload in ``body``)."""
    body = getattr(output, "body", None)
    return body if body is not None else output


class ConsoleDisplay(UserInterface):
    """Concrete implementation of UserInterface using the rich library for console output."""

    def __init__(self, console: Optional[Console] = None):
        """Initializes the rich Console."""
        self._console = console or Console()

    @property
    def console(self) -> Console:
        """Get the Rich console instance for direct operations."""
        return self._console

    def display_output(self, output: Any, **kwargs: Any) -> None:
        """Displays a result as highlighted JSON inside a panel.

        Args:
            output: The value to display (document, search response, ...).
            **kwargs: Additional arguments including:
                - title: The panel title (default: "Result")
        """
        title = kwargs.get("title", "Result")
        try:
            rendered = json.dumps(_to_jsonable(output), indent=2, default=str, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            logger.debug(f"Output is not JSON serializable, falling back to str(): {e}")
            rendered = str(output)
        panel = Panel(
            Syntax(rendered, "json", word_wrap=True),
            title=f"[bold green]{title}[/bold green]",
            title_align="left",
            border_style="green",
            box=ROUNDED,
            padding=(0, 1)
        )
        self.console.print(panel)

    def display_error(self, error_message: str, **kwargs: Any) -> None:
        """Displays an error message in a distinct style.

        Args:
            error_message: The error message to display.
        """
        panel = Panel(
            Text(error_message, style="white"),
            title="[bold red]Error[/bold red]",
            border_style="red",
            box=HEAVY,
            padding=(0, 1)
        )
        self.console.print(panel)

    def display_info(self, info_message: str, **kwargs: Any) -> None:
        """Displays an informational message.

        Args:
            info_message: The informational message to display.
        """
        panel = Panel(
            Text(info_message, style="white"),
            title="[bold blue]Info[/bold blue]",
            border_style="blue",
            box=SIMPLE,
            padding=(0, 1)
        )
        self.console.print(panel)

    def display_warning(self, warning_message: str, **kwargs: Any) -> None:
        """Displays a warning message.

        Args:
            warning_message: The warning message to display.
        """
        logger.warning(f"Display warning: {warning_message}")
        panel = Panel(
            Text(warning_message, style="white"),
            title="[bold yellow]Warning[/bold yellow]",
            border_style="yellow",
            box=HEAVY,
            padding=(0, 1)
        )
        self.console.print(panel)

    def display_stats(self, stats: Optional[CacheStats]) -> None:
        """Displays a cache statistics snapshot as tables.

        Args:
            stats: Snapshot from the stats collector, or None when there was
                no cache activity in the current window.
        """
        if not stats:
            self.display_info("No cache activity in the current window.")
            return

        table = Table(title=f"Cache stats: {stats['source']}", show_header=True, box=ROUNDED, border_style="cyan", padding=(0, 1))
        table.add_column("Metric", style="cyan")
        table.add_column("Count", justify="right")
        table.add_column("Ratio", justify="right")
        table.add_row("total", str(stats["total"]), "")
        for metric in ("hit", "miss"):
            table.add_row(metric, str(stats[metric]["count"]), f"{stats[metric]['ratio']:.2%}")
        self.console.print(table)

        keys = stats.get("keys")
        if keys:
            key_table = Table(title="Busiest keys", show_header=True, box=SIMPLE, border_style="cyan", padding=(0, 1))
            key_table.add_column("Key", style="bold")
            key_table.add_column("Requests", justify="right")
            key_table.add_column("Hits", justify="right")
            key_table.add_column("Misses", justify="right")
            for entry in keys:
                key_table.add_row(entry["key"], str(entry["request"]), str(entry["hit"]), str(entry["miss"]))
            self.console.print(key_table)

    def display_mappings(self, series: Dict[str, Optional[str]], plain: List[str]) -> None:
        """Displays configured indices.

        Args:
            series: Series name to the concrete index it currently writes to
                (None if nothing was written yet).
            plain: Names of plain (non-series) indices.
        """
        if not series and not plain:
            self.display_warning("No index mappings are configured.")
            return

        table = Table(show_header=True, box=ROUNDED, border_style="cyan", padding=(0, 1))
        table.add_column("Index", style="bold")
        table.add_column("Kind", style="cyan")
        table.add_column("Current index", style="dim")
        for name, current in sorted(series.items()):
            table.add_row(name, "series", current or "-")
        for name in sorted(plain):
            table.add_row(name, "plain", name)
        self.console.print(table)

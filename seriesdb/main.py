"""Main entry point for the seriesdb command line.

Sets up the Typer CLI application, performs dependency injection (Composition Root),
defines CLI commands, and delegates execution to the CommandHandler.
"""

import asyncio
import logging
import sys
from pathlib import Path
from typing import Annotated, Any, Coroutine, Dict, Optional

import typer

from seriesdb.core.command_handler import CommandHandler
from seriesdb.core.manager import DatabaseManager
from seriesdb.domain.models.config import DEFAULT_INSTANCE_NAME
from seriesdb.infrastructure.cli.display import ConsoleDisplay
from seriesdb.infrastructure.config.settings import DEFAULT_CONFIG_FILE, get_config, load_configuration
from seriesdb.infrastructure.monitoring.logger_setup import DEFAULT_LOG_FORMAT, setup_logging

logger = logging.getLogger(__name__)

# --- Dependency Injection Container (Manual) ---

_dependencies: Dict[str, Any] = {}


def create_dependencies(config_file: Path = DEFAULT_CONFIG_FILE) -> Dict[str, Any]:
    """Creates and wires up all dependencies for the application.

    This acts as the Composition Root.
    """
    logger.debug("Initializing application dependencies...")
    dependencies: Dict[str, Any] = {}
    try:
        # 1. Load Configuration First
        load_configuration(config_file)
        log_level_name = str(get_config('logging.level', 'WARNING')).upper()
        log_level = getattr(logging, log_level_name, logging.WARNING)
        setup_logging(
            log_level=log_level,
            log_format=get_config('logging.format', DEFAULT_LOG_FORMAT),
            log_file=get_config('logging.file'),
        )

        # 2. Infrastructure and core
        dependencies['ui'] = ConsoleDisplay()
        dependencies['manager'] = DatabaseManager()
        dependencies['command_handler'] = CommandHandler(
            manager=dependencies['manager'],
            ui=dependencies['ui'],
        )
        logger.debug("All dependencies initialized successfully.")
        return dependencies

    except Exception as e:
        logger.error(f"Fatal Error during application initialization: {e}", exc_info=True)
        if dependencies.get('ui'):
            dependencies['ui'].display_error(f"Application Initialization Failed: {e}")
        else:
            print(f"FATAL ERROR during initialization: {e}", file=sys.stderr)
        sys.exit(1)


def get_dependencies() -> Dict[str, Any]:
    if not _dependencies:
        _dependencies.update(create_dependencies())
    return _dependencies


# --- Typer App Definition ---
app = typer.Typer(
    name="seriesdb",
    help="seriesdb: cached, series-routed access to an Elasticsearch cluster.",
    add_completion=False,
)


# --- Helper for Running Async Commands ---
def run_async(coro: Coroutine[Any, Any, None]) -> None:
    """Runs an async command handler to completion from a sync Typer command."""
    try:
        asyncio.run(coro)
    except Exception as e:
        logger.error(f"Error executing async command: {e}", exc_info=True)
        get_dependencies()['ui'].display_error(f"Command execution failed: {e}")
        raise typer.Exit(code=1)


# --- CLI Commands ---

NameOption = Annotated[
    str,
    typer.Option("--name", "-n", help="Name of the configured database instance."),
]


@app.command()
def mappings(name: NameOption = DEFAULT_INSTANCE_NAME):
    """Apply the configured index mappings and list series and plain indices."""
    handler: CommandHandler = get_dependencies()['command_handler']
    run_async(handler.handle_mappings(name))


@app.command()
def resolve(
    index: Annotated[str, typer.Argument(help="Logical (series) index name.")],
    record: Annotated[Optional[str], typer.Option("--record", "-r", help="Document as a JSON object.")] = None,
    name: NameOption = DEFAULT_INSTANCE_NAME,
):
    """Show the daily index a record would be written to (offline)."""
    handler: CommandHandler = get_dependencies()['command_handler']
    run_async(handler.handle_resolve(name, index, record))


@app.command()
def search(
    index: Annotated[str, typer.Argument(help="Index to search.")],
    query: Annotated[Optional[str], typer.Option("--query", "-q", help="Query DSL as a JSON object.")] = None,
    cache: Annotated[Optional[str], typer.Option("--cache", "-c", help="Cache key for the response.")] = None,
    repeat: Annotated[int, typer.Option("--repeat", min=1, help="Number of times to run the query.")] = 1,
    name: NameOption = DEFAULT_INSTANCE_NAME,
):
    """Run a search through the caching client and show the result and cache stats."""
    handler: CommandHandler = get_dependencies()['command_handler']
    run_async(handler.handle_search(name, index, query, cache, repeat))


@app.callback()
def main_callback(
    config: Annotated[
        Optional[Path],
        typer.Option("--config", help="Path to the YAML configuration file."),
    ] = None,
):
    """Loads configuration before any command runs."""
    if not _dependencies:
        _dependencies.update(create_dependencies(config or DEFAULT_CONFIG_FILE))


# --- Main Execution Guard ---

def cli_entry_point():
    """Function to be called by the script entry point in pyproject.toml."""
    app()


if __name__ == "__main__":
    cli_entry_point()

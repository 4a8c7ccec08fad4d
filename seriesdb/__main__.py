"""Main entry point when executing seriesdb as a package.

This allows running the package using python -m seriesdb.
"""

from seriesdb.main import cli_entry_point

if __name__ == "__main__":
    cli_entry_point()

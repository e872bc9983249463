"""Rich formatting utilities for CLI output."""

import json
from enum import Enum
from typing import Any

import typer
from rich.console import Console
from rich.table import Table

# Shared console instance
console = Console()


class OutputFormat(str, Enum):
    """Output format options for CLI commands."""

    TABLE = "table"
    JSON = "json"


# Type annotation for the --format option
FormatOption = typer.Option(
    OutputFormat.TABLE,
    "--format",
    "-f",
    help="Output format: table (default) or json",
    case_sensitive=False,
)


def to_json(data: Any, indent: int = 2) -> str:
    """Convert projected output to a formatted JSON string."""
    return json.dumps(data, indent=indent)


def print_json(data: Any):
    """Print data as formatted JSON.

    Output maps can contain square brackets (BB code, HTML), so markup and
    wrapping are disabled to keep the JSON intact.
    """
    console.print(to_json(data), markup=False, emoji=False, highlight=False, soft_wrap=True)


def create_table(title: str, columns: list[tuple]) -> Table:
    """Create a Rich table with specified columns.

    Args:
        title: Table title
        columns: List of (column_name, style, no_wrap) tuples

    Returns:
        Configured Rich Table
    """
    table = Table(title=title)
    for col_data in columns:
        name = col_data[0]
        style = col_data[1] if len(col_data) > 1 else None
        no_wrap = col_data[2] if len(col_data) > 2 else False
        table.add_column(name, style=style, no_wrap=no_wrap)
    return table


def format_flag(value: bool | None) -> str:
    if value is None:
        return "N/A"
    return "yes" if value else "no"


def print_error(message: str):
    """Print an error message with consistent styling."""
    console.print(f"❌ {message}", style="bold red", markup=False)

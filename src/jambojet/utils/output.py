"""Output formatting for CLI results."""

from __future__ import annotations

import json
import sys
from enum import Enum
from typing import Any

from rich.console import Console
from rich.table import Table

from jambojet.models.envelope import ResponseEnvelope

console = Console(stderr=True)


class OutputFormat(str, Enum):
    TABLE = "table"
    JSON = "json"


def print_output(
    data: list[dict[str, Any]] | dict[str, Any],
    fmt: OutputFormat = OutputFormat.TABLE,
    columns: list[str] | None = None,
    title: str | None = None,
) -> None:
    """Print data as JSON to stdout or as a table to stderr."""
    if fmt == OutputFormat.JSON:
        print_json(data)
    else:
        print_table(data, columns, title)


def print_envelope(
    envelope: ResponseEnvelope,
    fmt: OutputFormat = OutputFormat.TABLE,
    columns: list[str] | None = None,
    title: str | None = None,
) -> None:
    """Print an envelope: the whole envelope as JSON, or its data as a table."""
    if fmt == OutputFormat.JSON:
        print_json(envelope.model_dump(mode="json"))
        return

    rows = unwrap(envelope.data)
    if isinstance(rows, list) and rows and not isinstance(rows[0], dict):
        rows = [{"value": row} for row in rows]
    elif not isinstance(rows, (list, dict)):
        rows = {"value": rows}
    print_table(rows, columns, title)
    console.print(
        f"[dim]HTTP {envelope.meta.status_code} · request {envelope.meta.request_id}[/dim]"
    )


def unwrap(data: Any) -> Any:
    """Strip the API's own ``{"data": ...}`` wrapper when present."""
    if isinstance(data, dict) and set(data.keys()) <= {"data", "messages"} and "data" in data:
        return data["data"]
    return data


def print_json(data: Any) -> None:
    """Print data as formatted JSON to stdout."""
    json.dump(data, sys.stdout, indent=2, default=str)
    sys.stdout.write("\n")


def print_table(
    data: list[dict[str, Any]] | dict[str, Any],
    columns: list[str] | None = None,
    title: str | None = None,
) -> None:
    """Print data as a Rich table."""
    if isinstance(data, dict):
        data = [data]

    if not data:
        console.print("[dim]No results.[/dim]")
        return

    # Auto-detect columns from first row if not specified
    if columns is None:
        columns = list(data[0].keys())

    table = Table(title=title, show_lines=False)
    for col in columns:
        table.add_column(col, overflow="fold")

    for row in data:
        table.add_row(*[_cell(row.get(col, "")) for col in columns])

    console.print(table)


def _cell(value: Any) -> str:
    if isinstance(value, (dict, list)):
        return json.dumps(value, default=str)
    return str(value)

"""Dual-mode output — Rich for humans, JSON for agents."""

from __future__ import annotations

import json
from typing import Any

from rich.console import Console
from rich.markup import escape
from rich.table import Table

# Human output goes to stdout; in JSON mode, human messages go to stderr
_console = Console()
_err_console = Console(stderr=True)


class OutputFormatter:
    """Routes output to Rich (human) or JSON (agent) depending on mode."""

    def __init__(self, json_mode: bool = False) -> None:
        self.json_mode = json_mode

    # ── JSON output ──────────────────────────────────────────────

    def json(self, data: Any, status: str = "success") -> None:
        """Print structured JSON to stdout."""
        envelope = {"status": status, "data": data}
        print(json.dumps(envelope, indent=2, default=str))

    def json_error(self, message: str, code: int = 1) -> None:
        """Print a JSON error envelope to stdout."""
        envelope = {"status": "error", "error": {"message": message, "code": code}}
        print(json.dumps(envelope, indent=2))

    # ── Human output ─────────────────────────────────────────────

    def print(self, message: str = "", **kwargs: Any) -> None:
        """Print a message, routing to stderr in JSON mode."""
        console = _err_console if self.json_mode else _console
        console.print(message, **kwargs)

    def success(self, message: str) -> None:
        if self.json_mode:
            return
        _console.print(f"[green]✓[/green] {message}")

    def error(self, message: str) -> None:
        """Print an error: JSON envelope in JSON mode, red line otherwise."""
        if self.json_mode:
            self.json_error(message)
            return
        _err_console.print(f"[red]✗[/red] {escape(message)}")

    def table(
        self,
        title: str,
        columns: list[tuple[str, str]],
        rows: list[list[str]],
        data_for_json: Any = None,
    ) -> None:
        """Print a table (Rich for humans, JSON for agents).

        columns: list of (header, style) tuples
        rows: list of row data (strings)
        data_for_json: if provided, used as the JSON payload instead of rows
        """
        if self.json_mode:
            if data_for_json is None:
                data_for_json = [dict(zip([c[0] for c in columns], r)) for r in rows]
            self.json(data_for_json)
            return

        table = Table(title=title, show_header=True, header_style="bold cyan")
        for header, style in columns:
            table.add_column(header, style=style)
        for row in rows:
            table.add_row(*row)
        _console.print(table)

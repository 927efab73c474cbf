"""Rich display for tool listings and reconciliation output.

Accepts an optional :class:`~rich.console.Console` for dependency
injection in tests.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

if TYPE_CHECKING:
    from collections.abc import Sequence

    from toolgate.stream import StreamEvent
    from toolgate.tools.base import Tool

_TRUNCATE_LEN = 200


def _truncate(text: str, limit: int = _TRUNCATE_LEN) -> str:
    """Truncate text to *limit* characters with an ellipsis."""
    if len(text) <= limit:
        return text
    return text[:limit].rstrip() + " ..."


class ToolgateDisplay:
    """Console rendering for the ``toolgate`` commands."""

    def __init__(self, console: Console | None = None) -> None:
        self._console = console or Console()

    def show_tools(self, tools: Sequence[Tool]) -> None:
        """Render registered tools as a table."""
        from toolgate.tools.base import ConfirmationRequiredTool

        table = Table(title="Registered tools")
        table.add_column("Name", style="bold cyan", no_wrap=True)
        table.add_column("Confirmation")
        table.add_column("Description")
        for tool in tools:
            needs = isinstance(tool, ConfirmationRequiredTool)
            table.add_row(
                tool.name,
                "[yellow]required[/yellow]" if needs else "[green]auto[/green]",
                _truncate(tool.description),
            )
        self._console.print(table)

    def show_events(self, events: Sequence[StreamEvent]) -> None:
        """Render the stream events a reconciliation produced."""
        if not events:
            self._console.print("[dim]No pending tool calls.[/dim]")
            return
        lines = [
            f"[bold]{event.type}[/bold] {_truncate(json.dumps(event.value))}"
            for event in events
        ]
        self._console.print(
            Panel(
                "\n".join(lines),
                title=f"[bold green]EVENTS[/bold green] ({len(events)})",
                border_style="green",
            )
        )

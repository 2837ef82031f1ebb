"""Rich-backed output primitives for the CLI."""

from __future__ import annotations

from dataclasses import dataclass

from rich import box
from rich.console import Console
from rich.table import Table

RICH_ACCENT_BOLD = "bold magenta"
RICH_BORDER_STYLE = "dim"

_LEVEL_TEMPLATES = {
    "info": "[blue]ℹ[/blue] {message}",
    "warning": "[yellow]⚠ {message}[/yellow]",
    "error": "[red]✖ {message}[/red]",
    "success": "[green]✔ {message}[/green]",
}


@dataclass
class TableModel:
    title: str
    columns: list[str]
    rows: list[list[str]]


def build_rich_table(table: TableModel) -> Table:
    rich_table = Table(
        title=table.title,
        box=box.SIMPLE_HEAVY,
        show_lines=True,
        border_style=RICH_BORDER_STYLE,
        header_style=RICH_ACCENT_BOLD,
        title_style=RICH_ACCENT_BOLD,
    )
    for column in table.columns:
        rich_table.add_column(column)
    for row in table.rows:
        rich_table.add_row(*row)
    return rich_table


class RichPresenter:
    """Leveled messages and tables on a rich console."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    def _emit(self, level: str, message: str) -> None:
        template = _LEVEL_TEMPLATES.get(level, "{message}")
        self.console.print(template.format(message=message))

    def info(self, message: str) -> None:
        self._emit("info", message)

    def warning(self, message: str) -> None:
        self._emit("warning", message)

    def error(self, message: str) -> None:
        self._emit("error", message)

    def success(self, message: str) -> None:
        self._emit("success", message)

    def table(self, table: TableModel) -> None:
        self.console.print(build_rich_table(table))

import json
import logging
from typing import Any, Dict, List, Optional

from rich.console import Console
from rich.panel import Panel
from rich.box import ROUNDED
from rich.syntax import Syntax
from rich.table import Table

from corelink.domain.interfaces.user_interface import UserInterface

logger = logging.getLogger(__name__)


class ConsoleDisplay(UserInterface):
    """Concrete implementation of UserInterface using the rich library for console output."""

    def __init__(self, console: Optional[Console] = None):
        """Initializes the rich Console."""
        self.console = console or Console()

    def display_output(self, output: Any, **kwargs: Any) -> None:
        """Displays a response body, pretty-printing structured data as JSON.

        Args:
            output: The value to display.
            **kwargs: Additional arguments including:
                - title: Panel title (default: "Response")
        """
        title = kwargs.get("title", "Response")
        if isinstance(output, (dict, list)):
            rendered = Syntax(json.dumps(output, indent=2, sort_keys=True), "json", word_wrap=True)
        else:
            rendered = str(output)
        logger.debug(f"display_output called: title={title}, type={type(output).__name__}")
        self.console.print(Panel(rendered, title=title, title_align="left", box=ROUNDED, padding=(0, 1)))

    def display_error(self, error_message: str, **kwargs: Any) -> None:
        self.console.print(f"[bold red]Error:[/bold red] {error_message}")

    def display_info(self, info_message: str, **kwargs: Any) -> None:
        self.console.print(f"[blue]Info:[/blue] {info_message}")

    def display_table(self, title: str, rows: List[Dict[str, str]]) -> None:
        table = Table(title=title, box=ROUNDED)
        columns = list(rows[0].keys()) if rows else []
        for column in columns:
            table.add_column(column)
        for row in rows:
            table.add_row(*(str(row.get(column, "")) for column in columns))
        self.console.print(table)

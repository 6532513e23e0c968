import logging
from typing import Any, Mapping, Optional

from rich.console import Console
from rich.panel import Panel
from rich.box import HEAVY, SIMPLE, ROUNDED
from rich.text import Text
from rich.table import Table

from tinyshrink.domain.interfaces.user_interface import UserInterface

logger = logging.getLogger(__name__)

class ConsoleDisplay(UserInterface):
    """Concrete implementation of UserInterface using the rich library for console output."""

    def __init__(self, console: Optional[Console] = None):
        """Initializes the rich Console."""
        self.console = console or Console()

    def display_result(self, title: str, fields: Mapping[str, Any]) -> None:
        """Renders operation metadata as a two-column table.

        Args:
            title: Table title, typically the output path or stored location.
            fields: Ordered name/value pairs.
        """
        table = Table(title=title, box=ROUNDED, show_header=False, title_style="bold green")
        table.add_column("Field", style="cyan", no_wrap=True)
        table.add_column("Value", style="white")
        for name, value in fields.items():
            table.add_row(str(name), str(value))
        self.console.print(table)

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
        panel = Panel(
            Text(info_message, style="white"),
            title="[bold blue]Info[/bold blue]",
            border_style="blue",
            box=SIMPLE,
            padding=(0, 1)
        )
        self.console.print(panel)

    def display_warning(self, warning_message: str, **kwargs: Any) -> None:
        """Displays a warning message with enhanced styling.

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

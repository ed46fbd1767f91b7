import logging
from typing import Any, List, Optional, Sequence

from rich.box import HEAVY, ROUNDED, SIMPLE
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from lincli.domain.interfaces.user_interface import UserInterface

logger = logging.getLogger(__name__)


class ConsoleDisplay(UserInterface):
    """Concrete implementation of UserInterface using the rich library for console output.

    Results are printed to stdout; errors, warnings and info panels go to
    stderr so piped output stays clean.
    """

    def __init__(self, console: Optional[Console] = None, err_console: Optional[Console] = None):
        """Initializes the rich Consoles (injectable for tests)."""
        self._console = console or Console()
        self._err_console = err_console or Console(stderr=True)

    @property
    def console(self) -> Console:
        """Get the Rich console instance for direct operations."""
        return self._console

    @property
    def err_console(self) -> Console:
        return self._err_console

    def display_output(self, output: str, **kwargs: Any) -> None:
        """Displays plain output verbatim (no markup, no wrapping).

        Args:
            output: The string to display.
            **kwargs: Additional arguments including:
                - style: Optional rich style for the text
        """
        self.console.print(
            output, style=kwargs.get("style"), markup=False, highlight=False, soft_wrap=True
        )

    def display_json(self, payload: Any) -> None:
        self.console.print_json(data=payload)

    def display_table(self, title: str, columns: List[str], rows: Sequence[Sequence[Any]]) -> None:
        """Renders rows as a rich table.

        Args:
            title: Table caption.
            columns: Column headers.
            rows: One sequence of cell values per row. None renders as "-".
        """
        logger.debug(f"display_table called: title={title}, rows={len(rows)}")
        table = Table(title=title, box=ROUNDED, border_style="cyan", header_style="bold cyan")
        for column in columns:
            table.add_column(column, overflow="fold")
        for row in rows:
            table.add_row(*("-" if cell is None else str(cell) for cell in row))
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
        self.err_console.print(panel)

    def display_info(self, info_message: str, **kwargs: Any) -> None:
        """Displays an informational message with enhanced styling.

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
        self.err_console.print(panel)

    def display_warning(self, warning_message: str, **kwargs: Any) -> None:
        """Displays a warning message with enhanced styling.

        Args:
            warning_message: The warning message to display.
        """
        logger.debug(f"Display warning: {warning_message}")
        panel = Panel(
            Text(warning_message, style="white"),
            title="[bold yellow]Warning[/bold yellow]",
            border_style="yellow",
            box=HEAVY,
            padding=(0, 1)
        )
        self.err_console.print(panel)

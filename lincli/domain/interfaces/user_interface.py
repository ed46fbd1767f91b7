"""Interface for interacting with the user (output only).

Defines the contract for displaying results, tables, errors and warnings,
allowing different UI implementations. Program output goes to stdout;
errors, warnings and progress go to the diagnostic stream.
"""

import abc
from typing import Any, List, Sequence

class UserInterface(abc.ABC):
    """Abstract Base Class for user interaction."""

    @abc.abstractmethod
    def display_output(self, output: str, **kwargs: Any) -> None:
        """Displays plain program output (e.g. a resolved ID) on stdout.

        Args:
            output: The string to display.
            **kwargs: Additional arguments for formatting.
        """
        pass

    @abc.abstractmethod
    def display_json(self, payload: Any) -> None:
        """Displays a JSON document on stdout."""
        pass

    @abc.abstractmethod
    def display_table(self, title: str, columns: List[str], rows: Sequence[Sequence[Any]]) -> None:
        """Displays tabular output on stdout.

        Args:
            title: Table caption.
            columns: Column headers.
            rows: One sequence of cell values per row.
        """
        pass

    @abc.abstractmethod
    def display_error(self, error_message: str, **kwargs: Any) -> None:
        """Displays an error message on the diagnostic stream."""
        pass

    @abc.abstractmethod
    def display_warning(self, warning_message: str, **kwargs: Any) -> None:
        """Displays a warning message on the diagnostic stream."""
        pass

    @abc.abstractmethod
    def display_info(self, info_message: str, **kwargs: Any) -> None:
        """Displays an informational message on the diagnostic stream."""
        pass

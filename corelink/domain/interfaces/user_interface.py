"""Interface for interacting with the user (output only).

Defines the contract for displaying results, errors and information,
allowing different UI implementations.
"""

import abc
from typing import Any, Dict, List


class UserInterface(abc.ABC):
    """Abstract Base Class for user interaction."""

    @abc.abstractmethod
    def display_output(self, output: Any, **kwargs: Any) -> None:
        """Displays a response body or other result to the user.

        Args:
            output: The value to display (rendered as JSON when structured).
            **kwargs: Additional arguments for formatting (e.g., title).
        """
        pass

    @abc.abstractmethod
    def display_error(self, error_message: str, **kwargs: Any) -> None:
        """Displays an error message to the user."""
        pass

    @abc.abstractmethod
    def display_info(self, info_message: str, **kwargs: Any) -> None:
        """Displays an informational message to the user."""
        pass

    @abc.abstractmethod
    def display_table(self, title: str, rows: List[Dict[str, str]]) -> None:
        """Displays rows of key/value data as a table.

        Args:
            title: Table title.
            rows: Each row is a mapping of column name to cell text.
        """
        pass

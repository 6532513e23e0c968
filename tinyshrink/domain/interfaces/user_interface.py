"""Interface for interacting with the user (output only).

Defines the contract for displaying results, information, errors and
warnings, allowing different UI implementations.
"""

import abc
from typing import Any, Mapping


class UserInterface(abc.ABC):
    """Abstract Base Class for user interaction."""

    @abc.abstractmethod
    def display_result(self, title: str, fields: Mapping[str, Any]) -> None:
        """Displays the metadata of a finished operation.

        Args:
            title: Heading for the result (e.g. the output path).
            fields: Ordered name/value pairs to render.
        """
        pass

    @abc.abstractmethod
    def display_error(self, error_message: str, **kwargs: Any) -> None:
        pass

    @abc.abstractmethod
    def display_warning(self, warning_message: str, **kwargs: Any) -> None:
        pass

    @abc.abstractmethod
    def display_info(self, info_message: str, **kwargs: Any) -> None:
        """Displays an informational message to the user."""
        pass

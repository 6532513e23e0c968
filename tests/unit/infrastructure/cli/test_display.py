import pytest
from unittest.mock import MagicMock

from rich.panel import Panel
from rich.table import Table

from tinyshrink.infrastructure.cli.display import ConsoleDisplay

@pytest.fixture
def mock_console():
    """Fixture to create a mock rich Console object."""
    return MagicMock()

@pytest.fixture
def console_display(mock_console: MagicMock):
    """Fixture to create a ConsoleDisplay instance with a mocked console."""
    return ConsoleDisplay(console=mock_console)

def test_display_result(console_display: ConsoleDisplay, mock_console: MagicMock):
    """Test that display_result prints one table row per field."""
    console_display.display_result("out.png", {"size (bytes)": 1024, "dimensions": "300x200"})
    mock_console.print.assert_called_once()
    args, _ = mock_console.print.call_args
    table = args[0]
    assert isinstance(table, Table)
    assert table.title == "out.png"
    assert table.row_count == 2

def test_display_error(console_display: ConsoleDisplay, mock_console: MagicMock):
    """Test that display_error prints a red panel containing the message."""
    console_display.display_error("Something went wrong")
    args, _ = mock_console.print.call_args
    panel = args[0]
    assert isinstance(panel, Panel)
    assert panel.border_style == "red"
    assert panel.renderable.plain == "Something went wrong"

def test_display_info(console_display: ConsoleDisplay, mock_console: MagicMock):
    """Test that display_info prints a blue panel."""
    console_display.display_info("Process completed")
    args, _ = mock_console.print.call_args
    assert args[0].border_style == "blue"
    assert args[0].renderable.plain == "Process completed"

def test_display_warning(console_display: ConsoleDisplay, mock_console: MagicMock):
    console_display.display_warning("Careful")
    args, _ = mock_console.print.call_args
    assert args[0].border_style == "yellow"

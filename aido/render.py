"""
Draws a command inside a rounded box that fits the terminal.

Long commands are wrapped on word boundaries instead of being cut or scrolled,
and each visual line is syntax highlighted on its own with a pygments lexer.
"""

import logging
import shutil
from typing import List, Optional

from pygments.lexers import get_lexer_by_name
from pygments.util import ClassNotFound
from rich.cells import cell_len
from rich.console import Console
from rich.syntax import Syntax
from rich.text import Text

logger = logging.getLogger(__name__)

DEFAULT_COLUMNS = 80
# Border plus one column of padding on each side.
BORDER_WIDTH = 4
THEME = "monokai"


class HighlightingUnavailable(Exception):
    """Raised when there is no syntax definition for the requested language."""

    def __init__(self, language: str):
        super().__init__(f"No syntax highlighting available for '{language}'.")
        self.language = language


def terminal_columns() -> int:
    return shutil.get_terminal_size((DEFAULT_COLUMNS, 24)).columns


def interior_width(columns: int) -> int:
    return max(columns - BORDER_WIDTH, 0)


def wrap_command(command: str, width: int) -> List[str]:
    """
    Greedily packs the words of every line of `command` into visual lines no
    wider than `width` terminal cells.

    Words are never split: a word that is longer than `width` gets a visual
    line of its own. A blank line stays a single blank visual line.
    """
    visual_lines = []
    for logical_line in command.split("\n"):
        current = ""
        for word in logical_line.split():
            if not current:
                current = word
            elif cell_len(current) + 1 + cell_len(word) <= width:
                current = f"{current} {word}"
            else:
                visual_lines.append(current)
                current = word
        visual_lines.append(current)
    return visual_lines


def render_command(
    command: str,
    language: str,
    console: Optional[Console] = None,
    columns: Optional[int] = None,
):
    """
    Prints `command` highlighted as `language` inside a box as wide as the
    terminal (or `columns`, when given).

    Raises HighlightingUnavailable before printing anything if pygments has
    no lexer for `language`.
    """
    try:
        lexer = get_lexer_by_name(language)
    except ClassNotFound as e:
        raise HighlightingUnavailable(language) from e

    console = console or Console()
    if columns is None:
        columns = terminal_columns()
    width = interior_width(columns)
    logger.debug("Rendering command in %d columns (%d usable)", columns, width)

    syntax = Syntax("", lexer, theme=THEME, background_color="default")
    rule = "─" * (width + 2)

    console.print(f"╭{rule}╮", markup=False, highlight=False, soft_wrap=True)
    for line in wrap_command(command, width):
        row = Text("│ ")
        row.append_text(syntax.highlight(line))
        row.append(" " * max(width - cell_len(line), 0))
        row.append(" │")
        console.print(row, soft_wrap=True)
    console.print(f"╰{rule}╯", markup=False, highlight=False, soft_wrap=True)

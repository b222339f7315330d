"""
Removal of a whole database after an interactive confirmation.
"""

import logging
import shutil
from collections.abc import Callable
from pathlib import Path

from rich.console import Console
from rich.style import Style
from rich.text import Text

from skate.config import Settings
from skate.resolver import find_database

logger = logging.getLogger(__name__)

WARNING_STYLE = Style(color="color(204)", bold=True)

# A prompt shows nothing itself and returns the line the user typed
Prompt = Callable[[], str]


def display_path(path: Path, home: Path | None = None) -> str:
    """path with the home directory shown as ~."""
    home = home or Path.home()
    try:
        return str(Path("~") / path.relative_to(home))
    except ValueError:
        return str(path)


def stdin_prompt(console: Console) -> Prompt:
    def prompt() -> str:
        try:
            return console.input()
        except EOFError:
            return ""

    return prompt


def delete_database(
    name: str,
    settings: Settings,
    console: Console,
    err_console: Console,
    prompt: Prompt | None = None,
) -> bool:
    """
    Delete the database named by name (for example "@work") and everything in it.

    Only an answer of exactly "y" deletes; any other answer leaves the
    database in place and prints a notice on err_console.

    Returns:
        True if the database was deleted.

    Raises:
        DatabaseNotFound: If the database does not exist. Nothing is deleted.
        OSError: If the directory cannot be removed.
    """
    path = find_database(name, settings)
    shown = display_path(path)

    console.print(
        Text.assemble(
            "Are you sure you want to delete '",
            (shown, WARNING_STYLE),
            "' and all its contents? (y/n)",
        ),
        width=78,
    )

    prompt = prompt or stdin_prompt(console)
    if prompt().strip() != "y":
        err_console.print(f'Did not delete "{shown}"', markup=False, highlight=False)
        return False

    shutil.rmtree(path)
    logger.info("Deleted database %s", path)
    return True

"""Interactive function selection.

The checklist is split into `SelectionState`, which holds the cursor and the
toggle state and has no terminal dependencies, and `interactive_select`, which
renders the state with rich and feeds it key presses read by `click.getchar`.
"""

import sys
from typing import Callable

import click
from rich.console import Console, Group
from rich.live import Live
from rich.text import Text

from codepaste.exceptions import CodepasteError

PAGE_SIZE = 20
PROMPT = "Select functions/methods to include:"
HELP_MESSAGE = (
    "↑↓/jk: navigate, space: toggle, a: select all, i: invert, r: clear all, enter: confirm"
)

KEYS_UP = {"\x1b[A", "\x1bOA", "\xe0H", "\x00H", "k"}
KEYS_DOWN = {"\x1b[B", "\x1bOB", "\xe0P", "\x00P", "j"}
KEYS_CONFIRM = {"\r", "\n"}
KEYS_ABORT = {"q", "\x1b", "\x03"}


class SelectionState:
    """Cursor and toggle state of a checklist.

    Attributes:
        items (list[str]): Entries in display order.
        selected (set[int]): Indices of selected entries.
        cursor (int): Index of the highlighted entry.
        offset (int): Index of the first visible entry.
        page_size (int): Number of entries shown at once.
    """

    def __init__(
        self,
        items: list[str],
        selected: set[int] | None = None,
        page_size: int = PAGE_SIZE,
    ):
        self.items = list(items)
        self.selected = set(range(len(self.items))) if selected is None else set(selected)
        self.cursor = 0
        self.offset = 0
        self.page_size = page_size

    def move(self, delta: int) -> None:
        """Move the cursor, wrapping around at both ends."""
        if not self.items:
            return
        self.cursor = (self.cursor + delta) % len(self.items)
        if self.cursor < self.offset:
            self.offset = self.cursor
        elif self.cursor >= self.offset + self.page_size:
            self.offset = self.cursor - self.page_size + 1

    def toggle(self) -> None:
        if not self.items:
            return
        self.selected ^= {self.cursor}

    def select_all(self) -> None:
        self.selected = set(range(len(self.items)))

    def invert(self) -> None:
        self.selected = set(range(len(self.items))) - self.selected

    def clear(self) -> None:
        self.selected = set()

    def chosen(self) -> list[str]:
        """Return the selected entries in display order."""
        return [item for i, item in enumerate(self.items) if i in self.selected]

    def visible_window(self) -> range:
        return range(self.offset, min(self.offset + self.page_size, len(self.items)))

    def handle_key(self, key: str) -> bool:
        """Apply a key press.

        Args:
            key (str): Key as returned by `click.getchar`.

        Returns:
            bool: True when the selection is confirmed.

        Raises:
            click.Abort: If the user cancels the prompt.
        """
        if key in KEYS_CONFIRM:
            return True
        if key in KEYS_ABORT:
            raise click.Abort()
        if key in KEYS_UP:
            self.move(-1)
        elif key in KEYS_DOWN:
            self.move(1)
        elif key == " ":
            self.toggle()
        elif key == "a":
            self.select_all()
        elif key == "i":
            self.invert()
        elif key == "r":
            self.clear()
        return False


def render(state: SelectionState) -> Group:
    """Build the rich renderable for the current state."""
    lines = [Text(PROMPT, style="bold")]
    for index in state.visible_window():
        checked = "[x]" if index in state.selected else "[ ]"
        pointer = ">" if index == state.cursor else " "
        style = "bold cyan" if index == state.cursor else ""
        lines.append(Text(f"{pointer} {checked} {state.items[index]}", style=style))
    lines.append(
        Text(
            f"{HELP_MESSAGE} ({len(state.selected)}/{len(state.items)} selected)",
            style="dim",
        )
    )
    return Group(*lines)


def interactive_select(
    items: list[str],
    console: Console,
    read_key: Callable[[], str] | None = None,
) -> list[str]:
    """Show the checklist and return the confirmed selection.

    All entries start selected.

    Args:
        items (list[str]): Entries to choose from.
        console (Console): Console to draw on, normally standard error.
        read_key (Callable[[], str] | None): Key reader, `click.getchar` by default.

    Returns:
        list[str]: Selected entries in display order.

    Raises:
        CodepasteError: If no key reader is given and stdin is not a terminal.
        click.Abort: If the user cancels the prompt.
    """
    if read_key is None:
        if not sys.stdin.isatty():
            raise CodepasteError(
                "Interactive selection requires a terminal. Use --all to select every function."
            )
        read_key = click.getchar

    state = SelectionState(items)
    with Live(render(state), console=console, auto_refresh=False, transient=True) as live:
        while True:
            try:
                key = read_key()
            except (KeyboardInterrupt, EOFError):
                raise click.Abort() from None
            if state.handle_key(key):
                break
            live.update(render(state), refresh=True)
    return state.chosen()

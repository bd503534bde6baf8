"""Interactive event loop for a ``TreeView`` in raw terminal mode.

Each iteration lays the view out to the terminal size, writes one full
frame (outline rows plus a status line), reads one key and dispatches it.
"""

from __future__ import annotations

import logging
import os
import shutil
import sys
from collections.abc import Callable, Collection

from ..ansi import clip_ansi_line
from ..input import read_key
from ..terminal import TerminalController
from ..view import TreeView

QUIT_KEYS = frozenset({"q", "Q", "ESC", "CTRL_C"})
KEY_ALIASES = {
    "k": "UP",
    "j": "DOWN",
    "g": "HOME",
    "G": "END",
    " ": "ENTER",
}

logger = logging.getLogger(__name__)


def status_line(view: TreeView, columns: int) -> str:
    """Build the bottom status row: position, item count and key hints."""
    row = view.row()
    position = "empty" if row is None else f"{row + 1}/{view.visible_height()}"
    noun = "item" if len(view) == 1 else "items"
    text = f" {position} · {len(view)} {noun} · ↑↓ move · enter open/toggle · q quit"
    theme = view.theme
    return f"{theme.status}{clip_ansi_line(text, columns)}{theme.reset}"


def build_frame(view: TreeView, columns: int, rows: int) -> str:
    """Compose one full-screen frame; the last terminal row holds the status line."""
    content_rows = max(0, rows - 1)
    view.layout(columns, content_rows)
    lines = view.render_lines()
    out = ["\033[H"]
    for idx in range(content_rows):
        if idx < len(lines):
            out.append(clip_ansi_line(lines[idx], columns))
        out.append("\033[K\r\n")
    out.append(status_line(view, columns))
    out.append("\033[K")
    return "".join(out)


def run_tree_view(
    view: TreeView,
    *,
    stdin_fd: int | None = None,
    stdout_fd: int | None = None,
    quit_keys: Collection[str] = QUIT_KEYS,
    should_quit: Callable[[], bool] | None = None,
) -> None:
    """Run the interactive loop until a quit key, end of input, or ``should_quit()``."""
    stdin_fd = sys.stdin.fileno() if stdin_fd is None else stdin_fd
    stdout_fd = sys.stdout.fileno() if stdout_fd is None else stdout_fd
    terminal = TerminalController(stdin_fd, stdout_fd)
    with terminal.raw_mode():
        while True:
            size = shutil.get_terminal_size((80, 24))
            os.write(stdout_fd, build_frame(view, size.columns, size.lines).encode("utf-8"))
            key = read_key(stdin_fd)
            if not key or key in quit_keys:
                logger.debug("leaving tree view on key %r", key)
                break
            if not view.handle_key(KEY_ALIASES.get(key, key)):
                logger.debug("ignored key %r", key)
            if should_quit is not None and should_quit():
                break

"""Command-line front door for lazytree.

Builds a collapsible outline of a directory and either prints it or runs the
interactive tree view. Directories below ``--depth`` are listed lazily the
first time they are opened with Enter.
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from dataclasses import dataclass
from pathlib import Path

from .runtime import config
from .runtime.loop import run_tree_view
from .tree_model import Placement, TreeModel
from .ui_theme import available_theme_names, resolve_theme
from .view import TreeView

logger = logging.getLogger(__name__)


@dataclass
class PathItem:
    """Directory-browser payload: one filesystem entry."""

    path: Path
    is_dir: bool
    loaded: bool = False

    def __str__(self) -> str:
        name = self.path.name or str(self.path)
        return f"{name}/" if self.is_dir else name


def _positive_int(value: str) -> int:
    """argparse type for positive integer values."""
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid integer value: {value!r}") from exc
    if parsed <= 0:
        raise argparse.ArgumentTypeError("value must be >= 1")
    return parsed


def _nonnegative_int(value: str) -> int:
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid integer value: {value!r}") from exc
    if parsed < 0:
        raise argparse.ArgumentTypeError("value must be >= 0")
    return parsed


def list_directory_children(directory: Path, show_hidden: bool) -> list[PathItem]:
    """List ``directory`` with subdirectories first, each group sorted by name.

    An unreadable directory yields no children.
    """
    children: list[PathItem] = []
    try:
        with os.scandir(directory) as entries:
            for child in entries:
                if not show_hidden and child.name.startswith("."):
                    continue
                try:
                    is_dir = child.is_dir(follow_symlinks=False)
                except OSError:
                    is_dir = False
                children.append(PathItem(Path(child.path), is_dir))
    except OSError as exc:
        logger.info("cannot list %s: %s", directory, exc)
        return []
    children.sort(key=lambda item: (not item.is_dir, item.path.name.casefold()))
    return children


def populate_directory(model: TreeModel[PathItem], index: int, depth: int, show_hidden: bool) -> int:
    """Insert the children of the directory at storage ``index``.

    Subdirectories are filled recursively while ``depth`` allows. Returns the
    number of nodes added.
    """
    item = model[index].value
    if not item.is_dir or item.loaded or depth <= 0:
        return 0
    item.loaded = True
    added = 0
    for child in list_directory_children(item.path, show_hidden):
        child_index = model.insert(Placement.LAST_CHILD, index, child)
        added += 1 + populate_directory(model, child_index, depth - 1, show_hidden)
    return added


def build_directory_view(
    root: Path,
    *,
    depth: int = 1,
    show_hidden: bool = False,
    page_step: int | None = None,
    theme_name: str | None = None,
    no_color: bool = False,
) -> TreeView[PathItem]:
    """Create a ``TreeView`` whose root row is ``root`` listed ``depth`` levels deep."""
    view: TreeView[PathItem] = TreeView(
        page_step=page_step if page_step is not None else config.DEFAULT_PAGE_STEP,
        theme=resolve_theme(theme_name, no_color=no_color),
    )
    view.insert_item(PathItem(root, root.is_dir()), Placement.CHILD, 0)
    populate_directory(view.model, 0, depth, show_hidden)
    return view


def render_outline(view: TreeView) -> str:
    """Return every visible row of ``view`` as newline-terminated text."""
    lines = view.render_lines(show_focus=False)
    return "".join(f"{line}\n" for line in lines)


def configure_logging(log_file: str | None, verbose: bool) -> None:
    """Send log records to ``log_file``; the terminal itself is in raw mode."""
    if log_file is None:
        return
    logging.basicConfig(
        filename=log_file,
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def main(argv: list[str] | None = None, default_path: Path | None = None) -> None:
    """Parse CLI arguments and show ``path`` as a collapsible outline.

    ``default_path`` is primarily for tests; when omitted the current working
    directory is used. Submitting a file row in the interactive view quits and
    prints that file's path.
    """
    parser = argparse.ArgumentParser(description="Browse a directory as a collapsible tree outline.")
    parser.add_argument("path", nargs="?", default=None, help="Directory to browse. Defaults to current directory.")
    parser.add_argument(
        "--theme",
        default=None,
        help=f"UI theme name ({', '.join(available_theme_names())}); remembered for later runs.",
    )
    parser.add_argument("--no-color", action="store_true", help="Disable color output even on TTY.")
    parser.add_argument("--render", action="store_true", help="Print the outline and exit.")
    parser.add_argument(
        "--depth",
        type=_nonnegative_int,
        default=1,
        help="Directory levels listed up front (default: 1).",
    )
    parser.add_argument(
        "--show-hidden",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Include dot-files; remembered for later runs.",
    )
    parser.add_argument(
        "--page-step",
        type=_positive_int,
        default=None,
        help="Rows moved by PageUp/PageDown; remembered for later runs.",
    )
    parser.add_argument("--log-file", metavar="PATH", default=None, help="Write log records to PATH.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug records (with --log-file).")
    args = parser.parse_args(argv)

    configure_logging(args.log_file, args.verbose)

    if default_path is None:
        default_path = Path.cwd()
    path = Path(args.path or default_path)
    if not path.exists():
        raise SystemExit(f"Path not found: {path}")

    if args.theme is not None:
        config.save_theme_name(args.theme)
    if args.show_hidden is not None:
        config.save_show_hidden(args.show_hidden)
    if args.page_step is not None:
        config.save_page_step(args.page_step)
    theme_name = args.theme or config.load_theme_name()
    show_hidden = args.show_hidden if args.show_hidden is not None else config.load_show_hidden()
    page_step = args.page_step if args.page_step is not None else config.load_page_step()
    interactive = not args.render and sys.stdin.isatty() and sys.stdout.isatty()

    view = build_directory_view(
        path,
        depth=args.depth,
        show_hidden=show_hidden,
        page_step=page_step,
        theme_name=theme_name,
        no_color=args.no_color or not sys.stdout.isatty(),
    )

    if not interactive:
        sys.stdout.write(render_outline(view))
        return

    chosen: list[Path] = []

    def open_row(row: int) -> None:
        item = view.borrow_item(row)
        if item is None:
            return
        if item.is_dir:
            populate_directory(view.model, view.model.visible_index_to_storage(row), 1, show_hidden)
            return
        chosen.append(item.path)

    view.set_on_submit(open_row)
    run_tree_view(view, should_quit=lambda: bool(chosen))
    if chosen:
        sys.stdout.write(f"{chosen[0]}\n")


if __name__ == "__main__":
    main()

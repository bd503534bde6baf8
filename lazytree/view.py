"""Row-addressed tree view: CRUD by visible row, focus, callbacks, and keys.

``TreeView`` wraps one ``TreeModel`` and speaks only in visible rows, the
positions the user sees. Every row-addressed call is translated to a storage
index through the model's skip-on-collapsed walk before delegating. The view
also owns the focused row, the scroll offset of its viewport, and three
single-slot callbacks invoked synchronously from ``handle_key``.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from itertools import islice
from typing import Generic, TypeVar

from .input.key_registry import KeyComboBinding, KeyComboRegistry
from .rendering import format_tree_row, row_width
from .tree_model import Placement, TreeModel
from .ui_theme import DEFAULT_THEME, UITheme

T = TypeVar("T")

DEFAULT_PAGE_STEP = 10
SCROLLBAR_WIDTH = 2

SubmitCallback = Callable[[int], None]
SelectCallback = Callable[[int], None]
CollapseCallback = Callable[[int, bool], None]

logger = logging.getLogger(__name__)


class TreeView(Generic[T]):
    """Collapsible outline over a ``TreeModel`` addressed by visible row.

    Example::

        tree = TreeView()
        tree.insert_item("root", Placement.CHILD, 0)
        tree.insert_item("1", Placement.CHILD, 0)
        tree.insert_item("2", Placement.CHILD, 1)
        tree.insert_item("3", Placement.CHILD, 2)
    """

    def __init__(self, *, page_step: int = DEFAULT_PAGE_STEP, theme: UITheme | None = None) -> None:
        self.model: TreeModel[T] = TreeModel()
        self.page_step = max(1, int(page_step))
        self.theme = theme or DEFAULT_THEME
        self.enabled = True
        self.focus = 0
        self.scroll_start = 0
        self.viewport_width = 0
        self.viewport_height = 0
        self._on_submit: SubmitCallback | None = None
        self._on_select: SelectCallback | None = None
        self._on_collapse: CollapseCallback | None = None
        self._keys = KeyComboRegistry().register_bindings(
            KeyComboBinding(("UP",), lambda: self._focus_up(1)),
            KeyComboBinding(("DOWN",), lambda: self._focus_down(1)),
            KeyComboBinding(("PAGE_UP",), lambda: self._focus_up(self.page_step)),
            KeyComboBinding(("PAGE_DOWN",), lambda: self._focus_down(self.page_step)),
            KeyComboBinding(("HOME",), self._focus_first),
            KeyComboBinding(("END",), self._focus_last),
            KeyComboBinding(("ENTER", "ENTER_CR", "ENTER_LF"), self._activate_focused),
        )

    # ------------------------------------------------------------------
    # Enabled state

    def enable(self) -> None:
        self.enabled = True

    def disable(self) -> None:
        """Disable the view; a disabled view ignores keys and cannot take focus."""
        self.enabled = False

    def set_enabled(self, enabled: bool) -> None:
        self.enabled = bool(enabled)

    def is_enabled(self) -> bool:
        return self.enabled

    def take_focus(self) -> bool:
        return self.enabled and not self.is_empty()

    # ------------------------------------------------------------------
    # Callback slots

    def set_on_submit(self, callback: SubmitCallback | None) -> TreeView[T]:
        """Set the handler for Enter on a leaf row; replaces any earlier handler."""
        self._on_submit = callback
        return self

    def set_on_select(self, callback: SelectCallback | None) -> TreeView[T]:
        """Set the handler for keyboard focus changes; replaces any earlier handler."""
        self._on_select = callback
        return self

    def set_on_collapse(self, callback: CollapseCallback | None) -> TreeView[T]:
        """Set the handler for Enter on a parent row, called with ``(row, collapsed)``."""
        self._on_collapse = callback
        return self

    # ------------------------------------------------------------------
    # Size and focus

    def __len__(self) -> int:
        return len(self.model)

    def is_empty(self) -> bool:
        return not self.model

    def visible_height(self) -> int:
        return self.model.visible_height()

    def row(self) -> int | None:
        """Return the focused row, or ``None`` when there is nothing to select."""
        if self.is_empty():
            return None
        return self.focus

    def set_selected_row(self, row: int) -> None:
        """Focus ``row`` (clamped to the visible rows) and scroll it into view."""
        self.focus = max(0, row)
        self._clamp_focus()

    def selected_row(self, row: int) -> TreeView[T]:
        self.set_selected_row(row)
        return self

    def _clamp_focus(self) -> None:
        """Keep focus on an existing row and that row inside the viewport."""
        height = self.model.visible_height()
        self.focus = max(0, min(self.focus, height - 1))
        self.scroll_to(self.focus)

    def _storage_index(self, row: int) -> int | None:
        """Translate ``row`` to a storage index, ``None`` when no such row exists."""
        if row < 0:
            return None
        visible = next(self.model.iter_visible(row), None)
        return None if visible is None else visible.index

    # ------------------------------------------------------------------
    # Item access

    def borrow_item(self, row: int) -> T | None:
        """Return the value shown at ``row`` or ``None`` when there is no such row."""
        index = self._storage_index(row)
        if index is None:
            return None
        return self.model.value(index)

    def set_item(self, row: int, value: T) -> bool:
        """Replace the value shown at ``row``; ``False`` when there is no such row."""
        index = self._storage_index(row)
        if index is None:
            return False
        return self.model.set_value(index, value)

    def update_item(self, row: int, update: Callable[[T], T]) -> bool:
        """Replace the value at ``row`` with ``update(old_value)``."""
        index = self._storage_index(row)
        if index is None:
            return False
        return self.model.set_value(index, update(self.model[index].value))

    def item_depth(self, row: int) -> int | None:
        index = self._storage_index(row)
        return None if index is None else self.model.depth(index)

    def item_has_children(self, row: int) -> bool:
        index = self._storage_index(row)
        return index is not None and self.model.has_children(index)

    def is_item_collapsed(self, row: int) -> bool:
        index = self._storage_index(row)
        return index is not None and self.model.is_collapsed(index)

    # ------------------------------------------------------------------
    # Mutation

    def insert_item(self, item: T, placement: Placement, row: int) -> int | None:
        """Insert ``item`` relative to ``row`` and return the row it now occupies.

        On an empty view the item becomes the sole root. Returns ``None`` when
        the new item landed inside a collapsed subtree and has no row. A
        ``row`` outside the visible rows of a non-empty view raises
        ``TreeIndexError``.
        """
        if self.is_empty():
            index = self.model.insert(placement, 0, item)
        else:
            index = self.model.insert(placement, self.model.visible_index_to_storage(row), item)
        return self.model.storage_to_visible_index(index)

    def remove_item(self, row: int) -> list[T] | None:
        """Remove the item at ``row`` with all of its children.

        The returned list holds the removed items in top to bottom order.
        """
        index = self._storage_index(row)
        if index is None:
            return None
        removed = self.model.remove_with_subtree(index)
        self._clamp_focus()
        return removed

    def extract_item(self, row: int) -> T | None:
        """Remove only the item at ``row``; its children move up one level."""
        index = self._storage_index(row)
        if index is None:
            return None
        removed = self.model.extract(index)
        self._clamp_focus()
        return removed

    def collapse_item(self, row: int) -> None:
        self.set_collapsed(row, True)

    def expand_item(self, row: int) -> None:
        self.set_collapsed(row, False)

    def set_collapsed(self, row: int, collapsed: bool) -> None:
        """Collapse or expand the children of ``row``; unknown rows are ignored."""
        index = self._storage_index(row)
        if index is None:
            return
        self.model.set_collapsed(index, collapsed)
        self._clamp_focus()

    def collapsed(self, row: int, collapsed: bool) -> TreeView[T]:
        self.set_collapsed(row, collapsed)
        return self

    def clear(self) -> None:
        self.model.clear()
        self.focus = 0
        self.scroll_start = 0

    def take_items(self) -> list[T]:
        """Remove all items and return them in storage order."""
        items = self.model.take_values()
        self.focus = 0
        self.scroll_start = 0
        return items

    # ------------------------------------------------------------------
    # Keyboard

    def handle_key(self, key: str) -> bool:
        """Handle one key token and return ``True`` when it was consumed.

        Focus keys fire ``on_select`` only when the focused row changed.
        Enter toggles a parent row (firing ``on_collapse``) or submits a
        leaf row (firing ``on_submit``). Disabled or empty views ignore keys.
        """
        if not self.enabled or self.is_empty() or not self._keys.handles(key):
            return False
        last_focus = self.focus
        consumed = bool(self._keys.dispatch(key))
        self.scroll_to(self.focus)
        if self.focus != last_focus:
            logger.debug("focus moved %d -> %d", last_focus, self.focus)
            if self._on_select is not None:
                self._on_select(self.focus)
            return True
        return consumed

    def _focus_up(self, step: int) -> bool:
        self.focus -= min(self.focus, step)
        return False

    def _focus_down(self, step: int) -> bool:
        self.focus = min(self.focus + step, self.model.visible_height() - 1)
        return False

    def _focus_first(self) -> bool:
        self.focus = 0
        return False

    def _focus_last(self) -> bool:
        self.focus = self.model.visible_height() - 1
        return False

    def _activate_focused(self) -> bool:
        row = self.focus
        index = self._storage_index(row)
        if index is None:
            return False
        if self.model.has_children(index):
            collapsed = not self.model.is_collapsed(index)
            self.model.set_collapsed(index, collapsed)
            logger.debug("row %d %s", row, "collapsed" if collapsed else "expanded")
            if self._on_collapse is not None:
                self._on_collapse(row, collapsed)
            return True
        if self._on_submit is not None:
            logger.debug("row %d submitted", row)
            self._on_submit(row)
            return True
        return False

    # ------------------------------------------------------------------
    # Viewport

    def layout(self, width: int, height: int) -> None:
        """Record the viewport size and keep the focused row in view."""
        self.viewport_width = max(0, width)
        self.viewport_height = max(0, height)
        self._clamp_focus()

    def scroll_to(self, row: int) -> None:
        """Adjust the scroll offset so ``row`` lies inside the viewport."""
        rows = self.viewport_height
        if rows <= 0:
            self.scroll_start = 0
            return
        if row < self.scroll_start:
            self.scroll_start = row
        elif row >= self.scroll_start + rows:
            self.scroll_start = row - rows + 1
        max_start = max(0, self.model.visible_height() - rows)
        self.scroll_start = max(0, min(self.scroll_start, max_start))

    def required_size(self, available_height: int | None = None) -> tuple[int, int]:
        """Return ``(width, height)`` needed to show every row without clipping.

        Width covers the widest item, hidden ones included, so expanding does
        not resize the view. Scrollbar columns are added when
        ``available_height`` is shorter than the content.
        """
        width = max((row_width(node) for node in self.model.nodes()), default=0)
        height = self.model.visible_height()
        if available_height is not None and available_height < height:
            width += SCROLLBAR_WIDTH
        return width, height

    def render_lines(self, *, focused: bool = True, show_focus: bool = True) -> list[str]:
        """Return styled rows for the current viewport, top to bottom.

        Without a layout every visible row is returned.
        """
        rows = self.viewport_height if self.viewport_height > 0 else None
        start = self.scroll_start if rows is not None else 0
        active = self.enabled and focused
        lines: list[str] = []
        for visible in islice(self.model.iter_visible(start), rows):
            lines.append(
                format_tree_row(
                    visible.node,
                    focused=show_focus and visible.row == self.focus,
                    active=active,
                    theme=self.theme,
                )
            )
        return lines

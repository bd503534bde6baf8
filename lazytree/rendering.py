"""Formatting helpers for outline rows."""

from __future__ import annotations

from .ansi import display_width
from .tree_model import Node
from .ui_theme import DEFAULT_THEME, UITheme

INDENT_WIDTH = 2
GLYPH_COLLAPSED = "▸"
GLYPH_EXPANDED = "▾"
GLYPH_LEAF = "◦"


def row_glyph(node: Node) -> str:
    """Return the expand/collapse glyph for parents and the leaf glyph otherwise."""
    if node.descendant_count > 0:
        return GLYPH_COLLAPSED if node.collapsed else GLYPH_EXPANDED
    return GLYPH_LEAF


def item_text(node: Node) -> str:
    # Newlines would break the one-row-per-item layout.
    return str(node.value).replace("\n", " ")


def row_width(node: Node) -> int:
    """Return display columns used by one unstyled row (indent, glyph column, text)."""
    return node.depth * INDENT_WIDTH + INDENT_WIDTH + display_width(item_text(node))


def selected_with_ansi(text: str, style: str, reset: str) -> str:
    """Apply focus styling without discarding the style after internal resets."""
    if not text or not style:
        return text
    if not reset:
        return style + text
    return style + text.replace(reset, reset + style) + reset


def format_tree_row(
    node: Node,
    *,
    focused: bool = False,
    active: bool = True,
    theme: UITheme | None = None,
) -> str:
    """Render one outline row as ANSI-styled text.

    The glyph sits at column ``2 * depth`` and the text two columns later.
    A focused row is highlighted; ``active`` picks the inactive highlight
    when the view is disabled or unfocused.
    """
    active_theme = theme or DEFAULT_THEME
    reset = active_theme.reset
    indent = " " * (node.depth * INDENT_WIDTH)
    text_color = active_theme.tree_parent if node.descendant_count > 0 else active_theme.tree_leaf
    text = f"{text_color}{item_text(node)}{reset}"
    if focused:
        style = active_theme.focus if active else active_theme.focus_inactive
        text = selected_with_ansi(text, style, reset)
    return f"{indent}{active_theme.tree_marker}{row_glyph(node)}{reset} {text}"

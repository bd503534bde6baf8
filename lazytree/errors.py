"""Exception types raised by the tree model and view."""

from __future__ import annotations


class TreeIndexError(IndexError):
    """Storage index or visible row outside the model's current bounds."""

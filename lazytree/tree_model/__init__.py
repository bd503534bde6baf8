"""Flattened tree model backing the collapsible outline view.

Defines ``Node``/``Placement`` and the ``TreeModel`` storage with its shared
skip-on-collapsed walk used for both drawing and row translation.
"""

from __future__ import annotations

from .model import TreeModel
from .types import Node, Placement, VisibleRow

__all__ = [
    "Node",
    "Placement",
    "TreeModel",
    "VisibleRow",
]

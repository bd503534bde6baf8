"""Public package surface for lazytree.

Exports the flattened ``TreeModel``, the row-addressed ``TreeView`` and
``main`` for programmatic CLI invocation.
"""

from __future__ import annotations

from .errors import TreeIndexError
from .tree_model import Node, Placement, TreeModel, VisibleRow
from .view import TreeView


def main(*args, **kwargs):
    """Lazily import CLI entrypoint to keep package imports lightweight."""
    from .cli import main as _main

    return _main(*args, **kwargs)


__all__ = [
    "Node",
    "Placement",
    "TreeIndexError",
    "TreeModel",
    "TreeView",
    "VisibleRow",
    "main",
]

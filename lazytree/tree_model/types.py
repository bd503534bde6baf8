"""Node and placement datatypes shared by the tree model and its consumers."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Generic, NamedTuple, TypeVar

T = TypeVar("T")


class Placement(enum.Enum):
    """Where ``TreeModel.insert`` attaches a new node relative to a reference node."""

    CHILD = "child"
    LAST_CHILD = "last_child"
    SIBLING_BEFORE = "sibling_before"
    SIBLING_AFTER = "sibling_after"
    PARENT = "parent"


@dataclass(eq=False)
class Node(Generic[T]):
    """One entry of the flattened pre-order storage.

    ``descendant_count`` excludes the node itself, so the node's subtree span
    is ``[index, index + descendant_count]``.
    """

    value: T
    depth: int = 0
    descendant_count: int = 0
    collapsed: bool = False

    @property
    def has_children(self) -> bool:
        return self.descendant_count > 0


class VisibleRow(NamedTuple):
    """One step of the skip-on-collapsed walk: visible row, storage index, node."""

    row: int
    index: int
    node: Node

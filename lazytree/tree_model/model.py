"""Flattened pre-order tree storage with fold state and row translation.

Nodes live in one list in pre-order. Each node records its depth and the size
of its subtree, so the subtree of the node at ``i`` is exactly
``storage[i : i + descendant_count + 1]`` and skipping it is index arithmetic.
Collapsing only flips a flag; the visible projection is derived on demand by
one shared skip-on-collapsed walk.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from typing import Generic, TypeVar

from ..errors import TreeIndexError
from .types import Node, Placement, VisibleRow

T = TypeVar("T")

logger = logging.getLogger(__name__)


class TreeModel(Generic[T]):
    """Ordered forest of nodes flattened to a single pre-order sequence."""

    def __init__(self) -> None:
        self._storage: list[Node[T]] = []

    def __len__(self) -> int:
        return len(self._storage)

    def __bool__(self) -> bool:
        return bool(self._storage)

    def __getitem__(self, index: int) -> Node[T]:
        if not self.is_valid_index(index):
            raise TreeIndexError(f"storage index out of range: {index}")
        return self._storage[index]

    def is_valid_index(self, index: int) -> bool:
        return 0 <= index < len(self._storage)

    # ------------------------------------------------------------------
    # Queries

    def get(self, index: int) -> Node[T] | None:
        """Return the node at ``index`` or ``None`` when out of bounds."""
        if not self.is_valid_index(index):
            return None
        return self._storage[index]

    def value(self, index: int) -> T | None:
        node = self.get(index)
        return None if node is None else node.value

    def set_value(self, index: int, value: T) -> bool:
        """Replace the payload at ``index`` in place; ``False`` when out of bounds."""
        node = self.get(index)
        if node is None:
            return False
        node.value = value
        return True

    def depth(self, index: int) -> int:
        return self[index].depth

    def descendant_count(self, index: int) -> int:
        return self[index].descendant_count

    def is_collapsed(self, index: int) -> bool:
        return self[index].collapsed

    def has_children(self, index: int) -> bool:
        return self[index].descendant_count > 0

    def values(self) -> list[T]:
        """Return every payload in storage (pre-order) order."""
        return [node.value for node in self._storage]

    def nodes(self) -> Sequence[Node[T]]:
        return tuple(self._storage)

    def parent_index(self, index: int) -> int | None:
        """Return the storage index of the parent of ``index``, ``None`` for roots."""
        return next(self._ancestor_indices(index, self[index].depth), None)

    def _ancestor_indices(self, index: int, depth: int) -> Iterator[int]:
        """Yield ancestors of a node of ``depth`` placed at ``index``, nearest first.

        Walks backwards; a node shallower than everything seen so far is the
        next ancestor because siblings' subtrees are contiguous.
        """
        wanted = depth
        idx = index - 1
        while wanted > 0 and idx >= 0:
            node = self._storage[idx]
            if node.depth < wanted:
                yield idx
                wanted = node.depth
            idx -= 1

    # ------------------------------------------------------------------
    # Skip-on-collapsed walk

    def _step(self, index: int) -> int:
        """Return the storage index of the next visible entry after visible ``index``."""
        node = self._storage[index]
        if node.collapsed:
            return index + node.descendant_count + 1
        return index + 1

    def iter_visible(self, start_row: int = 0) -> Iterator[VisibleRow]:
        """Yield ``VisibleRow`` entries from ``start_row`` onward.

        Collapsed subtrees are skipped in one step and never descended into.
        Every row-oriented consumer (height, row translation, drawing) goes
        through this walk.
        """
        storage = self._storage
        index = 0
        row = 0
        while index < len(storage):
            if row >= start_row:
                yield VisibleRow(row, index, storage[index])
            row += 1
            index = self._step(index)

    def iter_rows(self) -> Iterator[tuple[Node[T], bool]]:
        """Yield ``(node, is_visible)`` for every stored node in pre-order."""
        next_visible = 0
        for index, node in enumerate(self._storage):
            visible = index == next_visible
            if visible:
                next_visible = self._step(index)
            yield node, visible

    def visible_height(self) -> int:
        """Return the number of rows not hidden by a collapsed ancestor."""
        height = 0
        for _ in self.iter_visible():
            height += 1
        return height

    def visible_index_to_storage(self, row: int) -> int:
        """Translate visible ``row`` to its storage index.

        Raises ``TreeIndexError`` when ``row`` is outside ``[0, visible_height())``.
        """
        if row >= 0:
            for visible in self.iter_visible():
                if visible.row == row:
                    return visible.index
        raise TreeIndexError(f"visible row out of range: {row}")

    def storage_to_visible_index(self, index: int) -> int | None:
        """Return the visible row of storage ``index``, ``None`` when hidden or invalid."""
        if not self.is_valid_index(index):
            return None
        for visible in self.iter_visible():
            if visible.index == index:
                return visible.row
            if visible.index > index:
                return None
        return None

    # ------------------------------------------------------------------
    # Mutation

    def set_collapsed(self, index: int, collapsed: bool) -> bool:
        """Set the fold flag of ``index``; ``False`` when the index is invalid."""
        node = self.get(index)
        if node is None:
            return False
        node.collapsed = bool(collapsed)
        return True

    def insert(self, placement: Placement, reference_index: int, value: T) -> int:
        """Insert ``value`` relative to ``reference_index`` and return its storage index.

        On an empty model the value becomes the sole depth-0 root whatever the
        placement. Otherwise ``reference_index`` must be in bounds.
        """
        return self.insert_subtree(placement, reference_index, [Node(value)])

    def insert_subtree(
        self,
        placement: Placement,
        reference_index: int,
        nodes: Sequence[Node[T]],
    ) -> int:
        """Insert a whole pre-order subtree as a unit and return its root index.

        Only the depths of ``nodes`` relative to the first node matter; they are
        re-based onto the new parent and subtree sizes are recomputed. Fold
        flags are kept. With ``Placement.PARENT`` the reference subtree becomes
        the last child subtree of the inserted root.
        """
        subtree = _normalized_subtree(nodes)
        storage = self._storage
        if not storage:
            storage[:] = subtree
            logger.debug("inserted %d node(s) as first root", len(subtree))
            return 0
        if not self.is_valid_index(reference_index):
            raise TreeIndexError(f"reference index out of range: {reference_index}")

        reference = storage[reference_index]
        span = reference.descendant_count + 1
        if placement is Placement.CHILD:
            index, depth = reference_index + 1, reference.depth + 1
        elif placement is Placement.LAST_CHILD:
            index, depth = reference_index + span, reference.depth + 1
        elif placement is Placement.SIBLING_BEFORE:
            index, depth = reference_index, reference.depth
        elif placement is Placement.SIBLING_AFTER:
            index, depth = reference_index + span, reference.depth
        elif placement is Placement.PARENT:
            index, depth = reference_index, reference.depth
            for node in storage[reference_index : reference_index + span]:
                node.depth += 1
            subtree[0].descendant_count += span
        else:
            raise ValueError(f"unknown placement: {placement!r}")

        for node in subtree:
            node.depth += depth
        for ancestor in self._ancestor_indices(index, depth):
            storage[ancestor].descendant_count += len(subtree)
        storage[index:index] = subtree
        logger.debug(
            "inserted %d node(s) at %d (depth %d, %s of %d)",
            len(subtree),
            index,
            depth,
            placement.value,
            reference_index,
        )
        return index

    def detach_subtree(self, index: int) -> list[Node[T]] | None:
        """Remove the node at ``index`` with its subtree and return the nodes.

        Returned nodes are in pre-order with depths re-based to 0 so they can
        be handed straight back to ``insert_subtree``. ``None`` when invalid.
        """
        node = self.get(index)
        if node is None:
            return None
        span = node.descendant_count + 1
        for ancestor in self._ancestor_indices(index, node.depth):
            self._storage[ancestor].descendant_count -= span
        removed = self._storage[index : index + span]
        del self._storage[index : index + span]
        base = node.depth
        for child in removed:
            child.depth -= base
        logger.debug("removed %d node(s) at %d", span, index)
        return removed

    def remove_with_subtree(self, index: int) -> list[T] | None:
        """Remove ``index`` and its descendants; return their values top to bottom."""
        removed = self.detach_subtree(index)
        if removed is None:
            return None
        return [node.value for node in removed]

    def move_subtree(self, index: int, placement: Placement, reference_index: int) -> int | None:
        """Move the subtree at ``index`` next to ``reference_index``.

        ``reference_index`` is interpreted after the subtree has been removed.
        Returns the new root index, or ``None`` when ``index`` is invalid.
        """
        nodes = self.detach_subtree(index)
        if nodes is None:
            return None
        return self.insert_subtree(placement, reference_index, nodes)

    def extract(self, index: int) -> T | None:
        """Remove only the node at ``index``, lifting its descendants one level.

        Descendants keep their storage order and relative structure; the
        direct children become children of the extracted node's parent.
        """
        node = self.get(index)
        if node is None:
            return None
        for ancestor in self._ancestor_indices(index, node.depth):
            self._storage[ancestor].descendant_count -= 1
        for child in self._storage[index + 1 : index + node.descendant_count + 1]:
            child.depth -= 1
        del self._storage[index]
        logger.debug("extracted node at %d, lifted %d descendant(s)", index, node.descendant_count)
        return node.value

    def clear(self) -> None:
        self._storage.clear()

    def take_values(self) -> list[T]:
        """Remove every node and return the values in storage order."""
        values = self.values()
        self._storage = []
        return values

    # ------------------------------------------------------------------
    # Diagnostics

    def check_invariants(self) -> None:
        """Raise ``AssertionError`` naming the first broken structural invariant."""
        storage = self._storage
        previous_depth = -1
        open_nodes: list[int] = []
        for index, node in enumerate(storage):
            if node.depth < 0 or node.depth > previous_depth + 1:
                raise AssertionError(
                    f"node {index} has depth {node.depth} after depth {previous_depth}"
                )
            previous_depth = node.depth
            while open_nodes and storage[open_nodes[-1]].depth >= node.depth:
                _check_descendant_count(storage, open_nodes.pop(), index)
            open_nodes.append(index)
        while open_nodes:
            _check_descendant_count(storage, open_nodes.pop(), len(storage))


def _check_descendant_count(storage: Sequence[Node], index: int, end: int) -> None:
    """Compare the recorded subtree size of ``index`` with the span ending at ``end``."""
    actual = end - index - 1
    if storage[index].descendant_count != actual:
        raise AssertionError(
            f"node {index} records {storage[index].descendant_count} descendants, has {actual}"
        )


def _normalized_subtree(nodes: Sequence[Node[T]]) -> list[Node[T]]:
    """Validate a pre-order node list and rebuild depths and subtree sizes.

    Depths are made relative to the first node. Every later node must be
    deeper than the first and at most one level deeper than its predecessor.
    """
    if not nodes:
        raise ValueError("cannot insert an empty subtree")
    base = nodes[0].depth
    subtree: list[Node[T]] = []
    previous_depth = -1
    for position, node in enumerate(nodes):
        depth = node.depth - base
        if position > 0 and depth <= 0:
            raise ValueError("subtree has more than one root")
        if depth > previous_depth + 1:
            raise ValueError(f"subtree depth jumps from {previous_depth} to {depth}")
        previous_depth = depth
        subtree.append(Node(node.value, depth, 0, node.collapsed))

    # Each node's size is the run of strictly deeper nodes that follow it.
    open_nodes: list[int] = []
    for position, node in enumerate(subtree):
        while open_nodes and subtree[open_nodes[-1]].depth >= node.depth:
            closed = open_nodes.pop()
            subtree[closed].descendant_count = position - closed - 1
        open_nodes.append(position)
    for closed in open_nodes:
        subtree[closed].descendant_count = len(subtree) - closed - 1
    return subtree

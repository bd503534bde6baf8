"""Tests for flattened tree storage: placement, removal, and extraction.

Covers the four reference scenarios (build, collapse, remove, extract),
each placement rule, and subtree moves. Structural invariants are checked
after every mutation.
"""

from __future__ import annotations

import random
import unittest

from lazytree import Node, Placement, TreeIndexError, TreeModel


def _scenario_a() -> TreeModel[str]:
    model: TreeModel[str] = TreeModel()
    model.insert(Placement.CHILD, 0, "root")
    model.insert(Placement.CHILD, 0, "3")
    model.insert(Placement.CHILD, 0, "2")
    model.insert(Placement.CHILD, 0, "1")
    return model


def _depths(model: TreeModel) -> list[int]:
    return [node.depth for node in model.nodes()]


class InsertTests(unittest.TestCase):
    def test_first_insert_becomes_root_whatever_the_placement(self) -> None:
        for placement in Placement:
            model: TreeModel[str] = TreeModel()
            index = model.insert(placement, 7, "only")
            self.assertEqual(index, 0)
            self.assertEqual(model.depth(0), 0)
            self.assertEqual(model.visible_height(), 1)

    def test_scenario_a_children_of_root(self) -> None:
        model = _scenario_a()

        self.assertEqual(model.visible_height(), 4)
        self.assertEqual(_depths(model), [0, 1, 1, 1])
        self.assertEqual(model.values(), ["root", "1", "2", "3"])
        self.assertEqual(model.descendant_count(0), 3)
        model.check_invariants()

    def test_child_is_inserted_as_first_child(self) -> None:
        model = _scenario_a()
        index = model.insert(Placement.CHILD, 0, "0")
        self.assertEqual(index, 1)
        self.assertEqual(model.values(), ["root", "0", "1", "2", "3"])

    def test_last_child_goes_after_whole_subtree(self) -> None:
        model = _scenario_a()
        model.insert(Placement.CHILD, 1, "1.a")
        index = model.insert(Placement.LAST_CHILD, 0, "4")
        self.assertEqual(index, 5)
        self.assertEqual(model.values(), ["root", "1", "1.a", "2", "3", "4"])
        self.assertEqual(model.depth(5), 1)
        self.assertEqual(model.descendant_count(0), 5)
        model.check_invariants()

    def test_sibling_before_and_after_span_the_reference_subtree(self) -> None:
        model = _scenario_a()
        model.insert(Placement.CHILD, 2, "2.a")
        after = model.insert(Placement.SIBLING_AFTER, 2, "2+")
        before = model.insert(Placement.SIBLING_BEFORE, 2, "2-")

        self.assertEqual(model.values(), ["root", "1", "2-", "2", "2.a", "2+", "3"])
        self.assertEqual(after, 4)
        self.assertEqual(before, 2)
        self.assertEqual(model.depth(2), 1)
        self.assertEqual(model.depth(5), 1)
        self.assertEqual(model.descendant_count(0), 6)
        model.check_invariants()

    def test_sibling_of_root_creates_another_root(self) -> None:
        model = _scenario_a()
        index = model.insert(Placement.SIBLING_AFTER, 0, "other")
        self.assertEqual(index, 4)
        self.assertEqual(model.depth(4), 0)
        self.assertIsNone(model.parent_index(4))
        self.assertEqual(model.descendant_count(0), 3)

    def test_parent_wraps_reference_subtree(self) -> None:
        model = _scenario_a()
        model.insert(Placement.CHILD, 2, "2.a")
        index = model.insert(Placement.PARENT, 2, "wrapper")

        self.assertEqual(index, 2)
        self.assertEqual(model.values(), ["root", "1", "wrapper", "2", "2.a", "3"])
        self.assertEqual(_depths(model), [0, 1, 1, 2, 3, 1])
        self.assertEqual(model.descendant_count(2), 2)
        self.assertEqual(model.descendant_count(0), 5)
        model.check_invariants()

    def test_insert_updates_every_ancestor(self) -> None:
        model = _scenario_a()
        deep = model.insert(Placement.CHILD, 1, "1.a")
        deeper = model.insert(Placement.CHILD, deep, "1.a.i")
        model.insert(Placement.CHILD, deeper, "1.a.i.x")

        self.assertEqual(model.descendant_count(0), 6)
        self.assertEqual(model.descendant_count(1), 3)
        self.assertEqual(model.descendant_count(2), 2)
        self.assertEqual(model.parent_index(deeper), deep)
        model.check_invariants()

    def test_out_of_bounds_reference_raises(self) -> None:
        model = _scenario_a()
        with self.assertRaises(TreeIndexError):
            model.insert(Placement.CHILD, 4, "nope")
        with self.assertRaises(IndexError):
            model.insert(Placement.SIBLING_AFTER, -1, "nope")
        self.assertEqual(len(model), 4)


class RemovalTests(unittest.TestCase):
    def test_scenario_c_remove_root_returns_preorder_values(self) -> None:
        model = _scenario_a()
        removed = model.remove_with_subtree(0)

        self.assertEqual(removed, ["root", "1", "2", "3"])
        self.assertEqual(len(model), 0)
        self.assertEqual(model.visible_height(), 0)

    def test_remove_inner_subtree_shrinks_ancestors(self) -> None:
        model = _scenario_a()
        model.insert(Placement.CHILD, 2, "2.a")
        model.insert(Placement.CHILD, 3, "2.a.i")

        removed = model.remove_with_subtree(2)

        self.assertEqual(removed, ["2", "2.a", "2.a.i"])
        self.assertEqual(model.values(), ["root", "1", "3"])
        self.assertEqual(model.descendant_count(0), 2)
        model.check_invariants()

    def test_remove_invalid_index_returns_none(self) -> None:
        model = _scenario_a()
        self.assertIsNone(model.remove_with_subtree(4))
        self.assertIsNone(model.remove_with_subtree(-1))
        self.assertIsNone(model.extract(10))
        self.assertEqual(len(model), 4)

    def test_scenario_d_extract_root_lifts_children(self) -> None:
        model = _scenario_a()
        extracted = model.extract(0)

        self.assertEqual(extracted, "root")
        self.assertEqual(model.values(), ["1", "2", "3"])
        self.assertEqual(_depths(model), [0, 0, 0])
        self.assertEqual(model.visible_height(), 3)
        model.check_invariants()

    def test_extract_keeps_relative_structure_of_grandchildren(self) -> None:
        model = _scenario_a()
        model.insert(Placement.CHILD, 1, "1.a")
        model.insert(Placement.CHILD, 2, "1.a.i")

        self.assertEqual(model.extract(1), "1")

        self.assertEqual(model.values(), ["root", "1.a", "1.a.i", "2", "3"])
        self.assertEqual(_depths(model), [0, 1, 2, 1, 1])
        self.assertEqual(model.descendant_count(0), 4)
        self.assertEqual(model.parent_index(1), 0)
        model.check_invariants()

    def test_clear_and_take_values(self) -> None:
        model = _scenario_a()
        self.assertEqual(model.take_values(), ["root", "1", "2", "3"])
        self.assertFalse(model)

        model = _scenario_a()
        model.clear()
        self.assertEqual(len(model), 0)


class SubtreeMoveTests(unittest.TestCase):
    def test_detached_subtree_is_rebased_and_reinsertable(self) -> None:
        model = _scenario_a()
        model.insert(Placement.CHILD, 3, "3.a")
        model.set_collapsed(3, True)

        nodes = model.detach_subtree(3)

        self.assertEqual([(n.value, n.depth) for n in nodes], [("3", 0), ("3.a", 1)])
        self.assertTrue(nodes[0].collapsed)

        index = model.insert_subtree(Placement.CHILD, 1, nodes)
        self.assertEqual(index, 2)
        self.assertEqual(model.values(), ["root", "1", "3", "3.a", "2"])
        self.assertEqual(_depths(model), [0, 1, 2, 3, 1])
        self.assertTrue(model.is_collapsed(2))
        model.check_invariants()

    def test_move_subtree_to_new_root(self) -> None:
        model = _scenario_a()
        model.insert(Placement.CHILD, 1, "1.a")

        index = model.move_subtree(1, Placement.SIBLING_AFTER, 0)

        self.assertEqual(index, 3)
        self.assertEqual(model.values(), ["root", "2", "3", "1", "1.a"])
        self.assertEqual(_depths(model), [0, 1, 1, 0, 1])
        model.check_invariants()

    def test_insert_subtree_with_parent_placement(self) -> None:
        model = _scenario_a()
        nodes = [Node("group", 0), Node("group.a", 1)]

        model.insert_subtree(Placement.PARENT, 3, nodes)

        self.assertEqual(model.values(), ["root", "1", "2", "group", "group.a", "3"])
        self.assertEqual(_depths(model), [0, 1, 1, 1, 2, 2])
        self.assertEqual(model.descendant_count(3), 2)
        model.check_invariants()

    def test_malformed_subtree_is_rejected(self) -> None:
        model = _scenario_a()
        with self.assertRaises(ValueError):
            model.insert_subtree(Placement.CHILD, 0, [])
        with self.assertRaises(ValueError):
            model.insert_subtree(Placement.CHILD, 0, [Node("a", 0), Node("b", 0)])
        with self.assertRaises(ValueError):
            model.insert_subtree(Placement.CHILD, 0, [Node("a", 0), Node("b", 2)])
        self.assertEqual(len(model), 4)


class InvariantCheckTests(unittest.TestCase):
    def test_wrong_root_subtree_size_is_reported(self) -> None:
        model = _scenario_a()
        model.nodes()[0].descendant_count = 2
        with self.assertRaisesRegex(AssertionError, "node 0 records 2 descendants, has 3"):
            model.check_invariants()

    def test_leaf_claiming_children_is_reported(self) -> None:
        model = _scenario_a()
        model.nodes()[1].descendant_count = 1
        with self.assertRaisesRegex(AssertionError, "node 1 records 1 descendants, has 0"):
            model.check_invariants()

    def test_depth_jump_is_reported(self) -> None:
        model = _scenario_a()
        model.nodes()[3].depth = 3
        with self.assertRaisesRegex(AssertionError, "node 3 has depth 3"):
            model.check_invariants()

    def test_large_flat_forest_passes(self) -> None:
        model: TreeModel[int] = TreeModel()
        model.insert(Placement.CHILD, 0, 0)
        for value in range(1, 5000):
            model.insert(Placement.SIBLING_AFTER, value - 1, value)
        model.check_invariants()


class RandomMutationTests(unittest.TestCase):
    def test_invariants_hold_under_random_operations(self) -> None:
        rng = random.Random(1234)
        model: TreeModel[int] = TreeModel()
        placements = list(Placement)
        for step in range(600):
            action = rng.random()
            if not model or action < 0.55:
                reference = rng.randrange(len(model)) if model else 0
                model.insert(rng.choice(placements), reference, step)
            elif action < 0.7:
                model.remove_with_subtree(rng.randrange(len(model)))
            elif action < 0.85:
                model.extract(rng.randrange(len(model)))
            elif action < 0.93:
                model.set_collapsed(rng.randrange(len(model)), rng.random() < 0.5)
            else:
                source = rng.randrange(len(model))
                remaining = len(model) - model.descendant_count(source) - 1
                if remaining:
                    model.move_subtree(source, rng.choice(placements), rng.randrange(remaining))
            model.check_invariants()
            height = model.visible_height()
            self.assertLessEqual(height, len(model))
            if not any(node.collapsed and node.descendant_count for node in model.nodes()):
                self.assertEqual(height, len(model))


if __name__ == "__main__":
    unittest.main()

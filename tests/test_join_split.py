"""Tests for AVL tree join and split."""
# pylint: skip-file

import unittest
import random
import logging

from avl_trees.avl_tree import AVLTree
from avl_trees.base import ErrorKind, VIRTUAL_KEY

from tests.avl.base import TreeTestCase

logger = logging.getLogger(__name__)


class TestJoinBase(TreeTestCase):
    """Base class for join tests"""

    def _assert_joined(self, tree, other, key, expected_keys, expected_cost):
        outcome = tree.join(key, self.value_of(key), other)
        self.assertTrue(outcome.ok, f"join({key}) failed: {outcome}")
        self.assertEqual(outcome.payload, expected_cost)
        self.assertEqual(tree.keys_to_array(), expected_keys)
        self.assertEqual(tree.search(key).payload, self.value_of(key))
        self.assertTrue(other.empty(), "joined tree must be consumed")
        self.assert_valid(other)
        self.assert_valid(tree)


class TestJoinEmptyTrees(TestJoinBase):
    def test_join_two_empty_trees(self):
        self._assert_joined(self.tree, AVLTree(), 5, [5], 1)
        self.expected_keys = [5]

    def test_join_empty_other(self):
        self.build(range(1, 8))
        rank = self.tree.rank()
        self._assert_joined(self.tree, AVLTree(), 10, list(range(1, 8)) + [10], rank + 2)
        self.expected_keys = list(range(1, 8)) + [10]

    def test_join_into_empty_self(self):
        other = self.build(range(20, 35), AVLTree())
        rank = other.rank()
        self._assert_joined(self.tree, other, 10, [10] + list(range(20, 35)), rank + 2)
        self.assertEqual(self.tree.min_node.key, 10)
        self.assertEqual(self.tree.max_node.key, 34)
        self.expected_size = 16

    def test_join_empty_other_below(self):
        self.build([50, 60, 70])
        self._assert_joined(self.tree, AVLTree(), 1, [1, 50, 60, 70], 3)
        self.assertEqual(self.tree.min().payload, self.value_of(1))
        self.expected_size = 4


class TestJoinNonEmptyTrees(TestJoinBase):
    def test_join_equal_ranks(self):
        self.build(range(1, 8))
        other = self.build(range(20, 27), AVLTree())
        self._assert_joined(self.tree, other, 10,
                            list(range(1, 8)) + [10] + list(range(20, 27)), 1)
        self.assertEqual(self.tree.get_root().key, 10)
        self.assertEqual(self.tree.rank(), 3)

    def test_join_other_above_self(self):
        self.build(range(1, 8))
        other = self.build([20, 21, 22], AVLTree())
        self._assert_joined(self.tree, other, 10,
                            list(range(1, 8)) + [10, 20, 21, 22], 2)
        self.assertEqual(self.tree.max_node.key, 22)

    def test_join_other_below_self(self):
        self.build([20, 21, 22])
        other = self.build(range(1, 8), AVLTree())
        self._assert_joined(self.tree, other, 10,
                            list(range(1, 8)) + [10, 20, 21, 22], 2)
        self.assertEqual(self.tree.min_node.key, 1)

    def test_join_tall_low_tree_with_single_node(self):
        self.build(range(1, 32))
        other = self.build([100], AVLTree())
        self._assert_joined(self.tree, other, 50,
                            list(range(1, 32)) + [50, 100], 5)
        self.assertEqual(self.tree.rank(), 5)
        self.assertEqual(self.tree.max().payload, self.value_of(100))

    def test_join_single_node_with_tall_high_tree(self):
        self.build([0])
        other = self.build(range(10, 41), AVLTree())
        self._assert_joined(self.tree, other, 5,
                            [0, 5] + list(range(10, 41)), 5)
        self.assertEqual(self.tree.min().payload, self.value_of(0))

    def test_join_sizes_along_spine(self):
        self.build(range(100, 164))
        other = self.build([1, 2], AVLTree())
        self.tree.join(50, self.value_of(50), other).unwrap()
        self.assertEqual(self.tree.size(), 67)
        self.assertEqual(len(self.tree.keys_to_array()), 67)
        self.expected_size = 67


class TestJoinPreconditions(TestJoinBase):
    def setUp(self):
        super().setUp()
        self.build([1, 2, 3, 4, 5])
        self.other = self.build([3, 6, 7, 8], AVLTree())
        self.expected_keys = [1, 2, 3, 4, 5]

    def _assert_rejected(self, key, other):
        before_self = self.tree.print_structure()
        before_other = other.print_structure()
        outcome = self.tree.join(key, "x", other)
        self.assertIs(outcome.error, ErrorKind.PRECONDITION_VIOLATION)
        self.assertEqual(self.tree.print_structure(), before_self)
        self.assertEqual(other.print_structure(), before_other)

    def test_overlapping_ranges_rejected(self):
        self._assert_rejected(10, self.other)
        self.assert_valid(self.other)

    def test_separator_inside_range_rejected(self):
        other = self.build([10, 11], AVLTree())
        self._assert_rejected(3, other)
        self._assert_rejected(10, other)
        self._assert_rejected(11, other)

    def test_separator_equal_to_bound_rejected(self):
        other = self.build([10, 11], AVLTree())
        self._assert_rejected(5, other)

    def test_separator_inside_empty_other_rejected(self):
        self._assert_rejected(3, AVLTree())

    def test_join_with_self_rejected(self):
        self._assert_rejected(10, self.tree)

    def test_join_with_non_tree_raises(self):
        with self.assertRaises(TypeError):
            self.tree.join(10, "x", [6, 7])

    def test_join_with_invalid_key_raises(self):
        with self.assertRaises(TypeError):
            self.tree.join("10", "x", AVLTree())
        with self.assertRaises(ValueError):
            self.tree.join(VIRTUAL_KEY, "x", AVLTree())


class TestSplit(TreeTestCase):
    def setUp(self):
        super().setUp()
        self.keys = list(range(1, 16))
        self.build(self.keys)

    def _split(self, key):
        outcome = self.tree.split(key)
        self.assertTrue(outcome.ok, f"split({key}) failed: {outcome}")
        small, big = outcome.payload
        self.assertTrue(self.tree.empty(), "split tree must be consumed")
        self.assert_valid(small)
        self.assert_valid(big)
        self.assertEqual(small.keys_to_array(), [k for k in self.keys if k < key])
        self.assertEqual(big.keys_to_array(), [k for k in self.keys if k > key])
        for k, v in list(small) + list(big):
            self.assertEqual(v, self.value_of(k))
        return small, big

    def test_split_at_root(self):
        root_key = self.tree.get_root().key
        small, big = self._split(root_key)
        self.assertEqual(small.size(), 7)
        self.assertEqual(big.size(), 7)

    def test_split_at_min(self):
        small, big = self._split(1)
        self.assertTrue(small.empty())
        self.assertIs(small.min().error, ErrorKind.EMPTY_TREE)
        self.assertEqual(big.min().payload, self.value_of(2))

    def test_split_at_max(self):
        small, big = self._split(15)
        self.assertTrue(big.empty())
        self.assertEqual(small.max().payload, self.value_of(14))

    def test_split_at_every_key(self):
        for key in self.keys:
            with self.subTest(key=key):
                self.tree = self.build(self.keys, AVLTree())
                self._split(key)

    def test_split_missing_key_rejected(self):
        before = self.tree.print_structure()
        outcome = self.tree.split(100)
        self.assertIs(outcome.error, ErrorKind.PRECONDITION_VIOLATION)
        self.assertIsNone(outcome.payload)
        self.assertEqual(self.tree.print_structure(), before)
        self.expected_keys = self.keys

    def test_split_virtual_key_rejected(self):
        self.assertIs(self.tree.split(VIRTUAL_KEY).error, ErrorKind.PRECONDITION_VIOLATION)
        self.expected_keys = self.keys

    def test_split_empty_tree_rejected(self):
        self.tree = AVLTree()
        self.assertIs(self.tree.split(1).error, ErrorKind.PRECONDITION_VIOLATION)

    def test_split_single_node_tree(self):
        self.tree = self.build([42], AVLTree())
        small, big = self.tree.split(42).unwrap()
        self.assertTrue(small.empty())
        self.assertTrue(big.empty())
        self.assertTrue(self.tree.empty())

    def test_split_then_join_restores_keys(self):
        for key in (1, 4, 8, 11, 15):
            with self.subTest(key=key):
                self.tree = self.build(self.keys, AVLTree())
                small, big = self._split(key)
                small.join(key, self.value_of(key), big).unwrap()
                self.assertEqual(small.keys_to_array(), self.keys)
                self.assertTrue(big.empty())
                self.assert_valid(small)

    def test_split_halves_accept_further_operations(self):
        small, big = self._split(6)
        small.insert(0, self.value_of(0)).unwrap()
        big.delete(15).unwrap()
        small.split(3).unwrap()
        self.assertTrue(small.empty())
        self.assert_valid(big)
        self.assertEqual(big.keys_to_array(), list(range(7, 15)))


class TestRandomJoinSplit(TreeTestCase):
    def test_random_joins_cost_formula(self):
        rng = random.Random(1234)
        for trial in range(40):
            with self.subTest(trial=trial):
                low_keys = sorted(rng.sample(range(0, 1000), rng.randrange(0, 60)))
                high_keys = sorted(rng.sample(range(1001, 2000), rng.randrange(0, 60)))
                low = self.build(low_keys, AVLTree())
                high = self.build(high_keys, AVLTree())
                expected = abs(low.rank() - high.rank()) + 1
                if rng.random() < 0.5:
                    tree, other = low, high
                else:
                    tree, other = high, low
                cost = tree.join(1000, self.value_of(1000), other).unwrap()
                self.assertEqual(cost, expected)
                self.assertEqual(tree.keys_to_array(), low_keys + [1000] + high_keys)
                self.assert_valid(tree)

    def test_random_splits(self):
        rng = random.Random(99)
        for trial in range(30):
            with self.subTest(trial=trial):
                keys = rng.sample(range(0, 5000), rng.randrange(1, 300))
                tree = self.build(keys, AVLTree())
                pivot = rng.choice(keys)
                small, big = tree.split(pivot).unwrap()
                self.assert_valid(small)
                self.assert_valid(big)
                self.assertEqual(small.keys_to_array(), sorted(k for k in keys if k < pivot))
                self.assertEqual(big.keys_to_array(), sorted(k for k in keys if k > pivot))
                self.assertNotIn(pivot, small)
                self.assertNotIn(pivot, big)

    def test_repeated_split_and_join(self):
        rng = random.Random(5)
        keys = rng.sample(range(10_000), 500)
        self.build(keys)
        for _ in range(50):
            pivot = rng.choice(keys)
            value = self.tree.search(pivot).payload
            small, big = self.tree.split(pivot).unwrap()
            if rng.random() < 0.5:
                small.join(pivot, value, big).unwrap()
                self.tree = small
            else:
                big.join(pivot, value, small).unwrap()
                self.tree = big
        self.expected_keys = keys


if __name__ == "__main__":
    unittest.main()

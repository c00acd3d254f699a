"""Utility functions for testing AVLTree invariants."""

import logging
from avl_trees.avl_tree import (
    AVLTree,
    Stats
)

TREE_FLAGS = (
    "is_search_tree",
    "is_balanced",
    "heights_consistent",
    "sizes_consistent",
    "parents_consistent",
    "min_max_consistent",
)

def assert_tree_invariants_tc(tc, t: AVLTree, stats: Stats) -> None:
    """TestCase version: use inside unittest.TestCase methods."""
    for flag in TREE_FLAGS:
        tc.assertTrue(
            getattr(stats, flag),
            f"Invariant failed: {flag} is False\n{t.print_structure()}"
        )

    tc.assertEqual(
        stats.node_count, t.size(),
        f"Invariant failed: node_count={stats.node_count} ≠ size()={t.size()}"
    )
    if not t.empty():
        tc.assertEqual(
            stats.height, t.rank(),
            f"Invariant failed: height={stats.height} ≠ rank()={t.rank()}"
        )
        tc.assertIsNotNone(
            t.min_node,
            "Invariant failed: min_node is None for non-empty tree"
        )
        tc.assertIsNotNone(
            t.max_node,
            "Invariant failed: max_node is None for non-empty tree"
        )
        tc.assertEqual(
            t.min().payload, t.min_node.value,
            "Invariant failed: min() does not report min_node"
        )
    else:
        tc.assertIsNone(t.get_root(), "Invariant failed: empty tree has a root")

class InvariantError(Exception):
    """Raised when an AVLTree invariant is violated."""
    pass

def assert_tree_invariants_raise(t: AVLTree, stats: Stats) -> None:
    """Check all invariants, raising on the first failure."""
    for flag in TREE_FLAGS:
        if not getattr(stats, flag):
            logging.error(f"Invariant failed: {flag} is False")
            raise InvariantError(f"{flag} is False")

    if stats.node_count != t.size():
        logging.error(f"Invariant failed: node_count={stats.node_count} ≠ size()={t.size()}")
        raise InvariantError("node_count does not match size()")

    if not t.empty() and stats.height != t.rank():
        logging.error(f"Invariant failed: height={stats.height} ≠ rank()={t.rank()}")
        raise InvariantError("height does not match rank()")

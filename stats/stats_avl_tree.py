"""Statistics for AVL trees."""
# pylint: skip-file

import logging
import math
import time
from typing import Dict, List, Optional, Tuple
from pprint import pprint
from dataclasses import asdict

import numpy as np

from avl_trees.avl_tree import (
    AVLTree,
    avl_stats_,
    Stats,
)

TREE_FLAGS = (
    "is_search_tree",
    "is_balanced",
    "heights_consistent",
    "sizes_consistent",
    "parents_consistent",
    "min_max_consistent",
)

# AVL height bound: h < 1.4405 * log2(n + 2) - 0.3277
AVL_HEIGHT_FACTOR = 1.4405
AVL_HEIGHT_OFFSET = 0.3277


def assert_invariants(t: AVLTree, stats: Stats) -> None:
    """Check all invariants, but only log ERROR messages on failures."""
    for flag in TREE_FLAGS:
        if not getattr(stats, flag):
            logging.error("Invariant failed: %s is False", flag)

    if not t.empty():
        if stats.node_count != t.size():
            logging.error(
                "Invariant failed: node_count=%d != size()=%d",
                stats.node_count, t.size()
            )
        bound = height_bound(stats.node_count)
        if stats.height > bound:
            logging.error(
                "Invariant failed: height=%d exceeds AVL bound %.2f for n=%d",
                stats.height, bound, stats.node_count
            )


def height_bound(n: int) -> float:
    """Upper bound on the height of an AVL tree with n nodes."""
    return AVL_HEIGHT_FACTOR * math.log2(n + 2) - AVL_HEIGHT_OFFSET


def create_avl_tree(items) -> Tuple[AVLTree, List[int]]:
    """
    Build a tree by inserting each (key, value) pair in order.

    Returns:
        (tree, costs): the tree and the rebalance count of every successful insert.
    """
    tree = AVLTree()
    tree_insert = tree.insert
    costs = []
    for key, value in items:
        outcome = tree_insert(key, value)
        if outcome.ok:
            costs.append(outcome.payload)
    return tree, costs


def random_avl_tree_of_size(
    n: int,
    rng: Optional[np.random.Generator] = None,
    space: int = 1 << 24,
) -> Tuple[AVLTree, List[int]]:
    """
    Create an AVL tree of n distinct random keys drawn from [0, space).

    Returns:
        (tree, costs) as returned by create_avl_tree.
    """
    if space <= n:
        raise ValueError(f"Key-space too small! Required: {n + 1}, Available: {space}")
    if rng is None:
        rng = np.random.default_rng()

    keys = rng.choice(space, size=n, replace=False)
    items = [(int(key), f"val_{int(key)}") for key in keys]
    return create_avl_tree(items)


def check_keys_and_values(
    tree: AVLTree,
    expected_keys: Optional[List[int]] = None
) -> Tuple[List[int], bool, bool, bool]:
    """
    Walk the tree once in key order.

    Returns:
        (keys, presence_ok, all_have_values, order_ok) where presence_ok tells
        whether the keys are exactly `expected_keys` (True when none are given),
        all_have_values whether no value is None, and order_ok whether the
        walk produced strictly increasing keys.
    """
    pairs = list(tree)
    keys = [key for key, _ in pairs]
    all_have_values = all(value is not None for _, value in pairs)
    order_ok = all(a < b for a, b in zip(keys, keys[1:]))
    presence_ok = (
        expected_keys is None
        or (len(keys) == len(expected_keys) and set(keys) == set(expected_keys))
    )
    return keys, presence_ok, all_have_values, order_ok


def rebalance_cost_summary(costs: List[int]) -> Dict[str, float]:
    """Mean, standard deviation, median, 99th percentile and max of rebalance counts."""
    if not costs:
        return {"count": 0, "mean": 0.0, "std": 0.0, "median": 0.0, "p99": 0.0, "max": 0.0}
    arr = np.asarray(costs, dtype=float)
    return {
        "count": int(arr.size),
        "mean": float(arr.mean()),
        "std": float(arr.std()),
        "median": float(np.median(arr)),
        "p99": float(np.percentile(arr, 99)),
        "max": float(arr.max()),
    }


def repeated_experiment(
        size: int,
        repetitions: int,
        seed: Optional[int] = None,
    ) -> Dict[str, float]:
    """
    Repeatedly builds random AVL trees with `size` keys, then deletes half of
    the keys again. Aggregates heights, rebalance counts and timings.
    """
    rng = np.random.default_rng(seed)
    t_all_0 = time.perf_counter()

    heights = []
    insert_costs: List[int] = []
    delete_costs: List[int] = []
    build_times = []

    for _ in range(repetitions):
        t0 = time.perf_counter()
        tree, costs = random_avl_tree_of_size(size, rng)
        build_times.append(time.perf_counter() - t0)
        insert_costs.extend(costs)

        stats = avl_stats_(tree)
        assert_invariants(tree, stats)
        heights.append(stats.height)

        victims = rng.permutation(tree.keys_to_array())[: size // 2]
        for key in victims:
            delete_costs.append(tree.delete(int(key)).payload)
        assert_invariants(tree, avl_stats_(tree))

    summary = {
        "size": size,
        "repetitions": repetitions,
        "height_mean": float(np.mean(heights)),
        "height_max": int(np.max(heights)),
        "height_bound": height_bound(size),
        "insert_ops_mean": rebalance_cost_summary(insert_costs)["mean"],
        "delete_ops_mean": rebalance_cost_summary(delete_costs)["mean"],
        "build_time_mean": float(np.mean(build_times)),
        "total_time": time.perf_counter() - t_all_0,
    }
    logging.info("Experiment n=%d reps=%d: %s", size, repetitions, summary)
    return summary


if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s: [%(levelname)s] %(message)s"
    )
    for n in (10, 100, 1000, 10_000):
        pprint(repeated_experiment(n, 10, seed=n))
    tree, _ = random_avl_tree_of_size(1000, np.random.default_rng(0))
    pprint(asdict(avl_stats_(tree)))

#!/usr/bin/env python3
"""
Benchmarks for the AVL tree data structure.

This script measures:
 1. Full AVLTree build times (random_avl_tree_of_size)
 2. Tree statistics of a large random tree
 3. Per-operation cost of search, insert and delete in trees of various sizes
 4. split/join round trips

Usage:
    python -m stats.benchmarks [--space S] [--sizes 100 1000 10000] [--trials T] [--seed N]
"""
import argparse
import gc
import time
from pprint import pprint
from dataclasses import asdict
from statistics import mean, variance

import numpy as np

from stats.stats_avl_tree import random_avl_tree_of_size, rebalance_cost_summary
from avl_trees.avl_tree import avl_stats_, AVLTree
from avl_trees.profiling import PerformanceTracker


def bench_build(sizes: list[int], rng: np.random.Generator) -> None:
    """Measure random_avl_tree_of_size for various sizes."""
    for n in sizes:
        t0 = time.perf_counter()
        _, costs = random_avl_tree_of_size(n, rng)
        elapsed = time.perf_counter() - t0
        summary = rebalance_cost_summary(costs)
        print(f"[bench] build({n}): {elapsed:.4f}s   "
              f"rebalance ops/insert: mean {summary['mean']:.3f}, max {summary['max']:.0f}")


def bench_tree_stats(n: int, rng: np.random.Generator) -> None:
    """Build a single random tree and print its stats."""
    tree, _ = random_avl_tree_of_size(n, rng)
    print(f"[bench] random_avl_tree_of_size({n}) stats:")
    pprint(asdict(avl_stats_(tree)))


def measure_single_ops(
    n: int, space: int, trials: int, rng: np.random.Generator
) -> dict[str, tuple[float, float]]:
    """
    Measure per-operation cost in a tree of exactly `n` keys, averaged over
    `trials` operations on the same tree. Each inserted key is deleted
    again right after, so the tree size stays n.

    Returns:
        {op: (mean_time_s, variance_time_s)} for search, insert and delete.
    """
    tree, _ = random_avl_tree_of_size(n, rng, space)
    present = tree.keys_to_array()
    probes = [int(k) for k in rng.choice(present, size=trials)]
    fresh = [int(k) for k in rng.choice(space, size=trials * 2, replace=False)
             if int(k) not in tree][:trials]

    timings = {"search": [], "insert": [], "delete": []}
    gc.collect()
    gc.disable()
    try:
        for key in probes:
            t0 = time.perf_counter()
            tree.search(key)
            timings["search"].append(time.perf_counter() - t0)
        for key in fresh:
            t0 = time.perf_counter()
            tree.insert(key, f"val_{key}")
            timings["insert"].append(time.perf_counter() - t0)
            t0 = time.perf_counter()
            tree.delete(key)
            timings["delete"].append(time.perf_counter() - t0)
    finally:
        gc.enable()

    return {op: (mean(ts), variance(ts) if len(ts) > 1 else 0.0)
            for op, ts in timings.items() if ts}


def bench_single_ops(sizes: list[int], space: int, trials: int, rng: np.random.Generator) -> None:
    """Run measure_single_ops for each size and print results."""
    for n in sizes:
        for op, (avg, var) in measure_single_ops(n, space, trials, rng).items():
            print(
                f"[bench] {op:<6} size {n:<7} → avg {avg*1e6:8.2f} µs   σ²={var*1e12:8.2f} µs²"
            )


def bench_split_join(sizes: list[int], rng: np.random.Generator) -> None:
    """Split a random tree at a random key and join the halves back."""
    for n in sizes:
        tree, _ = random_avl_tree_of_size(n, rng)
        keys = tree.keys_to_array()
        pivot = int(rng.choice(keys))
        value = tree.search(pivot).payload

        t0 = time.perf_counter()
        small, big = tree.split(pivot).unwrap()
        t_split = time.perf_counter() - t0

        t0 = time.perf_counter()
        cost = small.join(pivot, value, big).unwrap()
        t_join = time.perf_counter() - t0

        if small.keys_to_array() != keys:
            raise RuntimeError(f"split/join round trip lost keys for n={n}")
        print(f"[bench] split size {n:<7} {t_split*1e6:10.2f} µs   "
              f"join {t_join*1e6:10.2f} µs (cost {cost})")


def main():
    parser = argparse.ArgumentParser(description="AVLTree benchmarks")
    parser.add_argument("--space", type=int, default=1 << 24,
                        help="Key space for random trees")
    parser.add_argument("--sizes", nargs='+', type=int, default=[100, 1000, 10_000],
                        help="Tree sizes for single-operation benchmarks")
    parser.add_argument("--trials", type=int, default=100,
                        help="Number of operations per size")
    parser.add_argument("--seed", type=int, default=None,
                        help="Seed for the random generator")
    args = parser.parse_args()
    rng = np.random.default_rng(args.seed)

    PerformanceTracker.get_instance().enable()

    print("\n=== Full AVLTree Build ===")
    bench_build([10, 100, 1000, 10_000, 100_000], rng)

    print("\n=== Random Tree Stats ===")
    bench_tree_stats(100_000, rng)

    print("\n=== Single-Operation Benchmarks ===")
    bench_single_ops(args.sizes, args.space, args.trials, rng)

    print("\n=== Split/Join Round Trips ===")
    bench_split_join(args.sizes, rng)

    print("\n=== Method-Level Performance Breakdown ===")
    print(AVLTree.get_performance_report())
    AVLTree.reset_performance_metrics()

if __name__ == "__main__":
    main()

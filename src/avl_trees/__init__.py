"""
AVL trees - a balanced ordered map over distinct integer keys.

This package provides an AVL tree with logarithmic search, insertion and
deletion, O(1) min/max, ordered traversal, and rank-based join and split.
"""

from avl_trees.base import (
    VIRTUAL_KEY,
    ErrorKind,
    Outcome,
    AbstractOrderedMap,
)
from avl_trees.node import AVLNode, VirtualNode
from avl_trees.avl_tree import (
    AVLTree,
    Stats,
    avl_stats_,
    collect_keys,
)
from avl_trees.profiling import PerformanceTracker, track_performance

__all__ = [
    'VIRTUAL_KEY',
    'ErrorKind',
    'Outcome',
    'AbstractOrderedMap',
    'AVLNode',
    'VirtualNode',
    'AVLTree',
    'Stats',
    'avl_stats_',
    'collect_keys',
    'PerformanceTracker',
    'track_performance',
]

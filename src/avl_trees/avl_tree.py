"""AVL tree implementation"""

from __future__ import annotations
import logging
from enum import Enum
from typing import Dict, Iterator, List, Optional, Tuple
from dataclasses import dataclass, asdict

from avl_trees.base import (
    AbstractOrderedMap,
    ErrorKind,
    Outcome,
    check_key,
    check_new_key,
)
from avl_trees.node import AVLNode, VirtualNode, make_virtual_node
from avl_trees.profiling import (
    track_performance,
    PerformanceTracker
)

# Configure logging
logger = logging.getLogger(__name__)
if not logger.handlers:
    handler = logging.StreamHandler()
    formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    handler.setFormatter(formatter)
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)

# When True, every public mutation verifies all tree invariants afterwards
DEBUG = False


class RotationKind(Enum):
    """Shape of the repair performed at a node whose balance factor is +-2."""
    BALANCED_CHILD = "balanced_child"   # single rotation, heavy child has bf 0
    SINGLE = "single"                   # single rotation, heavy child leans the same way
    DOUBLE = "double"                   # heavy child leans the other way


# Promotions/demotions counted on top of the rotations themselves
_INSERT_HEIGHT_OPS: Dict[RotationKind, int] = {
    RotationKind.BALANCED_CHILD: 1,
    RotationKind.SINGLE: 1,
    RotationKind.DOUBLE: 3,
}
_DELETE_HEIGHT_OPS: Dict[RotationKind, int] = {
    RotationKind.BALANCED_CHILD: 2,
    RotationKind.SINGLE: 1,
    RotationKind.DOUBLE: 3,
}


class AVLTree(AbstractOrderedMap):
    """
    An AVL tree over distinct integer keys with string values.

    Attributes:
        root (Optional[AVLNode]): The root node, None if the tree is empty.
        min_node (Optional[AVLNode]): Cached node with the smallest key.
        max_node (Optional[AVLNode]): Cached node with the largest key.
        virtual_node (VirtualNode): This tree's "no child" marker.
    """
    __slots__ = ("root", "min_node", "max_node", "virtual_node")

    def __init__(self, node: Optional[AVLNode] = None):
        """
        Create an empty tree, or a tree wrapping the subtree rooted at `node`.
        Wrapping severs the node's parent link. O(height of node).
        """
        self.virtual_node: VirtualNode = make_virtual_node()
        self.root: Optional[AVLNode] = None
        self.min_node: Optional[AVLNode] = None
        self.max_node: Optional[AVLNode] = None
        if node is not None and node.is_real_node():
            node.parent = None
            self.root = node
            self.min_node = self.get_min(node)
            self.max_node = self.get_max(node)

    def empty(self) -> bool:
        return self.root is None

    is_empty = empty

    def size(self) -> int:
        return 0 if self.root is None else self.root.size

    def get_root(self) -> Optional[AVLNode]:
        return self.root

    def rank(self) -> int:
        """Height of the root; -1 for the empty tree."""
        return -1 if self.root is None else self.root.height

    def __len__(self) -> int:
        return self.size()

    def __contains__(self, key) -> bool:
        return self.search(key).ok

    def __iter__(self) -> Iterator[Tuple[int, Optional[str]]]:
        """Yield (key, value) pairs in key order."""
        node = self.min_node
        while node is not None:
            yield node.key, node.value
            node = self.successor(node)

    def __str__(self):
        return "Empty AVLTree" if self.empty() else f"AVLTree(root={self.root}, size={self.size()})"

    __repr__ = __str__

    # Public API
    def search(self, key: int) -> Outcome:
        """
        Look up the value stored with `key`. O(log n).

        Args:
            key (int): The key to search for.

        Returns:
            Outcome: The value, or ErrorKind.NOT_FOUND if the key is absent
                (which includes the empty tree).
        """
        check_key(key, "search")
        found = self.get_position(self.root, key)
        if found is None or found.key != key:
            return Outcome.failure(ErrorKind.NOT_FOUND)
        return Outcome.success(found.value)

    def get_position(self, node: Optional[AVLNode], key: int) -> Optional[AVLNode]:
        """
        Descend from `node` following the search order.

        Returns:
            The node holding `key` if present, otherwise the last real node
            visited (the parent `key` would be inserted under). None only
            when `node` is None.
        """
        if node is None:
            return None
        while True:
            if key == node.key:
                return node
            child = node.left if key < node.key else node.right
            if not child.is_real_node():
                return node
            node = child

    def insert(self, key: int, value: str) -> Outcome:
        """
        Insert `key` with `value`, keeping the tree balanced. O(log n).

        A promotion or a rotation counts as one rebalance operation,
        a double rotation as two.

        Args:
            key (int): The key to insert.
            value (str): The value stored with the key.

        Returns:
            Outcome: The number of rebalance operations, or
                ErrorKind.DUPLICATE_KEY (the tree is left untouched).

        Raises:
            TypeError: If key is not an int.
            ValueError: If key is the reserved virtual key.
        """
        check_new_key(key, "insert")
        if self.empty():
            self._set_single(AVLNode(key, value, self.virtual_node))
            return Outcome.success(0)

        parent = self.get_position(self.root, key)
        if parent.key == key:
            logger.debug("insert(): key %d already present", key)
            return Outcome.failure(ErrorKind.DUPLICATE_KEY)

        ops = self._attach_leaf(AVLNode(key, value, self.virtual_node), parent)
        self._debug_check("insert")
        return Outcome.success(ops)

    def delete(self, key: int) -> Outcome:
        """
        Delete the entry with `key`, keeping the tree balanced. O(log n).

        Args:
            key (int): The key to delete.

        Returns:
            Outcome: The number of rebalance operations, or
                ErrorKind.NOT_FOUND (the tree is left untouched).
        """
        check_key(key, "delete")
        node = self.get_position(self.root, key)
        if node is None or node.key != key:
            logger.debug("delete(): key %d not found", key)
            return Outcome.failure(ErrorKind.NOT_FOUND)

        if node is self.min_node:
            self.min_node = self.successor(node)
        if node is self.max_node:
            self.max_node = self.predecessor(node)

        left_real = node.left.is_real_node()
        right_real = node.right.is_real_node()

        if not left_real and not right_real:
            start = node.parent
            if start is None:
                self.root = None
            else:
                self._replace(node, self.virtual_node)
        elif not left_real or not right_real:
            start = node.parent
            self._replace(node, node.right if right_real else node.left)
        else:
            start = self._splice_successor(node)

        node.reset(self.virtual_node)
        ops = self._rebalance(start, _DELETE_HEIGHT_OPS)
        self._debug_check("delete")
        return Outcome.success(ops)

    def min(self) -> Outcome:
        """Value of the smallest key in O(1), or ErrorKind.EMPTY_TREE."""
        if self.empty():
            return Outcome.failure(ErrorKind.EMPTY_TREE)
        return Outcome.success(self.min_node.value)

    def max(self) -> Outcome:
        """Value of the largest key in O(1), or ErrorKind.EMPTY_TREE."""
        if self.empty():
            return Outcome.failure(ErrorKind.EMPTY_TREE)
        return Outcome.success(self.max_node.value)

    def keys_to_array(self) -> List[int]:
        """Sorted list of all keys (empty list for the empty tree). O(n)."""
        return [key for key, _ in self]

    def info_to_array(self) -> List[Optional[str]]:
        """All values, ordered by their keys. O(n)."""
        return [value for _, value in self]

    @track_performance
    def join(self, key: int, value: str, other: AVLTree) -> Outcome:
        """
        Join `other` and a new separator node (key, value) into this tree.

        Requires keys(other) < key < keys(self) or keys(self) < key < keys(other);
        either tree may be empty. `other` is consumed and left empty.

        Args:
            key (int): The separator key.
            value (str): The separator value.
            other (AVLTree): The tree to merge in.

        Returns:
            Outcome: The cost |rank(self) - rank(other)| + 1 where the rank of
                an empty tree is -1, or ErrorKind.PRECONDITION_VIOLATION if the
                key ranges are not separated by `key` (nothing is mutated).

        Raises:
            TypeError: If other is not an AVLTree or key is not an int.
        """
        check_new_key(key, "join")
        if not isinstance(other, AVLTree):
            raise TypeError(f"join(): expected AVLTree, got {type(other).__name__}")
        if other is self or not self._separated_by(key, other):
            logger.debug("join(): key %d does not separate the trees", key)
            return Outcome.failure(ErrorKind.PRECONDITION_VIOLATION)

        cost = self._join(AVLNode(key, value, self.virtual_node), other)
        self._debug_check("join")
        return Outcome.success(cost)

    @track_performance
    def split(self, key: int) -> Outcome:
        """
        Split the tree around `key` into (keys < key, keys > key).

        The node holding `key` is dropped and this tree is consumed (left
        empty). Ancestors of the split node are reused as join separators.

        Args:
            key (int): A key present in the tree.

        Returns:
            Outcome: A pair (small, big) of AVLTrees, or
                ErrorKind.PRECONDITION_VIOLATION if `key` is not in the tree
                (nothing is mutated).
        """
        check_key(key, "split")
        node_x = self.get_position(self.root, key)
        if node_x is None or node_x.key != key:
            logger.debug("split(): key %d not in tree", key)
            return Outcome.failure(ErrorKind.PRECONDITION_VIOLATION)

        # Record the path first; the loop below dismantles it
        path: List[Tuple[AVLNode, bool]] = []
        child = node_x
        while child.parent is not None:
            path.append((child.parent, child.parent.right is child))
            child = child.parent

        small = AVLTree(node_x.left)
        big = AVLTree(node_x.right)
        node_x.reset(self.virtual_node)

        for ancestor, from_right in path:
            if from_right:
                # ancestor and its left subtree hold keys below everything in small
                subtree = ancestor.left
                separator = ancestor.reset(small.virtual_node)
                if subtree.is_real_node():
                    small._join(separator, AVLTree(subtree))
                else:
                    small._insert_node(separator)
            else:
                subtree = ancestor.right
                separator = ancestor.reset(big.virtual_node)
                if subtree.is_real_node():
                    big._join(separator, AVLTree(subtree))
                else:
                    big._insert_node(separator)

        logger.debug("split(): key %d -> sizes (%d, %d)", key, small.size(), big.size())
        self._clear()
        small._debug_check("split")
        big._debug_check("split")
        return Outcome.success((small, big))

    # Navigation
    def get_min(self, node: AVLNode) -> AVLNode:
        """Node with the smallest key in the subtree rooted at `node`."""
        while node.left.is_real_node():
            node = node.left
        return node

    def get_max(self, node: AVLNode) -> AVLNode:
        """Node with the largest key in the subtree rooted at `node`."""
        while node.right.is_real_node():
            node = node.right
        return node

    def successor(self, node: AVLNode) -> Optional[AVLNode]:
        """In-order successor of `node`, or None if `node` holds the largest key."""
        if node.right.is_real_node():
            return self.get_min(node.right)
        parent = node.parent
        while parent is not None and parent.right is node:
            node = parent
            parent = node.parent
        return parent

    def predecessor(self, node: AVLNode) -> Optional[AVLNode]:
        """In-order predecessor of `node`, or None if `node` holds the smallest key."""
        if node.left.is_real_node():
            return self.get_max(node.left)
        parent = node.parent
        while parent is not None and parent.left is node:
            node = parent
            parent = node.parent
        return parent

    # Private Methods
    def _clear(self) -> None:
        self.root = None
        self.min_node = None
        self.max_node = None

    def _set_single(self, node: AVLNode) -> None:
        node.parent = None
        self.root = node
        self.min_node = node
        self.max_node = node

    def _separated_by(self, key: int, other: AVLTree) -> bool:
        """True if `key` lies strictly between the key ranges of self and other."""
        def below(tree):
            return tree.empty() or tree.max_node.key < key

        def above(tree):
            return tree.empty() or key < tree.min_node.key

        return (below(self) and above(other)) or (below(other) and above(self))

    def _insert_node(self, node: AVLNode) -> int:
        """Insert a detached leaf whose key is known to be absent."""
        if self.empty():
            self._set_single(node)
            return 0
        return self._attach_leaf(node, self.get_position(self.root, node.key))

    def _attach_leaf(self, node: AVLNode, parent: AVLNode) -> int:
        """Hang the leaf `node` under `parent`, update min/max, rebalance."""
        node.parent = parent
        if node.key < parent.key:
            parent.left = node
        else:
            parent.right = node

        if node.key < self.min_node.key:
            self.min_node = node
        if node.key > self.max_node.key:
            self.max_node = node
        return self._rebalance(parent, _INSERT_HEIGHT_OPS)

    def _replace(self, prev: AVLNode, updated: AVLNode) -> None:
        """
        Put `updated` into the slot `prev` occupies under its parent (or at
        the root). Children of either node are left as they are.
        """
        parent = prev.parent
        if parent is None:
            self.root = updated
        elif parent.left is prev:
            parent.left = updated
        else:
            parent.right = updated
        updated.set_parent(parent)

    def _splice_successor(self, node: AVLNode) -> AVLNode:
        """
        Replace `node`, which has two real children, by its in-order successor.

        Returns:
            The node where rebalancing has to start.
        """
        successor = self.get_min(node.right)
        successor_parent = successor.parent
        # the successor has no left child
        self._replace(successor, successor.right)

        successor.left = node.left
        node.left.set_parent(successor)
        successor.right = node.right
        node.right.set_parent(successor)
        self._replace(node, successor)
        successor.height = node.height

        if successor_parent is node:
            return successor
        return successor_parent

    def _refresh_sizes(self, node: Optional[AVLNode]) -> None:
        while node is not None:
            node.update_size()
            node = node.parent

    def _rotate_right(self, node: AVLNode) -> int:
        """
        Rotate the edge between `node` and its left child. Sizes of both
        nodes are recomputed, heights are left to the caller.

        Returns:
            1, the cost of a rotation.
        """
        left = node.left
        self._replace(node, left)
        node.left = left.right
        node.left.set_parent(node)
        left.right = node
        node.parent = left
        node.update_size()
        left.update_size()
        return 1

    def _rotate_left(self, node: AVLNode) -> int:
        """Mirror image of _rotate_right."""
        right = node.right
        self._replace(node, right)
        node.right = right.left
        node.right.set_parent(node)
        right.left = node
        node.parent = right
        node.update_size()
        right.update_size()
        return 1

    def _rotate_for_balance(self, node: AVLNode) -> Tuple[AVLNode, RotationKind, int]:
        """
        Repair a node with balance factor +-2 by a single or double rotation
        and recompute the heights of the rotated nodes.

        Returns:
            (top, kind, rotations): the new root of the repaired subtree,
            the shape of the repair and the number of rotations performed.
        """
        if node.balance_factor() == 2:
            child = node.left
            child_bf = child.balance_factor()
            if child_bf == -1:
                grandchild = child.right
                rotations = self._rotate_left(child) + self._rotate_right(node)
                child.update_height()
                node.update_height()
                grandchild.update_height()
                logger.debug("left-right rotation at %d", node.key)
                return grandchild, RotationKind.DOUBLE, rotations
            rotations = self._rotate_right(node)
        else:
            child = node.right
            child_bf = child.balance_factor()
            if child_bf == 1:
                grandchild = child.left
                rotations = self._rotate_right(child) + self._rotate_left(node)
                child.update_height()
                node.update_height()
                grandchild.update_height()
                logger.debug("right-left rotation at %d", node.key)
                return grandchild, RotationKind.DOUBLE, rotations
            rotations = self._rotate_left(node)

        node.update_height()
        child.update_height()
        kind = RotationKind.BALANCED_CHILD if child_bf == 0 else RotationKind.SINGLE
        logger.debug("single rotation at %d (%s)", node.key, kind.value)
        return child, kind, rotations

    def _rebalance(self, node: Optional[AVLNode], height_ops: Dict[RotationKind, int]) -> int:
        """
        Restore balance, heights and sizes from `node` up to the root.

        Stops climbing once a subtree keeps the height it had before the
        structural change; only sizes are refreshed above that point.

        Returns:
            The number of rebalance operations performed.
        """
        ops = 0
        while node is not None:
            old_height = node.height
            if abs(node.balance_factor()) < 2:
                node.update_size()
                new_height = node.computed_height()
                if new_height == old_height:
                    self._refresh_sizes(node.parent)
                    return ops
                # promotion on insert, demotion on delete
                node.height = new_height
                ops += 1
                node = node.parent
                continue

            top, kind, rotations = self._rotate_for_balance(node)
            ops += rotations + height_ops[kind]
            if top.height == old_height:
                self._refresh_sizes(top.parent)
                return ops
            node = top.parent
        return ops

    def _join(self, x: AVLNode, other: AVLTree) -> int:
        """
        Join `other` and the detached separator `x` into this tree.
        Key ranges must already be known to be separated by x.key.

        Returns:
            |rank(self) - rank(other)| + 1
        """
        if other.empty():
            cost = self.rank() + 2
            self._insert_node(x)
            return cost

        if self.empty():
            cost = other.rank() + 2
            self.root, self.min_node, self.max_node = other.root, other.min_node, other.max_node
            other._clear()
            self._insert_node(x)
            return cost

        cost = abs(self.rank() - other.rank()) + 1
        if x.key > self.max_node.key:
            low, high = self.root, other.root
            self.max_node = other.max_node
        else:
            low, high = other.root, self.root
            self.min_node = other.min_node
        other._clear()

        logger.debug("join(): separator %d, ranks (%d, %d)", x.key, low.height, high.height)
        self._link_separator(x, low, high)
        return cost

    def _link_separator(self, x: AVLNode, low: AVLNode, high: AVLNode) -> None:
        """
        Make `x` the parent of the root `low` (smaller keys) and of the
        subtree of `high` (larger keys) of matching rank, then rebalance.
        """
        if abs(low.height - high.height) <= 1:
            x.parent = None
            x.left, x.right = low, high
            low.parent = x
            high.parent = x
            x.update_height()
            x.update_size()
            self.root = x
            return

        if low.height < high.height:
            # descend along the left spine of the taller tree
            node = high
            while node.left.is_real_node() and node.height > low.height:
                node = node.left
            x_parent = node.parent
            x.left, x.right = low, node
            x_parent.left = x
            self.root = high
        else:
            node = low
            while node.right.is_real_node() and node.height > high.height:
                node = node.right
            x_parent = node.parent
            x.left, x.right = node, high
            x_parent.right = x
            self.root = low

        x.parent = x_parent
        x.left.parent = x
        x.right.parent = x
        x.update_height()
        x.update_size()
        self._rebalance(x_parent, _INSERT_HEIGHT_OPS)

    def _debug_check(self, op: str) -> None:
        if not DEBUG:
            return
        stats = avl_stats_(self)
        if not stats.all_invariants_hold():
            logger.error(f"Invariants violated after {op}(): {asdict(stats)}")

    # Performance reporting
    @classmethod
    def get_performance_report(cls, sort_by: str = 'total_time') -> str:
        return PerformanceTracker.get_instance().report(sort_by)

    @classmethod
    def reset_performance_metrics(cls) -> None:
        PerformanceTracker.get_instance().reset()

    def print_structure(self, indent: int = 0, max_depth: Optional[int] = None) -> str:
        """
        Render the tree sideways: the right subtree above, the left below,
        each level indented by four more spaces.
        """
        if self.empty():
            return f"{' ' * indent}Empty {self.__class__.__name__}"

        lines = []

        def _collect(node, depth):
            if not node.is_real_node():
                return
            prefix = ' ' * (indent + 4 * depth)
            if max_depth is not None and depth > max_depth:
                lines.append(f"{prefix}...")
                return
            _collect(node.right, depth + 1)
            lines.append(f"{prefix}{node.key} (h={node.height}, s={node.size})")
            _collect(node.left, depth + 1)

        _collect(self.root, 0)
        return "\n".join(lines)


@dataclass
class Stats:
    node_count: int
    height: int
    least_key: Optional[int]
    greatest_key: Optional[int]
    is_search_tree: bool
    is_balanced: bool
    heights_consistent: bool
    sizes_consistent: bool
    parents_consistent: bool
    min_max_consistent: bool

    def all_invariants_hold(self) -> bool:
        return (self.is_search_tree and self.is_balanced
                and self.heights_consistent and self.sizes_consistent
                and self.parents_consistent and self.min_max_consistent)


def _subtree_stats(node: AVLNode) -> Stats:
    if not node.is_real_node():
        return Stats(node_count         = 0,
                     height             = -1,
                     least_key          = None,
                     greatest_key       = None,
                     is_search_tree     = True,
                     is_balanced        = True,
                     heights_consistent = True,
                     sizes_consistent   = True,
                     parents_consistent = True,
                     min_max_consistent = True)

    left = _subtree_stats(node.left)
    right = _subtree_stats(node.right)
    key = node.key

    height = max(left.height, right.height) + 1
    node_count = left.node_count + right.node_count + 1

    is_search_tree = (
        left.is_search_tree and right.is_search_tree
        and (left.greatest_key is None or left.greatest_key < key)
        and (right.least_key is None or key < right.least_key)
    )
    parents_ok = (
        (not node.left.is_real_node() or node.left.parent is node)
        and (not node.right.is_real_node() or node.right.parent is node)
    )

    return Stats(
        node_count=node_count,
        height=height,
        least_key=left.least_key if left.least_key is not None else key,
        greatest_key=right.greatest_key if right.greatest_key is not None else key,
        is_search_tree=is_search_tree,
        is_balanced=(left.is_balanced and right.is_balanced
                     and abs(left.height - right.height) <= 1),
        heights_consistent=(left.heights_consistent and right.heights_consistent
                            and node.height == height),
        sizes_consistent=(left.sizes_consistent and right.sizes_consistent
                          and node.size == node_count),
        parents_consistent=(left.parents_consistent and right.parents_consistent
                            and parents_ok),
        min_max_consistent=True,
    )


def avl_stats_(t: AVLTree) -> Stats:
    """
    Returns aggregated statistics and invariant flags for an AVL tree in
    **O(n)** time. Heights and sizes are recomputed from the structure and
    compared against the cached values.
    """
    if t is None or t.empty():
        stats = _subtree_stats(t.virtual_node if t is not None else make_virtual_node())
        if t is not None:
            stats.min_max_consistent = t.min_node is None and t.max_node is None
        return stats

    stats = _subtree_stats(t.root)
    stats.parents_consistent &= t.root.parent is None
    stats.min_max_consistent = (
        t.min_node is not None and t.max_node is not None
        and t.min_node.key == stats.least_key
        and t.max_node.key == stats.greatest_key
    )
    return stats


def collect_keys(tree: AVLTree) -> List[int]:
    """Keys in order by explicit in-order descent, independent of successor()."""
    out = []
    stack = []
    node = tree.root
    while stack or (node is not None and node.is_real_node()):
        while node is not None and node.is_real_node():
            stack.append(node)
            node = node.left
        node = stack.pop()
        out.append(node.key)
        node = node.right
    return out

"""AVL node implementation"""

from __future__ import annotations
from typing import Optional

from avl_trees.base import VIRTUAL_KEY


class AVLNode:
    """
    A real node of an AVL tree.

    Attributes:
        key (int): The node's key.
        value (str): The value stored with the key.
        left (AVLNode): Left child, the tree's virtual node if absent.
        right (AVLNode): Right child, the tree's virtual node if absent.
        parent (Optional[AVLNode]): Back-reference to the parent, None at the root.
        height (int): Cached height of the subtree rooted here (0 for a leaf).
        size (int): Cached number of real nodes in the subtree rooted here.
    """
    __slots__ = ("key", "value", "left", "right", "parent", "height", "size")

    def __init__(
        self,
        key: int,
        value: Optional[str],
        virtual: "VirtualNode",
        parent: Optional[AVLNode] = None,
    ) -> None:
        self.key = key
        self.value = value
        self.parent = parent
        self.left = virtual
        self.right = virtual
        self.size = virtual.size + virtual.size + 1
        self.height = max(virtual.height, virtual.height) + 1

    def is_real_node(self) -> bool:
        return True

    def set_parent(self, node: Optional[AVLNode]) -> None:
        self.parent = node

    def is_left_child(self) -> bool:
        """True if this node hangs off its parent's left side."""
        return self.parent is not None and self.parent.left is self

    def balance_factor(self) -> int:
        return self.left.height - self.right.height

    def update_size(self) -> None:
        self.size = self.left.size + self.right.size + 1

    def computed_height(self) -> int:
        return max(self.left.height, self.right.height) + 1

    def update_height(self) -> None:
        self.height = self.computed_height()

    def reset(self, virtual: "VirtualNode") -> AVLNode:
        """Detach the node from its neighbours, leaving a single leaf."""
        self.parent = None
        self.left = virtual
        self.right = virtual
        self.height = 0
        self.size = 1
        return self

    def __repr__(self) -> str:
        return (f"{self.__class__.__name__}(key={self.key!r}, value={self.value!r}, "
                f"height={self.height}, size={self.size})")


class VirtualNode(AVLNode):
    """
    The "no child" marker of a tree.

    Has height -1 and size 0 so height/size arithmetic needs no branching.
    Immutable: set_parent() is a no-op and attribute assignment raises, so a
    virtual node reachable from several trees cannot carry state between them.
    """
    __slots__ = ()

    def __init__(self) -> None:
        object.__setattr__(self, "key", VIRTUAL_KEY)
        object.__setattr__(self, "value", None)
        object.__setattr__(self, "left", None)
        object.__setattr__(self, "right", None)
        object.__setattr__(self, "parent", None)
        object.__setattr__(self, "height", -1)
        object.__setattr__(self, "size", 0)

    def __setattr__(self, name, value):
        raise AttributeError(f"virtual node is immutable (tried to set {name!r})")

    def is_real_node(self) -> bool:
        return False

    def set_parent(self, node: Optional[AVLNode]) -> None:
        pass

    def __repr__(self) -> str:
        return "VirtualNode()"


def make_virtual_node() -> VirtualNode:
    """Create the virtual node for a new tree."""
    return VirtualNode()

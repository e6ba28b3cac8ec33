import logging
import weakref
from collections import deque
from typing import Any, Deque, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)


class TreeStateError(RuntimeError):
    """The tree's links or cached fields no longer describe a valid AVL tree."""


class EmptyTreeError(ValueError):
    pass


class AVLTree:
    """
    Height-balanced binary search tree over integer keys.

    Keys equal to a node's key are routed into its right subtree, so
    duplicates live on as separate nodes. Every node caches its height
    (a leaf has height 0, an absent subtree -1) and its balance factor,
    height(right) - height(left). Mutations walk back up through the
    parent references and rotate wherever the balance factor reaches +2
    or -2.
    """

    class Node:
        def __init__(self, key: int, parent: Optional['AVLTree.Node'] = None) -> None:
            self.key: int = key
            self.left: Optional['AVLTree.Node'] = None
            self.right: Optional['AVLTree.Node'] = None
            self.height: int = 0
            self.balance: int = 0
            self._parent: Optional['weakref.ReferenceType[AVLTree.Node]'] = None
            self.parent = parent

        @property
        def parent(self) -> Optional['AVLTree.Node']:
            if self._parent is None:
                return None
            node = self._parent()
            if node is None:
                raise TreeStateError(f"parent of node {self.key} has been released")
            return node

        @parent.setter
        def parent(self, node: Optional['AVLTree.Node']) -> None:
            self._parent = weakref.ref(node) if node is not None else None

        def is_leaf(self) -> bool:
            return self.left is None and self.right is None

        def __repr__(self) -> str:
            return f"Node(key={self.key}, height={self.height}, balance={self.balance})"

    def __init__(self, validate: bool = False) -> None:
        self._root: Optional[AVLTree.Node] = None
        self._size: int = 0
        self._validate_mutations = validate

    def _get_height(self, node: Optional[Node]) -> int:
        if node is None:
            return -1
        return node.height

    def _update_height(self, node: Node) -> None:
        left = self._get_height(node.left)
        right = self._get_height(node.right)
        node.height = 1 + max(left, right)
        node.balance = right - left

    def _replace_child(self, parent: Optional[Node], old: Node, new: Optional[Node]) -> None:
        # Puts `new` in the slot that holds `old`: a child slot of `parent`,
        # or the root when `parent` is None.
        if parent is None:
            if self._root is not old:
                raise TreeStateError(f"node {old.key} has no parent but is not the root")
            self._root = new
        elif parent.left is old:
            parent.left = new
        elif parent.right is old:
            parent.right = new
        else:
            raise TreeStateError(f"node {old.key} is not a child of node {parent.key}")
        if new is not None:
            new.parent = parent

    def _rotate_right(self, node: Node) -> Node:
        pivot = node.left
        if pivot is None:
            raise TreeStateError(f"right rotation at node {node.key} without a left child")
        logger.debug("right rotation at %d, promoting %d", node.key, pivot.key)

        node.left = pivot.right
        if pivot.right is not None:
            pivot.right.parent = node
        pivot.right = node
        node.parent = pivot

        self._update_height(node)
        self._update_height(pivot)

        return pivot

    def _rotate_left(self, node: Node) -> Node:
        pivot = node.right
        if pivot is None:
            raise TreeStateError(f"left rotation at node {node.key} without a right child")
        logger.debug("left rotation at %d, promoting %d", node.key, pivot.key)

        node.right = pivot.left
        if pivot.left is not None:
            pivot.left.parent = node
        pivot.left = node
        node.parent = pivot

        self._update_height(node)
        self._update_height(pivot)

        return pivot

    # Each fix rotates the subtree rooted at `node`, hangs the new local root
    # where `node` used to hang and returns it.

    def _fix_left_left(self, node: Node) -> Node:
        parent = node.parent
        pivot = self._rotate_right(node)
        self._replace_child(parent, node, pivot)
        return pivot

    def _fix_right_right(self, node: Node) -> Node:
        parent = node.parent
        pivot = self._rotate_left(node)
        self._replace_child(parent, node, pivot)
        return pivot

    def _fix_left_right(self, node: Node) -> Node:
        child = node.left
        assert child is not None
        self._replace_child(node, child, self._rotate_left(child))
        return self._fix_left_left(node)

    def _fix_right_left(self, node: Node) -> Node:
        child = node.right
        assert child is not None
        self._replace_child(node, child, self._rotate_right(child))
        return self._fix_right_right(node)

    def _rebalance_after_insert(self, node: Node, key: int) -> Node:
        self._update_height(node)

        if node.balance == -2:
            assert node.left is not None
            if key < node.left.key:
                return self._fix_left_left(node)
            return self._fix_left_right(node)

        if node.balance == 2:
            assert node.right is not None
            if key >= node.right.key:
                return self._fix_right_right(node)
            return self._fix_right_left(node)

        return node

    def _rebalance_after_delete(self, node: Node, min_path: bool = False) -> Node:
        self._update_height(node)

        if node.balance == -2:
            left = node.left
            assert left is not None
            # Removing the minimum only ever shortens left spines, so the
            # single rotation is the only left-heavy fix on that path.
            if min_path or self._get_height(left.left) >= self._get_height(left.right):
                return self._fix_left_left(node)
            return self._fix_left_right(node)

        if node.balance == 2:
            right = node.right
            assert right is not None
            if self._get_height(right.right) >= self._get_height(right.left):
                return self._fix_right_right(node)
            return self._fix_right_left(node)

        return node

    def _retrace_delete(
        self, node: Optional[Node], stop: Optional[Node] = None, min_path: bool = False
    ) -> None:
        while node is not None:
            parent = node.parent
            at_stop = node is stop
            self._rebalance_after_delete(node, min_path)
            if at_stop:
                return
            node = parent

    def _detach(self, node: Node) -> None:
        node.left = None
        node.right = None
        node.parent = None

    def _check(self) -> None:
        if self._validate_mutations:
            self.validate()

    def insert(self, key: int) -> None:
        if self._root is None:
            self._root = AVLTree.Node(key)
            self._size += 1
            self._check()
            return

        node = self._root
        while True:
            if key < node.key:
                if node.left is None:
                    node.left = AVLTree.Node(key, node)
                    break
                node = node.left
            else:
                if node.right is None:
                    node.right = AVLTree.Node(key, node)
                    break
                node = node.right
        self._size += 1

        current: Optional[AVLTree.Node] = node
        while current is not None:
            current = self._rebalance_after_insert(current, key).parent
        self._check()

    def _delete_min(self, subtree_root: Node) -> int:
        node = subtree_root
        while node.left is not None:
            node = node.left

        parent = node.parent
        logger.debug("removing minimum %d", node.key)
        self._replace_child(parent, node, node.right)
        self._detach(node)
        self._size -= 1

        if node is not subtree_root:
            self._retrace_delete(parent, stop=subtree_root, min_path=True)
        return node.key

    def delete_min(self) -> int:
        """Remove the smallest key and return it."""
        if self._root is None:
            raise EmptyTreeError("delete_min from empty tree")
        key = self._delete_min(self._root)
        self._check()
        return key

    def delete(self, key: int) -> bool:
        """
        Remove one node carrying `key`.

        Returns False, leaving the tree untouched, when no node carries it.
        """
        node = self._find_node(key)
        if node is None:
            return False

        if node.left is not None and node.right is not None:
            node.key = self._delete_min(node.right)
            self._retrace_delete(node)
        else:
            child = node.left if node.left is not None else node.right
            parent = node.parent
            logger.debug("splicing out %d", node.key)
            self._replace_child(parent, node, child)
            self._detach(node)
            self._size -= 1
            self._retrace_delete(parent)

        self._check()
        return True

    def _find_node(self, key: int) -> Optional[Node]:
        node = self._root
        while node is not None:
            if key == node.key:
                return node
            node = node.left if key < node.key else node.right
        return None

    def find(self, key: int) -> bool:
        return self._find_node(key) is not None

    def size(self) -> int:
        return self._size

    def empty(self) -> bool:
        return self._size == 0

    def height(self) -> int:
        return self._get_height(self._root)

    def clear(self) -> None:
        self._root = None
        self._size = 0

    def snapshot(self) -> Dict[str, Any]:
        """
        Structural dump of the tree.

        Returns a dict with the overall `height` (-1 when empty), the node
        count as `size`, the `root` key when there is one, and `nodes`: one
        entry per node in breadth-first order carrying its key, balance
        factor, height, the keys of its children and of its parent, or
        `root: True` for the root.
        """
        result: Dict[str, Any] = {"height": self.height(), "size": self._size}
        nodes: List[Dict[str, Any]] = []
        if self._root is not None:
            result["root"] = self._root.key
            queue: Deque[AVLTree.Node] = deque([self._root])
            while queue:
                node = queue.popleft()
                entry: Dict[str, Any] = {
                    "key": node.key,
                    "balance factor": node.balance,
                    "height": node.height,
                }
                if node.left is not None:
                    entry["left"] = node.left.key
                    queue.append(node.left)
                if node.right is not None:
                    entry["right"] = node.right.key
                    queue.append(node.right)
                parent = node.parent
                if parent is not None:
                    entry["parent"] = parent.key
                else:
                    entry["root"] = True
                nodes.append(entry)
        result["nodes"] = nodes
        return result

    def _validate_node(
        self, node: Optional[Node], parent: Optional[Node],
        low: Optional[int], high: Optional[int],
    ) -> Tuple[int, int]:
        if node is None:
            return -1, 0

        if node.parent is not parent:
            raise TreeStateError(f"node {node.key} has a stale parent reference")
        # A left rotation can lift a duplicate above its twin, so equal keys
        # are tolerated on the left as well.
        if (low is not None and node.key < low) or (high is not None and node.key > high):
            raise TreeStateError(f"node {node.key} is out of order")

        left_height, left_count = self._validate_node(node.left, node, low, node.key)
        right_height, right_count = self._validate_node(node.right, node, node.key, high)

        if node.height != 1 + max(left_height, right_height):
            raise TreeStateError(f"node {node.key} caches height {node.height}")
        if node.balance != right_height - left_height:
            raise TreeStateError(f"node {node.key} caches balance factor {node.balance}")
        if abs(node.balance) > 1:
            raise TreeStateError(f"node {node.key} is unbalanced ({node.balance})")

        return node.height, 1 + left_count + right_count

    def validate(self) -> None:
        """Raise TreeStateError unless every AVL invariant holds."""
        _, count = self._validate_node(self._root, None, None, None)
        if count != self._size:
            raise TreeStateError(f"size is {self._size} but {count} nodes are reachable")

    def __len__(self) -> int:
        return self._size

    def __contains__(self, key: int) -> bool:
        return self.find(key)

    def __repr__(self) -> str:
        root = self._root.key if self._root is not None else None
        return f"AVLTree(root={root}, size={self._size}, height={self.height()})"

    def __str__(self) -> str:
        return f"AVLTree(size={self._size}, height={self.height()})"

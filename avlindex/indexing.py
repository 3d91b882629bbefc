from abc import ABC, abstractmethod
from typing import Iterable, Iterator, List, Optional, Tuple

from avlindex.errors import KeyNotFoundError, PreconditionViolationError

# Returned by insert/delete when the key is already present / missing.
FAILURE = -1

KEY_MIN = -2 ** 31
KEY_MAX = 2 ** 31 - 1


class Tree(ABC):
    """Abstract base class representing an ordered tree index."""

    @abstractmethod
    def __len__(self) -> int:
        """Return the total number of keys in the tree."""
        pass

    def is_empty(self) -> bool:
        """Return True if the tree is empty."""
        return len(self) == 0

    @abstractmethod
    def __iter__(self) -> Iterator[int]:
        """Generate an iteration of the tree's keys."""
        pass

    @abstractmethod
    def get_root(self) -> Optional["AVLNode"]:
        """Return the root node of the tree (or None if tree is empty)."""
        pass


class AVLNode:
    """A real tree vertex. Absence is represented by None."""
    __slots__ = '_key', '_value', '_parent', '_left', '_right', '_height', '_size'

    def __init__(self, key: int, value: Optional[str] = None):
        self._key = key
        self._value = value
        self._parent = None
        self._left = None
        self._right = None
        self._height = 0
        self._size = 1

    def get_key(self) -> int: return self._key
    def get_value(self) -> Optional[str]: return self._value
    def get_parent(self) -> Optional["AVLNode"]: return self._parent
    def get_left(self) -> Optional["AVLNode"]: return self._left
    def get_right(self) -> Optional["AVLNode"]: return self._right
    def get_height(self) -> int: return self._height
    def get_size(self) -> int: return self._size
    def set_parent(self, parent): self._parent = parent
    def set_left(self, left): self._left = left
    def set_right(self, right): self._right = right
    def set_height(self, h: int): self._height = h
    def set_size(self, s: int): self._size = s

    def is_real_node(self) -> bool:
        return True

    def detach(self) -> None:
        """Drop every link so the node can be reused as a fresh leaf."""
        self._parent = self._left = self._right = None
        self._height, self._size = 0, 1

    def __repr__(self):
        return f"AVLNode({self._key!r}, {self._value!r})"


def height(node: Optional[AVLNode]) -> int:
    """Return the height of node (-1 for an absent child)."""
    if node is None:
        return -1
    return node.get_height()


def size(node: Optional[AVLNode]) -> int:
    """Return the subtree size of node (0 for an absent child)."""
    if node is None:
        return 0
    return node.get_size()


def balance_factor(node: Optional[AVLNode]) -> int:
    if node is None:
        return 0
    return height(node.get_left()) - height(node.get_right())


class LinkedBinaryTree(Tree):
    """Node-based binary search tree: root slot, relinking and traversal."""

    def __init__(self, root: Optional[AVLNode] = None):
        self._root = root
        if root is not None:
            root.set_parent(None)

    def __len__(self) -> int: return size(self._root)
    def size(self) -> int: return size(self._root)
    def empty(self) -> bool: return self._root is None
    def get_root(self) -> Optional[AVLNode]: return self._root

    def __iter__(self) -> Iterator[int]:
        """Generate an iteration of the tree's keys in order."""
        for node in self.inorder():
            yield node.get_key()

    @staticmethod
    def _validate_key(key) -> None:
        if isinstance(key, bool) or not isinstance(key, int):
            raise TypeError(f"key must be an int, not {type(key).__name__}")
        if not KEY_MIN <= key <= KEY_MAX:
            raise ValueError(f"key {key} outside the 32-bit range")

    @staticmethod
    def _validate_value(value) -> None:
        if not isinstance(value, str):
            raise TypeError(f"value must be a str, not {type(value).__name__}")

    @staticmethod
    def _update_stats(node: AVLNode) -> None:
        """Recompute cached height and size of node from its children."""
        left, right = node.get_left(), node.get_right()
        node.set_height(1 + max(height(left), height(right)))
        node.set_size(size(left) + size(right) + 1)

    @staticmethod
    def _relink(parent: AVLNode, child: Optional[AVLNode], make_left_child: bool) -> None:
        """Relink a parent node with its oriented child node."""
        if child is not None:
            child.set_parent(parent)
        if make_left_child:
            parent.set_left(child)
        else:
            parent.set_right(child)

    def _replace(self, old: AVLNode, new: Optional[AVLNode]) -> None:
        """Put new into the slot old occupies under its parent (or the root slot)."""
        parent = old.get_parent()
        if parent is None:
            self._root = new
            if new is not None:
                new.set_parent(None)
        else:
            self._relink(parent, new, old is parent.get_left())

    def _find_position(self, key: int) -> Tuple[Optional[AVLNode], Optional[AVLNode]]:
        """Finds the node with key, or the last node visited (potential parent)."""
        walk = self._root
        parent = None
        while walk is not None:
            if key == walk.get_key():
                return walk, parent
            parent = walk
            if key < walk.get_key():
                walk = walk.get_left()
            else:
                walk = walk.get_right()
        return None, parent

    @staticmethod
    def _subtree_first_position(node: AVLNode) -> AVLNode:
        walk = node
        while walk.get_left() is not None:
            walk = walk.get_left()
        return walk

    @staticmethod
    def _subtree_last_position(node: AVLNode) -> AVLNode:
        walk = node
        while walk.get_right() is not None:
            walk = walk.get_right()
        return walk

    @staticmethod
    def _successor(node: AVLNode) -> Optional[AVLNode]:
        if node.get_right() is not None:
            return LinkedBinaryTree._subtree_first_position(node.get_right())
        parent = node.get_parent()
        while parent is not None and node is parent.get_right():
            node, parent = parent, parent.get_parent()
        return parent

    def inorder(self) -> Iterable[AVLNode]:
        """Generate an inorder iteration of the nodes in the tree."""
        if self._root is not None:
            yield from self._subtree_inorder(self._root)

    def _subtree_inorder(self, node: AVLNode) -> Iterable[AVLNode]:
        if node.get_left() is not None:
            yield from self._subtree_inorder(node.get_left())

        yield node

        if node.get_right() is not None:
            yield from self._subtree_inorder(node.get_right())


class BalanceableBinaryTree(LinkedBinaryTree):
    """Adds rotations and the upward rebalance walk to LinkedBinaryTree."""

    def _rotate_right(self, y: AVLNode) -> AVLNode:
        x = y.get_left()
        self._replace(y, x)
        self._relink(y, x.get_right(), True)
        self._relink(x, y, False)
        # order matters: update from the bottom up
        self._update_stats(y)
        self._update_stats(x)
        return x

    def _rotate_left(self, x: AVLNode) -> AVLNode:
        y = x.get_right()
        self._replace(x, y)
        self._relink(x, y.get_left(), False)
        self._relink(y, x, True)
        self._update_stats(x)
        self._update_stats(y)
        return y

    def _rotate_left_right(self, z: AVLNode) -> AVLNode:
        self._rotate_left(z.get_left())
        return self._rotate_right(z)

    def _rotate_right_left(self, z: AVLNode) -> AVLNode:
        self._rotate_right(z.get_right())
        return self._rotate_left(z)

    def _restructure(self, z: AVLNode, bf: int) -> Tuple[AVLNode, int]:
        """Rotate at an unbalanced node; return the new subtree top and the step cost."""
        if bf > 1:
            if balance_factor(z.get_left()) >= 0:
                return self._rotate_right(z), 1
            return self._rotate_left_right(z), 2
        if balance_factor(z.get_right()) <= 0:
            return self._rotate_left(z), 1
        return self._rotate_right_left(z), 2

    def _refresh_sizes(self, node: Optional[AVLNode]) -> None:
        while node is not None:
            node.set_size(size(node.get_left()) + size(node.get_right()) + 1)
            node = node.get_parent()

    def _rebalance(self, node: Optional[AVLNode], stop_early: bool = False) -> int:
        """
        Walk from the edit point towards the root restoring the AVL invariant.

        Every changed height above the edit point counts one promotion step, a
        single rotation one step and a double rotation two. With stop_early the
        walk ends at the first node whose height did not change; sizes of the
        remaining ancestors are still refreshed.
        """
        steps = 0
        edit_point = node
        while node is not None:
            old_height = node.get_height()
            self._update_stats(node)
            bf = balance_factor(node)

            if bf > 1 or bf < -1:
                node, cost = self._restructure(node, bf)
                steps += cost
            elif node.get_height() != old_height and node is not edit_point:
                steps += 1

            if stop_early and node.get_height() == old_height:
                self._refresh_sizes(node.get_parent())
                break

            node = node.get_parent()
        return steps


class AVLTree(BalanceableBinaryTree):
    """
    AVL tree with distinct 32-bit integer keys and string values.

    Every node caches its height and subtree size, so size() is O(1) and
    rank/select are O(log n).
    """

    # ------------------ Queries ------------------
    def search(self, key: int) -> Optional[str]:
        """Return the value stored under key, or None."""
        self._validate_key(key)
        node, _ = self._find_position(key)
        if node is None:
            return None
        return node.get_value()

    def __contains__(self, key) -> bool:
        if isinstance(key, bool) or not isinstance(key, int):
            return False
        node, _ = self._find_position(key)
        return node is not None

    def min(self) -> Optional[str]:
        """Return the value of the smallest key, or None if the tree is empty."""
        if self._root is None:
            return None
        return self._subtree_first_position(self._root).get_value()

    def max(self) -> Optional[str]:
        """Return the value of the largest key, or None if the tree is empty."""
        if self._root is None:
            return None
        return self._subtree_last_position(self._root).get_value()

    def min_key(self) -> Optional[int]:
        if self._root is None:
            return None
        return self._subtree_first_position(self._root).get_key()

    def max_key(self) -> Optional[int]:
        if self._root is None:
            return None
        return self._subtree_last_position(self._root).get_key()

    def keys_to_array(self) -> List[int]:
        """Return a sorted list of every key (empty list for an empty tree)."""
        return [node.get_key() for node in self.inorder()]

    def values_to_array(self) -> List[str]:
        """Return the values ordered by their keys."""
        return [node.get_value() for node in self.inorder()]

    def items(self) -> Iterable[Tuple[int, str]]:
        for node in self.inorder():
            yield node.get_key(), node.get_value()

    def rank(self, key: int) -> int:
        """Return the number of keys strictly less than key."""
        self._validate_key(key)
        r = 0
        walk = self._root
        while walk is not None:
            if key <= walk.get_key():
                walk = walk.get_left()
            else:
                r += size(walk.get_left()) + 1
                walk = walk.get_right()
        return r

    def select(self, index: int) -> Tuple[int, str]:
        """Return (key, value) of the index-th smallest key, counting from 0."""
        if not 0 <= index < len(self):
            raise IndexError(f"select index {index} out of range")
        walk = self._root
        while True:
            left_size = size(walk.get_left())
            if index < left_size:
                walk = walk.get_left()
            elif index == left_size:
                return walk.get_key(), walk.get_value()
            else:
                index -= left_size + 1
                walk = walk.get_right()

    def sub_map(self, k1: int, k2: int) -> Iterable[Tuple[int, str]]:
        """Generate (key, value) pairs for keys k such that k1 <= k < k2."""
        walk = self._root
        current = None
        while walk is not None:
            if k1 <= walk.get_key():
                current = walk
                walk = walk.get_left()
            else:
                walk = walk.get_right()

        while current is not None and current.get_key() < k2:
            yield current.get_key(), current.get_value()
            current = self._successor(current)

    # ------------------ Mutations ------------------
    def insert(self, key: int, value: str) -> int:
        """
        Insert key with value.

        Returns the number of rebalance steps, or FAILURE if key is already
        present (the tree is left untouched).
        """
        self._validate_key(key)
        self._validate_value(value)

        if self._root is None:
            self._root = AVLNode(key, value)
            return 0

        walk, parent = self._find_position(key)
        if walk is not None:
            return FAILURE

        self._relink(parent, AVLNode(key, value), key < parent.get_key())
        return self._rebalance(parent, stop_early=True)

    def delete(self, key: int) -> int:
        """
        Delete key.

        Returns the number of rebalance steps, or FAILURE if key is missing
        (the tree is left untouched).
        """
        self._validate_key(key)
        node, _ = self._find_position(key)
        if node is None:
            return FAILURE

        left, right = node.get_left(), node.get_right()
        if left is not None and right is not None:
            # the successor takes the deleted node's place
            successor = self._subtree_first_position(right)
            if successor.get_parent() is node:
                start = successor
            else:
                start = successor.get_parent()
                self._relink(start, successor.get_right(), True)
                self._relink(successor, right, False)
            self._relink(successor, left, True)
            successor.set_height(node.get_height())
            successor.set_size(node.get_size())
            self._replace(node, successor)
        else:
            start = node.get_parent()
            self._replace(node, left if left is not None else right)

        node.detach()
        return self._rebalance(start)

    # ------------------ Split / Join ------------------
    def _take_root(self) -> Optional[AVLNode]:
        root, self._root = self._root, None
        return root

    def _join(self, left_root: Optional[AVLNode], pivot: AVLNode,
              right_root: Optional[AVLNode]) -> int:
        """Make left_root + pivot + right_root the content of this tree."""
        lh, rh = height(left_root), height(right_root)
        pivot.detach()

        if abs(lh - rh) <= 1:
            self._relink(pivot, left_root, True)
            self._relink(pivot, right_root, False)
            self._update_stats(pivot)
            self._root = pivot
            return abs(lh - rh) + 1

        if lh > rh:
            # descend the right spine of the taller left tree
            self._root = left_root
            parent, walk = None, left_root
            while height(walk) > rh + 1:
                parent, walk = walk, walk.get_right()
            self._relink(pivot, walk, True)
            self._relink(pivot, right_root, False)
            self._relink(parent, pivot, False)
        else:
            self._root = right_root
            parent, walk = None, right_root
            while height(walk) > lh + 1:
                parent, walk = walk, walk.get_left()
            self._relink(pivot, left_root, True)
            self._relink(pivot, walk, False)
            self._relink(parent, pivot, True)

        self._update_stats(pivot)
        self._rebalance(parent)
        return abs(lh - rh) + 1

    def join(self, pivot: AVLNode, other: "AVLTree") -> int:
        """
        Join other and pivot into this tree.

        All keys of other must lie on one side of pivot's key and all keys of
        this tree on the other; either tree may be empty. other is left empty.
        Returns |height(left) - height(right)| + 1.
        """
        if not isinstance(pivot, AVLNode):
            raise TypeError("pivot must be an AVLNode")
        if other is self:
            raise PreconditionViolationError("cannot join a tree with itself")
        key = pivot.get_key()
        self._validate_key(key)
        self._validate_value(pivot.get_value())

        def below(tree):
            return tree.empty() or tree.max_key() < key

        def above(tree):
            return tree.empty() or tree.min_key() > key

        if below(other) and above(self):
            left, right = other, self
        elif above(other) and below(self):
            left, right = self, other
        else:
            raise PreconditionViolationError(
                f"key ranges of the joined trees are not separated by pivot {key}")

        left_root, right_root = left._take_root(), right._take_root()
        return self._join(left_root, pivot, right_root)

    def split(self, key: int) -> Tuple["AVLTree", "AVLTree"]:
        """
        Split the tree around key into (keys < key, keys > key).

        key must be present. This tree is left empty and the pivot node is
        dropped.
        """
        self._validate_key(key)
        node, _ = self._find_position(key)
        if node is None:
            raise KeyNotFoundError(key)

        left = AVLTree(node.get_left())
        right = AVLTree(node.get_right())
        child, parent = node, node.get_parent()
        while parent is not None:
            grandparent = parent.get_parent()
            if child is parent.get_right():
                far = AVLTree(parent.get_left())
                far._join(far._take_root(), parent, left._take_root())
                left = far
            else:
                far = AVLTree(parent.get_right())
                far._join(right._take_root(), parent, far._take_root())
                right = far
            child, parent = parent, grandparent

        node.detach()
        self._root = None
        return left, right

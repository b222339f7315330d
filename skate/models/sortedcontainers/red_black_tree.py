"""
Red-Black Tree implementation for sorted key-value storage.

Keys are raw bytes compared lexicographically. Optimized for write-heavy
workloads with O(log N) inserts.
"""

from collections.abc import Iterator
from dataclasses import dataclass
from enum import IntEnum
from typing import Any

from skate.interfaces.sorted_container import SortedContainer

# Rough per-node bookkeeping cost used for memtable sizing
NODE_OVERHEAD_BYTES = 64


class Color(IntEnum):
    RED = 0
    BLACK = 1


@dataclass
class Node:
    key: bytes
    value: Any
    color: Color = Color.RED
    left: "Node | None" = None
    right: "Node | None" = None
    parent: "Node | None" = None


def _estimate_size(key: bytes, value: Any) -> int:
    size = len(key) + NODE_OVERHEAD_BYTES
    if hasattr(value, "size_bytes"):
        size += value.size_bytes()
    elif isinstance(value, (bytes, bytearray)):
        size += len(value)
    return size


class RedBlackTree(SortedContainer):
    """
    Red-Black Tree implementation of SortedContainer.

    Properties maintained:
    1. Every node is either red or black
    2. Root is always black
    3. Red nodes cannot have red children
    4. Every path from root to leaf has same number of black nodes
    """

    def __init__(self) -> None:
        self._root: Node | None = None
        self._size: int = 0
        self._size_bytes: int = 0

    def put(self, key: bytes, value: Any) -> None:
        parent = None
        current = self._root

        while current is not None:
            parent = current
            if key < current.key:
                current = current.left
            elif key > current.key:
                current = current.right
            else:
                self._size_bytes += _estimate_size(key, value) - _estimate_size(key, current.value)
                current.value = value
                return

        node = Node(key=key, value=value, parent=parent)
        if parent is None:
            self._root = node
        elif key < parent.key:
            parent.left = node
        else:
            parent.right = node

        self._size += 1
        self._size_bytes += _estimate_size(key, value)
        self._fix_insert(node)

    def get(self, key: bytes) -> Any | None:
        node = self._find_node(key)
        return node.value if node else None

    def size(self) -> int:
        return self._size

    def size_bytes(self) -> int:
        return self._size_bytes

    def iterator(self, reverse: bool = False) -> Iterator[tuple[bytes, Any]]:
        return _InOrderIterator(self._root, reverse)

    def _find_node(self, key: bytes) -> Node | None:
        current = self._root
        while current is not None:
            if key < current.key:
                current = current.left
            elif key > current.key:
                current = current.right
            else:
                return current
        return None

    def _fix_insert(self, node: Node) -> None:
        """Restore the red-black properties after inserting node."""
        while node.parent is not None and node.parent.color == Color.RED:
            parent = node.parent
            grandparent = parent.parent
            if grandparent is None:
                break

            parent_is_left = parent is grandparent.left
            uncle = grandparent.right if parent_is_left else grandparent.left

            if uncle is not None and uncle.color == Color.RED:
                # Recolor and continue from the grandparent
                parent.color = Color.BLACK
                uncle.color = Color.BLACK
                grandparent.color = Color.RED
                node = grandparent
                continue

            if parent_is_left:
                if node is parent.right:
                    node = parent
                    self._rotate_left(node)
                node.parent.color = Color.BLACK
                grandparent.color = Color.RED
                self._rotate_right(grandparent)
            else:
                if node is parent.left:
                    node = parent
                    self._rotate_right(node)
                node.parent.color = Color.BLACK
                grandparent.color = Color.RED
                self._rotate_left(grandparent)

        self._root.color = Color.BLACK

    def _rotate_left(self, node: Node) -> None:
        pivot = node.right
        if pivot is None:
            return

        node.right = pivot.left
        if pivot.left:
            pivot.left.parent = node
        self._replace_in_parent(node, pivot)
        pivot.left = node
        node.parent = pivot

    def _rotate_right(self, node: Node) -> None:
        pivot = node.left
        if pivot is None:
            return

        node.left = pivot.right
        if pivot.right:
            pivot.right.parent = node
        self._replace_in_parent(node, pivot)
        pivot.right = node
        node.parent = pivot

    def _replace_in_parent(self, node: Node, replacement: Node) -> None:
        replacement.parent = node.parent
        if node.parent is None:
            self._root = replacement
        elif node is node.parent.left:
            node.parent.left = replacement
        else:
            node.parent.right = replacement


class _InOrderIterator(Iterator[tuple[bytes, Any]]):
    """
    In-order walk using an explicit stack.

    The reverse walk mirrors the forward one by descending right-first.
    """

    def __init__(self, root: Node | None, reverse: bool) -> None:
        self._stack: list[Node] = []
        self._reverse = reverse
        self._push_path(root)

    def __iter__(self) -> Iterator[tuple[bytes, Any]]:
        return self

    def __next__(self) -> tuple[bytes, Any]:
        if not self._stack:
            raise StopIteration

        node = self._stack.pop()
        self._push_path(node.left if self._reverse else node.right)
        return (node.key, node.value)

    def _push_path(self, node: Node | None) -> None:
        while node:
            self._stack.append(node)
            node = node.right if self._reverse else node.left

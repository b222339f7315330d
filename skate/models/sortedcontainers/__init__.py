"""
Sorted container implementations for the storage engine.
"""

from skate.models.sortedcontainers.red_black_tree import RedBlackTree

__all__ = ["RedBlackTree"]

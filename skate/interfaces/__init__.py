"""
Abstract base classes and protocols for the storage engine.
"""

from skate.interfaces.range_iterable import RangeIterable
from skate.interfaces.sorted_container import SortedContainer

__all__ = ["RangeIterable", "SortedContainer"]

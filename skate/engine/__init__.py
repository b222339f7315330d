"""
Embedded LSM-tree storage engine.
"""

from skate.engine.engine import Engine
from skate.engine.transaction import Item, Transaction

__all__ = ["Engine", "Item", "Transaction"]

"""
Skate - a personal key-value store for the command line.

Values are addressed as KEY[@DB]; each database is its own directory under
the data root, backed by an embedded LSM-tree engine:
- set/get/delete run as single transactions
- list walks a database in key order, forward or reverse
- a mistyped database name gets "did you mean" suggestions
"""

from skate.address import Address, parse_address
from skate.exceptions import DatabaseNotFound, FormatError, SkateError
from skate.store import Store

__all__ = [
    "Address",
    "DatabaseNotFound",
    "FormatError",
    "SkateError",
    "Store",
    "parse_address",
]

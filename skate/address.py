"""
Parsing of KEY[@DB] addresses.
"""

import os
from typing import NamedTuple

from skate.exceptions import FormatError

_SEPARATORS = {sep for sep in ("/", os.sep, os.altsep) if sep}


class Address(NamedTuple):
    key: bytes
    db: str


def check_database_name(name: str) -> str:
    """
    Return name if it can be used as one directory under the data root.

    Raises:
        FormatError: If name is "." or "..", or contains a path separator
            or a NUL character.
    """
    if name in (".", "..") or "\0" in name or any(sep in name for sep in _SEPARATORS):
        raise FormatError(f'invalid database name "{name}"')
    return name


def parse_address(text: str) -> Address:
    """
    Split text on '@' into a lowercased key and database name.

    An empty database name means the default namespace.

    Raises:
        FormatError: If text contains more than one '@' or the database
            name is not a plain directory name.
    """
    parts = text.split("@")
    if len(parts) == 1:
        return Address(parts[0].lower().encode("utf-8"), "")
    if len(parts) == 2:
        return Address(parts[0].lower().encode("utf-8"), check_database_name(parts[1].lower()))
    raise FormatError()


def name_from_args(args: list[str]) -> str:
    """Database segment of the first argument, or "" when there is none."""
    if not args:
        return ""
    return parse_address(args[0]).db

"""
"Did you mean" suggestions for database names that do not exist.

A candidate is suggested when it is within SUGGESTION_DISTANCE edits of the
requested name, or when either name is a prefix of the other. Both names are
compared without their leading '@'.
"""

import logging
from collections.abc import Iterable
from pathlib import Path

from skate.address import parse_address
from skate.config import Settings
from skate.exceptions import DatabaseNotFound
from skate.registry import database_path, format_databases, list_databases

logger = logging.getLogger(__name__)

SUGGESTION_DISTANCE = 2


def levenshtein(a: str, b: str) -> int:
    """Minimum number of single-character inserts, deletes or substitutions turning a into b."""
    if len(a) < len(b):
        a, b = b, a
    if not b:
        return len(a)

    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        current = [i]
        for j, cb in enumerate(b, start=1):
            current.append(
                min(
                    previous[j] + 1,  # deletion
                    current[j - 1] + 1,  # insertion
                    previous[j - 1] + (ca != cb),  # substitution
                )
            )
        previous = current
    return previous[-1]


def normalize(name: str) -> str:
    return name[1:] if name.startswith("@") else name


def suggest(
    requested: str, known: Iterable[str], threshold: int = SUGGESTION_DISTANCE
) -> list[str]:
    """
    '@'-prefixed names from known that are close to requested.

    An empty request means no database was named, so every known database
    is offered. Order follows known.
    """
    candidates = [normalize(name) for name in known]
    wanted = normalize(requested)
    if not wanted:
        return format_databases(candidates)

    matches = [
        name
        for name in candidates
        if levenshtein(wanted, name) <= threshold
        or name.startswith(wanted)
        or wanted.startswith(name)
    ]
    return format_databases(matches)


def resolve(requested: str, known: Iterable[str]) -> DatabaseNotFound:
    return DatabaseNotFound(suggest(requested, known))


def find_database(name: str, settings: Settings) -> Path:
    """
    Path of the database named by name (for example "@work").

    Raises:
        FormatError: If name is not a valid address.
        DatabaseNotFound: If no database is named or it does not exist.
    """
    address = parse_address(name)
    known = list_databases(settings)
    if address.db in known:
        return database_path(address.db, settings)

    requested = address.db or address.key.decode("utf-8")
    logger.debug("Database %r not found, looking for suggestions", requested)
    raise resolve(requested, known)

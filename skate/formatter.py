"""
Printing of records for the get and list commands.
"""

import re
from collections.abc import Callable
from dataclasses import dataclass
from typing import BinaryIO

from skate.exceptions import FormatError
from skate.store import Store

REDACTED = b"(omitted binary data)"

_SIMPLE_ESCAPES = {
    "a": "\a",
    "b": "\b",
    "f": "\f",
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "v": "\v",
    "0": "\0",
    "\\": "\\",
    '"': '"',
}
_ESCAPE_PATTERN = re.compile(
    r"\\(x[0-9a-fA-F]{2}|[0-7]{3}|u[0-9a-fA-F]{4}|U[0-9a-fA-F]{8}|.?)", re.DOTALL
)


def _unescape(escape: str, delimiter: str) -> bytes:
    if escape.startswith("x") and len(escape) == 3:
        return bytes([int(escape[1:], 16)])
    if len(escape) == 3 and escape.isdigit():
        value = int(escape, 8)
        if value <= 0xFF:
            return bytes([value])
    elif len(escape) > 1:
        code = int(escape[1:], 16)
        if code <= 0x10FFFF and not 0xD800 <= code <= 0xDFFF:
            return chr(code).encode("utf-8")
    elif escape in _SIMPLE_ESCAPES:
        return _SIMPLE_ESCAPES[escape].encode("utf-8")
    raise FormatError(f"invalid escape in delimiter {delimiter!r}")


def unescape_delimiter(delimiter: str) -> bytes:
    """
    Interpret backslash escapes typed on the command line, such as \\t.

    Accepts the C-style escapes \\a \\b \\f \\n \\r \\t
    \\v \\\\ \\" and \\0, \\xHH and three-digit octal for single bytes, and
    \\uHHHH or \\UHHHHHHHH for code points (written as UTF-8).

    Raises:
        FormatError: On an unknown or incomplete escape.
    """
    out = bytearray()
    pos = 0
    for match in _ESCAPE_PATTERN.finditer(delimiter):
        out += delimiter[pos : match.start()].encode("utf-8")
        out += _unescape(match.group(1), delimiter)
        pos = match.end()
    out += delimiter[pos:].encode("utf-8")
    return bytes(out)


def is_text(data: bytes) -> bool:
    try:
        data.decode("utf-8")
    except UnicodeDecodeError:
        return False
    return True


@dataclass(frozen=True)
class IterateOptions:
    """How list walks and prints a database. Built once per command."""

    reverse: bool = False
    keys_only: bool = False
    values_only: bool = False
    delimiter: str = "\t"
    show_binary: bool = False


class Formatter:
    """
    Writes records to a binary sink.

    is_terminal reports whether the sink is a human-facing terminal. When it
    is, and show_binary is off, fields that are not valid UTF-8 are replaced
    by REDACTED. Redirected output always gets the raw bytes.
    """

    def __init__(
        self,
        options: IterateOptions,
        sink: BinaryIO,
        is_terminal: Callable[[], bool],
    ) -> None:
        self.options = options
        self._sink = sink
        self._terminal = is_terminal()
        self._delimiter = unescape_delimiter(options.delimiter)

    def _field(self, data: bytes) -> bytes:
        if self._terminal and not self.options.show_binary and not is_text(data):
            return REDACTED
        return data

    def render(self, *fields: bytes) -> bytes:
        """One line: fields joined by the delimiter, newline-terminated."""
        return self._delimiter.join(self._field(f) for f in fields) + b"\n"

    def print_value(self, value: bytes) -> None:
        """Print a single value; a trailing newline is added only for terminals."""
        self._sink.write(self._field(value))
        if self._terminal:
            self._sink.write(b"\n")
        self._sink.flush()

    async def iterate(self, store: Store) -> int:
        """
        Print every record of store as it is read.

        The store is synced first so the scan sees every committed write.

        Returns:
            Number of records printed.
        """
        opts = self.options
        store.sync()

        count = 0
        async with store.transaction(read_only=True) as txn:
            for item in txn.iterator(reverse=opts.reverse, prefetch_values=not opts.keys_only):
                if opts.keys_only:
                    line = self.render(item.key)
                elif opts.values_only:
                    line = self.render(item.value())
                else:
                    line = self.render(item.key, item.value())
                self._sink.write(line)
                count += 1
        self._sink.flush()
        return count

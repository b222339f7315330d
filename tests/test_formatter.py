"""
Tests for record printing: delimiters, ordering and binary redaction.
"""

import io

import pytest
import pytest_asyncio

from skate.exceptions import FormatError
from skate.formatter import (
    REDACTED,
    Formatter,
    IterateOptions,
    is_text,
    unescape_delimiter,
)


def _formatter(terminal=False, **options):
    sink = io.BytesIO()
    return Formatter(IterateOptions(**options), sink, lambda: terminal), sink


@pytest_asyncio.fixture
async def filled_store(store):
    async with store.transaction() as txn:
        txn.set(b"foo", b"bar")
        txn.set(b"baz", b"qux")
        txn.set(b"bin", b"\xff\xfe")
    return store


class TestHelpers:
    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("\\t", b"\t"),
            ("\\n", b"\n"),
            (",", b","),
            ("a\\\\b", b"a\\b"),
            ("\t", b"\t"),
            ("\\x41", b"A"),
            ("\\xff", b"\xff"),
            ("\\101", b"A"),
            ("\\0", b"\0"),
            ("\\u00e9", "é".encode("utf-8")),
            ("é", "é".encode("utf-8")),
        ],
    )
    def test_unescape_delimiter(self, raw, expected):
        assert unescape_delimiter(raw) == expected

    @pytest.mark.parametrize("raw", ["\\q", "a\\", "\\x4", "\\x", "\\u12", "\\777", "\\ud800"])
    def test_bad_escape_rejected(self, raw):
        with pytest.raises(FormatError) as exc_info:
            unescape_delimiter(raw)

        assert str(exc_info.value) == f"invalid escape in delimiter {raw!r}"

    def test_bad_delimiter_rejected_by_formatter(self):
        with pytest.raises(FormatError):
            _formatter(delimiter="\\q")

    def test_is_text(self):
        assert is_text(b"plain")
        assert is_text("ünïcode".encode("utf-8"))
        assert is_text(b"")
        assert not is_text(b"\xff\xfe")


class TestIterate:
    async def test_single_record(self, store):
        await store.set(b"foo", b"bar")
        formatter, sink = _formatter()

        assert await formatter.iterate(store) == 1
        assert sink.getvalue() == b"foo\tbar\n"

    async def test_empty_database(self, store):
        formatter, sink = _formatter()

        assert await formatter.iterate(store) == 0
        assert sink.getvalue() == b""

    async def test_sorted_and_reverse(self, filled_store):
        forward, forward_sink = _formatter(keys_only=True)
        backward, backward_sink = _formatter(keys_only=True, reverse=True)
        await forward.iterate(filled_store)
        await backward.iterate(filled_store)

        assert forward_sink.getvalue() == b"baz\nbin\nfoo\n"
        assert backward_sink.getvalue() == b"foo\nbin\nbaz\n"

    async def test_values_only(self, filled_store):
        formatter, sink = _formatter(values_only=True)
        await formatter.iterate(filled_store)

        assert sink.getvalue() == b"qux\n\xff\xfe\nbar\n"

    async def test_keys_only_wins_over_values_only(self, filled_store):
        formatter, sink = _formatter(keys_only=True, values_only=True)
        await formatter.iterate(filled_store)

        assert sink.getvalue() == b"baz\nbin\nfoo\n"

    async def test_custom_delimiter(self, store):
        await store.set(b"foo", b"bar")
        formatter, sink = _formatter(delimiter=",")
        await formatter.iterate(store)

        assert sink.getvalue() == b"foo,bar\n"

    async def test_escaped_delimiter(self, store):
        await store.set(b"foo", b"bar")
        formatter, sink = _formatter(delimiter="\\n")
        await formatter.iterate(store)

        assert sink.getvalue() == b"foo\nbar\n"

    async def test_binary_redacted_on_terminal(self, filled_store):
        formatter, sink = _formatter(terminal=True)
        await formatter.iterate(filled_store)

        assert sink.getvalue() == b"baz\tqux\nbin\t" + REDACTED + b"\nfoo\tbar\n"

    async def test_show_binary_on_terminal(self, filled_store):
        formatter, sink = _formatter(terminal=True, show_binary=True)
        await formatter.iterate(filled_store)

        assert b"bin\t\xff\xfe\n" in sink.getvalue()

    async def test_raw_bytes_when_redirected(self, filled_store):
        formatter, sink = _formatter(terminal=False)
        await formatter.iterate(filled_store)

        assert b"bin\t\xff\xfe\n" in sink.getvalue()
        assert REDACTED not in sink.getvalue()


class TestPrintValue:
    def test_terminal_gets_newline(self):
        formatter, sink = _formatter(terminal=True)
        formatter.print_value(b"bar")

        assert sink.getvalue() == b"bar\n"

    def test_redirected_is_verbatim(self):
        formatter, sink = _formatter(terminal=False)
        formatter.print_value(b"\xff\xfe")

        assert sink.getvalue() == b"\xff\xfe"

    def test_binary_redacted_on_terminal(self):
        formatter, sink = _formatter(terminal=True)
        formatter.print_value(b"\xff\xfe")

        assert sink.getvalue() == REDACTED + b"\n"

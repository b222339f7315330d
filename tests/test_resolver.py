"""
Tests for "did you mean" suggestions.
"""

import pytest

from skate.exceptions import DatabaseNotFound, FormatError
from skate.resolver import find_database, levenshtein, resolve, suggest

KNOWN = ["spongebob", "charm.sh.kv.user.default", "charm.sh.skate.default"]


class TestLevenshtein:
    @pytest.mark.parametrize(
        "a,b,distance",
        [
            ("", "", 0),
            ("abc", "", 3),
            ("", "abc", 3),
            ("kitten", "sitting", 3),
            ("flaw", "lawn", 2),
            ("same", "same", 0),
        ],
    )
    def test_distance(self, a, b, distance):
        assert levenshtein(a, b) == distance
        assert levenshtein(b, a) == distance


class TestSuggest:
    def test_prefix_matches_both(self):
        assert suggest("alp", ["alpha", "alphabet"]) == ["@alpha", "@alphabet"]

    def test_known_name_prefix_of_request(self):
        assert suggest("alphabets", ["alpha"]) == ["@alpha"]

    def test_small_typo(self):
        assert suggest("wrok", ["work", "personal"]) == ["@work"]

    @pytest.mark.parametrize(
        "requested,expected",
        [
            ("@spon", ["@spongebob"]),
            ("spon", ["@spongebob"]),
            ("@char", ["@charm.sh.kv.user.default", "@charm.sh.skate.default"]),
            ("endo", []),
            ("@endo", []),
        ],
    )
    def test_leading_at_is_ignored(self, requested, expected):
        assert suggest(requested, KNOWN) == expected

    def test_empty_request_offers_everything(self):
        assert suggest("", KNOWN) == [f"@{name}" for name in KNOWN]

    def test_suggestions_come_from_known(self):
        known = ["aa", "ab", "zz"]
        assert set(suggest("a", known)) <= {f"@{name}" for name in known}

    def test_nothing_known(self):
        assert suggest("work", []) == []


class TestResolve:
    def test_message_with_suggestions(self):
        error = resolve("alp", ["alpha", "alphabet"])

        assert isinstance(error, DatabaseNotFound)
        assert str(error) == 'did you mean "@alpha, @alphabet"'

    def test_message_without_suggestions(self):
        assert str(resolve("endo", KNOWN)) == "no suggestions found"


class TestFindDatabase:
    def test_existing(self, settings, make_databases):
        make_databases(*KNOWN)

        assert find_database("@spongebob", settings) == settings.data_dir / "kv" / "spongebob"

    def test_names_are_lowercased(self, settings, make_databases):
        make_databases("spongebob")

        assert find_database("@SpongeBob", settings).name == "spongebob"

    @pytest.mark.parametrize(
        "name,count",
        [("@spon", 1), ("@char", 2), ("spon", 1), ("endo", 0), ("@endo", 0), ("", 3)],
    )
    def test_missing(self, settings, make_databases, name, count):
        make_databases(*KNOWN)

        with pytest.raises(DatabaseNotFound) as exc_info:
            find_database(name, settings)

        assert len(exc_info.value.suggestions) == count

    @pytest.mark.parametrize("name", ["@.", "@.."])
    def test_path_like_names_never_resolve(self, settings, make_databases, name):
        make_databases("work")

        with pytest.raises(FormatError):
            find_database(name, settings)

    def test_stray_file_is_not_a_database(self, settings, make_databases):
        make_databases("work")
        (settings.data_dir / "kv" / "notes").write_bytes(b"")

        with pytest.raises(DatabaseNotFound):
            find_database("@notes", settings)

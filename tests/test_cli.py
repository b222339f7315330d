"""
End-to-end tests for the skate command line.
"""

import pytest
from typer.testing import CliRunner

from skate.cli import app


@pytest.fixture
def data_dir(tmp_path):
    return tmp_path / "data"


@pytest.fixture
def skate(data_dir):
    runner = CliRunner()

    def invoke(*args, input=None):
        return runner.invoke(app, list(args), input=input, env={"SKATE_DATA_DIR": str(data_dir)})

    return invoke


class TestSetGet:
    def test_set_then_list(self, skate):
        assert skate("set", "foo", "bar").exit_code == 0

        result = skate("list")
        assert result.exit_code == 0
        assert result.stdout == "foo\tbar\n"

    def test_get(self, skate):
        skate("set", "foo", "bar")

        result = skate("get", "foo")
        assert result.exit_code == 0
        assert result.stdout == "bar"

    def test_keys_are_lowercased(self, skate):
        skate("set", "Foo", "bar")

        assert skate("get", "FOO").stdout == "bar"

    def test_value_from_stdin_is_binary_safe(self, skate):
        assert skate("set", "bin", input=b"\xff\xfe\x00").exit_code == 0

        result = skate("get", "bin")
        assert result.exit_code == 0
        assert result.stdout_bytes == b"\xff\xfe\x00"

    def test_get_missing_key(self, skate):
        skate("set", "foo", "bar")

        result = skate("get", "nope")
        assert result.exit_code == 1
        assert "key not found" in result.output

    def test_named_database(self, skate):
        skate("set", "foo@work", "bar")

        assert skate("get", "foo@work").stdout == "bar"
        assert skate("get", "foo").exit_code == 1

    def test_database_outside_data_root(self, skate, data_dir):
        result = skate("set", "foo@..", "bar")

        assert result.exit_code == 1
        assert 'invalid database name ".."' in result.output
        assert not (data_dir / "LOCK").exists()

    def test_bad_format(self, skate):
        result = skate("set", "a@b@c", "v")

        assert result.exit_code == 1
        assert "bad key format, use KEY@DB" in result.output


class TestMissingDatabase:
    def test_get_suggests(self, skate):
        skate("set", "foo@work", "bar")

        result = skate("get", "foo@wrok")
        assert result.exit_code == 1
        assert '"@wrok" does not exist, did you mean "@work"' in result.output

    def test_list_without_suggestions(self, skate):
        result = skate("list", "@nothing")

        assert result.exit_code == 1
        assert '"@nothing" does not exist, no suggestions found' in result.output

    def test_delete_does_not_create(self, skate):
        assert skate("delete", "foo@ghost").exit_code == 1
        assert "@ghost" not in skate("list-dbs").stdout


class TestDelete:
    def test_delete_key(self, skate):
        skate("set", "foo", "bar")

        assert skate("delete", "foo").exit_code == 0
        assert skate("get", "foo").exit_code == 1

    def test_delete_twice(self, skate):
        skate("set", "foo", "bar")
        skate("delete", "foo")

        assert skate("delete", "foo").exit_code == 0


class TestList:
    @pytest.fixture(autouse=True)
    def records(self, skate):
        for key, value in (("b", "2"), ("a", "1"), ("c", "3")):
            skate("set", f"{key}@nums", value)

    def test_sorted(self, skate):
        assert skate("list", "@nums").stdout == "a\t1\nb\t2\nc\t3\n"

    def test_reverse_keys_only(self, skate):
        assert skate("list", "@nums", "-r", "-k").stdout == "c\nb\na\n"

    def test_values_only(self, skate):
        assert skate("list", "@nums", "--values-only").stdout == "1\n2\n3\n"

    def test_delimiter(self, skate):
        assert skate("list", "@nums", "-d", ",").stdout == "a,1\nb,2\nc,3\n"

    def test_escaped_delimiter(self, skate):
        assert skate("list", "@nums", "-d", "\\x3d").stdout == "a=1\nb=2\nc=3\n"

    def test_bad_delimiter_escape(self, skate):
        result = skate("list", "@nums", "-d", "\\q")

        assert result.exit_code == 1
        assert "invalid escape in delimiter" in result.output

    def test_list_dbs(self, skate):
        skate("set", "x", "y")

        result = skate("list-dbs")
        assert result.exit_code == 0
        assert result.stdout == "@default\n@nums\n"


class TestDeleteDb:
    def test_confirmed(self, skate, data_dir):
        skate("set", "foo@work", "bar")

        result = skate("delete-db", "@work", input="y\n")
        assert result.exit_code == 0
        assert not (data_dir / "kv" / "work").exists()

    def test_declined(self, skate, data_dir):
        skate("set", "foo@work", "bar")

        result = skate("delete-db", "@work", input="n\n")
        assert result.exit_code == 0
        assert "Did not delete" in result.output
        assert (data_dir / "kv" / "work").is_dir()

    def test_path_like_name_rejected(self, skate, data_dir):
        skate("set", "foo@work", "bar")

        result = skate("delete-db", "@.", input="y\n")
        assert result.exit_code == 1
        assert 'invalid database name "."' in result.output
        assert (data_dir / "kv" / "work").is_dir()

    def test_missing(self, skate, data_dir):
        skate("set", "foo@work", "bar")

        result = skate("delete-db", "@missing", input="y\n")
        assert result.exit_code == 1
        assert '"@missing" does not exist' in result.output
        assert (data_dir / "kv" / "work").is_dir()


def test_version(skate):
    result = skate("--version")

    assert result.exit_code == 0
    assert result.stdout.startswith("skate version ")

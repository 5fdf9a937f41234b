"""Tests for the alias table."""

from jitmod.features.resolution import AliasTable


def test_entries_are_ordered_longest_first() -> None:
    table = AliasTable.from_mapping({"@": "/a", "@app/ui": "/b", "@app": "/c"})

    assert [alias for alias, _ in table.entries] == ["@app/ui", "@app", "@"]


def test_targets_referencing_other_aliases_are_expanded() -> None:
    """A target starting with another alias is rewritten through it once at build time."""

    table = AliasTable.from_mapping({"~": "/project/src", "@app": "~/app"})

    assert table.apply("@app/main") == "/project/src/app/main"


def test_trailing_separators_are_ignored() -> None:
    table = AliasTable.from_mapping({"~/": "/project/src/"})

    assert table.apply("~/util") == "/project/src/util"
    assert table.match("~/util") == "~"


def test_unmatched_specifier_is_unchanged() -> None:
    table = AliasTable.from_mapping({"~": "/project/src"})

    assert table.apply("./local") == "./local"
    assert table.match("./local") is None


def test_empty_table_is_falsy() -> None:
    assert not AliasTable.from_mapping({})
    assert AliasTable.from_mapping({"x": "/y"})

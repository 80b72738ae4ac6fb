"""Tests for the narrowing syntax splitter."""

import pytest

from narrowscope.query.splitter import SplitQuery, initial_input, is_case_insensitive, split


class TestPerlStyle:
    """Leading punctuation character acts as the separator."""

    def test_pattern_only(self):
        query = split("#foo")

        assert query.pattern == "foo"
        assert query.filter_terms == ()
        assert query.extra_args == ()

    def test_pattern_filter_and_flags(self):
        query = split("#foo#bar -- -C")

        assert query == SplitQuery(
            raw="#foo#bar -- -C",
            pattern="foo",
            filter_terms=("bar",),
            extra_args=("-C",),
        )

    def test_any_punctuation_separator(self):
        query = split("/a b/x y")

        assert query.pattern == "a b"
        assert query.filter_terms == ("x", "y")

    def test_without_leading_punctuation_whole_text_is_pattern(self):
        assert split("foo#bar").pattern == "foo#bar"

    def test_bare_separator_yields_empty_pattern(self):
        assert split("#").pattern == ""
        assert split("").pattern == ""

    def test_trailing_separator_yields_no_filter(self):
        query = split("#foo#")

        assert query.pattern == "foo"
        assert query.filter_terms == ()


class TestPassThroughFlags:
    def test_marker_requires_leading_space(self):
        query = split("#foo-- -C")

        assert query.pattern == "foo-- -C"
        assert query.extra_args == ()

    def test_marker_at_end_of_input(self):
        query = split("#foo --")

        assert query.pattern == "foo"
        assert query.extra_args == ()

    def test_flags_are_shell_split(self):
        query = split("#foo -- -C -s 'a dir'")

        assert query.extra_args == ("-C", "-s", "a dir")

    def test_unbalanced_quote_drops_flags(self):
        query = split("#foo -- -s 'unterminated")

        assert query.pattern == "foo"
        assert query.extra_args == ()

    def test_only_first_marker_splits(self):
        query = split("#foo -- -C -- -k")

        assert query.extra_args == ("-C", "--", "-k")


@pytest.mark.parametrize(
    ("style", "raw", "pattern", "terms"),
    [
        ("semicolon", "foo;bar baz", "foo", ("bar", "baz")),
        ("space", "foo bar baz", "foo", ("bar", "baz")),
        ("none", "#foo#bar", "#foo#bar", ()),
    ],
)
def test_other_styles(style, raw, pattern, terms):
    query = split(raw, style)

    assert query.pattern == pattern
    assert query.filter_terms == terms


@pytest.mark.parametrize(
    "raw",
    ["", "#", "#foo", "#foo#bar -- -C", "a b c", "  -- ", "#x -- 'oops", "ü#ß -- -k"],
)
def test_split_is_pure(raw):
    assert split(raw) == split(raw)
    assert split(raw).raw == raw


def test_initial_input():
    assert initial_input("main") == "#main"
    assert initial_input("main", "space") == "main"
    assert split(initial_input("main")).pattern == "main"


def test_case_insensitivity_flag():
    assert is_case_insensitive(["-k", "-C"])
    assert not is_case_insensitive(["-c"])
    assert not is_case_insensitive([])

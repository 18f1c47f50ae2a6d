"""Tests for commandeer/commands/parsing.py"""

from commandeer.commands.parsing import normalize_quotes, split_args, strip_wrapping_quotes


class TestSplitArgs:
    """Test argument string tokenizing."""

    def test_splits_on_whitespace(self):
        """Test plain whitespace separated tokens."""
        assert split_args("one two  three") == ["one", "two", "three"]

    def test_quoted_run_is_one_token(self):
        """Test double and single quoted runs become single tokens without quotes."""
        assert split_args('say "hello world" \'and you\'') == ["say", "hello world", "and you"]

    def test_single_quotes_can_be_disabled(self):
        """Test single quotes are left alone when not allowed."""
        assert split_args("it's 'fine'", allow_single_quote=False) == ["it's", "'fine'"]

    def test_count_leaves_remainder(self):
        """Test a count of two extracts one token and keeps the rest as the last token."""
        assert split_args('"hello world" now', 2) == ["hello world", "now"]
        assert split_args("a b c d", 2) == ["a", "b c d"]

    def test_count_strips_quotes_from_remainder(self):
        """Test the remainder loses its wrapping quotes."""
        assert split_args('first "the rest of it"', 2) == ["first", "the rest of it"]

    def test_count_of_one_returns_whole_string(self):
        """Test a count of one keeps the entire string as a single token."""
        assert split_args("hello there", 1) == ["hello there"]

    def test_empty_string(self):
        """Test splitting an empty string."""
        assert split_args("") == []
        assert split_args("", 3) == []

    def test_fewer_tokens_than_count(self):
        """Test a string with fewer tokens than the count."""
        assert split_args("one", 3) == ["one"]

    def test_smart_quotes_are_normalized(self):
        """Test typographic quotes group tokens like ASCII quotes."""
        assert split_args("“hello world” ok") == ["hello world", "ok"]


class TestQuoteHelpers:
    """Test quote helpers."""

    def test_strip_wrapping_quotes(self):
        assert strip_wrapping_quotes('"quoted"') == "quoted"
        assert strip_wrapping_quotes("'quoted'") == "quoted"
        assert strip_wrapping_quotes("'quoted'", allow_single_quote=False) == "'quoted'"
        assert strip_wrapping_quotes('not "quoted"') == 'not "quoted"'

    def test_normalize_quotes(self):
        assert normalize_quotes("‘a’ “b”") == "'a' \"b\""

"""Tests for parser error kinds, messages and locations."""

from __future__ import annotations

import pytest

from babylon.errors import ErrorKind, ParseError
from babylon.parser import ParseOptions, parse
from babylon.stream import Location


class TestUnterminatedTree:
    def test_missing_close(self):
        with pytest.raises(ParseError) as exc_info:
            parse("[a b")
        assert exc_info.value.kind is ErrorKind.UNTERMINATED_TREE
        assert exc_info.value.location == Location("<string>", 1, 1)

    def test_missing_close_after_tag(self):
        with pytest.raises(ParseError, match="unterminated tree"):
            parse("[a")

    def test_lone_bracket(self):
        with pytest.raises(ParseError) as exc_info:
            parse("[")
        assert exc_info.value.kind is ErrorKind.UNTERMINATED_TREE

    def test_inner_tree_reported(self):
        with pytest.raises(ParseError) as exc_info:
            parse("[a [b c]\n  [d e")
        assert exc_info.value.location.line == 2
        assert exc_info.value.location.column == 3

    def test_quote_swallowing_close(self):
        with pytest.raises(ParseError) as exc_info:
            parse('[a "b]')
        assert exc_info.value.kind is ErrorKind.UNTERMINATED_TREE


class TestSyntaxErrors:
    def test_stray_close_bracket(self):
        with pytest.raises(ParseError, match="unbalanced"):
            parse("a ] b")

    def test_missing_tag_name(self):
        with pytest.raises(ParseError) as exc_info:
            parse("[]")
        assert exc_info.value.kind is ErrorKind.SYNTAX_ERROR
        assert "tag name" in exc_info.value.message

    def test_missing_directive_name(self):
        with pytest.raises(ParseError, match="directive name"):
            parse("# ")


class TestUnknownDirective:
    def test_error_by_default(self):
        with pytest.raises(ParseError) as exc_info:
            parse("#define x")
        assert exc_info.value.kind is ErrorKind.UNKNOWN_DIRECTIVE
        assert "#define" in exc_info.value.message

    def test_warn_drops_and_records(self, caplog):
        with caplog.at_level("WARNING", logger="babylon.parser"):
            doc = parse("a #pragma b", options=ParseOptions(unknown_directive="warn"))
        assert [c.text for c in doc.children] == ["a", "b"]
        assert len(doc.diagnostics) == 1
        assert "#pragma" in doc.diagnostics[0].message
        assert doc.diagnostics[0].location.column == 3
        assert "pragma" in caplog.text

    def test_invalid_policy(self):
        with pytest.raises(ValueError):
            ParseOptions(unknown_directive="ignore")


class TestLimits:
    def test_nesting_depth(self):
        with pytest.raises(ParseError) as exc_info:
            parse("[a " * 5 + "]" * 5, options=ParseOptions(max_depth=3))
        assert exc_info.value.kind is ErrorKind.LIMIT_EXCEEDED

    def test_nesting_within_limit(self):
        doc = parse("[a " * 3 + "]" * 3, options=ParseOptions(max_depth=3))
        assert len(doc.children) == 1

    def test_node_count(self):
        with pytest.raises(ParseError, match="node count limit"):
            parse("a b c d", options=ParseOptions(max_nodes=3))


class TestErrorFormat:
    def test_format_contains_location_and_source(self):
        with pytest.raises(ParseError) as exc_info:
            parse("x\n[a b", "doc.bab")
        formatted = exc_info.value.format()
        assert formatted.startswith("error: unterminated tree")
        assert "--> doc.bab:2:1" in formatted
        assert "[a b" in formatted
        assert "^" in formatted

    def test_format_without_location(self):
        from babylon.errors import ErrorKind

        err = ParseError(ErrorKind.INVALID_ARGUMENT, "no document path given")
        assert err.format() == "error: no document path given"
        assert str(err) == "error: no document path given"

    def test_format_with_later_starting_line(self):
        with pytest.raises(ParseError) as exc_info:
            parse("ok\n[a b", "doc.bab", line=10)
        err = exc_info.value
        assert err.location.line == 11
        assert err.first_line == 10
        assert "11 | [a b" in err.format()

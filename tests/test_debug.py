"""Tests for the debug tree dump."""

from __future__ import annotations

import io

from babylon.debug import dump_document, write_debug_dump
from babylon.parser import ParseOptions, parse


class TestDump:
    def test_layout(self):
        doc = parse("[a x=1 y=2 b c]", "t.bab")
        assert dump_document(doc) == (
            "Document\n"
            "  Tree 'root' @ t.bab:1:1\n"
            "    Tree 'a' @ t.bab:1:1 {x='1', y='2'}\n"
            "      Value 'b' @ t.bab:1:12\n"
            "      Value 'c' @ t.bab:1:14\n"
        )

    def test_every_node_once_in_source_order(self):
        doc = parse("one [two [three four] five] six", "t.bab")
        lines = dump_document(doc).splitlines()[2:]
        names = [line.split()[1].strip("'") for line in lines]
        assert names == ["one", "two", "three", "four", "five", "six"]

    def test_indentation_follows_depth(self):
        doc = parse("[a [b c]]", "t.bab")
        lines = dump_document(doc).splitlines()
        assert lines[3].startswith("      Tree 'b'")
        assert lines[4].startswith("        Value 'c'")

    def test_diagnostics_listed(self):
        doc = parse("#odd", "t.bab", ParseOptions(unknown_directive="warn"))
        out = dump_document(doc)
        assert "Diagnostic t.bab:1:1: unknown directive '#odd'" in out

    def test_write_to_file_object(self):
        buf = io.StringIO()
        write_debug_dump(parse("v", "t.bab"), buf)
        assert buf.getvalue().endswith("Value 'v' @ t.bab:1:1\n")

    def test_public_wrapper(self, capsys):
        import babylon

        babylon.write_debug_dump(parse("v", "t.bab"))
        assert "Value 'v'" in capsys.readouterr().out

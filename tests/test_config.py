"""Tests for TOML config file loading."""

from __future__ import annotations

import argparse
from pathlib import Path

import pytest

from babylon.cli import build_parser, load_config, main, resolve_options


class TestLoadConfig:
    def test_missing_config_returns_empty(self, tmp_path: Path) -> None:
        assert load_config(None, tmp_path) == {}

    def test_explicit_path(self, tmp_path: Path) -> None:
        cfg = tmp_path / "custom.toml"
        cfg.write_text('[parser]\nunknown_directive = "warn"\n')
        result = load_config(cfg, tmp_path)
        assert result["parser"] == {"unknown_directive": "warn"}

    def test_auto_discover_babylon_toml(self, tmp_path: Path) -> None:
        cfg = tmp_path / "babylon.toml"
        cfg.write_text("[parser]\nmax_depth = 10\n")
        result = load_config(None, tmp_path)
        assert result["parser"] == {"max_depth": 10}


class TestConfigMerge:
    def test_defaults(self, tmp_path: Path) -> None:
        doc = tmp_path / "doc.bab"
        doc.write_text("")
        opts = resolve_options(build_parser().parse_args([str(doc)]))
        assert opts.parse_options.unknown_directive == "error"
        assert opts.parse_options.max_include_depth == 16
        assert opts.max_call_depth == 64
        assert opts.macro_files == []
        assert opts.expand is True

    def test_config_parser_section(self, tmp_path: Path) -> None:
        (tmp_path / "babylon.toml").write_text(
            '[parser]\nmax_include_depth = 4\nmax_depth = 12\nmax_nodes = 99\nunknown_directive = "warn"\n'
        )
        doc = tmp_path / "doc.bab"
        doc.write_text("")
        opts = resolve_options(build_parser().parse_args([str(doc)]))
        assert opts.parse_options.max_include_depth == 4
        assert opts.parse_options.max_depth == 12
        assert opts.parse_options.max_nodes == 99
        assert opts.parse_options.unknown_directive == "warn"

    def test_cli_overrides_config(self, tmp_path: Path) -> None:
        (tmp_path / "babylon.toml").write_text(
            '[parser]\nmax_include_depth = 4\nunknown_directive = "warn"\n'
        )
        doc = tmp_path / "doc.bab"
        doc.write_text("")
        ns = build_parser().parse_args(
            [str(doc), "--unknown-directive", "error", "--max-include-depth", "9"]
        )
        opts = resolve_options(ns)
        assert opts.parse_options.unknown_directive == "error"
        assert opts.parse_options.max_include_depth == 9

    def test_config_macro_files_before_cli(self, tmp_path: Path) -> None:
        (tmp_path / "babylon.toml").write_text('[macros]\nfiles = ["base.macros"]\nmax_depth = 8\n')
        doc = tmp_path / "doc.bab"
        doc.write_text("")
        opts = resolve_options(build_parser().parse_args([str(doc), "-m", "extra.macros"]))
        assert opts.macro_files == [tmp_path / "base.macros", Path("extra.macros")]
        assert opts.max_call_depth == 8

    def test_macro_files_relative_to_explicit_config(self, tmp_path: Path) -> None:
        conf_dir = tmp_path / "conf"
        conf_dir.mkdir()
        cfg = conf_dir / "site.toml"
        cfg.write_text('[macros]\nfiles = ["site.macros"]\n')
        doc = tmp_path / "doc.bab"
        doc.write_text("")
        opts = resolve_options(build_parser().parse_args([str(doc), "--config", str(cfg)]))
        assert opts.macro_files == [conf_dir / "site.macros"]

    def test_invalid_policy_in_config(self, tmp_path: Path) -> None:
        (tmp_path / "babylon.toml").write_text('[parser]\nunknown_directive = "shrug"\n')
        doc = tmp_path / "doc.bab"
        doc.write_text("")
        with pytest.raises(argparse.ArgumentTypeError):
            resolve_options(build_parser().parse_args([str(doc)]))
        assert main([str(doc)]) == 2

    def test_config_macros_applied(self, tmp_path: Path) -> None:
        (tmp_path / "babylon.toml").write_text('[macros]\nfiles = ["defs.macros"]\n')
        (tmp_path / "defs.macros").write_text("ref\nhello\n")
        doc = tmp_path / "doc.bab"
        doc.write_text("[x ref]")
        out = tmp_path / "out.txt"
        assert main([str(doc), "-o", str(out)]) == 0
        assert "Value 'hello'" in out.read_text()

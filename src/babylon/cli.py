"""Command-line interface for Babylon."""

from __future__ import annotations

import argparse
import logging
import sys
import time
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from babylon.errors import ExpansionError, ParseError
from babylon.parser import UNKNOWN_DIRECTIVE_POLICIES, ParseOptions


@dataclass(frozen=True, slots=True)
class CliOptions:
    """Parsed CLI options."""

    input_file: Path
    output_file: Path | None
    macro_files: list[Path]
    parse_options: ParseOptions
    max_call_depth: int
    expand: bool
    watch: bool
    verbose: bool


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser (separate function for testability)."""
    p = argparse.ArgumentParser(
        prog="babylon",
        description="Parse a Babylon document, expand macros and dump the tree",
    )
    p.add_argument("input", help="Input document")
    p.add_argument("-o", "--output", help="Output file (default: stdout)")
    p.add_argument(
        "-m",
        "--macros",
        action="append",
        default=[],
        metavar="FILE",
        help="Macro definition file (repeatable, later files win)",
    )
    p.add_argument(
        "--config",
        metavar="FILE",
        help="Config file (default: auto-discover babylon.toml)",
    )
    p.add_argument(
        "--unknown-directive",
        choices=UNKNOWN_DIRECTIVE_POLICIES,
        default=None,
        help="What to do with directives other than #include (default: error)",
    )
    p.add_argument(
        "--max-include-depth",
        type=int,
        default=None,
        metavar="N",
        help="Maximum #include nesting (default: 16)",
    )
    p.add_argument("--no-expand", action="store_true", help="Skip macro expansion")
    p.add_argument("--watch", action="store_true", help="Watch for changes and re-run")
    p.add_argument("-v", "--verbose", action="store_true", help="Log debug messages to stderr")
    return p


def load_config(config_path: Path | None, input_dir: Path) -> dict[str, Any]:
    """Load a TOML config file, returning an empty dict on missing/absent file."""
    path = config_path if config_path is not None else input_dir / "babylon.toml"

    if not path.is_file():
        return {}

    with open(path, "rb") as f:
        return tomllib.load(f)


def resolve_options(args: argparse.Namespace) -> CliOptions:
    """Merge config file and CLI args into CliOptions.

    Precedence: defaults < config file < CLI flags.
    Raises argparse.ArgumentTypeError on invalid config values.
    """
    input_file = Path(args.input)
    input_dir = input_file.parent
    if not input_dir.parts:
        input_dir = Path(".")

    config_path = Path(args.config) if args.config else None
    config = load_config(config_path, input_dir)
    config_dir = config_path.parent if config_path is not None else input_dir

    # Parser limits and policy: config < CLI
    parser_cfg: dict[str, Any] = {}
    cfg_parser = config.get("parser")
    if isinstance(cfg_parser, dict):
        for key in ("max_include_depth", "max_depth", "max_nodes"):
            value = cfg_parser.get(key)
            if isinstance(value, int):
                parser_cfg[key] = value
        policy = cfg_parser.get("unknown_directive")
        if isinstance(policy, str):
            parser_cfg["unknown_directive"] = policy
    if args.unknown_directive is not None:
        parser_cfg["unknown_directive"] = args.unknown_directive
    if args.max_include_depth is not None:
        parser_cfg["max_include_depth"] = args.max_include_depth

    try:
        parse_options = ParseOptions(**parser_cfg)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from None

    # Macro files: config first, then CLI (later files override earlier names)
    macro_files: list[Path] = []
    max_call_depth = 64
    cfg_macros = config.get("macros")
    if isinstance(cfg_macros, dict):
        cfg_files = cfg_macros.get("files")
        if isinstance(cfg_files, list):
            macro_files.extend(config_dir / str(f) for f in cfg_files)
        cfg_depth = cfg_macros.get("max_depth")
        if isinstance(cfg_depth, int):
            max_call_depth = cfg_depth
    macro_files.extend(Path(m) for m in args.macros)

    output_file = Path(args.output) if args.output else None

    return CliOptions(
        input_file=input_file,
        output_file=output_file,
        macro_files=macro_files,
        parse_options=parse_options,
        max_call_depth=max_call_depth,
        expand=not args.no_expand,
        watch=args.watch,
        verbose=args.verbose,
    )


def process_file(options: CliOptions) -> str:
    """Parse the input, read macros, expand, and return the debug dump."""
    from babylon.ast import MacroTable
    from babylon.debug import dump_document
    from babylon.expand import expand
    from babylon.macros import read_macros
    from babylon.parser import parse_document

    doc = parse_document(options.input_file, options.parse_options)

    macros = MacroTable()
    for path in options.macro_files:
        macros = macros.merged(read_macros(path))

    if options.expand and macros:
        doc = expand(
            doc,
            macros,
            max_call_depth=options.max_call_depth,
            options=options.parse_options,
        )

    return dump_document(doc)


def _write_output(options: CliOptions, text: str) -> None:
    if options.output_file:
        options.output_file.write_text(text, encoding="utf-8")
    else:
        sys.stdout.write(text)
        sys.stdout.flush()


def watch_loop(options: CliOptions) -> None:
    """Poll input file for changes, re-run on each modification."""
    last_mtime = 0.0
    print(f"Watching {options.input_file} for changes...", file=sys.stderr)
    try:
        while True:
            try:
                mtime = options.input_file.stat().st_mtime
            except OSError:
                time.sleep(0.5)
                continue
            if mtime != last_mtime:
                last_mtime = mtime
                try:
                    _write_output(options, process_file(options))
                    print(f"Processed {options.input_file}", file=sys.stderr)
                except (ParseError, ExpansionError) as exc:
                    print(str(exc), file=sys.stderr)
            time.sleep(0.5)
    except KeyboardInterrupt:
        pass


def main(argv: list[str] | None = None) -> int:
    """CLI entry point. Returns exit code (0/1/2). Does not call sys.exit()."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s: %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        options = resolve_options(args)
    except argparse.ArgumentTypeError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    if options.watch:
        watch_loop(options)
        return 0

    try:
        text = process_file(options)
    except ParseError as exc:
        print(str(exc), file=sys.stderr)
        return 1
    except ExpansionError as exc:
        print(str(exc), file=sys.stderr)
        return 2

    _write_output(options, text)
    return 0

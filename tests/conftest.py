"""Shared test fixtures and helpers."""

from __future__ import annotations

from pathlib import Path

import pytest

from babylon.ast import Document, Tree, Value
from babylon.parser import ParseOptions, parse


@pytest.fixture
def parse_source():
    """Return a helper that parses source and returns a Document."""

    def _parse(source: str, filename: str = "test.bab", **options) -> Document:
        return parse(source, filename, ParseOptions(**options))

    return _parse


@pytest.fixture
def write_file(tmp_path: Path):
    """Return a helper that writes a file under tmp_path and returns its path."""

    def _write(name: str, content: str) -> Path:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path

    return _write


def texts(nodes: tuple[Tree | Value, ...]) -> list[str]:
    """Return the text of each node."""
    return [n.text for n in nodes]


def assert_tree(
    node: Tree | Value,
    tag: str,
    attributes: dict[str, str] | None = None,
    num_children: int | None = None,
) -> None:
    """Assert basic properties of a Tree node."""
    assert isinstance(node, Tree), f"Expected Tree, got {type(node).__name__}"
    assert node.text == tag, f"Expected tag '{tag}', got '{node.text}'"
    if attributes is not None:
        assert node.attributes == attributes
    if num_children is not None:
        assert len(node.children) == num_children, (
            f"Expected {num_children} children, got {len(node.children)}"
        )

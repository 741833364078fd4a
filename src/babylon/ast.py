"""Node types for parsed Babylon documents and macro tables."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from enum import Enum, auto

from babylon.stream import Location


class NodeKind(Enum):
    TREE = auto()
    VALUE = auto()


@dataclass(frozen=True, slots=True)
class Value:
    """Leaf node holding a literal token."""

    text: str
    location: Location

    @property
    def kind(self) -> NodeKind:
        return NodeKind.VALUE


@dataclass(frozen=True, slots=True)
class Tree:
    """Tagged node: tag name, attributes, ordered children."""

    text: str
    location: Location
    attributes: dict[str, str] = field(default_factory=dict)
    children: tuple[Tree | Value, ...] = ()

    @property
    def kind(self) -> NodeKind:
        return NodeKind.TREE


Node = Tree | Value


@dataclass(frozen=True, slots=True)
class Diagnostic:
    """Non-fatal message collected while parsing (e.g. dropped directives)."""

    message: str
    location: Location


@dataclass(frozen=True, slots=True)
class Document:
    """Root document: a synthetic Tree named 'root'."""

    root: Tree
    diagnostics: tuple[Diagnostic, ...] = ()

    @property
    def children(self) -> tuple[Tree | Value, ...]:
        return self.root.children

    @property
    def filename(self) -> str:
        return self.root.location.filename


@dataclass(frozen=True, slots=True)
class MacroDefinition:
    """A named macro body read from a macro-definition file."""

    name: str
    body: str
    location: Location


class MacroTable(Mapping[str, MacroDefinition]):
    """Read-only name -> MacroDefinition mapping."""

    def __init__(self, definitions: Mapping[str, MacroDefinition] | None = None) -> None:
        self._definitions: dict[str, MacroDefinition] = dict(definitions or {})

    def __getitem__(self, name: str) -> MacroDefinition:
        return self._definitions[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._definitions)

    def __len__(self) -> int:
        return len(self._definitions)

    def __repr__(self) -> str:
        return f"MacroTable({sorted(self._definitions)!r})"

    def merged(self, other: MacroTable) -> MacroTable:
        """Return a new table where *other*'s definitions override ours."""
        combined = dict(self._definitions)
        combined.update(other._definitions)
        return MacroTable(combined)

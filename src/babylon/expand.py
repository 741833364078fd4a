"""Macro expansion: substitutes macro references in a parsed Document."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from babylon.ast import Diagnostic, Document, MacroTable, Tree, Value
from babylon.errors import ErrorKind, ExpansionError, ParseError
from babylon.parser import ParseOptions, parse
from babylon.stream import Location

logger = logging.getLogger(__name__)


@dataclass
class ExpandContext:
    """State carried through one expansion."""

    macros: MacroTable
    options: ParseOptions = field(default_factory=ParseOptions)
    call_stack: list[str] = field(default_factory=list)
    max_call_depth: int = 64
    bodies: dict[str, tuple[Tree | Value, ...]] = field(default_factory=dict)
    acyclic: set[str] = field(default_factory=set)
    node_count: int = 0
    diagnostics: list[Diagnostic] = field(default_factory=list)


def expand(
    doc: Document,
    macros: MacroTable,
    *,
    max_call_depth: int = 64,
    options: ParseOptions | None = None,
) -> Document:
    """Return a new Document with every macro reference replaced.

    A Value node whose text names a macro is replaced by the nodes parsed
    from the macro body, expanded in turn. Tree tags and attributes are
    never rewritten. Neither *doc* nor *macros* is modified.

    The expanded tree is held to the same ``max_depth`` and ``max_nodes``
    budgets as a parsed document; exceeding either raises LIMIT_EXCEEDED.
    """
    ctx = ExpandContext(
        macros=macros,
        options=options or ParseOptions(),
        max_call_depth=max_call_depth,
    )
    try:
        root = _expand_tree(doc.root, ctx, 0)
    except MemoryError:
        raise ExpansionError(ErrorKind.OUT_OF_MEMORY, "out of memory during expansion") from None
    except RecursionError:
        raise ExpansionError(
            ErrorKind.LIMIT_EXCEEDED,
            "expanded tree nested too deeply",
            doc.root.location,
        ) from None
    return Document(root, doc.diagnostics + tuple(ctx.diagnostics))


# ---------------------------------------------------------------------------
# Tree walk
# ---------------------------------------------------------------------------


def _expand_tree(node: Tree, ctx: ExpandContext, depth: int) -> Tree:
    """Copy *node* at nesting *depth* (0 for the root) with its children expanded."""
    if depth > ctx.options.max_depth:
        raise ExpansionError(
            ErrorKind.LIMIT_EXCEEDED,
            f"tree nesting depth limit ({ctx.options.max_depth}) exceeded during expansion",
            node.location,
            chain=list(ctx.call_stack),
        )
    if depth:
        _count_node(node.location, ctx)
    children = _expand_children(node.children, ctx, depth)
    return Tree(node.text, node.location, dict(node.attributes), tuple(children))


def _expand_children(
    children: tuple[Tree | Value, ...],
    ctx: ExpandContext,
    depth: int,
) -> list[Tree | Value]:
    result: list[Tree | Value] = []
    for child in children:
        if isinstance(child, Tree):
            result.append(_expand_tree(child, ctx, depth + 1))
        elif child.text in ctx.macros:
            result.extend(_expand_macro(child, ctx, depth))
        else:
            _count_node(child.location, ctx)
            result.append(Value(child.text, child.location))
    return result


def _expand_macro(node: Value, ctx: ExpandContext, depth: int) -> list[Tree | Value]:
    name = node.text

    if len(ctx.call_stack) >= ctx.max_call_depth:
        raise ExpansionError(
            ErrorKind.LIMIT_EXCEEDED,
            f"macro expansion depth limit ({ctx.max_call_depth}) exceeded",
            node.location,
            chain=list(ctx.call_stack),
        )

    _check_cycle(name, node.location, ctx)

    logger.debug("%s: expanding macro '%s'", node.location, name)
    ctx.call_stack.append(name)
    try:
        return _expand_children(_body_nodes(name, ctx), ctx, depth)
    finally:
        ctx.call_stack.pop()


def _count_node(location: Location, ctx: ExpandContext) -> None:
    ctx.node_count += 1
    if ctx.node_count > ctx.options.max_nodes:
        raise ExpansionError(
            ErrorKind.LIMIT_EXCEEDED,
            f"node count limit ({ctx.options.max_nodes}) exceeded during expansion",
            location,
            chain=list(ctx.call_stack),
        )


# ---------------------------------------------------------------------------
# Macro bodies and the reference graph
# ---------------------------------------------------------------------------


def _body_nodes(name: str, ctx: ExpandContext) -> tuple[Tree | Value, ...]:
    """Parse a macro body with the document grammar (cached per name)."""
    if name in ctx.bodies:
        return ctx.bodies[name]

    defn = ctx.macros[name]
    try:
        parsed = parse(
            defn.body,
            defn.location.filename,
            ctx.options,
            line=defn.location.line + 1,
        )
    except ParseError as exc:
        raise ExpansionError(
            exc.kind,
            f"in macro '{name}': {exc.message}",
            exc.location,
            exc.source,
            chain=[*ctx.call_stack, name],
            first_line=exc.first_line,
        ) from exc

    ctx.diagnostics.extend(parsed.diagnostics)
    ctx.bodies[name] = parsed.children
    return parsed.children


def _references(name: str, ctx: ExpandContext) -> list[str]:
    """Macro names mentioned in a body, as Value text or as a Tree tag."""
    found: list[str] = []
    pending = list(_body_nodes(name, ctx))
    while pending:
        node = pending.pop()
        if node.text in ctx.macros and node.text not in found:
            found.append(node.text)
        if isinstance(node, Tree):
            pending.extend(node.children)
    return found


def _check_cycle(name: str, location: Location, ctx: ExpandContext) -> None:
    """Raise MACRO_CYCLE if *name* can reach itself through its references."""
    if name in ctx.acyclic:
        return

    path: list[str] = []

    def visit(current: str) -> None:
        if current in path:
            chain = path[path.index(current) :] + [current]
            raise ExpansionError(
                ErrorKind.MACRO_CYCLE,
                f"macro '{current}' references itself",
                location,
                chain=chain,
            )
        if current in ctx.acyclic:
            return
        if len(path) >= ctx.max_call_depth:
            raise ExpansionError(
                ErrorKind.LIMIT_EXCEEDED,
                f"macro expansion depth limit ({ctx.max_call_depth}) exceeded",
                location,
                chain=list(path),
            )
        path.append(current)
        for ref in _references(current, ctx):
            visit(ref)
        path.pop()
        ctx.acyclic.add(current)

    visit(name)

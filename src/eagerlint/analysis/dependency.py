"""Does an expression depend on a given variable?

Pure functions over a subtree.  Closures are judged by what their body
uses, never by what their ``use (...)`` clause captures, and a closure
parameter with the same name shadows the outer variable.
"""

from __future__ import annotations

from typing import Iterable, Iterator

from eagerlint.tree.nodes import Node, NodeKind


def parameter_names(node: Node) -> set[str]:
    return {p.name for p in node.many("params") if p.name}


def _referenced(node: Node | None) -> Iterator[str]:
    """Lazily yield every variable name *node* structurally references."""
    if node is None:
        return
    kind = node.kind

    if kind is NodeKind.VARIABLE:
        if node.name:
            yield node.name
        return

    if kind is NodeKind.PROPERTY_FETCH:
        yield from _referenced(node.get("receiver"))
        return

    if kind is NodeKind.METHOD_CALL:
        yield from _referenced(node.get("receiver"))
        for arg in node.many("args"):
            yield from _referenced(arg)
        return

    if kind is NodeKind.CLOSURE:
        shadowed = parameter_names(node)
        for stmt in node.many("body"):
            for name in _referenced(stmt):
                if name not in shadowed:
                    yield name
        return

    if kind is NodeKind.ARROW_FUNCTION:
        shadowed = parameter_names(node)
        for name in _referenced(node.get("body")):
            if name not in shadowed:
                yield name
        return

    # static calls, index access, ternaries, binaries, array literals
    # (keys included) and every other kind: all children
    for child in node.children:
        yield from _referenced(child)


def chain_references_variable(node: Node | None, name: str) -> bool:
    return any(ref == name for ref in _referenced(node))


def references_any(node: Node | None, names: Iterable[str]) -> str | None:
    """First referenced name found in *names*, or ``None``."""
    wanted = set(names)
    if not wanted:
        return None
    for ref in _referenced(node):
        if ref in wanted:
            return ref
    return None


def referenced_variables(node: Node | None) -> set[str]:
    return set(_referenced(node))


def assigned_variables(node: Node | None) -> set[str]:
    """Targets written by an assignment, including ``[$a, $b] = ...``."""
    if node is None:
        return set()
    if node.kind is NodeKind.ASSIGN:
        return destructured_variables(node.get("target"))
    return set()


def destructured_variables(target: Node | None) -> set[str]:
    """Variables bound by an assignment or foreach target."""
    if target is None:
        return set()
    if target.kind is NodeKind.VARIABLE:
        return {target.name} if target.name else set()
    if target.kind is NodeKind.ARRAY:
        out: set[str] = set()
        for item in target.many("items"):
            out |= destructured_variables(item.get("value") if item.kind is NodeKind.ARRAY_ITEM else item)
        return out
    return set()

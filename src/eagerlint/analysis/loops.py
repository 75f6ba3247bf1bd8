"""Loop-kind specific extraction of bound variables.

Also seeds the provenance of a ``foreach`` value variable from whatever
is being iterated.
"""

from __future__ import annotations

from eagerlint.analysis.chains import member_path, relationship_arguments, unwind_calls, variable_name
from eagerlint.analysis.dependency import assigned_variables, destructured_variables, referenced_variables
from eagerlint.analysis.issues import LoopKind
from eagerlint.tree.nodes import Node, NodeKind

LOOP_KIND_FOR_NODE = {
    NodeKind.FOREACH: LoopKind.FOREACH,
    NodeKind.FOR: LoopKind.FOR,
    NodeKind.WHILE: LoopKind.WHILE,
    NodeKind.DO_WHILE: LoopKind.DO_WHILE,
}


def bound_variables(node: Node) -> tuple[frozenset[str], str | None]:
    """Return ``(bound variables, foreach key variable)`` for a loop node."""
    kind = node.kind
    if kind is NodeKind.FOREACH:
        bound = destructured_variables(node.get("value"))
        return frozenset(bound), variable_name(node.get("key"))
    if kind is NodeKind.FOR:
        bound: set[str] = set()
        for expr in node.many("init"):
            bound |= assigned_variables(expr)
        return frozenset(bound), None
    if kind in (NodeKind.WHILE, NodeKind.DO_WHILE):
        return frozenset(referenced_variables(node.get("condition"))), None
    return frozenset(), None


def directive_relationships(calls: list[Node], methods) -> list[str]:
    """Relationship names declared by any pre-load call in *calls*."""
    names: list[str] = []
    for call in calls:
        if call.name in methods:
            names.extend(relationship_arguments(call))
    return names


def carried_provenance(iterable: Node | None, provenance, settings) -> frozenset[str] | None:
    """Relationship paths known to be loaded on the value of *iterable*.

    Loaded relations on a collection hold for each of its elements too, so
    the same answer serves assignments and ``foreach`` sources.

    ``None`` means nothing is known and the element starts clean.
    """
    if iterable is None:
        return None

    source = variable_name(iterable)
    if source is not None:
        return provenance.query(source) if source in provenance else None

    if iterable.kind in (NodeKind.METHOD_CALL, NodeKind.STATIC_CALL):
        root, calls = unwind_calls(iterable)
        known = set(directive_relationships(calls, settings.eager_load_methods))
        root_var = variable_name(root)
        if root_var is not None:
            known |= provenance.query(root_var)
        return frozenset(known) if known else None

    if iterable.kind is NodeKind.PROPERTY_FETCH:
        # $user->posts with "posts.comments" loaded -> each post has "comments"
        root, segments = member_path(iterable)
        root_var = variable_name(root)
        if root_var is None or any(is_method or not name for name, is_method in segments):
            return None
        prefix = ".".join(name for name, _ in segments) + "."
        nested = {p[len(prefix):] for p in provenance.query(root_var) if p.startswith(prefix)}
        return frozenset(nested) if nested else None

    return None

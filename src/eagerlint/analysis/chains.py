"""Helpers for reading fluent call chains and member paths."""

from __future__ import annotations

from eagerlint.tree.nodes import Node, NodeKind


def unwind_calls(node: Node) -> tuple[Node, list[Node]]:
    """Split a fluent chain into its root expression and its calls.

    Instance calls are followed through their receivers.  A static call
    terminates the walk and is both the root and the first call, so
    ``User::where()->first()`` yields ``(User::where(), [where, first])``.
    Calls come back in source order (innermost first).
    """
    calls: list[Node] = []
    current = node
    while current is not None and current.kind is NodeKind.METHOD_CALL:
        calls.append(current)
        current = current.get("receiver")
    if current is not None and current.kind is NodeKind.STATIC_CALL:
        calls.append(current)
    calls.reverse()
    return current, calls


def member_path(node: Node) -> tuple[Node | None, list[tuple[str | None, bool]]]:
    """Return ``(root, segments)`` for a property/method access chain.

    Each segment is ``(name, is_method)`` ordered from the root outwards.
    Dynamic member names (``$post->$field``) come back as ``None``.
    """
    segments: list[tuple[str | None, bool]] = []
    current = node
    while current is not None and current.kind in (NodeKind.PROPERTY_FETCH, NodeKind.METHOD_CALL):
        segments.append((current.name, current.kind is NodeKind.METHOD_CALL))
        current = current.get("receiver")
    segments.reverse()
    return current, segments


def variable_name(node: Node | None) -> str | None:
    if node is not None and node.kind is NodeKind.VARIABLE:
        return node.name
    return None


def string_value(node: Node | None) -> str | None:
    """Literal string payload, unwrapping an ARGUMENT if needed."""
    if node is not None and node.kind is NodeKind.ARGUMENT:
        node = node.get("value")
    if node is not None and node.kind is NodeKind.LITERAL and node.name == "string":
        return node.text
    return None


def argument_values(call: Node) -> list[Node]:
    out = []
    for arg in call.many("args"):
        value = arg.get("value") if arg.kind is NodeKind.ARGUMENT else arg
        if value is not None:
            out.append(value)
    return out


def relationship_arguments(call: Node) -> list[str]:
    """Relationship names named by a pre-load call's arguments.

    Accepts ``with('a')``, ``with('a', 'b')``, ``with(['a', 'b'])`` and
    ``with(['a' => fn ($q) => ...])``.  Column selections such as
    ``'posts:id,title'`` are trimmed to the relationship name.
    """
    names: list[str] = []
    for value in argument_values(call):
        text = string_value(value)
        if text is not None:
            names.append(text)
            continue
        if value.kind is not NodeKind.ARRAY:
            continue
        for item in value.many("items"):
            key = string_value(item.get("key"))
            if key is not None:
                names.append(key)
                continue
            if item.get("key") is None:
                text = string_value(item.get("value"))
                if text is not None:
                    names.append(text)

    out = []
    for name in names:
        name = name.split(":", 1)[0].strip()
        if name:
            out.append(name)
    return out


def class_symbol(node: Node | None) -> str | None:
    """Class name referenced by a static call or property's receiver.

    Resolved (fully-qualified) names win over the literal text.  Leading
    backslashes are stripped.
    """
    if node is None:
        return None
    if node.kind in (NodeKind.STATIC_CALL, NodeKind.STATIC_PROPERTY_FETCH, NodeKind.NEW):
        node = node.get("receiver")
    if node is None or node.kind is not NodeKind.NAME:
        return None
    symbol = node.symbol
    return symbol.lstrip("\\") if symbol else None


def render_chain(root: Node | None, calls: list[Node]) -> str:
    """Short human description, e.g. ``User::where()->first()``."""
    parts: list[str] = []
    if root is not None and root.kind is NodeKind.STATIC_CALL:
        receiver = root.get("receiver")
        owner = receiver.name if receiver is not None and receiver.name else "?"
        parts.append(f"{owner}::{root.name or '?'}()")
        calls = [c for c in calls if c is not root]
    else:
        parts.append(_render_operand(root))
    for call in calls:
        parts.append(f"->{call.name or '?'}()")
    return "".join(parts)


def _render_operand(node: Node | None) -> str:
    if node is None:
        return "?"
    if node.kind is NodeKind.VARIABLE:
        return f"${node.name}"
    if node.kind is NodeKind.PROPERTY_FETCH:
        return f"{_render_operand(node.get('receiver'))}->{node.name or '?'}"
    if node.kind is NodeKind.STATIC_PROPERTY_FETCH:
        receiver = node.get("receiver")
        owner = receiver.name if receiver is not None and receiver.name else "?"
        return f"{owner}::${node.name or '?'}"
    if node.kind is NodeKind.FUNCTION_CALL:
        callee = node.get("callee")
        return f"{callee.name if callee is not None and callee.name else '?'}()"
    if node.kind is NodeKind.NAME:
        return node.name or "?"
    return "(...)"

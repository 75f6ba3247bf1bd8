"""Generic depth-first walk with enter/leave callbacks."""

from __future__ import annotations

from typing import Callable

from eagerlint.tree.nodes import Node

Callback = Callable[[Node], None]


def walk(root: Node, enter: Callback | None = None, leave: Callback | None = None) -> None:
    """Visit *root* and its descendants: *enter* pre-order, *leave* post-order.

    Iterative so deeply nested files cannot hit the recursion limit.
    """
    # (node, children_pushed)
    stack: list[tuple[Node, bool]] = [(root, False)]
    while stack:
        node, expanded = stack.pop()
        if expanded:
            if leave is not None:
                leave(node)
            continue
        if enter is not None:
            enter(node)
        stack.append((node, True))
        for child in reversed(node.children):
            stack.append((child, False))

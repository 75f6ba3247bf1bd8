"""Language-neutral syntax tree consumed by the detectors.

Every node is a :class:`Node` tagged with a :class:`NodeKind`.  The payload
of each kind is declared once in :data:`NODE_SLOTS` -- an ordered list of
named child slots -- so a kind can only ever carry the children its schema
allows and ``children`` always comes back in source order.

Nodes are produced by a front end (see :mod:`eagerlint.tree.php`) and are
never mutated afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class NodeKind(str, Enum):
    FILE = "file"
    BLOCK = "block"
    OTHER = "other"
    VARIABLE = "variable"
    NAME = "name"
    LITERAL = "literal"
    PROPERTY_FETCH = "property_fetch"
    STATIC_PROPERTY_FETCH = "static_property_fetch"
    METHOD_CALL = "method_call"
    STATIC_CALL = "static_call"
    FUNCTION_CALL = "function_call"
    NEW = "new"
    ARGUMENT = "argument"
    ASSIGN = "assign"
    ARRAY = "array"
    ARRAY_ITEM = "array_item"
    INDEX = "index"
    TERNARY = "ternary"
    BINARY = "binary"
    CLOSURE = "closure"
    ARROW_FUNCTION = "arrow_function"
    PARAMETER = "parameter"
    FOREACH = "foreach"
    FOR = "for"
    WHILE = "while"
    DO_WHILE = "do_while"


# kind -> ((slot name, is_sequence), ...) in source order
NODE_SLOTS: dict[NodeKind, tuple[tuple[str, bool], ...]] = {
    NodeKind.FILE: (("body", True),),
    NodeKind.BLOCK: (("body", True),),
    NodeKind.OTHER: (("parts", True),),
    NodeKind.VARIABLE: (),
    NodeKind.NAME: (),
    NodeKind.LITERAL: (),
    NodeKind.PROPERTY_FETCH: (("receiver", False), ("member", False)),
    NodeKind.STATIC_PROPERTY_FETCH: (("receiver", False),),
    NodeKind.METHOD_CALL: (("receiver", False), ("member", False), ("args", True)),
    NodeKind.STATIC_CALL: (("receiver", False), ("args", True)),
    NodeKind.FUNCTION_CALL: (("callee", False), ("args", True)),
    NodeKind.NEW: (("receiver", False), ("args", True)),
    NodeKind.ARGUMENT: (("value", False),),
    NodeKind.ASSIGN: (("target", False), ("value", False)),
    NodeKind.ARRAY: (("items", True),),
    NodeKind.ARRAY_ITEM: (("key", False), ("value", False)),
    NodeKind.INDEX: (("receiver", False), ("index", False)),
    NodeKind.TERNARY: (("condition", False), ("then", False), ("otherwise", False)),
    NodeKind.BINARY: (("left", False), ("right", False)),
    NodeKind.CLOSURE: (("params", True), ("uses", True), ("body", True)),
    NodeKind.ARROW_FUNCTION: (("params", True), ("body", False)),
    NodeKind.PARAMETER: (("default", False),),
    NodeKind.FOREACH: (("iterable", False), ("key", False), ("value", False), ("body", True)),
    NodeKind.FOR: (("init", True), ("condition", True), ("update", True), ("body", True)),
    NodeKind.WHILE: (("condition", False), ("body", True)),
    NodeKind.DO_WHILE: (("body", True), ("condition", False)),
}

LOOP_KINDS = frozenset({NodeKind.FOREACH, NodeKind.FOR, NodeKind.WHILE, NodeKind.DO_WHILE})
FUNCTION_KINDS = frozenset({NodeKind.CLOSURE, NodeKind.ARROW_FUNCTION})


@dataclass(frozen=True, eq=False)
class Node:
    """A single tree node.

    ``name`` holds the identifier for identifier-bearing kinds (variable
    name without ``$``, member name, class name, operator for BINARY).
    ``resolved`` is the fully-qualified target an alias resolver attached
    to a class reference.  ``text`` holds the literal value of LITERAL
    nodes (unquoted for strings).
    """

    kind: NodeKind
    line: int = 0
    name: str | None = None
    resolved: str | None = None
    text: str | None = None
    slots: dict = field(default_factory=dict, repr=False)

    def __post_init__(self) -> None:
        schema = NODE_SLOTS[self.kind]
        allowed = {slot for slot, _ in schema}
        unknown = set(self.slots) - allowed
        if unknown:
            raise ValueError(f"{self.kind.value} node has no slot(s) {sorted(unknown)}")
        normalized: dict = {}
        for slot, is_seq in schema:
            value = self.slots.get(slot)
            if is_seq:
                normalized[slot] = tuple(v for v in (value or ()) if v is not None)
            else:
                normalized[slot] = value
        object.__setattr__(self, "slots", normalized)

    def get(self, slot: str) -> Node | None:
        """Return a single-child slot (``None`` when empty or undeclared)."""
        value = self.slots.get(slot)
        return value if isinstance(value, Node) else None

    def many(self, slot: str) -> tuple[Node, ...]:
        """Return a sequence slot (empty tuple when empty or undeclared)."""
        value = self.slots.get(slot)
        return value if isinstance(value, tuple) else ()

    @property
    def children(self) -> tuple[Node, ...]:
        out: list[Node] = []
        for slot, is_seq in NODE_SLOTS[self.kind]:
            value = self.slots[slot]
            if is_seq:
                out.extend(value)
            elif value is not None:
                out.append(value)
        return tuple(out)

    @property
    def symbol(self) -> str | None:
        """Resolved name when available, else the literal name."""
        return self.resolved or self.name


def make(
    kind: NodeKind,
    line: int = 0,
    *,
    name: str | None = None,
    resolved: str | None = None,
    text: str | None = None,
    **slots,
) -> Node:
    """Build a node, validating the slot names against :data:`NODE_SLOTS`."""
    return Node(kind=kind, line=line, name=name, resolved=resolved, text=text, slots=slots)


def iter_nodes(root: Node):
    """Yield *root* and every descendant in pre-order."""
    stack = [root]
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(node.children))

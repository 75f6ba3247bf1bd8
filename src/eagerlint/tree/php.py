"""PHP front end: tree-sitter concrete tree -> :class:`Node` tree.

Only the constructs the detectors reason about get a dedicated kind.
Everything else becomes ``NodeKind.OTHER`` holding its converted named
children, so the walk still reaches nested expressions.

``use`` imports are collected up front and attached to class references
as ``resolved`` (``use App\\Support\\Facades\\DB as Database;`` makes
``Database::table()`` resolve to the DB facade).
"""

from __future__ import annotations

import logging

from eagerlint.tree.nodes import Node, NodeKind, make

log = logging.getLogger(__name__)

_parser = None

_SKIPPED_TYPES = frozenset({"comment", "php_tag", "text", "namespace_use_declaration", "?>"})
_RELATIVE_SCOPES = frozenset({"self", "static", "parent"})


class ParseError(Exception):
    """Raised when a PHP source cannot be turned into a tree."""

    def __init__(self, message: str, line: int | None = None):
        super().__init__(message)
        self.line = line


def _get_parser():
    global _parser
    if _parser is None:
        try:
            from tree_sitter_language_pack import get_parser

            _parser = get_parser("php")
        except Exception as exc:
            raise ParseError(f"PHP grammar unavailable: {exc}") from exc
    return _parser


def _find_child_type(node, *type_names):
    """Find first child of one of the given types."""
    for child in node.children:
        if child.type in type_names:
            return child
    return None


def _first_error(node):
    if node.type == "ERROR" or node.is_missing:
        return node
    for child in node.children:
        if child.has_error or child.is_missing:
            found = _first_error(child)
            if found is not None:
                return found
    return None


def parse_php(source: bytes | str) -> Node:
    """Parse PHP *source* and return the converted ``FILE`` node.

    Raises :class:`ParseError` on syntax errors or a missing grammar.
    """
    if isinstance(source, str):
        source = source.encode("utf-8")
    parser = _get_parser()
    try:
        tree = parser.parse(source)
    except Exception as exc:
        raise ParseError(f"tree-sitter failed: {exc}") from exc

    root = tree.root_node
    if root.has_error:
        bad = _first_error(root)
        line = bad.start_point[0] + 1 if bad is not None else None
        log.debug("syntax error at line %s (%s)", line, bad.type if bad is not None else "?")
        raise ParseError(f"syntax error at line {line}" if line else "syntax error", line)

    return _Converter(source).convert_file(root)


# ---------------------------------------------------------------------------
# Alias resolution
# ---------------------------------------------------------------------------


def collect_aliases(root, source: bytes) -> dict[str, str]:
    """Map lower-cased local class alias -> fully-qualified name."""
    aliases: dict[str, str] = {}
    stack = [root]
    while stack:
        node = stack.pop()
        if node.type == "namespace_use_declaration":
            _collect_use_declaration(node, source, aliases)
            continue
        stack.extend(node.children)
    return aliases


def _text(node, source: bytes) -> str:
    if node is None:
        return ""
    return source[node.start_byte : node.end_byte].decode("utf-8", errors="replace")


def _use_clause_target(clause, source: bytes) -> tuple[str | None, str | None]:
    """``(alias, path)`` for a ``namespace_use_clause``."""
    names = [c for c in clause.children if c.type in ("qualified_name", "name", "namespace_name")]
    if not names:
        return None, None
    path = _text(names[0], source).lstrip("\\")
    alias = path.rsplit("\\", 1)[-1]
    aliasing = _find_child_type(clause, "namespace_aliasing_clause")
    if aliasing is not None:
        sub = _find_child_type(aliasing, "name")
        if sub is not None:
            alias = _text(sub, source)
    elif _find_child_type(clause, "as") is not None and len(names) > 1:
        alias = _text(names[-1], source)
    return alias, path


def _collect_use_declaration(node, source: bytes, aliases: dict[str, str]) -> None:
    # use function ... / use const ... import no classes
    for child in node.children:
        if child.type in ("function", "const"):
            return

    prefix = ""
    for child in node.children:
        if child.type in ("qualified_name", "name", "namespace_name"):
            prefix = _text(child, source).lstrip("\\")
        elif child.type == "namespace_use_clause":
            alias, path = _use_clause_target(child, source)
            if alias and path:
                aliases[alias.lower()] = path
        elif child.type == "namespace_use_group":
            for sub in child.children:
                if sub.type in ("namespace_use_clause", "namespace_use_group_clause"):
                    alias, path = _use_clause_target(sub, source)
                    if alias and path:
                        full = f"{prefix}\\{path}" if prefix else path
                        aliases[alias.lower()] = full


# ---------------------------------------------------------------------------
# Conversion
# ---------------------------------------------------------------------------


class _Converter:
    def __init__(self, source: bytes):
        self.source = source
        self.aliases: dict[str, str] = {}
        self.namespace: str | None = None
        self._handlers = {
            "program": self._block,
            "compound_statement": self._block,
            "colon_block": self._block,
            "namespace_definition": self._namespace,
            "variable_name": self._variable,
            "name": self._name,
            "qualified_name": self._name,
            "relative_scope": self._name,
            "string": self._string,
            "encapsed_string": self._string,
            "integer": self._scalar,
            "float": self._scalar,
            "boolean": self._scalar,
            "null": self._scalar,
            "member_access_expression": self._property_fetch,
            "nullsafe_member_access_expression": self._property_fetch,
            "scoped_property_access_expression": self._static_property_fetch,
            "member_call_expression": self._method_call,
            "nullsafe_member_call_expression": self._method_call,
            "scoped_call_expression": self._static_call,
            "function_call_expression": self._function_call,
            "object_creation_expression": self._new,
            "assignment_expression": self._assign,
            "reference_assignment_expression": self._assign,
            "augmented_assignment_expression": self._binary,
            "binary_expression": self._binary,
            "conditional_expression": self._ternary,
            "subscript_expression": self._index,
            "array_creation_expression": self._array,
            "list_literal": self._array,
            "parenthesized_expression": self._unwrap,
            "by_ref": self._unwrap,
            "expression_statement": self._unwrap,
            "anonymous_function": self._closure,
            "anonymous_function_creation_expression": self._closure,
            "arrow_function": self._arrow_function,
            "simple_parameter": self._parameter,
            "variadic_parameter": self._parameter,
            "property_promotion_parameter": self._parameter,
            "foreach_statement": self._foreach,
            "for_statement": self._for,
            "while_statement": self._while,
            "do_statement": self._do_while,
        }

    # -- helpers --

    def text(self, node) -> str:
        return _text(node, self.source)

    @staticmethod
    def line(node) -> int:
        return node.start_point[0] + 1

    def convert(self, node) -> Node | None:
        if node is None or node.type in _SKIPPED_TYPES:
            return None
        handler = self._handlers.get(node.type)
        if handler is not None:
            return handler(node)
        return make(NodeKind.OTHER, self.line(node), name=node.type, parts=self.convert_all(node.named_children))

    def convert_all(self, nodes) -> list[Node]:
        out = []
        for child in nodes:
            converted = self.convert(child)
            if converted is not None:
                out.append(converted)
        return out

    def convert_file(self, root) -> Node:
        self.aliases = collect_aliases(root, self.source)
        return make(NodeKind.FILE, self.line(root), body=self.convert_all(root.named_children))

    def resolve_class(self, raw: str) -> str | None:
        """Fully-qualified name for a class reference, if it can be known."""
        if not raw or raw.lower() in _RELATIVE_SCOPES:
            return None
        if raw.startswith("\\"):
            return raw.lstrip("\\")
        head, _, rest = raw.partition("\\")
        target = self.aliases.get(head.lower())
        if target is not None:
            return f"{target}\\{rest}" if rest else target
        if self.namespace:
            return f"{self.namespace}\\{raw}"
        return None

    def class_reference(self, node) -> Node | None:
        if node is None:
            return None
        if node.type in ("name", "qualified_name", "relative_scope"):
            raw = self.text(node)
            return make(NodeKind.NAME, self.line(node), name=raw, resolved=self.resolve_class(raw))
        return self.convert(node)

    def member(self, node) -> tuple[str | None, Node | None]:
        """Static member name, or the converted dynamic member expression."""
        if node is None:
            return None, None
        if node.type == "name":
            return self.text(node), None
        if node.type == "variable_name" and node.parent is not None and node.parent.type.startswith("scoped_"):
            # Model::$property
            return self.text(node).lstrip("$"), None
        return None, self.convert(node)

    def arguments(self, node) -> list[Node]:
        args_node = node.child_by_field_name("arguments") or _find_child_type(node, "arguments")
        if args_node is None:
            return []
        out = []
        for child in args_node.named_children:
            if child.type in ("comment", "variadic_placeholder"):
                continue
            if child.type != "argument":
                value = self.convert(child)
                if value is not None:
                    out.append(make(NodeKind.ARGUMENT, self.line(child), value=value))
                continue
            label = child.child_by_field_name("name")
            values = [c for c in child.named_children if c != label and c.type != "comment"]
            value = self.convert(values[-1]) if values else None
            out.append(
                make(
                    NodeKind.ARGUMENT,
                    self.line(child),
                    name=self.text(label) if label is not None else None,
                    value=value,
                )
            )
        return out

    def _named_field(self, node, field: str, index: int):
        found = node.child_by_field_name(field)
        if found is not None:
            return found
        named = [c for c in node.named_children if c.type != "comment"]
        return named[index] if len(named) > index else None

    # -- structure --

    def _block(self, node) -> Node:
        return make(NodeKind.BLOCK, self.line(node), body=self.convert_all(node.named_children))

    def _namespace(self, node) -> Node:
        name_node = node.child_by_field_name("name")
        if name_node is not None:
            self.namespace = self.text(name_node).lstrip("\\")
        body = node.child_by_field_name("body")
        parts = [self.convert(body)] if body is not None else []
        return make(NodeKind.OTHER, self.line(node), name=node.type, parts=parts)

    def _unwrap(self, node) -> Node | None:
        named = [c for c in node.named_children if c.type != "comment"]
        if len(named) == 1:
            return self.convert(named[0])
        return make(NodeKind.OTHER, self.line(node), name=node.type, parts=self.convert_all(named))

    # -- leaves --

    def _variable(self, node) -> Node:
        return make(NodeKind.VARIABLE, self.line(node), name=self.text(node).lstrip("$"))

    def _name(self, node) -> Node:
        return make(NodeKind.NAME, self.line(node), name=self.text(node))

    def _string(self, node) -> Node:
        # older grammars nest plain "string" chunks inside encapsed strings
        interpolated = [
            c for c in node.named_children
            if c.type not in ("string", "string_content", "string_value", "escape_sequence")
        ]
        if interpolated:
            return make(NodeKind.OTHER, self.line(node), name=node.type, parts=self.convert_all(interpolated))
        raw = self.text(node)
        if len(raw) >= 2 and raw[0] in "'\"" and raw[-1] == raw[0]:
            raw = raw[1:-1]
        return make(NodeKind.LITERAL, self.line(node), name="string", text=raw)

    def _scalar(self, node) -> Node:
        return make(NodeKind.LITERAL, self.line(node), name=node.type, text=self.text(node))

    # -- access and calls --

    def _property_fetch(self, node) -> Node:
        name, dynamic = self.member(node.child_by_field_name("name"))
        return make(
            NodeKind.PROPERTY_FETCH,
            self.line(node),
            name=name,
            receiver=self.convert(node.child_by_field_name("object")),
            member=dynamic,
        )

    def _static_property_fetch(self, node) -> Node:
        name, _ = self.member(node.child_by_field_name("name"))
        return make(
            NodeKind.STATIC_PROPERTY_FETCH,
            self.line(node),
            name=name,
            receiver=self.class_reference(node.child_by_field_name("scope")),
        )

    def _method_call(self, node) -> Node:
        name, dynamic = self.member(node.child_by_field_name("name"))
        return make(
            NodeKind.METHOD_CALL,
            self.line(node),
            name=name,
            receiver=self.convert(node.child_by_field_name("object")),
            member=dynamic,
            args=self.arguments(node),
        )

    def _static_call(self, node) -> Node:
        name, _ = self.member(node.child_by_field_name("name"))
        return make(
            NodeKind.STATIC_CALL,
            self.line(node),
            name=name,
            receiver=self.class_reference(node.child_by_field_name("scope")),
            args=self.arguments(node),
        )

    def _function_call(self, node) -> Node:
        callee = node.child_by_field_name("function")
        if callee is not None and callee.type in ("name", "qualified_name"):
            converted = make(NodeKind.NAME, self.line(callee), name=self.text(callee).lstrip("\\"))
        else:
            converted = self.convert(callee)
        return make(
            NodeKind.FUNCTION_CALL,
            self.line(node),
            name=converted.name if converted is not None and converted.kind is NodeKind.NAME else None,
            callee=converted,
            args=self.arguments(node),
        )

    def _new(self, node) -> Node:
        target = None
        for child in node.named_children:
            if child.type not in ("arguments", "comment"):
                target = child
                break
        receiver = self.class_reference(target)
        return make(
            NodeKind.NEW,
            self.line(node),
            name=receiver.name if receiver is not None and receiver.kind is NodeKind.NAME else None,
            receiver=receiver,
            args=self.arguments(node),
        )

    # -- expressions --

    def _assign(self, node) -> Node:
        return make(
            NodeKind.ASSIGN,
            self.line(node),
            target=self.convert(self._named_field(node, "left", 0)),
            value=self.convert(self._named_field(node, "right", 1)),
        )

    def _binary(self, node) -> Node:
        operator = node.child_by_field_name("operator")
        return make(
            NodeKind.BINARY,
            self.line(node),
            name=self.text(operator) if operator is not None else None,
            left=self.convert(self._named_field(node, "left", 0)),
            right=self.convert(self._named_field(node, "right", 1)),
        )

    def _ternary(self, node) -> Node:
        return make(
            NodeKind.TERNARY,
            self.line(node),
            condition=self.convert(node.child_by_field_name("condition")),
            then=self.convert(node.child_by_field_name("body")),
            otherwise=self.convert(node.child_by_field_name("alternative")),
        )

    def _index(self, node) -> Node:
        named = [c for c in node.named_children if c.type != "comment"]
        return make(
            NodeKind.INDEX,
            self.line(node),
            receiver=self.convert(named[0]) if named else None,
            index=self.convert(named[1]) if len(named) > 1 else None,
        )

    def _array(self, node) -> Node:
        items = []
        for child in node.named_children:
            if child.type == "comment":
                continue
            if child.type != "array_element_initializer":
                value = self.convert(child)
                if value is not None:
                    items.append(make(NodeKind.ARRAY_ITEM, self.line(child), value=value))
                continue
            parts = [c for c in child.named_children if c.type != "comment"]
            key = self.convert(parts[0]) if len(parts) > 1 else None
            value = self.convert(parts[-1]) if parts else None
            items.append(make(NodeKind.ARRAY_ITEM, self.line(child), key=key, value=value))
        return make(NodeKind.ARRAY, self.line(node), items=items)

    # -- functions --

    def _parameters(self, node) -> list[Node]:
        params = node.child_by_field_name("parameters")
        if params is None:
            params = _find_child_type(node, "formal_parameters")
        return self.convert_all(params.named_children) if params is not None else []

    def _parameter(self, node) -> Node:
        var = node.child_by_field_name("name") or _find_child_type(node, "variable_name")
        return make(
            NodeKind.PARAMETER,
            self.line(node),
            name=self.text(var).lstrip("&$") if var is not None else None,
            default=self.convert(node.child_by_field_name("default_value")),
        )

    def _closure(self, node) -> Node:
        uses = []
        clause = _find_child_type(node, "anonymous_function_use_clause")
        if clause is not None:
            uses = self.convert_all(clause.named_children)
        body = node.child_by_field_name("body") or _find_child_type(node, "compound_statement")
        statements = self.convert_all(body.named_children) if body is not None else []
        return make(
            NodeKind.CLOSURE,
            self.line(node),
            params=self._parameters(node),
            uses=uses,
            body=statements,
        )

    def _arrow_function(self, node) -> Node:
        body = node.child_by_field_name("body")
        if body is None:
            named = [c for c in node.named_children if c.type not in ("formal_parameters", "comment")]
            body = named[-1] if named else None
        return make(
            NodeKind.ARROW_FUNCTION,
            self.line(node),
            params=self._parameters(node),
            body=self.convert(body),
        )

    # -- loops --

    def _after_paren(self, node) -> list:
        """Named children after the closing ``)`` of a loop header."""
        out = []
        seen_close = False
        depth = 0
        for child in node.children:
            if not seen_close:
                if child.type == "(":
                    depth += 1
                elif child.type == ")":
                    depth -= 1
                    seen_close = depth == 0
                continue
            if child.is_named and child.type != "comment":
                out.append(child)
        return out

    def _loop_body(self, node) -> list[Node]:
        body = node.child_by_field_name("body")
        if body is not None:
            return [self.convert(body)]
        return self.convert_all(self._after_paren(node))

    def _foreach(self, node) -> Node:
        header = []
        for child in node.children:
            if child.type == ")":
                break
            if child.is_named and child.type != "comment":
                header.append(child)
        iterable = header[0] if header else None
        target = header[1] if len(header) > 1 else None
        key = value = None
        if target is not None and target.type == "pair":
            parts = [c for c in target.named_children if c.type != "comment"]
            key = parts[0] if parts else None
            value = parts[-1] if len(parts) > 1 else None
        elif len(header) > 2:
            # grammars that inline `$k => $v` into the header
            key, value = header[1], header[2]
        else:
            value = target
        return make(
            NodeKind.FOREACH,
            self.line(node),
            iterable=self.convert(iterable),
            key=self.convert(key),
            value=self.convert(value),
            body=self._loop_body(node),
        )

    def _for(self, node) -> Node:
        sections: list[list] = [[], [], []]
        index = -1
        for child in node.children:
            if child.type == "(" and index == -1:
                index = 0
            elif child.type == ";" and 0 <= index < 2:
                index += 1
            elif child.type == ")" and index >= 0:
                break
            elif 0 <= index <= 2 and child.is_named and child.type != "comment":
                sections[index].extend(self._flatten_sequence(child))
        init, condition, update = (self.convert_all(s) for s in sections)
        return make(
            NodeKind.FOR,
            self.line(node),
            init=init,
            condition=condition,
            update=update,
            body=self._loop_body(node),
        )

    def _flatten_sequence(self, node) -> list:
        if node.type != "sequence_expression":
            return [node]
        out = []
        for child in node.named_children:
            out.extend(self._flatten_sequence(child))
        return out

    def _while(self, node) -> Node:
        condition = self._named_field(node, "condition", 0)
        body = node.child_by_field_name("body")
        if body is not None:
            statements = [self.convert(body)]
        else:
            statements = self.convert_all(
                c for c in node.named_children if c != condition and c.type != "comment"
            )
        return make(
            NodeKind.WHILE,
            self.line(node),
            condition=self.convert(condition),
            body=statements,
        )

    def _do_while(self, node) -> Node:
        body = node.child_by_field_name("body")
        condition = node.child_by_field_name("condition")
        named = [c for c in node.named_children if c.type != "comment"]
        if body is None and named:
            body = named[0]
        if condition is None and len(named) > 1:
            condition = named[-1]
        return make(
            NodeKind.DO_WHILE,
            self.line(node),
            body=[self.convert(body)] if body is not None else [],
            condition=self.convert(condition),
        )

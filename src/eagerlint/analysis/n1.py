"""N+1 detection over a single file's tree.

Two findings are produced:

* ``relationship-access`` -- a relationship-looking property or method is
  read off a loop-bound variable and nothing pre-loaded it
  (``with()`` / ``load()`` / ``loadMissing()``) or checked it with
  ``relationLoaded()`` first.
* ``query-in-loop`` -- a query-executing call chain runs inside a loop and
  structurally depends on one of the enclosing loops' variables.

The walk is a single pass.  All state lives in an :class:`AnalysisContext`
created per call to :func:`analyze`.
"""

from __future__ import annotations

import logging

from eagerlint.analysis.chains import (
    member_path,
    relationship_arguments,
    render_chain,
    string_value,
    unwind_calls,
    variable_name,
)
from eagerlint.analysis.classifiers import (
    chain_has_batch_call,
    is_query_execution_call,
    looks_like_relationship_method,
    looks_like_relationship_property,
    originates_from_data_source,
)
from eagerlint.analysis.context import AnalysisContext
from eagerlint.analysis.dependency import destructured_variables, parameter_names, references_any
from eagerlint.analysis.issues import Issue
from eagerlint.analysis.loops import carried_provenance
from eagerlint.analysis.settings import DetectorSettings
from eagerlint.analysis.traversal import walk
from eagerlint.tree.nodes import FUNCTION_KINDS, LOOP_KINDS, Node, NodeKind

log = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# State updates
# ---------------------------------------------------------------------------


def _track_assignment(ctx: AnalysisContext, node: Node) -> None:
    target = node.get("target")
    var = variable_name(target)
    if var is None:
        # [$a, $b] = ... rebinds every destructured name
        for name in destructured_variables(target):
            ctx.provenance.forget(name)
        return

    source = variable_name(node.get("value"))
    if source is not None and source in ctx.provenance:
        ctx.provenance.copy(source, var)
        return

    carried = carried_provenance(node.get("value"), ctx.provenance, ctx.settings)
    if carried is None:
        ctx.provenance.forget(var)
    else:
        ctx.provenance.record(var, carried)


def _track_incremental_load(ctx: AnalysisContext, node: Node) -> None:
    if node.name not in ctx.settings.merge_load_methods:
        return
    var = variable_name(node.get("receiver"))
    if var is None:
        return
    names = relationship_arguments(node)
    if names:
        ctx.provenance.merge(var, names)


def _track_presence_check(ctx: AnalysisContext, node: Node) -> None:
    """``$post->relationLoaded('author')`` inside the loop binding ``$post``."""
    if node.name not in ctx.settings.presence_check_methods or not ctx.loops:
        return
    root, segments = member_path(node.get("receiver"))
    var = variable_name(root)
    if var is None:
        return
    frame = ctx.loops.frame_binding(var)
    if frame is None:
        return
    if any(is_method or not name for name, is_method in segments):
        return
    prefix = ".".join(name for name, _ in segments)
    for arg in node.many("args"):
        relationship = string_value(arg)
        if relationship:
            ctx.checks.record_check(var, f"{prefix}.{relationship}" if prefix else relationship, frame.depth)


# ---------------------------------------------------------------------------
# Findings
# ---------------------------------------------------------------------------


def _check_relationship_access(ctx: AnalysisContext, node: Node) -> None:
    root, segments = member_path(node)
    var = variable_name(root)
    if var is None:
        return
    frame = ctx.loops.frame_binding(var)
    if frame is None:
        return

    parts: list[str] = []
    for name, is_method in segments:
        if not name:
            return
        if is_method:
            accepted = looks_like_relationship_method(name, ctx.settings)
        else:
            accepted = looks_like_relationship_property(name, ctx.settings)
        if not accepted:
            return
        parts.append(name)
        path = ".".join(parts)
        if ctx.checks.is_checked(var, path, frame.depth):
            return
        if not ctx.provenance.covers(var, path):
            if ctx.issues.add_relationship_issue(var, path, node.line, frame.kind):
                log.debug("line %d: $%s->%s not eager loaded", node.line, var, path.replace(".", "->"))
            return
        # a relationship method returns a query builder, not a loaded value
        if is_method:
            return


def _check_query(ctx: AnalysisContext, node: Node) -> None:
    if id(node) in ctx.consumed_calls:
        return
    if not is_query_execution_call(node.name, ctx.settings):
        return
    root, calls = unwind_calls(node)
    if chain_has_batch_call(calls, ctx.settings):
        return
    if not originates_from_data_source(root, calls, ctx.settings):
        return
    var = references_any(node, ctx.loops.all_dependency_variables())
    if var is None:
        return

    # inner executions (User::find($id)->posts()->get()) belong to this finding
    for call in calls:
        if call is not node:
            ctx.consumed_calls.add(id(call))

    description = render_chain(root, calls)
    frame = ctx.loops.innermost
    if ctx.issues.add_query_issue(description, node.line, frame.kind, var, len(calls)):
        log.debug("line %d: %s depends on $%s", node.line, description, var)


# ---------------------------------------------------------------------------
# Traversal callbacks
# ---------------------------------------------------------------------------


def _enter(ctx: AnalysisContext, node: Node) -> None:
    kind = node.kind
    if kind in LOOP_KINDS:
        ctx.enter_loop(node)
        return

    if kind in FUNCTION_KINDS:
        # parameters hide loop variables of the same name inside the body
        ctx.loops.shadow(parameter_names(node))
        return

    if kind is NodeKind.ASSIGN:
        _track_assignment(ctx, node)
        return

    if kind is NodeKind.METHOD_CALL:
        _track_incremental_load(ctx, node)
        _track_presence_check(ctx, node)

    if not ctx.loops:
        return

    if kind in (NodeKind.PROPERTY_FETCH, NodeKind.METHOD_CALL):
        _check_relationship_access(ctx, node)
    if kind in (NodeKind.METHOD_CALL, NodeKind.STATIC_CALL):
        _check_query(ctx, node)


def _leave(ctx: AnalysisContext, node: Node) -> None:
    if node.kind in LOOP_KINDS:
        ctx.leave_loop()
    elif node.kind in FUNCTION_KINDS:
        ctx.loops.unshadow()


def analyze(tree: Node, settings: DetectorSettings | None = None) -> list[Issue]:
    """Run both N+1 checks over *tree* and return the issues found.

    Each call starts from a fresh context, so repeated calls on the same
    tree return the same issues.
    """
    ctx = AnalysisContext(settings=settings) if settings is not None else AnalysisContext()
    walk(tree, enter=lambda node: _enter(ctx, node), leave=lambda node: _leave(ctx, node))
    if ctx.loops:
        log.warning("unbalanced loop stack after traversal (depth %d)", ctx.loops.depth)
    return ctx.issues.results()

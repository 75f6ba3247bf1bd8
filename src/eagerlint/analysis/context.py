"""Per-file analysis state: loop frames, provenance and presence checks.

Everything here lives for exactly one traversal.  :class:`AnalysisContext`
bundles the pieces and is threaded explicitly through the detector, so
nothing escapes the file being analyzed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from eagerlint.analysis.issues import IssueCollector, LoopKind
from eagerlint.analysis.loops import LOOP_KIND_FOR_NODE, bound_variables, carried_provenance
from eagerlint.analysis.settings import DEFAULT_SETTINGS, DetectorSettings
from eagerlint.tree.nodes import Node, NodeKind

log = logging.getLogger(__name__)


def expand_path(path: str) -> set[str]:
    """``a.b.c`` -> ``{"a", "a.b", "a.b.c"}``."""
    parts = [p for p in path.split(".") if p]
    return {".".join(parts[: i + 1]) for i in range(len(parts))}


def expand_paths(paths) -> frozenset[str]:
    out: set[str] = set()
    for path in paths:
        out |= expand_path(path)
    return frozenset(out)


# ---------------------------------------------------------------------------
# Loop frames
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LoopFrame:
    bound_variables: frozenset[str]
    kind: LoopKind
    key_variable: str | None = None
    line: int = 0
    # 1-based position on the stack
    depth: int = 0

    @property
    def dependency_variables(self) -> frozenset[str]:
        """Variables a per-iteration query may depend on (key included)."""
        if self.key_variable:
            return self.bound_variables | {self.key_variable}
        return self.bound_variables


class ScopeStack:
    """Loop frames, innermost last.

    Closures and arrow functions push a shadow holding their parameter
    names.  A shadow hides those names in every frame that was already on
    the stack when the closure was entered; loops opened inside the
    closure are unaffected.
    """

    def __init__(self):
        self._frames: list[LoopFrame] = []
        # (frame count when the closure was entered, parameter names)
        self._shadows: list[tuple[int, frozenset[str]]] = []

    def push(self, frame: LoopFrame) -> LoopFrame:
        self._frames.append(frame)
        return frame

    def pop(self) -> LoopFrame:
        return self._frames.pop()

    def shadow(self, names) -> None:
        self._shadows.append((len(self._frames), frozenset(names)))

    def unshadow(self) -> None:
        self._shadows.pop()

    def __len__(self) -> int:
        return len(self._frames)

    def __bool__(self) -> bool:
        return bool(self._frames)

    @property
    def depth(self) -> int:
        return len(self._frames)

    @property
    def innermost(self) -> LoopFrame | None:
        return self._frames[-1] if self._frames else None

    def _hidden(self, var: str, index: int) -> bool:
        return any(entered > index and var in names for entered, names in self._shadows)

    def frame_binding(self, var: str) -> LoopFrame | None:
        """Innermost frame whose bound set contains *var*, unless shadowed."""
        for index in range(len(self._frames) - 1, -1, -1):
            if var in self._frames[index].bound_variables:
                return None if self._hidden(var, index) else self._frames[index]
        return None

    def all_dependency_variables(self) -> frozenset[str]:
        out: set[str] = set()
        for index, frame in enumerate(self._frames):
            out |= {v for v in frame.dependency_variables if not self._hidden(v, index)}
        return frozenset(out)


# ---------------------------------------------------------------------------
# Provenance
# ---------------------------------------------------------------------------


class ProvenanceTracker:
    """Which relationship paths are known to be pre-loaded per variable."""

    def __init__(self):
        self._map: dict[str, frozenset[str]] = {}

    def record(self, var: str, relationships) -> None:
        self._map[var] = expand_paths(relationships)

    def merge(self, var: str, relationships) -> None:
        self._map[var] = self._map.get(var, frozenset()) | expand_paths(relationships)

    def query(self, var: str) -> frozenset[str]:
        return self._map.get(var, frozenset())

    def copy(self, source: str, target: str) -> None:
        # frozensets make the copy a snapshot
        self._map[target] = self._map.get(source, frozenset())

    def forget(self, var: str) -> None:
        self._map.pop(var, None)

    def covers(self, var: str, path: str) -> bool:
        return path in self._map.get(var, frozenset())

    def __contains__(self, var: str) -> bool:
        return var in self._map


# ---------------------------------------------------------------------------
# Presence checks
# ---------------------------------------------------------------------------


class DeferredCheckTracker:
    """``relationLoaded()`` checks seen on loop-bound variables.

    Each check is tagged with the depth of the loop frame binding its
    variable, so leaving a loop drops only that loop's checks.
    """

    def __init__(self):
        self._checks: set[tuple[str, str, int]] = set()

    def record_check(self, var: str, relationship: str, depth: int = 0) -> None:
        self._checks.add((var, relationship, depth))

    def is_checked(self, var: str, relationship: str, depth: int | None = None) -> bool:
        """True when *relationship* or any ancestor path of it was checked.

        With *depth* given, only checks made against that frame count.
        """
        prefixes = expand_path(relationship)
        return any(
            checked_var == var and checked in prefixes and (depth is None or checked_depth == depth)
            for checked_var, checked, checked_depth in self._checks
        )

    def clear_from_depth(self, depth: int) -> None:
        self._checks = {entry for entry in self._checks if entry[2] < depth}


# ---------------------------------------------------------------------------
# Context value
# ---------------------------------------------------------------------------


@dataclass
class AnalysisContext:
    settings: DetectorSettings = DEFAULT_SETTINGS
    loops: ScopeStack = field(default_factory=ScopeStack)
    provenance: ProvenanceTracker = field(default_factory=ProvenanceTracker)
    checks: DeferredCheckTracker = field(default_factory=DeferredCheckTracker)
    issues: IssueCollector = field(default_factory=IssueCollector)
    # ids of query calls already covered by a reported outer call
    consumed_calls: set[int] = field(default_factory=set)

    def enter_loop(self, node: Node) -> LoopFrame:
        """Push a frame for loop *node* and seed foreach provenance."""
        bound, key = bound_variables(node)
        frame = LoopFrame(
            bound,
            LOOP_KIND_FOR_NODE[node.kind],
            key_variable=key,
            line=node.line,
            depth=self.loops.depth + 1,
        )

        if node.kind is NodeKind.FOREACH:
            seeded = carried_provenance(node.get("iterable"), self.provenance, self.settings)
            for var in bound:
                if seeded is None or len(bound) > 1:
                    self.provenance.forget(var)
                else:
                    self.provenance.record(var, seeded)

        log.debug("enter %s loop at line %d binding %s", frame.kind.value, frame.line, sorted(bound))
        return self.loops.push(frame)

    def leave_loop(self) -> LoopFrame:
        depth = self.loops.depth
        frame = self.loops.pop()
        self.checks.clear_from_depth(depth)
        return frame

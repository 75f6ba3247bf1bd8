"""Inline ``@eagerlint-ignore`` comments.

A marker on the issue's line or the line directly above it suppresses
the issue.  ``// @eagerlint-ignore`` silences every rule;
``// @eagerlint-ignore n-plus-one,query-in-loop`` only the listed ones.
"""

from __future__ import annotations

import re

from eagerlint.analysis.issues import Issue

_MARKER_RE = re.compile(r"@eagerlint-ignore(?:[ \t]+([\w,-]+))?", re.IGNORECASE)


def suppressed_rules(line_text: str) -> frozenset[str] | None:
    """Rule ids a line suppresses; empty set means all, ``None`` means none."""
    m = _MARKER_RE.search(line_text)
    if not m:
        return None
    if not m.group(1):
        return frozenset()
    return frozenset(part.strip() for part in m.group(1).split(",") if part.strip())


def is_line_suppressed(lines: list[str], line: int, rule_id: str) -> bool:
    if line < 1:
        return False
    for index in (line - 1, line - 2):
        if index < 0 or index >= len(lines):
            continue
        rules = suppressed_rules(lines[index])
        if rules is None:
            continue
        if not rules or rule_id in rules:
            return True
    return False


def filter_suppressed(issues: list[Issue], source: str) -> tuple[list[Issue], int]:
    """Drop suppressed issues; returns ``(kept, suppressed_count)``."""
    if "@eagerlint-ignore" not in source.lower():
        return list(issues), 0
    lines = source.split("\n")
    kept = [i for i in issues if not is_line_suppressed(lines, i.line, i.rule_id)]
    return kept, len(issues) - len(kept)

"""Dependency-flow N+1 detection engine."""

from eagerlint.analysis.issues import Issue, IssueKind, LoopKind
from eagerlint.analysis.n1 import analyze
from eagerlint.analysis.settings import DEFAULT_SETTINGS, DetectorSettings

__all__ = ["DEFAULT_SETTINGS", "DetectorSettings", "Issue", "IssueKind", "LoopKind", "analyze"]

"""Human-readable messages and fix recommendations for issues."""

from __future__ import annotations

from eagerlint.analysis.issues import Issue, IssueKind
from eagerlint.analysis.settings import DEFAULT_SETTINGS, DetectorSettings

SEVERITY = {
    IssueKind.RELATIONSHIP_ACCESS: "HIGH",
    IssueKind.QUERY_IN_LOOP: "HIGH",
}

SHORT_DESCRIPTIONS = {
    IssueKind.RELATIONSHIP_ACCESS: "Relationship accessed inside a loop without eager loading",
    IssueKind.QUERY_IN_LOOP: "Query executed inside a loop with per-iteration parameters",
}


def describe(issue: Issue) -> str:
    if issue.kind is IssueKind.RELATIONSHIP_ACCESS:
        access = issue.subject.replace(".", "->")
        return f"Potential N+1 query: accessing '{issue.subject}' (${issue.variable}->{access}) inside {issue.loop_kind.value} loop"
    return f"Query inside {issue.loop_kind.value} loop depends on ${issue.variable}: {issue.subject}"


def is_complex(issue: Issue, settings: DetectorSettings = DEFAULT_SETTINGS) -> bool:
    return issue.chain_length >= settings.complex_chain_threshold


def recommend(issue: Issue, settings: DetectorSettings = DEFAULT_SETTINGS) -> str:
    loop = issue.loop_kind.value
    if issue.kind is IssueKind.RELATIONSHIP_ACCESS:
        return (
            f"Accessing the '{issue.subject}' relationship inside a {loop} loop triggers a separate "
            f"query for each iteration. Eager load it before the loop with "
            f"->with('{issue.subject}') on the query, or ->load('{issue.subject}') / "
            f"->loadMissing('{issue.subject}') on an existing collection."
        )

    text = (
        f"'{issue.subject}' runs once per iteration of the {loop} loop. Fetch the rows for all "
        f"iterations up front (for example ->whereIn('column', $ids)->get()->keyBy('column')) "
        f"and look them up inside the loop, or use chunk()/lazy() for large result sets."
    )
    if is_complex(issue, settings):
        text += (
            f" The chain has {issue.chain_length} calls; consider moving it into a query scope "
            f"or a single joined query."
        )
    return text

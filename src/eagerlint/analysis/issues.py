"""Issue records and the per-file collector."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum


class IssueKind(str, Enum):
    RELATIONSHIP_ACCESS = "relationship-access"
    QUERY_IN_LOOP = "query-in-loop"


class LoopKind(str, Enum):
    FOREACH = "foreach"
    FOR = "for"
    WHILE = "while"
    DO_WHILE = "do-while"


# Suppression / SARIF rule id per issue kind
RULE_IDS = {
    IssueKind.RELATIONSHIP_ACCESS: "n-plus-one",
    IssueKind.QUERY_IN_LOOP: "query-in-loop",
}


@dataclass(frozen=True)
class Issue:
    kind: IssueKind
    line: int
    subject: str
    loop_kind: LoopKind
    variable: str
    chain_length: int = 0

    @property
    def rule_id(self) -> str:
        return RULE_IDS[self.kind]

    def sort_key(self) -> tuple:
        return (self.line, self.kind.value, self.subject, self.variable)

    def to_dict(self) -> dict:
        data = asdict(self)
        data["kind"] = self.kind.value
        data["loop_kind"] = self.loop_kind.value
        data["rule"] = self.rule_id
        return data


class IssueCollector:
    """Accumulates issues for one file, dropping duplicates.

    Relationship issues are unique per ``(variable, path)`` wherever they
    occur; query issues are unique per ``(description, line)``.
    """

    def __init__(self):
        self._issues: list[Issue] = []
        self._seen: set[tuple] = set()

    def add_relationship_issue(self, variable: str, path: str, line: int, loop_kind: LoopKind) -> bool:
        key = (IssueKind.RELATIONSHIP_ACCESS, variable, path)
        if key in self._seen:
            return False
        self._seen.add(key)
        self._issues.append(Issue(IssueKind.RELATIONSHIP_ACCESS, line, path, loop_kind, variable))
        return True

    def add_query_issue(
        self,
        description: str,
        line: int,
        loop_kind: LoopKind,
        variable: str,
        chain_length: int = 0,
    ) -> bool:
        key = (IssueKind.QUERY_IN_LOOP, description, line)
        if key in self._seen:
            return False
        self._seen.add(key)
        self._issues.append(Issue(IssueKind.QUERY_IN_LOOP, line, description, loop_kind, variable, chain_length))
        return True

    def results(self) -> list[Issue]:
        """Issues in emission order."""
        return list(self._issues)

    def __len__(self) -> int:
        return len(self._issues)

"""Tests for SARIF output, messages and the JSON envelope."""

from __future__ import annotations

import json

from eagerlint.analysis.issues import Issue, IssueKind, LoopKind
from eagerlint.analysis.settings import DetectorSettings
from eagerlint.output.formatter import format_table, json_envelope, loc, to_json
from eagerlint.output.messages import describe, is_complex, recommend
from eagerlint.output.sarif import issues_to_sarif, write_sarif
from eagerlint.runner import FileReport

REL_ISSUE = Issue(IssueKind.RELATIONSHIP_ACCESS, 12, "author.team", LoopKind.FOREACH, "post")
QUERY_ISSUE = Issue(IssueKind.QUERY_IN_LOOP, 20, "User::where()->orderBy()->first()", LoopKind.WHILE, "id", 3)


class TestMessages:
    def test_relationship_message(self):
        text = describe(REL_ISSUE)
        assert "'author.team'" in text
        assert "$post->author->team" in text
        assert "foreach loop" in text

    def test_query_message(self):
        assert describe(QUERY_ISSUE) == "Query inside while loop depends on $id: User::where()->orderBy()->first()"

    def test_relationship_recommendation(self):
        text = recommend(REL_ISSUE)
        assert "->with('author.team')" in text
        assert "->loadMissing('author.team')" in text

    def test_complex_chain_hint(self):
        assert is_complex(QUERY_ISSUE)
        assert "3 calls" in recommend(QUERY_ISSUE)
        relaxed = DetectorSettings.from_config({"complex_chain_threshold": 4})
        assert not is_complex(QUERY_ISSUE, relaxed)
        assert "3 calls" not in recommend(QUERY_ISSUE, relaxed)


class TestIssueRecord:
    def test_to_dict(self):
        data = QUERY_ISSUE.to_dict()
        assert data == {
            "kind": "query-in-loop",
            "line": 20,
            "subject": "User::where()->orderBy()->first()",
            "loop_kind": "while",
            "variable": "id",
            "chain_length": 3,
            "rule": "query-in-loop",
        }

    def test_rule_ids(self):
        assert REL_ISSUE.rule_id == "n-plus-one"
        assert QUERY_ISSUE.rule_id == "query-in-loop"


class TestFormatter:
    def test_loc(self):
        assert loc("a.php", 3) == "a.php:3"
        assert loc("a.php") == "a.php"

    def test_format_table(self):
        text = format_table(["a", "bb"], [["x", "y"], ["long", "z"]])
        lines = text.splitlines()
        assert lines[0].startswith("a     bb")
        assert lines[1] == "----  --"
        assert format_table(["a"], []) == "(none)"

    def test_envelope(self):
        env = json_envelope("check", summary={"verdict": "ok"}, issues=[])
        assert env["schema"] == "eagerlint-envelope-v1"
        assert env["command"] == "check"
        assert env["issues"] == []
        assert env["_meta"]["timestamp"].endswith("Z")
        assert json.loads(to_json(env))["summary"] == {"verdict": "ok"}


class TestSarif:
    def _sarif(self):
        reports = [
            FileReport("app/Http/PostController.php", issues=[REL_ISSUE]),
            FileReport("app/Services/Report.php", issues=[QUERY_ISSUE]),
            FileReport("broken.php", error="syntax error at line 3"),
        ]
        return issues_to_sarif(reports)

    def test_document_shape(self):
        sarif = self._sarif()
        assert sarif["version"] == "2.1.0"
        (run,) = sarif["runs"]
        assert run["tool"]["driver"]["name"] == "eagerlint"
        assert {r["id"] for r in run["tool"]["driver"]["rules"]} == {"n-plus-one", "query-in-loop"}
        assert len(run["results"]) == 2

    def test_result_location_and_level(self):
        result = self._sarif()["runs"][0]["results"][0]
        assert result["ruleId"] == "n-plus-one"
        assert result["level"] == "warning"
        location = result["locations"][0]["physicalLocation"]
        assert location["artifactLocation"]["uri"] == "app/Http/PostController.php"
        assert location["region"]["startLine"] == 12

    def test_fingerprint_ignores_line(self):
        moved = Issue(IssueKind.RELATIONSHIP_ACCESS, 40, "author.team", LoopKind.FOREACH, "post")
        a = issues_to_sarif([FileReport("x.php", issues=[REL_ISSUE])])["runs"][0]["results"][0]
        b = issues_to_sarif([FileReport("x.php", issues=[moved])])["runs"][0]["results"][0]
        assert a["partialFingerprints"] == b["partialFingerprints"]

    def test_write_sarif(self, tmp_path):
        out = tmp_path / "out.sarif"
        text = write_sarif(self._sarif(), out)
        assert json.loads(out.read_text(encoding="utf-8")) == json.loads(text)

"""Tests for the ``eagerlint check`` command.

Covers:
1. Clean project -> exit 0
2. N+1 found -> exit 5 with VERDICT line and table
3. JSON envelope and issue rows
4. Explicit file and directory arguments
5. Config excludes and bad config
6. Unparsable files are skipped, not fatal
7. Suppression comments and --no-suppress
8. SARIF output
9. Worker processes give the same result
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent))
from conftest import (
    EAGER_CONTROLLER,
    N_PLUS_ONE_CONTROLLER,
    QUERY_LOOP_SERVICE,
    assert_json_envelope,
    invoke_cli,
    parse_json_output,
)

from eagerlint.config import write_project_config
from eagerlint.exit_codes import EXIT_GATE_FAILURE, EXIT_USAGE

BROKEN = "<?php\nforeach ($posts as $post {\n"


class TestExitCodes:
    def test_clean_project(self, cli_runner, project_factory):
        proj = project_factory({"app/Feed.php": EAGER_CONTROLLER})
        result = invoke_cli(cli_runner, ["check"], cwd=proj)
        assert result.exit_code == 0
        assert "VERDICT: clean -- 1 files checked, 0 issues" in result.output

    def test_issues_found(self, cli_runner, php_project):
        result = invoke_cli(cli_runner, ["check"], cwd=php_project)
        assert result.exit_code == EXIT_GATE_FAILURE
        assert "VERDICT: 2 potential N+1 issues in 2 files" in result.output
        assert "app/Http/Controllers/PostController.php:13" in result.output
        assert "n-plus-one" in result.output
        assert "query-in-loop" in result.output

    def test_no_php_files(self, cli_runner, project_factory):
        proj = project_factory({"README.md": "# nothing\n"})
        result = invoke_cli(cli_runner, ["check"], cwd=proj)
        assert result.exit_code == 0
        assert "VERDICT: No PHP files to check" in result.output


class TestJsonOutput:
    def test_envelope(self, cli_runner, php_project):
        result = invoke_cli(cli_runner, ["check"], cwd=php_project, json_mode=True)
        data = parse_json_output(result, "check", exit_code=EXIT_GATE_FAILURE)
        assert_json_envelope(data, "check")
        summary = data["summary"]
        assert summary["total"] == 2
        assert summary["files_checked"] == 3
        assert summary["files_skipped"] == 0
        assert summary["by_kind"] == {"query-in-loop": 1, "relationship-access": 1}

    def test_issue_rows(self, cli_runner, php_project):
        result = invoke_cli(cli_runner, ["check"], cwd=php_project, json_mode=True)
        data = parse_json_output(result, "check", exit_code=EXIT_GATE_FAILURE)
        rows = {row["path"]: row for row in data["issues"]}
        rel = rows["app/Http/Controllers/PostController.php"]
        assert rel["kind"] == "relationship-access"
        assert rel["variable"] == "post"
        assert rel["subject"] == "author"
        assert rel["line"] == 13
        assert "->with('author')" in rel["recommendation"]
        query = rows["app/Services/Report.php"]
        assert query["subject"] == "User::where()->first()"
        assert query["location"] == "app/Services/Report.php:13"

    def test_clean_json(self, cli_runner, project_factory):
        proj = project_factory({"app/Feed.php": EAGER_CONTROLLER})
        result = invoke_cli(cli_runner, ["check"], cwd=proj, json_mode=True)
        data = parse_json_output(result, "check")
        assert data["summary"]["total"] == 0
        assert data["issues"] == []


class TestPathArguments:
    def test_single_file(self, cli_runner, php_project):
        result = invoke_cli(cli_runner, ["check", "app/Services/Report.php"], cwd=php_project, json_mode=True)
        data = parse_json_output(result, "check", exit_code=EXIT_GATE_FAILURE)
        assert data["summary"]["files_checked"] == 1
        assert [row["kind"] for row in data["issues"]] == ["query-in-loop"]

    def test_directory(self, cli_runner, php_project):
        result = invoke_cli(cli_runner, ["check", "app/Http"], cwd=php_project, json_mode=True)
        data = parse_json_output(result, "check", exit_code=EXIT_GATE_FAILURE)
        assert data["summary"]["files_checked"] == 2
        assert {row["path"] for row in data["issues"]} == {"app/Http/Controllers/PostController.php"}

    def test_missing_path_is_ignored(self, cli_runner, php_project):
        result = invoke_cli(cli_runner, ["check", "nope.php"], cwd=php_project)
        assert result.exit_code == 0
        assert "No PHP files to check" in result.output


class TestConfig:
    def test_excludes_apply(self, cli_runner, php_project):
        write_project_config({"exclude": ["app/Services/**", "app/Http/Controllers/PostController.php"]}, php_project)
        result = invoke_cli(cli_runner, ["check"], cwd=php_project)
        assert result.exit_code == 0

    def test_extended_vocabulary(self, cli_runner, project_factory):
        proj = project_factory({"app/Post.php": N_PLUS_ONE_CONTROLLER})
        write_project_config({"excluded_names": ["author"]}, proj)
        result = invoke_cli(cli_runner, ["check"], cwd=proj)
        assert result.exit_code == 0

    def test_bad_config_is_usage_error(self, cli_runner, php_project):
        write_project_config({"complex_chain_threshold": "high"}, php_project)
        result = invoke_cli(cli_runner, ["check"], cwd=php_project)
        assert result.exit_code == EXIT_USAGE
        assert "complex_chain_threshold" in result.output


class TestSkipAndSuppress:
    def test_unparsable_file_skipped(self, cli_runner, project_factory):
        proj = project_factory({"app/Broken.php": BROKEN, "app/Report.php": QUERY_LOOP_SERVICE})
        result = invoke_cli(cli_runner, ["check"], cwd=proj, json_mode=True)
        data = parse_json_output(result, "check", exit_code=EXIT_GATE_FAILURE)
        assert data["summary"]["files_checked"] == 1
        assert data["summary"]["files_skipped"] == 1
        assert data["skipped"][0]["path"] == "app/Broken.php"
        assert "syntax error" in data["skipped"][0]["error"]

    def test_only_unparsable_files_is_clean(self, cli_runner, project_factory):
        proj = project_factory({"app/Broken.php": BROKEN})
        result = invoke_cli(cli_runner, ["check"], cwd=proj)
        assert result.exit_code == 0
        assert "Skipped 1 unparsable file" in result.output

    def test_suppression_comment(self, cli_runner, project_factory):
        source = N_PLUS_ONE_CONTROLLER.replace(
            "echo $post->author->name;", "echo $post->author->name; // @eagerlint-ignore n-plus-one"
        )
        proj = project_factory({"app/Post.php": source})
        result = invoke_cli(cli_runner, ["check"], cwd=proj)
        assert result.exit_code == 0
        assert "1 issue suppressed" in result.output

        result = invoke_cli(cli_runner, ["check", "--no-suppress"], cwd=proj)
        assert result.exit_code == EXIT_GATE_FAILURE


class TestSarifAndJobs:
    def test_sarif_file(self, cli_runner, php_project):
        out = php_project / "out.sarif"
        result = invoke_cli(cli_runner, ["check", "--sarif", str(out)], cwd=php_project)
        assert result.exit_code == EXIT_GATE_FAILURE
        assert "SARIF written to" in result.output
        sarif = json.loads(out.read_text(encoding="utf-8"))
        rule_ids = sorted(r["ruleId"] for r in sarif["runs"][0]["results"])
        assert rule_ids == ["n-plus-one", "query-in-loop"]

    def test_jobs_match_sequential(self, cli_runner, php_project):
        seq = invoke_cli(cli_runner, ["check"], cwd=php_project, json_mode=True)
        par = invoke_cli(cli_runner, ["check", "--jobs", "2"], cwd=php_project, json_mode=True)
        seq_data = parse_json_output(seq, "check", exit_code=EXIT_GATE_FAILURE)
        par_data = parse_json_output(par, "check", exit_code=EXIT_GATE_FAILURE)
        assert seq_data["issues"] == par_data["issues"]

    def test_limit(self, cli_runner, php_project):
        result = invoke_cli(cli_runner, ["check", "--limit", "1"], cwd=php_project)
        assert "(+1 more, use --limit 0 to list all)" in result.output

"""Detect N+1 access patterns in PHP files.

Parses each file with tree-sitter and runs the dependency-flow detector:
relationship access inside loops without eager loading, and queries whose
parameters depend on the loop variable.

Exit codes:
  0  No issues found.
  5  One or more issues found (EXIT_GATE_FAILURE).
"""

from __future__ import annotations

import logging
from collections import Counter
from pathlib import Path

import click

from eagerlint.config import exclude_patterns, find_project_root, load_project_config
from eagerlint.analysis.settings import DetectorSettings
from eagerlint.discovery import discover_php_files, matches_glob
from eagerlint.exit_codes import EXIT_GATE_FAILURE
from eagerlint.output.formatter import format_table, json_envelope, loc, to_json
from eagerlint.output.messages import describe, recommend
from eagerlint.output.sarif import issues_to_sarif, write_sarif
from eagerlint.runner import analyze_paths

log = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# File selection
# ---------------------------------------------------------------------------


def _relative(path: Path, root: Path) -> str:
    try:
        return path.resolve().relative_to(root).as_posix()
    except ValueError:
        return path.resolve().as_posix()


def collect_files(paths: tuple[str, ...], root: Path, exclude: list[str]) -> list[str]:
    """Expand CLI *paths* (files or directories) into PHP files relative to *root*."""
    if not paths:
        return discover_php_files(root, exclude)

    candidates: set[str] = set()
    for raw in paths:
        path = Path(raw)
        if path.is_dir():
            base = _relative(path, root)
            for rel in discover_php_files(path):
                candidates.add(rel if base in ("", ".") else f"{base}/{rel}")
        elif path.is_file():
            # explicitly named files are checked even without a .php suffix
            candidates.add(_relative(path, root))
        else:
            log.warning("no such file or directory: %s", raw)
    return sorted(f for f in candidates if not any(matches_glob(f, pat) for pat in exclude))


def _issue_rows(reports, settings: DetectorSettings) -> list[dict]:
    rows = []
    for report in reports:
        for issue in report.issues:
            row = issue.to_dict()
            row["path"] = report.path
            row["location"] = loc(report.path, issue.line)
            row["message"] = describe(issue)
            row["recommendation"] = recommend(issue, settings)
            rows.append(row)
    return rows


# ---------------------------------------------------------------------------
# CLI command
# ---------------------------------------------------------------------------


@click.command("check")
@click.argument("paths", nargs=-1, type=click.Path())
@click.option("--jobs", "-j", default=1, show_default=True, type=click.IntRange(min=1),
              help="Analyze files in this many worker processes.")
@click.option("--limit", "-n", default=50, show_default=True, type=click.IntRange(min=0),
              help="Max issues to list in text output (0 = all).")
@click.option("--sarif", "sarif_path", default=None, type=click.Path(dir_okay=False),
              help="Also write SARIF 2.1.0 results to this file.")
@click.option("--no-suppress", is_flag=True, help="Ignore @eagerlint-ignore comments.")
@click.pass_context
def check(ctx, paths, jobs, limit, sarif_path, no_suppress):
    """Find N+1 queries: lazy relationship access and queries inside loops.

    With no PATHS, every PHP file in the project (found via git, falling
    back to a directory walk) is checked.  Excludes from
    ``.eagerlint/config.json`` apply.

    \b
    Exit codes:
      0  No issues found.
      5  One or more issues found.

    \b
    Examples:
      eagerlint check
      eagerlint check app/Http/Controllers app/Services/Report.php
      eagerlint --json check --jobs 4
      eagerlint check --sarif eagerlint.sarif
    """
    json_mode = ctx.obj.get("json") if ctx.obj else False

    root = find_project_root()
    config = load_project_config(root)
    settings = DetectorSettings.from_config(config)
    exclude = exclude_patterns(config)

    files = collect_files(paths, root, exclude)

    if not files:
        if json_mode:
            click.echo(
                to_json(
                    json_envelope(
                        "check",
                        summary={
                            "verdict": "No PHP files to check",
                            "total": 0,
                            "files_checked": 0,
                            "files_skipped": 0,
                            "by_kind": {},
                        },
                        issues=[],
                        skipped=[],
                    )
                )
            )
        else:
            click.echo("VERDICT: No PHP files to check")
        return

    reports = analyze_paths(files, settings, jobs=jobs, root=str(root), suppress=not no_suppress)

    checked = [r for r in reports if not r.skipped]
    skipped = [r for r in reports if r.skipped]
    rows = _issue_rows(reports, settings)
    total = len(rows)
    by_kind = dict(sorted(Counter(row["kind"] for row in rows).items()))
    suppressed = sum(r.suppressed for r in reports)

    if total == 0:
        verdict = f"clean -- {len(checked)} files checked, 0 issues"
    else:
        n_files = len({row["path"] for row in rows})
        verdict = (
            f"{total} potential N+1 issue{'s' if total != 1 else ''} "
            f"in {n_files} file{'s' if n_files != 1 else ''}"
        )

    if sarif_path:
        write_sarif(issues_to_sarif(reports, settings), sarif_path)

    if json_mode:
        click.echo(
            to_json(
                json_envelope(
                    "check",
                    summary={
                        "verdict": verdict,
                        "total": total,
                        "files_checked": len(checked),
                        "files_skipped": len(skipped),
                        "suppressed": suppressed,
                        "by_kind": by_kind,
                    },
                    issues=rows,
                    skipped=[{"path": r.path, "error": r.error} for r in skipped],
                )
            )
        )
    else:
        click.echo(f"VERDICT: {verdict}")
        if rows:
            click.echo("")
            shown = rows[:limit] if limit else rows
            table = [
                [row["location"], row["rule"], row["loop_kind"], f"${row['variable']}", row["subject"]]
                for row in shown
            ]
            click.echo(format_table(["location", "rule", "loop", "var", "subject"], table))
            if limit and total > limit:
                click.echo(f"(+{total - limit} more, use --limit 0 to list all)")
        if skipped:
            click.echo("")
            click.echo(f"Skipped {len(skipped)} unparsable file{'s' if len(skipped) != 1 else ''}:")
            for r in skipped:
                click.echo(f"  {r.path}  {r.error}")
        if suppressed:
            click.echo(f"{suppressed} issue{'s' if suppressed != 1 else ''} suppressed by @eagerlint-ignore")
        if sarif_path:
            click.echo(f"SARIF written to {sarif_path}")

    log.debug("check finished: %d issue(s) in %d file(s)", total, len(files))

    if total:
        ctx.exit(EXIT_GATE_FAILURE)

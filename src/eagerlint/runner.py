"""Run the detector over files on disk.

Each file gets its own parse and its own analysis context, so files are
independent and can be spread over worker processes.  A file that cannot
be read or parsed is logged and reported as skipped; it never aborts the
run.
"""

from __future__ import annotations

import logging
from concurrent.futures import ProcessPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path

from eagerlint.analysis import DEFAULT_SETTINGS, DetectorSettings, Issue, analyze
from eagerlint.suppression import filter_suppressed
from eagerlint.tree.php import ParseError, parse_php

log = logging.getLogger(__name__)


@dataclass
class FileReport:
    path: str
    issues: list[Issue] = field(default_factory=list)
    error: str | None = None
    suppressed: int = 0

    @property
    def skipped(self) -> bool:
        return self.error is not None


def analyze_source(source: bytes | str, settings: DetectorSettings = DEFAULT_SETTINGS) -> list[Issue]:
    """Parse PHP *source* and return its issues sorted by line."""
    tree = parse_php(source)
    return sorted(analyze(tree, settings), key=Issue.sort_key)


def analyze_file(
    path: str,
    settings: DetectorSettings = DEFAULT_SETTINGS,
    root: str | None = None,
    suppress: bool = True,
) -> FileReport:
    """Analyze one file.  *path* is reported as given, read relative to *root*."""
    full = Path(root) / path if root else Path(path)
    try:
        source = full.read_bytes()
    except OSError as exc:
        log.warning("skipping %s: %s", path, exc)
        return FileReport(path, error=f"unreadable: {exc.strerror or exc}")

    try:
        issues = analyze_source(source, settings)
    except ParseError as exc:
        log.warning("skipping %s: %s", path, exc)
        return FileReport(path, error=str(exc))
    except RecursionError:
        log.warning("skipping %s: nesting too deep", path)
        return FileReport(path, error="nesting too deep")

    suppressed = 0
    if suppress:
        issues, suppressed = filter_suppressed(issues, source.decode("utf-8", errors="replace"))
    log.debug("%s: %d issue(s), %d suppressed", path, len(issues), suppressed)
    return FileReport(path, issues=issues, suppressed=suppressed)


def analyze_paths(
    paths: list[str],
    settings: DetectorSettings = DEFAULT_SETTINGS,
    jobs: int = 1,
    root: str | None = None,
    suppress: bool = True,
) -> list[FileReport]:
    """Analyze *paths* sequentially or with *jobs* worker processes.

    Reports come back sorted by path regardless of completion order.
    """
    if jobs <= 1 or len(paths) <= 1:
        reports = [analyze_file(p, settings, root, suppress) for p in paths]
    else:
        reports = []
        with ProcessPoolExecutor(max_workers=jobs) as executor:
            futures = {executor.submit(analyze_file, p, settings, root, suppress): p for p in paths}
            for future in as_completed(futures):
                reports.append(future.result())
    reports.sort(key=lambda r: r.path)
    return reports

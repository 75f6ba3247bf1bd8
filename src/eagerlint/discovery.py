"""PHP file discovery using git ls-files with fallback to os.walk."""

from __future__ import annotations

import fnmatch
import os
import re
import subprocess
from pathlib import Path

PHP_EXTENSIONS = frozenset({".php"})

# Blade templates are compiled views, not analyzable PHP
SKIP_SUFFIXES = (".blade.php",)

# Directories to skip (both for git output and os.walk)
SKIP_DIRS = frozenset({
    ".git", ".hg", ".svn", "node_modules", "vendor",
    ".idea", ".vscode", ".phpunit.cache", ".php-cs-fixer.cache",
    "storage", "bootstrap/cache", "public/build",
    "dist", "build", "target",
    ".eagerlint",
})

MAX_FILE_SIZE = 1_000_000  # 1MB


def matches_glob(file_path: str, pattern: str) -> bool:
    """Check if a file path matches a glob pattern.

    Supports ``**`` for matching zero or more directories, unlike plain
    ``fnmatch`` which treats ``*`` as matching everything including ``/``.
    """
    norm = file_path.replace("\\", "/")
    pat = pattern.replace("\\", "/")

    if "**" not in pat:
        return fnmatch.fnmatch(norm, pat)

    parts: list[str] = []
    i = 0
    while i < len(pat):
        c = pat[i]
        if c == "*":
            if pat[i : i + 3] == "**/":
                parts.append("(?:.+/)?")
                i += 3
            elif pat[i : i + 2] == "**":
                parts.append(".*")
                i += 2
            else:
                parts.append("[^/]*")
                i += 1
        elif c == "?":
            parts.append("[^/]")
            i += 1
        else:
            parts.append(re.escape(c))
            i += 1
    return re.match("^" + "".join(parts) + "$", norm) is not None


def _in_skipped_dir(rel_path: str) -> bool:
    parts = rel_path.split("/")[:-1]
    for i, part in enumerate(parts):
        if part in SKIP_DIRS or "/".join(parts[: i + 1]) in SKIP_DIRS:
            return True
    return False


def is_php_file(rel_path: str) -> bool:
    name = os.path.basename(rel_path).lower()
    if name.endswith(SKIP_SUFFIXES):
        return False
    _, ext = os.path.splitext(name)
    return ext in PHP_EXTENSIONS


def _git_ls_files(root: Path) -> list[str] | None:
    """Try to list files using git ls-files. Returns None if git unavailable."""
    try:
        result = subprocess.run(
            ["git", "ls-files", "--cached", "--others", "--exclude-standard"],
            cwd=str(root),
            capture_output=True,
            text=True,
            timeout=30,
        )
        if result.returncode != 0:
            return None
        return [p.strip() for p in result.stdout.splitlines() if p.strip()]
    except (FileNotFoundError, subprocess.TimeoutExpired):
        return None


def _walk_files(root: Path) -> list[str]:
    """Fallback file discovery using os.walk, respecting common ignore dirs."""
    result = []
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = [d for d in dirnames if d not in SKIP_DIRS and not d.startswith(".")]
        for fname in filenames:
            full = os.path.join(dirpath, fname)
            try:
                rel = os.path.relpath(full, root).replace("\\", "/")
            except (ValueError, OSError):
                continue
            result.append(rel)
    return result


def discover_php_files(root: Path, exclude: list[str] | None = None) -> list[str]:
    """Discover PHP source files under *root*.

    Uses git ls-files when available, falls back to os.walk.  Drops files
    in vendor/tooling directories, oversized files and anything matching
    an *exclude* glob.  Returns sorted relative paths with forward slashes.
    """
    root = Path(root).resolve()
    raw = _git_ls_files(root)
    if raw is None:
        raw = _walk_files(root)

    exclude = exclude or []
    kept = []
    for rel_path in raw:
        rel_path = rel_path.replace("\\", "/")
        if not is_php_file(rel_path) or _in_skipped_dir(rel_path):
            continue
        if any(matches_glob(rel_path, pat) for pat in exclude):
            continue
        try:
            if (root / rel_path).stat().st_size > MAX_FILE_SIZE:
                continue
        except OSError:
            continue
        kept.append(rel_path)
    kept.sort()
    return kept

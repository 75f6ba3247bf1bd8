"""Per-project configuration (.eagerlint/config.json)."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from eagerlint.analysis.settings import DetectorSettings

log = logging.getLogger(__name__)

CONFIG_DIR = ".eagerlint"
CONFIG_NAME = "config.json"


def find_project_root(start: str = ".") -> Path:
    """Find the project root by looking for .git directory."""
    current = Path(start).resolve()
    while current != current.parent:
        if (current / ".git").exists():
            return current
        current = current.parent
    return Path(start).resolve()


def config_path(project_root: Path) -> Path:
    return project_root / CONFIG_DIR / CONFIG_NAME


def load_project_config(project_root: Path) -> dict:
    """Load .eagerlint/config.json if it exists.

    Returns an empty dict if the file is missing or malformed.
    """
    path = config_path(project_root)
    if not path.exists():
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        log.warning("ignoring malformed %s: %s", path, exc)
        return {}
    if not isinstance(data, dict):
        log.warning("ignoring %s: top level must be an object", path)
        return {}
    return data


def write_project_config(config: dict, project_root: Path | None = None) -> Path:
    """Write (or update) .eagerlint/config.json.

    Merges *config* into the existing config so existing keys are preserved.
    Returns the path of the written file.
    """
    if project_root is None:
        project_root = find_project_root()
    (project_root / CONFIG_DIR).mkdir(exist_ok=True)
    path = config_path(project_root)
    existing = load_project_config(project_root)
    existing.update(config)
    path.write_text(json.dumps(existing, indent=2), encoding="utf-8")
    return path


def exclude_patterns(config: dict) -> list[str]:
    patterns = config.get("exclude", [])
    if not isinstance(patterns, list):
        return []
    return [p for p in patterns if isinstance(p, str)]


def load_settings(project_root: Path) -> DetectorSettings:
    """Detector settings for *project_root*; raises ``ConfigError`` on bad shapes."""
    return DetectorSettings.from_config(load_project_config(project_root))

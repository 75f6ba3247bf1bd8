"""SARIF 2.1.0 output for GitHub code scanning integration.

Usage::

    from eagerlint.output.sarif import issues_to_sarif, write_sarif

    sarif = issues_to_sarif(reports)
    write_sarif(sarif, "eagerlint.sarif")
"""

from __future__ import annotations

import hashlib as _hashlib
import json as _json
from pathlib import Path

from eagerlint.analysis.issues import RULE_IDS, IssueKind
from eagerlint.analysis.settings import DEFAULT_SETTINGS, DetectorSettings
from eagerlint.output.messages import SEVERITY, SHORT_DESCRIPTIONS, describe, recommend

_SARIF_VERSION = "2.1.0"
_SARIF_SCHEMA = "https://raw.githubusercontent.com/oasis-tcs/sarif-spec/main/sarif-2.1/schema/sarif-schema-2.1.0.json"
_TOOL_NAME = "eagerlint"

_LEVEL_MAP = {
    "CRITICAL": "error",
    "HIGH": "warning",
    "WARNING": "warning",
    "MEDIUM": "note",
    "LOW": "note",
    "INFO": "note",
}


def _get_version() -> str:
    from eagerlint import __version__

    return __version__


def _to_level(severity: str) -> str:
    """Map a severity string to a SARIF level."""
    return _LEVEL_MAP.get(severity.upper(), "note")


def _physical_location(file_path: str, line: int | None = None) -> dict:
    """Build a SARIF physicalLocation object with a forward-slash URI."""
    loc: dict = {"artifactLocation": {"uri": file_path.replace("\\", "/")}}
    if line is not None and line > 0:
        loc["region"] = {"startLine": line}
    return loc


def _location(file_path: str, line: int | None = None) -> dict:
    return {"physicalLocation": _physical_location(file_path, line)}


def to_sarif(tool_name: str, version: str, rules: list[dict], results: list[dict]) -> dict:
    """Build a complete SARIF 2.1.0 JSON document.

    Each rule dict carries ``id`` and ``shortDescription`` (optionally
    ``defaultLevel`` and ``properties``); each result carries ``ruleId``,
    ``level``, ``message`` and ``locations``.
    """
    driver: dict = {
        "name": tool_name,
        "version": version,
        "rules": [_build_rule(r) for r in rules],
    }
    return {
        "$schema": _SARIF_SCHEMA,
        "version": _SARIF_VERSION,
        "runs": [{"tool": {"driver": driver}, "results": results}],
    }


def _build_rule(rule: dict) -> dict:
    """Normalise a rule dict into the SARIF rule schema."""
    out: dict = {
        "id": rule["id"],
        "shortDescription": {"text": rule["shortDescription"]},
    }
    if "defaultLevel" in rule:
        out["defaultConfiguration"] = {"level": rule["defaultLevel"]}
    if "properties" in rule:
        out["properties"] = rule["properties"]
    return out


def write_sarif(data: dict, output_path: str | Path | None = None) -> str:
    """Serialise *data* to JSON and optionally write it to *output_path*.

    Returns the JSON string in all cases.
    """
    text = _json.dumps(data, indent=2, default=str)
    if output_path is not None:
        Path(output_path).write_text(text, encoding="utf-8")
    return text


def _fingerprint(path: str, rule_id: str, variable: str, subject: str) -> str:
    # line-independent so findings survive unrelated edits above them
    payload = "|".join([path, rule_id, variable, subject])
    return _hashlib.sha1(payload.encode("utf-8")).hexdigest()


def issues_to_sarif(reports, settings: DetectorSettings = DEFAULT_SETTINGS) -> dict:
    """Convert per-file reports (see :mod:`eagerlint.runner`) to SARIF."""
    rules = [
        {
            "id": RULE_IDS[kind],
            "shortDescription": SHORT_DESCRIPTIONS[kind],
            "defaultLevel": _to_level(SEVERITY[kind]),
            "properties": {"tags": ["performance", "database"]},
        }
        for kind in IssueKind
    ]

    results: list[dict] = []
    for report in reports:
        for issue in report.issues:
            results.append(
                {
                    "ruleId": issue.rule_id,
                    "level": _to_level(SEVERITY[issue.kind]),
                    "message": {"text": f"{describe(issue)}. {recommend(issue, settings)}"},
                    "locations": [_location(report.path, issue.line)],
                    "properties": {
                        "variable": issue.variable,
                        "subject": issue.subject,
                        "loop_kind": issue.loop_kind.value,
                    },
                    "partialFingerprints": {
                        "eagerlint/v1": _fingerprint(report.path, issue.rule_id, issue.variable, issue.subject),
                    },
                }
            )
    return to_sarif(_TOOL_NAME, _get_version(), rules, results)

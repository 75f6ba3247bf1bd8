"""Effective detector vocabularies and thresholds.

:class:`DetectorSettings` bundles every heuristic set the classifiers
consult so that a project config can extend the built-in vocabularies
without touching module globals.
"""

from __future__ import annotations

from dataclasses import dataclass, fields

from eagerlint.analysis import vocabulary as vocab
from eagerlint.exit_codes import ConfigError

# config key -> settings field for the list-valued extensions
_EXTENSION_KEYS = (
    "eager_load_methods",
    "merge_load_methods",
    "presence_check_methods",
    "excluded_names",
    "utility_classes",
    "query_facades",
    "batch_methods",
)


@dataclass(frozen=True)
class DetectorSettings:
    eager_load_methods: frozenset = vocab.EAGER_LOAD_METHODS
    merge_load_methods: frozenset = vocab.MERGE_LOAD_METHODS
    presence_check_methods: frozenset = vocab.PRESENCE_CHECK_METHODS
    excluded_names: frozenset = vocab.EXCLUDED_NAMES
    utility_classes: frozenset = vocab.UTILITY_CLASSES | vocab.UTILITY_FQNS
    query_facades: frozenset = vocab.QUERY_FACADES | vocab.QUERY_FACADE_FQNS
    batch_methods: frozenset = vocab.BATCH_METHODS
    query_execution_methods: frozenset = vocab.QUERY_EXECUTION_METHODS
    fetch_methods: frozenset = vocab.FETCH_METHODS
    filter_methods: frozenset = vocab.FILTER_METHODS
    complex_chain_threshold: int = vocab.COMPLEX_CHAIN_THRESHOLD

    @classmethod
    def from_config(cls, config: dict | None) -> "DetectorSettings":
        """Build settings from a parsed ``.eagerlint/config.json`` dict.

        List-valued keys extend the defaults; unknown keys are ignored so
        that ``exclude`` and future keys can share the same file.
        """
        if not config:
            return cls()
        if not isinstance(config, dict):
            raise ConfigError("config must be a JSON object")

        overrides: dict = {}
        for key in _EXTENSION_KEYS:
            if key not in config:
                continue
            extra = config[key]
            if not isinstance(extra, list) or not all(isinstance(v, str) for v in extra):
                raise ConfigError(f"config key '{key}' must be a list of strings")
            if key == "excluded_names":
                extra = [v.lower() for v in extra]
            overrides[key] = getattr(cls, key) | frozenset(extra)

        if "complex_chain_threshold" in config:
            threshold = config["complex_chain_threshold"]
            # bool is an int subclass
            if isinstance(threshold, bool) or not isinstance(threshold, int) or threshold < 1:
                raise ConfigError("config key 'complex_chain_threshold' must be a positive integer")
            overrides["complex_chain_threshold"] = threshold

        return cls(**overrides)

    def to_dict(self) -> dict:
        out: dict = {}
        for f in fields(self):
            value = getattr(self, f.name)
            out[f.name] = sorted(value) if isinstance(value, frozenset) else value
        return out


DEFAULT_SETTINGS = DetectorSettings()

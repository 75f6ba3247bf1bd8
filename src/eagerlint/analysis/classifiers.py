"""Relationship and query heuristics.

Both classifiers always return a plain bool.  Rejections are ordered and
conservative; anything that survives them is accepted.
"""

from __future__ import annotations

from eagerlint.analysis import vocabulary as vocab
from eagerlint.analysis.chains import class_symbol, member_path
from eagerlint.analysis.settings import DEFAULT_SETTINGS, DetectorSettings
from eagerlint.tree.nodes import Node, NodeKind


# ---------------------------------------------------------------------------
# Relationship classifier
# ---------------------------------------------------------------------------


def _camel_prefixed(name: str, prefixes) -> bool:
    """``isActive`` / ``hasRole`` style: prefix followed by an uppercase letter."""
    for prefix in prefixes:
        if len(name) > len(prefix) and name.startswith(prefix) and name[len(prefix)].isupper():
            return True
    return False


def _rejected_structurally(name: str, settings: DetectorSettings) -> bool:
    lowered = name.lower()
    if lowered in settings.excluded_names:
        return True
    if lowered.endswith(vocab.SCALAR_SUFFIXES):
        return True
    if lowered.startswith(vocab.BOOLEAN_PREFIXES) or _camel_prefixed(name, vocab.BOOLEAN_CAMEL_PREFIXES):
        return True
    if lowered.endswith(vocab.AGGREGATE_SUFFIXES):
        return True
    if lowered.startswith(vocab.DERIVED_PREFIXES):
        return True
    return False


def _rejected_as_trivial(name: str) -> bool:
    return len(name) <= 1 or name.startswith("_")


def looks_like_relationship_property(name: str | None, settings: DetectorSettings = DEFAULT_SETTINGS) -> bool:
    if not name:
        return False
    if _rejected_structurally(name, settings):
        return False
    return not _rejected_as_trivial(name)


def looks_like_relationship_method(name: str | None, settings: DetectorSettings = DEFAULT_SETTINGS) -> bool:
    if not name:
        return False
    if _rejected_structurally(name, settings):
        return False
    if _camel_prefixed(name, ("get", "set")):
        return False
    if name.endswith("Attribute") or name.startswith(("scope", "boot")):
        return False
    if (
        name in settings.query_execution_methods
        or name in settings.filter_methods
        or name in settings.batch_methods
        or name in settings.eager_load_methods
        or name in settings.presence_check_methods
    ):
        return False
    return not _rejected_as_trivial(name)


# ---------------------------------------------------------------------------
# Query classifier
# ---------------------------------------------------------------------------


def is_query_execution_call(name: str | None, settings: DetectorSettings = DEFAULT_SETTINGS) -> bool:
    if not name:
        return False
    return name in settings.query_execution_methods and name not in settings.batch_methods


def is_filter_call(name: str | None, settings: DetectorSettings = DEFAULT_SETTINGS) -> bool:
    if not name:
        return False
    return name in settings.filter_methods or name.startswith("where")


def chain_has_batch_call(calls: list[Node], settings: DetectorSettings = DEFAULT_SETTINGS) -> bool:
    return any(call.name in settings.batch_methods for call in calls)


def is_data_entity_symbol(symbol: str | None, settings: DetectorSettings = DEFAULT_SETTINGS) -> bool:
    """Whether a class reference looks like a queryable data entity."""
    if not symbol:
        return False
    short = symbol.rsplit("\\", 1)[-1]
    if symbol in settings.query_facades or short in settings.query_facades:
        return True
    if symbol in settings.utility_classes or short in settings.utility_classes:
        return False
    return short[:1].isupper()


def originates_from_data_source(
    root: Node | None,
    calls: list[Node],
    settings: DetectorSettings = DEFAULT_SETTINGS,
) -> bool:
    """Whether the chain rooted at *root* plausibly talks to the database."""
    if root is None:
        return False

    if root.kind is NodeKind.STATIC_CALL:
        return is_data_entity_symbol(class_symbol(root), settings)

    if root.kind is NodeKind.PROPERTY_FETCH:
        _, segments = member_path(root)
        name, _ = segments[-1]
        return looks_like_relationship_property(name, settings)

    if root.kind is NodeKind.VARIABLE:
        names = [call.name for call in calls]
        has_fetch = any(n in settings.fetch_methods for n in names)
        has_filter = any(is_filter_call(n, settings) for n in names)
        return has_fetch and has_filter

    return False

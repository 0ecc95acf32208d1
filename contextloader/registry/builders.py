"""
Registry builders.

Each builder is a pure function ``(artifacts, context=None) -> dict`` that
folds a list of validated artifacts into one registry. Builders never keep
state between calls and never mutate their input: every call rebuilds the
registry from scratch.

Entries that are None or not records are ignored by every builder.

| Builder                     | Key                  | Conflict policy             |
|-----------------------------|----------------------|-----------------------------|
| build_flat_registry         | name                 | last wins                   |
| build_namespaced_registry   | (namespace, name)    | last wins per pair          |
| build_hierarchical_registry | name split on "."    | deep assign, last leaf wins |
| build_event_registry        | name                 | append in discovery order   |
| build_feature_registries    | whole manifest       | deep merge, last leaf wins  |
"""
from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping, Sequence
from typing import Any

from ..context import get_logger
from ..validation import is_callable, is_record

Artifact = Mapping[str, Any]
Registry = dict[str, Any]
RegistryBuilder = Callable[..., Registry]

FEATURE_SUB_REGISTRIES: tuple[str, ...] = (
    "typeComposers",
    "queries",
    "mutations",
    "resolvers",
)


# =============================================================================
# Helpers
# =============================================================================


def _records(artifacts: Iterable[Any] | None) -> list[Artifact]:
    return [a for a in (artifacts or []) if is_record(a)]


def _named(artifacts: Iterable[Any] | None, key: str = "name") -> list[Artifact]:
    return [a for a in _records(artifacts) if isinstance(a.get(key), str)]


def deep_merge(left: Mapping[str, Any], right: Mapping[str, Any]) -> dict[str, Any]:
    """
    Merge two mappings recursively, right-hand values winning at the leaves.

    Nested mappings present on both sides are merged; any other collision
    takes the right value. Neither input is modified.
    """
    merged: dict[str, Any] = dict(left)
    for key, value in right.items():
        existing = merged.get(key)
        if isinstance(existing, Mapping) and isinstance(value, Mapping):
            merged[key] = deep_merge(existing, value)
        else:
            merged[key] = value
    return merged


def assoc_path(path: Sequence[str], value: Any, tree: Mapping[str, Any]) -> dict[str, Any]:
    """
    Return a copy of tree with value set at path.

    Missing or non-mapping intermediate nodes are replaced by new dicts.
    """
    if not path:
        return value
    head, *rest = path
    result = dict(tree)
    if rest:
        child = tree.get(head)
        result[head] = assoc_path(rest, value, child if isinstance(child, Mapping) else {})
    else:
        result[head] = value
    return result


# =============================================================================
# Flat Registries
# =============================================================================


def build_flat_registry(artifacts: Iterable[Any] | None, context: Any = None) -> Registry:
    """
    Index artifacts by ``name``; later artifacts replace earlier ones.

    Example:
        >>> build_flat_registry([{"name": "foo", "value": 1}, {"name": "bar", "value": 2}])
        {'foo': {'name': 'foo', 'value': 1}, 'bar': {'name': 'bar', 'value': 2}}
    """
    return {a["name"]: a for a in _named(artifacts)}


def build_flat_registry_by(key: str) -> RegistryBuilder:
    """Create a flat builder keyed by another string attribute (e.g. ``modelName``)."""

    def builder(artifacts: Iterable[Any] | None, context: Any = None) -> Registry:
        return {a[key]: a for a in _named(artifacts, key)}

    builder.__name__ = f"build_flat_registry_by_{key}"
    return builder


def build_flat_registry_with_warning(
    artifacts: Iterable[Any] | None,
    context: Any = None,
    *,
    label: str = "registry",
) -> Registry:
    """
    Flat-by-name builder that logs a warning for each redefined name.

    The warning goes to the context logger (see ``get_logger``); the
    outcome is the same as ``build_flat_registry``.
    """
    log = get_logger(context)
    registry: Registry = {}
    for artifact in _named(artifacts):
        name = artifact["name"]
        if name in registry:
            log.warning(f"[{label}] Duplicate name: {name}")
        registry[name] = artifact
    return registry


# =============================================================================
# Namespaced Registry
# =============================================================================


def build_namespaced_registry(artifacts: Iterable[Any] | None, context: Any = None) -> Registry:
    """
    Group ``{namespace, name, method}`` artifacts into ``{namespace: {name: method}}``.

    Artifacts without a string namespace, a string name or a callable method
    are skipped. The last artifact for a (namespace, name) pair wins.
    """
    registry: Registry = {}
    for artifact in _named(artifacts):
        namespace = artifact.get("namespace")
        method = artifact.get("method")
        if not isinstance(namespace, str) or not is_callable(method):
            continue
        registry.setdefault(namespace, {})[artifact["name"]] = method
    return registry


# =============================================================================
# Hierarchical Registry
# =============================================================================


def _leaf(artifact: Artifact) -> Any:
    return artifact["value"] if "value" in artifact else artifact


def build_hierarchical_registry(artifacts: Iterable[Any] | None, context: Any = None) -> Registry:
    """
    Build a nested tree from dot-separated names.

    ``{"name": "User.byId", "value": fn}`` becomes ``{"User": {"byId": fn}}``.
    The leaf is the artifact's ``value`` when present, otherwise the artifact
    itself. Later artifacts win at the leaf; siblings are kept.
    """
    registry: Registry = {}
    for artifact in _named(artifacts):
        registry = deep_merge(registry, assoc_path(artifact["name"].split("."), _leaf(artifact), {}))
    return registry


# =============================================================================
# Event Registry
# =============================================================================


def build_event_registry(artifacts: Iterable[Any] | None, context: Any = None) -> Registry:
    """
    Collect handlers per event name, in discovery order.

    Several handlers for one name is the normal case, so nothing is ever
    replaced. The handler is read from ``handler`` (or ``event`` for older
    modules); entries without a callable handler are dropped.
    """
    registry: dict[str, list[Any]] = {}
    for artifact in _named(artifacts):
        handler = artifact.get("handler", artifact.get("event"))
        if not is_callable(handler):
            continue
        registry.setdefault(artifact["name"], []).append(handler)
    return registry


# =============================================================================
# Feature Registries
# =============================================================================


def build_feature_registries(manifests: Iterable[Any] | None, context: Any = None) -> Registry:
    """
    Deep-merge feature manifests into the four feature sub-registries.

    Every sub-registry is present in the result, empty if no manifest
    contributes to it. Manifests are merged in order; the last one wins at
    the leaves.

    Example:
        >>> build_feature_registries([
        ...     {"typeComposers": {"A": {"foo": 1}}},
        ...     {"typeComposers": {"A": {"bar": 2}}},
        ... ])["typeComposers"]
        {'A': {'foo': 1, 'bar': 2}}
    """
    registries: Registry = {sub: {} for sub in FEATURE_SUB_REGISTRIES}
    for manifest in _records(manifests):
        for sub in FEATURE_SUB_REGISTRIES:
            contribution = manifest.get(sub)
            if isinstance(contribution, Mapping):
                registries[sub] = deep_merge(registries[sub], contribution)
    return registries


__all__ = [
    "FEATURE_SUB_REGISTRIES",
    "Registry",
    "RegistryBuilder",
    "assoc_path",
    "build_event_registry",
    "build_feature_registries",
    "build_flat_registry",
    "build_flat_registry_by",
    "build_flat_registry_with_warning",
    "build_hierarchical_registry",
    "build_namespaced_registry",
    "deep_merge",
]

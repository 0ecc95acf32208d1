"""
Strategy-driven registry building.

``build_registry`` is the configurable counterpart of the fixed builders in
``builders.py``: each artifact is turned into a partial registry by a named
strategy, and the partials are folded together with the strategy's merge
mode.

Strategies:
    flat          {name: service}
    service       {name: service}
    namespaced    {namespace: {name: service}}
    hierarchical  "a.b.c" -> {a: {b: {c: service}}}
    versioned     {name: {version: service}}       (version defaults to "v1")
    tagged        {tag: [service, ...]}            (one entry per tag)
    event         {name: [handler, ...]}
    composite     {name: service}                  (deep merged)
    pipeline      {name: [step, ...]}

"service" is ``artifact["service"]`` when present, otherwise the artifact.
"""
from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any

from ..context import get_logger
from ..errors import BuildError
from ..validation import is_record, is_valid_artifact
from .builders import Registry, assoc_path, deep_merge

EntryFn = Callable[[str, Mapping[str, Any]], Registry]
ArtifactTransform = Callable[[Mapping[str, Any], Any], Any]
ErrorHandler = Callable[[Exception, dict[str, Any]], None]


class MergeMode(Enum):
    """How a strategy's partial registries are combined."""

    REPLACE = "replace"
    APPEND = "append"
    DEEP = "deep"


@dataclass(frozen=True)
class RegistryStrategy:
    """A named way of turning one artifact into a partial registry."""

    entry: EntryFn
    merge: MergeMode = MergeMode.REPLACE


def service_of(artifact: Mapping[str, Any]) -> Any:
    """Return the artifact's ``service`` payload, or the artifact itself."""
    return artifact.get("service") or artifact


def _tagged(name: str, artifact: Mapping[str, Any]) -> Registry:
    tags = artifact.get("tags")
    if not isinstance(tags, (list, tuple)):
        return {}
    return {tag: [service_of(artifact)] for tag in tags}


REGISTRY_STRATEGIES: dict[str, RegistryStrategy] = {
    "flat": RegistryStrategy(lambda name, a: {name: service_of(a)}),
    "service": RegistryStrategy(lambda name, a: {name: service_of(a)}),
    "namespaced": RegistryStrategy(
        lambda name, a: {a.get("namespace") or name: {name: service_of(a)}},
        MergeMode.DEEP,
    ),
    "hierarchical": RegistryStrategy(
        lambda name, a: assoc_path(name.split("."), service_of(a), {}),
        MergeMode.DEEP,
    ),
    "versioned": RegistryStrategy(
        lambda name, a: {name: {a.get("version") or "v1": service_of(a)}},
        MergeMode.DEEP,
    ),
    "tagged": RegistryStrategy(_tagged, MergeMode.APPEND),
    "event": RegistryStrategy(
        lambda name, a: {name: [a.get("handler") or service_of(a)]},
        MergeMode.APPEND,
    ),
    "composite": RegistryStrategy(lambda name, a: {name: service_of(a)}, MergeMode.DEEP),
    "pipeline": RegistryStrategy(lambda name, a: {name: [service_of(a)]}, MergeMode.APPEND),
}


def _merge(mode: MergeMode, registry: Registry, entry: Registry) -> Registry:
    if mode is MergeMode.APPEND:
        merged = dict(registry)
        for key, items in entry.items():
            merged[key] = [*merged.get(key, []), *items]
        return merged
    if mode is MergeMode.DEEP:
        return deep_merge(registry, entry)
    return {**registry, **entry}


def _to_artifact_list(artifacts: Any) -> list[Any] | None:
    if isinstance(artifacts, (list, tuple)):
        return list(artifacts)
    if isinstance(artifacts, Mapping):
        return [a for a in artifacts.values() if is_record(a)]
    return None


def build_registry(
    artifacts: Iterable[Any] | Mapping[str, Any] | None,
    context: Any = None,
    *,
    strategy: str = "flat",
    custom_strategies: Mapping[str, RegistryStrategy] | None = None,
    validate: Callable[[Any], bool] = is_valid_artifact,
    transforms: Sequence[ArtifactTransform] = (),
    strict: bool = False,
    on_error: ErrorHandler | None = None,
    logger: Any = None,
) -> Registry:
    """
    Build a registry with a named strategy.

    Args:
        artifacts: List of artifacts, or a mapping whose record values are artifacts
        context: Loader context, passed to transforms and used to find a logger
        strategy: Strategy name (unknown names fall back to "flat" with a warning)
        custom_strategies: Extra strategies, overriding built-ins of the same name
        validate: Per-artifact predicate; rejected artifacts are skipped
        transforms: Per-artifact ``(artifact, context) -> artifact`` steps; a falsy
            result skips the artifact
        strict: Raise BuildError on invalid input instead of returning {}
        on_error: Called with ``(exc, info)`` when a transform or strategy fails
        logger: Explicit logger (defaults to the context logger)

    Returns:
        The folded registry

    Raises:
        BuildError: If ``strict`` and the input is neither a list nor a mapping
    """
    log = get_logger(None, logger) if logger is not None else get_logger(context)
    strategies = {**REGISTRY_STRATEGIES, **(custom_strategies or {})}
    chosen = strategies.get(strategy)
    if chosen is None:
        log.warning(f"[build_registry] Unknown registry strategy '{strategy}', falling back to 'flat'")
        chosen = strategies["flat"]

    items = _to_artifact_list(artifacts)
    if items is None:
        if strict:
            raise BuildError(f"Invalid artifacts input: {type(artifacts).__name__}")
        log.debug(f"[build_registry] Invalid input, returning empty registry: {artifacts!r}")
        return {}

    def report(exc: Exception, artifact: Any, phase: str) -> None:
        name = artifact.get("name") if is_record(artifact) else None
        log.error(f"[build_registry] {phase} error for artifact '{name}': {exc}")
        if on_error is not None:
            on_error(exc, {"artifact": artifact, "context": context, "phase": phase})

    registry: Registry = {}
    for artifact in items:
        if not validate(artifact):
            continue
        current = artifact
        try:
            for transform in transforms:
                current = transform(current, context)
                if not current:
                    break
        except Exception as exc:
            report(exc, artifact, "transform")
            continue
        if not is_valid_artifact(current):
            continue
        try:
            entry = chosen.entry(current["name"], current)
        except Exception as exc:
            report(exc, current, "strategy")
            continue
        registry = _merge(chosen.merge, registry, entry)
    return registry


__all__ = [
    "REGISTRY_STRATEGIES",
    "MergeMode",
    "RegistryStrategy",
    "build_registry",
    "service_of",
]

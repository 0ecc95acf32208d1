"""
Named transforms for loader pipelines.

A transform takes the imported artifact list and the context and returns a
new list. Transforms run between import and validation (the ``transform``
loader option). Sync and async transforms can be mixed in
``compose_transforms``.

| Transform          | Purpose                                          |
|--------------------|--------------------------------------------------|
| normalize          | flatten factory/list/namespace-map exports       |
| inject_services    | attach context["services"] to each artifact      |
| add_metadata       | add "type" and "timestamp"                       |
| legacy_adapter     | lift methods["main"] into "handler"              |
| validation_filter  | keep artifacts with a name and callable handler  |
"""
from __future__ import annotations

import time
from collections.abc import Awaitable, Callable, Sequence
from typing import Any

from ..pipeline import resolve
from ..validation import is_callable, is_record
from .imports import normalize_export

Transform = Callable[[Any, Any], Any | Awaitable[Any]]


def normalize(artifacts: Any, context: Any = None) -> list[Any]:
    return normalize_export(artifacts, context)


def inject_services(artifacts: list[Any], context: Any = None) -> list[Any]:
    services = context.get("services") if is_record(context) else None
    return [{**a, "services": services} if is_record(a) else a for a in artifacts]


def add_metadata(artifacts: list[Any], context: Any = None, *, kind: str = "artifact") -> list[Any]:
    now = time.time()
    return [{**a, "type": kind, "timestamp": now} if is_record(a) else a for a in artifacts]


def legacy_adapter(artifacts: list[Any], context: Any = None) -> list[Any]:
    """Adapt ``{name, methods: {main: fn}}`` modules to ``{name, handler}``."""
    adapted = []
    for artifact in artifacts:
        methods = artifact.get("methods") if is_record(artifact) else None
        if is_record(methods):
            artifact = {**artifact, "handler": methods.get("main", artifact.get("handler"))}
        adapted.append(artifact)
    return adapted


def validation_filter(artifacts: list[Any], context: Any = None) -> list[Any]:
    return [
        a
        for a in artifacts
        if is_record(a) and isinstance(a.get("name"), str) and is_callable(a.get("handler"))
    ]


TRANSFORMS: dict[str, Transform] = {
    "normalize": normalize,
    "inject_services": inject_services,
    "add_metadata": add_metadata,
    "legacy_adapter": legacy_adapter,
    "validation_filter": validation_filter,
}


def compose_transforms(steps: Sequence[str | Transform]) -> Callable[[Any, Any], Awaitable[Any]]:
    """
    Compose transforms, given by name or as functions, into one async transform.

    Raises:
        KeyError: If a name is not registered in TRANSFORMS
    """
    resolved: list[Transform] = [TRANSFORMS[s] if isinstance(s, str) else s for s in steps]

    async def composed(artifacts: Any, context: Any = None) -> Any:
        for step in resolved:
            artifacts = await resolve(step(artifacts, context))
        return artifacts

    return composed


__all__ = [
    "TRANSFORMS",
    "Transform",
    "add_metadata",
    "compose_transforms",
    "inject_services",
    "legacy_adapter",
    "normalize",
    "validation_filter",
]

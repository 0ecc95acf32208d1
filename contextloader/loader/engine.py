"""
Loader Engine (synchronous).

A loader turns one kind of artifact scattered across a project into one
registry on the context:

    discover -> import -> (transform) -> validate -> build -> assign

Execution Model:
- Steps run in order; discovery and import are delegated to collaborators
- Invalid artifacts are dropped, never fatal
- Any exception in a step propagates unchanged
- The input context is never modified; a new dict is returned only after
  every step succeeded

Example:
    action_loader = create_loader(
        "actions",
        patterns=["**/*_actions.py"],
        find_files=find_files,
        import_and_apply_all=import_and_apply_all,
        validate=is_valid_artifact,
        registry_builder=build_namespaced_registry,
    )

    context = action_loader({"services": services})
    context["actions"]["user"]["create"](...)
"""
from __future__ import annotations

import dataclasses
import inspect
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from ..observability import LoaderEventLogger
from ..pipeline import Context
from ..registry.builders import Registry, build_flat_registry
from ..validation import validate_detailed

logger = logging.getLogger(__name__)

DiscoverFn = Callable[[Any, Mapping[str, Any]], Any]
ImportFn = Callable[[list[Any], Context], Any]
TransformFn = Callable[[list[Any], Context], Any]


def accept_all(artifact: Any) -> bool:
    """Default validator: accept everything and let the builder filter."""
    return True


@dataclass
class LoaderOptions:
    """
    Configuration of one loader instance.

    Attributes:
        patterns: Discovery input, opaque to the engine
        find_files: ``(patterns, options) -> handles``; None discovers nothing
        import_and_apply_all: ``(handles, context) -> artifacts``; None uses the
            handles themselves as artifacts
        validate: Per-artifact predicate
        registry_builder: ``(artifacts, context) -> registry``
        context_key: Key the registry is written to (defaults to the loader name)
        discovery_options: Options passed to ``find_files`` on top of the context keys
        transform: Optional ``(artifacts, context) -> artifacts`` applied before validation
        logger: Logging sink for this loader (defaults to the module logger)
    """

    patterns: Any = field(default_factory=list)
    find_files: DiscoverFn | None = None
    import_and_apply_all: ImportFn | None = None
    validate: Callable[[Any], bool] = accept_all
    registry_builder: Callable[..., Registry] = build_flat_registry
    context_key: str | None = None
    discovery_options: dict[str, Any] = field(default_factory=dict)
    transform: TransformFn | None = None
    logger: Any = None


def coerce_to_list(value: Any) -> list[Any]:
    """Coerce an import result to a list (None -> [], scalar -> [scalar])."""
    if value is None:
        return []
    if isinstance(value, list):
        return value
    if isinstance(value, tuple):
        return list(value)
    return [value]


def _accepts_context(builder: Callable[..., Any]) -> bool:
    try:
        params = list(inspect.signature(builder).parameters.values())
    except (TypeError, ValueError):
        return True
    positional = [
        p
        for p in params
        if p.kind in (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)
    ]
    has_varargs = any(p.kind is inspect.Parameter.VAR_POSITIONAL for p in params)
    return has_varargs or len(positional) >= 2


def call_builder(builder: Callable[..., Registry], artifacts: list[Any], context: Context) -> Registry:
    """Call a registry builder, passing the context only if it takes one."""
    if _accepts_context(builder):
        return builder(artifacts, context)
    return builder(artifacts)


def _require_sync(value: Any, stage: str, loader_name: str) -> Any:
    if inspect.isawaitable(value):
        if inspect.iscoroutine(value):
            value.close()
        raise TypeError(
            f"[{loader_name}-loader] {stage} returned an awaitable; use create_async_loader"
        )
    return value


class ContextLoader:
    """
    Synchronous loader: ``loader(context) -> context'``.

    Instances are plain callables and compose with the wrappers in
    ``contextloader.loader.plugins`` and with ``pipe``/``pipe_async``.
    """

    def __init__(self, name: str, options: LoaderOptions | None = None):
        self.name = name
        self.options = options or LoaderOptions()
        self.context_key = self.options.context_key or name
        sink = self.options.logger if self.options.logger is not None else logger
        self.events = LoaderEventLogger(name, sink)

    # Step 1
    def _discovery_args(self, context: Context) -> tuple[Any, dict[str, Any]]:
        self.events.discovery_started(self.options.patterns)
        return self.options.patterns, {**context, **self.options.discovery_options}

    # Steps 3 and 4 never suspend, so both engines share them.
    def select(self, raw: list[Any]) -> list[Any]:
        """Keep the artifacts accepted by ``validate``; log the rest."""
        outcome = validate_detailed(raw, self.options.validate)
        self.events.artifacts_rejected(outcome.invalid)
        return outcome.valid

    def build(self, artifacts: list[Any], context: Context) -> Registry:
        registry = call_builder(self.options.registry_builder, artifacts, context)
        self.events.registry_built(self.context_key, len(artifacts))
        return registry

    def assign(self, context: Context, registry: Registry) -> Context:
        return {**context, self.context_key: registry}

    def __call__(self, context: Context | None = None) -> Context:
        context = context if context is not None else {}
        options = self.options

        handles: list[Any] = []
        if options.find_files is not None:
            patterns, discovery_options = self._discovery_args(context)
            found = options.find_files(patterns, discovery_options)
            handles = coerce_to_list(_require_sync(found, "find_files", self.name))
        self.events.discovery_completed(handles)

        if options.import_and_apply_all is not None:
            imported = options.import_and_apply_all(handles, context)
            raw = coerce_to_list(_require_sync(imported, "import_and_apply_all", self.name))
        else:
            raw = list(handles)

        if options.transform is not None:
            transformed = options.transform(raw, context)
            raw = coerce_to_list(_require_sync(transformed, "transform", self.name))

        registry = self.build(self.select(raw), context)
        return self.assign(context, registry)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name='{self.name}', context_key='{self.context_key}')"


def create_loader(name: str, options: LoaderOptions | None = None, **overrides: Any) -> ContextLoader:
    """
    Create a synchronous loader.

    Args:
        name: Loader name, used in logs and as the default context key
        options: Base options
        **overrides: Option fields overriding ``options``

    Returns:
        Callable ``(context) -> context'``
    """
    merged = dataclasses.replace(options or LoaderOptions(), **overrides)
    return ContextLoader(name, merged)


__all__ = [
    "ContextLoader",
    "LoaderOptions",
    "accept_all",
    "call_builder",
    "coerce_to_list",
    "create_loader",
]

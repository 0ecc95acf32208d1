"""
Loader Engine (asynchronous).

Same pipeline as ``engine.ContextLoader``; discovery, import and transform
are awaited. Collaborators may be sync or async: awaitable results are
awaited, plain values are used directly. Validation and registry building
stay synchronous.
"""
from __future__ import annotations

import dataclasses
from typing import Any

from ..pipeline import Context, resolve
from .engine import ContextLoader, LoaderOptions, coerce_to_list


class AsyncContextLoader(ContextLoader):
    """
    Asynchronous loader: ``await loader(context) -> context'``.

    Example:
        event_loader = create_async_loader(
            "events",
            patterns=["**/*_events.py"],
            find_files=find_files_async,
            import_and_apply_all=import_and_apply_all_async,
            registry_builder=build_event_registry,
        )
        context = await event_loader(context)
    """

    async def __call__(self, context: Context | None = None) -> Context:  # type: ignore[override]
        context = context if context is not None else {}
        options = self.options

        handles: list[Any] = []
        if options.find_files is not None:
            patterns, discovery_options = self._discovery_args(context)
            handles = coerce_to_list(await resolve(options.find_files(patterns, discovery_options)))
        self.events.discovery_completed(handles)

        if options.import_and_apply_all is not None:
            raw = coerce_to_list(await resolve(options.import_and_apply_all(handles, context)))
        else:
            raw = list(handles)

        if options.transform is not None:
            raw = coerce_to_list(await resolve(options.transform(raw, context)))

        registry = self.build(self.select(raw), context)
        return self.assign(context, registry)


def create_async_loader(
    name: str, options: LoaderOptions | None = None, **overrides: Any
) -> AsyncContextLoader:
    """
    Create an asynchronous loader.

    Args:
        name: Loader name, used in logs and as the default context key
        options: Base options
        **overrides: Option fields overriding ``options``

    Returns:
        Async callable ``(context) -> context'``
    """
    merged = dataclasses.replace(options or LoaderOptions(), **overrides)
    return AsyncContextLoader(name, merged)


__all__ = ["AsyncContextLoader", "create_async_loader"]

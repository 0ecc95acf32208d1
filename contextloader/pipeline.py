"""
Composition of loaders into bootstrap sequences.

Loaders run in the order the caller gives them. There is no dependency
resolution here: a loader that needs another loader's registry must be
placed after it.

Usage:
    load_all = pipe_async(model_loader, action_loader, event_loader)
    context = await load_all({"services": services})
"""
from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable, Iterable
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

Context = dict[str, Any]
SyncLoader = Callable[[Context], Context]
AsyncLoader = Callable[[Context], Awaitable[Context]]
Loader = SyncLoader | AsyncLoader


async def resolve(value: T | Awaitable[T]) -> T:
    """Await value if it is awaitable, otherwise return it unchanged."""
    if inspect.isawaitable(value):
        return await value
    return value  # type: ignore[return-value]


def pipe(*steps: SyncLoader) -> SyncLoader:
    """Compose sync loaders left to right."""

    def piped(context: Context) -> Context:
        for step in steps:
            context = step(context)
        return context

    return piped


def pipe_async(*steps: Loader) -> AsyncLoader:
    """
    Compose sync or async loaders left to right.

    Each step receives the context returned by the previous one. The first
    failure stops the chain and propagates.
    """

    async def piped(context: Context) -> Context:
        for step in steps:
            context = await resolve(step(context))
        return context

    return piped


async def run_loaders(loaders: Iterable[Loader], context: Context) -> Context:
    """
    Run an externally ordered sequence of loaders.

    Returns the final context. If a loader fails, the exception propagates
    and the caller's context is left exactly as it was passed in.
    """
    loaders = list(loaders)
    logger.info(f"[bootstrap] Running {len(loaders)} loader(s)")
    result = await pipe_async(*loaders)(context)
    logger.info("[bootstrap] All loaders completed")
    return result


__all__ = [
    "AsyncLoader",
    "Context",
    "Loader",
    "SyncLoader",
    "pipe",
    "pipe_async",
    "resolve",
    "run_loaders",
]

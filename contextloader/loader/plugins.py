"""
Composition wrappers for loaders.

Higher-order functions that surround a loader with cross-cutting behavior
while keeping the ``(context) -> context'`` shape:

- with_plugins: ordered before/after hooks around the loader
- with_middleware: context transforms applied before the loader
- with_validation: concurrent precondition checks on the context

Every wrapper returns an async loader and accepts sync or async loaders,
hooks and validators. The wrappers are independent and stack in any order:

    loader = compose(
        with_validation([require_services(["db"])]),
        with_plugins([logging_plugin()]),
    )(create_async_loader("models", ...))

Failure semantics are fail-fast everywhere: the first exception aborts the
call and propagates to the caller.
"""
from __future__ import annotations

import asyncio
import functools
import logging
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from ..errors import ContextRejectedError
from ..observability import SafeLogger
from ..pipeline import AsyncLoader, Context, Loader, resolve

logger = logging.getLogger(__name__)

Hook = Callable[[Context], Any]
Wrapper = Callable[[Loader], AsyncLoader]


# =============================================================================
# Plugins
# =============================================================================


@dataclass(frozen=True)
class Plugin:
    """
    A pair of optional hooks run around a loader.

    Each hook receives the context and returns the (possibly new) context.
    A hook returning None leaves the context unchanged.
    """

    before: Hook | None = None
    after: Hook | None = None
    name: str = "plugin"


def _hook(plugin: Any, stage: str) -> Hook | None:
    if isinstance(plugin, Mapping):
        return plugin.get(stage)
    return getattr(plugin, stage, None)


async def _run_hooks(hooks: Sequence[Hook | None], context: Context) -> Context:
    for hook in hooks:
        if hook is None:
            continue
        result = await resolve(hook(context))
        if result is not None:
            context = result
    return context


def with_plugins(plugins: Sequence[Any] = ()) -> Wrapper:
    """
    Wrap a loader with plugin hooks.

    All ``before`` hooks run in order, then the loader, then all ``after``
    hooks in order. If a ``before`` hook raises, neither the loader nor any
    ``after`` hook runs.
    """
    plugins = list(plugins)

    def wrap(loader: Loader) -> AsyncLoader:
        @functools.wraps(loader)
        async def wrapped(context: Context) -> Context:
            context = await _run_hooks([_hook(p, "before") for p in plugins], context)
            context = await resolve(loader(context))
            return await _run_hooks([_hook(p, "after") for p in plugins], context)

        return wrapped

    return wrap


def logging_plugin(log: Any = None, label: str = "loader") -> Plugin:
    """Plugin that logs before and after a load."""
    sink = SafeLogger(log if log is not None else logger)

    def before(context: Context) -> Context:
        sink.info(f"[{label}] Before loading...")
        return context

    def after(context: Context) -> Context:
        sink.info(f"[{label}] After loading ({len(context)} context keys)")
        return context

    return Plugin(before=before, after=after, name="logging")


# =============================================================================
# Middleware
# =============================================================================


def with_middleware(middleware: Sequence[Hook] = ()) -> Wrapper:
    """
    Thread the context through each middleware function, then run the loader once.

    A middleware returning None leaves the context unchanged.
    """
    middleware = list(middleware)

    def wrap(loader: Loader) -> AsyncLoader:
        @functools.wraps(loader)
        async def wrapped(context: Context) -> Context:
            context = await _run_hooks(middleware, context)
            return await resolve(loader(context))

        return wrapped

    return wrap


# =============================================================================
# Validation
# =============================================================================


def _validator_name(validator: Any) -> str:
    return getattr(validator, "__qualname__", None) or repr(validator)


async def _run_validator(validator: Hook, context: Context) -> None:
    outcome = await resolve(validator(context))
    if outcome is False:
        raise ContextRejectedError("Context rejected", validator=_validator_name(validator))


def with_validation(validators: Sequence[Hook] = ()) -> Wrapper:
    """
    Check the context with every validator concurrently before loading.

    A validator rejects by raising, or by returning False. The first
    rejection wins: validators still pending are cancelled and the loader
    is never called. Validator return values never replace the context.
    """
    validators = list(validators)

    def wrap(loader: Loader) -> AsyncLoader:
        @functools.wraps(loader)
        async def wrapped(context: Context) -> Context:
            if validators:
                await _first_failure(
                    [asyncio.ensure_future(_run_validator(v, context)) for v in validators]
                )
            return await resolve(loader(context))

        return wrapped

    return wrap


async def _first_failure(tasks: list[asyncio.Future[None]]) -> None:
    pending = set(tasks)
    try:
        while pending:
            done, pending = await asyncio.wait(pending, return_when=asyncio.FIRST_EXCEPTION)
            failed = [task for task in tasks if task in done and task.exception() is not None]
            if failed:
                raise failed[0].exception()
    finally:
        for task in pending:
            task.cancel()


# =============================================================================
# Composition
# =============================================================================


def compose(*wrappers: Wrapper) -> Wrapper:
    """
    Combine wrappers into one; the first wrapper is the outermost.

    ``compose(a, b)(loader)`` is ``a(b(loader))``.
    """

    def wrap(loader: Loader) -> Loader:
        for wrapper in reversed(wrappers):
            loader = wrapper(loader)
        return loader

    return wrap


__all__ = [
    "Plugin",
    "compose",
    "logging_plugin",
    "with_middleware",
    "with_plugins",
    "with_validation",
]

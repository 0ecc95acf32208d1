"""
Context helpers for contextloader.

The context is a plain dict shared across the bootstrap process. Any stage
may read arbitrary keys, and each loader writes only its own key. Loaders
return a new dict rather than mutating the one they were given; call sites
that need in-place updates use ``apply_in_place``.

Context layout created by ``create_context``:

    {
        "env": "development",
        "config": {...},
        "services": {"logger": <logger>, ...},
        ...defaults
    }
"""
from __future__ import annotations

import functools
import logging
from collections.abc import Iterable, Mapping
from typing import Any

from .config import LoaderSettings, get_settings
from .errors import ContextRejectedError
from .observability import JSONLogger, SafeLogger
from .pipeline import AsyncLoader, Context, Loader, resolve

logger = logging.getLogger(__name__)


# =============================================================================
# Context Construction
# =============================================================================


def create_context(
    defaults: Mapping[str, Any] | None = None,
    services: Mapping[str, Any] | None = None,
    *,
    settings: LoaderSettings | None = None,
) -> Context:
    """
    Create the base application context.

    Args:
        defaults: Extra top-level keys (override the base keys)
        services: Shared services; a ``logger`` entry defaults to the package
            logger (a JSONLogger when ``settings.log_json`` is set)
        settings: Settings to read ``env`` from (defaults to environment settings)

    Returns:
        New context dict
    """
    settings = settings or get_settings()
    default_logger = JSONLogger() if settings.log_json else logging.getLogger("contextloader")
    return {
        "env": settings.environment,
        "config": {},
        "services": {"logger": default_logger, **(services or {})},
        **(defaults or {}),
    }


def create_request_context(base: Mapping[str, Any], request: Mapping[str, Any]) -> Context:
    """
    Create a per-request scoped copy of a base context.

    ``user`` and ``tenant`` are lifted to the top level; everything else in
    the request lands under ``request``. The base context is not modified.
    """
    rest = {k: v for k, v in request.items() if k not in ("user", "tenant")}
    return {
        **base,
        "user": request.get("user"),
        "tenant": request.get("tenant"),
        "request": rest,
    }


def get_logger(context: Mapping[str, Any] | None, fallback: Any = None) -> SafeLogger:
    """
    Resolve the logger a registry builder should use.

    Looks at ``context["services"]["logger"]``, then ``context["logger"]``,
    then ``fallback``, then the package logger. The result never raises.
    """
    candidate = None
    if isinstance(context, Mapping):
        services = context.get("services")
        if isinstance(services, Mapping):
            candidate = services.get("logger")
        if candidate is None:
            candidate = context.get("logger")
    if candidate is None:
        candidate = fallback
    return SafeLogger(candidate if candidate is not None else logger)


# =============================================================================
# Context Validators
# =============================================================================
#
# Factories returning validators for ``with_validation``. Each validator
# raises ContextRejectedError and never modifies the context.


def require_keys(names: Iterable[str]):
    """Reject contexts missing any of the given top-level keys."""
    names = list(names)

    def validator(context: Context) -> None:
        missing = [n for n in names if n not in context]
        if missing:
            raise ContextRejectedError(
                f"Missing required keys: {', '.join(missing)}", validator="require_keys"
            )

    return validator


def require_services(names: Iterable[str]):
    """Reject contexts whose ``services`` lack any of the given names."""
    names = list(names)

    def validator(context: Context) -> None:
        services = context.get("services") or {}
        missing = [n for n in names if n not in services]
        if missing:
            raise ContextRejectedError(
                f"Missing required services: {', '.join(missing)}",
                validator="require_services",
            )

    return validator


def require_config(names: Iterable[str]):
    """Reject contexts whose ``config`` lacks any of the given names."""
    names = list(names)

    def validator(context: Context) -> None:
        config = context.get("config") or {}
        missing = [n for n in names if n not in config]
        if missing:
            raise ContextRejectedError(
                f"Missing required config: {', '.join(missing)}",
                validator="require_config",
            )

    return validator


def require_environment(allowed: Iterable[str] = ("development", "test", "production")):
    """Reject contexts whose ``env`` is not one of ``allowed``."""
    allowed = tuple(allowed)

    def validator(context: Context) -> None:
        env = context.get("env")
        if env not in allowed:
            raise ContextRejectedError(
                f"Invalid environment: {env}", validator="require_environment"
            )

    return validator


# =============================================================================
# In-place Adapter
# =============================================================================


def apply_in_place(loader: Loader) -> AsyncLoader:
    """
    Adapt a loader for call sites that expect the context to be mutated.

    The wrapped loader still runs non-destructively; only after it succeeds
    is its result copied onto the caller's dict. On failure the caller's
    dict is untouched.

    Usage:
        context = create_context()
        await apply_in_place(action_loader)(context)
        context["actions"]  # populated
    """

    @functools.wraps(loader)
    async def mutating(context: Context) -> Context:
        result = await resolve(loader(context))
        context.update(result)
        return context

    return mutating


__all__ = [
    "apply_in_place",
    "create_context",
    "create_request_context",
    "get_logger",
    "require_config",
    "require_environment",
    "require_keys",
    "require_services",
]

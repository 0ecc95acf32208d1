"""
Observability for contextloader.

Provides the logger interface used by loaders and registry builders,
plus a few implementations:

- NullLogger: no-op sink used when nothing is configured
- SafeLogger: wraps any logger-like object so logging can never fail a load
- JSONLogger: structured JSON lines routed through a stdlib logger
- LoaderEventLogger: convenience methods for common loader events

Design Philosophy:
- Loggers are injected, never looked up from globals
- A missing or broken logger degrades to a no-op, it never raises
- Stdlib ``logging`` underneath everything
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Protocol, runtime_checkable

logger = logging.getLogger(__name__)


# =============================================================================
# Log Levels
# =============================================================================


class LogLevel(Enum):
    """Levels a LoaderLogger sink understands; values are the method names."""

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"

    @property
    def stdlib(self) -> int:
        return getattr(logging, self.name)


# =============================================================================
# Logger Protocol
# =============================================================================


@runtime_checkable
class LoaderLogger(Protocol):
    """
    Protocol for the logging sink used by loaders.

    ``logging.Logger`` satisfies it, as do the implementations below.
    """

    def debug(self, message: str, *args: Any, **kwargs: Any) -> None:
        ...

    def info(self, message: str, *args: Any, **kwargs: Any) -> None:
        ...

    def warning(self, message: str, *args: Any, **kwargs: Any) -> None:
        ...

    def error(self, message: str, *args: Any, **kwargs: Any) -> None:
        ...


class NullLogger:
    """Logger that discards everything."""

    def debug(self, message: str, *args: Any, **kwargs: Any) -> None:
        pass

    def info(self, message: str, *args: Any, **kwargs: Any) -> None:
        pass

    def warning(self, message: str, *args: Any, **kwargs: Any) -> None:
        pass

    def error(self, message: str, *args: Any, **kwargs: Any) -> None:
        pass


class SafeLogger:
    """
    Wraps a logger-like object so that logging never raises.

    Accepts stdlib loggers, structured loggers, or anything exposing a
    subset of debug/info/warning/error. ``warn`` is accepted in place of
    ``warning``. Missing methods and exceptions raised by the wrapped
    logger are ignored.

    Usage:
        log = SafeLogger(context["services"].get("logger"))
        log.warning("[actions-loader] Duplicate action name: create")
    """

    def __init__(self, inner: Any = None):
        if isinstance(inner, SafeLogger):
            inner = inner.inner
        self.inner = inner if inner is not None else NullLogger()

    def _emit(self, level: LogLevel, message: str, args: tuple, kwargs: dict) -> None:
        method = getattr(self.inner, level.value, None)
        if method is None and level is LogLevel.WARNING:
            method = getattr(self.inner, "warn", None)
        if not callable(method):
            return
        try:
            method(message, *args, **kwargs)
        except Exception as e:  # noqa: BLE001 - logging must not fail a load
            logger.debug(f"Wrapped logger raised while logging: {e}")

    def debug(self, message: str, *args: Any, **kwargs: Any) -> None:
        self._emit(LogLevel.DEBUG, message, args, kwargs)

    def info(self, message: str, *args: Any, **kwargs: Any) -> None:
        self._emit(LogLevel.INFO, message, args, kwargs)

    def warning(self, message: str, *args: Any, **kwargs: Any) -> None:
        self._emit(LogLevel.WARNING, message, args, kwargs)

    def error(self, message: str, *args: Any, **kwargs: Any) -> None:
        self._emit(LogLevel.ERROR, message, args, kwargs)

    def __repr__(self) -> str:
        return f"SafeLogger({self.inner!r})"


# =============================================================================
# JSON Logger
# =============================================================================


@dataclass
class JSONLogger:
    """
    LoaderLogger that writes one JSON object per call through a stdlib logger.

    Pass it as a loader's ``logger=`` or put it in
    ``context["services"]["logger"]``. Fields bound with ``bind`` are added
    to every line; keyword arguments to a call are added to that line only.
    Positional arguments are %-formatted into the message.

    Example line:
        {"ts": "2026-01-02T10:30:00+00:00", "level": "info", "loader": "actions",
         "msg": "[actions-loader] Registered 12 artifact(s) under 'actions'"}
    """

    name: str = "contextloader"
    fields: dict[str, Any] = field(default_factory=dict)

    @property
    def target(self) -> logging.Logger:
        return logging.getLogger(self.name)

    def _write(self, level: LogLevel, message: str, args: tuple, extra: dict[str, Any]) -> None:
        target = self.target
        if not target.isEnabledFor(level.stdlib):
            return
        line = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "level": level.value,
            **self.fields,
            **extra,
            "msg": message % args if args else message,
        }
        target.log(level.stdlib, json.dumps(line, default=str))

    def debug(self, message: str, *args: Any, **extra: Any) -> None:
        self._write(LogLevel.DEBUG, message, args, extra)

    def info(self, message: str, *args: Any, **extra: Any) -> None:
        self._write(LogLevel.INFO, message, args, extra)

    def warning(self, message: str, *args: Any, **extra: Any) -> None:
        self._write(LogLevel.WARNING, message, args, extra)

    def error(self, message: str, *args: Any, **extra: Any) -> None:
        self._write(LogLevel.ERROR, message, args, extra)

    def bind(self, **fields: Any) -> JSONLogger:
        """Return a logger that adds ``fields`` to every line."""
        return JSONLogger(name=self.name, fields={**self.fields, **fields})


# =============================================================================
# Loader Event Logger
# =============================================================================


class LoaderEventLogger:
    """
    Convenience methods for the events a loader emits.

    Messages carry a ``[<name>-loader]`` prefix so one loader's output can be
    told apart from another's in a shared log.
    """

    def __init__(self, loader_name: str, inner: Any = None):
        self.loader_name = loader_name
        self.log = SafeLogger(inner if inner is not None else logger)

    @property
    def prefix(self) -> str:
        return f"[{self.loader_name}-loader]"

    def discovery_started(self, patterns: Any) -> None:
        self.log.debug(f"{self.prefix} Finding modules with patterns: {patterns!r}")

    def discovery_completed(self, handles: list[Any]) -> None:
        shown = handles if len(handles) <= 10 else "[handle list omitted]"
        self.log.info(f"{self.prefix} Found {len(handles)} module(s): {shown}")

    def artifacts_rejected(self, rejected: list[Any]) -> None:
        if rejected:
            self.log.debug(f"{self.prefix} Dropped {len(rejected)} invalid artifact(s)")

    def registry_built(self, context_key: str, accepted: int) -> None:
        self.log.info(
            f"{self.prefix} Registered {accepted} artifact(s) under '{context_key}'"
        )


__all__ = [
    "JSONLogger",
    "LoaderEventLogger",
    "LoaderLogger",
    "LogLevel",
    "NullLogger",
    "SafeLogger",
]

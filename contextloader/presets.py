"""
Ready-made loaders for common artifact kinds.

Each preset is an async loader with default patterns, the default
collaborators and the registry builder matching the artifact kind. Every
option can be overridden.

| Preset                 | Patterns            | Registry                     |
|------------------------|---------------------|------------------------------|
| create_action_loader   | **/*_actions.py     | {namespace: {name: method}}  |
| create_handler_loader  | **/*_handlers.py    | dot-path tree                |
| create_event_loader    | **/*_events.py      | {event: [handler, ...]}      |
"""
from __future__ import annotations

from typing import Any

from .loader.async_engine import AsyncContextLoader, create_async_loader
from .loader.discovery import find_files_async
from .loader.imports import import_and_apply_all_async
from .registry.builders import (
    build_event_registry,
    build_hierarchical_registry,
    build_namespaced_registry,
)
from .validation import has_required_keys, is_callable, is_valid_artifact

ACTION_PATTERNS = ["**/*_actions.py", "**/actions/__init__.py"]
HANDLER_PATTERNS = ["**/*_handlers.py"]
EVENT_PATTERNS = ["**/*_events.py", "**/events/__init__.py"]


def is_action(artifact: Any) -> bool:
    return (
        is_valid_artifact(artifact)
        and isinstance(artifact.get("namespace"), str)
        and is_callable(artifact.get("method"))
    )


def is_handler(artifact: Any) -> bool:
    return is_valid_artifact(artifact) and has_required_keys(["value"], artifact)


def is_event(artifact: Any) -> bool:
    return is_valid_artifact(artifact) and is_callable(
        artifact.get("handler", artifact.get("event"))
    )


def _preset(name: str, defaults: dict[str, Any], overrides: dict[str, Any]) -> AsyncContextLoader:
    return create_async_loader(name, **{**defaults, **overrides})


def create_action_loader(**options: Any) -> AsyncContextLoader:
    """Loader for ``{namespace, name, method}`` actions into ``context["actions"]``."""
    return _preset(
        "actions",
        {
            "patterns": ACTION_PATTERNS,
            "find_files": find_files_async,
            "import_and_apply_all": import_and_apply_all_async,
            "validate": is_action,
            "registry_builder": build_namespaced_registry,
        },
        options,
    )


def create_handler_loader(**options: Any) -> AsyncContextLoader:
    """Loader for dot-named ``{name, value}`` handlers into ``context["handlers"]``."""
    return _preset(
        "handlers",
        {
            "patterns": HANDLER_PATTERNS,
            "find_files": find_files_async,
            "import_and_apply_all": import_and_apply_all_async,
            "validate": is_handler,
            "registry_builder": build_hierarchical_registry,
        },
        options,
    )


def create_event_loader(**options: Any) -> AsyncContextLoader:
    """Loader for ``{name, handler}`` event bindings into ``context["events"]``."""
    return _preset(
        "events",
        {
            "patterns": EVENT_PATTERNS,
            "find_files": find_files_async,
            "import_and_apply_all": import_and_apply_all_async,
            "validate": is_event,
            "registry_builder": build_event_registry,
        },
        options,
    )


__all__ = [
    "ACTION_PATTERNS",
    "EVENT_PATTERNS",
    "HANDLER_PATTERNS",
    "create_action_loader",
    "create_event_loader",
    "create_handler_loader",
    "is_action",
    "is_event",
    "is_handler",
]

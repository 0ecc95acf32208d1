"""
contextloader - assemble an application's runtime context from artifacts
scattered across a project.

contextloader provides a small, composable loader engine:

- **Loader Engine**: discover -> import -> validate -> build -> assign, sync or async
- **Registry Builders**: flat, namespaced, hierarchical, event-multimap and
  feature-manifest merge strategies, each with its own conflict policy
- **Composition Wrappers**: plugins, middleware and context validation around any loader
- **Feature Merge**: many feature manifests merged into one registry set,
  with duplicate-key reporting

Quick Start:
    >>> from contextloader import create_async_loader, build_event_registry
    >>> from contextloader.loader import find_files_async, import_and_apply_all_async
    >>>
    >>> event_loader = create_async_loader(
    ...     "events",
    ...     patterns=["**/*_events.py"],
    ...     find_files=find_files_async,
    ...     import_and_apply_all=import_and_apply_all_async,
    ...     registry_builder=build_event_registry,
    ... )
    >>> context = await event_loader({"services": {"logger": logger}})
    >>> context["events"]["user.created"]  # [handler, handler, ...]
"""

__version__ = "0.1.0"
__license__ = "MIT"

from contextloader.context import apply_in_place, create_context, get_logger
from contextloader.errors import (
    BuildError,
    ContextRejectedError,
    DiscoveryError,
    LoaderError,
    ModuleImportError,
)
from contextloader.features import create_feature_loader, merge_feature_manifests
from contextloader.loader import (
    LoaderOptions,
    Plugin,
    compose,
    create_async_loader,
    create_loader,
    with_middleware,
    with_plugins,
    with_validation,
)
from contextloader.pipeline import pipe, pipe_async, run_loaders
from contextloader.registry import (
    build_event_registry,
    build_feature_registries,
    build_flat_registry,
    build_hierarchical_registry,
    build_namespaced_registry,
    build_registry,
)

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Engine
    "LoaderOptions",
    "create_async_loader",
    "create_loader",
    # Wrappers
    "Plugin",
    "compose",
    "with_middleware",
    "with_plugins",
    "with_validation",
    # Registries
    "build_event_registry",
    "build_feature_registries",
    "build_flat_registry",
    "build_hierarchical_registry",
    "build_namespaced_registry",
    "build_registry",
    # Features
    "create_feature_loader",
    "merge_feature_manifests",
    # Context
    "apply_in_place",
    "create_context",
    "get_logger",
    # Composition
    "pipe",
    "pipe_async",
    "run_loaders",
    # Errors
    "BuildError",
    "ContextRejectedError",
    "DiscoveryError",
    "LoaderError",
    "ModuleImportError",
]

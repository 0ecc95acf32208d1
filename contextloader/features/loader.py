"""
Feature loader.

Discovers one directory per feature, builds a manifest from each, and merges
the manifests into ``context["features"]``:

    src/features/
    ├── billing/
    │   ├── invoice_queries.py      -> queries
    │   ├── invoice_mutations.py    -> mutations
    │   ├── invoice_tc.py           -> typeComposers
    │   └── invoice_resolvers.py    -> resolvers
    └── users/
        ├── user_types.py           -> typeComposers
        └── user_queries.py         -> queries

Public names of each module are merged into the matching sub-registry.
"""
from __future__ import annotations

import inspect
import logging
from collections.abc import Iterable
from pathlib import Path
from types import ModuleType
from typing import Any

from ..context import get_logger
from ..loader.async_engine import AsyncContextLoader, create_async_loader
from ..loader.discovery import find_directories_async
from ..loader.imports import import_module_from_handle
from ..validation import is_record
from .merge import merge_feature_manifests, report_duplicates

logger = logging.getLogger(__name__)

DEFAULT_FEATURE_PATTERNS: tuple[str, ...] = ("features/*",)

# file stem suffix -> sub-registry
ARTIFACT_SUFFIXES: dict[str, str] = {
    "queries": "queries",
    "mutations": "mutations",
    "resolvers": "resolvers",
    "tc": "typeComposers",
    "types": "typeComposers",
}


def _sub_registry_for(path: Path) -> str | None:
    stem = path.stem
    for suffix, sub in ARTIFACT_SUFFIXES.items():
        if stem == suffix or stem.endswith(f"_{suffix}"):
            return sub
    return None


def public_members(module: ModuleType) -> dict[str, Any]:
    """
    Return a module's exported names.

    Uses ``__all__`` when defined; otherwise every non-underscore name that
    is not a module. Functions and classes imported from elsewhere are
    skipped; instances are kept whatever module their class lives in.
    """
    names = getattr(module, "__all__", None)
    if names is not None:
        return {name: getattr(module, name) for name in names}
    members = {}
    for name, value in vars(module).items():
        if name.startswith("_") or isinstance(value, ModuleType):
            continue
        if (inspect.isfunction(value) or inspect.isclass(value)) and value.__module__ != module.__name__:
            continue
        members[name] = value
    return members


def discover_feature_manifest(feature_dir: str | Path, context: Any = None) -> dict[str, dict[str, Any]]:
    """
    Build the manifest for one feature directory.

    Raises:
        ModuleImportError: If one of the feature's modules fails to import
    """
    feature_dir = Path(feature_dir)
    manifest: dict[str, dict[str, Any]] = {
        "typeComposers": {},
        "queries": {},
        "mutations": {},
        "resolvers": {},
    }
    for path in sorted(feature_dir.rglob("*.py")):
        if "__pycache__" in path.parts:
            continue
        sub = _sub_registry_for(path)
        if sub is None:
            continue
        manifest[sub].update(public_members(import_module_from_handle(path)))
    logger.debug(f"[features-loader] feature:{feature_dir.name} -> {sum(map(len, manifest.values()))} symbol(s)")
    return manifest


def import_feature_manifests(handles: Iterable[Any] | None, context: Any = None) -> list[dict[str, Any]]:
    """Import collaborator for the feature loader: one manifest per feature directory."""
    return [discover_feature_manifest(handle, context) for handle in handles or []]


def create_feature_loader(
    *,
    patterns: Any = DEFAULT_FEATURE_PATTERNS,
    find_files: Any = find_directories_async,
    import_and_apply_all: Any = import_feature_manifests,
    validate: Any = is_record,
    context_key: str = "features",
    logger: Any = None,
    **options: Any,
) -> AsyncContextLoader:
    """
    Create the async feature loader.

    The registry written to ``context[context_key]`` always has the four
    sub-registries. Keys defined by more than one feature are logged as
    errors; the last feature still wins.

    Usage:
        feature_loader = create_feature_loader(discovery_options={"root": "src"})
        context = await feature_loader({"services": services})
        context["features"]["queries"]
    """

    def build(manifests: list[Any], context: Any = None) -> dict[str, Any]:
        result = merge_feature_manifests(manifests)
        sink = get_logger(None, logger) if logger is not None else get_logger(context)
        report_duplicates(result.duplicates, sink)
        return result.registries

    return create_async_loader(
        "features",
        patterns=patterns,
        find_files=find_files,
        import_and_apply_all=import_and_apply_all,
        validate=validate,
        registry_builder=build,
        context_key=context_key,
        logger=logger,
        **options,
    )


__all__ = [
    "ARTIFACT_SUFFIXES",
    "DEFAULT_FEATURE_PATTERNS",
    "create_feature_loader",
    "discover_feature_manifest",
    "import_feature_manifests",
    "public_members",
]

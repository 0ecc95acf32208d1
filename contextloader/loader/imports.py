"""
Default import collaborator.

Resolves module handles into artifacts. A handle is either a dotted module
name (``"app.actions.user"``) or a path to a ``.py`` file.

A module exposes its artifacts through one attribute (``default``,
``artifacts`` or ``register`` unless told otherwise). That export can take
several shapes, normalized here once so nothing downstream needs to care:

    FACTORY        callable, called with the context; its result is normalized
    LIST           list/tuple of artifacts (nested lists are flattened)
    RECORD         a single artifact dict
    NAMESPACE_MAP  legacy {namespace: {name: fn}} export
    EMPTY          None, nothing exported

Example module:

    # app/actions/user_actions.py
    def register(context):
        return [
            {"namespace": "user", "name": "create", "method": create_user},
            {"namespace": "user", "name": "delete", "method": delete_user},
        ]
"""
from __future__ import annotations

import asyncio
import hashlib
import importlib
import importlib.util
import logging
import sys
from collections.abc import Iterable, Mapping
from enum import Enum
from pathlib import Path
from types import ModuleType
from typing import Any

from ..config import get_settings
from ..errors import ModuleImportError
from ..pipeline import resolve
from ..validation import is_callable, is_record

logger = logging.getLogger(__name__)

DEFAULT_EXPORTS: tuple[str, ...] = ("default", "artifacts", "register")


# =============================================================================
# Export Shapes
# =============================================================================


class ExportShape(Enum):
    """The shape of a module's export."""

    FACTORY = "factory"
    LIST = "list"
    RECORD = "record"
    NAMESPACE_MAP = "namespace_map"
    EMPTY = "empty"
    OTHER = "other"


def _is_namespace_entry(value: Any) -> bool:
    return is_callable(value) or (is_record(value) and is_callable(value.get("method")))


def _is_namespace_map(value: Mapping[str, Any]) -> bool:
    if not value or "name" in value:
        return False
    return all(
        is_record(group) and group and all(_is_namespace_entry(v) for v in group.values())
        for group in value.values()
    )


def classify_export(value: Any) -> ExportShape:
    """Tag an export with its shape."""
    if value is None:
        return ExportShape.EMPTY
    if isinstance(value, (list, tuple)):
        return ExportShape.LIST
    if is_record(value):
        return ExportShape.NAMESPACE_MAP if _is_namespace_map(value) else ExportShape.RECORD
    if is_callable(value):
        return ExportShape.FACTORY
    return ExportShape.OTHER


def _flatten(value: Any) -> list[Any]:
    shape = classify_export(value)
    if shape is ExportShape.EMPTY:
        return []
    if shape is ExportShape.LIST:
        return [item for entry in value for item in _flatten(entry)]
    if shape is ExportShape.NAMESPACE_MAP:
        return [
            {
                "namespace": namespace,
                "name": name,
                "method": entry if is_callable(entry) else entry["method"],
            }
            for namespace, group in value.items()
            for name, entry in group.items()
        ]
    return [value]


def normalize_export(value: Any, context: Any = None) -> list[Any]:
    """
    Normalize any export shape into a flat artifact list.

    Factories are called once with the context. A factory returning an
    awaitable cannot be used here; use ``normalize_export_async``.
    """
    if classify_export(value) is ExportShape.FACTORY:
        value = value(context)
        if asyncio.iscoroutine(value):
            value.close()
            raise TypeError("Factory returned a coroutine; use normalize_export_async")
    return _flatten(value)


async def normalize_export_async(value: Any, context: Any = None) -> list[Any]:
    """Async variant of normalize_export; awaits async factories."""
    if classify_export(value) is ExportShape.FACTORY:
        value = await resolve(value(context))
    return _flatten(value)


# =============================================================================
# Module Import
# =============================================================================


def _is_file_handle(handle: Any) -> bool:
    return isinstance(handle, Path) or (isinstance(handle, str) and handle.endswith(".py"))


def _module_name_for(path: Path) -> str:
    digest = hashlib.sha1(str(path).encode()).hexdigest()[:10]
    return f"_contextloader_{path.stem.replace('-', '_')}_{digest}"


def _import_file(path: Path) -> ModuleType:
    if not path.is_file():
        raise ModuleImportError(path, "file not found")
    module_name = _module_name_for(path)
    spec = importlib.util.spec_from_file_location(module_name, path)
    if spec is None or spec.loader is None:
        raise ModuleImportError(path, "no import spec for file")
    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module
    try:
        spec.loader.exec_module(module)
    except Exception as exc:
        sys.modules.pop(module_name, None)
        raise ModuleImportError(path, f"{type(exc).__name__}: {exc}") from exc
    return module


def import_module_from_handle(handle: Any) -> ModuleType:
    """
    Import the module a handle refers to.

    Raises:
        ModuleImportError: If the module cannot be found or fails while executing
    """
    logger.debug(f"[import] Importing {handle}")
    if _is_file_handle(handle):
        return _import_file(Path(handle).resolve())
    if not isinstance(handle, str):
        raise ModuleImportError(handle, "handle must be a module name or a file path")
    try:
        return importlib.import_module(handle)
    except Exception as exc:
        raise ModuleImportError(handle, f"{type(exc).__name__}: {exc}") from exc


def read_export(module: ModuleType, export: str | None = None) -> Any:
    """
    Return the module attribute holding its artifacts, or None.

    Without an explicit ``export``, the configured ``export_name`` is read;
    if that is unset too, the first of DEFAULT_EXPORTS the module defines.
    """
    export = export or get_settings().export_name
    if export is not None:
        return getattr(module, export, None)
    for name in DEFAULT_EXPORTS:
        if hasattr(module, name):
            return getattr(module, name)
    return None


# =============================================================================
# Import and Apply
# =============================================================================


def import_and_apply(handle: Any, context: Any = None, *, export: str | None = None) -> list[Any]:
    """Import one handle and normalize its export."""
    module = import_module_from_handle(handle)
    try:
        return normalize_export(read_export(module, export), context)
    except ModuleImportError:
        raise
    except Exception as exc:
        raise ModuleImportError(handle, f"export failed: {exc}") from exc


def import_and_apply_all(
    handles: Iterable[Any] | None,
    context: Any = None,
    *,
    export: str | None = None,
) -> list[Any]:
    """
    Import every handle and concatenate their artifacts in handle order.

    The first handle that fails aborts the whole call.
    """
    artifacts: list[Any] = []
    for handle in handles or []:
        artifacts.extend(import_and_apply(handle, context, export=export))
    return artifacts


async def import_and_apply_async(
    handle: Any, context: Any = None, *, export: str | None = None
) -> list[Any]:
    """Async variant of import_and_apply; awaits async factories."""
    module = import_module_from_handle(handle)
    try:
        return await normalize_export_async(read_export(module, export), context)
    except ModuleImportError:
        raise
    except Exception as exc:
        raise ModuleImportError(handle, f"export failed: {exc}") from exc


async def import_and_apply_all_async(
    handles: Iterable[Any] | None,
    context: Any = None,
    *,
    export: str | None = None,
) -> list[Any]:
    """
    Import every handle concurrently and concatenate artifacts in handle order.

    Any failing handle fails the whole call.
    """
    results = await asyncio.gather(
        *(import_and_apply_async(h, context, export=export) for h in handles or [])
    )
    return [artifact for artifacts in results for artifact in artifacts]


__all__ = [
    "DEFAULT_EXPORTS",
    "ExportShape",
    "classify_export",
    "import_and_apply",
    "import_and_apply_all",
    "import_and_apply_all_async",
    "import_and_apply_async",
    "import_module_from_handle",
    "normalize_export",
    "normalize_export_async",
    "read_export",
]

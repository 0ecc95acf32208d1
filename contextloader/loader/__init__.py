"""
Loader Engine and its collaborators.

Core Components:
- create_loader / create_async_loader: the discover -> import -> validate ->
  build -> assign pipeline
- with_plugins / with_middleware / with_validation: composition wrappers
- find_files / import_and_apply_all: default discovery and import collaborators
- transforms: named artifact-list transforms
"""

from .async_engine import AsyncContextLoader, create_async_loader
from .discovery import (
    find_directories,
    find_directories_async,
    find_files,
    find_files_async,
)
from .engine import (
    ContextLoader,
    LoaderOptions,
    accept_all,
    call_builder,
    coerce_to_list,
    create_loader,
)
from .imports import (
    ExportShape,
    classify_export,
    import_and_apply,
    import_and_apply_all,
    import_and_apply_all_async,
    import_and_apply_async,
    import_module_from_handle,
    normalize_export,
    normalize_export_async,
)
from .plugins import (
    Plugin,
    compose,
    logging_plugin,
    with_middleware,
    with_plugins,
    with_validation,
)
from .transforms import TRANSFORMS, compose_transforms

__all__ = [
    # Engine
    "AsyncContextLoader",
    "ContextLoader",
    "LoaderOptions",
    "accept_all",
    "call_builder",
    "coerce_to_list",
    "create_async_loader",
    "create_loader",
    # Wrappers
    "Plugin",
    "compose",
    "logging_plugin",
    "with_middleware",
    "with_plugins",
    "with_validation",
    # Discovery
    "find_directories",
    "find_directories_async",
    "find_files",
    "find_files_async",
    # Import
    "ExportShape",
    "classify_export",
    "import_and_apply",
    "import_and_apply_all",
    "import_and_apply_all_async",
    "import_and_apply_async",
    "import_module_from_handle",
    "normalize_export",
    "normalize_export_async",
    # Transforms
    "TRANSFORMS",
    "compose_transforms",
]

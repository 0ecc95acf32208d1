"""
Exceptions for contextloader.

Pipeline-stage failures (discovery, import, build) are fatal for the loader
invocation and always propagate to the caller. Per-artifact problems are not
exceptions: rejected artifacts are dropped and duplicate keys are logged.
"""

from __future__ import annotations

from pathlib import Path


class LoaderError(Exception):
    """Base class for all contextloader errors."""


class DiscoveryError(LoaderError):
    """Raised when the discovery collaborator cannot search for handles."""

    def __init__(self, message: str, root: str | Path | None = None):
        self.root = root
        super().__init__(message)


class ModuleImportError(LoaderError):
    """Raised when a module handle cannot be resolved into artifacts."""

    def __init__(self, handle: object, message: str):
        self.handle = handle
        super().__init__(f"Could not import '{handle}': {message}")


class BuildError(LoaderError):
    """Raised when a registry builder cannot tolerate its input."""


class ContextRejectedError(LoaderError):
    """
    Raised when a context validator rejects the context.

    Validators used with ``with_validation`` may raise this directly, or
    return ``False`` and let the wrapper raise it on their behalf.
    """

    def __init__(self, message: str, validator: str | None = None):
        self.validator = validator
        prefix = f"[{validator}] " if validator else ""
        super().__init__(f"{prefix}{message}")


__all__ = [
    "BuildError",
    "ContextRejectedError",
    "DiscoveryError",
    "LoaderError",
    "ModuleImportError",
]

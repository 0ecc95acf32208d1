"""
Default discovery collaborator.

Finds module handles by glob pattern under a root directory. The engine
treats patterns and handles as opaque; any callable with the signature
``find_files(patterns, options) -> list`` can replace this one.

Pattern rules:
    - A single string or a list of strings
    - "**" recurses into subdirectories
    - A leading "!" excludes matches of the rest of the pattern
    - Directories named in ``ignore`` are never returned or descended into

Usage:
    handles = find_files(["**/*_actions.py", "!**/test_*.py"], {"root": "src"})
"""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

from ..config import get_settings
from ..errors import DiscoveryError

logger = logging.getLogger(__name__)


def _as_pattern_list(patterns: Any) -> list[str]:
    if isinstance(patterns, str):
        patterns = [patterns]
    if not isinstance(patterns, (list, tuple)):
        return []
    return [p for p in patterns if isinstance(p, str) and p]


def _glob(root: Path, pattern: str) -> Iterable[Path]:
    path = Path(pattern)
    if path.is_absolute():
        anchor = Path(path.anchor)
        return anchor.glob(str(path.relative_to(anchor)))
    return root.glob(pattern)


def _is_ignored(path: Path, root: Path, ignore: set[str]) -> bool:
    try:
        parts = path.relative_to(root).parts
    except ValueError:
        parts = path.parts
    return any(part in ignore for part in parts)


def find_files(patterns: Any, options: Mapping[str, Any] | None = None) -> list[Path]:
    """
    Find files (or directories) matching glob patterns.

    Args:
        patterns: Glob pattern or list of patterns
        options: Optional settings:
            root: Directory patterns are relative to (default: settings.root)
            ignore: Directory names to skip (default: settings.ignore)
            only_dirs: Return directories instead of files

    Returns:
        Unique, sorted, absolute paths. Empty when nothing matches.

    Raises:
        DiscoveryError: If the root directory does not exist
    """
    options = options or {}
    pattern_list = _as_pattern_list(patterns)
    if not pattern_list:
        return []

    settings = get_settings()
    root = Path(options.get("root") or settings.root).resolve()
    if not root.is_dir():
        raise DiscoveryError(f"Discovery root is not a directory: {root}", root=root)

    ignore = set(options.get("ignore") or settings.ignore)
    only_dirs = bool(options.get("only_dirs", False))

    included: set[Path] = set()
    excluded: set[Path] = set()
    for pattern in pattern_list:
        target = excluded if pattern.startswith("!") else included
        for match in _glob(root, pattern.lstrip("!")):
            target.add(match.resolve())

    matches = [
        path
        for path in included - excluded
        if (path.is_dir() if only_dirs else path.is_file())
        and not _is_ignored(path, root, ignore)
    ]
    logger.debug(f"[discovery] {len(matches)} match(es) under {root} for {pattern_list}")
    return sorted(matches)


def find_directories(patterns: Any, options: Mapping[str, Any] | None = None) -> list[Path]:
    """Find directories matching glob patterns (e.g. one per feature)."""
    return find_files(patterns, {**(options or {}), "only_dirs": True})


async def find_files_async(patterns: Any, options: Mapping[str, Any] | None = None) -> list[Path]:
    """Async variant of find_files; the filesystem walk runs in a worker thread."""
    return await asyncio.to_thread(find_files, patterns, options)


async def find_directories_async(
    patterns: Any, options: Mapping[str, Any] | None = None
) -> list[Path]:
    """Async variant of find_directories."""
    return await asyncio.to_thread(find_directories, patterns, options)


__all__ = [
    "find_directories",
    "find_directories_async",
    "find_files",
    "find_files_async",
]

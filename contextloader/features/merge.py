"""
Feature manifest merging.

Each feature directory contributes a manifest with up to four sub-registries
(typeComposers, queries, mutations, resolvers). Manifests are deep-merged in
discovery order, last one winning at the leaves.

Duplicate detection is diagnostic only: keys defined by more than one
manifest in the same sub-registry are reported, but the merge result is the
same with or without duplicates.
"""
from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from ..observability import SafeLogger
from ..registry.builders import FEATURE_SUB_REGISTRIES, build_feature_registries
from ..validation import is_record

logger = logging.getLogger(__name__)

SUB_REGISTRIES = FEATURE_SUB_REGISTRIES


@dataclass
class FeatureMergeResult:
    """Merged feature registries plus the duplicate keys found per sub-registry."""

    registries: dict[str, dict[str, Any]]
    duplicates: dict[str, list[str]] = field(default_factory=dict)

    @property
    def has_duplicates(self) -> bool:
        return any(self.duplicates.values())


def find_duplicate_keys(contributions: Iterable[Mapping[str, Any] | None]) -> list[str]:
    """Return top-level keys present in more than one contribution, first-seen order."""
    counts: Counter[str] = Counter()
    order: list[str] = []
    for contribution in contributions:
        if not isinstance(contribution, Mapping):
            continue
        for key in contribution:
            if key not in counts:
                order.append(key)
            counts[key] += 1
    return [key for key in order if counts[key] > 1]


def merge_feature_manifests(manifests: Iterable[Any] | None) -> FeatureMergeResult:
    """
    Merge manifests and collect duplicate keys.

    Non-record manifests are ignored. Every sub-registry is present in the
    result even when empty.
    """
    records = [m for m in (manifests or []) if is_record(m)]
    duplicates = {
        sub: dupes
        for sub in SUB_REGISTRIES
        if (dupes := find_duplicate_keys(m.get(sub) for m in records))
    }
    return FeatureMergeResult(registries=build_feature_registries(records), duplicates=duplicates)


def report_duplicates(duplicates: Mapping[str, list[str]], log: Any = None) -> None:
    """Log one error line per sub-registry that has duplicate keys."""
    sink = SafeLogger(log if log is not None else logger)
    for sub, keys in duplicates.items():
        if keys:
            sink.error(f"[features-loader] Duplicate {sub}: {', '.join(keys)}")


__all__ = [
    "SUB_REGISTRIES",
    "FeatureMergeResult",
    "find_duplicate_keys",
    "merge_feature_manifests",
    "report_duplicates",
]

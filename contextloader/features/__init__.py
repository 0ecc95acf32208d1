"""
Feature-merge layer: many independently discovered feature manifests merged
into one set of registries, with duplicate-key reporting.
"""

from .loader import (
    create_feature_loader,
    discover_feature_manifest,
    import_feature_manifests,
    public_members,
)
from .merge import (
    SUB_REGISTRIES,
    FeatureMergeResult,
    find_duplicate_keys,
    merge_feature_manifests,
    report_duplicates,
)

__all__ = [
    "SUB_REGISTRIES",
    "FeatureMergeResult",
    "create_feature_loader",
    "discover_feature_manifest",
    "find_duplicate_keys",
    "import_feature_manifests",
    "merge_feature_manifests",
    "public_members",
    "report_duplicates",
]

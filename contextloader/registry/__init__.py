"""
Registry builders for contextloader.

Fixed builders (one conflict policy each) and the strategy-driven
``build_registry``.
"""

from .builders import (
    FEATURE_SUB_REGISTRIES,
    Registry,
    RegistryBuilder,
    assoc_path,
    build_event_registry,
    build_feature_registries,
    build_flat_registry,
    build_flat_registry_by,
    build_flat_registry_with_warning,
    build_hierarchical_registry,
    build_namespaced_registry,
    deep_merge,
)
from .strategies import (
    REGISTRY_STRATEGIES,
    MergeMode,
    RegistryStrategy,
    build_registry,
    service_of,
)

__all__ = [
    "FEATURE_SUB_REGISTRIES",
    "REGISTRY_STRATEGIES",
    "MergeMode",
    "Registry",
    "RegistryBuilder",
    "RegistryStrategy",
    "assoc_path",
    "build_event_registry",
    "build_feature_registries",
    "build_flat_registry",
    "build_flat_registry_by",
    "build_flat_registry_with_warning",
    "build_hierarchical_registry",
    "build_namespaced_registry",
    "build_registry",
    "deep_merge",
    "service_of",
]

"""
Validation utilities for loader pipelines.

Pure predicates shared by every stage. Nothing here raises: these
functions only classify values.
"""
from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

Predicate = Callable[[Any], bool]


def is_non_empty_list(value: Any) -> bool:
    """True if value is a list with at least one element."""
    return isinstance(value, list) and len(value) > 0


def is_record(value: Any) -> bool:
    """True if value is a plain key/value mapping (not a list, None or callable)."""
    return isinstance(value, Mapping) and not callable(value)


def is_valid_artifact(value: Any) -> bool:
    """True if value is a record with a string ``name``."""
    return is_record(value) and "name" in value and isinstance(value["name"], str)


def has_required_keys(keys: Iterable[str], record: Any) -> bool:
    """
    True if every key is present in record.

    Keys mapped to None still count as present. A non-record never has
    required keys, unless ``keys`` is empty.
    """
    keys = list(keys)
    if not keys:
        return True
    if not is_record(record):
        return False
    return all(key in record for key in keys)


def is_callable(value: Any) -> bool:
    """True for functions, coroutine functions and callable objects."""
    return callable(value)


def validate_artifacts(
    artifacts: Iterable[Any] | None,
    predicate: Predicate,
) -> list[Any]:
    """Return only the artifacts accepted by predicate."""
    return [a for a in (artifacts or []) if predicate(a)]


@dataclass
class ValidationOutcome:
    """Partition of a list into accepted and rejected entries."""

    valid: list[Any] = field(default_factory=list)
    invalid: list[Any] = field(default_factory=list)


def validate_detailed(
    artifacts: Iterable[Any] | None,
    predicate: Predicate,
) -> ValidationOutcome:
    """
    Partition artifacts by predicate without discarding rejects.

    Used by callers that want to report on what was dropped. Order is
    preserved within both partitions.
    """
    outcome = ValidationOutcome()
    for artifact in artifacts or []:
        (outcome.valid if predicate(artifact) else outcome.invalid).append(artifact)
    return outcome


__all__ = [
    "Predicate",
    "ValidationOutcome",
    "has_required_keys",
    "is_callable",
    "is_non_empty_list",
    "is_record",
    "is_valid_artifact",
    "validate_artifacts",
    "validate_detailed",
]

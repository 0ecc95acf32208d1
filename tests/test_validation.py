"""
Tests for validation utilities.
"""
from collections import UserDict

import pytest

from contextloader.validation import (
    ValidationOutcome,
    has_required_keys,
    is_callable,
    is_non_empty_list,
    is_record,
    is_valid_artifact,
    validate_artifacts,
    validate_detailed,
)


class TestIsNonEmptyList:
    @pytest.mark.parametrize("value", [[1], [None], ["a", "b"]])
    def test_true_for_non_empty_lists(self, value):
        assert is_non_empty_list(value) is True

    @pytest.mark.parametrize("value", [[], (1, 2), "abc", {"a": 1}, None, range(3)])
    def test_false_for_everything_else(self, value):
        assert is_non_empty_list(value) is False


class TestIsRecord:
    def test_dicts_are_records(self):
        assert is_record({}) is True
        assert is_record({"a": 1}) is True

    def test_mapping_subclasses_are_records(self):
        assert is_record(UserDict(a=1)) is True

    @pytest.mark.parametrize("value", [[], None, "x", 1, lambda: None, print])
    def test_non_records(self, value):
        assert is_record(value) is False


class TestIsValidArtifact:
    def test_requires_string_name(self):
        assert is_valid_artifact({"name": "foo"}) is True
        assert is_valid_artifact({"name": 1}) is False
        assert is_valid_artifact({"value": 1}) is False
        assert is_valid_artifact(None) is False

    def test_inherited_default_does_not_count(self):
        class Defaulting(dict):
            def __missing__(self, key):
                return "inherited"

        assert is_valid_artifact(Defaulting()) is False


class TestHasRequiredKeys:
    def test_all_keys_present(self):
        assert has_required_keys(["a", "b"], {"a": 1, "b": 2, "c": 3}) is True

    def test_none_values_count_as_present(self):
        assert has_required_keys(["a"], {"a": None}) is True

    def test_missing_key(self):
        assert has_required_keys(["a", "b"], {"a": 1}) is False

    def test_non_record(self):
        assert has_required_keys(["a"], None) is False
        assert has_required_keys(["a"], ["a"]) is False

    def test_no_keys_required(self):
        assert has_required_keys([], {}) is True


class TestValidateDetailed:
    def test_partitions_without_discarding(self):
        outcome = validate_detailed([{"name": "a"}, None, {"x": 1}, {"name": "b"}], is_valid_artifact)

        assert isinstance(outcome, ValidationOutcome)
        assert outcome.valid == [{"name": "a"}, {"name": "b"}]
        assert outcome.invalid == [None, {"x": 1}]

    def test_none_input(self):
        outcome = validate_detailed(None, is_valid_artifact)
        assert outcome.valid == [] and outcome.invalid == []

    def test_validate_artifacts_filters(self):
        assert validate_artifacts([1, 2, 3, 4], lambda v: v % 2 == 0) == [2, 4]
        assert validate_artifacts(None, bool) == []


def test_is_callable_covers_async_functions():
    async def handler():
        pass

    assert is_callable(handler) is True
    assert is_callable(lambda: None) is True
    assert is_callable("handler") is False

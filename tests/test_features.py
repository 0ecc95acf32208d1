"""
Tests for the feature-merge layer.
"""

import pytest

from contextloader.errors import ModuleImportError
from contextloader.features import (
    SUB_REGISTRIES,
    create_feature_loader,
    discover_feature_manifest,
    find_duplicate_keys,
    merge_feature_manifests,
    public_members,
    report_duplicates,
)
from contextloader.loader import import_module_from_handle

# =============================================================================
# Merge
# =============================================================================


class TestFindDuplicateKeys:
    def test_keys_in_more_than_one_contribution(self):
        assert find_duplicate_keys([{"a": 1, "b": 2}, {"b": 3}, {"c": 4, "a": 5}]) == ["a", "b"]

    def test_ignores_missing_contributions(self):
        assert find_duplicate_keys([None, {"a": 1}, None]) == []


class TestMergeFeatureManifests:
    def test_deep_merge_without_duplicates(self):
        result = merge_feature_manifests(
            [
                {"typeComposers": {"User": {"fields": ["id"]}}, "queries": {"me": 1}},
                {"mutations": {"signup": 2}},
            ]
        )

        assert result.registries == {
            "typeComposers": {"User": {"fields": ["id"]}},
            "queries": {"me": 1},
            "mutations": {"signup": 2},
            "resolvers": {},
        }
        assert result.duplicates == {}
        assert result.has_duplicates is False

    def test_duplicates_reported_last_wins(self):
        result = merge_feature_manifests(
            [
                {"queries": {"me": "billing"}, "typeComposers": {"A": {"foo": 1}}},
                {"queries": {"me": "users"}, "typeComposers": {"A": {"bar": 2}}},
            ]
        )

        assert result.registries["queries"] == {"me": "users"}
        assert result.registries["typeComposers"] == {"A": {"foo": 1, "bar": 2}}
        assert result.duplicates == {"typeComposers": ["A"], "queries": ["me"]}
        assert result.has_duplicates is True

    @pytest.mark.parametrize("manifests", [None, [], ["junk", None]])
    def test_empty_input_has_every_sub_registry(self, manifests):
        result = merge_feature_manifests(manifests)

        assert result.registries == {sub: {} for sub in SUB_REGISTRIES}

    def test_report_duplicates_logs_errors(self, recording_logger):
        report_duplicates({"queries": ["me", "you"], "resolvers": []}, recording_logger)

        assert recording_logger.messages("error") == [
            "[features-loader] Duplicate queries: me, you"
        ]


# =============================================================================
# Manifest Discovery
# =============================================================================


@pytest.fixture
def feature_tree(write_module):
    write_module(
        "features/billing/invoice_queries.py",
        """
        def invoice(root, info):
            return "invoice"

        def _private():
            pass
        """,
    )
    write_module(
        "features/billing/invoice_tc.py",
        """
        InvoiceTC = {"fields": {"total": "Float"}}
        """,
    )
    write_module(
        "features/billing/helpers.py",
        """
        unrelated = 1
        """,
    )
    write_module(
        "features/users/user_types.py",
        """
        __all__ = ["UserTC"]

        UserTC = {"fields": {"id": "ID"}}
        Hidden = {}
        """,
    )
    write_module(
        "features/users/user_queries.py",
        """
        from os import path

        def invoice(root, info):
            return "user invoice"

        def me(root, info):
            return "me"
        """,
    )
    return write_module


class TestDiscoverFeatureManifest:
    def test_groups_modules_by_suffix(self, tmp_path, feature_tree):
        manifest = discover_feature_manifest(tmp_path / "features" / "billing")

        assert set(manifest) == set(SUB_REGISTRIES)
        assert list(manifest["queries"]) == ["invoice"]
        assert manifest["typeComposers"] == {"InvoiceTC": {"fields": {"total": "Float"}}}
        assert manifest["mutations"] == {}

    def test_respects_dunder_all(self, tmp_path, feature_tree):
        manifest = discover_feature_manifest(tmp_path / "features" / "users")

        assert list(manifest["typeComposers"]) == ["UserTC"]
        assert sorted(manifest["queries"]) == ["invoice", "me"]

    def test_broken_module_raises(self, tmp_path, write_module):
        write_module("features/broken/broken_queries.py", "raise RuntimeError('nope')")

        with pytest.raises(ModuleImportError):
            discover_feature_manifest(tmp_path / "features" / "broken")

    def test_public_members_skips_imports(self, write_module):
        path = write_module(
            "mod.py",
            """
            import os
            from json import dumps

            def local():
                pass

            VALUE = 3
            """,
        )

        members = public_members(import_module_from_handle(path))

        assert set(members) == {"local", "VALUE"}

    def test_instances_of_imported_classes_kept(self, tmp_path, write_module, monkeypatch):
        write_module(
            "schema_composer.py",
            """
            class TypeComposer:
                def __init__(self, name):
                    self.name = name
            """,
        )
        write_module(
            "features/users/user_tc.py",
            """
            import schema_composer
            from schema_composer import TypeComposer

            UserTC = schema_composer.TypeComposer("User")
            ProfileTC = TypeComposer("Profile")
            """,
        )
        monkeypatch.syspath_prepend(str(tmp_path))

        manifest = discover_feature_manifest(tmp_path / "features" / "users")

        assert sorted(manifest["typeComposers"]) == ["ProfileTC", "UserTC"]
        assert manifest["typeComposers"]["UserTC"].name == "User"


# =============================================================================
# Feature Loader
# =============================================================================


class TestCreateFeatureLoader:
    @pytest.mark.asyncio
    async def test_merges_features_and_reports_duplicates(
        self, tmp_path, feature_tree, recording_logger
    ):
        loader = create_feature_loader(
            discovery_options={"root": str(tmp_path)}, logger=recording_logger
        )

        result = await loader({})

        features = result["features"]
        assert set(features) == set(SUB_REGISTRIES)
        assert set(features["queries"]) == {"invoice", "me"}
        assert features["queries"]["invoice"](None, None) == "user invoice"
        assert set(features["typeComposers"]) == {"InvoiceTC", "UserTC"}
        assert recording_logger.messages("error") == [
            "[features-loader] Duplicate queries: invoice"
        ]

    @pytest.mark.asyncio
    async def test_no_features_gives_empty_registries(self, tmp_path):
        loader = create_feature_loader(discovery_options={"root": str(tmp_path)})

        result = await loader({"services": {}})

        assert result["features"] == {sub: {} for sub in SUB_REGISTRIES}

    @pytest.mark.asyncio
    async def test_custom_collaborators(self):
        async def find(patterns, options):
            return ["one", "two"]

        def manifests(handles, context):
            return [{"resolvers": {h: h for h in handles}}, "not a manifest"]

        loader = create_feature_loader(
            find_files=find, import_and_apply_all=manifests, context_key="graph"
        )

        result = await loader({})

        assert result["graph"]["resolvers"] == {"one": "one", "two": "two"}

"""
Tests for the default discovery collaborator.
"""

import pytest

from contextloader.config import get_settings
from contextloader.errors import DiscoveryError
from contextloader.loader import (
    find_directories,
    find_directories_async,
    find_files,
    find_files_async,
)


@pytest.fixture
def project(tmp_path, write_module):
    write_module("src/user_actions.py", "")
    write_module("src/admin/admin_actions.py", "")
    write_module("src/admin/test_admin_actions.py", "")
    write_module("src/notes.txt", "")
    write_module("src/__pycache__/cached_actions.py", "")
    write_module("src/features/billing/__init__.py", "")
    write_module("src/features/users/__init__.py", "")
    return tmp_path


class TestFindFiles:
    def test_recursive_pattern(self, project):
        found = find_files("**/*_actions.py", {"root": str(project / "src")})

        assert [p.name for p in found] == [
            "admin_actions.py",
            "test_admin_actions.py",
            "user_actions.py",
        ]

    def test_returns_absolute_sorted_unique(self, project):
        found = find_files(
            ["**/*_actions.py", "*_actions.py"], {"root": str(project / "src")}
        )

        assert all(p.is_absolute() for p in found)
        assert found == sorted(set(found))

    def test_negated_pattern_excludes(self, project):
        found = find_files(
            ["**/*_actions.py", "!**/test_*.py"], {"root": str(project / "src")}
        )

        assert sorted(p.name for p in found) == ["admin_actions.py", "user_actions.py"]

    def test_ignored_directories_skipped(self, project):
        found = find_files("**/*.py", {"root": str(project / "src")})

        assert all("__pycache__" not in p.parts for p in found)

    def test_custom_ignore(self, project):
        found = find_files(
            "**/*_actions.py", {"root": str(project / "src"), "ignore": ["admin", "__pycache__"]}
        )

        assert [p.name for p in found] == ["user_actions.py"]

    def test_absolute_pattern(self, project):
        found = find_files(str(project / "src" / "*.txt"))

        assert [p.name for p in found] == ["notes.txt"]

    def test_no_match(self, project):
        assert find_files("**/*.rs", {"root": str(project)}) == []

    @pytest.mark.parametrize("patterns", [[], None, ""])
    def test_empty_patterns(self, patterns, project):
        assert find_files(patterns, {"root": str(project)}) == []

    def test_missing_root(self, tmp_path):
        with pytest.raises(DiscoveryError) as exc_info:
            find_files("*.py", {"root": str(tmp_path / "nowhere")})

        assert exc_info.value.root == (tmp_path / "nowhere").resolve()

    def test_context_option_is_ignored(self, project):
        found = find_files("*.txt", {"root": str(project / "src"), "context": {"env": "test"}})

        assert len(found) == 1


class TestFindDirectories:
    def test_only_directories(self, project):
        found = find_directories("features/*", {"root": str(project / "src")})

        assert [p.name for p in found] == ["billing", "users"]

    @pytest.mark.asyncio
    async def test_async_variants(self, project):
        files = await find_files_async("*_actions.py", {"root": str(project / "src")})
        dirs = await find_directories_async("features/*", {"root": str(project / "src")})

        assert [p.name for p in files] == ["user_actions.py"]
        assert [p.name for p in dirs] == ["billing", "users"]


def test_root_defaults_to_settings(project, monkeypatch):
    monkeypatch.setenv("CONTEXTLOADER_ROOT", str(project / "src"))
    get_settings.cache_clear()
    try:
        found = find_files("*_actions.py")
    finally:
        get_settings.cache_clear()

    assert [p.name for p in found] == ["user_actions.py"]

"""
Pytest configuration and fixtures for contextloader tests.
"""

import sys
import textwrap
from pathlib import Path

import pytest

# Add the repository root to path for imports
# This allows `from contextloader import ...` to work
repo_root = Path(__file__).parent.parent
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))


class RecordingLogger:
    """Logger double that records (level, message) pairs."""

    def __init__(self):
        self.records: list[tuple[str, str]] = []

    def debug(self, message, *args, **kwargs):
        self.records.append(("debug", message))

    def info(self, message, *args, **kwargs):
        self.records.append(("info", message))

    def warning(self, message, *args, **kwargs):
        self.records.append(("warning", message))

    def error(self, message, *args, **kwargs):
        self.records.append(("error", message))

    def messages(self, level: str) -> list[str]:
        return [m for lvl, m in self.records if lvl == level]


@pytest.fixture
def recording_logger() -> RecordingLogger:
    return RecordingLogger()


@pytest.fixture
def write_module(tmp_path):
    """Write a Python module under tmp_path and return its path."""

    def _write(relative: str, source: str) -> Path:
        path = tmp_path / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(textwrap.dedent(source))
        return path

    return _write


@pytest.fixture
def sample_artifacts():
    """Flat artifacts with one redefinition and some noise."""
    return [
        {"name": "foo", "value": 1},
        None,
        "not a record",
        {"name": "bar", "value": 2},
        {"value": 3},
        {"name": "foo", "value": 4},
    ]

"""
Pytest configuration and fixtures for Pollguard tests.
"""

import sys
from pathlib import Path
from unittest.mock import MagicMock

import pytest

# Add src directory to path so imports work
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))


@pytest.fixture
def fake_http_response():
    return MagicMock(status=404, reason="Not Found")


@pytest.fixture
def write_config(tmp_path):
    """Write a guild config file into a temporary configs directory."""

    def _write(name, content):
        path = tmp_path / name
        path.write_text(content, encoding="utf-8")
        return path

    return _write

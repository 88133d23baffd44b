"""Pytest hooks and fixtures."""

import os

import pytest

from mcpforge.config.access import clear_config_cache


@pytest.fixture(autouse=True)
def _isolated_home(tmp_path, monkeypatch):
    """Keep ~/.mcpforge and MCPFORGE_* environment out of tests."""
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    for name in list(os.environ):
        if name.startswith("MCPFORGE_"):
            monkeypatch.delenv(name)
    clear_config_cache()
    yield
    clear_config_cache()

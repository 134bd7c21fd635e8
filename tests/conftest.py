"""Pytest configuration and fixtures."""

import os

import pytest


@pytest.fixture(autouse=True)
def isolate_environment(monkeypatch, tmp_path):
    """Isolate environment variables for each test.

    Configuration and data locations point into the test's temporary
    directory so nothing reads or writes the real user directories.
    """
    original_env = os.environ.copy()

    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg-config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "xdg-data"))
    monkeypatch.delenv("REFMERGE_DATA_DIR", raising=False)
    monkeypatch.delenv("REFMERGE_STORAGE_DIR", raising=False)

    yield

    os.environ.clear()
    os.environ.update(original_env)

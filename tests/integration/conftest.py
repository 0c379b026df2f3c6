"""Integration test fixtures and configuration.

This module provides a file-backed respondent store and the environment that
points the CLI at it.
"""

import pytest


@pytest.fixture
def store_url(tmp_path) -> str:
    """SQLite file URL under the test's temporary directory."""
    return f"sqlite:///{tmp_path / 'data' / 'respondents.db'}"


@pytest.fixture
def cli_env(store_url, tmp_path, monkeypatch):
    """Point the CLI at the file-backed store and a temporary export directory."""
    monkeypatch.setenv("RESPONDENT_REGISTRY_STORE_URL", store_url)
    monkeypatch.setenv("RESPONDENT_REGISTRY_EXPORT_DIR", str(tmp_path / "exports"))
    monkeypatch.setenv("RESPONDENT_REGISTRY_LOG_FILE", str(tmp_path / "logs" / "registry.log"))
    monkeypatch.setenv("RESPONDENT_REGISTRY_LOG_LEVEL", "WARNING")
    monkeypatch.chdir(tmp_path)
    return tmp_path

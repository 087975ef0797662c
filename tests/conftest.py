"""Shared test fixtures."""

import pytest

from buildsh.settings import VERBOSE_ENV


@pytest.fixture(autouse=True)
def _quiet(monkeypatch):
    """Start every test out of verbose mode and outside GitHub Actions."""
    monkeypatch.setenv(VERBOSE_ENV, "0")
    monkeypatch.delenv("GITHUB_ACTIONS", raising=False)


@pytest.fixture
def verbose(monkeypatch):
    monkeypatch.setenv(VERBOSE_ENV, "1")

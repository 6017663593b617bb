"""Test fixtures for CLI tests."""

from __future__ import annotations

import pytest
from click.testing import CliRunner


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide Click CLI test runner.

    Returns
    -------
    CliRunner
        Click test runner.
    """
    return CliRunner()


@pytest.fixture
def app_env(clean_environ: None, monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    """Provide an otherwise empty environment for the ``app`` prefix.

    Parameters
    ----------
    clean_environ : None
        Fixture clearing the process environment.
    monkeypatch : pytest.MonkeyPatch
        Pytest monkeypatch fixture.

    Returns
    -------
    pytest.MonkeyPatch
        Monkeypatch fixture for setting further variables.
    """
    monkeypatch.setenv("APP_DEBUG", "true")
    monkeypatch.setenv("APP_SERVER_PORT", "9000")
    return monkeypatch

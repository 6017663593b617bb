"""Root pytest configuration for envbind tests."""

from __future__ import annotations

import os
from collections.abc import Iterator
from datetime import timedelta

import pytest

from envbind import register_decoder, unregister_decoder
from tests.spec_helpers import Specification


@pytest.fixture
def spec() -> Specification:
    """Provide a zero-valued specification.

    Returns
    -------
    Specification
        Fresh specification instance.
    """
    return Specification()


@pytest.fixture
def process_env() -> dict[str, str]:
    """Provide a full set of variables for the ``env_config`` prefix.

    Returns
    -------
    dict[str, str]
        Environment mapping.
    """
    return {
        "ENV_CONFIG_DEBUG": "true",
        "ENV_CONFIG_PORT": "8080",
        "ENV_CONFIG_RATE": "0.5",
        "ENV_CONFIG_USER": "Kelsey",
        "ENV_CONFIG_TIMEOUT": "2m",
        "ENV_CONFIG_ADMIN_USERS": "John,Adam,Will",
        "ENV_CONFIG_MAGIC_NUMBERS": "5,10,20",
        "SERVICE_HOST": "127.0.0.1",
        "ENV_CONFIG_TTL": "30",
        "ENV_CONFIG_IGNORED": "was-not-ignored",
    }


@pytest.fixture
def clean_environ(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Clear the process environment for the duration of a test.

    Parameters
    ----------
    monkeypatch : pytest.MonkeyPatch
        Pytest monkeypatch fixture.
    """
    for key in list(os.environ):
        monkeypatch.delenv(key)
    yield


@pytest.fixture
def seconds_decoder() -> Iterator[None]:
    """Register a decoder reading plain seconds into ``timedelta``."""
    register_decoder(timedelta, lambda value: timedelta(seconds=int(value)))
    yield
    unregister_decoder(timedelta)

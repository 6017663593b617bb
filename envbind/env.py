"""Environment variable access.

This module provides the read-only view of the process environment used by
a binding pass: a snapshot taken once per call, first-hit lookup over a list
of candidate names, and prefix filtering for reporting.
"""

from __future__ import annotations

import os
from collections.abc import Iterable, Mapping


def snapshot(environ: Mapping[str, str] | None = None) -> dict[str, str]:
    """Take an immutable-for-the-call copy of the environment.

    Parameters
    ----------
    environ : Mapping[str, str] | None
        Explicit variables to use. If None, uses ``os.environ``.

    Returns
    -------
    dict[str, str]
        Copy of the variables.

    Examples
    --------
    >>> snapshot({"APP_PORT": "8080"})
    {'APP_PORT': '8080'}
    """
    source = os.environ if environ is None else environ
    return dict(source)


def lookup(env: Mapping[str, str], names: Iterable[str]) -> tuple[str, str] | None:
    """Return the first candidate name present in the environment.

    A variable that is set to the empty string counts as present.

    Parameters
    ----------
    env : Mapping[str, str]
        Environment snapshot.
    names : Iterable[str]
        Candidate variable names in precedence order.

    Returns
    -------
    tuple[str, str] | None
        The matching name and its raw value, or None if no name is set.

    Examples
    --------
    >>> lookup({"PORT": "80", "APP_PORT": "8080"}, ["APP_PORT", "PORT"])
    ('APP_PORT', '8080')
    >>> lookup({}, ["APP_PORT"]) is None
    True
    """
    for name in names:
        if name in env:
            return name, env[name]
    return None


def variables_with_prefix(env: Mapping[str, str], prefix: str) -> dict[str, str]:
    """Filter environment variables by name prefix.

    Parameters
    ----------
    env : Mapping[str, str]
        Environment snapshot.
    prefix : str
        Prefix without trailing underscore; matched case-insensitively
        against the upper-cased ``PREFIX_`` form.

    Returns
    -------
    dict[str, str]
        Variables whose names start with ``PREFIX_``.

    Examples
    --------
    >>> variables_with_prefix({"APP_PORT": "1", "HOME": "/root"}, "app")
    {'APP_PORT': '1'}
    """
    marker = f"{prefix.upper()}_" if prefix else ""
    return {k: v for k, v in env.items() if k.startswith(marker)}

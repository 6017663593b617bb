"""Main CLI entry point for envbind.

This module provides the ``envbind`` command group with commands to list the
variables a configuration class reads and to check the current environment
against it.
"""

from __future__ import annotations

import logging

import click

from envbind import __version__
from envbind.cli.utils import (
    format_output,
    load_target,
    print_error,
    print_success,
    print_warning,
    redact_sensitive_values,
    to_plain,
)
from envbind.errors import EnvBindError
from envbind.usage import format_usage, unused_variables, usage_entries
from envbind.walker import bind

PREFIX_OPTION = click.option(
    "--prefix",
    "-p",
    type=str,
    default="",
    help="Application prefix for derived variable names",
)


@click.group()
@click.version_option(version=__version__, prog_name="envbind")
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    default=False,
    help="Enable debug logging",
)
def cli(verbose: bool) -> None:
    r"""Bind environment variables to typed configuration classes.

    TARGET arguments name a dataclass or pydantic model as module:Class.

    \b
    Examples:
        $ envbind usage myapp.settings:Settings --prefix myapp
        $ envbind check myapp.settings:Settings --prefix myapp
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


@cli.command()
@click.argument("target")
@PREFIX_OPTION
@click.option(
    "--format",
    "-f",
    "format_type",
    type=click.Choice(["table", "list", "json"], case_sensitive=False),
    default="table",
    help="Output format (default: table)",
)
def usage(target: str, prefix: str, format_type: str) -> None:
    r"""List the environment variables TARGET reads.

    \b
    Examples:
        $ envbind usage myapp.settings:Settings -p myapp
        $ envbind usage myapp.settings:Settings -p myapp -f json
    """
    try:
        instance = load_target(target)
        entries = usage_entries(prefix, instance)
    except (ImportError, ValueError, EnvBindError) as e:
        print_error(f"Failed to load target: {e}")
        return
    click.echo(format_usage(entries, format_type.lower()))  # type: ignore[arg-type]


@cli.command()
@click.argument("target")
@PREFIX_OPTION
@click.option(
    "--format",
    "-f",
    "format_type",
    type=click.Choice(["yaml", "json"], case_sensitive=False),
    default="yaml",
    help="Output format (default: yaml)",
)
@click.option(
    "--strict",
    is_flag=True,
    default=False,
    help="Fail when prefixed variables are not read by any field",
)
@click.option(
    "--no-redact",
    is_flag=True,
    default=False,
    help="Show sensitive values (passwords, tokens, etc.)",
)
def check(
    target: str,
    prefix: str,
    format_type: str,
    strict: bool,
    no_redact: bool,
) -> None:
    r"""Bind TARGET from the current environment and show the result.

    \b
    Examples:
        $ envbind check myapp.settings:Settings -p myapp
        $ envbind check myapp.settings:Settings -p myapp --strict
    """
    try:
        instance = load_target(target)
    except (ImportError, ValueError, EnvBindError) as e:
        print_error(f"Failed to load target: {e}")
        return

    try:
        bind(prefix, instance)
    except EnvBindError as e:
        print_error(str(e))
        return

    data = to_plain(instance)
    assert isinstance(data, dict)
    if not no_redact:
        data = redact_sensitive_values(data)
    click.echo(format_output(data, format_type.lower()))  # type: ignore[arg-type]

    unused = unused_variables(prefix, type(instance))
    for name in unused:
        print_warning(f"{name} is set but not read by any field")
    if unused and strict:
        print_error(f"{len(unused)} unread variable(s)")
        return
    print_success(f"Bound {type(instance).__name__}")

"""CLI utility functions for envbind.

This module provides target loading, output formatting, and message helpers
shared by the CLI commands.
"""

from __future__ import annotations

import dataclasses
import importlib
import json
import sys
from datetime import timedelta
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel
from rich.console import Console
from rich.markup import escape

from envbind.decoders import format_duration
from envbind.fields import is_structure, zero_instance

# Type alias for JSON values (recursive type)
type JsonValue = (
    str | int | float | bool | None | list[JsonValue] | dict[str, JsonValue]
)

console = Console()

SENSITIVE_KEYS: frozenset[str] = frozenset(
    {"api_key", "secret", "password", "token", "private_key"}
)


def load_target(spec: str) -> Any:
    """Import a structure class and return a zero instance of it.

    Parameters
    ----------
    spec : str
        Target in ``package.module:ClassName`` form.

    Returns
    -------
    Any
        Fresh instance with zero values for fields lacking defaults.

    Raises
    ------
    ValueError
        If ``spec`` is malformed or does not name a structure class.
    ImportError
        If the module cannot be imported.
    """
    module_path, sep, attr_path = spec.partition(":")
    if not sep or not module_path or not attr_path:
        raise ValueError(f"Target must look like 'module:Class', got {spec!r}")

    obj: Any = importlib.import_module(module_path)
    for attr in attr_path.split("."):
        try:
            obj = getattr(obj, attr)
        except AttributeError as e:
            raise ValueError(f"{module_path} has no attribute {attr_path!r}") from e

    if not is_structure(obj):
        raise ValueError(f"{spec} is not a dataclass or pydantic model class")
    return zero_instance(obj)


def to_plain(value: Any) -> JsonValue:
    """Convert a bound structure into plain YAML/JSON-friendly data.

    Parameters
    ----------
    value : Any
        Structure instance or field value.

    Returns
    -------
    JsonValue
        Nested dicts, lists and scalars; durations and paths become strings.
    """
    if isinstance(value, BaseModel):
        fields = type(value).model_fields
        return {name: to_plain(getattr(value, name)) for name in fields}
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        names = [f.name for f in dataclasses.fields(value)]
        return {name: to_plain(getattr(value, name)) for name in names}
    if isinstance(value, timedelta):
        return format_duration(value)
    if isinstance(value, Path):
        return str(value)
    if isinstance(value, dict):
        return {str(k): to_plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_plain(item) for item in value]
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    return str(value)


def redact_sensitive_values(data: dict[str, JsonValue]) -> dict[str, JsonValue]:
    """Redact sensitive values in bound configuration.

    Parameters
    ----------
    data : dict[str, JsonValue]
        Configuration data.

    Returns
    -------
    dict[str, JsonValue]
        Data with sensitive values redacted.
    """
    result: dict[str, JsonValue] = {}
    for key, value in data.items():
        if isinstance(value, dict):
            result[key] = redact_sensitive_values(value)
        elif any(sensitive in key.lower() for sensitive in SENSITIVE_KEYS):
            result[key] = "***REDACTED***" if value else None
        else:
            result[key] = value
    return result


def format_output(
    data: dict[str, JsonValue],
    format_type: Literal["yaml", "json"],
) -> str:
    """Format data for CLI output.

    Raises
    ------
    ValueError
        If format_type is invalid.
    """
    if format_type == "yaml":
        return yaml.dump(data, default_flow_style=False, sort_keys=False)
    elif format_type == "json":
        return json.dumps(data, indent=2)
    else:
        raise ValueError(f"Invalid format type: {format_type}")


def print_error(message: str, exit_code: int = 1) -> None:
    """Print error message and exit.

    Parameters
    ----------
    message : str
        Error message to display.
    exit_code : int
        Exit code (default: 1). Pass 0 to not exit.
    """
    console.print(f"[red]✗ Error:[/red] {escape(message)}")
    if exit_code != 0:
        sys.exit(exit_code)


def print_success(message: str) -> None:
    """Print success message."""
    console.print(f"[green]✓ {escape(message)}[/green]")


def print_warning(message: str) -> None:
    """Print warning message."""
    console.print(f"[yellow]⚠ Warning:[/yellow] {escape(message)}")

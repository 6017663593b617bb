"""Usage listings for binding targets.

This module lists every variable a target reads, using the same walk and
name derivation as ``bind``, and reports prefixed variables that no field
consumes.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import asdict, dataclass
from datetime import timedelta
from io import StringIO
from typing import Any, Literal

from rich.console import Console
from rich.table import Table

from envbind.config import DEFAULT_CONFIG, BinderConfig
from envbind.decoders import format_duration
from envbind.env import snapshot, variables_with_prefix
from envbind.fields import zero_instance
from envbind.naming import NameContext
from envbind.walker import check_target, walk

UsageFormat = Literal["table", "list", "json"]


@dataclass(frozen=True)
class UsageEntry:
    """One bindable variable.

    Parameters
    ----------
    key : str
        Primary variable name.
    alternatives : tuple[str, ...]
        Further names tried when ``key`` is unset.
    path : str
        Dotted attribute path of the field.
    type_name : str
        Declared type of the field.
    default : str
        Default shown to users, empty when there is none.
    required : bool
        Whether the variable must be set.
    description : str
        Field description, empty when there is none.
    """

    key: str
    alternatives: tuple[str, ...]
    path: str
    type_name: str
    default: str
    required: bool
    description: str


def format_value(value: Any) -> str:
    """Render a field value the way it would be written in the environment.

    Examples
    --------
    >>> format_value([5, 10, 20])
    '5,10,20'
    >>> format_value(timedelta(seconds=5))
    '5s'
    >>> format_value(None)
    ''
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, timedelta):
        return format_duration(value)
    if isinstance(value, (list, tuple)):
        return ",".join(format_value(item) for item in value)
    if isinstance(value, dict):
        pairs = (f"{format_value(k)}:{format_value(v)}" for k, v in value.items())
        return ",".join(pairs)
    return str(value)


def usage_entries(
    prefix: str,
    target: Any,
    config: BinderConfig | None = None,
) -> list[UsageEntry]:
    """List the variables a target reads.

    Parameters
    ----------
    prefix : str
        Application prefix, as passed to ``bind``.
    target : Any
        Structure instance or structure class. Classes are listed from a
        zero instance, so current values never leak into the listing.
    config : BinderConfig | None
        Binder configuration. If None, uses the defaults.

    Returns
    -------
    list[UsageEntry]
        One entry per bindable leaf field, in walk order.

    Examples
    --------
    >>> from dataclasses import dataclass
    >>> @dataclass
    ... class Specification:
    ...     port: int = 8080
    >>> [entry.key for entry in usage_entries("app", Specification)]
    ['APP_PORT']
    """
    config = config or DEFAULT_CONFIG
    if isinstance(target, type):
        target = zero_instance(target)
    check_target(target)

    entries = []
    for site in walk(target, NameContext.root(prefix), config):
        options = site.field.options
        if options.default is not None:
            default = options.default
        else:
            default = format_value(getattr(site.owner, site.field.name))
        entries.append(
            UsageEntry(
                key=site.names[0] if site.names else "",
                alternatives=site.names[1:],
                path=site.dotted_path,
                type_name=site.field.type_spec.name,
                default=default,
                required=options.required,
                description=site.field.description or "",
            )
        )
    return entries


def unused_variables(
    prefix: str,
    target: Any,
    environ: Mapping[str, str] | None = None,
    config: BinderConfig | None = None,
) -> list[str]:
    """List prefixed variables that no field of the target reads.

    Parameters
    ----------
    prefix : str
        Application prefix.
    target : Any
        Structure instance or class.
    environ : Mapping[str, str] | None
        Variables to inspect. If None, uses ``os.environ``.
    config : BinderConfig | None
        Binder configuration.

    Returns
    -------
    list[str]
        Sorted names of unread variables.
    """
    known: set[str] = set()
    for entry in usage_entries(prefix, target, config):
        known.add(entry.key)
        known.update(entry.alternatives)
    candidates = variables_with_prefix(snapshot(environ), prefix)
    return sorted(name for name in candidates if name not in known)


def format_usage(entries: list[UsageEntry], format_type: UsageFormat = "table") -> str:
    """Render usage entries for display.

    Parameters
    ----------
    entries : list[UsageEntry]
        Entries from ``usage_entries``.
    format_type : {"table", "list", "json"}
        Output format.

    Returns
    -------
    str
        Rendered listing.

    Raises
    ------
    ValueError
        If ``format_type`` is invalid.
    """
    if format_type == "json":
        return json.dumps([asdict(entry) for entry in entries], indent=2)
    elif format_type == "list":
        lines = []
        for entry in entries:
            line = f"{entry.key}\t{entry.type_name}\t{entry.default}"
            if entry.required:
                line += "\trequired"
            if entry.description:
                line += f"\t{entry.description}"
            lines.append(line)
        return "\n".join(lines)
    elif format_type == "table":
        return _entries_to_table(entries)
    else:
        raise ValueError(f"Invalid format type: {format_type}")


def _entries_to_table(entries: list[UsageEntry]) -> str:
    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Key", style="yellow", no_wrap=True)
    table.add_column("Type", style="white")
    table.add_column("Default", style="white")
    table.add_column("Required", style="white")
    table.add_column("Description", style="white")

    for entry in entries:
        key = "\n".join((entry.key, *entry.alternatives))
        table.add_row(
            key,
            entry.type_name,
            entry.default,
            "yes" if entry.required else "",
            entry.description,
        )

    # Capture table output
    string_io = StringIO()
    temp_console = Console(file=string_io, force_terminal=True, width=120)
    temp_console.print(table)
    return string_io.getvalue()

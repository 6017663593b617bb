"""Field walking and binding.

``walk`` enumerates the leaf fields of a target as ``BindingSite`` records,
descending into nested structures as it goes; ``bind`` feeds every site to
``bind_site``, which looks the value up and assigns the converted result.

Examples
--------
>>> from dataclasses import dataclass
>>> @dataclass
... class Specification:
...     debug: bool = False
...     port: int = 0
>>> env = {"ENV_CONFIG_DEBUG": "true", "ENV_CONFIG_PORT": "8080"}
>>> bind("env_config", Specification(), environ=env)
Specification(debug=True, port=8080)
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from typing import Any, TypeVar

from envbind.config import DEFAULT_CONFIG, BinderConfig
from envbind.decoders import InvalidValueError, convert
from envbind.env import lookup, snapshot
from envbind.errors import (
    BindErrors,
    ConversionError,
    EnvBindError,
    InvalidTargetError,
    MissingVariableError,
)
from envbind.fields import FieldSpec, describe, is_structure, zero_instance
from envbind.naming import NameContext, context_name, derive_names

logger = logging.getLogger(__name__)

# Reported as the source key when a declared default is converted
DEFAULT_KEY = "<default>"

T = TypeVar("T")


@dataclass(frozen=True)
class BindingSite:
    """One leaf field reached by the walk.

    Parameters
    ----------
    owner : Any
        Structure instance that holds the field.
    field : FieldSpec
        Descriptor of the field.
    names : tuple[str, ...]
        Candidate variable names in lookup order.
    context : NameContext
        Name context of the owning structure.
    path : tuple[str, ...]
        Attribute path from the root target to the field.
    """

    owner: Any
    field: FieldSpec
    names: tuple[str, ...]
    context: NameContext
    path: tuple[str, ...]

    @property
    def dotted_path(self) -> str:
        """Attribute path joined with dots, e.g. ``nested.child.body``."""
        return ".".join(self.path)


def check_target(target: Any) -> None:
    """Reject anything that is not a mutable structure instance.

    Raises
    ------
    InvalidTargetError
        If the target is a class, a mapping, a scalar or a frozen instance.
    """
    if isinstance(target, type) or not is_structure(type(target)):
        raise InvalidTargetError(
            f"binding target must be a dataclass or pydantic model instance, "
            f"got {type(target).__name__}"
        )
    describe(type(target))


def walk(
    target: Any,
    context: NameContext,
    config: BinderConfig = DEFAULT_CONFIG,
    path: tuple[str, ...] = (),
) -> Iterator[BindingSite]:
    """Enumerate the bindable leaf fields of a structure.

    Nested structures are descended into as they are reached, and optional
    structure fields that hold None are allocated with a zero instance first.

    Parameters
    ----------
    target : Any
        Structure instance.
    context : NameContext
        Name context of ``target``.
    config : BinderConfig
        Binder configuration.
    path : tuple[str, ...]
        Attribute path of ``target`` from the root.

    Yields
    ------
    BindingSite
        Leaf fields in declaration order.
    """
    spec = describe(type(target))
    for field in spec.fields:
        if not field.exported or field.ignored:
            continue
        field_path = (*path, field.name)

        if field.is_struct:
            child = getattr(target, field.name)
            if child is None:
                child = zero_instance(field.type_spec.type)
                setattr(target, field.name, child)
                logger.debug(f"Allocated {'.'.join(field_path)}")

            if field.embedded:
                inner = context
            elif field.override:
                inner = NameContext.detached(field.override)
            else:
                inner = context.child(field.name)
            yield from walk(child, inner, config, field_path)
            continue

        if field.embedded:
            names = context_name(field.override, context)
        else:
            names = derive_names(
                field.name,
                field.override,
                context,
                bare_fallback=config.bare_fallback,
            )
        yield BindingSite(target, field, names, context, field_path)


def bind_site(
    site: BindingSite,
    env: Mapping[str, str],
    config: BinderConfig = DEFAULT_CONFIG,
) -> bool:
    """Look up, convert and assign the value of one leaf field.

    Parameters
    ----------
    site : BindingSite
        Leaf field to bind.
    env : Mapping[str, str]
        Environment snapshot.
    config : BinderConfig
        Binder configuration.

    Returns
    -------
    bool
        True if the field was assigned, False if no variable was found.

    Raises
    ------
    ConversionError
        If the value cannot be converted; the field is left untouched. A
        failing declared default is reported with ``key`` set to
        ``DEFAULT_KEY``.
    MissingVariableError
        If a required field has no variable and no default.
    """
    field = site.field
    found = lookup(env, site.names)
    if found is None:
        if field.options.default is not None:
            found = (DEFAULT_KEY, field.options.default)
        elif field.options.required:
            raise MissingVariableError(site.dotted_path, site.names)
        else:
            return False

    key, raw = found
    try:
        value = convert(raw, field.type_spec, config)
    except InvalidValueError as e:
        raise ConversionError(
            field.name, key, raw, field.type_spec.name, str(e)
        ) from e

    setattr(site.owner, field.name, value)
    logger.debug(f"Bound {site.dotted_path} from {key}")
    return True


def bind(
    prefix: str,
    target: T,
    *,
    environ: Mapping[str, str] | None = None,
    config: BinderConfig | None = None,
) -> T:
    """Populate a structure instance from environment variables.

    Parameters
    ----------
    prefix : str
        Application prefix prepended to derived variable names. May be empty.
    target : T
        Dataclass or pydantic model instance, modified in place.
    environ : Mapping[str, str] | None
        Variables to read. If None, uses ``os.environ``.
    config : BinderConfig | None
        Binder configuration. If None, uses the defaults.

    Returns
    -------
    T
        The same ``target``.

    Raises
    ------
    InvalidTargetError
        If the target cannot be bound; no field is touched.
    ConversionError
        If a value cannot be converted. Fields bound earlier in the walk keep
        their new values.
    MissingVariableError
        If a required field has no variable.
    BindErrors
        If ``config.collect_errors`` is set and any field failed.
    """
    config = config or DEFAULT_CONFIG
    check_target(target)
    env = snapshot(environ)

    errors: list[EnvBindError] = []
    bound = 0
    for site in walk(target, NameContext.root(prefix), config):
        try:
            bound += bind_site(site, env, config)
        except (ConversionError, MissingVariableError) as e:
            if not config.collect_errors:
                raise
            errors.append(e)

    if errors:
        raise BindErrors(errors)
    logger.debug(f"Bound {bound} field(s) of {type(target).__name__}")
    return target


def must_bind(
    prefix: str,
    target: T,
    *,
    environ: Mapping[str, str] | None = None,
    config: BinderConfig | None = None,
) -> T:
    """Populate a structure like ``bind``, exiting the process on failure.

    Raises
    ------
    SystemExit
        If binding fails for any reason.
    """
    try:
        return bind(prefix, target, environ=environ, config=config)
    except EnvBindError as e:
        logger.critical(f"Failed to bind {type(target).__name__}: {e}")
        sys.exit(f"envbind: {e}")

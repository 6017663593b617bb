"""Field descriptors for binding targets.

A binding target is an instance of a ``dataclasses`` dataclass or of a
``pydantic.BaseModel``. ``describe`` turns its class into a ``StructSpec``
once and caches it; the walker then works from that table instead of
re-inspecting annotations on every call.

Per-field options are attached with ``typing.Annotated``::

    @dataclass
    class Specification:
        host: Annotated[str, Env("service_host")] = ""
        secret: Annotated[str, Env("-")] = ""
        base: Annotated[Embedded, Env(embedded=True)] = field(
            default_factory=Embedded
        )

Dataclass fields may also carry the marker in their metadata, as
``field(metadata={"env": Env(...)})``.
"""

from __future__ import annotations

import dataclasses
import types
from dataclasses import dataclass, field
from datetime import timedelta
from pathlib import Path
from typing import Annotated, Any, Union, get_args, get_origin, get_type_hints

from pydantic import BaseModel

from envbind.decoders import find_decoder
from envbind.errors import InvalidTargetError
from envbind.kinds import SCALAR_KINDS, FloatWidth, IntRange, Kind, TypeSpec

IGNORE_SENTINEL = "-"


@dataclass(frozen=True)
class Env:
    """Binding options for one field.

    Parameters
    ----------
    name : str | None
        Exact variable name to use instead of the derived one. Never
        combined with the prefix. ``"-"`` ignores the field.
    ignored : bool
        Never bind this field or anything beneath it.
    embedded : bool
        Expose a nested structure's fields in the parent's namespace. On a
        leaf field, bind it under the enclosing structure's own name.
    default : str | None
        Raw value used when no variable is set.
    required : bool
        Raise ``MissingVariableError`` when no variable is set and there is
        no default.
    description : str | None
        Text shown in usage listings.

    Examples
    --------
    >>> Env("-").ignored
    True
    >>> Env("service_host").name
    'service_host'
    """

    name: str | None = None
    ignored: bool = field(default=False, kw_only=True)
    embedded: bool = field(default=False, kw_only=True)
    default: str | None = field(default=None, kw_only=True)
    required: bool = field(default=False, kw_only=True)
    description: str | None = field(default=None, kw_only=True)

    def __post_init__(self) -> None:
        if self.name == IGNORE_SENTINEL:
            object.__setattr__(self, "name", None)
            object.__setattr__(self, "ignored", True)
        elif self.name == "":
            object.__setattr__(self, "name", None)


_NO_OPTIONS = Env()


@dataclass(frozen=True)
class FieldSpec:
    """Descriptor of one declared field.

    Parameters
    ----------
    name : str
        Declared attribute name.
    type_spec : TypeSpec
        Resolved type of the field (the inner type for optional fields).
    optional : bool
        Whether the annotation allows None.
    options : Env
        Binding options from the annotation.
    has_default : bool
        Whether the class supplies a default for this field.
    description : str | None
        Description from the binding options or the model field.
    struct : StructSpec | None
        Nested descriptor table for structure fields.
    """

    name: str
    type_spec: TypeSpec
    optional: bool = False
    options: Env = _NO_OPTIONS
    has_default: bool = True
    description: str | None = None
    struct: StructSpec | None = None

    @property
    def override(self) -> str | None:
        """Explicit variable name, if any."""
        return self.options.name

    @property
    def exported(self) -> bool:
        """Whether the field is visible to binding."""
        return not self.name.startswith("_")

    @property
    def ignored(self) -> bool:
        """Whether the field is excluded from binding."""
        return self.options.ignored

    @property
    def embedded(self) -> bool:
        """Whether the field shares its parent's namespace."""
        return self.options.embedded

    @property
    def is_struct(self) -> bool:
        """Whether the walker descends into this field."""
        return self.type_spec.kind is Kind.STRUCT


@dataclass(frozen=True)
class StructSpec:
    """Descriptor table of a structure class, in declaration order."""

    cls: type
    fields: tuple[FieldSpec, ...]
    is_model: bool = False

    def field_named(self, name: str) -> FieldSpec:
        """Return the descriptor of a field by name."""
        for spec in self.fields:
            if spec.name == name:
                return spec
        raise KeyError(name)


_CACHE: dict[type, StructSpec] = {}


def clear_cache() -> None:
    """Forget every cached descriptor table."""
    _CACHE.clear()


def is_structure(tp: Any) -> bool:
    """Return whether a type is a bindable structure class.

    Examples
    --------
    >>> @dataclass
    ... class Point:
    ...     x: int = 0
    >>> is_structure(Point), is_structure(dict)
    (True, False)
    """
    if not isinstance(tp, type) or get_origin(tp) is not None:
        return False
    return dataclasses.is_dataclass(tp) or issubclass(tp, BaseModel)


def is_frozen(cls: type) -> bool:
    """Return whether instances of a structure class reject assignment."""
    if issubclass(cls, BaseModel):
        return bool(cls.model_config.get("frozen", False))
    params = getattr(cls, "__dataclass_params__", None)
    return bool(params is not None and params.frozen)


def _unwrap(annotation: Any, metadata: list[Any]) -> Any:
    while get_origin(annotation) is Annotated:
        base, *extra = get_args(annotation)
        metadata.extend(extra)
        annotation = base
    return annotation


def _split_optional(annotation: Any) -> tuple[Any, bool]:
    if get_origin(annotation) in (Union, types.UnionType):
        args = [arg for arg in get_args(annotation) if arg is not type(None)]
        if len(args) == 1 and len(args) < len(get_args(annotation)):
            return args[0], True
    return annotation, False


def _marker(metadata: list[Any], kind: type) -> Any:
    found = None
    for item in metadata:
        if isinstance(item, kind):
            found = item
    return found


def resolve_type(annotation: Any, metadata: list[Any] | None = None) -> TypeSpec:
    """Resolve an annotation to a tagged ``TypeSpec``.

    Parameters
    ----------
    annotation : Any
        Field annotation, possibly wrapped in ``Annotated``.
    metadata : list[Any] | None
        Extra annotation metadata already split off by the caller.

    Returns
    -------
    TypeSpec
        Resolved type; ``Kind.UNSUPPORTED`` when no conversion applies.

    Examples
    --------
    >>> resolve_type(list[int]).name
    'list[int]'
    >>> resolve_type(bool).kind
    <Kind.BOOL: 'bool'>
    """
    metadata = list(metadata or [])
    tp = _unwrap(annotation, metadata)

    if find_decoder(tp) is not None:
        return TypeSpec(tp, Kind.CUSTOM)
    if tp is timedelta:
        return TypeSpec(tp, Kind.DURATION)
    if tp is bool:
        return TypeSpec(tp, Kind.BOOL)
    if tp is int:
        return TypeSpec(tp, Kind.INT, int_range=_marker(metadata, IntRange))
    if tp is float:
        return TypeSpec(tp, Kind.FLOAT, float_width=_marker(metadata, FloatWidth))
    if tp is str:
        return TypeSpec(tp, Kind.STRING)
    if isinstance(tp, type) and get_origin(tp) is None and issubclass(tp, Path):
        return TypeSpec(tp, Kind.PATH)
    if is_structure(tp):
        return TypeSpec(tp, Kind.STRUCT)

    origin = get_origin(tp) or tp
    args = get_args(tp)
    if origin is list and len(args) <= 1:
        return _sequence(list, args[0] if args else str)
    if origin is tuple and (not args or (len(args) == 2 and args[1] is Ellipsis)):
        return _sequence(tuple, args[0] if args else str)
    if origin is dict:
        key, value = args if len(args) == 2 else (str, str)
        key_spec, value_spec = resolve_type(key), resolve_type(value)
        if key_spec.kind in SCALAR_KINDS and value_spec.kind in SCALAR_KINDS:
            return TypeSpec(dict, Kind.MAPPING, element=value_spec, key=key_spec)
    return TypeSpec(tp, Kind.UNSUPPORTED)


def _sequence(container: type, element: Any) -> TypeSpec:
    element_spec = resolve_type(element)
    if element_spec.kind not in SCALAR_KINDS:
        return TypeSpec(container, Kind.UNSUPPORTED, element=element_spec)
    return TypeSpec(container, Kind.SEQUENCE, element=element_spec)


def _field_spec(
    name: str,
    annotation: Any,
    metadata: list[Any],
    has_default: bool,
    description: str | None,
    stack: tuple[type, ...],
) -> FieldSpec:
    metadata = list(metadata)
    inner, optional = _split_optional(_unwrap(annotation, metadata))
    inner = _unwrap(inner, metadata)
    options = _marker(metadata, Env) or _NO_OPTIONS
    type_spec = resolve_type(inner, metadata)

    struct = None
    private = name.startswith("_")
    if type_spec.kind is Kind.STRUCT and not options.ignored and not private:
        struct = _describe(type_spec.type, stack)

    return FieldSpec(
        name=name,
        type_spec=type_spec,
        optional=optional,
        options=options,
        has_default=has_default,
        description=options.description or description,
        struct=struct,
    )


def _dataclass_fields(cls: type, stack: tuple[type, ...]) -> list[FieldSpec]:
    hints = get_type_hints(cls, include_extras=True)
    specs = []
    for f in dataclasses.fields(cls):
        metadata = [f.metadata["env"]] if "env" in f.metadata else []
        has_default = (
            f.default is not dataclasses.MISSING
            or f.default_factory is not dataclasses.MISSING
            or not f.init
        )
        specs.append(
            _field_spec(
                f.name,
                hints.get(f.name, f.type),
                metadata,
                has_default,
                f.metadata.get("description"),
                stack,
            )
        )
    return specs


def _model_fields(cls: type[BaseModel], stack: tuple[type, ...]) -> list[FieldSpec]:
    return [
        _field_spec(
            name,
            info.annotation,
            list(info.metadata),
            not info.is_required(),
            info.description,
            stack,
        )
        for name, info in cls.model_fields.items()
    ]


def describe(cls: type) -> StructSpec:
    """Build (or fetch from cache) the descriptor table of a structure class.

    Parameters
    ----------
    cls : type
        Dataclass or pydantic model class.

    Returns
    -------
    StructSpec
        Field descriptors in declaration order, nested structures included.

    Raises
    ------
    InvalidTargetError
        If the class is not a structure, is frozen, or contains itself
        through non-ignored structure fields.
    """
    return _describe(cls, ())


def _describe(cls: type, stack: tuple[type, ...]) -> StructSpec:
    cached = _CACHE.get(cls)
    if cached is not None:
        return cached
    if not is_structure(cls):
        raise InvalidTargetError(f"{cls!r} is not a dataclass or pydantic model")
    if is_frozen(cls):
        raise InvalidTargetError(f"{cls.__name__} is frozen and cannot be bound")
    if cls in stack:
        chain = " -> ".join(c.__name__ for c in (*stack, cls))
        raise InvalidTargetError(f"recursive structure: {chain}")

    stack = (*stack, cls)
    if issubclass(cls, BaseModel):
        spec = StructSpec(cls, tuple(_model_fields(cls, stack)), is_model=True)
    else:
        spec = StructSpec(cls, tuple(_dataclass_fields(cls, stack)))
    _CACHE[cls] = spec
    return spec


def zero_value(spec: FieldSpec) -> Any:
    """Return the zero value for a field's declared type."""
    if spec.optional:
        return None
    kind = spec.type_spec.kind
    if kind is Kind.STRUCT:
        return zero_instance(spec.type_spec.type)
    if kind in (Kind.SEQUENCE, Kind.MAPPING):
        return spec.type_spec.type()
    zeros: dict[Kind, Any] = {
        Kind.BOOL: False,
        Kind.INT: 0,
        Kind.FLOAT: 0.0,
        Kind.STRING: "",
        Kind.DURATION: timedelta(0),
    }
    return zeros.get(kind)


def zero_instance(cls: type) -> Any:
    """Create an instance with zero values for every field lacking a default.

    Models are built with ``model_construct`` so zero values skip
    validation; dataclasses are called with the zero keyword arguments.

    Examples
    --------
    >>> @dataclass
    ... class Server:
    ...     host: str
    ...     port: int = 80
    >>> zero_instance(Server)
    Server(host='', port=80)
    """
    spec = describe(cls)
    kwargs = {f.name: zero_value(f) for f in spec.fields if not f.has_default}
    if spec.is_model:
        return cls.model_construct(**kwargs)  # type: ignore[attr-defined]
    return cls(**kwargs)

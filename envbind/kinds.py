"""Type tags and width markers for bindable fields.

Every bindable annotation resolves to a ``TypeSpec`` carrying a closed
``Kind`` tag. Integer and float widths are expressed as ``typing.Annotated``
markers so plain ``int`` and ``float`` stay unbounded.

Examples
--------
>>> from dataclasses import dataclass
>>> @dataclass
... class Limits:
...     ttl: UInt32 = 0
...     ratio: Float32 = 0.0
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Annotated, Any, Protocol, Self, runtime_checkable


class Kind(Enum):
    """Closed set of conversion kinds, in dispatch priority order."""

    CUSTOM = "custom"
    DURATION = "duration"
    BOOL = "bool"
    INT = "int"
    FLOAT = "float"
    STRING = "string"
    PATH = "path"
    SEQUENCE = "sequence"
    MAPPING = "mapping"
    STRUCT = "struct"
    UNSUPPORTED = "unsupported"


SCALAR_KINDS = frozenset(
    {
        Kind.CUSTOM,
        Kind.DURATION,
        Kind.BOOL,
        Kind.INT,
        Kind.FLOAT,
        Kind.STRING,
        Kind.PATH,
    }
)


@dataclass(frozen=True)
class IntRange:
    """Integer width marker.

    Parameters
    ----------
    bits : int | None
        Bit width, or None for an unbounded integer.
    signed : bool
        Whether negative values are allowed.

    Examples
    --------
    >>> IntRange(8).bounds
    (-128, 127)
    >>> IntRange(16, signed=False).bounds
    (0, 65535)
    >>> IntRange(None, signed=False).type_name
    'uint'
    """

    bits: int | None = None
    signed: bool = True

    @property
    def bounds(self) -> tuple[int | None, int | None]:
        """Inclusive (minimum, maximum); None means unbounded."""
        if self.bits is None:
            return (None if self.signed else 0), None
        if self.signed:
            half = 1 << (self.bits - 1)
            return -half, half - 1
        return 0, (1 << self.bits) - 1

    @property
    def type_name(self) -> str:
        """Type name used in error messages."""
        base = "int" if self.signed else "uint"
        return base if self.bits is None else f"{base}{self.bits}"


@dataclass(frozen=True)
class FloatWidth:
    """Float width marker; only 32 and 64 are meaningful."""

    bits: int = 64

    @property
    def type_name(self) -> str:
        """Type name used in error messages."""
        return f"float{self.bits}"


Int8 = Annotated[int, IntRange(8)]
Int16 = Annotated[int, IntRange(16)]
Int32 = Annotated[int, IntRange(32)]
Int64 = Annotated[int, IntRange(64)]
UInt = Annotated[int, IntRange(None, signed=False)]
UInt8 = Annotated[int, IntRange(8, signed=False)]
UInt16 = Annotated[int, IntRange(16, signed=False)]
UInt32 = Annotated[int, IntRange(32, signed=False)]
UInt64 = Annotated[int, IntRange(64, signed=False)]
Float32 = Annotated[float, FloatWidth(32)]
Float64 = Annotated[float, FloatWidth(64)]


@runtime_checkable
class EnvDecodable(Protocol):
    """Types that know how to build themselves from an environment string.

    A ``from_env`` classmethod takes priority over every built-in
    conversion, including duration parsing. Whatever it raises reaches the
    caller unwrapped.

    Examples
    --------
    >>> class Bracketed(str):
    ...     @classmethod
    ...     def from_env(cls, value: str) -> "Bracketed":
    ...         return cls(f"[{value}]")
    >>> Bracketed.from_env("bar")
    '[bar]'
    """

    @classmethod
    def from_env(cls, value: str) -> Self: ...


@dataclass(frozen=True)
class TypeSpec:
    """Resolved description of a bindable type.

    Parameters
    ----------
    type : Any
        The concrete Python type (``list``/``tuple``/``dict`` for
        containers).
    kind : Kind
        Conversion tag.
    int_range : IntRange | None
        Width marker for integers.
    float_width : FloatWidth | None
        Width marker for floats.
    element : TypeSpec | None
        Element spec for sequences, value spec for mappings.
    key : TypeSpec | None
        Key spec for mappings.
    """

    type: Any
    kind: Kind
    int_range: IntRange | None = None
    float_width: FloatWidth | None = None
    element: TypeSpec | None = None
    key: TypeSpec | None = None

    @property
    def name(self) -> str:
        """Readable type name, e.g. ``uint32`` or ``list[int]``."""
        if self.kind is Kind.INT and self.int_range is not None:
            return self.int_range.type_name
        if self.kind is Kind.FLOAT and self.float_width is not None:
            return self.float_width.type_name
        if self.kind is Kind.SEQUENCE and self.element is not None:
            suffix = ", ..." if self.type is tuple else ""
            return f"{self.type.__name__}[{self.element.name}{suffix}]"
        if self.kind is Kind.MAPPING and self.key and self.element:
            return f"dict[{self.key.name}, {self.element.name}]"
        return getattr(self.type, "__name__", repr(self.type))

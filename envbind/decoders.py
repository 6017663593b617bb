"""Conversion of raw environment strings into typed values.

This module is the value side of a binding pass. ``convert`` dispatches on
the ``Kind`` tag of a resolved ``TypeSpec`` through a table of converter
functions. Custom decoders, either registered with ``register_decoder`` or
provided by a ``from_env`` classmethod, come first and their exceptions are
never wrapped. Built-in converters signal bad input with
``InvalidValueError``, which the walker turns into a ``ConversionError``.
"""

from __future__ import annotations

import math
import re
from collections.abc import Callable
from datetime import timedelta
from decimal import Decimal
from typing import Any, get_origin

from envbind.config import DEFAULT_CONFIG, BinderConfig
from envbind.kinds import IntRange, Kind, TypeSpec

Decoder = Callable[[str], Any]

_DECODERS: dict[type, Decoder] = {}

_TRUE_LITERALS = frozenset({"1", "t", "true", "y", "yes", "on"})
_FALSE_LITERALS = frozenset({"0", "f", "false", "n", "no", "off"})

_SIGNED_RE = re.compile(r"[+-]?\d+", re.ASCII)
_UNSIGNED_RE = re.compile(r"\d+", re.ASCII)
_DURATION_PART_RE = re.compile(
    r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|μs|ms|s|m|h)", re.ASCII
)

# microseconds per unit
_DURATION_UNITS = {
    "ns": Decimal("0.001"),
    "us": Decimal(1),
    "µs": Decimal(1),
    "μs": Decimal(1),
    "ms": Decimal(1_000),
    "s": Decimal(1_000_000),
    "m": Decimal(60_000_000),
    "h": Decimal(3_600_000_000),
}

_FLOAT32_MAX = 3.4028234663852886e38


class InvalidValueError(ValueError):
    """Raised by built-in converters when a raw string is malformed."""

    pass


def register_decoder(tp: type, decoder: Decoder) -> None:
    """Register a decoder for a type.

    Registered decoders apply to the type and its subclasses and take
    priority over ``from_env`` and every built-in conversion.

    Parameters
    ----------
    tp : type
        Type the decoder produces.
    decoder : Callable[[str], Any]
        Function converting the raw string to a value.

    Examples
    --------
    >>> from ipaddress import IPv4Address
    >>> register_decoder(IPv4Address, IPv4Address)
    >>> find_decoder(IPv4Address)("127.0.0.1")
    IPv4Address('127.0.0.1')
    >>> unregister_decoder(IPv4Address)
    """
    _DECODERS[tp] = decoder
    _invalidate_descriptors()


def unregister_decoder(tp: type) -> None:
    """Remove a previously registered decoder; missing types are ignored."""
    _DECODERS.pop(tp, None)
    _invalidate_descriptors()


def _invalidate_descriptors() -> None:
    # Lazy import to avoid circular import
    from envbind.fields import clear_cache

    clear_cache()


def find_decoder(tp: Any) -> Decoder | None:
    """Return the custom decoder for a type, if it has one.

    Parameters
    ----------
    tp : Any
        Candidate type.

    Returns
    -------
    Callable[[str], Any] | None
        The registered decoder or ``from_env`` classmethod of the nearest
        class in the MRO that has one, or None.
    """
    if not isinstance(tp, type) or get_origin(tp) is not None:
        return None
    # bool has its own built-in rule and never inherits an int decoder
    mro = (tp,) if tp is bool else tp.__mro__
    for klass in mro:
        if klass in _DECODERS:
            return _DECODERS[klass]
        if "from_env" in vars(klass):
            from_env = getattr(tp, "from_env")
            if callable(from_env):
                return from_env  # type: ignore[no-any-return]
    return None


def parse_duration(value: str) -> timedelta:
    """Parse a duration literal such as ``300ms``, ``2m`` or ``1h30m``.

    Parameters
    ----------
    value : str
        Signed sequence of decimal numbers, each with a unit suffix
        (``ns``, ``us``, ``µs``, ``ms``, ``s``, ``m``, ``h``). A bare ``0``
        is also accepted.

    Returns
    -------
    timedelta
        Parsed duration, truncated to microseconds.

    Raises
    ------
    InvalidValueError
        If the literal is malformed.

    Examples
    --------
    >>> parse_duration("2m")
    datetime.timedelta(seconds=120)
    >>> parse_duration("1.5s")
    datetime.timedelta(seconds=1, microseconds=500000)
    >>> parse_duration("-1h30m")
    datetime.timedelta(days=-1, seconds=81000)
    """
    text = value
    negative = text.startswith("-")
    if text[:1] in ("+", "-"):
        text = text[1:]
    if text == "0":
        return timedelta(0)
    if not text:
        raise InvalidValueError(f"invalid duration {value!r}")

    total = Decimal(0)
    pos = 0
    while pos < len(text):
        match = _DURATION_PART_RE.match(text, pos)
        if match is None:
            raise InvalidValueError(f"invalid duration {value!r}")
        number, unit = match.groups()
        total += Decimal(number) * _DURATION_UNITS[unit]
        pos = match.end()

    micros = int(total)
    try:
        return timedelta(microseconds=-micros if negative else micros)
    except OverflowError as e:
        raise InvalidValueError(f"duration {value!r} out of range") from e


def format_duration(value: timedelta) -> str:
    """Format a duration the way ``parse_duration`` reads it.

    Examples
    --------
    >>> format_duration(timedelta(minutes=2))
    '2m0s'
    >>> format_duration(timedelta(milliseconds=1500))
    '1.5s'
    >>> format_duration(timedelta(0))
    '0s'
    """
    micros = (value.days * 86_400 + value.seconds) * 1_000_000 + value.microseconds
    if micros == 0:
        return "0s"
    sign = "-" if micros < 0 else ""
    micros = abs(micros)

    if micros < 1_000:
        return f"{sign}{micros}µs"
    if micros < 1_000_000:
        return f"{sign}{_fraction(micros, 1_000)}ms"

    hours, rest = divmod(micros, 3_600_000_000)
    minutes, rest = divmod(rest, 60_000_000)
    seconds = f"{_fraction(rest, 1_000_000)}s"
    if hours:
        return f"{sign}{hours}h{minutes}m{seconds}"
    if minutes:
        return f"{sign}{minutes}m{seconds}"
    return f"{sign}{seconds}"


def _fraction(amount: int, unit: int) -> str:
    whole, frac = divmod(amount, unit)
    if not frac:
        return str(whole)
    digits = str(frac).rjust(len(str(unit)) - 1, "0").rstrip("0")
    return f"{whole}.{digits}"


def parse_bool(value: str) -> bool:
    """Parse a boolean literal, case-insensitively.

    Examples
    --------
    >>> parse_bool("TRUE"), parse_bool("off")
    (True, False)
    """
    lowered = value.lower()
    if lowered in _TRUE_LITERALS:
        return True
    if lowered in _FALSE_LITERALS:
        return False
    raise InvalidValueError(f"invalid boolean literal {value!r}")


def parse_int(value: str, int_range: IntRange | None = None) -> int:
    """Parse a base-10 integer and check it against a width marker.

    Examples
    --------
    >>> parse_int("8080")
    8080
    >>> parse_int("-30", IntRange(32, signed=False))
    Traceback (most recent call last):
        ...
    envbind.decoders.InvalidValueError: negative value for unsigned integer
    """
    int_range = int_range or IntRange()
    if int_range.signed:
        valid = _SIGNED_RE.fullmatch(value) is not None
    else:
        valid = _UNSIGNED_RE.fullmatch(value) is not None
        if not valid and value.startswith("-") and _SIGNED_RE.fullmatch(value):
            raise InvalidValueError("negative value for unsigned integer")
    if not valid:
        raise InvalidValueError("invalid integer syntax")

    try:
        number = int(value)
    except ValueError as e:
        raise InvalidValueError(str(e)) from e

    low, high = int_range.bounds
    if (low is not None and number < low) or (high is not None and number > high):
        raise InvalidValueError(f"value out of range for {int_range.type_name}")
    return number


def parse_float(value: str, bits: int = 64) -> float:
    """Parse a base-10 float; 32-bit fields reject values beyond float32.

    Examples
    --------
    >>> parse_float("0.5")
    0.5
    """
    if "_" in value or not value.isascii() or value != value.strip():
        raise InvalidValueError("invalid float syntax")
    try:
        number = float(value)
    except ValueError as e:
        raise InvalidValueError("invalid float syntax") from e
    if bits == 32 and math.isfinite(number) and abs(number) > _FLOAT32_MAX:
        raise InvalidValueError("value out of range for float32")
    return number


def _convert_custom(raw: str, spec: TypeSpec, config: BinderConfig) -> Any:
    decoder = find_decoder(spec.type)
    if decoder is None:
        raise InvalidValueError(f"no decoder registered for {spec.name}")
    return decoder(raw)


def _convert_int(raw: str, spec: TypeSpec, config: BinderConfig) -> int:
    return parse_int(raw, spec.int_range)


def _convert_float(raw: str, spec: TypeSpec, config: BinderConfig) -> float:
    bits = spec.float_width.bits if spec.float_width else 64
    return parse_float(raw, bits)


# Element kinds read with surrounding whitespace removed; others are verbatim
_STRIPPED_KINDS = frozenset({Kind.DURATION, Kind.BOOL, Kind.INT, Kind.FLOAT})


def _element(text: str, spec: TypeSpec, config: BinderConfig) -> Any:
    if spec.kind in _STRIPPED_KINDS:
        text = text.strip()
    return convert(text, spec, config)


def _convert_sequence(raw: str, spec: TypeSpec, config: BinderConfig) -> Any:
    if raw == "":
        return spec.type()
    assert spec.element is not None
    values = []
    for index, item in enumerate(raw.split(config.sequence_separator)):
        try:
            values.append(_element(item, spec.element, config))
        except InvalidValueError as e:
            raise InvalidValueError(f"element {index}: {e}") from e
    return spec.type(values)


def _convert_mapping(raw: str, spec: TypeSpec, config: BinderConfig) -> dict[Any, Any]:
    result: dict[Any, Any] = {}
    if raw == "":
        return result
    assert spec.key is not None and spec.element is not None
    for pair in raw.split(config.sequence_separator):
        key, found, value = pair.partition(config.mapping_separator)
        if not found:
            raise InvalidValueError(f"invalid map item {pair!r}")
        try:
            parsed_key = _element(key, spec.key, config)
            result[parsed_key] = _element(value, spec.element, config)
        except InvalidValueError as e:
            raise InvalidValueError(f"map item {pair!r}: {e}") from e
    return result


_CONVERTERS: dict[Kind, Callable[[str, TypeSpec, BinderConfig], Any]] = {
    Kind.CUSTOM: _convert_custom,
    Kind.DURATION: lambda raw, spec, config: parse_duration(raw),
    Kind.BOOL: lambda raw, spec, config: parse_bool(raw),
    Kind.INT: _convert_int,
    Kind.FLOAT: _convert_float,
    Kind.STRING: lambda raw, spec, config: raw,
    Kind.PATH: lambda raw, spec, config: spec.type(raw).expanduser(),
    Kind.SEQUENCE: _convert_sequence,
    Kind.MAPPING: _convert_mapping,
}


def convert(raw: str, spec: TypeSpec, config: BinderConfig = DEFAULT_CONFIG) -> Any:
    """Convert a raw environment string into a value of the given type.

    Parameters
    ----------
    raw : str
        Raw environment value.
    spec : TypeSpec
        Resolved type to convert to.
    config : BinderConfig
        Separators used for sequences and mappings.

    Returns
    -------
    Any
        Converted value.

    Raises
    ------
    InvalidValueError
        If a built-in conversion rejects the input or the type is not
        supported.
    Exception
        Anything raised by a custom decoder, unchanged.

    Examples
    --------
    >>> from envbind.fields import resolve_type
    >>> convert("5,10,20", resolve_type(list[int]))
    [5, 10, 20]
    >>> convert("", resolve_type(list[int]))
    []
    """
    converter = _CONVERTERS.get(spec.kind)
    if converter is None:
        raise InvalidValueError(f"unsupported type {spec.name}")
    return converter(raw, spec, config)

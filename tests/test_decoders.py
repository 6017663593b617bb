"""Tests for value conversion."""

from __future__ import annotations

from datetime import timedelta
from pathlib import Path
from typing import Annotated

import pytest

from envbind.config import BinderConfig
from envbind.decoders import (
    InvalidValueError,
    convert,
    find_decoder,
    format_duration,
    parse_bool,
    parse_duration,
    parse_float,
    parse_int,
    register_decoder,
    unregister_decoder,
)
from envbind.fields import resolve_type
from envbind.kinds import Float32, Int8, IntRange, Kind, UInt, UInt8, UInt64
from tests.spec_helpers import Bracketed, Strict


class TestParseBool:
    """Tests for parse_bool."""

    @pytest.mark.parametrize("value", ["true", "TRUE", "True", "1", "t", "yes", "on"])
    def test_true_literals(self, value: str) -> None:
        """Test accepted true literals."""
        assert parse_bool(value) is True

    @pytest.mark.parametrize("value", ["false", "FALSE", "0", "f", "no", "off"])
    def test_false_literals(self, value: str) -> None:
        """Test accepted false literals."""
        assert parse_bool(value) is False

    @pytest.mark.parametrize("value", ["string", "", "2", "truthy"])
    def test_rejects_other_values(self, value: str) -> None:
        """Test that other strings are rejected."""
        with pytest.raises(InvalidValueError):
            parse_bool(value)


class TestParseInt:
    """Tests for parse_int."""

    def test_plain(self) -> None:
        """Test unbounded integers."""
        assert parse_int("8080") == 8080
        assert parse_int("-100") == -100
        assert parse_int("+7") == 7

    @pytest.mark.parametrize(
        "value", ["string", "", "1.5", " 1", "1_000", "0x10", "\u0663\u0664"]
    )
    def test_invalid_syntax(self, value: str) -> None:
        """Test that non-decimal input is rejected."""
        with pytest.raises(InvalidValueError):
            parse_int(value)

    def test_unsigned_rejects_negative(self) -> None:
        """Test that unsigned widths reject negative input."""
        with pytest.raises(InvalidValueError, match="negative"):
            parse_int("-30", IntRange(32, signed=False))

    def test_unsigned_rejects_sign(self) -> None:
        """Test that unsigned widths reject an explicit plus sign."""
        with pytest.raises(InvalidValueError):
            parse_int("+30", IntRange(None, signed=False))

    @pytest.mark.parametrize(
        ("value", "int_range"),
        [
            ("128", IntRange(8)),
            ("-129", IntRange(8)),
            ("256", IntRange(8, signed=False)),
            ("18446744073709551616", IntRange(64, signed=False)),
        ],
    )
    def test_out_of_range(self, value: str, int_range: IntRange) -> None:
        """Test width bounds."""
        with pytest.raises(InvalidValueError, match="out of range"):
            parse_int(value, int_range)

    def test_bounds_inclusive(self) -> None:
        """Test that the extreme values are accepted."""
        assert parse_int("-128", IntRange(8)) == -128
        assert parse_int("255", IntRange(8, signed=False)) == 255


class TestParseFloat:
    """Tests for parse_float."""

    def test_plain(self) -> None:
        """Test decimal and exponent forms."""
        assert parse_float("0.5") == 0.5
        assert parse_float("-2.5e3") == -2500.0

    @pytest.mark.parametrize("value", ["string", "", "1_0", " 1.0", "\u0661.\u0665"])
    def test_invalid(self, value: str) -> None:
        """Test rejected input."""
        with pytest.raises(InvalidValueError):
            parse_float(value)

    def test_float32_range(self) -> None:
        """Test that 32-bit floats reject overflowing values."""
        assert parse_float("1e38", 32) == 1e38
        with pytest.raises(InvalidValueError, match="float32"):
            parse_float("1e39", 32)
        assert parse_float("1e39") == 1e39


class TestDurations:
    """Tests for duration parsing and formatting."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("2m", timedelta(minutes=2)),
            ("5s", timedelta(seconds=5)),
            ("300ms", timedelta(milliseconds=300)),
            ("1h30m", timedelta(hours=1, minutes=30)),
            ("1.5h", timedelta(minutes=90)),
            ("-1.5s", -timedelta(seconds=1.5)),
            ("10us", timedelta(microseconds=10)),
            ("10µs", timedelta(microseconds=10)),
            ("1500ns", timedelta(microseconds=1)),
            ("0", timedelta(0)),
            ("+5s", timedelta(seconds=5)),
        ],
    )
    def test_parse(self, value: str, expected: timedelta) -> None:
        """Test accepted literals."""
        assert parse_duration(value) == expected

    @pytest.mark.parametrize(
        "value",
        ["", "5", "s", "5x", "1h 30m", "-", "five seconds", "\u0665s"],
    )
    def test_parse_invalid(self, value: str) -> None:
        """Test rejected literals."""
        with pytest.raises(InvalidValueError):
            parse_duration(value)

    def test_parse_out_of_range(self) -> None:
        """Test that durations beyond the timedelta range are rejected."""
        with pytest.raises(InvalidValueError, match="out of range"):
            parse_duration("100000000000h")

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (timedelta(0), "0s"),
            (timedelta(seconds=5), "5s"),
            (timedelta(minutes=2), "2m0s"),
            (timedelta(hours=1, minutes=30), "1h30m0s"),
            (timedelta(milliseconds=300), "300ms"),
            (timedelta(microseconds=1500), "1.5ms"),
            (timedelta(microseconds=10), "10µs"),
            (-timedelta(seconds=90), "-1m30s"),
        ],
    )
    def test_format(self, value: timedelta, expected: str) -> None:
        """Test formatting."""
        assert format_duration(value) == expected

    def test_format_is_parseable(self) -> None:
        """Test that formatted durations read back unchanged."""
        value = timedelta(hours=26, seconds=1, microseconds=250)
        assert parse_duration(format_duration(value)) == value


class TestConvert:
    """Tests for convert dispatch."""

    def test_string_verbatim(self) -> None:
        """Test that strings are not stripped."""
        assert convert("  padded ", resolve_type(str)) == "  padded "

    def test_path_expanded(self) -> None:
        """Test that paths expand the home directory."""
        result = convert("~/data", resolve_type(Path))
        assert isinstance(result, Path)
        assert "~" not in str(result)

    def test_width_aliases(self) -> None:
        """Test that the aliases carry their widths."""
        with pytest.raises(InvalidValueError):
            convert("300", resolve_type(UInt8))
        with pytest.raises(InvalidValueError):
            convert("-1", resolve_type(UInt))
        with pytest.raises(InvalidValueError):
            convert("1e39", resolve_type(Float32))
        assert convert("-128", resolve_type(Int8)) == -128
        assert convert("18446744073709551615", resolve_type(UInt64)) == 2**64 - 1

    def test_sequence(self) -> None:
        """Test sequence splitting and element conversion."""
        assert convert("5,10,20", resolve_type(list[int])) == [5, 10, 20]
        assert convert("", resolve_type(list[int])) == []
        assert convert("a,b", resolve_type(tuple[str, ...])) == ("a", "b")

    def test_string_elements_verbatim(self) -> None:
        """Test that only numeric, boolean and duration elements are stripped."""
        assert convert("a, b ", resolve_type(list[str])) == ["a", " b "]
        assert convert(" 1 , 2", resolve_type(list[int])) == [1, 2]
        spec = resolve_type(dict[str, str])
        assert convert("k: v", spec) == {"k": " v"}

    def test_sequence_element_width(self) -> None:
        """Test that annotated element types keep their markers."""
        spec = resolve_type(list[Annotated[int, IntRange(8, signed=False)]])
        with pytest.raises(InvalidValueError, match="element 1"):
            convert("1,256", spec)

    def test_mapping(self) -> None:
        """Test mapping conversion."""
        spec = resolve_type(dict[str, int])
        assert convert("a:1,b:2", spec) == {"a": 1, "b": 2}
        assert convert("", spec) == {}
        with pytest.raises(InvalidValueError):
            convert("a:one", spec)

    def test_mapping_value_keeps_separator(self) -> None:
        """Test that only the first mapping separator splits a pair."""
        spec = resolve_type(dict[str, str])
        assert convert("url:http://host", spec) == {"url": "http://host"}

    def test_custom_separator(self) -> None:
        """Test configured separators."""
        config = BinderConfig(sequence_separator="|")
        assert convert("1|2", resolve_type(list[int]), config) == [1, 2]

    def test_unsupported(self) -> None:
        """Test that unsupported types cannot be converted."""
        spec = resolve_type(complex)
        assert spec.kind is Kind.UNSUPPORTED
        with pytest.raises(InvalidValueError, match="unsupported"):
            convert("1", spec)

    def test_custom_decoder_result_unmodified(self) -> None:
        """Test that decoder results are returned as-is."""
        result = convert("bar", resolve_type(Bracketed))
        assert type(result) is Bracketed
        assert result == "[bar]"


class TestDecoderRegistry:
    """Tests for decoder registration."""

    def test_from_env_found(self) -> None:
        """Test that from_env classmethods are discovered."""
        assert find_decoder(Strict) is not None
        assert find_decoder(int) is None
        assert find_decoder(list[int]) is None

    def test_register_and_unregister(self) -> None:
        """Test registering a decoder for a built-in type."""
        register_decoder(complex, complex)
        try:
            spec = resolve_type(complex)
            assert spec.kind is Kind.CUSTOM
            assert convert("1+2j", spec) == complex(1, 2)
        finally:
            unregister_decoder(complex)
        assert resolve_type(complex).kind is Kind.UNSUPPORTED

    def test_registered_beats_from_env(self) -> None:
        """Test that registered decoders take priority over from_env."""
        register_decoder(Bracketed, lambda value: Bracketed(value.upper()))
        try:
            assert convert("bar", resolve_type(Bracketed)) == "BAR"
        finally:
            unregister_decoder(Bracketed)

    def test_int_decoder_leaves_bool_alone(self) -> None:
        """Test that an int decoder is not inherited by bool."""
        register_decoder(int, lambda value: int(value, 16))
        try:
            assert resolve_type(int).kind is Kind.CUSTOM
            assert resolve_type(bool).kind is Kind.BOOL
            assert convert("true", resolve_type(bool)) is True
        finally:
            unregister_decoder(int)

    def test_own_from_env_beats_base_registration(self) -> None:
        """Test that a subclass's from_env wins over a decoder for its base."""
        register_decoder(str, str.upper)
        try:
            assert convert("bar", resolve_type(Bracketed)) == "[bar]"
            assert convert("bar", resolve_type(str)) == "BAR"
        finally:
            unregister_decoder(str)

    def test_decoder_exception_not_wrapped(self) -> None:
        """Test that decoder errors escape unchanged."""
        def fail(value: str) -> complex:
            raise KeyError(value)

        register_decoder(complex, fail)
        try:
            with pytest.raises(KeyError):
                convert("x", resolve_type(complex))
        finally:
            unregister_decoder(complex)

"""Bind environment variables to typed configuration classes.

Fields of a dataclass or pydantic model are read from variables named
``PREFIX_FIELD`` (nested structures add their own segments), converted to
the declared type, and assigned in place.

Examples
--------
>>> from dataclasses import dataclass
>>> from envbind import bind
>>> @dataclass
... class Specification:
...     debug: bool = False
...     port: int = 0
>>> env = {"ENV_CONFIG_DEBUG": "true", "ENV_CONFIG_PORT": "8080"}
>>> bind("env_config", Specification(), environ=env)
Specification(debug=True, port=8080)
"""

from __future__ import annotations

__version__ = "0.2.0"

from envbind.config import BinderConfig
from envbind.decoders import (
    format_duration,
    parse_duration,
    register_decoder,
    unregister_decoder,
)
from envbind.errors import (
    BindErrors,
    ConversionError,
    EnvBindError,
    InvalidTargetError,
    MissingVariableError,
)
from envbind.fields import Env, describe
from envbind.kinds import (
    EnvDecodable,
    Float32,
    Float64,
    FloatWidth,
    Int8,
    Int16,
    Int32,
    Int64,
    IntRange,
    UInt,
    UInt8,
    UInt16,
    UInt32,
    UInt64,
)
from envbind.naming import NameContext, derive_names
from envbind.usage import format_usage, unused_variables, usage_entries
from envbind.walker import bind, must_bind, walk

__all__ = [
    # Binding
    "bind",
    "must_bind",
    "walk",
    "describe",
    # Field options
    "Env",
    "IntRange",
    "FloatWidth",
    "Int8",
    "Int16",
    "Int32",
    "Int64",
    "UInt",
    "UInt8",
    "UInt16",
    "UInt32",
    "UInt64",
    "Float32",
    "Float64",
    # Decoders
    "EnvDecodable",
    "register_decoder",
    "unregister_decoder",
    "parse_duration",
    "format_duration",
    # Naming
    "NameContext",
    "derive_names",
    # Usage
    "usage_entries",
    "format_usage",
    "unused_variables",
    # Configuration
    "BinderConfig",
    # Errors
    "EnvBindError",
    "InvalidTargetError",
    "ConversionError",
    "MissingVariableError",
    "BindErrors",
]

"""Binder configuration model."""

from __future__ import annotations

from pydantic import BaseModel, Field


class BinderConfig(BaseModel):
    """Configuration for a binding pass.

    Parameters
    ----------
    bare_fallback : bool
        Whether top-level fields without an override also try their bare,
        unprefixed name.
    sequence_separator : str
        Separator between sequence elements and between mapping pairs.
    mapping_separator : str
        Separator between a mapping key and its value.
    collect_errors : bool
        Whether to keep walking after a failed field and raise every error
        at the end instead of stopping at the first one.

    Examples
    --------
    >>> config = BinderConfig()
    >>> config.sequence_separator
    ','
    >>> config.collect_errors
    False
    """

    bare_fallback: bool = Field(
        default=True, description="Try bare field names for top-level fields"
    )
    sequence_separator: str = Field(
        default=",", min_length=1, description="Sequence element separator"
    )
    mapping_separator: str = Field(
        default=":", min_length=1, description="Mapping key/value separator"
    )
    collect_errors: bool = Field(
        default=False, description="Collect all errors instead of stopping"
    )


DEFAULT_CONFIG = BinderConfig()

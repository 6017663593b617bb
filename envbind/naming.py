"""Environment variable name derivation.

Default names are built from the accumulated context segments and the field
name, joined by single underscores and upper-cased::

    PREFIX_SEGMENT1_SEGMENT2_FIELD

Explicit override names replace the whole derivation and are never combined
with the prefix.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class NameContext:
    """Accumulated name segments for one level of the walk.

    Parameters
    ----------
    segments : tuple[str, ...]
        Root prefix followed by each nested field's segment. Empty segments
        are kept but skipped when joining.
    nested : bool
        Whether this context lies below the top level of the target.

    Examples
    --------
    >>> ctx = NameContext.root("env_config").child("nested")
    >>> ctx.join("body")
    'ENV_CONFIG_NESTED_BODY'
    >>> ctx.nested
    True
    """

    segments: tuple[str, ...] = ()
    nested: bool = False

    @classmethod
    def root(cls, prefix: str) -> NameContext:
        """Create the top-level context for an application prefix."""
        return cls(segments=(prefix,))

    @classmethod
    def detached(cls, name: str) -> NameContext:
        """Create a nested context that starts from an override name."""
        return cls(segments=(name,), nested=True)

    def child(self, segment: str) -> NameContext:
        """Extend the context with one nested field segment."""
        return NameContext(segments=(*self.segments, segment), nested=True)

    def join(self, *extra: str) -> str:
        """Join the non-empty segments (plus ``extra``) into a variable name."""
        parts = [part for part in (*self.segments, *extra) if part]
        return "_".join(parts).upper()


def derive_names(
    field_name: str,
    override: str | None,
    context: NameContext,
    *,
    bare_fallback: bool = True,
) -> tuple[str, ...]:
    """Derive the ordered candidate variable names for a field.

    Parameters
    ----------
    field_name : str
        Declared field name.
    override : str | None
        Explicit override name, if any.
    context : NameContext
        Context of the structure that declares the field.
    bare_fallback : bool
        Whether a top-level field without an override may also be found
        under its bare, unprefixed name.

    Returns
    -------
    tuple[str, ...]
        Candidate names, first match wins.

    Examples
    --------
    >>> root = NameContext.root("env_config")
    >>> derive_names("port", None, root)
    ('ENV_CONFIG_PORT', 'PORT')
    >>> derive_names("host", "service_host", root)
    ('SERVICE_HOST',)
    >>> derive_names("body", None, root.child("nested"))
    ('ENV_CONFIG_NESTED_BODY',)
    """
    if override:
        return (override.upper(),)

    names = [context.join(field_name)]
    bare = field_name.upper()
    if bare_fallback and not context.nested and bare not in names:
        names.append(bare)
    return tuple(names)


def context_name(override: str | None, context: NameContext) -> tuple[str, ...]:
    """Derive the candidate names for an embedded leaf field.

    An embedded leaf stands for its enclosing structure, so it takes the
    context's own name rather than adding a segment.

    Examples
    --------
    >>> context_name(None, NameContext.root("app").child("timeout"))
    ('APP_TIMEOUT',)
    >>> context_name(None, NameContext.root(""))
    ()
    """
    if override:
        return (override.upper(),)
    name = context.join()
    return (name,) if name else ()

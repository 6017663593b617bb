"""Binding exceptions."""

from __future__ import annotations

from collections.abc import Sequence


class EnvBindError(Exception):
    """Base exception for binding errors."""

    pass


class InvalidTargetError(EnvBindError):
    """Exception raised when a binding target cannot be populated.

    Raised before any field is touched, for example when the target is a
    mapping, a class rather than an instance, or a frozen instance.

    Examples
    --------
    >>> from envbind import bind
    >>> try:
    ...     bind("app", {"debug": "true"})
    ... except InvalidTargetError as e:
    ...     print("rejected")
    rejected
    """

    pass


class ConversionError(EnvBindError):
    """Exception raised when an environment value cannot be converted.

    Parameters
    ----------
    field_name
        Declared name of the field being bound.
    key
        Environment variable the value was read from.
    value
        Raw string value.
    type_name
        Name of the field's declared type.
    reason
        Description of the underlying failure.

    Attributes
    ----------
    field_name : str
        Declared name of the field being bound.
    key : str
        Environment variable the value was read from.
    value : str
        Raw string value.
    type_name : str
        Name of the field's declared type.
    reason : str
        Description of the underlying failure.

    Examples
    --------
    >>> err = ConversionError("debug", "APP_DEBUG", "maybe", "bool", "invalid")
    >>> str(err)
    "assigning APP_DEBUG to debug: converting 'maybe' to type bool: invalid"
    """

    def __init__(
        self,
        field_name: str,
        key: str,
        value: str,
        type_name: str,
        reason: str,
    ) -> None:
        self.field_name = field_name
        self.key = key
        self.value = value
        self.type_name = type_name
        self.reason = reason
        super().__init__(field_name, key, value, type_name, reason)

    def __str__(self) -> str:
        """Return formatted error message."""
        return (
            f"assigning {self.key} to {self.field_name}: "
            f"converting {self.value!r} to type {self.type_name}: {self.reason}"
        )


class MissingVariableError(EnvBindError):
    """Exception raised when a required field has no variable set.

    Parameters
    ----------
    field_name
        Declared name of the required field.
    keys
        Variable names that were looked up, in lookup order.
    """

    def __init__(self, field_name: str, keys: Sequence[str]) -> None:
        self.field_name = field_name
        self.keys = tuple(keys)
        super().__init__(field_name, self.keys)

    def __str__(self) -> str:
        """Return formatted error message."""
        return (
            f"required variable {' or '.join(self.keys)} is not set "
            f"for field {self.field_name}"
        )


class BindErrors(EnvBindError):
    """Aggregate of every binding error found in one pass.

    Only raised when error collection is enabled in ``BinderConfig``.

    Parameters
    ----------
    errors
        Collected errors in traversal order.
    """

    def __init__(self, errors: Sequence[EnvBindError]) -> None:
        self.errors = list(errors)
        super().__init__(self.errors)

    def __str__(self) -> str:
        """Return formatted error message."""
        lines = [f"{len(self.errors)} binding error(s)"]
        lines.extend(f"  - {error}" for error in self.errors)
        return "\n".join(lines)

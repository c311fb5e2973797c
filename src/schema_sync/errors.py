"""Exceptions raised by schema-sync.

All errors are programmer or input errors: the core performs no I/O, so
nothing here is transient and nothing is retried.
"""


class SchemaSyncError(Exception):
    """Base class for schema-sync errors."""

    pass


class MalformedSchemaError(SchemaSyncError, ValueError):
    """Raised when a schema or diff violates a structural invariant.

    Examples: duplicate column positions, two primary indexes on one table,
    or a foreign key whose column and referenced-column counts differ.
    """

    pass


class UnsupportedDefaultExpressionError(SchemaSyncError, ValueError):
    """Raised in strict mode when a default looks like an unknown function call."""

    def __init__(self, value: str):
        self.value = value
        super().__init__(
            f"Default {value!r} looks like an expression but is not a "
            "recognized expression default"
        )


class ProfileNotFoundError(SchemaSyncError):
    """Raised when a connection profile is not defined in the config."""

    pass

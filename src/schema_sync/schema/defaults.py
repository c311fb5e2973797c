"""Column default values as an explicit tagged variant.

``information_schema`` reports "no default", "default NULL", literal defaults
and expression defaults through one nullable text column. They are resolved
once, when a column is built, into one of four models:

- ``NoDefault``: the column declares no default.
- ``NullDefault``: ``DEFAULT NULL``.
- ``LiteralDefault``: a value rendered as a quoted string literal.
- ``ExpressionDefault``: a value evaluated by the engine at insert time
  (``CURRENT_TIMESTAMP``, ``UUID()``), rendered unquoted.

Usage:
    from schema_sync.schema.defaults import parse_default

    parse_default("CURRENT_TIMESTAMP")   # ExpressionDefault
    parse_default("active")              # LiteralDefault
    parse_default(None)                  # NullDefault
"""

import logging
import re
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from schema_sync.errors import UnsupportedDefaultExpressionError

logger = logging.getLogger(__name__)

# Case-insensitive prefixes that mark a default as an engine-side expression.
EXPRESSION_PREFIXES: tuple[str, ...] = ("CURRENT_TIMESTAMP", "UUID()", "NULL")

# Something shaped like ``name(...)``
_FUNCTION_CALL = re.compile(r"^\(?\s*[A-Za-z_][A-Za-z0-9_]*\s*\(.*\)\s*\)?$", re.DOTALL)


class NoDefault(BaseModel):
    """The column declares no default."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["none"] = "none"


class NullDefault(BaseModel):
    """The column defaults to SQL NULL."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["null"] = "null"


class LiteralDefault(BaseModel):
    """A literal default, quoted when rendered."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["literal"] = "literal"
    value: str


class ExpressionDefault(BaseModel):
    """An expression default, rendered verbatim."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["expression"] = "expression"
    value: str


ColumnDefault = Annotated[
    Union[NoDefault, NullDefault, LiteralDefault, ExpressionDefault],
    Field(discriminator="kind"),
]


def is_expression(value: str) -> bool:
    """True if *value* starts with one of the recognized expression prefixes."""
    upper = value.strip().upper()
    return any(upper.startswith(prefix) for prefix in EXPRESSION_PREFIXES)


def parse_default(
    raw: str | None, strict: bool = False
) -> NullDefault | LiteralDefault | ExpressionDefault:
    """Classify a raw default as reported by ``information_schema``.

    Args:
        raw: ``COLUMN_DEFAULT`` value. ``None`` and the ``NULL`` keyword
            both mean a null default.
        strict: Raise instead of falling back to a literal when *raw* looks
            like a function call that is not a recognized expression.

    Returns:
        The resolved default variant.

    Raises:
        UnsupportedDefaultExpressionError: In strict mode, for ambiguous
            function-call-shaped defaults.

    Examples:
        >>> parse_default("NULL").kind
        'null'
        >>> parse_default("current_timestamp(6)").kind
        'expression'
        >>> parse_default("it's").value
        "it's"
    """
    if raw is None or raw.strip().upper() == "NULL":
        return NullDefault()

    if is_expression(raw):
        return ExpressionDefault(value=raw)

    if _FUNCTION_CALL.match(raw.strip()):
        if strict:
            raise UnsupportedDefaultExpressionError(raw)
        logger.warning("Treating ambiguous default %r as a string literal", raw)

    return LiteralDefault(value=raw)


def normalize_default(default: NoDefault | NullDefault | LiteralDefault | ExpressionDefault) -> str | None:
    """Reduce a default to the value used for equality checks.

    Both "no default" and "default NULL" normalize to ``None``; every other
    default compares by its raw text, whatever its kind.
    """
    if isinstance(default, (NoDefault, NullDefault)):
        return None
    return default.value

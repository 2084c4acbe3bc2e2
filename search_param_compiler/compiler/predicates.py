# Copyright 2019-present Kensho Technologies, LLC.
from decimal import Decimal
import logging
import re
from typing import Any

from .options import DEFAULT_COMPILATION_OPTIONS, CompilationOptions
from .query_plan import BooleanContext, FilterClause, FilterOperator


logger = logging.getLogger(__name__)


BOOLEAN_LITERALS = {
    "true": True,
    "false": False,
}
NULL_LITERALS = frozenset({"null", "undefined"})

# Only canonically written numbers are coerced: "007", "+5", ".5" and "5." stay strings,
# since converting them to numbers and back would not reproduce the request value.
NUMERIC_LITERAL_PATTERN = re.compile(r"-?(0|[1-9][0-9]*)(\.[0-9]+)?([eE][+-]?[0-9]+)?")

# A double reproduces any decimal with at most this many significant digits.
MAX_LOSSLESS_FLOAT_DIGITS = 15

# Magnitudes beyond this are not representable as finite doubles.
MAX_DOUBLE_DECIMAL_EXPONENT = 308


def _coerce_numeric_literal(value: str) -> Any:
    """Convert a numeric literal to int or float, or return it unchanged if that would lose data."""
    number = Decimal(value)
    if abs(number.adjusted()) > MAX_DOUBLE_DECIMAL_EXPONENT:
        logger.debug("Not coercing out-of-range numeric literal %s.", value)
        return value

    if number == number.to_integral_value():
        return int(number)

    significant_digits = len(number.normalize().as_tuple().digits)
    if significant_digits > MAX_LOSSLESS_FLOAT_DIGITS:
        logger.debug("Not coercing numeric literal %s, a float cannot represent it.", value)
        return value

    return float(number)


def coerce_scalar(value: Any) -> Any:
    """Translate a request string into the typed scalar it spells out.

    "true" and "false" become booleans, "null" and "undefined" become None, and numeric
    literals become int or float whenever that conversion is lossless. Every other value,
    including non-string values, is returned unchanged.
    """
    if not isinstance(value, str):
        return value
    if value in BOOLEAN_LITERALS:
        return BOOLEAN_LITERALS[value]
    if value in NULL_LITERALS:
        return None
    if NUMERIC_LITERAL_PATTERN.fullmatch(value):
        return _coerce_numeric_literal(value)
    return value


def is_pattern_value(value: Any, options: CompilationOptions = DEFAULT_COMPILATION_OPTIONS) -> bool:
    """Return True if the request value asks for a pattern match rather than equality."""
    return isinstance(value, str) and options.wildcard_marker in value


def build_filter_clause(
    table_alias: str,
    field: str,
    raw_value: Any,
    boolean: BooleanContext,
    options: CompilationOptions = DEFAULT_COMPILATION_OPTIONS,
) -> FilterClause:
    """Return the filter clause comparing the field of the aliased table with a request value.

    Args:
        table_alias: alias of the table the field belongs to
        field: name of the field to filter on
        raw_value: the value from the request. A string containing the wildcard marker
                   produces a Like clause, e.g. "~smith" becomes the pattern "%smith".
                   Anything else produces an Eq clause with the coerced scalar value.
        boolean: how the clause combines with the other clauses of its group
        options: the request vocabulary in use

    Returns:
        FilterClause for the field
    """
    if is_pattern_value(raw_value, options):
        operator = FilterOperator.Like
        value = raw_value.replace(options.wildcard_marker, options.pattern_wildcard)
    else:
        operator = FilterOperator.Eq
        value = coerce_scalar(raw_value)

    return FilterClause(
        table_alias=table_alias, field=field, operator=operator, value=value, boolean=boolean
    )

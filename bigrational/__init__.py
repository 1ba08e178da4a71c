"""Exact arbitrary-precision rational arithmetic."""

from .errors import DivisionByZero, InvalidDenominator, RationalError
from .rational import (
    DEFAULT_MAX_DENOMINATOR,
    R,
    Rational,
    as_rational_array,
    compare,
    construct,
    from_scalar,
    gcd,
    lcm,
    rationalize,
    reciprocal,
    reduce,
    to_integer,
    zeros,
    zeros_like,
)

__all__ = [
    "Rational",
    "R",
    "RationalError",
    "InvalidDenominator",
    "DivisionByZero",
    "DEFAULT_MAX_DENOMINATOR",
    "construct",
    "from_scalar",
    "to_integer",
    "reduce",
    "reciprocal",
    "compare",
    "gcd",
    "lcm",
    "rationalize",
    "as_rational_array",
    "zeros",
    "zeros_like",
]

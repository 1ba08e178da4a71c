"""Arbitrary-precision rational numbers with NumPy interoperability."""
from __future__ import annotations

import logging
import math
import numbers
import operator
import re
from fractions import Fraction
from typing import Any, Callable, Optional, Tuple, Union

import gmpy2
import numpy as np

from .errors import DivisionByZero, InvalidDenominator

LOG = logging.getLogger(__name__)

Scalar = Union[numbers.Integral, str]
NumberLike = Union["Rational", Scalar]

DEFAULT_MAX_DENOMINATOR = 10**6

_BROADCAST_TYPES = (np.ndarray, list, tuple)


_DECIMAL = re.compile(r"[+-]?[0-9]+(?:_[0-9]+)*")


def _to_bigint(value: Any) -> int:
    """Convert an integer, NumPy integer or numeric string into ``int``."""
    if isinstance(value, numbers.Integral):
        return int(value)
    if isinstance(value, str):
        text = value.strip()
        if not _DECIMAL.fullmatch(text):
            LOG.debug("rejected numeric string %.40r", value)
            raise ValueError(f"invalid numeric string {value!r}")
        # mpz parses without the interpreter's int/str digit limit.
        return int(gmpy2.mpz(text.replace("_", "").lstrip("+")))
    LOG.debug("rejected operand of type %s", type(value).__name__)
    raise TypeError(f"Cannot interpret {type(value)!r} as an integer")


def _to_decimal(value: int) -> str:
    return str(gmpy2.mpz(value))


def gcd(a: Scalar, b: Scalar) -> int:
    """Return the greatest common divisor of *a* and *b*.

    Uses the Euclidean algorithm; the result is never negative and
    ``gcd(x, 0) == abs(x)``.
    """
    a, b = _to_bigint(a), _to_bigint(b)
    while b != 0:
        a, b = b, a % b
    return abs(a)


def lcm(a: Scalar, b: Scalar) -> int:
    """Return ``a * b // gcd(a, b)``; the sign follows ``a * b``."""
    a, b = _to_bigint(a), _to_bigint(b)
    common = gcd(a, b)
    if common == 0:
        return 0
    return a * b // common


class Rational:
    """A numerator/denominator pair of arbitrary-precision integers.

    Construction does not reduce. Results of ``Rational``/``Rational``
    arithmetic and of multiplication or division by a scalar are reduced;
    adding or subtracting a scalar keeps the operand's denominator as is.
    In-place operators mutate the left operand.

    A Rational equal to an ``int`` does not hash like that ``int``
    (``R(2, 1) == 2`` but ``hash(R(2, 1)) != hash(2)``), so ints and
    Rationals should not be mixed as keys of one dict or set.
    """

    __slots__ = ("_numerator", "_denominator")
    __array_priority__ = 1000.0  # Prefer Rational semantics in NumPy expressions.

    def __init__(self, numerator: Scalar = 0, denominator: Scalar = 1) -> None:
        den = _to_bigint(denominator)
        if den == 0:
            LOG.debug("rejected zero denominator")
            raise InvalidDenominator("A denominator of zero value is invalid.")
        self._numerator = _to_bigint(numerator)
        self._denominator = den

    # ------------------------------------------------------------------
    # Constructors
    @classmethod
    def _from_pair(cls, num: int, den: int) -> "Rational":
        result = cls.__new__(cls)
        result._numerator = num
        result._denominator = den
        return result

    @classmethod
    def from_scalar(cls, value: NumberLike) -> "Rational":
        """Wrap an integer or numeric string as ``value/1``.

        A :class:`Rational` argument is copied.
        """
        if isinstance(value, Rational):
            return cls._from_pair(value._numerator, value._denominator)
        return cls._from_pair(_to_bigint(value), 1)

    @classmethod
    def from_fraction(cls, value: Fraction) -> "Rational":
        """Create a :class:`Rational` from :class:`fractions.Fraction`."""
        return cls._from_pair(value.numerator, value.denominator)

    @classmethod
    def from_float(
        cls, value: float, *, max_denominator: Optional[int] = None
    ) -> "Rational":
        """Return the exact value of *value*, or its best approximation
        with a denominator of at most *max_denominator* when one is given."""
        if isinstance(value, numbers.Integral):
            return cls.from_scalar(value)
        value = float(value)
        if math.isnan(value) or math.isinf(value):
            raise ValueError("cannot convert NaN or infinity to Rational")
        frac = Fraction.from_float(value)
        if max_denominator is not None:
            frac = frac.limit_denominator(max_denominator)
        return cls.from_fraction(frac)

    # ------------------------------------------------------------------
    # Properties and helpers
    @property
    def numerator(self) -> int:
        return self._numerator

    @numerator.setter
    def numerator(self, value: Scalar) -> None:
        self._numerator = _to_bigint(value)

    @property
    def denominator(self) -> int:
        return self._denominator

    @denominator.setter
    def denominator(self, value: Scalar) -> None:
        den = _to_bigint(value)
        if den == 0:
            LOG.debug("rejected zero denominator")
            raise InvalidDenominator("A denominator of zero value is invalid.")
        self._denominator = den

    def copy(self) -> "Rational":
        return Rational._from_pair(self._numerator, self._denominator)

    def __copy__(self) -> "Rational":
        return self.copy()

    def __deepcopy__(self, memo) -> "Rational":
        return self.copy()

    def as_fraction(self) -> Fraction:
        """Return a :class:`Fraction` with the same value."""
        return Fraction(self._numerator, self._denominator)

    def limit_denominator(
        self, max_denominator: int = DEFAULT_MAX_DENOMINATOR
    ) -> "Rational":
        """Return the closest reduced :class:`Rational` with limited denominator."""
        return Rational.from_fraction(self.as_fraction().limit_denominator(max_denominator))

    def to_integer(self) -> int:
        """Return the quotient truncated toward zero; the remainder is discarded."""
        quotient = abs(self._numerator) // abs(self._denominator)
        if (self._numerator < 0) != (self._denominator < 0):
            return -quotient
        return quotient

    @staticmethod
    def _normalize(num: int, den: int) -> Tuple[int, int]:
        if den == 0:
            LOG.debug("reducing a value with zero denominator")
            raise DivisionByZero("Division by zero.")
        common = gcd(num, den)
        if den < 0:
            num, den = -num, -den
        return num // common, den // common

    def reduce(self) -> "Rational":
        """Reduce to lowest terms with a positive denominator, in place."""
        self._numerator, self._denominator = self._normalize(
            self._numerator, self._denominator
        )
        return self

    def reciprocal(self) -> "Rational":
        """Return ``1 / self``; the denominator takes the numerator's sign."""
        if self._numerator > 0:
            return Rational._from_pair(self._denominator, self._numerator)
        if self._numerator < 0:
            return Rational._from_pair(-self._denominator, -self._numerator)
        LOG.debug("reciprocal of zero")
        raise DivisionByZero("division by zero")

    # ------------------------------------------------------------------
    # Numeric protocol
    def __float__(self) -> float:
        return self._numerator / self._denominator

    def __int__(self) -> int:
        return self.to_integer()

    def __bool__(self) -> bool:
        return self._numerator != 0

    # ------------------------------------------------------------------
    # Representation
    def __repr__(self) -> str:
        return f"Rational({_to_decimal(self._numerator)}, {_to_decimal(self._denominator)})"

    def __str__(self) -> str:
        return f"{_to_decimal(self._numerator)}/{_to_decimal(self._denominator)}"

    def __format__(self, format_spec: str) -> str:
        if format_spec in ("", "r", "R"):
            return str(self)
        try:
            return format(float(self), format_spec)
        except (ValueError, TypeError):
            return format(str(self), format_spec)

    # ------------------------------------------------------------------
    # Internal helpers
    @staticmethod
    def _vectorize(values: Any, func: Callable[[Any], Any]) -> np.ndarray:
        if isinstance(values, np.ndarray):
            return np.vectorize(func, otypes=[object])(values)
        return np.array([func(item) for item in values], dtype=object)

    def _binary_operation(self, other: Any, rational_op, scalar_op):
        if isinstance(other, _BROADCAST_TYPES):
            return self._vectorize(
                other,
                lambda item: self._binary_operation(
                    _array_operand(item), rational_op, scalar_op
                ),
            )
        if isinstance(other, np.generic):
            other = _array_operand(other)
        if isinstance(other, Rational):
            return rational_op(self, other)
        return scalar_op(self, _to_bigint(other))

    def _inplace_operation(self, other: Any, rational_op, scalar_op):
        if isinstance(other, _BROADCAST_TYPES):
            return NotImplemented
        if isinstance(other, np.generic):
            other = _array_operand(other)
        if isinstance(other, Rational):
            result = rational_op(self, other)
        else:
            result = scalar_op(self, _to_bigint(other))
        self._numerator = result._numerator
        self._denominator = result._denominator
        return self

    def _coerce_power(self, value: Any) -> int:
        if isinstance(value, numbers.Integral):
            return int(value)
        if isinstance(value, Rational):
            num, den = self._normalize(value._numerator, value._denominator)
            if den != 1:
                raise ValueError("Exponent must be an integer")
            return num
        raise TypeError("Unsupported exponent type")

    # ------------------------------------------------------------------
    # Arithmetic operators
    def __add__(self, other: Any) -> Any:
        return self._binary_operation(other, _add, _add_scalar)

    def __radd__(self, other: Any) -> Any:
        return self._binary_operation(other, _swapped(_add), _radd_scalar)

    def __iadd__(self, other: Any) -> Any:
        return self._inplace_operation(other, _add, _add_scalar)

    def __sub__(self, other: Any) -> Any:
        return self._binary_operation(other, _sub, _sub_scalar)

    def __rsub__(self, other: Any) -> Any:
        return self._binary_operation(other, _swapped(_sub), _rsub_scalar)

    def __isub__(self, other: Any) -> Any:
        return self._inplace_operation(other, _sub, _sub_scalar)

    def __mul__(self, other: Any) -> Any:
        return self._binary_operation(other, _mul, _mul_scalar)

    def __rmul__(self, other: Any) -> Any:
        return self._binary_operation(other, _swapped(_mul), _rmul_scalar)

    def __imul__(self, other: Any) -> Any:
        return self._inplace_operation(other, _mul, _mul_scalar)

    def __truediv__(self, other: Any) -> Any:
        return self._binary_operation(other, _truediv, _truediv_scalar)

    def __rtruediv__(self, other: Any) -> Any:
        return self._binary_operation(other, _swapped(_truediv), _rtruediv_scalar)

    def __itruediv__(self, other: Any) -> Any:
        return self._inplace_operation(other, _truediv, _truediv_scalar)

    def __pow__(self, exponent: Any) -> Any:
        if isinstance(exponent, _BROADCAST_TYPES):
            return self._vectorize(exponent, self.__pow__)
        power = self._coerce_power(exponent)
        base = self if power >= 0 else self.reciprocal()
        power = abs(power)
        return _reduced(base._numerator ** power, base._denominator ** power)

    def __neg__(self) -> "Rational":
        return Rational._from_pair(-self._numerator, self._denominator)

    def __pos__(self) -> "Rational":
        return self.copy()

    def __abs__(self) -> "Rational":
        return Rational._from_pair(abs(self._numerator), abs(self._denominator))

    # ------------------------------------------------------------------
    # Comparisons
    def _compare(self, other: Any, op) -> Any:
        if isinstance(other, np.ndarray):
            return self._vectorize(
                other, lambda item: self._compare(_array_operand(item), op)
            )
        if isinstance(other, np.generic):
            other = _array_operand(other)
        return op(compare(self, other), 0)

    def __eq__(self, other: Any) -> Any:
        if isinstance(other, np.ndarray):
            return self._compare(other, operator.eq)
        try:
            return self._compare(other, operator.eq)
        except (TypeError, ValueError):
            return False

    def __ne__(self, other: Any) -> Any:
        if isinstance(other, np.ndarray):
            return self._compare(other, operator.ne)
        return not self.__eq__(other)

    def __lt__(self, other: Any) -> Any:
        return self._compare(other, operator.lt)

    def __le__(self, other: Any) -> Any:
        return self._compare(other, operator.le)

    def __gt__(self, other: Any) -> Any:
        return self._compare(other, operator.gt)

    def __ge__(self, other: Any) -> Any:
        return self._compare(other, operator.ge)

    def __hash__(self) -> int:
        # Reduced pair, so equal values hash alike; self is left untouched.
        return hash(self._normalize(self._numerator, self._denominator))

    # ------------------------------------------------------------------
    # NumPy interoperability
    _UFUNC_DISPATCH = {
        np.add: operator.add,
        np.subtract: operator.sub,
        np.multiply: operator.mul,
        np.divide: operator.truediv,
        np.true_divide: operator.truediv,
        np.negative: operator.neg,
        np.positive: operator.pos,
        np.absolute: abs,
        np.power: operator.pow,
        np.less: operator.lt,
        np.less_equal: operator.le,
        np.greater: operator.gt,
        np.greater_equal: operator.ge,
        np.equal: operator.eq,
        np.not_equal: operator.ne,
    }

    def __array_ufunc__(self, ufunc, method, *inputs, **kwargs):
        if method != "__call__":
            return NotImplemented
        if kwargs.get("out") is not None:
            raise NotImplementedError("`out` argument is not supported for Rational ufuncs")
        op = self._UFUNC_DISPATCH.get(ufunc)
        if op is None:
            return NotImplemented

        coerced = []
        has_array = False
        for value in inputs:
            if isinstance(value, np.ndarray) and value.ndim == 0:
                value = value.item()
            if isinstance(value, np.ndarray):
                coerced.append(as_rational_array(value))
                has_array = True
            else:
                coerced.append(_array_operand(value))
        if has_array:
            return np.vectorize(op, otypes=[object])(*coerced)
        return op(*coerced)


R = Rational


# ----------------------------------------------------------------------
# Arithmetic kernels. ``a`` and ``b`` are Rationals, ``s`` is an int.
def _reduced(num: int, den: int) -> Rational:
    return Rational._from_pair(*Rational._normalize(num, den))


def _swapped(op):
    return lambda a, b: op(b, a)


def _add(a: Rational, b: Rational) -> Rational:
    common = lcm(a._denominator, b._denominator)
    num = common // a._denominator * a._numerator + common // b._denominator * b._numerator
    return _reduced(num, common)


def _add_scalar(a: Rational, s: int) -> Rational:
    return Rational._from_pair(a._numerator + s * a._denominator, a._denominator)


def _radd_scalar(b: Rational, s: int) -> Rational:
    return Rational._from_pair(s * b._denominator + b._numerator, b._denominator)


def _sub(a: Rational, b: Rational) -> Rational:
    common = lcm(a._denominator, b._denominator)
    num = common // a._denominator * a._numerator - common // b._denominator * b._numerator
    return _reduced(num, common)


def _sub_scalar(a: Rational, s: int) -> Rational:
    return Rational._from_pair(a._numerator - s * a._denominator, a._denominator)


def _rsub_scalar(b: Rational, s: int) -> Rational:
    return Rational._from_pair(s * b._denominator - b._numerator, b._denominator)


def _mul(a: Rational, b: Rational) -> Rational:
    return _reduced(a._numerator * b._numerator, a._denominator * b._denominator)


def _mul_scalar(a: Rational, s: int) -> Rational:
    return _reduced(a._numerator * s, a._denominator)


def _rmul_scalar(b: Rational, s: int) -> Rational:
    return _reduced(s * b._numerator, b._denominator)


def _truediv(a: Rational, b: Rational) -> Rational:
    return _reduced(a._numerator * b._denominator, a._denominator * b._numerator)


def _truediv_scalar(a: Rational, s: int) -> Rational:
    return _reduced(a._numerator, a._denominator * s)


def _rtruediv_scalar(b: Rational, s: int) -> Rational:
    return _reduced(s * b._denominator, b._numerator)


# ----------------------------------------------------------------------
# Public helpers
def _as_rational(value: NumberLike) -> Rational:
    if isinstance(value, Rational):
        return value
    return Rational.from_scalar(value)


def _array_operand(value: Any) -> Any:
    # NumPy scalars would dispatch straight back into __array_ufunc__.
    if isinstance(value, np.generic):
        value = value.item()
    if isinstance(value, (Rational, numbers.Integral, str) + _BROADCAST_TYPES):
        return value
    return rationalize(value)


def construct(numerator: Scalar, denominator: Scalar) -> Rational:
    """Create an unreduced :class:`Rational`; same as ``Rational(num, den)``."""
    return Rational(numerator, denominator)


def from_scalar(value: NumberLike) -> Rational:
    return Rational.from_scalar(value)


def to_integer(value: NumberLike) -> int:
    return _as_rational(value).to_integer()


def reduce(value: Rational) -> Rational:
    """Reduce *value* in place and return it."""
    return value.reduce()


def reciprocal(value: NumberLike) -> Rational:
    return _as_rational(value).reciprocal()


def compare(a: NumberLike, b: NumberLike) -> int:
    """Return the reduced numerator of ``a - b``.

    Its sign orders *a* against *b*: negative, zero or positive.
    """
    return (_as_rational(a) - _as_rational(b)).numerator


def rationalize(value: Any) -> Rational:
    """Coerce a numeric-like value into :class:`Rational`.

    Unlike :meth:`Rational.from_scalar` this also accepts
    :class:`~fractions.Fraction` and floats, which convert exactly.
    """
    if isinstance(value, Rational):
        return value
    if isinstance(value, Fraction):
        return Rational.from_fraction(value)
    if isinstance(value, (numbers.Integral, str)):
        return Rational.from_scalar(value)
    if isinstance(value, np.generic):
        return rationalize(value.item())
    if isinstance(value, numbers.Real):
        return Rational.from_float(float(value))
    LOG.debug("cannot rationalize %s", type(value).__name__)
    raise TypeError(f"Cannot convert {type(value)!r} to Rational")


def as_rational_array(values: Any, *, copy: bool = True) -> np.ndarray:
    """Return a ``numpy.ndarray`` of :class:`Rational` values.

    ``values`` can be any iterable containing numeric-like entries or an existing
    NumPy array. When ``copy`` is ``False`` and ``values`` is already an object
    array holding only :class:`Rational` entries, that array is returned as is.
    """
    if isinstance(values, np.ndarray):
        array = values.copy() if copy else values
        if array.dtype == object and all(isinstance(item, Rational) for item in array.flat):
            return array
        if array.size == 0:
            return array.astype(object)
        return np.vectorize(rationalize, otypes=[object])(array)

    if isinstance(values, (list, tuple)):
        return np.array([rationalize(item) for item in values], dtype=object)

    return as_rational_array(list(values), copy=copy)


def zeros(length: int) -> np.ndarray:
    """Return a one-dimensional array of length ``length`` filled with zeros."""
    if length < 0:
        raise ValueError("length must be non-negative")
    return as_rational_array([Rational(0, 1) for _ in range(length)])


def zeros_like(values: Any) -> np.ndarray:
    """Return a zero-filled array that matches the shape of ``values``."""
    array = as_rational_array(values, copy=False)
    zeros_flat = [Rational(0, 1) for _ in range(array.size)]
    return np.array(zeros_flat, dtype=object).reshape(array.shape)


__all__ = [
    "Rational",
    "R",
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

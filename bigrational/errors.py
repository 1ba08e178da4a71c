"""Error kinds raised by the rational engine."""


class RationalError(ArithmeticError):
    """Base class for rational arithmetic failures."""


class InvalidDenominator(RationalError, ZeroDivisionError):
    """A rational was constructed with a zero denominator."""


class DivisionByZero(RationalError, ZeroDivisionError):
    """Reduction hit a zero denominator or a zero value was inverted."""


__all__ = ["RationalError", "InvalidDenominator", "DivisionByZero"]

class CurvePoolsError(Exception):
    """Base class for errors raised by curve_pools."""


class InvalidInput(CurvePoolsError, ValueError, ArithmeticError):
    """An input the arithmetic cannot accept, e.g. a zero total supply."""


class ValidationError(CurvePoolsError, ValueError):
    """Inputs that are individually valid but inconsistent with each other."""


class FixedPointOverflow(CurvePoolsError, OverflowError):
    """A fixed-point product fell outside the signed 256-bit range."""

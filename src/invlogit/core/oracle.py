"""High-precision reference evaluation rounded back to a working float format.

The oracle evaluates a real function with mpmath at a configurable number of
bits and rounds the exact binary result to the working format (round to
nearest, ties to even, gradual underflow, overflow to infinity). Each oracle
owns a private ``mpmath.MPContext``, so instances with different precisions
can coexist and the global ``mpmath.mp`` precision is never touched.

Reference functions take a single mpmath value and reach the context through
``x.context``, e.g.::

    def ideal_exp(x):
        return x.context.exp(x)
"""

from __future__ import annotations

from fractions import Fraction
from typing import Any, Callable, Iterable

import mpmath
import numpy as np

RealFunction = Callable[[Any], Any]

SUPPORTED_DTYPES = (np.float16, np.float32, np.float64)


def working_dtype(dtype: Any) -> np.dtype:
    """Normalize ``dtype`` to one of the supported IEEE binary formats."""
    dt = np.dtype(dtype)
    if dt not in [np.dtype(d) for d in SUPPORTED_DTYPES]:
        raise ValueError(f"unsupported working dtype {dt}; expected float16, float32 or float64")
    return dt


def min_precision_bits(dtype: Any) -> int:
    """Smallest oracle precision accepted for ``dtype``: 4x its significand width."""
    return 4 * (np.finfo(working_dtype(dtype)).nmant + 1)


def _floor_log2(q: Fraction) -> int:
    e = q.numerator.bit_length() - q.denominator.bit_length()
    if q < Fraction(2) ** e:
        e -= 1
    return e


def round_to_format(q: Fraction, dtype: Any = np.float64) -> np.floating:
    """Round an exact rational to ``dtype``: nearest, ties to even.

    Handles subnormals and overflows to a signed infinity.
    """
    dt = working_dtype(dtype)
    info = np.finfo(dt)
    if q == 0:
        return dt.type(0.0)
    sign = -1.0 if q < 0 else 1.0
    a = abs(q)

    emin = int(info.minexp)
    emax = int(info.maxexp) - 1
    nmant = int(info.nmant)

    e = max(_floor_log2(a), emin)
    if e > emax:
        return dt.type(sign * np.inf)
    quantum = Fraction(2) ** (e - nmant)
    # round() on a Fraction is round-half-even
    n = round(a / quantum)
    value = n * quantum
    if value >= Fraction(2) ** (emax + 1):
        return dt.type(sign * np.inf)
    # value is exactly representable in dt, hence in a Python float too
    return dt.type(sign * float(value))


class HighPrecisionOracle:
    """Correctly rounded reference values for real functions.

    Args:
        precision_bits: Working precision of the extended evaluation in bits.
        dtype: Working float format the results are rounded to.

    Raises:
        ValueError: if ``precision_bits`` is below ``min_precision_bits(dtype)``
            or ``dtype`` is not float16/float32/float64.
    """

    def __init__(self, precision_bits: int = 256, dtype: Any = np.float64):
        self.dtype = working_dtype(dtype)
        floor_bits = min_precision_bits(self.dtype)
        if int(precision_bits) < floor_bits:
            raise ValueError(
                f"precision_bits={precision_bits} is below {floor_bits}, "
                f"4x the {self.dtype} significand width"
            )
        self.precision_bits = int(precision_bits)
        self.context = mpmath.MPContext()
        self.context.prec = self.precision_bits

    def __repr__(self) -> str:
        return f"HighPrecisionOracle(precision_bits={self.precision_bits}, dtype={self.dtype})"

    def extend(self, x: float) -> Any:
        """Promote a working-precision value to the oracle's context, losslessly."""
        return self.context.mpf(float(x))

    def round(self, y: Any) -> np.floating:
        """Round an extended-precision value to the working format."""
        ctx = self.context
        if not isinstance(y, ctx.mpf):
            y = ctx.convert(y)
            if not isinstance(y, ctx.mpf):
                raise ValueError(f"reference function returned a non-real value: {y!r}")
        if ctx.isnan(y) or ctx.isinf(y):
            return self.dtype.type(float(y))
        man, exp = y.man_exp
        q = Fraction(int(man)) * Fraction(2) ** int(exp)
        if y < 0:
            q = -q
        return round_to_format(q, self.dtype)

    def __call__(self, fn: RealFunction, x: float) -> np.floating:
        """Evaluate ``fn`` at ``x`` in extended precision and round the result."""
        return self.round(fn(self.extend(x)))

    def evaluate_many(self, fn: RealFunction, xs: Iterable[float]) -> np.ndarray:
        """Oracle values for every element of ``xs``, in order."""
        if not isinstance(xs, np.ndarray):
            xs = list(xs)
        xs_arr = np.asarray(xs, dtype=np.float64).reshape(-1)
        out = np.empty(xs_arr.shape, dtype=self.dtype)
        for i, x in enumerate(xs_arr):
            out[i] = self(fn, x)
        return out

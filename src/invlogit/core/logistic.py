"""Overflow-safe inverse logit (logistic sigmoid) for IEEE double precision.

The input line is split into five regions by constants derived with
``invlogit.core.boundaries.derive_boundaries(np.float64)``. They are written
out below as literals so the hot path never recomputes them; the test suite
re-derives them and checks they agree bit for bit.

- ``z < LOWER_SATURATION``: 0.0
- ``LOWER_SATURATION <= z < MANTISSA_CROSSOVER``: ``exp(z) / (exp(z) + 1)``.
  Once ``exp(z)`` is under half of eps the ``+ 1`` is absorbed and this is ``exp(z)``,
  which is already the correctly rounded answer there.
- ``MANTISSA_CROSSOVER <= z <= UPPER_SATURATION``: ``1 - exp(-z)``. Here
  ``exp(z) + 1`` is a rounding tie, so the ratio form flips between 1.0 and
  the double below it depending on the last bit of ``exp(z)``.
- ``z > UPPER_SATURATION``: 1.0
"""

from __future__ import annotations

from enum import IntEnum

import numpy as np

# logit(2**-1074): below this the result is flushed to 0.0
LOWER_SATURATION = -744.44007192138126231
# -log(DBL_MAX): exp(-z) overflows below this
EXP_OVERFLOW_BOUND = -709.78271289338399673
# log(2**-52): exp(z) is below eps from here down
EPS_CROSSOVER = -36.043653389117156090
# log(2**53): from here exp(z) + 1 is not representable and rounds as a tie
MANTISSA_CROSSOVER = 36.736800569677101399
# -logit(2**-54): above this the correctly rounded result is 1.0
UPPER_SATURATION = 37.429947750237046653


class Region(IntEnum):
    """Numerical regime of an input, ordered along the real line."""

    SATURATE_ZERO = 0
    TRANSITIONAL_LOW = 1
    STABLE = 2
    TRANSITIONAL_HIGH = 3
    SATURATE_ONE = 4


def region_codes(
    z: np.ndarray | float,
    lower: float = LOWER_SATURATION,
    eps: float = EPS_CROSSOVER,
    mantissa: float = MANTISSA_CROSSOVER,
    upper: float = UPPER_SATURATION,
) -> np.ndarray:
    """Integer ``Region`` codes for ``z``; NaN inputs get ``-1``."""
    z = np.asarray(z, dtype=np.float64)
    codes = (
        (z >= lower).astype(np.int8)
        + (z >= eps).astype(np.int8)
        + (z >= mantissa).astype(np.int8)
        + (z > upper).astype(np.int8)
    )
    return np.where(np.isnan(z), np.int8(-1), codes)


def region_of(z: float) -> Region:
    """Region of a single input.

    Raises:
        ValueError: if ``z`` is NaN, which belongs to no region.
    """
    code = int(region_codes(z))
    if code < 0:
        raise ValueError("NaN has no region")
    return Region(code)


def inverse_logit(z: np.ndarray | float) -> np.ndarray | float:
    """Inverse logit ``1 / (1 + exp(-z))`` without overflow, NaN or early underflow.

    Accepts a scalar or an array and is built from comparisons and selects
    only, so it vectorizes elementwise. Scalars come back as ``float``.

    Never raises and never returns NaN for non-NaN input; ``-inf`` maps to
    0.0 and ``+inf`` to 1.0. NaN propagates.
    """
    x = np.asarray(z, dtype=np.float64)

    # Clamp the exp arguments so no lane overflows, whichever branch it takes.
    ez = np.exp(np.minimum(x, MANTISSA_CROSSOVER))
    ratio = ez / (ez + 1.0)
    complement = 1.0 - np.exp(-np.maximum(x, MANTISSA_CROSSOVER))

    out = np.where(x < MANTISSA_CROSSOVER, ratio, complement)
    out = np.where(x < LOWER_SATURATION, 0.0, out)
    out = np.where(x > UPPER_SATURATION, 1.0, out)

    if out.ndim == 0:
        return float(out)
    return out

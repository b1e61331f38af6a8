"""Boundary constants that partition the inverse-logit input line.

Every constant is an oracle evaluation at an exactly representable point of
the working format, so the set can be re-derived for any supported float
width instead of scaling the double-precision values:

- ``lower_saturation``: ``logit`` of the smallest positive subnormal.
- ``exp_overflow_bound``: ``-log`` of the largest finite value; ``exp(-z)``
  overflows for ``z`` below it.
- ``eps_crossover``: ``log(eps)``; below it ``exp(z)`` is under the spacing of
  doubles at 1.0. Its negation is the same point for ``exp(-z)``.
- ``mantissa_crossover``: ``log(2**(nmant + 1))``; from here the unit in the
  last place of ``exp(z)`` exceeds 1, so ``exp(z) + 1`` rounds as a tie.
- ``upper_saturation``: ``-logit(2**-(nmant + 2))``; above it the correctly
  rounded function is exactly 1.0.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Tuple

import numpy as np

from .ideal import ideal_log, ideal_logit, ideal_neg_log, ideal_neg_logit
from .logistic import Region, region_codes
from .oracle import HighPrecisionOracle, min_precision_bits, working_dtype

BOUNDARY_NAMES = (
    "lower_saturation",
    "exp_overflow_bound",
    "eps_crossover",
    "mantissa_crossover",
    "upper_saturation",
)


@dataclass(frozen=True)
class BoundaryConstants:
    lower_saturation: float
    exp_overflow_bound: float
    eps_crossover: float
    mantissa_crossover: float
    upper_saturation: float

    @property
    def eps_crossover_high(self) -> float:
        """Input above which ``exp(-z)`` is under the spacing of doubles at 1.0."""
        return -self.eps_crossover

    def as_tuple(self) -> Tuple[float, float, float, float, float]:
        return tuple(getattr(self, name) for name in BOUNDARY_NAMES)  # type: ignore[return-value]

    def as_dict(self) -> Dict[str, float]:
        return asdict(self)

    def check_order(self) -> None:
        """Raise ``ValueError`` unless the constants are strictly increasing."""
        values = self.as_tuple()
        for (lo_name, lo), (hi_name, hi) in zip(
            zip(BOUNDARY_NAMES, values), zip(BOUNDARY_NAMES[1:], values[1:])
        ):
            if not lo < hi:
                raise ValueError(f"boundary order violated: {lo_name}={lo!r} >= {hi_name}={hi!r}")

    def region_codes(self, z: np.ndarray | float) -> np.ndarray:
        return region_codes(
            z,
            lower=self.lower_saturation,
            eps=self.eps_crossover,
            mantissa=self.mantissa_crossover,
            upper=self.upper_saturation,
        )

    def region_of(self, z: float) -> Region:
        code = int(self.region_codes(z))
        if code < 0:
            raise ValueError("NaN has no region")
        return Region(code)


def derive_boundaries(dtype: Any = np.float64, precision_bits: int | None = None) -> BoundaryConstants:
    """Derive the five boundary constants for ``dtype`` with a high-precision oracle.

    Args:
        dtype: Working format (float16, float32 or float64).
        precision_bits: Oracle precision; defaults to ``max(256, 4 * significand bits)``.

    Returns:
        ``BoundaryConstants`` in the working format, already checked for ordering.
    """
    dt = working_dtype(dtype)
    if precision_bits is None:
        precision_bits = max(256, min_precision_bits(dt))
    oracle = HighPrecisionOracle(precision_bits=precision_bits, dtype=dt)
    info = np.finfo(dt)
    nmant = int(info.nmant)

    constants = BoundaryConstants(
        lower_saturation=float(oracle(ideal_logit, info.smallest_subnormal)),
        exp_overflow_bound=float(oracle(ideal_neg_log, info.max)),
        eps_crossover=float(oracle(ideal_log, info.eps)),
        mantissa_crossover=float(oracle(ideal_log, 2.0 ** (nmant + 1))),
        upper_saturation=float(oracle(ideal_neg_logit, 2.0 ** -(nmant + 2))),
    )
    constants.check_order()
    return constants

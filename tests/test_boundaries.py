import math
import sys
from pathlib import Path

import numpy as np
import pytest

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT / "src"))

from invlogit.core import logistic
from invlogit.core.boundaries import BOUNDARY_NAMES, BoundaryConstants, derive_boundaries
from invlogit.core.logistic import Region


def _literal_constants() -> BoundaryConstants:
    return BoundaryConstants(
        lower_saturation=logistic.LOWER_SATURATION,
        exp_overflow_bound=logistic.EXP_OVERFLOW_BOUND,
        eps_crossover=logistic.EPS_CROSSOVER,
        mantissa_crossover=logistic.MANTISSA_CROSSOVER,
        upper_saturation=logistic.UPPER_SATURATION,
    )


def test_float64_derivation_matches_compiled_literals():
    derived = derive_boundaries(np.float64)
    assert derived == _literal_constants()
    # Higher oracle precision settles on the same doubles.
    assert derive_boundaries(np.float64, precision_bits=512) == derived


def test_float64_constants_close_to_closed_forms():
    c = derive_boundaries(np.float64)
    ln2 = math.log(2.0)
    assert abs(c.lower_saturation - (-1074 * ln2)) < 1e-12
    assert abs(c.exp_overflow_bound - (-math.log(np.finfo(np.float64).max))) < 1e-12
    assert abs(c.eps_crossover - (-52 * ln2)) < 1e-12
    assert abs(c.mantissa_crossover - 53 * ln2) < 1e-12
    assert abs(c.upper_saturation - 54 * ln2) < 1e-12
    assert c.eps_crossover_high == -c.eps_crossover


@pytest.mark.parametrize(
    "dtype, lower, upper",
    [
        (np.float32, -149 * math.log(2.0), 25 * math.log(2.0)),
        (np.float16, -24 * math.log(2.0), 12 * math.log(2.0)),
    ],
)
def test_narrow_formats_are_rederived_and_ordered(dtype, lower, upper):
    c = derive_boundaries(dtype)
    c.check_order()
    values = c.as_tuple()
    assert list(values) == sorted(values)
    ulp = abs(float(np.spacing(np.array(lower, dtype=dtype))))
    assert abs(c.lower_saturation - lower) <= ulp
    assert abs(c.upper_saturation - upper) <= abs(float(np.spacing(np.array(upper, dtype=dtype))))
    # Narrower formats saturate much closer to zero than float64.
    assert c.lower_saturation > logistic.LOWER_SATURATION


def test_check_order_raises_on_swapped_constants():
    c = _literal_constants()
    bad = BoundaryConstants(
        lower_saturation=c.exp_overflow_bound,
        exp_overflow_bound=c.lower_saturation,
        eps_crossover=c.eps_crossover,
        mantissa_crossover=c.mantissa_crossover,
        upper_saturation=c.upper_saturation,
    )
    with pytest.raises(ValueError, match="lower_saturation"):
        bad.check_order()


def test_as_dict_uses_boundary_names():
    c = _literal_constants()
    assert tuple(c.as_dict()) == BOUNDARY_NAMES
    assert c.as_dict()["mantissa_crossover"] == logistic.MANTISSA_CROSSOVER


def test_region_of_on_constants():
    c = _literal_constants()
    assert c.region_of(-1000.0) is Region.SATURATE_ZERO
    assert c.region_of(c.lower_saturation) is Region.TRANSITIONAL_LOW
    assert c.region_of(-100.0) is Region.TRANSITIONAL_LOW
    assert c.region_of(c.eps_crossover) is Region.STABLE
    assert c.region_of(0.0) is Region.STABLE
    assert c.region_of(c.mantissa_crossover) is Region.TRANSITIONAL_HIGH
    assert c.region_of(c.upper_saturation) is Region.TRANSITIONAL_HIGH
    assert c.region_of(np.nextafter(c.upper_saturation, np.inf)) is Region.SATURATE_ONE
    with pytest.raises(ValueError):
        c.region_of(float("nan"))

import sys
from fractions import Fraction
from pathlib import Path

import mpmath
import numpy as np
import pytest

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT / "src"))

from invlogit.core.ideal import ideal_inverse_logit, ideal_log
from invlogit.core.oracle import HighPrecisionOracle, min_precision_bits, round_to_format


def test_precision_floor_is_four_times_significand():
    assert min_precision_bits(np.float64) == 212
    assert min_precision_bits(np.float32) == 96
    assert min_precision_bits(np.float16) == 44
    with pytest.raises(ValueError):
        HighPrecisionOracle(precision_bits=100)
    HighPrecisionOracle(precision_bits=100, dtype=np.float32)


def test_unsupported_dtype_rejected():
    with pytest.raises(ValueError):
        HighPrecisionOracle(dtype=np.int32)


def test_private_context_leaves_global_precision_alone():
    before = mpmath.mp.prec
    o = HighPrecisionOracle(precision_bits=512)
    assert o.context.prec == 512
    assert mpmath.mp.prec == before


def test_known_values():
    o = HighPrecisionOracle()
    assert o(ideal_inverse_logit, 0.0) == 0.5
    assert o(ideal_log, 1.0) == 0.0
    assert o(ideal_inverse_logit, np.inf) == 1.0
    assert o(ideal_inverse_logit, -np.inf) == 0.0
    assert o(ideal_inverse_logit, 100.0) == 1.0
    # Close to the double expression, which carries its own rounding.
    assert abs(o(ideal_inverse_logit, -1.0) - 1.0 / (1.0 + np.e)) <= 2 * np.spacing(0.27)


def test_subnormal_results_round_to_nearest():
    o = HighPrecisionOracle()
    # e**-744 is about 1.55 * 2**-1074
    assert o(ideal_inverse_logit, -744.0) == 1e-323
    assert o(ideal_inverse_logit, -1000.0) == 0.0


def test_round_to_format_ties_to_even():
    ulp_half = Fraction(1, 2**53)
    assert round_to_format(1 + ulp_half) == 1.0
    assert round_to_format(1 + 3 * ulp_half) == 1.0 + 2.0**-51
    assert round_to_format(-(1 + 3 * ulp_half)) == -(1.0 + 2.0**-51)
    # Half of the smallest subnormal ties to zero; three quarters rounds up.
    assert round_to_format(Fraction(1, 2**1075)) == 0.0
    assert round_to_format(Fraction(3, 2**1076)) == 5e-324


def test_round_to_format_overflow():
    assert round_to_format(Fraction(2) ** 1024) == np.inf
    assert round_to_format(-(Fraction(2) ** 1024)) == -np.inf
    # Largest double plus half an ulp ties to the (odd) max, so it rounds up.
    assert round_to_format(Fraction(2) ** 1024 - Fraction(2) ** 970) == np.inf
    assert round_to_format(Fraction(2) ** 1024 - Fraction(2) ** 971) == np.finfo(np.float64).max
    assert round_to_format(Fraction(65520), np.float16) == np.inf
    assert round_to_format(Fraction(65519), np.float16) == np.float16(65504)


def test_round_handles_special_values():
    o = HighPrecisionOracle()
    assert np.isnan(o.round(o.context.nan))
    assert o.round(-o.context.inf) == -np.inf
    assert o.round(0) == 0.0
    with pytest.raises(ValueError):
        o.round(o.context.mpc(1, 1))


def test_evaluate_many_is_ordered_and_typed():
    o = HighPrecisionOracle(precision_bits=128, dtype=np.float32)
    out = o.evaluate_many(ideal_inverse_logit, [0.0, 200.0, -200.0])
    assert out.dtype == np.float32
    assert out.tolist() == [0.5, 1.0, 0.0]

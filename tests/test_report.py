import sys
from pathlib import Path

import numpy as np
import pytest

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT / "src"))

from invlogit.report import AccuracyReport, absolute_error, summarize


def test_absolute_error_total_semantics():
    c = np.array([np.inf, np.nan, np.nan, 1.0, -0.0, 0.25])
    o = np.array([np.inf, np.nan, 0.5, np.inf, 0.0, 0.5])
    assert absolute_error(c, o).tolist() == [0.0, 0.0, np.inf, np.inf, 0.0, 0.25]


def test_summarize_exact_outputs():
    r = summarize([0.5, 0.25, 1.0], [0.5, 0.25, 1.0])
    assert r == AccuracyReport(
        exact_match_rate=1.0, mean_abs_error=0.0, max_abs_error=0.0, mean_bit_diff=0.0, n_inputs=3, n_nan=0
    )


def test_summarize_one_ulp_off():
    below_one = np.nextafter(1.0, 0.0)
    r = summarize([1.0, 0.5], [below_one, 0.5])
    assert r.exact_match_rate == 0.5
    assert r.max_abs_error == 2.0**-53
    assert r.mean_abs_error == 2.0**-54
    assert r.mean_bit_diff == 26.5


def test_summarize_counts_nan_as_worst_case():
    r = summarize([0.5, np.nan], [0.5, 0.25])
    assert r.n_nan == 1
    assert r.max_abs_error == np.inf
    assert r.exact_match_rate == 0.5


def test_summarize_rejects_empty_and_mismatched():
    with pytest.raises(ValueError):
        summarize([], [])
    with pytest.raises(ValueError):
        summarize([0.5, 0.5], [0.5])


def test_as_dict_roundtrips_fields():
    r = summarize([0.5], [0.5])
    assert AccuracyReport(**r.as_dict()) == r

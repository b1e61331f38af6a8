"""Decision gates on accuracy reports.

Implements gates used to declare a candidate formula "good enough" on one
input sweep: exact-match rate, worst-case absolute error, mean bit
difference, and absence of NaN outputs. Each gate returns a dict with a
``pass_`` flag plus the values it compared, so failures are explainable from
the comparison table alone.
"""

from __future__ import annotations

import math
from typing import Dict, Mapping

from .report import AccuracyReport


def exact_match_gate(report: AccuracyReport, min_rate: float) -> Dict[str, float | bool]:
    """Passes when at least ``min_rate`` of outputs equal the oracle exactly.

    Returns:
        Dict with ``{"pass_", "rate", "min_rate"}``.
    """
    rate = float(report.exact_match_rate)
    passed = bool(rate >= float(min_rate))
    return dict(pass_=passed, rate=rate, min_rate=float(min_rate))


def max_error_gate(report: AccuracyReport, max_abs_error: float) -> Dict[str, float | bool]:
    """Passes when the worst absolute error is at most ``max_abs_error``.

    Returns:
        Dict with ``{"pass_", "max_abs_error", "limit"}``.
    """
    worst = float(report.max_abs_error)
    passed = bool(math.isfinite(worst) and worst <= float(max_abs_error))
    return dict(pass_=passed, max_abs_error=worst, limit=float(max_abs_error))


def bit_diff_gate(report: AccuracyReport, max_mean_bit_diff: float) -> Dict[str, float | bool]:
    """Passes when the mean bit difference is at most ``max_mean_bit_diff``."""
    mean_bits = float(report.mean_bit_diff)
    passed = bool(mean_bits <= float(max_mean_bit_diff))
    return dict(pass_=passed, mean_bit_diff=mean_bits, limit=float(max_mean_bit_diff))


def nan_free_gate(report: AccuracyReport) -> Dict[str, float | bool]:
    """Passes when the candidate produced no NaN where the oracle had a value."""
    return dict(pass_=bool(report.n_nan == 0), n_nan=int(report.n_nan))


def apply_gates(report: AccuracyReport, thresholds: Mapping[str, float]) -> Dict[str, bool]:
    """Evaluate the active gates for one report.

    ``thresholds`` may hold ``min_exact_match_rate``, ``max_abs_error`` and
    ``max_mean_bit_diff``; a missing or NaN threshold leaves that gate out.
    ``nan_free`` is always active.

    Returns:
        ``{gate_name: passed}``.
    """
    out: Dict[str, bool] = {"nan_free": bool(nan_free_gate(report)["pass_"])}

    def active(key: str) -> bool:
        v = thresholds.get(key)
        return v is not None and not math.isnan(float(v))

    if active("min_exact_match_rate"):
        out["exact_match"] = bool(
            exact_match_gate(report, float(thresholds["min_exact_match_rate"]))["pass_"]
        )
    if active("max_abs_error"):
        out["max_error"] = bool(max_error_gate(report, float(thresholds["max_abs_error"]))["pass_"])
    if active("max_mean_bit_diff"):
        out["bit_diff"] = bool(
            bit_diff_gate(report, float(thresholds["max_mean_bit_diff"]))["pass_"]
        )
    return out


def active_gate_keys(thresholds: Mapping[str, float]) -> list[str]:
    """Names ``apply_gates`` would report for ``thresholds``."""
    keys = ["nan_free"]
    for key, name in (
        ("min_exact_match_rate", "exact_match"),
        ("max_abs_error", "max_error"),
        ("max_mean_bit_diff", "bit_diff"),
    ):
        v = thresholds.get(key)
        if v is not None and not math.isnan(float(v)):
            keys.append(name)
    return keys

"""Accuracy summaries of candidate outputs against oracle outputs."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Dict

import numpy as np

from .core.bits import bit_diff

REPORT_METRICS = ("exact_match_rate", "mean_abs_error", "max_abs_error", "mean_bit_diff")


@dataclass(frozen=True)
class AccuracyReport:
    """Four summary statistics over one ordered input sequence.

    None of them is the final word: a candidate can match the oracle on almost
    every input and still have a large worst case, so all four are kept.

    Attributes:
        exact_match_rate: Fraction of inputs with zero absolute error.
        mean_abs_error: Mean absolute error against the oracle.
        max_abs_error: Largest absolute error (``inf`` when a NaN was produced).
        mean_bit_diff: Mean Hamming distance between output bit patterns.
        n_inputs: Number of inputs summarized.
        n_nan: Candidate outputs that were NaN where the oracle was not.
    """

    exact_match_rate: float
    mean_abs_error: float
    max_abs_error: float
    mean_bit_diff: float
    n_inputs: int
    n_nan: int = 0

    def as_dict(self) -> Dict[str, float | int]:
        return asdict(self)


def absolute_error(candidate: np.ndarray, oracle: np.ndarray) -> np.ndarray:
    """Elementwise ``|candidate - oracle|`` with total semantics.

    Equal values (including equal infinities and ``+0.0``/``-0.0``) and NaN
    against NaN count as 0; any other NaN or ``inf - inf`` counts as ``inf``.
    """
    c = np.asarray(candidate, dtype=np.float64)
    o = np.asarray(oracle, dtype=np.float64)
    with np.errstate(invalid="ignore"):
        err = np.abs(c - o)
    same = (c == o) | (np.isnan(c) & np.isnan(o))
    err = np.where(same, 0.0, err)
    return np.where(np.isnan(err), np.inf, err)


def summarize(candidate_outputs: np.ndarray, oracle_outputs: np.ndarray) -> AccuracyReport:
    """Build an ``AccuracyReport`` from paired outputs.

    Raises:
        ValueError: if the sequences are empty or differ in length.
    """
    c = np.asarray(candidate_outputs, dtype=np.float64).reshape(-1)
    o = np.asarray(oracle_outputs, dtype=np.float64).reshape(-1)
    if c.size == 0:
        raise ValueError("cannot summarize an empty input sequence")
    if c.shape != o.shape:
        raise ValueError(f"candidate/oracle length mismatch: {c.size} vs {o.size}")

    err = absolute_error(c, o)
    bits = bit_diff(c, o)
    n_nan = int(np.sum(np.isnan(c) & ~np.isnan(o)))

    return AccuracyReport(
        exact_match_rate=float(np.mean(err == 0.0)),
        mean_abs_error=float(np.mean(err)),
        max_abs_error=float(np.max(err)),
        mean_bit_diff=float(np.mean(bits)),
        n_inputs=int(c.size),
        n_nan=n_nan,
    )

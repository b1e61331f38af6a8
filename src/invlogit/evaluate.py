"""
Accuracy evaluation of a candidate formula against a high-precision oracle.

candidate(inputs) ─┐
                   ├─ absolute error, bit difference ─→ AccuracyReport
oracle(ideal fn) ──┘

The oracle evaluates the ideal mathematical function, never the candidate's
expression, so the comparison measures fidelity to the true function rather
than internal consistency of one formula. Oracle values are independent per
input and can be spread over worker processes; chunk order is preserved, so
the parallel and serial paths give identical arrays.
"""

from __future__ import annotations

import os
from typing import Callable, Iterable, List, Sequence

import numpy as np
import pandas as pd

from .core.bits import bit_diff
from .core.oracle import HighPrecisionOracle, RealFunction
from .report import AccuracyReport, absolute_error, summarize


def as_inputs(inputs: Iterable[float]) -> np.ndarray:
    """Flatten ``inputs`` into a float64 array.

    Raises:
        ValueError: if there are no inputs.
    """
    if not isinstance(inputs, np.ndarray):
        inputs = list(inputs)
    xs = np.asarray(inputs, dtype=np.float64).reshape(-1)
    if xs.size == 0:
        raise ValueError("inputs must be a non-empty sequence")
    return xs


def candidate_outputs(candidate: Callable[[float], float], xs: np.ndarray) -> np.ndarray:
    """Apply ``candidate`` to each input in order (scalar calls)."""
    return np.fromiter((float(candidate(x)) for x in xs), dtype=np.float64, count=xs.size)


def _oracle_chunk(precision_bits: int, dtype: str, fn: RealFunction, chunk: np.ndarray) -> np.ndarray:
    # Runs in a worker process; mpmath contexts are rebuilt rather than pickled.
    return HighPrecisionOracle(precision_bits=precision_bits, dtype=dtype).evaluate_many(fn, chunk)


def oracle_outputs(
    reference_math_fn: RealFunction,
    xs: np.ndarray,
    oracle: HighPrecisionOracle | None = None,
    workers: int = 1,
) -> np.ndarray:
    """Oracle values for ``xs``, optionally computed across ``workers`` processes.

    Falls back to serial evaluation if the process pool cannot be used (for
    example when ``reference_math_fn`` is a lambda and cannot be pickled).
    """
    oracle = oracle or HighPrecisionOracle()
    n_workers = int(workers) if workers else (os.cpu_count() or 1)
    if n_workers <= 1 or xs.size < 2 * n_workers:
        return oracle.evaluate_many(reference_math_fn, xs)

    from concurrent.futures import ProcessPoolExecutor

    chunks: List[np.ndarray] = np.array_split(xs, n_workers)
    try:
        with ProcessPoolExecutor(max_workers=n_workers) as ex:
            parts = list(
                ex.map(
                    _oracle_chunk,
                    [oracle.precision_bits] * len(chunks),
                    [oracle.dtype.name] * len(chunks),
                    [reference_math_fn] * len(chunks),
                    chunks,
                )
            )
    except Exception:
        # Fallback to serial
        return oracle.evaluate_many(reference_math_fn, xs)
    return np.concatenate(parts).astype(oracle.dtype, copy=False)


def evaluate_accuracy(
    candidate: Callable[[float], float],
    reference_math_fn: RealFunction,
    inputs: Sequence[float] | np.ndarray,
    oracle: HighPrecisionOracle | None = None,
    workers: int = 1,
) -> AccuracyReport:
    """Measure ``candidate`` against the correctly rounded ``reference_math_fn``.

    Args:
        candidate: Working-precision implementation, called once per input.
        reference_math_fn: Ideal function of one mpmath value (see
            ``invlogit.core.ideal``).
        inputs: Finite, ordered, non-empty sequence of float64 inputs.
        oracle: Oracle to use; defaults to 256-bit float64.
        workers: Processes for the oracle; ``0`` means one per CPU.

    Returns:
        A fresh ``AccuracyReport``.

    Raises:
        ValueError: if ``inputs`` is empty.
    """
    xs = as_inputs(inputs)
    got = candidate_outputs(candidate, xs)
    want = oracle_outputs(reference_math_fn, xs, oracle=oracle, workers=workers)
    return summarize(got, want)


def evaluate_against(
    candidate: Callable[[float], float], xs: np.ndarray, reference: np.ndarray
) -> AccuracyReport:
    """Like ``evaluate_accuracy`` but with oracle values already computed for ``xs``."""
    return summarize(candidate_outputs(candidate, xs), np.asarray(reference, dtype=np.float64))


def error_profile(
    candidate: Callable[[float], float], xs: np.ndarray, reference: np.ndarray
) -> pd.DataFrame:
    """Per-input table of candidate, oracle, absolute error and bit difference."""
    got = candidate_outputs(candidate, xs)
    ref = np.asarray(reference, dtype=np.float64)
    return pd.DataFrame(
        {
            "z": xs,
            "candidate": got,
            "oracle": ref,
            "abs_error": absolute_error(got, ref),
            "bit_diff": bit_diff(got, ref),
        }
    )

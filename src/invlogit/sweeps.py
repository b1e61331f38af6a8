"""Input sweeps over the float64 line."""

from __future__ import annotations

import numpy as np

from .config import SweepConfig
from .core.boundaries import BoundaryConstants, derive_boundaries


def random_finite_bits(rng: np.random.Generator, n: int, lo: float, hi: float) -> np.ndarray:
    """``n`` doubles drawn uniformly over bit patterns, kept if finite and in ``[lo, hi]``.

    Uniform over patterns means uniform over exponents, so tiny and huge
    magnitudes are as likely as moderate ones.

    Raises:
        ValueError: if ``[lo, hi]`` covers too few patterns to fill ``n`` draws.
    """
    out = np.empty(0, dtype=np.float64)
    for _ in range(64):
        if out.size >= n:
            break
        raw = rng.integers(0, np.iinfo(np.uint64).max, size=2 * n, dtype=np.uint64, endpoint=True)
        x = raw.view(np.float64)
        keep = x[np.isfinite(x) & (x >= lo) & (x <= hi)]
        out = np.concatenate([out, keep])
    if out.size < n:
        raise ValueError(f"[{lo}, {hi}] is too narrow for random bit patterns; use kind='uniform'")
    return out[:n]


def neighbours(c: float, n: int) -> np.ndarray:
    """``c`` plus the ``n`` nearest representable doubles on each side, ascending."""
    below = [np.float64(c)]
    above = [np.float64(c)]
    for _ in range(int(n)):
        below.append(np.nextafter(below[-1], -np.inf))
        above.append(np.nextafter(above[-1], np.inf))
    return np.array(below[:0:-1] + above, dtype=np.float64)


def make_inputs(
    sweep: SweepConfig,
    constants: BoundaryConstants | None = None,
    rng: np.random.Generator | None = None,
) -> np.ndarray:
    """Materialize a sweep as a float64 array.

    Args:
        sweep: What to generate.
        constants: Boundary constants for ``kind="boundary"``; derived if omitted.
        rng: Generator for ``uniform``/``bits``; seeded from 0 if omitted.
    """
    sweep.validate()
    n = int(sweep.n)
    if sweep.kind == "linspace":
        return np.linspace(float(sweep.lo), float(sweep.hi), n)
    rng = rng if rng is not None else np.random.default_rng(0)
    if sweep.kind == "uniform":
        return np.sort(rng.uniform(float(sweep.lo), float(sweep.hi), size=n))
    if sweep.kind == "bits":
        return np.sort(random_finite_bits(rng, n, float(sweep.lo), float(sweep.hi)))
    constants = constants if constants is not None else derive_boundaries(np.float64)
    return neighbours(getattr(constants, str(sweep.anchor)), n)

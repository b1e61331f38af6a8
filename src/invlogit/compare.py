from __future__ import annotations

import math
from typing import Any, Dict, List, Tuple

import numpy as np
import pandas as pd

from .config import EvalConfig
from .core.boundaries import BoundaryConstants, derive_boundaries
from .core.candidates import Strategy, get_candidate
from .core.ideal import ideal_inverse_logit
from .core.logistic import Region
from .core.oracle import HighPrecisionOracle
from .evaluate import evaluate_against, oracle_outputs
from .gates import active_gate_keys, apply_gates
from .report import REPORT_METRICS
from .sweeps import make_inputs
from .tables import summarize_strategies

# True when larger is better
_AXIS_DIRECTION = {
    "exact_match_rate": True,
    "mean_abs_error": False,
    "max_abs_error": False,
    "mean_bit_diff": False,
}


def _regions_label(constants: BoundaryConstants, xs: np.ndarray) -> str:
    codes = sorted({int(c) for c in np.unique(constants.region_codes(xs)) if c >= 0})
    return "+".join(Region(c).name.lower() for c in codes)


def _eval_strategy_sweep(
    strategy: Strategy,
    sweep_name: str,
    xs: np.ndarray,
    reference: np.ndarray,
    gates: Dict[str, float],
) -> Dict[str, Any]:
    """Evaluate one strategy on one sweep and apply the gates.

    Fail-closed: if the candidate raises, every active gate is recorded as
    failed, the metrics are NaN and the exception text is kept in ``error``.
    """
    row: Dict[str, Any] = {"strategy": strategy.value, "sweep": sweep_name, "n_inputs": int(xs.size)}
    try:
        report = evaluate_against(strategy, xs, reference)
    except Exception as e:
        row.update({m: float("nan") for m in REPORT_METRICS})
        row["n_nan"] = 0
        row.update({f"gate_{k}": False for k in active_gate_keys(gates)})
        row["error"] = f"{type(e).__name__}: {e}"
        return row
    row.update({m: getattr(report, m) for m in REPORT_METRICS})
    row["n_nan"] = report.n_nan
    row.update({f"gate_{k}": v for k, v in apply_gates(report, gates).items()})
    row["error"] = None
    return row


def compare_strategies(
    cfg: EvalConfig, constants: BoundaryConstants | None = None
) -> List[Dict[str, Any]]:
    """Evaluate every configured strategy on every configured sweep.

    Oracle values are computed once per sweep and shared by all strategies.

    Returns:
        One row per (sweep, strategy) with the four report metrics, ``n_nan``,
        ``gate_<name>`` flags, the regions the sweep touches and ``error``.
    """
    cfg.validate()
    if constants is None:
        constants = derive_boundaries(np.float64, precision_bits=cfg.precision_bits)
    oracle = HighPrecisionOracle(precision_bits=cfg.precision_bits)
    rng = np.random.default_rng(cfg.seed)
    strategies = [get_candidate(s) for s in cfg.strategies]

    rows: List[Dict[str, Any]] = []
    for sweep in cfg.sweeps:
        xs = make_inputs(sweep, constants, rng)
        reference = oracle_outputs(ideal_inverse_logit, xs, oracle=oracle, workers=cfg.workers)
        regions = _regions_label(constants, xs)
        for strategy in strategies:
            row = _eval_strategy_sweep(strategy, sweep.name, xs, reference, cfg.gates)
            row["regions"] = regions
            rows.append(row)
    return rows


def pareto_mask(rate: np.ndarray, worst: np.ndarray) -> np.ndarray:
    """True where no other point has a rate at least as high and a worst error
    at least as low, with one of the two strictly better. NaN points are never
    on the front."""
    rate = np.asarray(rate, dtype=float)
    worst = np.asarray(worst, dtype=float)
    ok = ~(np.isnan(rate) | np.isnan(worst))
    r, w = rate[ok], worst[ok]
    # [i, j]: point j dominates point i
    no_worse = (r[None, :] >= r[:, None]) & (w[None, :] <= w[:, None])
    better = (r[None, :] > r[:, None]) | (w[None, :] < w[:, None])
    mask = np.zeros(rate.shape, dtype=bool)
    mask[ok] = ~np.any(no_worse & better, axis=1)
    return mask


def compute_pareto(rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Rows on the front of high exact_match_rate against low max_abs_error, in input order."""
    if not rows:
        return []
    mask = pareto_mask(
        [float(r["exact_match_rate"]) for r in rows],
        [float(r["max_abs_error"]) for r in rows],
    )
    return [r for r, keep in zip(rows, mask) if keep]


def _sort_key(row: Dict[str, Any], by: str) -> Tuple:
    # Primary axis first, then the remaining metrics, then the name for a stable order.
    def oriented(metric: str) -> float:
        v = float(row[metric])
        if math.isnan(v):
            return math.inf
        return -v if _AXIS_DIRECTION[metric] else v

    rest = [m for m in REPORT_METRICS if m != by]
    return (oriented(by), *[oriented(m) for m in rest], str(row.get("strategy", "")))


def rank_rows(rows: List[Dict[str, Any]], by: str = "exact_match_rate") -> List[Dict[str, Any]]:
    """Order rows best-first on metric ``by``.

    Raises:
        ValueError: if ``by`` is not one of the report metrics.
    """
    if by not in _AXIS_DIRECTION:
        raise ValueError(f"unknown metric {by!r}; expected one of {REPORT_METRICS}")
    return sorted(rows, key=lambda r: _sort_key(r, by))


def select_best(rows: List[Dict[str, Any]], by: str = "exact_match_rate") -> Dict[str, Any] | None:
    """Best row on metric ``by`` (ties broken by the other metrics), or None if empty."""
    ranked = rank_rows(rows, by)
    return ranked[0] if ranked else None


def select_formula(
    cfg: EvalConfig, constants: BoundaryConstants | None = None
) -> Tuple[Dict[str, Any] | None, pd.DataFrame, List[Dict[str, Any]]]:
    """Run the comparison and pick the winning strategy.

    Returns:
        ``(best_summary_row, per_strategy_summary, per_sweep_rows)``. The summary
        flags strategies on the accuracy front in a ``pareto`` column. The best
        row is chosen among strategies that passed every gate on every sweep;
        if none did, among all strategies, with ``"accepted": False``.
    """
    rows = compare_strategies(cfg, constants=constants)
    summary = summarize_strategies(rows)
    summary["pareto"] = pareto_mask(
        summary["exact_match_rate"].to_numpy(dtype=float), summary["max_abs_error"].to_numpy(dtype=float)
    )
    records = summary.to_dict(orient="records")
    accepted = [r for r in records if float(r["acceptance"]) >= 1.0]
    best = select_best(accepted or records, by=cfg.select_by)
    if best is not None:
        best = dict(best, accepted=bool(accepted))
    return best, summary, rows

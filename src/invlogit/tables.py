from __future__ import annotations

from typing import Any, Dict, List

import numpy as np
import pandas as pd

from .report import REPORT_METRICS


def acceptance_all_gates(pass_records: List[Dict[str, bool]]) -> Dict[str, Any]:
    """Fraction of sweeps on which every gate passed, plus per-gate pass rates.

    A gate missing from a record counts as failed on that sweep.

    Returns:
        ``{"acceptance": float, "per_gate_rate": {gate: rate}}``; acceptance is
        NaN when there are no records.
    """
    if not pass_records:
        return {"acceptance": float("nan"), "per_gate_rate": {}}
    frame = pd.DataFrame(pass_records).astype("boolean").fillna(False).astype(bool)
    frame = frame[sorted(frame.columns)]
    return {
        "acceptance": float(frame.all(axis=1).mean()),
        "per_gate_rate": {str(g): float(frame[g].mean()) for g in frame.columns},
    }


def rows_to_frame(rows: List[Dict[str, Any]]) -> pd.DataFrame:
    """Per (strategy, sweep) rows as a DataFrame, gate columns last."""
    df = pd.DataFrame(rows)
    if df.empty:
        return df
    gate_cols = sorted(c for c in df.columns if c.startswith("gate_"))
    other = [c for c in df.columns if c not in gate_cols]
    return df[other + gate_cols]


def summarize_strategies(rows: List[Dict[str, Any]]) -> pd.DataFrame:
    """Aggregate per-sweep rows into one row per strategy.

    Exact-match rate, mean absolute error and mean bit difference are
    weighted by sweep size; ``max_abs_error`` is the worst over sweeps.
    Acceptance is the fraction of sweeps where all gates passed.
    """
    out: List[Dict[str, Any]] = []
    df = rows_to_frame(rows)
    if df.empty:
        return pd.DataFrame(columns=["strategy", "acceptance", *REPORT_METRICS, "n_nan", "sweeps"])

    gate_cols = [c for c in df.columns if c.startswith("gate_")]
    for strategy, g in df.groupby("strategy", sort=True):
        w = g["n_inputs"].astype(float).to_numpy()
        wsum = float(w.sum())

        def wmean(col: str) -> float:
            v = g[col].astype(float).to_numpy()
            return float(np.sum(v * w) / wsum) if wsum > 0 else float("nan")

        records = [
            {c[len("gate_"):]: bool(r[c]) for c in gate_cols if pd.notna(r[c])}
            for _, r in g.iterrows()
        ]
        acc = acceptance_all_gates(records)
        row: Dict[str, Any] = {
            "strategy": strategy,
            "acceptance": acc["acceptance"],
            "exact_match_rate": wmean("exact_match_rate"),
            "mean_abs_error": wmean("mean_abs_error"),
            "max_abs_error": float(g["max_abs_error"].astype(float).max()),
            "mean_bit_diff": wmean("mean_bit_diff"),
            "n_nan": int(g["n_nan"].sum()),
            "sweeps": int(len(g)),
        }
        for k, v in acc["per_gate_rate"].items():
            row[f"gate_{k}_rate"] = v
        out.append(row)
    return pd.DataFrame(out)

import math
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT / "src"))

from invlogit.tables import acceptance_all_gates, rows_to_frame, summarize_strategies


def test_acceptance_all_gates_simple_mix():
    # 10 sweeps; 6 pass both gates; per-gate rates: nan_free=0.8, max_error=0.7
    records = [
        {"nan_free": True, "max_error": True},
        {"nan_free": True, "max_error": True},
        {"nan_free": True, "max_error": True},
        {"nan_free": True, "max_error": True},
        {"nan_free": True, "max_error": True},
        {"nan_free": True, "max_error": True},
        {"nan_free": True, "max_error": False},
        {"nan_free": True, "max_error": False},
        {"nan_free": False, "max_error": True},
        {"nan_free": False, "max_error": False},
    ]
    out = acceptance_all_gates(records)
    assert abs(out["acceptance"] - 0.6) < 1e-9
    assert abs(out["per_gate_rate"]["nan_free"] - 0.8) < 1e-9
    assert abs(out["per_gate_rate"]["max_error"] - 0.7) < 1e-9


def test_acceptance_missing_gate_counts_as_fail():
    out = acceptance_all_gates([{"nan_free": True, "exact_match": True}, {"nan_free": True}])
    assert out["acceptance"] == 0.5
    assert out["per_gate_rate"]["exact_match"] == 0.5


def test_acceptance_empty_is_nan():
    out = acceptance_all_gates([])
    assert math.isnan(out["acceptance"])
    assert out["per_gate_rate"] == {}


def _row(strategy, sweep, n, rate, mean_err, max_err, bits, nan_free=True, n_nan=0):
    return {
        "strategy": strategy,
        "sweep": sweep,
        "n_inputs": n,
        "exact_match_rate": rate,
        "mean_abs_error": mean_err,
        "max_abs_error": max_err,
        "mean_bit_diff": bits,
        "n_nan": n_nan,
        "gate_nan_free": nan_free,
        "error": None,
    }


def test_rows_to_frame_puts_gates_last():
    df = rows_to_frame([_row("robust", "stable", 10, 1.0, 0.0, 0.0, 0.0)])
    assert df.columns[-1] == "gate_nan_free"
    assert rows_to_frame([]).empty


def test_summarize_strategies_weights_by_sweep_size():
    rows = [
        _row("robust", "a", 1, 1.0, 0.0, 0.0, 0.0),
        _row("robust", "b", 3, 0.0, 4.0, 8.0, 2.0),
        _row("exp_ratio", "a", 1, 1.0, 0.0, 0.0, 0.0),
        _row("exp_ratio", "b", 3, 0.0, float("inf"), float("inf"), 1.0, nan_free=False, n_nan=3),
    ]
    df = summarize_strategies(rows).set_index("strategy")
    assert list(df.index) == ["exp_ratio", "robust"]
    assert df.loc["robust", "exact_match_rate"] == 0.25
    assert df.loc["robust", "mean_abs_error"] == 3.0
    assert df.loc["robust", "max_abs_error"] == 8.0
    assert df.loc["robust", "mean_bit_diff"] == 1.5
    assert df.loc["robust", "acceptance"] == 1.0
    assert df.loc["exp_ratio", "acceptance"] == 0.5
    assert df.loc["exp_ratio", "gate_nan_free_rate"] == 0.5
    assert df.loc["exp_ratio", "n_nan"] == 3
    assert df.loc["exp_ratio", "sweeps"] == 2

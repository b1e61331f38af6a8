from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .core.boundaries import BOUNDARY_NAMES
from .core.candidates import Strategy
from .core.oracle import min_precision_bits
from .report import REPORT_METRICS

SWEEP_KINDS = ("linspace", "uniform", "bits", "boundary")


@dataclass
class SweepConfig:
    name: str = "stable"
    kind: str = "linspace"      # linspace | uniform | bits | boundary
    lo: float = -36.0
    hi: float = 36.7
    n: int = 1001               # points; for "boundary", neighbours on each side
    anchor: Optional[str] = None  # boundary constant name for kind="boundary"

    def validate(self) -> None:
        assert self.kind in SWEEP_KINDS, f"sweep {self.name!r}: kind must be one of {SWEEP_KINDS}"
        assert int(self.n) >= 1, f"sweep {self.name!r}: n must be >= 1"
        if self.kind == "boundary":
            assert self.anchor in BOUNDARY_NAMES, f"sweep {self.name!r}: anchor must be one of {BOUNDARY_NAMES}"
        else:
            assert float(self.lo) < float(self.hi), f"sweep {self.name!r}: requires lo < hi"


def default_sweeps() -> List[SweepConfig]:
    """One sweep per region of the input line plus the boundary neighbourhoods."""
    return [
        SweepConfig(name="saturate_zero", lo=-1000.0, hi=-745.2, n=257),
        SweepConfig(name="transitional_low", lo=-744.4, hi=-36.1, n=2001),
        SweepConfig(name="stable", lo=-36.0, hi=36.7, n=2001),
        SweepConfig(name="transitional_high", lo=36.74, hi=37.42, n=257),
        SweepConfig(name="saturate_one", lo=37.5, hi=1000.0, n=257),
        SweepConfig(name="random_bits", kind="bits", lo=-800.0, hi=800.0, n=2000),
        SweepConfig(name="near_lower_saturation", kind="boundary", anchor="lower_saturation", n=16),
        SweepConfig(name="near_exp_overflow", kind="boundary", anchor="exp_overflow_bound", n=16),
        SweepConfig(name="near_mantissa_crossover", kind="boundary", anchor="mantissa_crossover", n=16),
        SweepConfig(name="near_upper_saturation", kind="boundary", anchor="upper_saturation", n=16),
    ]


@dataclass
class EvalConfig:
    # Oracle
    precision_bits: int = 256
    workers: int = 1            # oracle processes; 0 = one per CPU

    # What to compare
    strategies: List[str] = field(default_factory=lambda: [s.value for s in Strategy])
    sweeps: List[SweepConfig] = field(default_factory=default_sweeps)

    # Gate thresholds (absent -> gate inactive): min_exact_match_rate, max_abs_error, max_mean_bit_diff
    gates: Dict[str, float] = field(default_factory=dict)

    # Ranking axis for select_best
    select_by: str = "exact_match_rate"

    # RNG for uniform/bits sweeps
    seed: int = 42

    def validate(self) -> None:
        assert int(self.precision_bits) >= min_precision_bits("float64"), (
            f"precision_bits must be >= {min_precision_bits('float64')} for float64"
        )
        assert int(self.workers) >= 0, "workers must be >= 0"
        assert len(self.strategies) >= 1, "at least one strategy is required"
        known = {s.value for s in Strategy}
        for s in self.strategies:
            assert s in known, f"unknown strategy {s!r}; expected one of {sorted(known)}"
        assert len(self.sweeps) >= 1, "at least one sweep is required"
        names = [sw.name for sw in self.sweeps]
        assert len(set(names)) == len(names), "sweep names must be unique"
        for sw in self.sweeps:
            sw.validate()
        assert self.select_by in REPORT_METRICS, f"select_by must be one of {REPORT_METRICS}"
        for k in self.gates:
            assert k in ("min_exact_match_rate", "max_abs_error", "max_mean_bit_diff"), f"unknown gate {k!r}"


def config_from_dict(d: Dict[str, Any]) -> EvalConfig:
    """Build an ``EvalConfig`` from a plain dict (e.g. parsed YAML)."""
    d = dict(d or {})
    sweeps_raw = d.pop("sweeps", None)
    cfg = EvalConfig(**d)
    if sweeps_raw is not None:
        cfg.sweeps = [sw if isinstance(sw, SweepConfig) else SweepConfig(**sw) for sw in sweeps_raw]
    cfg.strategies = [str(s) for s in cfg.strategies]
    cfg.gates = {str(k): float(v) for k, v in (cfg.gates or {}).items()}
    return cfg


def config_to_dict(cfg: EvalConfig) -> Dict[str, Any]:
    return {
        "precision_bits": cfg.precision_bits,
        "workers": cfg.workers,
        "strategies": list(cfg.strategies),
        "sweeps": [
            {"name": sw.name, "kind": sw.kind, "lo": sw.lo, "hi": sw.hi, "n": sw.n, "anchor": sw.anchor}
            for sw in cfg.sweeps
        ],
        "gates": dict(cfg.gates),
        "select_by": cfg.select_by,
        "seed": cfg.seed,
    }


def load_config(path: str | Path) -> EvalConfig:
    """Load and validate an ``EvalConfig`` from a ``.yaml/.yml`` or ``.json`` file.

    Raises:
        RuntimeError: if the document is not a mapping.
    """
    p = Path(path)
    txt = p.read_text(encoding="utf-8")
    if p.suffix.lower() in {".yaml", ".yml"}:
        raw = yaml.safe_load(txt)
    else:
        raw = json.loads(txt)
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise RuntimeError(f"config {p} must contain a mapping at the top level")
    cfg = config_from_dict(raw)
    cfg.validate()
    return cfg

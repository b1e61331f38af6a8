"""Named closed-form candidates for the inverse logit.

These exist for the accuracy harness only: each is a pure float64 -> float64
mapping (scalar or elementwise over arrays) whose failure modes are part of
what the harness measures, so overflow and invalid-operation warnings are
silenced rather than prevented.
"""

from __future__ import annotations

from enum import Enum
from typing import Callable

import numpy as np

from .logistic import inverse_logit

Candidate = Callable[[np.ndarray | float], np.ndarray | float]


def _as_output(out: np.ndarray) -> np.ndarray | float:
    if out.ndim == 0:
        return float(out)
    return out


def reciprocal_form(z: np.ndarray | float) -> np.ndarray | float:
    """``1 / (1 + exp(-z))``: ``exp(-z)`` overflows to inf below ``-log(DBL_MAX)``."""
    x = np.asarray(z, dtype=np.float64)
    with np.errstate(over="ignore"):
        return _as_output(1.0 / (1.0 + np.exp(-x)))


def exp_ratio_form(z: np.ndarray | float) -> np.ndarray | float:
    """``exp(z) / (exp(z) + 1)`` with no guard: ``inf / inf`` is NaN for large ``z``."""
    x = np.asarray(z, dtype=np.float64)
    with np.errstate(over="ignore", invalid="ignore"):
        ez = np.exp(x)
        return _as_output(ez / (ez + 1.0))


def tanh_form(z: np.ndarray | float) -> np.ndarray | float:
    """``0.5 + 0.5 * tanh(z / 2)``; the half-sum cancels to 0 for modest negative ``z``."""
    x = np.asarray(z, dtype=np.float64)
    return _as_output(0.5 + 0.5 * np.tanh(0.5 * x))


def split_form(z: np.ndarray | float) -> np.ndarray | float:
    """Reciprocal form for ``z >= 0``, exp-ratio form otherwise."""
    x = np.asarray(z, dtype=np.float64)
    neg = np.exp(-np.abs(x))
    return _as_output(np.where(x >= 0, 1.0 / (1.0 + neg), neg / (neg + 1.0)))


def clipped_form(z: np.ndarray | float) -> np.ndarray | float:
    """Reciprocal form on inputs clipped to ``[-50, 50]``."""
    x = np.clip(np.asarray(z, dtype=np.float64), -50.0, 50.0)
    return _as_output(1.0 / (1.0 + np.exp(-x)))


class Strategy(Enum):
    """Candidate formulas, keyed by the slug used in configs and tables."""

    _func: Candidate

    RECIPROCAL = ("reciprocal", reciprocal_form)
    EXP_RATIO = ("exp_ratio", exp_ratio_form)
    TANH = ("tanh", tanh_form)
    SPLIT = ("split", split_form)
    CLIPPED = ("clipped", clipped_form)
    ROBUST = ("robust", inverse_logit)

    def __new__(cls, slug: str, func: Candidate):
        obj = object.__new__(cls)
        obj._value_ = slug
        obj._func = func
        return obj

    @property
    def func(self) -> Candidate:
        return self._func

    def __call__(self, z: np.ndarray | float) -> np.ndarray | float:
        return self._func(z)


def get_candidate(name: str | Strategy) -> Strategy:
    """Resolve a strategy by slug (``"robust"``) or member."""
    if isinstance(name, Strategy):
        return name
    try:
        return Strategy(str(name))
    except ValueError:
        known = ", ".join(s.value for s in Strategy)
        raise ValueError(f"unknown strategy {name!r}; expected one of: {known}") from None

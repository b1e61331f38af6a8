"""Ideal (exact) real functions for use with ``HighPrecisionOracle``.

Each takes one mpmath value and evaluates in that value's context.
"""

from __future__ import annotations

from typing import Any


def ideal_inverse_logit(x: Any) -> Any:
    ctx = x.context
    return 1 / (1 + ctx.exp(-x))


def ideal_logit(p: Any) -> Any:
    """``log(p / (1 - p))``, split so tiny ``p`` keeps full precision."""
    ctx = p.context
    return ctx.log(p) - ctx.log1p(-p)


def ideal_neg_logit(p: Any) -> Any:
    return -ideal_logit(p)


def ideal_log(x: Any) -> Any:
    return x.context.log(x)


def ideal_neg_log(x: Any) -> Any:
    return -x.context.log(x)

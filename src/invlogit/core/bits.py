"""Bit-pattern views of IEEE floats and the bit-difference metric."""

from __future__ import annotations

import numpy as np

_UINT_FOR_FLOAT = {
    np.dtype(np.float16): np.uint16,
    np.dtype(np.float32): np.uint32,
    np.dtype(np.float64): np.uint64,
}

_SIGN64 = np.uint64(1 << 63)
_MAGNITUDE64 = np.uint64((1 << 63) - 1)


def float_bits(x: np.ndarray | float, dtype=np.float64) -> np.ndarray:
    """Raw bit patterns of ``x`` in ``dtype`` as unsigned integers of the same width."""
    dt = np.dtype(dtype)
    if dt not in _UINT_FOR_FLOAT:
        raise ValueError(f"unsupported float dtype {dt}")
    return np.array(x, dtype=dt).view(_UINT_FOR_FLOAT[dt])


def bit_diff(a: np.ndarray | float, b: np.ndarray | float, dtype=np.float64) -> np.ndarray | int:
    """Hamming distance between the bit patterns of ``a`` and ``b``.

    Elementwise over arrays; scalars return ``int``. The result lies in
    ``[0, bit_width]``. Identical patterns (including either signed zero with
    itself) give 0, and NaNs are compared by pattern, never equated.

    This is a coarse precision-loss indicator: an error of one ULP can flip
    many bits across a carry, and ``+0.0`` vs ``-0.0`` differ by one bit.
    """
    diff = np.bitwise_count(float_bits(a, dtype) ^ float_bits(b, dtype))
    if diff.ndim == 0:
        return int(diff)
    return diff.astype(np.int64)


def _ordered_key(x: np.ndarray | float) -> np.ndarray:
    # Monotone unsigned key: -max .. -0 == +0 .. +max maps onto 2**63 -/+ magnitude.
    bits = float_bits(x, np.float64)
    magnitude = bits & _MAGNITUDE64
    return np.where((bits & _SIGN64) != 0, _SIGN64 - magnitude, _SIGN64 + magnitude)


def ulp_distance(a: np.ndarray | float, b: np.ndarray | float) -> np.ndarray | int:
    """Number of float64 steps between ``a`` and ``b``; ``+0.0`` and ``-0.0`` are 0 apart.

    Meaningless when either side is NaN.
    """
    ka = _ordered_key(a)
    kb = _ordered_key(b)
    dist = np.asarray(np.maximum(ka, kb) - np.minimum(ka, kb))
    if dist.ndim == 0:
        return int(dist)
    return dist

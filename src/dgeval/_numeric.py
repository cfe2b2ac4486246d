"""Single-precision helpers shared by the evaluator and the expression interpreter."""

import numpy as np

FLOAT32_EPSILON = float(np.finfo(np.float32).eps)


def to_single(value: float) -> float:
    """Round ``value`` to the nearest single-precision float.

    Magnitudes beyond the single-precision range become infinite.

    Example:
        >>> to_single(0.1)
        0.10000000149011612

    """
    with np.errstate(over="ignore"):
        return float(np.float32(value))


def approximately(a: float, b: float) -> bool:
    """Single-precision tolerant equality."""
    return abs(b - a) < max(1e-6 * max(abs(a), abs(b)), FLOAT32_EPSILON * 8)


def clamp(v: float, lo: float, hi: float) -> float:
    """Clamp ``v`` into ``[lo, hi]``; the lower bound is checked first, so inverted bounds yield ``hi``."""
    if v < lo:
        return lo
    if v > hi:
        return hi
    return v

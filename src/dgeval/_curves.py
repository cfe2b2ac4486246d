"""Animation curve collaborators.

Keyframe interpolation belongs to the host; the evaluator only needs
something with ``evaluate(parameter) -> float`` per curve node.
"""

from __future__ import annotations

import bisect
from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable


@runtime_checkable
class AnimCurve(Protocol):
    """A curve evaluated at a time (time curves) or at a driver value (driven keys)."""

    def evaluate(self, parameter: float) -> float: ...


@dataclass(frozen=True, slots=True)
class LinearCurve:
    """Piecewise-linear stand-in curve, constant beyond the first and last keys.

    Attributes:
        times: Key times (or driver values), strictly increasing.
        values: Key values, same length as ``times``.

    Example:
        >>> LinearCurve.from_keys([(0.0, 0.0), (10.0, 5.0)]).evaluate(4.0)
        2.0

    """

    times: tuple[float, ...] = field(default_factory=tuple)
    values: tuple[float, ...] = field(default_factory=tuple)

    @classmethod
    def from_keys(cls, keys: list[tuple[float, float]] | tuple[tuple[float, float], ...]) -> LinearCurve:
        """Build a curve from ``(time, value)`` pairs; later duplicates of a time replace earlier ones."""
        merged: dict[float, float] = {}
        for t, v in keys:
            merged[float(t)] = float(v)
        ordered = sorted(merged.items())
        return cls(times=tuple(t for t, _ in ordered), values=tuple(v for _, v in ordered))

    def evaluate(self, parameter: float) -> float:
        if not self.times:
            return 0.0
        if parameter <= self.times[0]:
            return self.values[0]
        if parameter >= self.times[-1]:
            return self.values[-1]
        hi = bisect.bisect_right(self.times, parameter)
        lo = hi - 1
        t0, t1 = self.times[lo], self.times[hi]
        v0, v1 = self.values[lo], self.values[hi]
        return v0 + (v1 - v0) * (parameter - t0) / (t1 - t0)

"""Monotone height-response curves.

A :class:`HeightCurve` maps a normalised noise value ``t ∈ [0, 1]`` to a
multiplier in ``[0, 1]``.  The sculptor computes
``height = max_height · t · curve(t)``, so the identity curve squares
the noise and a curve that stays at 1 keeps it linear.

Curves are shape-preserving piecewise cubics
(:class:`scipy.interpolate.PchipInterpolator`) through user control
points.  PCHIP never overshoots, so non-decreasing control values give
a non-decreasing curve.
"""

from __future__ import annotations

from typing import Iterable, List, Sequence, Tuple

import numpy as np
from scipy.interpolate import PchipInterpolator

from .errors import ConfigurationError

Point = Tuple[float, float]


class HeightCurve:
    """Monotone curve through ``(t, value)`` control points.

    Parameters
    ----------
    points : sequence of (float, float)
        At least two points.  ``t`` must be strictly ascending, start at
        0 and end at 1; values must lie in ``[0, 1]`` and never decrease.
    """

    def __init__(self, points: Sequence[Point]) -> None:
        self._points = _validate_points(points)
        ts = np.array([p[0] for p in self._points])
        vs = np.array([p[1] for p in self._points])
        self._interp = PchipInterpolator(ts, vs, extrapolate=False)

    # ── constructors ────────────────────────────────────────────────

    @classmethod
    def identity(cls) -> "HeightCurve":
        return cls.linear()

    @classmethod
    def linear(cls, start: float = 0.0, end: float = 1.0) -> "HeightCurve":
        """Straight line from ``(0, start)`` to ``(1, end)``."""
        return cls([(0.0, start), (1.0, end)])

    @classmethod
    def ease_in(cls) -> "HeightCurve":
        """Flat lowlands rising steeply towards the peaks."""
        return cls([(0.0, 0.0), (0.5, 0.15), (0.8, 0.5), (1.0, 1.0)])

    @classmethod
    def from_points(cls, points: Iterable[Sequence[float]]) -> "HeightCurve":
        return cls([(float(t), float(v)) for t, v in points])

    # ── evaluation ──────────────────────────────────────────────────

    def __call__(self, t):
        """Evaluate at *t* (scalar or array); input and output are clamped to ``[0, 1]``."""
        clamped = np.clip(np.asarray(t, dtype=np.float64), 0.0, 1.0)
        out = np.clip(self._interp(clamped), 0.0, 1.0)
        if out.ndim == 0:
            return float(out)
        return out

    @property
    def points(self) -> List[Point]:
        return list(self._points)

    def to_list(self) -> List[List[float]]:
        return [[t, v] for t, v in self._points]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, HeightCurve):
            return NotImplemented
        return self._points == other._points

    def __hash__(self) -> int:
        return hash(tuple(self._points))

    def __repr__(self) -> str:
        return f"HeightCurve({self._points!r})"


def _validate_points(points: Sequence[Point]) -> Tuple[Point, ...]:
    pts = tuple((float(t), float(v)) for t, v in points)
    if len(pts) < 2:
        raise ConfigurationError("A height curve needs at least two control points")
    ts = [t for t, _ in pts]
    vs = [v for _, v in pts]
    if ts[0] != 0.0 or ts[-1] != 1.0:
        raise ConfigurationError(f"Curve must span t = 0..1, got {ts[0]}..{ts[-1]}")
    if any(b <= a for a, b in zip(ts, ts[1:])):
        raise ConfigurationError(f"Curve t values must be strictly ascending: {ts}")
    if any(not 0.0 <= v <= 1.0 for v in vs):
        raise ConfigurationError(f"Curve values must lie in [0, 1]: {vs}")
    if any(b < a for a, b in zip(vs, vs[1:])):
        raise ConfigurationError(f"Curve values must not decrease: {vs}")
    return pts

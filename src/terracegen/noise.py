"""Noise primitives for terrain sculpting.

Every sampler here is a plain ``(x, y) -> float`` (or ``(x, y, z)``)
callable returning a value in ``[0, 1]``.  Nothing in this module knows
about meshes; :mod:`terracegen.sculpting` composes these into a height
field.

Functions
---------
- :func:`value_noise_2d` — seeded OpenSimplex noise remapped to ``[0, 1]``
- :func:`symmetric_noise_3d` — 3-D lookup built from six 2-D lookups
- :func:`octave_noise` — layered multi-octave accumulation over points
- :func:`amplitude_sum` — sum of octave amplitudes (theoretical maximum)
- :func:`normalize` — rescale ``[a, b] → [c, d]``
- :func:`remap` — alias for :func:`normalize`
"""

from __future__ import annotations

from typing import Callable

import numpy as np
from opensimplex import OpenSimplex

Noise2D = Callable[[float, float], float]
Noise3D = Callable[[float, float, float], float]


# ═══════════════════════════════════════════════════════════════════
# Base noise source
# ═══════════════════════════════════════════════════════════════════


def value_noise_2d(seed: int) -> Noise2D:
    """Return a 2-D noise function seeded with *seed*, valued in ``[0, 1]``.

    Each call builds its own :class:`opensimplex.OpenSimplex` instance,
    so concurrent generators with different seeds never interfere.
    """
    generator = OpenSimplex(seed=int(seed))

    def _noise(x: float, y: float) -> float:
        return normalize(generator.noise2(x, y))

    return _noise


def symmetric_noise_3d(noise2d: Noise2D) -> Noise3D:
    """Approximate coherent 3-D noise from a 2-D primitive.

    Averages the six axis-pair lookups ``xy, xz, yz, yx, zx, zy`` so no
    axis is favoured.
    """

    def _noise(x: float, y: float, z: float) -> float:
        return (
            noise2d(x, y)
            + noise2d(x, z)
            + noise2d(y, z)
            + noise2d(y, x)
            + noise2d(z, x)
            + noise2d(z, y)
        ) / 6.0

    return _noise


# ═══════════════════════════════════════════════════════════════════
# Octave accumulation
# ═══════════════════════════════════════════════════════════════════


def octave_noise(
    sample: Callable[..., float],
    points: np.ndarray,
    offsets: np.ndarray,
    *,
    frequency: float = 1.0,
    persistence: float = 0.5,
    lacunarity: float = 2.0,
) -> np.ndarray:
    """Accumulate ``amplitude_i · sample(p · freq_i + offset_i)`` per point.

    Parameters
    ----------
    sample : callable
        A 2-D or 3-D noise function; its arity must match the point
        dimension.
    points : ndarray, shape (N, k)
        Sample positions.
    offsets : ndarray, shape (octaves, k)
        Per-octave coordinate offsets.
    frequency : float
        Frequency of the first octave.
    persistence : float
        Amplitude multiplier between octaves.
    lacunarity : float
        Frequency multiplier between octaves.

    Returns
    -------
    ndarray, shape (N,)
        Unnormalised sums; each lies in ``[0, amplitude_sum(...)]``.
    """
    points = np.asarray(points, dtype=np.float64)
    offsets = np.asarray(offsets, dtype=np.float64)
    acc = np.zeros(points.shape[0], dtype=np.float64)

    amplitude = 1.0
    freq = frequency
    for offset in offsets:
        shifted = (points * freq + offset).tolist()
        acc += amplitude * np.fromiter(
            (sample(*p) for p in shifted), dtype=np.float64, count=len(shifted)
        )
        amplitude *= persistence
        freq *= lacunarity
    return acc


def amplitude_sum(octaves: int, persistence: float) -> float:
    """``Σ persistence**i`` for ``i < octaves`` — the octave sum's upper bound."""
    return float(sum(persistence ** i for i in range(octaves)))


# ═══════════════════════════════════════════════════════════════════
# Normalize / remap
# ═══════════════════════════════════════════════════════════════════


def normalize(
    value: float,
    *,
    src_min: float = -1.0,
    src_max: float = 1.0,
    dst_min: float = 0.0,
    dst_max: float = 1.0,
) -> float:
    """Linearly remap *value* from ``[src_min, src_max]`` to ``[dst_min, dst_max]``.

    Values outside the source range are clamped.
    """
    if src_max == src_min:
        return (dst_min + dst_max) / 2.0
    t = (value - src_min) / (src_max - src_min)
    t = max(0.0, min(1.0, t))
    return dst_min + t * (dst_max - dst_min)


# Alias
remap = normalize

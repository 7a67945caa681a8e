"""Height models — what "height" means for a vertex.

Every pipeline stage that moves vertices up or down goes through a
:class:`HeightModel`, so one fragmenter, one sculptor and one terracer
serve both flat and spherical terrain:

- :class:`PlanarHeightModel` — height is the Y coordinate; the ground
  plane is XZ.
- :class:`RadialHeightModel` — height is the distance from the origin;
  vertices move along their direction vector.

The array methods are vectorised over the last axis, so they accept a
single vertex ``(3,)`` as well as a batch ``(N, 3)``.  The ``point_*``
methods work on plain tuples for the terracer's per-triangle loop.
"""

from __future__ import annotations

import math
from typing import Protocol, Tuple, runtime_checkable

import numpy as np

Vec3 = Tuple[float, float, float]


@runtime_checkable
class HeightModel(Protocol):
    """Height accessor / mutator pair plus the matching midpoint rule."""

    @property
    def name(self) -> str:
        ...

    def height_of(self, vertices: np.ndarray) -> np.ndarray:
        """Height of each vertex (shape ``(...)``)."""
        ...

    def with_height(self, vertices: np.ndarray, heights) -> np.ndarray:
        """Copies of *vertices* placed at *heights*."""
        ...

    def midpoint(self, a: np.ndarray, b: np.ndarray) -> np.ndarray:
        """Point halfway between *a* and *b* under this model's geometry."""
        ...

    def point_height(self, p: Vec3) -> float:
        """Scalar :meth:`height_of` for one tuple point."""
        ...

    def point_at_height(self, p: Vec3, h: float) -> Vec3:
        """Scalar :meth:`with_height` for one tuple point."""
        ...


class PlanarHeightModel:
    """Height = Y.  Midpoints are arithmetic means."""

    name = "planar"

    def height_of(self, vertices: np.ndarray) -> np.ndarray:
        return np.asarray(vertices, dtype=np.float64)[..., 1]

    def with_height(self, vertices: np.ndarray, heights) -> np.ndarray:
        out = np.array(vertices, dtype=np.float64, copy=True)
        out[..., 1] = heights
        return out

    def midpoint(self, a: np.ndarray, b: np.ndarray) -> np.ndarray:
        return (np.asarray(a, dtype=np.float64) + np.asarray(b, dtype=np.float64)) / 2.0

    def point_height(self, p: Vec3) -> float:
        return p[1]

    def point_at_height(self, p: Vec3, h: float) -> Vec3:
        return (p[0], h, p[2])

    def __repr__(self) -> str:
        return "PlanarHeightModel()"


class RadialHeightModel:
    """Height = distance from the origin.

    ``with_height`` keeps each vertex's direction and rescales it.
    ``midpoint`` is the great-circle midpoint of the two directions with
    the magnitude interpolated linearly, so subdividing a sphere keeps
    new vertices on the sphere instead of on the chords.
    """

    name = "radial"

    def height_of(self, vertices: np.ndarray) -> np.ndarray:
        return np.linalg.norm(np.asarray(vertices, dtype=np.float64), axis=-1)

    def with_height(self, vertices: np.ndarray, heights) -> np.ndarray:
        return unit_directions(vertices) * np.asarray(heights, dtype=np.float64)[..., None]

    def midpoint(self, a: np.ndarray, b: np.ndarray) -> np.ndarray:
        a = np.asarray(a, dtype=np.float64)
        b = np.asarray(b, dtype=np.float64)
        magnitude = (np.linalg.norm(a, axis=-1) + np.linalg.norm(b, axis=-1)) / 2.0
        direction = unit_directions(unit_directions(a) + unit_directions(b))
        return direction * magnitude[..., None]

    def point_height(self, p: Vec3) -> float:
        return math.sqrt(p[0] * p[0] + p[1] * p[1] + p[2] * p[2])

    def point_at_height(self, p: Vec3, h: float) -> Vec3:
        norm = self.point_height(p)
        if norm == 0.0:
            return (0.0, 0.0, 0.0)
        scale = h / norm
        return (p[0] * scale, p[1] * scale, p[2] * scale)

    def __repr__(self) -> str:
        return "RadialHeightModel()"


def unit_directions(vectors: np.ndarray) -> np.ndarray:
    """Normalise along the last axis; zero vectors stay zero."""
    vectors = np.asarray(vectors, dtype=np.float64)
    norms = np.linalg.norm(vectors, axis=-1, keepdims=True)
    safe = np.where(norms > 0.0, norms, 1.0)
    return vectors / safe


PLANAR = PlanarHeightModel()
RADIAL = RadialHeightModel()

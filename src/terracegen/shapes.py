"""Base-shape generators — the seed meshes the pipeline subdivides.

Planar shapes lie on the XZ plane (``y == 0``) with every outer vertex
*radius* units from the origin.  The sphere seed is a regular
icosahedron scaled to *radius*.  Triangles are wound so that their
right-handed normals point up (planar) or outwards (sphere).

Classes
-------
- :class:`TriangleGenerator` — equilateral triangle (3 vertices, 1 face)
- :class:`SquareGenerator` — square (4 vertices, 2 faces)
- :class:`RegularPolygonGenerator` — 5–10 sides, fan around a centre vertex
- :class:`IcosahedronGenerator` — 12 vertices, 20 faces

Functions
---------
- :func:`polygon_generator` — pick the generator for a side count
- :func:`shape_generator_for` — pick the generator for a :class:`ShapeKind`
- :func:`height_model_for` — the matching :class:`HeightModel`
"""

from __future__ import annotations

import math
from enum import Enum
from typing import List, Protocol, Tuple, runtime_checkable

import numpy as np

from .errors import ConfigurationError, UnsupportedShapeError
from .height_models import PLANAR, RADIAL, HeightModel
from .models import MeshBuffer

MIN_SIDES = 3
MAX_SIDES = 10


class ShapeKind(str, Enum):
    """Family of base shape, which also fixes the height model."""

    POLYGON = "polygon"
    SPHERE = "sphere"


@runtime_checkable
class ShapeGenerator(Protocol):
    """Anything that can produce a seed :class:`MeshBuffer`."""

    def generate(self) -> MeshBuffer:
        ...


def _check_radius(radius: float) -> float:
    if not radius > 0:
        raise ConfigurationError(f"radius must be > 0, got {radius!r}")
    return float(radius)


def _rotate_about_y(point: Tuple[float, float, float], degrees: float) -> Tuple[float, float, float]:
    angle = math.radians(degrees)
    cos = math.cos(angle)
    sin = math.sin(angle)
    x, y, z = point
    return (x * cos - z * sin, y, x * sin + z * cos)


# ═══════════════════════════════════════════════════════════════════
# Planar polygons
# ═══════════════════════════════════════════════════════════════════


class TriangleGenerator:
    """Equilateral triangle with vertices *radius* units from its centre."""

    sides = 3

    def __init__(self, radius: float) -> None:
        self.radius = _check_radius(radius)

    def generate(self) -> MeshBuffer:
        v0 = (self.radius, 0.0, 0.0)
        v1 = _rotate_about_y(v0, -120.0)
        v2 = _rotate_about_y(v1, -120.0)
        return MeshBuffer(np.array([v0, v1, v2]), np.array([[0, 1, 2]]))


class SquareGenerator:
    """Square whose corners sit *radius* units from its centre."""

    sides = 4

    def __init__(self, radius: float) -> None:
        self.radius = _check_radius(radius)

    def generate(self) -> MeshBuffer:
        s = self.radius / math.sqrt(2.0)
        vertices = np.array([
            (-s, 0.0, s),
            (s, 0.0, s),
            (s, 0.0, -s),
            (-s, 0.0, -s),
        ])
        return MeshBuffer(vertices, np.array([[0, 1, 2], [0, 2, 3]]))


class RegularPolygonGenerator:
    """Regular polygon with 5–10 sides, fan-triangulated around its centre.

    The outer vertices come first (starting at ``(radius, 0, 0)``), the
    centre vertex is last.  The closing "knot" triangle joins the last
    outer vertex back to the first.
    """

    def __init__(self, sides: int, radius: float) -> None:
        if not 5 <= sides <= MAX_SIDES:
            raise ConfigurationError(
                f"Regular polygons need 5..{MAX_SIDES} sides, got {sides}; "
                "use TriangleGenerator / SquareGenerator for 3 and 4"
            )
        self.sides = int(sides)
        self.radius = _check_radius(radius)

    def generate(self) -> MeshBuffer:
        delta = 360.0 / self.sides
        outer: List[Tuple[float, float, float]] = [(self.radius, 0.0, 0.0)]
        for _ in range(1, self.sides):
            outer.append(_rotate_about_y(outer[-1], -delta))

        centre = self.sides
        vertices = np.array(outer + [(0.0, 0.0, 0.0)])
        indices = [(i, i + 1, centre) for i in range(self.sides - 1)]
        indices.append((self.sides - 1, 0, centre))
        return MeshBuffer(vertices, np.array(indices))


def polygon_generator(sides: int, radius: float) -> ShapeGenerator:
    """Return the planar generator for *sides*.

    Raises
    ------
    ConfigurationError
        If ``sides < 3`` or ``radius <= 0``.
    UnsupportedShapeError
        If ``sides > 10``.
    """
    if sides < MIN_SIDES:
        raise ConfigurationError(f"sides must be in [{MIN_SIDES}, {MAX_SIDES}], got {sides}")
    if sides > MAX_SIDES:
        raise UnsupportedShapeError(f"Polygon with {sides} sides not implemented")
    if sides == 3:
        return TriangleGenerator(radius)
    if sides == 4:
        return SquareGenerator(radius)
    return RegularPolygonGenerator(sides, radius)


# ═══════════════════════════════════════════════════════════════════
# Sphere seed
# ═══════════════════════════════════════════════════════════════════

_PHI = (1.0 + math.sqrt(5.0)) / 2.0
_A = _PHI / math.sqrt(1.0 + _PHI * _PHI)
_B = 1.0 / math.sqrt(1.0 + _PHI * _PHI)

ICOSAHEDRON_VERTICES = np.array([
    (_A, _B, 0.0),
    (0.0, _A, -_B),
    (0.0, _A, _B),
    (_B, 0.0, -_A),
    (_B, 0.0, _A),
    (_A, -_B, 0.0),
    (-_B, 0.0, -_A),
    (-_A, _B, 0.0),
    (-_B, 0.0, _A),
    (0.0, -_A, -_B),
    (0.0, -_A, _B),
    (-_A, -_B, 0.0),
])

ICOSAHEDRON_INDICES = np.array([
    (0, 1, 2), (0, 3, 1), (0, 2, 4), (3, 0, 5), (0, 4, 5),
    (1, 3, 6), (1, 7, 2), (7, 1, 6), (4, 2, 8), (7, 8, 2),
    (9, 3, 5), (6, 3, 9), (5, 4, 10), (4, 8, 10), (9, 5, 10),
    (7, 6, 11), (7, 11, 8), (11, 6, 9), (8, 11, 10), (10, 11, 9),
])


class IcosahedronGenerator:
    """Regular icosahedron inscribed in a sphere of *radius*."""

    def __init__(self, radius: float) -> None:
        self.radius = _check_radius(radius)

    def generate(self) -> MeshBuffer:
        return MeshBuffer(ICOSAHEDRON_VERTICES * self.radius, ICOSAHEDRON_INDICES.copy())


# ═══════════════════════════════════════════════════════════════════
# Dispatch
# ═══════════════════════════════════════════════════════════════════


def shape_generator_for(kind: ShapeKind, *, sides: int = 6, radius: float = 1.0) -> ShapeGenerator:
    """Generator for *kind*; *sides* is ignored for spheres."""
    kind = ShapeKind(kind)
    if kind is ShapeKind.SPHERE:
        return IcosahedronGenerator(radius)
    return polygon_generator(sides, radius)


def height_model_for(kind: ShapeKind) -> HeightModel:
    """Planar heights for polygons, radial heights for spheres."""
    return RADIAL if ShapeKind(kind) is ShapeKind.SPHERE else PLANAR

"""Terrace slicing — turns a sculpted mesh into stepped floors and walls.

Every triangle is swept upwards through the terrace planes.  At each
plane it is classified by how many of its vertices lie on or above the
plane:

- **3 above** — the triangle is entirely higher; move on.
- **0 above** — the triangle ends below this plane; if nothing was
  emitted yet it becomes one flat floor at the previous plane.
- **1 or 2 above** — the plane cuts the triangle.  The part above the
  cut becomes a floor at the plane height and a wall quad joins the cut
  line down to the previous plane.

The plane table carries a sentinel below the lowest vertex and one
above the highest, so every triangle terminates.  Output geometry is
collected in two :class:`GeometryPool` s (floors and walls, so the two
never share vertices or normals) and baked into an immutable
:class:`~models.TerracedMesh` with one sub-mesh per terrace.

Classes
-------
- :class:`GeometryPool` — deduplicated vertex pool + per-terrace index lists
- :class:`TerracedMeshBuilder` — floor / wall pools and :meth:`bake`
- :class:`Terracer` — the sweep driver

Functions
---------
- :func:`classify_triangle` — rotate a triangle and count vertices above a plane
- :func:`compute_vertex_normals` — area-weighted vertex normals
"""

from __future__ import annotations

import logging
from typing import Dict, List, Sequence, Tuple

import numpy as np

from .config import plane_sweep_table
from .errors import ConfigurationError, InvalidStateError, InvariantViolation
from .height_models import PLANAR, HeightModel
from .models import MeshBuffer, TerracedMesh, Triangle, Vec3, index_format_for

logger = logging.getLogger(__name__)

CANCEL_CHECK_INTERVAL = 1024
"""Triangles processed between two cancellation checks."""

Heights3 = Tuple[float, float, float]

# (v1 below, v2 below, v3 below) -> (rotation, points above).  A rotation
# lists which source vertex lands in each slot; all of them keep winding.
# Afterwards a single high vertex (1 above) or single low vertex
# (2 above) is always in slot 3.
_ROTATIONS: Dict[Tuple[bool, bool, bool], Tuple[Tuple[int, int, int], int]] = {
    (True, True, True): ((0, 1, 2), 0),
    (True, True, False): ((0, 1, 2), 1),
    (True, False, True): ((2, 0, 1), 1),
    (False, True, True): ((1, 2, 0), 1),
    (True, False, False): ((1, 2, 0), 2),
    (False, True, False): ((2, 0, 1), 2),
    (False, False, True): ((0, 1, 2), 2),
    (False, False, False): ((0, 1, 2), 3),
}


# ═══════════════════════════════════════════════════════════════════
# Classification
# ═══════════════════════════════════════════════════════════════════


def _rotate(
    vertices: Tuple[Vec3, Vec3, Vec3], heights: Heights3, plane: float
) -> Tuple[Tuple[Vec3, Vec3, Vec3], Heights3, int]:
    key = (heights[0] < plane, heights[1] < plane, heights[2] < plane)
    (i, j, k), above = _ROTATIONS[key]
    return (
        (vertices[i], vertices[j], vertices[k]),
        (heights[i], heights[j], heights[k]),
        above,
    )


def classify_triangle(triangle: Triangle, heights: Sequence[float], plane: float) -> Tuple[Triangle, int]:
    """Rotate *triangle* for slicing against *plane*.

    A vertex is *below* when its height is strictly less than *plane*.

    Returns
    -------
    (Triangle, int)
        The rotated triangle (same winding) and the number of vertices
        on or above the plane.  For 1 above, ``v3`` is the high vertex;
        for 2 above, ``v3`` is the low vertex.
    """
    (v1, v2, v3), _, above = _rotate(tuple(triangle), tuple(heights), plane)
    return Triangle(v1, v2, v3), above


# ═══════════════════════════════════════════════════════════════════
# Geometry pools
# ═══════════════════════════════════════════════════════════════════


class GeometryPool:
    """Vertex pool with exact-position dedup and one index list per terrace.

    Triangles that collapse onto fewer than three distinct vertices are
    dropped.
    """

    def __init__(self, terrace_count: int) -> None:
        self._lookup: Dict[Vec3, int] = {}
        self._positions: List[Vec3] = []
        self._triangles: List[List[Tuple[int, int, int]]] = [[] for _ in range(terrace_count)]

    def vertex(self, position: Vec3) -> int:
        """Index of *position*, adding it if new."""
        idx = self._lookup.get(position)
        if idx is None:
            idx = len(self._positions)
            self._lookup[position] = idx
            self._positions.append(position)
        return idx

    def add_triangle(self, terrace: int, a: Vec3, b: Vec3, c: Vec3) -> None:
        ia, ib, ic = self.vertex(a), self.vertex(b), self.vertex(c)
        if ia == ib or ib == ic or ia == ic:
            return
        self._triangles[terrace].append((ia, ib, ic))

    def add_quad(self, terrace: int, a: Vec3, b: Vec3, c: Vec3, d: Vec3) -> None:
        """Add quad ``abcd`` as triangles ``abc`` and ``acd``."""
        self.add_triangle(terrace, a, b, c)
        self.add_triangle(terrace, a, c, d)

    @property
    def vertex_count(self) -> int:
        return len(self._positions)

    @property
    def triangle_count(self) -> int:
        return sum(len(t) for t in self._triangles)

    def positions(self) -> np.ndarray:
        return np.array(self._positions, dtype=np.float64).reshape(-1, 3)

    def indices(self, terrace: int) -> np.ndarray:
        return np.array(self._triangles[terrace], dtype=np.int64).reshape(-1, 3)


def compute_vertex_normals(vertices: np.ndarray, triangles: np.ndarray) -> np.ndarray:
    """Unit vertex normals, each the area-weighted mean of its face normals.

    Vertices not referenced by any triangle get a zero normal.
    """
    normals = np.zeros_like(vertices, dtype=np.float64)
    if triangles.size == 0:
        return normals
    tri = triangles.astype(np.int64)
    v0 = vertices[tri[:, 0]]
    face = np.cross(vertices[tri[:, 1]] - v0, vertices[tri[:, 2]] - v0)
    for k in range(3):
        np.add.at(normals, tri[:, k], face)
    lengths = np.linalg.norm(normals, axis=1, keepdims=True)
    return np.divide(normals, lengths, out=np.zeros_like(normals), where=lengths > 0.0)


# ═══════════════════════════════════════════════════════════════════
# Builder
# ═══════════════════════════════════════════════════════════════════


class TerracedMeshBuilder:
    """Collects floors and walls, then bakes them into a :class:`TerracedMesh`.

    Parameters
    ----------
    terrace_count : int
        Number of sub-meshes.
    height_model : HeightModel
        Used to place sliced vertices at plane heights.
    terrace_heights : sequence of float
        Recorded on the baked mesh.
    """

    def __init__(
        self,
        terrace_count: int,
        height_model: HeightModel = PLANAR,
        terrace_heights: Sequence[float] = (),
    ) -> None:
        if terrace_count < 1:
            raise ConfigurationError(f"terrace_count must be >= 1, got {terrace_count}")
        self.terrace_count = terrace_count
        self.height_model = height_model
        self.terrace_heights = tuple(float(h) for h in terrace_heights)
        self.floors = GeometryPool(terrace_count)
        self.walls = GeometryPool(terrace_count)
        self._baked = False

    @property
    def baked(self) -> bool:
        return self._baked

    def _check_open(self) -> None:
        if self._baked:
            raise InvalidStateError("TerracedMeshBuilder has already been baked")

    def _on_edge(self, a: Vec3, ha: float, b: Vec3, hb: float, height: float) -> Vec3:
        # Canonical endpoint order: both triangles sharing an edge get
        # the same point, bit for bit.
        if b < a:
            a, ha, b, hb = b, hb, a, ha
        t = (height - ha) / (hb - ha)
        p = (a[0] + (b[0] - a[0]) * t, a[1] + (b[1] - a[1]) * t, a[2] + (b[2] - a[2]) * t)
        return self.height_model.point_at_height(p, height)

    # ── adding geometry ─────────────────────────────────────────────

    def add_whole_triangle(self, terrace: int, triangle: Triangle, height: float) -> None:
        """Flatten *triangle* onto *height* as a floor."""
        self._check_open()
        at = self.height_model.point_at_height
        v1, v2, v3 = triangle
        self.floors.add_triangle(terrace, at(v1, height), at(v2, height), at(v3, height))

    def add_sliced_1_above(
        self, terrace: int, triangle: Triangle, heights: Sequence[float], plane: float, previous: float
    ) -> None:
        """Floor cap around the high vertex ``v3`` plus one wall quad."""
        self._check_open()
        at = self.height_model.point_at_height
        v1, v2, v3 = triangle
        h1, h2, h3 = heights
        f1 = self._on_edge(v1, h1, v3, h3, plane)
        f2 = self._on_edge(v2, h2, v3, h3, plane)
        f3 = at(v3, plane)
        self.floors.add_triangle(terrace, f1, f2, f3)
        self.walls.add_quad(terrace, f2, f1, at(f1, previous), at(f2, previous))

    def add_sliced_2_above(
        self, terrace: int, triangle: Triangle, heights: Sequence[float], plane: float, previous: float
    ) -> None:
        """Floor quad around the high edge ``v1 v2`` plus one wall quad."""
        self._check_open()
        at = self.height_model.point_at_height
        v1, v2, v3 = triangle
        h1, h2, h3 = heights
        f1 = self._on_edge(v1, h1, v3, h3, plane)
        f2 = self._on_edge(v2, h2, v3, h3, plane)
        f3 = at(v1, plane)
        f4 = at(v2, plane)
        self.floors.add_quad(terrace, f1, f3, f4, f2)
        self.walls.add_quad(terrace, f1, f2, at(f2, previous), at(f1, previous))

    # ── baking ──────────────────────────────────────────────────────

    def bake(self) -> TerracedMesh:
        """Concatenate the pools into an immutable :class:`TerracedMesh`.

        Floor vertices come first, wall indices are offset past them;
        each sub-mesh lists its floor triangles before its walls.
        """
        self._check_open()
        self._baked = True

        floor_positions = self.floors.positions()
        offset = floor_positions.shape[0]
        vertices = np.concatenate([floor_positions, self.walls.positions()], axis=0)
        fmt = index_format_for(vertices.shape[0])

        merged = [
            np.concatenate(
                [self.floors.indices(t), self.walls.indices(t) + offset], axis=0
            )
            for t in range(self.terrace_count)
        ]
        normals = compute_vertex_normals(vertices, np.concatenate(merged, axis=0))
        submeshes = tuple(m.astype(fmt.dtype) for m in merged)

        logger.debug(
            "baked %d vertices (%d floor, %d wall), %d triangles, %s indices",
            vertices.shape[0], offset, vertices.shape[0] - offset,
            sum(m.shape[0] for m in submeshes), fmt.value,
        )
        return TerracedMesh(
            vertices=vertices,
            normals=normals,
            submeshes=submeshes,
            index_format=fmt,
            terrace_heights=self.terrace_heights,
        )


# ═══════════════════════════════════════════════════════════════════
# Terracer
# ═══════════════════════════════════════════════════════════════════


class Terracer:
    """Slices a sculpted mesh into terraces.

    Usage::

        terracer = Terracer(mesh, [2.0, 6.0], PLANAR)
        terracer.terrace()
        baked = terracer.bake()

    Parameters
    ----------
    mesh : MeshBuffer
        Sculpted input; not modified.
    heights : sequence of float
        Absolute terrace heights, strictly ascending.
    height_model : HeightModel
        Planar or radial height semantics.
    """

    def __init__(self, mesh: MeshBuffer, heights: Sequence[float], height_model: HeightModel = PLANAR) -> None:
        heights = [float(h) for h in heights]
        if not heights:
            raise ConfigurationError("At least one terrace height is required")
        if any(b <= a for a, b in zip(heights, heights[1:])):
            raise ConfigurationError(f"Terrace heights must be strictly ascending: {heights}")
        self.mesh = mesh
        self.heights = heights
        self.height_model = height_model
        self.builder = TerracedMeshBuilder(len(heights), height_model, heights)
        self._planes: List[float] = []
        self._terraced = False

    @property
    def planes(self) -> List[float]:
        """The sweep table (empty until :meth:`terrace` runs)."""
        return list(self._planes)

    def terrace(self, cancel=None) -> "Terracer":
        """Run the sweep over every triangle.

        *cancel* is anything with ``raise_if_cancelled()``; it is polled
        every :data:`CANCEL_CHECK_INTERVAL` triangles.
        """
        if self._terraced:
            raise InvalidStateError("terrace() has already run")
        self._terraced = True

        vertex_heights = self.height_model.height_of(self.mesh.vertices)
        self._planes = plane_sweep_table(self.heights, vertex_heights)
        positions = [tuple(p) for p in self.mesh.vertices.tolist()]
        hs = vertex_heights.tolist()

        for count, (a, b, c) in enumerate(self.mesh.indices.tolist()):
            if cancel is not None and count % CANCEL_CHECK_INTERVAL == 0:
                cancel.raise_if_cancelled()
            self._sweep((positions[a], positions[b], positions[c]), (hs[a], hs[b], hs[c]))

        logger.debug(
            "terraced %d triangles into %d floor / %d wall triangles",
            self.mesh.triangle_count, self.builder.floors.triangle_count,
            self.builder.walls.triangle_count,
        )
        return self

    def _sweep(self, vertices: Tuple[Vec3, Vec3, Vec3], heights: Heights3) -> None:
        planes = self._planes
        last = len(planes) - 1
        previous = planes[0]
        previous_q = 0
        emitted = False

        for q in range(1, last + 1):
            plane = planes[q]
            rotated, rheights, above = _rotate(vertices, heights, plane)

            if above == 0:
                if not emitted:
                    self.builder.add_whole_triangle(
                        max(previous_q - 1, 0), Triangle(*vertices), previous
                    )
                return
            if q == last:
                raise InvariantViolation(
                    f"{above} vertices at or above the upper sentinel plane {plane}"
                )
            if above == 3:
                previous, previous_q = plane, q
                continue

            if not emitted:
                self.builder.add_whole_triangle(
                    max(previous_q - 1, 0), Triangle(*vertices), previous
                )
                emitted = True
            if above == 1:
                self.builder.add_sliced_1_above(q - 1, Triangle(*rotated), rheights, plane, previous)
            elif above == 2:
                self.builder.add_sliced_2_above(q - 1, Triangle(*rotated), rheights, plane, previous)
            else:
                raise InvariantViolation(f"Impossible classification: {above} vertices above")
            previous, previous_q = plane, q

        raise InvariantViolation("Sweep ended without reaching the upper sentinel")

    def bake(self) -> TerracedMesh:
        if not self._terraced:
            raise InvariantViolation("bake() called before terrace()")
        return self.builder.bake()

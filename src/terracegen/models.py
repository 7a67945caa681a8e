"""Core data containers — mesh buffers, triangles and the baked terrain.

Vertices are stored as ``(N, 3)`` float arrays and triangles as
``(T, 3)`` integer index arrays.  The only object that leaves the
pipeline is the immutable :class:`TerracedMesh`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, Tuple

import numpy as np

from .errors import InvariantViolation

Vec3 = Tuple[float, float, float]

MAX_UINT16_VERTEX_COUNT = 65_535
"""Largest vertex count addressable with 16-bit indices."""


# ═══════════════════════════════════════════════════════════════════
# Index format
# ═══════════════════════════════════════════════════════════════════


class IndexFormat(str, Enum):
    """Width of the per-terrace index arrays."""

    UINT16 = "uint16"
    UINT32 = "uint32"

    @property
    def dtype(self) -> np.dtype:
        return np.dtype(self.value)


def index_format_for(vertex_count: int) -> IndexFormat:
    """Pick the narrowest index format able to address *vertex_count* vertices."""
    if vertex_count > MAX_UINT16_VERTEX_COUNT:
        return IndexFormat.UINT32
    return IndexFormat.UINT16


# ═══════════════════════════════════════════════════════════════════
# Triangle
# ═══════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class Triangle:
    """Three vertex positions in winding order.

    Only used while slicing; rotating keeps the winding intact.
    """

    v1: Vec3
    v2: Vec3
    v3: Vec3

    def rotated(self) -> "Triangle":
        """Return ``(v2, v3, v1)`` — same triangle, same winding."""
        return Triangle(self.v2, self.v3, self.v1)

    def __iter__(self) -> Iterator[Vec3]:
        return iter((self.v1, self.v2, self.v3))


# ═══════════════════════════════════════════════════════════════════
# Mutable working buffer
# ═══════════════════════════════════════════════════════════════════


@dataclass
class MeshBuffer:
    """A single-sub-mesh triangle mesh used between pipeline stages.

    Attributes
    ----------
    vertices : ndarray, shape (N, 3)
        Vertex positions.
    indices : ndarray, shape (T, 3)
        Triangle vertex indices, in winding order.
    """

    vertices: np.ndarray
    indices: np.ndarray

    def __post_init__(self) -> None:
        self.vertices = np.asarray(self.vertices, dtype=np.float64).reshape(-1, 3)
        self.indices = np.asarray(self.indices, dtype=np.int64).reshape(-1, 3)

    @property
    def vertex_count(self) -> int:
        return int(self.vertices.shape[0])

    @property
    def triangle_count(self) -> int:
        return int(self.indices.shape[0])

    def triangles(self) -> Iterator[Triangle]:
        """Yield every triangle as a :class:`Triangle` of plain float tuples."""
        positions = self.vertices.tolist()
        for a, b, c in self.indices.tolist():
            yield Triangle(tuple(positions[a]), tuple(positions[b]), tuple(positions[c]))

    def validate(self) -> None:
        """Raise :class:`InvariantViolation` if an index is out of range."""
        if self.indices.size == 0:
            return
        lo = int(self.indices.min())
        hi = int(self.indices.max())
        if lo < 0 or hi >= self.vertex_count:
            raise InvariantViolation(
                f"Triangle index range [{lo}, {hi}] outside vertex buffer of "
                f"length {self.vertex_count}"
            )

    def copy(self) -> "MeshBuffer":
        return MeshBuffer(self.vertices.copy(), self.indices.copy())


# ═══════════════════════════════════════════════════════════════════
# Baked output
# ═══════════════════════════════════════════════════════════════════


def _freeze(array: np.ndarray) -> np.ndarray:
    array.flags.writeable = False
    return array


@dataclass(frozen=True)
class TerracedMesh:
    """The baked terraced terrain — plain data, safe to hand across threads.

    Attributes
    ----------
    vertices : ndarray, shape (N, 3)
        Floor vertices followed by wall vertices.
    normals : ndarray, shape (N, 3)
        Unit vertex normals averaged over each vertex's triangles.
    submeshes : tuple of ndarray
        One ``(k, 3)`` index array per terrace, floors before walls.
    index_format : IndexFormat
        ``UINT32`` when the vertex count exceeds 65 535.
    terrace_heights : tuple of float
        Absolute terrace heights used for slicing, ascending.

    Every array is read-only; attribute assignment raises
    :class:`dataclasses.FrozenInstanceError`.
    """

    vertices: np.ndarray
    normals: np.ndarray
    submeshes: Tuple[np.ndarray, ...]
    index_format: IndexFormat
    terrace_heights: Tuple[float, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if self.normals.shape != self.vertices.shape:
            raise InvariantViolation(
                f"normals shape {self.normals.shape} != vertices shape {self.vertices.shape}"
            )
        n = self.vertices.shape[0]
        for i, sub in enumerate(self.submeshes):
            if sub.size and int(sub.max()) >= n:
                raise InvariantViolation(
                    f"Sub-mesh {i} references vertex {int(sub.max())} but only {n} exist"
                )
        _freeze(self.vertices)
        _freeze(self.normals)
        for sub in self.submeshes:
            _freeze(sub)

    # ── Counts ──────────────────────────────────────────────────────

    @property
    def vertex_count(self) -> int:
        return int(self.vertices.shape[0])

    @property
    def triangle_count(self) -> int:
        return sum(int(sub.shape[0]) for sub in self.submeshes)

    @property
    def terrace_count(self) -> int:
        return len(self.submeshes)

    # ── Accessors ───────────────────────────────────────────────────

    def submesh(self, terrace: int) -> np.ndarray:
        """Index array ``(k, 3)`` of the given terrace."""
        return self.submeshes[terrace]

    def all_indices(self) -> np.ndarray:
        """All sub-mesh triangles stacked into one ``(T, 3)`` array."""
        if not self.submeshes:
            return np.zeros((0, 3), dtype=self.index_format.dtype)
        return np.concatenate(self.submeshes, axis=0)

    # ── Serialisation ───────────────────────────────────────────────

    def to_dict(self) -> Dict[str, Any]:
        return {
            "index_format": self.index_format.value,
            "terrace_heights": list(self.terrace_heights),
            "vertices": self.vertices.tolist(),
            "normals": self.normals.tolist(),
            "submeshes": [sub.tolist() for sub in self.submeshes],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TerracedMesh":
        fmt = IndexFormat(data["index_format"])
        vertices = np.asarray(data["vertices"], dtype=np.float64).reshape(-1, 3)
        normals = np.asarray(data.get("normals") or np.zeros_like(vertices), dtype=np.float64)
        submeshes = tuple(
            np.asarray(sub, dtype=fmt.dtype).reshape(-1, 3) for sub in data["submeshes"]
        )
        return cls(
            vertices=vertices,
            normals=normals.reshape(-1, 3),
            submeshes=submeshes,
            index_format=fmt,
            terrace_heights=tuple(float(h) for h in data.get("terrace_heights", ())),
        )

    def __repr__(self) -> str:
        return (
            f"TerracedMesh(vertices={self.vertex_count}, triangles={self.triangle_count}, "
            f"terraces={self.terrace_count}, index_format={self.index_format.value})"
        )

"""Midpoint subdivision of triangle meshes.

Every pass splits each triangle ``(v1, v2, v3)`` into four::

    (v1, m12, m31)  (m12, v2, m23)  (m23, v3, m31)  (m12, m23, m31)

Each source triangle writes its three corners and three midpoints into
its own six-vertex slot, so vertices are never shared between
triangles.  Neighbouring triangles still agree on shared positions
because the midpoint rule is symmetric and deterministic.

Functions
---------
- :func:`triangle_count_for_depth` — ``T0 · 4**depth``
- :func:`vertex_count_for_depth` — vertices after *depth* passes
- :func:`fragment` — subdivide a mesh *depth* times
"""

from __future__ import annotations

import logging
from typing import Callable

import numpy as np

from .errors import ConfigurationError
from .height_models import PLANAR, HeightModel
from .models import MeshBuffer

logger = logging.getLogger(__name__)

Midpoint = Callable[[np.ndarray, np.ndarray], np.ndarray]

# Local indices of the four children inside a six-vertex slot laid out
# as (v1, v2, v3, m12, m23, m31).
_CHILDREN = np.array([
    (0, 3, 5),
    (3, 1, 4),
    (4, 2, 5),
    (3, 4, 5),
], dtype=np.int64)


def triangle_count_for_depth(base_triangles: int, depth: int) -> int:
    return int(base_triangles) * 4 ** int(depth)


def vertex_count_for_depth(base_triangles: int, base_vertices: int, depth: int) -> int:
    """Vertex count after *depth* passes (``6 · T_{depth-1}`` for depth ≥ 1)."""
    if depth == 0:
        return int(base_vertices)
    return 6 * triangle_count_for_depth(base_triangles, depth - 1)


def _subdivide_into(
    src_vertices: np.ndarray,
    src_indices: np.ndarray,
    dst_vertices: np.ndarray,
    dst_indices: np.ndarray,
    midpoint: Midpoint,
) -> None:
    """One pass: read ``src`` and fill the leading rows of ``dst``."""
    t = src_indices.shape[0]
    a = src_vertices[src_indices[:, 0]]
    b = src_vertices[src_indices[:, 1]]
    c = src_vertices[src_indices[:, 2]]

    slots = dst_vertices[: 6 * t].reshape(t, 6, 3)
    slots[:, 0] = a
    slots[:, 1] = b
    slots[:, 2] = c
    slots[:, 3] = midpoint(a, b)
    slots[:, 4] = midpoint(b, c)
    slots[:, 5] = midpoint(c, a)

    base = (np.arange(t, dtype=np.int64) * 6)[:, None, None]
    dst_indices[: 4 * t] = (base + _CHILDREN[None, :, :]).reshape(-1, 3)


def fragment(mesh: MeshBuffer, depth: int, midpoint: Midpoint = PLANAR.midpoint) -> MeshBuffer:
    """Subdivide *mesh* *depth* times.

    Parameters
    ----------
    mesh : MeshBuffer
        Source mesh; left untouched.
    depth : int
        Number of passes.  ``0`` returns *mesh* itself.
    midpoint : callable
        Vectorised ``midpoint(a, b)`` over ``(T, 3)`` arrays; use
        :meth:`RadialHeightModel.midpoint` to stay on a sphere.

    Returns
    -------
    MeshBuffer
        A new mesh with ``T0 · 4**depth`` triangles.
    """
    if depth < 0:
        raise ConfigurationError(f"depth must be >= 0, got {depth}")
    if depth == 0:
        return mesh

    t0 = mesh.triangle_count
    final_vertices = vertex_count_for_depth(t0, mesh.vertex_count, depth)
    final_triangles = triangle_count_for_depth(t0, depth)

    # Two buffers sized for the last pass, swapped between passes.
    vertex_buffers = [np.empty((final_vertices, 3)), np.empty((final_vertices, 3))]
    index_buffers = [
        np.empty((final_triangles, 3), dtype=np.int64),
        np.empty((final_triangles, 3), dtype=np.int64),
    ]

    src_vertices = mesh.vertices
    src_indices = mesh.indices
    write = 0
    for level in range(1, depth + 1):
        t = src_indices.shape[0]
        dst_vertices = vertex_buffers[write]
        dst_indices = index_buffers[write]
        _subdivide_into(src_vertices, src_indices, dst_vertices, dst_indices, midpoint)
        src_vertices = dst_vertices[: 6 * t]
        src_indices = dst_indices[: 4 * t]
        write = 1 - write
        logger.debug("fragment pass %d: %d triangles", level, 4 * t)

    return MeshBuffer(src_vertices, src_indices)


class MeshFragmenter:
    """Class form of :func:`fragment` bound to a depth and height model."""

    def __init__(self, depth: int, height_model: HeightModel = PLANAR) -> None:
        if depth < 0:
            raise ConfigurationError(f"depth must be >= 0, got {depth}")
        self.depth = int(depth)
        self.height_model = height_model

    def fragment(self, mesh: MeshBuffer) -> MeshBuffer:
        return fragment(mesh, self.depth, self.height_model.midpoint)

    def __repr__(self) -> str:
        return f"MeshFragmenter(depth={self.depth}, height_model={self.height_model!r})"

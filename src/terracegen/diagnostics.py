from __future__ import annotations

from typing import Any, Dict, List

import numpy as np

from .height_models import PLANAR, HeightModel
from .models import TerracedMesh


def projected_area(vertices: np.ndarray, triangles: np.ndarray) -> float:
    """Total area of *triangles* projected onto the XZ plane (unsigned)."""
    vertices = np.asarray(vertices, dtype=np.float64)
    triangles = np.asarray(triangles, dtype=np.int64).reshape(-1, 3)
    if triangles.size == 0:
        return 0.0
    a = vertices[triangles[:, 0]][:, [0, 2]]
    b = vertices[triangles[:, 1]][:, [0, 2]]
    c = vertices[triangles[:, 2]][:, [0, 2]]
    cross = (b[:, 0] - a[:, 0]) * (c[:, 1] - a[:, 1]) - (b[:, 1] - a[:, 1]) * (c[:, 0] - a[:, 0])
    return float(np.abs(cross).sum() / 2.0)


def surface_area(vertices: np.ndarray, triangles: np.ndarray) -> float:
    vertices = np.asarray(vertices, dtype=np.float64)
    triangles = np.asarray(triangles, dtype=np.int64).reshape(-1, 3)
    if triangles.size == 0:
        return 0.0
    v0 = vertices[triangles[:, 0]]
    cross = np.cross(vertices[triangles[:, 1]] - v0, vertices[triangles[:, 2]] - v0)
    return float(np.linalg.norm(cross, axis=1).sum() / 2.0)


def mesh_summary(mesh: TerracedMesh, height_model: HeightModel = PLANAR) -> Dict[str, Any]:
    """JSON-ready overview of a baked mesh.

    Per terrace: triangle count, referenced-vertex count and the height
    range of those vertices.
    """
    heights = height_model.height_of(mesh.vertices)
    terraces: List[Dict[str, Any]] = []
    for i, sub in enumerate(mesh.submeshes):
        used = np.unique(sub.astype(np.int64)) if sub.size else np.zeros(0, dtype=np.int64)
        entry: Dict[str, Any] = {
            "terrace": i,
            "triangles": int(sub.shape[0]),
            "vertices": int(used.size),
        }
        if i < len(mesh.terrace_heights):
            entry["height"] = mesh.terrace_heights[i]
        if used.size:
            entry["min_height"] = float(heights[used].min())
            entry["max_height"] = float(heights[used].max())
        terraces.append(entry)

    return {
        "vertices": mesh.vertex_count,
        "triangles": mesh.triangle_count,
        "terraces": mesh.terrace_count,
        "index_format": mesh.index_format.value,
        "min_height": float(heights.min()) if heights.size else 0.0,
        "max_height": float(heights.max()) if heights.size else 0.0,
        "per_terrace": terraces,
    }


def summary_lines(summary: Dict[str, Any]) -> List[str]:
    lines = [
        f"vertices:     {summary['vertices']}",
        f"triangles:    {summary['triangles']}",
        f"terraces:     {summary['terraces']}",
        f"index format: {summary['index_format']}",
        f"height range: {summary['min_height']:.3f} .. {summary['max_height']:.3f}",
    ]
    for entry in summary["per_terrace"]:
        height = entry.get("height")
        label = f"{height:8.3f}" if height is not None else "       -"
        lines.append(f"  terrace {entry['terrace']:2d} @ {label}: {entry['triangles']} triangles")
    return lines

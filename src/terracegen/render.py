"""Terrace rendering — 3-D matplotlib preview of a :class:`TerracedMesh`.

Functions
---------
- :func:`terrace_colours` — one RGB colour per terrace from a ramp
- :func:`render_png` — matplotlib Poly3DCollection view (PNG)
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Dict, List, Tuple, Union

import numpy as np

from .models import TerracedMesh
from .noise import remap

RGB = Tuple[float, float, float]

# ═══════════════════════════════════════════════════════════════════
# Colour ramps
# ═══════════════════════════════════════════════════════════════════


def _lerp_colour(a: RGB, b: RGB, t: float) -> RGB:
    return (
        a[0] + (b[0] - a[0]) * t,
        a[1] + (b[1] - a[1]) * t,
        a[2] + (b[2] - a[2]) * t,
    )


def _ramp_from_stops(stops: List[Tuple[float, RGB]]) -> Callable[[float], RGB]:
    def _ramp(value: float) -> RGB:
        for (t0, c0), (t1, c1) in zip(stops, stops[1:]):
            if value <= t1:
                t = (value - t0) / (t1 - t0) if t1 > t0 else 0.0
                return _lerp_colour(c0, c1, t)
        return stops[-1][1]

    return _ramp


_RAMPS: Dict[str, Callable[[float], RGB]] = {
    "earth": _ramp_from_stops([
        (0.00, (0.12, 0.30, 0.55)),
        (0.15, (0.20, 0.50, 0.25)),
        (0.45, (0.45, 0.60, 0.25)),
        (0.70, (0.55, 0.45, 0.30)),
        (0.90, (0.70, 0.65, 0.60)),
        (1.00, (1.00, 1.00, 1.00)),
    ]),
    "sandstone": _ramp_from_stops([
        (0.00, (0.55, 0.30, 0.15)),
        (0.50, (0.80, 0.50, 0.25)),
        (1.00, (0.95, 0.80, 0.55)),
    ]),
}


def terrace_colours(count: int, ramp: str = "earth") -> List[RGB]:
    """Evenly sample *ramp* for *count* terraces, lowest first."""
    if ramp not in _RAMPS:
        raise ValueError(f"Unknown ramp {ramp!r}; choose from {sorted(_RAMPS)}")
    ramp_fn = _RAMPS[ramp]
    top = max(count - 1, 1)
    return [ramp_fn(remap(i, src_min=0.0, src_max=top)) for i in range(count)]


# ═══════════════════════════════════════════════════════════════════
# 3-D render (matplotlib Poly3DCollection)
# ═══════════════════════════════════════════════════════════════════


def render_png(
    mesh: TerracedMesh,
    out_path: Union[str, Path],
    *,
    ramp: str = "earth",
    figsize: Tuple[float, float] = (10, 10),
    dpi: int = 150,
    elev: float = 35.0,
    azim: float = -60.0,
    title: str = "",
) -> Path:
    """Render *mesh* with one colour per terrace.

    Mesh Y (height) is drawn on the plot's vertical axis.  Uses
    matplotlib's ``Poly3DCollection`` — no OpenGL required.  Returns the
    output file path.
    """
    import matplotlib
    matplotlib.use("Agg")
    import matplotlib.pyplot as plt
    from mpl_toolkits.mplot3d.art3d import Poly3DCollection

    # matplotlib is Z-up
    xyz = np.asarray(mesh.vertices)[:, [0, 2, 1]]
    colours = terrace_colours(mesh.terrace_count, ramp)

    fig = plt.figure(figsize=figsize, dpi=dpi)
    ax = fig.add_subplot(111, projection="3d")

    polygons: list = []
    facecolours: list = []
    for colour, sub in zip(colours, mesh.submeshes):
        if sub.size == 0:
            continue
        polygons.extend(xyz[sub.astype(np.int64)])
        facecolours.extend([colour] * sub.shape[0])

    collection = Poly3DCollection(
        polygons,
        facecolors=facecolours,
        edgecolors=[(0.15, 0.15, 0.15, 0.25)] * len(polygons),
        linewidths=0.2,
    )
    ax.add_collection3d(collection)

    if xyz.size:
        lo = xyz.min(axis=0)
        hi = xyz.max(axis=0)
        centre = (lo + hi) / 2.0
        half = max(float((hi - lo).max()) / 2.0, 1e-6) * 1.1
        ax.set_xlim(centre[0] - half, centre[0] + half)
        ax.set_ylim(centre[1] - half, centre[1] + half)
        ax.set_zlim(centre[2] - half, centre[2] + half)
    ax.set_box_aspect([1, 1, 1])
    ax.view_init(elev=elev, azim=azim)
    ax.set_axis_off()
    ax.set_title(
        title or f"{mesh.terrace_count} terraces ({mesh.triangle_count} triangles)",
        fontsize=12,
    )

    out = Path(out_path)
    out.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(out, bbox_inches="tight")
    plt.close(fig)
    return out

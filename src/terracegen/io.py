from __future__ import annotations

import json
from pathlib import Path
from typing import Union

from .errors import ConfigurationError
from .models import TerracedMesh


PathLike = Union[str, Path]


def load_json(path: PathLike) -> TerracedMesh:
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    return TerracedMesh.from_dict(data)


def save_json(mesh: TerracedMesh, path: PathLike) -> None:
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(json.dumps(mesh.to_dict()), encoding="utf-8")


def save_obj(mesh: TerracedMesh, path: PathLike) -> None:
    """Write *mesh* as Wavefront OBJ, one ``g terrace_<i>`` group per terrace.

    OBJ indices are 1-based and every face references the matching
    vertex normal (``f a//a b//b c//c``).
    """
    lines = [
        "# terracegen terraced mesh",
        f"# {mesh.vertex_count} vertices, {mesh.triangle_count} triangles, "
        f"{mesh.terrace_count} terraces",
    ]
    lines.extend(f"v {x:.6f} {y:.6f} {z:.6f}" for x, y, z in mesh.vertices.tolist())
    lines.extend(f"vn {x:.6f} {y:.6f} {z:.6f}" for x, y, z in mesh.normals.tolist())
    for i, sub in enumerate(mesh.submeshes):
        lines.append(f"g terrace_{i}")
        for a, b, c in (sub.astype(int) + 1).tolist():
            lines.append(f"f {a}//{a} {b}//{b} {c}//{c}")
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text("\n".join(lines) + "\n", encoding="utf-8")


def save_mesh(mesh: TerracedMesh, path: PathLike) -> None:
    """Save by extension: ``.obj`` or ``.json``."""
    suffix = Path(path).suffix.lower()
    if suffix == ".obj":
        save_obj(mesh, path)
    elif suffix == ".json":
        save_json(mesh, path)
    else:
        raise ConfigurationError(f"Unsupported mesh format {suffix!r}; use .obj or .json")

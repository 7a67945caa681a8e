"""Terrain configuration — validated options, terrace tables and presets.

A :class:`TerrainConfig` is checked completely in ``__post_init__`` so
that a bad option is reported before any buffer is allocated.

Functions
---------
- :func:`terrace_heights` — absolute terrace heights from relative ones
- :func:`even_relative_heights` — ``count`` evenly spaced relative heights
- :func:`plane_sweep_table` — terrace heights bracketed by two sentinels
- :func:`load_config` / :func:`save_config` — JSON persistence

Presets
-------
``ROLLING_HILLS``, ``MESA``, ``ARCHIPELAGO`` (planar) and ``PLANETOID``
(sphere), also available by name through :data:`PRESETS`.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

import numpy as np

from .curves import HeightCurve
from .errors import ConfigurationError, UnsupportedShapeError
from .height_models import HeightModel
from .sculpting import SculptSettings
from .shapes import (
    MAX_SIDES,
    MIN_SIDES,
    ShapeGenerator,
    ShapeKind,
    height_model_for,
    shape_generator_for,
)

PathLike = Union[str, Path]

MAX_BUFFER_LENGTH = 2 ** 31 - 1
"""Largest index buffer (in indices) a single run may allocate."""

DEFAULT_TERRACE_COUNT = 5


# ═══════════════════════════════════════════════════════════════════
# Terrace height tables
# ═══════════════════════════════════════════════════════════════════


def _check_relative(relative: Sequence[float]) -> Tuple[float, ...]:
    rel = tuple(float(r) for r in relative)
    if not rel:
        raise ConfigurationError("At least one terrace height is required")
    bad = [r for r in rel if not 0.0 <= r <= 1.0]
    if bad:
        raise ConfigurationError(f"Relative terrace heights must be in [0, 1], got {bad}")
    if any(b <= a for a, b in zip(rel, rel[1:])):
        raise ConfigurationError(f"Relative terrace heights must be strictly ascending: {list(rel)}")
    return rel


def terrace_heights(min_height: float, max_height: float, relative: Sequence[float]) -> List[float]:
    """Map relative heights in ``[0, 1]`` onto ``[min_height, max_height]``.

    >>> terrace_heights(10, 20, [0.1, 0.2, 0.3])
    [11.0, 12.0, 13.0]
    """
    rel = _check_relative(relative)
    span = max_height - min_height
    return [min_height + r * span for r in rel]


def even_relative_heights(count: int) -> List[float]:
    """``count`` relative heights ``i / count`` for ``i < count``."""
    if count < 1:
        raise ConfigurationError(f"terrace count must be >= 1, got {count}")
    return [i / count for i in range(count)]


def plane_sweep_table(heights: Sequence[float], vertex_heights: Sequence[float] = ()) -> List[float]:
    """Terrace heights with a lower and an upper sentinel plane.

    The lower sentinel is ``min(lowest vertex, heights[0])``; the upper
    one sits strictly above both the highest vertex and the last terrace.
    """
    planes = [float(h) for h in heights]
    if not planes:
        raise ConfigurationError("At least one terrace height is required")
    vh = np.asarray(vertex_heights, dtype=np.float64)
    lowest = min(float(vh.min()), planes[0]) if vh.size else planes[0]
    highest = max(float(vh.max()), planes[-1]) if vh.size else planes[-1]
    return [lowest] + planes + [highest + 1.0]


# ═══════════════════════════════════════════════════════════════════
# TerrainConfig
# ═══════════════════════════════════════════════════════════════════


def _base_triangle_count(shape: ShapeKind, sides: int) -> int:
    if shape is ShapeKind.SPHERE:
        return 20
    if sides == 4:
        return 2
    return 1 if sides == 3 else sides


@dataclass(frozen=True)
class TerrainConfig:
    """Every option of a generation run.

    Attributes
    ----------
    shape : ShapeKind
        ``POLYGON`` (planar heights) or ``SPHERE`` (radial heights).
    sides : int
        Polygon side count, 3..10.  Ignored for spheres.
    radius : float
        Polygon radius (> 0).  Ignored for spheres.
    min_height, max_height : float
        Sphere: ``0 < min_height <= max_height``, with
        ``min_height < max_height`` whenever there is more than one terrace.  Polygon:
        ``min_height == 0`` and ``max_height > 0``.
    depth : int
        Subdivision passes (≥ 0).
    sculpt : SculptSettings
        Noise settings.
    relative_heights : tuple of float, optional
        Explicit strictly-ascending terrace heights in ``[0, 1]``.
    terrace_count : int, optional
        Number of evenly spaced terraces.  Mutually exclusive with
        *relative_heights*; when neither is given,
        :data:`DEFAULT_TERRACE_COUNT` terraces are used.
    """

    shape: ShapeKind = ShapeKind.POLYGON
    sides: int = 6
    radius: float = 10.0
    min_height: float = 0.0
    max_height: float = 5.0
    depth: int = 4
    sculpt: SculptSettings = field(default_factory=SculptSettings)
    relative_heights: Optional[Tuple[float, ...]] = None
    terrace_count: Optional[int] = None

    def __post_init__(self) -> None:
        try:
            object.__setattr__(self, "shape", ShapeKind(self.shape))
        except ValueError:
            raise ConfigurationError(f"Unknown shape {self.shape!r}") from None

        if self.shape is ShapeKind.POLYGON:
            if self.sides < MIN_SIDES:
                raise ConfigurationError(
                    f"sides must be in [{MIN_SIDES}, {MAX_SIDES}], got {self.sides}"
                )
            if self.sides > MAX_SIDES:
                raise UnsupportedShapeError(f"Polygon with {self.sides} sides not implemented")
            if not self.radius > 0:
                raise ConfigurationError(f"radius must be > 0, got {self.radius}")
            if self.min_height != 0.0:
                raise ConfigurationError("min_height only applies to sphere shapes")
            if not self.max_height > 0:
                raise ConfigurationError(f"max_height must be > 0, got {self.max_height}")
        else:
            if not self.min_height > 0:
                raise ConfigurationError(f"Sphere min_height must be > 0, got {self.min_height}")
            if self.min_height > self.max_height:
                raise ConfigurationError(
                    f"min_height ({self.min_height}) must not exceed max_height ({self.max_height})"
                )

        if self.depth < 0:
            raise ConfigurationError(f"depth must be >= 0, got {self.depth}")
        needed = 3 * _base_triangle_count(self.shape, self.sides) * 4 ** self.depth
        if needed > MAX_BUFFER_LENGTH:
            raise ConfigurationError(
                f"depth {self.depth} needs {needed} indices, more than {MAX_BUFFER_LENGTH}"
            )

        if self.relative_heights is not None and self.terrace_count is not None:
            raise ConfigurationError("Give either relative_heights or terrace_count, not both")
        if self.relative_heights is not None:
            object.__setattr__(self, "relative_heights", _check_relative(self.relative_heights))
        else:
            count = DEFAULT_TERRACE_COUNT if self.terrace_count is None else self.terrace_count
            if count < 1:
                raise ConfigurationError(f"terrace_count must be >= 1, got {count}")
            object.__setattr__(self, "terrace_count", int(count))

        heights = self.terrace_heights
        if any(b <= a for a, b in zip(heights, heights[1:])):
            raise ConfigurationError(
                f"Terrace heights must be strictly ascending: {heights} (min_height={self.min_height}, "
                f"max_height={self.max_height})"
            )

    # ── derived values ──────────────────────────────────────────────

    @property
    def base_triangle_count(self) -> int:
        return _base_triangle_count(self.shape, self.sides)

    @property
    def height_model(self) -> HeightModel:
        return height_model_for(self.shape)

    @property
    def relative_terrace_heights(self) -> List[float]:
        if self.relative_heights is not None:
            return list(self.relative_heights)
        return even_relative_heights(self.terrace_count)

    @property
    def terrace_heights(self) -> List[float]:
        """Absolute terrace heights, ascending."""
        return terrace_heights(self.min_height, self.max_height, self.relative_terrace_heights)

    def shape_generator(self) -> ShapeGenerator:
        """Seed-mesh generator; spheres start at ``min_height``."""
        if self.shape is ShapeKind.SPHERE:
            return shape_generator_for(self.shape, radius=self.min_height)
        return shape_generator_for(self.shape, sides=self.sides, radius=self.radius)

    def with_seed(self, seed: Optional[int]) -> "TerrainConfig":
        return replace(self, sculpt=replace(self.sculpt, seed=seed))

    # ── serialisation ───────────────────────────────────────────────

    def to_dict(self) -> Dict[str, Any]:
        return {
            "shape": self.shape.value,
            "sides": self.sides,
            "radius": self.radius,
            "min_height": self.min_height,
            "max_height": self.max_height,
            "depth": self.depth,
            "sculpt": self.sculpt.to_dict(),
            "relative_heights": list(self.relative_heights) if self.relative_heights else None,
            "terrace_count": None if self.relative_heights else self.terrace_count,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TerrainConfig":
        data = dict(data)
        unknown = set(data) - {f for f in cls.__dataclass_fields__}
        if unknown:
            raise ConfigurationError(f"Unknown config keys: {sorted(unknown)}")
        sculpt = data.pop("sculpt", None)
        rel = data.pop("relative_heights", None)
        return cls(
            sculpt=SculptSettings.from_dict(sculpt) if sculpt else SculptSettings(),
            relative_heights=tuple(rel) if rel is not None else None,
            **data,
        )


def load_config(path: PathLike) -> TerrainConfig:
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    return TerrainConfig.from_dict(data)


def save_config(config: TerrainConfig, path: PathLike) -> None:
    Path(path).write_text(json.dumps(config.to_dict(), indent=2), encoding="utf-8")


# ═══════════════════════════════════════════════════════════════════
# Presets
# ═══════════════════════════════════════════════════════════════════

ROLLING_HILLS = TerrainConfig(
    shape=ShapeKind.POLYGON,
    sides=6,
    radius=20.0,
    max_height=4.0,
    depth=5,
    sculpt=SculptSettings(seed=1, base_frequency=0.08, octaves=4),
    terrace_count=6,
)
"""Gentle hexagonal hills with six even terraces."""

MESA = TerrainConfig(
    shape=ShapeKind.POLYGON,
    sides=4,
    radius=20.0,
    max_height=8.0,
    depth=5,
    sculpt=SculptSettings(
        seed=7,
        base_frequency=0.06,
        octaves=3,
        height_curve=HeightCurve.ease_in(),
    ),
    relative_heights=(0.0, 0.35, 0.6, 0.8),
)
"""Flat lowlands with a few tall, widely spaced plateaus."""

ARCHIPELAGO = TerrainConfig(
    shape=ShapeKind.POLYGON,
    sides=8,
    radius=30.0,
    max_height=5.0,
    depth=5,
    sculpt=SculptSettings(
        seed=11,
        base_frequency=0.1,
        octaves=5,
        persistence=0.45,
        height_curve=HeightCurve.ease_in(),
        normalization="theoretical",
    ),
    relative_heights=(0.0, 0.3, 0.45, 0.6, 0.75),
)
"""Scattered islands rising from a broad sea-level floor."""

PLANETOID = TerrainConfig(
    shape=ShapeKind.SPHERE,
    min_height=10.0,
    max_height=12.0,
    depth=4,
    sculpt=SculptSettings(seed=3, base_frequency=1.5, octaves=4),
    terrace_count=8,
)
"""Small terraced planet."""

PRESETS: Dict[str, TerrainConfig] = {
    "rolling_hills": ROLLING_HILLS,
    "mesa": MESA,
    "archipelago": ARCHIPELAGO,
    "planetoid": PLANETOID,
}

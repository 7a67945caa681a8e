"""Noise-driven height displacement — Sculptor stage.

Assembles the noise primitives (:mod:`noise`) and a height-response
curve (:mod:`curves`) into a sculptor that moves every vertex of a
:class:`~models.MeshBuffer` to its terrain height.

Usage
-----
>>> from terracegen.sculpting import Sculptor, SculptSettings
>>> from terracegen.height_models import PLANAR
>>> Sculptor(SculptSettings(seed=7), PLANAR, 0.0, 10.0).sculpt(mesh)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

import numpy as np

from .curves import HeightCurve
from .errors import ConfigurationError
from .height_models import HeightModel, unit_directions
from .models import MeshBuffer
from .noise import amplitude_sum, octave_noise, symmetric_noise_3d, value_noise_2d

logger = logging.getLogger(__name__)

OFFSET_RANGE = 10_000
"""Octave offsets are drawn from ``[-OFFSET_RANGE, OFFSET_RANGE)``."""

NORMALIZATIONS = ("observed", "theoretical")


# ═══════════════════════════════════════════════════════════════════
# Configuration
# ═══════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class SculptSettings:
    """Noise parameters for the sculptor.

    Attributes
    ----------
    seed : int or None
        Noise / offset seed.  ``None`` draws a fresh seed from OS entropy
        when :meth:`resolve_seed` is called.
    base_frequency : float
        Spatial frequency of the first octave (> 0).
    octaves : int
        Number of noise layers (≥ 1).
    persistence : float
        Amplitude multiplier between octaves, in ``(0, 1)``.
    lacunarity : float
        Frequency multiplier between octaves (> 1).
    height_curve : HeightCurve or None
        Response curve applied to the normalised noise; ``None`` is the
        identity curve.
    normalization : str
        ``"observed"`` divides by the largest accumulated value on the
        mesh; ``"theoretical"`` divides by the sum of octave amplitudes,
        which gives the same field at every subdivision depth.

    Persistence and lacunarity are only checked when ``octaves > 1``.
    """

    seed: Optional[int] = None
    base_frequency: float = 1.0
    octaves: int = 4
    persistence: float = 0.5
    lacunarity: float = 2.0
    height_curve: Optional[HeightCurve] = None
    normalization: str = "observed"

    def __post_init__(self) -> None:
        if not self.base_frequency > 0:
            raise ConfigurationError(f"base_frequency must be > 0, got {self.base_frequency}")
        if self.octaves < 1:
            raise ConfigurationError(f"octaves must be >= 1, got {self.octaves}")
        if self.octaves > 1:
            if not 0.0 < self.persistence < 1.0:
                raise ConfigurationError(
                    f"persistence must be in (0, 1) when octaves > 1, got {self.persistence}"
                )
            if not self.lacunarity > 1.0:
                raise ConfigurationError(
                    f"lacunarity must be > 1 when octaves > 1, got {self.lacunarity}"
                )
        if self.normalization not in NORMALIZATIONS:
            raise ConfigurationError(
                f"normalization must be one of {NORMALIZATIONS}, got {self.normalization!r}"
            )

    def resolve_seed(self) -> int:
        """Return :attr:`seed`, or a fresh entropy-derived seed if unset."""
        if self.seed is not None:
            return int(self.seed)
        return int(np.random.SeedSequence().entropy % (2 ** 32))

    @property
    def curve(self) -> HeightCurve:
        return self.height_curve if self.height_curve is not None else HeightCurve.identity()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "seed": self.seed,
            "base_frequency": self.base_frequency,
            "octaves": self.octaves,
            "persistence": self.persistence,
            "lacunarity": self.lacunarity,
            "height_curve": self.height_curve.to_list() if self.height_curve else None,
            "normalization": self.normalization,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SculptSettings":
        data = dict(data)
        curve = data.pop("height_curve", None)
        return cls(
            height_curve=HeightCurve.from_points(curve) if curve else None,
            **data,
        )


# ═══════════════════════════════════════════════════════════════════
# Sculptor
# ═══════════════════════════════════════════════════════════════════


class Sculptor:
    """Moves mesh vertices to noise-derived heights.

    Parameters
    ----------
    settings : SculptSettings
        Noise parameters.  The seed is resolved once, at construction,
        so repeated :meth:`sculpt` calls give identical results.
    height_model : HeightModel
        Planar meshes use X/Z as noise coordinates and heights in
        ``[0, max_height]``.  Radial meshes sample the symmetrised 3-D
        lookup on each vertex's unit direction and land in
        ``[min_height, max_height]``.
    min_height, max_height : float
        Output range (``min_height`` is only used by radial meshes).
    noise : callable, optional
        Replacement ``noise2d(x, y) -> [0, 1]``; defaults to seeded
        OpenSimplex noise.
    """

    def __init__(
        self,
        settings: SculptSettings,
        height_model: HeightModel,
        min_height: float,
        max_height: float,
        noise: Optional[Callable[[float, float], float]] = None,
    ) -> None:
        if min_height > max_height:
            raise ConfigurationError(
                f"min_height ({min_height}) must not exceed max_height ({max_height})"
            )
        self.settings = settings
        self.height_model = height_model
        self.min_height = float(min_height)
        self.max_height = float(max_height)
        self.seed = settings.resolve_seed()
        self._noise2d = noise if noise is not None else value_noise_2d(self.seed)

    @property
    def radial(self) -> bool:
        return self.height_model.name == "radial"

    def _offsets(self) -> np.ndarray:
        rng = np.random.default_rng(self.seed)
        dims = 3 if self.radial else 2
        return rng.integers(
            -OFFSET_RANGE, OFFSET_RANGE, size=(self.settings.octaves, dims)
        ).astype(np.float64)

    def _sample_points(self, vertices: np.ndarray) -> np.ndarray:
        if self.radial:
            return unit_directions(vertices)
        return vertices[:, [0, 2]]

    def accumulate(self, mesh: MeshBuffer) -> np.ndarray:
        """First pass: the raw octave sum per vertex.

        Noise is evaluated once per distinct sample position and then
        scattered back, so coincident vertices always agree.
        """
        points = self._sample_points(mesh.vertices)
        if points.shape[0] == 0:
            return np.zeros(0)
        unique, inverse = np.unique(points, axis=0, return_inverse=True)
        sample = symmetric_noise_3d(self._noise2d) if self.radial else self._noise2d
        values = octave_noise(
            sample,
            unique,
            self._offsets(),
            frequency=self.settings.base_frequency,
            persistence=self.settings.persistence,
            lacunarity=self.settings.lacunarity,
        )
        return values[inverse.reshape(-1)]

    def sculpt(self, mesh: MeshBuffer) -> MeshBuffer:
        """Displace *mesh* in place and return it."""
        acc = self.accumulate(mesh)
        if acc.size == 0:
            return mesh

        if self.settings.normalization == "theoretical":
            peak = amplitude_sum(self.settings.octaves, self.settings.persistence)
        else:
            peak = float(acc.max())

        if peak <= 0.0:
            logger.debug("flat noise field (peak %.3g); every vertex at minimum height", peak)
            normalized = np.zeros_like(acc)
        else:
            normalized = np.clip(acc / peak, 0.0, 1.0)

        shaped = normalized * self.settings.curve(normalized)
        if self.radial:
            heights = self.min_height + (self.max_height - self.min_height) * shaped
        else:
            heights = self.max_height * shaped

        mesh.vertices[:] = self.height_model.with_height(mesh.vertices, heights)
        logger.debug(
            "sculpted %d vertices (seed=%d, peak=%.4f, heights %.3f..%.3f)",
            mesh.vertex_count, self.seed, peak, float(heights.min()), float(heights.max()),
        )
        return mesh

    def __repr__(self) -> str:
        return (
            f"Sculptor(seed={self.seed}, height_model={self.height_model!r}, "
            f"range=[{self.min_height}, {self.max_height}])"
        )

"""Tests for ``terracegen.sculpting`` — noise displacement."""

from __future__ import annotations

import numpy as np
import pytest

from terracegen.curves import HeightCurve
from terracegen.errors import ConfigurationError
from terracegen.fragmentation import fragment
from terracegen.height_models import PLANAR, RADIAL
from terracegen.sculpting import SculptSettings, Sculptor
from terracegen.shapes import IcosahedronGenerator, RegularPolygonGenerator


# ── helpers ─────────────────────────────────────────────────────────

@pytest.fixture()
def hex_mesh():
    return fragment(RegularPolygonGenerator(6, 10.0).generate(), 3)


@pytest.fixture()
def sphere_mesh():
    ico = IcosahedronGenerator(1.0).generate()
    return fragment(ico, 2, RADIAL.midpoint)


SETTINGS = SculptSettings(seed=12, base_frequency=0.2, octaves=3)


# ═══════════════════════════════════════════════════════════════════
# SculptSettings
# ═══════════════════════════════════════════════════════════════════


class TestSettings:
    def test_defaults_valid(self):
        SculptSettings()

    @pytest.mark.parametrize("freq", [0.0, -1.0])
    def test_frequency(self, freq):
        with pytest.raises(ConfigurationError, match="base_frequency"):
            SculptSettings(base_frequency=freq)

    def test_octaves(self):
        with pytest.raises(ConfigurationError, match="octaves"):
            SculptSettings(octaves=0)

    @pytest.mark.parametrize("persistence", [0.0, 1.0, 1.5])
    def test_persistence_checked_with_many_octaves(self, persistence):
        with pytest.raises(ConfigurationError, match="persistence"):
            SculptSettings(octaves=2, persistence=persistence)

    def test_lacunarity_checked_with_many_octaves(self):
        with pytest.raises(ConfigurationError, match="lacunarity"):
            SculptSettings(octaves=2, lacunarity=1.0)

    def test_single_octave_ignores_persistence_and_lacunarity(self):
        SculptSettings(octaves=1, persistence=3.0, lacunarity=0.5)

    def test_normalization(self):
        with pytest.raises(ConfigurationError, match="normalization"):
            SculptSettings(normalization="median")

    def test_resolve_seed(self):
        assert SculptSettings(seed=7).resolve_seed() == 7
        assert isinstance(SculptSettings().resolve_seed(), int)

    def test_identity_curve_by_default(self):
        assert SculptSettings().curve == HeightCurve.identity()

    def test_dict_round_trip(self):
        settings = SculptSettings(seed=3, octaves=2, height_curve=HeightCurve.ease_in())
        assert SculptSettings.from_dict(settings.to_dict()) == settings


# ═══════════════════════════════════════════════════════════════════
# Planar sculpting
# ═══════════════════════════════════════════════════════════════════


class TestPlanar:
    def test_heights_within_bounds(self, hex_mesh):
        Sculptor(SETTINGS, PLANAR, 0.0, 10.0).sculpt(hex_mesh)
        y = hex_mesh.vertices[:, 1]
        assert y.min() >= 0.0
        assert y.max() == pytest.approx(10.0)

    def test_horizontal_position_unchanged(self, hex_mesh):
        before = hex_mesh.vertices[:, [0, 2]].copy()
        Sculptor(SETTINGS, PLANAR, 0.0, 10.0).sculpt(hex_mesh)
        assert np.array_equal(hex_mesh.vertices[:, [0, 2]], before)

    def test_returns_same_mesh(self, hex_mesh):
        assert Sculptor(SETTINGS, PLANAR, 0.0, 1.0).sculpt(hex_mesh) is hex_mesh

    def test_constant_noise_is_flat_at_max(self, hex_mesh):
        Sculptor(SETTINGS, PLANAR, 0.0, 4.0, noise=lambda x, y: 0.5).sculpt(hex_mesh)
        assert hex_mesh.vertices[:, 1] == pytest.approx(np.full(hex_mesh.vertex_count, 4.0))

    def test_zero_noise_is_flat_at_min(self, hex_mesh):
        Sculptor(SETTINGS, PLANAR, 0.0, 4.0, noise=lambda x, y: 0.0).sculpt(hex_mesh)
        assert (hex_mesh.vertices[:, 1] == 0.0).all()

    def test_deterministic(self, hex_mesh):
        other = hex_mesh.copy()
        Sculptor(SETTINGS, PLANAR, 0.0, 5.0).sculpt(hex_mesh)
        Sculptor(SETTINGS, PLANAR, 0.0, 5.0).sculpt(other)
        assert np.array_equal(hex_mesh.vertices, other.vertices)

    def test_seed_matters(self, hex_mesh):
        other = hex_mesh.copy()
        Sculptor(SETTINGS, PLANAR, 0.0, 5.0).sculpt(hex_mesh)
        Sculptor(SculptSettings(seed=13, base_frequency=0.2, octaves=3), PLANAR, 0.0, 5.0).sculpt(other)
        assert not np.array_equal(hex_mesh.vertices, other.vertices)

    def test_coincident_vertices_agree(self, hex_mesh):
        Sculptor(SETTINGS, PLANAR, 0.0, 5.0).sculpt(hex_mesh)
        xz = hex_mesh.vertices[:, [0, 2]]
        _, inverse = np.unique(xz, axis=0, return_inverse=True)
        inverse = inverse.reshape(-1)
        y = hex_mesh.vertices[:, 1]
        for group in np.unique(inverse)[:50]:
            ys = y[inverse == group]
            assert (ys == ys[0]).all()

    def test_curve_applied(self, hex_mesh):
        flat = hex_mesh.copy()
        Sculptor(SETTINGS, PLANAR, 0.0, 8.0).sculpt(hex_mesh)
        linear = SculptSettings(
            seed=12, base_frequency=0.2, octaves=3, height_curve=HeightCurve.linear(1.0, 1.0)
        )
        Sculptor(linear, PLANAR, 0.0, 8.0).sculpt(flat)
        # identity curve: max·n·n; constant curve: max·n
        n = flat.vertices[:, 1] / 8.0
        assert hex_mesh.vertices[:, 1] == pytest.approx(8.0 * n * n)

    def test_theoretical_normalization(self, hex_mesh):
        settings = SculptSettings(seed=1, octaves=1, normalization="theoretical")
        Sculptor(settings, PLANAR, 0.0, 10.0, noise=lambda x, y: 0.5).sculpt(hex_mesh)
        # n = 0.5 / 1.0, height = 10 · n · n
        assert hex_mesh.vertices[:, 1] == pytest.approx(np.full(hex_mesh.vertex_count, 2.5))

    def test_min_above_max_rejected(self):
        with pytest.raises(ConfigurationError):
            Sculptor(SETTINGS, PLANAR, 5.0, 1.0)


# ═══════════════════════════════════════════════════════════════════
# Radial sculpting
# ═══════════════════════════════════════════════════════════════════


class TestRadial:
    def test_magnitudes_within_bounds(self, sphere_mesh):
        Sculptor(SETTINGS, RADIAL, 5.0, 6.0).sculpt(sphere_mesh)
        r = np.linalg.norm(sphere_mesh.vertices, axis=1)
        assert r.min() >= 5.0 - 1e-9
        assert r.max() == pytest.approx(6.0)

    def test_directions_preserved(self, sphere_mesh):
        before = sphere_mesh.vertices / np.linalg.norm(sphere_mesh.vertices, axis=1, keepdims=True)
        Sculptor(SETTINGS, RADIAL, 5.0, 6.0).sculpt(sphere_mesh)
        after = sphere_mesh.vertices / np.linalg.norm(sphere_mesh.vertices, axis=1, keepdims=True)
        assert after == pytest.approx(before)

    def test_zero_noise_sits_on_min_sphere(self, sphere_mesh):
        Sculptor(SETTINGS, RADIAL, 5.0, 6.0, noise=lambda x, y: 0.0).sculpt(sphere_mesh)
        r = np.linalg.norm(sphere_mesh.vertices, axis=1)
        assert r == pytest.approx(np.full(sphere_mesh.vertex_count, 5.0))

    def test_uses_three_offsets_per_octave(self):
        sculptor = Sculptor(SETTINGS, RADIAL, 1.0, 2.0)
        offsets = sculptor._offsets()
        assert offsets.shape == (3, 3)
        assert offsets.min() >= -10_000
        assert offsets.max() < 10_000

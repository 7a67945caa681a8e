"""Tests for ``terracegen.config`` — terrace tables, TerrainConfig, presets."""

from __future__ import annotations

import json
from dataclasses import FrozenInstanceError

import pytest

from terracegen.config import (
    MAX_BUFFER_LENGTH,
    MESA,
    PLANETOID,
    PRESETS,
    ROLLING_HILLS,
    TerrainConfig,
    even_relative_heights,
    load_config,
    plane_sweep_table,
    save_config,
    terrace_heights,
)
from terracegen.curves import HeightCurve
from terracegen.errors import ConfigurationError, UnsupportedShapeError
from terracegen.height_models import PLANAR, RADIAL
from terracegen.sculpting import SculptSettings
from terracegen.shapes import IcosahedronGenerator, ShapeKind, SquareGenerator


# ═══════════════════════════════════════════════════════════════════
# Terrace height tables
# ═══════════════════════════════════════════════════════════════════


class TestTerraceHeights:
    def test_example(self):
        assert terrace_heights(10, 20, [0.1, 0.2, 0.3]) == pytest.approx([11.0, 12.0, 13.0])

    def test_endpoints(self):
        assert terrace_heights(2, 4, [0.0, 1.0]) == pytest.approx([2.0, 4.0])

    def test_empty(self):
        with pytest.raises(ConfigurationError, match="At least one"):
            terrace_heights(0, 1, [])

    @pytest.mark.parametrize("bad", [[-0.1], [0.5, 1.2]])
    def test_out_of_range(self, bad):
        with pytest.raises(ConfigurationError, match=r"\[0, 1\]"):
            terrace_heights(0, 1, bad)

    @pytest.mark.parametrize("bad", [[0.5, 0.5], [0.6, 0.2]])
    def test_not_ascending(self, bad):
        with pytest.raises(ConfigurationError, match="ascending"):
            terrace_heights(0, 1, bad)

    def test_even_spacing(self):
        assert even_relative_heights(4) == [0.0, 0.25, 0.5, 0.75]
        assert even_relative_heights(1) == [0.0]

    def test_even_spacing_count(self):
        with pytest.raises(ConfigurationError):
            even_relative_heights(0)


class TestPlaneSweepTable:
    def test_sentinels_bracket_vertices(self):
        assert plane_sweep_table([2.0, 6.0], [0.0, 5.0, 10.0]) == [0.0, 2.0, 6.0, 11.0]

    def test_sentinels_bracket_terraces(self):
        assert plane_sweep_table([2.0, 6.0], [3.0, 4.0]) == [2.0, 2.0, 6.0, 7.0]

    def test_length(self):
        assert len(plane_sweep_table([1.0, 2.0, 3.0], [0.0])) == 5

    def test_without_vertices(self):
        assert plane_sweep_table([1.0]) == [1.0, 1.0, 2.0]


# ═══════════════════════════════════════════════════════════════════
# TerrainConfig validation
# ═══════════════════════════════════════════════════════════════════


class TestValidation:
    def test_defaults(self):
        config = TerrainConfig()
        assert config.shape is ShapeKind.POLYGON
        assert config.terrace_count == 5
        assert config.height_model is PLANAR

    def test_shape_string_coerced(self):
        config = TerrainConfig(shape="sphere", min_height=1.0, max_height=2.0)
        assert config.shape is ShapeKind.SPHERE
        assert config.height_model is RADIAL

    def test_unknown_shape(self):
        with pytest.raises(ConfigurationError, match="Unknown shape"):
            TerrainConfig(shape="torus")

    def test_frozen(self):
        with pytest.raises(FrozenInstanceError):
            TerrainConfig().depth = 3

    def test_too_few_sides(self):
        with pytest.raises(ConfigurationError):
            TerrainConfig(sides=2)

    def test_too_many_sides(self):
        with pytest.raises(UnsupportedShapeError):
            TerrainConfig(sides=11)

    def test_radius(self):
        with pytest.raises(ConfigurationError, match="radius"):
            TerrainConfig(radius=0.0)

    def test_polygon_min_height(self):
        with pytest.raises(ConfigurationError, match="sphere"):
            TerrainConfig(min_height=1.0)

    def test_polygon_max_height(self):
        with pytest.raises(ConfigurationError, match="max_height"):
            TerrainConfig(max_height=0.0)

    def test_sphere_min_height_positive(self):
        with pytest.raises(ConfigurationError, match="min_height"):
            TerrainConfig(shape=ShapeKind.SPHERE, min_height=0.0, max_height=1.0)

    def test_sphere_min_not_above_max(self):
        with pytest.raises(ConfigurationError, match="exceed"):
            TerrainConfig(shape=ShapeKind.SPHERE, min_height=3.0, max_height=2.0)

    def test_sphere_equal_heights_single_terrace(self):
        config = TerrainConfig(shape=ShapeKind.SPHERE, min_height=2.0, max_height=2.0, terrace_count=1)
        assert config.terrace_heights == [2.0]

    @pytest.mark.parametrize("extra", [{"terrace_count": 3}, {"relative_heights": (0.0, 0.5)}, {}])
    def test_sphere_equal_heights_rejected(self, extra):
        with pytest.raises(ConfigurationError, match="strictly ascending"):
            TerrainConfig(shape=ShapeKind.SPHERE, min_height=5.0, max_height=5.0, **extra)

    def test_negative_depth(self):
        with pytest.raises(ConfigurationError, match="depth"):
            TerrainConfig(depth=-1)

    def test_buffer_overflow(self):
        # 3 · 6 · 4**13 fits, 3 · 6 · 4**14 does not
        TerrainConfig(sides=6, depth=13)
        with pytest.raises(ConfigurationError, match=str(MAX_BUFFER_LENGTH)):
            TerrainConfig(sides=6, depth=14)

    def test_heights_and_count_exclusive(self):
        with pytest.raises(ConfigurationError, match="not both"):
            TerrainConfig(relative_heights=(0.0, 0.5), terrace_count=2)

    def test_bad_relative_heights(self):
        with pytest.raises(ConfigurationError, match="ascending"):
            TerrainConfig(relative_heights=(0.5, 0.1))

    def test_bad_terrace_count(self):
        with pytest.raises(ConfigurationError, match="terrace_count"):
            TerrainConfig(terrace_count=0)


# ═══════════════════════════════════════════════════════════════════
# Derived values
# ═══════════════════════════════════════════════════════════════════


class TestDerived:
    def test_terrace_heights_explicit(self):
        config = TerrainConfig(
            shape=ShapeKind.SPHERE, min_height=10.0, max_height=20.0, relative_heights=(0.1, 0.2, 0.3)
        )
        assert config.terrace_heights == pytest.approx([11.0, 12.0, 13.0])

    def test_terrace_heights_even(self):
        config = TerrainConfig(max_height=8.0, terrace_count=4)
        assert config.terrace_heights == pytest.approx([0.0, 2.0, 4.0, 6.0])

    def test_base_triangle_count(self):
        assert TerrainConfig(sides=3).base_triangle_count == 1
        assert TerrainConfig(sides=4).base_triangle_count == 2
        assert TerrainConfig(sides=7).base_triangle_count == 7
        assert PLANETOID.base_triangle_count == 20

    def test_shape_generator(self):
        assert isinstance(TerrainConfig(sides=4).shape_generator(), SquareGenerator)
        gen = PLANETOID.shape_generator()
        assert isinstance(gen, IcosahedronGenerator)
        assert gen.radius == PLANETOID.min_height

    def test_with_seed(self):
        config = ROLLING_HILLS.with_seed(99)
        assert config.sculpt.seed == 99
        assert config.depth == ROLLING_HILLS.depth
        assert ROLLING_HILLS.sculpt.seed == 1


# ═══════════════════════════════════════════════════════════════════
# Serialisation and presets
# ═══════════════════════════════════════════════════════════════════


class TestSerialisation:
    @pytest.mark.parametrize("name", sorted(PRESETS))
    def test_preset_round_trip(self, name):
        config = PRESETS[name]
        assert TerrainConfig.from_dict(config.to_dict()) == config

    def test_to_dict_is_json(self):
        json.dumps(MESA.to_dict())

    def test_unknown_keys(self):
        with pytest.raises(ConfigurationError, match="Unknown config keys"):
            TerrainConfig.from_dict({"sides": 5, "colour": "red"})

    def test_missing_sculpt_uses_defaults(self):
        config = TerrainConfig.from_dict({"sides": 5})
        assert config.sculpt == SculptSettings()

    def test_save_load(self, tmp_path):
        path = tmp_path / "mesa.json"
        save_config(MESA, path)
        loaded = load_config(path)
        assert loaded == MESA
        assert loaded.sculpt.height_curve == HeightCurve.ease_in()

    def test_invalid_file_rejected(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"sides": 12}), encoding="utf-8")
        with pytest.raises(UnsupportedShapeError):
            load_config(path)

"""Tests for ``terracegen.curves`` — monotone height-response curves."""

from __future__ import annotations

import numpy as np
import pytest

from terracegen.curves import HeightCurve
from terracegen.errors import ConfigurationError


class TestEvaluation:
    @pytest.mark.parametrize("t", [0.0, 0.1, 0.25, 0.5, 0.9, 1.0])
    def test_identity(self, t):
        assert HeightCurve.identity()(t) == pytest.approx(t)

    def test_clamps_input(self):
        curve = HeightCurve.identity()
        assert curve(-1.0) == 0.0
        assert curve(2.0) == 1.0

    def test_scalar_returns_float(self):
        assert isinstance(HeightCurve.identity()(0.3), float)

    def test_vectorised(self):
        out = HeightCurve.identity()(np.array([0.0, 0.5, 1.0]))
        assert out.shape == (3,)
        assert out == pytest.approx([0.0, 0.5, 1.0])

    def test_constant_curve(self):
        flat = HeightCurve.linear(1.0, 1.0)
        assert flat(np.linspace(0, 1, 11)) == pytest.approx([1.0] * 11)

    def test_passes_through_control_points(self):
        curve = HeightCurve.from_points([(0, 0), (0.3, 0.1), (0.7, 0.8), (1, 1)])
        assert curve(0.3) == pytest.approx(0.1)
        assert curve(0.7) == pytest.approx(0.8)

    def test_ease_in_monotone_and_bounded(self):
        ts = np.linspace(0, 1, 501)
        vals = HeightCurve.ease_in()(ts)
        assert (np.diff(vals) >= -1e-12).all()
        assert vals.min() >= 0.0
        assert vals.max() <= 1.0


class TestValidation:
    def test_needs_two_points(self):
        with pytest.raises(ConfigurationError, match="two"):
            HeightCurve([(0.0, 0.0)])

    def test_must_span_unit_interval(self):
        with pytest.raises(ConfigurationError, match="span"):
            HeightCurve([(0.1, 0.0), (1.0, 1.0)])
        with pytest.raises(ConfigurationError, match="span"):
            HeightCurve([(0.0, 0.0), (0.9, 1.0)])

    def test_t_strictly_ascending(self):
        with pytest.raises(ConfigurationError, match="ascending"):
            HeightCurve([(0.0, 0.0), (0.5, 0.2), (0.5, 0.3), (1.0, 1.0)])

    def test_values_in_unit_range(self):
        with pytest.raises(ConfigurationError, match=r"\[0, 1\]"):
            HeightCurve([(0.0, 0.0), (1.0, 1.5)])

    def test_values_non_decreasing(self):
        with pytest.raises(ConfigurationError, match="decrease"):
            HeightCurve([(0.0, 0.5), (1.0, 0.2)])


class TestValueSemantics:
    def test_equality_and_hash(self):
        a = HeightCurve.from_points([[0, 0], [1, 1]])
        b = HeightCurve.identity()
        assert a == b
        assert hash(a) == hash(b)
        assert a != HeightCurve.ease_in()

    def test_to_list_round_trip(self):
        curve = HeightCurve.ease_in()
        assert HeightCurve.from_points(curve.to_list()) == curve

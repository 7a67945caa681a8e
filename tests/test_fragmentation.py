"""Tests for ``terracegen.fragmentation`` — midpoint subdivision."""

from __future__ import annotations

import numpy as np
import pytest

from terracegen.errors import ConfigurationError
from terracegen.fragmentation import (
    MeshFragmenter,
    fragment,
    triangle_count_for_depth,
    vertex_count_for_depth,
)
from terracegen.height_models import PLANAR, RADIAL
from terracegen.shapes import IcosahedronGenerator, SquareGenerator, TriangleGenerator


# ═══════════════════════════════════════════════════════════════════
# Counts
# ═══════════════════════════════════════════════════════════════════


class TestCounts:
    def test_depth_zero_returns_same_object(self):
        mesh = TriangleGenerator(1.0).generate()
        assert fragment(mesh, 0) is mesh

    @pytest.mark.parametrize("depth", [1, 2, 3])
    def test_triangle_counts(self, depth):
        mesh = TriangleGenerator(1.0).generate()
        out = fragment(mesh, depth)
        assert out.triangle_count == 4 ** depth
        assert out.vertex_count == 6 * 4 ** (depth - 1)

    def test_closed_forms(self):
        assert triangle_count_for_depth(20, 0) == 20
        assert triangle_count_for_depth(20, 3) == 20 * 64
        assert vertex_count_for_depth(20, 12, 0) == 12
        assert vertex_count_for_depth(20, 12, 1) == 120
        assert vertex_count_for_depth(20, 12, 2) == 480

    def test_counts_match_closed_forms(self):
        mesh = IcosahedronGenerator(1.0).generate()
        out = fragment(mesh, 2, RADIAL.midpoint)
        assert out.triangle_count == triangle_count_for_depth(20, 2)
        assert out.vertex_count == vertex_count_for_depth(20, 12, 2)

    def test_negative_depth(self):
        with pytest.raises(ConfigurationError):
            fragment(TriangleGenerator(1.0).generate(), -1)
        with pytest.raises(ConfigurationError):
            MeshFragmenter(-2)


# ═══════════════════════════════════════════════════════════════════
# Geometry
# ═══════════════════════════════════════════════════════════════════


class TestGeometry:
    def test_input_untouched(self):
        mesh = SquareGenerator(1.0).generate()
        before = mesh.copy()
        fragment(mesh, 2)
        assert np.array_equal(mesh.vertices, before.vertices)
        assert np.array_equal(mesh.indices, before.indices)

    def test_indices_in_range(self):
        out = fragment(SquareGenerator(1.0).generate(), 3)
        out.validate()

    def test_child_layout(self):
        mesh = TriangleGenerator(2.0).generate()
        out = fragment(mesh, 1)
        v1, v2, v3 = mesh.vertices
        m12 = (v1 + v2) / 2
        assert out.vertices[0] == pytest.approx(v1)
        assert out.vertices[3] == pytest.approx(m12)
        assert out.indices.tolist() == [[0, 3, 5], [3, 1, 4], [4, 2, 5], [3, 4, 5]]

    def test_shared_midpoints_are_identical(self):
        """The square's diagonal midpoint is computed by both triangles."""
        out = fragment(SquareGenerator(1.0).generate(), 1)
        assert len(np.unique(out.vertices, axis=0)) == 9

    def test_compositional(self):
        mesh = SquareGenerator(3.0).generate()
        twice = fragment(fragment(mesh, 1), 1)
        once = fragment(mesh, 2)
        assert np.array_equal(twice.vertices, once.vertices)
        assert np.array_equal(twice.indices, once.indices)

    def test_planar_stays_flat(self):
        out = fragment(TriangleGenerator(1.0).generate(), 3, PLANAR.midpoint)
        assert (out.vertices[:, 1] == 0.0).all()

    def test_total_area_preserved(self):
        mesh = SquareGenerator(2.0).generate()
        out = fragment(mesh, 2)
        v = out.vertices
        i = out.indices
        area = np.linalg.norm(np.cross(v[i[:, 1]] - v[i[:, 0]], v[i[:, 2]] - v[i[:, 0]]), axis=1).sum() / 2
        side = 2.0 * np.sqrt(2.0)
        assert area == pytest.approx(side * side)

    def test_sphere_preserved(self):
        out = MeshFragmenter(3, RADIAL).fragment(IcosahedronGenerator(2.0).generate())
        assert np.linalg.norm(out.vertices, axis=1) == pytest.approx(np.full(out.vertex_count, 2.0))

    def test_fragmenter_repr(self):
        assert "depth=2" in repr(MeshFragmenter(2))

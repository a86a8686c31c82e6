"""
Tests for cap/peak detection and base-face classification.
"""

from collections import Counter

import numpy as np
import pytest

from polyhedra_ops import Cap, Peak, get_base_type, get_solid
from polyhedra_ops.geom import get_orthonormal_transform


class TestPeaks:
    """Test Peak.get_all."""

    def test_octahedron_has_six_pyramids(self, octahedron):
        peaks = Peak.get_all(octahedron)
        assert len(peaks) == 6
        assert {peak.kind for peak in peaks} == {"pyramid"}
        for peak in peaks:
            assert len(peak.inner_vertex_indices()) == 1
            assert peak.boundary().num_sides == 4

    def test_platonic_without_peaks(self, cube):
        """Cutting a face off a cube would leave a single square."""
        assert Peak.get_all(cube) == []

    def test_rhombicosidodecahedron_cupolas(self, rhombicosidodecahedron):
        peaks = Peak.get_all(rhombicosidodecahedron)
        assert len(peaks) == 12
        assert {peak.kind for peak in peaks} == {"cupola"}
        assert {peak.boundary().num_sides for peak in peaks} == {10}

    def test_icosahedron_pyramids(self):
        peaks = Peak.get_all(get_solid("icosahedron"))
        assert len(peaks) == 12
        assert all(peak.boundary().num_sides == 5 for peak in peaks)

    def test_icosidodecahedron_rotundas(self):
        peaks = Peak.get_all(get_solid("icosidodecahedron"))
        assert {peak.kind for peak in peaks} == {"rotunda"}
        assert len(peaks) == 12
        assert all(len(peak.inner_vertex_indices()) == 10 for peak in peaks)

    def test_pentagonal_prism_peaks(self):
        peaks = Peak.get_all(get_solid("pentagonal-prism"))
        assert peaks == []

    def test_boundary_points_towards_peak(self, octahedron):
        for peak in Peak.get_all(octahedron):
            boundary = peak.boundary()
            apex = octahedron.vertices[peak.top[0]]
            assert np.dot(apex - boundary.centroid(), boundary.normal()) > 0

    def test_unknown_kind(self, cube):
        with pytest.raises(ValueError):
            Peak(cube, (0,), "wedge")

    def test_equals(self, octahedron):
        peaks = Peak.get_all(octahedron)
        again = Peak.get_all(get_solid("octahedron"))
        assert peaks[0].equals(again[0])
        assert not peaks[0].equals(peaks[1])


class TestCaps:
    """Test Cap.get_all, which also reports caps forming the whole solid."""

    @pytest.mark.parametrize("name,kind", [
        ("square-pyramid", "pyramid"),
        ("triangular-cupola", "cupola"),
        ("square-cupola", "cupola"),
        ("pentagonal-rotunda", "rotunda"),
    ])
    def test_augmentee_is_its_own_cap(self, name, kind):
        caps = Cap.get_all(get_solid(name))
        assert kind in {cap.kind for cap in caps}

    def test_fastigium_type_is_cupola(self):
        caps = Cap.get_all(get_solid("triangular-prism"))
        assert caps
        assert {cap.kind for cap in caps} == {"fastigium"}
        assert {cap.type for cap in caps} == {"cupola"}

    def test_cube_has_no_caps(self, cube):
        assert Cap.get_all(cube) == []

    def test_caps_exclude_prisms(self):
        caps = Cap.get_all(get_solid("hexagonal-prism"))
        assert all(cap.kind not in ("prism", "antiprism") for cap in caps)


class TestBaseType:
    """Test get_base_type."""

    @pytest.mark.parametrize("name,sides,expected", [
        ("cube", 4, "prism"),
        ("hexagonal-prism", 6, "prism"),
        ("square-pyramid", 4, "pyramid"),
        ("octahedron", 3, "antiprism"),
        ("square-antiprism", 4, "antiprism"),
        ("square-cupola", 8, "cupola"),
        ("pentagonal-rotunda", 10, "rotunda"),
        ("pentagonal-cupola", 3, "truncated"),
    ])
    def test_classification(self, name, sides, expected):
        face = get_solid(name).face_with_num_sides(sides)
        assert get_base_type(face) == expected

    def test_diminished_rhombicosidodecahedron(self, diminished_rhombicosidodecahedron):
        decagon = diminished_rhombicosidodecahedron.face_with_num_sides(10)
        assert get_base_type(decagon) == "rhombicosidodecahedron"

    @pytest.mark.parametrize("name", ["square-cupola", "pentagonal-rotunda", "octahedron"])
    def test_invariant_under_relabeling(self, name):
        """Rotating a face's vertex loop does not change its classification."""
        solid = get_solid(name)
        for f, face in enumerate(solid.faces):
            expected = get_base_type(solid.get_face(f))
            for shift in range(1, len(face)):
                rotated = face[shift:] + face[:shift]
                faces = solid.faces[:f] + (rotated,) + solid.faces[f + 1:]
                assert get_base_type(solid.with_faces(faces).get_face(f)) == expected

    def test_invariant_under_rotation(self):
        solid = get_solid("pentagonal-rotunda")
        rotate = get_orthonormal_transform([1, 0, 0], [0, 1, 0], [0, 0.6, 0.8], [1, 0, 0])
        rotated = solid.with_vertices(rotate(solid.vertices))
        for f in range(solid.num_faces):
            assert get_base_type(rotated.get_face(f)) == get_base_type(solid.get_face(f))

    def test_icosahedron_faces_are_antiprism_bases(self):
        """Triangles around an icosahedron face meet at no common apex."""
        counts = Counter(
            get_base_type(face) for face in get_solid("icosahedron").get_faces()
        )
        assert counts == Counter({"antiprism": 20})

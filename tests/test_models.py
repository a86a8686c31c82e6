"""
Test suite for the Polyhedron model and its face/edge/vertex views.
"""

import numpy as np
import pytest

from polyhedra_ops import InvalidTarget, Polyhedron, get_solid


# =============================================================================
# Construction Tests
# =============================================================================

class TestConstruction:
    """Test Polyhedron construction and validation of raw data."""

    def test_vertices_are_read_only(self, cube):
        with pytest.raises(ValueError):
            cube.vertices[0, 0] = 10.0

    def test_rejects_bad_vertex_shape(self):
        with pytest.raises(ValueError):
            Polyhedron("bad", np.zeros((4, 2)), ((0, 1, 2),))

    def test_rejects_short_face(self):
        with pytest.raises(ValueError):
            Polyhedron("bad", np.zeros((4, 3)), ((0, 1),))

    def test_rejects_missing_vertex(self):
        with pytest.raises(ValueError):
            Polyhedron("bad", np.zeros((4, 3)), ((0, 1, 7),))

    def test_faces_are_tuples(self):
        poly = Polyhedron("tri", [[0, 0, 0], [1, 0, 0], [0, 1, 0]], [[0, 1, 2]])
        assert poly.faces == ((0, 1, 2),)


# =============================================================================
# Topology Tests
# =============================================================================

class TestTopology:
    """Test derived edge and face structure."""

    def test_get_edges(self, octahedron):
        """Octahedron has 12 edges."""
        assert len(octahedron.get_edges()) == 12

    def test_euler_characteristic(self, cube, octahedron):
        """Test Euler's formula V - E + F = 2."""
        assert cube.euler_characteristic() == 2
        assert octahedron.euler_characteristic() == 2

    def test_is_valid(self, cube):
        assert cube.is_valid()

    def test_open_surface_is_invalid(self, cube):
        assert not cube.without_faces([0]).is_valid()

    def test_face_graph(self, cube):
        graph = cube.face_graph()
        assert len(graph) == 6
        for f, neighbours in graph.items():
            assert len(set(neighbours)) == 4
            assert f not in neighbours

    def test_numpy_face_indices(self, cube):
        """Face queries accept numpy integers as well as ints."""
        index = np.int64(0)
        assert cube.num_sides(index) == 4
        assert len(cube.adjacent_faces(index)) == 4
        assert cube.without_faces([np.int64(1)]).num_faces == 5

    def test_adjacent_faces_follow_edges(self, square_pyramid):
        """Entry i of adjacent_faces lies across edge i."""
        face = square_pyramid.face_with_num_sides(4)
        for edge, adjacent in zip(face.edges(), face.adjacent_faces()):
            assert edge.v2 in adjacent.vertex_indices
            assert edge.v1 in adjacent.vertex_indices
            assert adjacent.num_sides == 3

    def test_edge_twin_and_next(self, cube):
        edge = cube.get_face(0).edges()[0]
        assert edge.twin().vertex_indices == (edge.v2, edge.v1)
        assert edge.twin().twin().vertex_indices == edge.vertex_indices
        assert edge.next().v1 == edge.v2
        assert edge.face().index == 0
        assert edge.twin_face().index != 0

    def test_edge_measures(self, cube):
        edge = cube.get_face(0).edges()[0]
        assert edge.length() == pytest.approx(1.0)
        assert edge.dihedral_angle() == pytest.approx(np.pi / 2)
        assert np.linalg.norm(edge.normal()) == pytest.approx(1.0)

    def test_dihedral_angle_from_pair(self, octahedron):
        a, b = octahedron.faces[0][:2]
        assert octahedron.dihedral_angle((a, b)) == pytest.approx(np.arccos(-1 / 3))

    def test_vertex_adjacent_faces(self, octahedron):
        assert len(octahedron.get_vertex(0).adjacent_faces()) == 4

    def test_missing_edge_raises(self, cube):
        from polyhedra_ops.models import Edge

        with pytest.raises(InvalidTarget):
            Edge(cube, 0, 0).face()

    def test_get_face_out_of_range(self, cube):
        with pytest.raises(InvalidTarget):
            cube.get_face(6)

    def test_face_with_num_sides(self, square_pyramid):
        assert square_pyramid.face_with_num_sides(4).num_sides == 4
        with pytest.raises(ValueError):
            square_pyramid.face_with_num_sides(5)


# =============================================================================
# Face Tests
# =============================================================================

class TestFaces:
    """Test face geometry."""

    def test_normals_point_outward(self):
        for name in ("cube", "square-pyramid", "pentagonal-rotunda"):
            poly = get_solid(name)
            center = poly.centroid()
            for face in poly.get_faces():
                assert np.dot(face.normal(), face.centroid() - center) > 0

    def test_faces_are_planar(self, rhombicosidodecahedron):
        assert all(face.is_planar() for face in rhombicosidodecahedron.get_faces())

    def test_side_length(self, cube):
        assert cube.get_face(0).side_length() == pytest.approx(1.0)

    def test_contains_point(self, cube):
        face = cube.get_face(0)
        assert face.contains_point(face.centroid())
        assert face.contains_point(face.centroid() + face.normal())
        assert not face.contains_point(face.centroid() + 2 * face.edges()[0].normal())

    def test_equals(self, cube):
        assert cube.get_face(1).equals(get_solid("cube").get_face(1))
        assert not cube.get_face(1).equals(cube.get_face(2))


# =============================================================================
# Hit Testing
# =============================================================================

class TestHitTesting:
    """Test resolving 3D points to faces and peaks."""

    def test_hit_face(self, cube):
        for face in cube.get_faces():
            hit = cube.hit_face(face.centroid())
            assert hit is not None
            assert hit.index == face.index

    def test_hit_face_far_away(self, cube):
        """A point beyond every face's outline hits nothing."""
        assert cube.hit_face([5.0, 5.0, 5.0]) is None

    def test_find_peak(self, octahedron):
        face = octahedron.get_face(0)
        peak = octahedron.find_peak(face.centroid())
        assert peak is not None
        assert face.index in peak.face_indices()

    def test_find_peak_none(self, cube):
        assert cube.find_peak(cube.get_face(0).centroid()) is None


# =============================================================================
# Builder Tests
# =============================================================================

class TestBuilders:
    """Test the functional builders."""

    def test_builders_do_not_mutate(self, cube):
        faces = cube.faces
        cube.without_faces([0])
        cube.with_name("box")
        assert cube.faces == faces
        assert cube.name == "cube"

    def test_with_changes(self, cube):
        renamed = cube.with_changes(lambda solid: solid.with_name("box"))
        assert renamed.name == "box"
        assert renamed.equals(cube)

    def test_equals_ignores_name(self, cube):
        assert cube.with_name("box").equals(cube)
        assert not cube.equals(cube.translate([1, 0, 0]))

    def test_without_faces_accepts_faces(self, cube):
        assert cube.without_faces([cube.get_face(0), 1]).num_faces == 4

    def test_remove_extraneous_vertices(self, square_pyramid):
        apex = next(
            v for v in range(square_pyramid.num_vertices)
            if len(square_pyramid.get_vertex(v).adjacent_faces()) == 4
        )
        base = square_pyramid.face_with_num_sides(4)
        flat = square_pyramid.with_faces([base.vertex_indices]).remove_extraneous_vertices()
        assert flat.num_vertices == 4
        assert not np.any(np.all(np.isclose(flat.vertices, square_pyramid.vertices[apex]), axis=1))

    def test_add_polyhedron_merges_shared_vertices(self, cube):
        """Two cubes glued on a face share its four vertices."""
        top = cube.get_face(0)
        other = cube.translate(top.normal()).without_faces([
            f for f in range(cube.num_faces)
            if np.allclose(cube.get_face(f).normal(), -top.normal())
        ])
        glued = cube.without_faces([top]).add_polyhedron(other)
        assert glued.num_vertices == 12
        assert glued.num_faces == 10
        assert glued.is_valid()

    def test_add_polyhedron_keeps_original_indices(self, cube):
        top = cube.get_face(0)
        other = cube.translate(top.normal())
        combined = cube.add_polyhedron(other)
        assert np.allclose(combined.vertices[:cube.num_vertices], cube.vertices)

    def test_translate_and_center(self, cube):
        moved = cube.translate(np.array([1, 2, 3]))
        assert np.allclose(moved.centroid(), cube.centroid() + [1, 2, 3])
        assert np.allclose(moved.center().centroid(), [0, 0, 0], atol=1e-10)

    def test_scale_to_unit(self, cube):
        scaled = cube.scale_to_unit()
        max_dist = np.max(np.linalg.norm(scaled.vertices, axis=1))
        assert max_dist == pytest.approx(1.0, abs=1e-10)

    def test_to_dict(self, octahedron):
        d = octahedron.to_dict()
        assert d["name"] == "octahedron"
        assert len(d["vertices"]) == 6
        assert len(d["faces"]) == 8

"""Shared fixtures for the polyhedra_ops test suite."""

from __future__ import annotations

import numpy as np
import pytest
from scipy.spatial import cKDTree

from polyhedra_ops import Peak, get_solid
from polyhedra_ops.operations.diminish import remove_peak


def _same_shape(a, b, tolerance=1e-6):
    """True if two polyhedra have the same vertices and faces up to reindexing."""
    if a.num_vertices != b.num_vertices or a.num_faces != b.num_faces:
        return False

    distances, nearest = cKDTree(b.vertices).query(a.vertices)
    if np.any(distances > tolerance) or len(set(nearest.tolist())) != a.num_vertices:
        return False

    faces_a = {frozenset(int(nearest[i]) for i in face) for face in a.faces}
    faces_b = {frozenset(face) for face in b.faces}
    return faces_a == faces_b


@pytest.fixture
def same_shape():
    return _same_shape


@pytest.fixture
def cube():
    return get_solid("cube")


@pytest.fixture
def square_pyramid():
    return get_solid("square-pyramid")


@pytest.fixture
def octahedron():
    return get_solid("octahedron")


@pytest.fixture
def rhombicosidodecahedron():
    return get_solid("rhombicosidodecahedron")


@pytest.fixture
def diminished_rhombicosidodecahedron(rhombicosidodecahedron):
    """Rhombicosidodecahedron with one pentagonal cupola cut off."""
    peak = Peak.get_all(rhombicosidodecahedron)[0]
    return remove_peak(rhombicosidodecahedron, peak)

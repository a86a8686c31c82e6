"""
Named-solid catalog.

Builds the base solids the operations start from and attach. Each solid is
described by its vertex coordinates; faces are recovered from the convex
hull by grouping hull facets into planes and ordering the on-plane vertices
counter-clockwise when seen from outside. All catalog solids have unit
edge length.
"""

import itertools
import logging
from collections.abc import Callable

import numpy as np
from scipy.spatial import ConvexHull, cKDTree

from .errors import UnknownSolid
from .geom import PRECISION, normalize
from .models import Polyhedron

logger = logging.getLogger(__name__)

PHI = (1 + np.sqrt(5)) / 2


def _merge_repeated_points(points: np.ndarray, tolerance: float = 1e-8) -> np.ndarray:
    """Keep the first of every group of generator points closer than *tolerance*."""
    repeats = {j for _, j in cKDTree(points).query_pairs(tolerance)}
    return points[[i for i in range(len(points)) if i not in repeats]]


def _unique_planes(
    equations: np.ndarray,
    tolerance: float = 1e-6
) -> list[tuple[np.ndarray, float]]:
    """Collapse hull facet equations that describe the same plane.

    Args:
        equations: Rows ``[nx, ny, nz, offset]`` with ``n . x + offset = 0``

    Returns:
        List of (outward unit normal, distance from origin) pairs
    """
    planes: list[np.ndarray] = []
    for eq in equations:
        if not any(np.allclose(eq, kept, atol=tolerance) for kept in planes):
            planes.append(eq)
    return [(eq[:3], -eq[3]) for eq in planes]


def plane_face_loop(
    vertices: np.ndarray,
    normal: np.ndarray,
    distance: float,
    tolerance: float = 1e-6
) -> list[int]:
    """Indices of the vertices on the plane ``normal . x = distance``.

    The loop runs counter-clockwise seen from the side *normal* points to.
    Fewer than three points on the plane give an empty loop.
    """
    on_plane = np.flatnonzero(np.abs(vertices @ normal - distance) < tolerance)
    if len(on_plane) < 3:
        return []

    offsets = vertices[on_plane] - vertices[on_plane].mean(axis=0)
    u = normalize(offsets[0] - np.dot(offsets[0], normal) * normal)
    angles = np.arctan2(offsets @ np.cross(normal, u), offsets @ u)
    return on_plane[np.argsort(angles)].tolist()


def solid_from_points(name: str, points: np.ndarray) -> Polyhedron:
    """Build the convex polyhedron spanned by a set of points.

    Every point must be a vertex of the hull; duplicates are merged.

    Args:
        name: Identifier of the solid
        points: Nx3 array of vertex positions

    Returns:
        Polyhedron with polygonal (not triangulated) faces
    """
    vertices = _merge_repeated_points(np.asarray(points, dtype=float))
    hull = ConvexHull(vertices)
    if len(hull.vertices) != len(vertices):
        raise ValueError(f"{name}: {len(vertices) - len(hull.vertices)} points are not hull vertices")

    faces = [
        plane_face_loop(vertices, normal, distance)
        for normal, distance in _unique_planes(hull.equations)
    ]
    solid = Polyhedron(name, vertices, tuple(faces))
    logger.debug("Built solid %s (%d vertices, %d faces)", name, solid.num_vertices, solid.num_faces)
    return solid


# =============================================================================
# Coordinate generators
# =============================================================================

def _circumradius(n: int) -> float:
    """Circumradius of a regular n-gon with unit sides."""
    return 1 / (2 * np.sin(np.pi / n))


def _regular_polygon(n: int, z: float = 0.0, phase: float = 0.0) -> np.ndarray:
    """Unit-edge regular n-gon in the plane at height *z*."""
    radius = _circumradius(n)
    angles = phase + 2 * np.pi * np.arange(n) / n
    return np.column_stack([radius * np.cos(angles), radius * np.sin(angles), np.full(n, z)])


def _sign_variants(point: tuple[float, float, float]) -> list[tuple[float, ...]]:
    return [
        tuple(s * c for s, c in zip(signs, point))
        for signs in itertools.product((1, -1), repeat=3)
    ]


def _cyclic(points: list[tuple[float, ...]]) -> list[tuple[float, ...]]:
    return [p[i:] + p[:i] for p in points for i in range(3)]


def pyramid_points(n: int) -> np.ndarray:
    base = _regular_polygon(n)
    height = np.sqrt(1 - _circumradius(n) ** 2)
    return np.vstack([base, [[0.0, 0.0, height]]])


def prism_points(n: int) -> np.ndarray:
    return np.vstack([_regular_polygon(n), _regular_polygon(n, z=1.0)])


def antiprism_points(n: int) -> np.ndarray:
    offset = 2 * _circumradius(n) * np.sin(np.pi / (2 * n))
    height = np.sqrt(1 - offset ** 2)
    return np.vstack([_regular_polygon(n), _regular_polygon(n, z=height, phase=np.pi / n)])


def cupola_points(n: int) -> np.ndarray:
    """Unit-edge n-cupola: n-gon top over a 2n-gon base, joined by squares
    and triangles."""
    bottom = _regular_polygon(2 * n, phase=np.pi / (2 * n))
    # Horizontal gap between a square's top and bottom edges
    run = (
        _circumradius(2 * n) * np.cos(np.pi / (2 * n))
        - _circumradius(n) * np.cos(np.pi / n)
    )
    top = _regular_polygon(n, z=np.sqrt(1 - run ** 2), phase=np.pi / n)
    return np.vstack([bottom, top])


def icosahedron_points() -> np.ndarray:
    return np.array(_cyclic([p for p in _sign_variants((0.0, 1.0, PHI))])) / 2


def icosidodecahedron_points() -> np.ndarray:
    """Edge midpoints of the unit icosahedron, rescaled to unit edge."""
    icosahedron = solid_from_points("icosahedron", icosahedron_points())
    v = icosahedron.vertices
    return np.array([(v[a] + v[b]) for a, b in icosahedron.get_edges()])


def rotunda_points() -> np.ndarray:
    """Half of the icosidodecahedron cut along a decagon."""
    points = icosidodecahedron_points()
    axis = np.array([0.0, 1.0, PHI])
    axis /= np.linalg.norm(axis)
    return points[points @ axis > -PRECISION]


def rhombicosidodecahedron_points() -> np.ndarray:
    """Expanded icosahedron: every face pushed out until the gaps are unit squares."""
    icosahedron = solid_from_points("icosahedron", icosahedron_points())
    faces = icosahedron.get_faces()
    normals = [face.normal() for face in faces]
    adjacent = faces[0].adjacent_faces()[0]
    shift = 1 / np.linalg.norm(normals[0] - normals[adjacent.index])
    return np.array([
        icosahedron.vertices[i] + shift * normal
        for face, normal in zip(faces, normals)
        for i in face.vertex_indices
    ])


def dodecahedron_points() -> np.ndarray:
    cube = _sign_variants((1.0, 1.0, 1.0))
    rest = _cyclic(_sign_variants((0.0, 1 / PHI, PHI)))
    return np.array(cube + rest) * PHI / 2


def cuboctahedron_points() -> np.ndarray:
    points = {q for p in itertools.permutations((1.0, 1.0, 0.0)) for q in _sign_variants(p)}
    return np.array(sorted(points)) / np.sqrt(2)


def octahedron_points() -> np.ndarray:
    points = {q for p in itertools.permutations((1.0, 0.0, 0.0)) for q in _sign_variants(p)}
    return np.array(sorted(points)) / np.sqrt(2)


def cube_points() -> np.ndarray:
    return np.array(_sign_variants((0.5, 0.5, 0.5)))


# =============================================================================
# Catalog
# =============================================================================

_SOLID_POINTS: dict[str, Callable[[], np.ndarray]] = {
    # Platonic and Archimedean
    "tetrahedron": lambda: pyramid_points(3),
    "cube": cube_points,
    "octahedron": octahedron_points,
    "dodecahedron": dodecahedron_points,
    "icosahedron": icosahedron_points,
    "cuboctahedron": cuboctahedron_points,
    "icosidodecahedron": icosidodecahedron_points,
    "rhombicosidodecahedron": rhombicosidodecahedron_points,
    # Pyramids, cupolae and rotunda (the augmentees)
    "square-pyramid": lambda: pyramid_points(4),
    "pentagonal-pyramid": lambda: pyramid_points(5),
    "triangular-cupola": lambda: cupola_points(3),
    "square-cupola": lambda: cupola_points(4),
    "pentagonal-cupola": lambda: cupola_points(5),
    "pentagonal-rotunda": rotunda_points,
    # Prisms and antiprisms
    "triangular-prism": lambda: prism_points(3),
    "pentagonal-prism": lambda: prism_points(5),
    "hexagonal-prism": lambda: prism_points(6),
    "octagonal-prism": lambda: prism_points(8),
    "decagonal-prism": lambda: prism_points(10),
    "square-antiprism": lambda: antiprism_points(4),
    "pentagonal-antiprism": lambda: antiprism_points(5),
}


def get_solid(name: str) -> Polyhedron:
    """Build the named catalog solid.

    Args:
        name: Catalog name such as 'square-pyramid'

    Returns:
        A fresh Polyhedron with unit edges

    Raises:
        UnknownSolid: If the name is not in the catalog
    """
    try:
        points = _SOLID_POINTS[name]
    except KeyError:
        raise UnknownSolid(name) from None
    return solid_from_points(name, points())


get_solid_by_name = get_solid


def list_solids() -> list[str]:
    """Names of all catalog solids."""
    return sorted(_SOLID_POINTS)

"""
Polyhedron data model.

A Polyhedron is an immutable value: a name, an (N, 3) vertex array and a
tuple of faces, each face a tuple of vertex indices ordered
counter-clockwise when seen from outside. Faces, edges and vertices are
lightweight views created on demand; derived structure (edge/face maps)
is recomputed per query rather than stored on the value.
"""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, NamedTuple

import numpy as np
from scipy.spatial import cKDTree

from .config import SETTINGS
from .errors import InvalidTarget
from .geom import PRECISION, angle_between, centroid, normalize, polygon_normal, vectors_close

if TYPE_CHECKING:
    from .caps import Peak

logger = logging.getLogger(__name__)


class Topology(NamedTuple):
    """Incidence maps of a polyhedron, computed in one pass over its faces."""

    edge_faces: dict[tuple[int, int], int]
    vertex_faces: list[list[int]]


class Vertex:
    """A vertex of a polyhedron, identified by its index."""

    def __init__(self, polyhedron: Polyhedron, index: int):
        self.polyhedron = polyhedron
        self.index = index

    @property
    def vec(self) -> np.ndarray:
        return self.polyhedron.vertices[self.index]

    def adjacent_faces(self, topology: Topology | None = None) -> list[Face]:
        topology = topology or self.polyhedron.topology()
        return [
            self.polyhedron.get_face(f, topology)
            for f in topology.vertex_faces[self.index]
        ]

    def __repr__(self) -> str:
        return f"Vertex({self.index}, {self.vec.tolist()})"


class Polygon:
    """An ordered loop of vertices on a polyhedron.

    Shared base of ``Face`` and of the boundary loop of a peak, which is
    not (yet) a face of the polyhedron it belongs to.
    """

    def __init__(
        self,
        polyhedron: Polyhedron,
        vertex_indices: Iterable[int],
        topology: Topology | None = None,
    ):
        self.polyhedron = polyhedron
        self.vertex_indices = tuple(int(i) for i in vertex_indices)
        self._topology = topology

    @property
    def topology(self) -> Topology:
        if self._topology is None:
            self._topology = self.polyhedron.topology()
        return self._topology

    @property
    def num_sides(self) -> int:
        return len(self.vertex_indices)

    @property
    def vertices(self) -> np.ndarray:
        return self.polyhedron.vertices[list(self.vertex_indices)]

    def centroid(self) -> np.ndarray:
        return centroid(self.vertices)

    def normal(self) -> np.ndarray:
        """Outward unit normal, from the counter-clockwise winding."""
        return polygon_normal(self.vertices)

    def side_length(self) -> float:
        v = self.vertices
        return float(np.linalg.norm(v[1] - v[0]))

    def edges(self) -> list[Edge]:
        n = self.num_sides
        topology = self.topology
        return [
            Edge(
                self.polyhedron,
                self.vertex_indices[i],
                self.vertex_indices[(i + 1) % n],
                topology,
            )
            for i in range(n)
        ]

    def plane_distance(self, point: np.ndarray) -> float:
        """Signed distance from *point* to the polygon plane (positive outside)."""
        return float(np.dot(np.asarray(point, dtype=float) - self.centroid(), self.normal()))

    def contains_point(self, point: np.ndarray) -> bool:
        """True if *point*, projected onto the polygon plane, lies inside it."""
        normal = self.normal()
        point = np.asarray(point, dtype=float)
        projected = point - self.plane_distance(point) * normal
        v = self.vertices
        following = np.roll(v, -1, axis=0)
        sides = np.cross(following - v, projected - v) @ normal
        return bool(np.all(sides >= -PRECISION))

    def is_planar(self) -> bool:
        distances = (self.vertices - self.centroid()) @ self.normal()
        return bool(np.all(np.abs(distances) < PRECISION))

    def equals(self, other: Polygon) -> bool:
        """Same vertex positions in the same order, within tolerance."""
        return self.num_sides == other.num_sides and vectors_close(
            self.vertices, other.vertices
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}({list(self.vertex_indices)})"


class Face(Polygon):
    """A face of a polyhedron, identified by its position in the face sequence."""

    def __init__(self, polyhedron: Polyhedron, index: int, topology: Topology | None = None):
        super().__init__(polyhedron, polyhedron.faces[index], topology)
        self.index = index

    def adjacent_faces(self) -> list[Face]:
        """Faces sharing an edge with this one, in boundary order.

        Entry ``i`` lies across the edge from vertex ``i`` to vertex ``i + 1``.
        """
        return [edge.twin_face() for edge in self.edges()]

    def __repr__(self) -> str:
        return f"Face({self.index}, {list(self.vertex_indices)})"


class Edge:
    """A directed half-edge ``v1 -> v2`` along the boundary of one face."""

    def __init__(
        self,
        polyhedron: Polyhedron,
        v1: int,
        v2: int,
        topology: Topology | None = None,
    ):
        self.polyhedron = polyhedron
        self.v1 = v1
        self.v2 = v2
        self._topology = topology

    @property
    def topology(self) -> Topology:
        if self._topology is None:
            self._topology = self.polyhedron.topology()
        return self._topology

    @property
    def vertex_indices(self) -> tuple[int, int]:
        return (self.v1, self.v2)

    def face(self) -> Face:
        try:
            index = self.topology.edge_faces[(self.v1, self.v2)]
        except KeyError:
            raise InvalidTarget(
                f"Edge {self.v1}->{self.v2} is not on {self.polyhedron.name!r}"
            ) from None
        return self.polyhedron.get_face(index, self.topology)

    def twin(self) -> Edge:
        return Edge(self.polyhedron, self.v2, self.v1, self._topology)

    def twin_face(self) -> Face:
        return self.twin().face()

    def next(self) -> Edge:
        """The edge following this one around its face."""
        loop = self.face().vertex_indices
        position = loop.index(self.v2)
        return Edge(self.polyhedron, self.v2, loop[(position + 1) % len(loop)], self._topology)

    def length(self) -> float:
        v = self.polyhedron.vertices
        return float(np.linalg.norm(v[self.v2] - v[self.v1]))

    def midpoint(self) -> np.ndarray:
        v = self.polyhedron.vertices
        return (v[self.v1] + v[self.v2]) / 2

    def normal(self) -> np.ndarray:
        return normalize(self.face().normal() + self.twin_face().normal())

    def dihedral_angle(self) -> float:
        """Interior angle between the two faces meeting at this edge."""
        return np.pi - angle_between(self.face().normal(), self.twin_face().normal())

    def __repr__(self) -> str:
        return f"Edge({self.v1}, {self.v2})"


@dataclass(frozen=True, eq=False)
class Polyhedron:
    """Immutable vertex/face description of a closed polyhedral surface.

    Attributes:
        name: Identifier of the solid
        vertices: (N, 3) read-only array of vertex positions
        faces: Vertex index loops, counter-clockwise seen from outside
    """

    name: str
    vertices: np.ndarray
    faces: tuple[tuple[int, ...], ...]

    def __post_init__(self) -> None:
        vertices = np.array(self.vertices, dtype=float)
        if vertices.size == 0:
            vertices = vertices.reshape(0, 3)
        if vertices.ndim != 2 or vertices.shape[1] != 3:
            raise ValueError(f"Vertices must be an (N, 3) array, got shape {vertices.shape}")
        vertices.setflags(write=False)

        faces = tuple(tuple(int(i) for i in face) for face in self.faces)
        for face in faces:
            if len(face) < 3:
                raise ValueError(f"Face {list(face)} has fewer than 3 vertices")
            for i in face:
                if not 0 <= i < len(vertices):
                    raise ValueError(f"Face {list(face)} references missing vertex {i}")

        object.__setattr__(self, "vertices", vertices)
        object.__setattr__(self, "faces", faces)

    # ------------------------------------------------------------------
    # Element access
    # ------------------------------------------------------------------

    @property
    def num_vertices(self) -> int:
        return len(self.vertices)

    @property
    def num_faces(self) -> int:
        return len(self.faces)

    def get_vertex(self, index: int) -> Vertex:
        if not -self.num_vertices <= index < self.num_vertices:
            raise InvalidTarget(f"No vertex {index} on {self.name!r}")
        return Vertex(self, index % self.num_vertices)

    def get_face(self, index: int, topology: Topology | None = None) -> Face:
        if not -self.num_faces <= index < self.num_faces:
            raise InvalidTarget(f"No face {index} on {self.name!r}")
        return Face(self, index % self.num_faces, topology)

    def get_faces(self, topology: Topology | None = None) -> list[Face]:
        topology = topology or self.topology()
        return [Face(self, i, topology) for i in range(self.num_faces)]

    def topology(self) -> Topology:
        """Directed-edge -> face and vertex -> faces maps."""
        edge_faces: dict[tuple[int, int], int] = {}
        vertex_faces: list[list[int]] = [[] for _ in range(self.num_vertices)]
        for f, face in enumerate(self.faces):
            n = len(face)
            for i in range(n):
                edge_faces[(face[i], face[(i + 1) % n])] = f
                vertex_faces[face[i]].append(f)
        return Topology(edge_faces, vertex_faces)

    def get_edges(self) -> list[tuple[int, int]]:
        """Undirected edges as sorted vertex index pairs."""
        edges = set()
        for face in self.faces:
            for i in range(len(face)):
                a, b = face[i], face[(i + 1) % len(face)]
                edges.add((min(a, b), max(a, b)))
        return sorted(edges)

    def edge_length(self) -> float:
        """Length of the first edge; catalog solids have uniform edges."""
        return self.get_face(0).side_length()

    def face_with_num_sides(self, n: int) -> Face:
        for i, face in enumerate(self.faces):
            if len(face) == n:
                return self.get_face(i)
        raise ValueError(f"{self.name!r} has no face with {n} sides")

    # ------------------------------------------------------------------
    # Topological queries
    # ------------------------------------------------------------------

    def num_sides(self, face: Face | int) -> int:
        index = face if isinstance(face, (int, np.integer)) else face.index
        return len(self.faces[index])

    def adjacent_faces(self, face: Face | int) -> list[Face]:
        index = face if isinstance(face, (int, np.integer)) else face.index
        return self.get_face(index).adjacent_faces()

    def face_graph(self) -> dict[int, list[int]]:
        """Face index -> indices of the faces sharing an edge with it."""
        topology = self.topology()
        graph = {}
        for f, face in enumerate(self.faces):
            n = len(face)
            graph[f] = [topology.edge_faces[(face[(i + 1) % n], face[i])] for i in range(n)]
        return graph

    def dihedral_angle(self, edge: Edge | tuple[int, int]) -> float:
        if not isinstance(edge, Edge):
            edge = Edge(self, *edge)
        return edge.dihedral_angle()

    def hit_face(self, point: np.ndarray) -> Face | None:
        """Face nearest to *point* whose polygon contains its projection.

        Args:
            point: 3D point, typically on or near the surface

        Returns:
            The hit face, or None if no face contains the projected point
        """
        topology = self.topology()
        best = None
        best_distance = np.inf
        for face in self.get_faces(topology):
            distance = abs(face.plane_distance(point))
            if distance < best_distance and face.contains_point(point):
                best, best_distance = face, distance
        return best

    def find_peak(self, point: np.ndarray) -> Peak | None:
        """The peak owning the face hit by *point*, if any."""
        from .caps import Peak

        face = self.hit_face(point)
        if face is None:
            return None
        for peak in Peak.get_all(self):
            if face.index in peak.face_indices():
                return peak
        return None

    # ------------------------------------------------------------------
    # Measures and validation
    # ------------------------------------------------------------------

    def centroid(self) -> np.ndarray:
        return self.vertices.mean(axis=0)

    def euler_characteristic(self) -> int:
        """V - E + F; equals 2 for every convex polyhedron."""
        return self.num_vertices - len(self.get_edges()) + self.num_faces

    def is_valid(self) -> bool:
        """Check that the faces form a closed, consistently oriented 2-manifold."""
        directed = Counter()
        for face in self.faces:
            if len(set(face)) != len(face):
                return False
            n = len(face)
            for i in range(n):
                directed[(face[i], face[(i + 1) % n])] += 1

        for (a, b), count in directed.items():
            if count != 1 or directed[(b, a)] != 1:
                return False

        referenced = {i for face in self.faces for i in face}
        if len(referenced) != self.num_vertices:
            return False

        return self.euler_characteristic() == 2

    def equals(self, other: Polyhedron) -> bool:
        """Same faces and vertex positions (within tolerance), ignoring names."""
        return self.faces == other.faces and vectors_close(self.vertices, other.vertices)

    # ------------------------------------------------------------------
    # Functional builders
    # ------------------------------------------------------------------

    def with_changes(self, mutator: Callable[[Polyhedron], Polyhedron]) -> Polyhedron:
        return mutator(self)

    def with_name(self, name: str) -> Polyhedron:
        return Polyhedron(name, self.vertices, self.faces)

    def with_vertices(self, vertices: np.ndarray) -> Polyhedron:
        return Polyhedron(self.name, vertices, self.faces)

    def with_faces(self, faces: Iterable[Sequence[int]]) -> Polyhedron:
        return Polyhedron(self.name, self.vertices, tuple(faces))

    def without_faces(self, faces: Iterable[Face | int]) -> Polyhedron:
        removed = {f if isinstance(f, (int, np.integer)) else f.index for f in faces}
        return self.with_faces(face for i, face in enumerate(self.faces) if i not in removed)

    def add_polyhedron(self, other: Polyhedron) -> Polyhedron:
        """Union of both vertex/face sets with coincident vertices merged.

        Vertices of ``other`` that coincide with one already present take its
        index; the remaining ones are appended after the vertices of ``self``.
        """
        offset = self.num_vertices
        vertices = np.vstack([self.vertices, other.vertices])
        faces = self.faces + tuple(tuple(i + offset for i in face) for face in other.faces)
        merged = _merge_coincident(vertices, faces, SETTINGS.merge_tolerance)
        return Polyhedron(self.name, vertices, merged).remove_extraneous_vertices()

    def remove_extraneous_vertices(self) -> Polyhedron:
        """Drop vertices no face references, keeping the others in order."""
        used = sorted({i for face in self.faces for i in face})
        if len(used) == self.num_vertices:
            return self
        renumber = {old: new for new, old in enumerate(used)}
        faces = tuple(tuple(renumber[i] for i in face) for face in self.faces)
        return Polyhedron(self.name, self.vertices[used], faces)

    def translate(self, offset: np.ndarray) -> Polyhedron:
        return self.with_vertices(self.vertices + np.asarray(offset, dtype=float))

    def center(self) -> Polyhedron:
        """Copy translated so that the vertex centroid is at the origin."""
        return self.translate(-self.centroid())

    def scale_to_unit(self) -> Polyhedron:
        """Copy scaled so the farthest vertex from the origin is at distance 1."""
        max_dist = np.max(np.linalg.norm(self.vertices, axis=1))
        if max_dist < PRECISION:
            return self
        return self.with_vertices(self.vertices / max_dist)

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "vertices": self.vertices.tolist(),
            "faces": [list(face) for face in self.faces],
        }

    def __repr__(self) -> str:
        return f"Polyhedron({self.name!r}, vertices={self.num_vertices}, faces={self.num_faces})"


def _merge_coincident(
    vertices: np.ndarray,
    faces: tuple[tuple[int, ...], ...],
    tolerance: float,
) -> tuple[tuple[int, ...], ...]:
    """Re-point face indices so coincident vertices share the lowest index."""
    if len(vertices) == 0:
        return faces

    tree = cKDTree(vertices)
    target = list(range(len(vertices)))
    for i in range(len(vertices)):
        if target[i] != i:
            continue
        for j in tree.query_ball_point(vertices[i], tolerance):
            if j > i and target[j] == j:
                target[j] = i

    merged = sum(1 for i, t in enumerate(target) if t != i)
    if merged:
        logger.debug("Merged %d coincident vertices", merged)
    return tuple(tuple(target[i] for i in face) for face in faces)


def num_sides(face: Polygon) -> int:
    return face.num_sides

"""
Caps and peaks.

A cap is a pyramid, cupola (including the two-sided cupola, the triangular
prism or "fastigium") or rotunda sitting on a planar polygon of a
polyhedron's surface. A peak generalizes a cap to prisms and antiprisms:
any structure that can be cut off along a single planar boundary.

Both are derived on demand from an immutable Polyhedron and are never
stored on it.
"""

import logging
from collections import Counter
from collections.abc import Iterator

import numpy as np

from .geom import PRECISION
from .models import Face, Polygon, Polyhedron, Topology

logger = logging.getLogger(__name__)

CAP_KINDS = ("pyramid", "fastigium", "cupola", "rotunda")
PEAK_KINDS = CAP_KINDS + ("prism", "antiprism")


class Peak:
    """A removable structure on a polyhedron, cut off along a planar boundary.

    Attributes:
        polyhedron: The polyhedron the peak belongs to
        top: Vertex indices the structure is grown from: the apex of a
            pyramid, the ridge edge of a fastigium, the top face of a
            cupola, rotunda, prism or antiprism
        kind: One of ``PEAK_KINDS``
    """

    def __init__(
        self,
        polyhedron: Polyhedron,
        top: tuple[int, ...],
        kind: str,
        topology: Topology | None = None,
    ):
        if kind not in PEAK_KINDS:
            raise ValueError(f"Unknown peak kind: {kind!r}")
        self.polyhedron = polyhedron
        self.top = tuple(int(i) for i in top)
        self.kind = kind
        self._topology = topology or polyhedron.topology()
        self._inner = self._find_inner_vertices()
        self._faces = sorted(
            {f for v in self._inner for f in self._topology.vertex_faces[v]}
        )
        self._boundary = self._find_boundary()

    @property
    def type(self) -> str:
        """Cap type: a fastigium is the two-sided cupola."""
        return "cupola" if self.kind == "fastigium" else self.kind

    def inner_vertex_indices(self) -> list[int]:
        """Vertices removed when the peak is cut off."""
        return sorted(self._inner)

    def face_indices(self) -> list[int]:
        return list(self._faces)

    def boundary(self) -> Polygon:
        """The loop the peak sits on, oriented with its normal towards the peak."""
        if self._boundary is None:
            raise ValueError(f"{self!r} has no closed boundary")
        return Polygon(self.polyhedron, self._boundary, self._topology)

    def is_valid(self) -> bool:
        """True if the faces around ``top`` really form a peak of this kind."""
        cycle = self._boundary
        if cycle is None:
            return False

        rim = set(cycle)
        faces = self.polyhedron.faces
        touched = {i for f in self._faces for i in faces[f]}
        if rim & self._inner or touched != rim | self._inner:
            return False
        if not self._matches_profile(len(cycle)):
            return False

        boundary = self.boundary()
        if not boundary.is_planar():
            return False
        # Every removed vertex lies strictly above the cut
        heights = (
            self.polyhedron.vertices[self.inner_vertex_indices()] - boundary.centroid()
        ) @ boundary.normal()
        return bool(np.all(heights > PRECISION))

    def is_diminishable(self) -> bool:
        """True if cutting the peak off leaves a proper solid."""
        faces = self.polyhedron.faces
        if len(faces) - len(self._faces) < 3:
            return False
        rim = frozenset(self._boundary or ())
        return not any(
            frozenset(face) == rim
            for f, face in enumerate(faces)
            if f not in self._faces
        )

    def _find_inner_vertices(self) -> set[int]:
        inner = set(self.top)
        if self.kind != "rotunda":
            return inner
        # A rotunda also removes the apexes of the triangles on its top edges
        faces = self.polyhedron.faces
        for v in self.top:
            for f in self._topology.vertex_faces[v]:
                face = faces[f]
                if len(face) == 3 and len(set(face) & set(self.top)) == 2:
                    inner.update(face)
        return inner

    def _find_boundary(self) -> tuple[int, ...] | None:
        """Chain the edges between peak faces and the rest into one loop."""
        faces = self.polyhedron.faces
        edge_faces = self._topology.edge_faces
        members = set(self._faces)
        following: dict[int, int] = {}
        for f in self._faces:
            loop = faces[f]
            n = len(loop)
            for i in range(n):
                a, b = loop[i], loop[(i + 1) % n]
                twin = edge_faces.get((b, a))
                if twin is None or a in following and twin not in members:
                    return None
                if twin not in members:
                    following[a] = b

        if not following:
            return None
        start = next(iter(following))
        cycle = [start]
        v = following[start]
        while v != start:
            if v not in following or len(cycle) > len(following):
                return None
            cycle.append(v)
            v = following[v]
        if len(cycle) != len(following):
            return None
        return tuple(cycle)

    def _matches_profile(self, boundary_sides: int) -> bool:
        """Compare face side counts with the expected shape of the kind."""
        faces = self.polyhedron.faces
        sides = Counter(len(faces[f]) for f in self._faces)
        n = len(self.top)

        if self.kind == "pyramid":
            return 3 <= boundary_sides <= 5 and sides == Counter({3: boundary_sides})
        if self.kind == "fastigium":
            return boundary_sides == 4 and sides == Counter({3: 2, 4: 2}) and self._ridge_on_squares()
        if self.kind == "cupola":
            expected = Counter({n: 1}) + Counter({4: n, 3: n})
            return 3 <= n <= 5 and boundary_sides == 2 * n and sides == expected \
                and self._top_neighbours_have(4)
        if self.kind == "rotunda":
            return n == 5 and boundary_sides == 10 and sides == Counter({5: 6, 3: 10}) \
                and self._top_neighbours_have(3)
        if self.kind == "prism":
            return boundary_sides == n and sides == Counter({n: 1}) + Counter({4: n})
        # antiprism
        return boundary_sides == n and sides == Counter({n: 1}) + Counter({3: 2 * n})

    def _top_neighbours_have(self, num_sides: int) -> bool:
        edge_faces = self._topology.edge_faces
        faces = self.polyhedron.faces
        n = len(self.top)
        for i in range(n):
            a, b = self.top[i], self.top[(i + 1) % n]
            if (a, b) not in edge_faces or set(faces[edge_faces[(a, b)]]) != set(self.top):
                return False
            if len(faces[edge_faces[(b, a)]]) != num_sides:
                return False
        return True

    def _ridge_on_squares(self) -> bool:
        edge_faces = self._topology.edge_faces
        faces = self.polyhedron.faces
        a, b = self.top
        return all(
            (edge in edge_faces and len(faces[edge_faces[edge]]) == 4)
            for edge in ((a, b), (b, a))
        )

    @classmethod
    def _candidates(
        cls,
        polyhedron: Polyhedron,
        topology: Topology,
        kinds: tuple[str, ...],
    ) -> Iterator["Peak"]:
        faces = polyhedron.faces
        edge_faces = topology.edge_faces

        if "pyramid" in kinds:
            for v, incident in enumerate(topology.vertex_faces):
                if 3 <= len(incident) <= 5 and all(len(faces[f]) == 3 for f in incident):
                    yield cls(polyhedron, (v,), "pyramid", topology)

        if "fastigium" in kinds:
            for a, b in polyhedron.get_edges():
                if len(topology.vertex_faces[a]) == 3 and len(topology.vertex_faces[b]) == 3:
                    yield cls(polyhedron, (a, b), "fastigium", topology)

        for f, loop in enumerate(faces):
            n = len(loop)
            neighbours = {len(faces[edge_faces[(loop[(i + 1) % n], loop[i])]]) for i in range(n)}
            if "cupola" in kinds and 3 <= n <= 5 and neighbours == {4}:
                yield cls(polyhedron, loop, "cupola", topology)
            if "rotunda" in kinds and n == 5 and neighbours == {3}:
                yield cls(polyhedron, loop, "rotunda", topology)
            if "prism" in kinds and neighbours == {4}:
                yield cls(polyhedron, loop, "prism", topology)
            if "antiprism" in kinds and neighbours == {3}:
                yield cls(polyhedron, loop, "antiprism", topology)

    @classmethod
    def get_all(cls, polyhedron: Polyhedron) -> list["Peak"]:
        """All peaks that can be cut off the polyhedron, leaving a solid.

        Args:
            polyhedron: Polyhedron to scan

        Returns:
            Peaks ordered pyramids, fastigia, then face-grown peaks by face
            index; two candidates covering the same faces are reported once
        """
        topology = polyhedron.topology()
        found = []
        seen = set()
        for peak in cls._candidates(polyhedron, topology, PEAK_KINDS):
            key = frozenset(peak.face_indices())
            if key in seen:
                continue
            if peak.is_valid() and peak.is_diminishable():
                seen.add(key)
                found.append(peak)
        logger.debug("Found %d peaks on %s", len(found), polyhedron.name)
        return found

    def equals(self, other: "Peak") -> bool:
        return (
            self.kind == other.kind
            and self.inner_vertex_indices() == other.inner_vertex_indices()
            and self.polyhedron.equals(other.polyhedron)
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.kind}, top={list(self.top)})"


class Cap(Peak):
    """A pyramid, cupola or rotunda on the surface of a polyhedron.

    Unlike ``Peak.get_all``, ``Cap.get_all`` also reports caps that make up
    the whole solid, such as the cupola that *is* a cupola.
    """

    @classmethod
    def get_all(cls, polyhedron: Polyhedron) -> list["Cap"]:
        topology = polyhedron.topology()
        found = []
        seen = set()
        for cap in cls._candidates(polyhedron, topology, CAP_KINDS):
            key = frozenset(cap.face_indices())
            if key not in seen and cap.is_valid():
                seen.add(key)
                found.append(cap)
        return found


def get_base_type(base: Face) -> str:
    """Classify a face by the side counts of the faces around it.

    Returns:
        One of 'cupola', 'prism', 'pyramid', 'antiprism', 'rotunda',
        'rhombicosidodecahedron' or 'truncated' (anything else)
    """
    adjacent = base.adjacent_faces()
    counts = {face.num_sides for face in adjacent}
    if counts == {3, 4}:
        return "cupola"
    if counts == {4}:
        return "prism"
    if counts == {3}:
        # Triangles meeting at one apex off the face make a pyramid
        apex = set.intersection(*(set(face.vertex_indices) for face in adjacent))
        return "pyramid" if apex - set(base.vertex_indices) else "antiprism"
    if counts == {3, 5}:
        return "rotunda"
    if counts == {4, 5}:
        return "rhombicosidodecahedron"
    return "truncated"

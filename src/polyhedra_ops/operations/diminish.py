"""
Diminish and shorten: cut a peak off a polyhedron.

Cutting removes every face of the peak and closes the hole with the peak's
boundary loop, the exact inverse of the splice done by augment.
"""

from __future__ import annotations

import logging
from typing import Any

import numpy as np

from ..caps import CAP_KINDS, Cap, Peak
from ..errors import IllegalTransform
from ..geom import is_inverse
from ..models import Polyhedron
from .augment import get_augmentee, is_aligned
from .base import (
    AnimationData,
    Operation,
    OperationResult,
    Options,
    Relation,
    SelectState,
    has_multiple,
    require_peak,
)

logger = logging.getLogger(__name__)


def remove_peak(polyhedron: Polyhedron, peak: Peak) -> Polyhedron:
    """Replace the faces of *peak* with its boundary.

    The boundary becomes the last face; vertices left without a face are
    dropped and the rest renumbered in order.
    """
    removed = set(peak.face_indices())
    faces = [face for i, face in enumerate(polyhedron.faces) if i not in removed]
    faces.append(peak.boundary().vertex_indices)
    return polyhedron.with_faces(faces).remove_extraneous_vertices()


def _collapse_animation(polyhedron: Polyhedron, peak: Peak) -> AnimationData:
    end_vertices = polyhedron.vertices.copy()
    end_vertices[peak.inner_vertex_indices()] = peak.boundary().centroid()
    return AnimationData(polyhedron, end_vertices)


def _peak_using(peak: Peak) -> str | None:
    n = peak.boundary().num_sides
    if peak.kind == "pyramid":
        return f"Y{n}"
    if peak.kind in ("fastigium", "cupola"):
        return f"U{n // 2}"
    if peak.kind == "rotunda":
        return "R5"
    return None


def get_cupola_gyrate(polyhedron: Polyhedron, peak: Peak) -> str | None:
    """The ``gyrate`` option augment would need to put *peak* back.

    Returns:
        'ortho' or 'gyro', or None if the base of the peak admits only one
        alignment
    """
    if peak.kind == "fastigium":
        return "gyro"
    if peak.type not in ("cupola", "rotunda"):
        return None

    diminished = remove_peak(polyhedron, peak)
    base = diminished.get_face(-1)
    n = base.num_sides
    underside = get_augmentee(peak.type, n).face_with_num_sides(n)

    # Does the peak sit at offset 0 of its own boundary loop?
    boundary_face = peak.boundary().edges()[0].face()
    at_offset_zero = (boundary_face.num_sides == 3) == (underside.adjacent_faces()[-1].num_sides == 3)

    caps = Cap.get_all(diminished)
    ortho = is_aligned(diminished, base, underside, "ortho", peak.type, caps)
    gyro = is_aligned(diminished, base, underside, "gyro", peak.type, caps)
    if ortho == gyro:
        return None
    return "ortho" if ortho == at_offset_zero else "gyro"


def get_peak_alignment(polyhedron: Polyhedron, peak: Peak) -> str:
    """'para' if another cap sits directly opposite *peak*, else 'meta'."""
    normal = peak.boundary().normal()
    own = frozenset(peak.face_indices())
    for cap in Cap.get_all(polyhedron):
        if frozenset(cap.face_indices()) == own:
            continue
        if is_inverse(cap.boundary().normal(), normal):
            return "para"
    return "meta"


class Diminish(Operation):
    name = "diminish"
    interactive = True
    hit_option = "peak"

    def apply(self, polyhedron: Polyhedron, options: Options | None = None) -> OperationResult:
        options = options or {}
        peak = require_peak(polyhedron, options.get("peak"))
        if not peak.is_valid() or not peak.is_diminishable():
            raise IllegalTransform(f"{peak!r} cannot be cut off {polyhedron.name!r}")
        logger.debug("Diminishing %s of %s", peak, polyhedron.name)

        result = remove_peak(polyhedron, peak).with_name(f"diminish({polyhedron.name})")
        return OperationResult(result, _collapse_animation(polyhedron, peak))

    def get_relations(self, polyhedron: Polyhedron) -> list[Relation]:
        peaks = Peak.get_all(polyhedron)
        with_caps = len(Cap.get_all(polyhedron)) > 1
        relations: list[Relation] = []
        for peak in peaks:
            is_cap = with_caps and peak.kind in CAP_KINDS
            relation = {
                "using": _peak_using(peak),
                "gyrate": get_cupola_gyrate(polyhedron, peak),
                "align": get_peak_alignment(polyhedron, peak) if is_cap else None,
            }
            if relation not in relations:
                relations.append(relation)
        return relations

    def get_search_options(
        self,
        polyhedron: Polyhedron,
        config: Options,
        relations: list[Relation] | None = None,
    ) -> dict[str, Any]:
        peak = require_peak(polyhedron, config.get("peak"))
        if relations is None:
            relations = self.get_relations(polyhedron)

        options: dict[str, Any] = {}
        num_inner = len(peak.inner_vertex_indices())
        # A pentagonal cupola and a rotunda share a decagonal base
        if num_inner == 5:
            options["using"] = "U5"
        elif num_inner == 10:
            options["using"] = "R5"

        if has_multiple(relations, "gyrate"):
            options["gyrate"] = get_cupola_gyrate(polyhedron, peak)

        if options.get("gyrate") != "ortho" and has_multiple(relations, "align"):
            options["align"] = get_peak_alignment(polyhedron, peak)
        return options

    def get_all_options(
        self,
        polyhedron: Polyhedron,
        relations: list[Relation] | None = None,
    ) -> list[dict[str, Any]]:
        return [{"peak": peak} for peak in Peak.get_all(polyhedron)]

    def get_hit_option(
        self,
        polyhedron: Polyhedron,
        hit_point: np.ndarray,
        options: Options | None = None,
    ) -> dict[str, Any]:
        peak = polyhedron.find_peak(hit_point)
        return {"peak": peak} if peak else {}

    def is_highlighted(self, polyhedron: Polyhedron, apply_args: Options, face_index: int) -> bool:
        peak = apply_args.get("peak")
        return isinstance(peak, Peak) and face_index in peak.face_indices()

    def get_select_state(
        self,
        polyhedron: Polyhedron,
        options: Options | None = None,
    ) -> list[SelectState | None]:
        options = options or {}
        selected = options.get("peak")
        selected_faces = set(selected.face_indices()) if selected else set()
        selectable = {f for peak in Peak.get_all(polyhedron) for f in peak.face_indices()}
        states: list[SelectState | None] = []
        for f in range(polyhedron.num_faces):
            if f in selected_faces:
                states.append(SelectState.SELECTED)
            elif f in selectable:
                states.append(SelectState.SELECTABLE)
            else:
                states.append(None)
        return states


class Shorten(Operation):
    """Cut the prism or antiprism off an elongated or gyroelongated solid.

    Takes no target: the cut starts from the face with the most sides whose
    neighbours all have the same number of sides.
    """

    name = "shorten"

    def apply(self, polyhedron: Polyhedron, options: Options | None = None) -> OperationResult:
        topology = polyhedron.topology()
        candidates = []
        for face in polyhedron.get_faces(topology):
            neighbour_sides = {adjacent.num_sides for adjacent in face.adjacent_faces()}
            if neighbour_sides in ({3}, {4}):
                kind = "antiprism" if neighbour_sides == {3} else "prism"
                candidates.append((face, kind))
        candidates.sort(key=lambda candidate: -candidate[0].num_sides)

        for face, kind in candidates:
            peak = Peak(polyhedron, face.vertex_indices, kind, topology)
            if peak.is_valid() and peak.is_diminishable():
                logger.debug("Shortening %s at face %d", polyhedron.name, face.index)
                result = remove_peak(polyhedron, peak).with_name(f"shorten({polyhedron.name})")
                return OperationResult(result, _collapse_animation(polyhedron, peak))

        raise IllegalTransform(f"{polyhedron.name!r} has no prism or antiprism to shorten")


diminish = Diminish()
shorten = Shorten()

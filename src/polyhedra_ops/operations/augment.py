"""
Augment: attach a pyramid, cupola or rotunda to a face.

The augmentee is chosen by the face's side count and the requested type,
aligned so its underside covers the face, scaled to the face's edge length
and spliced in place of the face. When a face admits two distinct
results, ``gyrate`` ('ortho' or 'gyro') picks the rotational alignment and
``using`` (e.g. 'Y4' or 'U2' on a square) picks the augmentee.
"""

from __future__ import annotations

import logging
from collections import Counter
from functools import lru_cache
from typing import Any

import numpy as np

from ..caps import Cap, get_base_type
from ..errors import IllegalTransform, MissingOption
from ..geom import angle_less, get_orthonormal_transform, is_inverse, normalize, with_origin
from ..models import Face, Polygon, Polyhedron
from ..solids import get_solid
from .base import (
    AnimationData,
    Operation,
    OperationResult,
    Options,
    Relation,
    SelectState,
    has_multiple,
    require_face,
)

logger = logging.getLogger(__name__)

AUGMENTEES = {
    "pyramid": {
        3: "tetrahedron",
        4: "square-pyramid",
        5: "pentagonal-pyramid",
    },
    "cupola": {
        2: "triangular-prism",
        3: "triangular-cupola",
        4: "square-cupola",
        5: "pentagonal-cupola",
    },
    "rotunda": {
        5: "pentagonal-rotunda",
    },
}

AUGMENT_TYPES = {
    "Y": "pyramid",
    "U": "cupola",
    "R": "rotunda",
}

USING_TYPE_ORDER = "YUR"

DEFAULT_AUGMENTEES = {
    3: "Y3",
    4: "Y4",
    5: "Y5",
    6: "U3",
    8: "U4",
    10: "U5",
}

GYRATE_VALUES = ("ortho", "gyro")


@lru_cache(maxsize=None)
def _load_augmentee(name: str) -> Polyhedron:
    return get_solid(name)


def get_augmentee(augment_type: str, num_sides: int) -> Polyhedron | None:
    """The augmentee of a type whose underside has *num_sides* sides."""
    if augment_type in ("cupola", "rotunda"):
        if num_sides % 2:
            return None
        index = num_sides // 2
    else:
        index = num_sides
    name = AUGMENTEES[augment_type].get(index)
    return _load_augmentee(name) if name else None


def get_possible_augmentees(num_sides: int) -> list[Polyhedron]:
    augmentees = (get_augmentee(t, num_sides) for t in AUGMENTEES)
    return [a for a in augmentees if a is not None]


def _parse_using(using: str) -> tuple[str, int]:
    """Split a variant code into its augment type and index ('U3' -> ('cupola', 3))."""
    if not isinstance(using, str) or using[:1] not in AUGMENT_TYPES or not using[1:].isdigit():
        raise IllegalTransform(f"Unknown augmentee variant: {using!r}")
    return AUGMENT_TYPES[using[0]], int(using[1:])


def get_augmentee_num_sides(using: str) -> int:
    """Side count of the face an augmentee variant attaches to ('U3' -> 6)."""
    augment_type, index = _parse_using(using)
    return index if augment_type == "pyramid" else index * 2


def get_using_opt(using: str | None, num_sides: int) -> str | None:
    """*using* if it fits a face of *num_sides*, else the default variant."""
    if isinstance(using, str) and get_augmentee_num_sides(using) == num_sides:
        return using
    return DEFAULT_AUGMENTEES.get(num_sides)


def _using_for(augment_type: str, num_sides: int) -> str:
    prefix = {v: k for k, v in AUGMENT_TYPES.items()}[augment_type]
    index = num_sides if augment_type == "pyramid" else num_sides // 2
    return f"{prefix}{index}"


def is_convex_join(base_angle: float, augmentee_angle: float) -> bool:
    """True if two dihedral angles glued along an edge stay convex."""
    return angle_less(base_angle + augmentee_angle, np.pi)


def can_augment_with(base: Face, augmentee: Polyhedron | None, offset: int) -> bool:
    """Check that augmenting *base* keeps the polyhedron convex.

    The augmentee's first underside vertex is placed on base vertex
    *offset*; base edge ``i`` is then glued to underside edge
    ``offset - 1 - i``.

    Args:
        base: Face to augment
        augmentee: Solid to attach, or None
        offset: 0 or 1, the rotational alignment of the augmentee

    Returns:
        True if the dihedral angles on both sides of every glued edge sum
        to less than pi
    """
    if augmentee is None:
        return False
    n = base.num_sides
    underside_edges = augmentee.face_with_num_sides(n).edges()
    return all(
        is_convex_join(edge.dihedral_angle(), underside_edges[(offset - 1 - i) % n].dihedral_angle())
        for i, edge in enumerate(base.edges())
    )


def can_augment_with_type(base: Face, augment_type: str) -> bool:
    augmentee = get_augmentee(augment_type, base.num_sides)
    return any(can_augment_with(base, augmentee, offset) for offset in (0, 1))


def can_augment(base: Face) -> bool:
    return any(
        can_augment_with(base, augmentee, offset)
        for augmentee in get_possible_augmentees(base.num_sides)
        for offset in (0, 1)
    )


def get_opposite_prism_face(base: Face) -> Face:
    """The face beyond the far end of the prism standing on *base*."""
    return base.edges()[0].twin().next().next().twin_face()


def is_cupola_rotunda(base_type: str | None, augment_type: str) -> bool:
    return {base_type, augment_type} == {"cupola", "rotunda"}


def is_fastigium(augment_type: str, num_sides: int) -> bool:
    return augment_type == "cupola" and num_sides == 4


def is_aligned(
    polyhedron: Polyhedron,
    base: Face,
    underside: Face,
    gyrate: str | None,
    augment_type: str,
    caps: list[Cap] | None = None,
) -> bool:
    """Whether the augmentee goes on at offset 0 (True) or offset 1 (False).

    At offset 0 the augmentee face next to the last underside edge lands
    across the first base edge. The result is ortho when like faces meet
    there: triangles with triangles, or (on the decagon of a diminished
    rhombicosidodecahedron) squares with squares. Gyro therefore rebuilds
    the rhombicosidodecahedron, where cupola squares meet pentagons.

    Args:
        polyhedron: Polyhedron being augmented
        base: Face being augmented
        underside: Face of the augmentee that covers *base*
        gyrate: 'ortho', 'gyro' or None
        augment_type: 'pyramid', 'cupola' or 'rotunda'
        caps: Caps of *polyhedron*, if already computed

    Raises:
        MissingOption: If the base needs ``gyrate`` and none is given
    """
    if augment_type == "pyramid":
        return True
    base_type = get_base_type(base)
    if base_type in ("pyramid", "antiprism"):
        return True

    if caps is None:
        caps = Cap.get_all(polyhedron)
    if base_type == "prism" and not caps:
        return True

    if base_type != "truncated" and gyrate is None:
        raise MissingOption("gyrate", f"Must define 'gyrate' for augmenting {base_type}")

    adj_face = get_opposite_prism_face(base) if base_type == "prism" else base.adjacent_faces()[0]
    aligned_face = underside.adjacent_faces()[-1]

    if base_type == "rhombicosidodecahedron":
        is_ortho = (adj_face.num_sides != 4) == (aligned_face.num_sides != 4)
        return is_ortho == (gyrate == "ortho")

    # Ortho when triangles meet triangles and the other faces meet each other
    is_ortho = (adj_face.num_sides != 3) == (aligned_face.num_sides != 3)

    if base_type == "truncated":
        return not is_ortho

    # "ortho" or "gyro" is determined by whether the *tops* are aligned, not
    # the bottoms, so for a cupola-rotunda it is the opposite of the rest
    if caps and is_cupola_rotunda(caps[0].type, augment_type):
        return is_ortho != (gyrate == "ortho")

    return is_ortho == (gyrate == "ortho")


def get_augment_alignment(polyhedron: Polyhedron, face: Polygon) -> str:
    """'para' if *face* is opposite the polyhedron's single cap, else 'meta'."""
    caps = Cap.get_all(polyhedron)
    if len(caps) != 1:
        raise ValueError(f"Expected a single cap on {polyhedron.name!r}, found {len(caps)}")
    return "para" if is_inverse(caps[0].boundary().normal(), face.normal()) else "meta"


def _offset_for(
    polyhedron: Polyhedron,
    base: Face,
    augment_type: str,
    gyrate: str | None,
    caps: list[Cap] | None = None,
) -> int:
    n = base.num_sides
    underside = get_augmentee(augment_type, n).face_with_num_sides(n)
    aligned = is_aligned(
        polyhedron,
        base,
        underside,
        "gyro" if is_fastigium(augment_type, n) else gyrate,
        augment_type,
        caps,
    )
    return 0 if aligned else 1


def do_augment(
    polyhedron: Polyhedron,
    base: Face,
    augment_type: str,
    gyrate: str | None,
) -> Polyhedron:
    """Attach the augmentee of *augment_type* to *base*.

    Raises:
        IllegalTransform: If no augmentee fits or the result is not convex
        MissingOption: If the base needs ``gyrate`` and none is given
    """
    n = base.num_sides
    augmentee = get_augmentee(augment_type, n)
    if augmentee is None:
        raise IllegalTransform(f"No {augment_type} fits a face with {n} sides")
    underside = augmentee.face_with_num_sides(n)

    # Orientations of the underside and the base
    underside_radius = normalize(underside.vertices[0] - underside.centroid())
    offset = _offset_for(polyhedron, base, augment_type, gyrate)
    if not can_augment_with(base, augmentee, offset):
        raise IllegalTransform(
            f"Augmenting face {base.index} of {polyhedron.name!r} with a {augment_type} "
            "would not be convex"
        )
    base_radius = normalize(base.vertices[offset] - base.centroid())

    rotation = get_orthonormal_transform(
        underside_radius,
        -underside.normal(),
        base_radius,
        base.normal(),
    )
    transform = with_origin(base.centroid(), rotation)

    # Scale and position the augmentee so that it lines up with the base
    aligned_vertices = (
        (augmentee.vertices - underside.centroid())
        * (base.side_length() / augmentee.edge_length())
        + base.centroid()
    )
    new_augmentee = augmentee.with_changes(
        lambda solid: solid.with_vertices(transform(aligned_vertices)).without_faces([underside])
    )
    return polyhedron.with_changes(
        lambda solid: solid.without_faces([base]).add_polyhedron(new_augmentee)
    )


class Augment(Operation):
    name = "augment"
    interactive = True
    hit_option = "face"

    def _augment_type(self, face: Face, using: str | None) -> str:
        if using:
            augment_type, _ = _parse_using(using)
            if get_augmentee_num_sides(using) != face.num_sides:
                raise IllegalTransform(f"Cannot augment a {face.num_sides}-sided face using {using!r}")
            return augment_type
        default = "pyramid" if face.num_sides <= 5 else "cupola"
        if can_augment_with_type(face, default):
            return default
        for prefix in USING_TYPE_ORDER:
            if can_augment_with_type(face, AUGMENT_TYPES[prefix]):
                return AUGMENT_TYPES[prefix]
        return default

    def apply(self, polyhedron: Polyhedron, options: Options | None = None) -> OperationResult:
        options = options or {}
        face = require_face(polyhedron, options.get("face"))
        augment_type = self._augment_type(face, options.get("using"))
        gyrate = options.get("gyrate")
        logger.debug(
            "Augmenting face %d of %s with a %s (gyrate=%s)",
            face.index, polyhedron.name, augment_type, gyrate,
        )

        result = do_augment(polyhedron, face, augment_type, gyrate)
        result = result.with_name(f"augment({polyhedron.name})")

        # New vertices start flat on the base face
        start_vertices = result.vertices.copy()
        added = start_vertices[polyhedron.num_vertices:]
        heights = (added - face.centroid()) @ face.normal()
        start_vertices[polyhedron.num_vertices:] = added - np.outer(heights, face.normal())
        animation = AnimationData(result.with_vertices(start_vertices), result.vertices)
        return OperationResult(result, animation)

    def _is_legal(
        self,
        polyhedron: Polyhedron,
        face: Face,
        augment_type: str,
        gyrate: str | None,
        caps: list[Cap],
    ) -> bool:
        augmentee = get_augmentee(augment_type, face.num_sides)
        if augmentee is None:
            return False
        try:
            offset = _offset_for(polyhedron, face, augment_type, gyrate, caps)
        except MissingOption:
            return False
        return can_augment_with(face, augmentee, offset)

    def _gyrate_choices(
        self,
        polyhedron: Polyhedron,
        face: Face,
        augment_type: str,
        caps: list[Cap],
    ) -> tuple[str | None, ...]:
        n = face.num_sides
        if is_fastigium(augment_type, n):
            return ("gyro",)
        underside = get_augmentee(augment_type, n).face_with_num_sides(n)
        try:
            is_aligned(polyhedron, face, underside, None, augment_type, caps)
        except MissingOption:
            return GYRATE_VALUES
        return (None,)

    def get_relations(self, polyhedron: Polyhedron) -> list[Relation]:
        caps = Cap.get_all(polyhedron)
        relations: list[Relation] = []
        for face in polyhedron.get_faces():
            align = None
            if len(caps) == 1:
                align = "para" if is_inverse(caps[0].boundary().normal(), face.normal()) else "meta"
            for augment_type in AUGMENTEES:
                if get_augmentee(augment_type, face.num_sides) is None:
                    continue
                for gyrate in self._gyrate_choices(polyhedron, face, augment_type, caps):
                    if not self._is_legal(polyhedron, face, augment_type, gyrate, caps):
                        continue
                    relation = {
                        "using": _using_for(augment_type, face.num_sides),
                        "gyrate": gyrate,
                        "align": align,
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
        face = require_face(polyhedron, config.get("face"))
        if relations is None:
            relations = self.get_relations(polyhedron)

        using = get_using_opt(config.get("using"), face.num_sides)
        return {
            "using": using,
            "gyrate": "gyro" if using == "U2" else config.get("gyrate"),
            "align": get_augment_alignment(polyhedron, face) if has_multiple(relations, "align") else None,
        }

    def get_all_options(
        self,
        polyhedron: Polyhedron,
        relations: list[Relation] | None = None,
    ) -> list[dict[str, Any]]:
        if relations is None:
            relations = self.get_relations(polyhedron)

        raw_gyrate_opts = {r["gyrate"] for r in relations if r.get("gyrate")}
        gyrate_opts = [g for g in GYRATE_VALUES if g in raw_gyrate_opts] or [None]
        raw_using_opts = list(dict.fromkeys(r["using"] for r in relations if r.get("using")))
        # Only offer using options if some face size has more than one
        sizes = Counter(get_augmentee_num_sides(using) for using in raw_using_opts)
        using_opts = raw_using_opts if any(count > 1 for count in sizes.values()) else [None]

        caps = Cap.get_all(polyhedron)
        options = []
        for face in polyhedron.get_faces():
            if not can_augment(face):
                continue
            for gyrate in gyrate_opts:
                for using in using_opts:
                    if using is not None and get_augmentee_num_sides(using) != face.num_sides:
                        continue
                    augment_type = self._augment_type(face, using)
                    if not can_augment_with_type(face, augment_type):
                        continue
                    if self._is_legal(polyhedron, face, augment_type, gyrate, caps):
                        options.append({"face": face, "gyrate": gyrate, "using": using})
        return options

    def get_hit_option(
        self,
        polyhedron: Polyhedron,
        hit_point: np.ndarray,
        options: Options | None = None,
    ) -> dict[str, Any]:
        if options is None:
            return {}
        face = polyhedron.hit_face(hit_point)
        if face is None:
            return {}
        using = options.get("using")
        if not using:
            return {"face": face} if can_augment(face) else {}
        augment_type, _ = _parse_using(using)
        if not can_augment_with_type(face, augment_type):
            return {}
        return {"face": face}

    def is_highlighted(self, polyhedron: Polyhedron, apply_args: Options, face_index: int) -> bool:
        face = apply_args.get("face")
        return face is not None and face.equals(polyhedron.get_face(face_index))

    def get_select_state(
        self,
        polyhedron: Polyhedron,
        options: Options | None = None,
    ) -> list[SelectState | None]:
        options = options or {}
        face = options.get("face")
        using = options.get("using")
        augment_type = _parse_using(using)[0] if using else None
        states: list[SelectState | None] = []
        for f in polyhedron.get_faces():
            if face is not None and f.equals(face):
                states.append(SelectState.SELECTED)
            elif not using and can_augment(f):
                states.append(SelectState.SELECTABLE)
            elif using and can_augment_with_type(f, augment_type):
                states.append(SelectState.SELECTABLE)
            else:
                states.append(None)
        return states

    def get_using_opts(
        self,
        polyhedron: Polyhedron,
        relations: list[Relation] | None = None,
    ) -> list[str]:
        """Competing augmentee variants for one face size, pyramid first."""
        if relations is None:
            relations = self.get_relations(polyhedron)
        using = list(dict.fromkeys(r["using"] for r in relations if r.get("using")))
        grouped: dict[int, list[str]] = {}
        for option in using:
            grouped.setdefault(get_augmentee_num_sides(option), []).append(option)
        opts = next((group for group in grouped.values() if len(group) > 1), [])
        return sorted(opts, key=lambda option: USING_TYPE_ORDER.index(option[0]))

    def apply_options_for(
        self,
        polyhedron: Polyhedron | None,
        relations: list[Relation] | None = None,
    ) -> dict[str, Any]:
        """Options a caller should preselect before augmenting *polyhedron*."""
        if polyhedron is None:
            return {}
        if relations is None:
            relations = self.get_relations(polyhedron)
        new_opts: dict[str, Any] = {}
        if len([r for r in relations if r.get("gyrate")]) > 1:
            new_opts["gyrate"] = "gyro"
        if any(r.get("using") in ("U2", "R5") for r in relations):
            using_opts = self.get_using_opts(polyhedron, relations)
            if using_opts:
                new_opts["using"] = using_opts[0]
        return new_opts


augment = Augment()

"""
Operation protocol.

Every operation turns one immutable Polyhedron into another through
``apply``. Interactive operations additionally tell a caller which targets
are legal, how to resolve a 3D hit point to a target and how each face
should be highlighted. The base class answers all of those with "not
selectable", so an operation that only implements ``apply`` is explicitly
non-interactive.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

import numpy as np

from ..caps import Peak
from ..errors import InvalidTarget
from ..models import Face, Polyhedron

Options = Mapping[str, Any]
Relation = dict[str, Any]


class SelectState(str, Enum):
    """Highlight classification of a face for a pending operation."""

    SELECTED = "selected"
    SELECTABLE = "selectable"


@dataclass(frozen=True)
class AnimationData:
    """Start solid and the vertex positions it morphs into."""

    start: Polyhedron
    end_vertices: np.ndarray


@dataclass(frozen=True)
class OperationResult:
    result: Polyhedron
    animation_data: AnimationData | None = None


class Operation:
    """Base class of all operations; subclasses must implement ``apply``."""

    name: str = ""
    interactive: bool = False
    hit_option: str | None = None

    def apply(self, polyhedron: Polyhedron, options: Options | None = None) -> OperationResult:
        raise NotImplementedError(f"{type(self).__name__} does not implement apply")

    def get_relations(self, polyhedron: Polyhedron) -> list[Relation]:
        """Distinct option sets (``using``/``gyrate``/``align``) of legal results."""
        return []

    def get_search_options(
        self,
        polyhedron: Polyhedron,
        config: Options,
        relations: list[Relation] | None = None,
    ) -> dict[str, Any]:
        return {}

    def get_all_options(
        self,
        polyhedron: Polyhedron,
        relations: list[Relation] | None = None,
    ) -> list[dict[str, Any]]:
        return []

    def get_all_apply_args(self, polyhedron: Polyhedron) -> list[dict[str, Any]]:
        return self.get_all_options(polyhedron)

    def get_hit_option(
        self,
        polyhedron: Polyhedron,
        hit_point: np.ndarray,
        options: Options | None = None,
    ) -> dict[str, Any]:
        return {}

    def get_apply_args(
        self,
        polyhedron: Polyhedron,
        hit_point: np.ndarray,
        options: Options | None = None,
    ) -> dict[str, Any]:
        return self.get_hit_option(polyhedron, hit_point, options)

    def is_highlighted(self, polyhedron: Polyhedron, apply_args: Options, face_index: int) -> bool:
        return False

    def get_select_state(
        self,
        polyhedron: Polyhedron,
        options: Options | None = None,
    ) -> list[SelectState | None]:
        return [None] * polyhedron.num_faces

    def __repr__(self) -> str:
        return f"<Operation {self.name}>"


def has_multiple(relations: list[Relation], key: str) -> bool:
    """True if the relations disagree on a non-empty value for *key*."""
    return len({r.get(key) for r in relations if r.get(key) is not None}) > 1


def require_face(polyhedron: Polyhedron, face: Face | int | None) -> Face:
    """Resolve *face* to a face of *polyhedron*.

    Raises:
        InvalidTarget: If no face is given or it belongs to another solid
    """
    if face is None:
        raise InvalidTarget("Invalid face: no face given")
    if isinstance(face, (int, np.integer)):
        return polyhedron.get_face(int(face))
    if face.polyhedron is not polyhedron and not face.polyhedron.equals(polyhedron):
        raise InvalidTarget(f"{face!r} is not a face of {polyhedron.name!r}")
    return polyhedron.get_face(face.index)


def require_peak(polyhedron: Polyhedron, peak: Peak | None) -> Peak:
    """Resolve *peak* to a peak of *polyhedron*.

    Raises:
        InvalidTarget: If no peak is given or it belongs to another solid
    """
    if peak is None:
        raise InvalidTarget("Invalid peak: no peak given")
    if peak.polyhedron is polyhedron:
        return peak
    if not peak.polyhedron.equals(polyhedron):
        raise InvalidTarget(f"{peak!r} is not a peak of {polyhedron.name!r}")
    return Peak(polyhedron, peak.top, peak.kind)

"""
Polyhedra Ops - Convex Polyhedron Operation Engine.

Models convex polyhedra as immutable vertex/face values and transforms them
by cut-and-paste: augmenting a face with a pyramid, cupola or rotunda,
diminishing a peak, or shortening an elongated solid.

Example:
    >>> from polyhedra_ops import get_solid, get_operation
    >>>
    >>> pyramid = get_solid("square-pyramid")
    >>> augment = get_operation("augment")
    >>> square = pyramid.face_with_num_sides(4)
    >>> result = augment.apply(pyramid, {"face": square}).result
    >>> print(result.num_vertices, result.num_faces)
    6 8
"""

__version__ = "1.0.0"

# Data model
from .caps import Cap, Peak, get_base_type
from .config import SETTINGS, Settings
from .errors import (
    IllegalTransform,
    InvalidTarget,
    MissingOption,
    PolyhedronError,
    UnknownOperation,
    UnknownSolid,
)
from .logging_config import setup_logging
from .models import Edge, Face, Polygon, Polyhedron, Vertex

# Operations
from .operations import (
    OPERATIONS,
    AnimationData,
    Operation,
    OperationResult,
    SelectState,
    get_operation,
    list_operations,
)

# Catalog
from .solids import get_solid, get_solid_by_name, list_solids

__all__ = [
    # Version
    "__version__",
    # Data classes
    "Polyhedron",
    "Polygon",
    "Face",
    "Edge",
    "Vertex",
    "Peak",
    "Cap",
    "get_base_type",
    # Catalog
    "get_solid",
    "get_solid_by_name",
    "list_solids",
    # Operations
    "OPERATIONS",
    "Operation",
    "OperationResult",
    "AnimationData",
    "SelectState",
    "get_operation",
    "list_operations",
    # Errors
    "PolyhedronError",
    "UnknownSolid",
    "UnknownOperation",
    "InvalidTarget",
    "MissingOption",
    "IllegalTransform",
    # Configuration
    "Settings",
    "SETTINGS",
    "setup_logging",
]

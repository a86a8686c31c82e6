"""
Geometry primitives.

Tolerance-aware vector helpers shared by the model and the operations.
Every floating comparison in the package goes through ``PRECISION`` and the
comparison functions defined here.
"""

from collections.abc import Callable

import numpy as np

from .config import SETTINGS

PRECISION = SETTINGS.precision

Transform = Callable[[np.ndarray], np.ndarray]


def approx_equal(a: float, b: float, tolerance: float = PRECISION) -> bool:
    """True if two scalars differ by less than the tolerance."""
    return abs(a - b) < tolerance


def angle_less(a: float, b: float, tolerance: float = PRECISION) -> bool:
    """True if angle ``a`` is smaller than ``b`` by more than the tolerance."""
    return a < b - tolerance


def vectors_close(v1: np.ndarray, v2: np.ndarray, tolerance: float = PRECISION) -> bool:
    """True if two points (or arrays of points) coincide within tolerance."""
    v1 = np.asarray(v1, dtype=float)
    v2 = np.asarray(v2, dtype=float)
    return v1.shape == v2.shape and bool(np.allclose(v1, v2, rtol=0.0, atol=tolerance))


def normalize(v: np.ndarray) -> np.ndarray:
    """Unit vector in the direction of *v*.

    Raises:
        ValueError: If *v* has (near) zero length
    """
    v = np.asarray(v, dtype=float)
    length = np.linalg.norm(v)
    if length < PRECISION:
        raise ValueError("Cannot normalize a zero-length vector")
    return v / length


def angle_between(v1: np.ndarray, v2: np.ndarray) -> float:
    """Angle in radians between two non-zero vectors."""
    cos_angle = np.dot(normalize(v1), normalize(v2))
    return float(np.arccos(np.clip(cos_angle, -1.0, 1.0)))


def is_inverse(v1: np.ndarray, v2: np.ndarray) -> bool:
    """True if *v1* points opposite to *v2* with the same length."""
    v1 = np.asarray(v1, dtype=float)
    v2 = np.asarray(v2, dtype=float)
    n1, n2 = np.linalg.norm(v1), np.linalg.norm(v2)
    return approx_equal(float(np.dot(v1, v2)), -n1 * n2) and approx_equal(n1, n2)


def centroid(points: np.ndarray) -> np.ndarray:
    """Mean of an (N, 3) point array."""
    return np.asarray(points, dtype=float).mean(axis=0)


def polygon_normal(points: np.ndarray) -> np.ndarray:
    """Unit normal of a polygon (Newell's method).

    The normal follows the right-hand rule, so a loop ordered
    counter-clockwise when seen from outside gives the outward normal.

    Args:
        points: (N, 3) ordered polygon vertices, N >= 3

    Returns:
        Unit normal vector
    """
    points = np.asarray(points, dtype=float)
    following = np.roll(points, -1, axis=0)
    # Sum of cross products of consecutive vertices
    normal = np.cross(points, following).sum(axis=0)
    return normalize(normal)


def get_orthonormal_transform(
    from_axis1: np.ndarray,
    from_axis2: np.ndarray,
    to_axis1: np.ndarray,
    to_axis2: np.ndarray,
) -> Transform:
    """Rotation taking one oriented 2-frame onto another.

    Both frames are completed to right-handed orthonormal bases
    ``(a1, a2, a1 x a2)`` and the rotation maps ``from`` onto ``to``. The
    second axis of each pair is made orthogonal to the first before use.

    Args:
        from_axis1: First axis of the source frame
        from_axis2: Second axis of the source frame
        to_axis1: Image of ``from_axis1``
        to_axis2: Image of ``from_axis2``

    Returns:
        Function applying the rotation to a vector or an (N, 3) array

    Raises:
        ValueError: If the two axes of a frame are (near) parallel
    """
    source = _frame(from_axis1, from_axis2)
    target = _frame(to_axis1, to_axis2)
    matrix = target @ source.T

    def apply(vectors: np.ndarray) -> np.ndarray:
        return np.asarray(vectors, dtype=float) @ matrix.T

    return apply


def _frame(axis1: np.ndarray, axis2: np.ndarray) -> np.ndarray:
    """3x3 matrix whose columns are an orthonormal basis built from two axes."""
    e1 = normalize(axis1)
    axis2 = np.asarray(axis2, dtype=float)
    rest = axis2 - np.dot(axis2, e1) * e1
    if np.linalg.norm(rest) < PRECISION:
        raise ValueError("Frame axes must not be parallel")
    e2 = normalize(rest)
    return np.column_stack([e1, e2, np.cross(e1, e2)])


def with_origin(origin: np.ndarray, transform: Transform) -> Transform:
    """Apply a linear transform about *origin* instead of the coordinate origin."""
    origin = np.asarray(origin, dtype=float)

    def apply(vectors: np.ndarray) -> np.ndarray:
        return transform(np.asarray(vectors, dtype=float) - origin) + origin

    return apply

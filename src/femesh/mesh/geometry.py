"""
Geometry utilities shared by the element validity checks and the revision engine.

All functions take plain coordinate triples (numpy arrays or sequences).
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

import numpy as np

from femesh.config import COPLANARITY_TOLERANCE

if TYPE_CHECKING:
    import numpy.typing as npt

    Point = Sequence[float] | npt.NDArray[np.float64]

_SQR_MACHINE_EPS = np.finfo(np.float64).eps ** 2


def sqr_dist(a: Point, b: Point) -> float:
    """Squared Euclidean distance between two points."""
    d = np.asarray(b, dtype=np.float64) - np.asarray(a, dtype=np.float64)
    return float(np.dot(d, d))


def triangle_area(a: Point, b: Point, c: Point) -> float:
    """
    Area of the triangle (a, b, c).

    Returns:
        Half the length of the cross product of two edge vectors.
    """
    a = np.asarray(a, dtype=np.float64)
    u = np.asarray(b, dtype=np.float64) - a
    v = np.asarray(c, dtype=np.float64) - a
    return 0.5 * float(np.linalg.norm(np.cross(u, v)))


def signed_tetrahedron_volume(a: Point, b: Point, c: Point, d: Point) -> float:
    """
    Signed volume of the tetrahedron (a, b, c, d).

    The volume is positive when (b - a, c - a, d - a) forms a right-handed system.
    """
    a = np.asarray(a, dtype=np.float64)
    u = np.asarray(b, dtype=np.float64) - a
    v = np.asarray(c, dtype=np.float64) - a
    w = np.asarray(d, dtype=np.float64) - a
    return float(np.dot(np.cross(u, v), w)) / 6.0


def tetrahedron_volume(a: Point, b: Point, c: Point, d: Point) -> float:
    """Unsigned volume of the tetrahedron (a, b, c, d)."""
    return abs(signed_tetrahedron_volume(a, b, c, d))


def surface_normal(p0: Point, p1: Point, p2: Point) -> npt.NDArray[np.float64]:
    """
    Non-normalised normal of the face spanned by three consecutive face nodes.

    Computed as (p0 - p1) x (p2 - p1), i.e. the normal points to the side from
    which the nodes appear in clockwise order.
    """
    p1 = np.asarray(p1, dtype=np.float64)
    u = np.asarray(p0, dtype=np.float64) - p1
    v = np.asarray(p2, dtype=np.float64) - p1
    return np.cross(u, v)


def is_coplanar(a: Point, b: Point, c: Point, d: Point) -> bool:
    """
    Check whether four points lie in a common plane.

    In exact arithmetic the scalar triple product of (b - a, c - a, d - a) is
    zero for coplanar points. It is normalised by the squared edge lengths so
    the test does not depend on the element size.

    Args:
        a, b, c, d: The points to test.

    Returns:
        True if the points are coplanar (or if any of them coincides with a).
    """
    a = np.asarray(a, dtype=np.float64)
    ab = np.asarray(b, dtype=np.float64) - a
    ac = np.asarray(c, dtype=np.float64) - a
    ad = np.asarray(d, dtype=np.float64) - a

    sqr_ab = float(np.dot(ab, ab))
    sqr_ac = float(np.dot(ac, ac))
    sqr_ad = float(np.dot(ad, ad))
    if sqr_ab < _SQR_MACHINE_EPS or sqr_ac < _SQR_MACHINE_EPS or sqr_ad < _SQR_MACHINE_EPS:
        return True

    sqr_scalar_triple = float(np.dot(np.cross(ac, ad), ab)) ** 2
    normalisation_factor = sqr_ab * sqr_ac * sqr_ad
    return sqr_scalar_triple / normalisation_factor < COPLANARITY_TOLERANCE


def divided_by_plane(a: Point, b: Point, c: Point, d: Point) -> bool:
    """
    Check whether c and d lie on different sides of the line through a and b.

    The test is carried out in the three coordinate-plane projections; it is
    sufficient that the points are separated in one of them.
    """
    for x in range(3):
        y = (x + 1) % 3
        abc = (b[x] - a[x]) * (c[y] - a[y]) - (b[y] - a[y]) * (c[x] - a[x])
        abd = (b[x] - a[x]) * (d[y] - a[y]) - (b[y] - a[y]) * (d[x] - a[x])
        if (abc > 0 and abd < 0) or (abc < 0 and abd > 0):
            return True
    return False

"""Geometry reduction shared by every format parser."""

from dataclasses import dataclass

import numpy as np

from meshquote.core.models import BoundingBox


@dataclass(frozen=True)
class GeometrySummary:
    """Metrics reduced from a triangle soup (millimeters)."""

    triangle_count: int
    bounding_box: BoundingBox
    surface_area_mm2: float
    volume_mm3: float
    watertight_estimate: bool


def empty_triangles() -> np.ndarray:
    return np.zeros((0, 3, 3), dtype=np.float64)


def reduce_triangles(triangles: np.ndarray) -> GeometrySummary:
    """Reduce an ``(N, 3, 3)`` triangle array to bounding box, area, volume and
    the watertight estimate.

    Volume is the absolute sum of signed tetrahedra ``dot(v0, cross(v1, v2)) / 6``,
    which is the enclosed volume of any closed soup. The watertight estimate
    identifies vertices by exact coordinates and requires every undirected edge
    to appear in exactly two triangles.

    Args:
        triangles: Array of shape (N, 3, 3), already in millimeters

    Returns:
        GeometrySummary; zero triangles give all zeros and watertight=True
    """
    triangles = np.asarray(triangles, dtype=np.float64).reshape(-1, 3, 3)
    count = len(triangles)
    if count == 0:
        return GeometrySummary(
            triangle_count=0,
            bounding_box=BoundingBox(),
            surface_area_mm2=0.0,
            volume_mm3=0.0,
            watertight_estimate=True,
        )

    points = triangles.reshape(-1, 3)
    extents = points.max(axis=0) - points.min(axis=0)

    v0 = triangles[:, 0]
    v1 = triangles[:, 1]
    v2 = triangles[:, 2]
    area = 0.5 * np.linalg.norm(np.cross(v1 - v0, v2 - v0), axis=1).sum()
    signed = np.einsum("ij,ij->i", v0, np.cross(v1, v2)).sum() / 6.0

    return GeometrySummary(
        triangle_count=count,
        bounding_box=BoundingBox(
            x=float(extents[0]), y=float(extents[1]), z=float(extents[2])
        ),
        surface_area_mm2=float(area),
        volume_mm3=float(abs(signed)),
        watertight_estimate=edges_shared_twice(triangles),
    )


def edges_shared_twice(triangles: np.ndarray) -> bool:
    """Check that every undirected edge is used by exactly two triangles."""
    if len(triangles) == 0:
        return True

    _, vertex_ids = np.unique(triangles.reshape(-1, 3), axis=0, return_inverse=True)
    faces = vertex_ids.reshape(-1, 3)
    edges = np.concatenate([faces[:, [0, 1]], faces[:, [1, 2]], faces[:, [2, 0]]])
    edges.sort(axis=1)
    _, counts = np.unique(edges, axis=0, return_counts=True)
    return bool(np.all(counts == 2))

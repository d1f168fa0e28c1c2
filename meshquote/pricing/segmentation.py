"""Orientation search and segment-count estimation."""

import math
from dataclasses import dataclass

from meshquote.core.models import BoundingBox, SegmentationTier
from meshquote.pricing.config import BuildVolume, SegmentationConfig

# Index permutations of (x, y, z); the last position is the vertical axis.
ORIENTATIONS: tuple[tuple[int, int, int], ...] = (
    (0, 1, 2),
    (0, 2, 1),
    (1, 0, 2),
    (1, 2, 0),
    (2, 0, 1),
    (2, 1, 0),
)


@dataclass(frozen=True)
class SegmentationPlan:
    """Best orientation of a bounding box inside one printer's build volume."""

    orientation: tuple[int, int, int]
    oriented_box: BoundingBox
    segment_count: int


def orient(bbox: BoundingBox, orientation: tuple[int, int, int]) -> BoundingBox:
    dims = bbox.as_tuple()
    return BoundingBox(
        x=dims[orientation[0]], y=dims[orientation[1]], z=dims[orientation[2]]
    )


def estimate_segments(
    oriented: BoundingBox,
    build_volume: BuildVolume,
    config: SegmentationConfig,
) -> int:
    """Count the segments needed to print an already oriented box.

    A box that fits the build volume outright is a single segment. Otherwise
    each axis is split against the usable build length (build * efficiency),
    with the vertical count softened by ``soften_z``.
    """
    dims = oriented.as_tuple()
    build = build_volume.as_tuple()
    if all(d <= b for d, b in zip(dims, build)):
        return 1

    nx = math.ceil(dims[0] / (build[0] * config.efficiency))
    ny = math.ceil(dims[1] / (build[1] * config.efficiency))
    nz = math.ceil(dims[2] / (build[2] * config.efficiency))
    nz = max(1, math.ceil(nz * config.soften_z))
    return max(1, nx * ny * nz)


def best_orientation(
    bbox: BoundingBox,
    build_volume: BuildVolume,
    config: SegmentationConfig,
) -> SegmentationPlan:
    """Try all six axis permutations and keep the one with fewest segments.

    The first orientation in ``ORIENTATIONS`` wins ties.
    """
    best = None
    for orientation in ORIENTATIONS:
        oriented = orient(bbox, orientation)
        count = estimate_segments(oriented, build_volume, config)
        if best is None or count < best.segment_count:
            best = SegmentationPlan(orientation, oriented, count)
    return best


def segmentation_tier(segment_count: int, config: SegmentationConfig) -> SegmentationTier:
    if segment_count <= 1:
        return SegmentationTier.NONE
    if segment_count <= config.moderate_max_segments:
        return SegmentationTier.MODERATE
    return SegmentationTier.HEAVY

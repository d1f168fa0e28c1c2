"""Mesh analysis functionality for MeshQuote."""

from meshquote.processing.analyzer import (
    SUPPORTED_FORMATS,
    MeshAnalyzer,
    analyze,
    detect_format,
)
from meshquote.processing.geometry import GeometrySummary, reduce_triangles

__all__ = [
    "SUPPORTED_FORMATS",
    "MeshAnalyzer",
    "analyze",
    "detect_format",
    "GeometrySummary",
    "reduce_triangles",
]

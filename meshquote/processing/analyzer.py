"""Mesh file analysis: format dispatch, parsing and geometry reduction."""

import logging
import time
from pathlib import Path, PurePath
from typing import Callable, Optional, Union

import numpy as np

from meshquote.core.config import AnalyzerConfig
from meshquote.core.exceptions import MeshParseError, UnsupportedFormatError
from meshquote.core.models import MeshMetrics
from meshquote.processing.amf import parse_amf
from meshquote.processing.common import ParsedMesh
from meshquote.processing.geometry import reduce_triangles
from meshquote.processing.obj import parse_obj
from meshquote.processing.stl import parse_stl
from meshquote.processing.threemf import parse_3mf

logger = logging.getLogger(__name__)

SUPPORTED_FORMATS = ("stl", "obj", "3mf", "amf")


class MeshAnalyzer:
    """Converts a raw model file into a MeshMetrics record."""

    def __init__(self, config: Optional[AnalyzerConfig] = None):
        """Initialize mesh analyzer.

        Args:
            config: Analyzer limits; defaults apply when omitted
        """
        self.config = config or AnalyzerConfig()
        self._parsers: dict[str, Callable[[bytes], ParsedMesh]] = {
            "stl": parse_stl,
            "obj": parse_obj,
            "3mf": lambda buffer: parse_3mf(buffer, self.config),
            "amf": parse_amf,
        }

    def analyze(self, file_name: str, buffer: bytes) -> MeshMetrics:
        """Analyze a model file.

        The format is chosen from the file extension only.

        Args:
            file_name: Original file name
            buffer: Raw file content

        Returns:
            MeshMetrics with every spatial field in millimeters

        Raises:
            UnsupportedFormatError: If the extension is not STL, OBJ, 3MF or AMF
            MeshParseError: If the buffer is invalid for its format
        """
        fmt = detect_format(file_name)
        start = time.perf_counter()

        try:
            parsed = self._parsers[fmt](bytes(buffer))
        except MeshParseError:
            raise
        except Exception as e:
            logger.error(f"Unexpected failure parsing {file_name}: {e}", exc_info=True)
            raise MeshParseError(
                fmt, f"the file may be corrupt or malformed ({e})"
            ) from e

        if parsed.triangles.size and not np.isfinite(parsed.triangles).all():
            raise MeshParseError(fmt, "vertex coordinates contain NaN or infinity")

        summary = reduce_triangles(parsed.triangles)
        duration_ms = (time.perf_counter() - start) * 1000.0

        metrics = MeshMetrics(
            format=fmt,
            units=parsed.units,
            triangle_count=summary.triangle_count,
            bounding_box=summary.bounding_box,
            surface_area_mm2=summary.surface_area_mm2,
            volume_mm3=summary.volume_mm3,
            watertight_estimate=summary.watertight_estimate,
            notes=tuple(parsed.notes),
            file_bytes=len(buffer),
            parse_duration_ms=duration_ms,
        )
        logger.info(
            f"Analyzed {file_name}: {metrics.triangle_count} triangles, "
            f"bbox {metrics.bounding_box.x:.2f} x {metrics.bounding_box.y:.2f} x "
            f"{metrics.bounding_box.z:.2f} mm in {duration_ms:.1f} ms"
        )
        return metrics

    def analyze_file(self, file_path: Union[str, Path]) -> MeshMetrics:
        """Read a file from disk and analyze it.

        Raises:
            UnsupportedFormatError: If the extension is not supported
            MeshParseError: If the file cannot be read or parsed
        """
        file_path = Path(file_path)
        fmt = detect_format(file_path.name)
        try:
            buffer = file_path.read_bytes()
        except OSError as e:
            raise MeshParseError(fmt, f"cannot read '{file_path}': {e}") from e
        return self.analyze(file_path.name, buffer)


def detect_format(file_name: str) -> str:
    """Map a file name to one of the supported format keys.

    Raises:
        UnsupportedFormatError: If the extension is not supported
    """
    extension = PurePath(file_name).suffix.lower()
    fmt = extension.lstrip(".")
    if fmt not in SUPPORTED_FORMATS:
        raise UnsupportedFormatError(file_name, extension)
    return fmt


def analyze(
    file_name: str,
    buffer: bytes,
    config: Optional[AnalyzerConfig] = None,
) -> MeshMetrics:
    """Convenience function to analyze a model buffer.

    Args:
        file_name: Original file name (used for format dispatch)
        buffer: Raw file content
        config: Optional analyzer limits

    Returns:
        MeshMetrics for the file

    Raises:
        UnsupportedFormatError: If the extension is not supported
        MeshParseError: If the buffer is invalid for its format
    """
    return MeshAnalyzer(config).analyze(file_name, buffer)

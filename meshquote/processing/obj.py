"""Wavefront OBJ parsing."""

import logging

import numpy as np

from meshquote.core.exceptions import MeshParseError
from meshquote.processing.common import ASSUMED_MM, ParsedMesh
from meshquote.processing.geometry import empty_triangles

logger = logging.getLogger(__name__)


def parse_obj(buffer: bytes) -> ParsedMesh:
    """Parse an OBJ buffer into triangles.

    Faces with more than three vertices are fan-triangulated. Face references
    may be 1-based or negative (relative to the current end of the vertex
    pool). References that do not resolve are skipped.

    Raises:
        MeshParseError: If a vertex line holds malformed numbers
    """
    text = buffer.decode("utf-8", errors="replace")
    mesh = ParsedMesh(triangles=empty_triangles(), units=ASSUMED_MM)
    vertices: list[tuple[float, float, float]] = []
    triangles: list[tuple[int, int, int]] = []

    for line_no, line in enumerate(text.splitlines(), 1):
        parts = line.split()
        if not parts:
            continue
        keyword = parts[0]

        if keyword == "v":
            if len(parts) < 4:
                raise MeshParseError("obj", f"line {line_no}: vertex needs three coordinates")
            try:
                vertices.append((float(parts[1]), float(parts[2]), float(parts[3])))
            except ValueError as e:
                raise MeshParseError("obj", f"line {line_no}: {e}") from e

        elif keyword == "f":
            face = _resolve_face(parts[1:], len(vertices), mesh)
            if len(face) < 3:
                continue
            if len(face) > 3:
                mesh.note("triangulated_ngons")
            for i in range(1, len(face) - 1):
                triangles.append((face[0], face[i], face[i + 1]))

    if triangles:
        pool = np.array(vertices, dtype=np.float64)
        mesh.triangles = pool[np.array(triangles, dtype=np.int64)]

    logger.debug(f"Parsed OBJ with {len(vertices)} vertices, {len(triangles)} triangles")
    return mesh


def _resolve_face(refs: list[str], pool_size: int, mesh: ParsedMesh) -> list[int]:
    """Turn ``i``, ``i/t``, ``i//n`` or ``i/t/n`` references into 0-based indices."""
    indices = []
    for ref in refs:
        head = ref.split("/", 1)[0]
        try:
            index = int(head)
        except ValueError:
            mesh.note("invalid_face_references_skipped")
            continue

        if index < 0:
            mesh.note("negative_indices_resolved")
            index = pool_size + index
        else:
            index -= 1

        if not 0 <= index < pool_size:
            mesh.note("invalid_face_references_skipped")
            continue
        indices.append(index)
    return indices

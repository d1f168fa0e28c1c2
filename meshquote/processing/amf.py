"""AMF (Additive Manufacturing File) parsing."""

import logging
from typing import Optional
from xml.etree import ElementTree as ET

import numpy as np

from meshquote.core.exceptions import MeshParseError
from meshquote.processing.common import (
    ParsedMesh,
    child,
    children,
    local_name,
    resolve_unit,
)
from meshquote.processing.geometry import empty_triangles

logger = logging.getLogger(__name__)


def parse_amf(buffer: bytes) -> ParsedMesh:
    """Parse an uncompressed AMF document.

    Each object owns a vertex pool scaled by the document unit; every volume of
    the object indexes into that pool. Objects and volumes are merged into a
    single triangle set.

    Raises:
        MeshParseError: On XML errors or out-of-range triangle indices
    """
    try:
        root = ET.fromstring(buffer)
    except ET.ParseError as e:
        raise MeshParseError("amf", f"not valid XML: {e}") from e

    if local_name(root.tag) != "amf":
        raise MeshParseError("amf", f"unexpected root element <{local_name(root.tag)}>")

    unit, factor, unit_note = resolve_unit(root.get("unit"))
    mesh = ParsedMesh(triangles=empty_triangles(), units=unit)
    if unit_note:
        mesh.note(unit_note)

    objects = children(root, "object")
    if len(objects) > 1:
        mesh.note("multi_object_combined")

    parts: list[np.ndarray] = []
    for obj in objects:
        mesh_node = child(obj, "mesh")
        if mesh_node is None:
            continue
        object_id = obj.get("id")
        vertices = _read_vertices(mesh_node, factor, object_id)

        volumes = children(mesh_node, "volume")
        if len(volumes) > 1:
            mesh.note("multi_volume_combined")

        for volume in volumes:
            indices = _read_volume(volume, len(vertices), object_id)
            if len(indices):
                parts.append(vertices[indices])

    if parts:
        mesh.triangles = np.concatenate(parts)

    logger.debug(f"Parsed AMF ({unit}) with {len(objects)} objects, {len(mesh.triangles)} triangles")
    return mesh


def _value(element: ET.Element, name: str) -> Optional[str]:
    """Read ``name`` from a child element's text, falling back to an attribute."""
    node = child(element, name)
    if node is not None and node.text is not None:
        return node.text.strip()
    return element.get(name)


def _read_vertices(mesh_node: ET.Element, factor: float, object_id: Optional[str]) -> np.ndarray:
    vertices_node = child(mesh_node, "vertices")
    if vertices_node is None:
        return np.zeros((0, 3), dtype=np.float64)

    coords = []
    for vertex in children(vertices_node, "vertex"):
        source = child(vertex, "coordinates")
        if source is None:
            source = vertex
        try:
            coords.append(
                tuple(float(_value(source, axis) or 0.0) * factor for axis in ("x", "y", "z"))
            )
        except ValueError as e:
            raise MeshParseError("amf", f"object {object_id}: invalid coordinate: {e}") from e

    if not coords:
        return np.zeros((0, 3), dtype=np.float64)
    return np.array(coords, dtype=np.float64)


def _read_volume(volume: ET.Element, vertex_count: int, object_id: Optional[str]) -> np.ndarray:
    rows = []
    for triangle in children(volume, "triangle"):
        try:
            row = tuple(int(_value(triangle, key)) for key in ("v1", "v2", "v3"))
        except (TypeError, ValueError) as e:
            raise MeshParseError("amf", f"object {object_id}: invalid triangle: {e}") from e
        if not all(0 <= v < vertex_count for v in row):
            raise MeshParseError(
                "amf",
                f"object {object_id}: triangle index out of bounds {row} "
                f"for {vertex_count} vertices",
            )
        rows.append(row)

    if not rows:
        return np.zeros((0, 3), dtype=np.int64)
    return np.array(rows, dtype=np.int64)

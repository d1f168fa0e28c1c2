"""3MF parsing: zip container with an XML model part."""

import io
import logging
import zipfile
from typing import Optional
from xml.etree import ElementTree as ET

import numpy as np

from meshquote.core.config import AnalyzerConfig
from meshquote.core.exceptions import MeshParseError
from meshquote.processing.common import ParsedMesh, child, children, resolve_unit
from meshquote.processing.geometry import empty_triangles

logger = logging.getLogger(__name__)

PREFERRED_MODEL_PART = "3d/3dmodel.model"


def parse_3mf(buffer: bytes, config: Optional[AnalyzerConfig] = None) -> ParsedMesh:
    """Parse a 3MF archive.

    Vertices are scaled to millimeters as they are read. All mesh objects are
    merged into one triangle set; build item and component transforms are not
    applied.

    Args:
        buffer: Raw archive content
        config: Analyzer limits (archive entry count, model part size)

    Raises:
        MeshParseError: On archive, limit, XML or index errors
    """
    config = config or AnalyzerConfig()

    try:
        archive = zipfile.ZipFile(io.BytesIO(buffer))
    except (zipfile.BadZipFile, OSError) as e:
        raise MeshParseError("3mf", f"not a valid zip archive: {e}") from e

    with archive:
        infos = archive.infolist()
        if len(infos) > config.max_archive_entries:
            raise MeshParseError(
                "3mf",
                f"archive has {len(infos)} entries, limit is {config.max_archive_entries}",
            )
        part = _find_model_part(infos)
        if part is None:
            raise MeshParseError("3mf", "no .model part found in archive")
        payload = _read_bounded(archive, part, config.max_model_part_bytes)

    try:
        root = ET.fromstring(payload)
    except ET.ParseError as e:
        raise MeshParseError("3mf", f"model part '{part.filename}' is not valid XML: {e}") from e

    return _parse_model(root)


def _find_model_part(infos: list[zipfile.ZipInfo]) -> Optional[zipfile.ZipInfo]:
    candidates = [i for i in infos if not i.is_dir() and i.filename.lower().endswith(".model")]
    in_3d = [i for i in candidates if i.filename.lower().startswith("3d/")]
    for info in in_3d:
        if info.filename.lower() == PREFERRED_MODEL_PART:
            return info
    if in_3d:
        return in_3d[0]
    return candidates[0] if candidates else None


def _read_bounded(archive: zipfile.ZipFile, info: zipfile.ZipInfo, limit: int) -> bytes:
    if info.file_size > limit:
        raise MeshParseError(
            "3mf",
            f"model part '{info.filename}' is {info.file_size} bytes uncompressed, "
            f"limit is {limit}",
        )
    try:
        with archive.open(info) as f:
            data = f.read(limit + 1)
    except (zipfile.BadZipFile, OSError, RuntimeError) as e:
        raise MeshParseError("3mf", f"cannot read model part '{info.filename}': {e}") from e
    # The declared size can lie; the bounded read is what counts.
    if len(data) > limit:
        raise MeshParseError(
            "3mf", f"model part '{info.filename}' exceeds {limit} bytes uncompressed"
        )
    return data


def _parse_model(root: ET.Element) -> ParsedMesh:
    unit, factor, unit_note = resolve_unit(root.get("unit"))
    mesh = ParsedMesh(triangles=empty_triangles(), units=unit)
    if unit_note:
        mesh.note(unit_note)

    resources = child(root, "resources")
    if resources is None:
        raise MeshParseError("3mf", "no resources found in model")

    pool: list[np.ndarray] = []
    faces: list[np.ndarray] = []
    offset = 0
    mesh_objects = 0
    has_transform = False

    for obj in children(resources, "object"):
        components = child(obj, "components")
        if components is not None:
            has_transform |= any(
                c.get("transform") for c in children(components, "component")
            )

        mesh_node = child(obj, "mesh")
        if mesh_node is None:
            continue
        mesh_objects += 1

        vertices = _read_vertices(mesh_node, factor, obj.get("id"))
        indices = _read_triangles(mesh_node, len(vertices), obj.get("id"))
        pool.append(vertices)
        faces.append(indices + offset)
        offset += len(vertices)

    build = child(root, "build")
    if build is not None:
        has_transform |= any(item.get("transform") for item in children(build, "item"))

    if mesh_objects > 1:
        mesh.note("multi_object_combined")
    if has_transform:
        mesh.note("transforms_ignored")

    if faces and offset:
        all_faces = np.concatenate(faces)
        if len(all_faces):
            mesh.triangles = np.concatenate(pool)[all_faces]

    logger.debug(
        f"Parsed 3MF model ({unit}) with {mesh_objects} mesh objects, "
        f"{len(mesh.triangles)} triangles"
    )
    return mesh


def _read_vertices(mesh_node: ET.Element, factor: float, object_id: Optional[str]) -> np.ndarray:
    vertices_node = child(mesh_node, "vertices")
    if vertices_node is None:
        return np.zeros((0, 3), dtype=np.float64)
    coords = []
    for vertex in children(vertices_node, "vertex"):
        try:
            coords.append(
                (
                    float(vertex.get("x", "0")) * factor,
                    float(vertex.get("y", "0")) * factor,
                    float(vertex.get("z", "0")) * factor,
                )
            )
        except ValueError as e:
            raise MeshParseError("3mf", f"object {object_id}: invalid vertex: {e}") from e
    if not coords:
        return np.zeros((0, 3), dtype=np.float64)
    return np.array(coords, dtype=np.float64)


def _read_triangles(mesh_node: ET.Element, vertex_count: int, object_id: Optional[str]) -> np.ndarray:
    triangles_node = child(mesh_node, "triangles")
    if triangles_node is None:
        return np.zeros((0, 3), dtype=np.int64)
    rows = []
    for triangle in children(triangles_node, "triangle"):
        try:
            row = (int(triangle.get("v1")), int(triangle.get("v2")), int(triangle.get("v3")))
        except (TypeError, ValueError) as e:
            raise MeshParseError("3mf", f"object {object_id}: invalid triangle: {e}") from e
        if not all(0 <= v < vertex_count for v in row):
            raise MeshParseError(
                "3mf",
                f"object {object_id}: triangle index {row} out of range "
                f"for {vertex_count} vertices",
            )
        rows.append(row)
    if not rows:
        return np.zeros((0, 3), dtype=np.int64)
    return np.array(rows, dtype=np.int64)

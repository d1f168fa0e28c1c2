"""STL parsing (binary and ASCII)."""

import logging
import struct

import numpy as np

from meshquote.core.exceptions import MeshParseError
from meshquote.processing.common import ASSUMED_MM, ParsedMesh
from meshquote.processing.geometry import empty_triangles

logger = logging.getLogger(__name__)

HEADER_SIZE = 80
PREAMBLE_SIZE = HEADER_SIZE + 4
RECORD_SIZE = 50

# normal, three vertices, attribute byte count; all little-endian
RECORD_DTYPE = np.dtype(
    [
        ("normal", "<f4", (3,)),
        ("vertices", "<f4", (3, 3)),
        ("attribute", "<u2"),
    ]
)

# Leading bytes searched for ASCII keywords when a "solid" header is ambiguous.
SNIFF_BYTES = 1024

ASCII_KEYWORDS = frozenset({"facet", "vertex", "endsolid"})


def parse_stl(buffer: bytes) -> ParsedMesh:
    """Parse an STL buffer.

    Args:
        buffer: Raw file content

    Returns:
        ParsedMesh with triangles in the file's (assumed millimeter) units

    Raises:
        MeshParseError: If the buffer is neither valid binary nor ASCII STL
    """
    if len(buffer) == 0:
        raise MeshParseError("stl", "file is empty")

    mesh = ParsedMesh(triangles=empty_triangles(), units=ASSUMED_MM)

    if _is_binary_stl(buffer):
        count = struct.unpack_from("<I", buffer, HEADER_SIZE)[0]
        mesh.triangles = _parse_binary(buffer, count)
        if len(buffer) > PREAMBLE_SIZE + RECORD_SIZE * count:
            mesh.note("trailing_bytes_ignored")
        logger.debug(f"Parsed binary STL with {count} triangles")
        return mesh

    mesh.triangles = _parse_ascii(buffer, mesh)
    logger.debug(f"Parsed ASCII STL with {len(mesh.triangles)} triangles")
    return mesh


def _starts_with_solid(buffer: bytes) -> bool:
    return buffer[:SNIFF_BYTES].lstrip()[:5].lower() == b"solid"


def _expected_binary_size(buffer: bytes) -> int | None:
    if len(buffer) < PREAMBLE_SIZE:
        return None
    count = struct.unpack_from("<I", buffer, HEADER_SIZE)[0]
    return PREAMBLE_SIZE + RECORD_SIZE * count


def _is_binary_stl(buffer: bytes) -> bool:
    """Decide between the binary and ASCII layouts.

    A "solid" header normally means ASCII, but some exporters write binary
    files whose header begins with "solid"; those are recognised by an exact
    size match and the absence of ASCII facet keywords.
    """
    expected = _expected_binary_size(buffer)
    if expected is None:
        return False

    if _starts_with_solid(buffer):
        return len(buffer) == expected and b"facet" not in buffer[:SNIFF_BYTES].lower()

    return len(buffer) >= expected


def _parse_binary(buffer: bytes, count: int) -> np.ndarray:
    if count == 0:
        return empty_triangles()
    records = np.frombuffer(buffer, dtype=RECORD_DTYPE, count=count, offset=PREAMBLE_SIZE)
    return records["vertices"].astype(np.float64)


def _truncated_binary_error(buffer: bytes, expected: int) -> MeshParseError:
    return MeshParseError(
        "stl",
        f"binary STL is truncated or inconsistent: header declares "
        f"{(expected - PREAMBLE_SIZE) // RECORD_SIZE} triangles "
        f"({expected} bytes) but the file has {len(buffer)} bytes",
    )


def _has_ascii_body(tokens: list[str]) -> bool:
    return any(token.lower() in ASCII_KEYWORDS for token in tokens)


def _parse_ascii(buffer: bytes, mesh: ParsedMesh) -> np.ndarray:
    text = buffer.decode("utf-8", errors="replace")
    tokens = text.split()
    expected = _expected_binary_size(buffer)

    if not tokens or tokens[0].lower() != "solid":
        if expected is not None:
            raise _truncated_binary_error(buffer, expected)
        raise MeshParseError("stl", "not a binary STL and missing ASCII 'solid' header")

    # A "solid" header over binary records: NUL bytes or no ASCII keywords at all
    if not _has_ascii_body(tokens[1:]) and (expected is not None or b"\0" in buffer):
        if expected is not None:
            raise _truncated_binary_error(buffer, expected)
        raise MeshParseError("stl", "binary STL is truncated before its triangle count")

    vertices: list[tuple[float, float, float]] = []
    i = 0
    n = len(tokens)
    while i < n:
        if tokens[i].lower() == "vertex":
            if i + 3 >= n:
                raise MeshParseError("stl", "vertex line is missing coordinates")
            try:
                vertices.append(
                    (float(tokens[i + 1]), float(tokens[i + 2]), float(tokens[i + 3]))
                )
            except ValueError as e:
                raise MeshParseError("stl", f"invalid vertex coordinate: {e}") from e
            i += 4
        else:
            i += 1

    usable = len(vertices) - len(vertices) % 3
    if usable != len(vertices):
        mesh.note("incomplete_facet_dropped")
    if usable == 0:
        return empty_triangles()
    return np.array(vertices[:usable], dtype=np.float64).reshape(-1, 3, 3)

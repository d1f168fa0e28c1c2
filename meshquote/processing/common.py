"""Types and helpers shared by the format parsers."""

from dataclasses import dataclass, field
from typing import Optional
from xml.etree import ElementTree as ET

import numpy as np

# Source units label for formats that carry no unit information.
ASSUMED_MM = "unknown_assumed_mm"

UNIT_TO_MM = {
    "millimeter": 1.0,
    "centimeter": 10.0,
    "meter": 1000.0,
    "micron": 0.001,
    "inch": 25.4,
    "foot": 304.8,
}


@dataclass
class ParsedMesh:
    """Triangles (N, 3, 3) in millimeters plus the parser's caveats."""

    triangles: np.ndarray
    units: str
    notes: list[str] = field(default_factory=list)

    def note(self, message: str) -> None:
        """Record a note once, keeping first-seen order."""
        if message not in self.notes:
            self.notes.append(message)


def resolve_unit(declared: Optional[str]) -> tuple[str, float, Optional[str]]:
    """Map a declared XML unit to (unit, factor to mm, note).

    Missing or unrecognised units fall back to millimeters with a note.
    """
    if declared is None or not declared.strip():
        return "millimeter", 1.0, "unit_missing_assumed_mm"

    unit = declared.strip().lower()
    if unit not in UNIT_TO_MM:
        return "millimeter", 1.0, f"invalid_unit_assumed_mm: {declared}"
    return unit, UNIT_TO_MM[unit], None


def local_name(tag: str) -> str:
    """Strip an ElementTree ``{namespace}`` prefix from a tag."""
    return tag.rsplit("}", 1)[-1]


def children(element: ET.Element, name: str) -> list[ET.Element]:
    """Direct children whose local name matches, in any namespace."""
    return [child for child in element if local_name(child.tag) == name]


def child(element: ET.Element, name: str) -> Optional[ET.Element]:
    for candidate in element:
        if local_name(candidate.tag) == name:
            return candidate
    return None

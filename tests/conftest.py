"""Shared test fixtures and configuration."""

import io
import struct
import zipfile
from pathlib import Path
from typing import Callable, Optional

import numpy as np
import pytest
import trimesh

from meshquote.core import Config, EstimatorBaseline
from meshquote.pricing import PricingConfiguration, load_pricing

CORE_NS = "http://schemas.microsoft.com/3dmanufacturing/core/2015/02"


def _printer(name: str, size: float, **overrides) -> dict:
    printer = {
        "name": name,
        "build_volume_mm": {"x": size, "y": size, "z": size},
        "capabilities": {
            "max_nozzle_c": 300.0,
            "max_bed_c": 110.0,
            "has_enclosure": True,
            "has_hardened_nozzle": True,
        },
        "hourly_rates": {"0.4": 10.0, "0.6": 12.0},
        "bed_cycle_rates": {"0.4": 200.0, "0.6": 220.0},
        "bed_cycle_hours": 24.0,
        "fleet_count": 2,
        "max_segments": 24,
    }
    printer.update(overrides)
    return printer


def _filaments() -> dict:
    return {
        "PLA": {
            "name": "PLA",
            "sell_price_per_gram": 0.05,
            "density_g_cm3": 1.24,
            "requirements": {"min_nozzle_c": 210.0, "min_bed_c": 60.0},
        },
        "PA-CF": {
            "name": "Nylon CF",
            "sell_price_per_gram": 0.2,
            "density_g_cm3": 1.2,
            "requirements": {
                "min_nozzle_c": 280.0,
                "min_bed_c": 100.0,
                "requires_enclosure": True,
                "requires_hardened_nozzle": True,
            },
        },
        "PEEK": {
            "name": "PEEK",
            "sell_price_per_gram": 1.0,
            "requirements": {
                "min_nozzle_c": 400.0,
                "min_bed_c": 120.0,
                "requires_heated_chamber": True,
                "requires_chamber_temp_c": 90.0,
            },
        },
    }


@pytest.fixture
def pricing_data() -> dict:
    """Raw catalog with a single 380 mm printer."""
    return {
        "version": "test",
        "currency": "USD",
        "printers": {"big380": _printer("Big 380", 380.0)},
        "filaments": _filaments(),
        "unit_sanity": {
            "enabled": True,
            "scale_rules": [
                {
                    "if_max_dim_greater_than": 60000.0,
                    "scale_divisor": 1000.0,
                    "label": "Scaled by 1/1000 (microns suspected).",
                },
                {
                    "if_max_dim_greater_than": 6000.0,
                    "scale_divisor": 10.0,
                    "label": "Scaled by 1/10 (tenths of a millimeter suspected).",
                },
            ],
        },
    }


@pytest.fixture
def single_printer_pricing(pricing_data: dict) -> PricingConfiguration:
    """Catalog with one printer that has a 380 mm build volume."""
    return PricingConfiguration.from_dict(pricing_data)


@pytest.fixture
def fleet_pricing(pricing_data: dict) -> PricingConfiguration:
    """Catalog with a small open printer, a mid enclosed one and a large one."""
    data = dict(pricing_data)
    data["printers"] = {
        "small_open": _printer(
            "Small Open",
            200.0,
            capabilities={"max_nozzle_c": 290.0, "max_bed_c": 110.0},
            hourly_rates={"0.4": 4.0},
            bed_cycle_rates={"0.4": 60.0},
            fleet_count=5,
        ),
        "mid": _printer("Mid", 300.0, hourly_rates={"0.4": 8.0, "0.6": 9.0}, fleet_count=3),
        "large": _printer("Large", 600.0, hourly_rates={"0.4": 15.0, "0.6": 16.0}),
    }
    return PricingConfiguration.from_dict(data)


@pytest.fixture
def default_pricing() -> PricingConfiguration:
    """The packaged default catalog."""
    return load_pricing()


@pytest.fixture
def test_config() -> Config:
    """Create a test configuration."""
    return Config(logging={"level": "WARNING", "format": "plain"})


@pytest.fixture
def baseline() -> EstimatorBaseline:
    """5 hours / 50 grams."""
    return EstimatorBaseline(print_time_hours=5.0, material_grams=50.0)


@pytest.fixture
def cube_mesh() -> trimesh.Trimesh:
    """A 100 mm cube with outward winding."""
    return trimesh.creation.box(extents=[100, 100, 100])


@pytest.fixture
def sphere_mesh() -> trimesh.Trimesh:
    """A closed icosphere of radius 20 mm."""
    return trimesh.creation.icosphere(subdivisions=2, radius=20.0)


@pytest.fixture
def single_triangle() -> np.ndarray:
    return np.array([[[0, 0, 0], [10, 0, 0], [0, 10, 0]]], dtype=np.float64)


def _binary_stl(triangles: np.ndarray, header: bytes = b"binary stl") -> bytes:
    triangles = np.asarray(triangles, dtype=np.float32).reshape(-1, 3, 3)
    out = io.BytesIO()
    out.write(header[:80].ljust(80, b"\0"))
    out.write(struct.pack("<I", len(triangles)))
    for tri in triangles:
        out.write(struct.pack("<3f", 0.0, 0.0, 0.0))
        out.write(tri.astype("<f4").tobytes())
        out.write(struct.pack("<H", 0))
    return out.getvalue()


def _ascii_stl(triangles: np.ndarray, name: str = "part") -> bytes:
    lines = [f"solid {name}"]
    for tri in np.asarray(triangles).reshape(-1, 3, 3):
        lines.append("  facet normal 0 0 0")
        lines.append("    outer loop")
        for v in tri:
            lines.append(f"      vertex {v[0]:.6f} {v[1]:.6f} {v[2]:.6f}")
        lines.append("    endloop")
        lines.append("  endfacet")
    lines.append(f"endsolid {name}")
    return ("\n".join(lines) + "\n").encode()


def _obj(vertices, faces) -> bytes:
    lines = ["# test object"]
    lines += [f"v {x} {y} {z}" for x, y, z in vertices]
    lines += ["f " + " ".join(str(i) for i in face) for face in faces]
    return ("\n".join(lines) + "\n").encode()


def _model_xml(
    objects: list[tuple[np.ndarray, np.ndarray]],
    unit: Optional[str] = "millimeter",
    item_transform: Optional[str] = None,
) -> str:
    unit_attr = f' unit="{unit}"' if unit is not None else ""
    parts = [f'<?xml version="1.0" encoding="UTF-8"?>\n<model xmlns="{CORE_NS}"{unit_attr}>']
    parts.append("<resources>")
    for object_id, (vertices, faces) in enumerate(objects, 1):
        parts.append(f'<object id="{object_id}" type="model"><mesh><vertices>')
        parts += [f'<vertex x="{x}" y="{y}" z="{z}"/>' for x, y, z in vertices]
        parts.append("</vertices><triangles>")
        parts += [f'<triangle v1="{a}" v2="{b}" v3="{c}"/>' for a, b, c in faces]
        parts.append("</triangles></mesh></object>")
    parts.append("</resources><build>")
    for object_id in range(1, len(objects) + 1):
        transform = f' transform="{item_transform}"' if item_transform else ""
        parts.append(f'<item objectid="{object_id}"{transform}/>')
    parts.append("</build></model>")
    return "".join(parts)


def _threemf(
    objects: list[tuple[np.ndarray, np.ndarray]],
    unit: Optional[str] = "millimeter",
    item_transform: Optional[str] = None,
    part_name: str = "3D/3dmodel.model",
    extra_entries: int = 0,
) -> bytes:
    out = io.BytesIO()
    with zipfile.ZipFile(out, "w", zipfile.ZIP_DEFLATED) as archive:
        archive.writestr("[Content_Types].xml", "<Types/>")
        archive.writestr(part_name, _model_xml(objects, unit, item_transform))
        for i in range(extra_entries):
            archive.writestr(f"Metadata/extra_{i}.txt", "x")
    return out.getvalue()


def _amf(
    objects: list[tuple[np.ndarray, list[np.ndarray]]],
    unit: Optional[str] = "millimeter",
) -> bytes:
    unit_attr = f' unit="{unit}"' if unit is not None else ""
    parts = [f'<?xml version="1.0" encoding="UTF-8"?>\n<amf{unit_attr}>']
    for object_id, (vertices, volumes) in enumerate(objects):
        parts.append(f'<object id="{object_id}"><mesh><vertices>')
        for x, y, z in vertices:
            parts.append(
                f"<vertex><coordinates><x>{x}</x><y>{y}</y><z>{z}</z></coordinates></vertex>"
            )
        parts.append("</vertices>")
        for faces in volumes:
            parts.append("<volume>")
            parts += [
                f"<triangle><v1>{a}</v1><v2>{b}</v2><v3>{c}</v3></triangle>"
                for a, b, c in faces
            ]
            parts.append("</volume>")
        parts.append("</mesh></object>")
    parts.append("</amf>")
    return "".join(parts).encode()


@pytest.fixture
def make_binary_stl() -> Callable[..., bytes]:
    return _binary_stl


@pytest.fixture
def make_ascii_stl() -> Callable[..., bytes]:
    return _ascii_stl


@pytest.fixture
def make_obj() -> Callable[..., bytes]:
    return _obj


@pytest.fixture
def make_3mf() -> Callable[..., bytes]:
    return _threemf


@pytest.fixture
def make_amf() -> Callable[..., bytes]:
    return _amf


@pytest.fixture
def unit_cube() -> tuple[np.ndarray, np.ndarray]:
    """Vertices and outward-wound faces of a 1x1x1 cube at the origin."""
    vertices = np.array(
        [
            [0, 0, 0], [1, 0, 0], [1, 1, 0], [0, 1, 0],
            [0, 0, 1], [1, 0, 1], [1, 1, 1], [0, 1, 1],
        ],
        dtype=np.float64,
    )
    faces = np.array(
        [
            [0, 2, 1], [0, 3, 2],  # bottom
            [4, 5, 6], [4, 6, 7],  # top
            [0, 1, 5], [0, 5, 4],  # front
            [1, 2, 6], [1, 6, 5],  # right
            [2, 3, 7], [2, 7, 6],  # back
            [3, 0, 4], [3, 4, 7],  # left
        ],
        dtype=np.int64,
    )
    return vertices, faces


@pytest.fixture
def cube_stl_path(tmp_path: Path, cube_mesh: trimesh.Trimesh) -> Path:
    """A 100 mm cube written as binary STL."""
    path = tmp_path / "cube.stl"
    path.write_bytes(_binary_stl(cube_mesh.triangles))
    return path


# Markers for different test categories
def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "unit: Unit tests that test individual components"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests that test multiple components"
    )
    config.addinivalue_line(
        "markers", "slow: Tests that take more than 1 second"
    )

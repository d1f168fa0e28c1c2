"""Unit tests for 3MF parsing."""

import io
import zipfile

import numpy as np
import pytest

from meshquote.core.config import AnalyzerConfig
from meshquote.core.exceptions import MeshParseError
from meshquote.processing.geometry import reduce_triangles
from meshquote.processing.threemf import parse_3mf


class Test3MFParsing:
    """Test 3MF model parts, units and notes."""

    def test_parse_cube_mm(self, unit_cube, make_3mf):
        parsed = parse_3mf(make_3mf([unit_cube]))

        assert parsed.units == "millimeter"
        assert parsed.triangles.shape == (12, 3, 3)
        assert parsed.notes == []

    def test_centimeter_cube_is_10mm(self, unit_cube, make_3mf):
        """A 1x1x1 cube in centimeters yields a 10 mm bounding box."""
        parsed = parse_3mf(make_3mf([unit_cube], unit="centimeter"))
        summary = reduce_triangles(parsed.triangles)

        assert parsed.units == "centimeter"
        assert summary.bounding_box.as_tuple() == pytest.approx((10.0, 10.0, 10.0))
        assert summary.volume_mm3 == pytest.approx(1000.0)

    @pytest.mark.parametrize(
        "unit,expected",
        [("inch", 25.4), ("meter", 1000.0), ("micron", 0.001), ("foot", 304.8)],
    )
    def test_unit_factors(self, unit, expected, unit_cube, make_3mf):
        parsed = parse_3mf(make_3mf([unit_cube], unit=unit))

        assert reduce_triangles(parsed.triangles).bounding_box.x == pytest.approx(expected)

    def test_missing_unit_defaults_to_mm(self, unit_cube, make_3mf):
        parsed = parse_3mf(make_3mf([unit_cube], unit=None))

        assert parsed.units == "millimeter"
        assert "unit_missing_assumed_mm" in parsed.notes

    def test_unknown_unit_defaults_to_mm(self, unit_cube, make_3mf):
        parsed = parse_3mf(make_3mf([unit_cube], unit="furlong"))

        assert parsed.units == "millimeter"
        assert "invalid_unit_assumed_mm: furlong" in parsed.notes

    def test_multiple_objects_combined(self, unit_cube, make_3mf):
        """Vertex indices are offset per object."""
        vertices, faces = unit_cube
        moved = (vertices + np.array([5.0, 0.0, 0.0]), faces)
        parsed = parse_3mf(make_3mf([unit_cube, moved]))
        summary = reduce_triangles(parsed.triangles)

        assert summary.triangle_count == 24
        assert summary.bounding_box.x == pytest.approx(6.0)
        assert summary.volume_mm3 == pytest.approx(2.0)
        assert "multi_object_combined" in parsed.notes

    def test_transform_noted_and_ignored(self, unit_cube, make_3mf):
        buffer = make_3mf([unit_cube], item_transform="2 0 0 0 2 0 0 0 2 0 0 0")
        parsed = parse_3mf(buffer)

        assert "transforms_ignored" in parsed.notes
        assert reduce_triangles(parsed.triangles).bounding_box.x == pytest.approx(1.0)

    def test_model_part_outside_3d_folder(self, unit_cube, make_3mf):
        parsed = parse_3mf(make_3mf([unit_cube], part_name="other/thing.model"))

        assert parsed.triangles.shape == (12, 3, 3)


class Test3MFErrors:
    """Test archive and content errors."""

    def test_not_a_zip(self):
        with pytest.raises(MeshParseError, match="zip"):
            parse_3mf(b"definitely not a zip archive")

    def test_missing_model_part(self):
        out = io.BytesIO()
        with zipfile.ZipFile(out, "w") as archive:
            archive.writestr("[Content_Types].xml", "<Types/>")

        with pytest.raises(MeshParseError, match="no .model part"):
            parse_3mf(out.getvalue())

    def test_too_many_entries(self, unit_cube, make_3mf):
        config = AnalyzerConfig(max_archive_entries=5)
        buffer = make_3mf([unit_cube], extra_entries=10)

        with pytest.raises(MeshParseError, match="entries"):
            parse_3mf(buffer, config)

    def test_model_part_too_large(self, unit_cube, make_3mf):
        config = AnalyzerConfig(max_model_part_bytes=100)

        with pytest.raises(MeshParseError, match="limit"):
            parse_3mf(make_3mf([unit_cube]), config)

    def test_index_out_of_range(self, unit_cube, make_3mf):
        vertices, faces = unit_cube
        bad_faces = faces.copy()
        bad_faces[0, 0] = 42

        with pytest.raises(MeshParseError, match="out of range"):
            parse_3mf(make_3mf([(vertices, bad_faces)]))

    def test_invalid_xml(self):
        out = io.BytesIO()
        with zipfile.ZipFile(out, "w") as archive:
            archive.writestr("3D/3dmodel.model", "<model><resources>")

        with pytest.raises(MeshParseError, match="not valid XML"):
            parse_3mf(out.getvalue())

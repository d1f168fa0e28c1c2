"""Unit tests for baseline estimators."""

import pytest

from meshquote.core.exceptions import EstimatorError
from meshquote.core.models import BoundingBox, EstimatorBaseline, MeshMetrics
from meshquote.estimation import (
    CallableEstimator,
    Estimator,
    EstimatorFactory,
    FixedEstimator,
    HeuristicEstimator,
)


@pytest.fixture
def cube_metrics() -> MeshMetrics:
    """Watertight 100 mm cube (1000 cm³)."""
    return MeshMetrics(
        format="stl",
        units="unknown_assumed_mm",
        triangle_count=12,
        bounding_box=BoundingBox(x=100, y=100, z=100),
        surface_area_mm2=60_000.0,
        volume_mm3=1_000_000.0,
        watertight_estimate=True,
        file_bytes=684,
        parse_duration_ms=0.5,
    )


class TestHeuristicEstimator:
    """Test the volume-driven formula."""

    def test_cube(self, cube_metrics, single_printer_pricing):
        baseline = HeuristicEstimator(single_printer_pricing).estimate(cube_metrics, "PLA", "0.4")

        assert baseline.print_time_hours == pytest.approx(1000.0 / 6.0)
        assert baseline.material_grams == pytest.approx(1000.0 * 1.24 * 1.15)

    def test_larger_nozzle_is_faster(self, cube_metrics, single_printer_pricing):
        estimator = HeuristicEstimator(single_printer_pricing)
        fine = estimator.estimate(cube_metrics, "PLA", "0.4")
        coarse = estimator.estimate(cube_metrics, "PLA", "0.6")

        assert coarse.print_time_hours == pytest.approx(fine.print_time_hours * 0.7)
        assert coarse.material_grams == fine.material_grams

    def test_non_watertight_uses_bounding_box(self, cube_metrics, single_printer_pricing):
        leaky = cube_metrics.model_copy(update={"watertight_estimate": False})
        baseline = HeuristicEstimator(single_printer_pricing).estimate(leaky, "PLA", "0.4")

        assert baseline.print_time_hours == pytest.approx(300.0 / 6.0)

    def test_minimum_hours(self, cube_metrics, single_printer_pricing):
        tiny = cube_metrics.model_copy(update={"volume_mm3": 10.0})
        baseline = HeuristicEstimator(single_printer_pricing).estimate(tiny, "PLA", "0.4")

        assert baseline.print_time_hours == pytest.approx(0.3)

    def test_unknown_material_uses_default_density(self, cube_metrics, single_printer_pricing):
        baseline = HeuristicEstimator(single_printer_pricing).estimate(cube_metrics, "mystery", "0.4")

        assert baseline.material_grams == pytest.approx(1000.0 * 1.24 * 1.15)

    @pytest.mark.parametrize(
        "triangles,multiplier",
        [(200_000, 1.0), (200_001, 1.1), (1_000_000, 1.1), (1_000_001, 1.25)],
    )
    def test_complexity_band_edges(self, triangles, multiplier, cube_metrics, single_printer_pricing):
        dense = cube_metrics.model_copy(update={"triangle_count": triangles})
        baseline = HeuristicEstimator(single_printer_pricing).estimate(dense, "PLA", "0.4")

        assert baseline.print_time_hours == pytest.approx(1000.0 / 6.0 * multiplier)

    def test_deterministic(self, cube_metrics, single_printer_pricing):
        estimator = HeuristicEstimator(single_printer_pricing)

        assert estimator.estimate(cube_metrics, "PLA", "0.4") == estimator.estimate(
            cube_metrics, "PLA", "0.4"
        )

    def test_invalid_rate(self, single_printer_pricing):
        with pytest.raises(ValueError):
            HeuristicEstimator(single_printer_pricing, cm3_per_hour=0)


class TestSimpleEstimators:
    """Test fixed and callable estimators."""

    def test_fixed(self, cube_metrics):
        baseline = FixedEstimator(5.0, 50.0).estimate(cube_metrics, "PLA", "0.4")

        assert baseline == EstimatorBaseline(print_time_hours=5.0, material_grams=50.0)

    @pytest.mark.parametrize(
        "returned",
        [
            (2.0, 20.0),
            {"print_time_hours": 2.0, "material_grams": 20.0},
            EstimatorBaseline(print_time_hours=2.0, material_grams=20.0),
        ],
    )
    def test_callable_result_shapes(self, returned, cube_metrics):
        estimator = CallableEstimator(lambda metrics, material, nozzle: returned)
        baseline = estimator.estimate(cube_metrics, "PLA", "0.4")

        assert baseline.print_time_hours == 2.0
        assert baseline.material_grams == 20.0

    def test_callable_receives_arguments(self, cube_metrics):
        seen = []

        def predict(metrics, material, nozzle):
            seen.append((metrics.triangle_count, material, nozzle))
            return 1.0, 1.0

        CallableEstimator(predict).estimate(cube_metrics, "PETG", 0.6)

        assert seen == [(12, "PETG", "0.6")]

    def test_failure_is_wrapped(self, cube_metrics):
        def broken(metrics, material, nozzle):
            raise ConnectionError("model server unreachable")

        with pytest.raises(EstimatorError) as exc_info:
            CallableEstimator(broken, name="remote").estimate(cube_metrics, "PLA", "0.4")

        assert exc_info.value.estimator == "remote"
        assert "unreachable" in exc_info.value.reason
        assert isinstance(exc_info.value.__cause__, ConnectionError)


class TestEstimatorFactory:
    """Test estimator factory."""

    def test_available_methods(self):
        methods = EstimatorFactory.available_methods()

        assert {"heuristic", "fixed", "callable"} <= set(methods)

    def test_create_fixed(self):
        estimator = EstimatorFactory.create("fixed", hours=1.0, grams=2.0)

        assert isinstance(estimator, FixedEstimator)

    def test_create_heuristic(self, single_printer_pricing):
        estimator = EstimatorFactory.create("heuristic", pricing=single_printer_pricing)

        assert isinstance(estimator, HeuristicEstimator)
        assert estimator.pricing is single_printer_pricing

    def test_unknown_method(self):
        with pytest.raises(ValueError, match="Unknown estimator"):
            EstimatorFactory.create("oracle")

    def test_register(self, cube_metrics):
        class DoubleEstimator(Estimator):
            name = "double"

            def _estimate_impl(self, metrics, material, nozzle_size):
                return EstimatorBaseline(print_time_hours=2.0, material_grams=4.0)

        EstimatorFactory.register("double", DoubleEstimator)
        try:
            estimator = EstimatorFactory.create("double")
            assert estimator.estimate(cube_metrics, "PLA", "0.4").material_grams == 4.0
        finally:
            EstimatorFactory._estimators.pop("double")

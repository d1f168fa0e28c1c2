"""Estimators backed by fixed values or arbitrary callables."""

from typing import Callable, Union

from meshquote.core.models import EstimatorBaseline, MeshMetrics
from meshquote.estimation.base import Estimator

EstimateFunc = Callable[
    [MeshMetrics, str, str],
    Union[EstimatorBaseline, tuple[float, float], dict],
]


class FixedEstimator(Estimator):
    """Returns the same baseline for every request.

    Used when the caller already has slicer output for the model.
    """

    name = "fixed"

    def __init__(self, hours: float, grams: float):
        self.baseline = EstimatorBaseline(print_time_hours=hours, material_grams=grams)

    def _estimate_impl(
        self,
        metrics: MeshMetrics,
        material: str,
        nozzle_size: str,
    ) -> EstimatorBaseline:
        return self.baseline


class CallableEstimator(Estimator):
    """Adapts a plain function, e.g. a client for a remote prediction model.

    The function receives ``(metrics, material, nozzle_size)`` and may return
    an EstimatorBaseline, an ``(hours, grams)`` tuple, or a dict with
    ``print_time_hours`` and ``material_grams`` keys.
    """

    name = "callable"

    def __init__(self, func: EstimateFunc, name: str = "callable"):
        self.func = func
        self.name = name

    def _estimate_impl(
        self,
        metrics: MeshMetrics,
        material: str,
        nozzle_size: str,
    ) -> EstimatorBaseline:
        result = self.func(metrics, material, nozzle_size)
        if isinstance(result, EstimatorBaseline):
            return result
        if isinstance(result, dict):
            return EstimatorBaseline(**result)
        hours, grams = result
        return EstimatorBaseline(print_time_hours=hours, material_grams=grams)

"""Deterministic formula-based estimator."""

from typing import Optional

from meshquote.core.models import EstimatorBaseline, MeshMetrics
from meshquote.estimation.base import Estimator
from meshquote.pricing.config import PricingConfiguration, load_pricing


class HeuristicEstimator(Estimator):
    """Volume-driven estimate of print time and filament mass.

    hours = max(min_hours, volume_cm3 / cm3_per_hour) scaled by the nozzle
    time multiplier and the triangle-count complexity multiplier;
    grams = volume_cm3 * density * waste_factor.

    Meshes that are not watertight, or that enclose no volume, are estimated
    from their bounding box times ``bbox_fill_ratio``.
    """

    name = "heuristic"

    def __init__(
        self,
        pricing: Optional[PricingConfiguration] = None,
        cm3_per_hour: float = 6.0,
        min_hours: float = 0.3,
        waste_factor: float = 1.15,
        bbox_fill_ratio: float = 0.3,
        default_density: float = 1.24,
    ):
        """Initialize heuristic estimator.

        Args:
            pricing: Catalog supplying densities and multipliers; packaged
                default when omitted
            cm3_per_hour: Deposition rate at the 0.4 nozzle
            min_hours: Floor for any print
            waste_factor: Support/purge allowance on the material mass
            bbox_fill_ratio: Fraction of the bounding box assumed solid when
                the mesh volume is unreliable
            default_density: Density for materials missing from the catalog
        """
        if cm3_per_hour <= 0:
            raise ValueError("cm3_per_hour must be positive")
        self.pricing = pricing or load_pricing()
        self.cm3_per_hour = cm3_per_hour
        self.min_hours = min_hours
        self.waste_factor = waste_factor
        self.bbox_fill_ratio = bbox_fill_ratio
        self.default_density = default_density

    def _estimate_impl(
        self,
        metrics: MeshMetrics,
        material: str,
        nozzle_size: str,
    ) -> EstimatorBaseline:
        volume_cm3 = self._effective_volume_cm3(metrics)

        nozzle_multiplier = self.pricing.nozzles.time_multipliers.get(nozzle_size, 1.0)
        hours = (
            max(self.min_hours, volume_cm3 / self.cm3_per_hour)
            * nozzle_multiplier
            * self._complexity_multiplier(metrics.triangle_count)
        )

        found = self.pricing.get_filament(material)
        density = found[1].density_g_cm3 if found else self.default_density
        grams = volume_cm3 * density * self.waste_factor

        return EstimatorBaseline(print_time_hours=hours, material_grams=grams)

    def _effective_volume_cm3(self, metrics: MeshMetrics) -> float:
        if metrics.watertight_estimate and metrics.volume_mm3 > 0:
            return metrics.volume_cm3
        return metrics.bounding_box.volume * self.bbox_fill_ratio / 1000.0

    def _complexity_multiplier(self, triangle_count: int) -> float:
        complexity = self.pricing.complexity
        if triangle_count > complexity.high_threshold:
            return complexity.high_multiplier
        if triangle_count > complexity.medium_threshold:
            return complexity.medium_multiplier
        return complexity.low_multiplier

"""Base class for print time / material estimators."""

import logging
from abc import ABC, abstractmethod

from meshquote.core.exceptions import EstimatorError
from meshquote.core.models import EstimatorBaseline, MeshMetrics

logger = logging.getLogger(__name__)


class Estimator(ABC):
    """Abstract base class for baseline estimators.

    An estimator turns mesh metrics plus a material and nozzle selection into
    the print time and material mass the quote engine prices. Implementations
    may be a pure formula, a lookup of slicer output, or a remote model call.
    """

    name = "base"

    def estimate(
        self,
        metrics: MeshMetrics,
        material: str,
        nozzle_size: str,
    ) -> EstimatorBaseline:
        """Estimate print time and material mass.

        Args:
            metrics: Analyzer output for the model
            material: Filament id
            nozzle_size: Nozzle size key, e.g. "0.4"

        Returns:
            EstimatorBaseline with hours and grams

        Raises:
            EstimatorError: If the implementation fails for any reason
        """
        try:
            baseline = self._estimate_impl(metrics, material, str(nozzle_size))
        except EstimatorError:
            raise
        except Exception as e:
            logger.error(f"Estimator '{self.name}' failed: {e}")
            raise EstimatorError(self.name, str(e)) from e

        logger.debug(
            f"Estimator '{self.name}': {baseline.print_time_hours:.2f} h, "
            f"{baseline.material_grams:.1f} g"
        )
        return baseline

    @abstractmethod
    def _estimate_impl(
        self,
        metrics: MeshMetrics,
        material: str,
        nozzle_size: str,
    ) -> EstimatorBaseline:
        """Implementation of the estimate.

        Args:
            metrics: Analyzer output for the model
            material: Filament id
            nozzle_size: Nozzle size key

        Returns:
            EstimatorBaseline
        """
        pass

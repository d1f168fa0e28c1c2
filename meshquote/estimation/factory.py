"""Factory for creating estimators."""

from typing import Any, Dict, Type

from meshquote.estimation.base import Estimator
from meshquote.estimation.heuristic import HeuristicEstimator
from meshquote.estimation.simple import CallableEstimator, FixedEstimator


class EstimatorFactory:
    """Factory for creating estimators."""

    _estimators: Dict[str, Type[Estimator]] = {
        "heuristic": HeuristicEstimator,
        "fixed": FixedEstimator,
        "callable": CallableEstimator,
    }

    @classmethod
    def create(cls, method: str, **kwargs: Any) -> Estimator:
        """Create an estimator.

        Args:
            method: Estimator name
            **kwargs: Arguments for the estimator constructor

        Returns:
            Estimator instance

        Raises:
            ValueError: If method is unknown
        """
        if method not in cls._estimators:
            available = ", ".join(cls._estimators.keys())
            raise ValueError(f"Unknown estimator: {method}. Available: {available}")

        estimator_class = cls._estimators[method]
        return estimator_class(**kwargs)

    @classmethod
    def register(cls, name: str, estimator_class: Type[Estimator]) -> None:
        """Register a new estimator.

        Args:
            name: Name for the estimator
            estimator_class: Estimator class
        """
        cls._estimators[name] = estimator_class

    @classmethod
    def available_methods(cls) -> list[str]:
        """Get list of available estimators.

        Returns:
            List of estimator names
        """
        return list(cls._estimators.keys())

"""Print time and material estimators for MeshQuote."""

from meshquote.estimation.base import Estimator
from meshquote.estimation.factory import EstimatorFactory
from meshquote.estimation.heuristic import HeuristicEstimator
from meshquote.estimation.simple import CallableEstimator, FixedEstimator

__all__ = [
    "Estimator",
    "EstimatorFactory",
    "HeuristicEstimator",
    "FixedEstimator",
    "CallableEstimator",
]

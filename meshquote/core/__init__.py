"""Core functionality for MeshQuote."""

from meshquote.core.config import (
    AnalyzerConfig,
    Config,
    EstimatorConfig,
    LoggingConfig,
    PricingSourceConfig,
    get_default_config,
    load_config,
)
from meshquote.core.exceptions import (
    ConfigurationError,
    EstimatorError,
    MeshParseError,
    MeshQuoteError,
    NoCompatibleMaterialError,
    NoCompatiblePrinterError,
    PrinterSelectionFailedError,
    UnsupportedFormatError,
)
from meshquote.core.models import (
    BoundingBox,
    CostBreakdown,
    EstimatorBaseline,
    JobScale,
    LeadTime,
    MeshMetrics,
    PricingMode,
    Quote,
    SegmentationTier,
)

__all__ = [
    # Config classes
    "Config",
    "AnalyzerConfig",
    "EstimatorConfig",
    "PricingSourceConfig",
    "LoggingConfig",
    # Config functions
    "get_default_config",
    "load_config",
    # Models
    "BoundingBox",
    "MeshMetrics",
    "EstimatorBaseline",
    "PricingMode",
    "JobScale",
    "SegmentationTier",
    "LeadTime",
    "CostBreakdown",
    "Quote",
    # Exceptions
    "MeshQuoteError",
    "ConfigurationError",
    "UnsupportedFormatError",
    "MeshParseError",
    "NoCompatibleMaterialError",
    "NoCompatiblePrinterError",
    "PrinterSelectionFailedError",
    "EstimatorError",
]

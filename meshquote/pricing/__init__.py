"""Quote engine and pricing catalog for MeshQuote."""

from meshquote.pricing.compatibility import compatibility_failures, compatible_printers
from meshquote.pricing.config import (
    Filament,
    Printer,
    PricingConfiguration,
    load_pricing,
)
from meshquote.pricing.engine import QuoteEngine, generate_quote
from meshquote.pricing.segmentation import (
    ORIENTATIONS,
    SegmentationPlan,
    best_orientation,
    estimate_segments,
    segmentation_tier,
)

__all__ = [
    "compatibility_failures",
    "compatible_printers",
    "Filament",
    "Printer",
    "PricingConfiguration",
    "load_pricing",
    "QuoteEngine",
    "generate_quote",
    "ORIENTATIONS",
    "SegmentationPlan",
    "best_orientation",
    "estimate_segments",
    "segmentation_tier",
]

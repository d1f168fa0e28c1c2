"""MeshQuote - Analyze 3D model files and quote their print cost."""

__version__ = "0.1.0"

from meshquote.core.pipeline import QuotePipeline, QuoteResult
from meshquote.pricing import QuoteEngine, generate_quote, load_pricing
from meshquote.processing import analyze

__all__ = [
    "__version__",
    "QuotePipeline",
    "QuoteResult",
    "QuoteEngine",
    "generate_quote",
    "load_pricing",
    "analyze",
]

"""Utility functions for MeshQuote."""

from meshquote.utils.logging import (
    setup_logging,
    get_logger,
    log_performance,
    log_quote_result,
)

__all__ = [
    "setup_logging",
    "get_logger",
    "log_performance",
    "log_quote_result",
]

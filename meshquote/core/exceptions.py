"""Custom exceptions for MeshQuote."""

from typing import Any, Optional


class MeshQuoteError(Exception):
    """Base exception for MeshQuote."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.details = details or {}


class ConfigurationError(MeshQuoteError):
    """Raised when configuration is invalid."""

    pass


class UnsupportedFormatError(MeshQuoteError):
    """Raised when a file extension is not one of the supported formats."""

    def __init__(self, file_name: str, extension: str):
        shown = extension or "<none>"
        super().__init__(
            f"Unsupported file format '{shown}' for '{file_name}'. "
            "Supported formats: STL, OBJ, 3MF, AMF"
        )
        self.file_name = file_name
        self.extension = extension


class MeshParseError(MeshQuoteError):
    """Raised when a buffer is structurally invalid for its claimed format."""

    def __init__(self, format: str, reason: str):
        super().__init__(f"Failed to parse {format.upper()} file: {reason}")
        self.format = format
        self.reason = reason


class NoCompatibleMaterialError(MeshQuoteError):
    """Raised when the requested filament is not in the pricing catalog."""

    def __init__(self, material: str, available: list[str]):
        super().__init__(
            f"Material '{material}' is not offered. Available: {', '.join(available)}"
        )
        self.material = material
        self.available = available


class NoCompatiblePrinterError(MeshQuoteError):
    """Raised when no printer in the fleet satisfies the filament requirements."""

    def __init__(self, material: str, reasons: dict[str, list[str]]):
        summary = "; ".join(
            f"{key} ({', '.join(failures)})" for key, failures in reasons.items()
        )
        super().__init__(
            f"No available printer is compatible with {material}: {summary}",
            details={"reasons": reasons},
        )
        self.material = material
        self.reasons = reasons


class PrinterSelectionFailedError(MeshQuoteError):
    """Raised when printer selection cannot settle on a printer."""

    pass


class EstimatorError(MeshQuoteError):
    """Raised when the print time / material estimator fails."""

    def __init__(self, estimator: str, reason: str):
        super().__init__(f"Estimator '{estimator}' failed: {reason}")
        self.estimator = estimator
        self.reason = reason

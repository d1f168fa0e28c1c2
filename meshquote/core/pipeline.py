"""End-to-end quoting pipeline: analyze, estimate, price."""

import concurrent.futures
import logging
import time
from multiprocessing import cpu_count
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

from meshquote.core.config import Config
from meshquote.core.exceptions import MeshParseError, MeshQuoteError
from meshquote.core.models import MeshMetrics, Quote
from meshquote.estimation import Estimator, EstimatorFactory
from meshquote.pricing import PricingConfiguration, QuoteEngine, load_pricing
from meshquote.processing import MeshAnalyzer, detect_format

logger = logging.getLogger(__name__)


class QuoteResult:
    """Result of quoting one model file."""

    def __init__(
        self,
        success: bool,
        input_path: Path,
        metrics: Optional[MeshMetrics] = None,
        quote: Optional[Quote] = None,
        error: Optional[str] = None,
        error_type: Optional[str] = None,
        timings: Optional[Dict[str, float]] = None,
    ):
        """Initialize quote result.

        Args:
            success: Whether a quote was produced
            input_path: Input model path (or the uploaded file name)
            metrics: Analyzer output, when analysis succeeded
            quote: Generated quote (if successful)
            error: Error message (if failed)
            error_type: Exception class name (if failed)
            timings: Stage durations in seconds
        """
        self.success = success
        self.input_path = input_path
        self.metrics = metrics
        self.quote = quote
        self.error = error
        self.error_type = error_type
        self.timings = timings or {}
        self.timestamp = time.time()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "input_path": str(self.input_path),
            "metrics": self.metrics.to_record() if self.metrics else None,
            "quote": self.quote.to_record() if self.quote else None,
            "error": self.error,
            "error_type": self.error_type,
            "timings": self.timings,
        }


class QuotePipeline:
    """Runs the analyzer, the estimator and the quote engine for model files.

    The pricing catalog and estimator are held as one snapshot that
    ``reload_pricing`` replaces; a request in flight keeps the snapshot it
    started with.
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        pricing: Optional[PricingConfiguration] = None,
        estimator: Optional[Estimator] = None,
    ):
        """Initialize pipeline.

        Args:
            config: Configuration object
            pricing: Pricing catalog (loaded from config or packaged default if None)
            estimator: Baseline estimator (created from config if None)
        """
        self.config = config or Config()
        self.analyzer = MeshAnalyzer(self.config.analyzer)
        self._owns_estimator = estimator is None

        if pricing is None:
            pricing = load_pricing(self.config.pricing.path)
        if estimator is None:
            estimator = self._create_estimator(pricing)
        self._snapshot = (pricing, estimator)

    @property
    def pricing(self) -> PricingConfiguration:
        return self._snapshot[0]

    @property
    def estimator(self) -> Estimator:
        return self._snapshot[1]

    def _create_estimator(self, pricing: PricingConfiguration) -> Estimator:
        method = self.config.estimator.method
        params = dict(self.config.estimator.params)
        if method == "heuristic":
            params.setdefault("pricing", pricing)
        return EstimatorFactory.create(method, **params)

    def reload_pricing(
        self, path_or_pricing: Union[str, Path, PricingConfiguration, None] = None
    ) -> PricingConfiguration:
        """Swap in a new pricing catalog.

        Args:
            path_or_pricing: Catalog, path to a pricing TOML, or None for the
                configured/default source

        Returns:
            The new catalog

        Raises:
            ConfigurationError: If the new catalog is invalid; the current
                snapshot stays in place
        """
        if isinstance(path_or_pricing, PricingConfiguration):
            pricing = path_or_pricing
        else:
            pricing = load_pricing(path_or_pricing or self.config.pricing.path)

        estimator = self._create_estimator(pricing) if self._owns_estimator else self.estimator
        self._snapshot = (pricing, estimator)
        logger.info(f"Pricing catalog reloaded: version {pricing.version}")
        return pricing

    def analyze_file(self, file_path: Union[str, Path]) -> MeshMetrics:
        """Analyze a model file without quoting it.

        Raises:
            UnsupportedFormatError: If the extension is not supported
            MeshParseError: If the file cannot be parsed
        """
        return self.analyzer.analyze_file(file_path)

    def quote_bytes(
        self,
        file_name: str,
        buffer: bytes,
        material: str,
        nozzle_size: str,
        auto_printer_selection: bool = True,
        preferred_printer_key: Optional[str] = None,
    ) -> QuoteResult:
        """Quote an uploaded model buffer.

        Errors are captured in the result rather than raised.

        Args:
            file_name: Original file name (used for format dispatch)
            buffer: Raw file content
            material: Filament id
            nozzle_size: Nozzle size key, e.g. "0.4"
            auto_printer_selection: Pick the best printer automatically
            preferred_printer_key: Printer to use when auto-selection is off

        Returns:
            QuoteResult with metrics, quote and stage timings
        """
        pricing, estimator = self._snapshot
        start_time = time.perf_counter()
        timings: Dict[str, float] = {}
        metrics = None

        try:
            metrics = self.analyzer.analyze(file_name, buffer)
            timings["analyze_time"] = time.perf_counter() - start_time

            baseline = estimator.estimate(metrics, material, nozzle_size)
            timings["estimate_time"] = (
                time.perf_counter() - start_time - timings["analyze_time"]
            )

            quote = QuoteEngine(pricing).quote(
                metrics,
                material,
                nozzle_size,
                baseline,
                auto_printer_selection=auto_printer_selection,
                preferred_printer_key=preferred_printer_key,
            )
            timings["total_time"] = time.perf_counter() - start_time
            timings["quote_time"] = (
                timings["total_time"] - timings["analyze_time"] - timings["estimate_time"]
            )

            logger.info(
                f"Quoted {file_name} in {timings['total_time']:.3f}s: "
                f"{quote.cost_breakdown.total:.2f} {quote.currency}"
            )
            return QuoteResult(
                success=True,
                input_path=Path(file_name),
                metrics=metrics,
                quote=quote,
                timings=timings,
            )

        except MeshQuoteError as e:
            logger.warning(f"Failed to quote {file_name}: {e}")
            error = e
        except Exception as e:
            logger.error(f"Unexpected error quoting {file_name}: {e}", exc_info=True)
            error = e

        timings["total_time"] = time.perf_counter() - start_time
        return QuoteResult(
            success=False,
            input_path=Path(file_name),
            metrics=metrics,
            error=str(error),
            error_type=type(error).__name__,
            timings=timings,
        )

    def quote_file(
        self,
        file_path: Union[str, Path],
        material: str,
        nozzle_size: str,
        auto_printer_selection: bool = True,
        preferred_printer_key: Optional[str] = None,
    ) -> QuoteResult:
        """Read a model file from disk and quote it.

        Returns:
            QuoteResult; ``input_path`` is the path given
        """
        file_path = Path(file_path)
        try:
            buffer = file_path.read_bytes()
        except OSError as e:
            fmt = file_path.suffix.lstrip(".").lower() or "file"
            error = MeshParseError(fmt, f"cannot read '{file_path}': {e}")
            logger.warning(str(error))
            return QuoteResult(
                success=False,
                input_path=file_path,
                error=str(error),
                error_type=type(error).__name__,
            )

        result = self.quote_bytes(
            file_path.name,
            buffer,
            material,
            nozzle_size,
            auto_printer_selection=auto_printer_selection,
            preferred_printer_key=preferred_printer_key,
        )
        result.input_path = file_path
        return result

    def quote_batch(
        self,
        file_paths: List[Union[str, Path]],
        material: str,
        nozzle_size: str,
        auto_printer_selection: bool = True,
        preferred_printer_key: Optional[str] = None,
        parallel: bool = False,
        max_workers: Optional[int] = None,
        progress_callback: Optional[Callable[[str], None]] = None,
    ) -> List[QuoteResult]:
        """Quote multiple model files with the same selection.

        Args:
            file_paths: Model file paths
            material: Filament id
            nozzle_size: Nozzle size key
            auto_printer_selection: Pick the best printer automatically
            preferred_printer_key: Printer to use when auto-selection is off
            parallel: Whether to process in parallel
            max_workers: Maximum parallel workers (auto if None)
            progress_callback: Optional callback for progress updates

        Returns:
            List of QuoteResult objects, in input order
        """
        kwargs = {
            "auto_printer_selection": auto_printer_selection,
            "preferred_printer_key": preferred_printer_key,
        }

        if parallel and len(file_paths) > 1:
            if max_workers is None:
                max_workers = min(cpu_count(), len(file_paths), 4)

            with concurrent.futures.ThreadPoolExecutor(max_workers=max_workers) as executor:
                futures = [
                    executor.submit(self.quote_file, path, material, nozzle_size, **kwargs)
                    for path in file_paths
                ]
                for i, _ in enumerate(concurrent.futures.as_completed(futures)):
                    if progress_callback:
                        progress_callback(f"Completed {i+1}/{len(file_paths)} files")
                return [future.result() for future in futures]

        results = []
        for i, path in enumerate(file_paths):
            if progress_callback:
                progress_callback(f"Processing file {i+1}/{len(file_paths)}: {Path(path).name}")
            results.append(self.quote_file(path, material, nozzle_size, **kwargs))
        return results

    @staticmethod
    def is_supported(file_name: str) -> bool:
        """Whether a file name has one of the supported extensions."""
        try:
            detect_format(file_name)
        except MeshQuoteError:
            return False
        return True

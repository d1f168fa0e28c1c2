"""Structured logging for MeshQuote, built on structlog and stdlib logging."""

import logging
import sys
from pathlib import Path
from typing import Any, Optional

import structlog
from structlog.processors import CallsiteParameter

from meshquote.core.config import LoggingConfig

LOG_FILE_NAME = "meshquote.log"
QUIET_LIBRARIES = ("numpy", "trimesh")

Processor = Any


def _shared_processors(config: LoggingConfig) -> list[Processor]:
    """Processors applied to structlog events and stdlib records alike."""
    processors: list[Processor] = [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt=config.timestamp_format),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]
    if config.add_caller_info:
        processors.append(
            structlog.processors.CallsiteParameterAdder(
                parameters=[
                    CallsiteParameter.FILENAME,
                    CallsiteParameter.LINENO,
                    CallsiteParameter.FUNC_NAME,
                ],
            )
        )
    return processors


def _renderer(config: LoggingConfig) -> Processor:
    if config.format == "json":
        return structlog.processors.JSONRenderer()
    if config.format == "console":
        return structlog.dev.ConsoleRenderer(
            colors=config.colorize and sys.stderr.isatty(),
            exception_formatter=structlog.dev.plain_traceback,
        )
    return structlog.processors.KeyValueRenderer(
        key_order=["timestamp", "level", "logger", "event"],
        drop_missing=True,
    )


def _attach(
    handler: logging.Handler,
    shared: list[Processor],
    renderer: Processor,
) -> logging.Handler:
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                renderer,
            ],
        )
    )
    logging.getLogger().addHandler(handler)
    return handler


def _resolve_log_file(config: LoggingConfig, log_file: Optional[Path]) -> Optional[Path]:
    if log_file is not None:
        return Path(log_file)
    if config.log_to_file and config.log_dir:
        config.log_dir.mkdir(parents=True, exist_ok=True)
        return config.log_dir / LOG_FILE_NAME
    return None


def setup_logging(
    config: Optional[LoggingConfig] = None,
    log_file: Optional[Path] = None,
) -> structlog.stdlib.BoundLogger:
    """Route structlog events and stdlib records through one formatter chain.

    Library modules log through ``logging.getLogger(__name__)``; the CLI uses
    structlog loggers. Both end up on stderr, so stdout stays free for
    ``--json`` output. A log file, when configured, always receives JSON.

    Args:
        config: Logging configuration (defaults when None)
        log_file: Optional log file path; takes precedence over
            ``config.log_dir``

    Returns:
        The ``meshquote`` logger
    """
    config = config or LoggingConfig()
    shared = _shared_processors(config)

    structlog.configure(
        processors=shared + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(getattr(logging, config.level))

    _attach(logging.StreamHandler(sys.stderr), shared, _renderer(config))

    path = _resolve_log_file(config, log_file)
    if path is not None:
        _attach(logging.FileHandler(path), shared, structlog.processors.JSONRenderer())

    for lib in QUIET_LIBRARIES:
        logging.getLogger(lib).setLevel(logging.WARNING)

    return structlog.get_logger("meshquote")


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a logger instance.

    Args:
        name: Logger name

    Returns:
        Logger instance
    """
    return structlog.get_logger(name)


def log_performance(
    logger: structlog.stdlib.BoundLogger,
    operation: str,
    duration: float,
    **kwargs: Any,
) -> None:
    """Log performance metrics.

    Args:
        logger: Logger instance
        operation: Operation name
        duration: Duration in seconds
        **kwargs: Additional metrics
    """
    logger.info(
        "performance",
        operation=operation,
        duration_ms=round(duration * 1000, 2),
        **kwargs,
    )


def log_quote_result(
    logger: structlog.stdlib.BoundLogger,
    result: Any,  # QuoteResult
) -> None:
    """Log a pipeline result.

    Args:
        logger: Logger instance
        result: QuoteResult from the pipeline
    """
    if result.success:
        fields: dict[str, Any] = {}
        if result.quote is not None:
            fields = {
                "printer": result.quote.selected_printer_key,
                "mode": result.quote.mode.value,
                "segments": result.quote.segment_count,
                "total": round(result.quote.cost_breakdown.total, 2),
                "warnings": len(result.quote.warnings),
            }
        logger.info(
            "quote_success",
            input_file=str(result.input_path),
            **fields,
            **result.timings,
        )
    else:
        logger.error(
            "quote_failed",
            input_file=str(result.input_path),
            error=result.error,
            error_type=result.error_type,
            **result.timings,
        )

"""Configuration management for MeshQuote using Pydantic."""

from pathlib import Path
from typing import Any, Literal, Optional

import tomli
from pydantic import BaseModel, ConfigDict, Field


class AnalyzerConfig(BaseModel):
    """Configuration for the mesh analyzer."""

    model_config = ConfigDict(frozen=True)

    max_archive_entries: int = Field(
        1000, ge=1, description="Maximum number of entries accepted in a 3MF archive"
    )
    max_model_part_bytes: int = Field(
        100 * 1024 * 1024,
        ge=1,
        description="Maximum uncompressed size of the 3MF model part (bytes)",
    )


class EstimatorConfig(BaseModel):
    """Configuration for the print time / material estimator."""

    model_config = ConfigDict(frozen=True)

    method: str = Field("heuristic", description="Registered estimator name")
    params: dict[str, Any] = Field(
        default_factory=dict, description="Extra estimator constructor arguments"
    )


class PricingSourceConfig(BaseModel):
    """Where the pricing catalog is loaded from."""

    model_config = ConfigDict(frozen=True)

    path: Optional[Path] = Field(
        None, description="Pricing TOML file (None = packaged default catalog)"
    )


class LoggingConfig(BaseModel):
    """Configuration for logging."""

    model_config = ConfigDict(frozen=True)

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        "INFO", description="Logging level"
    )
    format: Literal["json", "console", "plain"] = Field(
        "console", description="Log format"
    )
    timestamp_format: str = Field("iso", description="structlog timestamp format")
    colorize: bool = Field(True, description="Colorize console output")
    add_caller_info: bool = Field(
        False, description="Add file, line and function to log events"
    )
    log_dir: Optional[Path] = Field(None, description="Directory for log files")
    log_to_file: bool = Field(False, description="Enable file logging")


class Config(BaseModel):
    """Main configuration for MeshQuote."""

    model_config = ConfigDict(frozen=True)

    analyzer: AnalyzerConfig = Field(
        default_factory=AnalyzerConfig, description="Analyzer configuration"
    )
    estimator: EstimatorConfig = Field(
        default_factory=EstimatorConfig, description="Estimator configuration"
    )
    pricing: PricingSourceConfig = Field(
        default_factory=PricingSourceConfig, description="Pricing catalog source"
    )
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig, description="Logging configuration"
    )

    @classmethod
    def from_toml(cls, path: Path | str) -> "Config":
        """Load configuration from TOML file.

        Args:
            path: Path to TOML configuration file

        Returns:
            Config instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            tomli.TOMLDecodeError: If TOML is invalid
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        with open(path, "rb") as f:
            data = tomli.load(f)

        return cls(**data)

    @classmethod
    def from_dict(cls, data: dict) -> "Config":
        """Create configuration from dictionary."""
        return cls(**data)

    def to_dict(self) -> dict:
        """Convert configuration to dictionary."""
        return self.model_dump()


def get_default_config() -> Config:
    """Get default configuration."""
    return Config()


def load_config(path: Optional[Path | str] = None) -> Config:
    """Load configuration from file or return defaults.

    Args:
        path: Optional path to configuration file

    Returns:
        Config instance
    """
    if path:
        return Config.from_toml(path)
    return get_default_config()

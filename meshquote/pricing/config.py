"""Pricing catalog: printers, filaments and the constants of the cost model."""

from importlib import resources
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping, Optional

import tomli
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_serializer,
    field_validator,
    model_validator,
)

from meshquote.core.exceptions import ConfigurationError


def _read_only(value: Mapping[str, Any]) -> Mapping[str, Any]:
    return MappingProxyType(dict(value))


class BuildVolume(BaseModel):
    """Printer build volume in millimeters."""

    model_config = ConfigDict(frozen=True)

    x: float = Field(..., gt=0)
    y: float = Field(..., gt=0)
    z: float = Field(..., gt=0)

    def as_tuple(self) -> tuple[float, float, float]:
        return (self.x, self.y, self.z)


class PrinterCapabilities(BaseModel):
    model_config = ConfigDict(frozen=True)

    max_nozzle_c: float
    max_bed_c: float
    has_enclosure: bool = False
    has_heated_chamber: bool = False
    heated_chamber_c: float = 0.0
    has_hardened_nozzle: bool = False


class Printer(BaseModel):
    """A printer model in the fleet."""

    model_config = ConfigDict(frozen=True)

    name: str
    build_volume_mm: BuildVolume
    capabilities: PrinterCapabilities
    hourly_rates: Mapping[str, float] = Field(
        ..., description="Nozzle size -> currency per machine hour"
    )
    bed_cycle_rates: Mapping[str, float] = Field(
        ..., description="Nozzle size -> currency per bed cycle"
    )
    bed_cycle_hours: float = Field(..., gt=0, description="Machine hours per bed cycle")
    fleet_count: int = Field(1, ge=0, description="Units of this printer in the fleet")
    max_segments: int = Field(
        24, ge=1, description="Segment count above which a quote is flagged"
    )

    _freeze_rates = field_validator("hourly_rates", "bed_cycle_rates")(_read_only)

    @field_serializer("hourly_rates", "bed_cycle_rates", mode="wrap")
    def _rates_as_dict(self, value, handler):
        return handler(dict(value))

    def hourly_rate(self, nozzle_size: str) -> Optional[float]:
        return self.hourly_rates.get(nozzle_size)

    def bed_cycle_rate(self, nozzle_size: str) -> Optional[float]:
        return self.bed_cycle_rates.get(nozzle_size)


class FilamentRequirements(BaseModel):
    model_config = ConfigDict(frozen=True)

    min_nozzle_c: float
    min_bed_c: float
    requires_enclosure: bool = False
    requires_heated_chamber: bool = False
    requires_chamber_temp_c: float = 0.0
    requires_hardened_nozzle: bool = False


class Filament(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    sell_price_per_gram: float = Field(..., ge=0)
    density_g_cm3: float = Field(1.24, gt=0)
    requirements: FilamentRequirements


class ScaleRule(BaseModel):
    """Scale-down rule applied when a model looks exported in the wrong unit."""

    model_config = ConfigDict(frozen=True)

    if_max_dim_greater_than: float = Field(..., gt=0)
    scale_divisor: float = Field(..., gt=0)
    label: str


class UnitSanityConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    enabled: bool = True
    scale_rules: tuple[ScaleRule, ...] = ()


class TierValues(BaseModel):
    """A value per segmentation tier."""

    model_config = ConfigDict(frozen=True)

    none: float = 0.0
    moderate: float = 0.0
    heavy: float = 0.0

    def for_tier(self, tier: str) -> float:
        return getattr(self, tier)


class SegmentationConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    efficiency: float = Field(0.70, gt=0, le=1)
    soften_z: float = Field(0.60, gt=0, le=1)
    moderate_max_segments: int = Field(12, ge=2)
    seams_per_segment_default: float = Field(1.5, ge=0)
    bonding_labor_per_seam: float = Field(18.0, ge=0)
    tier_multipliers: TierValues = Field(
        default_factory=lambda: TierValues(none=1.0, moderate=1.05, heavy=1.12)
    )


class RiskConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    base_percent: float = Field(0.12, ge=0)
    tier_bump: TierValues = Field(
        default_factory=lambda: TierValues(none=0.0, moderate=0.02, heavy=0.05)
    )
    min_cost: float = Field(250.0, ge=0)
    cap_percent_of_base: float = Field(0.25, ge=0)


class JobScaleConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    small_part_max_dim_mm: float = 150.0
    small_part_max_hours: float = 8.0
    medium_part_max_dim_mm: float = 350.0
    large_assembly_min_hours: float = 72.0


class ComplexityConfig(BaseModel):
    """Triangle-count bands for the complexity multiplier."""

    model_config = ConfigDict(frozen=True)

    medium_threshold: int = 200_000
    high_threshold: int = 1_000_000
    low_multiplier: float = 1.0
    medium_multiplier: float = 1.1
    high_multiplier: float = 1.25


class LongJobConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    threshold_hours: float = 48.0
    multiplier: float = 1.1


class LeadTimeConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    utilization_factor: float = Field(0.65, gt=0)
    min_days: int = Field(2, ge=0)
    max_days_cap: int = Field(45, ge=1)
    segmentation_extra_days: TierValues = Field(
        default_factory=lambda: TierValues(none=0, moderate=2, heavy=5)
    )
    max_stretch_factor: float = Field(1.4, ge=1)
    hourly_hours_per_day: float = Field(12.0, gt=0)


class NozzleConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    time_multipliers: Mapping[str, float] = Field(
        default_factory=lambda: {"0.4": 1.0, "0.6": 0.7, "0.8": 0.5},
        validate_default=True,
    )

    _freeze_multipliers = field_validator("time_multipliers")(_read_only)

    @field_serializer("time_multipliers", mode="wrap")
    def _multipliers_as_dict(self, value, handler):
        return handler(dict(value))


class PricingConfiguration(BaseModel):
    """Versioned, read-only pricing catalog consumed by the quote engine."""

    model_config = ConfigDict(frozen=True)

    version: str = "1"
    currency: str = "USD"
    printers: Mapping[str, Printer]
    filaments: Mapping[str, Filament]
    unit_sanity: UnitSanityConfig = Field(default_factory=UnitSanityConfig)
    segmentation: SegmentationConfig = Field(default_factory=SegmentationConfig)
    risk: RiskConfig = Field(default_factory=RiskConfig)
    job_scale: JobScaleConfig = Field(default_factory=JobScaleConfig)
    complexity: ComplexityConfig = Field(default_factory=ComplexityConfig)
    long_job: LongJobConfig = Field(default_factory=LongJobConfig)
    lead_time: LeadTimeConfig = Field(default_factory=LeadTimeConfig)
    nozzles: NozzleConfig = Field(default_factory=NozzleConfig)
    oversize_review_mm: float = Field(2000.0, gt=0)

    _freeze_catalog = field_validator("printers", "filaments")(_read_only)

    @field_serializer("printers", "filaments", mode="wrap")
    def _catalog_as_dict(self, value, handler):
        return handler(dict(value))

    @model_validator(mode="after")
    def _check_catalog(self) -> "PricingConfiguration":
        if not self.printers:
            raise ValueError("pricing catalog defines no printers")
        if not self.filaments:
            raise ValueError("pricing catalog defines no filaments")
        return self

    def get_printer(self, key: str) -> Optional[Printer]:
        """Look up a printer by key; None when unknown."""
        return self.printers.get(key)

    def get_filament(self, material: str) -> Optional[tuple[str, Filament]]:
        """Look up a filament by id, ignoring case.

        Returns:
            (catalog id, Filament) or None when the material is not offered
        """
        if material in self.filaments:
            return material, self.filaments[material]
        wanted = material.strip().casefold()
        for key, filament in self.filaments.items():
            if key.casefold() == wanted:
                return key, filament
        return None

    @classmethod
    def from_dict(cls, data: dict) -> "PricingConfiguration":
        """Create a catalog from a dictionary.

        Raises:
            ConfigurationError: If the data does not match the schema
        """
        try:
            return cls(**data)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid pricing configuration: {e}") from e

    @classmethod
    def from_toml(cls, path: Path | str) -> "PricingConfiguration":
        """Load a catalog from a TOML file.

        Raises:
            FileNotFoundError: If the file doesn't exist
            ConfigurationError: If the TOML or the schema is invalid
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Pricing file not found: {path}")
        with open(path, "rb") as f:
            try:
                data = tomli.load(f)
            except tomli.TOMLDecodeError as e:
                raise ConfigurationError(f"Invalid pricing TOML '{path}': {e}") from e
        return cls.from_dict(data)

    def to_dict(self) -> dict:
        return self.model_dump()


def load_pricing(path: Optional[Path | str] = None) -> PricingConfiguration:
    """Load the pricing catalog from a file, or the packaged default catalog.

    Args:
        path: Optional path to a pricing TOML file

    Returns:
        PricingConfiguration instance
    """
    if path:
        return PricingConfiguration.from_toml(path)
    source = resources.files("meshquote.data").joinpath("default_pricing.toml")
    return PricingConfiguration.from_dict(tomli.loads(source.read_text(encoding="utf-8")))

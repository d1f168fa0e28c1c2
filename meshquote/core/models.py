"""Result records produced by the analyzer, the estimator and the quote engine."""

from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

MeshFormat = Literal["stl", "obj", "3mf", "amf"]


class BoundingBox(BaseModel):
    """Axis-aligned extents in millimeters."""

    model_config = ConfigDict(frozen=True)

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    @property
    def max_dim(self) -> float:
        return max(self.x, self.y, self.z)

    @property
    def volume(self) -> float:
        return self.x * self.y * self.z

    def as_tuple(self) -> tuple[float, float, float]:
        return (self.x, self.y, self.z)

    def scaled(self, divisor: float) -> "BoundingBox":
        return BoundingBox(x=self.x / divisor, y=self.y / divisor, z=self.z / divisor)


class MeshMetrics(BaseModel):
    """Geometric metrics derived from a model file's triangles.

    All spatial fields are in millimeters regardless of the source unit.
    ``watertight_estimate`` only checks that every edge is shared by exactly
    two triangles; it is necessary but not sufficient for a closed manifold.
    """

    model_config = ConfigDict(frozen=True)

    format: MeshFormat
    units: str
    triangle_count: int = Field(..., ge=0)
    bounding_box: BoundingBox
    surface_area_mm2: float = Field(..., ge=0)
    volume_mm3: float = Field(..., ge=0)
    watertight_estimate: bool
    notes: tuple[str, ...] = ()
    file_bytes: int = Field(..., ge=0)
    parse_duration_ms: float = Field(..., ge=0)

    @property
    def volume_cm3(self) -> float:
        return self.volume_mm3 / 1000.0

    def to_record(self) -> dict[str, Any]:
        """Flatten into a single-level dictionary."""
        return {
            "format": self.format,
            "units": self.units,
            "triangle_count": self.triangle_count,
            "bbox_x_mm": self.bounding_box.x,
            "bbox_y_mm": self.bounding_box.y,
            "bbox_z_mm": self.bounding_box.z,
            "surface_area_mm2": self.surface_area_mm2,
            "volume_mm3": self.volume_mm3,
            "watertight_estimate": self.watertight_estimate,
            "notes": list(self.notes),
            "file_bytes": self.file_bytes,
            "parse_duration_ms": self.parse_duration_ms,
        }


class EstimatorBaseline(BaseModel):
    """Print time and material mass reported by an estimator."""

    model_config = ConfigDict(frozen=True)

    print_time_hours: float
    material_grams: float


class PricingMode(str, Enum):
    """How machine time is billed."""

    HOURLY = "Hourly"
    BED_CYCLE = "Bed-Cycle"


class JobScale(str, Enum):
    """Job classification driving the pricing mode."""

    SMALL_PART = "Small Part"
    MEDIUM_PART = "Medium Part"
    LARGE_ASSEMBLY = "Large Assembly"


class SegmentationTier(str, Enum):
    """How heavily a model has to be split to fit the build volume."""

    NONE = "none"
    MODERATE = "moderate"
    HEAVY = "heavy"


class LeadTime(BaseModel):
    model_config = ConfigDict(frozen=True)

    min_days: int
    max_days: int


class CostBreakdown(BaseModel):
    """Quote cost components.

    ``machine``, ``segmentation`` and ``risk`` are reported before multipliers;
    ``subtotal`` is their multiplied sum and ``total`` adds ``material``.
    """

    model_config = ConfigDict(frozen=True)

    machine: float
    material: float
    segmentation: float
    risk: float
    segmentation_multiplier: float = 1.0
    complexity_multiplier: float = 1.0
    long_job_multiplier: float = 1.0
    subtotal: float
    total: float


class Quote(BaseModel):
    """Manufacturing cost and schedule quote for one model."""

    model_config = ConfigDict(frozen=True)

    mode: PricingMode
    job_scale: JobScale
    selected_printer_key: str
    selected_nozzle: str
    selected_filament: str
    bounding_box: BoundingBox
    oriented_bounding_box: BoundingBox
    volume_cm3: float
    segment_count: int
    bed_cycle_count: int
    estimated_hours: float
    segmentation_tier: SegmentationTier
    lead_time: LeadTime
    cost_breakdown: CostBreakdown
    currency: str = "USD"
    warnings: tuple[str, ...] = ()

    def to_record(self) -> dict[str, Any]:
        """Flatten into a single-level dictionary."""
        costs = self.cost_breakdown
        return {
            "mode": self.mode.value,
            "job_scale": self.job_scale.value,
            "selected_printer_key": self.selected_printer_key,
            "selected_nozzle": self.selected_nozzle,
            "selected_filament": self.selected_filament,
            "bbox_x_mm": self.bounding_box.x,
            "bbox_y_mm": self.bounding_box.y,
            "bbox_z_mm": self.bounding_box.z,
            "volume_cm3": self.volume_cm3,
            "segment_count": self.segment_count,
            "bed_cycle_count": self.bed_cycle_count,
            "estimated_hours": self.estimated_hours,
            "segmentation_tier": self.segmentation_tier.value,
            "lead_time_min_days": self.lead_time.min_days,
            "lead_time_max_days": self.lead_time.max_days,
            "cost_machine": costs.machine,
            "cost_material": costs.material,
            "cost_segmentation": costs.segmentation,
            "cost_risk": costs.risk,
            "cost_total": costs.total,
            "currency": self.currency,
            "warnings": list(self.warnings),
        }

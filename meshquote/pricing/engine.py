"""Quote engine: printer selection, segmentation, cost and lead-time model."""

import logging
import math
from dataclasses import dataclass
from typing import Optional

from meshquote.core.exceptions import (
    NoCompatibleMaterialError,
    NoCompatiblePrinterError,
    PrinterSelectionFailedError,
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
from meshquote.pricing.compatibility import compatible_printers
from meshquote.pricing.config import Printer, PricingConfiguration
from meshquote.pricing.segmentation import (
    SegmentationPlan,
    best_orientation,
    segmentation_tier,
)
from meshquote.processing.common import ASSUMED_MM

logger = logging.getLogger(__name__)

SEGMENTATION_REQUIRED = "Model exceeds build volume: segmentation required."
BED_CYCLE_ENFORCED = "Large assembly detected: bed-cycle mode enforced."


@dataclass(frozen=True)
class _Selection:
    key: str
    printer: Printer
    plan: SegmentationPlan
    honoured: bool


class QuoteEngine:
    """Prices an analyzed mesh against one pricing catalog snapshot.

    The engine holds no mutable state; one instance can serve concurrent
    requests.
    """

    def __init__(self, pricing: PricingConfiguration):
        self.pricing = pricing

    def quote(
        self,
        metrics: MeshMetrics,
        material: str,
        nozzle_size: str,
        baseline: EstimatorBaseline,
        auto_printer_selection: bool = True,
        preferred_printer_key: Optional[str] = None,
    ) -> Quote:
        """Generate a quote.

        Args:
            metrics: Analyzer output for the model
            material: Filament id (case-insensitive)
            nozzle_size: Nozzle size key, e.g. "0.4"
            baseline: Print time and material mass from the estimator
            auto_printer_selection: Pick the best printer automatically
            preferred_printer_key: Printer to use when auto-selection is off

        Returns:
            Quote with cost breakdown, lead time and warnings

        Raises:
            NoCompatibleMaterialError: If the material is not in the catalog
            NoCompatiblePrinterError: If no printer can run the material
            PrinterSelectionFailedError: If no printer could be selected
        """
        pricing = self.pricing
        nozzle_size = str(nozzle_size)
        warnings: list[str] = []

        found = pricing.get_filament(material)
        if found is None:
            raise NoCompatibleMaterialError(material, list(pricing.filaments))
        filament_key, filament = found

        bbox, volume_cm3, rescale_warnings = self._unit_sanity(metrics)

        compatible, rejected = compatible_printers(pricing, filament, nozzle_size)
        if not compatible:
            raise NoCompatiblePrinterError(filament_key, rejected)

        selection, fallback_warning = self._select_printer(
            bbox, compatible, nozzle_size, auto_printer_selection, preferred_printer_key
        )
        if fallback_warning:
            warnings.append(fallback_warning)
        warnings.extend(rescale_warnings)

        printer = selection.printer
        segments = selection.plan.segment_count
        tier = segmentation_tier(segments, pricing.segmentation)
        job_scale, mode = self._classify(bbox, segments, baseline.print_time_hours)

        if segments > 1:
            warnings.append(SEGMENTATION_REQUIRED)
        if job_scale == JobScale.LARGE_ASSEMBLY:
            warnings.append(BED_CYCLE_ENFORCED)
        if tier == SegmentationTier.HEAVY:
            warnings.append(
                f"Heavy segmentation: {segments} segments required; "
                "assembly tolerances may vary."
            )
        if segments > printer.max_segments:
            warnings.append(
                f"Segment count {segments} exceeds the {printer.name} limit of "
                f"{printer.max_segments}; manual review recommended."
            )

        bed_cycles = segments
        if mode == PricingMode.BED_CYCLE:
            final_hours = bed_cycles * printer.bed_cycle_hours
            machine = bed_cycles * printer.bed_cycle_rate(nozzle_size)
            segmentation_cost = (
                segments
                * pricing.segmentation.seams_per_segment_default
                * pricing.segmentation.bonding_labor_per_seam
            )
            risk = self._risk(machine + segmentation_cost, tier)
        else:
            final_hours = baseline.print_time_hours
            machine = final_hours * printer.hourly_rate(nozzle_size)
            segmentation_cost = 0.0
            risk = 0.0

        material_cost = baseline.material_grams * filament.sell_price_per_gram

        tier_multiplier = pricing.segmentation.tier_multipliers.for_tier(tier.value)
        complexity_multiplier = self._complexity_multiplier(metrics.triangle_count)
        if metrics.triangle_count > pricing.complexity.high_threshold:
            warnings.append(
                f"High complexity mesh ({metrics.triangle_count} triangles): "
                f"x{complexity_multiplier:g} complexity multiplier applied."
            )

        long_job_multiplier = 1.0
        if final_hours > pricing.long_job.threshold_hours:
            long_job_multiplier = pricing.long_job.multiplier
            warnings.append(
                f"Long job ({final_hours:.1f} h): x{long_job_multiplier:g} "
                "long-job multiplier applied."
            )

        if not metrics.watertight_estimate:
            warnings.append(
                "Mesh is not watertight: volume and material estimates may be unreliable."
            )
        if bbox.max_dim > pricing.oversize_review_mm:
            warnings.append(
                f"Largest dimension {bbox.max_dim:.0f} mm exceeds "
                f"{pricing.oversize_review_mm:.0f} mm: manual review recommended."
            )

        subtotal = (
            (machine + segmentation_cost + risk)
            * tier_multiplier
            * complexity_multiplier
            * long_job_multiplier
        )
        costs = CostBreakdown(
            machine=machine,
            material=material_cost,
            segmentation=segmentation_cost,
            risk=risk,
            segmentation_multiplier=tier_multiplier,
            complexity_multiplier=complexity_multiplier,
            long_job_multiplier=long_job_multiplier,
            subtotal=subtotal,
            total=subtotal + material_cost,
        )

        fleet = (
            printer.fleet_count
            if selection.honoured
            else sum(pricing.printers[key].fleet_count for key in compatible)
        )
        lead_time = self._lead_time(mode, bed_cycles, final_hours, tier, fleet)

        quote = Quote(
            mode=mode,
            job_scale=job_scale,
            selected_printer_key=selection.key,
            selected_nozzle=nozzle_size,
            selected_filament=filament_key,
            bounding_box=bbox,
            oriented_bounding_box=selection.plan.oriented_box,
            volume_cm3=volume_cm3,
            segment_count=segments,
            bed_cycle_count=bed_cycles,
            estimated_hours=final_hours,
            segmentation_tier=tier,
            lead_time=lead_time,
            cost_breakdown=costs,
            currency=pricing.currency,
            warnings=tuple(warnings),
        )
        logger.info(
            f"Quoted {filament_key}/{nozzle_size} on {selection.key}: {mode.value}, "
            f"{segments} segment(s), total {costs.total:.2f} {pricing.currency}"
        )
        return quote

    def _unit_sanity(self, metrics: MeshMetrics) -> tuple[BoundingBox, float, list[str]]:
        """Apply the first matching scale-down rule, if any."""
        bbox = metrics.bounding_box
        volume_cm3 = metrics.volume_cm3
        sanity = self.pricing.unit_sanity
        if not sanity.enabled:
            return bbox, volume_cm3, []

        for rule in sanity.scale_rules:
            if bbox.max_dim > rule.if_max_dim_greater_than:
                warnings = [rule.label]
                if metrics.units == ASSUMED_MM:
                    warnings.append(
                        "Source file declares no units; millimeters were assumed "
                        "before rescaling."
                    )
                logger.debug(f"Unit sanity rule fired: /{rule.scale_divisor:g}")
                return (
                    bbox.scaled(rule.scale_divisor),
                    volume_cm3 / rule.scale_divisor**3,
                    warnings,
                )
        return bbox, volume_cm3, []

    def _select_printer(
        self,
        bbox: BoundingBox,
        compatible: list[str],
        nozzle_size: str,
        auto_printer_selection: bool,
        preferred_printer_key: Optional[str],
    ) -> tuple[_Selection, Optional[str]]:
        printers = self.pricing.printers
        segmentation = self.pricing.segmentation

        if not auto_printer_selection:
            if preferred_printer_key in compatible:
                printer = printers[preferred_printer_key]
                plan = best_orientation(bbox, printer.build_volume_mm, segmentation)
                return _Selection(preferred_printer_key, printer, plan, True), None

        best: Optional[_Selection] = None
        best_rank = None
        for index, key in enumerate(compatible):
            printer = printers[key]
            plan = best_orientation(bbox, printer.build_volume_mm, segmentation)
            rate = printer.hourly_rate(nozzle_size)
            rank = (plan.segment_count, rate if rate is not None else math.inf, index)
            if best_rank is None or rank < best_rank:
                best, best_rank = _Selection(key, printer, plan, False), rank

        if best is None:
            raise PrinterSelectionFailedError(
                f"Could not select a printer among {', '.join(compatible) or 'none'}"
            )

        warning = None
        if not auto_printer_selection:
            if preferred_printer_key:
                warning = (
                    f"Preferred printer '{preferred_printer_key}' is unknown or "
                    f"incompatible; auto-selected '{best.key}' instead."
                )
            else:
                warning = (
                    "Auto-selection was disabled but no printer was named; "
                    f"auto-selected '{best.key}'."
                )
        return best, warning

    def _classify(
        self, bbox: BoundingBox, segments: int, hours: float
    ) -> tuple[JobScale, PricingMode]:
        scale = self.pricing.job_scale
        max_dim = bbox.max_dim
        if (
            segments > 1
            or max_dim > scale.medium_part_max_dim_mm
            or hours >= scale.large_assembly_min_hours
        ):
            return JobScale.LARGE_ASSEMBLY, PricingMode.BED_CYCLE
        if max_dim <= scale.small_part_max_dim_mm and hours < scale.small_part_max_hours:
            return JobScale.SMALL_PART, PricingMode.HOURLY
        return JobScale.MEDIUM_PART, PricingMode.HOURLY

    def _risk(self, base: float, tier: SegmentationTier) -> float:
        """Risk markup, clamped to [min_cost, base * cap_percent_of_base].

        The cap is applied last so it always wins over the floor.
        """
        risk = self.pricing.risk
        raw = base * (risk.base_percent + risk.tier_bump.for_tier(tier.value))
        return min(max(raw, risk.min_cost), base * risk.cap_percent_of_base)

    def _complexity_multiplier(self, triangle_count: int) -> float:
        complexity = self.pricing.complexity
        if triangle_count > complexity.high_threshold:
            return complexity.high_multiplier
        if triangle_count > complexity.medium_threshold:
            return complexity.medium_multiplier
        return complexity.low_multiplier

    def _lead_time(
        self,
        mode: PricingMode,
        bed_cycles: int,
        hours: float,
        tier: SegmentationTier,
        fleet: int,
    ) -> LeadTime:
        config = self.pricing.lead_time
        if mode == PricingMode.BED_CYCLE:
            cycles_per_day = max(1.0, fleet * config.utilization_factor)
            base_days = math.ceil(bed_cycles / cycles_per_day)
        else:
            base_days = math.ceil(hours / config.hourly_hours_per_day)

        extra_days = int(config.segmentation_extra_days.for_tier(tier.value))
        min_days = min(max(config.min_days, base_days + extra_days), config.max_days_cap)
        max_days = min(math.ceil(min_days * config.max_stretch_factor), config.max_days_cap)
        return LeadTime(min_days=min_days, max_days=max_days)


def generate_quote(
    metrics: MeshMetrics,
    material: str,
    nozzle_size: str,
    baseline: EstimatorBaseline,
    pricing: PricingConfiguration,
    auto_printer_selection: bool = True,
    preferred_printer_key: Optional[str] = None,
) -> Quote:
    """Convenience function to quote a mesh against a pricing catalog.

    Raises:
        NoCompatibleMaterialError: If the material is not in the catalog
        NoCompatiblePrinterError: If no printer can run the material
        PrinterSelectionFailedError: If no printer could be selected
    """
    return QuoteEngine(pricing).quote(
        metrics,
        material,
        nozzle_size,
        baseline,
        auto_printer_selection=auto_printer_selection,
        preferred_printer_key=preferred_printer_key,
    )

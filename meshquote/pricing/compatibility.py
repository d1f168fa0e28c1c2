"""Printer / filament compatibility filtering."""

from meshquote.pricing.config import Filament, Printer, PricingConfiguration


def compatibility_failures(printer: Printer, filament: Filament, nozzle_size: str) -> list[str]:
    """List the constraints a printer fails for a filament and nozzle.

    Args:
        printer: Candidate printer
        filament: Selected filament
        nozzle_size: Requested nozzle size, e.g. "0.4"

    Returns:
        Human-readable failed constraints; empty when the printer is compatible
    """
    caps = printer.capabilities
    req = filament.requirements
    failures = []

    if caps.max_nozzle_c < req.min_nozzle_c:
        failures.append(
            f"nozzle temperature {caps.max_nozzle_c:g}C < required {req.min_nozzle_c:g}C"
        )
    if caps.max_bed_c < req.min_bed_c:
        failures.append(f"bed temperature {caps.max_bed_c:g}C < required {req.min_bed_c:g}C")
    if req.requires_enclosure and not caps.has_enclosure:
        failures.append("enclosure required")
    if req.requires_heated_chamber and not caps.has_heated_chamber:
        failures.append("heated chamber required")
    if req.requires_chamber_temp_c > 0 and caps.heated_chamber_c < req.requires_chamber_temp_c:
        failures.append(
            f"chamber temperature {caps.heated_chamber_c:g}C < required "
            f"{req.requires_chamber_temp_c:g}C"
        )
    if req.requires_hardened_nozzle and not caps.has_hardened_nozzle:
        failures.append("hardened nozzle required")
    if printer.hourly_rate(nozzle_size) is None or printer.bed_cycle_rate(nozzle_size) is None:
        failures.append(f"nozzle {nozzle_size} not offered")

    return failures


def compatible_printers(
    pricing: PricingConfiguration,
    filament: Filament,
    nozzle_size: str,
) -> tuple[list[str], dict[str, list[str]]]:
    """Split the fleet into compatible printers and rejection reasons.

    Returns:
        (compatible printer keys in configuration order, {rejected key: failures})
    """
    compatible = []
    rejected = {}
    for key, printer in pricing.printers.items():
        failures = compatibility_failures(printer, filament, nozzle_size)
        if failures:
            rejected[key] = failures
        else:
            compatible.append(key)
    return compatible, rejected

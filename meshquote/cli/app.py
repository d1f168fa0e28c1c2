"""Command-line interface for MeshQuote."""

import json
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table

from meshquote import __version__
from meshquote.core import Config, LoggingConfig, MeshMetrics, Quote
from meshquote.core.pipeline import QuotePipeline
from meshquote.estimation import EstimatorFactory, FixedEstimator
from meshquote.pricing import compatibility_failures, load_pricing
from meshquote.processing import SUPPORTED_FORMATS, MeshAnalyzer
from meshquote.utils import get_logger, log_performance, log_quote_result, setup_logging

app = typer.Typer(
    name="meshquote",
    help="Analyze 3D model files and quote their print cost",
    add_completion=False,
)
console = Console()
logger = get_logger("meshquote.cli")


@app.callback()
def main_callback(
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Show debug logging",
    ),
) -> None:
    """Analyze 3D model files and quote their print cost."""
    setup_logging(LoggingConfig(level="DEBUG" if verbose else "WARNING"))


def _metrics_table(name: str, metrics: MeshMetrics) -> Table:
    table = Table(title=f"Mesh Metrics: {name}", show_header=False)
    table.add_column("Property", style="cyan")
    table.add_column("Value", style="white")

    bbox = metrics.bounding_box
    table.add_row("Format", metrics.format.upper())
    table.add_row("Units", metrics.units)
    table.add_row("File Size", f"{metrics.file_bytes / 1024:.1f} KB")
    table.add_row("Triangles", f"{metrics.triangle_count:,}")
    table.add_row("Size (mm)", f"{bbox.x:.2f} x {bbox.y:.2f} x {bbox.z:.2f}")
    table.add_row("Volume", f"{metrics.volume_cm3:.2f} cm³")
    table.add_row("Surface Area", f"{metrics.surface_area_mm2 / 100:.2f} cm²")
    table.add_row("Watertight", "yes" if metrics.watertight_estimate else "no")
    table.add_row("Parse Time", f"{metrics.parse_duration_ms:.1f} ms")
    if metrics.notes:
        table.add_row("Notes", ", ".join(metrics.notes))
    return table


def _quote_tables(quote: Quote) -> list[Table]:
    summary = Table(title="Quote", show_header=False)
    summary.add_column("Property", style="cyan")
    summary.add_column("Value", style="white")

    bbox = quote.bounding_box
    summary.add_row("Printer", quote.selected_printer_key)
    summary.add_row("Material", f"{quote.selected_filament} / {quote.selected_nozzle} mm")
    summary.add_row("Job Scale", quote.job_scale.value)
    summary.add_row("Mode", quote.mode.value)
    summary.add_row("Size (mm)", f"{bbox.x:.1f} x {bbox.y:.1f} x {bbox.z:.1f}")
    summary.add_row("Segments", f"{quote.segment_count} ({quote.segmentation_tier.value})")
    summary.add_row("Bed Cycles", str(quote.bed_cycle_count))
    summary.add_row("Print Hours", f"{quote.estimated_hours:.1f}")
    summary.add_row(
        "Lead Time", f"{quote.lead_time.min_days}-{quote.lead_time.max_days} days"
    )

    costs = quote.cost_breakdown
    breakdown = Table(title=f"Cost Breakdown ({quote.currency})")
    breakdown.add_column("Component", style="cyan")
    breakdown.add_column("Amount", justify="right")
    breakdown.add_row("Machine", f"{costs.machine:,.2f}")
    breakdown.add_row("Segmentation", f"{costs.segmentation:,.2f}")
    breakdown.add_row("Risk", f"{costs.risk:,.2f}")
    breakdown.add_row(
        "Multipliers",
        f"x{costs.segmentation_multiplier:g} x{costs.complexity_multiplier:g} "
        f"x{costs.long_job_multiplier:g}",
    )
    breakdown.add_row("Subtotal", f"{costs.subtotal:,.2f}")
    breakdown.add_row("Material", f"{costs.material:,.2f}")
    breakdown.add_row("Total", f"[bold]{costs.total:,.2f}[/bold]")
    return [summary, breakdown]


@app.command()
def analyze(
    model_files: List[Path] = typer.Argument(
        ...,
        exists=True,
        help="Model files to analyze (STL, OBJ, 3MF, AMF)",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Print metrics as JSON",
    ),
) -> None:
    """Analyze model files and display their metrics."""
    analyzer = MeshAnalyzer()
    records = []
    failed = 0

    for model_file in model_files:
        try:
            metrics = analyzer.analyze_file(model_file)
        except Exception as e:
            failed += 1
            if json_output:
                records.append({"file": str(model_file), "error": str(e)})
            else:
                console.print(f"[red]Error: {e}[/red]")
            continue

        log_performance(
            logger,
            "analyze",
            metrics.parse_duration_ms / 1000,
            file=str(model_file),
            triangles=metrics.triangle_count,
        )
        if json_output:
            records.append({"file": str(model_file), **metrics.to_record()})
        else:
            console.print(_metrics_table(model_file.name, metrics))

    if json_output:
        typer.echo(json.dumps(records, indent=2))
    if failed:
        raise typer.Exit(1)


@app.command()
def quote(
    model_file: Path = typer.Argument(
        ...,
        exists=True,
        help="Model file to quote",
    ),
    material: str = typer.Option(
        "PLA",
        "--material",
        "-m",
        help="Filament id",
    ),
    nozzle: str = typer.Option(
        "0.4",
        "--nozzle",
        "-n",
        help="Nozzle size in mm",
    ),
    printer: Optional[str] = typer.Option(
        None,
        "--printer",
        "-p",
        help="Use this printer instead of auto-selection",
    ),
    hours: Optional[float] = typer.Option(
        None,
        "--hours",
        help="Known print time in hours (requires --grams)",
    ),
    grams: Optional[float] = typer.Option(
        None,
        "--grams",
        help="Known material mass in grams (requires --hours)",
    ),
    pricing_file: Optional[Path] = typer.Option(
        None,
        "--pricing",
        help="Pricing catalog TOML file",
    ),
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Configuration file",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Print the result as JSON",
    ),
) -> None:
    """Analyze a model file and quote its print cost."""
    if (hours is None) != (grams is None):
        console.print("[red]Error: --hours and --grams must be given together[/red]")
        raise typer.Exit(1)

    try:
        cfg = Config.from_toml(config) if config else Config()
        if config:
            setup_logging(cfg.logging)

        pricing = load_pricing(pricing_file) if pricing_file else None
        estimator = FixedEstimator(hours, grams) if hours is not None else None
        pipeline = QuotePipeline(config=cfg, pricing=pricing, estimator=estimator)
    except Exception as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    if json_output:
        result = pipeline.quote_file(
            model_file,
            material,
            nozzle,
            auto_printer_selection=printer is None,
            preferred_printer_key=printer,
        )
        log_quote_result(logger, result)
        typer.echo(json.dumps(result.to_dict(), indent=2))
        if not result.success:
            raise typer.Exit(1)
        return

    console.print(f"\n💰 Quoting [cyan]{model_file.name}[/cyan]...")
    with console.status("Analyzing and pricing..."):
        result = pipeline.quote_file(
            model_file,
            material,
            nozzle,
            auto_printer_selection=printer is None,
            preferred_printer_key=printer,
        )

    log_quote_result(logger, result)
    if not result.success:
        console.print(f"[red]Error: {result.error}[/red]")
        raise typer.Exit(1)

    for table in _quote_tables(result.quote):
        console.print(table)

    if result.quote.warnings:
        console.print("\n⚠️  Warnings:")
        for warning in result.quote.warnings:
            console.print(f"   • {warning}", style="yellow")


@app.command()
def printers(
    material: Optional[str] = typer.Option(
        None,
        "--material",
        "-m",
        help="Check compatibility with this filament",
    ),
    nozzle: str = typer.Option(
        "0.4",
        "--nozzle",
        "-n",
        help="Nozzle size used for the compatibility check",
    ),
    pricing_file: Optional[Path] = typer.Option(
        None,
        "--pricing",
        help="Pricing catalog TOML file",
    ),
) -> None:
    """List the printer fleet and, optionally, filament compatibility."""
    try:
        pricing = load_pricing(pricing_file)
    except Exception as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    filament = None
    if material:
        found = pricing.get_filament(material)
        if found is None:
            console.print(
                f"[red]Error: unknown material '{material}'. "
                f"Available: {', '.join(pricing.filaments)}[/red]"
            )
            raise typer.Exit(1)
        material, filament = found

    title = f"Printers (catalog {pricing.version})"
    if filament:
        title += f" for {material} / {nozzle} mm"
    table = Table(title=title)
    table.add_column("Key", style="cyan")
    table.add_column("Name")
    table.add_column("Build Volume (mm)")
    table.add_column("Fleet", justify="right")
    table.add_column("Nozzles")
    if filament:
        table.add_column("Compatible")

    for key, printer in pricing.printers.items():
        volume = printer.build_volume_mm
        row = [
            key,
            printer.name,
            f"{volume.x:g} x {volume.y:g} x {volume.z:g}",
            str(printer.fleet_count),
            ", ".join(printer.hourly_rates),
        ]
        if filament:
            failures = compatibility_failures(printer, filament, nozzle)
            row.append("[green]yes[/green]" if not failures else f"[red]{'; '.join(failures)}[/red]")
        table.add_row(*row)

    console.print(table)


@app.command()
def info() -> None:
    """Display information about MeshQuote."""
    console.print("\n[cyan]MeshQuote[/cyan] - 3D Model Analysis and Print Quoting")
    console.print(f"Version: {__version__}")
    console.print("\nFeatures:")
    console.print("  • 📐 Mesh metrics for STL, OBJ, 3MF and AMF")
    console.print("  • 🖨️  Printer selection by build volume and filament requirements")
    console.print("  • ✂️  Segmentation estimate for oversized models")
    console.print("  • 💰 Hourly and bed-cycle pricing with lead times")

    console.print(f"\nSupported formats: {', '.join(f.upper() for f in SUPPORTED_FORMATS)}")
    console.print(f"Available estimators: {', '.join(EstimatorFactory.available_methods())}")


def main() -> None:
    """Main entry point for CLI."""
    app()


if __name__ == "__main__":
    main()

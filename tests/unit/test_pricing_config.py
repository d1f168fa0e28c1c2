"""Unit tests for the pricing catalog."""

import pytest

from meshquote.core.exceptions import ConfigurationError
from meshquote.pricing import PricingConfiguration, load_pricing


class TestDefaultCatalog:
    """Test the packaged default catalog."""

    def test_loads(self, default_pricing):
        assert default_pricing.currency == "USD"
        assert len(default_pricing.printers) >= 4
        assert "PLA" in default_pricing.filaments

    def test_scale_rules_are_ordered_largest_first(self, default_pricing):
        thresholds = [r.if_max_dim_greater_than for r in default_pricing.unit_sanity.scale_rules]

        assert thresholds == sorted(thresholds, reverse=True)

    def test_every_printer_offers_matching_rate_tables(self, default_pricing):
        for printer in default_pricing.printers.values():
            assert set(printer.hourly_rates) == set(printer.bed_cycle_rates)

    def test_is_frozen(self, default_pricing):
        with pytest.raises(Exception):
            default_pricing.currency = "EUR"

    def test_catalog_tables_are_read_only(self, default_pricing):
        printer = next(iter(default_pricing.printers.values()))

        with pytest.raises(TypeError):
            default_pricing.printers["extra"] = printer
        with pytest.raises(TypeError):
            default_pricing.filaments.pop("PLA")
        with pytest.raises(TypeError):
            printer.hourly_rates["0.4"] = 0.0
        with pytest.raises(TypeError):
            printer.bed_cycle_rates["0.4"] = 0.0
        with pytest.raises(TypeError):
            default_pricing.nozzles.time_multipliers["0.4"] = 2.0


class TestLookups:
    """Test typed lookups returning None for unknown keys."""

    def test_get_printer(self, single_printer_pricing):
        assert single_printer_pricing.get_printer("big380").name == "Big 380"
        assert single_printer_pricing.get_printer("nope") is None

    @pytest.mark.parametrize("material", ["PLA", "pla", " Pla "])
    def test_get_filament_ignores_case(self, material, single_printer_pricing):
        key, filament = single_printer_pricing.get_filament(material)

        assert key == "PLA"
        assert filament.sell_price_per_gram == 0.05

    def test_get_filament_unknown(self, single_printer_pricing):
        assert single_printer_pricing.get_filament("unobtainium") is None

    def test_rates_by_nozzle(self, single_printer_pricing):
        printer = single_printer_pricing.get_printer("big380")

        assert printer.hourly_rate("0.4") == 10.0
        assert printer.bed_cycle_rate("0.6") == 220.0
        assert printer.hourly_rate("1.0") is None


class TestLoading:
    """Test loading and validation."""

    def test_defaults_fill_sections(self, pricing_data):
        pricing = PricingConfiguration.from_dict(pricing_data)

        assert pricing.segmentation.efficiency == 0.70
        assert pricing.risk.cap_percent_of_base == 0.25
        assert pricing.lead_time.max_stretch_factor == 1.4
        assert pricing.segmentation.tier_multipliers.for_tier("heavy") == 1.12

    def test_empty_printers_rejected(self, pricing_data):
        pricing_data["printers"] = {}

        with pytest.raises(ConfigurationError, match="no printers"):
            PricingConfiguration.from_dict(pricing_data)

    def test_invalid_build_volume_rejected(self, pricing_data):
        pricing_data["printers"]["big380"]["build_volume_mm"]["x"] = 0

        with pytest.raises(ConfigurationError):
            PricingConfiguration.from_dict(pricing_data)

    def test_from_toml(self, tmp_path):
        path = tmp_path / "pricing.toml"
        path.write_text(
            """
version = "t1"

[printers.p1]
name = "P1"
build_volume_mm = { x = 200.0, y = 200.0, z = 200.0 }
capabilities = { max_nozzle_c = 260.0, max_bed_c = 100.0 }
hourly_rates = { "0.4" = 3.0 }
bed_cycle_rates = { "0.4" = 40.0 }
bed_cycle_hours = 12.0

[filaments.PLA]
name = "PLA"
sell_price_per_gram = 0.04
requirements = { min_nozzle_c = 200.0, min_bed_c = 50.0 }
"""
        )
        pricing = load_pricing(path)

        assert pricing.version == "t1"
        assert pricing.get_printer("p1").fleet_count == 1

    def test_invalid_toml(self, tmp_path):
        path = tmp_path / "broken.toml"
        path.write_text("printers = [")

        with pytest.raises(ConfigurationError, match="Invalid pricing TOML"):
            load_pricing(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_pricing(tmp_path / "missing.toml")

    def test_round_trip_through_dict(self, single_printer_pricing):
        again = PricingConfiguration.from_dict(single_printer_pricing.to_dict())

        assert again == single_printer_pricing

    def test_to_dict_returns_plain_dicts(self, single_printer_pricing):
        data = single_printer_pricing.to_dict()

        assert type(data["printers"]) is dict
        assert type(data["filaments"]) is dict
        assert type(data["printers"]["big380"]["hourly_rates"]) is dict

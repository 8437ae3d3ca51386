"""
Unit tests for YAML import/export service.

Tests validation, error handling, and roundtrip functionality.
"""

from decimal import Decimal
from pathlib import Path

import yaml
from django.test import TestCase

from billing.adapters import tariff_table_from_schedules
from billing.core.tariff import DEFAULT_TARIFF_TABLE
from tariffs.models import ConsumptionBand, TariffSchedule
from tariffs.yaml_service import TariffScheduleYAMLExporter, TariffScheduleYAMLImporter

DEFAULT_TARIFFS_YAML = Path(__file__).resolve().parent.parent / "data" / "default_tariffs.yaml"

VALID_YAML = """
tariff_schedules:
  - connection_type: "industrial"
    name: "Industrial HT"
    fixed_charge: 500.00
    tax_rate: 1.18
    bands:
      - upto_units: 1000
        rate: 7.00
      - upto_units: null
        rate: 9.00
"""


class TariffScheduleYAMLExporterTests(TestCase):
    """Test YAML export functionality."""

    def setUp(self):
        self.schedule = TariffSchedule.objects.create(
            connection_type="residential",
            name="Residential LT-1",
            fixed_charge=Decimal("50.00"),
            tax_rate=Decimal("1.05"),
        )
        ConsumptionBand.objects.create(schedule=self.schedule, upto_units=None, rate=Decimal("6.00"))
        ConsumptionBand.objects.create(schedule=self.schedule, upto_units=100, rate=Decimal("3.50"))
        ConsumptionBand.objects.create(schedule=self.schedule, upto_units=300, rate=Decimal("4.50"))

    def test_export_structure(self):
        """Test exported YAML has schedules with ordered bands."""
        yaml_str = TariffScheduleYAMLExporter(TariffSchedule.objects.all()).export_to_yaml()
        data = yaml.safe_load(yaml_str)

        self.assertEqual(len(data["tariff_schedules"]), 1)
        exported = data["tariff_schedules"][0]
        self.assertEqual(exported["connection_type"], "residential")
        self.assertEqual(exported["name"], "Residential LT-1")
        self.assertEqual(exported["fixed_charge"], 50.0)
        self.assertEqual([b["upto_units"] for b in exported["bands"]], [100, 300, None])
        self.assertEqual([b["rate"] for b in exported["bands"]], [3.5, 4.5, 6.0])

    def test_decimals_exported_without_python_tags(self):
        yaml_str = TariffScheduleYAMLExporter(TariffSchedule.objects.all()).export_to_yaml()

        self.assertNotIn("!!python", yaml_str)
        self.assertIn("rate: 3.5000", yaml_str)

    def test_roundtrip(self):
        """Test export then import with replace gives the same schedule."""
        yaml_str = TariffScheduleYAMLExporter(TariffSchedule.objects.all()).export_to_yaml()
        ConsumptionBand.objects.filter(schedule=self.schedule).update(rate=Decimal("1.00"))

        results = TariffScheduleYAMLImporter(yaml_str, replace_existing=True).import_schedules()

        self.assertEqual(len(results["updated"]), 1)
        rates = list(
            ConsumptionBand.objects.filter(schedule=self.schedule)
            .order_by("upto_units")
            .values_list("rate", flat=True)
        )
        self.assertEqual(sorted(rates), [Decimal("3.50"), Decimal("4.50"), Decimal("6.00")])


class TariffScheduleYAMLImporterTests(TestCase):
    """Test YAML import functionality."""

    def test_import_valid_schedule(self):
        results = TariffScheduleYAMLImporter(VALID_YAML).import_schedules()

        self.assertEqual(len(results["created"]), 1)
        self.assertEqual(results["errors"], [])
        schedule, band_count = results["created"][0]
        self.assertEqual(band_count, 2)
        self.assertEqual(schedule.tax_rate, Decimal("1.18"))
        self.assertEqual(TariffSchedule.objects.get(connection_type="industrial").bands.count(), 2)

    def test_shipped_defaults_match_builtin_table(self):
        """Test that the bundled YAML reproduces the built-in tariff table."""
        results = TariffScheduleYAMLImporter(DEFAULT_TARIFFS_YAML.read_text()).import_schedules()

        self.assertEqual(len(results["created"]), 2)
        self.assertEqual(
            tariff_table_from_schedules(TariffSchedule.objects.all()), DEFAULT_TARIFF_TABLE
        )

    def test_existing_schedule_skipped(self):
        TariffScheduleYAMLImporter(VALID_YAML).import_schedules()

        results = TariffScheduleYAMLImporter(VALID_YAML).import_schedules()

        self.assertEqual(len(results["skipped"]), 1)
        self.assertEqual(TariffSchedule.objects.count(), 1)

    def test_existing_schedule_replaced(self):
        TariffScheduleYAMLImporter(VALID_YAML).import_schedules()
        updated_yaml = VALID_YAML.replace("500.00", "650.00")

        results = TariffScheduleYAMLImporter(updated_yaml, replace_existing=True).import_schedules()

        self.assertEqual(len(results["updated"]), 1)
        schedule = TariffSchedule.objects.get(connection_type="industrial")
        self.assertEqual(schedule.fixed_charge, Decimal("650.00"))
        self.assertEqual(schedule.bands.count(), 2)

    def test_schedule_without_unbounded_band_rolled_back(self):
        bad_yaml = """
tariff_schedules:
  - connection_type: "industrial"
    name: "Industrial"
    fixed_charge: 10
    bands:
      - upto_units: 100
        rate: 1.00
"""
        results = TariffScheduleYAMLImporter(bad_yaml).import_schedules()

        self.assertEqual(results["created"], [])
        self.assertEqual(results["errors"][0][0], "industrial")
        self.assertIn("unbounded", results["errors"][0][1][0])
        self.assertFalse(TariffSchedule.objects.exists())

    def test_failed_replace_keeps_existing_bands(self):
        TariffScheduleYAMLImporter(VALID_YAML).import_schedules()
        bad_yaml = VALID_YAML.replace("rate: 9.00", "rate: -9.00")

        results = TariffScheduleYAMLImporter(bad_yaml, replace_existing=True).import_schedules()

        self.assertEqual(len(results["errors"]), 1)
        self.assertIn("rate", results["errors"][0][1][0])
        schedule = TariffSchedule.objects.get(connection_type="industrial")
        self.assertEqual(schedule.bands.count(), 2)
        self.assertEqual(schedule.bands.get(upto_units=None).rate, Decimal("9.00"))

    def test_one_bad_schedule_does_not_block_others(self):
        mixed_yaml = VALID_YAML + """
  - connection_type: "agricultural"
    name: "Agricultural"
    bands: []
"""
        results = TariffScheduleYAMLImporter(mixed_yaml).import_schedules()

        self.assertEqual(len(results["created"]), 1)
        self.assertEqual(results["errors"][0][0], "agricultural")
        self.assertIn("Missing required field: fixed_charge", results["errors"][0][1])

    def test_invalid_yaml_syntax(self):
        results = TariffScheduleYAMLImporter("tariff_schedules: [unclosed").import_schedules()

        self.assertEqual(results["errors"][0][0], "YAML File")
        self.assertIn("Invalid YAML syntax", results["errors"][0][1][0])

    def test_empty_yaml(self):
        results = TariffScheduleYAMLImporter("").import_schedules()

        self.assertEqual(results["errors"], [("YAML File", ["Empty YAML file"])])

    def test_missing_top_level_key(self):
        results = TariffScheduleYAMLImporter("tariffs: []").import_schedules()

        self.assertIn("tariff_schedules", results["errors"][0][1][0])

    def test_empty_schedule_list(self):
        results = TariffScheduleYAMLImporter("tariff_schedules: []").import_schedules()

        self.assertIn("cannot be empty", results["errors"][0][1][0])

"""
YAML import/export service for tariff schedules.

Provides bulk import and export of tariff schedules with their consumption
bands. Validation matches admin validation: every imported schedule must form
a complete band ladder (increasing thresholds, unbounded top band).

YAML Format:
    tariff_schedules:
      - connection_type: "residential"
        name: "Residential LT-1"
        fixed_charge: 50.00
        tax_rate: 1.05
        bands:
          - upto_units: 100
            rate: 3.50
          - upto_units: 300
            rate: 4.50
          - upto_units: null
            rate: 6.00
"""

from decimal import Decimal, InvalidOperation
from typing import Any

import yaml
from django.core.exceptions import ValidationError
from django.db import transaction

from billing.adapters import tariff_schedule_to_dto
from tariffs.models import ConsumptionBand, TariffSchedule


def _decimal_representer(dumper, value):
    return dumper.represent_scalar("tag:yaml.org,2002:float", str(value))


class _TariffDumper(yaml.SafeDumper):
    pass


_TariffDumper.add_representer(Decimal, _decimal_representer)


class TariffScheduleYAMLExporter:
    """Export tariff schedules to YAML format."""

    def __init__(self, schedules_queryset):
        """
        Initialize exporter with schedules queryset.

        Args:
            schedules_queryset: Django queryset of TariffSchedule objects to export
        """
        self.schedules = schedules_queryset.prefetch_related("bands")

    def export_to_yaml(self) -> str:
        """
        Export tariff schedules to YAML string.

        Returns:
            YAML string representation of the schedules
        """
        data = {"tariff_schedules": [self._serialize_schedule(s) for s in self.schedules]}
        return yaml.dump(
            data,
            Dumper=_TariffDumper,
            default_flow_style=False,
            sort_keys=False,
            allow_unicode=True,
        )

    def _serialize_schedule(self, schedule: TariffSchedule) -> dict:
        bands = sorted(
            schedule.bands.all(), key=lambda b: (b.upto_units is None, b.upto_units or 0)
        )
        return {
            "connection_type": schedule.connection_type,
            "name": schedule.name,
            "fixed_charge": schedule.fixed_charge,
            "tax_rate": schedule.tax_rate,
            "bands": [{"upto_units": b.upto_units, "rate": b.rate} for b in bands],
        }


class TariffScheduleYAMLImporter:
    """Import tariff schedules from YAML format with validation."""

    def __init__(self, yaml_content: str, replace_existing: bool = False):
        """
        Initialize importer with YAML content.

        Args:
            yaml_content: YAML string to parse and import
            replace_existing: If True, replace existing schedules with the same
                            connection type. If False, skip them.
        """
        self.yaml_content = yaml_content
        self.replace_existing = replace_existing
        self.results = {
            "created": [],  # [(schedule, band_count), ...]
            "updated": [],  # [(schedule, band_count), ...]
            "skipped": [],  # [(connection_type, reason), ...]
            "errors": [],  # [(connection_type, error_messages), ...]
        }

    def import_schedules(self) -> dict:
        """
        Parse and import tariff schedules from YAML.

        Each schedule is imported in its own transaction, so one bad schedule
        does not prevent the others from being imported.

        Returns:
            Dictionary with results:
            {
                'created': [(schedule, band_count), ...],
                'updated': [(schedule, band_count), ...],
                'skipped': [(connection_type, reason), ...],
                'errors': [(connection_type, error_messages), ...]
            }
        """
        try:
            data = self._parse_yaml()
            self._validate_schema(data)
        except ValueError as e:
            # Parse or schema errors affect entire file
            self.results["errors"].append(("YAML File", [str(e)]))
            return self.results

        for schedule_data in data["tariff_schedules"]:
            self._import_single_schedule(schedule_data)

        return self.results

    def _parse_yaml(self) -> dict:
        """Parse YAML content with error handling."""
        try:
            data = yaml.safe_load(self.yaml_content)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML syntax: {str(e)}")
        if data is None:
            raise ValueError("Empty YAML file")
        return data

    def _validate_schema(self, data: Any):
        """Validate top-level YAML structure."""
        if not isinstance(data, dict):
            raise ValueError("YAML must contain a dictionary at top level")

        if "tariff_schedules" not in data:
            raise ValueError("Missing required top-level key: tariff_schedules")

        if not isinstance(data["tariff_schedules"], list):
            raise ValueError("tariff_schedules must be a list")

        if len(data["tariff_schedules"]) == 0:
            raise ValueError("tariff_schedules list cannot be empty")

    def _import_single_schedule(self, schedule_data: Any):
        """Import a single schedule and its bands atomically."""
        if not isinstance(schedule_data, dict):
            self.results["errors"].append(("Unknown", ["Schedule entry must be a dictionary"]))
            return

        connection_type = str(schedule_data.get("connection_type") or "Unknown")

        errors = []
        for field in ("connection_type", "name", "fixed_charge", "bands"):
            if field not in schedule_data:
                errors.append(f"Missing required field: {field}")
        if "bands" in schedule_data and not isinstance(schedule_data["bands"], list):
            errors.append("bands must be a list")
        if errors:
            self.results["errors"].append((connection_type, errors))
            return

        existing = TariffSchedule.objects.filter(connection_type=connection_type).first()

        if existing and not self.replace_existing:
            self.results["skipped"].append(
                (connection_type, f"Tariff schedule already exists for {connection_type}")
            )
            return

        try:
            with transaction.atomic():
                schedule = existing or TariffSchedule(connection_type=connection_type)
                schedule.name = schedule_data["name"]
                schedule.fixed_charge = self._parse_decimal(
                    schedule_data["fixed_charge"], "fixed_charge"
                )
                if "tax_rate" in schedule_data:
                    schedule.tax_rate = self._parse_decimal(schedule_data["tax_rate"], "tax_rate")
                schedule.full_clean()
                schedule.save()

                if existing:
                    existing.bands.all().delete()

                for band_data in schedule_data["bands"]:
                    self._create_band(schedule, band_data)

                # Check the ladder as a whole, rolling back on failure
                tariff_schedule_to_dto(schedule)

        except ValidationError as e:
            self.results["errors"].append((connection_type, self._validation_messages(e)))
            return
        except ValueError as e:
            self.results["errors"].append((connection_type, [str(e)]))
            return

        band_count = len(schedule_data["bands"])
        if existing:
            self.results["updated"].append((schedule, band_count))
        else:
            self.results["created"].append((schedule, band_count))

    def _create_band(self, schedule: TariffSchedule, band_data: Any):
        """Create and validate a consumption band."""
        if not isinstance(band_data, dict) or "rate" not in band_data:
            raise ValueError("Each band needs a rate")

        upto_units = band_data.get("upto_units")
        if upto_units is not None and (isinstance(upto_units, bool) or not isinstance(upto_units, int)):
            raise ValueError(f"Invalid upto_units: {upto_units!r}. Expected an integer or null")

        band = ConsumptionBand(
            schedule=schedule,
            upto_units=upto_units,
            rate=self._parse_decimal(band_data["rate"], "rate"),
        )
        band.full_clean()
        band.save()

    def _parse_decimal(self, value: Any, field: str) -> Decimal:
        if isinstance(value, bool):
            raise ValueError(f"Invalid {field}: {value!r}")
        try:
            return Decimal(str(value))
        except InvalidOperation:
            raise ValueError(f"Invalid {field}: {value!r}")

    def _validation_messages(self, e: ValidationError) -> list[str]:
        if hasattr(e, "error_dict"):
            return [
                f"{field}: {message}"
                for field, messages in e.message_dict.items()
                for message in messages
            ]
        return list(e.messages)

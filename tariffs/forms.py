"""
Forms for tariff schedule editing and import/export.
"""

from decimal import Decimal

from django import forms
from django.forms.models import BaseInlineFormSet

from billing.adapters import band_sort_key
from billing.core.types import ConsumptionBand, TariffSchedule


class ConsumptionBandInlineFormSet(BaseInlineFormSet):
    """Band formset that only accepts a complete band ladder."""

    def clean(self):
        super().clean()
        if any(self.errors):
            return

        bands = []
        for form in self.forms:
            if not form.cleaned_data or (self.can_delete and self._should_delete_form(form)):
                continue
            bands.append(
                ConsumptionBand(
                    upto_units=form.cleaned_data.get("upto_units"),
                    rate=form.cleaned_data["rate"],
                )
            )
        bands.sort(key=band_sort_key)

        # Charges are validated on the schedule form; only the ladder is checked here
        try:
            TariffSchedule(
                connection_type=self.instance.connection_type or "new schedule",
                bands=tuple(bands),
                fixed_charge=Decimal("0"),
                tax_rate=Decimal("1"),
            )
        except ValueError as e:
            raise forms.ValidationError(str(e))


class TariffScheduleYAMLUploadForm(forms.Form):
    """Form for uploading YAML tariff schedule files."""

    yaml_file = forms.FileField(
        label="YAML File",
        help_text="Upload a .yaml or .yml file with tariff schedules (max 10MB)",
        widget=forms.FileInput(attrs={"accept": ".yaml,.yml"}),
    )

    replace_existing = forms.BooleanField(
        required=False,
        initial=False,
        label="Replace existing schedules",
        help_text="If checked, schedules with the same connection type will be replaced. "
        "Otherwise, they will be skipped with a warning.",
    )

    def clean_yaml_file(self):
        """Validate file extension and size."""
        yaml_file = self.cleaned_data["yaml_file"]

        if not yaml_file.name.endswith((".yaml", ".yml")):
            raise forms.ValidationError("File must have .yaml or .yml extension")

        if yaml_file.size > 10 * 1024 * 1024:
            raise forms.ValidationError("File size exceeds 10MB limit")

        return yaml_file

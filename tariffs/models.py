from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models


class TariffSchedule(models.Model):
    """
    Represents the rate schedule for a connection class (e.g., residential).

    A schedule combines progressive consumption bands with a fixed charge and
    a tax multiplier applied to their sum.
    """

    connection_type = models.CharField(
        max_length=50,
        unique=True,
        help_text="Connection class billed with this schedule (e.g., residential)",
    )
    name = models.CharField(max_length=200, help_text="Display name (e.g., Residential LT-1)")
    fixed_charge = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        help_text="Flat amount added every bill regardless of consumption",
    )
    tax_rate = models.DecimalField(
        max_digits=6,
        decimal_places=4,
        default=Decimal("1.05"),
        help_text="Multiplier applied to bands + fixed charge (1.05 = 5% tax)",
    )

    class Meta:
        ordering = ["connection_type"]

    def clean(self):
        """Validate schedule-level constraints."""
        if self.fixed_charge is not None and self.fixed_charge < 0:
            raise ValidationError({"fixed_charge": "Fixed charge cannot be negative."})
        if self.tax_rate is not None and self.tax_rate <= 0:
            raise ValidationError({"tax_rate": "Tax rate must be a positive multiplier."})

    def __str__(self):
        return f"{self.name} ({self.connection_type})"


class ConsumptionBand(models.Model):
    """
    One band of a tariff schedule.

    Units above the previous band's threshold up to upto_units are billed at rate.
    The band with no upto_units is the unbounded top band.
    """

    schedule = models.ForeignKey(
        TariffSchedule,
        on_delete=models.CASCADE,
        related_name="bands",
        help_text="Schedule this band belongs to",
    )
    upto_units = models.PositiveIntegerField(
        null=True,
        blank=True,
        help_text="Upper threshold in units (inclusive). Blank = unbounded top band.",
    )
    rate = models.DecimalField(
        max_digits=10,
        decimal_places=4,
        help_text="Rate per unit within this band",
    )

    class Meta:
        ordering = ["schedule", "upto_units"]
        unique_together = [["schedule", "upto_units"]]

    def clean(self):
        """Validate band constraints."""
        if self.rate is not None and self.rate < 0:
            raise ValidationError({"rate": "Rate cannot be negative."})
        if self.upto_units is not None and self.upto_units == 0:
            raise ValidationError({"upto_units": "Threshold must be at least 1 unit."})

    def __str__(self):
        upper = self.upto_units if self.upto_units is not None else "∞"
        return f"{self.schedule.connection_type} ≤{upper} @ {self.rate}"

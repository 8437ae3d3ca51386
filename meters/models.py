from django.core.exceptions import ValidationError
from django.db import models


class Reading(models.Model):
    """
    Represents a meter reading for a billing month.

    units_consumed is derived from the previous reading of the same connection
    and never changes once recorded.
    """

    connection = models.ForeignKey(
        "customers.Connection",
        on_delete=models.PROTECT,
        related_name="readings",
        help_text="Connection the meter belongs to",
    )
    month = models.CharField(max_length=7, help_text="Billing month in YYYY-MM format")
    previous_unit = models.PositiveIntegerField(help_text="Meter register at the previous reading")
    current_unit = models.PositiveIntegerField(help_text="Meter register at this reading")
    units_consumed = models.PositiveIntegerField(help_text="current_unit - previous_unit")
    recorded_at = models.DateTimeField(db_index=True, help_text="When the meter was read")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["connection", "-recorded_at"]
        indexes = [
            models.Index(fields=["connection", "recorded_at"]),
        ]

    def __str__(self):
        return f"{self.connection.meter_number} - {self.month} ({self.units_consumed} units)"

    def clean(self) -> None:
        """
        Validate that consumption matches the register values.
        """
        super().clean()

        if self.current_unit is None or self.previous_unit is None:
            return

        if self.current_unit < self.previous_unit:
            raise ValidationError(
                {"current_unit": "Current reading cannot be less than previous reading."}
            )
        if self.units_consumed != self.current_unit - self.previous_unit:
            raise ValidationError(
                {"units_consumed": "Units consumed must equal current minus previous reading."}
            )

from django.db import models
from timezone_field import TimeZoneField


class Customer(models.Model):
    """
    Represents a customer of the utility.
    """

    name = models.CharField(max_length=200, help_text="Name of the customer")
    email = models.EmailField(help_text="Address bills and reminders are sent to")
    phone = models.CharField(max_length=30, blank=True, help_text="Contact phone number")
    address = models.TextField(blank=True, help_text="Service address")
    timezone = TimeZoneField(
        default="Asia/Kolkata",
        help_text="IANA timezone for this customer's location",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]

    def __str__(self):
        return self.name


class Connection(models.Model):
    """
    A metered supply connection belonging to a customer.

    The connection type selects the tariff schedule used to bill its readings.
    """

    customer = models.ForeignKey(
        Customer,
        on_delete=models.PROTECT,
        related_name="connections",
        help_text="Customer",
    )
    meter_number = models.CharField(
        max_length=20,
        unique=True,
        help_text="Meter number printed on the meter (e.g., MTR-123456)",
    )
    connection_type = models.CharField(
        max_length=50,
        default="residential",
        help_text="Connection class (e.g., residential, commercial)",
    )
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["meter_number"]

    def __str__(self):
        return f"{self.meter_number} ({self.connection_type}) - {self.customer.name}"

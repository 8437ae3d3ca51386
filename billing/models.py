from django.db import models


class Bill(models.Model):
    """
    A monetary obligation issued for exactly one meter reading.

    Bills are never deleted and never edited after issue, except for is_paid,
    which only the payment processor flips.
    """

    id = models.UUIDField(primary_key=True, editable=False)
    reading = models.OneToOneField(
        "meters.Reading",
        on_delete=models.PROTECT,
        related_name="bill",
        help_text="Reading this bill was issued for (one bill per reading)",
    )
    customer = models.ForeignKey(
        "customers.Customer",
        on_delete=models.PROTECT,
        related_name="bills",
        help_text="Customer who owes the bill",
    )
    amount = models.DecimalField(max_digits=12, decimal_places=2, help_text="Amount due")
    due_date = models.DateField(help_text="Date payment is due")
    is_paid = models.BooleanField(default=False, db_index=True)
    created_at = models.DateTimeField(help_text="When the bill was issued")

    class Meta:
        ordering = ["-created_at"]

    def __str__(self):
        status = "paid" if self.is_paid else "unpaid"
        return f"Bill {str(self.id)[:8]} - {self.customer.name} ({self.amount}, {status})"


class Payment(models.Model):
    """
    A settlement recorded against a bill. Immutable once created.
    """

    METHOD_CHOICES = [
        ("upi", "UPI"),
        ("cash", "Cash"),
        ("card", "Card"),
    ]

    id = models.UUIDField(primary_key=True, editable=False)
    bill = models.ForeignKey(
        Bill,
        on_delete=models.PROTECT,
        related_name="payments",
        help_text="Bill this payment settles",
    )
    customer = models.ForeignKey(
        "customers.Customer",
        on_delete=models.PROTECT,
        related_name="payments",
        help_text="Customer who paid",
    )
    amount = models.DecimalField(max_digits=12, decimal_places=2, help_text="Amount tendered")
    method = models.CharField(max_length=10, choices=METHOD_CHOICES, default="cash")
    paid_at = models.DateTimeField(help_text="When the payment was recorded")

    class Meta:
        ordering = ["-paid_at"]

    def __str__(self):
        return f"Payment {str(self.id)[:8]} for bill {str(self.bill_id)[:8]} ({self.amount})"

from django.db import models


class Notification(models.Model):
    """
    A message sent to a customer, optionally about a specific bill.

    Only is_read changes after creation.
    """

    id = models.UUIDField(primary_key=True, editable=False)
    customer = models.ForeignKey(
        "customers.Customer",
        on_delete=models.CASCADE,
        related_name="notifications",
        help_text="Recipient",
    )
    bill = models.ForeignKey(
        "billing.Bill",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="notifications",
        help_text="Bill the notification is about (optional)",
    )
    title = models.CharField(max_length=200)
    message = models.TextField()
    is_read = models.BooleanField(default=False)
    sent_at = models.DateTimeField(db_index=True)

    class Meta:
        ordering = ["-sent_at"]
        indexes = [
            models.Index(fields=["customer", "sent_at"]),
        ]

    def __str__(self):
        return f"{self.title} -> {self.customer.name}"

"""
Boundary contracts between the billing engine and its collaborators.

The engine never talks to a database or a mail server directly. Every engine
operation receives a BillingRepository (and, where it emits messages, a
NotificationDelivery) explicitly.
"""

from typing import Optional, Protocol

from .types import Bill, CustomerContact, DeliveryResult, Notification, Payment, Reading


class BillingRepository(Protocol):
    """
    Persistence collaborator.

    Atomicity requirements:
        - insert_bill must be atomic and unique on reading_id; a second bill
          for the same reading raises DuplicateBillError.
        - mark_bill_paid must flip is_paid and store the payment as one unit,
          conditional on the bill still being unpaid; otherwise it raises
          AlreadyPaidError and stores nothing.
    """

    def find_reading(self, reading_id: str) -> Optional[Reading]: ...

    def find_customer(self, customer_id: str) -> Optional[CustomerContact]: ...

    def find_bill_by_id(self, bill_id: str) -> Optional[Bill]: ...

    def find_bill_by_reading_id(self, reading_id: str) -> Optional[Bill]: ...

    def insert_bill(self, bill: Bill) -> Bill: ...

    def mark_bill_paid(self, bill_id: str, payment: Payment) -> Payment: ...

    def insert_notification(self, notification: Notification) -> Notification: ...

    def find_notification(self, notification_id: str) -> Optional[Notification]: ...

    def list_notifications(self, customer_id: str, limit: int) -> list[Notification]:
        """Most recent first."""
        ...

    def update_notification_read(self, notification_id: str, customer_id: str) -> int:
        """Mark read if owned by customer_id. Returns the number of rows changed."""
        ...


class NotificationDelivery(Protocol):
    """Delivery collaborator (email, SMS, ...). Retry policy belongs to the implementation."""

    def deliver(self, recipient_email: str, title: str, message: str) -> DeliveryResult: ...

"""
In-memory BillingRepository.

Used for deterministic tests of the engine and for dry runs. A single lock
serialises writes, which gives the same one-bill-per-reading and
one-payment-per-bill guarantees as the database-backed repository.
"""

import threading
from dataclasses import replace
from typing import Optional

from billing.exceptions import AlreadyPaidError, DuplicateBillError, NotFoundError

from .types import Bill, CustomerContact, Notification, Payment, Reading


class InMemoryBillingRepository:
    """Dictionary-backed implementation of billing.core.ports.BillingRepository."""

    def __init__(
        self,
        readings: tuple[Reading, ...] = (),
        customers: tuple[CustomerContact, ...] = (),
    ):
        self._lock = threading.Lock()
        self.readings: dict[str, Reading] = {r.id: r for r in readings}
        self.customers: dict[str, CustomerContact] = {c.id: c for c in customers}
        self.bills: dict[str, Bill] = {}
        self.payments: dict[str, Payment] = {}
        self.notifications: dict[str, Notification] = {}

    def add_reading(self, reading: Reading) -> Reading:
        with self._lock:
            self.readings[reading.id] = reading
        return reading

    def add_customer(self, customer: CustomerContact) -> CustomerContact:
        with self._lock:
            self.customers[customer.id] = customer
        return customer

    def find_reading(self, reading_id: str) -> Optional[Reading]:
        return self.readings.get(reading_id)

    def find_customer(self, customer_id: str) -> Optional[CustomerContact]:
        return self.customers.get(customer_id)

    def find_bill_by_id(self, bill_id: str) -> Optional[Bill]:
        return self.bills.get(bill_id)

    def find_bill_by_reading_id(self, reading_id: str) -> Optional[Bill]:
        for bill in list(self.bills.values()):
            if bill.reading_id == reading_id:
                return bill
        return None

    def insert_bill(self, bill: Bill) -> Bill:
        with self._lock:
            if any(existing.reading_id == bill.reading_id for existing in self.bills.values()):
                raise DuplicateBillError(bill.reading_id)
            self.bills[bill.id] = bill
        return bill

    def mark_bill_paid(self, bill_id: str, payment: Payment) -> Payment:
        with self._lock:
            bill = self.bills.get(bill_id)
            if bill is None:
                raise NotFoundError("Bill", bill_id)
            if bill.is_paid:
                raise AlreadyPaidError(bill_id)
            self.bills[bill_id] = replace(bill, is_paid=True)
            self.payments[payment.id] = payment
        return payment

    def payments_for_bill(self, bill_id: str) -> list[Payment]:
        return [p for p in self.payments.values() if p.bill_id == bill_id]

    def insert_notification(self, notification: Notification) -> Notification:
        with self._lock:
            self.notifications[notification.id] = notification
        return notification

    def find_notification(self, notification_id: str) -> Optional[Notification]:
        return self.notifications.get(notification_id)

    def list_notifications(self, customer_id: str, limit: int) -> list[Notification]:
        owned = [n for n in self.notifications.values() if n.customer_id == customer_id]
        owned.sort(key=lambda n: n.sent_at, reverse=True)
        return owned[:limit]

    def update_notification_read(self, notification_id: str, customer_id: str) -> int:
        with self._lock:
            notification = self.notifications.get(notification_id)
            if notification is None or notification.customer_id != customer_id:
                return 0
            self.notifications[notification_id] = replace(notification, is_read=True)
        return 1

"""
Django ORM implementation of the billing engine's persistence collaborator.

Atomicity:
    - insert_bill relies on the OneToOne (unique) Bill.reading column; an
      IntegrityError on that column becomes DuplicateBillError.
    - mark_bill_paid runs a conditional UPDATE ... WHERE is_paid = false and the
      payment INSERT in one transaction. Zero updated rows means another payment
      won, and the transaction is rolled back with AlreadyPaidError.
"""

import logging
from typing import Optional

from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction

from billing.adapters import (
    bill_to_dto,
    customer_to_contact,
    notification_to_dto,
    notifications_to_dtos,
    payment_to_dto,
    reading_to_dto,
)
from billing.core.types import Bill, CustomerContact, Notification, Payment, Reading
from billing.exceptions import AlreadyPaidError, DuplicateBillError, NotFoundError
from billing.models import Bill as BillModel
from billing.models import Payment as PaymentModel
from customers.models import Customer
from meters.models import Reading as ReadingModel
from notifications.models import Notification as NotificationModel

logger = logging.getLogger(__name__)


def _get_or_none(queryset, **lookup):
    """Fetch a single object, treating malformed identifiers as missing."""
    try:
        return queryset.filter(**lookup).first()
    except (ValueError, ValidationError):
        return None


class DjangoBillingRepository:
    """Implements billing.core.ports.BillingRepository on the project's models."""

    def find_reading(self, reading_id: str) -> Optional[Reading]:
        reading = _get_or_none(
            ReadingModel.objects.select_related("connection__customer"), pk=reading_id
        )
        return reading_to_dto(reading) if reading else None

    def find_customer(self, customer_id: str) -> Optional[CustomerContact]:
        customer = _get_or_none(Customer.objects.all(), pk=customer_id)
        return customer_to_contact(customer) if customer else None

    def find_bill_by_id(self, bill_id: str) -> Optional[Bill]:
        bill = _get_or_none(BillModel.objects.all(), pk=bill_id)
        return bill_to_dto(bill) if bill else None

    def find_bill_by_reading_id(self, reading_id: str) -> Optional[Bill]:
        bill = _get_or_none(BillModel.objects.all(), reading_id=reading_id)
        return bill_to_dto(bill) if bill else None

    def insert_bill(self, bill: Bill) -> Bill:
        try:
            with transaction.atomic():
                model = BillModel.objects.create(
                    id=bill.id,
                    reading_id=bill.reading_id,
                    customer_id=bill.customer_id,
                    amount=bill.amount,
                    due_date=bill.due_date,
                    is_paid=bill.is_paid,
                    created_at=bill.created_at,
                )
        except IntegrityError:
            if BillModel.objects.filter(reading_id=bill.reading_id).exists():
                raise DuplicateBillError(bill.reading_id)
            raise
        return bill_to_dto(model)

    def mark_bill_paid(self, bill_id: str, payment: Payment) -> Payment:
        with transaction.atomic():
            updated = BillModel.objects.filter(pk=bill_id, is_paid=False).update(is_paid=True)
            if updated == 0:
                if not BillModel.objects.filter(pk=bill_id).exists():
                    raise NotFoundError("Bill", bill_id)
                raise AlreadyPaidError(bill_id)

            model = PaymentModel.objects.create(
                id=payment.id,
                bill_id=bill_id,
                customer_id=payment.customer_id,
                amount=payment.amount,
                method=payment.method.value,
                paid_at=payment.paid_at,
            )
        logger.debug("Bill %s marked paid by payment %s", bill_id, payment.id)
        return payment_to_dto(model)

    def insert_notification(self, notification: Notification) -> Notification:
        model = NotificationModel.objects.create(
            id=notification.id,
            customer_id=notification.customer_id,
            bill_id=notification.bill_id,
            title=notification.title,
            message=notification.message,
            is_read=notification.is_read,
            sent_at=notification.sent_at,
        )
        return notification_to_dto(model)

    def find_notification(self, notification_id: str) -> Optional[Notification]:
        notification = _get_or_none(NotificationModel.objects.all(), pk=notification_id)
        return notification_to_dto(notification) if notification else None

    def list_notifications(self, customer_id: str, limit: int) -> list[Notification]:
        try:
            queryset = NotificationModel.objects.filter(customer_id=customer_id).order_by(
                "-sent_at"
            )[:limit]
            return notifications_to_dtos(queryset)
        except (ValueError, ValidationError):
            return []

    def update_notification_read(self, notification_id: str, customer_id: str) -> int:
        try:
            return NotificationModel.objects.filter(
                pk=notification_id, customer_id=customer_id
            ).update(is_read=True)
        except (ValueError, ValidationError):
            return 0

"""
Notification service layer.

Customer-facing read-state operations and ad-hoc messages, run through the
billing engine's notification trigger against the Django repository.
"""

from typing import Any, Optional

from django.utils import timezone

from billing.conf import billing_setting
from billing.core import notifications as trigger
from billing.core.ports import NotificationDelivery
from billing.core.types import Notification
from billing.core.util import new_id
from billing.exceptions import InvalidInputError, NotFoundError
from billing.repository import DjangoBillingRepository
from billing.services import SentNotification
from notifications.delivery import get_default_delivery


def get_notifications(customer_id: Any, limit: Optional[int] = None) -> list[Notification]:
    """
    Get a customer's most recent notifications, newest first.

    Args:
        customer_id: Customer whose notifications to list
        limit: Maximum number returned (defaults to settings.BILLING["NOTIFICATION_LIMIT"])
    """
    if limit is None:
        limit = billing_setting("NOTIFICATION_LIMIT")
    return trigger.list_notifications(DjangoBillingRepository(), str(customer_id), limit)


def mark_notification_read(notification_id: str, customer_id: Any) -> Notification:
    """
    Mark one of the customer's notifications as read.

    Raises:
        NotFoundError: If the notification does not exist
        ForbiddenError: If it belongs to another customer
    """
    return trigger.mark_read(DjangoBillingRepository(), notification_id, str(customer_id))


def send_customer_notification(
    customer_id: Any,
    title: str,
    message: str,
    delivery: Optional[NotificationDelivery] = None,
    bill_id: Optional[str] = None,
) -> SentNotification:
    """
    Store and deliver an ad-hoc message to a customer.

    Raises:
        InvalidInputError: If title or message is blank
        NotFoundError: If the customer does not exist
    """
    if not title or not title.strip():
        raise InvalidInputError("Notification title cannot be blank", "title", title)
    if not message or not message.strip():
        raise InvalidInputError("Notification message cannot be blank", "message", message)

    repository = DjangoBillingRepository()
    customer = repository.find_customer(str(customer_id))
    if customer is None:
        raise NotFoundError("Customer", customer_id)

    notification = repository.insert_notification(
        Notification(
            id=new_id(),
            customer_id=customer.id,
            title=title.strip(),
            message=message,
            sent_at=timezone.now(),
            bill_id=bill_id,
        )
    )
    result = trigger.deliver(delivery or get_default_delivery(), notification, customer.email)
    return SentNotification(notification=notification, delivery=result)

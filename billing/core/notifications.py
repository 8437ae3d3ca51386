"""
Notification trigger: decides what to tell a customer about a bill.

Builders only produce Notification entities. Delivery goes through the
NotificationDelivery collaborator, called once per message; failed deliveries
are logged and reported, never retried here.
"""

import logging
from datetime import datetime
from typing import Optional

from billing.exceptions import ForbiddenError, NotFoundError

from .ports import BillingRepository, NotificationDelivery
from .types import (
    Bill,
    ChargeBreakdown,
    CustomerContact,
    DeliveryResult,
    Notification,
    Payment,
    Reading,
)
from .util import format_currency, format_local_date, new_id, short_id, utc_now

logger = logging.getLogger(__name__)

DEFAULT_CURRENCY_SYMBOL = "₹"
DEFAULT_DATE_FORMAT = "%d/%m/%Y"
DEFAULT_NOTIFICATION_LIMIT = 10


def reminder_title(bill: Bill) -> str:
    return f"Payment reminder for bill #{short_id(bill.id)}"


def build_reminder(
    bill: Optional[Bill],
    customer: Optional[CustomerContact],
    override_message: Optional[str] = None,
    *,
    now: Optional[datetime] = None,
    currency_symbol: str = DEFAULT_CURRENCY_SYMBOL,
    date_format: str = DEFAULT_DATE_FORMAT,
) -> Notification:
    """
    Build a payment reminder for a bill.

    Args:
        bill: Bill the reminder is about
        customer: Owner of the bill
        override_message: Used verbatim instead of the default message
        now: Timestamp for sent_at (defaults to current UTC time)
        currency_symbol: Symbol prefixed to the amount in the default message
        date_format: strftime format for the due date in the default message

    Returns:
        Unread Notification addressed to the customer

    Raises:
        NotFoundError: If the bill or its customer is missing
    """
    if bill is None:
        raise NotFoundError("Bill", None)
    if customer is None:
        raise NotFoundError("Customer", bill.customer_id)

    if override_message is not None:
        message = override_message
    else:
        message = (
            f"Dear {customer.name},\n\n"
            f"Your bill #{short_id(bill.id)} of {format_currency(bill.amount, currency_symbol)} "
            f"is due on {format_local_date(bill.due_date, date_format)}.\n"
            "Please pay before the due date to avoid late fees.\n\n"
            "Thank you for being a valued customer!"
        )

    return Notification(
        id=new_id(),
        customer_id=customer.id,
        bill_id=bill.id,
        title=reminder_title(bill),
        message=message,
        sent_at=now or utc_now(),
        is_read=False,
    )


def build_bill_statement(
    bill: Bill,
    customer: CustomerContact,
    reading: Reading,
    breakdown: ChargeBreakdown,
    *,
    previous_unit: Optional[int] = None,
    current_unit: Optional[int] = None,
    now: Optional[datetime] = None,
    currency_symbol: str = DEFAULT_CURRENCY_SYMBOL,
    date_format: str = DEFAULT_DATE_FORMAT,
) -> Notification:
    """Build the statement sent when a bill is issued for a reading."""

    def money(value):
        return format_currency(value, currency_symbol)

    lines = [
        f"Dear {customer.name},",
        "",
        f"Your electricity consumption details for {reading.month}:",
        "",
        f"Meter Number: {reading.meter_id}",
    ]
    if previous_unit is not None and current_unit is not None:
        lines.append(f"Previous Reading: {previous_unit} units")
        lines.append(f"Current Reading: {current_unit} units")
    lines.append(f"Units Consumed: {reading.units_consumed} units")
    lines += ["", f"Bill Calculation ({breakdown.connection_type}):"]
    for band in breakdown.band_charges:
        upper = band.upper_units if band.upper_units is not None else "above"
        lines.append(
            f"- {band.lower_units + 1}-{upper}: {band.units} units x {money(band.rate)} "
            f"= {money(band.amount)}"
        )
    lines += [
        f"- Fixed Charges: {money(breakdown.fixed_charge)}",
        f"- Taxes: {money(breakdown.tax_amount)}",
        "",
        f"Total Amount Due: {money(bill.amount)}",
        f"Due Date: {format_local_date(bill.due_date, date_format)}",
        "",
        "Please pay before the due date to avoid late fees.",
        "Thank you for being a valued customer!",
    ]

    return Notification(
        id=new_id(),
        customer_id=customer.id,
        bill_id=bill.id,
        title=f"Your electricity bill statement #{short_id(bill.id)}",
        message="\n".join(lines),
        sent_at=now or utc_now(),
    )


def build_payment_receipt(
    payment: Payment,
    bill: Bill,
    customer: CustomerContact,
    *,
    now: Optional[datetime] = None,
    currency_symbol: str = DEFAULT_CURRENCY_SYMBOL,
) -> Notification:
    """Build the confirmation sent after a payment is recorded."""
    return Notification(
        id=new_id(),
        customer_id=customer.id,
        bill_id=bill.id,
        title="Payment received",
        message=(
            f"We received your payment of {format_currency(payment.amount, currency_symbol)} "
            f"for bill #{short_id(bill.id)}. Thank you!"
        ),
        sent_at=now or payment.paid_at,
    )


def deliver(
    delivery: NotificationDelivery,
    notification: Notification,
    recipient_email: str,
) -> DeliveryResult:
    """
    Hand a notification to the delivery collaborator once.

    Failures are logged and returned; the stored notification is kept.
    """
    result = delivery.deliver(recipient_email, notification.title, notification.message)
    if result.success:
        logger.info("Delivered notification %s to %s", notification.id, recipient_email)
    else:
        logger.warning(
            "Delivery of notification %s to %s failed: %s",
            notification.id,
            recipient_email,
            result.error,
        )
    return result


def send_reminder(
    repository: BillingRepository,
    delivery: NotificationDelivery,
    bill_id: str,
    override_message: Optional[str] = None,
    *,
    now: Optional[datetime] = None,
    currency_symbol: str = DEFAULT_CURRENCY_SYMBOL,
    date_format: str = DEFAULT_DATE_FORMAT,
) -> tuple[Notification, DeliveryResult]:
    """
    Build, store and deliver a reminder for a bill.

    Raises:
        NotFoundError: If the bill or its customer does not exist
    """
    bill = repository.find_bill_by_id(bill_id)
    if bill is None:
        raise NotFoundError("Bill", bill_id)
    customer = repository.find_customer(bill.customer_id)

    notification = build_reminder(
        bill,
        customer,
        override_message,
        now=now,
        currency_symbol=currency_symbol,
        date_format=date_format,
    )
    notification = repository.insert_notification(notification)
    return notification, deliver(delivery, notification, customer.email)


def list_notifications(
    repository: BillingRepository,
    customer_id: str,
    limit: int = DEFAULT_NOTIFICATION_LIMIT,
) -> list[Notification]:
    """Return a customer's most recent notifications, newest first."""
    return repository.list_notifications(customer_id, limit)


def mark_read(
    repository: BillingRepository,
    notification_id: str,
    customer_id: str,
) -> Notification:
    """
    Mark a customer's notification as read.

    Returns:
        The notification with is_read=True

    Raises:
        NotFoundError: If the notification does not exist
        ForbiddenError: If the notification belongs to another customer
    """
    notification = repository.find_notification(notification_id)
    if notification is None:
        raise NotFoundError("Notification", notification_id)
    if notification.customer_id != str(customer_id):
        raise ForbiddenError(
            "Notification belongs to another customer",
            "Notification",
            notification_id,
            customer_id,
        )

    if repository.update_notification_read(notification_id, str(customer_id)) == 0:
        raise NotFoundError("Notification", notification_id)

    return repository.find_notification(notification_id)

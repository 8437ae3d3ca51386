"""
Billing service layer.

Orchestrates loading data from Django models, running the core billing engine
against the Django repository, and sending the follow-up notifications.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Optional

from django.utils import timezone

from billing.adapters import bills_to_dtos, reading_to_dto, tariff_table_from_schedules
from billing.conf import billing_setting, message_format_options
from billing.core.bills import generate_bill
from billing.core.calculator import calculate_charge_breakdown
from billing.core.notifications import (
    build_bill_statement,
    build_payment_receipt,
    deliver,
    send_reminder,
)
from billing.core.payments import apply_payment
from billing.core.ports import NotificationDelivery
from billing.core.tariff import TariffTable
from billing.core.types import (
    Bill,
    BillStatus,
    ChargeBreakdown,
    DeliveryResult,
    Notification,
    Payment,
    PaymentMethod,
    Reading,
)
from billing.exceptions import InvalidInputError, NotFoundError
from billing.models import Bill as BillModel
from billing.repository import DjangoBillingRepository
from notifications.delivery import get_default_delivery
from tariffs.models import TariffSchedule as TariffScheduleModel

if TYPE_CHECKING:
    from meters.models import Reading as ReadingModel


@dataclass
class IssuedBill:
    """A freshly issued bill with the data needed for its statement."""

    bill: Bill
    reading: Reading
    breakdown: ChargeBreakdown
    previous_unit: Optional[int] = None
    current_unit: Optional[int] = None


@dataclass
class SentNotification:
    """A stored notification and what the delivery collaborator reported."""

    notification: Notification
    delivery: DeliveryResult


def get_tariff_table() -> TariffTable:
    """
    Build the tariff table in effect.

    Schedules configured in the database override the built-in schedules of
    the same connection class. Unknown connection classes are billed on
    settings.BILLING["DEFAULT_CONNECTION_TYPE"].
    """
    table = tariff_table_from_schedules(TariffScheduleModel.objects.all())
    default_type = billing_setting("DEFAULT_CONNECTION_TYPE")
    if table.default_connection_type != default_type:
        table = TariffTable(schedules=table.schedules, default_connection_type=default_type)
    return table


def issue_bill_for_reading(reading: ReadingModel) -> IssuedBill:
    """
    Issue the bill for a stored meter reading.

    Callers that also create the reading should run both in one transaction.

    Raises:
        DuplicateBillError: If the reading already has a bill
        InvalidInputError: If the reading's consumption is invalid
    """
    repository = DjangoBillingRepository()
    tariffs = get_tariff_table()
    reading_dto = reading_to_dto(reading)

    bill = generate_bill(
        repository,
        reading_dto,
        tariffs=tariffs,
        due_days=billing_setting("DUE_DAYS"),
        now=timezone.now(),
    )
    breakdown = calculate_charge_breakdown(
        reading_dto.units_consumed, reading_dto.connection_type, tariffs
    )
    return IssuedBill(
        bill=bill,
        reading=reading_dto,
        breakdown=breakdown,
        previous_unit=reading.previous_unit,
        current_unit=reading.current_unit,
    )


def send_bill_statement(
    issued: IssuedBill,
    delivery: Optional[NotificationDelivery] = None,
) -> SentNotification:
    """Store and deliver the statement for a newly issued bill."""
    repository = DjangoBillingRepository()
    customer = repository.find_customer(issued.bill.customer_id)
    if customer is None:
        raise NotFoundError("Customer", issued.bill.customer_id)

    notification = build_bill_statement(
        issued.bill,
        customer,
        issued.reading,
        issued.breakdown,
        previous_unit=issued.previous_unit,
        current_unit=issued.current_unit,
        now=timezone.now(),
        **message_format_options(),
    )
    notification = repository.insert_notification(notification)
    result = deliver(delivery or get_default_delivery(), notification, customer.email)
    return SentNotification(notification=notification, delivery=result)


def get_bill(bill_id: str) -> Bill:
    """
    Raises:
        NotFoundError: If the bill does not exist
    """
    bill = DjangoBillingRepository().find_bill_by_id(bill_id)
    if bill is None:
        raise NotFoundError("Bill", bill_id)
    return bill


def list_bills(customer_id: Any = None, status: Optional[str] = None) -> list[Bill]:
    """
    List bills, newest first.

    Args:
        customer_id: Only bills of this customer (all customers if None)
        status: "paid", "unpaid", or None for both

    Raises:
        InvalidInputError: If status is not a known bill status
    """
    queryset = BillModel.objects.all().order_by("-created_at")
    if status is not None:
        try:
            bill_status = BillStatus(status)
        except ValueError:
            raise InvalidInputError(f"Unknown bill status: {status!r}", "status", status)
        queryset = queryset.filter(is_paid=bill_status is BillStatus.PAID)
    if customer_id is not None:
        queryset = queryset.filter(customer_id=customer_id)
    return bills_to_dtos(queryset)


def pay_bill(
    bill_id: str,
    amount: Any = None,
    method: str = PaymentMethod.CASH.value,
    payer_customer_id: Any = None,
    delivery: Optional[NotificationDelivery] = None,
) -> tuple[Payment, SentNotification]:
    """
    Record a payment for a bill and send the receipt.

    Args:
        bill_id: Bill to settle
        amount: Amount tendered (defaults to the bill amount)
        method: "upi", "cash" or "card"
        payer_customer_id: When given, the bill must belong to this customer
        delivery: Delivery collaborator (defaults to email)

    Returns:
        Tuple of (Payment, SentNotification for the receipt)

    Raises:
        NotFoundError, ForbiddenError, AlreadyPaidError, InsufficientPaymentError,
        InvalidInputError: see billing.core.payments.apply_payment
    """
    repository = DjangoBillingRepository()

    try:
        payment_method = PaymentMethod(method)
    except ValueError:
        raise InvalidInputError(f"Unknown payment method: {method!r}", "method", method)

    if amount is None:
        amount = get_bill(bill_id).amount

    payment = apply_payment(
        repository,
        bill_id,
        amount,
        method=payment_method,
        payer_customer_id=str(payer_customer_id) if payer_customer_id is not None else None,
        now=timezone.now(),
    )

    bill = repository.find_bill_by_id(payment.bill_id)
    customer = repository.find_customer(bill.customer_id)
    receipt = build_payment_receipt(
        payment,
        bill,
        customer,
        currency_symbol=billing_setting("CURRENCY_SYMBOL"),
    )
    receipt = repository.insert_notification(receipt)
    result = deliver(delivery or get_default_delivery(), receipt, customer.email)
    return payment, SentNotification(notification=receipt, delivery=result)


def send_bill_reminder(
    bill_id: str,
    override_message: Optional[str] = None,
    delivery: Optional[NotificationDelivery] = None,
) -> SentNotification:
    """
    Send a payment reminder for a bill.

    Raises:
        NotFoundError: If the bill or its customer does not exist
    """
    notification, result = send_reminder(
        DjangoBillingRepository(),
        delivery or get_default_delivery(),
        bill_id,
        override_message,
        now=timezone.now(),
        **message_format_options(),
    )
    return SentNotification(notification=notification, delivery=result)

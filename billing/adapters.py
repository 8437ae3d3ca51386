"""
Adapters for converting Django ORM models to billing DTOs.

This module provides lightweight mappings from the project's Django models
to the immutable dataclasses used by the billing engine core.
"""

import logging
import zoneinfo
from typing import Iterable

from billing.core.tariff import DEFAULT_TARIFF_TABLE, TariffTable
from billing.core.types import (
    Bill,
    ConsumptionBand,
    CustomerContact,
    Notification,
    Payment,
    PaymentMethod,
    Reading,
    TariffSchedule,
)
from billing.models import Bill as BillModel
from billing.models import Payment as PaymentModel
from customers.models import Customer
from meters.models import Reading as ReadingModel
from notifications.models import Notification as NotificationModel
from tariffs.models import ConsumptionBand as ConsumptionBandModel
from tariffs.models import TariffSchedule as TariffScheduleModel

logger = logging.getLogger(__name__)


def band_sort_key(band: ConsumptionBandModel) -> tuple[bool, int]:
    """Order finite thresholds ascending with the unbounded band last."""
    return (band.upto_units is None, band.upto_units or 0)


def tariff_schedule_to_dto(schedule: TariffScheduleModel) -> TariffSchedule:
    """
    Convert Django TariffSchedule model (with bands) to TariffSchedule DTO.

    Args:
        schedule: Django TariffSchedule instance, preferably with prefetched bands

    Returns:
        TariffSchedule DTO

    Raises:
        ValueError: If the bands are not contiguous or the last is not unbounded
    """
    bands = sorted(schedule.bands.all(), key=band_sort_key)
    return TariffSchedule(
        connection_type=schedule.connection_type,
        bands=tuple(ConsumptionBand(upto_units=b.upto_units, rate=b.rate) for b in bands),
        fixed_charge=schedule.fixed_charge,
        tax_rate=schedule.tax_rate,
    )


def tariff_table_from_schedules(
    schedules_queryset,
    base: TariffTable = DEFAULT_TARIFF_TABLE,
) -> TariffTable:
    """
    Overlay database tariff schedules on a base table.

    Schedules stored in the database replace built-in schedules of the same
    connection class; new connection classes are added.

    A stored schedule whose bands do not form a valid ladder is logged and
    skipped, so its connection class falls back to the base table.

    Args:
        schedules_queryset: Django QuerySet of TariffSchedule objects
        base: Table providing built-in schedules and the default connection type

    Returns:
        TariffTable combining both
    """
    dtos = []
    for schedule in schedules_queryset.prefetch_related("bands"):
        try:
            dtos.append(tariff_schedule_to_dto(schedule))
        except ValueError as e:
            logger.error("Skipping invalid tariff schedule %s: %s", schedule.pk, e)
    return base.merged(dtos)


def customer_to_contact(customer: Customer) -> CustomerContact:
    return CustomerContact(id=str(customer.pk), name=customer.name, email=customer.email)


def reading_to_dto(reading: ReadingModel) -> Reading:
    """
    Convert Django Reading model to Reading DTO.

    recorded_at is converted to the customer's local timezone so that the
    bill's due date counts from the local reading date.

    Args:
        reading: Django Reading instance (connection and customer are fetched if needed)

    Returns:
        Reading DTO
    """
    connection = reading.connection
    customer_tz = zoneinfo.ZoneInfo(str(connection.customer.timezone))
    return Reading(
        id=str(reading.pk),
        meter_id=connection.meter_number,
        month=reading.month,
        units_consumed=reading.units_consumed,
        connection_type=connection.connection_type,
        recorded_at=reading.recorded_at.astimezone(customer_tz),
        customer_id=str(connection.customer_id),
    )


def bill_to_dto(bill: BillModel) -> Bill:
    return Bill(
        id=str(bill.pk),
        reading_id=str(bill.reading_id),
        customer_id=str(bill.customer_id),
        amount=bill.amount,
        due_date=bill.due_date,
        created_at=bill.created_at,
        is_paid=bill.is_paid,
    )


def payment_to_dto(payment: PaymentModel) -> Payment:
    return Payment(
        id=str(payment.pk),
        bill_id=str(payment.bill_id),
        amount=payment.amount,
        paid_at=payment.paid_at,
        method=PaymentMethod(payment.method),
        customer_id=str(payment.customer_id),
    )


def notification_to_dto(notification: NotificationModel) -> Notification:
    return Notification(
        id=str(notification.pk),
        customer_id=str(notification.customer_id),
        title=notification.title,
        message=notification.message,
        sent_at=notification.sent_at,
        bill_id=str(notification.bill_id) if notification.bill_id else None,
        is_read=notification.is_read,
    )


def bills_to_dtos(bills_queryset) -> list[Bill]:
    return [bill_to_dto(bill) for bill in bills_queryset]


def notifications_to_dtos(notifications: Iterable[NotificationModel]) -> list[Notification]:
    return [notification_to_dto(n) for n in notifications]

"""
Meter reading intake.

Records a meter register value, derives consumption from the previous
reading, issues the bill, and sends the bill statement.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from django.core.paginator import Paginator
from django.db import transaction
from django.utils import timezone

from billing.core.ports import NotificationDelivery
from billing.exceptions import InvalidInputError, NotFoundError
from billing.services import (
    IssuedBill,
    SentNotification,
    issue_bill_for_reading,
    send_bill_statement,
)
from customers.models import Connection
from meters.models import Reading

logger = logging.getLogger(__name__)

MONTH_PATTERN = re.compile(r"^\d{4}-(0[1-9]|1[0-2])$")


@dataclass
class ReadingSubmission:
    """Result of recording a meter reading."""

    reading: Reading
    issued: IssuedBill
    statement: Optional[SentNotification] = None


@dataclass
class ReadingPage:
    """One page of a connection's reading history."""

    connection: Connection
    readings: list[Reading]
    total: int
    page: int
    total_pages: int


def validate_month(month: Any) -> str:
    """
    Check a billing month string.

    Raises:
        InvalidInputError: If month is not in YYYY-MM format
    """
    if not isinstance(month, str) or not MONTH_PATTERN.match(month.strip()):
        raise InvalidInputError(f"Month must be in YYYY-MM format, got {month!r}", "month", month)
    return month.strip()


def validate_register_value(value: Any) -> int:
    """
    Check a meter register value.

    Raises:
        InvalidInputError: If value is not a non-negative integer
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidInputError(
            f"Current unit must be a non-negative integer, got {value!r}", "current_unit", value
        )
    if value < 0:
        raise InvalidInputError(
            f"Current unit must be a non-negative integer, got {value}", "current_unit", value
        )
    return value


def get_connection(meter_number: str) -> Connection:
    """
    Raises:
        NotFoundError: If no connection has this meter number
    """
    connection = (
        Connection.objects.select_related("customer").filter(meter_number=meter_number).first()
    )
    if connection is None:
        raise NotFoundError("Meter", meter_number)
    return connection


def latest_reading(connection: Connection) -> Optional[Reading]:
    return connection.readings.order_by("-recorded_at", "-pk").first()


def record_meter_reading(
    meter_number: str,
    month: str,
    current_unit: int,
    recorded_at: Optional[datetime] = None,
    delivery: Optional[NotificationDelivery] = None,
    send_statement: bool = True,
) -> ReadingSubmission:
    """
    Record a reading for a meter and bill it.

    The reading and its bill are written in one transaction; the statement is
    sent only after both are committed.

    Args:
        meter_number: Meter the reading was taken from
        month: Billing month (YYYY-MM)
        current_unit: Meter register value
        recorded_at: When the meter was read (defaults to now)
        delivery: Delivery collaborator for the bill statement
        send_statement: Whether to send the bill statement

    Returns:
        ReadingSubmission with the reading, issued bill and statement

    Raises:
        InvalidInputError: If month or current_unit is malformed, the
            connection is inactive, or the register went backwards
        NotFoundError: If the meter does not exist
    """
    month = validate_month(month)
    current_unit = validate_register_value(current_unit)
    connection = get_connection(meter_number)

    with transaction.atomic():
        # Lock the connection so concurrent readings see each other's register
        connection = Connection.objects.select_for_update().select_related("customer").get(
            pk=connection.pk
        )
        if not connection.is_active:
            raise InvalidInputError(
                f"Connection for meter {meter_number} is inactive", "meter_number", meter_number
            )

        previous = latest_reading(connection)
        previous_unit = previous.current_unit if previous else 0

        if current_unit < previous_unit:
            raise InvalidInputError(
                f"Current reading ({current_unit}) cannot be less than previous reading "
                f"({previous_unit})",
                "current_unit",
                current_unit,
            )

        reading = Reading(
            connection=connection,
            month=month,
            previous_unit=previous_unit,
            current_unit=current_unit,
            units_consumed=current_unit - previous_unit,
            recorded_at=recorded_at or timezone.now(),
        )
        reading.full_clean()
        reading.save()

        issued = issue_bill_for_reading(reading)

    logger.info(
        "Recorded reading %s for meter %s (%s units), bill %s",
        reading.pk,
        meter_number,
        reading.units_consumed,
        issued.bill.id,
    )

    statement = send_bill_statement(issued, delivery) if send_statement else None
    return ReadingSubmission(reading=reading, issued=issued, statement=statement)


def get_meter_readings(meter_number: str, page: int = 1, limit: int = 10) -> ReadingPage:
    """
    Get a page of a meter's readings, newest first.

    Raises:
        InvalidInputError: If page or limit is not a positive integer
        NotFoundError: If the meter does not exist
    """
    for field, value in (("page", page), ("limit", limit)):
        if isinstance(value, bool) or not isinstance(value, int) or value < 1:
            raise InvalidInputError(f"{field} must be a positive integer, got {value!r}", field, value)

    connection = get_connection(meter_number)
    readings = connection.readings.select_related("bill").order_by("-recorded_at", "-pk")
    paginator = Paginator(readings, limit)

    if page > paginator.num_pages:
        page_readings: list[Reading] = []
    else:
        page_readings = list(paginator.page(page).object_list)

    return ReadingPage(
        connection=connection,
        readings=page_readings,
        total=paginator.count,
        page=page,
        total_pages=paginator.num_pages if paginator.count else 0,
    )

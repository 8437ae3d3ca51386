"""
Tests for meter reading intake.
"""

from datetime import datetime, timezone
from decimal import Decimal
from unittest import mock

import pytest
from django.core import mail

from billing.exceptions import InvalidInputError, NotFoundError
from billing.models import Bill
from meters.models import Reading
from meters.services import get_meter_readings, record_meter_reading, validate_month

pytestmark = pytest.mark.django_db


def test_first_reading_counts_from_zero(connection, delivery):
    submission = record_meter_reading("MTR-100001", "2024-03", 250, delivery=delivery)

    reading = submission.reading
    assert reading.previous_unit == 0
    assert reading.units_consumed == 250
    assert submission.issued.bill.amount == Decimal("1128.75")
    assert Bill.objects.filter(reading=reading).count() == 1
    assert submission.statement.delivery.success
    assert delivery.sent[0][1].startswith("Your electricity bill statement #")


def test_consumption_is_derived_from_previous_reading(connection, delivery):
    record_meter_reading(
        "MTR-100001",
        "2024-02",
        1000,
        recorded_at=datetime(2024, 2, 1, tzinfo=timezone.utc),
        delivery=delivery,
    )

    submission = record_meter_reading("MTR-100001", "2024-03", 1250, delivery=delivery)

    assert submission.reading.previous_unit == 1000
    assert submission.reading.units_consumed == 250
    assert "Previous Reading: 1000 units" in delivery.sent[-1][2]


def test_statement_emailed_by_default(connection):
    record_meter_reading("MTR-100001", "2024-03", 10)

    assert len(mail.outbox) == 1
    assert mail.outbox[0].to == ["asha@example.com"]


def test_statement_can_be_skipped(connection, delivery):
    submission = record_meter_reading(
        "MTR-100001", "2024-03", 10, delivery=delivery, send_statement=False
    )

    assert submission.statement is None
    assert delivery.sent == []


def test_due_date_counts_from_reading_date(connection, delivery):
    submission = record_meter_reading(
        "MTR-100001",
        "2024-03",
        10,
        recorded_at=datetime(2024, 3, 5, 6, 0, tzinfo=timezone.utc),
        delivery=delivery,
    )

    assert submission.issued.bill.due_date.isoformat() == "2024-03-20"


def test_meter_going_backwards_rejected(connection, delivery):
    record_meter_reading("MTR-100001", "2024-03", 500, delivery=delivery)

    with pytest.raises(InvalidInputError) as exc_info:
        record_meter_reading("MTR-100001", "2024-04", 400, delivery=delivery)

    assert exc_info.value.field == "current_unit"
    assert Reading.objects.count() == 1


def test_failed_billing_rolls_back_reading(connection, delivery):
    with mock.patch("meters.services.issue_bill_for_reading", side_effect=RuntimeError("boom")):
        with pytest.raises(RuntimeError):
            record_meter_reading("MTR-100001", "2024-03", 100, delivery=delivery)

    assert Reading.objects.count() == 0
    assert delivery.sent == []


def test_inactive_connection_rejected(connection, delivery):
    connection.is_active = False
    connection.save()

    with pytest.raises(InvalidInputError) as exc_info:
        record_meter_reading("MTR-100001", "2024-03", 100, delivery=delivery)

    assert exc_info.value.field == "meter_number"
    assert Reading.objects.count() == 0
    assert Bill.objects.count() == 0
    assert delivery.sent == []


def test_unknown_meter(db):
    with pytest.raises(NotFoundError):
        record_meter_reading("MTR-000000", "2024-03", 100)


@pytest.mark.parametrize("month", ["2024-13", "2024-3", "03-2024", "", None])
def test_invalid_month(connection, month):
    with pytest.raises(InvalidInputError):
        record_meter_reading("MTR-100001", month, 100)


@pytest.mark.parametrize("current_unit", [-1, 10.5, "100", True])
def test_invalid_current_unit(connection, current_unit):
    with pytest.raises(InvalidInputError):
        record_meter_reading("MTR-100001", "2024-03", current_unit)


def test_validate_month_strips_whitespace():
    assert validate_month(" 2024-03 ") == "2024-03"


def test_get_meter_readings_paginates_newest_first(connection):
    for month in range(1, 6):
        record_meter_reading(
            "MTR-100001",
            f"2024-0{month}",
            month * 100,
            recorded_at=datetime(2024, month, 1, tzinfo=timezone.utc),
            send_statement=False,
        )

    first = get_meter_readings("MTR-100001", page=1, limit=2)
    last = get_meter_readings("MTR-100001", page=3, limit=2)

    assert first.total == 5
    assert first.total_pages == 3
    assert [r.month for r in first.readings] == ["2024-05", "2024-04"]
    assert [r.month for r in last.readings] == ["2024-01"]


def test_get_meter_readings_past_last_page(connection):
    record_meter_reading("MTR-100001", "2024-03", 100, send_statement=False)

    page = get_meter_readings("MTR-100001", page=5)

    assert page.readings == []
    assert page.total == 1


def test_get_meter_readings_empty(connection):
    page = get_meter_readings("MTR-100001")

    assert page.readings == []
    assert page.total_pages == 0


@pytest.mark.parametrize("page, limit", [(0, 10), (1, 0), ("1", 10)])
def test_get_meter_readings_invalid_paging(connection, page, limit):
    with pytest.raises(InvalidInputError):
        get_meter_readings("MTR-100001", page=page, limit=limit)

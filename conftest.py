"""
Project-wide test fixtures: a recording delivery double and the customer,
connection and reading rows most tests start from.
"""

from datetime import datetime, timezone

import pytest

from billing.core.types import DeliveryResult


class RecordingDelivery:
    """NotificationDelivery test double that records every message."""

    def __init__(self, succeed: bool = True):
        self.succeed = succeed
        self.sent: list[tuple[str, str, str]] = []

    def deliver(self, recipient_email: str, title: str, message: str) -> DeliveryResult:
        self.sent.append((recipient_email, title, message))
        if self.succeed:
            return DeliveryResult(success=True)
        return DeliveryResult(success=False, error="SMTP unavailable")


@pytest.fixture
def delivery():
    return RecordingDelivery()


@pytest.fixture
def failing_delivery():
    return RecordingDelivery(succeed=False)


@pytest.fixture
def recorded_at():
    return datetime(2024, 3, 1, 10, 0, tzinfo=timezone.utc)


@pytest.fixture
def customer(db):
    from customers.models import Customer

    return Customer.objects.create(
        name="Asha Rao", email="asha@example.com", timezone="Asia/Kolkata"
    )


@pytest.fixture
def other_customer(db):
    from customers.models import Customer

    return Customer.objects.create(
        name="Vikram Shah", email="vikram@example.com", timezone="Asia/Kolkata"
    )


@pytest.fixture
def connection(customer):
    from customers.models import Connection

    return Connection.objects.create(
        customer=customer, meter_number="MTR-100001", connection_type="residential"
    )


@pytest.fixture
def reading_model_factory(connection, recorded_at):
    """Factory for stored Reading rows, on the default connection unless told otherwise."""
    from meters.models import Reading

    def _create_reading(units: int = 250, previous_unit: int = 0, month: str = "2024-03", **kwargs):
        return Reading.objects.create(
            connection=kwargs.pop("connection", connection),
            month=month,
            previous_unit=previous_unit,
            current_unit=previous_unit + units,
            units_consumed=units,
            recorded_at=kwargs.pop("recorded_at", recorded_at),
            **kwargs,
        )

    return _create_reading

"""
Shared fixtures for billing engine tests.

Engine tests run against the in-memory repository with Reading DTOs built by
reading_factory.
"""

import pytest

from billing.core.memory import InMemoryBillingRepository
from billing.core.types import CustomerContact, Reading


@pytest.fixture
def customer_contact():
    return CustomerContact(id="cust-1", name="Asha Rao", email="asha@example.com")


@pytest.fixture
def reading_factory(recorded_at):
    """Factory for Reading DTOs owned by cust-1 unless told otherwise."""

    def _create_reading(
        reading_id: str = "reading-1",
        units: int = 250,
        connection_type: str = "residential",
        customer_id: str | None = "cust-1",
        month: str = "2024-03",
    ) -> Reading:
        return Reading(
            id=reading_id,
            meter_id="MTR-100001",
            month=month,
            units_consumed=units,
            connection_type=connection_type,
            recorded_at=recorded_at,
            customer_id=customer_id,
        )

    return _create_reading


@pytest.fixture
def repository(customer_contact):
    return InMemoryBillingRepository(customers=(customer_contact,))

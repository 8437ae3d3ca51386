"""
Connection management services.

A customer holds at most one connection. Status changes are announced to the
customer through a notification.
"""

import logging
import secrets
from typing import Optional

from django.db import IntegrityError, transaction

from billing.core.ports import NotificationDelivery
from billing.exceptions import DuplicateConnectionError, InvalidInputError, PendingBillsError
from billing.models import Bill
from customers.models import Connection, Customer
from notifications.services import send_customer_notification

logger = logging.getLogger(__name__)

METER_NUMBER_PREFIX = "MTR"
METER_NUMBER_ATTEMPTS = 5


def generate_meter_number() -> str:
    """Generate a meter number such as MTR-482913 (six digits, no leading zero)."""
    return f"{METER_NUMBER_PREFIX}-{100000 + secrets.randbelow(900000)}"


def create_connection(
    customer: Customer,
    connection_type: str,
    delivery: Optional[NotificationDelivery] = None,
) -> Connection:
    """
    Create the customer's connection with a fresh meter number.

    Args:
        customer: Customer to connect
        connection_type: Connection class (selects the tariff schedule)
        delivery: Delivery collaborator for the activation notice

    Returns:
        The new Connection

    Raises:
        InvalidInputError: If connection_type is blank
        DuplicateConnectionError: If the customer already has a connection
    """
    if not connection_type or not connection_type.strip():
        raise InvalidInputError("Connection type is required", "connection_type", connection_type)

    existing = Connection.objects.filter(customer=customer).first()
    if existing:
        raise DuplicateConnectionError(customer.pk, existing.meter_number)

    connection = None
    for _ in range(METER_NUMBER_ATTEMPTS):
        try:
            with transaction.atomic():
                connection = Connection.objects.create(
                    customer=customer,
                    meter_number=generate_meter_number(),
                    connection_type=connection_type.strip(),
                )
            break
        except IntegrityError:
            logger.warning("Meter number collision for customer %s, retrying", customer.pk)
    if connection is None:
        raise IntegrityError("Could not allocate a unique meter number")

    logger.info("Created connection %s for customer %s", connection.meter_number, customer.pk)
    send_customer_notification(
        customer.pk,
        "New Electricity Connection",
        f"Your new connection (Meter: {connection.meter_number}) has been activated. "
        f"Connection type: {connection.connection_type}",
        delivery=delivery,
    )
    return connection


def pending_bill_count(connection: Connection) -> int:
    return Bill.objects.filter(customer_id=connection.customer_id, is_paid=False).count()


def set_connection_active(
    connection: Connection,
    active: bool,
    delivery: Optional[NotificationDelivery] = None,
) -> Connection:
    """
    Activate or deactivate a connection and notify the customer.

    Raises:
        InvalidInputError: If the connection is already in the requested state
        PendingBillsError: If deactivating while the customer has unpaid bills
    """
    if connection.is_active == active:
        state = "active" if active else "inactive"
        raise InvalidInputError(f"Connection is already {state}", "is_active", active)

    if not active:
        pending = pending_bill_count(connection)
        if pending > 0:
            raise PendingBillsError(connection.meter_number, pending, connection.customer_id)

    connection.is_active = active
    connection.save(update_fields=["is_active", "updated_at"])

    send_customer_notification(
        connection.customer_id,
        "Connection Status Updated",
        f"Your meter {connection.meter_number} has been "
        f"{'activated' if active else 'deactivated'}",
        delivery=delivery,
    )
    return connection


def change_connection_type(connection: Connection, connection_type: str) -> Connection:
    """
    Move a connection to another connection class.

    Readings billed before the change keep their amounts; only new readings
    use the new class.
    """
    if not connection_type or not connection_type.strip():
        raise InvalidInputError("Connection type is required", "connection_type", connection_type)
    connection.connection_type = connection_type.strip()
    connection.save(update_fields=["connection_type", "updated_at"])
    return connection

"""Custom exceptions for billing services."""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Optional


class BillingServiceError(Exception):
    """Base exception for billing service errors."""

    pass


class InvalidInputError(BillingServiceError):
    """Raised when numeric or formatted input is malformed (e.g. negative units)."""

    def __init__(self, message: str, field: str, value: Any = None):
        super().__init__(message)
        self.field = field
        self.value = value


class NotFoundError(BillingServiceError):
    """Raised when a referenced entity does not exist."""

    def __init__(self, entity: str, identifier: Any):
        self.entity = entity
        self.identifier = identifier
        super().__init__(f"{entity} not found: {identifier}")


class ForbiddenError(BillingServiceError):
    """Raised when an operation targets an entity the caller does not own."""

    def __init__(self, message: str, entity: str, identifier: Any, customer_id: Any):
        super().__init__(message)
        self.entity = entity
        self.identifier = identifier
        self.customer_id = customer_id


class DuplicateBillError(BillingServiceError):
    """Raised when a bill already exists for a reading."""

    def __init__(self, reading_id: str):
        self.reading_id = reading_id
        super().__init__(f"A bill already exists for reading {reading_id}")


class InsufficientPaymentError(BillingServiceError):
    """Raised when a payment is smaller than the bill amount."""

    def __init__(self, bill_id: str, amount: Decimal, required: Decimal):
        self.bill_id = bill_id
        self.amount = amount
        self.required = required
        super().__init__(
            f"Payment of {amount} is less than the amount due ({required}) on bill {bill_id}"
        )


class AlreadyPaidError(BillingServiceError):
    """Raised when a payment is attempted on a bill that is already paid."""

    def __init__(self, bill_id: str):
        self.bill_id = bill_id
        super().__init__(f"Bill {bill_id} is already paid")


class DuplicateConnectionError(BillingServiceError):
    """Raised when a customer already has a connection."""

    def __init__(self, customer_id: Any, meter_number: str):
        self.customer_id = customer_id
        self.meter_number = meter_number
        super().__init__(
            f"Customer {customer_id} already has an active connection (meter {meter_number})"
        )


class PendingBillsError(BillingServiceError):
    """Raised when a connection cannot be deactivated because bills are unpaid."""

    def __init__(self, meter_number: str, pending_count: int, customer_id: Optional[Any] = None):
        self.meter_number = meter_number
        self.pending_count = pending_count
        self.customer_id = customer_id
        super().__init__(
            f"Cannot deactivate meter {meter_number} with {pending_count} pending bill(s)"
        )

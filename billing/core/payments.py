"""
Payment processing and the bill state machine.

States: UNPAID -> PAID. A payment is accepted only when it covers the full
amount due (exact or overpay); there is no partially-paid state. PAID is
terminal, and paying it again fails instead of being replayed.
"""

import logging
from datetime import datetime
from typing import Any, Optional

from billing.exceptions import (
    AlreadyPaidError,
    ForbiddenError,
    InsufficientPaymentError,
    InvalidInputError,
    NotFoundError,
)

from .ports import BillingRepository
from .types import Bill, BillStatus, Payment, PaymentMethod
from .util import new_id, round_currency, to_decimal, utc_now

logger = logging.getLogger(__name__)


def next_status(bill: Bill, amount: Any) -> BillStatus:
    """
    Return the state a bill moves to when amount is applied.

    Raises:
        AlreadyPaidError: If the bill is already PAID
        InsufficientPaymentError: If amount is less than the amount due
    """
    if bill.status is BillStatus.PAID:
        raise AlreadyPaidError(bill.id)
    if amount < bill.amount:
        raise InsufficientPaymentError(bill.id, amount, bill.amount)
    return BillStatus.PAID


def apply_payment(
    repository: BillingRepository,
    bill_id: str,
    amount: Any,
    *,
    method: PaymentMethod = PaymentMethod.CASH,
    payer_customer_id: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Payment:
    """
    Apply a payment to a bill and mark it paid.

    The payment record and the paid flag are written together by
    repository.mark_bill_paid, conditional on the bill still being unpaid, so
    of two concurrent payments exactly one succeeds.

    Args:
        repository: Persistence collaborator
        bill_id: Bill to settle
        amount: Amount tendered; must be positive
        method: Payment method
        payer_customer_id: When given, the bill must belong to this customer
        now: Payment timestamp (defaults to current UTC time)

    Returns:
        The persisted Payment

    Raises:
        InvalidInputError: If amount is not a positive number
        NotFoundError: If the bill does not exist
        ForbiddenError: If the payer does not own the bill
        AlreadyPaidError: If the bill is already paid (or a concurrent payment won)
        InsufficientPaymentError: If amount is less than the bill amount
    """
    tendered = to_decimal(amount, "amount")
    if tendered <= 0:
        raise InvalidInputError(f"Payment amount must be positive, got {amount}", "amount", amount)

    bill = repository.find_bill_by_id(bill_id)
    if bill is None:
        raise NotFoundError("Bill", bill_id)

    if payer_customer_id is not None and str(payer_customer_id) != bill.customer_id:
        raise ForbiddenError(
            "You cannot pay another customer's bill", "Bill", bill_id, payer_customer_id
        )

    next_status(bill, tendered)

    payment = Payment(
        id=new_id(),
        bill_id=bill.id,
        amount=round_currency(tendered),
        paid_at=now or utc_now(),
        method=PaymentMethod(method),
        customer_id=bill.customer_id,
    )
    payment = repository.mark_bill_paid(bill.id, payment)

    if payment.amount > bill.amount:
        logger.info(
            "Bill %s overpaid by %s", bill.id, payment.amount - bill.amount
        )
    logger.info("Recorded payment %s of %s for bill %s", payment.id, payment.amount, bill.id)
    return payment

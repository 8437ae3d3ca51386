"""
Bill generation: one bill per reading.
"""

import logging
from datetime import datetime, timedelta
from typing import Optional

from billing.exceptions import DuplicateBillError, NotFoundError

from .calculator import compute_charge
from .ports import BillingRepository
from .tariff import DEFAULT_TARIFF_TABLE, TariffTable
from .types import Bill, Reading
from .util import new_id, utc_now, validate_units

logger = logging.getLogger(__name__)

DEFAULT_DUE_DAYS = 15


def generate_bill(
    repository: BillingRepository,
    reading: Reading,
    *,
    tariffs: TariffTable = DEFAULT_TARIFF_TABLE,
    due_days: int = DEFAULT_DUE_DAYS,
    now: Optional[datetime] = None,
) -> Bill:
    """
    Issue the bill for a reading.

    The due date is due_days after the reading's recorded date. The bill starts
    unpaid. Emitting the bill statement is a separate follow-up step.

    Args:
        repository: Persistence collaborator
        reading: Reading to bill
        tariffs: Tariff table to price the reading with
        due_days: Days between the reading date and the due date
        now: Issue timestamp (defaults to current UTC time)

    Returns:
        The persisted Bill

    Raises:
        InvalidInputError: If units_consumed is negative or not an integer
        NotFoundError: If the reading has no owning customer
        DuplicateBillError: If a bill already exists for the reading,
            including when a concurrent call wins the insert
    """
    validate_units(reading.units_consumed)

    if not reading.customer_id:
        raise NotFoundError("Customer", f"owner of reading {reading.id}")

    if repository.find_bill_by_reading_id(reading.id) is not None:
        raise DuplicateBillError(reading.id)

    amount = compute_charge(reading.units_consumed, reading.connection_type, tariffs)

    bill = Bill(
        id=new_id(),
        reading_id=reading.id,
        customer_id=reading.customer_id,
        amount=amount,
        due_date=reading.recorded_at.date() + timedelta(days=due_days),
        created_at=now or utc_now(),
        is_paid=False,
    )

    # Unique on reading_id; a lost race raises DuplicateBillError here
    bill = repository.insert_bill(bill)
    logger.info(
        "Issued bill %s for reading %s: %s units (%s) -> %s",
        bill.id,
        reading.id,
        reading.units_consumed,
        reading.connection_type,
        bill.amount,
    )
    return bill


def generate_bill_for_reading(
    repository: BillingRepository,
    reading_id: str,
    *,
    tariffs: TariffTable = DEFAULT_TARIFF_TABLE,
    due_days: int = DEFAULT_DUE_DAYS,
    now: Optional[datetime] = None,
) -> Bill:
    """
    Look up a reading by id and issue its bill.

    Raises:
        NotFoundError: If the reading does not exist
        DuplicateBillError: If the reading is already billed
    """
    reading = repository.find_reading(reading_id)
    if reading is None:
        raise NotFoundError("Reading", reading_id)
    return generate_bill(repository, reading, tariffs=tariffs, due_days=due_days, now=now)

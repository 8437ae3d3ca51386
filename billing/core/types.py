"""
Define lightweight dataclasses to use for bill calculations and the bill lifecycle.

Adapters to convert between Django ORM and these classes are in billing.adapters.
"""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional


class ConnectionType(str, Enum):
    """Connection classes that ship with a built-in tariff schedule."""

    RESIDENTIAL = "residential"
    COMMERCIAL = "commercial"


class BillStatus(str, Enum):
    """Lifecycle state of a bill. PAID is terminal."""

    UNPAID = "unpaid"
    PAID = "paid"


class PaymentMethod(str, Enum):
    """How the customer settled a bill."""

    UPI = "upi"
    CASH = "cash"
    CARD = "card"


@dataclass(frozen=True, slots=True)
class ConsumptionBand:
    """
    One consumption band of a tariff schedule.

    Units in (previous band's upto_units, upto_units] are billed at rate.
    upto_units=None marks the unbounded top band.
    """

    rate: Decimal
    upto_units: Optional[int] = None

    @property
    def is_unbounded(self) -> bool:
        return self.upto_units is None


@dataclass(frozen=True, slots=True)
class TariffSchedule:
    """
    Rate schedule for a single connection class.

    Validation:
        - at least one band
        - finite thresholds are positive integers, strictly increasing
        - the last band is unbounded and no other band is
        - rates and fixed_charge are non-negative, tax_rate is positive

    tax_rate is a multiplier applied to the banded subtotal plus fixed charge
    (1.05 means 5% tax).
    """

    connection_type: str
    bands: tuple[ConsumptionBand, ...]
    fixed_charge: Decimal
    tax_rate: Decimal

    def __post_init__(self) -> None:
        """Validate that the bands are contiguous and end unbounded."""
        if not self.bands:
            raise ValueError(f"Tariff '{self.connection_type}' must define at least one band")

        previous = 0
        for index, band in enumerate(self.bands):
            is_last = index == len(self.bands) - 1
            if band.rate < 0:
                raise ValueError(f"Tariff '{self.connection_type}': band rates must be >= 0")
            if band.is_unbounded:
                if not is_last:
                    raise ValueError(
                        f"Tariff '{self.connection_type}': only the last band may be unbounded"
                    )
                continue
            if is_last:
                raise ValueError(f"Tariff '{self.connection_type}': the last band must be unbounded")
            if isinstance(band.upto_units, bool) or not isinstance(band.upto_units, int):
                raise ValueError(
                    f"Tariff '{self.connection_type}': band thresholds must be integers"
                )
            if band.upto_units <= previous:
                raise ValueError(
                    f"Tariff '{self.connection_type}': band thresholds must be strictly increasing"
                )
            previous = band.upto_units

        if self.fixed_charge < 0:
            raise ValueError(f"Tariff '{self.connection_type}': fixed_charge must be >= 0")
        if self.tax_rate <= 0:
            raise ValueError(f"Tariff '{self.connection_type}': tax_rate must be positive")


@dataclass(frozen=True, slots=True)
class BandCharge:
    """Charge for the units that fell inside one band."""

    lower_units: int
    upper_units: Optional[int]
    units: int
    rate: Decimal
    amount: Decimal


@dataclass(frozen=True, slots=True)
class ChargeBreakdown:
    """
    Itemised charge for a reading.

    subtotal and band amounts are exact; total is rounded to 2 decimal places
    and tax_amount is the difference between total and subtotal.
    """

    connection_type: str
    units: int
    band_charges: tuple[BandCharge, ...]
    fixed_charge: Decimal
    subtotal: Decimal
    tax_rate: Decimal
    tax_amount: Decimal
    total: Decimal

    @property
    def consumption_charge(self) -> Decimal:
        return sum((band.amount for band in self.band_charges), start=Decimal("0"))


@dataclass(frozen=True, slots=True)
class Reading:
    """A recorded consumption measurement for a billing period."""

    id: str
    meter_id: str
    month: str
    units_consumed: int
    connection_type: str
    recorded_at: datetime
    customer_id: Optional[str] = None


@dataclass(frozen=True, slots=True)
class CustomerContact:
    """The parts of a customer the engine needs to address a notification."""

    id: str
    name: str
    email: str


@dataclass(frozen=True, slots=True)
class Bill:
    """
    A monetary obligation derived from exactly one reading.

    Only is_paid ever changes after issue.
    """

    id: str
    reading_id: str
    customer_id: str
    amount: Decimal
    due_date: date
    created_at: datetime
    is_paid: bool = False

    @property
    def status(self) -> BillStatus:
        return BillStatus.PAID if self.is_paid else BillStatus.UNPAID


@dataclass(frozen=True, slots=True)
class Payment:
    """A settlement applied against a bill."""

    id: str
    bill_id: str
    amount: Decimal
    paid_at: datetime
    method: PaymentMethod = PaymentMethod.CASH
    customer_id: Optional[str] = None


@dataclass(frozen=True, slots=True)
class Notification:
    """A message addressed to a customer, optionally about a bill."""

    id: str
    customer_id: str
    title: str
    message: str
    sent_at: datetime
    bill_id: Optional[str] = None
    is_read: bool = False


@dataclass(frozen=True, slots=True)
class DeliveryResult:
    """Outcome reported by the notification delivery collaborator."""

    success: bool
    error: Optional[str] = None

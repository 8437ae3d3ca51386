"""
Core charge calculator functions.

Turns units consumed into a monetary charge using progressive banding.
"""

from decimal import Decimal
from functools import lru_cache

from .tariff import DEFAULT_TARIFF_TABLE, TariffTable
from .types import BandCharge, ChargeBreakdown, TariffSchedule
from .util import round_currency, validate_units


def apply_bands(units: int, schedule: TariffSchedule) -> tuple[BandCharge, ...]:
    """
    Split units across the schedule's bands.

    Each band bills the units falling inside (previous threshold, upto_units].
    Units beyond the last finite threshold fall in the unbounded band. Bands
    that receive no units are omitted.

    Args:
        units: Non-negative units consumed
        schedule: Tariff schedule with validated bands

    Returns:
        Tuple of BandCharge, one per band that received units
    """
    charges: list[BandCharge] = []
    lower = 0
    remaining = units

    for band in schedule.bands:
        if remaining <= 0:
            break
        if band.is_unbounded:
            in_band = remaining
        else:
            in_band = min(remaining, band.upto_units - lower)

        charges.append(
            BandCharge(
                lower_units=lower,
                upper_units=band.upto_units,
                units=in_band,
                rate=band.rate,
                amount=band.rate * in_band,
            )
        )
        remaining -= in_band
        if not band.is_unbounded:
            lower = band.upto_units

    return tuple(charges)


def calculate_charge_breakdown(
    units_consumed: int,
    connection_type: str,
    tariffs: TariffTable = DEFAULT_TARIFF_TABLE,
) -> ChargeBreakdown:
    """
    Calculate the itemised charge for a reading.

    Args:
        units_consumed: Non-negative integer units
        connection_type: Connection class; unknown classes use the table default
        tariffs: Tariff table to bill with

    Returns:
        ChargeBreakdown with exact band amounts and a rounded total

    Raises:
        InvalidInputError: If units_consumed is negative or not an integer
    """
    units = validate_units(units_consumed)
    schedule = tariffs.rate_for(connection_type)

    band_charges = apply_bands(units, schedule)
    subtotal = sum((charge.amount for charge in band_charges), start=Decimal("0"))
    subtotal += schedule.fixed_charge
    total = round_currency(subtotal * schedule.tax_rate)

    return ChargeBreakdown(
        connection_type=schedule.connection_type,
        units=units,
        band_charges=band_charges,
        fixed_charge=schedule.fixed_charge,
        subtotal=subtotal,
        tax_rate=schedule.tax_rate,
        tax_amount=total - subtotal,
        total=total,
    )


@lru_cache(maxsize=4096)
def _compute_charge_cached(units: int, connection_type: str, tariffs: TariffTable) -> Decimal:
    return calculate_charge_breakdown(units, connection_type, tariffs).total


def compute_charge(
    units_consumed: int,
    connection_type: str,
    tariffs: TariffTable = DEFAULT_TARIFF_TABLE,
) -> Decimal:
    """
    Compute the amount due for units consumed on a connection class.

    amount = round((sum of band charges + fixed charge) * tax rate, 2),
    rounding halves away from zero. Zero units still incur the fixed charge.
    Results are memoised by (units, connection_type, tariffs).

    Raises:
        InvalidInputError: If units_consumed is negative or not an integer
    """
    units = validate_units(units_consumed)
    return _compute_charge_cached(units, connection_type, tariffs)

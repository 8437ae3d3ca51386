"""
Unit tests for tariff schedules and the tariff table.
"""

from decimal import Decimal

import pytest

from billing.core.tariff import (
    COMMERCIAL_SCHEDULE,
    DEFAULT_TARIFF_TABLE,
    RESIDENTIAL_SCHEDULE,
    TariffTable,
)
from billing.core.types import ConsumptionBand, TariffSchedule


def make_schedule(connection_type="residential", bands=None, fixed="10.00", tax="1.05"):
    if bands is None:
        bands = (
            ConsumptionBand(upto_units=50, rate=Decimal("1.00")),
            ConsumptionBand(rate=Decimal("2.00")),
        )
    return TariffSchedule(
        connection_type=connection_type,
        bands=bands,
        fixed_charge=Decimal(fixed),
        tax_rate=Decimal(tax),
    )


# TariffSchedule validation


def test_valid_schedule():
    schedule = make_schedule()

    assert schedule.bands[-1].is_unbounded
    assert not schedule.bands[0].is_unbounded


def test_schedule_requires_bands():
    with pytest.raises(ValueError, match="at least one band"):
        make_schedule(bands=())


def test_last_band_must_be_unbounded():
    with pytest.raises(ValueError, match="last band must be unbounded"):
        make_schedule(bands=(ConsumptionBand(upto_units=100, rate=Decimal("1.00")),))


def test_only_last_band_may_be_unbounded():
    with pytest.raises(ValueError, match="only the last band"):
        make_schedule(
            bands=(ConsumptionBand(rate=Decimal("1.00")), ConsumptionBand(rate=Decimal("2.00")))
        )


@pytest.mark.parametrize("thresholds", [(100, 100), (300, 100), (0, 100)])
def test_thresholds_must_increase(thresholds):
    bands = tuple(ConsumptionBand(upto_units=t, rate=Decimal("1.00")) for t in thresholds)
    with pytest.raises(ValueError, match="strictly increasing"):
        make_schedule(bands=bands + (ConsumptionBand(rate=Decimal("2.00")),))


def test_negative_rate_rejected():
    with pytest.raises(ValueError, match="rates"):
        make_schedule(bands=(ConsumptionBand(rate=Decimal("-1.00")),))


def test_negative_fixed_charge_rejected():
    with pytest.raises(ValueError, match="fixed_charge"):
        make_schedule(fixed="-5.00")


def test_non_positive_tax_rate_rejected():
    with pytest.raises(ValueError, match="tax_rate"):
        make_schedule(tax="0")


def test_schedule_is_immutable():
    with pytest.raises(AttributeError):
        RESIDENTIAL_SCHEDULE.fixed_charge = Decimal("0")


# TariffTable


def test_default_table_contents():
    assert DEFAULT_TARIFF_TABLE.connection_types == ("residential", "commercial")
    assert DEFAULT_TARIFF_TABLE.default_connection_type == "residential"
    assert DEFAULT_TARIFF_TABLE.rate_for("commercial") is COMMERCIAL_SCHEDULE


def test_rate_for_unknown_type_falls_back_to_default():
    assert DEFAULT_TARIFF_TABLE.rate_for("industrial") is RESIDENTIAL_SCHEDULE
    assert DEFAULT_TARIFF_TABLE.resolve_connection_type("industrial") == "residential"
    assert not DEFAULT_TARIFF_TABLE.has_schedule("industrial")


def test_configured_default_connection_type():
    table = TariffTable(
        schedules=(RESIDENTIAL_SCHEDULE, COMMERCIAL_SCHEDULE),
        default_connection_type="commercial",
    )

    assert table.rate_for("industrial") is COMMERCIAL_SCHEDULE


def test_default_without_schedule_rejected():
    with pytest.raises(ValueError, match="has no schedule"):
        TariffTable(schedules=(COMMERCIAL_SCHEDULE,))


def test_duplicate_schedules_rejected():
    with pytest.raises(ValueError, match="Duplicate"):
        TariffTable(schedules=(RESIDENTIAL_SCHEDULE, RESIDENTIAL_SCHEDULE))


def test_merged_replaces_and_appends():
    cheaper = make_schedule("residential")
    industrial = make_schedule("industrial")

    table = DEFAULT_TARIFF_TABLE.merged([cheaper, industrial])

    assert table.rate_for("residential") is cheaper
    assert table.rate_for("commercial") is COMMERCIAL_SCHEDULE
    assert table.rate_for("industrial") is industrial
    # The base table is untouched
    assert DEFAULT_TARIFF_TABLE.rate_for("residential") is RESIDENTIAL_SCHEDULE


def test_tables_with_same_schedules_are_equal_and_hashable():
    table = TariffTable(schedules=(RESIDENTIAL_SCHEDULE, COMMERCIAL_SCHEDULE))

    assert table == DEFAULT_TARIFF_TABLE
    assert hash(table) == hash(DEFAULT_TARIFF_TABLE)

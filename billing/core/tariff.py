"""
Tariff table: the rate schedule for each connection class.

Lookup policy:
    rate_for() returns the schedule registered for the connection type. An
    unrecognised connection type is NOT an error; it is billed on the schedule
    of default_connection_type (residential unless configured otherwise).
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable

from .types import ConnectionType, ConsumptionBand, TariffSchedule


@dataclass(frozen=True, slots=True)
class TariffTable:
    """
    Immutable mapping from connection class to tariff schedule.

    Hashable, so calculator results can be memoised per table.
    """

    schedules: tuple[TariffSchedule, ...]
    default_connection_type: str = ConnectionType.RESIDENTIAL.value

    def __post_init__(self) -> None:
        seen: set[str] = set()
        for schedule in self.schedules:
            if schedule.connection_type in seen:
                raise ValueError(f"Duplicate tariff schedule for '{schedule.connection_type}'")
            seen.add(schedule.connection_type)
        if self.default_connection_type not in seen:
            raise ValueError(
                f"Default connection type '{self.default_connection_type}' has no schedule"
            )

    @property
    def connection_types(self) -> tuple[str, ...]:
        return tuple(schedule.connection_type for schedule in self.schedules)

    def has_schedule(self, connection_type: str) -> bool:
        return connection_type in self.connection_types

    def resolve_connection_type(self, connection_type: str) -> str:
        """Return the connection class whose schedule applies to connection_type."""
        if self.has_schedule(connection_type):
            return connection_type
        return self.default_connection_type

    def rate_for(self, connection_type: str) -> TariffSchedule:
        """
        Get the schedule for a connection type, falling back to the default class.

        Args:
            connection_type: Connection class of the metered connection

        Returns:
            TariffSchedule to bill with
        """
        resolved = self.resolve_connection_type(connection_type)
        for schedule in self.schedules:
            if schedule.connection_type == resolved:
                return schedule
        # Unreachable: __post_init__ guarantees the default exists
        raise LookupError(resolved)

    def merged(self, overrides: Iterable[TariffSchedule]) -> "TariffTable":
        """
        Return a new table where overrides replace schedules of the same class.

        Connection classes only present in overrides are appended.
        """
        by_type = {schedule.connection_type: schedule for schedule in self.schedules}
        for schedule in overrides:
            by_type[schedule.connection_type] = schedule
        return TariffTable(
            schedules=tuple(by_type.values()),
            default_connection_type=self.default_connection_type,
        )


RESIDENTIAL_SCHEDULE = TariffSchedule(
    connection_type=ConnectionType.RESIDENTIAL.value,
    bands=(
        ConsumptionBand(upto_units=100, rate=Decimal("3.50")),
        ConsumptionBand(upto_units=300, rate=Decimal("4.50")),
        ConsumptionBand(upto_units=None, rate=Decimal("6.00")),
    ),
    fixed_charge=Decimal("50.00"),
    tax_rate=Decimal("1.05"),
)

COMMERCIAL_SCHEDULE = TariffSchedule(
    connection_type=ConnectionType.COMMERCIAL.value,
    bands=(
        ConsumptionBand(upto_units=100, rate=Decimal("5.00")),
        ConsumptionBand(upto_units=300, rate=Decimal("6.50")),
        ConsumptionBand(upto_units=None, rate=Decimal("8.00")),
    ),
    fixed_charge=Decimal("100.00"),
    tax_rate=Decimal("1.05"),
)

DEFAULT_TARIFF_TABLE = TariffTable(schedules=(RESIDENTIAL_SCHEDULE, COMMERCIAL_SCHEDULE))

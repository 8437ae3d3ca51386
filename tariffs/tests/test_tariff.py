from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import IntegrityError
from django.test import TestCase

from tariffs.models import ConsumptionBand, TariffSchedule


class TariffScheduleModelTests(TestCase):
    def test_create_and_str(self):
        """Test creating a schedule and its string representation."""
        schedule = TariffSchedule.objects.create(
            connection_type="residential", name="Residential LT-1", fixed_charge=Decimal("50.00")
        )
        self.assertIsNotNone(schedule.pk)
        self.assertEqual(str(schedule), "Residential LT-1 (residential)")
        self.assertEqual(schedule.tax_rate, Decimal("1.05"))

    def test_connection_type_unique(self):
        """Test that each connection type has at most one schedule."""
        TariffSchedule.objects.create(connection_type="commercial", name="A", fixed_charge=0)
        with self.assertRaises(IntegrityError):
            TariffSchedule.objects.create(connection_type="commercial", name="B", fixed_charge=0)

    def test_negative_fixed_charge_invalid(self):
        schedule = TariffSchedule(
            connection_type="residential", name="Bad", fixed_charge=Decimal("-1.00")
        )
        with self.assertRaises(ValidationError) as ctx:
            schedule.full_clean()
        self.assertIn("fixed_charge", ctx.exception.message_dict)

    def test_zero_tax_rate_invalid(self):
        schedule = TariffSchedule(
            connection_type="residential", name="Bad", fixed_charge=0, tax_rate=Decimal("0")
        )
        with self.assertRaises(ValidationError) as ctx:
            schedule.full_clean()
        self.assertIn("tax_rate", ctx.exception.message_dict)

    def test_cascade_delete_bands(self):
        """Test that bands are deleted with their schedule."""
        schedule = TariffSchedule.objects.create(
            connection_type="residential", name="Residential", fixed_charge=0
        )
        ConsumptionBand.objects.create(schedule=schedule, upto_units=100, rate=Decimal("3.50"))
        ConsumptionBand.objects.create(schedule=schedule, upto_units=None, rate=Decimal("6.00"))

        schedule.delete()

        self.assertEqual(ConsumptionBand.objects.count(), 0)


class ConsumptionBandModelTests(TestCase):
    def setUp(self):
        self.schedule = TariffSchedule.objects.create(
            connection_type="residential", name="Residential", fixed_charge=Decimal("50.00")
        )

    def test_str(self):
        bounded = ConsumptionBand.objects.create(
            schedule=self.schedule, upto_units=100, rate=Decimal("3.50")
        )
        top = ConsumptionBand.objects.create(schedule=self.schedule, rate=Decimal("6.00"))

        self.assertEqual(str(bounded), "residential ≤100 @ 3.50")
        self.assertEqual(str(top), "residential ≤∞ @ 6.00")

    def test_threshold_unique_per_schedule(self):
        ConsumptionBand.objects.create(schedule=self.schedule, upto_units=100, rate=Decimal("3.50"))
        with self.assertRaises(IntegrityError):
            ConsumptionBand.objects.create(
                schedule=self.schedule, upto_units=100, rate=Decimal("4.50")
            )

    def test_negative_rate_invalid(self):
        band = ConsumptionBand(schedule=self.schedule, upto_units=100, rate=Decimal("-0.50"))
        with self.assertRaises(ValidationError) as ctx:
            band.full_clean()
        self.assertIn("rate", ctx.exception.message_dict)

    def test_zero_threshold_invalid(self):
        band = ConsumptionBand(schedule=self.schedule, upto_units=0, rate=Decimal("1.00"))
        with self.assertRaises(ValidationError) as ctx:
            band.full_clean()
        self.assertIn("upto_units", ctx.exception.message_dict)

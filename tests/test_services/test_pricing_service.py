import unittest
from datetime import datetime, timezone, timedelta
from decimal import Decimal

from reservations.services.pricing_service import calculate_price, count_nights


def jan(day: int, hour: int = 0) -> datetime:
    return datetime(2030, 1, day, hour, tzinfo=timezone.utc)


class TestPricingService(unittest.TestCase):

    def test_three_nights(self):
        self.assertEqual(calculate_price(100, jan(1), jan(4)), Decimal("300"))

    def test_same_day_is_one_night(self):
        self.assertEqual(calculate_price(100, jan(1), jan(1)), Decimal("100"))

    def test_partial_day_rounds_up(self):
        self.assertEqual(count_nights(jan(1, 14), jan(3, 11)), 2)
        self.assertEqual(count_nights(jan(1, 14), jan(3, 15)), 3)

    def test_short_stay_is_one_night(self):
        self.assertEqual(count_nights(jan(1, 10), jan(1, 18)), 1)

    def test_decimal_rate(self):
        price = calculate_price(Decimal("129.99"), jan(1), jan(3))
        self.assertEqual(price, Decimal("259.98"))

    def test_float_rate_is_exact(self):
        self.assertEqual(calculate_price(0.1, jan(1), jan(4)), Decimal("0.3"))

    def test_thirty_night_stay(self):
        self.assertEqual(
            calculate_price(Decimal("80"), jan(1), jan(1) + timedelta(days=30)),
            Decimal("2400"),
        )

    def test_zero_rate_rejected(self):
        with self.assertRaises(ValueError):
            calculate_price(0, jan(1), jan(2))

    def test_negative_rate_rejected(self):
        with self.assertRaises(ValueError):
            calculate_price(Decimal("-10"), jan(1), jan(2))


if __name__ == "__main__":
    unittest.main()

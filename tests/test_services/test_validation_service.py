import unittest
from unittest.mock import MagicMock
from datetime import datetime, timezone, timedelta
from decimal import Decimal

from pydantic import ValidationError

from reservations.models.bookings import Booking, BookingStatus
from reservations.models.results import BookingErrorCode
from reservations.schemas.bookings import BookingRequest
from reservations.services.pricing_service import calculate_price
from reservations.services.validation_service import (
    BookingValidationService,
    overlaps,
    request_error,
    validate_dates,
    validate_guest,
)

NOW = datetime(2030, 1, 1, 12, 0, tzinfo=timezone.utc)


def jan(day: int) -> datetime:
    return datetime(2030, 1, day, tzinfo=timezone.utc)


def make_booking(booking_id="b1", room_id="r1", check_in=None, check_out=None, **kwargs):
    return Booking(
        booking_id=booking_id,
        user_id=kwargs.pop("user_id", "u1"),
        room_id=room_id,
        check_in=check_in or jan(10),
        check_out=check_out or jan(15),
        guest_name="Jane Guest",
        guest_email="jane@example.com",
        guest_phone="+1 555 010 0199",
        total_price=Decimal("500"),
        **kwargs,
    )


class TestOverlaps(unittest.TestCase):

    def test_identical_ranges_overlap(self):
        self.assertTrue(overlaps(jan(10), jan(12), jan(10), jan(12)))

    def test_adjacent_ranges_do_not_overlap(self):
        self.assertFalse(overlaps(jan(10), jan(12), jan(12), jan(14)))
        self.assertFalse(overlaps(jan(12), jan(14), jan(10), jan(12)))

    def test_overlap_is_symmetric(self):
        ranges = [
            (jan(1), jan(5)),
            (jan(3), jan(8)),
            (jan(5), jan(9)),
            (jan(2), jan(3)),
            (jan(10), jan(20)),
        ]
        for a in ranges:
            for b in ranges:
                self.assertEqual(overlaps(*a, *b), overlaps(*b, *a), (a, b))

    def test_containment_overlaps(self):
        self.assertTrue(overlaps(jan(10), jan(20), jan(12), jan(14)))
        self.assertTrue(overlaps(jan(12), jan(14), jan(10), jan(20)))

    def test_partial_overlap(self):
        self.assertTrue(overlaps(jan(10), jan(13), jan(12), jan(16)))

    def test_disjoint_ranges(self):
        self.assertFalse(overlaps(jan(1), jan(3), jan(5), jan(8)))


class TestValidateDates(unittest.TestCase):

    def test_valid_range(self):
        self.assertIsNone(validate_dates(jan(10), jan(12), NOW))

    def test_checkout_before_checkin(self):
        error = validate_dates(jan(12), jan(10), NOW)
        self.assertEqual(error.code, BookingErrorCode.INVALID_DATE_RANGE)

    def test_checkout_equal_to_checkin(self):
        error = validate_dates(jan(12), jan(12), NOW)
        self.assertEqual(error.code, BookingErrorCode.INVALID_DATE_RANGE)

    def test_past_checkin(self):
        yesterday = NOW - timedelta(days=1)
        tomorrow = NOW + timedelta(days=1)

        error = validate_dates(yesterday, tomorrow, NOW)

        self.assertEqual(error.code, BookingErrorCode.PAST_CHECK_IN)

    def test_checkin_at_now_is_allowed(self):
        self.assertIsNone(validate_dates(NOW, NOW + timedelta(days=1), NOW))

    def test_range_error_reported_before_past_checkin(self):
        error = validate_dates(NOW - timedelta(days=1), NOW - timedelta(days=2), NOW)
        self.assertEqual(error.code, BookingErrorCode.INVALID_DATE_RANGE)

    def test_thirty_day_stay_is_valid(self):
        self.assertIsNone(validate_dates(jan(2), jan(2) + timedelta(days=30), NOW))

    def test_thirty_one_day_stay_too_long(self):
        error = validate_dates(jan(2), jan(2) + timedelta(days=31), NOW)
        self.assertEqual(error.code, BookingErrorCode.STAY_TOO_LONG)

    def test_stay_length_counts_whole_days_only(self):
        check_out = jan(2) + timedelta(days=30, hours=23)

        self.assertIsNone(validate_dates(jan(2), check_out, NOW))
        self.assertEqual(calculate_price(Decimal("100"), jan(2), check_out), Decimal("3100"))


class TestRequestError(unittest.TestCase):

    def _body(self, **overrides):
        body = {
            "room_id": "r1",
            "check_in": "2030-01-10T14:00:00+00:00",
            "check_out": "2030-01-12T11:00:00+00:00",
            "guest_name": "Jane Guest",
            "guest_email": "jane@example.com",
            "guest_phone": "+1 555 010 0199",
        }
        body.update(overrides)
        return body

    def _error(self, body):
        with self.assertRaises(ValidationError) as ctx:
            BookingRequest.model_validate(body)
        return request_error(ctx.exception)

    def test_missing_guest_field(self):
        body = self._body()
        del body["guest_phone"]

        error = self._error(body)

        self.assertEqual(error.code, BookingErrorCode.INVALID_GUEST_DATA)
        self.assertEqual(error.details, ("guest_phone: Field required",))

    def test_naive_check_in(self):
        error = self._error(self._body(check_in="2030-01-10T14:00:00"))

        self.assertEqual(error.code, BookingErrorCode.INVALID_DATE_RANGE)
        self.assertEqual(len(error.details), 1)
        self.assertTrue(error.details[0].startswith("check_in:"))

    def test_missing_check_out(self):
        body = self._body()
        del body["check_out"]

        self.assertEqual(self._error(body).code, BookingErrorCode.INVALID_DATE_RANGE)

    def test_date_error_wins_over_guest_error(self):
        body = self._body(check_out="soon")
        del body["guest_name"]

        error = self._error(body)

        self.assertEqual(error.code, BookingErrorCode.INVALID_DATE_RANGE)
        self.assertEqual(len(error.details), 2)


class TestValidateGuest(unittest.TestCase):

    def _validate(self, **overrides):
        values = {
            "guest_name": "Jane Guest",
            "guest_email": "jane@example.com",
            "guest_phone": "+1 (555) 010-0199",
            "special_requests": "Late arrival",
        }
        values.update(overrides)
        return validate_guest(**values)

    def test_valid_guest(self):
        self.assertIsNone(self._validate())

    def test_blank_name(self):
        error = self._validate(guest_name="   ")
        self.assertEqual(error.code, BookingErrorCode.INVALID_GUEST_DATA)
        self.assertTrue(any("guest_name" in d for d in error.details))

    def test_name_too_long(self):
        error = self._validate(guest_name="x" * 101)
        self.assertEqual(error.code, BookingErrorCode.INVALID_GUEST_DATA)

    def test_invalid_email(self):
        error = self._validate(guest_email="not-an-email")
        self.assertEqual(error.code, BookingErrorCode.INVALID_GUEST_DATA)
        self.assertTrue(any("guest_email" in d for d in error.details))

    def test_phone_with_letters(self):
        error = self._validate(guest_phone="555-CALL-NOW")
        self.assertEqual(error.code, BookingErrorCode.INVALID_GUEST_DATA)

    def test_phone_with_too_few_digits(self):
        error = self._validate(guest_phone="+1 (55)")
        self.assertEqual(error.code, BookingErrorCode.INVALID_GUEST_DATA)

    def test_script_in_special_requests(self):
        error = self._validate(special_requests="<script>alert(1)</script>")
        self.assertEqual(error.code, BookingErrorCode.INVALID_GUEST_DATA)

    def test_markup_in_name(self):
        error = self._validate(guest_name="Jane<iframe src=x>")
        self.assertEqual(error.code, BookingErrorCode.INVALID_GUEST_DATA)

    def test_special_requests_optional(self):
        self.assertIsNone(self._validate(special_requests=None))


class TestValidateNoOverlap(unittest.TestCase):

    def setUp(self):
        self.booking_repo = MagicMock()
        self.service = BookingValidationService(self.booking_repo, clock=lambda: NOW)
        self.existing = make_booking(check_in=jan(10), check_out=jan(15))

    def test_inside_existing_booking_conflicts(self):
        self.booking_repo.find_by_room.return_value = [self.existing]

        error = self.service.validate_no_overlap("r1", jan(12), jan(14))

        self.booking_repo.find_by_room.assert_called_once_with("r1")
        self.assertEqual(error.code, BookingErrorCode.OVERLAP_CONFLICT)
        self.assertEqual(error.conflict_check_in, jan(10))
        self.assertEqual(error.conflict_check_out, jan(15))
        self.assertIn("2030-01-10", error.message)
        self.assertIn("2030-01-15", error.message)

    def test_starting_at_existing_checkout_is_free(self):
        self.booking_repo.find_by_room.return_value = [self.existing]

        self.assertIsNone(self.service.validate_no_overlap("r1", jan(15), jan(18)))

    def test_cancelled_booking_does_not_block(self):
        self.existing.status = BookingStatus.CANCELLED
        self.booking_repo.find_by_room.return_value = [self.existing]

        self.assertIsNone(self.service.validate_no_overlap("r1", jan(10), jan(15)))

    def test_deleted_booking_does_not_block(self):
        self.existing.is_deleted = True
        self.booking_repo.find_by_room.return_value = [self.existing]

        self.assertIsNone(self.service.validate_no_overlap("r1", jan(10), jan(15)))

    def test_confirmed_booking_blocks(self):
        self.existing.status = BookingStatus.CONFIRMED
        self.booking_repo.find_by_room.return_value = [self.existing]

        error = self.service.validate_no_overlap("r1", jan(9), jan(11))

        self.assertEqual(error.code, BookingErrorCode.OVERLAP_CONFLICT)

    def test_excluded_booking_is_ignored(self):
        self.booking_repo.find_by_room.return_value = [self.existing]

        error = self.service.validate_no_overlap(
            "r1", jan(11), jan(16), exclude_booking_id="b1"
        )

        self.assertIsNone(error)

    def test_no_bookings(self):
        self.booking_repo.find_by_room.return_value = []

        self.assertIsNone(self.service.validate_no_overlap("r1", jan(10), jan(15)))

    def test_validate_dates_uses_injected_clock(self):
        error = self.service.validate_dates(NOW - timedelta(hours=1), NOW + timedelta(days=1))

        self.assertEqual(error.code, BookingErrorCode.PAST_CHECK_IN)


if __name__ == "__main__":
    unittest.main()

import logging
from datetime import datetime
from typing import Optional, Tuple

from pydantic import ValidationError

from reservations.models.results import BookingError, BookingErrorCode
from reservations.repository.booking_repo import BookingRepository
from reservations.schemas.bookings import GuestDetails
from reservations.utils.constants import MAX_STAY
from reservations.utils.datetime_normaliser import Clock, utc_now

logger = logging.getLogger(__name__)

DATE_FIELDS = ("check_in", "check_out")


def overlaps(
    start_a: datetime, end_a: datetime, start_b: datetime, end_b: datetime
) -> bool:
    """Half-open [start, end) intersection test.

    A range ending exactly when the other starts does not overlap it, so a
    checkout and a check-in on the same instant can share a room.
    """
    return start_a < end_b and end_a > start_b


def validate_dates(
    check_in: datetime, check_out: datetime, now: datetime
) -> Optional[BookingError]:
    if check_out <= check_in:
        return BookingError(
            BookingErrorCode.INVALID_DATE_RANGE,
            "Check-out date must be after check-in date",
        )
    if check_in < now:
        return BookingError(
            BookingErrorCode.PAST_CHECK_IN,
            "Check-in date cannot be in the past",
        )
    if (check_out - check_in).days > MAX_STAY:
        return BookingError(
            BookingErrorCode.STAY_TOO_LONG,
            f"Booking duration cannot exceed {MAX_STAY} days",
        )
    return None


def validate_guest(
    guest_name: str,
    guest_email: str,
    guest_phone: str,
    special_requests: Optional[str] = None,
) -> Optional[BookingError]:
    try:
        GuestDetails(
            guest_name=guest_name,
            guest_email=guest_email,
            guest_phone=guest_phone,
            special_requests=special_requests,
        )
    except ValidationError as e:
        return BookingError(
            BookingErrorCode.INVALID_GUEST_DATA,
            "Invalid guest details",
            details=_error_details(e),
        )
    return None


def request_error(e: ValidationError) -> BookingError:
    """Map a rejected request body onto a booking error code.

    Any failure on check_in or check_out is a date-range error; everything
    else in the body is reported as invalid guest data.
    """
    details = _error_details(e)
    if any(err["loc"] and err["loc"][0] in DATE_FIELDS for err in e.errors()):
        return BookingError(
            BookingErrorCode.INVALID_DATE_RANGE,
            "Check-in and check-out must be valid dates with a timezone",
            details=details,
        )
    return BookingError(
        BookingErrorCode.INVALID_GUEST_DATA,
        "Invalid booking request",
        details=details,
    )


def _error_details(e: ValidationError) -> Tuple[str, ...]:
    return tuple(
        f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
    )


class BookingValidationService:
    def __init__(self, booking_repo: BookingRepository, clock: Clock = utc_now):
        self.booking_repo = booking_repo
        self.clock = clock

    def validate_dates(
        self, check_in: datetime, check_out: datetime
    ) -> Optional[BookingError]:
        return validate_dates(check_in, check_out, self.clock())

    def validate_no_overlap(
        self,
        room_id: str,
        check_in: datetime,
        check_out: datetime,
        exclude_booking_id: Optional[str] = None,
    ) -> Optional[BookingError]:
        logger.info(
            f"Validating booking overlap for room {room_id}, {check_in} to {check_out}"
        )
        for existing in self.booking_repo.find_by_room(room_id):
            if not existing.is_active or existing.booking_id == exclude_booking_id:
                continue
            if overlaps(check_in, check_out, existing.check_in, existing.check_out):
                logger.warning(
                    f"Booking overlap detected for room {room_id}: existing booking "
                    f"{existing.booking_id} from {existing.check_in} to {existing.check_out}"
                )
                return BookingError(
                    BookingErrorCode.OVERLAP_CONFLICT,
                    f"Room is already booked from {existing.check_in:%Y-%m-%d} "
                    f"to {existing.check_out:%Y-%m-%d}",
                    conflict_check_in=existing.check_in,
                    conflict_check_out=existing.check_out,
                )
        return None

from reservations.models.bookings import BookingStatus
from reservations.models.results import BookingError, BookingErrorCode, Result

BOOKING_TRANSITIONS = {
    BookingStatus.PENDING: {BookingStatus.CONFIRMED, BookingStatus.CANCELLED},
    BookingStatus.CONFIRMED: {BookingStatus.COMPLETED, BookingStatus.CANCELLED},
    BookingStatus.CANCELLED: set(),
    BookingStatus.COMPLETED: set(),
}


def transition(current: BookingStatus, requested: BookingStatus) -> Result[BookingStatus]:
    if requested not in BOOKING_TRANSITIONS.get(current, set()):
        return Result.failure(
            BookingError(
                BookingErrorCode.INVALID_TRANSITION,
                f"Invalid booking transition: {current.value} -> {requested.value}",
            )
        )
    return Result.success(requested)

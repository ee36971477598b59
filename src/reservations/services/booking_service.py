import logging
from dataclasses import replace
from typing import Callable, List, Optional
from uuid import uuid4

from reservations.models.bookings import Booking, BookingStatus
from reservations.models.results import BookingError, BookingErrorCode, Result
from reservations.repository.booking_repo import BookingRepository
from reservations.repository.room_repo import RoomRepository
from reservations.schemas.bookings import BookingRequest, BookingUpdateRequest
from reservations.services.lifecycle import transition
from reservations.services.pricing_service import calculate_price
from reservations.services.validation_service import (
    BookingValidationService,
    validate_guest,
)
from reservations.utils.constants import MAX_WRITE_ATTEMPTS
from reservations.utils.custom_exceptions import ConcurrentWriteError
from reservations.utils.datetime_normaliser import Clock, utc_now

logger = logging.getLogger(__name__)

GUEST_FIELDS = ("guest_name", "guest_email", "guest_phone", "special_requests")


class BookingService:
    """Creates, changes and cancels reservations.

    Every write re-reads what it depends on, validates, and commits through a
    conditional transaction. A lost race surfaces as ConcurrentWriteError and
    the whole read-check-write is replayed, up to ``max_attempts`` times.
    """

    def __init__(
        self,
        booking_repo: BookingRepository,
        room_repo: RoomRepository,
        clock: Clock = utc_now,
        max_attempts: int = MAX_WRITE_ATTEMPTS,
    ):
        self.booking_repo = booking_repo
        self.room_repo = room_repo
        self.clock = clock
        self.max_attempts = max_attempts
        self.validation_service = BookingValidationService(booking_repo, clock)

    def create_booking(self, req: BookingRequest, user_id: str) -> Result[Booking]:
        guest_error = validate_guest(
            req.guest_name, req.guest_email, req.guest_phone, req.special_requests
        )
        if guest_error:
            return Result.failure(guest_error)

        date_error = self.validation_service.validate_dates(req.check_in, req.check_out)
        if date_error:
            return Result.failure(date_error)

        def attempt() -> Result[Booking]:
            room = self.room_repo.get_room_by_id(req.room_id)
            if room is None or room.is_deleted:
                return Result.failure(_room_not_found(req.room_id))

            overlap_error = self.validation_service.validate_no_overlap(
                room.room_id, req.check_in, req.check_out
            )
            if overlap_error:
                return Result.failure(overlap_error)

            now = self.clock()
            booking = Booking(
                booking_id=str(uuid4()),
                user_id=user_id,
                room_id=room.room_id,
                check_in=req.check_in,
                check_out=req.check_out,
                guest_name=req.guest_name.strip(),
                guest_email=req.guest_email,
                guest_phone=req.guest_phone,
                special_requests=req.special_requests,
                total_price=calculate_price(
                    room.price_per_night, req.check_in, req.check_out
                ),
                status=BookingStatus.PENDING,
                created_at=now,
            )
            saved = self.booking_repo.save(booking, room_version=room.booking_version)
            logger.info(
                f"Booking {saved.booking_id} created for room {saved.room_id}, "
                f"total price {saved.total_price}"
            )
            return Result.success(saved)

        return self._with_retries(attempt, f"create booking on room {req.room_id}")

    def update_booking(
        self,
        booking_id: str,
        changes: BookingUpdateRequest,
        acting_user_id: Optional[str] = None,
    ) -> Result[Booking]:
        requested = {
            name: value
            for name, value in changes.model_dump(exclude_unset=True).items()
            if value is not None or name == "special_requests"
        }

        def attempt() -> Result[Booking]:
            existing, error = self._load(booking_id, acting_user_id)
            if error:
                return Result.failure(error)
            if existing.status.is_terminal:
                return Result.failure(
                    BookingError(
                        BookingErrorCode.INVALID_TRANSITION,
                        f"A {existing.status.value.lower()} booking cannot be modified",
                    )
                )

            updated = replace(existing, **requested)

            if any(name in requested for name in GUEST_FIELDS):
                guest_error = validate_guest(
                    updated.guest_name,
                    updated.guest_email,
                    updated.guest_phone,
                    updated.special_requests,
                )
                if guest_error:
                    return Result.failure(guest_error)
                updated.guest_name = updated.guest_name.strip()

            room_version = None
            if (
                updated.room_id != existing.room_id
                or updated.check_in != existing.check_in
                or updated.check_out != existing.check_out
            ):
                date_error = self.validation_service.validate_dates(
                    updated.check_in, updated.check_out
                )
                if date_error:
                    return Result.failure(date_error)

                room = self.room_repo.get_room_by_id(updated.room_id)
                if room is None or room.is_deleted:
                    return Result.failure(_room_not_found(updated.room_id))

                overlap_error = self.validation_service.validate_no_overlap(
                    updated.room_id,
                    updated.check_in,
                    updated.check_out,
                    exclude_booking_id=existing.booking_id,
                )
                if overlap_error:
                    return Result.failure(overlap_error)

                updated.total_price = calculate_price(
                    room.price_per_night, updated.check_in, updated.check_out
                )
                room_version = room.booking_version
                logger.info(
                    f"Recalculated total price for booking {booking_id}: {updated.total_price}"
                )

            updated.updated_at = self.clock()
            saved = self.booking_repo.save(
                updated, previous=existing, room_version=room_version
            )
            logger.info(f"Booking {booking_id} updated")
            return Result.success(saved)

        return self._with_retries(attempt, f"update booking {booking_id}")

    def cancel_booking(
        self, booking_id: str, acting_user_id: Optional[str] = None
    ) -> Result[Booking]:
        return self._change_status(booking_id, BookingStatus.CANCELLED, acting_user_id)

    def change_status(self, booking_id: str, status: BookingStatus) -> Result[Booking]:
        return self._change_status(booking_id, status, acting_user_id=None)

    def delete_booking(self, booking_id: str) -> Result[Booking]:
        def attempt() -> Result[Booking]:
            existing, error = self._load(booking_id, acting_user_id=None)
            if error:
                return Result.failure(error)
            now = self.clock()
            deleted = replace(existing, is_deleted=True, deleted_at=now, updated_at=now)
            saved = self.booking_repo.save(deleted, previous=existing)
            logger.info(f"Booking {booking_id} soft deleted")
            return Result.success(saved)

        return self._with_retries(attempt, f"delete booking {booking_id}")

    def get_booking(
        self, booking_id: str, acting_user_id: Optional[str] = None
    ) -> Result[Booking]:
        booking, error = self._load(booking_id, acting_user_id)
        if error:
            return Result.failure(error)
        return Result.success(booking)

    def list_bookings_for_user(self, user_id: str) -> List[Booking]:
        bookings = self.booking_repo.get_user_bookings(user_id)
        return [b for b in bookings if not b.is_deleted]

    def list_all_bookings(self) -> List[Booking]:
        bookings = [b for b in self.booking_repo.get_all_bookings() if not b.is_deleted]
        logger.info(f"Retrieved {len(bookings)} bookings")
        return bookings

    def _change_status(
        self,
        booking_id: str,
        status: BookingStatus,
        acting_user_id: Optional[str],
    ) -> Result[Booking]:
        def attempt() -> Result[Booking]:
            existing, error = self._load(booking_id, acting_user_id)
            if error:
                return Result.failure(error)

            moved = transition(existing.status, status)
            if not moved.ok:
                return Result.failure(moved.error)

            changed = replace(existing, status=moved.value, updated_at=self.clock())
            saved = self.booking_repo.save(changed, previous=existing)
            logger.info(
                f"Booking {booking_id} moved from {existing.status.value} to {saved.status.value}"
            )
            return Result.success(saved)

        return self._with_retries(attempt, f"set booking {booking_id} to {status.value}")

    def _load(self, booking_id: str, acting_user_id: Optional[str]):
        booking = self.booking_repo.get_booking_by_id(booking_id)
        if booking is None or booking.is_deleted:
            return None, BookingError(
                BookingErrorCode.BOOKING_NOT_FOUND,
                f"Booking '{booking_id}' not found",
            )
        if acting_user_id is not None and booking.user_id != acting_user_id:
            return None, BookingError(
                BookingErrorCode.NOT_BOOKING_OWNER,
                "Booking belongs to another user",
            )
        return booking, None

    def _with_retries(
        self, attempt: Callable[[], Result[Booking]], description: str
    ) -> Result[Booking]:
        for attempt_no in range(1, self.max_attempts + 1):
            try:
                return attempt()
            except ConcurrentWriteError as err:
                logger.warning(
                    f"Attempt {attempt_no}/{self.max_attempts} to {description} lost a race: {err}"
                )
        logger.error(f"Giving up on {description} after {self.max_attempts} attempts")
        return Result.failure(
            BookingError(
                BookingErrorCode.TRANSIENT_FAILURE,
                "The booking could not be saved because of concurrent changes. Please try again.",
            )
        )


def _room_not_found(room_id: str) -> BookingError:
    return BookingError(
        BookingErrorCode.ROOM_NOT_FOUND,
        f"Room '{room_id}' not found",
    )

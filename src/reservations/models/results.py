from enum import Enum
from dataclasses import dataclass
from datetime import datetime
from typing import Generic, Optional, Tuple, TypeVar

T = TypeVar("T")


class BookingErrorCode(str, Enum):
    INVALID_DATE_RANGE = "INVALID_DATE_RANGE"
    PAST_CHECK_IN = "PAST_CHECK_IN"
    STAY_TOO_LONG = "STAY_TOO_LONG"
    ROOM_NOT_FOUND = "ROOM_NOT_FOUND"
    OVERLAP_CONFLICT = "OVERLAP_CONFLICT"
    INVALID_GUEST_DATA = "INVALID_GUEST_DATA"
    INVALID_TRANSITION = "INVALID_TRANSITION"
    BOOKING_NOT_FOUND = "BOOKING_NOT_FOUND"
    NOT_BOOKING_OWNER = "NOT_BOOKING_OWNER"
    TRANSIENT_FAILURE = "TRANSIENT_FAILURE"


@dataclass(frozen=True)
class BookingError:
    code: BookingErrorCode
    message: str
    conflict_check_in: Optional[datetime] = None
    conflict_check_out: Optional[datetime] = None
    details: Tuple[str, ...] = ()

    def __str__(self):
        return self.message


@dataclass(frozen=True)
class Result(Generic[T]):
    """Outcome of an engine operation: either a value or a BookingError."""

    value: Optional[T] = None
    error: Optional[BookingError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: BookingError) -> "Result[T]":
        return cls(error=error)

from pydantic import BaseModel
from typing import Generic, TypeVar, Optional

from reservations.models.results import BookingError, BookingErrorCode

T = TypeVar("T")

ERROR_STATUS_CODES = {
    BookingErrorCode.INVALID_DATE_RANGE: 400,
    BookingErrorCode.PAST_CHECK_IN: 400,
    BookingErrorCode.STAY_TOO_LONG: 400,
    BookingErrorCode.INVALID_GUEST_DATA: 400,
    BookingErrorCode.ROOM_NOT_FOUND: 404,
    BookingErrorCode.BOOKING_NOT_FOUND: 404,
    BookingErrorCode.NOT_BOOKING_OWNER: 403,
    BookingErrorCode.OVERLAP_CONFLICT: 409,
    BookingErrorCode.INVALID_TRANSITION: 409,
    BookingErrorCode.TRANSIENT_FAILURE: 503,
}


class APIResponse(BaseModel, Generic[T]):
    status_code: int
    message: str
    data: Optional[T] = None


def send_custom_response(status_code: int, message: str, data: Optional[T] = None):
    return {
        'statusCode': status_code,
        'headers': {
            'Content-Type': 'application/json',
        },
        'body': APIResponse(status_code=status_code, message=message, data=data).model_dump_json()
    }


def send_error_response(error: BookingError):
    data = {"code": error.code.value}
    if error.conflict_check_in and error.conflict_check_out:
        data["conflict"] = {
            "check_in": error.conflict_check_in.isoformat(),
            "check_out": error.conflict_check_out.isoformat(),
        }
    if error.details:
        data["details"] = list(error.details)
    return send_custom_response(ERROR_STATUS_CODES.get(error.code, 400), error.message, data)

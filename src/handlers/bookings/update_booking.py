import logging
import os
from boto3 import resource

from reservations.repository.booking_repo import BookingRepository
from reservations.repository.room_repo import RoomRepository
from reservations.services.booking_service import BookingService
from reservations.services.validation_service import request_error
from reservations.schemas.bookings import BookingUpdateRequest, BookingView
from pydantic import ValidationError
from reservations.utils.constants import AWS_REGION
from reservations.utils.custom_response import send_custom_response, send_error_response
from reservations.utils.request_context import acting_user, get_caller, get_path_param

logger = logging.getLogger()
logger.setLevel(logging.INFO)

TABLE_NAME = os.environ.get("TABLE_NAME")

dynamodb = resource("dynamodb", region_name=AWS_REGION)
table = dynamodb.Table(TABLE_NAME)

booking_repo = BookingRepository(table)
room_repo = RoomRepository(table)

booking_service = BookingService(
    booking_repo=booking_repo,
    room_repo=room_repo,
)


def update_booking(event, context):
    caller = get_caller(event)
    if caller is None:
        return send_custom_response(401, "Unauthorized")
    user_id, role = caller

    booking_id = get_path_param(event, "booking_id")
    if not booking_id:
        return send_custom_response(400, "booking_id is required in the path")

    if not event.get("body"):
        return send_custom_response(400, "Request body is required")

    try:
        changes = BookingUpdateRequest.model_validate_json(event["body"])
    except ValidationError as e:
        return send_error_response(request_error(e))

    try:
        result = booking_service.update_booking(
            booking_id, changes, acting_user(user_id, role)
        )
    except Exception:
        logger.exception(f"Unhandled error updating booking {booking_id}")
        return send_custom_response(500, "Internal server error")

    if not result.ok:
        return send_error_response(result.error)

    return send_custom_response(
        200,
        "Booking updated successfully",
        BookingView.model_validate(result.value).model_dump(mode="json"),
    )

import logging
import os
from boto3 import resource

from reservations.repository.booking_repo import BookingRepository
from reservations.repository.room_repo import RoomRepository
from reservations.services.booking_service import BookingService
from reservations.services.validation_service import request_error
from reservations.schemas.bookings import BookingRequest, BookingView
from reservations.utils.constants import AWS_REGION
from reservations.utils.custom_response import send_custom_response, send_error_response
from reservations.utils.request_context import get_caller
from pydantic import ValidationError

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


def create_booking(event, context):
    if not event.get("body"):
        return send_custom_response(400, "Request body is required")

    try:
        request_body = BookingRequest.model_validate_json(event["body"])
    except ValidationError as e:
        return send_error_response(request_error(e))

    caller = get_caller(event)
    if caller is None:
        return send_custom_response(401, "Unauthorized")
    user_id, _ = caller

    try:
        result = booking_service.create_booking(request_body, user_id)
    except Exception:
        logger.exception("Unhandled error creating booking")
        return send_custom_response(500, "Internal server error")

    if not result.ok:
        return send_error_response(result.error)

    return send_custom_response(
        201,
        "Booking created successfully",
        BookingView.model_validate(result.value).model_dump(mode="json"),
    )

import logging
import os
from boto3 import resource

from reservations.repository.booking_repo import BookingRepository
from reservations.repository.room_repo import RoomRepository
from reservations.services.booking_service import BookingService
from reservations.models.bookings import BookingStatus
from reservations.models.users import PRIVILEGED_ROLES
from reservations.schemas.bookings import BookingView, StatusChangeRequest
from pydantic import ValidationError
from reservations.utils.constants import AWS_REGION
from reservations.utils.custom_response import send_custom_response, send_error_response
from reservations.utils.request_context import get_caller, get_path_param

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


def update_booking_status(event, context):
    caller = get_caller(event)
    if caller is None:
        return send_custom_response(401, "Unauthorized")
    _, role = caller

    if role not in PRIVILEGED_ROLES:
        return send_custom_response(403, "Only managers or admins can change booking status")

    booking_id = get_path_param(event, "booking_id")
    if not booking_id:
        return send_custom_response(400, "booking_id is required in the path")

    if not event.get("body"):
        return send_custom_response(400, "Request body is required")

    try:
        request_body = StatusChangeRequest.model_validate_json(event["body"])
    except ValidationError:
        allowed = ", ".join(s.value for s in BookingStatus)
        return send_custom_response(400, f"Invalid status. Allowed: {allowed}")

    try:
        result = booking_service.change_status(booking_id, request_body.status)
    except Exception:
        logger.exception(f"Unhandled error changing status of booking {booking_id}")
        return send_custom_response(500, "Internal server error")

    if not result.ok:
        return send_error_response(result.error)

    return send_custom_response(
        200,
        "Booking status updated successfully",
        BookingView.model_validate(result.value).model_dump(mode="json"),
    )

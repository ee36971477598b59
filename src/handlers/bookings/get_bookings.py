import logging
import os
from boto3 import resource

from reservations.repository.booking_repo import BookingRepository
from reservations.repository.room_repo import RoomRepository
from reservations.services.booking_service import BookingService
from reservations.models.users import PRIVILEGED_ROLES
from reservations.schemas.bookings import BookingView
from reservations.utils.constants import AWS_REGION
from reservations.utils.custom_response import send_custom_response
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


def get_user_bookings(event, context):
    caller = get_caller(event)
    if caller is None:
        return send_custom_response(401, "Unauthorized")
    user_id, role = caller

    target_user_id = get_path_param(event, "user_id") or user_id
    if target_user_id != user_id and role not in PRIVILEGED_ROLES:
        return send_custom_response(403, "Forbidden")

    try:
        bookings = booking_service.list_bookings_for_user(target_user_id)
    except Exception:
        logger.exception(f"Unhandled error listing bookings for {target_user_id}")
        return send_custom_response(500, "Internal server error")

    result = [BookingView.model_validate(b).model_dump(mode="json") for b in bookings]
    return send_custom_response(
        200,
        "Bookings retrieved successfully",
        {
            "count": len(result),
            "bookings": result,
        },
    )

from botocore.exceptions import ClientError
import logging
from typing import Optional
from decimal import Decimal
from reservations.models.rooms import Room

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from types_boto3_dynamodb.service_resource import Table
    from types_boto3_dynamodb import DynamoDBClient
else:
    Table = object
    DynamoDBClient = object


logger = logging.getLogger(__name__)


class RoomRepository:
    """Read side of the room catalog used by the reservation engine."""

    def __init__(self, table: Table, client: DynamoDBClient = None):
        self.table = table
        self.client = client if client else table.meta.client

    def get_room_by_id(self, room_id: str) -> Optional[Room]:
        try:
            response = self.table.get_item(
                Key={"pk": f"ROOM#{room_id}", "sk": "DETAILS"},
                ConsistentRead=True,
            )
        except ClientError as err:
            logger.error(f"Error retrieving room by id {room_id}: {err}")
            raise

        item = response.get("Item")
        if not item:
            return None
        return Room(
            room_id=room_id,
            price_per_night=Decimal(str(item["price_per_night"])),
            is_deleted=bool(item.get("is_deleted", False)),
            booking_version=int(item.get("booking_version", 0)),
        )

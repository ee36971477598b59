from botocore.exceptions import ClientError
import logging
from typing import Optional, List
from boto3.dynamodb.conditions import Key
from reservations.models.bookings import Booking, BookingStatus
from reservations.utils.custom_exceptions import ConcurrentWriteError
from reservations.utils.datetime_normaliser import from_iso_string, to_utc
from dataclasses import replace
from decimal import Decimal
from datetime import datetime
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from types_boto3_dynamodb.service_resource import Table
    from types_boto3_dynamodb import DynamoDBClient
else:
    Table = object
    DynamoDBClient = object


logger = logging.getLogger(__name__)

RETRYABLE_CANCELLATION_CODES = {"ConditionalCheckFailed", "TransactionConflict"}
ALL_BOOKINGS_PK = "ALL_BOOKINGS"


class BookingRepository:
    def __init__(self, table: Table, client: DynamoDBClient = None):
        self.table = table
        self.client = client if client else table.meta.client

    @staticmethod
    def _iso(dt: datetime | str) -> str:
        if isinstance(dt, str):
            parsed = datetime.fromisoformat(dt)
        else:
            parsed = dt
        return to_utc(parsed).isoformat()

    def _attributes(self, booking: Booking) -> dict:
        return {
            "booking_id": booking.booking_id,
            "user_id": booking.user_id,
            "room_id": booking.room_id,
            "check_in": self._iso(booking.check_in),
            "check_out": self._iso(booking.check_out),
            "total_price": Decimal(str(booking.total_price)),
            "booking_status": booking.status.value,
            "guest_name": booking.guest_name,
            "guest_email": booking.guest_email,
            "guest_phone": booking.guest_phone,
            "special_requests": booking.special_requests,
            "is_deleted": booking.is_deleted,
            "deleted_at": self._iso(booking.deleted_at) if booking.deleted_at else None,
            "version": booking.version,
            "created_at": self._iso(booking.created_at),
            "updated_at": self._iso(booking.updated_at) if booking.updated_at else None,
        }

    def save(
        self,
        booking: Booking,
        previous: Optional[Booking] = None,
        room_version: Optional[int] = None,
    ) -> Booking:
        """Write a new or changed booking in a single transaction.

        ``previous`` is the stored state the change was computed from; the
        write only commits if the stored version still matches it. When
        ``room_version`` is given the room's booking_version is bumped on the
        same condition, which serializes every guarded write for that room.
        """
        stored = replace(booking, version=booking.version + 1)
        attributes = self._attributes(stored)

        if previous is None:
            details_condition = {"ConditionExpression": "attribute_not_exists(pk)"}
        else:
            details_condition = {
                "ConditionExpression": "#version = :expected_version",
                "ExpressionAttributeNames": {"#version": "version"},
                "ExpressionAttributeValues": {":expected_version": previous.version},
            }

        transact_items = [
            {
                "Put": {
                    "TableName": self.table.name,
                    "Item": {
                        "pk": f"BOOKING#{stored.booking_id}",
                        "sk": "DETAILS",
                        **attributes,
                    },
                    **details_condition,
                }
            },
            {
                "Put": {
                    "TableName": self.table.name,
                    "Item": {
                        "pk": f"USER#{stored.user_id}",
                        "sk": f"BOOKING#{stored.booking_id}",
                        **attributes,
                    },
                }
            },
            {
                "Put": {
                    "TableName": self.table.name,
                    "Item": {
                        "pk": f"ROOM#{stored.room_id}",
                        "sk": f"BOOKING#{stored.booking_id}",
                        **attributes,
                    },
                }
            },
            {
                "Put": {
                    "TableName": self.table.name,
                    "Item": {
                        "pk": ALL_BOOKINGS_PK,
                        "sk": f"BOOKING#{stored.booking_id}",
                        **attributes,
                    },
                }
            },
        ]

        if previous is not None and previous.room_id != stored.room_id:
            transact_items.append(
                {
                    "Delete": {
                        "TableName": self.table.name,
                        "Key": {
                            "pk": f"ROOM#{previous.room_id}",
                            "sk": f"BOOKING#{stored.booking_id}",
                        },
                    }
                }
            )

        if room_version is not None:
            transact_items.append(
                {
                    "Update": {
                        "TableName": self.table.name,
                        "Key": {"pk": f"ROOM#{stored.room_id}", "sk": "DETAILS"},
                        "UpdateExpression": "SET #booking_version = :next_version",
                        "ConditionExpression": (
                            "attribute_exists(pk) AND "
                            "(attribute_not_exists(#booking_version) "
                            "OR #booking_version = :seen_version)"
                        ),
                        "ExpressionAttributeNames": {
                            "#booking_version": "booking_version",
                        },
                        "ExpressionAttributeValues": {
                            ":seen_version": room_version,
                            ":next_version": room_version + 1,
                        },
                    }
                }
            )

        try:
            self.client.transact_write_items(TransactItems=transact_items)
        except ClientError as err:
            error = err.response.get("Error", {})
            reasons = [
                reason.get("Code")
                for reason in err.response.get("CancellationReasons", [])
                if reason.get("Code") not in (None, "None")
            ]
            if (
                error.get("Code") == "TransactionCanceledException"
                and RETRYABLE_CANCELLATION_CODES.intersection(reasons)
            ) or error.get("Code") == "TransactionConflictException":
                logger.warning(
                    f"Concurrent write on booking {stored.booking_id}: {reasons}"
                )
                raise ConcurrentWriteError("booking", stored.booking_id, reasons)
            logger.error(f"Error saving booking {stored.booking_id}: {err}")
            raise

        return stored

    def _query_all(self, key_condition, consistent: bool = False) -> List[dict]:
        params = {"KeyConditionExpression": key_condition}
        if consistent:
            params["ConsistentRead"] = True
        resp = self.table.query(**params)
        items = list(resp.get("Items", []))
        while "LastEvaluatedKey" in resp:
            resp = self.table.query(**params, ExclusiveStartKey=resp["LastEvaluatedKey"])
            items.extend(resp.get("Items", []))
        return items

    def find_by_room(self, room_id: str) -> List[Booking]:
        try:
            items = self._query_all(
                Key("pk").eq(f"ROOM#{room_id}") & Key("sk").begins_with("BOOKING#"),
                consistent=True,
            )
        except ClientError as err:
            logger.error(f"Error retrieving room {room_id} bookings: {err}")
            raise
        return [self._to_domain(item) for item in items]

    def get_user_bookings(self, user_id: str) -> List[Booking]:
        try:
            items = self._query_all(
                Key("pk").eq(f"USER#{user_id}") & Key("sk").begins_with("BOOKING#")
            )
        except ClientError as err:
            logger.error(f"Error retrieving user {user_id} bookings: {err}")
            raise
        return [self._to_domain(item) for item in items]

    def get_all_bookings(self) -> List[Booking]:
        try:
            items = self._query_all(
                Key("pk").eq(ALL_BOOKINGS_PK) & Key("sk").begins_with("BOOKING#")
            )
        except ClientError as err:
            logger.error(f"Error retrieving all bookings: {err}")
            raise
        return [self._to_domain(item) for item in items]

    def get_booking_by_id(self, booking_id: str) -> Optional[Booking]:
        try:
            response = self.table.get_item(
                Key={"pk": f"BOOKING#{booking_id}", "sk": "DETAILS"},
                ConsistentRead=True,
            )
        except ClientError as err:
            logger.error(f"Error retrieving booking {booking_id}: {err}")
            raise

        item = response.get("Item")
        if not item:
            return None
        return self._to_domain(item)

    @staticmethod
    def _to_domain(item: dict) -> Booking:
        return Booking(
            booking_id=item["booking_id"],
            user_id=item["user_id"],
            room_id=item["room_id"],
            check_in=from_iso_string(item["check_in"]),
            check_out=from_iso_string(item["check_out"]),
            total_price=Decimal(str(item["total_price"])),
            status=BookingStatus(item["booking_status"]),
            guest_name=item["guest_name"],
            guest_email=item["guest_email"],
            guest_phone=item["guest_phone"],
            special_requests=item.get("special_requests"),
            is_deleted=bool(item.get("is_deleted", False)),
            deleted_at=(
                from_iso_string(item["deleted_at"]) if item.get("deleted_at") else None
            ),
            version=int(item.get("version", 0)),
            created_at=from_iso_string(item["created_at"]),
            updated_at=(
                from_iso_string(item["updated_at"]) if item.get("updated_at") else None
            ),
        )

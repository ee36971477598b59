from dataclasses import dataclass
from decimal import Decimal


@dataclass
class Room:
    room_id: str
    price_per_night: Decimal
    is_deleted: bool = False
    booking_version: int = 0

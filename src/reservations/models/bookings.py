from enum import Enum
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional


class BookingStatus(str, Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"
    COMPLETED = "COMPLETED"

    @property
    def is_terminal(self) -> bool:
        return self in (BookingStatus.CANCELLED, BookingStatus.COMPLETED)


@dataclass
class Booking:
    booking_id: str
    user_id: str
    room_id: str
    check_in: datetime
    check_out: datetime
    guest_name: str
    guest_email: str
    guest_phone: str
    total_price: Decimal = Decimal("0")
    status: BookingStatus = BookingStatus.PENDING
    special_requests: Optional[str] = None

    is_deleted: bool = False
    deleted_at: Optional[datetime] = None
    version: int = 0

    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: Optional[datetime] = None

    @property
    def is_active(self) -> bool:
        """Whether the booking still holds its room for overlap purposes."""
        return not self.is_deleted and self.status != BookingStatus.CANCELLED

import re
from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from reservations.models.bookings import BookingStatus
from reservations.utils.constants import (
    MAX_GUEST_EMAIL_LENGTH,
    MAX_GUEST_NAME_LENGTH,
    MAX_GUEST_PHONE_LENGTH,
    MAX_SPECIAL_REQUESTS_LENGTH,
    MIN_GUEST_PHONE_LENGTH,
)
from reservations.utils.datetime_normaliser import to_utc

PHONE_REGEX = re.compile(r"^[0-9+\-(). ]+$")
MARKUP_REGEX = re.compile(
    r"<script|javascript:|onerror=|onload=|<iframe|eval\(|expression\(",
    re.IGNORECASE,
)


def _reject_markup(value: Optional[str]) -> Optional[str]:
    if value is not None and MARKUP_REGEX.search(value):
        raise ValueError("must not contain script or markup content")
    return value


class GuestDetails(BaseModel):
    """Contact snapshot stored on a booking."""

    guest_name: str = Field(max_length=MAX_GUEST_NAME_LENGTH)
    guest_email: EmailStr
    guest_phone: str = Field(
        min_length=MIN_GUEST_PHONE_LENGTH, max_length=MAX_GUEST_PHONE_LENGTH
    )
    special_requests: Optional[str] = Field(
        default=None, max_length=MAX_SPECIAL_REQUESTS_LENGTH
    )

    @field_validator("guest_name")
    @classmethod
    def validate_name(cls, v: str):
        if not v.strip():
            raise ValueError("guest name is required")
        return _reject_markup(v.strip())

    @field_validator("guest_email")
    @classmethod
    def validate_email_length(cls, v: str):
        if len(v) > MAX_GUEST_EMAIL_LENGTH:
            raise ValueError(f"email must be at most {MAX_GUEST_EMAIL_LENGTH} characters")
        return v

    @field_validator("guest_phone")
    @classmethod
    def validate_phone(cls, v: str):
        if not PHONE_REGEX.fullmatch(v):
            raise ValueError(
                "phone may only contain digits, spaces and the characters + - ( ) ."
            )
        if sum(c.isdigit() for c in v) < MIN_GUEST_PHONE_LENGTH:
            raise ValueError(f"phone must contain at least {MIN_GUEST_PHONE_LENGTH} digits")
        return v

    @field_validator("special_requests")
    @classmethod
    def validate_special_requests(cls, v: Optional[str]):
        return _reject_markup(v)


class _StayDates(BaseModel):
    @field_validator("check_in", "check_out", check_fields=False)
    @classmethod
    def normalize_date(cls, v: Optional[datetime]):
        if v is None:
            return v
        if v.tzinfo is None:
            raise ValueError("must include timezone info")
        return to_utc(v)


class BookingRequest(_StayDates):
    room_id: str = Field(min_length=1)
    check_in: datetime
    check_out: datetime
    guest_name: str
    guest_email: str
    guest_phone: str
    special_requests: Optional[str] = None


class BookingUpdateRequest(_StayDates):
    room_id: Optional[str] = Field(default=None, min_length=1)
    check_in: Optional[datetime] = None
    check_out: Optional[datetime] = None
    guest_name: Optional[str] = None
    guest_email: Optional[str] = None
    guest_phone: Optional[str] = None
    special_requests: Optional[str] = None


class StatusChangeRequest(BaseModel):
    status: BookingStatus

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, v):
        return v.upper() if isinstance(v, str) else v


class BookingView(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    booking_id: str
    room_id: str
    user_id: str
    check_in: datetime
    check_out: datetime
    total_price: Decimal
    status: BookingStatus
    guest_name: str
    guest_email: str
    guest_phone: str
    special_requests: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

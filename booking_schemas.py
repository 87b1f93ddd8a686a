from datetime import date, datetime
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

BookingStatus = Literal["unconfirmed", "checked-in", "checked-out"]
FilterOperator = Literal["eq", "neq", "gt", "gte", "lt", "lte"]


def _lenient_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    try:
        return int(str(value).strip())
    except ValueError:
        return None


def _lenient_date(value: Any) -> Optional[date]:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value.strip():
        try:
            return datetime.fromisoformat(value.strip()).date()
        except ValueError:
            return None
    return None


class Cabin(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str = ""
    regular_price: float = Field(0.0, ge=0)
    max_capacity: int = Field(1, gt=0)


class Settings(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    breakfast_price: float = Field(0.0, ge=0)  # per guest per night


class Country(BaseModel):
    name: str
    code: str
    flag: str  # image reference


class GuestCreate(BaseModel):
    full_name: str
    email: str = ""
    nationality: str = ""
    national_id: str = ""
    country_flag: str = ""


class Guest(GuestCreate):
    model_config = ConfigDict(from_attributes=True)

    id: int
    created_at: Optional[datetime] = None


class DraftReservation(BaseModel):
    """
    In-progress reservation edited by staff before commit.
    Raw fields are coerced leniently (blank or malformed input becomes None) so
    the draft never rejects an edit; validation happens on submit.
    The four derived fields are owned by DraftReservationManager.
    """

    # raw
    cabin_id: Optional[int] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    num_guests: Optional[int] = None
    has_breakfast: bool = False
    is_paid: bool = False
    status: BookingStatus = "unconfirmed"
    observations: str = ""

    # guest sub-fields
    full_name: str = ""
    email: str = ""
    nationality: str = ""
    national_id: str = ""
    country_flag: str = ""

    # derived
    num_nights: int = 0
    cabin_price: float = 0.0
    extras_price: float = 0.0
    total_price: float = 0.0

    @field_validator("cabin_id", "num_guests", mode="before")
    @classmethod
    def _coerce_int(cls, v):
        return _lenient_int(v)

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def _coerce_date(cls, v):
        return _lenient_date(v)

    @field_validator("observations", "full_name", "email", "nationality", "national_id", mode="before")
    @classmethod
    def _coerce_text(cls, v):
        return "" if v is None else v

    def guest(self) -> GuestCreate:
        return GuestCreate(
            full_name=self.full_name.strip(),
            email=self.email.strip(),
            nationality=self.nationality,
            national_id=self.national_id.strip(),
            country_flag=self.country_flag,
        )


class BookingCreate(BaseModel):
    guest_id: int
    cabin_id: int
    start_date: date
    end_date: date
    num_nights: int
    num_guests: int
    cabin_price: float
    extras_price: float
    total_price: float
    status: BookingStatus = "unconfirmed"
    has_breakfast: bool = False
    is_paid: bool = False
    observations: str = ""


class Booking(BookingCreate):
    model_config = ConfigDict(from_attributes=True)

    id: int
    created_at: Optional[datetime] = None


class BookingDetail(Booking):
    cabin: Optional[Cabin] = None
    guest: Optional[Guest] = None


class BookingRow(BaseModel):
    """One line of the bookings list."""

    id: int
    created_at: Optional[datetime] = None
    start_date: date
    end_date: date
    num_nights: int
    num_guests: int
    status: BookingStatus
    total_price: float
    cabin_name: Optional[str] = None
    guest_name: Optional[str] = None
    guest_email: Optional[str] = None


class BookingPage(BaseModel):
    rows: List[BookingRow]
    total_count: int


class QueryFilter(BaseModel):
    field: str
    operator: FilterOperator = "eq"
    value: Any


class SortBy(BaseModel):
    field: str
    direction: Literal["asc", "desc"] = "asc"


class OccupancySummary(BaseModel):
    booking_count: int
    total_sales: float
    checkin_count: int
    occupancy_rate: float

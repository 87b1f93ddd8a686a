from contextlib import asynccontextmanager
from datetime import date, timedelta
from typing import List, Literal, Optional

from fastapi import Depends, FastAPI, HTTPException, Query
from pydantic import BaseModel

from booking_errors import (
    BookingCreationFailed,
    BookingError,
    GuestCreationFailed,
    LoadError,
    NotFound,
    StoreError,
    SubmissionInProgress,
    ValidationError,
)
from booking_schemas import (
    Booking,
    BookingDetail,
    BookingPage,
    Cabin,
    Country,
    DraftReservation,
    OccupancySummary,
    QueryFilter,
    Settings,
    SortBy,
)
from config import configure_logging
from countries import CountryIndex
from draft_state import RAW_FIELDS, DraftReservationManager
from occupancy import confirmed_stays, summarize
from persistence.crud import SqlDataStore
from persistence.db import init_db
from txn_manager import BookingOrchestrator


COUNTRY_INDEX = CountryIndex()


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    # initialize DB (creates tables)
    init_db()
    yield


app = FastAPI(title="Cabin Booking API", version="1.0.0", lifespan=lifespan)


def get_store():
    return SqlDataStore()


def get_countries() -> CountryIndex:
    return COUNTRY_INDEX


class BookingPatch(BaseModel):
    status: Optional[Literal["unconfirmed", "checked-in", "checked-out"]] = None
    is_paid: Optional[bool] = None
    has_breakfast: Optional[bool] = None
    extras_price: Optional[float] = None
    total_price: Optional[float] = None
    observations: Optional[str] = None


def _http_error(exc: BookingError) -> HTTPException:
    """Map core failures onto status codes; every failure stays distinguishable."""
    if isinstance(exc, ValidationError):
        return HTTPException(status_code=422, detail={"message": exc.message, "errors": exc.errors})
    if isinstance(exc, NotFound):
        return HTTPException(status_code=404, detail=exc.message)
    if isinstance(exc, SubmissionInProgress):
        return HTTPException(status_code=409, detail=exc.message)
    if isinstance(exc, BookingCreationFailed):
        return HTTPException(
            status_code=502,
            detail={"message": exc.message, "error": "booking_creation_failed", "orphan_guest_id": exc.guest_id},
        )
    if isinstance(exc, GuestCreationFailed):
        return HTTPException(status_code=502, detail={"message": exc.message, "error": "guest_creation_failed"})
    if isinstance(exc, StoreError):
        return HTTPException(status_code=502, detail=exc.message)
    if isinstance(exc, LoadError):
        return HTTPException(status_code=503, detail=exc.message)
    return HTTPException(status_code=500, detail=exc.message)


def _parse_sort(sort_by: str) -> SortBy:
    # "start_date-desc" -> SortBy(field="start_date", direction="desc")
    field, _, direction = sort_by.rpartition("-")
    if not field or direction not in ("asc", "desc"):
        raise HTTPException(status_code=400, detail=f"Invalid sort_by: {sort_by}")
    return SortBy(field=field, direction=direction)


@app.get("/bookings", response_model=BookingPage)
def list_bookings(
    status: str = Query("all"),
    sort_by: str = Query("start_date-desc"),
    page: int = Query(1, ge=1),
    store: SqlDataStore = Depends(get_store),
):
    query_filter = None if status == "all" else QueryFilter(field="status", value=status)
    try:
        return store.query_bookings(filter=query_filter, sort_by=_parse_sort(sort_by), page=page)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except BookingError as exc:
        raise _http_error(exc)


@app.get("/bookings/{booking_id}", response_model=BookingDetail)
def get_booking(booking_id: int, store: SqlDataStore = Depends(get_store)):
    try:
        return store.get_booking(booking_id)
    except BookingError as exc:
        raise _http_error(exc)


@app.post("/bookings", response_model=Booking, status_code=201)
def create_booking(
    body: DraftReservation,
    store: SqlDataStore = Depends(get_store),
    countries: CountryIndex = Depends(get_countries),
):
    """
    Build a draft from the submitted raw fields against the current cabins and
    settings, then run the two-phase write. Derived prices sent by the client
    are ignored.
    """
    try:
        manager = DraftReservationManager(countries)
        token = manager.begin_load()
        manager.load_cabins(store.list_cabins(), token)
        manager.load_settings(store.get_settings(), token)
        submitted = body.model_dump(include=set(RAW_FIELDS), exclude_unset=True)
        for name, value in submitted.items():
            manager.set_field(name, value)

        booking = BookingOrchestrator(store, countries).submit(manager.snapshot())
    except BookingError as exc:
        raise _http_error(exc)

    manager.discard()
    return booking


@app.patch("/bookings/{booking_id}", response_model=Booking)
def update_booking(booking_id: int, patch: BookingPatch, store: SqlDataStore = Depends(get_store)):
    try:
        record = store.update("bookings", booking_id, patch.model_dump(exclude_unset=True, exclude_none=True))
    except BookingError as exc:
        raise _http_error(exc)
    return Booking.model_validate(record)


@app.delete("/bookings/{booking_id}", status_code=204)
def delete_booking(booking_id: int, store: SqlDataStore = Depends(get_store)):
    try:
        store.delete("bookings", booking_id)
    except BookingError as exc:
        raise _http_error(exc)


@app.get("/cabins", response_model=List[Cabin])
def list_cabins(store: SqlDataStore = Depends(get_store)):
    try:
        return store.list_cabins()
    except BookingError as exc:
        raise _http_error(exc)


@app.get("/settings", response_model=Settings)
def get_settings(store: SqlDataStore = Depends(get_store)):
    try:
        return store.get_settings()
    except BookingError as exc:
        raise _http_error(exc)


@app.get("/countries", response_model=List[Country])
def search_countries(q: str = Query(""), countries: CountryIndex = Depends(get_countries)):
    return countries.search(q)


@app.get("/dashboard", response_model=OccupancySummary)
def dashboard(last: int = Query(7, ge=1, le=365), store: SqlDataStore = Depends(get_store)):
    today = date.today()
    since = today - timedelta(days=last)
    try:
        bookings = store.get_bookings_after_date(since, today)
        stays = confirmed_stays(store.get_stays_after_date(since, today))
        cabin_count = len(store.list_cabins())
    except BookingError as exc:
        raise _http_error(exc)
    return summarize(bookings, stays, num_days=last, cabin_count=cabin_count)


@app.get("/activity/today", response_model=List[BookingDetail])
def today_activity(store: SqlDataStore = Depends(get_store)):
    try:
        return store.get_stays_today_activity(date.today())
    except BookingError as exc:
        raise _http_error(exc)

import logging
import operator
from contextlib import contextmanager
from datetime import date, datetime, time
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel
from sqlalchemy import and_, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import joinedload

from booking_errors import LoadError, NotFound, StoreError
from booking_schemas import (
    Booking,
    BookingDetail,
    BookingPage,
    BookingRow,
    Cabin,
    Settings,
    QueryFilter,
    SortBy,
)
from config import DEFAULT_BREAKFAST_PRICE, PAGE_SIZE
from .db import SessionLocal
from .models import BookingModel, CabinModel, GuestModel, SettingsModel

logger = logging.getLogger(__name__)

TABLES = {
    "cabins": CabinModel,
    "guests": GuestModel,
    "bookings": BookingModel,
    "settings": SettingsModel,
}

OPERATORS = {
    "eq": operator.eq,
    "neq": operator.ne,
    "gt": operator.gt,
    "gte": operator.ge,
    "lt": operator.lt,
    "lte": operator.le,
}


def page_range(page: int, page_size: int = PAGE_SIZE):
    """Inclusive row range for a 1-indexed page."""
    start = (page - 1) * page_size
    return start, start + page_size - 1


def row_to_dict(row) -> Dict[str, Any]:
    return {c.name: getattr(row, c.name) for c in row.__table__.columns}


def _model(table: str):
    try:
        return TABLES[table]
    except KeyError:
        raise ValueError(f"Unknown table: {table}")


def _column(model, field: str):
    if field not in model.__table__.columns:
        raise ValueError(f"Unknown column {model.__tablename__}.{field}")
    return getattr(model, field)


def _clean_record(model, record: Union[BaseModel, Dict[str, Any]]) -> Dict[str, Any]:
    data = record.model_dump() if isinstance(record, BaseModel) else dict(record)
    unknown = [k for k in data if k not in model.__table__.columns]
    if unknown:
        raise ValueError(f"Unknown column(s) for {model.__tablename__}: {', '.join(unknown)}")
    data.pop("id", None)
    return data


def _to_row(booking: BookingModel) -> BookingRow:
    return BookingRow(
        id=booking.id,
        created_at=booking.created_at,
        start_date=booking.start_date,
        end_date=booking.end_date,
        num_nights=booking.num_nights,
        num_guests=booking.num_guests,
        status=booking.status,
        total_price=booking.total_price,
        cabin_name=booking.cabin.name if booking.cabin else None,
        guest_name=booking.guest.full_name if booking.guest else None,
        guest_email=booking.guest.email if booking.guest else None,
    )


class SqlDataStore:
    """
    Data store backed by SQLAlchemy sessions.

    Writes raise StoreError and reads raise LoadError, both chained from the
    underlying SQLAlchemyError. There is no cross-record transaction in this
    contract: every insert/update/delete commits on its own.
    """

    def __init__(self, session_factory=SessionLocal):
        self.session_factory = session_factory

    @contextmanager
    def _session(self):
        db = self.session_factory()
        try:
            yield db
        finally:
            db.close()

    # ---- generic CRUD ----

    def insert(self, table: str, record) -> Dict[str, Any]:
        model = _model(table)
        data = _clean_record(model, record)
        with self._session() as db:
            try:
                row = model(**data)
                db.add(row)
                db.commit()
                db.refresh(row)
            except SQLAlchemyError as exc:
                db.rollback()
                logger.exception("Insert into %s failed", table)
                raise StoreError(f"{table} record could not be created: {exc}") from exc
            logger.info("Inserted %s id=%s", table, row.id)
            return row_to_dict(row)

    def update(self, table: str, record_id: int, patch) -> Dict[str, Any]:
        model = _model(table)
        data = _clean_record(model, patch)
        with self._session() as db:
            try:
                row = db.get(model, record_id)
                if row is None:
                    raise NotFound(table, record_id)
                for key, value in data.items():
                    setattr(row, key, value)
                db.commit()
                db.refresh(row)
            except SQLAlchemyError as exc:
                db.rollback()
                logger.exception("Update of %s id=%s failed", table, record_id)
                raise StoreError(f"{table} record could not be updated: {exc}") from exc
            return row_to_dict(row)

    def delete(self, table: str, record_id: int) -> None:
        model = _model(table)
        with self._session() as db:
            try:
                row = db.get(model, record_id)
                if row is None:
                    raise NotFound(table, record_id)
                db.delete(row)
                db.commit()
            except SQLAlchemyError as exc:
                db.rollback()
                logger.exception("Delete of %s id=%s failed", table, record_id)
                raise StoreError(f"{table} record could not be deleted: {exc}") from exc
        logger.info("Deleted %s id=%s", table, record_id)

    # ---- bookings list ----

    def query_bookings(
        self,
        filter: Optional[Union[QueryFilter, Dict[str, Any]]] = None,
        sort_by: Optional[Union[SortBy, Dict[str, Any]]] = None,
        page: Optional[int] = None,
    ) -> BookingPage:
        if isinstance(filter, dict):
            filter = QueryFilter.model_validate(filter)
        if isinstance(sort_by, dict):
            sort_by = SortBy.model_validate(sort_by)

        with self._session() as db:
            try:
                query = db.query(BookingModel).options(
                    joinedload(BookingModel.cabin), joinedload(BookingModel.guest)
                )
                if filter:
                    column = _column(BookingModel, filter.field)
                    query = query.filter(OPERATORS[filter.operator](column, filter.value))

                total_count = query.count()

                if sort_by:
                    column = _column(BookingModel, sort_by.field)
                    query = query.order_by(column.asc() if sort_by.direction == "asc" else column.desc())
                if page:
                    start, end = page_range(page)
                    query = query.offset(start).limit(end - start + 1)

                rows = [_to_row(b) for b in query.all()]
            except SQLAlchemyError as exc:
                logger.exception("Bookings query failed")
                raise LoadError("Bookings could not be loaded") from exc
        return BookingPage(rows=rows, total_count=total_count)

    def get_booking(self, booking_id: int) -> BookingDetail:
        with self._session() as db:
            try:
                row = (
                    db.query(BookingModel)
                    .options(joinedload(BookingModel.cabin), joinedload(BookingModel.guest))
                    .filter(BookingModel.id == booking_id)
                    .one_or_none()
                )
            except SQLAlchemyError as exc:
                logger.exception("Loading booking %s failed", booking_id)
                raise LoadError("Booking could not be loaded") from exc
            if row is None:
                raise NotFound("bookings", booking_id)
            return BookingDetail.model_validate(row)

    # ---- reference data ----

    def list_cabins(self) -> List[Cabin]:
        with self._session() as db:
            try:
                rows = db.query(CabinModel).order_by(CabinModel.id).all()
            except SQLAlchemyError as exc:
                logger.exception("Loading cabins failed")
                raise LoadError("Cabins could not be loaded") from exc
            return [Cabin.model_validate(r) for r in rows]

    def get_cabin(self, cabin_id: int) -> Optional[Cabin]:
        with self._session() as db:
            try:
                row = db.get(CabinModel, cabin_id)
            except SQLAlchemyError as exc:
                logger.exception("Loading cabin %s failed", cabin_id)
                raise LoadError("Cabin could not be loaded") from exc
            return Cabin.model_validate(row) if row else None

    def get_settings(self) -> Settings:
        with self._session() as db:
            try:
                row = db.query(SettingsModel).order_by(SettingsModel.id).first()
            except SQLAlchemyError as exc:
                logger.exception("Loading settings failed")
                raise LoadError("Settings could not be loaded") from exc
            if row is None:
                return Settings(breakfast_price=DEFAULT_BREAKFAST_PRICE)
            return Settings.model_validate(row)

    # ---- dashboard windows ----

    def get_bookings_after_date(self, since: date, today: Optional[date] = None) -> List[Booking]:
        """Bookings created between `since` and the end of today."""
        today = today or date.today()
        with self._session() as db:
            try:
                rows = (
                    db.query(BookingModel)
                    .filter(BookingModel.created_at >= datetime.combine(since, time.min))
                    .filter(BookingModel.created_at <= datetime.combine(today, time.max))
                    .all()
                )
            except SQLAlchemyError as exc:
                logger.exception("Loading recent bookings failed")
                raise LoadError("Bookings could not be loaded") from exc
            return [Booking.model_validate(r) for r in rows]

    def get_stays_after_date(self, since: date, today: Optional[date] = None) -> List[Booking]:
        """Stays starting between `since` and today."""
        today = today or date.today()
        with self._session() as db:
            try:
                rows = (
                    db.query(BookingModel)
                    .filter(BookingModel.start_date >= since)
                    .filter(BookingModel.start_date <= today)
                    .all()
                )
            except SQLAlchemyError as exc:
                logger.exception("Loading recent stays failed")
                raise LoadError("Stays could not be loaded") from exc
            return [Booking.model_validate(r) for r in rows]

    def get_stays_today_activity(self, today: Optional[date] = None) -> List[BookingDetail]:
        # Activity means a check in or a check out today
        today = today or date.today()
        with self._session() as db:
            try:
                rows = (
                    db.query(BookingModel)
                    .options(joinedload(BookingModel.cabin), joinedload(BookingModel.guest))
                    .filter(
                        or_(
                            and_(BookingModel.status == "unconfirmed", BookingModel.start_date == today),
                            and_(BookingModel.status == "checked-in", BookingModel.end_date == today),
                        )
                    )
                    .order_by(BookingModel.created_at)
                    .all()
                )
            except SQLAlchemyError as exc:
                logger.exception("Loading today's activity failed")
                raise LoadError("Bookings could not be loaded") from exc
            return [BookingDetail.model_validate(r) for r in rows]

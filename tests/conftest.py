from datetime import date

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from booking_errors import StoreError
from booking_schemas import Cabin, DraftReservation, Settings
from countries import CountryIndex
from persistence.crud import TABLES, SqlDataStore
from persistence.db import init_db


class FailingStore(SqlDataStore):
    """Store whose inserts into one table always fail."""

    def __init__(self, session_factory, fail_on):
        super().__init__(session_factory)
        self.fail_on = fail_on

    def insert(self, table, record):
        if table == self.fail_on:
            raise StoreError(f"{table} insert refused")
        return super().insert(table, record)


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool
    )
    init_db(engine)
    yield sessionmaker(bind=engine, autoflush=False, autocommit=False)
    engine.dispose()


@pytest.fixture
def store(session_factory):
    return SqlDataStore(session_factory)


@pytest.fixture
def failing_store(session_factory):
    def _make(fail_on):
        return FailingStore(session_factory, fail_on)
    return _make


@pytest.fixture
def cabins(store):
    rows = [
        store.insert("cabins", {"name": "001", "max_capacity": 4, "regular_price": 100.0}),
        store.insert("cabins", {"name": "002", "max_capacity": 2, "regular_price": 250.0}),
    ]
    return [Cabin.model_validate(r) for r in rows]


@pytest.fixture
def settings(store):
    store.insert("settings", {"breakfast_price": 15.0})
    return Settings(breakfast_price=15.0)


@pytest.fixture
def country_index():
    return CountryIndex()


@pytest.fixture
def make_draft(cabins):
    def _make(**overrides):
        data = dict(
            full_name="Ana Silva",
            email="ana@example.com",
            nationality="Portugal",
            country_flag="https://flagcdn.com/pt.svg",
            national_id="PT-123",
            cabin_id=cabins[0].id,
            start_date=date(2024, 1, 1),
            end_date=date(2024, 1, 4),
            num_guests=2,
            has_breakfast=True,
            num_nights=3,
            cabin_price=100.0,
            extras_price=90.0,
            total_price=390.0,
        )
        data.update(overrides)
        return DraftReservation(**data)
    return _make


@pytest.fixture
def add_booking(store, cabins):
    def _add(**overrides):
        guest = store.insert("guests", {"full_name": overrides.pop("guest_name", "Guest"), "email": "g@example.com"})
        data = dict(
            guest_id=guest["id"],
            cabin_id=cabins[0].id,
            start_date=date(2024, 1, 1),
            end_date=date(2024, 1, 3),
            num_nights=2,
            num_guests=1,
            cabin_price=100.0,
            extras_price=0.0,
            total_price=200.0,
            status="unconfirmed",
        )
        data.update(overrides)
        return store.insert("bookings", data)
    return _add


def count_rows(store, table):
    with store.session_factory() as db:
        return db.query(TABLES[table]).count()

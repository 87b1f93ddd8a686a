from datetime import date

import pytest

from booking_errors import BookingCreationFailed, GuestCreationFailed, SubmissionInProgress, ValidationError
from persistence.crud import SqlDataStore
from txn_manager import BookingOrchestrator

from conftest import count_rows


def test_submit_creates_guest_then_booking(store, make_draft):
    booking = BookingOrchestrator(store).submit(make_draft(observations="Anniversary"))

    assert booking.id is not None
    assert booking.created_at is not None
    assert (booking.num_nights, booking.cabin_price, booking.extras_price, booking.total_price) == (3, 100, 90, 390)
    assert booking.status == "unconfirmed"
    assert booking.observations == "Anniversary"
    assert count_rows(store, "guests") == 1
    assert count_rows(store, "bookings") == 1

    detail = store.get_booking(booking.id)
    assert detail.guest.id == booking.guest_id
    assert detail.guest.full_name == "Ana Silva"
    assert detail.guest.country_flag == "https://flagcdn.com/pt.svg"


def test_booking_uses_values_captured_at_submit(store, make_draft):
    # derived values are stored as given, never recomputed at commit
    booking = BookingOrchestrator(store).submit(make_draft(cabin_price=80.0, total_price=330.0))
    assert booking.cabin_price == 80.0
    assert booking.total_price == 330.0


def test_end_date_equal_to_start_date_is_rejected_without_writes(store, make_draft):
    draft = make_draft(end_date=date(2024, 1, 1))
    with pytest.raises(ValidationError) as exc_info:
        BookingOrchestrator(store).submit(draft)
    assert set(exc_info.value.errors) == {"end_date"}
    assert count_rows(store, "guests") == 0
    assert count_rows(store, "bookings") == 0


def test_missing_fields_are_all_reported(store, make_draft):
    draft = make_draft(full_name="  ", cabin_id=None, start_date=None, end_date=None, num_guests=None)
    with pytest.raises(ValidationError) as exc_info:
        BookingOrchestrator(store).submit(draft)
    assert set(exc_info.value.errors) == {"full_name", "cabin_id", "start_date", "end_date", "num_guests"}
    assert count_rows(store, "guests") == 0


@pytest.mark.parametrize("num_guests", [0, -1])
def test_guest_count_must_be_positive(store, make_draft, num_guests):
    with pytest.raises(ValidationError) as exc_info:
        BookingOrchestrator(store).submit(make_draft(num_guests=num_guests))
    assert "num_guests" in exc_info.value.errors


def test_guest_count_over_capacity(store, cabins, make_draft):
    with pytest.raises(ValidationError) as exc_info:
        BookingOrchestrator(store).submit(make_draft(cabin_id=cabins[1].id, num_guests=3))
    assert "at most 2 guests" in exc_info.value.errors["num_guests"]
    assert count_rows(store, "guests") == 0


def test_unknown_cabin(store, make_draft):
    with pytest.raises(ValidationError) as exc_info:
        BookingOrchestrator(store).submit(make_draft(cabin_id=999))
    assert "cabin_id" in exc_info.value.errors


def test_guest_failure_creates_nothing(failing_store, cabins, make_draft):
    store = failing_store("guests")
    draft = make_draft()
    with pytest.raises(GuestCreationFailed):
        BookingOrchestrator(store).submit(draft)
    assert count_rows(store, "guests") == 0
    assert count_rows(store, "bookings") == 0
    assert draft.full_name == "Ana Silva"


def test_booking_failure_leaves_orphan_guest(failing_store, cabins, make_draft):
    store = failing_store("bookings")
    with pytest.raises(BookingCreationFailed) as exc_info:
        BookingOrchestrator(store).submit(make_draft())
    assert count_rows(store, "guests") == 1
    assert count_rows(store, "bookings") == 0
    assert exc_info.value.guest_id is not None


def test_second_submit_while_pending_is_rejected(session_factory, cabins, make_draft):
    seen = []

    class ReentrantStore(SqlDataStore):
        def insert(self, table, record):
            if table == "guests":
                try:
                    orchestrator.submit(make_draft())
                except SubmissionInProgress as exc:
                    seen.append(exc)
            return super().insert(table, record)

    store = ReentrantStore(session_factory)
    orchestrator = BookingOrchestrator(store)
    orchestrator.submit(make_draft())

    assert len(seen) == 1
    assert count_rows(store, "guests") == 1
    assert count_rows(store, "bookings") == 1
    assert orchestrator.submitting is False


def test_orchestrator_is_reusable_after_failure(store, make_draft):
    orchestrator = BookingOrchestrator(store)
    with pytest.raises(ValidationError):
        orchestrator.submit(make_draft(full_name=""))
    assert orchestrator.submit(make_draft()).id is not None


def test_unknown_nationality_is_rejected_without_writes(store, make_draft):
    with pytest.raises(ValidationError) as exc_info:
        BookingOrchestrator(store).submit(make_draft(nationality="Atlantis", country_flag=""))
    assert set(exc_info.value.errors) == {"nationality"}
    assert count_rows(store, "guests") == 0


def test_empty_nationality_is_allowed(store, make_draft):
    booking = BookingOrchestrator(store).submit(make_draft(nationality="", country_flag=""))
    assert store.get_booking(booking.id).guest.nationality == ""


class BrokenStore(SqlDataStore):
    """Store whose inserts into one table fail with a non-store exception."""

    def __init__(self, session_factory, fail_on):
        super().__init__(session_factory)
        self.fail_on = fail_on

    def insert(self, table, record):
        if table == self.fail_on:
            raise RuntimeError("connection reset")
        return super().insert(table, record)


def test_unexpected_guest_insert_error_is_a_guest_failure(session_factory, cabins, make_draft):
    store = BrokenStore(session_factory, "guests")
    with pytest.raises(GuestCreationFailed) as exc_info:
        BookingOrchestrator(store).submit(make_draft())
    assert "connection reset" in exc_info.value.message
    assert isinstance(exc_info.value.__cause__, RuntimeError)
    assert count_rows(store, "guests") == 0


def test_unexpected_booking_insert_error_reports_orphan(session_factory, cabins, make_draft):
    store = BrokenStore(session_factory, "bookings")
    orchestrator = BookingOrchestrator(store)
    with pytest.raises(BookingCreationFailed) as exc_info:
        orchestrator.submit(make_draft())
    assert exc_info.value.guest_id is not None
    assert count_rows(store, "guests") == 1
    assert count_rows(store, "bookings") == 0
    assert orchestrator.submitting is False

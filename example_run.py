"""
Run this script to see a full booking flow against the configured database:
 - seed a few cabins and the breakfast setting (first run only)
 - open a draft, let the catalog "arrive" after the cabin is picked
 - submit it (guest -> booking)
 - print the bookings list and a 7-day occupancy summary
"""

from datetime import date, timedelta

from config import configure_logging
from countries import CountryIndex
from draft_state import DraftReservationManager
from occupancy import confirmed_stays, summarize
from persistence.crud import SqlDataStore
from persistence.db import init_db
from txn_manager import BookingOrchestrator


DEMO_CABINS = [
    {"name": "001", "max_capacity": 2, "regular_price": 250.0},
    {"name": "002", "max_capacity": 4, "regular_price": 350.0},
    {"name": "003", "max_capacity": 6, "regular_price": 500.0},
]


def seed(store: SqlDataStore):
    if store.list_cabins():
        return
    for cabin in DEMO_CABINS:
        store.insert("cabins", cabin)
    store.insert("settings", {"breakfast_price": 15.0})


def main(store: SqlDataStore = None, today: date = None):
    store = store or SqlDataStore()
    today = today or date.today()
    seed(store)

    manager = DraftReservationManager(CountryIndex())
    pending = manager.begin_load()

    # staff fill the form before the catalog has loaded
    manager.set_field("full_name", "Jonas Schmedtmann")
    manager.set_field("email", "jonas@example.com")
    manager.select_country("Portugal")
    manager.set_field("national_id", "3525436345")
    manager.set_field("start_date", today)
    manager.set_field("end_date", today + timedelta(days=3))
    manager.set_field("num_guests", 2)
    manager.set_field("has_breakfast", True)
    cabins = store.list_cabins()
    manager.select_cabin(cabins[0].id)
    print("Before catalog load:", manager.draft.total_price)

    manager.load_cabins(cabins, pending)
    manager.load_settings(store.get_settings(), pending)
    draft = manager.snapshot()
    print(f"Nights={draft.num_nights} cabin={draft.cabin_price} extras={draft.extras_price} total={draft.total_price}")

    booking = BookingOrchestrator(store).submit(draft)
    manager.discard()
    print(f"Created booking {booking.id} for guest {booking.guest_id}")

    page = store.query_bookings(sort_by={"field": "start_date", "direction": "desc"}, page=1)
    for row in page.rows:
        print(f"- {row.id}: {row.guest_name} in cabin {row.cabin_name}, {row.start_date} -> {row.end_date}, {row.total_price}")

    since = today - timedelta(days=7)
    summary = summarize(
        store.get_bookings_after_date(since, today),
        confirmed_stays(store.get_stays_after_date(since, today)),
        num_days=7,
        cabin_count=len(cabins),
    )
    print("Last 7 days:", summary.model_dump())
    return booking


if __name__ == "__main__":
    configure_logging()
    init_db()
    main()

from datetime import date, datetime, time, timedelta

import pytest
from fastapi.testclient import TestClient

from api.app import app, get_store

from conftest import count_rows

DRAFT = {
    "full_name": "Ana Silva",
    "email": "ana@example.com",
    "nationality": "Portugal",
    "national_id": "PT-123",
    "cabin_id": 1,
    "start_date": "2024-01-01",
    "end_date": "2024-01-04",
    "num_guests": 2,
    "has_breakfast": True,
}


@pytest.fixture
def client(store, cabins, settings):
    app.dependency_overrides[get_store] = lambda: store
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_create_booking_derives_prices_server_side(client, store):
    response = client.post("/bookings", json={**DRAFT, "total_price": 1, "cabin_price": 1})
    assert response.status_code == 201
    body = response.json()
    assert (body["num_nights"], body["cabin_price"], body["extras_price"], body["total_price"]) == (3, 100, 90, 390)
    assert body["status"] == "unconfirmed"

    detail = client.get(f"/bookings/{body['id']}").json()
    assert detail["guest"]["country_flag"] == "https://flagcdn.com/pt.svg"
    assert detail["cabin"]["name"] == "001"


def test_create_booking_validation_error(client, store):
    response = client.post("/bookings", json={**DRAFT, "end_date": "2024-01-01"})
    assert response.status_code == 422
    assert "end_date" in response.json()["detail"]["errors"]
    assert count_rows(store, "guests") == 0


def test_create_booking_unknown_country(client):
    response = client.post("/bookings", json={**DRAFT, "nationality": "Atlantis"})
    assert response.status_code == 422
    assert "nationality" in response.json()["detail"]["errors"]


def test_create_booking_reports_orphan_guest(client, failing_store):
    store = failing_store("bookings")
    app.dependency_overrides[get_store] = lambda: store
    response = client.post("/bookings", json=DRAFT)
    assert response.status_code == 502
    detail = response.json()["detail"]
    assert detail["error"] == "booking_creation_failed"
    assert detail["orphan_guest_id"] is not None
    assert count_rows(store, "guests") == 1
    assert count_rows(store, "bookings") == 0


def test_create_booking_guest_failure(client, failing_store):
    store = failing_store("guests")
    app.dependency_overrides[get_store] = lambda: store
    response = client.post("/bookings", json=DRAFT)
    assert response.status_code == 502
    assert response.json()["detail"]["error"] == "guest_creation_failed"


def test_list_bookings_with_filter_sort_and_page(client, add_booking):
    add_booking(status="unconfirmed", start_date=date(2024, 1, 1))
    add_booking(status="checked-in", start_date=date(2024, 2, 1))
    add_booking(status="checked-in", start_date=date(2024, 3, 1))

    response = client.get("/bookings", params={"status": "checked-in", "sort_by": "start_date-asc"})
    assert response.status_code == 200
    body = response.json()
    assert body["total_count"] == 2
    assert [r["start_date"] for r in body["rows"]] == ["2024-02-01", "2024-03-01"]

    assert client.get("/bookings").json()["total_count"] == 3
    assert client.get("/bookings", params={"page": 2}).json()["rows"] == []


def test_list_bookings_bad_sort(client):
    assert client.get("/bookings", params={"sort_by": "start_date"}).status_code == 400
    assert client.get("/bookings", params={"sort_by": "nope-asc"}).status_code == 400


def test_update_and_delete_booking(client, add_booking):
    booking = add_booking()
    response = client.patch(f"/bookings/{booking['id']}", json={"status": "checked-in", "is_paid": True})
    assert response.status_code == 200
    assert response.json()["status"] == "checked-in"
    assert response.json()["total_price"] == 200

    assert client.delete(f"/bookings/{booking['id']}").status_code == 204
    assert client.get(f"/bookings/{booking['id']}").status_code == 404
    assert client.delete(f"/bookings/{booking['id']}").status_code == 404


def test_patch_with_nulls_leaves_booking_unchanged(client, add_booking):
    booking = add_booking(status="checked-in", is_paid=True)
    response = client.patch(f"/bookings/{booking['id']}", json={"status": None, "is_paid": None, "observations": "VIP"})
    assert response.status_code == 200
    body = response.json()
    assert (body["status"], body["is_paid"], body["observations"]) == ("checked-in", True, "VIP")

    detail = client.get(f"/bookings/{booking['id']}")
    assert detail.status_code == 200
    assert detail.json()["status"] == "checked-in"


def test_reference_endpoints(client):
    assert [c["name"] for c in client.get("/cabins").json()] == ["001", "002"]
    assert client.get("/settings").json() == {"breakfast_price": 15.0}
    assert [c["name"] for c in client.get("/countries", params={"q": "port"}).json()] == ["Portugal"]


def test_dashboard_summary(client, add_booking):
    today = date.today()
    add_booking(created_at=datetime.combine(today, time(9)), total_price=200,
                status="checked-in", start_date=today - timedelta(days=2), end_date=today, num_nights=2)
    add_booking(created_at=datetime.combine(today - timedelta(days=1), time(9)), total_price=300,
                status="unconfirmed", start_date=today + timedelta(days=10), end_date=today + timedelta(days=12))

    response = client.get("/dashboard", params={"last": 7})
    assert response.status_code == 200
    assert response.json() == {
        "booking_count": 2,
        "total_sales": 500.0,
        "checkin_count": 1,
        "occupancy_rate": pytest.approx(2 / 14),
    }


def test_today_activity(client, add_booking):
    today = date.today()
    add_booking(guest_name="Arriving", status="unconfirmed", start_date=today, end_date=today + timedelta(days=2))
    add_booking(guest_name="Elsewhere", status="unconfirmed", start_date=today + timedelta(days=1),
                end_date=today + timedelta(days=2))

    response = client.get("/activity/today")
    assert response.status_code == 200
    assert [b["guest"]["full_name"] for b in response.json()] == ["Arriving"]

from typing import Any, Iterable, List, Mapping

from booking_schemas import OccupancySummary

CONFIRMED_STATUSES = ("checked-in", "checked-out")


def _get(item: Any, name: str, default=0):
    if isinstance(item, Mapping):
        return item.get(name, default)
    return getattr(item, name, default)


def confirmed_stays(stays: Iterable[Any]) -> List[Any]:
    """Stays where the guest actually arrived."""
    return [s for s in stays if _get(s, "status", None) in CONFIRMED_STATUSES]


def summarize(bookings: Iterable[Any], confirmed_stays: Iterable[Any], num_days: int, cabin_count: int) -> OccupancySummary:
    """
    Dashboard numbers for one reporting window. Callers pass windows that are
    already filtered; occupancy is booked nights over available cabin-nights.
    """
    bookings = list(bookings)
    stays = list(confirmed_stays)

    available_nights = (num_days or 0) * (cabin_count or 0)
    booked_nights = sum(_get(s, "num_nights") or 0 for s in stays)

    return OccupancySummary(
        booking_count=len(bookings),
        total_sales=sum(_get(b, "total_price") or 0 for b in bookings),
        checkin_count=len(stays),
        occupancy_rate=booked_nights / available_nights if available_nights > 0 else 0.0,
    )

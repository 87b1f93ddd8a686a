"""
Stay price calculation.

    nights  = ceil(end - start) in days, 0 when the range is empty or unknown
    extras  = nights * guests * breakfast rate   (only with breakfast)
    total   = nights * cabin rate + extras

Every function is total: missing or malformed input yields 0, never an error.
"""

import math
from datetime import date, datetime, time
from typing import Any, Dict, Optional

SECONDS_PER_DAY = 24 * 60 * 60


def _as_datetime(value: Any) -> Optional[datetime]:
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time.min)
    if isinstance(value, str) and value.strip():
        try:
            return datetime.fromisoformat(value.strip())
        except ValueError:
            return None
    return None


def _amount(value: Any) -> float:
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        amount = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(amount) or math.isinf(amount):
        return 0.0
    return amount


def compute_nights(start_date, end_date) -> int:
    start = _as_datetime(start_date)
    end = _as_datetime(end_date)
    if start is None or end is None:
        return 0
    try:
        seconds = (end - start).total_seconds()
    except TypeError:
        # naive vs aware datetimes
        return 0
    if seconds <= 0:
        return 0
    return math.ceil(seconds / SECONDS_PER_DAY)


def compute_extras_price(has_breakfast, num_nights, num_guests, breakfast_rate) -> float:
    if not has_breakfast:
        return 0.0
    return _amount(num_nights) * _amount(num_guests) * _amount(breakfast_rate)


def compute_total_price(num_nights, cabin_rate, extras_price) -> float:
    return _amount(num_nights) * _amount(cabin_rate) + _amount(extras_price)


def price_breakdown(start_date, end_date, cabin_rate, num_guests, has_breakfast, breakfast_rate) -> Dict[str, Any]:
    """All derived draft fields for one set of raw inputs."""
    num_nights = compute_nights(start_date, end_date)
    extras_price = compute_extras_price(has_breakfast, num_nights, num_guests, breakfast_rate)
    return {
        "num_nights": num_nights,
        "cabin_price": _amount(cabin_rate),
        "extras_price": extras_price,
        "total_price": compute_total_price(num_nights, cabin_rate, extras_price),
    }

import logging
import threading
from typing import Dict, Optional

from booking_errors import (
    BookingCreationFailed,
    GuestCreationFailed,
    SubmissionInProgress,
    ValidationError,
)
from booking_schemas import Booking, BookingCreate, DraftReservation, Guest
from countries import CountryIndex

logger = logging.getLogger(__name__)


class BookingOrchestrator:
    """
    Two-phase booking write (create guest -> create booking).
    The store must implement .insert(table, record) and .get_cabin(cabin_id).
    Any exception from .insert is reported as the failure of that phase.

    The store has no cross-record transaction, so a failure in the second
    phase leaves the guest from the first phase behind. That case is reported
    as BookingCreationFailed with the orphan guest id; nothing is rolled back.
    """

    def __init__(self, store, countries: Optional[CountryIndex] = None):
        self.store = store
        self.countries = countries if countries is not None else CountryIndex()
        self._in_flight = threading.Lock()

    @property
    def submitting(self) -> bool:
        return self._in_flight.locked()

    def validate(self, draft: DraftReservation) -> None:
        """
        Check the draft before any write. Raises ValidationError listing every
        problem found, keyed by field name.
        """
        errors: Dict[str, str] = {}

        if not draft.full_name.strip():
            errors["full_name"] = "Guest name is required"

        if draft.nationality and self.countries.get(draft.nationality) is None:
            errors["nationality"] = f"Unknown country: {draft.nationality}"

        if draft.start_date is None:
            errors["start_date"] = "Start date is required"
        if draft.end_date is None:
            errors["end_date"] = "End date is required"
        elif draft.start_date is not None and draft.end_date <= draft.start_date:
            errors["end_date"] = "End date must be after start date"

        if draft.num_guests is None or draft.num_guests < 1:
            errors["num_guests"] = "Number of guests must be a positive whole number"

        if draft.cabin_id is None:
            errors["cabin_id"] = "A cabin must be selected"
        else:
            cabin = self.store.get_cabin(draft.cabin_id)
            if cabin is None:
                errors["cabin_id"] = f"Cabin {draft.cabin_id} does not exist"
            elif "num_guests" not in errors and draft.num_guests > cabin.max_capacity:
                errors["num_guests"] = f"Cabin {cabin.name or cabin.id} holds at most {cabin.max_capacity} guests"

        if errors:
            raise ValidationError(errors)

    def submit(self, draft: DraftReservation) -> Booking:
        if not self._in_flight.acquire(blocking=False):
            raise SubmissionInProgress("A submission for this reservation is already in progress")
        try:
            # values are frozen here; later draft edits or catalog loads don't leak in
            snapshot = draft.model_copy(deep=True)
            self.validate(snapshot)
            guest = self._create_guest(snapshot)
            return self._create_booking(snapshot, guest)
        finally:
            self._in_flight.release()

    def _create_guest(self, draft: DraftReservation) -> Guest:
        try:
            record = self.store.insert("guests", draft.guest())
        except Exception as exc:
            logger.exception("Guest creation failed")
            raise GuestCreationFailed(f"Guest could not be created: {exc}") from exc
        guest = Guest.model_validate(record)
        logger.info("Created guest id=%s", guest.id)
        return guest

    def _create_booking(self, draft: DraftReservation, guest: Guest) -> Booking:
        booking = BookingCreate(
            guest_id=guest.id,
            cabin_id=draft.cabin_id,
            start_date=draft.start_date,
            end_date=draft.end_date,
            num_nights=draft.num_nights,
            num_guests=draft.num_guests,
            cabin_price=draft.cabin_price,
            extras_price=draft.extras_price,
            total_price=draft.total_price,
            status=draft.status,
            has_breakfast=draft.has_breakfast,
            is_paid=draft.is_paid,
            observations=draft.observations,
        )
        try:
            record = self.store.insert("bookings", booking)
        except Exception as exc:
            logger.exception("Booking creation failed, guest id=%s left without a booking", guest.id)
            raise BookingCreationFailed(f"Booking could not be created: {exc}", guest_id=guest.id) from exc
        created = Booking.model_validate(record)
        logger.info("Created booking id=%s for guest id=%s", created.id, guest.id)
        return created

from typing import Dict, Optional


class BookingError(Exception):
    """Base class for every failure the booking core reports."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class ValidationError(BookingError):
    """
    Malformed or missing draft fields. Raised before any write, so the user can
    correct the input and submit again.
    `errors` maps field name -> message, the way form errors are shown.
    """

    def __init__(self, errors: Dict[str, str]):
        self.errors = dict(errors)
        detail = "; ".join(f"{field}: {msg}" for field, msg in self.errors.items())
        super().__init__(f"Invalid booking data ({detail})")


class GuestCreationFailed(BookingError):
    """First write failed. Nothing was persisted; the whole submission is safe to retry."""


class BookingCreationFailed(BookingError):
    """
    Second write failed after the guest was created. The guest row stays in the
    store (orphan) and its id is kept here so an operator can reconcile it.
    """

    def __init__(self, message: str, guest_id: int):
        self.guest_id = guest_id
        super().__init__(message)


class SubmissionInProgress(BookingError):
    """A submit was attempted while another one for the same draft is pending."""


class DraftDiscarded(BookingError):
    """The draft was cancelled or committed and can no longer be edited."""


class StoreError(BookingError):
    """A write against the data store failed."""


class LoadError(BookingError):
    """Cabins, settings or bookings could not be loaded."""


class NotFound(LoadError):
    def __init__(self, table: str, record_id: Optional[int]):
        self.table = table
        self.record_id = record_id
        super().__init__(f"{table} {record_id} not found")

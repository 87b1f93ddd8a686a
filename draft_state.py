import logging
from typing import Dict, Iterable, List, Optional

from pydantic import ValidationError as PydanticValidationError

from booking_errors import DraftDiscarded, ValidationError
from booking_schemas import Cabin, Country, DraftReservation, Settings
from countries import CountryIndex
from stay_calculator import price_breakdown

logger = logging.getLogger(__name__)

PRICING_FIELDS = frozenset({"start_date", "end_date", "cabin_id", "num_guests", "has_breakfast"})
DERIVED_FIELDS = frozenset({"num_nights", "cabin_price", "extras_price", "total_price"})
# country_flag always follows nationality
RAW_FIELDS = frozenset(DraftReservation.model_fields) - DERIVED_FIELDS - {"country_flag"}


class DraftReservationManager:
    """
    Owns the reservation being created and keeps its derived price fields in
    step with the raw fields.

    Every mutation entry point (field edit, catalog or settings load, reset)
    ends with recompute(), so reading `draft` right after any call always
    gives prices matching the current inputs. Cabins and settings usually
    arrive after the form opens; until then the cabin rate and breakfast
    rate count as 0.

    Each fetch takes a token from begin_load(). A response whose token is
    older than one already applied for the same catalog is out of date and
    dropped. Everything arriving after discard() is dropped too; reset()
    leaves pending loads alone since the catalog outlives the draft.
    """

    def __init__(
        self,
        countries: CountryIndex,
        cabins: Optional[Iterable[Cabin]] = None,
        settings: Optional[Settings] = None,
    ):
        self.countries = countries
        self._cabins: Dict[int, Cabin] = {}
        self._settings = settings
        self._load_seq = 0
        self._applied: Dict[str, int] = {}
        self.discarded = False
        self.country_picker_open = False
        self.country_search = ""
        self.draft = DraftReservation()
        if cabins is not None:
            self._cabins = {c.id: c for c in cabins}
        self.recompute()

    # ---- catalog ----

    @property
    def cabins_loaded(self) -> bool:
        return bool(self._cabins)

    def begin_load(self) -> int:
        """Token to hand back to load_cabins / load_settings when the fetch resolves."""
        self._load_seq += 1
        return self._load_seq

    def _accepts(self, token: Optional[int], what: str) -> bool:
        if self.discarded:
            logger.debug("Dropping %s load for a discarded draft", what)
            return False
        if token is not None:
            latest = self._applied.get(what, 0)
            if token < latest:
                logger.debug("Dropping out-of-date %s load (token %s, applied %s)", what, token, latest)
                return False
            self._applied[what] = token
        return True

    def load_cabins(self, cabins: Iterable[Cabin], token: Optional[int] = None) -> bool:
        if not self._accepts(token, "cabins"):
            return False
        self._cabins = {c.id: c for c in cabins}
        self.recompute()
        return True

    def load_settings(self, settings: Settings, token: Optional[int] = None) -> bool:
        if not self._accepts(token, "settings"):
            return False
        self._settings = settings
        self.recompute()
        return True

    def selected_cabin(self) -> Optional[Cabin]:
        if self.draft.cabin_id is None:
            return None
        return self._cabins.get(self.draft.cabin_id)

    # ---- edits ----

    def _ensure_open(self):
        if self.discarded:
            raise DraftDiscarded("This reservation draft has been closed")

    def set_field(self, name: str, value) -> DraftReservation:
        self._ensure_open()
        if name in DERIVED_FIELDS or name == "country_flag":
            raise ValueError(f"{name} is computed and cannot be edited")
        if name not in RAW_FIELDS:
            raise ValueError(f"Unknown reservation field: {name}")
        if name == "nationality":
            return self.select_country(value)

        data = self.draft.model_dump()
        data[name] = value
        try:
            self.draft = DraftReservation.model_validate(data)
        except PydanticValidationError as exc:
            raise ValidationError({name: exc.errors()[0]["msg"]}) from exc
        if name in PRICING_FIELDS:
            self.recompute()
        return self.draft

    def select_cabin(self, cabin_id) -> DraftReservation:
        return self.set_field("cabin_id", cabin_id)

    def recompute(self) -> DraftReservation:
        cabin = self.selected_cabin()
        breakdown = price_breakdown(
            start_date=self.draft.start_date,
            end_date=self.draft.end_date,
            cabin_rate=cabin.regular_price if cabin else 0,
            num_guests=self.draft.num_guests,
            has_breakfast=self.draft.has_breakfast,
            breakfast_rate=self._settings.breakfast_price if self._settings else 0,
        )
        self.draft = self.draft.model_copy(update=breakdown)
        return self.draft

    # ---- country picker ----

    def open_country_picker(self):
        self._ensure_open()
        self.country_picker_open = True

    def close_country_picker(self):
        self.country_picker_open = False

    def search_countries(self, term: str) -> List[Country]:
        self.country_search = term or ""
        return self.countries.search(self.country_search)

    def select_country(self, name: Optional[str]) -> DraftReservation:
        self._ensure_open()
        name = (name or "").strip()
        if not name:
            nationality, flag = "", ""
        else:
            country = self.countries.get(name)
            if country is None:
                raise ValidationError({"nationality": f"Unknown country: {name}"})
            nationality, flag = country.name, country.flag

        self.draft = self.draft.model_copy(update={"nationality": nationality, "country_flag": flag})
        self.country_search = nationality
        self.country_picker_open = False
        return self.draft

    # ---- lifecycle ----

    def snapshot(self) -> DraftReservation:
        return self.draft.model_copy(deep=True)

    def reset(self) -> DraftReservation:
        self._ensure_open()
        self.draft = DraftReservation()
        self.country_picker_open = False
        self.country_search = ""
        return self.recompute()

    def discard(self):
        self.discarded = True
        self.country_picker_open = False

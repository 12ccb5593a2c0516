"""
Slot Search & Booking Flow
Two-phase protocol for a patient requesting an examination.

1. SEARCH: validate {date, examination_type}, ask the gateway for candidate
   slots. An empty answer is a normal "no availability" result.
2. COMMIT: book one candidate. A result set accepts a single booking; the
   patient must search again to book another slot.

The client does no overlap checking. Conflicts are the gateway's call and a
rejected booking is reported as a generic failure.
"""

import logging
from datetime import date
from typing import Any, Callable, Dict, List, Optional

from .events import Emit, OperationFailed, ReservationCreated, failure_message
from .gateway import GatewayError
from .models import EXAMINATION_TYPES, Examination, Patient, Reservation, parse_calendar_date

logger = logging.getLogger(__name__)

SEARCH_FIELDS = ("date", "examination_type")


# =============================================================================
# FIELD VALIDATION
# =============================================================================

def validate_search_date(value: Any, today: date) -> Optional[str]:
    """
    Validate the requested examination day.

    Rules:
    - must resolve to a calendar day
    - the end of that day must be after the start of today (today is allowed)
    - must be a working day (Monday to Friday)

    Returns:
        Error message, or None when valid
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        return "Date is required"
    day = parse_calendar_date(value)
    if day is None:
        return "Date must be a valid date"
    if day < today:
        return "Date must be in the future"
    if day.weekday() >= 5:
        return "Only working days are available for reservation"
    return None


def validate_examination_type(value: Any) -> Optional[str]:
    if value is None or value == "":
        return "Examination type is required"
    if value not in EXAMINATION_TYPES:
        return "Invalid examination type"
    return None


# =============================================================================
# FLOW
# =============================================================================

class SlotSearchFlow:
    """
    Search form state plus the candidate list for one acting patient.

    Args:
        gateway: Backend gateway
        patient: Acting patient the search and booking are scoped to
        emit: Receives ReservationCreated / OperationFailed outcomes
        today: Source of the current local day
    """

    def __init__(
        self,
        gateway,
        patient: Patient,
        emit: Emit,
        today: Callable[[], date] = date.today,
    ):
        self.gateway = gateway
        self.patient = patient
        self.emit = emit
        self._today = today

        self.entry: Dict[str, Any] = {"date": today().isoformat(), "examination_type": None}
        self.errors: Dict[str, Optional[str]] = {}
        self.global_error: Optional[str] = None

        self.examinations: List[Examination] = []
        self.has_searched = False
        self.booked: Optional[Reservation] = None

        self.is_loading = False
        self.is_committing = False

    # -------------------------------------------------------------------------
    # Form
    # -------------------------------------------------------------------------

    def validate_field(self, name: str, value: Any) -> Optional[str]:
        if name == "date":
            error = validate_search_date(value, self._today())
        elif name == "examination_type":
            error = validate_examination_type(value)
        else:
            raise KeyError(name)
        self.errors[name] = error
        return error

    def set_field(self, name: str, value: Any) -> Optional[str]:
        self.entry[name] = value
        return self.validate_field(name, value)

    def validate(self) -> bool:
        for name in SEARCH_FIELDS:
            self.validate_field(name, self.entry.get(name))
        return not any(self.errors.values())

    @property
    def can_submit(self) -> bool:
        if self.is_loading:
            return False
        if any(self.errors.values()):
            return False
        return all(self.entry.get(name) for name in SEARCH_FIELDS)

    @property
    def no_availability(self) -> bool:
        return self.has_searched and not self.examinations and self.global_error is None

    # -------------------------------------------------------------------------
    # Phase 1: search
    # -------------------------------------------------------------------------

    def search(self) -> bool:
        """
        Run a slot search with the current entry.

        Returns:
            True when the gateway answered (even with no slots)
        """
        if self.is_loading:
            logger.debug("Search already in flight, ignoring duplicate submit")
            return False
        if not self.validate():
            return False

        self.is_loading = True
        self.global_error = None
        day = parse_calendar_date(self.entry["date"])
        try:
            self.examinations = list(self.gateway.search_examinations(
                self.patient.id, day.isoformat(), self.entry["examination_type"]
            ))
            self.has_searched = True
            self.booked = None
            logger.info(
                "Found %d slot(s) for patient %s on %s", len(self.examinations), self.patient.id, day
            )
            return True
        except GatewayError as e:
            logger.error("Slot search failed: %s", e)
            self.global_error = failure_message("searching for available examinations")
            return False
        finally:
            self.is_loading = False

    # -------------------------------------------------------------------------
    # Phase 2: commit
    # -------------------------------------------------------------------------

    @property
    def can_commit(self) -> bool:
        return not (self.is_loading or self.is_committing or self.booked is not None)

    def commit(self, examination: Examination) -> Optional[Reservation]:
        """
        Book a candidate slot for the acting patient.

        Returns:
            The created Reservation, or None when booking was refused or failed
        """
        if not self.can_commit:
            logger.debug("Commit ignored: booking disabled for this result set")
            return None

        self.is_committing = True
        try:
            reservation = self.gateway.create_reservation(self.patient.id, examination)
        except GatewayError as e:
            logger.error("Booking failed: %s", e)
            self.emit(OperationFailed("booking", failure_message("booking the examination")))
            return None
        finally:
            self.is_committing = False

        self.booked = reservation
        logger.info("Reservation %s booked for patient %s", reservation.id, self.patient.id)
        self.emit(ReservationCreated(reservation))
        return reservation

    def set_patient(self, patient: Patient) -> None:
        """Switch the acting patient; results from the previous one are dropped."""
        if patient.id != self.patient.id:
            self.examinations = []
            self.has_searched = False
            self.booked = None
            self.global_error = None
        self.patient = patient

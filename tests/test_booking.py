"""
Slot Search & Booking Tests
"""

from datetime import date, datetime, timezone

import pytest

from conftest import TODAY, make_ambulance, make_examination, make_patient
from reservation.booking import SlotSearchFlow, validate_examination_type, validate_search_date
from reservation.events import OperationFailed, ReservationCreated
from reservation.models import Examination, format_instant


@pytest.fixture
def flow(gateway, outcomes):
    patient = make_patient()
    gateway.add(patient)
    return SlotSearchFlow(gateway, patient, outcomes.append, today=lambda: TODAY)


# =============================================================================
# VALIDATION
# =============================================================================

@pytest.mark.parametrize("value, error", [
    ("2025-03-10", None),                    # today, Monday
    (datetime(2025, 3, 10, 23, 59), None),   # late on a working day
    ("2025-03-14", None),
    ("2025-03-07", "Date must be in the future"),
    ("2025-03-15", "Only working days are available for reservation"),
    ("2025-03-16", "Only working days are available for reservation"),
    ("", "Date is required"),
    (None, "Date is required"),
    ("not a date", "Date must be a valid date"),
])
def test_validate_search_date(value, error):
    assert validate_search_date(value, TODAY) == error


def test_validate_examination_type():
    assert validate_examination_type("mri") is None
    assert validate_examination_type(None) == "Examination type is required"
    assert validate_examination_type("dental") == "Invalid examination type"


def test_entry_defaults_to_today(flow):
    assert flow.entry == {"date": "2025-03-10", "examination_type": None}
    assert not flow.can_submit


# =============================================================================
# SEARCH
# =============================================================================

def test_search_sends_day_and_type(flow, gateway):
    gateway.slots = [make_examination(), make_examination(examination_type="ct")]
    flow.set_field("date", "2025-03-11")
    flow.set_field("examination_type", "mri")
    assert flow.can_submit
    assert flow.search()
    assert gateway.calls[-1] == ("searchExaminations", "p1", "2025-03-11", "mri")
    assert len(flow.examinations) == 1
    assert not flow.is_loading


def test_invalid_entry_blocks_search(flow, gateway):
    flow.set_field("date", "2025-03-15")
    flow.set_field("examination_type", "mri")
    assert not flow.can_submit
    assert not flow.search()
    assert gateway.count("searchExaminations") == 0


def test_no_availability_is_not_an_error(flow):
    flow.set_field("examination_type", "ultrasound")
    assert flow.search()
    assert flow.examinations == []
    assert flow.no_availability
    assert flow.global_error is None


def test_duplicate_submit_while_loading_is_ignored(flow, gateway):
    flow.set_field("examination_type", "mri")
    nested = []
    gateway.before_call = lambda operation: nested.append(flow.search())
    assert flow.search()
    assert nested == [False]
    assert gateway.count("searchExaminations") == 1


def test_search_failure_sets_global_error(flow, gateway):
    gateway.failing.add("searchExaminations")
    flow.set_field("examination_type", "mri")
    assert not flow.search()
    assert flow.global_error == "An error occurred while searching for available examinations. Please try again."
    assert not flow.is_loading
    assert not flow.no_availability


# =============================================================================
# COMMIT
# =============================================================================

def test_commit_books_once_per_result_set(flow, gateway, outcomes):
    slot = make_examination()
    gateway.slots = [slot, make_examination(start="2025-03-11T10:00:00+00:00", end="2025-03-11T10:30:00+00:00")]
    flow.set_field("examination_type", "mri")
    flow.search()

    reservation = flow.commit(slot)
    assert outcomes == [ReservationCreated(reservation)]
    assert not flow.can_commit
    assert flow.commit(flow.examinations[1]) is None
    assert gateway.count("createReservation") == 1

    flow.search()
    assert flow.can_commit


def test_commit_keeps_candidate_instants_exact(flow, gateway):
    slot = Examination.from_api({
        "ambulance": make_ambulance().to_api(),
        "examinationType": "mri",
        "start": "2025-03-10T09:00:00Z",
        "end": "2025-03-10T09:30:00Z",
    })
    reservation = flow.commit(slot)
    assert reservation.start == datetime(2025, 3, 10, 9, 0, tzinfo=timezone.utc)
    assert format_instant(reservation.start) == "2025-03-10T09:00:00Z"
    assert format_instant(reservation.end) == "2025-03-10T09:30:00Z"


def test_commit_failure_emits_operation_failed(flow, gateway, outcomes):
    gateway.failing.add("createReservation")
    assert flow.commit(make_examination()) is None
    assert outcomes == [
        OperationFailed("booking", "An error occurred while booking the examination. Please try again.")
    ]
    assert flow.can_commit


def test_switching_patient_drops_results(flow, gateway):
    gateway.slots = [make_examination()]
    flow.set_field("examination_type", "mri")
    flow.search()
    flow.set_patient(make_patient("p2", "Petr", "Svoboda"))
    assert flow.examinations == []
    assert not flow.has_searched
    assert flow.patient.id == "p2"

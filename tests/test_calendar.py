"""
Reservation Calendar Tests
Surface lifecycle, event titles, detail panel and stale responses.
"""

import pytest

from conftest import make_ambulance, make_patient, make_reservation
from reservation.calendar import ReservationCalendar, to_calendar_event
from reservation.events import ReservationCreatedShown, ReservationDeleted, ReservationUpdated
from reservation.selection import NO_SELECTION, NoActingEntityError, Selection

AMBULANCE = make_ambulance()
PATIENT = make_patient()


@pytest.fixture
def calendar(gateway, surface_factory, outcomes):
    gateway.add(AMBULANCE, PATIENT, make_reservation("r1"), make_reservation("r2", examination_type="ct"))
    return ReservationCalendar(gateway, surface_factory, outcomes.append)


def test_event_title_is_counter_party():
    reservation = make_reservation()
    as_patient = to_calendar_event(reservation, Selection("patient", PATIENT))
    as_ambulance = to_calendar_event(reservation, Selection("ambulance", AMBULANCE))
    assert as_patient.title == "City Ambulance"
    assert as_ambulance.title == "Jana Novak"
    assert as_ambulance.description == "MRI"
    assert as_ambulance.start == reservation.start


def test_event_without_acting_entity_raises():
    with pytest.raises(NoActingEntityError):
        to_calendar_event(make_reservation(), NO_SELECTION)


def test_mount_renders_reservations(calendar, surface_log, gateway):
    calendar.mount(Selection("ambulance", AMBULANCE))
    surface = calendar.surface
    assert [entry[0] for entry in surface_log] == ["create", "render"]
    assert [e.id for e in surface.events] == ["r1", "r2"]
    assert surface.options.business_hours.open == "08:00"
    assert gateway.calls[-1] == ("getReservationsForAmbulance", "a1")


def test_patient_calendar_has_no_business_hours(calendar, gateway):
    calendar.mount(Selection("patient", PATIENT))
    assert calendar.surface.options.business_hours is None
    assert gateway.calls[-1] == ("getReservationsForPatient", "p1")


def test_click_opens_detail_and_close_is_idempotent(calendar):
    calendar.mount(Selection("ambulance", AMBULANCE))
    calendar.surface.click("r2")
    assert calendar.selected_reservation_id == "r2"
    assert calendar.close_detail()
    assert not calendar.close_detail()


def test_click_without_acting_entity_raises(calendar):
    with pytest.raises(NoActingEntityError):
        calendar.select_reservation("r1")


def test_detail_deletion_rebuilds_before_emitting(calendar, surface_log, gateway, outcomes):
    calendar.mount(Selection("ambulance", AMBULANCE))
    first = calendar.surface
    calendar.select_reservation("r1")
    del gateway.reservations["r1"]

    order = []
    calendar.emit = lambda outcome: order.append(("emit", outcome))
    surface_log.clear()
    calendar.apply_detail_outcome(ReservationDeleted("r1"))

    assert calendar.selected_reservation_id is None
    assert first.destroyed
    assert [entry[0] for entry in surface_log] == ["destroy", "create", "render"]
    assert [e.id for e in calendar.surface.events] == ["r2"]
    assert order == [("emit", ReservationDeleted("r1"))]


def test_detail_update_reloads(calendar, gateway):
    calendar.mount(Selection("patient", PATIENT))
    calendar.select_reservation("r1")
    before = gateway.count("getReservationsForPatient")
    calendar.apply_detail_outcome(ReservationUpdated(make_reservation(message="Fasting")))
    assert gateway.count("getReservationsForPatient") == before + 1
    assert calendar.selected_reservation_id is None


def test_switching_acting_entity_closes_detail_and_reloads(calendar, gateway, surface_log):
    calendar.mount(Selection("ambulance", AMBULANCE))
    calendar.select_reservation("r1")
    calendar.set_acting(Selection("patient", PATIENT))
    assert calendar.selected_reservation_id is None
    assert gateway.calls[-1] == ("getReservationsForPatient", "p1")
    assert sum(1 for entry in surface_log if entry[0] == "create") == 2


def test_same_acting_entity_does_not_reload(calendar, gateway):
    calendar.mount(Selection("ambulance", AMBULANCE))
    calendar.select_reservation("r1")
    calls = len(gateway.calls)
    calendar.set_acting(Selection("ambulance", AMBULANCE))
    assert len(gateway.calls) == calls
    assert calendar.selected_reservation_id == "r1"


def test_created_reservation_is_focused(calendar, outcomes):
    created = make_reservation("r2")
    calendar.mount(Selection("patient", PATIENT))
    calendar.show_created(created)
    assert calendar.surface.scrolled_to == created.start
    assert calendar.selected_reservation_id == "r2"
    assert outcomes == [ReservationCreatedShown("r2")]


def test_created_reservation_waits_for_load(calendar, outcomes):
    created = make_reservation("r2")
    calendar.show_created(created)
    assert outcomes == []
    calendar.mount(Selection("patient", PATIENT))
    assert calendar.selected_reservation_id == "r2"
    assert outcomes == [ReservationCreatedShown("r2")]


def test_load_failure_sets_error(calendar, gateway):
    gateway.failing.add("getReservationsForAmbulance")
    calendar.mount(Selection("ambulance", AMBULANCE))
    assert calendar.global_error == "An error occurred while loading reservations. Please try again."
    assert not calendar.is_loading


def test_stale_response_is_discarded(calendar, gateway):
    calendar.mount(Selection("ambulance", AMBULANCE))

    def unmount_mid_flight(operation):
        gateway.before_call = None
        calendar.unmount()

    gateway.before_call = unmount_mid_flight
    assert not calendar.load()
    assert calendar.surface is None
    assert not calendar.is_loading


def test_unmount_destroys_surface(calendar):
    calendar.mount(Selection("ambulance", AMBULANCE))
    surface = calendar.surface
    calendar.unmount()
    assert surface.destroyed
    assert calendar.surface is None

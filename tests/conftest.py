"""
Shared fakes and fixtures for the reservation console tests.
"""

import itertools
from datetime import date, datetime, timezone
from typing import Callable, Dict, List, Optional

import pytest

from reservation.gateway import GatewayError
from reservation.models import Ambulance, Examination, OfficeHours, Patient, Reservation
from reservation.navigation import MemoryNavigator
from reservation.shell import ReservationShell
from reservation.toast import ToastChannel

# Monday
TODAY = date(2025, 3, 10)


def make_ambulance(ambulance_id="a1", name="City Ambulance", examinations=("mri", "ct")) -> Ambulance:
    return Ambulance(
        id=ambulance_id,
        name=name,
        address="Main Street 1",
        medical_examinations=list(examinations),
        office_hours=OfficeHours("08:00", "16:00"),
    )


def make_patient(patient_id="p1", first_name="Jana", last_name="Novak") -> Patient:
    return Patient(
        id=patient_id,
        first_name=first_name,
        last_name=last_name,
        birthday="1990-05-01",
        sex="female",
    )


def make_examination(ambulance=None, examination_type="mri",
                     start="2025-03-11T09:00:00+00:00", end="2025-03-11T09:30:00+00:00") -> Examination:
    return Examination(
        ambulance=ambulance or make_ambulance(),
        examination_type=examination_type,
        start=datetime.fromisoformat(start),
        end=datetime.fromisoformat(end),
    )


def make_reservation(reservation_id="r1", ambulance=None, patient=None, examination_type="mri",
                     start=datetime(2025, 3, 11, 9, 0, tzinfo=timezone.utc),
                     end=datetime(2025, 3, 11, 9, 30, tzinfo=timezone.utc), message="") -> Reservation:
    return Reservation(
        id=reservation_id,
        ambulance=ambulance or make_ambulance(),
        patient=patient or make_patient(),
        examination_type=examination_type,
        start=start,
        end=end,
        message=message,
    )


class FakeGateway:
    """
    In-memory stand-in for ReservationGateway.

    Every call is appended to `calls`; operations named in `failing` raise
    GatewayError; `before_call` runs ahead of each operation.
    """

    def __init__(self):
        self.ambulances: Dict[str, Ambulance] = {}
        self.patients: Dict[str, Patient] = {}
        self.reservations: Dict[str, Reservation] = {}
        self.slots: List[Examination] = []
        self.calls: List[tuple] = []
        self.failing = set()
        self.before_call: Optional[Callable[[str], None]] = None
        self._ids = itertools.count(1)

    def _call(self, operation, *args):
        self.calls.append((operation,) + args)
        if self.before_call is not None:
            self.before_call(operation)
        if operation in self.failing:
            raise GatewayError(operation, "HTTP 500", 500)

    def count(self, operation) -> int:
        return sum(1 for call in self.calls if call[0] == operation)

    def add(self, *records):
        for record in records:
            if isinstance(record, Ambulance):
                self.ambulances[record.id] = record
            elif isinstance(record, Patient):
                self.patients[record.id] = record
            else:
                self.reservations[record.id] = record

    # Ambulances

    def list_ambulances(self):
        self._call("listAmbulances")
        return list(self.ambulances.values())

    def get_ambulance_by_id(self, ambulance_id):
        self._call("getAmbulanceById", ambulance_id)
        return self.ambulances[ambulance_id]

    def create_ambulance(self, fields):
        self._call("createAmbulance", fields)
        ambulance = Ambulance.from_api({**fields, "id": f"a{100 + next(self._ids)}"})
        self.ambulances[ambulance.id] = ambulance
        return ambulance

    def update_ambulance(self, ambulance_id, fields):
        self._call("updateAmbulance", ambulance_id, fields)
        ambulance = Ambulance.from_api({**fields, "id": ambulance_id})
        self.ambulances[ambulance_id] = ambulance
        return ambulance

    def delete_ambulance(self, ambulance_id):
        self._call("deleteAmbulance", ambulance_id)
        self.ambulances.pop(ambulance_id, None)

    # Patients

    def list_patients(self):
        self._call("listPatients")
        return list(self.patients.values())

    def get_patient_by_id(self, patient_id):
        self._call("getPatientById", patient_id)
        return self.patients[patient_id]

    def create_patient(self, fields):
        self._call("createPatient", fields)
        patient = Patient.from_api({**fields, "id": f"p{100 + next(self._ids)}"})
        self.patients[patient.id] = patient
        return patient

    def update_patient(self, patient_id, fields):
        self._call("updatePatient", patient_id, fields)
        patient = Patient.from_api({**fields, "id": patient_id})
        self.patients[patient_id] = patient
        return patient

    def delete_patient(self, patient_id):
        self._call("deletePatient", patient_id)
        self.patients.pop(patient_id, None)

    # Slots and booking

    def search_examinations(self, patient_id, date, examination_type):
        self._call("searchExaminations", patient_id, date, examination_type)
        return [s for s in self.slots if s.examination_type == examination_type]

    def create_reservation(self, patient_id, examination):
        self._call("createReservation", patient_id, examination)
        reservation = Reservation(
            id=f"r{100 + next(self._ids)}",
            ambulance=examination.ambulance,
            patient=self.patients[patient_id],
            examination_type=examination.examination_type,
            start=examination.start,
            end=examination.end,
        )
        self.reservations[reservation.id] = reservation
        return reservation

    # Reservations

    def get_reservations_for_ambulance(self, ambulance_id):
        self._call("getReservationsForAmbulance", ambulance_id)
        return [r for r in self.reservations.values() if r.ambulance.id == ambulance_id]

    def get_reservations_for_patient(self, patient_id):
        self._call("getReservationsForPatient", patient_id)
        return [r for r in self.reservations.values() if r.patient.id == patient_id]

    def get_reservation_by_id(self, reservation_id):
        self._call("getReservationById", reservation_id)
        if reservation_id not in self.reservations:
            raise GatewayError("getReservationById", "HTTP 404", 404)
        return self.reservations[reservation_id]

    def update_reservation(self, reservation_id, reservation):
        self._call("updateReservation", reservation_id, reservation)
        self.reservations[reservation_id] = reservation
        return reservation

    def delete_reservation(self, reservation_id):
        self._call("deleteReservation", reservation_id)
        self.reservations.pop(reservation_id, None)


class RecordingSurface:
    """Calendar surface that records every call into a shared log."""

    def __init__(self, options, log):
        self.options = options
        self.log = log
        self.events = []
        self.handler = None
        self.destroyed = False
        self.scrolled_to = None
        self.log.append(("create", self))

    def render(self, events):
        self.events = list(events)
        self.log.append(("render", self, len(self.events)))

    def destroy(self):
        self.destroyed = True
        self.log.append(("destroy", self))

    def on_event_click(self, handler):
        self.handler = handler

    def scroll_to(self, instant):
        self.scrolled_to = instant
        self.log.append(("scroll_to", self, instant))

    def click(self, event_id):
        self.handler(event_id)


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def outcomes():
    return []


@pytest.fixture
def surface_log():
    return []


@pytest.fixture
def surface_factory(surface_log):
    return lambda options: RecordingSurface(options, surface_log)


@pytest.fixture
def navigator():
    return MemoryNavigator("/")


@pytest.fixture
def alerts():
    return []


@pytest.fixture
def clock():
    class Clock:
        now = 0.0

        def __call__(self):
            return self.now

    return Clock()


@pytest.fixture
def shell(gateway, navigator, alerts, clock):
    return ReservationShell(gateway, navigator, alert=alerts.append, toasts=ToastChannel(3000, clock=clock))

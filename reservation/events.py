"""
Outcome Events
Typed notifications a view emits upward when one of its flows completes.

The root shell pattern-matches on the outcome class; payloads are fixed per
class so nothing downstream depends on ad hoc event names.
"""

from dataclasses import dataclass
from typing import Callable, Union

from .models import Ambulance, Patient, Reservation


@dataclass(frozen=True)
class AmbulanceCreated:
    ambulance: Ambulance


@dataclass(frozen=True)
class AmbulanceUpdated:
    ambulance: Ambulance


@dataclass(frozen=True)
class AmbulanceDeleted:
    ambulance_id: str
    name: str


@dataclass(frozen=True)
class PatientCreated:
    patient: Patient


@dataclass(frozen=True)
class PatientUpdated:
    patient: Patient


@dataclass(frozen=True)
class PatientDeleted:
    patient_id: str
    name: str  # formatted full name


@dataclass(frozen=True)
class ReservationCreated:
    reservation: Reservation


@dataclass(frozen=True)
class ReservationCreatedShown:
    """The calendar has focused the pending created reservation."""
    reservation_id: str


@dataclass(frozen=True)
class ReservationUpdated:
    reservation: Reservation


@dataclass(frozen=True)
class ReservationDeleted:
    reservation_id: str


@dataclass(frozen=True)
class OperationFailed:
    """A gateway call failed and the user should be told with a danger toast."""
    action: str
    message: str


Outcome = Union[
    AmbulanceCreated,
    AmbulanceUpdated,
    AmbulanceDeleted,
    PatientCreated,
    PatientUpdated,
    PatientDeleted,
    ReservationCreated,
    ReservationCreatedShown,
    ReservationUpdated,
    ReservationDeleted,
    OperationFailed,
]

Emit = Callable[[Outcome], None]


def failure_message(action: str) -> str:
    """Generic user-facing text for a failed gateway call."""
    return f"An error occurred while {action}. Please try again."

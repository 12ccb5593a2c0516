"""
Root Shell
Owns the session's coordination state and reacts to outcome events.

State held here (and nowhere else):
- the entity directory (every ambulance and patient)
- the acting selection
- the pending created reservation handed to the calendar
- the toast channel

Views emit outcomes upward through `handle()`; each outcome class maps to one
named transition that refreshes remote state, moves the route and writes a
toast.
"""

import logging
from typing import Callable, Dict, List, Optional, Tuple

from .directory import Alert, EntityDirectory
from .events import (
    AmbulanceCreated,
    AmbulanceDeleted,
    AmbulanceUpdated,
    OperationFailed,
    Outcome,
    PatientCreated,
    PatientDeleted,
    PatientUpdated,
    ReservationCreated,
    ReservationCreatedShown,
    ReservationDeleted,
    ReservationUpdated,
)
from .models import Ambulance, Entity, Patient, Reservation, entity_kind, examination_label, format_long_date
from .navigation import Navigator
from .routes import RouteMatch, entity_reference, home_path, profile_path, reservations_path, resolve, root_path
from .selection import Selection, SelectionState
from .toast import Toast, ToastChannel

logger = logging.getLogger(__name__)

# Redirects chain at most root -> home, so a handful of hops is plenty
MAX_REDIRECTS = 5


class ReservationShell:
    """
    Args:
        gateway: Backend gateway shared with every view
        navigator: Navigation capability (browser history or in-memory)
        alert: Blocking notice used when a directory refresh fails
        toasts: Toast channel
        base_url: Deployment base prefix for every route
    """

    def __init__(
        self,
        gateway,
        navigator: Navigator,
        alert: Alert,
        toasts: Optional[ToastChannel] = None,
        base_url: str = "",
    ):
        self.gateway = gateway
        self.navigator = navigator
        self.base_url = base_url
        self.directory = EntityDirectory(gateway, alert)
        self.selection_state = SelectionState()
        self.toasts = toasts or ToastChannel()
        self.created_reservation: Optional[Reservation] = None

        self._transitions: Dict[type, Callable] = {
            AmbulanceCreated: self.apply_ambulance_created,
            AmbulanceUpdated: self.apply_ambulance_updated,
            AmbulanceDeleted: self.apply_ambulance_deleted,
            PatientCreated: self.apply_patient_created,
            PatientUpdated: self.apply_patient_updated,
            PatientDeleted: self.apply_patient_deleted,
            ReservationCreated: self.apply_reservation_created,
            ReservationCreatedShown: self.apply_reservation_created_shown,
            ReservationUpdated: self.apply_reservation_updated,
            ReservationDeleted: self.apply_reservation_deleted,
            OperationFailed: self.apply_operation_failed,
        }

    # -------------------------------------------------------------------------
    # Startup and routing
    # -------------------------------------------------------------------------

    def start(self) -> None:
        """Initial load: fill the directory, then adopt a deep-linked entity."""
        self.directory.refresh_all()
        self.hydrate_from_path()

    def hydrate_from_path(self) -> Optional[Entity]:
        if not self.selection.is_empty:
            return None
        reference = entity_reference(self.navigator.current_path(), self.base_url)
        if reference is None:
            return None
        entity = self.directory.find(*reference)
        if entity is not None:
            logger.info("Deep link selects %s %s", *reference)
            self.selection_state.select(entity)
        return entity

    @property
    def selection(self) -> Selection:
        return self.selection_state.current

    def route(self) -> RouteMatch:
        """
        Resolve the current path, following redirects.

        Redirects replace the current history entry rather than adding one.
        """
        match = resolve(self.navigator.current_path(), self.selection, self.base_url)
        hops = 0
        while match.view == "redirect" and hops < MAX_REDIRECTS:
            self.navigator.replace(match.redirect)
            match = resolve(match.redirect, self.selection, self.base_url)
            hops += 1
        if match.view == "redirect":
            raise RuntimeError(f"redirect loop at {self.navigator.current_path()}")
        return match

    def push(self, path: str) -> None:
        self.navigator.push(path)

    # -------------------------------------------------------------------------
    # Selection
    # -------------------------------------------------------------------------

    def select_ambulance(self, ambulance: Ambulance) -> None:
        self.selection_state.select_ambulance(ambulance)

    def select_patient(self, patient: Patient) -> None:
        self.selection_state.select_patient(patient)

    def _is_acting(self, kind: str, entity_id: str) -> bool:
        return self.selection.kind == kind and self.selection.entity_id == entity_id

    def _reselect_if_acting(self, entity: Entity) -> None:
        if self._is_acting(entity_kind(entity), entity.id):
            self.selection_state.select(entity)

    def _clear_if_acting(self, kind: str, entity_id: str) -> None:
        if self._is_acting(kind, entity_id):
            logger.info("Acting %s %s was deleted", kind, entity_id)
            self.selection_state.clear()

    def detail_acting_kind(self, route: RouteMatch) -> str:
        """
        Identity a reservation detail route is viewed as.

        The acting selection decides edit rights; the kind named in the path
        is only used when nothing is selected.
        """
        if not self.selection.is_empty:
            return self.selection.kind
        return route.kind

    # -------------------------------------------------------------------------
    # Outcome handling
    # -------------------------------------------------------------------------

    def handle(self, outcome: Outcome) -> None:
        transition = self._transitions.get(type(outcome))
        if transition is None:
            raise TypeError(f"Unhandled outcome: {type(outcome).__name__}")
        logger.debug("[shell] %s", type(outcome).__name__)
        transition(outcome)

    def show_toast(self, message: str, variant: str = "success", description: Optional[str] = None) -> None:
        self.toasts.show(Toast(message=message, variant=variant, description=description))

    # Ambulance --------------------------------------------------------------

    def apply_ambulance_created(self, outcome: AmbulanceCreated) -> None:
        ambulance = outcome.ambulance
        self.directory.refresh_ambulances()
        self.selection_state.select_ambulance(ambulance)
        self.push(reservations_path("ambulance", ambulance.id, self.base_url))
        self.show_toast(f"Ambulance {ambulance.name} created")

    def apply_ambulance_updated(self, outcome: AmbulanceUpdated) -> None:
        self.directory.refresh_ambulances()
        self._reselect_if_acting(outcome.ambulance)
        self.show_toast(f"Ambulance {outcome.ambulance.name} updated")

    def apply_ambulance_deleted(self, outcome: AmbulanceDeleted) -> None:
        self.directory.refresh_ambulances()
        self._clear_if_acting("ambulance", outcome.ambulance_id)
        self.push(root_path(self.base_url))
        self.show_toast(f"Ambulance {outcome.name} deleted")

    # Patient ----------------------------------------------------------------

    def apply_patient_created(self, outcome: PatientCreated) -> None:
        patient = outcome.patient
        self.directory.refresh_patients()
        self.selection_state.select_patient(patient)
        self.push(reservations_path("patient", patient.id, self.base_url))
        self.show_toast(f"Patient {patient.display_name} created")

    def apply_patient_updated(self, outcome: PatientUpdated) -> None:
        self.directory.refresh_patients()
        self._reselect_if_acting(outcome.patient)
        self.show_toast(f"Patient {outcome.patient.display_name} updated")

    def apply_patient_deleted(self, outcome: PatientDeleted) -> None:
        self.directory.refresh_patients()
        self._clear_if_acting("patient", outcome.patient_id)
        self.push(root_path(self.base_url))
        self.show_toast(f"Patient {outcome.name} deleted")

    # Reservation ------------------------------------------------------------

    def apply_reservation_created(self, outcome: ReservationCreated) -> None:
        reservation = outcome.reservation
        self.push(reservations_path("patient", reservation.patient.id, self.base_url))
        self.created_reservation = reservation
        self.show_toast(
            f"Reservation for {examination_label(reservation.examination_type)} created",
            description=f"In ambulance {reservation.ambulance.name} on {format_long_date(reservation.start)}",
        )

    def apply_reservation_created_shown(self, outcome: ReservationCreatedShown) -> None:
        if self.created_reservation is not None and self.created_reservation.id == outcome.reservation_id:
            self.created_reservation = None

    def apply_reservation_updated(self, outcome: ReservationUpdated) -> None:
        self.show_toast("Reservation updated")

    def apply_reservation_deleted(self, outcome: ReservationDeleted) -> None:
        self.show_toast("Reservation deleted")

    def apply_operation_failed(self, outcome: OperationFailed) -> None:
        self.show_toast(outcome.message, variant="danger")

    # -------------------------------------------------------------------------
    # Header
    # -------------------------------------------------------------------------

    def home_path(self) -> str:
        return home_path(self.selection, self.base_url)

    def profile_path(self) -> str:
        selection = self.selection
        if selection.is_empty:
            return root_path(self.base_url)
        return profile_path(selection.kind, selection.entity_id, self.base_url)

    def header_identity(self) -> Optional[Tuple[str, str]]:
        """(display name, badge label) of the acting entity."""
        entity = self.selection.entity
        if entity is None:
            return None
        badge = "Ambulance" if self.selection.kind == "ambulance" else "Patient"
        return entity.display_name, badge

    def switcher_entries(self) -> List[Tuple[Entity, bool]]:
        """Every entity with whether it is the one currently acting (disabled)."""
        selection = self.selection
        entries: List[Tuple[Entity, bool]] = []
        for ambulance in self.directory.ambulances:
            entries.append((ambulance, selection.kind == "ambulance" and selection.entity_id == ambulance.id))
        for patient in self.directory.patients:
            entries.append((patient, selection.kind == "patient" and selection.entity_id == patient.id))
        return entries

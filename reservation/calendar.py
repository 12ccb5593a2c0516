"""
Reservation Calendar Sync
Keeps a calendar surface in step with the acting entity's reservations.

The calendar widget itself is opaque: anything with render / destroy /
on_event_click / scroll_to can be plugged in through a surface factory. This
module owns the surface lifecycle (destroy before recreate, destroy on
unmount), turns reservations into calendar events and tracks the reservation
whose detail panel is open.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, List, Optional, Protocol, Sequence, Tuple

from .events import Emit, Outcome, ReservationCreatedShown, ReservationDeleted, ReservationUpdated, failure_message
from .gateway import GatewayError
from .models import Reservation, examination_label
from .selection import NoActingEntityError, Selection

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CalendarEvent:
    id: str
    title: str
    description: str
    start: datetime
    end: datetime


@dataclass(frozen=True)
class BusinessHours:
    open: str
    close: str
    days_of_week: Tuple[int, ...] = (0, 1, 2, 3, 4)  # Monday..Friday


@dataclass(frozen=True)
class CalendarOptions:
    initial_view: str = "timeGridWeek"
    business_hours: Optional[BusinessHours] = None


class CalendarSurface(Protocol):
    def render(self, events: Sequence[CalendarEvent]) -> None: ...

    def destroy(self) -> None: ...

    def on_event_click(self, handler: Callable[[str], None]) -> None: ...

    def scroll_to(self, instant: datetime) -> None: ...


SurfaceFactory = Callable[[CalendarOptions], CalendarSurface]


def to_calendar_event(reservation: Reservation, selection: Selection) -> CalendarEvent:
    """
    Calendar event for one reservation, titled with the counter-party.

    Acting as a patient shows the ambulance name; acting as an ambulance
    shows the patient's full name.
    """
    if selection.kind == "patient":
        title = reservation.ambulance.display_name
    elif selection.kind == "ambulance":
        title = reservation.patient.display_name
    else:
        raise NoActingEntityError("calendar events need an acting ambulance or patient")
    return CalendarEvent(
        id=reservation.id,
        title=title,
        description=examination_label(reservation.examination_type),
        start=reservation.start,
        end=reservation.end,
    )


class ReservationCalendar:
    """
    Calendar view state for one mounted component instance.

    Args:
        gateway: Backend gateway
        surface_factory: Creates a fresh calendar surface
        emit: Receives outcomes re-emitted for the root shell
    """

    def __init__(self, gateway, surface_factory: SurfaceFactory, emit: Emit):
        self.gateway = gateway
        self.surface_factory = surface_factory
        self.emit = emit

        self.selection: Selection = Selection()
        self.surface: Optional[CalendarSurface] = None
        self.reservations: List[Reservation] = []
        self.selected_reservation_id: Optional[str] = None
        self.pending_created: Optional[Reservation] = None

        self.is_loading = False
        self.global_error: Optional[str] = None
        self._generation = 0

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def mount(self, selection: Selection) -> None:
        self.selection = selection
        self._reload()

    def set_acting(self, selection: Selection) -> None:
        """Acting entity changed: drop the open detail, rebuild, refetch."""
        if (selection.kind, selection.entity_id) == (self.selection.kind, self.selection.entity_id):
            self.selection = selection
            return
        logger.info(
            "Calendar switching from %s %s to %s %s",
            self.selection.kind, self.selection.entity_id, selection.kind, selection.entity_id,
        )
        self.selection = selection
        self.selected_reservation_id = None
        self._reload()

    def unmount(self) -> None:
        self._destroy_surface()
        # Late responses for this instance are dropped
        self._generation += 1
        self.is_loading = False

    def _destroy_surface(self) -> None:
        if self.surface is not None:
            self.surface.destroy()
            self.surface = None

    def _options(self) -> CalendarOptions:
        ambulance = self.selection.ambulance
        if ambulance is None:
            return CalendarOptions()
        hours = ambulance.office_hours
        return CalendarOptions(business_hours=BusinessHours(open=hours.open, close=hours.close))

    def _rebuild(self) -> None:
        self._destroy_surface()
        self.surface = self.surface_factory(self._options())
        self.surface.on_event_click(self.select_reservation)

    def _reload(self) -> None:
        self._rebuild()
        self.load()

    # -------------------------------------------------------------------------
    # Data
    # -------------------------------------------------------------------------

    def _fetch(self) -> List[Reservation]:
        selection = self.selection
        if selection.kind == "ambulance":
            return list(self.gateway.get_reservations_for_ambulance(selection.entity_id))
        if selection.kind == "patient":
            return list(self.gateway.get_reservations_for_patient(selection.entity_id))
        raise NoActingEntityError("cannot load reservations without an acting entity")

    def load(self) -> bool:
        """
        Fetch reservations for the acting entity and feed them to the surface.

        Returns:
            True when the fetched reservations were applied
        """
        self._generation += 1
        generation = self._generation
        self.is_loading = True
        self.global_error = None
        try:
            reservations = self._fetch()
        except GatewayError as e:
            logger.error("Could not load reservations: %s", e)
            if generation == self._generation:
                self.global_error = failure_message("loading reservations")
            return False
        finally:
            if generation == self._generation:
                self.is_loading = False

        if generation != self._generation or self.surface is None:
            logger.debug("Discarding stale reservations response (generation %d)", generation)
            return False

        self.reservations = reservations
        self.surface.render(self.events())
        if self.pending_created is not None:
            self._focus_created()
        return True

    def events(self) -> List[CalendarEvent]:
        return [to_calendar_event(r, self.selection) for r in self.reservations]

    # -------------------------------------------------------------------------
    # Detail panel
    # -------------------------------------------------------------------------

    def select_reservation(self, reservation_id: str) -> None:
        """Calendar click: open the detail panel for that reservation."""
        if self.selection.is_empty:
            raise NoActingEntityError("reservation clicked with no acting ambulance or patient")
        self.selected_reservation_id = reservation_id

    def close_detail(self) -> bool:
        """Close the detail panel. Returns False when it was already closed."""
        if self.selected_reservation_id is None:
            return False
        self.selected_reservation_id = None
        return True

    def show_created(self, reservation: Reservation) -> None:
        """
        Focus a reservation created elsewhere in the flow.

        The calendar scrolls to its start and opens its detail panel, once the
        surface holds fresh data.
        """
        self.pending_created = reservation
        if self.surface is not None and not self.is_loading:
            self._focus_created()

    def _focus_created(self) -> None:
        reservation = self.pending_created
        self.pending_created = None
        self.surface.scroll_to(reservation.start)
        self.selected_reservation_id = reservation.id
        self.emit(ReservationCreatedShown(reservation.id))

    def apply_detail_outcome(self, outcome: Outcome) -> None:
        """
        React to an outcome from the detail panel.

        Mutations close the panel, rebuild the surface and refetch before the
        outcome is passed up, so pre-mutation data is never shown.
        """
        if isinstance(outcome, (ReservationUpdated, ReservationDeleted)):
            self.selected_reservation_id = None
            self._reload()
        self.emit(outcome)

"""
Reservation Detail / Edit
One reservation's panel: view it, edit its message, delete it.

Only a patient acting on its own reservation may edit the message; an acting
ambulance sees the panel read-only. Either identity may delete, behind an
explicit confirmation step.
"""

import logging
from typing import Any, Optional

from .events import Emit, ReservationDeleted, ReservationUpdated, failure_message
from .gateway import GatewayError
from .models import Reservation

logger = logging.getLogger(__name__)

DELETE_PROMPT = "Do you want to remove this reservation?"


def validate_message(value: Any) -> Optional[str]:
    if value is not None and not isinstance(value, str):
        return "Message must be text"
    return None


class ReservationDetail:
    """
    Args:
        gateway: Backend gateway
        acting_kind: "patient" or "ambulance"
        emit: Receives ReservationUpdated / ReservationDeleted outcomes
    """

    def __init__(self, gateway, acting_kind: str, emit: Emit):
        self.gateway = gateway
        self.acting_kind = acting_kind
        self.emit = emit

        self.reservation_id: Optional[str] = None
        self.reservation: Optional[Reservation] = None
        self.message: str = ""
        self.errors: dict = {}
        self.global_error: Optional[str] = None

        self.is_loading = False
        self.load_failed = False
        self.is_delete_dialog_open = False
        self._generation = 0

    @property
    def can_edit(self) -> bool:
        return self.acting_kind == "patient"

    @property
    def can_submit(self) -> bool:
        return (
            self.can_edit
            and self.reservation is not None
            and not self.is_loading
            and not any(self.errors.values())
            and bool(self.message)
        )

    # -------------------------------------------------------------------------
    # Loading
    # -------------------------------------------------------------------------

    def set_reservation_id(self, reservation_id: str) -> None:
        """
        Mount or id change: load the named reservation.

        An id whose load failed is not fetched again until it changes or
        `reload()` is called explicitly.
        """
        if reservation_id == self.reservation_id and (self.reservation is not None or self.load_failed):
            return
        self.reservation_id = reservation_id
        self.reservation = None
        self.load_failed = False
        self.is_delete_dialog_open = False
        self.reload()

    def reload(self) -> bool:
        if not self.reservation_id:
            return False
        self._generation += 1
        generation = self._generation
        try:
            reservation = self.gateway.get_reservation_by_id(self.reservation_id)
        except GatewayError as e:
            if generation != self._generation:
                return False
            logger.error("Could not load reservation %s: %s", self.reservation_id, e)
            self.global_error = failure_message("loading the reservation")
            self.load_failed = True
            return False
        if generation != self._generation:
            return False
        self.reservation = reservation
        self.load_failed = False
        self.global_error = None
        self.message = reservation.message
        self.errors = {}
        return True

    # -------------------------------------------------------------------------
    # Edit
    # -------------------------------------------------------------------------

    def set_message(self, value: Any) -> Optional[str]:
        error = validate_message(value)
        self.errors["message"] = error
        if error is None:
            self.message = value or ""
        return error

    def submit(self) -> Optional[Reservation]:
        """
        Overwrite the whole reservation with the edited message.

        Returns:
            The updated reservation, or None when not allowed or failed
        """
        if not self.can_edit or self.reservation is None or self.is_loading:
            return None
        if any(self.errors.values()):
            return None

        self.is_loading = True
        self.global_error = None
        try:
            updated = self.gateway.update_reservation(
                self.reservation.id, self.reservation.with_message(self.message)
            )
        except GatewayError as e:
            logger.error("Could not update reservation %s: %s", self.reservation.id, e)
            self.global_error = failure_message("updating the reservation")
            return None
        finally:
            self.is_loading = False

        self.reload()
        self.emit(ReservationUpdated(updated))
        return updated

    # -------------------------------------------------------------------------
    # Delete
    # -------------------------------------------------------------------------

    def request_delete(self) -> None:
        self.is_delete_dialog_open = True

    def cancel_delete(self) -> None:
        self.is_delete_dialog_open = False

    def confirm_delete(self) -> bool:
        if not self.is_delete_dialog_open or self.is_loading or not self.reservation_id:
            return False

        self.is_loading = True
        self.global_error = None
        reservation_id = self.reservation_id
        try:
            self.gateway.delete_reservation(reservation_id)
        except GatewayError as e:
            logger.error("Could not delete reservation %s: %s", reservation_id, e)
            self.global_error = failure_message("deleting the reservation")
            return False
        finally:
            self.is_loading = False

        self.is_delete_dialog_open = False
        logger.info("Reservation %s deleted by %s", reservation_id, self.acting_kind)
        self.emit(ReservationDeleted(reservation_id))
        return True

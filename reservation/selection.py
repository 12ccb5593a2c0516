"""
Selection State
The single ambulance-or-patient identity a session is acting as.
"""

import logging
from dataclasses import dataclass
from typing import Literal, Optional

from .models import Ambulance, Entity, Patient

logger = logging.getLogger(__name__)

SelectionKind = Literal["ambulance", "patient", "none"]


class NoActingEntityError(RuntimeError):
    """An operation needed an acting ambulance or patient and had neither."""


@dataclass(frozen=True)
class Selection:
    kind: SelectionKind = "none"
    entity: Optional[Entity] = None

    @property
    def ambulance(self) -> Optional[Ambulance]:
        return self.entity if self.kind == "ambulance" else None

    @property
    def patient(self) -> Optional[Patient]:
        return self.entity if self.kind == "patient" else None

    @property
    def is_empty(self) -> bool:
        return self.kind == "none"

    @property
    def entity_id(self) -> Optional[str]:
        return self.entity.id if self.entity is not None else None


NO_SELECTION = Selection()


class SelectionState:
    """
    The identity the session is acting as.

    A single Selection value is stored, so acting as an ambulance and a
    patient at the same time cannot be represented.
    """

    def __init__(self) -> None:
        self._current: Selection = NO_SELECTION

    @property
    def current(self) -> Selection:
        return self._current

    @property
    def ambulance(self) -> Optional[Ambulance]:
        return self._current.ambulance

    @property
    def patient(self) -> Optional[Patient]:
        return self._current.patient

    def select_ambulance(self, ambulance: Ambulance) -> Selection:
        logger.debug("[selection] ambulance %s (from %s)", ambulance.id, self._current.kind)
        self._current = Selection("ambulance", ambulance)
        return self._current

    def select_patient(self, patient: Patient) -> Selection:
        logger.debug("[selection] patient %s (from %s)", patient.id, self._current.kind)
        self._current = Selection("patient", patient)
        return self._current

    def select(self, entity: Entity) -> Selection:
        if isinstance(entity, Ambulance):
            return self.select_ambulance(entity)
        return self.select_patient(entity)

    def clear(self) -> Selection:
        logger.debug("[selection] cleared (from %s)", self._current.kind)
        self._current = NO_SELECTION
        return self._current

    def require(self) -> Selection:
        """The current selection, raising when nothing is selected."""
        if self._current.is_empty:
            raise NoActingEntityError("no acting ambulance or patient is selected")
        return self._current

"""
Entity Directory
Cached lists of every ambulance and patient known to the gateway.

Refreshing never raises: a failed fetch is reported through the alert
callback and degrades to an empty list, so rendering always gets a list.
"""

import logging
from typing import Callable, List, Optional

from .gateway import GatewayError, ReservationGateway
from .models import Ambulance, Entity, Patient

logger = logging.getLogger(__name__)

Alert = Callable[[str], None]


class EntityDirectory:
    def __init__(self, gateway: ReservationGateway, alert: Alert):
        self.gateway = gateway
        self.alert = alert
        self.ambulances: List[Ambulance] = []
        self.patients: List[Patient] = []

    def refresh_ambulances(self) -> List[Ambulance]:
        try:
            self.ambulances = list(self.gateway.list_ambulances())
        except GatewayError as e:
            logger.error("Could not load ambulances: %s", e)
            self.alert(str(e))
            self.ambulances = []
        return self.ambulances

    def refresh_patients(self) -> List[Patient]:
        try:
            self.patients = list(self.gateway.list_patients())
        except GatewayError as e:
            logger.error("Could not load patients: %s", e)
            self.alert(str(e))
            self.patients = []
        return self.patients

    def refresh_all(self) -> None:
        self.refresh_ambulances()
        self.refresh_patients()

    def find_ambulance(self, ambulance_id: str) -> Optional[Ambulance]:
        return next((a for a in self.ambulances if a.id == ambulance_id), None)

    def find_patient(self, patient_id: str) -> Optional[Patient]:
        return next((p for p in self.patients if p.id == patient_id), None)

    def find(self, kind: str, entity_id: str) -> Optional[Entity]:
        if kind == "ambulance":
            return self.find_ambulance(entity_id)
        if kind == "patient":
            return self.find_patient(entity_id)
        return None

    @property
    def is_empty(self) -> bool:
        return not self.ambulances and not self.patients

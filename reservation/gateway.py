"""
Backend Gateway Client
Thin HTTP wrapper around the reservation service.

The gateway owns ambulances, patients and reservations; this client only
reads and mutates them. Every transport failure is raised as GatewayError so
callers have a single exception to catch at their boundary.

Usage:
    gateway = ReservationGateway("http://localhost:8080/api")
    ambulances = gateway.list_ambulances()
"""

import logging
from typing import Any, Dict, List, Optional

import requests

from .models import (
    Ambulance,
    Examination,
    Patient,
    Reservation,
    format_instant,
)

logger = logging.getLogger(__name__)


class GatewayError(Exception):
    """A gateway call failed (network, non-2xx status or unreadable body)."""

    def __init__(self, operation: str, message: str, status_code: Optional[int] = None):
        super().__init__(f"{operation}: {message}")
        self.operation = operation
        self.status_code = status_code


class ReservationGateway:
    """
    Client for the reservation service REST API.

    Args:
        api_base: Service root, e.g. "http://localhost:8080/api"
        timeout: Per-request timeout in seconds
        session: Optional pre-configured requests.Session
    """

    def __init__(self, api_base: str, timeout: float = 10.0, session: Optional[requests.Session] = None):
        self.api_base = api_base.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({
            "Accept": "application/json",
            "Content-Type": "application/json",
        })

    def _request(self, operation: str, method: str, path: str, payload: Optional[Dict[str, Any]] = None) -> Any:
        url = f"{self.api_base}{path}"
        logger.debug("%s %s (%s)", method, url, operation)
        try:
            response = self.session.request(method, url, json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error("%s failed: %s", operation, e)
            raise GatewayError(operation, str(e)) from e

        if not response.ok:
            logger.warning("%s returned HTTP %s", operation, response.status_code)
            raise GatewayError(operation, f"HTTP {response.status_code}", response.status_code)

        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise GatewayError(operation, "response is not valid JSON", response.status_code) from e

    def _one(self, operation: str, model, data: Any):
        try:
            return model.from_api(data)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            logger.error("%s returned a malformed %s: %s", operation, model.__name__, e)
            raise GatewayError(operation, f"malformed {model.__name__} in response") from e

    def _many(self, operation: str, model, data: Any) -> list:
        if not isinstance(data, list):
            raise GatewayError(operation, "expected a list in response")
        return [self._one(operation, model, item) for item in data]

    # -------------------------------------------------------------------------
    # Ambulances
    # -------------------------------------------------------------------------

    def list_ambulances(self) -> List[Ambulance]:
        return self._many("listAmbulances", Ambulance, self._request("listAmbulances", "GET", "/ambulances"))

    def get_ambulance_by_id(self, ambulance_id: str) -> Ambulance:
        data = self._request("getAmbulanceById", "GET", f"/ambulances/{ambulance_id}")
        return self._one("getAmbulanceById", Ambulance, data)

    def create_ambulance(self, fields: Dict[str, Any]) -> Ambulance:
        data = self._request("createAmbulance", "POST", "/ambulances", fields)
        return self._one("createAmbulance", Ambulance, data)

    def update_ambulance(self, ambulance_id: str, fields: Dict[str, Any]) -> Ambulance:
        data = self._request("updateAmbulance", "PUT", f"/ambulances/{ambulance_id}", fields)
        return self._one("updateAmbulance", Ambulance, data)

    def delete_ambulance(self, ambulance_id: str) -> None:
        self._request("deleteAmbulance", "DELETE", f"/ambulances/{ambulance_id}")

    # -------------------------------------------------------------------------
    # Patients
    # -------------------------------------------------------------------------

    def list_patients(self) -> List[Patient]:
        return self._many("listPatients", Patient, self._request("listPatients", "GET", "/patients"))

    def get_patient_by_id(self, patient_id: str) -> Patient:
        data = self._request("getPatientById", "GET", f"/patients/{patient_id}")
        return self._one("getPatientById", Patient, data)

    def create_patient(self, fields: Dict[str, Any]) -> Patient:
        data = self._request("createPatient", "POST", "/patients", fields)
        return self._one("createPatient", Patient, data)

    def update_patient(self, patient_id: str, fields: Dict[str, Any]) -> Patient:
        data = self._request("updatePatient", "PUT", f"/patients/{patient_id}", fields)
        return self._one("updatePatient", Patient, data)

    def delete_patient(self, patient_id: str) -> None:
        self._request("deletePatient", "DELETE", f"/patients/{patient_id}")

    # -------------------------------------------------------------------------
    # Slot search and booking
    # -------------------------------------------------------------------------

    def search_examinations(self, patient_id: str, date: str, examination_type: str) -> List[Examination]:
        data = self._request(
            "searchExaminations",
            "POST",
            f"/patients/{patient_id}/examinations",
            {"date": date, "examinationType": examination_type},
        )
        return self._many("searchExaminations", Examination, data)

    def create_reservation(self, patient_id: str, examination: Examination) -> Reservation:
        # Candidate instants go out exactly as they came in
        payload = {
            "ambulanceId": examination.ambulance.id,
            "examinationType": examination.examination_type,
            "start": format_instant(examination.start),
            "end": format_instant(examination.end),
            "patientId": patient_id,
        }
        data = self._request("createReservation", "POST", f"/patients/{patient_id}/reservations", payload)
        return self._one("createReservation", Reservation, data)

    # -------------------------------------------------------------------------
    # Reservations
    # -------------------------------------------------------------------------

    def get_reservations_for_ambulance(self, ambulance_id: str) -> List[Reservation]:
        data = self._request(
            "getReservationsForAmbulance", "GET", f"/ambulances/{ambulance_id}/reservations"
        )
        return self._many("getReservationsForAmbulance", Reservation, data)

    def get_reservations_for_patient(self, patient_id: str) -> List[Reservation]:
        data = self._request("getReservationsForPatient", "GET", f"/patients/{patient_id}/reservations")
        return self._many("getReservationsForPatient", Reservation, data)

    def get_reservation_by_id(self, reservation_id: str) -> Reservation:
        data = self._request("getReservationById", "GET", f"/reservations/{reservation_id}")
        return self._one("getReservationById", Reservation, data)

    def update_reservation(self, reservation_id: str, reservation: Reservation) -> Reservation:
        data = self._request(
            "updateReservation", "PUT", f"/reservations/{reservation_id}", reservation.to_api()
        )
        return self._one("updateReservation", Reservation, data)

    def delete_reservation(self, reservation_id: str) -> None:
        self._request("deleteReservation", "DELETE", f"/reservations/{reservation_id}")

"""
Profile Forms
Create / view / edit / delete forms for ambulances and patients.

Plain validated forms: each field has a validator, submission is blocked
while any field error is present, and each completed mutation is reported as
an outcome event. Once a profile has an id, its identifying fields are
read-only.
"""

import logging
import re
from datetime import date
from typing import Any, Callable, Dict, Optional

from .events import (
    AmbulanceCreated,
    AmbulanceDeleted,
    AmbulanceUpdated,
    Emit,
    PatientCreated,
    PatientDeleted,
    PatientUpdated,
    failure_message,
)
from .gateway import GatewayError
from .models import EXAMINATION_TYPES, SEX_TYPES, format_full_name, parse_calendar_date

logger = logging.getLogger(__name__)

TIME_REGEX = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")


# =============================================================================
# FIELD VALIDATORS
# =============================================================================

def _required(label: str) -> Callable[[Any], Optional[str]]:
    def check(value: Any) -> Optional[str]:
        if value is None or not str(value).strip():
            return f"{label} is required"
        return None
    return check


def validate_office_time(label: str) -> Callable[[Any], Optional[str]]:
    def check(value: Any) -> Optional[str]:
        if not value:
            return f"{label} is required"
        if not TIME_REGEX.match(str(value)):
            return "Invalid time format. Expected HH:MM in 24-hour format."
        return None
    return check


def validate_examinations(value: Any) -> Optional[str]:
    if not value:
        return "Medical examinations are required"
    unknown = [v for v in value if v not in EXAMINATION_TYPES]
    if unknown:
        return f"Unknown examination type: {', '.join(unknown)}"
    return None


def is_close_after_open(open_time: str, close_time: str) -> bool:
    open_hour, open_minute = (int(part) for part in open_time.split(":"))
    close_hour, close_minute = (int(part) for part in close_time.split(":"))
    return (close_hour, close_minute) > (open_hour, open_minute)


def validate_birthday(value: Any, today: date) -> Optional[str]:
    if not value:
        return "Birthday is required"
    day = parse_calendar_date(value)
    if day is None:
        return "Birthday must be a valid date"
    if day >= today:
        return "Birthday must be in the past"
    return None


def validate_sex(value: Any) -> Optional[str]:
    if not value:
        return "Sex is required"
    if value not in SEX_TYPES:
        return "Invalid sex"
    return None


# =============================================================================
# FORMS
# =============================================================================

class ProfileForm:
    """Shared create/update/delete cycle; subclasses define fields and calls."""

    noun = "profile"
    locked_when_saved: tuple = ()

    def __init__(self, gateway, emit: Emit, entity_id: Optional[str] = None):
        self.gateway = gateway
        self.emit = emit
        self.entity_id = entity_id

        self.entry: Dict[str, Any] = self.blank_entry()
        self.errors: Dict[str, Optional[str]] = {}
        self.global_error: Optional[str] = None
        self.is_loading = False
        self.is_delete_dialog_open = False

    # Subclass hooks ---------------------------------------------------------

    def blank_entry(self) -> Dict[str, Any]:
        raise NotImplementedError

    def validators(self) -> Dict[str, Callable[[Any], Optional[str]]]:
        raise NotImplementedError

    def _fetch(self):
        raise NotImplementedError

    def _fill(self, entity) -> None:
        raise NotImplementedError

    def _payload(self) -> Dict[str, Any]:
        raise NotImplementedError

    def _save(self, payload: Dict[str, Any]):
        raise NotImplementedError

    def _remove(self) -> None:
        raise NotImplementedError

    def _saved_outcome(self, entity, created: bool):
        raise NotImplementedError

    def _deleted_outcome(self):
        raise NotImplementedError

    def check_form(self) -> Optional[str]:
        """Cross-field check run on submit; returns a form-level error."""
        return None

    # Form -------------------------------------------------------------------

    @property
    def is_profile(self) -> bool:
        return self.entity_id is not None

    def is_locked(self, name: str) -> bool:
        return self.is_profile and name in self.locked_when_saved

    def load(self) -> bool:
        if not self.entity_id:
            return False
        try:
            entity = self._fetch()
        except GatewayError as e:
            logger.error("Could not load %s %s: %s", self.noun, self.entity_id, e)
            self.global_error = failure_message(f"loading the {self.noun}")
            return False
        self._fill(entity)
        return True

    def set_field(self, name: str, value: Any) -> Optional[str]:
        if self.is_locked(name):
            return self.errors.get(name)
        self.entry[name] = value
        error = self.validators()[name](value)
        self.errors[name] = error
        return error

    def validate(self) -> bool:
        for name, check in self.validators().items():
            self.errors[name] = check(self.entry.get(name))
        return not any(self.errors.values())

    @property
    def can_submit(self) -> bool:
        return not self.is_loading and not any(self.errors.values())

    def submit(self):
        if self.is_loading or not self.validate():
            return None
        self.global_error = self.check_form()
        if self.global_error:
            return None

        action = "updating" if self.is_profile else "creating"
        self.is_loading = True
        try:
            entity = self._save(self._payload())
        except GatewayError as e:
            logger.error("Could not save %s: %s", self.noun, e)
            self.global_error = failure_message(f"{action} the {self.noun}")
            return None
        finally:
            self.is_loading = False

        created = not self.is_profile
        self.emit(self._saved_outcome(entity, created))
        return entity

    # Delete -----------------------------------------------------------------

    def request_delete(self) -> None:
        if self.is_profile:
            self.is_delete_dialog_open = True

    def cancel_delete(self) -> None:
        self.is_delete_dialog_open = False

    def confirm_delete(self) -> bool:
        if not self.is_profile or not self.is_delete_dialog_open or self.is_loading:
            return False
        self.is_loading = True
        try:
            self._remove()
        except GatewayError as e:
            logger.error("Could not delete %s %s: %s", self.noun, self.entity_id, e)
            self.global_error = failure_message(f"deleting the {self.noun}")
            return False
        finally:
            self.is_loading = False
        self.is_delete_dialog_open = False
        self.emit(self._deleted_outcome())
        return True


class AmbulanceForm(ProfileForm):
    noun = "ambulance"
    locked_when_saved = ("name", "address")

    def blank_entry(self) -> Dict[str, Any]:
        return {"name": "", "address": "", "medical_examinations": [], "open": "08:00", "close": "16:00"}

    def validators(self):
        return {
            "name": _required("Name"),
            "address": _required("Address"),
            "medical_examinations": validate_examinations,
            "open": validate_office_time("Open time"),
            "close": validate_office_time("Close time"),
        }

    def check_form(self) -> Optional[str]:
        if not is_close_after_open(self.entry["open"], self.entry["close"]):
            return "Close time must be after open time."
        return None

    def _fetch(self):
        return self.gateway.get_ambulance_by_id(self.entity_id)

    def _fill(self, ambulance) -> None:
        self.entry = {
            "name": ambulance.name,
            "address": ambulance.address,
            "medical_examinations": list(ambulance.medical_examinations),
            "open": ambulance.office_hours.open,
            "close": ambulance.office_hours.close,
        }

    def _payload(self) -> Dict[str, Any]:
        payload = {
            "name": self.entry["name"].strip(),
            "address": self.entry["address"].strip(),
            "medicalExaminations": list(self.entry["medical_examinations"]),
            "officeHours": {"open": self.entry["open"], "close": self.entry["close"]},
        }
        if self.entity_id:
            payload["id"] = self.entity_id
        return payload

    def _save(self, payload):
        if self.entity_id:
            return self.gateway.update_ambulance(self.entity_id, payload)
        return self.gateway.create_ambulance(payload)

    def _remove(self) -> None:
        self.gateway.delete_ambulance(self.entity_id)

    def _saved_outcome(self, ambulance, created: bool):
        return AmbulanceCreated(ambulance) if created else AmbulanceUpdated(ambulance)

    def _deleted_outcome(self):
        return AmbulanceDeleted(self.entity_id, self.entry["name"])


class PatientForm(ProfileForm):
    noun = "patient"
    locked_when_saved = ("first_name", "last_name", "birthday", "sex")

    def __init__(self, gateway, emit: Emit, entity_id: Optional[str] = None,
                 today: Callable[[], date] = date.today):
        self._today = today
        super().__init__(gateway, emit, entity_id)

    def blank_entry(self) -> Dict[str, Any]:
        return {"first_name": "", "last_name": "", "birthday": "", "sex": None, "bio": ""}

    def validators(self):
        return {
            "first_name": _required("First name"),
            "last_name": _required("Last name"),
            "birthday": lambda value: validate_birthday(value, self._today()),
            "sex": validate_sex,
            "bio": lambda value: None,
        }

    def _fetch(self):
        return self.gateway.get_patient_by_id(self.entity_id)

    def _fill(self, patient) -> None:
        self.entry = {
            "first_name": patient.first_name,
            "last_name": patient.last_name,
            "birthday": patient.birthday,
            "sex": patient.sex,
            "bio": patient.bio,
        }

    def _payload(self) -> Dict[str, Any]:
        birthday = parse_calendar_date(self.entry["birthday"])
        payload = {
            "firstName": self.entry["first_name"].strip(),
            "lastName": self.entry["last_name"].strip(),
            "birthday": birthday.isoformat(),
            "sex": self.entry["sex"],
            "bio": self.entry.get("bio") or "",
        }
        if self.entity_id:
            payload["id"] = self.entity_id
        return payload

    def _save(self, payload):
        if self.entity_id:
            return self.gateway.update_patient(self.entity_id, payload)
        return self.gateway.create_patient(payload)

    def _remove(self) -> None:
        self.gateway.delete_patient(self.entity_id)

    def _saved_outcome(self, patient, created: bool):
        return PatientCreated(patient) if created else PatientUpdated(patient)

    def _deleted_outcome(self):
        return PatientDeleted(self.entity_id, format_full_name(self.entry["first_name"], self.entry["last_name"]))

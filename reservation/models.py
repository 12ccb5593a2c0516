"""
Reservation Data Model
Ambulances, patients, candidate examination slots and reservations.

Every record knows how to read itself from the gateway's camelCase JSON and
how to write itself back. Instants are kept as timezone-aware datetimes.
"""

from dataclasses import dataclass, field, replace
from datetime import date, datetime
from typing import Any, Dict, List, Literal, Optional, Union

import pandas as pd

# Closed enumeration of examinations an ambulance can offer
ExaminationType = Literal["ct", "mri", "x_ray", "ultrasound", "blood_test"]

Sex = Literal["male", "female"]

EntityKind = Literal["ambulance", "patient"]


# =============================================================================
# LABELS
# =============================================================================

EXAMINATION_TYPES: Dict[str, str] = {
    "ct": "CT",
    "mri": "MRI",
    "x_ray": "X-ray",
    "ultrasound": "Ultrasound",
    "blood_test": "Blood test",
}

SEX_TYPES: Dict[str, str] = {
    "male": "Male",
    "female": "Female",
}


def examination_label(examination_type: str) -> str:
    """Human label of an examination type, falling back to the raw key."""
    return EXAMINATION_TYPES.get(examination_type, examination_type)


def format_full_name(first_name: Optional[str], last_name: Optional[str]) -> str:
    return f"{first_name} {last_name}"


def format_long_date(value: datetime) -> str:
    """Format an instant as e.g. 'March 10, 2025'."""
    return f"{value.strftime('%B')} {value.day}, {value.year}"


# =============================================================================
# INSTANTS
# =============================================================================

def parse_instant(value: Union[str, datetime, pd.Timestamp]) -> datetime:
    """
    Normalize a gateway timestamp into an absolute, timezone-qualified instant.

    Aware values keep their offset. Naive values are read as local time.

    Examples:
        >>> parse_instant("2025-03-10T09:00:00Z").isoformat()
        '2025-03-10T09:00:00+00:00'
    """
    if isinstance(value, pd.Timestamp):
        value = value.to_pydatetime()
    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        value = datetime.fromisoformat(text)
    if not isinstance(value, datetime):
        raise ValueError(f"Not an instant: {value!r}")
    if value.tzinfo is None:
        value = value.astimezone()
    return value


def format_instant(value: datetime) -> str:
    """ISO-8601 text for an instant; UTC is written with a 'Z' suffix."""
    value = parse_instant(value)
    text = value.isoformat()
    if text.endswith("+00:00"):
        text = text[: -len("+00:00")] + "Z"
    return text


# =============================================================================
# RECORDS
# =============================================================================

@dataclass(frozen=True)
class OfficeHours:
    open: str  # HH:MM
    close: str  # HH:MM


@dataclass(frozen=True)
class Ambulance:
    """An ambulance (examination site) that patients can book slots in."""
    id: str
    name: str
    address: str
    medical_examinations: List[str] = field(default_factory=list)
    office_hours: OfficeHours = field(default_factory=lambda: OfficeHours("08:00", "16:00"))

    @property
    def display_name(self) -> str:
        return self.name

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "Ambulance":
        hours = data.get("officeHours") or {}
        return cls(
            id=str(data["id"]),
            name=data.get("name", ""),
            address=data.get("address", ""),
            medical_examinations=list(data.get("medicalExaminations") or []),
            office_hours=OfficeHours(
                open=hours.get("open", "08:00"),
                close=hours.get("close", "16:00"),
            ),
        )

    def to_api(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "address": self.address,
            "medicalExaminations": list(self.medical_examinations),
            "officeHours": {"open": self.office_hours.open, "close": self.office_hours.close},
        }


@dataclass(frozen=True)
class Patient:
    id: str
    first_name: str
    last_name: str
    birthday: str  # YYYY-MM-DD
    sex: str
    bio: str = ""

    @property
    def display_name(self) -> str:
        return format_full_name(self.first_name, self.last_name)

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "Patient":
        return cls(
            id=str(data["id"]),
            first_name=data.get("firstName", ""),
            last_name=data.get("lastName", ""),
            birthday=data.get("birthday", ""),
            sex=data.get("sex", ""),
            bio=data.get("bio") or "",
        )

    def to_api(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "birthday": self.birthday,
            "sex": self.sex,
            "bio": self.bio,
        }


@dataclass(frozen=True)
class Examination:
    """
    A candidate slot returned by slot search.

    Ephemeral: never persisted, only consumed by booking.
    """
    ambulance: Ambulance
    examination_type: str
    start: datetime
    end: datetime

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "Examination":
        return cls(
            ambulance=Ambulance.from_api(data["ambulance"]),
            examination_type=data["examinationType"],
            start=parse_instant(data["start"]),
            end=parse_instant(data["end"]),
        )


@dataclass(frozen=True)
class Reservation:
    """A committed booking. Only `message` may change after creation."""
    id: str
    ambulance: Ambulance
    patient: Patient
    examination_type: str
    start: datetime
    end: datetime
    message: str = ""

    def with_message(self, message: str) -> "Reservation":
        return replace(self, message=message)

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "Reservation":
        return cls(
            id=str(data["id"]),
            ambulance=Ambulance.from_api(data["ambulance"]),
            patient=Patient.from_api(data["patient"]),
            examination_type=data["examinationType"],
            start=parse_instant(data["start"]),
            end=parse_instant(data["end"]),
            message=data.get("message") or "",
        )

    def to_api(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "ambulance": self.ambulance.to_api(),
            "patient": self.patient.to_api(),
            "examinationType": self.examination_type,
            "start": format_instant(self.start),
            "end": format_instant(self.end),
            "message": self.message,
        }


Entity = Union[Ambulance, Patient]


def entity_kind(entity: Entity) -> EntityKind:
    return "ambulance" if isinstance(entity, Ambulance) else "patient"


def parse_calendar_date(value: Any) -> Optional[date]:
    """
    Resolve a user-entered date ('2025-03-10', a date, a datetime...) to a day.

    Returns None when the value cannot be resolved.
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        stamp = pd.Timestamp(value)
    except (ValueError, TypeError):
        return None
    if pd.isna(stamp):
        return None
    return stamp.date()

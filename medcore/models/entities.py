# =============================================================================
# medcore/models/entities.py
# Clinic Domain Records
# =============================================================================
"""
Domain records held by the LocalStore and replicated to Supabase.

Every record has a unique string ``id`` and serializes to a plain JSON dict
(``to_dict``) for durable storage. ``from_dict`` tolerates missing optional
fields so that snapshots written by older builds still load.
"""

from __future__ import annotations
from dataclasses import asdict, dataclass, field, fields
from enum import Enum
from typing import Any, Dict, List, Optional, Type, TypeVar

E = TypeVar("E", bound="Entity")


class AppointmentType(str, Enum):
    CHECKUP = "Checkup"
    FOLLOW_UP = "Follow-up"
    PROCEDURE = "Procedure"
    CONSULTATION = "Consultation"
    VACCINATION = "Vaccination"


class AppointmentStatus(str, Enum):
    CONFIRMED = "Confirmed"
    PENDING = "Pending"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


@dataclass
class Entity:
    """Base for records keyed by a string id."""
    id: str

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        for key, value in data.items():
            if isinstance(value, Enum):
                data[key] = value.value
        return data

    @classmethod
    def from_dict(cls: Type[E], data: Dict[str, Any]) -> E:
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})


@dataclass
class Address:
    barangay: str = ""
    city: str = ""
    province: str = ""


@dataclass
class Patient(Entity):
    name: str = ""
    age: int = 0
    gender: str = "Other"
    blood_group: str = ""
    last_visit: str = ""
    history: List[str] = field(default_factory=list)
    allergies: List[str] = field(default_factory=list)
    philhealth_id: Optional[str] = None
    is_senior_citizen: bool = False
    is_pwd: bool = False
    hmo_provider: Optional[str] = None
    address: Address = field(default_factory=Address)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Patient:
        patient = super().from_dict(data)
        if isinstance(patient.address, dict):
            patient.address = Address(**patient.address)
        return patient


@dataclass
class Appointment(Entity):
    patient_id: str = ""
    patient_name: str = ""
    doctor_name: str = ""
    time: str = ""
    date: str = ""
    type: AppointmentType = AppointmentType.CHECKUP
    status: AppointmentStatus = AppointmentStatus.PENDING

    def __post_init__(self):
        self.type = AppointmentType(self.type)
        self.status = AppointmentStatus(self.status)


@dataclass
class Medicine(Entity):
    """Pharmacy inventory item."""
    name: str = ""
    stock: int = 0
    expiry: str = ""
    price: float = 0.0
    is_generic: bool = False


@dataclass
class Invoice(Entity):
    patient: str = ""
    total: float = 0.0
    discount: float = 0.0
    philhealth: float = 0.0
    net: float = 0.0
    status: str = "Paid"
    method: str = "Cash"
    date: str = ""


@dataclass
class Consultation(Entity):
    """SOAP consultation note."""
    patient_id: str = ""
    patient_name: str = ""
    date: str = ""
    subjective: str = ""
    objective: str = ""
    assessment: str = ""
    plan: str = ""
    transcript: str = ""


@dataclass
class DoctorProfile:
    id: str
    email: str
    full_name: str
    license_number: str
    ptr_number: Optional[str] = None
    s2_number: Optional[str] = None
    specialty: Optional[str] = None
    clinic_name: Optional[str] = None
    clinic_address: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> DoctorProfile:
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})

from datetime import date
from enum import Enum
from typing import Any, ClassVar, Dict, FrozenSet, Optional, Set

from pydantic import AliasChoices, Field, field_validator

from studenthub.exceptions import InvalidTransitionError
from studenthub.schemas.base import PortalModel, Record


class AppointmentStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


# rejected, completed and cancelled are terminal
ALLOWED_TRANSITIONS: Dict[AppointmentStatus, Set[AppointmentStatus]] = {
    AppointmentStatus.PENDING: {
        AppointmentStatus.APPROVED,
        AppointmentStatus.REJECTED,
        AppointmentStatus.CANCELLED,
    },
    AppointmentStatus.APPROVED: {
        AppointmentStatus.COMPLETED,
        AppointmentStatus.CANCELLED,
    },
}


def can_transition(current: AppointmentStatus, target: AppointmentStatus) -> bool:
    return target in ALLOWED_TRANSITIONS.get(current, set())


def check_transition(current: AppointmentStatus, target: AppointmentStatus) -> None:
    if not can_transition(current, target):
        raise InvalidTransitionError(current.value, target.value)


class Service(Record):
    name: str
    description: Optional[str] = None
    duration: int = 30
    department: Optional[str] = None


class TimeSlot(PortalModel):
    time: str
    available: bool = True
    display_time: Optional[str] = Field(default=None, alias="displayTime")


class Appointment(Record):
    READ_ONLY: ClassVar[FrozenSet[str]] = frozenset({"id", "token_number", "status"})

    service_id: Optional[str] = None
    service_name: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("service_name", "service")
    )
    department: Optional[str] = None
    student_id: Optional[str] = None
    student_name: Optional[str] = None
    student_email: Optional[str] = None
    appointment_date: date = Field(validation_alias=AliasChoices("appointment_date", "date"))
    appointment_time: str = Field(validation_alias=AliasChoices("appointment_time", "time"))
    token_number: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("token_number", "token")
    )
    status: AppointmentStatus = AppointmentStatus.PENDING
    notes: Optional[str] = None
    admin_notes: Optional[str] = None

    @field_validator("service_id", "student_id", "token_number", mode="before")
    @classmethod
    def _stringify(cls, value: Any) -> Any:
        return str(value) if isinstance(value, int) else value

    @property
    def slot(self) -> str:
        return f"{self.appointment_date.isoformat()} {self.appointment_time}"


class AppointmentCreate(PortalModel):
    """Booking form body"""

    student_id: str = Field(alias="studentId")
    service_id: str = Field(alias="serviceId")
    appointment_date: date = Field(alias="appointmentDate")
    appointment_time: str = Field(alias="appointmentTime")
    notes: Optional[str] = None

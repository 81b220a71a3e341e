from datetime import datetime
from enum import Enum
from typing import Any, ClassVar, FrozenSet, List, Optional

from pydantic import AliasChoices, Field, field_validator

from studenthub.schemas.base import PortalModel, Record


class HostelType(str, Enum):
    BOYS = "boys"
    GIRLS = "girls"
    MIXED = "mixed"


class Hostel(Record):
    name: str
    type: HostelType = HostelType.MIXED
    total_rooms: int = 0
    occupied_rooms: int = 0
    warden_name: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("warden_name", "warden")
    )
    warden_contact: Optional[str] = None
    description: Optional[str] = None


class Resident(PortalModel):
    id: Optional[str] = Field(default=None, validation_alias=AliasChoices("id", "_id", "residentId"))
    student_id: Optional[str] = Field(default=None, alias="studentId")
    name: str
    email: Optional[str] = None

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, value: Any) -> Optional[str]:
        return None if value is None else str(value)


class RoomWarning(PortalModel):
    message: str
    severity: str = "minor"
    issued_at: Optional[datetime] = Field(default=None, alias="issuedAt")


class Room(Record):
    # residents and warnings have their own sub-endpoints
    READ_ONLY: ClassVar[FrozenSet[str]] = frozenset({"id", "residents", "warnings"})

    hostel_id: str = Field(alias="hostelId")
    room_number: str = Field(alias="roomNumber")
    floor: int = 1
    capacity: int = 2
    residents: List[Resident] = Field(default_factory=list)
    warnings: List[RoomWarning] = Field(default_factory=list)

    @field_validator("hostel_id", "room_number", mode="before")
    @classmethod
    def _stringify(cls, value: Any) -> Any:
        return str(value) if isinstance(value, int) else value

    @property
    def is_full(self) -> bool:
        return len(self.residents) >= self.capacity

    @property
    def is_occupied(self) -> bool:
        return len(self.residents) > 0

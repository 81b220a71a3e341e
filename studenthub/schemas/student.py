from enum import Enum
from typing import Optional

from pydantic import AliasChoices, Field

from studenthub.schemas.base import Record


class StudentStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    GRADUATED = "graduated"


class Student(Record):
    student_id: str = Field(validation_alias=AliasChoices("student_id", "studentId"))
    name: str
    email: str
    phone: Optional[str] = None
    department: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("department", "faculty")
    )
    year: int = 1
    status: StudentStatus = StudentStatus.ACTIVE
    gender: Optional[str] = None
    hostel_building: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("hostel_building", "hostelBuilding")
    )
    room_number: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("room_number", "roomNumber")
    )

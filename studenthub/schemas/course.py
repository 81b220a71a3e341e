from datetime import datetime
from typing import ClassVar, FrozenSet, List, Optional

from pydantic import AliasChoices, Field

from studenthub.schemas.base import PortalModel, Record


class Course(Record):
    """A course. `code` is the natural key; `enrolled` is counted by the backend."""

    READ_ONLY: ClassVar[FrozenSet[str]] = frozenset({"id", "enrolled"})

    code: str = Field(validation_alias=AliasChoices("code", "course_code", "courseCode"))
    name: str
    credits: int = 3
    instructor: Optional[str] = None
    semester: Optional[str] = None
    enrolled: int = 0
    capacity: int = 30
    category: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("category", "department")
    )
    course_type: Optional[str] = Field(default=None, alias="courseType")
    description: Optional[str] = None

    @property
    def is_full(self) -> bool:
        return self.enrolled >= self.capacity


class TransferRecord(PortalModel):
    from_course: str = Field(alias="fromCourse")
    to_course: str = Field(alias="toCourse")
    transferred_at: datetime = Field(alias="transferredAt")


class Enrollment(Record):
    student_id: str = Field(alias="studentId")
    student_name: Optional[str] = Field(default=None, alias="studentName")
    course_code: str = Field(alias="courseCode")
    course_name: Optional[str] = Field(default=None, alias="courseName")
    enrolled_at: Optional[datetime] = Field(default=None, alias="enrolledAt")
    transfer_history: List[TransferRecord] = Field(default_factory=list, alias="transferHistory")

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Optional

from studenthub.exceptions import PortalError, ValidationError
from studenthub.logging_config import get_logger
from studenthub.schemas import Enrollment, Room, Student
from studenthub.views.base import Dialog, ResourceView
from studenthub.views.requests import ProfileCompletion

logger = get_logger(__name__)

# Last letter of each month's English name, January first
MONTH_LAST_LETTERS = ["y", "y", "h", "l", "y", "e", "y", "t", "r", "r", "r", "r"]


def generate_student_id(full_name: str, counter: int, today: Optional[date] = None) -> str:
    """
    Build a student id from the enrollment date and the student's name.

    Format: <year><counter><first initial><last two letters of surname><month letter>
    e.g. "Ada Lovelace", 7th student, March 2025 -> "20257ACEh"
    """
    today = today or date.today()
    parts = full_name.strip().split()
    first = parts[0] if parts else ""
    last = parts[-1] if parts else ""

    initial = first[:1].upper()
    if len(last) >= 2:
        tail = last[-2:].upper()
    else:
        tail = (last + "X")[:2].upper()

    return f"{today.year}{counter}{initial}{tail}{MONTH_LAST_LETTERS[today.month - 1]}"


@dataclass
class StudentDetail:
    student: Student
    enrollments: List[Enrollment] = field(default_factory=list)


class StudentsView(ResourceView[Student]):
    name = "students"
    label = "Student"
    plural = "students"
    model = Student
    search_fields = ("name", "email", "student_id")
    record_actions = ("edit", "delete", "details")
    invalidates = ("rooms",)

    def default_form(self) -> Dict[str, Any]:
        return {"year": 1, "status": "active"}

    def suggest_id(self, full_name: str, today: Optional[date] = None) -> str:
        return generate_student_id(full_name, len(self.items), today)

    def open_create(self, initial: Optional[Dict[str, Any]] = None) -> Dialog:
        dialog = super().open_create(initial)
        name = str(dialog.form.get("name") or "").strip()
        if name and not dialog.form.get("student_id"):
            dialog.form["student_id"] = self.suggest_id(name)
        return dialog

    def complete_profile(self, handoff: ProfileCompletion) -> Dialog:
        """Open the create dialog pre-filled from an approved registration"""
        dialog = self.open_create(handoff.form())
        self.notifier.info("Complete the student profile from registration request")
        return dialog

    def validate(self, payload: Student, dialog: Dialog) -> None:
        if not payload.name.strip():
            raise ValidationError("Name is required", field="name")
        if "@" not in payload.email:
            raise ValidationError("Please enter a valid email", field="email")
        for other in self.items:
            if other.id == payload.id:
                continue
            if other.student_id == payload.student_id:
                raise ValidationError(
                    f"Student ID {payload.student_id} is already in use", field="student_id"
                )
            if other.email.lower() == payload.email.lower():
                raise ValidationError(f"{payload.email} is already registered", field="email")

    async def details(self, student: Student) -> Optional[StudentDetail]:
        try:
            enrollments = await self.api.enrollments.by_student(student.student_id)
        except PortalError as e:
            logger.warning(f"Failed to load details for {student.student_id}: {e.message}")
            self.notifier.error("Failed to load student details")
            return None
        return StudentDetail(student=student, enrollments=enrollments)

    async def room_choices(self, hostel_id: str) -> List[Room]:
        """Rooms in a hostel that still have a free bed"""
        try:
            rooms = await self.api.rooms.by_hostel(hostel_id)
        except PortalError as e:
            logger.warning(f"Failed to load rooms for hostel {hostel_id}: {e.message}")
            self.notifier.error("Failed to load rooms")
            return []
        return [room for room in rooms if not room.is_full]

"""
Dashboard overview for whoever is logged in

Catalogue totals for everyone; students also get their profile, hostel,
first few enrollments and the books they currently hold.
"""

import asyncio
from typing import Any, Dict, List, Optional

from studenthub.exceptions import PortalError
from studenthub.logging_config import get_logger, set_view
from studenthub.schemas import (
    BorrowRequest,
    Enrollment,
    Hostel,
    RequestBase,
    RequestStatus,
    ReturnRequest,
    Student,
)
from studenthub.views.base import ViewContext

logger = get_logger(__name__)

ENROLLMENT_PREVIEW = 3


def currently_borrowed(requests: List[RequestBase]) -> List[BorrowRequest]:
    """Approved borrow requests with no approved return against them"""
    returned = {
        r.borrowing_id for r in requests
        if isinstance(r, ReturnRequest) and r.status == RequestStatus.APPROVED
    }
    return [
        r for r in requests
        if isinstance(r, BorrowRequest)
        and r.status == RequestStatus.APPROVED
        and r.id not in returned
    ]


class DashboardView:
    name = "dashboard"

    def __init__(self, ctx: ViewContext):
        self.ctx = ctx
        self.loading = False
        self.student: Optional[Student] = None
        self.hostel: Optional[Hostel] = None
        self.total_courses = 0
        self.total_books = 0
        self.enrollments: List[Enrollment] = []
        self.borrowed: List[BorrowRequest] = []

    @property
    def api(self):
        return self.ctx.api

    async def load(self) -> bool:
        set_view(self.name)
        self.loading = True
        email = self.ctx.session.email
        try:
            students, hostels, courses, books = await asyncio.gather(
                self.api.students.get_all(),
                self.api.hostels.get_all(),
                self.api.courses.get_all(),
                self.api.books.get_all(),
            )
        except PortalError as e:
            logger.warning(f"Dashboard load failed: {e.message}")
            self.ctx.notifier.error("Failed to load dashboard data")
            return False
        finally:
            self.loading = False

        self.total_courses = len(courses)
        self.total_books = len(books)
        self.student = next((s for s in students if s.email == email), None)
        building = self.student.hostel_building if self.student else None
        self.hostel = next((h for h in hostels if building and h.id == building), None)

        # Panels below degrade to empty on their own
        self.enrollments = []
        if self.student is not None:
            try:
                enrollments = await self.api.enrollments.by_student(self.student.student_id)
                self.enrollments = enrollments[:ENROLLMENT_PREVIEW]
            except PortalError as e:
                logger.warning(f"Failed to fetch enrollments: {e.message}")

        self.borrowed = []
        if email:
            try:
                self.borrowed = currently_borrowed(await self.api.requests.by_student(email))
            except PortalError as e:
                logger.warning(f"Failed to fetch borrowed books: {e.message}")
        return True

    def summary(self) -> Dict[str, Any]:
        values: Dict[str, Any] = {
            "total_courses": self.total_courses,
            "total_books": self.total_books,
        }
        if self.student is not None:
            values.update({
                "student_id": self.student.student_id,
                "department": self.student.department,
                "year": self.student.year,
                "hostel": self.hostel.name if self.hostel else None,
                "room": self.student.room_number,
                "enrolled_courses": ", ".join(e.course_code for e in self.enrollments) or None,
                "books_borrowed": len(self.borrowed),
            })
        return values

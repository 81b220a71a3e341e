"""
Course views

CoursesView is the admin catalogue plus per-course enrollment lists and
transfers. StudentCoursesView reads the same "courses" store and turns
enroll / unenroll clicks into requests for admin review.
"""

import asyncio
from datetime import datetime, timezone
from typing import Dict, List, Optional, Set

from studenthub.exceptions import PortalError, TransferIncompleteError, ValidationError
from studenthub.filters import available_seats, enrollment_rate
from studenthub.logging_config import get_logger
from studenthub.schemas import (
    Course,
    Enrollment,
    EnrollRequest,
    RequestBase,
    RequestStatus,
    UnenrollRequest,
)
from studenthub.views.base import Dialog, ResourceView

logger = get_logger(__name__)


class CoursesView(ResourceView[Course]):
    name = "courses"
    label = "Course"
    plural = "courses"
    model = Course
    search_fields = ("code", "name", "instructor")
    record_actions = ("edit", "delete", "enrollments")
    invalidates = ("enrollments",)

    def __init__(self, ctx):
        super().__init__(ctx)
        self.enrollments: Dict[str, List[Enrollment]] = {}

    def default_form(self) -> Dict[str, object]:
        return {"credits": 3, "capacity": 30}

    def validate(self, payload: Course, dialog: Dialog) -> None:
        if payload.capacity < 1:
            raise ValidationError("Capacity must be at least 1", field="capacity")
        if payload.credits < 0:
            raise ValidationError("Credits cannot be negative", field="credits")
        if dialog.is_edit and payload.capacity < dialog.record.enrolled:
            raise ValidationError(
                f"Capacity cannot be below the {dialog.record.enrolled} students already enrolled",
                field="capacity",
            )
        duplicate = next(
            (c for c in self.items
             if c.code.lower() == payload.code.lower() and c.id != payload.id),
            None,
        )
        if duplicate is not None:
            raise ValidationError(f"Course code {payload.code} already exists", field="code")

    def by_code(self, code: str) -> Optional[Course]:
        return next((c for c in self.items if c.code == code), None)

    def seats(self, course: Course) -> int:
        return available_seats(course)

    def fill_rate(self, course: Course) -> int:
        return enrollment_rate(course)

    async def load_enrollments(self, course: Course) -> List[Enrollment]:
        try:
            enrollments = await self.api.enrollments.by_course(course.code)
        except PortalError as e:
            logger.warning(f"Failed to load enrollments for {course.code}: {e.message}")
            self.notifier.error("Failed to load enrollments")
            return self.enrollments.get(course.code, [])
        self.enrollments[course.code] = enrollments
        return enrollments

    async def transfer(self, enrollment: Enrollment, to_code: str) -> Optional[Enrollment]:
        """Move a student's enrollment to another course, keeping enrolled_at"""
        self._require_admin("transfer")

        if to_code == enrollment.course_code:
            self.notifier.error("Student is already enrolled in this course")
            return None
        target = self.by_code(to_code)
        if target is None:
            self.notifier.error(f"Course {to_code} not found")
            return None
        if target.is_full:
            self.notifier.error(f"{target.code} is full")
            return None

        existing = self.enrollments.get(target.code)
        if existing is None:
            try:
                existing = await self.api.enrollments.by_course(target.code)
            except PortalError as e:
                logger.warning(f"Failed to load enrollments for {target.code}: {e.message}")
                self.notifier.error("Failed to load enrollments")
                return None
        if any(e.student_id == enrollment.student_id for e in existing):
            self.notifier.error(f"Student is already enrolled in {target.code}")
            return None

        try:
            moved = await self.api.enrollments.move(enrollment, target.code, target.name)
        except TransferIncompleteError as e:
            self.notifier.error(e.message)
            self.invalidate()
            await self.load()
            return None
        except PortalError as e:
            logger.warning(f"Transfer of {enrollment.id} failed: {e.message}")
            self.notifier.error(e.message or "Transfer failed")
            return None

        self.notifier.success(f"Student transferred to {target.code} successfully!")
        self.invalidate()
        await asyncio.gather(
            self.load(),
            self.load_enrollments(target),
        )
        self.enrollments.pop(enrollment.course_code, None)
        return moved


class StudentCoursesView(ResourceView[Course]):
    """Course catalogue as a student sees it"""

    name = "courses"
    label = "Course"
    plural = "courses"
    model = Course
    search_fields = ("code", "name", "instructor")
    collection_actions = ()
    record_actions = ()
    invalidates = ("requests",)

    def __init__(self, ctx):
        super().__init__(ctx)
        self.my_enrollments: List[Enrollment] = []
        self.my_requests: List[RequestBase] = []
        # Course codes with a request in flight
        self.submitting: Set[str] = set()

    @property
    def student_key(self) -> str:
        return self.session.email

    async def refresh(self) -> bool:
        """Catalogue, own enrollments and own requests, fetched together"""
        loaded, mine = await asyncio.gather(self.load(), self.load_mine())
        return loaded and mine

    async def load_mine(self) -> bool:
        try:
            self.my_enrollments, self.my_requests = await asyncio.gather(
                self.api.enrollments.by_student(self.student_key),
                self.api.requests.by_student(self.student_key),
            )
        except PortalError as e:
            logger.warning(f"Failed to load enrollments and requests: {e.message}")
            self.notifier.error("Failed to load courses data")
            return False
        return True

    def enrollment_for(self, course: Course) -> Optional[Enrollment]:
        return next((e for e in self.my_enrollments if e.course_code == course.code), None)

    def _has_request(self, request_type: type, status: RequestStatus, **match) -> bool:
        for request in self.my_requests:
            if not isinstance(request, request_type) or request.status != status:
                continue
            if all(getattr(request, k, None) == v for k, v in match.items()):
                return True
        return False

    def is_enrolled(self, course: Course) -> bool:
        """Enrolled, unless an unenroll for that enrollment was approved"""
        enrollment = self.enrollment_for(course)
        if enrollment is None:
            return False
        return not self._has_request(
            UnenrollRequest, RequestStatus.APPROVED, enrollment_id=enrollment.id
        )

    def my_courses(self) -> List[Course]:
        return [c for c in self.items if self.is_enrolled(c)]

    def _check_enroll(self, course: Course) -> None:
        if self._has_request(EnrollRequest, RequestStatus.PENDING, course_code=course.code):
            raise ValidationError("You already have a pending enrollment request for this course")
        if self.is_enrolled(course):
            raise ValidationError("You are already enrolled in this course")
        if course.is_full:
            raise ValidationError("This course is full")

    async def _submit_request(self, course: Course, request: RequestBase, success: str) -> bool:
        self.submitting.add(course.code)
        try:
            await self.api.requests.create(request)
        except PortalError as e:
            logger.warning(f"Request for {course.code} failed: {e.message}")
            self.notifier.error(e.message or "Failed to submit request")
            return False
        finally:
            self.submitting.discard(course.code)

        self.notifier.success(success)
        self.ctx.stores.invalidate(*self.invalidates)
        await self.load_mine()
        return True

    async def request_enrollment(self, course: Course) -> bool:
        if course.code in self.submitting:
            return False
        try:
            self._check_enroll(course)
        except ValidationError as e:
            self.notifier.error(e.message)
            return False

        user = self.session.user
        request = EnrollRequest(
            student_id=self.student_key,
            student_name=user.name if user else None,
            student_email=self.session.email,
            course_code=course.code,
            course_name=course.name,
            course_instructor=course.instructor,
            course_semester=course.semester,
            requested_at=datetime.now(timezone.utc),
        )
        return await self._submit_request(
            course, request, "Enrollment request submitted! Waiting for admin approval."
        )

    async def request_unenrollment(self, course: Course) -> bool:
        if course.code in self.submitting:
            return False

        enrollment = self.enrollment_for(course)
        if enrollment is None or not self.is_enrolled(course):
            self.notifier.error("You are not enrolled in this course")
            return False
        if self._has_request(UnenrollRequest, RequestStatus.PENDING, course_code=course.code):
            self.notifier.error("You already have a pending unenroll request for this course")
            return False

        user = self.session.user
        request = UnenrollRequest(
            student_id=self.student_key,
            student_name=user.name if user else None,
            student_email=self.session.email,
            course_code=course.code,
            course_name=course.name,
            enrollment_id=enrollment.id,
            requested_at=datetime.now(timezone.utc),
        )
        return await self._submit_request(
            course, request, "Unenroll request submitted! Waiting for admin approval."
        )

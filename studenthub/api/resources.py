"""
Per-resource REST clients

Each client is a thin wrapper over PortalAPIClient.request that knows its URL
prefix and record type. The generic verbs (get_all, get_by_id, get_by_parent,
create, update, delete) live on ResourceClient; resource-specific endpoints
are added by the subclasses.
"""

from datetime import date, datetime, timezone
from typing import TYPE_CHECKING, Any, Dict, Generic, List, Optional, Type, TypeVar, Union

from pydantic import ValidationError as PydanticValidationError

from studenthub.exceptions import (
    AuthenticationError,
    InvalidResponseError,
    PortalError,
    TransferIncompleteError,
)
from studenthub.logging_config import get_logger
from studenthub.schemas import (
    Announcement,
    Appointment,
    AppointmentCreate,
    AppointmentStatus,
    Book,
    Borrowing,
    Course,
    Enrollment,
    Hostel,
    Notification,
    PasswordSecurityReport,
    PendingUser,
    PortalModel,
    Record,
    RequestBase,
    RequestStatus,
    Resident,
    Room,
    RoomWarning,
    Service,
    Student,
    TimeSlot,
    TransferRecord,
    User,
    parse_request,
    parse_requests,
)

if TYPE_CHECKING:
    from studenthub.api.client import PortalAPIClient

logger = get_logger(__name__)

T = TypeVar("T", bound=Record)
M = TypeVar("M", bound=PortalModel)

Payload = Union[PortalModel, Dict[str, Any]]


def _body(payload: Payload) -> Dict[str, Any]:
    if isinstance(payload, PortalModel):
        return payload.to_payload()
    return dict(payload)


def _parse(model: Type[M], data: Any) -> M:
    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        raise InvalidResponseError(f"Unexpected {model.__name__} payload: {e.errors()[0]['msg']}") from e


def _parse_list(model: Type[M], data: Any) -> List[M]:
    if data is None:
        return []
    if not isinstance(data, list):
        raise InvalidResponseError(f"Expected a list of {model.__name__}")
    return [_parse(model, item) for item in data]


def created_id(response: Any) -> Optional[str]:
    """Id of a freshly created record from a `{message, id}` style body"""
    if isinstance(response, dict):
        for key in ("id", "_id", "insertedId", "userId"):
            if response.get(key) is not None:
                return str(response[key])
    return None


class ResourceClient(Generic[T]):
    """CRUD over one REST resource"""

    path: str = ""
    model: Type[T]

    def __init__(self, api: "PortalAPIClient"):
        self.api = api

    def _url(self, *parts: Any) -> str:
        return "/" + "/".join([self.path, *(str(p) for p in parts)])

    def parse(self, data: Any) -> T:
        return _parse(self.model, data)

    def parse_list(self, data: Any) -> List[T]:
        if data is None:
            return []
        if not isinstance(data, list):
            raise InvalidResponseError(f"Expected a list from /{self.path}")
        return [self.parse(item) for item in data]

    async def get_all(self, **filters: Any) -> List[T]:
        return self.parse_list(await self.api.get(self._url(), **filters))

    async def get_by_id(self, record_id: str) -> T:
        return self.parse(await self.api.get(self._url(record_id)))

    async def get_by_parent(self, parent: str, parent_id: str) -> List[T]:
        return self.parse_list(await self.api.get(self._url(parent, parent_id)))

    async def create(self, payload: Payload) -> Dict[str, Any]:
        return await self.api.post(self._url(), json=_body(payload)) or {}

    async def update(self, record_id: str, payload: Payload) -> Dict[str, Any]:
        return await self.api.put(self._url(record_id), json=_body(payload)) or {}

    async def delete(self, record_id: str) -> Dict[str, Any]:
        return await self.api.delete(self._url(record_id)) or {}


class AppointmentsClient(ResourceClient[Appointment]):
    path = "appointments"
    model = Appointment

    async def by_student(self, student_id: str) -> List[Appointment]:
        return await self.get_by_parent("student", student_id)

    async def services(self) -> List[Service]:
        return _parse_list(Service, await self.api.get(self._url("services")))

    async def available_slots(self, service_id: str, on: date) -> List[TimeSlot]:
        data = await self.api.get(
            self._url("available-slots"), serviceId=service_id, date=on.isoformat()
        )
        return _parse_list(TimeSlot, data)

    async def book(self, booking: AppointmentCreate) -> Appointment:
        return self.parse(await self.api.post(self._url(), json=booking.to_payload()))

    async def today_queue(self) -> List[Appointment]:
        return self.parse_list(await self.api.get(self._url("queue", "today")))

    async def stats(self) -> Dict[str, Any]:
        return await self.api.get(self._url("stats", "overview")) or {}

    async def update_status(
        self, appointment_id: str, status: AppointmentStatus, note: Optional[str] = None
    ) -> Dict[str, Any]:
        body = {"status": AppointmentStatus(status).value, "adminNotes": note or ""}
        return await self.api.patch(self._url(appointment_id, "status"), json=body) or {}

    async def cancel(self, appointment_id: str, student_id: str) -> Dict[str, Any]:
        return await self.api.patch(
            self._url(appointment_id, "cancel"), json={"studentId": student_id}
        ) or {}


class ServicesClient(ResourceClient[Service]):
    path = "services"
    model = Service


class AnnouncementsClient(ResourceClient[Announcement]):
    path = "announcements"
    model = Announcement

    async def by_type(self, announcement_type: str) -> List[Announcement]:
        return await self.get_by_parent("type", announcement_type)


class CoursesClient(ResourceClient[Course]):
    path = "courses"
    model = Course


class EnrollmentsClient(ResourceClient[Enrollment]):
    path = "enrollments"
    model = Enrollment

    async def by_student(self, student_id: str) -> List[Enrollment]:
        return await self.get_by_parent("student", student_id)

    async def by_course(self, course_code: str) -> List[Enrollment]:
        return await self.get_by_parent("course", course_code)

    async def move(
        self,
        enrollment: Enrollment,
        to_course: str,
        course_name: Optional[str] = None,
        when: Optional[datetime] = None,
    ) -> Enrollment:
        """
        Move an enrollment to another course.

        The backend has no move endpoint, so this creates the new row (same
        enrolled_at, history extended) and then deletes the old one. If the
        delete fails the student is enrolled twice; that case is raised as
        TransferIncompleteError so the caller can surface it.
        """
        record = TransferRecord(
            from_course=enrollment.course_code,
            to_course=to_course,
            transferred_at=when or datetime.now(timezone.utc),
        )
        moved = enrollment.model_copy(
            update={
                "id": None,
                "course_code": to_course,
                "course_name": course_name,
                "transfer_history": [*enrollment.transfer_history, record],
            }
        )

        response = await self.create(moved)
        new_id = created_id(response)
        if new_id:
            moved = moved.model_copy(update={"id": new_id})

        try:
            await self.delete(enrollment.key)
        except PortalError as e:
            logger.error(
                f"Transfer of {enrollment.key} to {to_course} left a duplicate: {e.message}"
            )
            raise TransferIncompleteError(new_id or "", enrollment.key, e.message) from e

        logger.info(f"Enrollment {enrollment.key} moved {record.from_course} -> {to_course}")
        return moved


class HostelsClient(ResourceClient[Hostel]):
    path = "hostels"
    model = Hostel


class RoomsClient(ResourceClient[Room]):
    path = "rooms"
    model = Room

    async def by_hostel(self, hostel_id: str) -> List[Room]:
        return await self.get_by_parent("hostel", hostel_id)

    async def add_resident(self, room_id: str, resident: Resident) -> Dict[str, Any]:
        return await self.api.post(
            self._url(room_id, "residents"), json=resident.to_payload()
        ) or {}

    async def remove_resident(self, room_id: str, resident_id: str) -> Dict[str, Any]:
        return await self.api.delete(self._url(room_id, "residents", resident_id)) or {}

    async def add_warning(self, room_id: str, warning: RoomWarning) -> Dict[str, Any]:
        return await self.api.post(
            self._url(room_id, "warnings"), json=warning.to_payload()
        ) or {}


class BooksClient(ResourceClient[Book]):
    path = "books"
    model = Book


class BorrowingsClient(ResourceClient[Borrowing]):
    path = "borrowings"
    model = Borrowing

    async def by_student(self, student_id: str) -> List[Borrowing]:
        return await self.get_by_parent("student", student_id)

    async def return_book(self, borrowing_id: str) -> Dict[str, Any]:
        return await self.api.post(self._url(borrowing_id, "return")) or {}


class StudentsClient(ResourceClient[Student]):
    path = "students"
    model = Student


class RequestsClient(ResourceClient[RequestBase]):
    path = "requests"
    model = RequestBase

    def parse(self, data: Any) -> RequestBase:
        try:
            return parse_request(data)
        except PydanticValidationError as e:
            raise InvalidResponseError(f"Unexpected request payload: {e.errors()[0]['msg']}") from e

    def parse_list(self, data: Any) -> List[RequestBase]:
        if data is None:
            return []
        if not isinstance(data, list):
            raise InvalidResponseError(f"Expected a list from /{self.path}")
        try:
            return parse_requests(data)
        except PydanticValidationError as e:
            raise InvalidResponseError(f"Unexpected request payload: {e.errors()[0]['msg']}") from e

    async def pending(self) -> List[RequestBase]:
        return self.parse_list(await self.api.get(self._url("pending")))

    async def by_student(self, student_id: str) -> List[RequestBase]:
        return await self.get_by_parent("student", student_id)

    async def update_status(
        self, request_id: str, status: RequestStatus, note: Optional[str] = None
    ) -> Dict[str, Any]:
        body = {"status": RequestStatus(status).value, "adminNote": note or ""}
        return await self.api.put(self._url(request_id, "status"), json=body) or {}


class UsersClient(ResourceClient[User]):
    """Staff accounts live under /auth"""

    path = "auth/users"
    model = User

    async def create(self, payload: Payload) -> Dict[str, Any]:
        return await self.api.post("/auth/create-user", json=_body(payload)) or {}


class NotificationsClient(ResourceClient[Notification]):
    path = "notifications"
    model = Notification

    async def by_email(self, email: str) -> List[Notification]:
        return await self.get_by_parent("email", email)

    async def unread_count(self, email: str) -> int:
        data = await self.api.get(self._url("unread", "count", email)) or {}
        if not isinstance(data, dict):
            raise InvalidResponseError(f"Expected an object from /{self.path}/unread/count")
        try:
            return int(data.get("count", 0))
        except (TypeError, ValueError) as e:
            raise InvalidResponseError(f"Unreadable unread count: {data.get('count')!r}") from e

    async def mark_read(self, notification_id: str) -> Dict[str, Any]:
        return await self.api.put(self._url(notification_id, "read")) or {}

    async def mark_all_read(self) -> Dict[str, Any]:
        return await self.api.put(self._url("read-all")) or {}


class AuthClient:
    """Login, registration, password and account-approval endpoints"""

    def __init__(self, api: "PortalAPIClient"):
        self.api = api

    async def login(self, email: str, password: str) -> Dict[str, Any]:
        data = await self.api.post("/auth/login", json={"email": email, "password": password})
        if not isinstance(data, dict) or not isinstance(data.get("user"), dict):
            raise InvalidResponseError("Login response did not include a user")
        # Unapproved accounts get a user but no token
        if not data.get("token"):
            raise AuthenticationError(data.get("message") or "Account pending approval")
        self.api.set_token(data["token"])
        return data

    async def register(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return await self.api.post("/auth/register", json=payload) or {}

    async def change_password(self, email: str, old_password: str, new_password: str) -> Dict[str, Any]:
        return await self.api.post(
            "/auth/change-password",
            json={"email": email, "oldPassword": old_password, "newPassword": new_password},
        ) or {}

    async def check_password_security(
        self, password: str, email: Optional[str] = None
    ) -> PasswordSecurityReport:
        data = await self.api.post(
            "/auth/check-password-security", json={"password": password, "email": email}
        )
        return _parse(PasswordSecurityReport, data or {})

    async def generate_password(self, count: int = 3, length: int = 16) -> List[str]:
        data = await self.api.get("/auth/generate-password", count=count, length=length) or {}
        return list(data.get("suggestions", []))

    async def pending_users(self) -> List[PendingUser]:
        return _parse_list(PendingUser, await self.api.get("/auth/pending-users"))

    async def approve_user(self, user_id: str, student_id: str) -> Dict[str, Any]:
        return await self.api.post(
            f"/auth/approve-user/{user_id}", json={"student_id": student_id}
        ) or {}

    async def reject_user(self, user_id: str) -> Dict[str, Any]:
        return await self.api.post(f"/auth/reject-user/{user_id}") or {}

    async def delete_user(self, email: str) -> Dict[str, Any]:
        return await self.api.delete("/auth/delete-user", json={"email": email}) or {}

    async def update_profile(self, user_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        return await self.api.put(f"/auth/profile/{user_id}", json=payload) or {}
